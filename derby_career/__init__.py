from .career import CareerScheduler, CareerStateError, GamePhase, ScheduleError  # noqa: F401
from .config import CareerConfig  # noqa: F401
from .persistence import LoadResult, build_save_document, load_career, load_career_document, save_career  # noqa: F401

__all__ = [
    "CareerScheduler",
    "CareerStateError",
    "GamePhase",
    "ScheduleError",
    "CareerConfig",
    "LoadResult",
    "build_save_document",
    "load_career",
    "load_career_document",
    "save_career",
]
