"""
Auto-play a full career and print the race results.

Usage:
    python run_career.py

Set DERBY_SEED for a repeatable run and DERBY_VERBOSE=1 for turn-by-turn output.
"""

import os
import random

from derby_career.career import CareerScheduler, GamePhase
from derby_career.config import CareerConfig
from derby_career.engine.race import format_race_time

REST_BELOW = 35


def choose_training(status):
    character = status["character"]
    if character["energy"] < REST_BELOW:
        return "rest"
    if character["bond"] < 40:
        return "media"
    stats = character["stats"]
    return min(stats, key=stats.get)


def play_career(scheduler, name="Autumn Comet"):
    scheduler.start_career(name)
    while scheduler.phase is not GamePhase.CAREER_COMPLETE:
        if scheduler.phase is GamePhase.PRE_RACE:
            result = scheduler.run_race()
            entry = result.entry_for(scheduler.player.horse_id)
            race = result.race
            print(
                f"{race.name}: finished {entry.rank}/{result.field_size} "
                f"in {format_race_time(entry.time)} (prize {entry.prize})"
            )
        elif scheduler.phase is GamePhase.RACE_RESULTS:
            scheduler.continue_career()
        else:
            action = scheduler.perform_training(choose_training(scheduler.get_game_status()))
            if not action.success:
                scheduler.perform_training("rest")
    return scheduler.complete_career()


def main():
    seed = os.getenv("DERBY_SEED")
    rng = random.Random(int(seed)) if seed else random.Random()
    scheduler = CareerScheduler(CareerConfig.from_balance_config(), rng=rng)
    try:
        summary = play_career(scheduler)
    except KeyboardInterrupt:
        print("Career stopped by user.")
        return

    print(f"\n{summary.horse_name}: {summary.races_won}/{summary.races_run} wins, final stats {summary.final_stats}")
    print(f"Legacy bonuses: {summary.legacy_bonuses.as_dict()}")
    if summary.achievements:
        print(f"Achievements: {', '.join(summary.achievements)}")


if __name__ == "__main__":
    main()
