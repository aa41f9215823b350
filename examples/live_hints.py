"""Planner advice for a game in progress.

Edit the coin count and the weighings already performed below, then run:
    python examples/live_hints.py

Coins are numbered from 1 here, as on the game screen.
"""

import sys
import pathlib

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import fake_coin
import strategy_engine


def main() -> None:
    # ── Game ───────────────────────────────────────────────────
    num_coins = 13

    # ── Weighings so far: (left pan, right pan, outcome) ───────
    weighings = [
        ([1, 2, 3, 4, 5, 6], [7, 8, 9, 10, 11, 12], fake_coin.Outcome.RIGHT_LIGHTER),
        # ([7, 8, 9], [10, 11, 12], fake_coin.Outcome.BALANCED),
    ]

    candidates = fake_coin.full_candidate_set(num_coins)
    last = None
    for step, (left, right, outcome) in enumerate(weighings, start=1):
        left_pan = tuple(c - 1 for c in left)
        right_pan = tuple(c - 1 for c in right)
        candidates = outcome.narrow(candidates, left_pan, right_pan)
        last = fake_coin.Weighing(
            left_pan=left_pan,
            right_pan=right_pan,
            outcome=outcome,
            remaining_candidates=candidates,
            step_number=step,
        )

    if not candidates:
        print("No coin is consistent with these weighings.")
        return

    planner = strategy_engine.SplitPlanner()
    strategy_engine.print_hint_analysis(candidates, planner, last)


if __name__ == "__main__":
    main()
