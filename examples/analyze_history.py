"""Decision tree for a saved move history.

Pass the path of a saved ``move_history.json`` to analyze it, or run
without arguments to analyze the built-in sample below:
    python examples/analyze_history.py [path] [fake coin number]

The optional fake coin number (1-based) replays the strategy against a
different hypothesis, like the coin picker in the analysis view.
"""

import sys
import pathlib

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import fake_coin
import strategy_engine


# A 9-coin game where the fake was the coin left off the first weighing.
SAMPLE_HISTORY = {
    "moves": [
        {
            "leftPan": [0, 1, 2, 3],
            "rightPan": [4, 5, 6, 7],
            "result": fake_coin.Outcome.BALANCED.text,
            "remainingCoins": [8],
            "step": 1,
        },
    ],
    "fakeCoinIndex": 8,
    "numCoins": 9,
    "finalGuess": 8,
}


def main() -> None:
    if len(sys.argv) > 1:
        record = fake_coin.load_move_history(sys.argv[1])
    else:
        record = SAMPLE_HISTORY

    fake = int(sys.argv[2]) - 1 if len(sys.argv) > 2 else None
    tree = strategy_engine.analyze_move_history(record, fake_coin_index=fake)

    print("=" * 60)
    print("Game analysis")
    print("=" * 60)
    print()
    strategy_engine.print_decision_tree(tree, fake)
    if not tree.is_empty:
        print()
        print(
            f"{len(tree.nodes)} states, "
            f"{len(tree.true_path()) - 1} steps on the path taken"
        )


if __name__ == "__main__":
    main()
