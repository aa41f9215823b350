"""Play a fake coin game by following the planner's hints.

Starts a game with a randomly hidden fake coin, weighs the groups the
planner recommends at each step, guesses the last remaining coin, and
prints the rating. The saved move history is then read back and
replayed as a decision tree, the same way the analysis view does.
"""

import pathlib
import tempfile

import fake_coin
import strategy_engine

_C = fake_coin._Colors

# Game setup.
NUM_COINS = 12
SEED: int | None = 7

# Show the full planner analysis before each weighing.
SHOW_HINT_ANALYSIS = True


# ── Main ────────────────────────────────────────────────────

def main() -> None:
    """Play one game with hints, then print its decision tree."""
    session = fake_coin.GameSession.create_game(NUM_COINS, seed=SEED)
    planner = strategy_engine.SplitPlanner()

    print("=" * 60)
    print(f"Fake coin game with {NUM_COINS} coins")
    print("=" * 60)
    print()

    while not session.is_solved:
        print(session)
        print(strategy_engine.give_hint(session, planner))
        if SHOW_HINT_ANALYSIS:
            strategy_engine.print_hint_analysis(
                session.candidates, planner, session.last_weighing,
            )
        split = planner.plan(session.candidates)
        left, right, _ = split.groups(session.candidates)
        weighing = session.weigh(left, right)
        print(weighing)
        print()

    guess = session.candidates[0]
    correct = session.guess(guess)
    print(session.history)
    print()
    if correct:
        print(
            f"{_C.GREEN}{_C.BOLD}Found the fake coin "
            f"({fake_coin.coin_label(guess)})!{_C.RESET}"
        )
    rating = fake_coin.performance_rating(session.num_coins, session.attempts)
    print(f"Rating: {rating}")
    for achievement in fake_coin.achievements(
        session.num_coins, session.attempts, session.hints_used,
    ):
        print(f"  {achievement}")
    print(
        f"Information gained: {session.information_gained_bits:.2f} bits "
        f"in {session.attempts} attempts"
    )
    print()

    # Round-trip the history through its persisted form.
    with tempfile.TemporaryDirectory() as tmp:
        path = pathlib.Path(tmp) / "move_history.json"
        fake_coin.save_move_history(session.history, path)
        record = fake_coin.load_move_history(path)

    print(f"{_C.BOLD}Analysis{_C.RESET}")
    tree = strategy_engine.analyze_move_history(record, planner=planner)
    strategy_engine.print_decision_tree(tree, session.fake_coin_index)


if __name__ == "__main__":
    main()
