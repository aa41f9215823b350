"""Benchmark the planned strategy against the ceil(log2 n) bound.

Replays every possible fake coin for each coin count a game allows
(3-32) and reports best, worst and mean weighing counts, and any coin
count whose worst case exceeds ``ceil(log2 n)``.
"""

import statistics

import fake_coin
import strategy_engine


def main() -> None:
    planner = strategy_engine.SplitPlanner()
    summaries: list[strategy_engine.StrategySummary] = []

    for num_coins in range(fake_coin.MIN_COINS, fake_coin.MAX_COINS + 1):
        summaries.append(strategy_engine.sweep_fake_coins(
            num_coins, planner=planner, show_progress=True,
        ))

    print()
    print("=" * 60)
    print(
        f"STRATEGY BENCHMARK ({fake_coin.MIN_COINS}-{fake_coin.MAX_COINS} coins, "
        f"every fake coin)"
    )
    print("=" * 60)
    for summary in summaries:
        print(f"  {summary}")

    over = [s for s in summaries if s.exceeds_bound]
    excess = [s.worst_case - s.optimal_bound for s in summaries]
    print()
    print(f"  Subproblems solved: {planner.cache_size}")
    print(f"  Coin counts over the bound: {len(over)}/{len(summaries)}")
    if over:
        print(f"    {', '.join(str(s.total_coins) for s in over)}")
    print(f"  Mean worst-case excess: {statistics.mean(excess):.2f} weighings")


if __name__ == "__main__":
    main()
