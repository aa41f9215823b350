"""Unit tests for the optimal strategy engine."""

import math
import unittest

import fake_coin
import strategy_engine
from fake_coin import InvalidInputError, Outcome


def _all_fake_coin_cases() -> list[tuple[int, int]]:
    """Every (coin count, fake coin) pair for 1-20 coins."""
    return [(n, fake) for n in range(1, 21) for fake in range(n)]


class TestSplitPlanner(unittest.TestCase):
    """Tests for SplitPlanner.plan."""

    def test_single_candidate_is_solved(self) -> None:
        split = strategy_engine.SplitPlanner().plan([5])
        self.assertEqual(split.left_group, ())
        self.assertEqual(split.worst_case_steps, 0)
        self.assertEqual(split.information_gain_bits, 0.0)

    def test_empty_candidates(self) -> None:
        with self.assertRaises(InvalidInputError):
            strategy_engine.SplitPlanner().plan([])

    def test_even_split(self) -> None:
        split = strategy_engine.SplitPlanner().plan(range(8))
        self.assertEqual(split.left_group, (0, 1, 2, 3))
        self.assertEqual(split.worst_case_steps, 3)
        self.assertAlmostEqual(split.information_gain_bits, 1.0)
        left, right, leftover = split.groups(range(8))
        self.assertEqual(right, (4, 5, 6, 7))
        self.assertEqual(leftover, ())

    def test_odd_split_has_leftover(self) -> None:
        split = strategy_engine.SplitPlanner().plan(range(9))
        left, right, leftover = split.groups(range(9))
        self.assertEqual(left, (0, 1, 2, 3))
        self.assertEqual(right, (4, 5, 6, 7))
        self.assertEqual(leftover, (8,))
        self.assertEqual(split.worst_case_steps, 3)
        p1, p2 = 4 / 9, 5 / 9
        expected = -(p1 * math.log2(p1) + p2 * math.log2(p2))
        self.assertAlmostEqual(split.information_gain_bits, expected)

    def test_worst_case_formula(self) -> None:
        planner = strategy_engine.SplitPlanner()
        self.assertEqual(planner.plan(range(2)).worst_case_steps, 1)
        self.assertEqual(planner.plan(range(3)).worst_case_steps, 1)
        self.assertEqual(planner.plan(range(7)).worst_case_steps, 3)
        self.assertEqual(planner.plan(range(12)).worst_case_steps, 4)

    def test_uses_ascending_order(self) -> None:
        split = strategy_engine.SplitPlanner().plan([9, 3, 7, 1])
        self.assertEqual(split.left_group, (1, 3))
        self.assertEqual(split.groups([9, 3, 7, 1])[1], (7, 9))

    def test_memoization_idempotent_across_orders(self) -> None:
        planner = strategy_engine.SplitPlanner()
        first = planner.plan([4, 2, 0, 6, 8])
        second = planner.plan({8, 6, 4, 2, 0})
        self.assertIs(first, second)
        self.assertEqual(first.left_group, second.left_group)
        self.assertEqual(first.worst_case_steps, second.worst_case_steps)
        self.assertEqual(first.information_gain_bits, second.information_gain_bits)
        self.assertEqual(planner.cache_size, 1)

    def test_same_size_sets_do_not_collide(self) -> None:
        planner = strategy_engine.SplitPlanner()
        self.assertEqual(planner.plan([0, 1]).left_group, (0,))
        self.assertEqual(planner.plan([2, 3]).left_group, (2,))
        self.assertEqual(planner.cache_size, 2)

    def test_clear(self) -> None:
        planner = strategy_engine.SplitPlanner()
        planner.plan(range(4))
        planner.clear()
        self.assertEqual(planner.cache_size, 0)

    def test_plan_split_entry_point(self) -> None:
        split = strategy_engine.plan_split([3, 2, 1, 0])
        self.assertEqual(split.left_group, (0, 1))
        with self.assertRaises(InvalidInputError):
            strategy_engine.plan_split(set())

    def test_plan_split_shares_planner(self) -> None:
        planner = strategy_engine.SplitPlanner()
        strategy_engine.plan_split(range(6), planner)
        self.assertEqual(planner.cache_size, 1)


class TestExplanation(unittest.TestCase):
    """Tests for hint overlay text."""

    def test_solved(self) -> None:
        planner = strategy_engine.SplitPlanner()
        explanation = strategy_engine.explain_split([4], planner.plan([4]))
        self.assertEqual(explanation.text, "You can now make your final guess!")
        self.assertEqual(explanation.strategy, "Direct comparison")

    def test_two_coins(self) -> None:
        split = strategy_engine.plan_split([2, 4])
        explanation = strategy_engine.explain_split([2, 4], split)
        self.assertIn("Compare coins 3 and 5", explanation.text)
        self.assertEqual(explanation.strategy, "Binary comparison")
        self.assertEqual(explanation.complexity, "O(1)")

    def test_general(self) -> None:
        split = strategy_engine.plan_split(range(9))
        explanation = strategy_engine.explain_split(range(9), split)
        self.assertIn("4 coins on each side", explanation.text)
        self.assertIn("0.99 bits", explanation.text)
        self.assertIn("at most 3 steps", explanation.text)
        self.assertEqual(explanation.complexity, "O(log 9)")


class TestGiveHint(unittest.TestCase):
    """Tests for live-game hints."""

    def test_hint_text_with_leftover(self) -> None:
        session = fake_coin.GameSession(num_coins=9, fake_coin_index=0)
        text = strategy_engine.give_hint(session)
        self.assertEqual(
            text,
            "Hint: Try splitting the remaining coins into groups of 4 and 4, "
            "leaving 1 aside",
        )
        self.assertEqual(session.hints_used, 1)

    def test_hint_text_even(self) -> None:
        session = fake_coin.GameSession(num_coins=8, fake_coin_index=0)
        self.assertEqual(
            strategy_engine.give_hint(session),
            "Hint: Try splitting the remaining coins into groups of 4 and 4",
        )

    def test_hint_budget_exhausted(self) -> None:
        session = fake_coin.GameSession(num_coins=8, fake_coin_index=0)
        planner = strategy_engine.SplitPlanner()
        for _ in range(fake_coin.MAX_HINTS):
            strategy_engine.give_hint(session, planner)
        self.assertEqual(
            strategy_engine.give_hint(session, planner),
            "You have used all available hints!",
        )
        self.assertEqual(session.hints_used, fake_coin.MAX_HINTS)

    def test_no_hint_when_solved(self) -> None:
        session = fake_coin.GameSession(num_coins=4, fake_coin_index=0)
        session.weigh([0], [1])
        self.assertEqual(
            strategy_engine.give_hint(session),
            "No hints available - you are very close!",
        )
        self.assertEqual(session.hints_used, 0)


class TestSimulateOptimalPlay(unittest.TestCase):
    """Tests for the weighing simulator."""

    def test_eight_coins(self) -> None:
        history = strategy_engine.simulate_optimal_play(8, 3)
        self.assertEqual(history.step_count, 3)
        self.assertEqual(
            [len(w.left_pan) for w in history.weighings], [4, 2, 1],
        )
        self.assertEqual(
            [len(w.right_pan) for w in history.weighings], [4, 2, 1],
        )
        self.assertEqual(
            [w.outcome for w in history.weighings],
            [Outcome.LEFT_LIGHTER, Outcome.RIGHT_LIGHTER, Outcome.RIGHT_LIGHTER],
        )
        self.assertEqual(history.final_guess, 3)
        self.assertEqual(history.true_fake_coin, 3)
        self.assertEqual(history.total_coins, 8)

    def test_leftover_fake(self) -> None:
        history = strategy_engine.simulate_optimal_play(9, 8)
        self.assertEqual(history.step_count, 1)
        self.assertEqual(history.weighings[0].outcome, Outcome.BALANCED)
        self.assertEqual(history.weighings[0].remaining_candidates, (8,))
        self.assertEqual(history.final_guess, 8)

    def test_single_coin(self) -> None:
        history = strategy_engine.simulate_optimal_play(1, 0)
        self.assertEqual(history.weighings, [])
        self.assertEqual(history.final_guess, 0)

    def test_invalid_input(self) -> None:
        with self.assertRaises(InvalidInputError):
            strategy_engine.simulate_optimal_play(0, 0)
        with self.assertRaises(InvalidInputError):
            strategy_engine.simulate_optimal_play(8, 8)
        with self.assertRaises(InvalidInputError):
            strategy_engine.simulate_optimal_play(8, -1)

    def test_deterministic(self) -> None:
        for n, fake in [(8, 3), (13, 12), (32, 17)]:
            self.assertEqual(
                strategy_engine.simulate_optimal_play(n, fake),
                strategy_engine.simulate_optimal_play(n, fake),
            )

    def test_shared_planner_matches_fresh(self) -> None:
        planner = strategy_engine.SplitPlanner()
        for fake in range(11):
            self.assertEqual(
                strategy_engine.simulate_optimal_play(11, fake, planner),
                strategy_engine.simulate_optimal_play(11, fake),
            )

    def test_coverage_and_progress(self) -> None:
        for n, fake in _all_fake_coin_cases():
            history = strategy_engine.simulate_optimal_play(n, fake)
            candidates = fake_coin.full_candidate_set(n)
            self.assertLessEqual(history.step_count, n)
            for w in history.weighings:
                left, right = set(w.left_pan), set(w.right_pan)
                leftover = set(w.leftover(candidates))
                self.assertFalse(left & right)
                self.assertEqual(len(left), len(right))
                self.assertEqual(left | right | leftover, set(candidates))
                self.assertIn(fake, w.remaining_candidates)
                self.assertLess(len(w.remaining_candidates), len(candidates))
                candidates = w.remaining_candidates
            self.assertEqual(candidates, (fake,))
            self.assertEqual(history.final_guess, fake)

    def test_step_count_power_of_two(self) -> None:
        for n in [2, 4, 8, 16, 32]:
            for fake in range(n):
                history = strategy_engine.simulate_optimal_play(n, fake)
                self.assertEqual(history.step_count, int(math.log2(n)))


class TestBuildDecisionTree(unittest.TestCase):
    """Tests for the decision tree builder."""

    def test_eight_coins_shape(self) -> None:
        tree = strategy_engine.build_decision_tree(8, 3)
        self.assertEqual(len(tree.nodes), 8)
        self.assertEqual(len(tree.edges), 7)
        root = tree.root
        self.assertEqual(root.node_id, "n1")
        self.assertEqual(root.depth, 0)
        self.assertEqual(root.candidates, tuple(range(8)))
        children = tree.children(root.node_id)
        self.assertEqual([c.outcome for c in children],
                         [Outcome.LEFT_LIGHTER, Outcome.RIGHT_LIGHTER])
        self.assertEqual([c.order for c in children], [0, 1])
        self.assertTrue(children[0].is_true_path)
        self.assertFalse(children[1].is_true_path)

    def test_no_balanced_without_leftover(self) -> None:
        for fake in range(8):
            tree = strategy_engine.build_decision_tree(8, fake)
            self.assertNotIn(Outcome.BALANCED, [n.outcome for n in tree.nodes])
            self.assertNotIn(Outcome.BALANCED, [e.outcome for e in tree.edges])

    def test_leftover_branch_visible(self) -> None:
        tree = strategy_engine.build_decision_tree(9, 8)
        children = tree.children(tree.root.node_id)
        self.assertEqual(
            [c.outcome for c in children],
            [Outcome.LEFT_LIGHTER, Outcome.RIGHT_LIGHTER, Outcome.BALANCED],
        )
        balanced = children[2]
        self.assertEqual(balanced.order, 2)
        self.assertTrue(balanced.is_true_path)
        self.assertEqual(balanced.candidates, (8,))
        edge = [e for e in tree.edges if e.target == balanced.node_id][0]
        self.assertEqual(edge.outcome, Outcome.BALANCED)
        self.assertTrue(edge.is_true_path)
        self.assertFalse(children[0].is_true_path)
        self.assertFalse(children[1].is_true_path)

    def test_balanced_shown_when_not_taken(self) -> None:
        tree = strategy_engine.build_decision_tree(9, 0)
        children = tree.children(tree.root.node_id)
        self.assertEqual(len(children), 3)
        self.assertFalse(children[2].is_true_path)
        self.assertEqual(children[2].candidates, (8,))

    def test_only_true_path_expanded(self) -> None:
        tree = strategy_engine.build_decision_tree(16, 11)
        for node in tree.nodes:
            if not node.is_true_path:
                self.assertEqual(tree.children(node.node_id), [])

    def test_true_path_matches_simulation(self) -> None:
        history = strategy_engine.simulate_optimal_play(13, 6)
        tree = strategy_engine.build_decision_tree(13, 6)
        path = tree.true_path()
        self.assertEqual(len(path), history.step_count + 2)
        self.assertEqual(
            [n.outcome for n in path[1:-1]],
            [w.outcome for w in history.weighings],
        )
        self.assertEqual(
            [n.candidates for n in path[1:-1]],
            [w.remaining_candidates for w in history.weighings],
        )
        for edge in tree.edges:
            target = tree.node(edge.target)
            self.assertEqual(edge.is_true_path, target.is_true_path)

    def test_final_guess_node(self) -> None:
        tree = strategy_engine.build_decision_tree(8, 3)
        final = tree.nodes[-1]
        self.assertTrue(final.is_terminal)
        self.assertEqual(final.candidates, (3,))
        self.assertEqual(final.depth, 4)
        self.assertTrue(final.is_true_path)
        self.assertIn("Coin 4", final.label)
        self.assertIn("fake coin", final.label)
        self.assertEqual([n for n in tree.nodes if n.is_terminal], [final])

    def test_single_coin_tree(self) -> None:
        tree = strategy_engine.build_decision_tree(1, 0)
        self.assertEqual(len(tree.nodes), 2)
        self.assertEqual(len(tree.edges), 1)
        self.assertTrue(tree.nodes[1].is_terminal)
        self.assertIsNone(tree.edges[0].outcome)

    def test_highlight_follows_fake_membership(self) -> None:
        for n, fake in _all_fake_coin_cases():
            tree = strategy_engine.build_decision_tree(n, fake)
            for node in tree.nodes:
                self.assertEqual(node.highlighted, fake in node.candidates)
                if node.candidates == (fake,):
                    self.assertTrue(node.highlighted)

    def test_depth_bound(self) -> None:
        for n in range(1, 34):
            bound = math.ceil(math.log2(n)) + 1
            for fake in range(n):
                tree = strategy_engine.build_decision_tree(n, fake)
                self.assertLessEqual(max(node.depth for node in tree.nodes), bound)

    def test_unique_ids(self) -> None:
        tree = strategy_engine.build_decision_tree(27, 26)
        ids = [n.node_id for n in tree.nodes]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(tree.edges[0].edge_id, f"e{tree.edges[0].source}-{tree.edges[0].target}")

    def test_node_lookup_missing(self) -> None:
        tree = strategy_engine.build_decision_tree(4, 1)
        with self.assertRaises(KeyError):
            tree.node("n999")

    def test_invalid_input(self) -> None:
        with self.assertRaises(InvalidInputError):
            strategy_engine.build_decision_tree(0, 0)
        with self.assertRaises(InvalidInputError):
            strategy_engine.build_decision_tree(4, 4)


class TestAnalyzeMoveHistory(unittest.TestCase):
    """Tests for best-effort reconstruction from persisted histories."""

    def _record(self) -> dict:
        session = fake_coin.GameSession(num_coins=9, fake_coin_index=8)
        session.weigh([0, 1, 2, 3], [4, 5, 6, 7])
        return session.history.to_record()

    def test_without_final_guess(self) -> None:
        record = self._record()
        self.assertNotIn("finalGuess", record)
        tree = strategy_engine.analyze_move_history(record)
        self.assertFalse(tree.is_empty)
        self.assertEqual(tree.nodes[-1].candidates, (8,))

    def test_with_final_guess(self) -> None:
        record = self._record()
        record["finalGuess"] = 8
        tree = strategy_engine.analyze_move_history(record)
        self.assertEqual(tree, strategy_engine.build_decision_tree(9, 8))

    def test_missing_or_zero_coin_count(self) -> None:
        self.assertTrue(strategy_engine.analyze_move_history({}).is_empty)
        self.assertTrue(strategy_engine.analyze_move_history(None).is_empty)
        record = self._record()
        record["numCoins"] = 0
        self.assertTrue(strategy_engine.analyze_move_history(record).is_empty)

    def test_malformed_records(self) -> None:
        bad_fake = self._record()
        bad_fake["fakeCoinIndex"] = "nine"
        bad_index = self._record()
        bad_index["moves"][0]["leftPan"] = ["a", "b", "c", "d"]
        missing_field = self._record()
        del missing_field["moves"][0]["result"]
        out_of_range = self._record()
        out_of_range["fakeCoinIndex"] = 9
        for record in [bad_fake, bad_index, missing_field, out_of_range, "text"]:
            tree = strategy_engine.analyze_move_history(record)
            self.assertTrue(tree.is_empty)

    def test_fake_coin_override(self) -> None:
        tree = strategy_engine.analyze_move_history(self._record(), fake_coin_index=2)
        self.assertEqual(tree, strategy_engine.build_decision_tree(9, 2))

    def test_invalid_override(self) -> None:
        tree = strategy_engine.analyze_move_history(self._record(), fake_coin_index=12)
        self.assertTrue(tree.is_empty)


class TestSweepFakeCoins(unittest.TestCase):
    """Tests for the strategy sweep."""

    def test_summary(self) -> None:
        summary = strategy_engine.sweep_fake_coins(9)
        self.assertEqual(len(summary.step_counts), 9)
        self.assertEqual(summary.step_counts[8], 1)
        self.assertEqual(summary.worst_case, 3)
        self.assertEqual(summary.best_case, 1)
        self.assertEqual(summary.optimal_bound, 4)
        self.assertAlmostEqual(summary.mean_steps, (8 * 3 + 1) / 9)
        self.assertFalse(summary.exceeds_bound)

    def test_worst_case_never_exceeds_bound(self) -> None:
        planner = strategy_engine.SplitPlanner()
        for n in range(1, 33):
            summary = strategy_engine.sweep_fake_coins(n, planner=planner)
            self.assertEqual(summary.worst_case, n.bit_length() - 1)
            self.assertFalse(summary.exceeds_bound)

    def test_invalid_count(self) -> None:
        with self.assertRaises(InvalidInputError):
            strategy_engine.sweep_fake_coins(0)


class TestDisplay(unittest.TestCase):
    """Tests for terminal rendering."""

    def test_empty_tree(self) -> None:
        self.assertEqual(
            strategy_engine.format_decision_tree(strategy_engine.DecisionTree()),
            "No analysis available.",
        )

    def test_tree_lines(self) -> None:
        tree = strategy_engine.build_decision_tree(9, 8)
        text = strategy_engine.format_decision_tree(tree)
        lines = text.split("\n")
        self.assertEqual(len(lines), len(tree.nodes))
        self.assertIn("Start", lines[0])
        self.assertIn("Final Guess", lines[-1])
        self.assertIn(Outcome.BALANCED.text, text)

    def test_labels(self) -> None:
        tree = strategy_engine.build_decision_tree(4, 1)
        self.assertTrue(tree.root.label.startswith("Start"))
        self.assertIn("Coins: 1, 2, 3, 4", tree.root.label)
        step = tree.children(tree.root.node_id)[0]
        self.assertIn("Step 1", step.label)
        self.assertIn("Left: 1, 2", step.label)
        self.assertIn("Remaining: 1, 2", step.label)


if __name__ == "__main__":
    unittest.main()
