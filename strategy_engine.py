"""Optimal strategy engine for the fake coin puzzle.

Plans weighings for a set of candidate coins, replays the planned
strategy against a known fake coin, and reconstructs the decision tree
of that replay for display.

Architecture:
    SplitPlanner owns a memo of splits keyed by candidate set. One
    planner is created per game session and shared by the live hint
    overlay, the simulator and the tree builder. The simulator walks
    the planner's splits down to a single coin; the tree builder
    expands every possible outcome of each recorded weighing but only
    follows the branch the replay actually took.
"""

from __future__ import annotations

import dataclasses
import math
import statistics
from collections.abc import Iterable, Mapping

import tqdm

import fake_coin
from fake_coin import InvalidInputError, NoAnalysisAvailable, Outcome

_C = fake_coin._Colors


# =============================================================================
# Split Planning
# =============================================================================

def _ceil_log2(n: int) -> int:
    return math.ceil(math.log2(n))


def _information_gain(total: int, group_size: int) -> float:
    """Entropy in bits of "fake is in the left-sized group" vs "not"."""
    p1 = group_size / total
    p2 = (total - group_size) / total
    return -(p1 * math.log2(p1) + p2 * math.log2(p2))


@dataclasses.dataclass(frozen=True)
class Split:
    """A planned weighing for a candidate set.

    Attributes:
        left_group: Coins for the left pan, ascending. The right pan is
            the next ``len(left_group)`` candidates in ascending order;
            any remaining candidate stays off the scale.
        worst_case_steps: Upper bound on weighings still needed.
        information_gain_bits: Entropy of the group-size split. Shown
            in the hint overlay only; it does not affect the split.
    """
    left_group: tuple[int, ...]
    worst_case_steps: int
    information_gain_bits: float

    def groups(
        self, candidates: Iterable[int],
    ) -> tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]]:
        """Split ``candidates`` into (left pan, right pan, leftover).

        Args:
            candidates: The candidate set this split was planned for.
        """
        ordered = fake_coin.canonical_candidates(candidates)
        size = len(self.left_group)
        return ordered[:size], ordered[size:2 * size], ordered[2 * size:]


class SplitPlanner:
    """Plans equal-halves splits, memoized by candidate set.

    The memo is unbounded and lives as long as the planner. Keys are
    built from the candidate indices themselves, so replays of
    different fake coins never collide on sets of the same size.
    """

    def __init__(self) -> None:
        self._memo: dict[str, Split] = {}

    @property
    def cache_size(self) -> int:
        """Number of distinct candidate sets planned so far."""
        return len(self._memo)

    def clear(self) -> None:
        """Forget every cached split."""
        self._memo.clear()

    def plan(self, candidates: Iterable[int]) -> Split:
        """Plan the next weighing for a candidate set.

        The candidates are taken in ascending order; the first half
        goes on the left pan, the next equal-sized half on the right,
        and an odd candidate out is left off the scale.

        Args:
            candidates: Coins that could still be fake. Order and
                duplicates do not matter.

        Returns:
            The Split for this candidate set. A set of one coin is
            already solved: ``Split((), 0, 0.0)``.

        Raises:
            InvalidInputError: If the candidate set is empty.
        """
        ordered = fake_coin.canonical_candidates(candidates)
        if not ordered:
            raise InvalidInputError("Cannot plan a weighing for no candidates")
        n = len(ordered)
        if n == 1:
            return Split(left_group=(), worst_case_steps=0, information_gain_bits=0.0)

        key = fake_coin.candidate_key(ordered)
        cached = self._memo.get(key)
        if cached is not None:
            return cached

        group_size = n // 2
        left = ordered[:group_size]
        right = ordered[group_size:2 * group_size]
        leftover = ordered[2 * group_size:]
        worst_case_steps = 1 + max(
            _ceil_log2(max(len(left), 1)),
            _ceil_log2(max(len(right), 1)),
            _ceil_log2(len(leftover)) if leftover else 0,
        )
        split = Split(
            left_group=left,
            worst_case_steps=worst_case_steps,
            information_gain_bits=_information_gain(n, group_size),
        )
        self._memo[key] = split
        return split


def plan_split(
    candidates: Iterable[int], planner: SplitPlanner | None = None,
) -> Split:
    """Plan the next weighing for ``candidates``.

    Args:
        candidates: Coins that could still be fake.
        planner: Planner whose memo to use. A fresh planner is used
            when omitted.

    Raises:
        InvalidInputError: If the candidate set is empty.
    """
    if planner is None:
        planner = SplitPlanner()
    return planner.plan(candidates)


# =============================================================================
# Advisory Explanation
# =============================================================================

@dataclasses.dataclass(frozen=True)
class Explanation:
    """Hint overlay text for a planned split."""
    text: str
    strategy: str
    complexity: str


def explain_split(candidates: Iterable[int], split: Split) -> Explanation:
    """Describe a planned split for the hint overlay.

    Args:
        candidates: The candidate set the split was planned for.
        split: The planned split.
    """
    ordered = fake_coin.canonical_candidates(candidates)
    if len(ordered) <= 1:
        return Explanation(
            text="You can now make your final guess!",
            strategy="Direct comparison",
            complexity="O(1)",
        )
    left, right, _ = split.groups(ordered)
    if len(ordered) == 2:
        return Explanation(
            text=(
                f"Compare coins {fake_coin.coin_label(left[0])} and "
                f"{fake_coin.coin_label(right[0])} to determine which one "
                f"is fake."
            ),
            strategy="Binary comparison",
            complexity="O(1)",
        )
    return Explanation(
        text=(
            f"Based on DP analysis, comparing {len(left)} coins on each side "
            f"will maximize information gain "
            f"({split.information_gain_bits:.2f} bits) and guarantee finding "
            f"the fake coin in at most {split.worst_case_steps} steps."
        ),
        strategy="Divide and Conquer with DP optimization",
        complexity=f"O(log {len(ordered)})",
    )


def give_hint(
    session: fake_coin.GameSession, planner: SplitPlanner | None = None,
) -> str:
    """Hint text for a live game, consuming one of the session's hints.

    No hint is consumed when the game is already narrowed to one coin
    or the hint budget is spent.
    """
    if session.hints_remaining == 0:
        return "You have used all available hints!"
    if len(session.candidates) <= 1:
        return "No hints available - you are very close!"
    split = plan_split(session.candidates, planner)
    left, right, leftover = split.groups(session.candidates)
    session.use_hint()
    text = (
        f"Hint: Try splitting the remaining coins into groups of "
        f"{len(left)} and {len(right)}"
    )
    if leftover:
        text += f", leaving {len(leftover)} aside"
    return text


# =============================================================================
# Weighing Simulation
# =============================================================================

def simulate_optimal_play(
    total_coins: int,
    true_fake_coin: int,
    planner: SplitPlanner | None = None,
) -> fake_coin.MoveHistory:
    """Replay the planned strategy against a known fake coin.

    Every weighing follows ``SplitPlanner.plan``; the outcome is read
    from which group holds the fake coin. The loop stops once one
    candidate remains, which is always the fake coin.

    The step count equals ``log2(total_coins)`` for powers of two. For
    other counts it is at most ``floor(log2(total_coins))``, and fewer
    when the fake coin is an odd coin left off the scale.

    Args:
        total_coins: Number of coins, at least 1.
        true_fake_coin: Index of the fake coin.
        planner: Planner to share across calls. A fresh one is used
            when omitted.

    Returns:
        The MoveHistory of the replay, with ``final_guess`` set.

    Raises:
        InvalidInputError: If the coin count or fake coin index is invalid.
    """
    fake_coin.validate_coin_setup(total_coins, true_fake_coin)
    if planner is None:
        planner = SplitPlanner()

    history = fake_coin.MoveHistory(
        total_coins=total_coins, true_fake_coin=true_fake_coin,
    )
    candidates = fake_coin.full_candidate_set(total_coins)
    step = 0
    while len(candidates) > 1:
        left, right, leftover = planner.plan(candidates).groups(candidates)
        if true_fake_coin in left:
            outcome, remaining = Outcome.LEFT_LIGHTER, left
        elif true_fake_coin in right:
            outcome, remaining = Outcome.RIGHT_LIGHTER, right
        else:
            outcome, remaining = Outcome.BALANCED, leftover
        step += 1
        history.record(fake_coin.Weighing(
            left_pan=left,
            right_pan=right,
            outcome=outcome,
            remaining_candidates=remaining,
            step_number=step,
        ))
        candidates = remaining

    history.final_guess = candidates[0]
    return history


# =============================================================================
# Decision Tree
# =============================================================================

@dataclasses.dataclass(frozen=True)
class DecisionNode:
    """A state in the reconstructed decision tree.

    Attributes:
        node_id: Unique id, ``"n1"``, ``"n2"``, ... in creation order.
        depth: Number of weighings performed to reach this state. The
            final guess sits one level below the last weighing.
        candidates: Coins that could be fake in this state.
        is_terminal: Whether this is the final-guess node.
        highlighted: Whether the fake coin is among ``candidates``.
            This is independent of ``is_true_path``.
        is_true_path: Whether the replay passed through this state.
        order: Horizontal position among siblings (0 = left-most).
        outcome: The outcome leading here, None for the root and the
            final guess.
        weighing: The weighing leading here, if any.
        label: Plain-text description for renderers.
    """
    node_id: str
    depth: int
    candidates: tuple[int, ...]
    is_terminal: bool
    highlighted: bool
    is_true_path: bool
    order: int = 0
    outcome: Outcome | None = None
    weighing: fake_coin.Weighing | None = None
    label: str = ""


@dataclasses.dataclass(frozen=True)
class DecisionEdge:
    """A branch between two decision nodes.

    Attributes:
        source: Parent node id.
        target: Child node id.
        outcome: Weighing outcome for this branch; None for the edge
            into the final guess.
        is_true_path: Whether the replay followed this branch.
    """
    source: str
    target: str
    outcome: Outcome | None
    is_true_path: bool

    @property
    def edge_id(self) -> str:
        return f"e{self.source}-{self.target}"


@dataclasses.dataclass
class DecisionTree:
    """Nodes and edges of a reconstructed decision tree.

    Nodes are listed parents-first; siblings appear in ``order``.
    """
    nodes: list[DecisionNode] = dataclasses.field(default_factory=list)
    edges: list[DecisionEdge] = dataclasses.field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def root(self) -> DecisionNode | None:
        return self.nodes[0] if self.nodes else None

    def node(self, node_id: str) -> DecisionNode:
        """Look up a node by id.

        Raises:
            KeyError: If no node has that id.
        """
        for n in self.nodes:
            if n.node_id == node_id:
                return n
        raise KeyError(node_id)

    def children(self, node_id: str) -> list[DecisionNode]:
        """Children of a node, in sibling order."""
        return [self.node(e.target) for e in self.edges if e.source == node_id]

    def true_path(self) -> list[DecisionNode]:
        """Nodes on the replayed path, root first."""
        return [n for n in self.nodes if n.is_true_path]


def _root_label(total_coins: int) -> str:
    return f"Start\nCoins: {fake_coin.coins_label(range(total_coins))}"


def _step_label(
    weighing: fake_coin.Weighing, outcome: Outcome, remaining: tuple[int, ...],
) -> str:
    return (
        f"Step {weighing.step_number}\n"
        f"Left: {fake_coin.coins_label(weighing.left_pan)}\n"
        f"Right: {fake_coin.coins_label(weighing.right_pan)}\n"
        f"Result: {outcome.text}\n"
        f"Remaining: {fake_coin.coins_label(remaining)}"
    )


def _guess_label(guess: int, is_correct: bool) -> str:
    mark = " (fake coin)" if is_correct else " (wrong)"
    return f"Final Guess: Coin {fake_coin.coin_label(guess)}{mark}"


def _build_tree_from_history(history: fake_coin.MoveHistory) -> DecisionTree:
    """Expand every outcome of each weighing along the replayed path.

    Only the child matching the recorded outcome is expanded further;
    its siblings stay leaves. A BALANCED branch is emitted only when
    the weighing left candidates off the scale.
    """
    tree = DecisionTree()
    fake = history.true_fake_coin

    def add_node(
        depth: int,
        candidates: tuple[int, ...],
        label: str,
        is_true_path: bool = True,
        order: int = 0,
        outcome: Outcome | None = None,
        weighing: fake_coin.Weighing | None = None,
        is_terminal: bool = False,
    ) -> DecisionNode:
        node = DecisionNode(
            node_id=f"n{len(tree.nodes) + 1}",
            depth=depth,
            candidates=candidates,
            is_terminal=is_terminal,
            highlighted=fake in candidates,
            is_true_path=is_true_path,
            order=order,
            outcome=outcome,
            weighing=weighing,
            label=label,
        )
        tree.nodes.append(node)
        return node

    candidates = fake_coin.full_candidate_set(history.total_coins)
    parent = add_node(0, candidates, _root_label(history.total_coins))

    for weighing in history.weighings:
        outcomes = [Outcome.LEFT_LIGHTER, Outcome.RIGHT_LIGHTER]
        if weighing.leftover(candidates):
            outcomes.append(Outcome.BALANCED)

        next_parent = None
        for order, outcome in enumerate(outcomes):
            remaining = outcome.narrow(
                candidates, weighing.left_pan, weighing.right_pan,
            )
            on_path = outcome is weighing.outcome
            child = add_node(
                weighing.step_number,
                remaining,
                _step_label(weighing, outcome, remaining),
                is_true_path=on_path,
                order=order,
                outcome=outcome,
                weighing=weighing,
            )
            tree.edges.append(DecisionEdge(
                source=parent.node_id,
                target=child.node_id,
                outcome=outcome,
                is_true_path=on_path,
            ))
            if on_path:
                next_parent = child

        if next_parent is None:
            raise NoAnalysisAvailable(
                f"Step {weighing.step_number} records an outcome that "
                f"cannot occur for its candidates"
            )
        parent = next_parent
        candidates = weighing.remaining_candidates

    if history.final_guess is not None:
        guess = history.final_guess
        final = add_node(
            history.step_count + 1,
            (guess,),
            _guess_label(guess, guess == fake),
            is_terminal=True,
        )
        tree.edges.append(DecisionEdge(
            source=parent.node_id,
            target=final.node_id,
            outcome=None,
            is_true_path=True,
        ))
    return tree


def build_decision_tree(
    total_coins: int,
    true_fake_coin: int,
    planner: SplitPlanner | None = None,
) -> DecisionTree:
    """Build the decision tree of the planned strategy for a fake coin.

    Args:
        total_coins: Number of coins, at least 1.
        true_fake_coin: Index of the fake coin to replay against.
        planner: Planner to share across calls.

    Returns:
        A DecisionTree rooted at the full coin set, with one level per
        weighing and a final-guess leaf.

    Raises:
        InvalidInputError: If the coin count or fake coin index is invalid.
    """
    history = simulate_optimal_play(total_coins, true_fake_coin, planner)
    return _build_tree_from_history(history)


def _analysis_inputs(
    record: object, fake_coin_index: int | None,
) -> tuple[int, int]:
    """Extract (total coins, fake coin) from a persisted record.

    Raises:
        NoAnalysisAvailable: If the record is malformed.
    """
    try:
        history = fake_coin.MoveHistory.from_record(record)  # type: ignore[arg-type]
    except ValueError as e:
        raise NoAnalysisAvailable(str(e)) from e
    fake = history.true_fake_coin if fake_coin_index is None else fake_coin_index
    try:
        fake_coin.validate_coin_setup(history.total_coins, fake)
    except InvalidInputError as e:
        raise NoAnalysisAvailable(str(e)) from e
    return history.total_coins, fake


def analyze_move_history(
    record: Mapping | None,
    fake_coin_index: int | None = None,
    planner: SplitPlanner | None = None,
) -> DecisionTree:
    """Decision tree for a persisted move history.

    Analysis is best effort: a record without a coin count yields an
    empty tree, and so does a malformed one. ``finalGuess`` may be
    absent.

    Args:
        record: Decoded move-history object (see
            ``fake_coin.MoveHistory.from_record``).
        fake_coin_index: Replay against this fake coin instead of the
            recorded one.
        planner: Planner to share across calls.

    Returns:
        The DecisionTree, or an empty DecisionTree.
    """
    if not isinstance(record, Mapping) or not record.get("numCoins"):
        return DecisionTree()
    try:
        total_coins, fake = _analysis_inputs(record, fake_coin_index)
        return build_decision_tree(total_coins, fake, planner)
    except NoAnalysisAvailable:
        return DecisionTree()


# =============================================================================
# Strategy Sweep
# =============================================================================

@dataclasses.dataclass
class StrategySummary:
    """Step counts of the planned strategy over every fake coin.

    Attributes:
        total_coins: Number of coins.
        step_counts: Weighings needed, indexed by fake coin.
        optimal_bound: ``ceil(log2(total_coins))``.
    """
    total_coins: int
    step_counts: list[int]
    optimal_bound: int

    @property
    def worst_case(self) -> int:
        return max(self.step_counts)

    @property
    def best_case(self) -> int:
        return min(self.step_counts)

    @property
    def mean_steps(self) -> float:
        return statistics.mean(self.step_counts)

    @property
    def exceeds_bound(self) -> bool:
        """Whether any fake coin needs more than ``optimal_bound`` steps."""
        return self.worst_case > self.optimal_bound

    def __str__(self) -> str:
        color = _C.RED if self.exceeds_bound else _C.GREEN
        return (
            f"{self.total_coins:>3} coins: "
            f"best {self.best_case}, worst {color}{self.worst_case}{_C.RESET}, "
            f"mean {self.mean_steps:.2f} (bound {self.optimal_bound})"
        )


def sweep_fake_coins(
    total_coins: int,
    planner: SplitPlanner | None = None,
    show_progress: bool = False,
) -> StrategySummary:
    """Simulate the planned strategy for every possible fake coin.

    Args:
        total_coins: Number of coins, at least 1.
        planner: Planner shared by all simulations.
        show_progress: If True, display a tqdm progress bar.

    Raises:
        InvalidInputError: If the coin count is invalid.
    """
    fake_coin.validate_coin_setup(total_coins, 0)
    if planner is None:
        planner = SplitPlanner()

    fakes: Iterable[int] = range(total_coins)
    if show_progress:
        fakes = tqdm.tqdm(
            fakes,
            total=total_coins,
            desc=f"Replaying {total_coins} coins",
            unit=" coins",
            dynamic_ncols=True,
        )
    step_counts = [
        simulate_optimal_play(total_coins, fake, planner).step_count
        for fake in fakes
    ]
    return StrategySummary(
        total_coins=total_coins,
        step_counts=step_counts,
        optimal_bound=fake_coin.optimal_weighings(total_coins),
    )


# =============================================================================
# Terminal Display
# =============================================================================

def _candidates_colored(candidates: Iterable[int], fake: int | None) -> str:
    """Candidate coins with the fake coin marked in red."""
    parts = []
    for c in candidates:
        if c == fake:
            parts.append(f"{_C.RED}{_C.BOLD}{fake_coin.coin_label(c)}{_C.RESET}")
        else:
            parts.append(fake_coin.coin_label(c))
    return ", ".join(parts) or "-"


def _format_node(node: DecisionNode, fake: int | None) -> str:
    """Format one decision node as a colored terminal line."""
    if node.is_terminal:
        text = f"{_C.BOLD}Final Guess:{_C.RESET} Coin {fake_coin.coin_label(node.candidates[0])}"
        if node.candidates[0] == fake:
            text += " 🪙"
    elif node.outcome is None:
        text = f"{_C.BOLD}Start{_C.RESET} Coins: {_candidates_colored(node.candidates, fake)}"
    else:
        w = node.weighing
        assert w is not None
        text = (
            f"{node.outcome.ansi()}{node.outcome.text}{_C.RESET}"
            f"  [{fake_coin.coins_label(w.left_pan)}] vs "
            f"[{fake_coin.coins_label(w.right_pan)}]"
            f"  → {_candidates_colored(node.candidates, fake)}"
        )
    if node.highlighted:
        text = f"{_C.GOLD}★{_C.RESET} {text}"
    if not node.is_true_path:
        text = f"{_C.DIM}{text}{_C.RESET}"
    return text


def format_decision_tree(tree: DecisionTree, fake: int | None = None) -> str:
    """Render a decision tree as indented terminal lines.

    Args:
        tree: The tree to render.
        fake: Coin to mark in red. Defaults to the coin of the
            terminal node when there is one.
    """
    if tree.is_empty:
        return "No analysis available."
    if fake is None:
        terminals = [n for n in tree.nodes if n.is_terminal]
        fake = terminals[0].candidates[0] if terminals else None

    lines: list[str] = []
    stack = [(tree.nodes[0], 0)]
    while stack:
        node, indent = stack.pop()
        lines.append(f"{'    ' * indent}{_format_node(node, fake)}")
        for child in reversed(tree.children(node.node_id)):
            stack.append((child, indent + 1))
    return "\n".join(lines)


def print_decision_tree(tree: DecisionTree, fake: int | None = None) -> None:
    """Print a decision tree (see ``format_decision_tree``)."""
    print(format_decision_tree(tree, fake))


def print_hint_analysis(
    candidates: Iterable[int],
    planner: SplitPlanner,
    last_weighing: fake_coin.Weighing | None = None,
) -> None:
    """Print the planner's recommendation for the current candidates.

    Args:
        candidates: Coins that could still be fake.
        planner: Planner whose memo is used and reported.
        last_weighing: Most recent weighing, shown when given.
    """
    ordered = fake_coin.canonical_candidates(candidates)
    split = planner.plan(ordered)
    explanation = explain_split(ordered, split)

    print(f"{_C.BOLD}{'─' * 60}{_C.RESET}")
    print(f"{_C.BOLD}Dynamic Programming Analysis{_C.RESET}")
    print(f"{_C.BOLD}{'─' * 60}{_C.RESET}")
    print(f"  Possible fake coins remaining: {len(ordered)}")
    print(f"  Minimum steps needed: {split.worst_case_steps}")
    print(f"  Algorithm complexity: {explanation.complexity}")

    if last_weighing is not None:
        print()
        print(f"{_C.BOLD}Last Weighing{_C.RESET}")
        print(f"  {last_weighing}")

    print()
    print(f"{_C.BOLD}Next Move{_C.RESET} ({explanation.strategy})")
    if len(ordered) > 1:
        left, right, leftover = split.groups(ordered)
        print(f"  Left pan:  {fake_coin.coins_label(left)}")
        print(f"  Right pan: {fake_coin.coins_label(right)}")
        if leftover:
            print(f"  {_C.DIM}Aside:     {fake_coin.coins_label(leftover)}{_C.RESET}")
    print(f"  {explanation.text}")
    print()
    print(f"  Subproblems solved: {planner.cache_size}")
    print(f"  Information gain: {split.information_gain_bits:.2f} bits")
