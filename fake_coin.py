"""Fake coin puzzle model.

Core types for the "find the lighter fake coin" puzzle: weighing
outcomes, candidate sets, recorded weighings, the move history that is
persisted between play and analysis, and a live game session that
validates player weighings and guesses. Scoring helpers rate a finished
game against the optimal number of weighings.
"""

from __future__ import annotations

import dataclasses
import enum
import json
import math
import pathlib
import random
from collections.abc import Iterable, Mapping


# =============================================================================
# ANSI Color Constants
# =============================================================================

class _Colors:
    """ANSI escape codes for terminal coloring."""
    BLUE = "\033[94m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    GOLD = "\033[38;5;220m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


# =============================================================================
# Game Constants
# =============================================================================

# Coin counts accepted when starting a new interactive game.
MIN_COINS = 3
MAX_COINS = 32

# Hints available per game.
MAX_HINTS = 3

GENUINE_COIN_WEIGHT = 10
FAKE_COIN_WEIGHT = 9


# =============================================================================
# Errors
# =============================================================================

class InvalidInputError(ValueError):
    """Raised when coin counts, coin indices or pans are invalid."""


class NoAnalysisAvailable(ValueError):
    """Raised when a persisted move history cannot be analyzed."""


# =============================================================================
# Outcome
# =============================================================================

class Outcome(enum.Enum):
    """Result of a single weighing.

    LEFT_LIGHTER: the fake coin is on the left pan.
    RIGHT_LIGHTER: the fake coin is on the right pan.
    BALANCED: the fake coin is among the candidates on neither pan.
    """
    LEFT_LIGHTER = enum.auto()
    RIGHT_LIGHTER = enum.auto()
    BALANCED = enum.auto()

    @property
    def text(self) -> str:
        """Display text, also used verbatim in persisted histories."""
        return _OUTCOME_TEXT[self]

    @classmethod
    def from_text(cls, text: str) -> Outcome:
        """Parse the display text of an outcome.

        Args:
            text: One of the persisted outcome strings.

        Returns:
            The matching Outcome.

        Raises:
            ValueError: If the text is not a known outcome string.
        """
        for outcome, outcome_text in _OUTCOME_TEXT.items():
            if outcome_text == text:
                return outcome
        raise ValueError(f"Unknown weighing result: {text!r}")

    def narrow(
        self,
        candidates: Iterable[int],
        left_pan: Iterable[int],
        right_pan: Iterable[int],
    ) -> tuple[int, ...]:
        """Return the candidates consistent with this outcome.

        Args:
            candidates: Coins that could be fake before the weighing.
            left_pan: Coins on the left pan.
            right_pan: Coins on the right pan.

        Returns:
            The surviving candidates in ascending order.
        """
        left = set(left_pan)
        right = set(right_pan)
        ordered = canonical_candidates(candidates)
        if self is Outcome.LEFT_LIGHTER:
            return tuple(c for c in ordered if c in left)
        if self is Outcome.RIGHT_LIGHTER:
            return tuple(c for c in ordered if c in right)
        return tuple(c for c in ordered if c not in left and c not in right)

    def ansi(self) -> str:
        """Returns the ANSI color code for this outcome."""
        return {
            Outcome.LEFT_LIGHTER: _Colors.BLUE,
            Outcome.RIGHT_LIGHTER: _Colors.GREEN,
            Outcome.BALANCED: _Colors.YELLOW,
        }[self]


_OUTCOME_TEXT = {
    Outcome.LEFT_LIGHTER: "Left side is lighter - Fake coin is on the left side",
    Outcome.RIGHT_LIGHTER: "Right side is lighter - Fake coin is on the right side",
    Outcome.BALANCED: "Both sides are equal - Fake coin is not in these groups",
}


# =============================================================================
# Candidate Sets
# =============================================================================

def canonical_candidates(coins: Iterable[int]) -> tuple[int, ...]:
    """Return the canonical form of a candidate set: unique, ascending."""
    return tuple(sorted(set(coins)))


def candidate_key(coins: Iterable[int]) -> str:
    """Memo key for a candidate set.

    Derived from the actual coin indices, so ``{0, 1}`` and ``{2, 3}``
    never share a key even though they have the same size.
    """
    return ",".join(str(c) for c in canonical_candidates(coins))


def same_candidates(first: Iterable[int], second: Iterable[int]) -> bool:
    """Whether two candidate sets hold the same coins."""
    return canonical_candidates(first) == canonical_candidates(second)


def full_candidate_set(total_coins: int) -> tuple[int, ...]:
    """All coin indices ``0..total_coins-1``."""
    return tuple(range(total_coins))


def coin_label(index: int) -> str:
    """1-based coin number shown to players."""
    return str(index + 1)


def coins_label(coins: Iterable[int]) -> str:
    """Comma-separated 1-based coin numbers, or ``-`` when empty."""
    return ", ".join(coin_label(c) for c in coins) or "-"


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_coin_setup(total_coins: object, fake_coin_index: object) -> None:
    """Check a coin count and fake coin index.

    Args:
        total_coins: Number of coins; must be an integer >= 1.
        fake_coin_index: Index of the fake coin in ``[0, total_coins)``.

    Raises:
        InvalidInputError: If either value is out of range or not an
            integer.
    """
    if not _is_int(total_coins) or total_coins < 1:
        raise InvalidInputError(
            f"Coin count must be an integer >= 1, got {total_coins!r}"
        )
    if not _is_int(fake_coin_index) or not (0 <= fake_coin_index < total_coins):
        raise InvalidInputError(
            f"Fake coin index must be in 0-{total_coins - 1}, "
            f"got {fake_coin_index!r}"
        )


def optimal_weighings(total_coins: int) -> int:
    """Optimal number of weighings shown to players: ``ceil(log2(n))``.

    Raises:
        InvalidInputError: If ``total_coins`` is less than 1.
    """
    if total_coins < 1:
        raise InvalidInputError(
            f"Coin count must be >= 1, got {total_coins}"
        )
    return math.ceil(math.log2(total_coins))


# =============================================================================
# Weighing Records
# =============================================================================

@dataclasses.dataclass(frozen=True)
class Weighing:
    """Record of one weighing.

    Attributes:
        left_pan: Coins on the left pan.
        right_pan: Coins on the right pan.
        outcome: Which way the scale went.
        remaining_candidates: Candidates still possible after the weighing.
        step_number: 1-based position in the move history.
    """
    left_pan: tuple[int, ...]
    right_pan: tuple[int, ...]
    outcome: Outcome
    remaining_candidates: tuple[int, ...]
    step_number: int

    def leftover(self, candidates_before: Iterable[int]) -> tuple[int, ...]:
        """Candidates that sat on neither pan during this weighing.

        Args:
            candidates_before: The candidate set at entry to this step.
        """
        return Outcome.BALANCED.narrow(
            candidates_before, self.left_pan, self.right_pan,
        )

    def to_record(self) -> dict:
        """Persisted form of this weighing."""
        return {
            "leftPan": list(self.left_pan),
            "rightPan": list(self.right_pan),
            "result": self.outcome.text,
            "remainingCoins": list(self.remaining_candidates),
            "step": self.step_number,
        }

    @classmethod
    def from_record(cls, record: Mapping) -> Weighing:
        """Parse a persisted weighing.

        Raises:
            ValueError: If a field is missing or has the wrong type.
        """
        if not isinstance(record, Mapping):
            raise ValueError(f"Weighing record must be an object, got {record!r}")
        for name in ("leftPan", "rightPan", "result", "remainingCoins", "step"):
            if name not in record:
                raise ValueError(f"Weighing record is missing {name!r}")
        step = record["step"]
        if not _is_int(step):
            raise ValueError(f"Weighing step must be an integer, got {step!r}")
        result = record["result"]
        if not isinstance(result, str):
            raise ValueError(f"Weighing result must be a string, got {result!r}")
        return cls(
            left_pan=_parse_coin_list(record["leftPan"], "leftPan"),
            right_pan=_parse_coin_list(record["rightPan"], "rightPan"),
            outcome=Outcome.from_text(result),
            remaining_candidates=_parse_coin_list(
                record["remainingCoins"], "remainingCoins",
            ),
            step_number=step,
        )

    def __str__(self) -> str:
        return (
            f"Step {self.step_number}: "
            f"[{coins_label(self.left_pan)}] vs "
            f"[{coins_label(self.right_pan)}] → "
            f"{self.outcome.ansi()}{self.outcome.text}{_Colors.RESET}"
        )


def _parse_coin_list(value: object, name: str) -> tuple[int, ...]:
    if not isinstance(value, list):
        raise ValueError(f"{name} must be a list of coin indices, got {value!r}")
    if not all(_is_int(v) for v in value):
        raise ValueError(f"{name} contains a non-integer coin index: {value!r}")
    return tuple(value)


# =============================================================================
# MoveHistory
# =============================================================================

@dataclasses.dataclass
class MoveHistory:
    """Chronological record of a game's weighings.

    Appended to one weighing at a time during play, then frozen and
    read back for analysis.

    Attributes:
        total_coins: Number of coins in the game.
        true_fake_coin: Index of the fake coin.
        weighings: Weighings in the order they were performed.
        final_guess: The player's correct guess, or None if the game
            has not been guessed yet.
    """
    total_coins: int
    true_fake_coin: int
    weighings: list[Weighing] = dataclasses.field(default_factory=list)
    final_guess: int | None = None

    def record(self, weighing: Weighing) -> None:
        """Append a weighing.

        Args:
            weighing: The weighing to add to history.
        """
        self.weighings.append(weighing)

    @property
    def step_count(self) -> int:
        return len(self.weighings)

    @property
    def last_weighing(self) -> Weighing | None:
        return self.weighings[-1] if self.weighings else None

    def to_record(self) -> dict:
        """Persisted form of the history (see ``from_record``)."""
        record: dict = {
            "moves": [w.to_record() for w in self.weighings],
            "fakeCoinIndex": self.true_fake_coin,
            "numCoins": self.total_coins,
        }
        if self.final_guess is not None:
            record["finalGuess"] = self.final_guess
        return record

    @classmethod
    def from_record(cls, record: Mapping) -> MoveHistory:
        """Parse a persisted move history.

        The record holds ``moves`` (a list of weighing records),
        ``fakeCoinIndex``, ``numCoins`` and an optional ``finalGuess``.

        Args:
            record: The decoded JSON object.

        Returns:
            The parsed MoveHistory.

        Raises:
            ValueError: If required fields are missing, coin indices are
                not integers, or result strings are unknown.
        """
        if not isinstance(record, Mapping):
            raise ValueError(f"Move history must be an object, got {record!r}")
        for name in ("numCoins", "fakeCoinIndex"):
            if name not in record:
                raise ValueError(f"Move history is missing {name!r}")
        num_coins = record["numCoins"]
        fake = record["fakeCoinIndex"]
        validate_coin_setup(num_coins, fake)
        moves = record.get("moves", [])
        if not isinstance(moves, list):
            raise ValueError(f"moves must be a list, got {moves!r}")
        final_guess = record.get("finalGuess")
        if final_guess is not None and not _is_int(final_guess):
            raise ValueError(
                f"finalGuess must be a coin index, got {final_guess!r}"
            )
        return cls(
            total_coins=num_coins,
            true_fake_coin=fake,
            weighings=[Weighing.from_record(m) for m in moves],
            final_guess=final_guess,
        )

    def __str__(self) -> str:
        if not self.weighings:
            return "No weighings yet."
        lines = [f"  {w}" for w in self.weighings]
        if self.final_guess is not None:
            mark = "✓" if self.final_guess == self.true_fake_coin else "✗"
            lines.append(f"  Final guess: coin {coin_label(self.final_guess)} {mark}")
        return "Move History:\n" + "\n".join(lines)


def save_move_history(history: MoveHistory, path: str | pathlib.Path) -> None:
    """Write a move history as JSON."""
    pathlib.Path(path).write_text(
        json.dumps(history.to_record(), indent=2), encoding="utf-8",
    )


def load_move_history(path: str | pathlib.Path) -> dict:
    """Read a persisted move history record.

    Returns the raw decoded object, or an empty dict when the file does
    not exist, so callers can hand it to the reconstructor unchanged.
    """
    p = pathlib.Path(path)
    if not p.exists():
        return {}
    return json.loads(p.read_text(encoding="utf-8"))


# =============================================================================
# GameSession
# =============================================================================

@dataclasses.dataclass
class GameSession:
    """A live game: one hidden fake coin and the player's weighings.

    Attributes:
        num_coins: Number of coins on the table.
        fake_coin_index: Index of the lighter coin.
        candidates: Coins not yet ruled out by the weighings so far.
        history: Move history, appended after every weighing.
        attempts: Weighings plus wrong guesses.
        hints_used: Hints consumed so far (at most ``MAX_HINTS``).
        game_over: Whether the fake coin has been found.
    """
    num_coins: int
    fake_coin_index: int
    candidates: tuple[int, ...] = dataclasses.field(init=False)
    history: MoveHistory = dataclasses.field(init=False)
    attempts: int = 0
    hints_used: int = 0
    game_over: bool = False

    def __post_init__(self) -> None:
        validate_coin_setup(self.num_coins, self.fake_coin_index)
        self.candidates = full_candidate_set(self.num_coins)
        self.history = MoveHistory(
            total_coins=self.num_coins,
            true_fake_coin=self.fake_coin_index,
        )

    @classmethod
    def create_game(
        cls, num_coins: int, seed: int | None = None,
    ) -> GameSession:
        """Start a new game with a randomly placed fake coin.

        Args:
            num_coins: Number of coins (``MIN_COINS``-``MAX_COINS``).
            seed: Optional random seed for reproducibility.

        Raises:
            InvalidInputError: If the coin count is out of range.
        """
        if not _is_int(num_coins) or not (MIN_COINS <= num_coins <= MAX_COINS):
            raise InvalidInputError(
                f"Coin count must be {MIN_COINS}-{MAX_COINS}, got {num_coins!r}"
            )
        rng = random.Random(seed)
        return cls(num_coins=num_coins, fake_coin_index=rng.randrange(num_coins))

    @property
    def coin_weights(self) -> list[int]:
        """Weight of every coin; only the scale reads these."""
        weights = [GENUINE_COIN_WEIGHT] * self.num_coins
        weights[self.fake_coin_index] = FAKE_COIN_WEIGHT
        return weights

    @property
    def is_solved(self) -> bool:
        """Whether the weighings have narrowed the fake to one coin."""
        return len(self.candidates) == 1

    @property
    def hints_remaining(self) -> int:
        return max(0, MAX_HINTS - self.hints_used)

    @property
    def last_weighing(self) -> Weighing | None:
        return self.history.last_weighing

    @property
    def information_gained_bits(self) -> float:
        """Bits learned so far: ``log2(num_coins / |candidates|)``."""
        return math.log2(self.num_coins / len(self.candidates))

    def weigh(self, left_pan: Iterable[int], right_pan: Iterable[int]) -> Weighing:
        """Put coins on both pans and read the scale.

        Args:
            left_pan: Coin indices for the left pan.
            right_pan: Coin indices for the right pan.

        Returns:
            The recorded Weighing.

        Raises:
            InvalidInputError: If the game is over, a pan is empty, the
                pans differ in size, share a coin, or hold an invalid
                coin index.
        """
        if self.game_over:
            raise InvalidInputError("Game is already over")
        left = tuple(left_pan)
        right = tuple(right_pan)
        if not left or not right:
            raise InvalidInputError("Place coins on both sides of the scale")
        if len(left) != len(right):
            raise InvalidInputError(
                "Place an equal number of coins on both sides "
                f"(got {len(left)} and {len(right)})"
            )
        if len(set(left)) != len(left) or len(set(right)) != len(right):
            raise InvalidInputError("A coin cannot be placed twice on a pan")
        if set(left) & set(right):
            raise InvalidInputError("A coin cannot be on both pans")
        for coin in left + right:
            if not _is_int(coin) or not (0 <= coin < self.num_coins):
                raise InvalidInputError(
                    f"Coin index must be in 0-{self.num_coins - 1}, got {coin!r}"
                )

        weights = self.coin_weights
        left_weight = sum(weights[c] for c in left)
        right_weight = sum(weights[c] for c in right)
        if left_weight < right_weight:
            outcome = Outcome.LEFT_LIGHTER
        elif right_weight < left_weight:
            outcome = Outcome.RIGHT_LIGHTER
        else:
            outcome = Outcome.BALANCED

        self.attempts += 1
        self.candidates = outcome.narrow(self.candidates, left, right)
        weighing = Weighing(
            left_pan=left,
            right_pan=right,
            outcome=outcome,
            remaining_candidates=self.candidates,
            step_number=self.attempts,
        )
        self.history.record(weighing)
        return weighing

    def guess(self, coin_index: int) -> bool:
        """Guess the fake coin.

        A correct guess ends the game and is stored as the history's
        final guess. A wrong guess costs an attempt.

        Returns:
            True if the guess was correct.

        Raises:
            InvalidInputError: If the game is over or the index is invalid.
        """
        if self.game_over:
            raise InvalidInputError("Game is already over")
        if not _is_int(coin_index) or not (0 <= coin_index < self.num_coins):
            raise InvalidInputError(
                f"Coin index must be in 0-{self.num_coins - 1}, got {coin_index!r}"
            )
        if coin_index != self.fake_coin_index:
            self.attempts += 1
            return False
        self.game_over = True
        self.history.final_guess = coin_index
        return True

    def use_hint(self) -> bool:
        """Consume one hint if any remain.

        Returns:
            True if a hint was available and has been consumed.
        """
        if self.hints_used >= MAX_HINTS:
            return False
        self.hints_used += 1
        return True

    def __str__(self) -> str:
        cells = []
        for i in range(self.num_coins):
            if i in self.candidates:
                cells.append(f"{_Colors.BOLD}{coin_label(i)}{_Colors.RESET}")
            else:
                cells.append(f"{_Colors.DIM}{coin_label(i)}{_Colors.RESET}")
        return (
            f"Coins: {' '.join(cells)}\n"
            f"Attempts: {self.attempts} "
            f"(Optimal: {optimal_weighings(self.num_coins)})  "
            f"Hints left: {self.hints_remaining}"
        )


# =============================================================================
# Scoring
# =============================================================================

@dataclasses.dataclass(frozen=True)
class Achievement:
    """An achievement earned by a finished game."""
    title: str
    description: str

    def __str__(self) -> str:
        return f"{self.title}: {self.description}"


def performance_rating(total_coins: int, attempts: int) -> str:
    """Rate a finished game against ``optimal_weighings(total_coins)``."""
    optimal = optimal_weighings(total_coins)
    if attempts <= optimal:
        return "Perfect! 🏆"
    if attempts <= optimal + 1:
        return "Excellent! 🌟"
    if attempts <= optimal + 2:
        return "Great! 👏"
    return "Good Job! 👍"


def achievements(
    total_coins: int,
    attempts: int,
    hints_used: int,
    time_spent: float | None = None,
) -> list[Achievement]:
    """Achievements earned by a finished game.

    Args:
        total_coins: Number of coins in the game.
        attempts: Weighings plus wrong guesses.
        hints_used: Hints consumed during the game.
        time_spent: Seconds taken, if the caller tracked time.

    Returns:
        Earned achievements, in display order.
    """
    optimal = optimal_weighings(total_coins)
    earned = []
    if attempts <= optimal:
        earned.append(Achievement(
            "Perfect Solver! 🏆", "Solved in the minimum possible attempts!",
        ))
    if time_spent is not None and time_spent < optimal * 30:
        earned.append(Achievement(
            "Speed Demon! ⚡", "Solved with incredible speed!",
        ))
    if hints_used == 0:
        earned.append(Achievement(
            "Pure Logic! 🧠", "Solved without using any hints!",
        ))
    return earned
