"""Two dice and what they add up to."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DiceRoll:
    """A single roll of two dice. Immutable once created."""

    die1: int
    die2: int
    sequence_number: int = 0  # position within its series, stamped on apply

    def __post_init__(self):
        for die in (self.die1, self.die2):
            if not isinstance(die, int) or not 1 <= die <= 6:
                raise ValueError(f"Die value must be an integer 1-6, got {die!r}")

    @property
    def total(self) -> int:
        return self.die1 + self.die2

    @property
    def is_hard(self) -> bool:
        """Both dice show the same face."""
        return self.die1 == self.die2

    def __str__(self) -> str:
        return f"({self.die1}, {self.die2}) = {self.total}"
