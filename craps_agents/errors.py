"""
Error taxonomy for the table.

Everything raised by the engine derives from CrapsError so callers (the CLI,
a bot runner) can catch one type and still tell the failures apart.
"""


class CrapsError(Exception):
    """Base class for all table errors."""


class InvalidStateTransition(CrapsError):
    """A series or phase operation was attempted from the wrong state."""


class InvalidWagerError(CrapsError):
    """A wager was rejected: bad amount, wrong phase, unknown bet, closed window."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidAmount(CrapsError):
    """A deposit, withdrawal or funding amount that is not positive, not finite or not covered."""


class RollSourceError(CrapsError):
    """The dice could not be obtained from the roll source."""


class RollTimeout(RollSourceError):
    """The roll source did not answer within the allowed time."""


class RollSourceUnavailable(RollSourceError):
    """The roll source failed or returned something that is not a roll."""


class EscrowImbalanceError(CrapsError):
    """A round result does not reconcile with the escrow pool. Nothing was applied."""
