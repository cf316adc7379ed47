"""
Configuration for the craps table.

Every knob has a sane default and can be overridden from the environment
(or a .env file next to where you run the CLI).
"""

import os
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Coerce to a Decimal rounded down to the cent.

    Raises decimal.InvalidOperation (an ArithmeticError) for anything that is
    not a finite number, NaN and Infinity included.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if not value.is_finite():
        raise InvalidOperation(f"Not a finite amount: {value}")
    return value.quantize(CENT, rounding=ROUND_DOWN)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TableConfig:
    min_bet: Decimal = to_money(os.getenv("CRAPS_MIN_BET", "5"))
    max_bet: Decimal = to_money(os.getenv("CRAPS_MAX_BET", "5000"))
    field_two_payout: int = int(os.getenv("CRAPS_FIELD_TWO_PAYOUT", "2"))
    field_twelve_payout: int = int(os.getenv("CRAPS_FIELD_TWELVE_PAYOUT", "3"))
    max_open_wagers: int = int(os.getenv("CRAPS_MAX_OPEN_WAGERS", "10"))  # per bettor

    def __post_init__(self):
        self.min_bet = to_money(self.min_bet)
        self.max_bet = to_money(self.max_bet)
        if self.min_bet <= 0:
            raise ValueError("Minimum bet must be positive")
        if self.max_bet < self.min_bet:
            raise ValueError("Maximum bet must be >= minimum bet")


@dataclass
class EngineConfig:
    series_end_phase: str = os.getenv("CRAPS_SERIES_END_PHASE", "IDLE").upper()
    roll_timeout_secs: float = float(os.getenv("ROLL_TIMEOUT_SECS", "30"))
    allow_unverified_rolls: bool = _env_bool("ALLOW_UNVERIFIED_ROLLS", "false")
    seed: int | None = int(os.environ["CRAPS_SEED"]) if os.getenv("CRAPS_SEED") else None

    def __post_init__(self):
        self.series_end_phase = self.series_end_phase.upper()
        if self.series_end_phase not in ("IDLE", "COME_OUT"):
            raise ValueError(f"series_end_phase must be IDLE or COME_OUT, got {self.series_end_phase}")


@dataclass
class RollSourceConfig:
    url: str = os.getenv("ROLL_SOURCE_URL", "")
    poll_interval_secs: float = float(os.getenv("ROLL_POLL_INTERVAL_SECS", "2"))


@dataclass
class EscrowConfig:
    # "lp_id:amount" pairs, comma separated
    seed_deposits: str = os.getenv("LP_SEED_DEPOSITS", "house:50000")

    @property
    def deposits(self) -> dict[str, Decimal]:
        result = {}
        for chunk in self.seed_deposits.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            lp_id, _, amount = chunk.partition(":")
            result[lp_id.strip()] = to_money(amount.strip() or "0")
        return result


@dataclass
class CasinoConfig:
    table: TableConfig = field(default_factory=TableConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    rolls: RollSourceConfig = field(default_factory=RollSourceConfig)
    escrow: EscrowConfig = field(default_factory=EscrowConfig)
