from decimal import Decimal

import pytest

from craps_agents.bets.catalog import BetCatalog
from craps_agents.bets.settlement import SettlementEngine
from craps_agents.bets.wager_book import WagerBook
from craps_agents.config import CasinoConfig, EngineConfig, EscrowConfig, RollSourceConfig, TableConfig
from craps_agents.game.state_machine import GamePhase


def make_config(series_end_phase="IDLE", allow_unverified=False, deposits="house:50000",
                timeout=1.0, seed=7, **table) -> CasinoConfig:
    """Config built from explicit values so a local .env can't leak into tests."""
    table_kwargs = dict(
        min_bet=Decimal("5"),
        max_bet=Decimal("5000"),
        field_two_payout=2,
        field_twelve_payout=3,
        max_open_wagers=10,
    )
    table_kwargs.update(table)
    return CasinoConfig(
        table=TableConfig(**table_kwargs),
        engine=EngineConfig(
            series_end_phase=series_end_phase,
            roll_timeout_secs=timeout,
            allow_unverified_rolls=allow_unverified,
            seed=seed,
        ),
        rolls=RollSourceConfig(url="", poll_interval_secs=0.01),
        escrow=EscrowConfig(seed_deposits=deposits),
    )


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def rules(config):
    return config.table


@pytest.fixture
def catalog(rules):
    return BetCatalog(rules=rules)


@pytest.fixture
def engine(catalog):
    return SettlementEngine(catalog)


@pytest.fixture
def book(catalog, rules):
    book = WagerBook(catalog, rules)
    book.fund("alice", "1000")
    book.fund("bob", "1000")
    return book


@pytest.fixture
def come_out_book(book):
    book.open_window(1, GamePhase.COME_OUT, 0)
    return book
