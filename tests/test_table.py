import asyncio
from decimal import Decimal

import pytest

from craps_agents.bets.catalog import BetType
from craps_agents.bets.wager_book import WagerStatus
from craps_agents.errors import (
    EscrowImbalanceError,
    InvalidStateTransition,
    RollSourceUnavailable,
    RollTimeout,
)
from craps_agents.escrow.pool import EscrowPool
from craps_agents.game.state_machine import GamePhase, RollEvent
from craps_agents.rolls.base import RollSource, ScriptedRollSource
from craps_agents.strategies.personalities import Participant, StaticPersonalityProvider, default_provider
from craps_agents.table import CrapsTable, derive_seeds

from conftest import make_config


def players(*ids):
    return StaticPersonalityProvider([Participant(i, i.title(), Decimal("1000")) for i in ids])


def table_with(rolls, config=None, **kwargs):
    return CrapsTable(
        config or make_config(),
        roll_source=ScriptedRollSource(rolls),
        provider=kwargs.pop("provider", players("alice", "bob")),
        **kwargs,
    )


def test_six_then_six_pays_pass_line():
    table = table_with([(2, 4), (3, 3)])
    table.open_round()
    assert table.submit_wager("alice", BetType.PASS_LINE, "50").accepted

    first = asyncio.run(table.resolve_round())
    assert first.event is RollEvent.POINT_ESTABLISHED
    assert first.point == 6
    assert first.results == []
    assert first.still_open == 1

    table.open_round()
    second = asyncio.run(table.resolve_round())
    assert second.event is RollEvent.POINT_MADE
    assert second.phase is GamePhase.IDLE
    assert second.point == 0
    [result] = second.results
    assert result.outcome is WagerStatus.WON
    assert result.payout == Decimal("50.00")
    assert second.house_net == Decimal("-50.00")

    assert table.book.balance_of("alice") == Decimal("1050.00")
    assert table.pool.pool_total == Decimal("49950.00")


def test_come_out_mode_returns_to_come_out():
    table = table_with([(2, 4), (3, 3)], config=make_config(series_end_phase="COME_OUT"))
    asyncio.run(table.play_round())
    report = asyncio.run(table.play_round())
    assert report.phase is GamePhase.COME_OUT
    assert report.point == 0
    assert table.snapshot().shooter == "alice"


def test_dont_pass_push_moves_no_escrow():
    table = table_with([(6, 6)])
    table.open_round()
    table.submit_wager("bob", BetType.DONT_PASS, "40")
    report = asyncio.run(table.resolve_round())

    assert report.results[0].outcome is WagerStatus.PUSHED
    assert report.house_net == 0
    assert all(d == 0 for d in report.escrow_deltas.values())
    assert table.book.balance_of("bob") == Decimal("1000.00")
    assert table.pool.pool_total == Decimal("50000.00")


def test_house_result_split_across_lps():
    table = table_with([(2, 3)], config=make_config(deposits="lp_a:3000,lp_b:1000"))
    table.open_round()
    table.submit_wager("alice", BetType.FIELD, "100")
    report = asyncio.run(table.resolve_round())

    assert report.house_net == Decimal("100")
    assert report.escrow_deltas == {"lp_a": Decimal("75.00"), "lp_b": Decimal("25.00")}
    assert [lp.lp_id for lp in report.leaderboard] == ["lp_a", "lp_b"]


def test_window_closes_when_roll_requested():
    table = table_with([(3, 4)])
    table.open_round()
    asyncio.run(table.resolve_round())
    result = table.submit_wager("alice", BetType.FIELD, "10")
    assert not result.accepted
    assert "closed" in result.reason


def test_resolve_without_open_window():
    table = table_with([(3, 4)])
    with pytest.raises(InvalidStateTransition):
        asyncio.run(table.resolve_round())


def test_escrow_failure_rolls_back_everything():
    # No LP capital: any house result is unbacked.
    table = table_with([(2, 4)], pool=EscrowPool())
    table.open_round()
    table.submit_wager("alice", BetType.FIELD, "10")

    with pytest.raises(EscrowImbalanceError):
        asyncio.run(table.resolve_round())

    assert table.machine.phase is GamePhase.COME_OUT
    assert table.machine.last_roll is None
    assert len(table.book.open_wagers("alice")) == 1
    assert table.book.balance_of("alice") == Decimal("990.00")
    assert table.round_number == 0
    assert not table.book.window_open


def test_roll_failure_leaves_state_untouched():
    table = table_with([])
    table.open_round()
    table.submit_wager("alice", BetType.PASS_LINE, "10")

    with pytest.raises(RollSourceUnavailable):
        asyncio.run(table.resolve_round())

    assert table.machine.phase is GamePhase.COME_OUT
    assert len(table.book.open_wagers()) == 1
    assert not table.book.window_open


def test_unverified_fallback_roll():
    table = table_with(
        [],
        config=make_config(allow_unverified=True),
        fallback_source=ScriptedRollSource([(5, 6)]),
    )
    table.open_round()
    table.submit_wager("alice", BetType.PASS_LINE, "10")
    report = asyncio.run(table.resolve_round())

    assert not report.verified
    assert report.roll.total == 11
    assert report.results[0].outcome is WagerStatus.WON


def test_fallback_ignored_unless_allowed():
    table = table_with([], fallback_source=ScriptedRollSource([(5, 6)]))
    table.open_round()
    with pytest.raises(RollSourceUnavailable):
        asyncio.run(table.resolve_round())


def test_dice_pass_after_seven_out():
    table = table_with([(2, 2), (3, 4), (1, 1)])
    asyncio.run(table.play_round())
    report = asyncio.run(table.play_round())
    assert report.event is RollEvent.SEVEN_OUT
    assert table.current_shooter == "bob"

    asyncio.run(table.play_round())
    assert table.snapshot().shooter == "bob"
    assert table.snapshot().series_id == 2


def test_dice_pass_in_come_out_mode():
    table = table_with([(2, 2), (3, 4)], config=make_config(series_end_phase="COME_OUT"))
    asyncio.run(table.run(2))
    snap = table.snapshot()
    assert snap.phase is GamePhase.COME_OUT
    assert snap.shooter == "bob"
    assert snap.series_id == 2


def test_bots_play_a_seeded_session():
    def session():
        table = CrapsTable(make_config(seed=3), provider=default_provider())
        reports = asyncio.run(table.run(30))
        return [(r.roll.total, r.house_net, len(r.results)) for r in reports], table

    first, table = session()
    second, _ = session()
    assert first == second
    assert len(table.reports) == 30

    lp_total = table.pool.pool_total
    bankrolls = sum(table.book.balance_of(b.participant_id) for b in table.bots)
    stakes_out = table.book.exposure()
    # money is conserved between bots, open stakes and the pool
    assert lp_total + bankrolls + stakes_out == Decimal("50000") + Decimal("10000")

    for bot in table.bots:
        record = table.policy.records.get(bot.participant_id)
        if record:
            assert record.wins + record.losses + record.pushes == len(record.history)


def test_seating_twice_rejected():
    table = table_with([])
    with pytest.raises(ValueError):
        table.seat(Participant("alice", "Alice"))


class StalledDice(RollSource):
    name = "stalled"

    async def request_roll(self, series_id):
        await asyncio.sleep(10)


def test_caller_timeout_overrides_config():
    table = CrapsTable(make_config(timeout=5.0), roll_source=StalledDice(),
                       provider=players("alice"))
    table.open_round()
    table.submit_wager("alice", BetType.PASS_LINE, "10")

    with pytest.raises(RollTimeout):
        asyncio.run(table.resolve_round(timeout=0.05))

    assert table.machine.phase is GamePhase.COME_OUT
    assert table.machine.last_roll is None
    assert len(table.book.open_wagers("alice")) == 1
    assert not table.book.window_open


def test_play_round_passes_timeout_through():
    table = CrapsTable(make_config(timeout=5.0), roll_source=StalledDice(),
                       provider=players("alice"))
    with pytest.raises(RollTimeout):
        asyncio.run(table.play_round(timeout=0.05))
    assert table.round_number == 0


def test_seed_splits_into_independent_streams():
    assert derive_seeds(7) == derive_seeds(7)
    policy_seed, dice_seed = derive_seeds(7)
    assert policy_seed != dice_seed

    table = CrapsTable(make_config(seed=7))
    bot_draws = [table.rng.random() for _ in range(5)]
    dice_draws = [table.roll_source.rng.random() for _ in range(5)]
    assert bot_draws != dice_draws
