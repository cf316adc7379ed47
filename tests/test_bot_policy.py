import json
import random
from decimal import Decimal

import pytest

from craps_agents.bets.catalog import BetType
from craps_agents.game.state_machine import GamePhase
from craps_agents.strategies.bot_policy import BotWagerPolicy
from craps_agents.strategies.personalities import (
    BettingStrategy,
    JsonPersonalityProvider,
    Participant,
    Personality,
    StaticPersonalityProvider,
    default_provider,
)


def strategy(base="10", cap="50", prefs=(BetType.PASS_LINE,)):
    return BettingStrategy(Decimal(base), Decimal(cap), tuple(prefs))


class TestBetProbability:
    @pytest.mark.parametrize("aggr,phase,expected", [
        (10, GamePhase.COME_OUT, 1.0),
        (5, GamePhase.COME_OUT, 0.6),
        (5, GamePhase.POINT, 0.4),
        (0, GamePhase.COME_OUT, 0.0),
        (10, GamePhase.IDLE, 0.0),
    ])
    def test_phase_scaling(self, catalog, aggr, phase, expected):
        policy = BotWagerPolicy(catalog, random.Random(1))
        assert policy.bet_probability(Personality(aggr, 5), phase) == pytest.approx(expected)


class TestDecide:
    def test_max_aggression_zero_risk_bets_base(self, catalog, rules):
        policy = BotWagerPolicy(catalog, random.Random(42))
        for _ in range(50):
            intent = policy.decide(Personality(10, 0), strategy(), GamePhase.COME_OUT, 0, rules)
            assert intent is not None
            assert intent.bet_type is BetType.PASS_LINE
            assert intent.amount == Decimal("10.00")

    def test_idle_never_bets(self, catalog, rules):
        policy = BotWagerPolicy(catalog, random.Random(3))
        assert policy.decide(Personality(10, 10), strategy(), GamePhase.IDLE, 0, rules) is None

    def test_zero_aggression_never_bets(self, catalog, rules):
        policy = BotWagerPolicy(catalog, random.Random(3))
        for _ in range(20):
            assert policy.decide(Personality(0, 10), strategy(), GamePhase.COME_OUT, 0, rules) is None

    def test_first_valid_preference_wins(self, catalog, rules):
        policy = BotWagerPolicy(catalog, random.Random(5))
        prefs = (BetType.PASS_LINE, BetType.COME, BetType.HARD_8)
        intent = policy.decide(Personality(10, 0), strategy(prefs=prefs), GamePhase.POINT, 6, rules)
        # POINT damping makes p = 0.8, so retry until the bot wants in
        while intent is None:
            intent = policy.decide(Personality(10, 0), strategy(prefs=prefs), GamePhase.POINT, 6, rules)
        assert intent.bet_type is BetType.COME

    def test_no_valid_preference(self, catalog, rules):
        policy = BotWagerPolicy(catalog, random.Random(5))
        prefs = (BetType.COME, BetType.DONT_COME)
        assert policy.decide(Personality(10, 0), strategy(prefs=prefs), GamePhase.COME_OUT, 0, rules) is None

    def test_amount_stays_within_limits(self, catalog, rules):
        policy = BotWagerPolicy(catalog, random.Random(9))
        for _ in range(200):
            intent = policy.decide(Personality(10, 10), strategy("40", "50"), GamePhase.COME_OUT, 0, rules)
            assert Decimal("40.00") <= intent.amount <= Decimal("50.00")
            assert intent.amount == intent.amount.quantize(Decimal("0.01"))

    def test_table_minimum_lifts_small_bets(self, catalog):
        from conftest import make_config
        limits = make_config(min_bet=Decimal("25")).table
        policy = BotWagerPolicy(catalog, random.Random(9))
        intent = policy.decide(Personality(10, 0), strategy("10", "50"), GamePhase.COME_OUT, 0, limits)
        assert intent.amount == Decimal("25.00")

    def test_empty_range_sits_out(self, catalog):
        from conftest import make_config
        limits = make_config(min_bet=Decimal("100")).table
        policy = BotWagerPolicy(catalog, random.Random(9))
        assert policy.decide(Personality(10, 0), strategy("10", "50"), GamePhase.COME_OUT, 0, limits) is None

    def test_seeded_policies_agree(self, catalog, rules):
        def run(seed):
            policy = BotWagerPolicy(catalog, random.Random(seed))
            return [
                policy.decide(Personality(6, 7), strategy(), GamePhase.COME_OUT, 0, rules)
                for _ in range(30)
            ]

        assert run(11) == run(11)

    def test_seed_42_sizes_are_pinned(self, catalog, rules):
        policy = BotWagerPolicy(catalog, random.Random(42))
        intents = [
            policy.decide(Personality(10, 10), strategy("10", "50"), GamePhase.COME_OUT, 0, rules)
            for _ in range(2)
        ]
        # u = 0.0250..., then 0.2232...: base * (1 + u), floored to the cent
        assert [i.bet_type for i in intents] == [BetType.PASS_LINE, BetType.PASS_LINE]
        assert [i.amount for i in intents] == [Decimal("10.25"), Decimal("12.23")]

    def test_decide_for_stamps_bettor(self, catalog, rules):
        policy = BotWagerPolicy(catalog, random.Random(1))
        bot = Participant("alice", "Alice", Decimal("100"), Personality(10, 0), strategy())
        assert policy.decide_for(bot, GamePhase.COME_OUT, 0, rules).bettor_id == "alice"

        human = Participant("you", "You", Decimal("100"))
        assert policy.decide_for(human, GamePhase.COME_OUT, 0, rules) is None


def test_record_result_tracks_streaks(catalog):
    policy = BotWagerPolicy(catalog, random.Random(1))
    policy.record_result("alice", "won", Decimal("10"))
    policy.record_result("alice", "won", Decimal("10"))
    policy.record_result("alice", "lost", Decimal("-5"))
    policy.record_result("alice", "pushed", Decimal("0"))

    report = policy.get_status_report("alice")
    assert report["wins"] == 2
    assert report["losses"] == 1
    assert report["pushes"] == 1
    assert report["net"] == "+15.00"
    assert report["streak"] == "L1"
    assert report["win_rate"] == "66.7%"


class TestPersonalities:
    def test_ranges_validated(self):
        with pytest.raises(ValueError):
            Personality(11, 0)
        with pytest.raises(ValueError):
            BettingStrategy(Decimal("50"), Decimal("10"))

    def test_default_roster(self):
        provider = default_provider()
        bots = provider.bots()
        assert len(bots) == 10
        assert provider.get("alice").personality.aggressiveness == 10
        assert provider.get("diana").strategy.preferred_bet_types[0] is BetType.DONT_PASS

    def test_duplicate_ids_rejected(self):
        p = Participant("x", "X")
        with pytest.raises(ValueError):
            StaticPersonalityProvider([p, p])

    def test_unknown_participant(self):
        with pytest.raises(KeyError):
            default_provider().get("nobody")

    def test_json_roster(self, tmp_path):
        path = tmp_path / "roster.json"
        path.write_text(json.dumps({"participants": [
            {"id": "zed", "name": "Zed", "bankroll": "250",
             "personality": {"aggressiveness": 2, "risk_tolerance": 4},
             "strategy": {"base_bet_size": "5", "max_bet_size": "15", "preferred_bet_types": ["FIELD"]}},
            {"id": "human", "bankroll": "100"},
        ]}))

        provider = JsonPersonalityProvider(path)
        zed = provider.get("zed")
        assert zed.is_bot
        assert zed.bankroll == Decimal("250.00")
        assert zed.strategy.preferred_bet_types == (BetType.FIELD,)
        assert not provider.get("human").is_bot
        assert provider.bots() == [zed]
