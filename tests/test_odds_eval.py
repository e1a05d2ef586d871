"""
Tests for odds arithmetic.
"""

import math

import pytest

from parlay_engine.betting.odds_eval import (
    InvalidOddsError,
    american_to_decimal,
    american_to_implied,
    combine_odds,
    combined_decimal_odds,
    combined_win_probability,
    decimal_to_american,
    decimal_to_implied,
    edge_percentage,
    expected_value,
    expected_value_percent,
    implied_probability,
)
from parlay_engine.schema import Leg


class TestImpliedProbability:
    """Tests for American odds to implied probability."""

    def test_known_values(self):
        """Test implied probability for common prices."""
        assert american_to_implied(150) == pytest.approx(0.4)
        assert american_to_implied(-150) == pytest.approx(0.6)
        assert american_to_implied(-110) == pytest.approx(110 / 210)
        assert american_to_implied(100) == pytest.approx(0.5)

    def test_underdogs_below_even(self):
        """Test plus odds imply under 50%."""
        for odds in (101, 120, 250, 1000, 5000):
            assert american_to_implied(odds) < 0.5

    def test_favorites_above_even(self):
        """Test minus odds imply over 50%."""
        for odds in (-101, -120, -250, -1000, -5000):
            assert american_to_implied(odds) > 0.5

    def test_zero_odds_rejected(self):
        """Test odds of 0 raise."""
        with pytest.raises(InvalidOddsError):
            american_to_implied(0)

    def test_non_finite_odds_rejected(self):
        """Test inf and nan odds raise."""
        with pytest.raises(InvalidOddsError):
            american_to_implied(float("inf"))
        with pytest.raises(InvalidOddsError):
            american_to_implied(float("nan"))

    def test_invalid_odds_is_value_error(self):
        """Test InvalidOddsError is a ValueError."""
        with pytest.raises(ValueError):
            american_to_decimal(0)

    def test_decimal_odds_type(self):
        """Test the odds_type switch."""
        assert implied_probability(2.5, odds_type="decimal") == pytest.approx(0.4)
        assert implied_probability(-150) == pytest.approx(0.6)


class TestDecimalConversion:
    """Tests for decimal odds conversions."""

    def test_american_to_decimal(self):
        """Test American to decimal."""
        assert american_to_decimal(150) == pytest.approx(2.5)
        assert american_to_decimal(-200) == pytest.approx(1.5)
        assert american_to_decimal(-110) == pytest.approx(1 + 100 / 110)

    def test_decimal_to_american(self):
        """Test decimal to American."""
        assert decimal_to_american(2.5) == 150
        assert decimal_to_american(2.0) == 100
        assert decimal_to_american(1.5) == -200

    def test_decimal_to_american_rejects_one(self):
        """Test decimal odds of 1 raise."""
        with pytest.raises(InvalidOddsError):
            decimal_to_american(1.0)

    def test_decimal_and_implied_agree(self):
        """Test decimal and American paths agree."""
        for odds in (-450, -200, -110, 105, 150, 333, 900):
            assert decimal_to_implied(american_to_decimal(odds)) == pytest.approx(american_to_implied(odds))


class TestCombinedOdds:
    """Tests for parlay pricing."""

    def test_empty_parlay(self):
        """Test an empty parlay has no price."""
        assert combine_odds([]) is None
        assert combined_decimal_odds([]) is None
        assert combined_win_probability([]) == 0.0

    def test_single_leg_keeps_its_odds(self):
        """Test a single leg keeps its own odds."""
        assert combine_odds([150]) == 150
        assert combine_odds([{"odds": -110}]) == -110

    def test_two_standard_legs(self):
        """Test two -110 legs."""
        # 1.9091 * 1.9091 = 3.6446 decimal
        assert combine_odds([-110, -110]) == 264
        assert combined_decimal_odds([-110, -110]) == pytest.approx((1 + 100 / 110) ** 2)

    def test_short_parlay_stays_negative(self):
        """Test short combined prices stay negative."""
        # 1.25 * 1.25 = 1.5625 decimal
        assert combine_odds([-400, -400]) == round(-100 / 0.5625)

    def test_accepts_leg_models(self):
        """Test Leg models are priced."""
        legs = [Leg(description="A Over 1.5", odds=150), Leg(description="B Over 2.5", odds=-150)]
        assert combine_odds(legs) == decimal_to_american(2.5 * (1 + 100 / 150))
        assert combined_win_probability(legs) == pytest.approx(0.4 * 0.6)

    def test_missing_odds_rejected(self):
        """Test a leg without odds raises."""
        with pytest.raises(InvalidOddsError):
            combine_odds([{"description": "no price"}, {"odds": 100}])

    def test_two_standard_legs_probability(self):
        """Test naive probability of two -110 legs."""
        assert combined_win_probability([-110, -110]) == pytest.approx(0.2744, abs=1e-4)

    def test_probability_never_increases_with_more_legs(self):
        """Test adding legs never raises naive probability."""
        odds = [-110, 150, -300, 400, -105, 120]
        previous = 1.0
        for count in range(1, len(odds) + 1):
            current = combined_win_probability(odds[:count])
            assert current <= previous
            previous = current


class TestExpectedValue:
    """Tests for EV and edge helpers."""

    def test_fair_coin_at_even_money(self):
        """Test EV of a fair even-money bet."""
        assert expected_value(0.5, 100) == pytest.approx(0.0)

    def test_ev_percent(self):
        """Test EV as a percentage."""
        assert expected_value_percent(0.6, 100) == pytest.approx(20.0)

    def test_ev_scales_with_stake(self):
        """Test EV scales with stake."""
        assert expected_value(0.6, 100, stake=10) == pytest.approx(2.0)

    def test_edge_percentage(self):
        """Test edge in percentage points."""
        assert edge_percentage(0.55, 0.5) == pytest.approx(5.0)
        assert math.isclose(edge_percentage(0.5, 0.5), 0.0)
