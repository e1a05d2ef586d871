"""
Tests for Kelly stake sizing.
"""

import pytest

from parlay_engine.betting.kelly_staking import (
    kelly_fraction,
    recommend_stake,
    validate_kelly_inputs,
)


class TestKellyFraction:
    """Tests for the raw Kelly fraction."""

    def test_no_edge(self):
        """Test a fair bet has zero Kelly fraction."""
        assert kelly_fraction(0.5, 100) == pytest.approx(0.0)

    def test_positive_edge(self):
        """Test Kelly fraction with an edge."""
        assert kelly_fraction(0.6, 100) == pytest.approx(0.2)

    def test_negative_edge_floors_at_zero(self):
        """Test a losing bet floors at zero."""
        assert kelly_fraction(0.3, 100) == 0.0

    def test_decimal_odds(self):
        """Test decimal odds input."""
        assert kelly_fraction(0.6, 2.0, odds_type="decimal") == pytest.approx(0.2)


class TestRecommendStake:
    """Tests for fractional Kelly with a bankroll cap."""

    def test_capped_stake(self):
        """Test the stake is capped at the max bet percent."""
        result = recommend_stake(0.6, 100, 1000)
        assert result["full_kelly_fraction"] == pytest.approx(0.2)
        assert result["adjusted_kelly_fraction"] == pytest.approx(0.05)
        assert result["stake_amount"] == pytest.approx(50.0)
        assert result["expected_value"] == pytest.approx(10.0)
        assert result["edge_percent"] == pytest.approx(20.0)
        assert result["risk_level"] == "aggressive"
        assert result["warning"] is None

    def test_quarter_kelly(self):
        """Test a quarter Kelly multiplier."""
        result = recommend_stake(0.55, 100, 1000, kelly_multiplier=0.25)
        assert result["adjusted_kelly_fraction"] == pytest.approx(0.025)
        assert result["risk_level"] == "moderate"

    def test_no_edge_warns(self):
        """Test no-edge recommendation."""
        result = recommend_stake(0.4, 100, 1000)
        assert result["stake_amount"] == 0.0
        assert result["risk_level"] == "conservative"
        assert result["warning"].startswith("No edge detected")

    def test_aggressive_full_kelly_warns(self):
        """Test the aggressive sizing warning."""
        result = recommend_stake(0.8, 100, 1000)
        assert "aggressive sizing" in result["warning"]

    def test_invalid_inputs_raise(self):
        """Test invalid inputs raise ValueError."""
        with pytest.raises(ValueError, match="Win probability"):
            recommend_stake(1.2, 100, 1000)
        with pytest.raises(ValueError, match="Minimum bankroll"):
            recommend_stake(0.6, 100, 5)

    def test_validation_collects_every_error(self):
        """Test validation reports every problem."""
        errors = validate_kelly_inputs(None, 1.0, None, kelly_multiplier=2.0)
        assert len(errors) == 4
