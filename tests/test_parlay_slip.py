"""
Tests for the in-memory parlay slip.
"""

import pytest

from parlay_engine.betting.parlay_slip import ParlaySlip
from parlay_engine.schema import Leg


class TestParlaySlip:
    """Tests for adding, removing and pricing legs."""

    def test_empty_slip(self):
        """Test an empty slip."""
        slip = ParlaySlip()
        assert len(slip) == 0
        assert slip.combined_odds is None
        assert slip.win_probability == 0.0

    def test_add_and_price(self, unrelated_legs):
        """Test adding legs and pricing the slip."""
        slip = ParlaySlip(unrelated_legs)
        assert slip.leg_count == 2
        assert slip.combined_odds == 264
        assert slip.win_probability == pytest.approx((110 / 210) ** 2)

    def test_duplicate_description_ignored(self):
        """Test duplicate descriptions return the existing leg."""
        slip = ParlaySlip()
        first = slip.add_leg({"description": "Tatum Over 27.5 Points", "odds": -110})
        again = slip.add_leg(Leg(description="tatum  over 27.5 points", odds=-120))
        assert again is first
        assert len(slip) == 1
        assert slip.has_leg("TATUM OVER 27.5 POINTS")

    def test_remove_leg(self, unrelated_legs):
        """Test removing a leg by id."""
        slip = ParlaySlip(unrelated_legs)
        assert slip.remove_leg(unrelated_legs[0].id) is True
        assert slip.remove_leg("missing") is False
        assert [leg.id for leg in slip.legs] == [unrelated_legs[1].id]

    def test_legs_is_a_copy(self, unrelated_legs):
        """Test legs returns a copy."""
        slip = ParlaySlip(unrelated_legs)
        slip.legs.clear()
        assert len(slip) == 2

    def test_clear(self, unrelated_legs):
        """Test clearing the slip."""
        slip = ParlaySlip(unrelated_legs)
        slip.clear()
        assert len(slip) == 0

    def test_round_trip(self, same_player_legs):
        """Test to_dict and from_dict keep leg ids."""
        slip = ParlaySlip(same_player_legs)
        restored = ParlaySlip.from_dict(slip.to_dict())
        assert [leg.id for leg in restored.legs] == [leg.id for leg in same_player_legs]
        assert "implied_probability" not in slip.to_dict()["legs"][0]

    def test_analyze(self, same_player_legs):
        """Test analyzing the slip."""
        report = ParlaySlip(same_player_legs).analyze()
        assert report.leg_count == 3
        assert report.estimate.correlation_adjustment > 1.0
