"""
Tests for leg and sample validation.
"""

import pytest
from pydantic import ValidationError

from parlay_engine.schema import (
    CorrelationType,
    HistoricalCorrelation,
    Leg,
    ParlayReport,
    Side,
)


class TestLeg:
    """Tests for the Leg model."""

    def test_implied_probability(self):
        """Test implied probability is computed from odds."""
        leg = Leg(description="Tatum Over 27.5 Points", odds=150)
        assert leg.implied_probability == pytest.approx(0.4)

    def test_zero_odds_rejected(self):
        """Test odds of 0 fail validation."""
        with pytest.raises(ValidationError):
            Leg(description="Broken leg", odds=0)

    def test_fractional_odds_rejected(self):
        """Test fractional odds fail validation."""
        with pytest.raises(ValidationError):
            Leg(description="Broken leg", odds=-110.5)

    def test_odds_coercion(self):
        """Test string and whole-number float odds are coerced."""
        assert Leg(description="A", odds="+150").odds == 150
        assert Leg(description="B", odds=-110.0).odds == -110

    def test_blank_description_rejected(self):
        """Test a blank description fails validation."""
        with pytest.raises(ValidationError):
            Leg(description="   ", odds=-110)

    def test_ids_are_unique(self):
        """Test default ids are unique."""
        assert Leg(description="A", odds=100).id != Leg(description="A", odds=100).id

    def test_side_aliases(self):
        """Test side aliases."""
        assert Leg(description="A", odds=100, side="O").side == Side.OVER
        assert Leg(description="A", odds=100, side="Under").side == Side.UNDER

    def test_dedup_key(self):
        """Test the de-duplication key."""
        leg = Leg(description="  LeBron  James Over 25.5 POINTS ", odds=-110)
        assert leg.dedup_key == "lebron james over 25.5 points"

    def test_from_description(self):
        """Test hints parsed from the description."""
        leg = Leg.from_description("LeBron James Over 25.5 Points", -110, event_id="LAL-GSW")
        assert leg.player_name == "LeBron James"
        assert leg.prop_type == "points"
        assert leg.side == Side.OVER
        assert leg.event_id == "LAL-GSW"

    def test_from_description_explicit_fields_win(self):
        """Test explicit fields win over parsed ones."""
        leg = Leg.from_description("LeBron James Over 25.5 Points", -110, prop_type="pra")
        assert leg.prop_type == "pra"

    def test_from_description_unknown_market(self):
        """Test unknown markets leave hints empty."""
        leg = Leg.from_description("Lakers to cover", -110)
        assert leg.prop_type is None
        assert leg.side is None


class TestHistoricalCorrelation:
    """Tests for caller-supplied samples."""

    def test_valid_sample(self):
        """Test a valid sample."""
        sample = HistoricalCorrelation(
            prop_type_1="points",
            prop_type_2="assists",
            correlation_type="same_player",
            correlation_coefficient=0.4,
            sample_size=50,
        )
        assert sample.correlation_type == CorrelationType.SAME_PLAYER
        assert sample.sport is None

    def test_empty_sample_rejected(self):
        """Test a zero sample size fails validation."""
        with pytest.raises(ValidationError):
            HistoricalCorrelation(
                prop_type_1="points",
                prop_type_2="assists",
                correlation_type="same_player",
                correlation_coefficient=0.4,
                sample_size=0,
            )

    def test_coefficient_range(self):
        """Test coefficients outside [-1, 1] fail validation."""
        with pytest.raises(ValidationError):
            HistoricalCorrelation(
                prop_type_1="points",
                prop_type_2="assists",
                correlation_type="same_player",
                correlation_coefficient=1.4,
                sample_size=10,
            )


class TestParlayReport:
    """Tests for the report record."""

    def test_defaults(self):
        """Test report defaults."""
        report = ParlayReport(leg_count=0)
        data = report.to_dict()
        assert data["matrix_status"] == "not_applicable"
        assert data["severity"] == "none"
        assert data["warnings"] == []
