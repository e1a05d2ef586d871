"""
Tests for end-to-end parlay analysis.
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from parlay_engine.analysis.parlay_analysis import (
    analyze_parlay,
    format_correlation_impact,
    matrix_grid,
    quick_correlation_analysis,
)
from parlay_engine.schema import EstimateMethod, Severity


class TestAnalyzeParlay:
    """Tests for the summary report."""

    def test_two_unrelated_standard_legs(self, unrelated_legs):
        """Test two unrelated -110 legs."""
        report = analyze_parlay(unrelated_legs)
        assert report.leg_count == 2
        assert report.combined_odds == 264
        assert report.matrix_status == "ok"
        assert report.severity == Severity.NONE
        assert report.correlation_matrix.avg_correlation == 0.0
        assert report.estimate.independent_probability == pytest.approx(0.2744, abs=1e-4)
        assert report.estimate.estimated_correlated_probability == report.estimate.independent_probability
        assert report.estimate.correlation_adjustment == 1.0
        assert report.warnings == []

    def test_same_player_stack(self, same_player_legs):
        """Test a same-player stack raises the estimate and names the player."""
        report = analyze_parlay(same_player_legs)
        estimate = report.estimate
        assert estimate.estimated_correlated_probability > estimate.independent_probability
        assert estimate.correlation_adjustment > 1.0
        assert report.severity == Severity.LOW
        assert any("Nikola Jokic" in w for w in report.warnings)

    def test_single_leg(self, unrelated_legs):
        """Test a single leg is not applicable for correlation."""
        report = analyze_parlay(unrelated_legs[:1])
        assert report.combined_odds == -110
        assert report.correlation_matrix is None
        assert report.matrix_status == "not_applicable"
        assert report.estimate.method == EstimateMethod.INDEPENDENT
        assert report.warnings == []

    def test_empty(self):
        """Test an empty parlay."""
        report = analyze_parlay([])
        assert report.leg_count == 0
        assert report.estimate is None
        assert report.combined_odds is None

    def test_zero_odds_leg_reported_not_raised(self):
        """Test an invalid leg is reported without raising."""
        legs = [
            {"description": "Tatum Over 27.5 Points", "odds": -110},
            {"description": "Broken leg", "odds": 0},
        ]
        report = analyze_parlay(legs)
        assert report.estimate is None
        assert report.matrix_status == "unavailable"
        assert any(w.startswith("Leg 2 is invalid") for w in report.warnings)

    def test_sampled_is_reproducible(self, same_player_legs):
        """Test the sampled method is reproducible with a seed."""
        first = analyze_parlay(same_player_legs, method="sampled", n_samples=20000, seed=8)
        second = analyze_parlay(same_player_legs, method="sampled", n_samples=20000, seed=8)
        assert first.estimate.method == EstimateMethod.SAMPLED
        assert first.to_dict() == second.to_dict()

    def test_float_sample_count(self, same_player_legs):
        """Test a whole-number float sample count is accepted."""
        report = analyze_parlay(same_player_legs, method="sampled", n_samples=1000.0, seed=2)
        assert report.estimate.method == EstimateMethod.SAMPLED

    def test_bad_sample_count_falls_back(self, same_player_legs):
        """Test an unusable sample count falls back to independent."""
        report = analyze_parlay(same_player_legs, method="sampled", n_samples="many", seed=2)
        assert report.estimate.method == EstimateMethod.INDEPENDENT
        assert "Correlated probability unavailable; showing independent probability only" in report.warnings

    def test_historical_samples(self, same_player_legs):
        """Test supplied samples reach the report."""
        historical = [{
            "sport": "NBA",
            "prop_type_1": "points",
            "prop_type_2": "assists",
            "correlation_type": "same_player",
            "correlation_coefficient": 0.6,
            "sample_size": 300,
        }]
        report = analyze_parlay(same_player_legs, historical)
        pair = report.correlation_matrix.correlations[1]
        assert pair.correlation == pytest.approx(0.6)
        assert pair.sample_size == 300

    def test_matrix_values_rounded(self, same_player_legs):
        """Test matrix values are rounded for display."""
        report = analyze_parlay(same_player_legs)
        for row in report.correlation_matrix.matrix:
            for value in row:
                assert value == round(value, 3)

    def test_report_is_json_serializable(self, same_player_legs):
        """Test the report serialises to JSON."""
        data = analyze_parlay(same_player_legs).to_dict()
        assert json.loads(json.dumps(data))["estimate"]["method"] == "closed_form"

    def test_concurrent_calls_are_isolated(self, unrelated_legs, same_player_legs):
        """Test overlapping calls each reflect their own input."""
        inputs = [unrelated_legs, same_player_legs] * 8
        with ThreadPoolExecutor(max_workers=4) as pool:
            reports = list(pool.map(analyze_parlay, inputs))
        for legs, report in zip(inputs, reports):
            assert report.leg_count == len(legs)
        assert reports[0].to_dict() == analyze_parlay(unrelated_legs).to_dict()


class TestQuickAnalysis:
    """Tests for quick_correlation_analysis."""

    def test_returns_matrix_and_estimate(self, same_player_legs):
        """Test matrix and estimate are returned."""
        matrix, estimate = quick_correlation_analysis(same_player_legs)
        assert matrix.leg_count == 3
        assert estimate.method == EstimateMethod.CLOSED_FORM

    def test_single_leg(self, unrelated_legs):
        """Test a single leg has no matrix."""
        matrix, estimate = quick_correlation_analysis(unrelated_legs[:1])
        assert matrix is None
        assert estimate.correlation_adjustment == 1.0


class TestFormatting:
    """Tests for display helpers."""

    def test_impact(self):
        """Test correlation impact text."""
        assert format_correlation_impact(0.05) == "No significant impact"
        assert format_correlation_impact(2.5) == "+2.50% more likely to hit"
        assert format_correlation_impact(-1.25) == "-1.25% less likely to hit"

    def test_grid(self, same_player_legs):
        """Test the display grid."""
        matrix, _ = quick_correlation_analysis(same_player_legs)
        grid = matrix_grid(matrix)
        assert grid[0][0] == "—"
        assert grid[0][2] == "0.35"
        assert matrix_grid(None) == []
