"""
Parlay Analysis Module

Aggregates everything shown for a parlay:
- Combined price and naive independent probability
- Leg correlation matrix and severity
- Correlation-adjusted joint probability and warnings
- EV/edge at the parlay price

Every failure is recovered here so callers always receive a report; sub-results
that could not be computed are left empty and flagged in `warnings`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from parlay_engine.betting.correlation_engine import (
    HistoricalCorrelationLookup,
    build_correlation_matrix,
    coerce_legs,
)
from parlay_engine.betting.odds_eval import combine_odds, combined_decimal_odds
from parlay_engine.betting.parlay_tools import adjusted_ev, estimate_joint_probability
from parlay_engine.foundation.model_config import CorrelationConfig, get_default_config
from parlay_engine.schema import (
    CorrelationMatrix,
    EstimateMethod,
    Leg,
    ParlayProbabilityEstimate,
    ParlayReport,
)

logger = logging.getLogger(__name__)

PROBABILITY_DECIMALS = 4
CORRELATION_DECIMALS = 3

LegInput = Union[Leg, Dict[str, Any]]


def _parse_legs(legs: Iterable[LegInput]) -> Tuple[List[Leg], List[str]]:
    parsed: List[Leg] = []
    errors: List[str] = []
    for idx, leg in enumerate(legs):
        if isinstance(leg, Leg):
            parsed.append(leg)
            continue
        try:
            parsed.append(Leg.model_validate(leg))
        except ValidationError as e:
            reasons = "; ".join(err["msg"] for err in e.errors())
            errors.append(f"Leg {idx + 1} is invalid: {reasons}")
    return parsed, errors


def _round_matrix(matrix: CorrelationMatrix) -> CorrelationMatrix:
    return matrix.model_copy(update={
        "matrix": [[round(v, CORRELATION_DECIMALS) for v in row] for row in matrix.matrix],
        "correlations": [
            c.model_copy(update={"correlation": round(c.correlation, CORRELATION_DECIMALS)})
            for c in matrix.correlations
        ],
        "avg_correlation": round(matrix.avg_correlation, CORRELATION_DECIMALS),
        "signed_avg_correlation": round(matrix.signed_avg_correlation, CORRELATION_DECIMALS),
        "max_correlation": round(matrix.max_correlation, CORRELATION_DECIMALS),
    })


def _round_estimate(estimate: ParlayProbabilityEstimate) -> ParlayProbabilityEstimate:
    return estimate.model_copy(update={
        "independent_probability": round(estimate.independent_probability, PROBABILITY_DECIMALS),
        "estimated_correlated_probability": round(estimate.estimated_correlated_probability, PROBABILITY_DECIMALS),
        "correlation_adjustment": round(estimate.correlation_adjustment, PROBABILITY_DECIMALS),
    })


def analyze_parlay(
    legs: Sequence[LegInput],
    historical: Union[None, HistoricalCorrelationLookup, Iterable[Any]] = None,
    config: Optional[CorrelationConfig] = None,
    method: Union[str, EstimateMethod] = EstimateMethod.CLOSED_FORM,
    n_samples: Optional[int] = None,
    seed: Optional[int] = None
) -> ParlayReport:
    """
    Analyze a parlay end to end.

    Args:
        legs: Ordered legs (Leg objects or mappings)
        historical: Optional caller-supplied correlation samples
        config: Heuristic constants and thresholds
        method: "closed_form" (default) or "sampled"
        n_samples: Draws for the sampled method
        seed: Seed for the sampled method

    Returns:
        ParlayReport with whatever could be computed
    """
    config = config or get_default_config()
    parsed, errors = _parse_legs(legs)
    warnings: List[str] = list(errors)

    if errors:
        logger.warning(f"Parlay analysis unavailable: {len(errors)} invalid leg(s)")
        return ParlayReport(
            leg_count=len(legs),
            matrix_status="unavailable",
            warnings=warnings,
        )

    report: Dict[str, Any] = {"leg_count": len(parsed)}
    if not parsed:
        return ParlayReport(leg_count=0, warnings=warnings)

    report["combined_odds"] = combine_odds(parsed)
    report["decimal_odds"] = round(combined_decimal_odds(parsed), PROBABILITY_DECIMALS)
    leg_probs = [leg.implied_probability for leg in parsed]

    correlation_matrix: Optional[CorrelationMatrix] = None
    try:
        correlation_matrix = build_correlation_matrix(parsed, historical, config)
        report["matrix_status"] = "ok" if correlation_matrix is not None else "not_applicable"
    except (ValidationError, ValueError) as e:
        logger.warning(f"Correlation matrix unavailable: {e}")
        report["matrix_status"] = "unavailable"
        warnings.append("Correlation analysis unavailable; showing independent probability only")

    try:
        estimate = estimate_joint_probability(
            leg_probs,
            correlation_matrix,
            config,
            method=method,
            n_samples=n_samples,
            seed=seed,
            legs=parsed,
        )
    except (TypeError, ValueError) as e:
        logger.warning(f"Correlated estimate unavailable: {e}")
        warnings.append("Correlated probability unavailable; showing independent probability only")
        estimate = estimate_joint_probability(leg_probs, None, config)

    if correlation_matrix is not None:
        report["correlation_matrix"] = _round_matrix(correlation_matrix)
        report["severity"] = correlation_matrix.severity

    ev = adjusted_ev(estimate.estimated_correlated_probability, report["combined_odds"])
    report["expected_value_percent"] = round(ev["ev_percent"], 2)
    report["edge_percent"] = round(ev["edge_percent"], 2)

    report["estimate"] = _round_estimate(estimate)
    report["warnings"] = warnings + estimate.warnings
    return ParlayReport(**report)


def quick_correlation_analysis(
    legs: Sequence[LegInput],
    historical: Union[None, HistoricalCorrelationLookup, Iterable[Any]] = None,
    config: Optional[CorrelationConfig] = None
) -> Tuple[Optional[CorrelationMatrix], ParlayProbabilityEstimate]:
    """
    Matrix plus closed-form estimate, unrounded, for fast feedback while a slip is edited.

    Raises:
        pydantic.ValidationError: If a leg mapping is invalid
    """
    config = config or get_default_config()
    parsed = coerce_legs(legs)
    correlation_matrix = build_correlation_matrix(parsed, historical, config)
    estimate = estimate_joint_probability(
        [leg.implied_probability for leg in parsed],
        correlation_matrix,
        config,
        legs=parsed,
    )
    return correlation_matrix, estimate


def format_correlation_impact(impact: float) -> str:
    """Describe a change in win rate (percentage points) for display."""
    if abs(impact) < 0.1:
        return "No significant impact"
    if impact > 0:
        return f"+{impact:.2f}% more likely to hit"
    return f"{impact:.2f}% less likely to hit"


def matrix_grid(correlation_matrix: Optional[CorrelationMatrix]) -> List[List[str]]:
    """Matrix as display strings, with the diagonal rendered as a dash."""
    if correlation_matrix is None:
        return []
    return [
        ["—" if i == j else f"{value:.2f}" for j, value in enumerate(row)]
        for i, row in enumerate(correlation_matrix.matrix)
    ]

