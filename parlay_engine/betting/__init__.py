"""
Parlay Betting Module

Provides odds arithmetic, leg correlation estimates, joint probability
estimation, Kelly staking and the parlay slip.
"""

from parlay_engine.betting.odds_eval import (
    InvalidOddsError,
    american_to_implied,
    american_to_decimal,
    decimal_to_american,
    implied_probability,
    combine_odds,
    combined_decimal_odds,
    combined_win_probability,
    expected_value,
    expected_value_percent,
    edge_percentage,
)

from parlay_engine.betting.correlation_engine import (
    HistoricalCorrelationLookup,
    build_correlation_matrix,
    classify_pair,
    estimate_pair_correlation,
    get_correlation_severity,
    get_correlation_strength_label,
    normalize_prop_type,
)

from parlay_engine.betting.parlay_tools import (
    MatrixDecompositionError,
    validate_correlation_matrix,
    nearest_psd_correlation,
    cholesky_factor,
    estimate_joint_probability,
    joint_probability,
    adjusted_ev,
)

from parlay_engine.betting.kelly_staking import (
    kelly_fraction,
    recommend_stake,
)

from parlay_engine.betting.parlay_slip import ParlaySlip

__all__ = [
    "InvalidOddsError",
    "american_to_implied",
    "american_to_decimal",
    "decimal_to_american",
    "implied_probability",
    "combine_odds",
    "combined_decimal_odds",
    "combined_win_probability",
    "expected_value",
    "expected_value_percent",
    "edge_percentage",
    "HistoricalCorrelationLookup",
    "build_correlation_matrix",
    "classify_pair",
    "estimate_pair_correlation",
    "get_correlation_severity",
    "get_correlation_strength_label",
    "normalize_prop_type",
    "MatrixDecompositionError",
    "validate_correlation_matrix",
    "nearest_psd_correlation",
    "cholesky_factor",
    "estimate_joint_probability",
    "joint_probability",
    "adjusted_ev",
    "kelly_fraction",
    "recommend_stake",
    "ParlaySlip",
]
