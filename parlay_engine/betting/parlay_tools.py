"""
Parlay & Correlation Tools Module

Computes joint probabilities, correlation adjustments, and EV for parlays.

Functions:
    - validate_correlation_matrix: Validate correlation matrix structure and values
    - is_positive_semidefinite: Eigenvalue check for a correlation matrix
    - nearest_psd_correlation: Repair a matrix by clamping eigenvalues
    - cholesky_factor: Lower-triangular factor, repairing the matrix if needed
    - closed_form_adjustment: Multiplicative correlation adjustment factor
    - sampled_joint_probability: Gaussian-copula Monte Carlo estimate
    - estimate_joint_probability: Full estimate with fallback and warnings
    - joint_probability: Joint probability as a plain float
    - adjusted_ev: Calculate EV metrics for a parlay with acceptance criteria
"""

from __future__ import annotations

import logging
from math import prod
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.stats import norm

from parlay_engine.betting.correlation_engine import describe_correlation_warnings
from parlay_engine.betting.odds_eval import (
    expected_value_percent,
    implied_probability,
)
from parlay_engine.foundation.model_config import CorrelationConfig, get_default_config
from parlay_engine.schema import (
    CorrelationMatrix,
    EstimateMethod,
    Leg,
    ParlayProbabilityEstimate,
)

logger = logging.getLogger(__name__)

MatrixLike = Union[Sequence[Sequence[float]], np.ndarray]


class MatrixDecompositionError(ValueError):
    """Raised when a correlation matrix cannot be factored, even after repair."""


def validate_correlation_matrix(matrix: MatrixLike, atol: float = 1e-9) -> None:
    """
    Validate a correlation matrix for parlay calculations.

    Requirements:
        - Matrix must be square
        - Matrix must be symmetric
        - Diagonal must be 1.0
        - All correlations must be within [-1, 1]

    Raises:
        ValueError: If matrix is invalid
    """
    size = len(matrix)
    for row in matrix:
        if len(row) != size:
            raise ValueError("Correlation matrix must be square.")
    arr = np.asarray(matrix, dtype=float)
    if not np.all(np.isfinite(arr)):
        raise ValueError("Correlation matrix contains non-finite values.")
    if not np.allclose(np.diag(arr), 1.0, atol=atol):
        raise ValueError("Diagonal must be 1.")
    if not np.allclose(arr, arr.T, atol=atol):
        raise ValueError("Correlation matrix must be symmetric.")
    if np.any(np.abs(arr) > 1 + atol):
        raise ValueError("Correlations must lie within [-1, 1].")


def is_positive_semidefinite(matrix: MatrixLike, tol: float = 1e-10) -> bool:
    arr = np.asarray(matrix, dtype=float)
    eigenvalues = np.linalg.eigvalsh((arr + arr.T) / 2)
    return bool(eigenvalues.min() >= -tol)


def nearest_psd_correlation(matrix: MatrixLike, min_eigenvalue: float = 1e-6) -> np.ndarray:
    """
    Project a symmetric matrix onto a nearby valid correlation matrix.

    Negative (and tiny) eigenvalues are clamped to min_eigenvalue, the matrix
    is rebuilt and rescaled back to a unit diagonal.

    Args:
        matrix: Square symmetric matrix
        min_eigenvalue: Floor applied to the spectrum

    Returns:
        Positive definite correlation matrix as a numpy array
    """
    arr = np.asarray(matrix, dtype=float)
    arr = (arr + arr.T) / 2
    eigenvalues, eigenvectors = np.linalg.eigh(arr)
    clamped = np.clip(eigenvalues, min_eigenvalue, None)
    rebuilt = eigenvectors @ np.diag(clamped) @ eigenvectors.T

    scale = np.sqrt(np.diag(rebuilt))
    repaired = rebuilt / np.outer(scale, scale)
    repaired = (repaired + repaired.T) / 2
    np.fill_diagonal(repaired, 1.0)
    return np.clip(repaired, -1.0, 1.0)


def cholesky_factor(
    matrix: MatrixLike,
    config: Optional[CorrelationConfig] = None
) -> Tuple[np.ndarray, bool]:
    """
    Lower-triangular L with matrix = L @ L.T.

    Tries a direct Cholesky decomposition first and repairs the matrix once
    if that fails.

    Returns:
        Tuple of (L, repaired) where repaired tells whether the input was altered

    Raises:
        MatrixDecompositionError: If the repaired matrix still cannot be factored
    """
    config = config or get_default_config()
    arr = np.asarray(matrix, dtype=float)
    try:
        return np.linalg.cholesky(arr), False
    except np.linalg.LinAlgError:
        logger.warning("Correlation matrix is not positive definite, repairing")

    try:
        repaired = nearest_psd_correlation(arr, config.psd_min_eigenvalue)
        if not is_positive_semidefinite(repaired, config.psd_tolerance):
            raise ValueError("repaired matrix is still not positive semi-definite")
        return np.linalg.cholesky(repaired), True
    except (np.linalg.LinAlgError, ValueError) as e:
        raise MatrixDecompositionError(f"Cholesky decomposition failed after repair: {e}") from e


def closed_form_adjustment(
    avg_correlation: float,
    signed_avg_correlation: float,
    n_legs: int,
    config: Optional[CorrelationConfig] = None
) -> float:
    """
    Multiplicative adjustment applied to the independent probability.

    Each additional leg compounds a factor of (1 +/- strength * avg |corr|);
    the sign follows the mean signed correlation.

    Returns:
        Adjustment factor; exactly 1.0 when there is no correlation
    """
    config = config or get_default_config()
    if n_legs < 2 or avg_correlation == 0:
        return 1.0
    direction = 1.0 if signed_avg_correlation >= 0 else -1.0
    per_leg = 1.0 + direction * config.closed_form_strength * avg_correlation
    return max(0.0, per_leg) ** (n_legs - 1)


def frechet_bounds(leg_probs: Sequence[float]) -> Tuple[float, float]:
    """Feasible range of P(all legs hit) given the individual leg probabilities."""
    if not leg_probs:
        return 0.0, 0.0
    lower = max(0.0, sum(leg_probs) - (len(leg_probs) - 1))
    return lower, min(leg_probs)


def sampled_joint_probability(
    leg_probs: Sequence[float],
    matrix: MatrixLike,
    n_samples: int = 50000,
    seed: Optional[int] = None,
    config: Optional[CorrelationConfig] = None
) -> Tuple[float, bool]:
    """
    Estimate P(all legs hit) with a Gaussian copula.

    Independent standard normals are multiplied by the Cholesky factor of the
    correlation matrix; leg i hits when its correlated draw falls below
    the standard normal quantile of its probability.

    Args:
        leg_probs: Individual leg probabilities
        matrix: Leg correlation matrix
        n_samples: Number of joint draws
        seed: Seed for a private random generator
        config: Repair parameters

    Returns:
        Tuple of (probability, repaired)

    Raises:
        MatrixDecompositionError: If the matrix cannot be factored
    """
    probs = np.asarray(leg_probs, dtype=float)
    validate_correlation_matrix(matrix)
    n_samples = int(n_samples)
    if n_samples <= 0:
        raise ValueError("n_samples must be positive")
    if len(matrix) != len(probs):
        raise ValueError("Correlation matrix size must match the number of legs.")

    L, repaired = cholesky_factor(matrix, config)
    rng = np.random.default_rng(seed)
    z = rng.standard_normal((n_samples, len(probs)))
    correlated = z @ L.T
    thresholds = norm.ppf(probs)
    all_hit = np.all(correlated < thresholds, axis=1)
    logger.debug(f"Sampled {n_samples} joint draws for {len(probs)} legs")
    return float(all_hit.mean()), repaired


def estimate_joint_probability(
    leg_probs: Sequence[float],
    correlation_matrix: Optional[CorrelationMatrix] = None,
    config: Optional[CorrelationConfig] = None,
    method: Union[str, EstimateMethod] = EstimateMethod.CLOSED_FORM,
    n_samples: Optional[int] = None,
    seed: Optional[int] = None,
    legs: Optional[Sequence[Leg]] = None
) -> ParlayProbabilityEstimate:
    """
    Correlation-adjusted joint probability for a parlay.

    Args:
        leg_probs: Individual leg probabilities
        correlation_matrix: Output of build_correlation_matrix (None if not applicable)
        config: Heuristic constants and thresholds
        method: "closed_form" or "sampled"
        n_samples: Draws for the sampled method (default from config)
        seed: Seed for the sampled method
        legs: Legs used to name pairs in warnings

    Returns:
        ParlayProbabilityEstimate
    """
    config = config or get_default_config()
    method = EstimateMethod(method)
    leg_probs = [float(p) for p in leg_probs]
    independent = prod(leg_probs) if leg_probs else 0.0

    if correlation_matrix is None or correlation_matrix.avg_correlation == 0 or independent == 0:
        return ParlayProbabilityEstimate(
            independent_probability=independent,
            estimated_correlated_probability=independent,
            correlation_adjustment=1.0,
            method=EstimateMethod.INDEPENDENT,
            warnings=[],
        )

    if correlation_matrix.leg_count != len(leg_probs):
        raise ValueError("Correlation matrix size must match the number of legs.")

    warnings = describe_correlation_warnings(correlation_matrix, legs, config)
    used = EstimateMethod.CLOSED_FORM
    correlated: Optional[float] = None

    if method == EstimateMethod.SAMPLED:
        try:
            correlated, repaired = sampled_joint_probability(
                leg_probs,
                correlation_matrix.matrix,
                n_samples if n_samples is not None else config.default_samples,
                seed,
                config,
            )
            used = EstimateMethod.SAMPLED
            if repaired:
                warnings.append("Correlation matrix was adjusted to be positive semi-definite before sampling")
        except MatrixDecompositionError as e:
            logger.warning(f"Falling back to closed-form estimate: {e}")
            warnings.append("Correlation matrix could not be decomposed; a simplified estimate was used")

    if correlated is None:
        factor = closed_form_adjustment(
            correlation_matrix.avg_correlation,
            correlation_matrix.signed_avg_correlation,
            len(leg_probs),
            config,
        )
        correlated = independent * factor

    lower, upper = frechet_bounds(leg_probs)
    correlated = min(max(correlated, lower), upper)

    return ParlayProbabilityEstimate(
        independent_probability=independent,
        estimated_correlated_probability=correlated,
        correlation_adjustment=correlated / independent,
        method=used,
        warnings=warnings,
    )


def joint_probability(
    leg_probs: List[float],
    corr_matrix: Optional[MatrixLike] = None,
    config: Optional[CorrelationConfig] = None
) -> float:
    """
    Calculate joint probability for parlay legs with optional correlation adjustment.

    Args:
        leg_probs: List of individual leg probabilities
        corr_matrix: Optional correlation matrix (validated if provided)

    Returns:
        Joint probability (0.0 to 1.0)
    """
    baseline = prod(leg_probs) if leg_probs else 0.0
    if corr_matrix is None or len(leg_probs) < 2:
        return baseline
    validate_correlation_matrix(corr_matrix)
    arr = np.asarray(corr_matrix, dtype=float)
    off_diagonal = arr[np.triu_indices(len(leg_probs), k=1)]
    factor = closed_form_adjustment(
        float(np.mean(np.abs(off_diagonal))),
        float(np.mean(off_diagonal)),
        len(leg_probs),
        config,
    )
    lower, upper = frechet_bounds(leg_probs)
    return max(lower, min(upper, baseline * factor))


def adjusted_ev(
    joint_prob: float,
    odds: float,
    odds_type: str = "american"
) -> Dict[str, Any]:
    """
    Calculate EV metrics for a parlay and determine acceptance.

    Acceptance criteria:
        - Edge >= 3%
        - EV >= 2.5%

    Args:
        joint_prob: Correlation-adjusted parlay win probability
        odds: Parlay odds
        odds_type: Either "american" or "decimal"

    Returns:
        Dict with joint_prob, implied_prob, ev_percent, edge_percent, and accept flag
    """
    implied = implied_probability(odds, odds_type)
    ev_pct = expected_value_percent(joint_prob, odds, odds_type)
    edge_pct = (joint_prob - implied) * 100
    return {
        "joint_prob": joint_prob,
        "implied_prob": implied,
        "ev_percent": ev_pct,
        "edge_percent": edge_pct,
        "accept": edge_pct >= 3 and ev_pct >= 2.5
    }
