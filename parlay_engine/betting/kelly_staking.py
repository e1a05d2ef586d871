"""
Kelly Staking Module

Fractional-Kelly stake sizing for a parlay, capped at a share of bankroll.

Functions:
    - kelly_fraction: Calculate raw Kelly fraction
    - validate_kelly_inputs: Collect input errors before sizing
    - recommend_stake: Get stake recommendation with all adjustments
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from parlay_engine.betting.odds_eval import american_to_decimal

logger = logging.getLogger(__name__)

DEFAULT_KELLY_MULTIPLIER: float = 0.5
DEFAULT_MAX_BET_PERCENT: float = 0.05  # 5%
MIN_BANKROLL: float = 10.0


def kelly_fraction(
    true_prob: float,
    odds: float,
    odds_type: str = "american"
) -> float:
    """
    Calculate raw Kelly fraction for a bet.

    Args:
        true_prob: True probability of winning (0.0 to 1.0)
        odds: Odds value
        odds_type: Either "american" or "decimal"

    Returns:
        Kelly fraction (0.0 or positive)
    """
    dec = float(odds) if odds_type == "decimal" else american_to_decimal(odds)
    denom = dec - 1
    if denom <= 0:
        return 0.0
    edge = true_prob * denom - (1 - true_prob)
    return max(0.0, edge / denom)


def validate_kelly_inputs(
    true_prob: Optional[float],
    decimal_odds: Optional[float],
    bankroll: Optional[float],
    kelly_multiplier: Optional[float] = None,
    max_bet_percent: Optional[float] = None
) -> List[str]:
    """Return a list of human-readable problems; empty when inputs are usable."""
    errors: List[str] = []

    if true_prob is None:
        errors.append("Win probability is required")
    elif true_prob <= 0 or true_prob >= 1:
        errors.append("Win probability must be between 0.01 and 0.99")

    if decimal_odds is None:
        errors.append("Decimal odds are required")
    elif decimal_odds <= 1:
        errors.append("Decimal odds must be greater than 1")

    if bankroll is None:
        errors.append("Bankroll is required")
    elif bankroll < MIN_BANKROLL:
        errors.append(f"Minimum bankroll is ${MIN_BANKROLL:.0f}")

    if kelly_multiplier is not None and (kelly_multiplier <= 0 or kelly_multiplier > 1):
        errors.append("Kelly multiplier must be between 0.01 and 1")

    if max_bet_percent is not None and (max_bet_percent <= 0 or max_bet_percent > 0.25):
        errors.append("Max bet percent must be between 0.01 and 0.25")

    return errors


def _risk_level(fraction: float) -> str:
    if fraction <= 0.02:
        return "conservative"
    if fraction <= 0.04:
        return "moderate"
    if fraction <= 0.08:
        return "aggressive"
    return "reckless"


def recommend_stake(
    true_prob: float,
    odds: float,
    bankroll: float,
    kelly_multiplier: float = DEFAULT_KELLY_MULTIPLIER,
    max_bet_percent: float = DEFAULT_MAX_BET_PERCENT,
    odds_type: str = "american"
) -> Dict[str, float | str | None]:
    """
    Get stake recommendation with fractional Kelly and a bankroll cap.

    Args:
        true_prob: Win probability, typically the correlation-adjusted parlay probability
        odds: Parlay odds
        bankroll: Current bankroll amount
        kelly_multiplier: 1.0 full, 0.5 half, 0.25 quarter Kelly
        max_bet_percent: Hard cap as a share of bankroll
        odds_type: Either "american" or "decimal"

    Returns:
        Dict with full_kelly_fraction, adjusted_kelly_fraction, stake_amount,
        expected_value, edge_percent, risk_level and warning

    Raises:
        ValueError: If inputs fail validation
    """
    dec = float(odds) if odds_type == "decimal" else american_to_decimal(odds)
    errors = validate_kelly_inputs(true_prob, dec, bankroll, kelly_multiplier, max_bet_percent)
    if errors:
        raise ValueError("; ".join(errors))

    b = dec - 1
    q = 1 - true_prob
    full = (b * true_prob - q) / b
    adjusted = max(0.0, min(full * kelly_multiplier, max_bet_percent))
    stake = bankroll * adjusted
    ev = true_prob * stake * b - q * stake
    edge = (true_prob * dec - 1) * 100

    warning = None
    if full <= 0:
        warning = "No edge detected - Kelly suggests no bet"
    elif full > 0.25:
        warning = "Full Kelly suggests very aggressive sizing - use fractional Kelly"
    elif edge < 2:
        warning = "Thin edge (<2%) - consider passing or reducing stake"

    logger.debug(f"Kelly sizing: full {full:.4f}, adjusted {adjusted:.4f}, stake {stake:.2f}")

    return {
        "full_kelly_fraction": round(full, 4),
        "adjusted_kelly_fraction": round(adjusted, 4),
        "stake_amount": round(stake, 2),
        "expected_value": round(ev, 2),
        "edge_percent": round(edge, 2),
        "risk_level": _risk_level(adjusted),
        "warning": warning,
    }
