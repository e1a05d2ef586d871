"""
Odds & EV Evaluation Module

Converts odds to implied probabilities, combines leg prices into a parlay
price, and computes EV/edge metrics.

Functions:
    - american_to_implied: Implied probability from American odds
    - american_to_decimal: Convert American odds to decimal format
    - decimal_to_american: Convert decimal odds back to American format
    - implied_probability: Implied probability from American or decimal odds
    - combine_odds: Parlay price (American) from a list of legs
    - combined_win_probability: Naive parlay win probability assuming independence
    - expected_value: Calculate EV in currency units
    - expected_value_percent: Calculate EV as percentage
    - edge_percentage: Calculate edge between true and implied probability
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List, Optional


class InvalidOddsError(ValueError):
    """Raised when odds cannot be priced (zero, non-finite, or decimal <= 1)."""


def _check_american(odds: float) -> float:
    try:
        odds = float(odds)
    except (TypeError, ValueError):
        raise InvalidOddsError(f"American odds must be numeric, got {odds!r}")
    if not math.isfinite(odds) or odds == 0:
        raise InvalidOddsError(f"Invalid American odds: {odds}")
    return odds


def american_to_implied(odds: float) -> float:
    """
    Calculate implied probability from American odds.

    Args:
        odds: American odds value (positive or negative, never 0)

    Returns:
        Implied probability (0.0 to 1.0, exclusive)

    Raises:
        InvalidOddsError: If odds are 0 or not finite
    """
    odds = _check_american(odds)
    if odds > 0:
        return 100 / (odds + 100)
    return abs(odds) / (abs(odds) + 100)


def american_to_decimal(odds: float) -> float:
    """
    Convert American odds to decimal odds.

    Args:
        odds: American odds value (positive or negative)

    Returns:
        Decimal odds equivalent
    """
    odds = _check_american(odds)
    if odds > 0:
        return 1 + odds / 100
    return 1 + 100 / abs(odds)


def decimal_to_american(decimal_odds: float) -> int:
    """
    Convert decimal odds to rounded American odds.

    Args:
        decimal_odds: Decimal odds (> 1.0)

    Returns:
        American odds, positive when decimal >= 2.0
    """
    decimal_odds = float(decimal_odds)
    if not math.isfinite(decimal_odds) or decimal_odds <= 1:
        raise InvalidOddsError(f"Decimal odds must be greater than 1, got {decimal_odds}")
    if decimal_odds >= 2:
        return int(round((decimal_odds - 1) * 100))
    return int(round(-100 / (decimal_odds - 1)))


def decimal_to_implied(decimal_odds: float) -> float:
    decimal_odds = float(decimal_odds)
    if not math.isfinite(decimal_odds) or decimal_odds <= 1:
        raise InvalidOddsError(f"Decimal odds must be greater than 1, got {decimal_odds}")
    return 1 / decimal_odds


def implied_probability(odds: float, odds_type: str = "american") -> float:
    """
    Calculate implied probability from odds.

    Args:
        odds: Odds value
        odds_type: Either "american" or "decimal"

    Returns:
        Implied probability (0.0 to 1.0)
    """
    if odds_type == "decimal":
        return decimal_to_implied(odds)
    return american_to_implied(odds)


def leg_odds(leg: Any) -> float:
    """Pull American odds from a Leg, a mapping with an "odds" key, or a bare number."""
    if isinstance(leg, (int, float)):
        return leg
    if isinstance(leg, dict):
        if "odds" not in leg:
            raise InvalidOddsError(f"Leg has no odds: {leg!r}")
        return leg["odds"]
    odds = getattr(leg, "odds", None)
    if odds is None:
        raise InvalidOddsError(f"Leg has no odds: {leg!r}")
    return odds


def combined_decimal_odds(legs: Iterable[Any]) -> Optional[float]:
    """Product of every leg's decimal odds, or None for an empty parlay."""
    odds_list: List[float] = [leg_odds(leg) for leg in legs]
    if not odds_list:
        return None
    return math.prod(american_to_decimal(o) for o in odds_list)


def combine_odds(legs: Iterable[Any]) -> Optional[int]:
    """
    Calculate the parlay price from individual legs.

    Args:
        legs: Legs (Leg objects, dicts with "odds", or American odds values)

    Returns:
        Combined American odds, or None for an empty parlay
    """
    legs = list(legs)
    if not legs:
        return None
    if len(legs) == 1:
        return int(_check_american(leg_odds(legs[0])))
    return decimal_to_american(combined_decimal_odds(legs))


def combined_win_probability(legs: Iterable[Any]) -> float:
    """
    Naive parlay win probability: product of leg implied probabilities.

    Assumes the legs are independent; the correlation estimators adjust this
    baseline.

    Returns:
        Probability (0.0 to 1.0); 0.0 for an empty parlay
    """
    probs = [american_to_implied(leg_odds(leg)) for leg in legs]
    if not probs:
        return 0.0
    return math.prod(probs)


def expected_value(
    true_prob: float,
    odds: float,
    stake: float = 1.0,
    odds_type: str = "american"
) -> float:
    """
    Calculate expected value in currency units.

    Args:
        true_prob: True probability of winning (0.0 to 1.0)
        odds: Odds value
        stake: Bet amount
        odds_type: Either "american" or "decimal"

    Returns:
        Expected value in same units as stake
    """
    dec = float(odds) if odds_type == "decimal" else american_to_decimal(odds)
    win_return = stake * (dec - 1)
    lose = stake
    return true_prob * win_return - (1 - true_prob) * lose


def expected_value_percent(
    true_prob: float,
    odds: float,
    odds_type: str = "american"
) -> float:
    """Expected value as a percentage of stake."""
    stake = 1.0
    return expected_value(true_prob, odds, stake, odds_type) / stake * 100


def edge_percentage(true_prob: float, implied_prob: float) -> float:
    """
    Calculate edge percentage between true and implied probability.

    Returns:
        Edge as percentage points
    """
    return (true_prob - implied_prob) * 100
