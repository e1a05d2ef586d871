"""
Parlay Correlation Engine Module

Estimates pairwise correlation between parlay legs from structured leg hints
(player, prop type, side, event) and assembles the leg correlation matrix.

Coefficients come from CorrelationConfig heuristics unless the caller supplies
historical co-occurrence samples, in which case the measured value is used
with high confidence.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from parlay_engine.foundation.model_config import CorrelationConfig, get_default_config
from parlay_engine.schema import (
    Confidence,
    CorrelationMatrix,
    CorrelationType,
    HistoricalCorrelation,
    Leg,
    LegCorrelation,
    Severity,
    Side,
)

logger = logging.getLogger(__name__)


PROP_ALIASES: Dict[str, str] = {
    "pts": "points",
    "point": "points",
    "reb": "rebounds",
    "rebound": "rebounds",
    "rebs": "rebounds",
    "ast": "assists",
    "assist": "assists",
    "asts": "assists",
    "3pm": "threes",
    "three_pointers_made": "threes",
    "three_pointers": "threes",
    "3_pointers": "threes",
    "3_pointers_made": "threes",
    "stl": "steals",
    "blk": "blocks",
    "pts_reb_ast": "pra",
    "points_rebounds_assists": "pra",
    "passing_yards": "pass_yds",
    "passing_touchdowns": "pass_tds",
    "passing_tds": "pass_tds",
    "passing_attempts": "pass_att",
    "rushing_yards": "rush_yds",
    "rushing_touchdowns": "rush_tds",
    "rushing_tds": "rush_tds",
    "receiving_yards": "rec_yds",
    "receiving_touchdowns": "rec_tds",
    "receiving_tds": "rec_tds",
    "rec": "receptions",
    "reception": "receptions",
    "goal": "goals",
    "shots_on_goal": "shots",
    "shot": "shots",
    "hit": "hits",
    "run": "runs",
    "rbis": "rbi",
    "strikeout": "strikeouts",
    "ks": "strikeouts",
    "spread": "spreads",
    "handicap": "spreads",
    "total": "totals",
    "game_total": "totals",
    "team_total": "team_totals",
    "ml": "moneyline",
}

# Checked in order; multi-word and more specific phrases first
_PROP_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("pts+reb+ast", "pra"),
    ("pts + reb + ast", "pra"),
    ("points + rebounds + assists", "pra"),
    ("passing yard", "pass_yds"),
    ("pass yd", "pass_yds"),
    ("passing td", "pass_tds"),
    ("pass td", "pass_tds"),
    ("rushing yard", "rush_yds"),
    ("rush yd", "rush_yds"),
    ("rushing td", "rush_tds"),
    ("rush td", "rush_tds"),
    ("receiving yard", "rec_yds"),
    ("rec yd", "rec_yds"),
    ("reception", "receptions"),
    ("three", "threes"),
    ("3-pointer", "threes"),
    ("3pm", "threes"),
    ("team total", "team_totals"),
    ("point", "points"),
    ("pts", "points"),
    ("assist", "assists"),
    ("rebound", "rebounds"),
    ("steal", "steals"),
    ("block", "blocks"),
    ("strikeout", "strikeouts"),
    ("rbi", "rbi"),
    ("shot", "shots"),
    ("goal", "goals"),
    ("spread", "spreads"),
    ("handicap", "spreads"),
    ("moneyline", "moneyline"),
    ("to win", "moneyline"),
    ("total", "totals"),
)

_PLAYER_OVER_UNDER = re.compile(r"^([A-Za-z\s.'-]+?)\s+(?:over|under|o/u)\b", re.IGNORECASE)
_PLAYER_DASH = re.compile(r"^([A-Za-z\s.'-]+?)\s*[-–]")
_OVER = re.compile(r"\bover\b", re.IGNORECASE)
_UNDER = re.compile(r"\bunder\b", re.IGNORECASE)


def normalize_prop_type(prop_type: Optional[str]) -> Optional[str]:
    """Normalize prop names for consistent lookup (e.g. "Passing Yards" -> "pass_yds")."""
    if not prop_type:
        return None
    key = prop_type.strip().lower().replace(" ", "_").replace("-", "_")
    return PROP_ALIASES.get(key, key)


def extract_prop_type(description: str) -> str:
    """
    Infer the prop market from a leg description.

    Returns:
        Canonical prop key, or "other" when nothing matches
    """
    desc = description.lower()
    for keyword, prop in _PROP_KEYWORDS:
        if keyword in desc:
            return prop
    return "other"


def extract_player_name(description: str) -> Optional[str]:
    """Player name from "Name Over/Under X" or "Name - Market" descriptions."""
    match = _PLAYER_OVER_UNDER.match(description.strip())
    if match is None:
        match = _PLAYER_DASH.match(description.strip())
    if match is None:
        return None
    name = match.group(1).strip()
    return name or None


def extract_side(description: str) -> Optional[Side]:
    has_over = bool(_OVER.search(description))
    has_under = bool(_UNDER.search(description))
    if has_over == has_under:
        return None
    return Side.OVER if has_over else Side.UNDER


def get_correlation_strength_label(corr: float) -> str:
    """Convert correlation value to human-readable label."""
    abs_corr = abs(corr)
    if abs_corr >= 0.5:
        return "Strong"
    elif abs_corr >= 0.3:
        return "Moderate"
    elif abs_corr >= 0.15:
        return "Weak"
    else:
        return "Minimal"


def get_correlation_severity(
    avg_correlation: float,
    config: Optional[CorrelationConfig] = None
) -> Severity:
    """
    Classify an average absolute correlation.

    > 0.5 is high, > 0.25 medium, > 0 low, otherwise none.
    """
    config = config or get_default_config()
    if avg_correlation > config.severity_high:
        return Severity.HIGH
    if avg_correlation > config.severity_medium:
        return Severity.MEDIUM
    if avg_correlation > config.severity_low:
        return Severity.LOW
    return Severity.NONE


def _same_text(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def _known_different(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.strip().lower() != b.strip().lower()


def classify_pair(
    leg_a: Leg,
    leg_b: Leg,
    config: Optional[CorrelationConfig] = None
) -> CorrelationType:
    """
    Determine how two legs are linked using their structured fields only.

    Args:
        leg_a: First leg
        leg_b: Second leg
        config: Supplies the set of pace-driven props

    Returns:
        CorrelationType for the pair
    """
    config = config or get_default_config()

    if _same_text(leg_a.player_name, leg_b.player_name):
        if _known_different(leg_a.event_id, leg_b.event_id):
            return CorrelationType.UNRELATED
        return CorrelationType.SAME_PLAYER

    if _same_text(leg_a.event_id, leg_b.event_id):
        prop_a = normalize_prop_type(leg_a.prop_type)
        prop_b = normalize_prop_type(leg_b.prop_type)
        if prop_a in config.pace_props and prop_b in config.pace_props:
            return CorrelationType.SAME_GAME_PACE
        return CorrelationType.SAME_GAME_OTHER

    return CorrelationType.UNRELATED


class HistoricalCorrelationLookup:
    """
    Index of caller-supplied correlation samples.

    Rows are keyed by (sport, unordered prop pair, correlation type). A row
    without a sport matches any sport; sport-specific rows take precedence.
    """

    def __init__(self, rows: Iterable[Union[HistoricalCorrelation, Dict[str, Any]]] = ()):
        self._rows: Dict[Tuple[Optional[str], Tuple[str, str], CorrelationType], HistoricalCorrelation] = {}
        for row in rows:
            if not isinstance(row, HistoricalCorrelation):
                row = HistoricalCorrelation.model_validate(row)
            key = (self._sport_key(row.sport), self._pair_key(row.prop_type_1, row.prop_type_2), row.correlation_type)
            self._rows[key] = row

    def __len__(self) -> int:
        return len(self._rows)

    @staticmethod
    def _sport_key(sport: Optional[str]) -> Optional[str]:
        return sport.strip().upper() if sport else None

    @staticmethod
    def _pair_key(prop_a: Optional[str], prop_b: Optional[str]) -> Tuple[str, str]:
        a = normalize_prop_type(prop_a) or "other"
        b = normalize_prop_type(prop_b) or "other"
        return (a, b) if a <= b else (b, a)

    def find(
        self,
        sport: Optional[str],
        prop_a: Optional[str],
        prop_b: Optional[str],
        correlation_type: CorrelationType
    ) -> Optional[HistoricalCorrelation]:
        pair = self._pair_key(prop_a, prop_b)
        sport_key = self._sport_key(sport)
        if sport_key is not None:
            row = self._rows.get((sport_key, pair, correlation_type))
            if row is not None:
                return row
        return self._rows.get((None, pair, correlation_type))


def _as_lookup(
    historical: Union[None, HistoricalCorrelationLookup, Iterable[Any]]
) -> Optional[HistoricalCorrelationLookup]:
    if historical is None or isinstance(historical, HistoricalCorrelationLookup):
        return historical
    return HistoricalCorrelationLookup(historical)


def _heuristic_correlation(
    leg_a: Leg,
    leg_b: Leg,
    corr_type: CorrelationType,
    config: CorrelationConfig
) -> float:
    if corr_type == CorrelationType.SAME_PLAYER:
        prop_a = normalize_prop_type(leg_a.prop_type)
        prop_b = normalize_prop_type(leg_b.prop_type)
        if prop_a and prop_a == prop_b:
            return config.same_player_same_prop
        if prop_a and prop_b:
            table_value = config.pair_correlation(prop_a, prop_b)
            if table_value is not None:
                return table_value
        return config.same_player_default
    if corr_type in (CorrelationType.SAME_GAME_PACE, CorrelationType.SAME_GAME_OTHER):
        prop_a = normalize_prop_type(leg_a.prop_type)
        prop_b = normalize_prop_type(leg_b.prop_type)
        # Game-level market pairs assume both legs back the same side of the game
        if prop_a and prop_b and not _known_different(leg_a.team, leg_b.team):
            table_value = config.same_game_pair_correlation(prop_a, prop_b)
            if table_value is not None:
                return table_value
    if corr_type == CorrelationType.SAME_GAME_PACE:
        return config.same_game_pace
    if corr_type == CorrelationType.SAME_GAME_OTHER:
        return config.same_game_other
    return config.unrelated


def estimate_pair_correlation(
    leg_a: Leg,
    leg_b: Leg,
    config: Optional[CorrelationConfig] = None,
    lookup: Optional[HistoricalCorrelationLookup] = None
) -> Tuple[float, CorrelationType, Confidence, int]:
    """
    Estimate the correlation between two legs.

    A caller-supplied sample wins over the heuristic table. Opposite sides
    (over vs under) flip the sign.

    Returns:
        Tuple of (correlation, correlation_type, confidence, sample_size)
    """
    config = config or get_default_config()
    corr_type = classify_pair(leg_a, leg_b, config)

    sample = None
    if lookup is not None:
        sample = lookup.find(leg_a.sport or leg_b.sport, leg_a.prop_type, leg_b.prop_type, corr_type)

    if sample is not None:
        correlation = sample.correlation_coefficient
        confidence = Confidence.HIGH
        sample_size = sample.sample_size
    else:
        correlation = _heuristic_correlation(leg_a, leg_b, corr_type, config)
        confidence = Confidence.LOW
        sample_size = 0

    if leg_a.side is not None and leg_b.side is not None and leg_a.side != leg_b.side:
        correlation = -correlation

    return max(-1.0, min(1.0, float(correlation))), corr_type, confidence, sample_size


def coerce_legs(legs: Iterable[Union[Leg, Dict[str, Any]]]) -> List[Leg]:
    """Validate mappings into Leg models; Leg instances pass through."""
    return [leg if isinstance(leg, Leg) else Leg.model_validate(leg) for leg in legs]


def build_correlation_matrix(
    legs: Sequence[Union[Leg, Dict[str, Any]]],
    historical: Union[None, HistoricalCorrelationLookup, Iterable[Any]] = None,
    config: Optional[CorrelationConfig] = None
) -> Optional[CorrelationMatrix]:
    """
    Builds a correlation matrix for a set of parlay legs.

    Args:
        legs: Ordered legs
        historical: Optional caller-supplied correlation samples
        config: Heuristic constants and thresholds

    Returns:
        CorrelationMatrix, or None when fewer than two legs make it not applicable
    """
    config = config or get_default_config()
    legs = coerce_legs(legs)
    n = len(legs)
    if n < 2:
        logger.debug(f"Correlation matrix not applicable for {n} leg(s)")
        return None

    lookup = _as_lookup(historical)
    matrix = np.eye(n)
    correlations: List[LegCorrelation] = []

    for i in range(n):
        for j in range(i + 1, n):
            correlation, corr_type, confidence, sample_size = estimate_pair_correlation(
                legs[i], legs[j], config, lookup
            )
            matrix[i, j] = correlation
            matrix[j, i] = correlation
            correlations.append(LegCorrelation(
                leg_index_1=i,
                leg_index_2=j,
                correlation=correlation,
                correlation_type=corr_type,
                confidence=confidence,
                sample_size=sample_size,
            ))

    values = np.array([c.correlation for c in correlations])
    avg_correlation = float(np.mean(np.abs(values)))
    signed_avg = float(np.mean(values))
    max_correlation = float(np.max(np.abs(values)))

    logger.debug(f"Built {n}x{n} correlation matrix (avg |corr| {avg_correlation:.3f}, max {max_correlation:.3f})")

    return CorrelationMatrix(
        matrix=matrix.tolist(),
        leg_count=n,
        correlations=correlations,
        avg_correlation=avg_correlation,
        signed_avg_correlation=signed_avg,
        max_correlation=max_correlation,
        has_high_correlation=max_correlation > config.high_pair_threshold,
        severity=get_correlation_severity(avg_correlation, config),
    )


def describe_correlation_warnings(
    correlation_matrix: CorrelationMatrix,
    legs: Optional[Sequence[Leg]] = None,
    config: Optional[CorrelationConfig] = None
) -> List[str]:
    """
    Human-readable flags for linked legs.

    Emits one warning per player carrying several legs that move together,
    one per repeated player/stat pair, one per same-player pair pulling in
    opposite directions, one per other pair above the high-pair threshold, and
    one when the average correlation makes the independent price misleading.
    """
    config = config or get_default_config()
    warnings: List[str] = []

    # Keyed case-insensitively, matching classify_pair
    player_legs: Dict[str, List[int]] = defaultdict(list)
    player_names: Dict[str, str] = {}
    for corr in correlation_matrix.correlations:
        i, j = corr.leg_index_1, corr.leg_index_2
        pct = f"{abs(corr.correlation) * 100:.0f}%"
        leg_i = legs[i] if legs is not None and i < len(legs) else None
        leg_j = legs[j] if legs is not None and j < len(legs) else None
        label = corr.correlation_type.value.replace("_", " ")

        if corr.correlation_type == CorrelationType.SAME_PLAYER and leg_i is not None and leg_i.player_name:
            player = leg_i.player_name.strip()
            prop_i = normalize_prop_type(leg_i.prop_type)
            if prop_i and leg_j is not None and prop_i == normalize_prop_type(leg_j.prop_type):
                warnings.append(f"Legs {i + 1} & {j + 1} repeat the same player/stat ({player} {prop_i})")
            if corr.correlation > 0:
                key = player.lower()
                player_names.setdefault(key, player)
                player_legs[key].extend([i, j])
            elif corr.correlation < 0:
                warnings.append(
                    f"Legs {i + 1} & {j + 1} are {pct} anti-correlated ({label}): "
                    f"{leg_i.description} / {leg_j.description if leg_j is not None else player}"
                )
            continue

        if abs(corr.correlation) > config.high_pair_threshold:
            direction = "correlated" if corr.correlation > 0 else "anti-correlated"
            if leg_i is not None and leg_j is not None:
                warnings.append(
                    f"Legs {i + 1} & {j + 1} are {pct} {direction} ({label}): "
                    f"{leg_i.description} / {leg_j.description}"
                )
            else:
                warnings.append(f"Legs {i + 1} & {j + 1} are {pct} {direction} ({label})")

    for key, indices in player_legs.items():
        positions = sorted(set(indices))
        numbered = ", ".join(str(k + 1) for k in positions)
        warnings.append(f"{len(positions)} legs on {player_names[key]} move together (legs {numbered})")

    if correlation_matrix.avg_correlation > config.avg_warning_threshold:
        warnings.append(
            f"Average correlation of {correlation_matrix.avg_correlation * 100:.0f}% detected - "
            f"independent odds are misleading"
        )

    return warnings
