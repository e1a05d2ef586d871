"""
Model Configuration Module

Centralized configuration for the correlation heuristics, warning thresholds,
severity bands and estimator parameters.

The correlation coefficients below are heuristic placeholders, not values
fitted to historical outcomes. Override them per call with a custom
CorrelationConfig, or per deployment through PARLAY_* environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


# Same-player coefficients by canonical prop pair (order-insensitive)
DEFAULT_PAIR_CORRELATIONS: Dict[Tuple[str, str], float] = {
    ("points", "assists"): 0.35,
    ("points", "rebounds"): 0.25,
    ("rebounds", "assists"): 0.15,
    ("points", "threes"): 0.40,
    ("rebounds", "blocks"): 0.30,
    ("steals", "assists"): 0.15,
    ("pass_yds", "pass_tds"): 0.55,
    ("pass_yds", "pass_att"): 0.40,
    ("rush_yds", "rush_tds"): 0.40,
    ("rec_yds", "receptions"): 0.65,
    ("rec_yds", "rec_tds"): 0.35,
    ("hits", "runs"): 0.30,
    ("runs", "rbi"): 0.25,
    ("goals", "assists"): 0.35,
    ("shots", "goals"): 0.25,
}

# Game-level market pairs within one game (order-insensitive)
DEFAULT_SAME_GAME_PAIR_CORRELATIONS: Dict[Tuple[str, str], float] = {
    ("moneyline", "spreads"): 0.92,
    ("spreads", "totals"): 0.15,
    ("points", "team_totals"): 0.45,
}

# Prop markets driven by game pace / scoring environment
DEFAULT_PACE_PROPS: Tuple[str, ...] = (
    "points",
    "rebounds",
    "assists",
    "threes",
    "pra",
    "totals",
    "team_totals",
    "pass_yds",
    "pass_att",
    "rush_yds",
    "rec_yds",
    "receptions",
    "shots",
    "hits",
)


@dataclass(frozen=True)
class CorrelationConfig:
    """Named record of every heuristic constant used by the estimators."""

    same_player_default: float = 0.30
    same_player_same_prop: float = 0.80
    same_game_pace: float = 0.20
    same_game_other: float = 0.10
    unrelated: float = 0.0
    pair_correlations: Dict[Tuple[str, str], float] = field(
        default_factory=lambda: dict(DEFAULT_PAIR_CORRELATIONS)
    )
    same_game_pair_correlations: Dict[Tuple[str, str], float] = field(
        default_factory=lambda: dict(DEFAULT_SAME_GAME_PAIR_CORRELATIONS)
    )
    pace_props: Tuple[str, ...] = DEFAULT_PACE_PROPS

    high_pair_threshold: float = 0.5
    avg_warning_threshold: float = 0.2
    severity_high: float = 0.5
    severity_medium: float = 0.25
    severity_low: float = 0.0

    closed_form_strength: float = 0.3
    psd_min_eigenvalue: float = 1e-6
    psd_tolerance: float = 1e-10
    default_samples: int = 50000

    def pair_correlation(self, prop_a: str, prop_b: str) -> Optional[float]:
        """Look up a same-player coefficient regardless of pair order."""
        value = self.pair_correlations.get((prop_a, prop_b))
        if value is None:
            value = self.pair_correlations.get((prop_b, prop_a))
        return value

    def same_game_pair_correlation(self, prop_a: str, prop_b: str) -> Optional[float]:
        """Look up a game-level market pair coefficient regardless of pair order."""
        value = self.same_game_pair_correlations.get((prop_a, prop_b))
        if value is None:
            value = self.same_game_pair_correlations.get((prop_b, prop_a))
        return value


def get_default_config() -> CorrelationConfig:
    """Returns a CorrelationConfig populated with the built-in defaults."""
    return CorrelationConfig()


def get_severity_thresholds(config: Optional[CorrelationConfig] = None) -> Dict[str, float]:
    """
    Returns the average-correlation bands used for severity labels.

    Returns:
        Dict with keys "high", "medium", "low"; a label applies when the
        average correlation is strictly greater than its value.
    """
    config = config or get_default_config()
    return {
        "high": config.severity_high,
        "medium": config.severity_medium,
        "low": config.severity_low,
    }


_ENV_PREFIX = "PARLAY_"


def load_config_from_env(env_file: Optional[str] = None) -> CorrelationConfig:
    """
    Build a CorrelationConfig with scalar overrides from the environment.

    Each scalar field can be overridden by an upper-cased variable with the
    PARLAY_ prefix, e.g. PARLAY_SAME_GAME_PACE=0.25 or PARLAY_DEFAULT_SAMPLES=20000.

    Args:
        env_file: Path to a .env file. Defaults to .env in the working directory.

    Returns:
        CorrelationConfig with overrides applied
    """
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    base = get_default_config()
    overrides = {}
    for f in fields(base):
        if f.type not in ("float", "int"):
            continue
        raw = os.getenv(f"{_ENV_PREFIX}{f.name.upper()}")
        if raw is None:
            continue
        try:
            overrides[f.name] = int(raw) if f.type == "int" else float(raw)
        except ValueError:
            logger.warning(f"Ignoring {_ENV_PREFIX}{f.name.upper()}={raw!r}: not a number")

    if overrides:
        logger.info(f"Loaded correlation config overrides: {sorted(overrides)}")
    return replace(base, **overrides)
