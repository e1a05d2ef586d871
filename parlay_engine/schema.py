"""
Parlay Engine Schema

Defines strict Pydantic models for parlay legs, caller-supplied correlation
samples and the analysis records returned to callers.
Legs are validated here so that malformed odds never reach the probability math.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field, field_validator


class Side(str, Enum):
    OVER = "over"
    UNDER = "under"


class CorrelationType(str, Enum):
    SAME_PLAYER = "same_player"
    SAME_GAME_PACE = "same_game_pace"
    SAME_GAME_OTHER = "same_game_other"
    UNRELATED = "unrelated"


class Confidence(str, Enum):
    HIGH = "high"
    LOW = "low"


class Severity(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EstimateMethod(str, Enum):
    INDEPENDENT = "independent"
    CLOSED_FORM = "closed_form"
    SAMPLED = "sampled"


class Leg(BaseModel):
    """One selection within a parlay."""
    id: str = Field(default_factory=lambda: uuid4().hex, description="Opaque identifier, unique within a parlay")
    description: str = Field(description="Human-readable leg text (e.g., 'LeBron James Over 25.5 Points')")
    odds: int = Field(description="American odds (e.g., -110, +150)")
    player_name: Optional[str] = Field(default=None, description="Player the prop is on")
    prop_type: Optional[str] = Field(default=None, description="Prop market (e.g., 'points', 'pass_yds')")
    side: Optional[Side] = Field(default=None, description="Over or under")
    line: Optional[float] = Field(default=None, description="Prop line value (e.g., 25.5)")
    team: Optional[str] = Field(default=None, description="Team of the player or side")
    sport: Optional[str] = Field(default=None, description="Sport/league code (e.g., 'NBA')")
    event_id: Optional[str] = Field(default=None, description="Identifier of the game the leg belongs to")

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("description must not be empty")
        return value

    @field_validator("odds", mode="before")
    @classmethod
    def _odds_non_zero(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                value = float(value.strip().lstrip("+"))
            except ValueError:
                return value
        if isinstance(value, float):
            if not math.isfinite(value) or not value.is_integer():
                raise ValueError(f"American odds must be a finite whole number, got {value}")
            value = int(value)
        if value == 0:
            raise ValueError("American odds cannot be 0")
        return value

    @field_validator("side", mode="before")
    @classmethod
    def _normalize_side(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value in ("o", "over"):
                return Side.OVER
            if value in ("u", "under"):
                return Side.UNDER
        return value

    @computed_field
    @property
    def implied_probability(self) -> float:
        """Win probability implied by the odds, recomputed on every access."""
        from parlay_engine.betting.odds_eval import american_to_implied
        return american_to_implied(self.odds)

    @property
    def dedup_key(self) -> str:
        return " ".join(self.description.lower().split())

    @classmethod
    def from_description(cls, description: str, odds: int, **fields: Any) -> "Leg":
        """
        Build a leg, filling missing player/prop/side hints from the description.

        Args:
            description: Free-text leg description
            odds: American odds
            **fields: Any other Leg fields; explicit values win over parsed ones

        Returns:
            Leg instance
        """
        from parlay_engine.betting.correlation_engine import (
            extract_player_name,
            extract_prop_type,
            extract_side,
        )

        if fields.get("player_name") is None:
            fields["player_name"] = extract_player_name(description)
        if fields.get("prop_type") is None:
            prop = extract_prop_type(description)
            fields["prop_type"] = None if prop == "other" else prop
        if fields.get("side") is None:
            fields["side"] = extract_side(description)
        return cls(description=description, odds=odds, **fields)


class HistoricalCorrelation(BaseModel):
    """Observed co-occurrence statistics for a prop pair, supplied by the caller."""
    sport: Optional[str] = Field(default=None, description="Sport the sample applies to; None for any sport")
    prop_type_1: str
    prop_type_2: str
    correlation_type: CorrelationType
    correlation_coefficient: float = Field(ge=-1.0, le=1.0)
    sample_size: int = Field(gt=0)


class LegCorrelation(BaseModel):
    leg_index_1: int
    leg_index_2: int
    correlation: float
    correlation_type: CorrelationType
    confidence: Confidence
    sample_size: int = 0


class CorrelationMatrix(BaseModel):
    """Pairwise correlation estimates over an ordered leg list."""
    matrix: List[List[float]]
    leg_count: int
    correlations: List[LegCorrelation]
    avg_correlation: float = Field(description="Mean of absolute off-diagonal values")
    signed_avg_correlation: float = Field(description="Mean of signed off-diagonal values")
    max_correlation: float = Field(description="Largest absolute off-diagonal value")
    has_high_correlation: bool
    severity: Severity


class ParlayProbabilityEstimate(BaseModel):
    independent_probability: float
    estimated_correlated_probability: float
    correlation_adjustment: float = Field(description="correlated / independent; >1 means legs tend to hit together")
    method: EstimateMethod = EstimateMethod.INDEPENDENT
    warnings: List[str] = Field(default_factory=list)


class ParlayReport(BaseModel):
    """Display-ready summary of one parlay analysis."""
    leg_count: int
    combined_odds: Optional[int] = None
    decimal_odds: Optional[float] = None
    estimate: Optional[ParlayProbabilityEstimate] = None
    correlation_matrix: Optional[CorrelationMatrix] = None
    matrix_status: str = Field(default="not_applicable", description="ok, not_applicable or unavailable")
    severity: Severity = Severity.NONE
    expected_value_percent: Optional[float] = None
    edge_percent: Optional[float] = None
    warnings: List[str] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
