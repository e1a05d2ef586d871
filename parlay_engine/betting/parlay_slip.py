"""
Parlay Slip Module

In-memory ordered collection of parlay legs, de-duplicated by description.
Persisting a slip is the caller's concern; `to_dict`/`from_dict` give a
JSON-friendly round trip.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from parlay_engine.betting.odds_eval import combine_odds, combined_win_probability
from parlay_engine.schema import Leg, ParlayReport

logger = logging.getLogger(__name__)


class ParlaySlip:
    """Mutable bet slip holding the legs a user is building into a parlay."""

    def __init__(self, legs: Optional[List[Union[Leg, Dict[str, Any]]]] = None):
        self._legs: List[Leg] = []
        for leg in legs or []:
            self.add_leg(leg)

    @property
    def legs(self) -> List[Leg]:
        return list(self._legs)

    @property
    def leg_count(self) -> int:
        return len(self._legs)

    def __len__(self) -> int:
        return len(self._legs)

    def find_leg(self, description: str) -> Optional[Leg]:
        key = " ".join(description.lower().split())
        for leg in self._legs:
            if leg.dedup_key == key:
                return leg
        return None

    def has_leg(self, description: str) -> bool:
        return self.find_leg(description) is not None

    def add_leg(self, leg: Union[Leg, Dict[str, Any]]) -> Leg:
        """
        Add a leg unless one with the same description is already on the slip.

        Returns:
            The added leg, or the existing leg when the description is a duplicate
        """
        if not isinstance(leg, Leg):
            leg = Leg.model_validate(leg)
        existing = self.find_leg(leg.description)
        if existing is not None:
            logger.info(f"Leg already on slip: {leg.description}")
            return existing
        self._legs.append(leg)
        logger.debug(f"Added leg {leg.id}: {leg.description}")
        return leg

    def remove_leg(self, leg_id: str) -> bool:
        before = len(self._legs)
        self._legs = [leg for leg in self._legs if leg.id != leg_id]
        return len(self._legs) < before

    def clear(self) -> None:
        self._legs = []

    @property
    def combined_odds(self) -> Optional[int]:
        return combine_odds(self._legs)

    @property
    def win_probability(self) -> float:
        """Naive win probability (0.0 to 1.0) assuming independent legs."""
        return combined_win_probability(self._legs)

    def analyze(self, **kwargs: Any) -> ParlayReport:
        """Run analyze_parlay over the current legs; kwargs are passed through."""
        from parlay_engine.analysis.parlay_analysis import analyze_parlay
        return analyze_parlay(self._legs, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {"legs": [leg.model_dump(mode="json", exclude={"implied_probability"}) for leg in self._legs]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParlaySlip":
        return cls(data.get("legs") or [])
