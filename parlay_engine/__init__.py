"""
Parlay Correlation Engine

Odds arithmetic, heuristic leg correlation and correlation-adjusted joint
probability estimates for multi-leg sports parlays.
"""

__version__ = "1.0.0"

from parlay_engine.schema import (
    Leg,
    HistoricalCorrelation,
    CorrelationMatrix,
    ParlayProbabilityEstimate,
    ParlayReport,
)
from parlay_engine.foundation.model_config import CorrelationConfig, load_config_from_env
from parlay_engine.betting.parlay_slip import ParlaySlip
from parlay_engine.analysis.parlay_analysis import analyze_parlay, quick_correlation_analysis
