"""
Parlay Analysis Module

Assembles odds, correlation and probability results into display-ready reports.
"""

from parlay_engine.analysis.parlay_analysis import (
    analyze_parlay,
    quick_correlation_analysis,
    format_correlation_impact,
    matrix_grid
)

__all__ = [
    "analyze_parlay",
    "quick_correlation_analysis",
    "format_correlation_impact",
    "matrix_grid"
]
