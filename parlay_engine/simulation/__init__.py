"""Simulation modules: correlated Monte Carlo with upset factors."""

from parlay_engine.simulation.monte_carlo import (
    UpsetFactors,
    NO_UPSETS,
    ParlaySimulation,
    MonteCarloResult,
    ComparisonResult,
    adjusted_leg_probability,
    run_correlated_simulation,
    run_comparative_simulation
)

__all__ = [
    'UpsetFactors',
    'NO_UPSETS',
    'ParlaySimulation',
    'MonteCarloResult',
    'ComparisonResult',
    'adjusted_leg_probability',
    'run_correlated_simulation',
    'run_comparative_simulation'
]
