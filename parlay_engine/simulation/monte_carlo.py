"""
Correlated Monte Carlo Module

Simulates parlay outcomes with "upset factors" (underdog boosts, favourite
variance, chaos days) and leg dependencies modelled by a Gaussian copula
over the leg correlation matrix.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
from scipy.stats import norm

from parlay_engine.betting.correlation_engine import build_correlation_matrix, coerce_legs
from parlay_engine.betting.odds_eval import combined_decimal_odds
from parlay_engine.betting.parlay_tools import MatrixDecompositionError, cholesky_factor
from parlay_engine.foundation.model_config import CorrelationConfig, get_default_config
from parlay_engine.schema import CorrelationMatrix, Leg

logger = logging.getLogger(__name__)


@dataclass
class UpsetFactors:
    """Probability nudges applied on top of implied probabilities."""

    underdog_boost: float = 0.035        # +200 to +499
    heavy_underdog_boost: float = 0.06   # +500 or longer
    slight_underdog_boost: float = 0.02  # +100 to +199
    favorite_variance: float = 0.025     # -300 or shorter
    moderate_favorite_variance: float = 0.015  # -200 to -299
    chaos_day_chance: float = 0.05
    chaos_day_multiplier: float = 1.15


NO_UPSETS = UpsetFactors(
    underdog_boost=0.0,
    heavy_underdog_boost=0.0,
    slight_underdog_boost=0.0,
    favorite_variance=0.0,
    moderate_favorite_variance=0.0,
    chaos_day_chance=0.0,
    chaos_day_multiplier=1.0,
)


def adjusted_leg_probability(
    odds: float,
    implied: float,
    chaos_day: bool = False,
    factors: Optional[UpsetFactors] = None
) -> float:
    """
    Apply upset factors to one leg's implied probability.

    Returns:
        Adjusted probability clamped to [0.01, 0.95]
    """
    factors = factors or UpsetFactors()
    adjusted = implied

    if odds >= 500:
        adjusted += factors.heavy_underdog_boost
    elif odds >= 200:
        adjusted += factors.underdog_boost
    elif 0 < odds < 200:
        adjusted += factors.slight_underdog_boost
    elif odds <= -300:
        adjusted -= factors.favorite_variance
    elif odds <= -200:
        adjusted -= factors.moderate_favorite_variance

    if chaos_day and odds > 0:
        adjusted *= factors.chaos_day_multiplier

    return min(0.95, max(0.01, adjusted))


@dataclass
class ParlaySimulation:
    legs: List[Leg]
    stake: float = 10.0
    potential_payout: Optional[float] = None

    def __post_init__(self):
        self.legs = coerce_legs(self.legs)
        if self.stake <= 0:
            raise ValueError("Stake must be positive")
        if self.potential_payout is None:
            decimal = combined_decimal_odds(self.legs)
            self.potential_payout = self.stake * decimal if decimal else 0.0

    @property
    def profit_if_won(self) -> float:
        return self.potential_payout - self.stake


@dataclass
class MonteCarloResult:
    parlay_index: int
    simulations: int
    wins: int
    losses: int
    win_rate: float
    correlated_win_rate: float
    independent_win_rate: float
    pure_odds_win_rate: float
    correlation_impact: float
    probability_adjustment_ratio: float
    expected_profit: float
    median_outcome: float
    percentiles: Dict[str, float]
    payout_distribution: List[Dict[str, Any]]
    upset_stats: Dict[str, Any]
    correlation_matrix: Optional[CorrelationMatrix] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parlay_index": self.parlay_index,
            "simulations": self.simulations,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": round(self.win_rate, 4),
            "correlated_win_rate": round(self.correlated_win_rate, 4),
            "independent_win_rate": round(self.independent_win_rate, 4),
            "pure_odds_win_rate": round(self.pure_odds_win_rate, 4),
            "correlation_impact": round(self.correlation_impact, 4),
            "probability_adjustment_ratio": round(self.probability_adjustment_ratio, 4),
            "expected_profit": round(self.expected_profit, 2),
            "median_outcome": self.median_outcome,
            "percentiles": self.percentiles,
            "payout_distribution": self.payout_distribution,
            "upset_stats": self.upset_stats,
            "avg_correlation": self.correlation_matrix.avg_correlation if self.correlation_matrix else 0.0,
            "warnings": self.warnings,
        }


def _percentile(sorted_outcomes: np.ndarray, p: float) -> float:
    index = math.ceil((p / 100) * len(sorted_outcomes)) - 1
    return float(sorted_outcomes[max(0, index)])


def run_correlated_simulation(
    simulation: ParlaySimulation,
    iterations: int = 100000,
    upset_factors: Optional[UpsetFactors] = None,
    correlation_matrix: Optional[CorrelationMatrix] = None,
    seed: Optional[int] = None,
    config: Optional[CorrelationConfig] = None,
    historical: Any = None
) -> MonteCarloResult:
    """
    Run a correlated Monte Carlo simulation for a single parlay.

    Each iteration rolls a chaos day, draws correlated uniforms through the
    Gaussian copula and checks every leg against its upset-adjusted
    probability. Independent and pure-odds runs are tracked alongside for
    comparison.

    Args:
        simulation: Parlay legs, stake and payout
        iterations: Number of simulated parlays
        upset_factors: Probability nudges (defaults to UpsetFactors())
        correlation_matrix: Prebuilt matrix; built from the legs when omitted
        seed: Seed for a private random generator
        config: Correlation heuristics and repair parameters
        historical: Caller-supplied correlation samples for matrix building

    Returns:
        MonteCarloResult
    """
    if iterations <= 0:
        raise ValueError("iterations must be positive")
    factors = upset_factors or UpsetFactors()
    config = config or get_default_config()
    legs = simulation.legs
    n_legs = len(legs)
    if n_legs == 0:
        raise ValueError("Cannot simulate an empty parlay")

    rng = np.random.default_rng(seed)
    warnings: List[str] = []

    if correlation_matrix is None:
        correlation_matrix = build_correlation_matrix(legs, historical, config)

    L = None
    if correlation_matrix is not None:
        try:
            L, repaired = cholesky_factor(correlation_matrix.matrix, config)
            if repaired:
                warnings.append("Correlation matrix was adjusted to be positive semi-definite before sampling")
        except MatrixDecompositionError as e:
            logger.warning(f"Simulating legs independently: {e}")
            warnings.append("Correlation matrix could not be decomposed; legs simulated independently")

    odds = np.array([leg.odds for leg in legs], dtype=float)
    pure = np.array([leg.implied_probability for leg in legs])
    normal_probs = np.array([adjusted_leg_probability(o, p, False, factors) for o, p in zip(odds, pure)])
    chaos_probs = np.array([adjusted_leg_probability(o, p, True, factors) for o, p in zip(odds, pure)])

    chaos = rng.random(iterations) < factors.chaos_day_chance
    current = np.where(chaos[:, None], chaos_probs, normal_probs)

    if L is not None:
        correlated_u = norm.cdf(rng.standard_normal((iterations, n_legs)) @ L.T)
    else:
        correlated_u = rng.random((iterations, n_legs))
    independent_u = rng.random((iterations, n_legs))

    leg_hit = correlated_u <= current
    all_hit_correlated = np.all(leg_hit, axis=1)
    all_hit_independent = np.all(independent_u <= current, axis=1)
    all_hit_pure = np.all(independent_u <= pure, axis=1)

    upset_legs = leg_hit & (correlated_u > pure)
    had_upset = np.any(upset_legs, axis=1)

    wins = int(all_hit_correlated.sum())
    losses = iterations - wins
    profit = simulation.profit_if_won
    outcomes = np.where(all_hit_correlated, profit, -simulation.stake)
    sorted_outcomes = np.sort(outcomes)

    correlated_rate = wins / iterations * 100
    independent_rate = float(all_hit_independent.mean()) * 100
    pure_rate = float(all_hit_pure.mean()) * 100

    upset_stats = {
        "total_upsets": int(upset_legs.sum()),
        "upset_wins": int((all_hit_correlated & (had_upset | (chaos & ~all_hit_pure))).sum()),
        "pure_odds_win_rate": pure_rate,
        "adjusted_win_rate": correlated_rate,
        "upset_impact": correlated_rate - pure_rate,
        "chaos_day_wins": int((all_hit_correlated & chaos).sum()),
        "total_chaos_days": int(chaos.sum()),
    }

    payout_distribution = [
        {
            "range": f"Lose ${simulation.stake:.0f}",
            "count": losses,
            "percentage": losses / iterations * 100,
            "is_win": False,
        },
        {
            "range": f"Win ${profit:.0f}",
            "count": wins,
            "percentage": wins / iterations * 100,
            "is_win": True,
        },
    ]

    logger.info(f"Simulated {iterations} parlays over {n_legs} legs: {correlated_rate:.2f}% correlated win rate")

    return MonteCarloResult(
        parlay_index=0,
        simulations=iterations,
        wins=wins,
        losses=losses,
        win_rate=correlated_rate,
        correlated_win_rate=correlated_rate,
        independent_win_rate=independent_rate,
        pure_odds_win_rate=pure_rate,
        correlation_impact=correlated_rate - independent_rate,
        probability_adjustment_ratio=correlated_rate / independent_rate if independent_rate > 0 else 1.0,
        expected_profit=float(outcomes.mean()),
        median_outcome=_percentile(sorted_outcomes, 50),
        percentiles={
            "p5": _percentile(sorted_outcomes, 5),
            "p25": _percentile(sorted_outcomes, 25),
            "p50": _percentile(sorted_outcomes, 50),
            "p75": _percentile(sorted_outcomes, 75),
            "p95": _percentile(sorted_outcomes, 95),
        },
        payout_distribution=payout_distribution,
        upset_stats=upset_stats,
        correlation_matrix=correlation_matrix,
        warnings=warnings,
    )


@dataclass
class ComparisonResult:
    results: List[MonteCarloResult]
    comparison_data: List[Dict[str, Any]]
    best_by_win_rate: int
    best_by_expected_profit: int
    average_correlation_impact: float


def run_comparative_simulation(
    simulations: Sequence[Union[ParlaySimulation, Dict[str, Any]]],
    iterations: int = 100000,
    upset_factors: Optional[UpsetFactors] = None,
    seed: Optional[int] = None,
    config: Optional[CorrelationConfig] = None
) -> ComparisonResult:
    """
    Run correlated Monte Carlo for several parlays and compare them.

    Each parlay gets its own generator spawned from the seed, so results do
    not depend on the order parlays are listed in.
    """
    if not simulations:
        raise ValueError("At least one parlay is required for comparison")
    sims = [s if isinstance(s, ParlaySimulation) else ParlaySimulation(**s) for s in simulations]
    seeds = np.random.SeedSequence(seed).spawn(len(sims))

    results: List[MonteCarloResult] = []
    for idx, (sim, child_seed) in enumerate(zip(sims, seeds)):
        result = run_correlated_simulation(
            sim,
            iterations=iterations,
            upset_factors=upset_factors,
            seed=child_seed,
            config=config,
        )
        result.parlay_index = idx
        results.append(result)

    comparison_data = [
        {
            "name": f"Parlay {idx + 1}",
            "win_rate": r.win_rate,
            "loss_rate": 100 - r.win_rate,
            "independent_win_rate": r.independent_win_rate,
            "correlated_win_rate": r.correlated_win_rate,
            "correlation_impact": r.correlation_impact,
            "expected_profit": r.expected_profit,
            "potential_win": sims[idx].profit_if_won,
            "stake": sims[idx].stake,
            "pure_win_rate": r.pure_odds_win_rate,
            "upset_impact": r.upset_stats["upset_impact"],
            "avg_correlation": r.correlation_matrix.avg_correlation if r.correlation_matrix else 0.0,
            "has_high_correlation": bool(r.correlation_matrix and r.correlation_matrix.has_high_correlation),
        }
        for idx, r in enumerate(results)
    ]

    best_by_win_rate = max(range(len(results)), key=lambda i: results[i].win_rate)
    best_by_expected_profit = max(range(len(results)), key=lambda i: results[i].expected_profit)
    average_impact = sum(d["correlation_impact"] for d in comparison_data) / len(comparison_data)

    return ComparisonResult(
        results=results,
        comparison_data=comparison_data,
        best_by_win_rate=best_by_win_rate,
        best_by_expected_profit=best_by_expected_profit,
        average_correlation_impact=average_impact,
    )
