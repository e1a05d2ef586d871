#!/usr/bin/env python3
"""
Parlay Correlation Engine - Command Line

Reads parlay legs from a JSON file and prints the analysis as JSON.

Usage:
    python main.py --analyze legs.json                    # Closed-form correlation analysis
    python main.py --analyze legs.json --method sampled   # Gaussian-copula sampled estimate
    python main.py --simulate legs.json --stake 10        # Monte Carlo with upset factors
    python main.py --analyze legs.json --bankroll 500     # Add a Kelly stake recommendation

The legs file holds either a list of legs or an object with "legs" and an
optional "historical" list of correlation samples.
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from parlay_engine.analysis.parlay_analysis import analyze_parlay
from parlay_engine.betting.kelly_staking import recommend_stake
from parlay_engine.foundation.model_config import CorrelationConfig, load_config_from_env
from parlay_engine.schema import Leg
from parlay_engine.simulation.monte_carlo import ParlaySimulation, run_correlated_simulation

logger = logging.getLogger("parlay_engine")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def save_output(data: dict, filename: str, output_dir: str = "outputs") -> str:
    """Save output data to a timestamped JSON file and return the path."""
    os.makedirs(output_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    filepath = os.path.join(output_dir, f"{filename}_{timestamp}.json")
    with open(filepath, "w") as f:
        json.dump(data, f, indent=2, default=str)
    logger.info(f"Output saved to: {filepath}")
    return filepath


def load_legs_file(path: str) -> Tuple[List[Dict[str, Any]], Optional[List[Dict[str, Any]]]]:
    """Read legs (and optional historical samples) from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, list):
        return payload, None
    return payload.get("legs", []), payload.get("historical")


def build_legs(raw_legs: List[Dict[str, Any]]) -> List[Leg]:
    """Validate raw legs, parsing player/prop/side hints out of descriptions."""
    legs = []
    for raw in raw_legs:
        fields = dict(raw)
        description = fields.pop("description", "")
        odds = fields.pop("odds", 0)
        legs.append(Leg.from_description(description, odds, **fields))
    return legs


def run_analyze(
    legs: List[Leg],
    historical: Optional[List[Dict[str, Any]]],
    config: CorrelationConfig,
    method: str = "closed_form",
    n_samples: Optional[int] = None,
    seed: Optional[int] = None,
    bankroll: Optional[float] = None
) -> dict:
    """Correlation analysis, plus a stake recommendation when a bankroll is given."""
    logger.info(f"Analyzing {len(legs)}-leg parlay ({method})")
    report = analyze_parlay(legs, historical, config, method=method, n_samples=n_samples, seed=seed)
    result = report.to_dict()

    if bankroll is not None and report.estimate is not None and report.combined_odds is not None:
        try:
            result["stake_recommendation"] = recommend_stake(
                report.estimate.estimated_correlated_probability,
                report.combined_odds,
                bankroll,
            )
        except ValueError as e:
            logger.warning(f"Stake recommendation skipped: {e}")
            result["stake_recommendation"] = {"error": str(e)}
    return result


def run_simulate(
    legs: List[Leg],
    historical: Optional[List[Dict[str, Any]]],
    config: CorrelationConfig,
    stake: float = 10.0,
    iterations: int = 100000,
    seed: Optional[int] = None
) -> dict:
    """Monte Carlo simulation of the parlay with upset factors."""
    logger.info(f"Simulating {len(legs)}-leg parlay, {iterations} iterations")
    simulation = ParlaySimulation(legs=legs, stake=stake)
    result = run_correlated_simulation(
        simulation,
        iterations=iterations,
        seed=seed,
        config=config,
        historical=historical,
    )
    return result.to_dict()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the parlay correlation engine."""
    parser = argparse.ArgumentParser(
        description="Parlay Correlation Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --analyze legs.json
  python main.py --analyze legs.json --method sampled --samples 20000 --seed 7
  python main.py --simulate legs.json --stake 25 --iterations 50000
  python main.py --analyze legs.json --bankroll 500 --save
        """
    )

    parser.add_argument("--analyze", metavar="LEGS_JSON",
                        help="Analyze the parlay in a legs file")
    parser.add_argument("--simulate", metavar="LEGS_JSON",
                        help="Run a Monte Carlo simulation of the parlay in a legs file")

    parser.add_argument("--historical", metavar="JSON",
                        help="Correlation samples file (overrides samples in the legs file)")
    parser.add_argument("--method", choices=["closed_form", "sampled"], default="closed_form",
                        help="Joint probability method (default: closed_form)")
    parser.add_argument("--samples", type=int, default=None,
                        help="Draws for the sampled method (default from config)")
    parser.add_argument("--iterations", type=int, default=100000,
                        help="Simulation iterations (default: 100000)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for sampled estimates and simulations")
    parser.add_argument("--stake", type=float, default=10.0,
                        help="Stake for --simulate (default: 10)")
    parser.add_argument("--bankroll", type=float, default=None,
                        help="Bankroll for a Kelly stake recommendation")
    parser.add_argument("--env-file", default=None,
                        help="Path to a .env file with PARLAY_* overrides")
    parser.add_argument("--save", action="store_true",
                        help="Also write the result to outputs/")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable verbose output")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    path = args.analyze or args.simulate
    if not path:
        parser.print_help()
        return 1

    try:
        raw_legs, historical = load_legs_file(path)
        if args.historical:
            with open(args.historical, "r", encoding="utf-8") as f:
                historical = json.load(f)
        legs = build_legs(raw_legs)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Could not load legs from {path}: {e}")
        print(json.dumps({"error": str(e), "status": "failed"}, indent=2))
        return 2

    config = load_config_from_env(args.env_file)

    try:
        if args.analyze:
            result = run_analyze(legs, historical, config, args.method, args.samples, args.seed, args.bankroll)
            name = "parlay_analysis"
        else:
            result = run_simulate(legs, historical, config, args.stake, args.iterations, args.seed)
            name = "parlay_simulation"
    except (ValueError, ValidationError) as e:
        logger.error(f"Run failed: {e}")
        print(json.dumps({"error": str(e), "status": "failed"}, indent=2))
        return 2

    if args.save:
        result["output_file"] = save_output(result, name)

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
