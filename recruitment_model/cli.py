# recruitment_model/cli.py
# Command-line interface entry point (argparse)
import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd

from recruitment_model.config.loaders import ConfigLoadError, load_config
from recruitment_model.engines.budget import Channel, optimize_budget_allocation
from recruitment_model.engines.capacity import (
    CapacityGuardrailEngine,
    physical_ceiling,
    physical_floor,
    validate_projection,
)
from recruitment_model.engines.cohort import analyze_cohorts
from recruitment_model.engines.forecast import ForecastEngine
from recruitment_model.engines.monitoring import ForecastMonitor
from recruitment_model.engines.monte_carlo import BaseScenario, Variability, monte_carlo_simulation
from recruitment_model.engines.retention import compute_dynamic_retention, retention_trend
from recruitment_model.errors import InvalidInput
from recruitment_model.logging_config import setup_logging
from recruitment_model.reporting.serialize import to_json
from recruitment_model.state.schema import COUNT, TOTAL_VALUE
from recruitment_model.utils.date_utils import to_timestamp

logger = logging.getLogger(__name__)

# Directory for log files
LOG_DIR = Path("output_dev/recruitment_logs")

CHANNEL_COLUMNS = ["channel_id", "cost_per_unit", "capacity", "roi"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recruitment-model",
        description="Capacity guardrails, retention, cohort, forecast and budget estimates.",
    )
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML configuration file.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help=f"Write rotating log files to this directory (e.g. {LOG_DIR})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def with_observations(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument(
            "--observations",
            type=str,
            required=True,
            help="CSV with timestamp, entity_id and optional value columns.",
        )
        p.add_argument("--as-of", type=str, default=None, help="Reference date (default: now).")
        return p

    g = with_observations(sub.add_parser("guardrails", help="Historical capacity guardrails."))
    g.add_argument("--proposed", type=float, default=None, help="Proposed end-of-period count.")
    g.add_argument("--current", type=float, default=0.0, help="Count achieved so far.")
    g.add_argument("--days-remaining", type=float, default=None)

    r = with_observations(sub.add_parser("retention", help="Dynamic retention estimate."))
    r.add_argument("--trend", action="store_true", help="Include monthly retention trend points.")

    with_observations(sub.add_parser("cohorts", help="Cohort permanence percentiles."))

    f = with_observations(sub.add_parser("forecast", help="Blended forecast for the current month."))
    f.add_argument("--value-field", choices=[COUNT, TOTAL_VALUE], default=COUNT)

    s = sub.add_parser("simulate", help="Monte Carlo recruitment outcome simulation.")
    s.add_argument("--budget", type=float, required=True)
    s.add_argument("--cpa", type=float, required=True)
    s.add_argument("--conversion", type=float, required=True)
    s.add_argument("--retention", type=float, required=True)
    s.add_argument("--budget-variance", type=float, default=0.0)
    s.add_argument("--cpa-variance", type=float, default=0.0)
    s.add_argument("--conversion-variance", type=float, default=0.0)
    s.add_argument("--retention-variance", type=float, default=0.0)
    s.add_argument("--iterations", type=int, default=None)
    s.add_argument("--seed", type=int, default=None)

    b = sub.add_parser("budget", help="Greedy budget allocation across channels.")
    b.add_argument("--total-budget", type=float, required=True)
    b.add_argument(
        "--channels",
        type=str,
        required=True,
        help=f"CSV with columns {', '.join(CHANNEL_COLUMNS)}.",
    )
    return parser


def read_observations(path: str) -> pd.DataFrame:
    try:
        return pd.read_csv(path)
    except FileNotFoundError as e:
        raise InvalidInput(f"Observation file not found: {path}") from e


def read_channels(path: str) -> List[Channel]:
    df = pd.read_csv(path)
    missing = [c for c in CHANNEL_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidInput(f"Channel file is missing columns: {missing}")
    return [
        Channel(
            channel_id=str(row["channel_id"]),
            cost_per_unit=float(row["cost_per_unit"]),
            capacity=float(row["capacity"]),
            roi=float(row["roi"]),
        )
        for _, row in df.iterrows()
    ]


def run(args: argparse.Namespace) -> dict:
    config = load_config(args.config)
    as_of = to_timestamp(args.as_of).to_pydatetime() if getattr(args, "as_of", None) else None

    if args.command == "guardrails":
        engine = CapacityGuardrailEngine(config.capacity)
        snapshot = engine.compute(read_observations(args.observations), as_of)
        out = {"snapshot": snapshot}
        if args.proposed is not None and args.days_remaining is not None:
            g = snapshot.guardrails
            out["warning"] = validate_projection(args.proposed, args.current, args.days_remaining, g)
            out["ceiling"] = physical_ceiling(args.current, args.days_remaining, g)
            out["floor"] = physical_floor(args.current, g.avg_daily_count, args.days_remaining, g)
        return out

    if args.command == "retention":
        observations = read_observations(args.observations)
        when = as_of or datetime.now()
        out = {"metrics": compute_dynamic_retention(observations, when, config.retention)}
        if args.trend:
            out["trend"] = retention_trend(observations, when)
        return out

    if args.command == "cohorts":
        when = as_of or datetime.now()
        analysis = analyze_cohorts(
            read_observations(args.observations),
            when,
            config.cohort,
            config.retention.inactivity_threshold_days,
        )
        return {"analysis": analysis}

    if args.command == "forecast":
        engine = ForecastEngine(config.forecast)
        result = engine.forecast_from_observations(
            read_observations(args.observations), as_of, args.value_field
        )
        monitor = ForecastMonitor(config.monitoring)
        return {"forecast": result, "alerts": monitor.observe(result)}

    if args.command == "simulate":
        seed = config.monte_carlo.random_seed if args.seed is None else args.seed
        result = monte_carlo_simulation(
            BaseScenario(args.budget, args.cpa, args.conversion, args.retention),
            Variability(
                args.budget_variance,
                args.cpa_variance,
                args.conversion_variance,
                args.retention_variance,
            ),
            iterations=args.iterations,
            rng=np.random.default_rng(seed),
            config=config.monte_carlo,
        )
        return {"simulation": result}

    if args.command == "budget":
        allocations = optimize_budget_allocation(args.total_budget, read_channels(args.channels))
        return {"allocations": allocations}

    raise InvalidInput(f"Unknown command {args.command!r}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the recruitment-model CLI."""
    args = build_parser().parse_args(argv)

    if args.log_dir:
        setup_logging(log_dir=Path(args.log_dir), debug=args.debug)
    else:
        logging.basicConfig(
            level=logging.DEBUG if args.debug else logging.WARNING,
            format="%(levelname)-8s %(message)s",
        )
    logger.info(f"Command line arguments: {sys.argv if argv is None else argv}")

    try:
        output = run(args)
    except (ConfigLoadError, InvalidInput) as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(to_json(output))
    return 0


if __name__ == "__main__":
    sys.exit(main())
