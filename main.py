"""
Food Access Placement Engine - batch entry point.

Reads a city input document (bounding box, outlets, climate summary,
optional demographics) and an optional run config, runs the optimizer and
writes the output record as JSON.

    python main.py city.json --config run.json --output result.json --csv picks.csv
"""

import json
import logging
import random
import sys
from pathlib import Path

from core.config import PlacementConfig
from core.engine import PlacementEngine
from core.impact import ImpactAggregator
from core.models import ConfigurationError
from loaders.soil import get_soil_loader
from loaders.vacant_spaces import get_vacant_space_loader

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s │ %(name)-20s │ %(levelname)-8s │ %(message)s',
    datefmt='%H:%M:%S',
    handlers=[
        logging.StreamHandler()
    ]
)
log = logging.getLogger("main")


def print_summary(result) -> None:
    impact = result.impact
    print("\n=== OPTIMAL PLACEMENTS ===\n")
    for i, rec in enumerate(result.recommendations, 1):
        print(f"{i:2d}. {rec.icon} {rec.name:<20} {rec.priority:<8} "
              f"score={rec.score:.2f}  ({rec.location.lat:.5f}, {rec.location.lng:.5f})")
        if rec.justification:
            print(f"    {rec.justification}")

    print("\n=== EXPECTED IMPACT ===")
    print(f" People served:      {impact.total_population_served:,}")
    print(f" Investment needed:  ${impact.total_investment_needed:,}")
    print(f" Jobs created:       {impact.total_jobs_created}")
    print(f" Desert reduction:   {impact.food_desert_reduction:.0%}")

    if result.diagnostics:
        print("\nWarnings:")
        for line in result.diagnostics:
            print(f" - {line}")


def main():
    """CLI interface for the placement engine."""
    import argparse

    parser = argparse.ArgumentParser(description="Food Access Placement Engine")
    parser.add_argument("city", help="City input JSON (boundingBox, outlets, climate, demographics)")
    parser.add_argument("--config", help="Run configuration JSON")
    parser.add_argument("--output", default="placements.json", help="Where to write the result JSON")
    parser.add_argument("--csv", help="Also export recommendations as CSV")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs")
    parser.add_argument("--online", action="store_true",
                        help="Query SoilGrids and Overpass for soil data and vacant parcels")

    args = parser.parse_args()

    try:
        city = json.loads(Path(args.city).read_text(encoding="utf-8"))
        config = PlacementConfig.load(args.config) if args.config else PlacementConfig()
        if args.seed is not None:
            config.optimizer.seed = args.seed

        collaborators = {}
        if args.online:
            collaborators.update(soil=get_soil_loader(), vacant_spaces=get_vacant_space_loader())

        engine = PlacementEngine.from_dict(
            city,
            rng=random.Random(config.optimizer.seed),
            **collaborators,
        )
        result = engine.find_optimal_placements(config)
    except ConfigurationError as e:
        log.error(f"Invalid input: {e}")
        sys.exit(2)

    Path(args.output).write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
    log.info(f"Wrote {args.output}")

    if args.csv:
        ImpactAggregator.to_dataframe(result.recommendations).to_csv(args.csv, index=False)
        log.info(f"Wrote {args.csv}")

    print_summary(result)


if __name__ == "__main__":
    main()
