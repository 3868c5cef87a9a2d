# src/allocator/cli.py
"""
Command-line interface for destination allocation.
Runs the full-population allocation or the single-user preview under any scenario.
"""
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

from .models import AllocationConfig, AllocationResult, Item, Scenario, Submission
from .allocation_engine import allocate, allocate_for_user
from .allocation_summary import generate_allocation_summary, print_allocation_summary, print_user_allocation
from .preference_patterns import analyze_preference_patterns
from .scenarios import clamp_competition_depth, get_scenario_params
from .storage import LocalSeasonStore
from .item_utils import get_items_from_popular_centros, get_most_desired_items, list_centros, list_localidades
from .season_cache import SeasonCache
from .empirical_params import DEFAULT_COMPETITION_DEPTH
from .utils import load_items_json, load_submissions_json, save_allocation_results_csv, save_allocation_results_json


logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(levelname)s:%(name)s:%(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Suppress verbose plotting libraries
    logging.getLogger('matplotlib').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)


def create_config_from_args(args) -> AllocationConfig:
    """Create AllocationConfig from command line arguments."""
    return AllocationConfig(
        scenario=args.scenario,
        competition_depth=clamp_competition_depth(args.depth),
        submissions_path=args.submissions,
        items_path=args.items,
        data_dir=args.data_dir,
        season=args.season,
        user_id=args.user_id,
        selected_localidades=args.localidad or [],
        selected_centros=args.centro or [],
        seed=args.seed,
        output_path=args.output,
        plots=args.plots,
        list_locations=args.list_locations,
        debug=args.debug
    )


def load_inputs(config: AllocationConfig) -> Tuple[List[Submission], List[Item]]:
    """Load submissions and catalog items from a season store or explicit files."""
    if config.data_dir:
        if not config.season:
            raise ValueError("--season is required with --data-dir")
        store = LocalSeasonStore(config.data_dir, cache=SeasonCache())
        submissions = store.fetch_submissions_for_season(config.season)
        try:
            items = store.fetch_items_for_season(config.season)
        except FileNotFoundError as e:
            logger.warning(f"{e}; continuing without a catalog")
            items = []
        return submissions, items

    if not config.submissions_path:
        raise ValueError("Either --submissions or --data-dir/--season is required")

    submissions = load_submissions_json(config.submissions_path)
    items = load_items_json(config.items_path) if config.items_path else []
    return submissions, items


def resolve_scenario_code(config: AllocationConfig) -> int:
    """Downgrade the occupied-destinations scenario to the current state when no filter is set."""
    if config.scenario == Scenario.SPECIFIC_DESTINATIONS_OCCUPIED.value and config.blocked_items.is_empty:
        logger.warning("Scenario 2 selected without --localidad/--centro; using scenario 0")
        return Scenario.CURRENT_STATE.value
    return config.scenario


def run_user_allocation(config: AllocationConfig, submissions: List[Submission], items: List[Item],
                        scenario: int, rng: Optional[np.random.Generator]) -> AllocationResult:
    """Preview one user's allocation from the submissions above them."""
    target = next((s for s in submissions if s.id == config.user_id), None)
    if target is None:
        raise ValueError(f"No submission found for user {config.user_id}")

    above = [s for s in submissions if s.order < target.order]
    result = allocate_for_user(
        above, target, scenario=scenario, items=items, blocked_items=config.blocked_items,
        competition_depth=config.competition_depth, rng=rng
    )

    print_user_allocation(result)
    print(f"Users above: {len(above):,} | "
          f"Empty slots above: {max(0, target.order - 1 - len(above)):,}")
    return result


def run_full_allocation(config: AllocationConfig, submissions: List[Submission], items: List[Item],
                        scenario: int, rng: Optional[np.random.Generator]) -> List[AllocationResult]:
    """Allocate every submitted user and print the summary."""
    results = allocate(
        submissions, scenario=scenario, items=items, competition_depth=config.competition_depth,
        blocked_items=config.blocked_items, rng=rng
    )
    description = get_scenario_params(scenario, config.competition_depth).description
    summary = generate_allocation_summary(results, description, get_most_desired_items(submissions))
    print_allocation_summary(summary)
    return results


def print_locations(submissions: List[Submission], items: List[Item]) -> None:
    """Print the values --localidad/--centro accept and the most contested items."""
    print()
    print("=" * 80)
    print("CATALOG LOCATIONS")
    print("=" * 80)
    print(f"Localidades ({len(list_localidades(items))}): {', '.join(list_localidades(items))}")
    print(f"Centros ({len(list_centros(items))}): {', '.join(list_centros(items))}")
    popular = get_items_from_popular_centros(submissions, items)
    if popular:
        print(f"Items in the most requested centros: {', '.join(popular)}")
    print("=" * 80)


def save_results(results: List[AllocationResult], output_path: str) -> None:
    if Path(output_path).suffix.lower() == '.json':
        save_allocation_results_json(results, output_path)
    else:
        save_allocation_results_csv(results, output_path)


def generate_plots(config: AllocationConfig, submissions: List[Submission], results: List[AllocationResult]) -> None:
    from .visualization import AllocationVisualizer

    visualizer = AllocationVisualizer(output_dir=str(config.output_dir))
    visualizer.plot_preference_profile(analyze_preference_patterns(submissions))
    visualizer.plot_assignment_ranks(results)


def run(config: AllocationConfig) -> List[AllocationResult]:
    """Run an allocation for the given configuration and write the requested outputs."""
    submissions, items = load_inputs(config)
    if config.list_locations:
        print_locations(submissions, items)
        return []

    scenario = resolve_scenario_code(config)
    rng = np.random.default_rng(config.seed) if config.seed is not None else None

    logger.info(f"Allocating {len(submissions):,} submissions, {len(items):,} items, scenario {scenario}")

    if config.user_id:
        results = [run_user_allocation(config, submissions, items, scenario, rng)]
    else:
        results = run_full_allocation(config, submissions, items, scenario, rng)

    if config.output_path:
        save_results(results, config.output_path)
    if config.plots:
        generate_plots(config, submissions, results)

    return results


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Destination allocation by priority order with what-if scenarios",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=("Scenarios: 0 current state | 1 remaining users respond | "
                "2 specific destinations occupied | 3 preference-depth blocking")
    )

    parser.add_argument('--submissions', type=str, help='Submissions JSON file')
    parser.add_argument('--items', type=str, help='Catalog items JSON file')
    parser.add_argument('--data-dir', type=str, help='Season data directory (<season>.json, <season>_submissions.json)')
    parser.add_argument('--season', type=str, help='Season to load from --data-dir')
    parser.add_argument('--user-id', type=str, help='Preview a single user from the submissions above them')
    parser.add_argument('--scenario', type=int, default=0, choices=[0, 1, 2, 3], help='Simulation scenario')
    parser.add_argument('--depth', type=int, default=DEFAULT_COMPETITION_DEPTH,
                        help='Competition depth for scenario 3 (1-20)')
    parser.add_argument('--localidad', action='append', help='Blocked localidad for scenario 2 (repeatable)')
    parser.add_argument('--centro', action='append', help='Blocked centro de destino for scenario 2 (repeatable)')
    parser.add_argument('--list-locations', action='store_true',
                        help='List the localidades and centros of the catalog and exit')
    parser.add_argument('--seed', type=int, help='Random seed for synthetic users')
    parser.add_argument('--output', type=str, help='Output file (.csv or .json)')
    parser.add_argument('--plots', action='store_true', help='Save charts next to the output file')
    parser.add_argument('--debug', action='store_true', help='Enable debug output')

    args = parser.parse_args(argv)

    script_start_time = time.perf_counter()
    setup_logging(args.debug)
    config = create_config_from_args(args)

    try:
        run(config)
    except Exception as e:
        logger.error(f"Allocation failed: {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    logger.info(f"Completed in {time.perf_counter() - script_start_time:.3f} seconds")


if __name__ == '__main__':
    main()
