#!/usr/bin/env python3
"""
gridflow: rigid A* vs fluid MDP planning in a windy grid world

Runs the agent headless over a painted scenario with one or both planners
and reports how each one fared against wind it never planned for.

Usage:
    python -m gridflow.main --config configs/default.yaml [options]

Examples:
    python -m gridflow.main --config configs/default.yaml
    python -m gridflow.main --config configs/default.yaml --planner both --seed 42
    python -m gridflow.main --config configs/default.yaml --scenario scenarios/wind_tunnel.txt
    python -m gridflow.main --config configs/default.yaml --no-csv --quiet
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from gridflow.config import PLANNER_CHOICES, SimulationConfig, load_config
from gridflow.model.engine import SimulationEngine
from gridflow.model.planner import PlannerMode
from gridflow.export.csv_writer import CSVWriter
from gridflow.export.reporter import Reporter, compare
from gridflow.export.scenario import Scenario, ScenarioFormatError, read_scenario

logger = logging.getLogger("gridflow")


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Rigid A* vs fluid MDP planning in a windy grid world',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m gridflow.main --config configs/default.yaml
    python -m gridflow.main --config configs/default.yaml --planner both --seed 42
    python -m gridflow.main --config configs/default.yaml --no-csv --quiet
        """
    )

    # Required arguments
    parser.add_argument('--config', type=Path, required=True,
                        help='Path to YAML configuration file')

    # Optional overrides
    parser.add_argument('--scenario', type=Path, default=None,
                        help='Scenario text file (overrides the config)')
    parser.add_argument('--planner', choices=PLANNER_CHOICES, default=None,
                        help='Planner to run (default: from config)')
    parser.add_argument('--steps', type=int, default=None,
                        help='Override max simulation steps')
    parser.add_argument('--dt', type=float, default=None,
                        help='Override tick duration in seconds')
    parser.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Output directory for exports (default: ./output)')

    # Export toggles
    parser.add_argument('--csv', dest='csv', action='store_true', default=None,
                        help='Enable CSV export (default)')
    parser.add_argument('--no-csv', dest='csv', action='store_false',
                        help='Disable CSV export')

    parser.add_argument('--quiet', action='store_true', default=False,
                        help='Suppress stdout output')
    parser.add_argument('--verbose', action='store_true', default=False,
                        help='Debug logging')

    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')

    return parser.parse_args(argv)


def setup_logging(quiet: bool, verbose: bool) -> None:
    level = logging.DEBUG if verbose else (logging.WARNING if quiet else logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(module)s - %(funcName)s: %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )


def run_planner(config: SimulationConfig, mode: PlannerMode,
                scenario: Optional[Scenario]) -> Dict:
    """Run one planner to completion and return its outcome."""
    engine = SimulationEngine(config)
    if scenario is not None:
        # Each run gets its own copy so edits never leak between planners
        engine.load_scenario(Scenario(grid=scenario.grid.copy(),
                                      agent_cell=scenario.agent_cell,
                                      name=scenario.name,
                                      camera=scenario.camera))
    engine.select_planner(mode)

    csv_writer = None
    csv_path = config.out_dir / f'trajectory_{mode.value}.csv'
    if config.csv_enabled:
        csv_writer = CSVWriter(csv_path)
        csv_writer.open()

    scenario_label = str(config.scenario) if config.scenario else None
    reporter = Reporter(mode.value, scenario_label, config.seed)

    if not config.quiet:
        print(f"\nRunning {mode.value} planner...")

    final_state = None
    try:
        while not engine.is_finished():
            state = engine.step()
            final_state = state

            if csv_writer:
                csv_writer.append(state)
            reporter.update(state)

            if not config.quiet and state.step % 100 == 0:
                print(f"  Step {state.step}: agent at "
                      f"({state.agent.x:.2f}, {state.agent.y:.2f})")
    except KeyboardInterrupt:
        if not config.quiet:
            print("\nSimulation interrupted by user.")
    finally:
        if csv_writer:
            csv_writer.close()

    if final_state is None:
        return {}

    if not config.quiet:
        print(reporter.generate_summary(final_state, config.out_dir,
                                        config.csv_enabled))
    return reporter.outcome(final_state)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.quiet, args.verbose)

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except (KeyError, ValueError, TypeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    # Apply CLI overrides
    if args.steps is not None:
        config.max_steps = args.steps
    if args.dt is not None:
        config.dt = args.dt
    if args.planner is not None:
        config.planner = args.planner
    if args.scenario is not None:
        config.scenario = args.scenario
    if args.csv is not None:
        config.csv_enabled = args.csv
    config.quiet = args.quiet
    if args.seed is not None:
        config.seed = args.seed
    config.out_dir = args.out_dir

    try:
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    logger.debug("Resolved config: %s", config)

    scenario = None
    if config.scenario is not None:
        try:
            scenario = read_scenario(config.scenario)
        except FileNotFoundError:
            print(f"Error: Scenario file not found: {config.scenario}", file=sys.stderr)
            return 1
        except ScenarioFormatError as e:
            print(f"Error loading scenario: {e}", file=sys.stderr)
            return 1

    if not config.quiet:
        print("Initializing simulation...")
        if scenario is not None:
            print(f"  Scenario: {scenario.name or config.scenario}")
            print(f"  Grid: {scenario.grid.width}x{scenario.grid.height}")
        else:
            print(f"  Grid: {config.grid.width}x{config.grid.height} (empty)")
        print(f"  Planner: {config.planner}")
        print(f"  Max steps: {config.max_steps}")

    if config.planner == 'both':
        modes = [PlannerMode.ASTAR, PlannerMode.MDP]
    else:
        modes = [PlannerMode(config.planner)]

    outcomes = [run_planner(config, mode, scenario) for mode in modes]
    outcomes = [o for o in outcomes if o]

    if not config.quiet and len(outcomes) > 1:
        print(compare(outcomes))

    return 0


if __name__ == '__main__':
    sys.exit(main())
