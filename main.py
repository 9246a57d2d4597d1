"""
Main module for the budget planner command line.

This module loads a year of ``Date,Category,Amount`` transactions and
answers budgeting questions about it:
1. summary  - income, expenses and net balance by category
2. plan     - how to spread a surplus or cover a deficit
3. simulate - whether extra spending in one category is affordable
4. validate - which rows of a file would be rejected, and why
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from budget_session import BudgetSession
from config_manager import load_config as load_config_file
from exceptions import BudgetPlannerError
from exclusion import ExclusionOutcome
from report_generator import ReportGenerator
from scenario import SimulationOutcome
from utils import resolve_log_path

# Configure module-level logger
logger = logging.getLogger(__name__)


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configure logging based on config settings.

    Args:
        config: Configuration dictionary with logging settings
    """
    log_config = config.get("logging", {}) or {}
    level_name = str(log_config.get("level", "INFO")).upper()
    log_level = getattr(logging, level_name, None)
    unknown_level = not isinstance(log_level, int)
    if unknown_level:
        log_level = logging.INFO
    log_format = log_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = log_config.get("file")

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        try:
            log_path = resolve_log_path(log_file)
        except OSError as exc:
            raise RuntimeError(f"Unable to prepare log file path '{log_file}': {exc}") from exc
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers,
        force=True
    )
    if unknown_level:
        logger.warning("Unknown log level '%s'; using INFO", level_name)


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML file, falling back to defaults when it is missing.

    Args:
        config_path: Path to config.yaml file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If config file is invalid YAML
    """
    return load_config_file(config_path)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per question."""
    parser = argparse.ArgumentParser(
        description="Yearly budget planner",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )

    # Arguments shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("file", type=str, help="CSV file with Date,Category,Amount columns")
    common.add_argument(
        "--exclude",
        "-x",
        action="append",
        default=[],
        metavar="CATEGORY",
        help="Exclude a category before computing (repeatable)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    summary_parser = subparsers.add_parser(
        "summary",
        aliases=["sum"],
        parents=[common],
        help="Show income, expenses and net balance"
    )
    summary_parser.add_argument(
        "--categories",
        action="store_true",
        help="Also show the per-category breakdown"
    )
    summary_parser.add_argument("--export", type=str, metavar="FILE", help="Export the breakdown to CSV")

    subparsers.add_parser(
        "plan",
        parents=[common],
        help="Suggest how to spread a surplus or cover a deficit"
    )

    simulate_parser = subparsers.add_parser(
        "simulate",
        aliases=["sim"],
        parents=[common],
        help="Check whether extra spending in a category is affordable"
    )
    simulate_parser.add_argument("--category", type=str, required=True, help="Expense category")
    action = simulate_parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--amount", type=str, help="Extra amount to spend")
    action.add_argument("--reduce-percent", type=str, metavar="PCT", help="Cut the category by a percentage")
    simulate_parser.add_argument(
        "--apply",
        action="store_true",
        help="Apply the change and show the updated summary"
    )

    subparsers.add_parser(
        "validate",
        aliases=["check"],
        parents=[common],
        help="Validate a file without computing a budget"
    )

    return parser


def _prepare_session(args: argparse.Namespace, config: Dict[str, Any]) -> BudgetSession:
    """Load the file into a fresh session and apply the requested exclusions."""
    session = BudgetSession(config)
    session.load_csv(args.file)
    for category in args.exclude:
        outcome = session.exclude(category)
        if outcome is ExclusionOutcome.NOT_FOUND:
            print(f"Warning: category '{category}' not found; nothing excluded", file=sys.stderr)
    return session


def handle_summary_command(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """
    Handle the summary command.

    Args:
        args: Parsed command-line arguments
        config: Configuration dictionary
    """
    session = _prepare_session(args, config)
    generator = ReportGenerator()
    snapshot = session.snapshot()

    print(generator.generate_validation_summary(session.last_report))
    print()
    print(generator.generate_summary_report(snapshot))
    if args.categories:
        print()
        print(generator.generate_category_report(snapshot))
    if args.export:
        path = generator.export_category_csv(snapshot, args.export)
        print(f"\nCategory breakdown exported to {path}")


def handle_plan_command(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """Handle the plan command."""
    session = _prepare_session(args, config)
    generator = ReportGenerator()

    print(generator.generate_summary_report(session.snapshot()))
    print()
    print(generator.generate_plan_report(session.plan()))

    if session.ledger.net_balance() < 0:
        suggestion = session.simulator.suggest_reduction()
        if suggestion:
            category, spending = suggestion
            print(f"Consider reducing '{category}' (current spending {generator.format_currency(spending)}).")
        if session.planner.essential_expenses_exceed_income():
            print("Warning: protected expenses alone exceed total income.")


def handle_simulate_command(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """Handle the simulate command."""
    session = _prepare_session(args, config)
    generator = ReportGenerator()

    if args.reduce_percent is not None:
        result = session.simulator.reduce(args.category, args.reduce_percent)
    elif args.apply:
        result = session.simulator.apply(args.category, args.amount)
    else:
        result = session.simulator.simulate(args.category, args.amount)

    print(generator.generate_scenario_report(result))
    if result.outcome is SimulationOutcome.APPLIED:
        print()
        print(generator.generate_summary_report(session.snapshot()))
    elif result.ok:
        limit = session.simulator.max_spend(args.category)
        print(f"Maximum affordable extra spending: {generator.format_currency(limit)}")


def handle_validate_command(args: argparse.Namespace, config: Dict[str, Any]) -> Optional[int]:
    """
    Handle the validate command.

    Returns:
        Exit code 1 when the file has no valid rows.
    """
    session = BudgetSession(config)
    report = session.load_csv(args.file)
    generator = ReportGenerator()

    print(generator.generate_validation_summary(report))
    if session.malformed_rows:
        numbers = ", ".join(str(number) for number in session.malformed_row_numbers)
        print(f"Skipped {len(session.malformed_rows)} row(s) with the wrong number of columns: {numbers}")
    counts = report.reason_counts()
    if counts:
        print("Issues by type:")
        for code, count in sorted(counts.items()):
            print(f"  {code}: {count}")
    return None if report.has_valid_rows else 1


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle case where no command is provided
    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Load configuration
    try:
        config = load_config(Path(args.config))
    except BudgetPlannerError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config)

    handlers = {
        "summary": handle_summary_command,
        "sum": handle_summary_command,
        "plan": handle_plan_command,
        "simulate": handle_simulate_command,
        "sim": handle_simulate_command,
        "validate": handle_validate_command,
        "check": handle_validate_command,
    }

    try:
        exit_code = handlers[args.command](args, config)
    except BudgetPlannerError as e:
        logger.error(f"{args.command} command failed: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
