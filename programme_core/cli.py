"""
CLI interface for the scheduling core.

Runs CPM, earned value, validation and what-if analysis over a schedule
CSV in the task interchange format, and rolls several CSVs up into
portfolio metrics.
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from programme_core.analysis.critical_path import analyze_critical_path, print_critical_path_report
from programme_core.analysis.earned_value import (
    EVMCalculator,
    calculate_project_progress,
    evm_to_dataframe,
)
from programme_core.analysis.task_impact import (
    analyze_task_impact,
    analyze_task_sensitivity,
    print_sensitivity_report,
    print_task_impact_report,
)
from programme_core.config.settings import settings
from programme_core.cpm.engine import calculate_critical_path
from programme_core.cpm.errors import ScheduleError
from programme_core.cpm.models import Project
from programme_core.cpm.network import TaskNetwork
from programme_core.cpm.validator import validate_dependencies
from programme_core.interchange import (
    SchemaValidationError,
    export_schedule_csv,
    load_schedule_csv,
)
from programme_core.utils.logger import configure_logging

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure package logging."""
    configure_logging('programme_core', level='DEBUG' if verbose else settings.LOG_LEVEL)


def cmd_cpm(args) -> int:
    """Run CPM and print the critical path report."""
    schedule = load_schedule_csv(args.input_csv)
    result = calculate_critical_path(schedule)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        threshold = args.near_critical
        print_critical_path_report(
            analyze_critical_path(schedule, threshold, cpm_result=result))
    for issue in result.warnings:
        logger.warning(str(issue))
    return 0


def cmd_evm(args) -> int:
    """Print per-task EVM metrics and the project KPI roll-up."""
    schedule = load_schedule_csv(args.input_csv)
    calculator = EVMCalculator()
    project = Project(id=args.project_id, name=args.project_name or args.project_id)

    df = evm_to_dataframe(calculator.calculate(schedule))
    kpis = calculator.calculate_kpis(project, schedule)
    summary = calculator.summarize(schedule)
    forecast = calculator.generate_predictive_analysis(project, schedule)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(args.output, index=False)
        logger.info(f"Wrote EVM metrics for {len(df)} tasks to {args.output}")

    print("=" * 80)
    print("EARNED VALUE REPORT")
    print("=" * 80)
    if not df.empty:
        print(df.round(2).to_string(index=False))
    print(f"\nProject progress: {calculate_project_progress(schedule)}%")
    print(f"PV {summary.planned_value:,.2f} | EV {summary.earned_value:,.2f} | "
          f"AC {summary.actual_cost:,.2f}")
    print(f"CPI {summary.cost_performance_index:.3f} | SPI {summary.schedule_performance_index:.3f} | "
          f"EAC {summary.estimate_at_completion:,.2f} | VAC {summary.variance_at_completion:,.2f}")
    print(f"\n{kpis.get_summary()}")
    print(f"Quality score: {kpis.quality_score:.1f} | "
          f"Resource utilization: {kpis.resource_utilization:.1%}")
    finish = forecast.completion_date or "n/a"
    print(f"\nForecast: cost {forecast.cost_forecast:,.2f} | "
          f"duration {forecast.schedule_forecast:.1f} days | finish {finish} | "
          f"confidence {forecast.confidence:.0f}%")
    for factor in forecast.risk_factors:
        print(f"  [RISK] {factor}")
    for recommendation in forecast.recommendations:
        print(f"  - {recommendation}")
    print("=" * 80)
    return 0


def cmd_portfolio(args) -> int:
    """Roll several schedule CSVs up into portfolio metrics (one project per file)."""
    projects = [(Project(id=path.stem, name=path.stem), load_schedule_csv(path))
                for path in args.input_csvs]
    metrics = EVMCalculator().calculate_portfolio_metrics(projects)

    if args.json:
        print(json.dumps(asdict(metrics), indent=2))
        return 0

    print("=" * 80)
    print("PORTFOLIO SUMMARY")
    print("=" * 80)
    print(f"Projects: {metrics.total_projects} "
          f"(active {metrics.active_projects}, completed {metrics.completed_projects})")
    print(f"Budget {metrics.total_budget:,.2f} | Spent {metrics.total_spent:,.2f}")
    print(f"Average SPI {metrics.average_schedule_performance:.3f} | "
          f"Average CPI {metrics.average_cost_performance:.3f}")
    print("Risk: " + ", ".join(f"{level} {count}"
                                for level, count in metrics.risk_distribution.items()))
    print("=" * 80)
    return 0


def cmd_validate(args) -> int:
    """Validate dependencies. Exit status 1 when any error is found."""
    schedule = load_schedule_csv(args.input_csv)
    result = validate_dependencies(schedule)
    stats = TaskNetwork.from_tasks(schedule, strict=False).get_statistics()

    if args.json:
        data = result.to_dict()
        data['statistics'] = stats
        print(json.dumps(data, indent=2))
    else:
        print(f"Network: {stats['total_tasks']} tasks, {stats['total_dependencies']} deps")
        print(f"Start tasks: {stats['start_tasks']}, End tasks: {stats['end_tasks']}")
        print(f"Errors: {len(result.errors)}")
        for issue in result.errors:
            print(f"  [ERROR] {issue}")
        print(f"Warnings: {len(result.warnings)}")
        for issue in result.warnings:
            print(f"  [WARN]  {issue}")
        print("VALID" if result.is_valid else "INVALID")
    return 0 if result.is_valid else 1


def cmd_export(args) -> int:
    """Re-export a schedule after checking that CPM can run over it."""
    schedule = load_schedule_csv(args.input_csv)
    result = calculate_critical_path(schedule)
    output = args.output_csv or settings.OUTPUT_DATA_DIR / args.input_csv.name
    export_schedule_csv(schedule, output)
    print(f"Exported {len(schedule)} tasks to {output} "
          f"(project duration {result.project_duration} days)")
    return 0


def cmd_impact(args) -> int:
    """What-if: lengthen one task, or every task for a sensitivity ranking."""
    schedule = load_schedule_csv(args.input_csv)
    delta = args.delta if args.delta is not None else settings.SENSITIVITY_DELTA_DAYS

    if args.task_id:
        print_task_impact_report(analyze_task_impact(schedule, args.task_id, delta))
    else:
        print_sensitivity_report(analyze_task_sensitivity(schedule, duration_delta_days=delta),
                                 top_n=args.top)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="programme-core",
        description="Critical path, earned value and validation for schedule CSV files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Critical path report
  programme-core cpm schedule.csv

  # Machine-readable CPM output
  programme-core cpm schedule.csv --json

  # Earned value with KPI roll-up
  programme-core evm schedule.csv --project-id P-100 --project-name "Tower A"

  # Portfolio roll-up, one project per file
  programme-core portfolio tower_a.csv tower_b.csv

  # Check dependencies (exit status 1 on errors)
  programme-core validate schedule.csv

  # Impact of a 5 day slip on one task
  programme-core impact schedule.csv --task T-042 --delta 5
""",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    cpm_parser = subparsers.add_parser("cpm", help="Run CPM and report the critical path")
    cpm_parser.add_argument("input_csv", type=Path, help="Schedule CSV")
    cpm_parser.add_argument(
        "--near-critical",
        type=int,
        default=settings.NEAR_CRITICAL_THRESHOLD_DAYS,
        help=f"Near-critical float threshold in days (default: {settings.NEAR_CRITICAL_THRESHOLD_DAYS})",
    )
    cpm_parser.add_argument("--json", action="store_true", help="Print CPM result as JSON")
    cpm_parser.set_defaults(func=cmd_cpm)

    evm_parser = subparsers.add_parser("evm", help="Earned value metrics and KPIs")
    evm_parser.add_argument("input_csv", type=Path, help="Schedule CSV")
    evm_parser.add_argument("--project-id", default="project", help="Project identifier")
    evm_parser.add_argument("--project-name", default=None, help="Project name")
    evm_parser.add_argument("--output", type=Path, default=None, help="Write EVM rows to CSV")
    evm_parser.set_defaults(func=cmd_evm)

    portfolio_parser = subparsers.add_parser("portfolio", help="Roll-up across schedule CSVs")
    portfolio_parser.add_argument("input_csvs", type=Path, nargs="+",
                                  help="One schedule CSV per project")
    portfolio_parser.add_argument("--json", action="store_true", help="Print metrics as JSON")
    portfolio_parser.set_defaults(func=cmd_portfolio)

    validate_parser = subparsers.add_parser("validate", help="Validate dependencies")
    validate_parser.add_argument("input_csv", type=Path, help="Schedule CSV")
    validate_parser.add_argument("--json", action="store_true", help="Print result as JSON")
    validate_parser.set_defaults(func=cmd_validate)

    export_parser = subparsers.add_parser("export", help="Re-export a validated schedule")
    export_parser.add_argument("input_csv", type=Path, help="Schedule CSV")
    export_parser.add_argument(
        "output_csv",
        type=Path,
        nargs="?",
        help="Output CSV (default: PROGRAMME_OUTPUT_DIR/<input name>)",
    )
    export_parser.set_defaults(func=cmd_export)

    impact_parser = subparsers.add_parser("impact", help="Task what-if and sensitivity")
    impact_parser.add_argument("input_csv", type=Path, help="Schedule CSV")
    impact_parser.add_argument("--task", dest="task_id", default=None,
                               help="Task to lengthen (default: rank all tasks)")
    impact_parser.add_argument("--delta", type=int, default=None,
                               help="Duration change in days (default: SENSITIVITY_DELTA_DAYS)")
    impact_parser.add_argument("--top", type=int, default=20, help="Rows in sensitivity ranking")
    impact_parser.set_defaults(func=cmd_impact)

    return parser


def main(argv: list[str] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    invalid = settings.validate_required_settings()
    if invalid:
        logger.error(f"Invalid settings: {', '.join(invalid)}")
        return 1

    try:
        return args.func(args)
    except (FileNotFoundError, SchemaValidationError, ScheduleError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
