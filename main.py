"""
Main entry point for the workforce scheduler.
Provides both CLI and web server interfaces.
"""

import argparse
import logging
import sys
from datetime import date
from typing import Dict, Any, Optional

from data_loader import generate_sample_data
from entities import GenerationConstraints, GenerationPriorities
from planner import STRATEGIES, GenerationError, run_generation, build_result, generate_schedule
from model import GENERATION_MODES
from template_shifts import OPTIMIZATION_LEVELS
from validation import validate_schedule


def print_result(result: Dict[str, Any]):
    """Print generation summary, per employee totals and conflicts"""
    summary = result["summary"]
    print(f"\n✓ {result['message']}")
    print(f"  - Strategy: {result['strategyUsed']}")
    print(f"  - Shifts created: {summary['schedulesCreated']}")
    print(f"  - Patterns used: {summary['patternsUsed']}")
    print(f"  - Average utilization: {summary['utilizationPercentage']}")

    print("\n" + "=" * 60)
    print("SUMMARY BY EMPLOYEE")
    print("=" * 60)
    for emp in result["employeeSummary"]:
        print(f"  {emp['name']}: {emp['scheduledDays']} days, {emp['totalHours']}h "
              f"(max streak {emp['consecutiveDaysMax']})")

    conflicts = result["conflicts"]
    print("\n" + "=" * 60)
    print(f"CONFLICTS: {len(conflicts)}")
    print("=" * 60)
    print(result["conflictSummary"]["message"])
    for conflict in conflicts[:20]:
        print(f"  [{conflict['severity']}] {conflict['message']}")
    if len(conflicts) > 20:
        print(f"  ... and {len(conflicts) - 20} more")

    for rec in result["recommendations"]:
        print(f"  → {rec['message']}")


def run_cli_generation(
    start_date: date,
    end_date: date,
    use_sample_data: bool = False,
    db_path: str = "scheduler.db",
    time_limit: int = 30,
    strategy: str = "optimal",
    mode: str = "replace",
    save_as_draft: bool = False,
    template_id: Optional[int] = None,
    optimization_level: str = "standard"
) -> int:
    """
    Generate a schedule from the command line.

    Args:
        start_date: Start date for planning
        end_date: End date for planning
        use_sample_data: If True, use generated sample data and do not touch a database
        db_path: Path to SQLite database
        time_limit: Solver time limit in seconds
        strategy: optimal or greedy
        mode: replace, append or fill_gaps
        save_as_draft: Store the result as a draft instead of active schedules
        template_id: Operating hours template to cut the shifts from
        optimization_level: basic, standard or advanced
    """
    print("=" * 60)
    print("WORKFORCE SCHEDULER")
    print("=" * 60)
    print()

    constraints = GenerationConstraints()
    priorities = GenerationPriorities()

    if use_sample_data:
        print("Loading sample data...")
        employees, patterns, leaves, chemistry = generate_sample_data(start_date)
        print(f"  - Loaded {len(employees)} employees")
        print(f"  - Loaded {len(patterns)} shift patterns")
        print(f"  - Loaded {len(leaves)} approved leaves")
        print(f"  - Loaded {len(chemistry)} chemistry ratings")

        entries, tracker, strategy_used, stats = run_generation(
            employees, patterns, start_date, end_date, leaves, chemistry,
            constraints, priorities, [], mode, strategy, time_limit, 8, start_date
        )
        validation = validate_schedule(
            entries, employees, leaves, chemistry, patterns, constraints, start_date, end_date
        )
        result = build_result(entries, tracker, employees, patterns, start_date, end_date,
                              constraints, priorities, strategy_used, stats, validation)
    else:
        print(f"Using database: {db_path}")
        try:
            result = generate_schedule(
                db_path, start_date, end_date,
                constraints=constraints, priorities=priorities,
                mode=mode, strategy=strategy, save_as_draft=save_as_draft,
                time_limit_seconds=time_limit, created_by="cli",
                template_id=template_id, optimization_level=optimization_level
            )
        except (GenerationError, LookupError) as e:
            print(f"\n✗ {e}")
            return 1
        validation = None

    print_result(result)

    if validation is not None:
        validation.print_report()
    elif result["validation"]:
        v = result["validation"]
        print(f"\nValidation: {'passed' if v['isValid'] else 'failed'} "
              f"({len(v['errors'])} errors, {len(v['warnings'])} warnings)")
        for error in v["errors"]:
            print(f"  ✗ {error['message'] if isinstance(error, dict) else error}")

    print("\n" + "=" * 60)
    return 0


def start_web_server(host: str = "0.0.0.0", port: int = 5000, db_path: str = "scheduler.db", debug: bool = False):
    """
    Start Flask web server with REST API.

    Args:
        host: Host to bind to
        port: Port to bind to
        db_path: Path to SQLite database
        debug: Enable debug mode (WARNING: Only use in development!)
    """
    import os
    from web_api import create_app

    print("=" * 60)
    print("WORKFORCE SCHEDULER WEB SERVER")
    print("=" * 60)
    print(f"Starting web server on http://{host}:{port}")
    print(f"Database: {db_path}")
    if debug:
        print("⚠️  WARNING: Debug mode enabled - DO NOT use in production!")
    print()

    # Check if database exists, if not initialize it
    if not os.path.exists(db_path):
        print(f"ℹ️  No database found at {db_path}")
        print("   Initializing new database with default structure...")
        print()
        from db_init import initialize_database
        initialize_database(db_path, with_sample_data=False)
        print()

    app = create_app(db_path)
    app.run(host=host, port=port, debug=debug)


def main():
    """Main entry point with argument parsing"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    parser = argparse.ArgumentParser(
        description="Workforce Scheduler - shift generation with OR-Tools"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Database initialization command
    init_parser = subparsers.add_parser("init-db", help="Initialize database schema")
    init_parser.add_argument(
        "--db",
        type=str,
        default="scheduler.db",
        help="Path to SQLite database (default: scheduler.db)"
    )
    init_parser.add_argument(
        "--with-sample-data",
        action="store_true",
        help="Include sample employees, patterns and leaves"
    )

    # CLI generation command
    gen_parser = subparsers.add_parser("generate", help="Generate a schedule")
    gen_parser.add_argument(
        "--start-date",
        type=str,
        required=True,
        help="Start date (YYYY-MM-DD)"
    )
    gen_parser.add_argument(
        "--end-date",
        type=str,
        required=True,
        help="End date (YYYY-MM-DD)"
    )
    gen_parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Use generated sample data instead of database"
    )
    gen_parser.add_argument(
        "--db",
        type=str,
        default="scheduler.db",
        help="Path to SQLite database (default: scheduler.db)"
    )
    gen_parser.add_argument(
        "--time-limit",
        type=int,
        default=30,
        help="Solver time limit in seconds (default: 30)"
    )
    gen_parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default="optimal",
        help="optimal (CP-SAT) or greedy (default: optimal)"
    )
    gen_parser.add_argument(
        "--mode",
        choices=GENERATION_MODES,
        default="replace",
        help="How to treat existing shifts (default: replace)"
    )
    gen_parser.add_argument(
        "--draft",
        action="store_true",
        help="Save the result as a schedule draft"
    )
    gen_parser.add_argument(
        "--template",
        type=int,
        help="Cut the shifts from this operating hours template instead of the shift patterns"
    )
    gen_parser.add_argument(
        "--optimization-level",
        choices=OPTIMIZATION_LEVELS,
        default="standard",
        help="How a template is cut into shifts (default: standard)"
    )

    # Web server command
    server_parser = subparsers.add_parser("serve", help="Start web server")
    server_parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=5000,
        help="Port to bind to (default: 5000)"
    )
    server_parser.add_argument(
        "--db",
        type=str,
        default="scheduler.db",
        help="Path to SQLite database (default: scheduler.db)"
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (WARNING: Only for development!)"
    )

    args = parser.parse_args()

    if args.command == "init-db":
        from db_init import initialize_database
        initialize_database(args.db, with_sample_data=args.with_sample_data)
        return 0

    elif args.command == "generate":
        try:
            start_date = date.fromisoformat(args.start_date)
            end_date = date.fromisoformat(args.end_date)
        except ValueError as e:
            print(f"✗ Invalid date: {e}")
            return 2
        if start_date > end_date:
            print("✗ Start date must not be after end date")
            return 2
        return run_cli_generation(
            start_date,
            end_date,
            args.sample_data,
            args.db,
            args.time_limit,
            args.strategy,
            args.mode,
            args.draft,
            args.template,
            args.optimization_level
        )

    elif args.command == "serve":
        start_web_server(args.host, args.port, args.db, args.debug)
        return 0

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
