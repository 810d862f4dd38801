"""Command-line interface for the worklist scheduler."""

from __future__ import annotations

import argparse
import logging
from datetime import date

from worklist.config import ManagerSettings, load_config
from worklist.domain.db import DEFAULT_DB_URL, get_session, init_database
from worklist.domain.repositories import SqlAlchemyRepository
from worklist.engine.orchestrator import Orchestrator
from worklist.io.export_csv import export_assignments_csv, export_planned_shifts_csv
from worklist.io.seed import load_seed
from worklist.services.selectors import selector_labels
from worklist.services.timeplan import planning_dates
from worklist.validator import conflicts_frame, planned_hours_frame, summarize_assignments


def _settings(args: argparse.Namespace) -> ManagerSettings:
    if getattr(args, "config", None):
        return load_config(args.config)
    return ManagerSettings()


def _dates(args: argparse.Namespace, settings: ManagerSettings):
    start = date.fromisoformat(args.start)
    return planning_dates(start, args.days or settings.default_planning_period)


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    db_url = args.db or DEFAULT_DB_URL
    init_database(db_url, reset=args.reset)
    print(f"[OK] Database initialized: {db_url}")


def _cmd_load(args: argparse.Namespace) -> None:
    """Load a YAML/JSON seed file into the database."""
    session = get_session(args.db or DEFAULT_DB_URL)

    try:
        counts = load_seed(SqlAlchemyRepository(session), args.seed)
        for collection, count in counts.items():
            print(f"[OK] Loaded {count} {collection}")
        session.close()
        print("[OK] Seed load complete")

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Load failed: {e}")
        raise


def _cmd_generate(args: argparse.Namespace) -> None:
    """Generate task assignments for one or more dates."""
    session = get_session(args.db or DEFAULT_DB_URL)

    try:
        settings = _settings(args)
        repo = SqlAlchemyRepository(session)
        orchestrator = Orchestrator(repo, settings)

        start = date.fromisoformat(args.date)
        results = orchestrator.generate_range(start, args.days or 1, persist=not args.dry_run)
        for day, result in results.items():
            print(
                f"[OK] {day}: {len(result.assignments)} assignments, "
                f"{len(result.unassigned_tasks)} unassigned, "
                f"{len(result.over_capacity_members)} over capacity"
            )
            for item in result.unassigned_tasks:
                print(f"  [WARN] {item.task.display_name}: {item.reason}")

        if args.out:
            export_assignments_csv(repo, args.out, target_date=start if (args.days or 1) == 1 else None)

        session.close()

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Generation failed: {e}")
        raise


def _cmd_autofill(args: argparse.Namespace) -> None:
    """Fill staffing gaps with draft shifts."""
    session = get_session(args.db or DEFAULT_DB_URL)

    try:
        settings = _settings(args)
        repo = SqlAlchemyRepository(session)
        result = Orchestrator(repo, settings).auto_fill(_dates(args, settings), persist=not args.dry_run)

        for shift in result.generated_planned_shifts:
            print(f"  [NEW] {shift.date} {shift.start}-{shift.end} {shift.member_id} ({shift.area_id})")
        print(f"[OK] Generated {len(result.generated_planned_shifts)} planned shifts")
        if result.conflicts:
            print(f"[WARN] {len(result.conflicts)} conflicts remain")
            print(conflicts_frame(result.conflicts).to_string(index=False))

        if args.out:
            export_planned_shifts_csv(repo, args.out)

        session.close()

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Auto-fill failed: {e}")
        raise


def _cmd_conflicts(args: argparse.Namespace) -> None:
    """List planner conflicts for a date range."""
    session = get_session(args.db or DEFAULT_DB_URL)

    try:
        settings = _settings(args)
        conflicts = Orchestrator(SqlAlchemyRepository(session), settings).detect_conflicts(_dates(args, settings))
        session.close()

        if not conflicts:
            print("[OK] No conflicts")
            return
        print(conflicts_frame(conflicts).to_string(index=False))
        print(f"[WARN] {len(conflicts)} conflicts")

    except Exception as e:
        session.close()
        print(f"[ERROR] Conflict check failed: {e}")
        raise


def _cmd_publish(args: argparse.Namespace) -> None:
    """Publish draft shifts for a date range."""
    session = get_session(args.db or DEFAULT_DB_URL)

    try:
        settings = _settings(args)
        published = Orchestrator(SqlAlchemyRepository(session), settings).publish(_dates(args, settings))
        session.close()
        print(f"[OK] Published {len(published)} planned shifts")

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Publish failed: {e}")
        raise


def _cmd_summarize(args: argparse.Namespace) -> None:
    """Summarize a day's assignments (dry run) and the planned hours grid."""
    session = get_session(args.db or DEFAULT_DB_URL)

    try:
        settings = _settings(args)
        repo = SqlAlchemyRepository(session)
        members = repo.select("members")
        result = Orchestrator(repo, settings).generate_day(date.fromisoformat(args.date), persist=False)
        print(summarize_assignments(result, members, repo.select("tasks")))

        shifts = repo.select("planned_shifts")
        if shifts:
            print("")
            print("Planned hours:")
            print(planned_hours_frame(shifts, members).to_string())
        session.close()

    except Exception as e:
        session.close()
        print(f"[ERROR] Summary failed: {e}")
        raise


def _cmd_rules(args: argparse.Namespace) -> None:
    """List explicit rules with their selectors resolved to names."""
    session = get_session(args.db or DEFAULT_DB_URL)

    try:
        repo = SqlAlchemyRepository(session)
        members_by_id = {m.id: m for m in repo.select("members")}
        tasks_by_id = {t.id: t for t in repo.select("tasks")}
        for rule in repo.select("explicit_rules"):
            task = tasks_by_id.get(rule.task_id)
            label = task.display_name if task else f"<unknown task {rule.task_id}>"
            excluded = f" (not {', '.join(rule.exclude_days)})" if rule.exclude_days else ""
            print(f"  {label}: {' > '.join(selector_labels(rule, members_by_id))}{excluded}")
        session.close()

    except Exception as e:
        session.close()
        print(f"[ERROR] Listing rules failed: {e}")
        raise


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="worklist",
        description="Daily task assignment and shift planning",
    )

    # Global options
    parser.add_argument("--db", help=f"Database URL (default: {DEFAULT_DB_URL})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show engine log output")

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.add_argument("--reset", action="store_true", help="Drop and recreate all tables")
    init.set_defaults(func=_cmd_init_db)

    # load command
    load = sub.add_parser("load", help="Load a YAML/JSON seed file into the database")
    load.add_argument("seed", help="Path to seed file")
    load.set_defaults(func=_cmd_load)

    # generate command
    gen = sub.add_parser("generate", help="Generate task assignments")
    gen.add_argument("--date", required=True, help="First date (YYYY-MM-DD)")
    gen.add_argument("--days", type=int, help="Number of days (default: 1)")
    gen.add_argument("--config", help="Path to settings YAML/JSON")
    gen.add_argument("--out", help="Optional: export assignments to CSV")
    gen.add_argument("--dry-run", action="store_true", help="Do not persist assignments")
    gen.set_defaults(func=_cmd_generate)

    # autofill / conflicts / publish share a date range
    for name, func, text in (
        ("autofill", _cmd_autofill, "Fill staffing gaps with draft shifts"),
        ("conflicts", _cmd_conflicts, "List planner conflicts"),
        ("publish", _cmd_publish, "Publish draft shifts"),
    ):
        cmd = sub.add_parser(name, help=text)
        cmd.add_argument("--start", required=True, help="First date (YYYY-MM-DD)")
        cmd.add_argument("--days", type=int, help="Number of days (default: planning period)")
        cmd.add_argument("--config", help="Path to settings YAML/JSON")
        if name == "autofill":
            cmd.add_argument("--out", help="Optional: export planned shifts to CSV")
            cmd.add_argument("--dry-run", action="store_true", help="Do not persist shifts")
        cmd.set_defaults(func=func)

    # summarize command
    summ = sub.add_parser("summarize", help="Summarize a day's assignments without saving")
    summ.add_argument("--date", required=True, help="Date (YYYY-MM-DD)")
    summ.add_argument("--config", help="Path to settings YAML/JSON")
    summ.set_defaults(func=_cmd_summarize)

    # rules command
    rules = sub.add_parser("rules", help="List explicit assignment rules")
    rules.set_defaults(func=_cmd_rules)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
