import argparse
import json
import logging
import sys
from datetime import UTC, date, datetime, time
from pathlib import Path
from uuid import UUID

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.app_shell.config import MIGRATIONS_DIR, resolve_db_path, validate_ops_rules
from src.app_shell.context import StudyTimeContext
from src.components.study_time import BatchProcessResult
from src.domain.entities import EffectiveStudyRecord, format_duration
from src.rules.loader import default_rules_path, load_rules

logger = logging.getLogger("cli")


def get_context(rules_path: Path | None = None) -> StudyTimeContext:
    path = rules_path or default_rules_path()
    if not path.exists():
        logger.error("Rules file %s not found.", path)
        sys.exit(1)

    rules = load_rules(path)
    base_dir = Path.cwd()
    validate_ops_rules(rules, base_dir)
    db_path = resolve_db_path(rules, base_dir)
    SQLiteMigrator(db_path, MIGRATIONS_DIR).run_migrations()
    return StudyTimeContext.create(db_path, rules)


def _parse_date(value: str) -> datetime:
    return datetime.combine(date.fromisoformat(value), time.min, tzinfo=UTC)


def _print_record(record: EffectiveStudyRecord, prefix: str = "") -> None:
    reason = f" ({record.invalid_reason.value})" if record.invalid_reason else ""
    print(
        f"{prefix}{record.id} user={record.user_id} status={record.status.value}{reason} "
        f"effective={format_duration(record.effective_duration)} "
        f"total={format_duration(record.total_duration)}"
    )


def _select_records(ctx: StudyTimeContext, args: argparse.Namespace) -> list[EffectiveStudyRecord]:
    # Snapshot the selection first; recalculation may move records out of the filter
    selected: list[EffectiveStudyRecord] = []
    offset = 0
    while True:
        page = ctx.record_repo.list_for_recalculation(
            user_id=args.user_id,
            study_date=_parse_date(args.date) if args.date else None,
            course_id=args.course_id,
            only_invalid=args.only_invalid,
            limit=args.batch_size,
            offset=offset,
        )
        selected.extend(page)
        if len(page) < args.batch_size:
            return selected
        offset += args.batch_size


def handle_recalculate(ctx: StudyTimeContext, args: argparse.Namespace) -> None:
    if args.date and not args.user_id:
        logger.error("--date requires --user-id")
        sys.exit(2)

    if args.record_id:
        record, errors = ctx.study_time_service.recalculate_by_id(
            UUID(args.record_id), force=args.force, dry_run=args.dry_run
        )
        if errors:
            for error in errors:
                print(f"Error [{error.code}]: {error.message}")
            sys.exit(1)
        assert record is not None
        _print_record(record, prefix="[dry run] " if args.dry_run else "")
        return

    records = _select_records(ctx, args)
    if not records:
        print("No records matched.")
        return

    deadline = ctx.rules.batch.deadline_seconds
    totals = BatchProcessResult()
    for start in range(0, len(records), args.batch_size):
        chunk = records[start : start + args.batch_size]
        result = ctx.study_time_service.batch_recalculate(
            chunk, force=args.force, dry_run=args.dry_run, deadline_seconds=deadline
        )
        totals.results.extend(result.results)
        if args.verbose:
            for item in result.results:
                if item.record is not None:
                    _print_record(item.record, prefix="  ")
                else:
                    print(f"  {item.key}: {item.error}")
        if result.deadline_exceeded:
            totals.deadline_exceeded = True
            break

    print(
        f"Recalculated {totals.succeeded} of {len(records)} records "
        f"({totals.failed} failed, {totals.skipped} skipped)"
        + (" [dry run]" if args.dry_run else "")
    )
    if totals.deadline_exceeded:
        print("Stopped early: batch deadline exceeded.")


def handle_report(ctx: StudyTimeContext, args: argparse.Namespace) -> None:
    service = ctx.study_time_service
    report: dict[str, object] = {}

    if args.user_id:
        if not (args.start and args.end):
            logger.error("--user-id requires --start and --end")
            sys.exit(2)
        stats = service.get_user_study_time_stats(
            args.user_id, _parse_date(args.start), _parse_date(args.end)
        )
        report["user"] = stats.to_dict()

    if args.course_id:
        report["course"] = service.get_course_study_time_stats(args.course_id).to_dict()

    if args.start and args.end:
        reasons = service.get_invalid_reason_stats(_parse_date(args.start), _parse_date(args.end))
        report["invalid_reasons"] = [r.to_dict() for r in reasons]

    if not report:
        logger.error("Nothing to report: pass --user-id, --course-id or --start/--end")
        sys.exit(2)

    if args.json:
        print(json.dumps(report, indent=2))
        return

    for section, data in report.items():
        print(f"== {section} ==")
        rows = data if isinstance(data, list) else [data]
        for row in rows:
            for key, value in row.items():
                print(f"  {key}: {value}")
            print()


def handle_notify(ctx: StudyTimeContext, args: argparse.Namespace) -> None:
    sent = ctx.study_time_service.send_pending_notifications(limit=args.limit)
    print(f"Sent {sent} notifications.")


def handle_set_limit(ctx: StudyTimeContext, args: argparse.Namespace) -> None:
    ctx.user_config_repo.set_daily_limit(args.user_id, int(args.hours * 3600))
    ctx.daily_limits.invalidate(args.user_id)
    print(f"Daily limit for {args.user_id} set to {args.hours}h.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Effective Study Time CLI")
    parser.add_argument("--rules", type=Path, help="Path to rules.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply database migrations")

    # recalculate
    recalc_parser = subparsers.add_parser("recalculate", help="Recalculate effective study time")
    recalc_parser.add_argument("--record-id", help="Recalculate a single record")
    recalc_parser.add_argument("--user-id", help="Limit to one user")
    recalc_parser.add_argument("--date", help="Study date YYYY-MM-DD (requires --user-id)")
    recalc_parser.add_argument("--course-id", help="Limit to one course")
    recalc_parser.add_argument("--batch-size", type=int, default=50, help="Records per batch")
    recalc_parser.add_argument(
        "--only-invalid", action="store_true", help="Only records currently invalid"
    )
    recalc_parser.add_argument("--dry-run", action="store_true", help="Compute without saving")
    recalc_parser.add_argument(
        "--force", action="store_true", help="Recalculate valid/invalid records too"
    )
    recalc_parser.add_argument("-v", "--verbose", action="store_true", help="Print each record")

    # report
    report_parser = subparsers.add_parser("report", help="Study time statistics")
    report_parser.add_argument("--user-id", help="User to summarize")
    report_parser.add_argument("--course-id", help="Course to summarize")
    report_parser.add_argument("--start", help="First study date YYYY-MM-DD")
    report_parser.add_argument("--end", help="Last study date YYYY-MM-DD")
    report_parser.add_argument("--json", action="store_true", help="Print JSON")

    # notify
    notify_parser = subparsers.add_parser("notify", help="Send pending result notifications")
    notify_parser.add_argument("--limit", type=int, help="Maximum records to notify")

    # set-limit
    limit_parser = subparsers.add_parser("set-limit", help="Set a user's daily limit")
    limit_parser.add_argument("user_id", help="User id")
    limit_parser.add_argument("hours", type=float, help="Daily limit in hours")

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    ctx = get_context(args.rules)

    if args.command == "migrate":
        print("Migrations applied.")
    elif args.command == "recalculate":
        handle_recalculate(ctx, args)
    elif args.command == "report":
        handle_report(ctx, args)
    elif args.command == "notify":
        handle_notify(ctx, args)
    elif args.command == "set-limit":
        handle_set_limit(ctx, args)


if __name__ == "__main__":
    main()
