"""
Marknest CLI: maintenance commands for the document service.

Commands:
- marknest documents:cleanup-trashed  Permanently delete documents trashed longer than --days
- marknest folders:cleanup-trashed    Permanently delete trashed folder trees older than --days
- marknest schedule:work              Run the daily cleanup scheduler in the foreground
- marknest db:init                    Create all tables (development helper; use Alembic in production)

Exit code is 0 whenever a command completes, including "nothing to do",
a declined confirmation and a run skipped because another run holds the
lock. Only failing to reach the database is fatal (exit code 1).
"""

import argparse
import asyncio
import logging
import sys
from typing import Callable, Optional
from .config.settings import Settings, get_settings
from .core.trash_sweeper import SweepReport, TrashSweeper
from .infrastructure.database.client import DatabaseClient

logger = logging.getLogger("marknest_service.cli")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="marknest",
        description="Marknest document service maintenance",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # marknest documents:cleanup-trashed
    docs_parser = subparsers.add_parser(
        "documents:cleanup-trashed", help="Permanently delete documents past the trash retention window"
    )
    docs_parser.add_argument(
        "--days", type=int, help="Retention window in days (default: DOCUMENT_RETENTION_DAYS, 30)"
    )
    _add_force_flag(docs_parser)

    # marknest folders:cleanup-trashed
    folders_parser = subparsers.add_parser(
        "folders:cleanup-trashed", help="Permanently delete trashed folder trees past the retention window"
    )
    folders_parser.add_argument(
        "--days", type=int, help="Retention window in days (default: FOLDER_RETENTION_DAYS, 90)"
    )
    _add_force_flag(folders_parser)

    # marknest schedule:work
    subparsers.add_parser("schedule:work", help="Run the daily cleanup scheduler in the foreground")

    # marknest db:init
    subparsers.add_parser("db:init", help="Create database tables")

    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)

    if args.command in ("documents:cleanup-trashed", "folders:cleanup-trashed"):
        if args.days is not None and args.days < 0:
            parser.error("--days must be zero or positive")
        return cmd_cleanup_trashed(args, settings)
    elif args.command == "schedule:work":
        return cmd_schedule_work(settings)
    elif args.command == "db:init":
        return cmd_db_init(settings)
    else:
        parser.print_help()
        return 0


def _add_force_flag(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--force",
        "--no-interaction",
        dest="force",
        action="store_true",
        help="Delete without asking for confirmation",
    )


def make_confirm(kind: str, force: bool, stdin=None, ask: Callable[[str], str] = input):
    """
    Build the confirmation callback handed to the sweeper.

    Returns None (proceed unconditionally) with --force or when stdin is not
    a terminal; otherwise a callable that asks on the console.
    """
    stdin = stdin or sys.stdin
    if force or not stdin.isatty():
        return None

    def confirm(count: int) -> bool:
        answer = ask(f"Permanently delete {count} trashed {kind}? This cannot be undone. [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    return confirm


def cmd_cleanup_trashed(args: argparse.Namespace, settings: Settings) -> int:
    """Run one document or folder sweep and print its summary."""
    kind = "documents" if args.command.startswith("documents") else "folders"
    confirm = make_confirm(kind, args.force)

    try:
        report = asyncio.run(_sweep(settings, kind, args.days, confirm))
    except Exception as e:
        logger.error(f"Trash cleanup aborted: {e}")
        print(f"[ERROR] Trash cleanup aborted: {e}")
        return 1

    print(report.summary())
    if report.failed_ids:
        print(f"[WARN] {report.failed} {kind} could not be deleted: {', '.join(report.failed_ids)}")
    return 0


async def _sweep(settings: Settings, kind: str, days: Optional[int], confirm) -> SweepReport:
    db_client = DatabaseClient(settings.database_url, echo=settings.database_echo)
    try:
        await db_client.verify_connection()
        sweeper = TrashSweeper(db_client, settings.retention(), settings.task_lock_expiry_minutes)
        if kind == "documents":
            return await sweeper.sweep_documents(days, confirm)
        return await sweeper.sweep_folders(days, confirm)
    finally:
        await db_client.close()


def cmd_schedule_work(settings: Settings) -> int:
    """Run the cleanup scheduler until interrupted."""
    from .scheduler import run_scheduler

    print(
        f"Running scheduler: trash cleanup daily at "
        f"{settings.cleanup_schedule_hour:02d}:{settings.cleanup_schedule_minute:02d} UTC. Press Ctrl+C to stop."
    )
    try:
        asyncio.run(run_scheduler(settings))
    except KeyboardInterrupt:
        print("Scheduler stopped")
    except Exception as e:
        logger.error(f"Scheduler failed: {e}")
        print(f"[ERROR] Scheduler failed: {e}")
        return 1
    return 0


def cmd_db_init(settings: Settings) -> int:
    """Create all tables on the configured database."""
    async def _init():
        db_client = DatabaseClient(settings.database_url, echo=settings.database_echo)
        try:
            await db_client.initialize()
        finally:
            await db_client.close()

    try:
        asyncio.run(_init())
    except Exception as e:
        print(f"[ERROR] Database initialization failed: {e}")
        return 1
    print(f"[OK] Tables created on {settings.database_url}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
