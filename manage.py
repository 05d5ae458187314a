from __future__ import annotations

import argparse
import json
from pathlib import Path

from alembic import command
from alembic.config import Config


def get_alembic_config() -> Config:
    here = Path(__file__).resolve().parent
    cfg = Config(str(here / "alembic.ini"))
    return cfg


def cmd_upgrade() -> None:
    cfg = get_alembic_config()
    command.upgrade(cfg, "head")


def cmd_downgrade(revision: str) -> None:
    cfg = get_alembic_config()
    command.downgrade(cfg, revision)


def cmd_sync_counters(queue: bool) -> None:
    if queue:
        from hireoo_bg_worker.counters_worker import sync_daily_counters_task

        result = sync_daily_counters_task.delay()
        print(f"Queued daily counter sync (task_id={result.id})")
        return

    from app.core.limits.services import sync_daily_counters
    from app.database.session import SessionLocal

    db = SessionLocal()
    try:
        report = sync_daily_counters(db)
    finally:
        db.close()
    print(
        f"Users checked: {report.checked}, fixed: {report.fixed}, "
        f"skipped (changed concurrently): {report.skipped}"
    )


def cmd_diagnose(email: str) -> None:
    from app.core.auth.models import User
    from app.core.limits.services import get_counter_diagnostics
    from app.database.session import SessionLocal

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            print(f"User {email} not found")
            return
        report = get_counter_diagnostics(db, user.id)
    finally:
        db.close()
    print(json.dumps(report, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Migrations and daily counter maintenance"
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("upgrade", help="Apply all migrations (upgrade head)")

    downgrade_parser = subparsers.add_parser(
        "downgrade", help="Downgrade to a specific revision"
    )
    downgrade_parser.add_argument("revision", help="Revision id or -1, -2, ...")

    revision_parser = subparsers.add_parser(
        "revision", help="Create new alembic revision"
    )
    revision_parser.add_argument(
        "-m",
        "--message",
        required=True,
        help="Revision message",
    )
    revision_parser.add_argument(
        "--autogenerate",
        action="store_true",
        help="Populate revision with schema diff from models",
    )

    sync_parser = subparsers.add_parser(
        "sync-counters",
        help="Recompute daily match counters from job_matches",
    )
    sync_parser.add_argument(
        "--queue",
        action="store_true",
        help="Run on the Celery worker instead of in-process",
    )

    diagnose_parser = subparsers.add_parser(
        "diagnose", help="Show daily counter state for one user"
    )
    diagnose_parser.add_argument("--email", required=True)

    args = parser.parse_args()

    if args.command == "upgrade" or args.command is None:
        cmd_upgrade()
    elif args.command == "downgrade":
        cmd_downgrade(args.revision)
    elif args.command == "revision":
        cfg = get_alembic_config()
        command.revision(
            cfg,
            message=args.message,
            autogenerate=args.autogenerate,
        )
    elif args.command == "sync-counters":
        cmd_sync_counters(args.queue)
    elif args.command == "diagnose":
        cmd_diagnose(args.email)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
