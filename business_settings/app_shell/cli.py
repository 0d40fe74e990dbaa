import argparse
import logging
import sys
import time
from uuid import UUID

from business_settings.adapters.sqlite.migrator import SQLiteMigrator
from business_settings.app_shell.config import AppConfig, validate_config
from business_settings.app_shell.context import ServiceContext
from business_settings.rules.loader import load_rules

logger = logging.getLogger("cli")


def get_context(config: AppConfig) -> ServiceContext:
    validate_config(config)
    rules = load_rules(config.rules_path)
    db_path = config.db_path(rules)
    return ServiceContext.create(str(db_path), rules)


def handle_migrate(config: AppConfig, ctx: ServiceContext, status_only: bool = False) -> None:
    migrator = SQLiteMigrator(ctx.store.db_path, config.migrations_dir)
    if status_only:
        pending = migrator.pending_migrations()
        print(f"Pending migrations: {', '.join(pending) if pending else 'none'}")
        return

    applied = migrator.run_migrations()
    if applied:
        print(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        print("Database is up to date.")


def handle_expire_dnd(ctx: ServiceContext) -> None:
    result = ctx.settings_service.process_expired_dnd_modes()
    print(
        f"Due: {result.total_due}, expired: {result.expired}, "
        f"failed: {result.failed}, deferred: {result.abandoned}"
    )
    for failure in result.failures:
        print(f" - {failure.business_id}: {failure.error}")
    if result.failed:
        sys.exit(2)


def handle_run_scheduler(ctx: ServiceContext) -> None:
    scheduler = ctx.scheduler
    scheduler.start()
    print("DnD expiry scheduler running. Press Ctrl-C to stop.")
    try:
        while scheduler.is_running:
            time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping scheduler")
    finally:
        scheduler.stop()


def handle_show_business(ctx: ServiceContext, business_id: UUID) -> None:
    view = ctx.settings_service.get_business_settings(business_id)
    print(view.model_dump_json(indent=2))


def handle_show_rep(ctx: ServiceContext, business_rep_id: UUID) -> None:
    settings = ctx.settings_service.get_rep_settings(business_rep_id)
    print(settings.model_dump_json(indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Business Settings Service CLI")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending database migrations")
    migrate_parser.add_argument(
        "--status", action="store_true", help="List pending migrations without applying them"
    )

    # expire-dnd
    subparsers.add_parser("expire-dnd", help="Run one DnD expiry sweep")

    # run-scheduler
    subparsers.add_parser("run-scheduler", help="Run the DnD expiry scheduler until Ctrl-C")

    # show-business
    business_parser = subparsers.add_parser("show-business", help="Print business settings")
    business_parser.add_argument("business_id", type=UUID, help="Business id")

    # show-rep
    rep_parser = subparsers.add_parser("show-rep", help="Print representative settings")
    rep_parser.add_argument("business_rep_id", type=UUID, help="Representative id")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))

    config = AppConfig.from_env()
    ctx = get_context(config)

    if args.command == "migrate":
        handle_migrate(config, ctx, status_only=args.status)
    elif args.command == "expire-dnd":
        handle_expire_dnd(ctx)
    elif args.command == "run-scheduler":
        handle_run_scheduler(ctx)
    elif args.command == "show-business":
        handle_show_business(ctx, args.business_id)
    elif args.command == "show-rep":
        handle_show_rep(ctx, args.business_rep_id)


if __name__ == "__main__":
    main()
