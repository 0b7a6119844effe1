import argparse
import logging
import sys
from typing import Optional, Sequence

from .core.db import get_database_manager, wait_for_db
from .core.migration import KubernetesServiceMigration
from .core.security import TokenEncryptor
from .exceptions import ConfigError, SelectionFailure
from .setting import get_settings

EXIT_OK = 0
EXIT_RECORD_FAILURES = 1
EXIT_FATAL = 2


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.engine.Engine").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.dialects").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.orm").setLevel(logging.WARNING)
    logging.getLogger("psycopg2").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Migrate legacy KubernetesService records into clusters"
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "reverse"],
        help="run: migrate all unmanaged records; reverse: no-op"
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy database URL (defaults to DATABASE_URL)"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Records per selector query (defaults to MIGRATION_BATCH_SIZE or 1)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--wait-for-db",
        action="store_true",
        help="Retry the database connection before starting"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the migration."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.batch_size is not None and args.batch_size < 1:
        parser.error("--batch-size must be >= 1")

    try:
        settings = get_settings()
    except ConfigError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(str(e))
        return EXIT_FATAL

    setup_logging(args.log_level or settings.log_level)

    if args.command == "reverse":
        # reverse() needs no database or key material
        KubernetesServiceMigration.reverse()
        return EXIT_OK

    try:
        database_url = args.database_url or settings.require_database_url()
        encryptor = TokenEncryptor(settings.require_db_key_base())
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_FATAL

    db_manager = get_database_manager(database_url)
    try:
        if args.wait_for_db and not wait_for_db(db_manager):
            return EXIT_FATAL

        migration = KubernetesServiceMigration(
            db_manager,
            encryptor,
            batch_size=args.batch_size or settings.batch_size,
        )
        try:
            report = migration.run()
        except SelectionFailure as e:
            logger.error(f"Migration aborted: {e}")
            return EXIT_FATAL
    finally:
        db_manager.dispose()

    if not report.succeeded:
        first = report.first_failure
        logger.error(f"Migration incomplete; first failing service {first.service_id}: {first.cause}")
        return EXIT_RECORD_FAILURES
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
