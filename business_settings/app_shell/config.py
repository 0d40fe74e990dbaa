import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from business_settings.rules.models import Rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    rules_path: Path
    migrations_dir: Path

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            data_dir=Path(os.environ.get("BSS_DATA_DIR", "./data")),
            rules_path=Path(os.environ.get("BSS_RULES_PATH", "./rules.yaml")),
            migrations_dir=Path(os.environ.get("BSS_MIGRATIONS_DIR", "./migrations")),
        )

    def db_path(self, rules: Rules) -> Path:
        return self.data_dir / rules.storage.db_filename


def validate_config(config: AppConfig) -> None:
    """
    Validate operational requirements before startup.

    Exits the process when the rules file is missing or the data directory
    cannot be written.
    """
    problems = []

    # 1. Rules file
    if not config.rules_path.is_file():
        problems.append(f"rules file not found: {config.rules_path}")

    # 2. Migrations
    if not config.migrations_dir.is_dir():
        problems.append(f"migrations directory not found: {config.migrations_dir}")

    # 3. Data dir (created on demand)
    try:
        config.data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        problems.append(f"cannot create data directory {config.data_dir}: {e}")
    else:
        if not os.access(config.data_dir, os.W_OK):
            problems.append(f"data directory is not writable: {config.data_dir}")

    if problems:
        for problem in problems:
            logger.critical("Configuration error: %s", problem)
        sys.exit(1)

    logger.info("Configuration validated.")
