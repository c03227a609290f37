import logging
import os
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)

DB_FILENAME = "study_time.db"
MIGRATIONS_DIR = "migrations"


def resolve_data_dir(rules: Rules, base_dir: Path) -> Path:
    """Data directory from the configured env var, else the rules default."""
    raw = os.environ.get(rules.ops.data_dir_env, rules.ops.default_data_dir)
    path = Path(raw)
    return path if path.is_absolute() else base_dir / path


def resolve_db_path(rules: Rules, base_dir: Path) -> str:
    return str(resolve_data_dir(rules, base_dir) / DB_FILENAME)


def validate_ops_rules(rules: Rules, base_dir: Path) -> Path:
    """
    Validate operational requirements before startup.
    Creates the data directory when missing and returns it.
    Raises RuntimeError if it is not writable.
    """
    data_dir = resolve_data_dir(rules, base_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    if not os.access(data_dir, os.W_OK):
        raise RuntimeError(f"Data directory is not writable: {data_dir}")

    if rules.batch.deadline_seconds is None:
        logger.info("No batch deadline configured; batches run to completion")

    logger.info("Configuration validated (data dir: %s)", data_dir)
    return data_dir
