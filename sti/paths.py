"""
Path configuration for the Systematic Theology Index project.
"""

import os
from pathlib import Path
from typing import Optional

from .config import DB_ENV_VAR

# Project root is one level up from sti/
PROJECT_ROOT = Path(__file__).parent.parent
DB_PATH = PROJECT_ROOT / "theology.sqlite"
DATA_DIR = PROJECT_ROOT / "data"
BACKUP_DIR = DATA_DIR / "backups"


def resolve_db_path(db_arg: Optional[str] = None) -> Path:
    """Resolve database path from CLI arg, STI_DB environment variable, or default."""
    if db_arg:
        return Path(db_arg)
    env = os.getenv(DB_ENV_VAR, "")
    if env:
        return Path(env)
    return DB_PATH


def ensure_basic_dirs() -> None:
    """
    Ensure essential directories exist:
    - data/
    - data/backups/
    """
    DATA_DIR.mkdir(exist_ok=True)
    BACKUP_DIR.mkdir(exist_ok=True)
