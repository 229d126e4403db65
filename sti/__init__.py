"""
sti - Systematic Theology Index core package

This package contains the core functionality for the Systematic Theology Index:
- config / paths: Project configuration, versioning and directories
- util: Console output helpers
- books / classify / structure: Outline parsing
- scripture / crossrefs: Citation and "see chapter N" recognition
- store / indexer: Persistence of entries, scripture index, edges and tags
- importer / relink: Import orchestration and the relink maintenance pass
- lookup / status: Read-side queries and status report
"""

from . import config
from .paths import PROJECT_ROOT, DB_PATH, ensure_basic_dirs, resolve_db_path
from .util import info, warn, ok, error
from .importer import ImportFailed, ImportOptions, ImportOrchestrator, run_import
from .relink import RelinkMaintenancePass, run_relink

__version__ = config.__version__
__all__ = [
    "config",
    "PROJECT_ROOT",
    "DB_PATH",
    "ensure_basic_dirs",
    "resolve_db_path",
    "info",
    "warn",
    "ok",
    "error",
    "ImportFailed",
    "ImportOptions",
    "ImportOrchestrator",
    "run_import",
    "RelinkMaintenancePass",
    "run_relink",
]
