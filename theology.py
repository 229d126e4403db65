#!/usr/bin/env python
"""
theology.py – unified CLI for the Systematic Theology Index

Commands:

  python theology.py init-schema
      Create/ensure the outline, index, edge, tag and run tables

  python theology.py import path/to/export.html [--clear] [--resume] [--dry-run]
      Parse an export (or a directory of .html/.xlsx/.csv/.pdf/.json files)
      and load it in one transaction

  python theology.py relink [--chapter 32] [--limit 50] [--backup] [--dry-run]
      Link citations that earlier imports missed

  python theology.py status
      Entry counts, index/edge/tag counts, last import run

  python theology.py resolve-link "[[ST:Ch32:A.1]]"
  python theology.py for-passage Rom 8 --verse 28
  python theology.py related 32
"""

import argparse
import sqlite3
import sys
from pathlib import Path
from typing import List, Optional

from sti import config
from sti.db import get_conn
from sti.importer import ImportFailed, ImportOptions, ImportOrchestrator
from sti.lookup import entries_for_passage, related_chapters, resolve_link
from sti.paths import ensure_basic_dirs, resolve_db_path
from sti.relink import RelinkMaintenancePass
from sti.schema import init_schema
from sti.status import print_status
from sti.util import error, info, ok, set_verbose, warn


# ---------- Command handlers ----------


def cmd_init_schema(args: argparse.Namespace) -> int:
    """
    Apply the schema to the database (idempotent).
    """
    db_path = resolve_db_path(args.db)
    info(f"Applying schema to: {db_path}")
    with get_conn(db_path) as conn:
        init_schema(conn)
    ok("Schema initialized / verified.")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """
    Wire through to ImportOrchestrator with full options.
    """
    options = ImportOptions(
        clear=args.clear,
        resume=args.resume,
        skip_summaries=args.skip_summaries,
        dry_run=args.dry_run,
    )
    ImportOrchestrator(resolve_db_path(args.db), options).run(Path(args.path))
    return 0


def cmd_relink(args: argparse.Namespace) -> int:
    """
    Wire through to RelinkMaintenancePass.
    """
    db_path = resolve_db_path(args.db)
    if not db_path.exists():
        error(f"Database not found: {db_path}")
        return 1
    RelinkMaintenancePass(
        db_path,
        dry_run=args.dry_run,
        chapter=args.chapter,
        limit=args.limit,
        backup=args.backup,
    ).run()
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """
    Print a quick system status report.
    """
    print_status(resolve_db_path(args.db))
    return 0


def cmd_resolve_link(args: argparse.Namespace) -> int:
    with get_conn(resolve_db_path(args.db), readonly=True) as conn:
        entry_id = resolve_link(conn, args.link)
    if entry_id is None:
        warn(f"No entry for {args.link}")
        return 1
    print(entry_id)
    return 0


def cmd_for_passage(args: argparse.Namespace) -> int:
    with get_conn(resolve_db_path(args.db), readonly=True) as conn:
        rows = entries_for_passage(conn, args.book, args.chapter, args.verse)
    if not rows:
        warn("No entries cite this passage.")
        return 0
    for r in rows:
        span = f"{r['start_verse']}" + (f"-{r['end_verse']}" if r["end_verse"] else "")
        star = "*" if r["is_primary"] else " "
        print(f"{star} Ch{r['chapter_number']} {r['entry_type']:<10} v{span:<7} {r['title']}")
    return 0


def cmd_related(args: argparse.Namespace) -> int:
    with get_conn(resolve_db_path(args.db), readonly=True) as conn:
        rows = related_chapters(conn, args.chapter)
    if not rows:
        warn(f"No related chapters recorded for chapter {args.chapter}.")
        return 0
    for r in rows:
        print(f"  - Ch{r['target_chapter']}: {r['target_title'] or '(not imported)'}")
    return 0


# ---------- Parser setup ----------


def _add_db_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--db",
        type=str,
        default=None,
        help=f"Path to SQLite DB (default: ${config.DB_ENV_VAR} or theology.sqlite at project root)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="theology",
        description=f"{config.APP_NAME} CLI (v{config.__version__})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # init-schema
    p_schema = sub.add_parser(
        "init-schema",
        help="Create/ensure the outline, scripture index, edge and tag tables",
    )
    _add_db_arg(p_schema)
    p_schema.set_defaults(func=cmd_init_schema)

    # import
    p_import = sub.add_parser(
        "import",
        help="Import an export file (or a directory of them) into the database",
    )
    p_import.add_argument(
        "path",
        type=str,
        help="File (.html, .htm, .xlsx, .xlsm, .csv, .pdf, .json) or directory",
    )
    p_import.add_argument(
        "--clear",
        action="store_true",
        help="Delete existing entries, index rows, edges and tag links first",
    )
    p_import.add_argument(
        "--resume",
        action="store_true",
        help="Skip files whose content was already imported",
    )
    p_import.add_argument(
        "--skip-summaries",
        action="store_true",
        help="Do not generate entry summaries",
    )
    p_import.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not write to the DB; just parse and report",
    )
    p_import.add_argument("--verbose", action="store_true", help="Print debug output")
    _add_db_arg(p_import)
    p_import.set_defaults(func=cmd_import)

    # relink
    p_relink = sub.add_parser(
        "relink",
        help="Link free-text citations missed by earlier imports",
    )
    p_relink.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing",
    )
    p_relink.add_argument("--verbose", action="store_true", help="Print debug output")
    p_relink.add_argument(
        "--chapter",
        type=int,
        default=None,
        help="Only process entries of this chapter",
    )
    p_relink.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of entries to process",
    )
    p_relink.add_argument(
        "--backup",
        action="store_true",
        help="Back up the database to data/backups/ before changing it",
    )
    _add_db_arg(p_relink)
    p_relink.set_defaults(func=cmd_relink)

    # status
    p_status = sub.add_parser(
        "status",
        help="Show DB, entry, index and import-run summary",
    )
    _add_db_arg(p_status)
    p_status.set_defaults(func=cmd_status)

    # resolve-link
    p_link = sub.add_parser(
        "resolve-link",
        help="Resolve '[[ST:Ch32]]', '[[ST:Ch32:A]]' or '[[ST:Ch32:A.1]]' to an entry id",
    )
    p_link.add_argument("link", type=str, help="Link text, e.g. '[[ST:Ch32:A.1]]'")
    _add_db_arg(p_link)
    p_link.set_defaults(func=cmd_resolve_link)

    # for-passage
    p_passage = sub.add_parser(
        "for-passage",
        help="List entries citing a passage (primary references marked *)",
    )
    p_passage.add_argument("book", type=str, help="Book name or abbreviation, e.g. 'Rom'")
    p_passage.add_argument("chapter", type=int, help="Chapter number")
    p_passage.add_argument("--verse", type=int, default=None, help="Verse within the chapter")
    _add_db_arg(p_passage)
    p_passage.set_defaults(func=cmd_for_passage)

    # related
    p_related = sub.add_parser(
        "related",
        help="List chapters a chapter refers to with 'see chapter N'",
    )
    p_related.add_argument("chapter", type=int, help="Source chapter number")
    _add_db_arg(p_related)
    p_related.set_defaults(func=cmd_related)

    return parser


# ---------- Main ----------


def main(argv: Optional[List[str]] = None) -> int:
    ensure_basic_dirs()
    parser = build_parser()
    args = parser.parse_args(argv)
    set_verbose(getattr(args, "verbose", False))
    try:
        return args.func(args)
    except ImportFailed as e:
        error(str(e))
        return 1
    except sqlite3.Error as e:
        error(f"Database error, changes rolled back: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
