"""markdb CLI: main entry point.

Commands:
  list      List the entries of a database
  show      Show one entry's frontmatter and content
  match     List the entries matching one or more JSON inputs
  schema    Print the frontmatter JSON schema
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from markdb.db.engine import MarkdownDb
from markdb.db.entry import Entry
from markdb.errors import MarkdownDbError
from markdb.query.predicates import field_query_engine

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="markdb",
        description="markdb: hierarchical markdown entries matched by frontmatter queries",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # list
    list_parser = subparsers.add_parser("list", help="List the entries of a database")
    list_parser.add_argument("root", nargs="?", default=".", help="Database directory")

    # show
    show_parser = subparsers.add_parser("show", help="Show one entry")
    show_parser.add_argument("id", help="Entry id")
    show_parser.add_argument("root", nargs="?", default=".", help="Database directory")

    # match
    match_parser = subparsers.add_parser("match", help="List entries matching JSON inputs")
    match_parser.add_argument("root", nargs="?", default=".", help="Database directory")
    match_parser.add_argument(
        "-i", "--input", dest="inputs", action="append", required=True,
        help="JSON input value (repeat to match any of several inputs)",
    )
    match_parser.add_argument(
        "--skip-empty", action="store_true", help="Leave out entries without content"
    )

    # schema
    schema_parser = subparsers.add_parser("schema", help="Print the frontmatter JSON schema")
    schema_parser.add_argument("root", nargs="?", default=".", help="Database directory")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    console = Console()
    try:
        if args.command == "list":
            return cmd_list(args, console)
        elif args.command == "show":
            return cmd_show(args, console)
        elif args.command == "match":
            return cmd_match(args, console)
        elif args.command == "schema":
            return cmd_schema(args, console)
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except (MarkdownDbError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        Console(stderr=True).print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        return 1


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def open_db(root: str) -> MarkdownDb[Any]:
    """Open the database at root with settings and the field predicates."""
    path = Path(root).resolve()
    if not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {path}")
    return MarkdownDb.from_settings(path).with_query_engine(field_query_engine())


def _entries_table(entries: list[Entry], root: Path, title: str) -> Table:
    table = Table(title=title)
    table.add_column("id", style="bold")
    table.add_column("type")
    table.add_column("path", style="dim")
    for entry in entries:
        table.add_row(entry.id, entry.type or "", entry.relative_path(root))
    return table


def cmd_list(args: argparse.Namespace, console: Console) -> int:
    """List the entries of a database."""
    db = open_db(args.root)
    entries = asyncio.run(db.get_all())
    console.print(_entries_table(entries, db.root, f"{len(entries)} entries"))
    return 0


def cmd_show(args: argparse.Namespace, console: Console) -> int:
    """Show one entry's frontmatter and content."""
    db = open_db(args.root)
    entry = asyncio.run(db.get_one_by_id(args.id))
    if entry is None:
        print(f"No entry with id {args.id!r}", file=sys.stderr)
        return 1

    header = json.dumps(entry.data.model_dump(mode="json"), indent=2)
    console.print(Panel(header, title=entry.id, subtitle=entry.relative_path(db.root)))
    if entry.content:
        console.print(Markdown(entry.content))
    return 0


def cmd_match(args: argparse.Namespace, console: Console) -> int:
    """List the entries matching one or more JSON inputs."""
    try:
        inputs = [json.loads(raw) for raw in args.inputs]
    except json.JSONDecodeError as e:
        print(f"Invalid JSON input: {e}", file=sys.stderr)
        return 1

    db = open_db(args.root)
    if len(inputs) == 1:
        entries = asyncio.run(db.match_one(inputs[0], skip_empty=args.skip_empty))
    else:
        entries = asyncio.run(db.match_any(inputs, skip_empty=args.skip_empty))

    logger.info("%d entries matched %d inputs", len(entries), len(inputs))
    console.print(_entries_table(entries, db.root, f"{len(entries)} matching entries"))
    return 0


def cmd_schema(args: argparse.Namespace, console: Console) -> int:
    """Print the frontmatter JSON schema."""
    db = open_db(args.root)
    console.print_json(json.dumps(db.json_schema))
    return 0


if __name__ == "__main__":
    sys.exit(main())
