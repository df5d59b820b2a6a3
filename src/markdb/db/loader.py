"""Entry loader: turns markdown files under a root into validated entries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ValidationError

from markdb.db.entry import Entry, compute_entry_id
from markdb.db.frontmatter import split_frontmatter
from markdb.errors import (
    DuplicateEntryIdError,
    EntryLoadError,
    FrontmatterError,
    NotAnEntryFileError,
)
from markdb.utils.paths import is_in_dir, list_files, matches_any_glob, relative_posix

logger = logging.getLogger(__name__)


def is_entry_file(file: Path, root: Path, globs: Sequence[str]) -> bool:
    """Check if file is inside root and matches one of the globs."""
    if not is_in_dir(file, root):
        return False
    return matches_any_glob(relative_posix(file, root), globs)


def parse_entry(
    text: str,
    file: Path,
    root: Path,
    schema: type[BaseModel],
    separator: str,
) -> Entry:
    """Build an entry from the text of a markdown file.

    Raises:
        EntryLoadError: if the header is unreadable or fails validation.
    """
    rel_path = relative_posix(file, root)

    try:
        header, body = split_frontmatter(text)
    except FrontmatterError as err:
        raise EntryLoadError(
            f"Failed to read markdown file header for {rel_path}", rel_path
        ) from err

    try:
        data = schema.model_validate(header if header is not None else {})
    except ValidationError as err:
        if header is None:
            raise EntryLoadError(
                f"Failed to parse config for {rel_path}. "
                "Expected a frontmatter header but got none.",
                rel_path,
            ) from err
        raise EntryLoadError(f"Failed to parse config for {rel_path}:\n{err}", rel_path) from err

    entry_id, entry_type = compute_entry_id(root, file, separator)
    content = body.strip()
    return Entry(
        id=entry_id,
        type=entry_type,
        content=content or None,
        file=file.resolve(),
        data=data,
    )


async def file_to_entry(
    file: Path | str,
    root: Path,
    globs: Sequence[str],
    schema: type[BaseModel],
    separator: str,
) -> Entry:
    """Read and parse one entry file.

    Raises:
        NotAnEntryFileError: if the file is outside root or matches no glob.
        EntryLoadError: if the file's header is invalid.
    """
    file = Path(file)
    if not is_entry_file(file, root, globs):
        raise NotAnEntryFileError(file, root, tuple(globs))

    text = await asyncio.to_thread(file.read_text, encoding="utf-8")
    return parse_entry(text, file, root, schema, separator)


def check_duplicate_ids(entries: Sequence[Entry], root: Path, allowed: bool) -> None:
    """Raise on the first id shared by two entries, or log it when allowed."""
    seen: dict[str, str] = {}
    for entry in entries:
        rel_path = entry.relative_path(root)
        previous = seen.get(entry.id)
        if previous is not None:
            if not allowed:
                raise DuplicateEntryIdError(entry.id, [previous, rel_path])
            logger.warning("Entry %s from %s shadows %s", entry.id, rel_path, previous)
        seen[entry.id] = rel_path


async def read_entries(
    root: Path,
    globs: Sequence[str],
    schema: type[BaseModel],
    separator: str,
    allow_duplicate_ids: bool = False,
) -> list[Entry]:
    """Load every entry under root, sorted by relative path.

    Files are read concurrently; the result follows path order regardless of
    completion order. The first failing file fails the whole load.
    """
    files = await asyncio.to_thread(list_files, root, globs)
    logger.debug("Loading %d entry files from %s", len(files), root)

    entries = await asyncio.gather(
        *(file_to_entry(f, root, globs, schema, separator) for f in files)
    )
    check_duplicate_ids(entries, root, allow_duplicate_ids)
    return list(entries)
