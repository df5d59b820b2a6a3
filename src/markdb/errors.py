"""Exception hierarchy for markdb.

Every error raised by the database derives from MarkdownDbError so callers
can catch the whole family, while the builtin bases (ValueError, LookupError)
keep them usable with generic handlers.
"""

from __future__ import annotations

from pathlib import Path


class MarkdownDbError(Exception):
    """Base class for all markdb errors."""


class ConfigError(MarkdownDbError, ValueError):
    """Raised when a settings file contains an invalid value."""


class FrontmatterError(MarkdownDbError, ValueError):
    """Raised when a frontmatter header cannot be parsed as a YAML mapping."""


class QueryValidationError(MarkdownDbError, ValueError):
    """Raised when a query expression does not fit the engine's grammar."""


class EntryLoadError(MarkdownDbError, ValueError):
    """Raised when a markdown file cannot be turned into an entry.

    Attributes:
        path: Path of the offending file, relative to the database root.
    """

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class DuplicateEntryIdError(EntryLoadError):
    """Raised when two files resolve to the same entry id."""

    def __init__(self, entry_id: str, paths: list[str]) -> None:
        joined = ", ".join(paths)
        super().__init__(f"Duplicate entry id {entry_id!r} for files: {joined}", paths[-1])
        self.entry_id = entry_id
        self.paths = paths


class NotAnEntryFileError(MarkdownDbError, LookupError):
    """Raised when a file is outside the database root or its globs."""

    def __init__(self, path: Path, root: Path, globs: tuple[str, ...]) -> None:
        super().__init__(
            f"File {path} is not an entry file in this MarkdownDb instance\n"
            f"  - Cwd: {root}\n"
            f"  - Globs: {', '.join(globs)}"
        )
        self.path = path
