"""markdb: hierarchical markdown entries matched by frontmatter queries."""

from markdb.db.engine import EntryData, MarkdownDb, MarkdownDbConfig
from markdb.db.entry import DEFAULT_NAME_SEPARATOR, Entry, EntryId, compute_entry_id
from markdb.errors import (
    ConfigError,
    DuplicateEntryIdError,
    EntryLoadError,
    FrontmatterError,
    MarkdownDbError,
    NotAnEntryFileError,
    QueryValidationError,
)
from markdb.query.engine import QueryEngine

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_NAME_SEPARATOR",
    "ConfigError",
    "DuplicateEntryIdError",
    "Entry",
    "EntryData",
    "EntryId",
    "EntryLoadError",
    "FrontmatterError",
    "MarkdownDb",
    "MarkdownDbConfig",
    "MarkdownDbError",
    "NotAnEntryFileError",
    "QueryEngine",
    "QueryValidationError",
    "compute_entry_id",
]
