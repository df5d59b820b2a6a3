"""MarkdownDb: hierarchical markdown entries matched against inputs.

Entries are loaded lazily from a root directory and kept until refresh().
Matching walks entries in path order; an entry is only evaluated when none
of its loaded ancestors failed for the same input, so a folder entry gates
everything below it.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, create_model

from markdb.config import load_settings
from markdb.db.entry import DEFAULT_NAME_SEPARATOR, Entry, EntryId, compute_entry_id
from markdb.db.loader import file_to_entry, is_entry_file, read_entries
from markdb.query.engine import NEVER_QUERY, QueryEngine

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")

DEFAULT_GLOBS: tuple[str, ...] = ("**/*.md",)


class EntryData(BaseModel):
    """Default frontmatter schema: no fields besides the query."""


def build_entry_schema(
    base: type[BaseModel],
    query_engine: QueryEngine[Any],
) -> type[BaseModel]:
    """Extend a frontmatter model with a query field validated by the engine.

    A missing query defaults to ``{"never": True}``.
    """
    return create_model(
        base.__name__,
        __base__=base,
        query=(query_engine.field_type, Field(default_factory=lambda: dict(NEVER_QUERY))),
    )


@dataclass(frozen=True)
class MarkdownDbConfig:
    """Immutable configuration of a MarkdownDb instance."""
    root: Path
    query_engine: QueryEngine[Any]
    base_schema: type[BaseModel]
    entry_schema: type[BaseModel]
    globs: tuple[str, ...] = DEFAULT_GLOBS
    name_separator: str = DEFAULT_NAME_SEPARATOR
    cache_key: Callable[[Any], Hashable] | None = None
    allow_duplicate_ids: bool = False


class MarkdownDb(Generic[InputT]):
    """Entry store, ancestor index and match engine over one directory.

    Instances are configured through the ``with_*`` methods, each of which
    returns a new instance with its own empty caches.
    """

    def __init__(self, config: MarkdownDbConfig) -> None:
        self._config = config
        self._entries: list[Entry] | None = None
        self._entries_by_id: dict[str, Entry] | None = None
        self._parents_map: dict[str, list[Entry]] | None = None
        self._match_cache: dict[Hashable, list[Entry]] = {}
        self._load_lock = asyncio.Lock()

    @classmethod
    def cwd(cls, root: Path | str) -> MarkdownDb[Any]:
        """Create a database over root with the default configuration."""
        engine: QueryEngine[Any] = QueryEngine.default()
        return cls(MarkdownDbConfig(
            root=Path(root),
            query_engine=engine,
            base_schema=EntryData,
            entry_schema=build_entry_schema(EntryData, engine),
        ))

    @classmethod
    def from_settings(cls, root: Path | str) -> MarkdownDb[Any]:
        """Create a database over root configured from its settings files."""
        settings = load_settings(Path(root))
        return (
            cls.cwd(root)
            .with_globs(*settings.globs)
            .with_name_separator(settings.name_separator)
            .with_duplicate_ids(settings.allow_duplicate_ids)
        )

    # ── Configuration ──

    def _replace(self, **changes: Any) -> MarkdownDb[InputT]:
        return MarkdownDb(dataclasses.replace(self._config, **changes))

    @property
    def config(self) -> MarkdownDbConfig:
        return self._config

    @property
    def root(self) -> Path:
        return self._config.root

    @property
    def query_engine(self) -> QueryEngine[Any]:
        return self._config.query_engine

    @property
    def schema(self) -> type[BaseModel]:
        """Effective frontmatter model, including the query field."""
        return self._config.entry_schema

    @property
    def json_schema(self) -> dict[str, Any]:
        """JSON schema of the frontmatter, as accepted on input."""
        return self.schema.model_json_schema(mode="validation")

    def with_query_engine(self, query_engine: QueryEngine[Any]) -> MarkdownDb[InputT]:
        """Use a query engine with custom predicates."""
        return self._replace(
            query_engine=query_engine,
            entry_schema=build_entry_schema(self._config.base_schema, query_engine),
        )

    def with_entry_schema(self, schema: type[BaseModel]) -> MarkdownDb[InputT]:
        """Validate extra frontmatter fields with a pydantic model."""
        return self._replace(
            base_schema=schema,
            entry_schema=build_entry_schema(schema, self._config.query_engine),
        )

    def with_globs(self, *globs: str) -> MarkdownDb[InputT]:
        """Restrict entry files to the given glob patterns (relative to root)."""
        if not globs:
            raise ValueError("At least one glob pattern is required")
        return self._replace(globs=tuple(globs))

    def with_name_separator(self, separator: str) -> MarkdownDb[InputT]:
        """Set the string joining entry id segments."""
        if not separator:
            raise ValueError("Name separator must not be empty")
        return self._replace(name_separator=separator)

    def with_cache_key(self, cache_key: Callable[[InputT], Hashable]) -> MarkdownDb[InputT]:
        """Memoize match_one() results under cache_key(input)."""
        return self._replace(cache_key=cache_key)

    def with_duplicate_ids(self, allowed: bool = True) -> MarkdownDb[InputT]:
        """Allow files sharing an id; the last one by path wins in lookups."""
        return self._replace(allow_duplicate_ids=allowed)

    # ── Files ──

    def is_entry_file(self, file: Path | str) -> bool:
        """Check if file is inside the root and matches the globs."""
        return is_entry_file(Path(file), self._config.root, self._config.globs)

    def compute_entry_id(self, file: Path | str) -> EntryId:
        return compute_entry_id(self._config.root, Path(file), self._config.name_separator)

    async def file_to_entry(self, file: Path | str) -> Entry:
        """Parse a single entry file.

        Raises:
            NotAnEntryFileError: if the file does not belong to this db.
            EntryLoadError: if the file's frontmatter is invalid.
        """
        cfg = self._config
        return await file_to_entry(file, cfg.root, cfg.globs, cfg.entry_schema, cfg.name_separator)

    # ── Entry store ──

    def refresh(self) -> None:
        """Drop every cache; the next access reloads the directory."""
        logger.debug("Refreshing entries for %s", self._config.root)
        self._entries = None
        self._entries_by_id = None
        self._parents_map = None
        self._match_cache.clear()
        self._config.query_engine.clear_cache()

    async def get_all(self) -> list[Entry]:
        """Return all entries sorted by relative path, loading on first use.

        Raises:
            EntryLoadError: if any file fails to load. Nothing is cached then.
        """
        if self._entries is not None:
            return self._entries
        async with self._load_lock:
            if self._entries is None:
                cfg = self._config
                self._entries = await read_entries(
                    cfg.root,
                    cfg.globs,
                    cfg.entry_schema,
                    cfg.name_separator,
                    allow_duplicate_ids=cfg.allow_duplicate_ids,
                )
                logger.debug("Loaded %d entries from %s", len(self._entries), cfg.root)
        return self._entries

    async def get_all_by_id(self) -> dict[str, Entry]:
        """Return entries keyed by id."""
        entries = await self.get_all()
        if self._entries_by_id is None:
            self._entries_by_id = {entry.id: entry for entry in entries}
        return self._entries_by_id

    async def get_one_by_id(self, entry_id: str) -> Entry | None:
        return (await self.get_all_by_id()).get(entry_id)

    # ── Ancestor index ──

    async def get_parents_map(self) -> dict[str, list[Entry]]:
        """Return the ancestor chain (root first) of every entry.

        Id prefixes without a loaded entry are skipped.
        """
        entries = await self.get_all()
        if self._parents_map is None:
            by_id = await self.get_all_by_id()
            separator = self._config.name_separator
            parents_map: dict[str, list[Entry]] = {}
            for entry in entries:
                segments = entry.id.split(separator)
                chain = []
                for i in range(1, len(segments)):
                    parent = by_id.get(separator.join(segments[:i]))
                    if parent is not None:
                        chain.append(parent)
                parents_map[entry.id] = chain
            self._parents_map = parents_map
        return self._parents_map

    async def get_parents_by_id(self, entry_id: str) -> list[Entry]:
        return (await self.get_parents_map()).get(entry_id, [])

    # ── Matching ──

    async def _match_one(self, input: InputT) -> list[Entry]:
        entries = await self.get_all()
        parents_map = await self.get_parents_map()
        engine = self._config.query_engine

        matching: list[Entry] = []
        evaluated: dict[str, bool] = {}

        # Parents sort before their children, so their results are known here
        for entry in entries:
            parents = parents_map.get(entry.id, [])
            if any(evaluated.get(parent.id) is False for parent in parents):
                evaluated[entry.id] = False
                continue

            matches = engine.match(entry.query, input, skip_validation=True, use_cache=True)
            evaluated[entry.id] = matches
            if matches:
                matching.append(entry)

        return matching

    async def match_one(self, input: InputT, *, skip_empty: bool = False) -> list[Entry]:
        """Return the entries matching input, in path order.

        Args:
            input: Value the entry queries are evaluated against.
            skip_empty: Leave out entries without body content.

        Raises:
            QueryValidationError: if an entry's query cannot be evaluated.
        """
        cache_key = self._config.cache_key
        if cache_key is None:
            entries = await self._match_one(input)
        else:
            key = cache_key(input)
            cached = self._match_cache.get(key)
            if cached is not None:
                logger.debug("Match cache hit for %r", key)
                entries = cached
            else:
                entries = await self._match_one(input)
                self._match_cache[key] = entries

        if skip_empty:
            return [entry for entry in entries if entry.content and entry.content.strip()]
        return list(entries)

    async def match_any(
        self,
        inputs: Sequence[InputT],
        *,
        skip_empty: bool = False,
    ) -> list[Entry]:
        """Return the entries matching at least one input, sorted by file path.

        Inputs are matched concurrently; the first failure fails the call.
        """
        results = await asyncio.gather(
            *(self.match_one(input, skip_empty=skip_empty) for input in inputs)
        )

        unique: dict[str, Entry] = {}
        for entries in results:
            for entry in entries:
                unique[entry.id] = entry

        return sorted(unique.values(), key=lambda entry: str(entry.file))
