"""Entry records and entry id resolution.

An entry id is derived from the file's location under the database root:

    buttons.md                      -> "buttons"
    buttons/variants.md             -> "buttons/variants"
    buttons/buttons.md              -> "buttons"           (folder folded)
    0.intro/0.intro.md              -> "intro"             (order prefixes dropped)
    0.intro/1.setup.md              -> "intro/setup"
    buttons/variants.ui.md          -> "buttons/variants"  (type "ui")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NamedTuple

from pydantic import BaseModel

DEFAULT_NAME_SEPARATOR = "/"

_ORDER_PREFIX_RE = re.compile(r"^\d+\.")
_TYPE_SUFFIX_RE = re.compile(r"^(.+)\.(.+)$")


class EntryId(NamedTuple):
    id: str
    type: str | None


def compute_entry_id(
    root: Path,
    file: Path,
    separator: str = DEFAULT_NAME_SEPARATOR,
) -> EntryId:
    """Compute the hierarchical id and type tag of a file below root.

    Args:
        root: Database root directory.
        file: Markdown file inside root (need not exist).
        separator: String joining the id segments.

    Returns:
        EntryId with the joined id and the type tag (or None).
    """
    rel_dir = file.resolve().parent.relative_to(root.resolve())
    # Order prefixes only sort folders on disk, they are not part of the id.
    # Folder segments lose theirs as well as the file name: 0.intro/other.md
    # is "intro/other", which lets 0.intro/0.intro.md fold into "intro".
    dir_parts = [_ORDER_PREFIX_RE.sub("", part, count=1) for part in rel_dir.parts]
    last_folder = dir_parts.pop() if dir_parts else ""

    name = _ORDER_PREFIX_RE.sub("", file.stem, count=1)

    entry_type: str | None = None
    type_match = _TYPE_SUFFIX_RE.match(name)
    if type_match:
        name, entry_type = type_match.group(1), type_match.group(2)

    # buttons/buttons.md is the "buttons" entry itself
    if last_folder == name:
        parts = [*dir_parts, name]
    else:
        parts = [*dir_parts, last_folder, name]

    return EntryId(separator.join(p for p in parts if p), entry_type)


@dataclass(frozen=True)
class Entry:
    """One loaded markdown file.

    Frontmatter fields are available on ``data`` and, for convenience,
    directly as attributes of the entry (``entry.status``).
    """
    id: str
    type: str | None
    content: str | None
    file: Path
    data: BaseModel = field(hash=False, repr=False)

    @property
    def query(self) -> dict[str, Any]:
        return self.data.query

    def relative_path(self, root: Path) -> str:
        return self.file.resolve().relative_to(root.resolve()).as_posix()

    def __getattr__(self, name: str) -> Any:
        data = self.__dict__.get("data")
        if data is None or name.startswith("_"):
            raise AttributeError(name)
        try:
            return getattr(data, name)
        except AttributeError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            ) from None
