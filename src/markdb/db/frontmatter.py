"""YAML frontmatter extraction for markdown entries."""

from __future__ import annotations

import re
from typing import Any

import yaml

from markdb.errors import FrontmatterError

_HEADER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def split_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """Split markdown text into its frontmatter mapping and body.

    Returns (None, text) when the text has no leading ``---`` block. An empty
    block yields an empty mapping.

    Raises:
        FrontmatterError: if the block is not valid YAML or not a mapping.
    """
    match = _HEADER_RE.match(text)
    if match is None:
        return None, text

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as err:
        raise FrontmatterError(f"Invalid YAML frontmatter: {err}") from err

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Frontmatter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end():]
