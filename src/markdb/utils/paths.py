"""Path helpers for markdb: glob listing, glob membership and settings locations."""

from __future__ import annotations

import functools
import os
import re
from collections.abc import Iterable
from pathlib import Path


def get_user_dir() -> Path:
    """Get the user-level markdb directory (``$MARKDB_HOME`` or ``~/.markdb``)."""
    override = os.environ.get("MARKDB_HOME")
    if override:
        return Path(override)
    return Path.home() / ".markdb"


def get_user_settings_path() -> Path:
    """Get user-level settings.json path."""
    return get_user_dir() / "settings.json"


def get_project_settings_path(root: Path) -> Path:
    """Get project-level settings.json path."""
    return root / ".markdb" / "settings.json"


def is_in_dir(path: Path, root: Path) -> bool:
    """Check whether path lives somewhere below root."""
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return path.resolve() != root.resolve()


def relative_posix(path: Path, root: Path) -> str:
    """Return path relative to root with forward slashes."""
    return path.resolve().relative_to(root.resolve()).as_posix()


@functools.lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a glob into a regex over POSIX relative paths.

    ``*`` and ``?`` stay within one path segment, ``**/`` spans zero or more
    directories and a trailing ``**`` matches everything below.
    """
    parts: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        elif pattern[i] == "[" and pattern.find("]", i + 2) != -1:
            end = pattern.find("]", i + 2)
            body = pattern[i + 1:end].replace("\\", "\\\\")
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            i = end + 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts) + r"\Z")


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a path matches a glob pattern, with ** support.

    ``**/`` may match zero directories, so ``**/*.md`` accepts a top-level
    ``a.md`` and ``docs/**/*.md`` accepts ``docs/a.md``. A single ``*``
    never crosses ``/``: ``*.md`` only matches files directly under root.
    """
    return _compile_glob(pattern).match(rel_path) is not None


def split_globs(globs: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split globs into include and exclude patterns (``!`` prefix removed)."""
    includes: list[str] = []
    excludes: list[str] = []
    for pattern in globs:
        if pattern.startswith("!"):
            excludes.append(pattern[1:])
        else:
            includes.append(pattern)
    return includes, excludes


def matches_any_glob(rel_path: str, globs: Iterable[str]) -> bool:
    """Check if a path matches an include pattern and no ``!`` exclusion."""
    includes, excludes = split_globs(globs)
    return (
        any(matches_glob(rel_path, pattern) for pattern in includes)
        and not any(matches_glob(rel_path, pattern) for pattern in excludes)
    )


def list_files(root: Path, globs: Iterable[str]) -> list[Path]:
    """List regular files under root accepted by matches_any_glob().

    Returns absolute paths sorted by their root-relative POSIX path.
    """
    root = root.resolve()
    globs = list(globs)
    found: dict[str, Path] = {}
    for path in root.rglob("*"):
        if not path.is_file() or not is_in_dir(path, root):
            continue
        rel_path = path.relative_to(root).as_posix()
        if matches_any_glob(rel_path, globs):
            found[rel_path] = path.resolve()
    return [found[rel] for rel in sorted(found)]
