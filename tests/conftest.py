"""Shared test fixtures for markdb."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from markdb.query.engine import QueryEngine


@dataclass(frozen=True)
class SampleInput:
    content: str
    extension: str


def make_query_engine() -> QueryEngine[SampleInput]:
    """Engine with the two predicates used across the test suite."""
    return (
        QueryEngine.default()
        .add_predicate("contains", str, lambda param: lambda input: param in input.content)
        .add_predicate(
            "hasExtension",
            list[str],
            lambda extensions: lambda input: input.extension in extensions,
        )
    )


def write_entry(root: Path, rel_path: str, text: str) -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def isolated_user_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the real ~/.markdb out of every test."""
    user_dir = tmp_path / "user-home" / ".markdb"
    monkeypatch.setenv("MARKDB_HOME", str(user_dir))
    return user_dir


@pytest.fixture
def patterns_dir(tmp_path: Path) -> Path:
    """Create a small database with simple, nested and complex entries."""
    root = tmp_path / "patterns"
    write_entry(
        root, "simple/basic.md",
        "---\nquery:\n  always: true\n---\n"
        "This is a simple test pattern that always matches.\n",
    )
    (root / "simple" / "basic.txt").write_text("not an entry\n")
    write_entry(
        root, "nested/level1/level1.md",
        "---\nquery:\n  never: true\n---\nLevel one.\n",
    )
    write_entry(
        root, "nested/level1/pattern1.md",
        "---\nquery:\n  contains: test1\n---\nPattern one.\n",
    )
    write_entry(
        root, "complex/with-query.md",
        "---\nquery:\n  contains: component\n---\nComponent pattern.\n",
    )
    write_entry(
        root, "complex/with-status.md",
        "---\nstatus: blocked\nquery:\n  contains: button\n---\nButton pattern.\n",
    )
    return root


@pytest.fixture
def hierarchy_dir(tmp_path: Path) -> Path:
    """Create a database where a parent entry gates its children.

    ``a`` always matches, ``a/b`` needs ``x`` in the content, ``a/b/c``
    always matches, and ``lonely/leaf`` has no loaded parent.
    """
    root = tmp_path / "hierarchy"
    write_entry(root, "a.md", "---\nquery:\n  always: true\n---\nA\n")
    write_entry(root, "a/b.md", "---\nquery:\n  contains: x\n---\nB\n")
    write_entry(root, "a/b/c.md", "---\nquery:\n  always: true\n---\nC\n")
    write_entry(root, "lonely/leaf.md", "---\nquery:\n  contains: x\n---\nLeaf\n")
    write_entry(root, "z-empty.md", "---\nquery:\n  always: true\n---\n   \n")
    return root
