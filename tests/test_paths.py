"""Tests for path and glob helpers."""

from __future__ import annotations

from pathlib import Path

from markdb.utils.paths import (
    get_user_settings_path,
    is_in_dir,
    list_files,
    matches_any_glob,
    matches_glob,
    split_globs,
)
from tests.conftest import write_entry


class TestMatchesGlob:
    def test_double_star_matches_top_level(self):
        assert matches_glob("a.md", "**/*.md")

    def test_double_star_matches_nested(self):
        assert matches_glob("a/b/c.md", "**/*.md")

    def test_inner_double_star_matches_zero_dirs(self):
        assert matches_glob("simple/basic.md", "simple/**/*.md")
        assert matches_glob("simple/x/basic.md", "simple/**/*.md")

    def test_mismatch(self):
        assert not matches_glob("simple/basic.txt", "**/*.md")
        assert not matches_glob("nested/a.md", "simple/**/*.md")

    def test_single_star_stays_in_segment(self):
        assert matches_glob("top.md", "*.md")
        assert not matches_glob("sub/deep.md", "*.md")
        assert not matches_glob("a/b.md", "a?b.md")

    def test_trailing_double_star(self):
        assert matches_glob("drafts/a/b.md", "drafts/**")
        assert not matches_glob("drafts.md", "drafts/**")

    def test_character_class(self):
        assert matches_glob("v1.md", "v[0-9].md")
        assert not matches_glob("v1.md", "v[!0-9].md")


class TestExcludedGlobs:
    def test_split(self):
        assert split_globs(["**/*.md", "!drafts/**"]) == (["**/*.md"], ["drafts/**"])

    def test_exclusion_wins(self):
        globs = ["**/*.md", "!drafts/**"]
        assert matches_any_glob("keep.md", globs)
        assert not matches_any_glob("drafts/skip.md", globs)

    def test_only_exclusions_match_nothing(self):
        assert not matches_any_glob("keep.md", ["!drafts/**"])


class TestIsInDir:
    def test_inside(self, tmp_path: Path):
        assert is_in_dir(tmp_path / "a" / "b.md", tmp_path)

    def test_outside(self, tmp_path: Path):
        assert not is_in_dir(tmp_path.parent / "b.md", tmp_path)

    def test_root_itself(self, tmp_path: Path):
        assert not is_in_dir(tmp_path, tmp_path)


class TestListFiles:
    def test_sorted_and_deduplicated(self, tmp_path: Path):
        write_entry(tmp_path, "b.md", "")
        write_entry(tmp_path, "a/c.md", "")
        write_entry(tmp_path, "a.md", "")
        (tmp_path / "dir.md").mkdir()
        files = list_files(tmp_path, ["**/*.md", "*.md"])
        assert [f.relative_to(tmp_path.resolve()).as_posix() for f in files] == ["a.md", "a/c.md", "b.md"]

    def test_exclusions_and_single_star(self, tmp_path: Path):
        write_entry(tmp_path, "keep.md", "")
        write_entry(tmp_path, "sub/deep.md", "")
        write_entry(tmp_path, "drafts/skip.md", "")
        root = tmp_path.resolve()
        assert [f.relative_to(root).as_posix() for f in list_files(tmp_path, ["*.md"])] == ["keep.md"]
        files = list_files(tmp_path, ["**/*.md", "!drafts/**"])
        assert [f.relative_to(root).as_posix() for f in files] == ["keep.md", "sub/deep.md"]


class TestUserDir:
    def test_env_override(self, isolated_user_dir: Path):
        assert get_user_settings_path() == isolated_user_dir / "settings.json"
