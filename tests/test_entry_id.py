"""Tests for entry id resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from markdb.db.entry import EntryId, compute_entry_id

ROOT = Path("/base/patterns")


class TestComputeEntryId:
    def test_directory_and_file(self):
        result = compute_entry_id(ROOT, ROOT / "ember/template/uses/buttons.md")
        assert result == EntryId("ember/template/uses/buttons", None)

    def test_folds_folder_with_same_name(self):
        result = compute_entry_id(ROOT, ROOT / "ember/template/uses/buttons/buttons")
        assert result == EntryId("ember/template/uses/buttons", None)

    def test_keeps_folder_with_other_name(self):
        result = compute_entry_id(ROOT, ROOT / "buttons/variants.md")
        assert result.id == "buttons/variants"

    def test_removes_numeric_prefix(self):
        result = compute_entry_id(ROOT, ROOT / "ember/template/uses/buttons/0.buttons.md")
        assert result == EntryId("ember/template/uses/buttons", None)

    def test_returns_type(self):
        result = compute_entry_id(
            ROOT, ROOT / "ember/template/uses/buttons/0.buttons.my-type.md"
        )
        assert result == EntryId("ember/template/uses/buttons", "my-type")

    def test_type_with_dotted_name(self):
        result = compute_entry_id(
            ROOT, ROOT / "ember/template/uses/0.buttons.with.dot.my-type.md"
        )
        assert result == EntryId("ember/template/uses/buttons.with.dot", "my-type")

    def test_type_tag_on_nested_file(self):
        result = compute_entry_id(ROOT, ROOT / "buttons/variants.ui.md")
        assert result == EntryId("buttons/variants", "ui")

    def test_numeric_prefix_on_folder_and_file(self):
        result = compute_entry_id(ROOT, ROOT / "0.intro/0.intro.md")
        assert result == EntryId("intro", None)

    def test_numeric_prefix_on_parent_folder(self):
        result = compute_entry_id(ROOT, ROOT / "0.intro/1.setup.md")
        assert result.id == "intro/setup"

    def test_numeric_prefix_on_folder_with_other_file(self):
        assert compute_entry_id(ROOT, ROOT / "0.intro/other.md").id == "intro/other"

    def test_file_at_root(self):
        assert compute_entry_id(ROOT, ROOT / "readme.md").id == "readme"

    def test_custom_separator(self):
        result = compute_entry_id(ROOT, ROOT / "a/b/c.md", separator=".")
        assert result.id == "a.b.c"

    def test_file_outside_root_raises(self):
        with pytest.raises(ValueError):
            compute_entry_id(ROOT, Path("/elsewhere/file.md"))
