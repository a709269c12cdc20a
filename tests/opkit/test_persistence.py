"""Tests for atomic file writes."""

from unittest.mock import patch

import pytest

from opkit.store.persistence import atomic_write


def test_atomic_write_creates_file(tmp_path):
    """Test that atomic_write creates a file with correct content."""
    file_path = tmp_path / "notes.config"

    atomic_write(file_path, "a=1\n")

    assert file_path.read_text() == "a=1\n"


def test_atomic_write_overwrites_existing(tmp_path):
    """Test that atomic_write replaces existing content."""
    file_path = tmp_path / "notes.config"
    file_path.write_text("old=1\n")

    atomic_write(file_path, "new=2\n")

    assert file_path.read_text() == "new=2\n"


def test_atomic_write_creates_parent_directory(tmp_path):
    """Test that atomic_write creates missing parent directories."""
    file_path = tmp_path / "units" / "notes.config"

    atomic_write(file_path, "a=1\n")

    assert file_path.exists()


def test_atomic_write_leaves_no_temp_files(tmp_path):
    """Test that only the target file remains after a write."""
    file_path = tmp_path / "notes.config"

    atomic_write(file_path, "a=1\n")

    assert [p.name for p in tmp_path.iterdir()] == ["notes.config"]


def test_atomic_write_failure_keeps_original(tmp_path):
    """Test that a failed rename leaves the original intact and cleans up."""
    file_path = tmp_path / "notes.config"
    file_path.write_text("original\n")

    with patch("opkit.store.persistence.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError, match="disk full"):
            atomic_write(file_path, "replacement\n")

    assert file_path.read_text() == "original\n"
    assert [p.name for p in tmp_path.iterdir()] == ["notes.config"]


def test_atomic_write_unicode(tmp_path):
    file_path = tmp_path / "notes.config"

    atomic_write(file_path, "greeting=héllo\n")

    assert file_path.read_text(encoding="utf-8") == "greeting=héllo\n"
