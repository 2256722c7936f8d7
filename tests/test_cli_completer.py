"""Tests for AirdropCompleter."""

import pytest
from pathlib import Path
from unittest.mock import patch

from prompt_toolkit.document import Document

from cli.completer import AirdropCompleter
from cli.constants import COMMANDS


@pytest.fixture
def completer():
    """Create an AirdropCompleter instance."""
    return AirdropCompleter()


@pytest.fixture
def work_dir(tmp_path):
    """
    Create a temporary working directory with files to share.

    Returns:
        Path to the temporary directory
    """
    (tmp_path / "document.txt").write_text("content")
    (tmp_path / "data.csv").write_text("content")
    (tmp_path / ".hidden").write_text("content")
    photos = tmp_path / "photos"
    photos.mkdir()
    (photos / "beach.jpg").write_text("content")
    return tmp_path


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


class TestCommandCompletion:
    """Tests for command name completion."""

    def test_empty_input_shows_all_commands(self, completer):
        """Empty input should suggest all commands."""
        completions = get_completions_list(completer, "")
        for cmd in COMMANDS:
            assert cmd in completions

    def test_partial_command_filters(self, completer):
        """Partial command should filter to matching commands."""
        completions = get_completions_list(completer, "s")
        assert completions == ["share", "sweep"]

    def test_command_completion_case_insensitive(self, completer):
        """Command completion should be case insensitive."""
        assert get_completions_list(completer, "DOWN") == ["download"]


class TestPathCompletion:
    """Tests for local path completion in share command."""

    def test_share_lists_cwd_entries(self, completer, work_dir):
        """After 'share ', should list visible files and directories."""
        with patch.object(Path, "cwd", return_value=work_dir):
            completions = get_completions_list(completer, "share ")
            assert completions == ["data.csv", "document.txt", "photos/"]

    def test_partial_name_filters(self, completer, work_dir):
        with patch.object(Path, "cwd", return_value=work_dir):
            assert get_completions_list(completer, "share do") == ["document.txt"]

    def test_descends_into_directories(self, completer, work_dir):
        partial = f"{work_dir}/photos/b"
        completions = get_completions_list(completer, f"share {partial}")
        assert completions == [f"{work_dir}/photos/beach.jpg"]

    def test_hidden_files_need_dot_prefix(self, completer, work_dir):
        with patch.object(Path, "cwd", return_value=work_dir):
            assert get_completions_list(completer, "share .") == [".hidden"]

    def test_excludes_already_typed_files(self, completer, work_dir):
        """Files already in command should not be suggested again."""
        with patch.object(Path, "cwd", return_value=work_dir):
            completions = get_completions_list(completer, "share document.txt ")
            assert "document.txt" not in completions
            assert "data.csv" in completions

    def test_other_commands_no_path_completion(self, completer, work_dir):
        """Non-share commands should not trigger path completion."""
        with patch.object(Path, "cwd", return_value=work_dir):
            assert get_completions_list(completer, "open ") == []

    def test_missing_directory_yields_nothing(self, completer, tmp_path):
        assert get_completions_list(completer, f"share {tmp_path}/nope/x") == []
