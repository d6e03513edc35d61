"""Tests for local git repository access."""

from unittest.mock import patch

import pytest

from autopr.integrations.git import DirtyWorkingTreeError, GitError, GitRepository
from autopr.utils.shell import ShellError, ShellResult


def git_responses(responses):
    """Build a run_command replacement answering by git subcommand."""
    calls = []

    def fake_run_command(command, cwd=None, check=False):
        calls.append(command)
        subcommand = command[1]
        returncode, stdout, stderr = responses.get(subcommand, (0, "", ""))
        result = ShellResult(returncode, stdout, stderr, " ".join(command))
        if check:
            result.check()
        return result

    return fake_run_command, calls


class TestReadChange:
    """Test reading the HEAD commit."""

    def test_clean_tree(self):
        fake, calls = git_responses({
            "diff": (0, "", ""),
            "rev-parse": (0, "fix-bug\n", ""),
            "log": (0, "Fix bug\n\nDetails here\n\n", ""),
        })

        with patch("autopr.integrations.git.run_command", side_effect=fake):
            change = GitRepository().read_change()

        assert change.branch == "fix-bug"
        assert change.title == "Fix bug"
        assert change.body == "Details here"
        assert calls == [
            ["git", "diff", "--stat", "HEAD"],
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            ["git", "log", "-1", "--pretty=%B"],
        ]

    def test_dirty_tree(self):
        diff = " app.py | 2 +-\n 1 file changed, 1 insertion(+), 1 deletion(-)\n"
        fake, calls = git_responses({"diff": (0, diff, "")})

        with patch("autopr.integrations.git.run_command", side_effect=fake):
            with pytest.raises(DirtyWorkingTreeError) as exc_info:
                GitRepository().read_change()

        assert "Git tree dirty!" in str(exc_info.value)
        assert "app.py | 2 +-" in str(exc_info.value)
        assert exc_info.value.changes.startswith("app.py")
        assert len(calls) == 1

    def test_git_failure(self):
        fake, _ = git_responses({"diff": (128, "", "fatal: not a git repository")})

        with patch("autopr.integrations.git.run_command", side_effect=fake):
            with pytest.raises(GitError, match="not a git repository"):
                GitRepository().read_change()

    def test_git_missing(self):
        error = ShellError("Command not found: git diff --stat HEAD", -1)

        with patch("autopr.integrations.git.run_command", side_effect=error):
            with pytest.raises(GitError, match="Command not found"):
                GitRepository().read_change()


class TestRewriteAndPush:
    """Test amending and pushing."""

    def test_amend_message(self):
        fake, calls = git_responses({})

        with patch("autopr.integrations.git.run_command", side_effect=fake):
            GitRepository().amend_message("ABC-123: Fix bug\n\nDetails here")

        assert calls == [["git", "commit", "--amend", "-m", "ABC-123: Fix bug\n\nDetails here"]]

    def test_force_push(self):
        fake, calls = git_responses({})

        with patch("autopr.integrations.git.run_command", side_effect=fake):
            GitRepository().force_push("fix-bug")

        assert calls == [["git", "push", "origin", "fix-bug", "-f"]]

    def test_force_push_to_configured_remote(self):
        fake, calls = git_responses({})

        with patch("autopr.integrations.git.run_command", side_effect=fake):
            GitRepository(remote="fork").force_push("fix-bug")

        assert calls == [["git", "push", "fork", "fix-bug", "-f"]]

    def test_push_rejected(self):
        fake, _ = git_responses({"push": (1, "", "remote: Permission denied")})

        with patch("autopr.integrations.git.run_command", side_effect=fake):
            with pytest.raises(GitError, match="Permission denied"):
                GitRepository().force_push("fix-bug")
