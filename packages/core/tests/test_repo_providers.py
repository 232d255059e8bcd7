"""Tests for the local git and GitHub compare diff providers."""

import subprocess
from unittest.mock import MagicMock

import pytest
from github import GithubException

from prwarden_core.errors import CollaboratorError
from prwarden_core.repo.github import GitHubRepoProvider
from prwarden_core.repo.local import LocalRepoProvider


def _completed(stdout=""):
    return MagicMock(stdout=stdout, returncode=0)


@pytest.fixture
def run(mocker):
    return mocker.patch("prwarden_core.repo.local.subprocess.run", return_value=_completed())


def _git_args(call):
    # Strip the leading "git -c ... -c ..." options.
    return call.args[0][5:]


class TestLocalRepoProvider:
    def test_fetches_once_before_first_diff(self, run, tmp_path):
        provider = LocalRepoProvider(str(tmp_path))
        provider.changed_files("main", "feature/x")
        provider.diff_file("main", "feature/x", "a.ts")

        commands = [_git_args(c) for c in run.call_args_list]
        assert commands[0] == ["fetch", "origin", "--prune"]
        assert sum(1 for c in commands if c[0] == "fetch") == 1

    def test_no_fetch_when_disabled(self, run, tmp_path):
        LocalRepoProvider(str(tmp_path), fetch=False).changed_files("main", "dev")
        assert [_git_args(c)[0] for c in run.call_args_list] == ["diff"]

    def test_runs_in_working_copy(self, run, tmp_path):
        LocalRepoProvider(str(tmp_path), fetch=False).diff("main", "dev")
        assert run.call_args.kwargs["cwd"] == tmp_path

    def test_changed_files_uses_three_dot_range_and_filters(self, run, tmp_path):
        run.return_value = _completed("src/a.ts\nassets/logo.png\nyarn.lock\n\nsrc/b.py\n")
        files = LocalRepoProvider(str(tmp_path), fetch=False).changed_files("main", "feature/x")

        assert files == ["src/a.ts", "src/b.py"]
        assert _git_args(run.call_args) == ["diff", "origin/main...origin/feature/x", "--name-only", "--diff-filter=AM"]

    def test_diff_file_uses_context_lines(self, run, tmp_path):
        run.return_value = _completed("@@ -1 +1 @@\n-a\n+b\n")
        patch = LocalRepoProvider(str(tmp_path), remote="upstream", context_lines=5, fetch=False).diff_file(
            "main", "dev", "src/a.ts"
        )

        assert patch.startswith("@@")
        assert _git_args(run.call_args) == ["diff", "-U5", "upstream/main...upstream/dev", "--", "src/a.ts"]

    def test_file_content_reads_remote_branch(self, run, tmp_path):
        run.return_value = _completed("print('hi')\n")
        content = LocalRepoProvider(str(tmp_path), fetch=False).file_content("dev", "app.py")
        assert content == "print('hi')\n"
        assert _git_args(run.call_args) == ["show", "origin/dev:app.py"]

    def test_git_failure_becomes_collaborator_error(self, run, tmp_path):
        run.side_effect = subprocess.CalledProcessError(128, ["git"], stderr="fatal: bad revision\n")
        with pytest.raises(CollaboratorError, match="fatal: bad revision"):
            LocalRepoProvider(str(tmp_path), fetch=False).changed_files("main", "gone")

    def test_missing_git_binary(self, run, tmp_path):
        run.side_effect = FileNotFoundError("git")
        with pytest.raises(CollaboratorError, match="git executable not found"):
            LocalRepoProvider(str(tmp_path)).changed_files("main", "dev")


def _gh_file(filename, status="modified", patch="@@ -1 +1 @@\n+x"):
    f = MagicMock()
    f.filename = filename
    f.status = status
    f.patch = patch
    return f


class TestGitHubRepoProvider:
    def _repo(self, files):
        repo = MagicMock()
        repo.compare.return_value.files = files
        return repo

    def test_changed_files_keeps_added_and_modified_code(self):
        repo = self._repo(
            [
                _gh_file("a.py"),
                _gh_file("b.py", status="added"),
                _gh_file("c.py", status="removed"),
                _gh_file("d.py", status="renamed"),
                _gh_file("logo.png"),
            ]
        )
        assert GitHubRepoProvider(repo).changed_files("main", "dev") == ["a.py", "b.py"]
        repo.compare.assert_called_once_with("main", "dev")

    def test_compare_is_cached(self):
        repo = self._repo([_gh_file("a.py")])
        provider = GitHubRepoProvider(repo)
        provider.changed_files("main", "dev")
        provider.diff_file("main", "dev", "a.py")
        provider.diff("main", "dev")
        assert repo.compare.call_count == 1

    def test_diff_file(self):
        provider = GitHubRepoProvider(self._repo([_gh_file("a.py", patch="@@ +1 @@\n+a")]))
        assert provider.diff_file("main", "dev", "a.py") == "@@ +1 @@\n+a"
        assert provider.diff_file("main", "dev", "missing.py") == ""

    def test_binary_file_has_no_patch(self):
        provider = GitHubRepoProvider(self._repo([_gh_file("a.py", patch=None)]))
        assert provider.diff_file("main", "dev", "a.py") == ""

    def test_diff_joins_file_patches(self):
        provider = GitHubRepoProvider(self._repo([_gh_file("a.py", patch="+a"), _gh_file("b.py", patch="+b")]))
        diff = provider.diff("main", "dev")
        assert "+++ b/a.py\n+a" in diff
        assert "+++ b/b.py\n+b" in diff

    def test_file_content(self):
        repo = self._repo([])
        repo.get_contents.return_value.decoded_content = b"x = 1\n"
        assert GitHubRepoProvider(repo).file_content("dev", "a.py") == "x = 1\n"
        repo.get_contents.assert_called_once_with("a.py", ref="dev")

    def test_compare_failure(self):
        repo = MagicMock()
        repo.compare.side_effect = GithubException(404, {"message": "Not Found"}, None)
        with pytest.raises(CollaboratorError, match="main...dev"):
            GitHubRepoProvider(repo).changed_files("main", "dev")
