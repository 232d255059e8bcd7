"""Diffs taken from GitHub's compare API: no working copy needed."""

from __future__ import annotations

from github import GithubException

from prwarden_core.errors import CollaboratorError
from prwarden_core.repo.base import BaseRepoProvider
from prwarden_core.utils.code import is_code_file


class GitHubRepoProvider(BaseRepoProvider):
    def __init__(self, repo):
        self._repo = repo
        self._comparisons: dict[tuple[str, str], list] = {}

    def _files(self, base: str, head: str) -> list:
        key = (base, head)
        if key not in self._comparisons:
            try:
                self._comparisons[key] = list(self._repo.compare(base, head).files)
            except GithubException as e:
                raise CollaboratorError(f"Could not compare {base}...{head}: {e}") from e
        return self._comparisons[key]

    def changed_files(self, base: str, head: str) -> list[str]:
        return [
            f.filename
            for f in self._files(base, head)
            if f.status in ("added", "modified") and is_code_file(f.filename)
        ]

    def diff_file(self, base: str, head: str, path: str) -> str:
        for f in self._files(base, head):
            if f.filename == path:
                return f.patch or ""
        return ""

    def diff(self, base: str, head: str) -> str:
        parts = []
        for f in self._files(base, head):
            if f.patch:
                parts.append(f"--- a/{f.filename}\n+++ b/{f.filename}\n{f.patch}")
        return "\n".join(parts)

    def file_content(self, ref: str, path: str) -> str:
        try:
            contents = self._repo.get_contents(path, ref=ref)
        except GithubException as e:
            raise CollaboratorError(f"Could not fetch {path}@{ref}: {e}") from e
        return contents.decoded_content.decode("utf-8", errors="replace")
