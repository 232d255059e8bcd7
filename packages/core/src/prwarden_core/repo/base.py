"""Repo diff provider interface.

A provider is scoped to one repository: a local working copy or a remote
repository handle. ``base`` is the branch the pull request merges into and
``head`` the branch carrying the changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseRepoProvider(ABC):
    @abstractmethod
    def changed_files(self, base: str, head: str) -> list[str]:
        """Return paths added or modified on ``head`` since it forked from ``base``.

        Binary files and lock files are never returned.
        """

    @abstractmethod
    def diff_file(self, base: str, head: str, path: str) -> str:
        """Return the unified diff of a single file."""

    @abstractmethod
    def diff(self, base: str, head: str) -> str:
        """Return the unified diff of the whole branch range."""

    @abstractmethod
    def file_content(self, ref: str, path: str) -> str:
        """Return the content of ``path`` as of branch ``ref``."""
