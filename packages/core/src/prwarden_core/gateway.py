"""Comment thread gateway interface: the hosting platform as the core sees it."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prwarden_core.models import CommentThread
    from prwarden_store.models import PullRequestRecord


class BaseThreadGateway(ABC):
    @abstractmethod
    def get_pull_request(self, repo_id: str, pr_number: int) -> PullRequestRecord:
        """Return a pending record describing the pull request as it is now.

        Branch names come back without the platform's ref prefix.
        """

    @abstractmethod
    def create_thread(self, repo_id: str, pr_number: int, file_path: str, content: str, line: int) -> tuple[int, int]:
        """Open a thread on ``file_path``:``line``; return ``(thread_id, comment_id)``."""

    @abstractmethod
    def get_threads(self, repo_id: str, pr_number: int) -> list[CommentThread]:
        """Return every comment thread of the pull request with its replies in order."""

    @abstractmethod
    def update_thread_status(self, repo_id: str, pr_number: int, thread: CommentThread, status: str) -> None:
        """Change the status of a thread returned by get_threads."""
