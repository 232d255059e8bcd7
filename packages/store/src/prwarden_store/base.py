"""Abstract store interface.

One store holds both record kinds: pull request records (the idempotency
guard for first-pass reviews) and review comments (AI findings plus the
developer feedback attached to them later). The core depends on BaseStore,
never on a concrete backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prwarden_store.models import DeveloperFeedback, PullRequestRecord, ReviewComment


class StoreError(Exception):
    """A backend could not read or write review state."""


class BaseStore(ABC):
    """Pluggable persistence layer for review state.

    Backend failures surface as StoreError, never as driver exceptions.

    ``claim_pull_request`` must be atomic: two callers racing on the same
    (repo_id, pull_request_id) must never both see ``None``.
    """

    # ------------------------------------------------------------------ #
    # Pull request records                                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def get_pull_request(self, repo_id: str, pull_request_id: int) -> PullRequestRecord | None:
        """Return the record for a pull request, or None if it was never reviewed."""

    @abstractmethod
    def claim_pull_request(self, record: PullRequestRecord) -> PullRequestRecord | None:
        """Insert ``record`` if no record exists for its pull request.

        Returns None when the insert happened, otherwise the record that
        already occupies the key (which is left untouched).
        """

    @abstractmethod
    def set_pull_request_status(self, repo_id: str, pull_request_id: int, status: str) -> None:
        """Update the status of an existing record."""

    @abstractmethod
    def release_pull_request(self, repo_id: str, pull_request_id: int) -> None:
        """Delete the record only if it is still pending. No-op otherwise."""

    # ------------------------------------------------------------------ #
    # Review comments                                                     #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def save_comment(self, comment: ReviewComment) -> None:
        """Persist a newly posted review comment.

        Raises StoreError if the thread already has a stored comment.
        """

    @abstractmethod
    def list_comments(self, repo_id: str, pr_id: int) -> list[ReviewComment]:
        """Return the comments of one pull request in insertion order."""

    @abstractmethod
    def get_comment_by_thread(self, repo_id: str, thread_id: int) -> ReviewComment | None:
        """Return the comment mirrored by a thread, or None."""

    @abstractmethod
    def save_feedback(self, repo_id: str, thread_id: int, feedback: DeveloperFeedback) -> None:
        """Attach (or overwrite) developer feedback on a stored comment."""

    @abstractmethod
    def list_repo_comments(self, repo_id: str) -> list[ReviewComment]:
        """Return every stored comment for a repository. Used for stats."""

    def close(self) -> None:
        """Release any resources held by the store. Default is a no-op."""
