"""In-memory store: state lives only as long as the process.

Enough for shadow runs and tests. The CLI refuses to post a review or
re-review against it, since nothing it records survives to the next run.
Select it with .prwarden.yml: store: memory.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import TYPE_CHECKING

from prwarden_store.base import BaseStore, StoreError
from prwarden_store.models import PENDING

if TYPE_CHECKING:
    from prwarden_store.models import DeveloperFeedback, PullRequestRecord, ReviewComment


class MemoryStore(BaseStore):
    """Keeps records in dicts guarded by a lock.

    Records are copied on the way in and out so callers can never mutate
    stored state behind the store's back.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pull_requests: dict[tuple[str, int], PullRequestRecord] = {}
        self._comments: dict[tuple[str, int], ReviewComment] = {}

    def get_pull_request(self, repo_id: str, pull_request_id: int) -> PullRequestRecord | None:
        with self._lock:
            record = self._pull_requests.get((repo_id, pull_request_id))
            return replace(record) if record else None

    def claim_pull_request(self, record: PullRequestRecord) -> PullRequestRecord | None:
        key = (record.repo_id, record.pull_request_id)
        with self._lock:
            existing = self._pull_requests.get(key)
            if existing is not None:
                return replace(existing)
            self._pull_requests[key] = replace(record)
            return None

    def set_pull_request_status(self, repo_id: str, pull_request_id: int, status: str) -> None:
        with self._lock:
            record = self._pull_requests.get((repo_id, pull_request_id))
            if record is not None:
                record.status = status

    def release_pull_request(self, repo_id: str, pull_request_id: int) -> None:
        key = (repo_id, pull_request_id)
        with self._lock:
            record = self._pull_requests.get(key)
            if record is not None and record.status == PENDING:
                del self._pull_requests[key]

    def save_comment(self, comment: ReviewComment) -> None:
        key = (comment.repo_id, comment.thread_id)
        with self._lock:
            if key in self._comments:
                raise StoreError(f"Thread {comment.thread_id} already has a stored comment in {comment.repo_id}")
            self._comments[key] = replace(comment)

    def list_comments(self, repo_id: str, pr_id: int) -> list[ReviewComment]:
        with self._lock:
            return [replace(c) for c in self._comments.values() if c.repo_id == repo_id and c.pr_id == pr_id]

    def get_comment_by_thread(self, repo_id: str, thread_id: int) -> ReviewComment | None:
        with self._lock:
            comment = self._comments.get((repo_id, thread_id))
            return replace(comment) if comment else None

    def save_feedback(self, repo_id: str, thread_id: int, feedback: DeveloperFeedback) -> None:
        with self._lock:
            comment = self._comments.get((repo_id, thread_id))
            if comment is not None:
                comment.dev_feedback = replace(feedback)

    def list_repo_comments(self, repo_id: str) -> list[ReviewComment]:
        with self._lock:
            return [replace(c) for c in self._comments.values() if c.repo_id == repo_id]
