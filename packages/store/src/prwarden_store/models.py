"""Persisted record shapes.

Both records are owned by the store layer; the core only reads and writes
them through a BaseStore and keeps no state of its own between runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

PENDING = "pending"
REVIEWED = "reviewed"
# Reserved. No code path moves a record into this state yet.
PASSED = "passed"

SCOPE_PROJECT = "project"
SCOPE_GLOBAL = "global"


@dataclass
class PullRequestRecord:
    """One reviewed pull request, unique per (repo_id, pull_request_id).

    A record whose status is not ``pending`` blocks any further first-pass
    review of the same pull request.
    """

    project_id: str
    repo_id: str
    pull_request_id: int
    source_branch: str
    target_branch: str
    last_reviewed_commit: str
    status: str = PENDING
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


@dataclass
class DeveloperFeedback:
    """Classification a human attached to an AI comment by replying with a directive."""

    false_alarm: bool
    scope: str  # "project" | "global"
    content: str


@dataclass
class ReviewComment:
    """An AI finding mirrored as a comment thread on the pull request."""

    repo_id: str
    thread_id: int
    comment_id: int
    pr_id: int
    file_path: str
    line_number: int
    issue: str
    reason: str
    recommendation: str
    dev_feedback: DeveloperFeedback | None = None
