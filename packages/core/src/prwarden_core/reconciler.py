"""Re-review pass: fold developer replies back into stored feedback."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.console import Console

from prwarden_core.config import resolve_repository
from prwarden_core.errors import PreconditionError, store_errors
from prwarden_core.feedback import FalseAlarm, classify_reply, to_feedback
from prwarden_core.gateway import BaseThreadGateway
from prwarden_core.models import THREAD_FIXED, CommentThread
from prwarden_store.base import BaseStore
from prwarden_store.models import PENDING

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class ReconcileSummary:
    threads: int = 0  # AI threads found on the platform
    untouched: int = 0  # nobody replied yet
    classified: int = 0  # feedback written
    resolved: int = 0  # thread status changed to fixed
    skipped: int = 0  # classified reply whose stored comment was missing


class FeedbackReconciler:
    """Classifies the latest human reply on every AI thread of a pull request.

    Only the last reply of a thread counts; a later reply overwrites what an
    earlier one classified, and an unclassified reply leaves stored feedback
    alone. Writes happen only when something changed, so re-running the pass
    with no new replies is a no-op.
    """

    def __init__(self, config: dict, gateway: BaseThreadGateway, store: BaseStore):
        self.config = config
        self.gateway = gateway
        self.store = store

    @store_errors()
    def run_rereview(self, repo_name: str, pr_number: int) -> ReconcileSummary:
        repository = resolve_repository(self.config, repo_name, require_working_copy=False)
        repo_id = repository.repo_id

        record = self.store.get_pull_request(repo_id, pr_number)
        if record is None or record.status == PENDING:
            raise PreconditionError(f"Cannot re-review PR #{pr_number}: no first review exists")

        known = {c.thread_id for c in self.store.list_comments(repo_id, pr_number)}
        threads = [t for t in self.gateway.get_threads(repo_id, pr_number) if t.id in known]

        summary = ReconcileSummary(threads=len(threads))
        for thread in threads:
            self._reconcile_thread(repo_id, pr_number, thread, summary)

        console.print(
            f"[green]Re-review complete:[/green] {summary.threads} thread(s), "
            f"{summary.classified} classified, {summary.resolved} resolved."
        )
        return summary

    def _reconcile_thread(self, repo_id: str, pr_number: int, thread: CommentThread, summary: ReconcileSummary) -> None:
        if len(thread.replies) <= 1:
            summary.untouched += 1
            return

        latest = thread.replies[-1]
        directive = classify_reply(latest.content)
        feedback = to_feedback(directive)
        if feedback is None:
            logger.debug("Latest reply on thread %d carries no directive", thread.id)
            return

        comment = self.store.get_comment_by_thread(repo_id, thread.id)
        if comment is None:
            logger.warning("No stored comment for thread %d in %s#%d; skipping", thread.id, repo_id, pr_number)
            summary.skipped += 1
            return

        if comment.dev_feedback != feedback:
            self.store.save_feedback(repo_id, thread.id, feedback)
            summary.classified += 1
            logger.info("Thread %d classified as %s/%s", thread.id, type(directive).__name__, feedback.scope)

        # Only a false alarm closes the thread; ignore directives leave its status alone.
        if isinstance(directive, FalseAlarm) and thread.status != THREAD_FIXED:
            self.gateway.update_thread_status(repo_id, pr_number, thread, THREAD_FIXED)
            summary.resolved += 1
