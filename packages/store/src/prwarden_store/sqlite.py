"""SQLiteStore: local file-based store.

Schema:
  pull_requests   : one row per reviewed pull request. The UNIQUE key on
                    (repo_id, pull_request_id) is what makes claiming a
                    pull request atomic.
  review_comments : one row per posted finding; feedback columns stay NULL
                    until a developer replies with a directive.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager

from prwarden_store.base import BaseStore, StoreError
from prwarden_store.models import PENDING, DeveloperFeedback, PullRequestRecord, ReviewComment

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS pull_requests (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id            TEXT NOT NULL,
    repo_id               TEXT NOT NULL,
    pull_request_id       INTEGER NOT NULL,
    source_branch         TEXT NOT NULL,
    target_branch         TEXT NOT NULL,
    last_reviewed_commit  TEXT NOT NULL,
    status                TEXT NOT NULL,
    created_at            TEXT,
    UNIQUE (repo_id, pull_request_id)
);
CREATE TABLE IF NOT EXISTS review_comments (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    repo_id               TEXT NOT NULL,
    thread_id             INTEGER NOT NULL,
    comment_id            INTEGER NOT NULL,
    pr_id                 INTEGER NOT NULL,
    file_path             TEXT NOT NULL,
    line_number           INTEGER NOT NULL,
    issue                 TEXT NOT NULL,
    reason                TEXT NOT NULL,
    recommendation        TEXT NOT NULL,
    feedback_false_alarm  INTEGER,
    feedback_scope        TEXT,
    feedback_content      TEXT,
    UNIQUE (repo_id, thread_id)
);
CREATE INDEX IF NOT EXISTS idx_comments_pr ON review_comments (repo_id, pr_id);
"""


@contextmanager
def _sqlite_errors():
    try:
        yield
    except sqlite3.Error as e:
        raise StoreError(f"SQLite store error: {e}") from e


class SQLiteStore(BaseStore):
    """Stores review state in a local SQLite database file.

    The path defaults to `.prwarden.db` in the current working directory.
    Configure via .prwarden.yml: `store_path: /path/to/prwarden.db`.
    """

    @_sqlite_errors()
    def __init__(self, db_path: str = ".prwarden.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    @_sqlite_errors()
    def get_pull_request(self, repo_id: str, pull_request_id: int) -> PullRequestRecord | None:
        row = self._conn.execute(
            "SELECT * FROM pull_requests WHERE repo_id=? AND pull_request_id=?",
            (repo_id, pull_request_id),
        ).fetchone()
        return self._row_to_pull_request(row) if row else None

    @_sqlite_errors()
    def claim_pull_request(self, record: PullRequestRecord) -> PullRequestRecord | None:
        cursor = self._conn.execute(
            """
            INSERT OR IGNORE INTO pull_requests
              (project_id, repo_id, pull_request_id, source_branch, target_branch,
               last_reviewed_commit, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.project_id,
                record.repo_id,
                record.pull_request_id,
                record.source_branch,
                record.target_branch,
                record.last_reviewed_commit,
                record.status,
                record.created_at,
            ),
        )
        self._conn.commit()
        if cursor.rowcount == 1:
            return None
        logger.debug("Pull request %s#%d already has a record", record.repo_id, record.pull_request_id)
        return self.get_pull_request(record.repo_id, record.pull_request_id)

    @_sqlite_errors()
    def set_pull_request_status(self, repo_id: str, pull_request_id: int, status: str) -> None:
        self._conn.execute(
            "UPDATE pull_requests SET status=? WHERE repo_id=? AND pull_request_id=?",
            (status, repo_id, pull_request_id),
        )
        self._conn.commit()

    @_sqlite_errors()
    def release_pull_request(self, repo_id: str, pull_request_id: int) -> None:
        self._conn.execute(
            "DELETE FROM pull_requests WHERE repo_id=? AND pull_request_id=? AND status=?",
            (repo_id, pull_request_id, PENDING),
        )
        self._conn.commit()

    @_sqlite_errors()
    def save_comment(self, comment: ReviewComment) -> None:
        feedback = comment.dev_feedback
        try:
            self._insert_comment(comment, feedback)
        except sqlite3.IntegrityError as e:
            raise StoreError(f"Thread {comment.thread_id} already has a stored comment in {comment.repo_id}") from e
        self._conn.commit()

    def _insert_comment(self, comment: ReviewComment, feedback: DeveloperFeedback | None) -> None:
        self._conn.execute(
            """
            INSERT INTO review_comments
              (repo_id, thread_id, comment_id, pr_id, file_path, line_number, issue,
               reason, recommendation, feedback_false_alarm, feedback_scope, feedback_content)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                comment.repo_id,
                comment.thread_id,
                comment.comment_id,
                comment.pr_id,
                comment.file_path,
                comment.line_number,
                comment.issue,
                comment.reason,
                comment.recommendation,
                int(feedback.false_alarm) if feedback else None,
                feedback.scope if feedback else None,
                feedback.content if feedback else None,
            ),
        )

    @_sqlite_errors()
    def list_comments(self, repo_id: str, pr_id: int) -> list[ReviewComment]:
        rows = self._conn.execute(
            "SELECT * FROM review_comments WHERE repo_id=? AND pr_id=? ORDER BY id",
            (repo_id, pr_id),
        ).fetchall()
        return [self._row_to_comment(r) for r in rows]

    @_sqlite_errors()
    def get_comment_by_thread(self, repo_id: str, thread_id: int) -> ReviewComment | None:
        row = self._conn.execute(
            "SELECT * FROM review_comments WHERE repo_id=? AND thread_id=?",
            (repo_id, thread_id),
        ).fetchone()
        return self._row_to_comment(row) if row else None

    @_sqlite_errors()
    def save_feedback(self, repo_id: str, thread_id: int, feedback: DeveloperFeedback) -> None:
        self._conn.execute(
            """
            UPDATE review_comments
               SET feedback_false_alarm=?, feedback_scope=?, feedback_content=?
             WHERE repo_id=? AND thread_id=?
            """,
            (int(feedback.false_alarm), feedback.scope, feedback.content, repo_id, thread_id),
        )
        self._conn.commit()

    @_sqlite_errors()
    def list_repo_comments(self, repo_id: str) -> list[ReviewComment]:
        rows = self._conn.execute(
            "SELECT * FROM review_comments WHERE repo_id=? ORDER BY id",
            (repo_id,),
        ).fetchall()
        return [self._row_to_comment(r) for r in rows]

    @_sqlite_errors()
    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_pull_request(row: sqlite3.Row) -> PullRequestRecord:
        return PullRequestRecord(
            project_id=row["project_id"],
            repo_id=row["repo_id"],
            pull_request_id=row["pull_request_id"],
            source_branch=row["source_branch"],
            target_branch=row["target_branch"],
            last_reviewed_commit=row["last_reviewed_commit"],
            status=row["status"],
            created_at=row["created_at"] or "",
        )

    @staticmethod
    def _row_to_comment(row: sqlite3.Row) -> ReviewComment:
        feedback = None
        if row["feedback_false_alarm"] is not None:
            feedback = DeveloperFeedback(
                false_alarm=bool(row["feedback_false_alarm"]),
                scope=row["feedback_scope"] or "",
                content=row["feedback_content"] or "",
            )
        return ReviewComment(
            repo_id=row["repo_id"],
            thread_id=row["thread_id"],
            comment_id=row["comment_id"],
            pr_id=row["pr_id"],
            file_path=row["file_path"],
            line_number=row["line_number"],
            issue=row["issue"],
            reason=row["reason"],
            recommendation=row["recommendation"],
            dev_feedback=feedback,
        )
