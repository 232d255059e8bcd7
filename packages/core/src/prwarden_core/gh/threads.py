"""GitHub implementation of the comment thread gateway.

Threads are GitHub review threads. A thread is identified by the database id
of the review comment that opened it, which is what create_thread returns
and what gets stored. Reading threads and resolving them is only possible
through the GraphQL API; everything else goes through PyGithub.
"""

from __future__ import annotations

import logging

import requests
from github import Github, GithubException

from prwarden_core.errors import CollaboratorError
from prwarden_core.gateway import BaseThreadGateway
from prwarden_core.gh.pull_request import get_pull, strip_ref
from prwarden_core.models import THREAD_ACTIVE, THREAD_FIXED, CommentThread, ThreadReply
from prwarden_store.models import PENDING, PullRequestRecord

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"

_THREADS_QUERY = """
query($owner: String!, $repo: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $number) {
      reviewThreads(first: 100, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          isResolved
          opener: comments(first: 1) {
            nodes { databaseId body author { login } }
          }
          latest: comments(last: 100) {
            nodes { databaseId body author { login } }
          }
        }
      }
    }
  }
}
"""

_RESOLVE_MUTATION = """
mutation($threadId: ID!) {
  resolveReviewThread(input: {threadId: $threadId}) { thread { id isResolved } }
}
"""

_UNRESOLVE_MUTATION = """
mutation($threadId: ID!) {
  unresolveReviewThread(input: {threadId: $threadId}) { thread { id isResolved } }
}
"""


class GitHubThreadGateway(BaseThreadGateway):
    def __init__(self, token: str, github: Github | None = None, graphql_url: str = GRAPHQL_URL):
        self._token = token
        self._gh = github if github is not None else Github(token)
        self._graphql_url = graphql_url
        self._repos: dict[str, object] = {}

    def _repo(self, repo_id: str):
        if repo_id not in self._repos:
            self._repos[repo_id] = self._gh.get_repo(repo_id)
        return self._repos[repo_id]

    def get_pull_request(self, repo_id: str, pr_number: int) -> PullRequestRecord:
        try:
            repo = self._repo(repo_id)
            pr = get_pull(repo, pr_number)
            return PullRequestRecord(
                project_id=repo.owner.login,
                repo_id=repo_id,
                pull_request_id=pr_number,
                source_branch=strip_ref(pr.head.ref),
                target_branch=strip_ref(pr.base.ref),
                last_reviewed_commit=pr.head.sha or "",
                status=PENDING,
            )
        except GithubException as e:
            raise CollaboratorError(f"Could not fetch PR #{pr_number} from {repo_id}: {e}") from e

    def create_thread(self, repo_id: str, pr_number: int, file_path: str, content: str, line: int) -> tuple[int, int]:
        try:
            repo = self._repo(repo_id)
            pr = get_pull(repo, pr_number)
            comment = pr.create_review_comment(
                body=content,
                commit=repo.get_commit(pr.head.sha),
                path=file_path,
                line=line,
                side="RIGHT",
            )
        except GithubException as e:
            raise CollaboratorError(f"Could not comment on {file_path}:{line} in PR #{pr_number}: {e}") from e
        # The opening comment is the thread's identity on GitHub.
        return comment.id, comment.id

    def get_threads(self, repo_id: str, pr_number: int) -> list[CommentThread]:
        owner, _, name = repo_id.partition("/")
        threads: list[CommentThread] = []
        cursor = None
        while True:
            data = self._graphql(_THREADS_QUERY, {"owner": owner, "repo": name, "number": pr_number, "cursor": cursor})
            page = data["repository"]["pullRequest"]["reviewThreads"]
            for node in page.get("nodes") or []:
                thread = self._to_thread(node)
                if thread is not None:
                    threads.append(thread)
            page_info = page.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")
        return threads

    def update_thread_status(self, repo_id: str, pr_number: int, thread: CommentThread, status: str) -> None:
        if not thread.node_id:
            raise CollaboratorError(f"Thread {thread.id} has no GraphQL node id; cannot change its status")
        mutation = _RESOLVE_MUTATION if status == THREAD_FIXED else _UNRESOLVE_MUTATION
        self._graphql(mutation, {"threadId": thread.node_id})
        thread.status = status

    def _graphql(self, query: str, variables: dict) -> dict:
        try:
            response = requests.post(
                self._graphql_url,
                json={"query": query, "variables": variables},
                headers={"Authorization": f"Bearer {self._token}"},
                timeout=30,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise CollaboratorError(f"GitHub GraphQL request failed: {e}") from e
        if payload.get("errors"):
            message = payload["errors"][0].get("message", "unknown error")
            raise CollaboratorError(f"GitHub GraphQL error: {message}")
        return payload.get("data") or {}

    @staticmethod
    def _to_thread(node: dict) -> CommentThread | None:
        opener = (node.get("opener") or {}).get("nodes") or []
        latest = (node.get("latest") or {}).get("nodes") or []
        # Threads longer than one page keep their opener and newest replies.
        comments = opener + [c for c in latest if not opener or c.get("databaseId") != opener[0].get("databaseId")]
        if not comments or comments[0].get("databaseId") is None:
            logger.debug("Skipping review thread %s with no readable comments", node.get("id"))
            return None
        replies = [
            ThreadReply(
                id=c.get("databaseId") or 0,
                content=c.get("body") or "",
                author=(c.get("author") or {}).get("login", ""),
            )
            for c in comments
        ]
        return CommentThread(
            id=replies[0].id,
            status=THREAD_FIXED if node.get("isResolved") else THREAD_ACTIVE,
            replies=replies,
            node_id=node.get("id") or "",
        )
