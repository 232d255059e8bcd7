from __future__ import annotations

from github import Github

REF_PREFIX = "refs/heads/"


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def strip_ref(ref: str | None) -> str:
    """Turn ``refs/heads/feature/x`` into ``feature/x``; short names pass through."""
    if not ref:
        return ""
    return ref[len(REF_PREFIX) :] if ref.startswith(REF_PREFIX) else ref
