"""Core PR review orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from rich.console import Console

from prwarden_core.config import RepositoryConfig, load_overview, resolve_repository
from prwarden_core.errors import ConfigurationError, ConflictError, store_errors
from prwarden_core.gateway import BaseThreadGateway
from prwarden_core.gh.pull_request import get_repo
from prwarden_core.models import Finding
from prwarden_core.providers.anthropic import AnthropicReviewer
from prwarden_core.providers.base import BaseReviewer
from prwarden_core.providers.ollama import OllamaReviewer
from prwarden_core.providers.openai import OpenAIReviewer
from prwarden_core.repo.base import BaseRepoProvider
from prwarden_core.repo.github import GitHubRepoProvider
from prwarden_core.repo.local import LocalRepoProvider
from prwarden_core.utils.code import is_excluded
from prwarden_store.base import BaseStore
from prwarden_store.models import PENDING, REVIEWED, PullRequestRecord, ReviewComment

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class ReviewResult:
    """What run_review hands back to the calling surface for reporting."""

    pull_request: PullRequestRecord
    findings: dict[str, list[Finding]] = field(default_factory=dict)  # file path -> findings, review order
    comments: list[ReviewComment] = field(default_factory=list)
    shadow: bool = False

    @property
    def total_findings(self) -> int:
        return sum(len(f) for f in self.findings.values())


def get_reviewer(config: dict) -> BaseReviewer:
    provider = config.get("provider", "openai")
    if provider == "openai":
        return OpenAIReviewer(api_key=config["openai_api_key"], base_url=config.get("llm_base_url"))
    if provider == "ollama":
        return OllamaReviewer(base_url=config.get("llm_base_url"))
    if provider == "anthropic":
        return AnthropicReviewer(api_key=config["anthropic_api_key"])
    raise ConfigurationError(f"Unknown model provider: {provider!r}. Choose 'openai', 'ollama' or 'anthropic'.")


def build_repo_provider(config: dict, repository: RepositoryConfig) -> BaseRepoProvider:
    kind = config.get("repo_provider", "local")
    if kind == "local":
        return LocalRepoProvider(
            repository.path,
            remote=config.get("remote", "origin"),
            context_lines=config.get("diff_context_lines", 3),
        )
    if kind == "github":
        return GitHubRepoProvider(get_repo(repository.repo_id, token=config["github_token"]))
    raise ConfigurationError(f"Unknown repo provider: {kind!r}. Choose 'local' or 'github'.")


def format_comment_body(finding: Finding) -> str:
    return (
        f"**line**: {finding.line_number}\n"
        f"**issue**: {finding.issue}\n"
        f"**reason**: {finding.reason}\n"
        f"**recommendation**: {finding.recommendation}"
    )


def print_shadow_findings(findings: dict[str, list[Finding]]) -> None:
    """Print findings to the terminal without posting them."""
    total = sum(len(f) for f in findings.values())
    if not total:
        console.print("[yellow]Shadow mode: no findings.[/yellow]")
        return
    console.print(f"\n[bold]Shadow review: {total} finding(s) (not posted)[/bold]\n")
    for path, items in findings.items():
        for f in items:
            console.print(f"[bold cyan]{path}[/bold cyan]  line [bold]{f.line_number}[/bold]  {f.issue}")
            console.print(f"  [dim]{f.reason}[/dim]")
            console.print(f"  {f.recommendation}")
            console.print()


def _conflict_message(record: PullRequestRecord) -> str:
    if record.status == PENDING:
        return f"PR #{record.pull_request_id} is already being reviewed"
    return f"PR #{record.pull_request_id} already reviewed, try re-reviewing it"


class ReviewOrchestrator:
    """Drives a first-pass review of one pull request.

    All collaborators are handed in at construction; the orchestrator keeps
    no state between runs. ``repo_provider_factory`` builds the diff provider
    for the repository a run targets, so each run is scoped to exactly one
    working copy.
    """

    def __init__(
        self,
        config: dict,
        reviewer: BaseReviewer,
        gateway: BaseThreadGateway,
        store: BaseStore,
        repo_provider_factory: Callable[[RepositoryConfig], BaseRepoProvider] | None = None,
    ):
        self.config = config
        self.reviewer = reviewer
        self.gateway = gateway
        self.store = store
        self.repo_provider_factory = repo_provider_factory or (lambda repo: build_repo_provider(config, repo))

    @store_errors()
    def run_review(self, repo_name: str, pr_number: int, model: str | None = None, shadow: bool = False) -> ReviewResult:
        """Review a pull request once: post every finding and record the PR as reviewed.

        Raises ConflictError, without side effects, if the PR already has a
        review record. A failure after the PR was claimed releases the claim,
        so a failed run never leaves a record behind. Threads posted before
        the failure stay posted.
        """
        repository = resolve_repository(self.config, repo_name)
        repo_id = repository.repo_id
        model = model or self.config.get("model")

        existing = self.store.get_pull_request(repo_id, pr_number)
        if existing is not None and existing.status != PENDING:
            raise ConflictError(_conflict_message(existing))

        details = self.gateway.get_pull_request(repo_id, pr_number)

        if shadow:
            findings = self._collect_findings(repository, details, model)
            print_shadow_findings(findings)
            return ReviewResult(pull_request=details, findings=findings, shadow=True)

        conflict = self.store.claim_pull_request(details)
        if conflict is not None:
            raise ConflictError(_conflict_message(conflict))

        try:
            findings = self._collect_findings(repository, details, model)
            comments = self._post_findings(details, findings)
            self.store.set_pull_request_status(repo_id, pr_number, REVIEWED)
        except BaseException:
            self._release(repo_id, pr_number)
            raise

        details.status = REVIEWED
        console.print(f"\n[green]Review posted: {len(comments)} comment(s) on {repo_id}#{pr_number}.[/green]")
        return ReviewResult(pull_request=details, findings=findings, comments=comments)

    def _collect_findings(
        self, repository: RepositoryConfig, details: PullRequestRecord, model: str | None
    ) -> dict[str, list[Finding]]:
        """Ask the reviewer about every changed file; any unparsable response aborts the run."""
        provider = self.repo_provider_factory(repository)
        base, head = details.target_branch, details.source_branch
        max_chars = self.config.get("max_chars_per_file", 20000)
        exclude_patterns = self.config.get("exclude", [])
        overview = load_overview(repository) or None

        files = provider.changed_files(base, head)
        total = len(files)
        results: dict[str, list[Finding]] = {}

        for i, path in enumerate(files, 1):
            if is_excluded(path, exclude_patterns):
                console.print(f"  Skipping: {path}")
                continue

            console.print(f"\n[[{i}/{total}]] Reviewing: {path}")
            patch = provider.diff_file(base, head, path)
            if not patch.strip():
                logger.debug("Empty diff for %s, nothing to review", path)
                continue
            if len(patch) > max_chars:
                patch = patch[:max_chars] + "\n... [diff truncated]"

            file_content = None
            if self.config.get("include_file_content"):
                file_content = provider.file_content(head, path)
                if len(file_content) > max_chars:
                    file_content = file_content[:max_chars] + "\n... [file truncated]"

            findings = self.reviewer.review(path, patch, model=model, file_content=file_content, overview=overview)
            # Threads are anchored to the file that was reviewed, whatever path the model echoed back.
            results[path] = [f if f.file_path == path else f.model_copy(update={"file_path": path}) for f in findings]
            console.print(f"  {len(findings)} finding(s).")

        return results

    def _post_findings(self, details: PullRequestRecord, findings: dict[str, list[Finding]]) -> list[ReviewComment]:
        comments: list[ReviewComment] = []
        for items in findings.values():
            for finding in items:
                thread_id, comment_id = self.gateway.create_thread(
                    details.repo_id,
                    details.pull_request_id,
                    finding.file_path,
                    format_comment_body(finding),
                    finding.line_number,
                )
                comment = ReviewComment(
                    repo_id=details.repo_id,
                    thread_id=thread_id,
                    comment_id=comment_id,
                    pr_id=details.pull_request_id,
                    file_path=finding.file_path,
                    line_number=finding.line_number,
                    issue=finding.issue,
                    reason=finding.reason,
                    recommendation=finding.recommendation,
                )
                self.store.save_comment(comment)
                comments.append(comment)
        return comments

    def _release(self, repo_id: str, pr_number: int) -> None:
        try:
            self.store.release_pull_request(repo_id, pr_number)
        except Exception as e:
            logger.warning("Could not release review claim on %s#%d: %s", repo_id, pr_number, e)
