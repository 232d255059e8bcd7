"""review command: first-pass AI review of a pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prwarden_cli.errors import cli_errors
from prwarden_cli.gateway import build_gateway
from prwarden_cli.store import require_persistent_store
from prwarden_core.reviewer import ReviewOrchestrator, ReviewResult, get_reviewer

console = Console()


def _print_result(result: ReviewResult) -> None:
    if not result.total_findings:
        console.print("[green]No issues found.[/green]")
        return

    table = Table(title=f"Findings for {result.pull_request.repo_id}#{result.pull_request.pull_request_id}")
    table.add_column("File", style="cyan")
    table.add_column("Line", justify="right", width=6)
    table.add_column("Issue")
    for path, findings in result.findings.items():
        for f in findings:
            table.add_row(path, str(f.line_number), f.issue)
    console.print(table)


@click.command("review")
@click.option("--repo", "repo_name", required=True, help="Repository name as listed under `repositories` in .prwarden.yml.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option("--model", default=None, help="Model name passed to the provider. Overrides config file.")
@click.option(
    "--provider",
    type=click.Choice(["openai", "ollama", "anthropic"]),
    default=None,
    help="LLM provider. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print findings without posting or recording anything.",
)
@click.pass_context
def review_cmd(ctx, repo_name: str, pr_number: int, model: str | None, provider: str | None, shadow: bool):
    """Review a pull request and post each finding as a comment thread.

    A pull request is reviewed once. Use `prwarden rereview` afterwards to
    pick up developer replies.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      OPENAI_API_KEY       Required when using --provider openai
      ANTHROPIC_API_KEY    Required when using --provider anthropic
    """
    store = ctx.obj["store"] if shadow else require_persistent_store(ctx)
    config = dict(ctx.obj["config"])
    if provider:
        config["provider"] = provider

    if config["provider"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set.")
    if config["provider"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")

    gateway = build_gateway(config)

    with cli_errors():
        orchestrator = ReviewOrchestrator(config, get_reviewer(config), gateway, store)
        result = orchestrator.run_review(repo_name, pr_number, model=model, shadow=shadow)

    if not result.shadow:
        _print_result(result)
