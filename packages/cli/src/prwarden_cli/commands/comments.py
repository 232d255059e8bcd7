"""comments command: list stored AI comments of a pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prwarden_cli.errors import cli_errors
from prwarden_cli.store import require_persistent_store

console = Console()


@click.command("comments")
@click.option("--repo", "repo_name", required=True, help="Repository name as listed under `repositories` in .prwarden.yml.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.pass_context
def comments_cmd(ctx, repo_name: str, pr_number: int):
    """Show the AI comments recorded for a pull request and any developer feedback on them."""
    from prwarden_core.config import resolve_repository

    store = require_persistent_store(ctx)

    with cli_errors():
        repository = resolve_repository(ctx.obj["config"], repo_name, require_working_copy=False)
        pr = store.get_pull_request(repository.repo_id, pr_number)
        comments = store.list_comments(repository.repo_id, pr_number)

    if pr is None and not comments:
        console.print("[yellow]No review recorded for this pull request.[/yellow]")
        return

    if pr is not None:
        console.print(
            f"[bold]{pr.repo_id}#{pr.pull_request_id}[/bold]  "
            f"{pr.source_branch} → {pr.target_branch}  status: [cyan]{pr.status}[/cyan]"
        )

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Thread", width=12)
    table.add_column("File")
    table.add_column("Line", justify="right", width=6)
    table.add_column("Issue", max_width=40)
    table.add_column("Feedback", max_width=40)

    for c in comments:
        feedback = ""
        if c.dev_feedback is not None:
            feedback = f"[yellow]{c.dev_feedback.scope}[/yellow] {c.dev_feedback.content}"
        table.add_row(str(c.thread_id), c.file_path, str(c.line_number), c.issue, feedback)

    console.print(table)
