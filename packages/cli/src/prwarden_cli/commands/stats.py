"""stats command: aggregate developer feedback across a repository."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from prwarden_cli.errors import cli_errors
from prwarden_cli.store import require_persistent_store

console = Console()


@click.command("stats")
@click.option("--repo", "repo_name", required=True, help="Repository name as listed under `repositories` in .prwarden.yml.")
@click.option("--top", default=10, show_default=True, help="Number of top entries to show per category.")
@click.pass_context
def stats_cmd(ctx, repo_name: str, top: int):
    """Show how developers responded to AI comments in a repository.

    Reports the false-alarm rate, the split between project and global
    scopes, and the files whose comments get dismissed most often, which is useful
    for tuning the overview document and exclude patterns.
    """
    from prwarden_core.config import resolve_repository

    store = require_persistent_store(ctx)

    with cli_errors():
        repository = resolve_repository(ctx.obj["config"], repo_name, require_working_copy=False)
        comments = store.list_repo_comments(repository.repo_id)

    if not comments:
        console.print("[yellow]No review comments found for this repository.[/yellow]")
        return

    total = len(comments)
    dismissed = [c for c in comments if c.dev_feedback is not None and c.dev_feedback.false_alarm]
    scope_counter: Counter[str] = Counter(c.dev_feedback.scope for c in dismissed)
    file_counter: Counter[str] = Counter(c.file_path for c in dismissed)
    pull_requests = {c.pr_id for c in comments}

    console.print(f"\n[bold]Feedback stats for [cyan]{repository.repo_id}[/cyan][/bold]")
    console.print(f"  Pull requests:  {len(pull_requests)}")
    console.print(f"  AI comments:    {total}")
    console.print(f"  Dismissed:      {len(dismissed)} ({len(dismissed) / total * 100:.1f}%)")

    if scope_counter:
        scope_table = Table(title="Dismissals by Scope", show_header=True)
        scope_table.add_column("Scope", style="bold")
        scope_table.add_column("Count", justify="right")
        for scope in ["project", "global"]:
            scope_table.add_row(scope, str(scope_counter.get(scope, 0)))
        console.print(scope_table)

    if file_counter:
        file_table = Table(title=f"Top {top} Most Dismissed Files", show_header=True)
        file_table.add_column("File")
        file_table.add_column("Dismissed", justify="right")
        for file_path, count in file_counter.most_common(top):
            file_table.add_row(file_path, str(count))
        console.print(file_table)
