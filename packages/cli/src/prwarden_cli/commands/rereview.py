"""rereview command: classify developer replies on AI threads."""

from __future__ import annotations

import click

from prwarden_cli.errors import cli_errors
from prwarden_cli.gateway import build_gateway
from prwarden_cli.store import require_persistent_store
from prwarden_core.reconciler import FeedbackReconciler


@click.command("rereview")
@click.option("--repo", "repo_name", required=True, help="Repository name as listed under `repositories` in .prwarden.yml.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.pass_context
def rereview_cmd(ctx, repo_name: str, pr_number: int):
    """Read replies on the AI comment threads of a reviewed pull request.

    \b
    Directives recognised at the start of the latest reply:
      :falseAlarm [note]       mark as false alarm and resolve the thread
      :ignore-project [note]   ignore within this project
      :ignore-global [note]    ignore everywhere
      :ignore [note]           ignore everywhere
    """
    store = require_persistent_store(ctx)
    config = ctx.obj["config"]
    gateway = build_gateway(config)

    with cli_errors():
        FeedbackReconciler(config, gateway, store).run_rereview(repo_name, pr_number)
