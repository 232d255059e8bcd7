"""CLI entry point for prwarden.

Commands:
  review   : first-pass AI review of a pull request
  rereview : fold developer replies on AI threads back into stored feedback
  comments : list stored AI comments of a pull request with their feedback
  stats    : aggregate feedback across a repository
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prwarden_cli.commands.comments import comments_cmd
from prwarden_cli.commands.rereview import rereview_cmd
from prwarden_cli.commands.review import review_cmd
from prwarden_cli.commands.stats import stats_cmd
from prwarden_cli.errors import cli_errors

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store from .prwarden.yml settings.

    Store selection:
      (default)     → SQLiteStore (store_path, default .prwarden.db)
      store: memory → MemoryStore (state lasts for this process only; shadow runs)
    """
    store_type = config.get("store", "sqlite")

    if store_type == "memory":
        from prwarden_store.memory import MemoryStore

        return MemoryStore()

    if store_type != "sqlite":
        console.print(f"[yellow]Unknown store {store_type!r}. Falling back to SQLite.[/yellow]")

    from prwarden_store.sqlite import SQLiteStore

    return SQLiteStore(db_path=config.get("store_path", ".prwarden.db"))


@click.group()
@click.version_option(
    version=importlib.metadata.version("prwarden"),
    prog_name="prwarden",
)
@click.option(
    "--config",
    "config_path",
    default=".prwarden.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRWARDEN_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI code review for pull requests, with feedback that sticks."""
    from prwarden_core.config import load_config
    from prwarden_cli.auth import resolve_github_token

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    ctx.ensure_object(dict)

    config = load_config(config_path)

    token = resolve_github_token()
    if token:
        config["github_token"] = token

    with cli_errors():
        store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(review_cmd)
main.add_command(rereview_cmd)
main.add_command(comments_cmd)
main.add_command(stats_cmd)
