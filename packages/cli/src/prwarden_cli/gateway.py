"""Builds the hosting-platform gateway from the resolved configuration."""

from __future__ import annotations

import click

from prwarden_core.gh.threads import GitHubThreadGateway


def build_gateway(config: dict) -> GitHubThreadGateway:
    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return GitHubThreadGateway(token=token)
