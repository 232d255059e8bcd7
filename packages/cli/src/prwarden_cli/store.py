"""Store guard shared by the commands that read or write review state."""

from __future__ import annotations

import click

from prwarden_store.base import BaseStore
from prwarden_store.memory import MemoryStore


def require_persistent_store(ctx: click.Context) -> BaseStore:
    """Return the configured store, refusing one that forgets everything on exit.

    A review recorded in a MemoryStore is gone before the next invocation, so
    a second review would post again and a re-review would find nothing.
    """
    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, MemoryStore):
        raise click.UsageError("No persistent store configured. Set 'store: sqlite' in .prwarden.yml.")
    return store
