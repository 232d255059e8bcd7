"""Translate core errors into click exits.

Client errors (bad repository name, already reviewed, nothing to re-review)
exit with status 2 like any other usage problem; failures on our side or in
a collaborator exit with status 1.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

import click

from prwarden_core.errors import PRWardenError
from prwarden_store.base import StoreError

logger = logging.getLogger(__name__)


class RunFailed(click.ClickException):
    def __init__(self, message: str, client_error: bool):
        super().__init__(message)
        self.exit_code = 2 if client_error else 1


@contextmanager
def cli_errors():
    try:
        yield
    except PRWardenError as e:
        logger.debug("Run failed", exc_info=True)
        raise RunFailed(str(e), client_error=e.client_error) from e
    except StoreError as e:
        logger.debug("Store failed", exc_info=True)
        raise RunFailed(f"Review store failed: {e}", client_error=False) from e
