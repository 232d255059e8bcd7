"""Error taxonomy for review and re-review runs.

Every error raised by the core derives from PRWardenError. ``client_error``
tells the calling surface whether the caller asked for something invalid
(unknown repository, PR already reviewed, ...) or whether the run failed on
our side or in a collaborator.
"""

from __future__ import annotations

from contextlib import contextmanager

from prwarden_store.base import StoreError


class PRWardenError(Exception):
    client_error: bool = False


class ConfigurationError(PRWardenError):
    """Unknown repository name or missing working-copy mapping."""

    client_error = True


class ConflictError(PRWardenError):
    """The pull request already has a review record."""

    client_error = True


class PreconditionError(PRWardenError):
    """A re-review was requested for a pull request that was never reviewed."""

    client_error = True


class ReviewParseError(PRWardenError):
    """The reviewer's response is not valid JSON or does not match the findings schema."""

    def __init__(self, file_path: str, message: str):
        super().__init__(f"Could not parse review for {file_path}: {message}")
        self.file_path = file_path


class CollaboratorError(PRWardenError):
    """An external call (platform, git, model, store) failed."""


@contextmanager
def store_errors():
    """Re-raise backend StoreError as CollaboratorError."""
    try:
        yield
    except StoreError as e:
        raise CollaboratorError(f"Review store failed: {e}") from e
