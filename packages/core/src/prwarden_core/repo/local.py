"""Diffs computed with the git CLI inside a local working copy."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from prwarden_core.errors import CollaboratorError
from prwarden_core.repo.base import BaseRepoProvider
from prwarden_core.utils.code import is_code_file

logger = logging.getLogger(__name__)


class LocalRepoProvider(BaseRepoProvider):
    """Reads branches from ``remote`` after a single ``git fetch``.

    Every command runs with ``cwd`` set to the working copy, so several
    providers for different repositories can coexist in one process.
    """

    def __init__(self, path: str, remote: str = "origin", context_lines: int = 3, fetch: bool = True):
        self.path = Path(path)
        self.remote = remote
        self.context_lines = context_lines
        self._needs_fetch = fetch

    def _git(self, *args: str) -> str:
        cmd = ["git", "-c", "core.quotepath=false", "-c", "core.pager=cat", *args]
        logger.debug("Running %s in %s", " ".join(cmd), self.path)
        try:
            result = subprocess.run(cmd, cwd=self.path, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise CollaboratorError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise CollaboratorError(f"git {' '.join(args)} failed: {(e.stderr or '').strip()}") from e
        return result.stdout

    def _fetch_once(self) -> None:
        if self._needs_fetch:
            self._git("fetch", self.remote, "--prune")
            self._needs_fetch = False

    def _range(self, base: str, head: str) -> str:
        return f"{self.remote}/{base}...{self.remote}/{head}"

    def changed_files(self, base: str, head: str) -> list[str]:
        self._fetch_once()
        out = self._git("diff", self._range(base, head), "--name-only", "--diff-filter=AM")
        files = [line.strip() for line in out.splitlines() if line.strip()]
        return [f for f in files if is_code_file(f)]

    def diff_file(self, base: str, head: str, path: str) -> str:
        self._fetch_once()
        return self._git("diff", f"-U{self.context_lines}", self._range(base, head), "--", path)

    def diff(self, base: str, head: str) -> str:
        self._fetch_once()
        return self._git("diff", f"-U{self.context_lines}", self._range(base, head))

    def file_content(self, ref: str, path: str) -> str:
        self._fetch_once()
        return self._git("show", f"{self.remote}/{ref}:{path}")
