"""Base reviewer implementing the Template Method pattern.

All providers share the same review algorithm:
    review() → _build_system_prompt() + _build_user_prompt()
             → send_chat_with_json_schema() → _call_with_retry() → _call_api()   ← only this differs
             → parse_findings()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod

from prwarden_core.errors import CollaboratorError
from prwarden_core.models import FINDINGS_SCHEMA, Finding, parse_findings

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_MAX_TOKENS = 4096


class BaseReviewer(ABC):
    MODEL: str = ""
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS
    TEMPERATURE: float = 0.2

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review(
        self,
        file_path: str,
        patch: str,
        model: str | None = None,
        file_content: str | None = None,
        overview: str | None = None,
    ) -> list[Finding]:
        """Review one file's patch and return its findings.

        Raises ReviewParseError when the response does not match
        FINDINGS_SCHEMA and CollaboratorError when the API keeps failing.
        """
        messages = [
            {"role": "system", "content": self._build_system_prompt(overview)},
            {"role": "user", "content": self._build_user_prompt(file_path, patch, file_content)},
        ]
        raw = self.send_chat_with_json_schema(model or self.MODEL, messages, FINDINGS_SCHEMA)
        return parse_findings(raw, file_path)

    def send_chat_with_json_schema(self, model: str, messages: list[dict], schema: dict) -> str:
        """Send a chat whose reply must follow ``schema``; return the raw reply text."""
        return self._call_with_retry(model, messages, schema)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, model: str, messages: list[dict], schema: dict) -> str:
        """Make a single API call and return the raw text response.

        It should raise on failure; _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, model: str, messages: list[dict], schema: dict) -> str:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(model, messages, schema)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    raise CollaboratorError(
                        f"{self.__class__.__name__} failed after {self.MAX_RETRIES} attempts: {e}"
                    ) from e
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        raise CollaboratorError(f"{self.__class__.__name__} was configured with no attempts")

    def _build_system_prompt(self, overview: str | None = None) -> str:
        overview_section = ""
        if overview:
            overview_section = f"""
A short overview of the project you are reviewing is given below, use it as a reference:
```md
{overview}
```
"""
        return f"""You are an experienced software developer acting as a Pull Request (PR) reviewer.
Review code changes in a professional, constructive and formal tone, as a senior developer
giving feedback to a colleague. You are given the changes to one file in unified diff format.

Guidelines:
1. Review only added, edited or deleted lines; use the surrounding lines as context.
2. Reference relevant programming principles and the conventions of the file's language.
3. Every recommendation must be specific and actionable. Avoid vague comments like "improve this".
4. Cover correctness, readability, performance, security, testing and documentation.
{overview_section}
Respond with **only** a JSON array. Each element is an object with these fields:
- filepath: path of the file
- issue: a short description of the issue
- lineNumber: the line number in the new version of the file at which the issue exists (integer)
- reason: the reason for raising the issue
- recommendation: the recommended solution

Report every issue you find. If there are no issues, return: []

JSON schema of the response:
{json.dumps(FINDINGS_SCHEMA)}"""

    def _build_user_prompt(self, file_path: str, patch: str, file_content: str | None = None) -> str:
        content_section = ""
        if file_content:
            content_section = f"""
The current state of the file is given below for reference:
```
{file_content}
```
"""
        return f"""Changes to `{file_path}`:
```diff
{patch}
```
{content_section}"""
