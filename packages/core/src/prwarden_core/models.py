"""Findings schema and the platform-side thread shapes the core works with."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from prwarden_core.errors import ReviewParseError

THREAD_ACTIVE = "active"
THREAD_FIXED = "fixed"


class Finding(BaseModel):
    """One issue the reviewer raised for a specific file and line."""

    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(alias="filepath", description="path of the file")
    issue: str = Field(description="a short description of the issue")
    line_number: int = Field(alias="lineNumber", strict=True, ge=1, description="the line number at which the issue exists")
    reason: str = Field(description="the reason for raising the issue")
    recommendation: str = Field(description="recommended solution")


_FINDINGS = TypeAdapter(list[Finding])

# JSON schema of the reviewer's response: an array of Finding objects, wire names.
FINDINGS_SCHEMA: dict = _FINDINGS.json_schema(by_alias=True)


def parse_findings(raw: str, file_path: str) -> list[Finding]:
    """Parse a raw model response into findings.

    Accepts the bare array described by FINDINGS_SCHEMA or the
    ``{"findings": [...]}`` envelope some providers require for structured
    output. Anything else raises ReviewParseError.
    """
    cleaned = re.sub(r"^```(?:json)?\s*", "", (raw or "").strip())
    cleaned = re.sub(r"\s*```$", "", cleaned.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ReviewParseError(file_path, f"invalid JSON ({e.msg}): {raw[:200]!r}") from e

    if isinstance(data, dict) and "findings" in data:
        data = data["findings"]

    try:
        return _FINDINGS.validate_python(data)
    except ValidationError as e:
        raise ReviewParseError(file_path, f"response does not match the findings schema: {e}") from e


@dataclass
class ThreadReply:
    id: int
    content: str
    author: str = ""


@dataclass
class CommentThread:
    """A conversation anchored to a file/line of a pull request.

    ``replies[0]`` is the comment that opened the thread; everything after it
    is a response. ``node_id`` is whatever handle the platform needs to
    change the thread's status.
    """

    id: int
    status: str = THREAD_ACTIVE
    replies: list[ThreadReply] = field(default_factory=list)
    node_id: str = ""
