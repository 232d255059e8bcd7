"""Directive grammar for developer replies on AI comment threads.

A reply that starts with one of the prefixes below classifies the AI comment
it answers. Rules are tried in order and the first match wins, so the more
specific ``:ignore-*`` prefixes must stay ahead of the bare ``:ignore``.

    :falseAlarm [note]        false alarm, global scope, thread gets resolved
    :ignore-project [note]    ignore within this project
    :ignore-global [note]     ignore everywhere
    :ignore [note]            ignore everywhere
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from prwarden_store.models import SCOPE_GLOBAL, SCOPE_PROJECT, DeveloperFeedback


@dataclass(frozen=True)
class FalseAlarm:
    content: str
    scope: str = SCOPE_GLOBAL


@dataclass(frozen=True)
class IgnoreScoped:
    scope: str
    content: str


@dataclass(frozen=True)
class Unclassified:
    pass


Directive = Union[FalseAlarm, IgnoreScoped, Unclassified]


def _after(prefix: str, text: str) -> str:
    return text[len(prefix) :].strip()


def _after_first_token(text: str) -> str:
    parts = text.split(None, 1)
    return parts[1].strip() if len(parts) > 1 else ""


_RULES: list[tuple[str, Callable[[str], Directive]]] = [
    (":falseAlarm", lambda t: FalseAlarm(content=_after(":falseAlarm", t) or "false alarm")),
    (":ignore-project", lambda t: IgnoreScoped(SCOPE_PROJECT, _after(":ignore-project", t) or "ignore")),
    (":ignore-global", lambda t: IgnoreScoped(SCOPE_GLOBAL, _after(":ignore-global", t))),
    (":ignore", lambda t: IgnoreScoped(SCOPE_GLOBAL, _after_first_token(t))),
]


def classify_reply(text: Optional[str]) -> Directive:
    """Classify one reply. Total and deterministic: every string maps to exactly one variant."""
    reply = (text or "").strip()
    for prefix, build in _RULES:
        if reply.startswith(prefix):
            return build(reply)
    return Unclassified()


def to_feedback(directive: Directive) -> Optional[DeveloperFeedback]:
    """Map a directive to the feedback stored on the comment, or None when unclassified."""
    if isinstance(directive, FalseAlarm):
        return DeveloperFeedback(false_alarm=True, scope=directive.scope, content=directive.content)
    if isinstance(directive, IgnoreScoped):
        return DeveloperFeedback(false_alarm=True, scope=directive.scope, content=directive.content)
    return None
