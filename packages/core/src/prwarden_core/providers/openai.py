from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from prwarden_core.providers.base import BaseReviewer


def _envelope(schema: dict) -> dict:
    """Wrap an array schema in an object, since structured output needs an object at the root."""
    defs = schema.get("$defs")
    inner = {k: v for k, v in schema.items() if k != "$defs"}
    wrapped: dict = {
        "type": "object",
        "properties": {"findings": inner},
        "required": ["findings"],
    }
    if defs:
        wrapped["$defs"] = defs
    return wrapped


class OpenAIReviewer(BaseReviewer):
    MODEL = "gpt-4o"
    # Low temperature keeps structured JSON output stable across runs.
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, base_url: str | None = None):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install openai"
            )
        self.client = _OpenAI(api_key=api_key, base_url=base_url)

    def _call_api(self, model: str, messages: list[dict], schema: dict) -> str:
        response = self.client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "review_findings", "schema": _envelope(schema)},
            },
        )
        return response.choices[0].message.content or ""
