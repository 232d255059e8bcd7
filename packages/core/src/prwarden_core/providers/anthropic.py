from __future__ import annotations

from prwarden_core.providers.base import BaseReviewer


class AnthropicReviewer(BaseReviewer):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'prwarden[anthropic]'"
            )
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, model: str, messages: list[dict], schema: dict) -> str:
        # The Messages API has no schema parameter; the system prompt already
        # carries FINDINGS_SCHEMA and parse_findings validates the reply.
        from anthropic.types import TextBlock

        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        chat = [m for m in messages if m["role"] != "system"]
        response = self.client.messages.create(
            model=model,
            system=system,
            messages=chat,
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
