"""Local models served by Ollama, reached through its OpenAI-compatible endpoint."""

from __future__ import annotations

from prwarden_core.providers.openai import OpenAIReviewer

DEFAULT_OLLAMA_URL = "http://localhost:11434/v1"


class OllamaReviewer(OpenAIReviewer):
    MODEL = "qwen2.5-coder:32b"
    TEMPERATURE = 0.2

    def __init__(self, base_url: str | None = None, api_key: str | None = None):
        # Ollama ignores the key, but the OpenAI client refuses to start without one.
        super().__init__(api_key=api_key or "ollama", base_url=base_url or DEFAULT_OLLAMA_URL)
