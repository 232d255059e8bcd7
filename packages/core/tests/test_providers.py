"""Tests for AI provider implementations.

Shared behaviour (prompts, retry, parsing) lives in BaseReviewer and is tested
once via a lightweight stub. Provider-specific tests cover only what differs
between implementations: the SDK client setup and _call_api.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from prwarden_core.errors import CollaboratorError, ReviewParseError
from prwarden_core.models import FINDINGS_SCHEMA
from prwarden_core.providers.anthropic import AnthropicReviewer
from prwarden_core.providers.base import BaseReviewer
from prwarden_core.providers.ollama import DEFAULT_OLLAMA_URL, OllamaReviewer
from prwarden_core.providers.openai import OpenAIReviewer, _envelope

VALID_JSON = json.dumps(
    [
        {
            "filepath": "src/foo.py",
            "issue": "Missing error handling",
            "lineNumber": 3,
            "reason": "open() may raise",
            "recommendation": "Wrap it in try/except",
        }
    ]
)


class _StubReviewer(BaseReviewer):
    """Minimal concrete subclass used to test BaseReviewer shared methods."""

    def __init__(self, response=VALID_JSON):
        self.response = response
        self.calls = []

    def _call_api(self, model, messages, schema):
        self.calls.append({"model": model, "messages": messages, "schema": schema})
        return self.response


# ---------------------------------------------------------------------------
# Shared behaviour
# ---------------------------------------------------------------------------


class TestBaseReviewerReview:
    def test_returns_parsed_findings(self):
        findings = _StubReviewer().review("src/foo.py", "+x = open(p)")
        assert len(findings) == 1
        assert findings[0].line_number == 3
        assert findings[0].issue == "Missing error handling"

    def test_sends_system_then_user_message_with_schema(self):
        reviewer = _StubReviewer()
        reviewer.review("src/foo.py", "+x")
        call = reviewer.calls[0]
        assert [m["role"] for m in call["messages"]] == ["system", "user"]
        assert call["schema"] == FINDINGS_SCHEMA

    def test_uses_default_model_unless_given(self):
        reviewer = _StubReviewer()
        reviewer.MODEL = "default-model"
        reviewer.review("f.py", "+x")
        reviewer.review("f.py", "+x", model="other-model")
        assert [c["model"] for c in reviewer.calls] == ["default-model", "other-model"]

    def test_unparsable_response_raises(self):
        with pytest.raises(ReviewParseError, match="f.py"):
            _StubReviewer("I found no issues!").review("f.py", "+x")

    def test_empty_array_means_no_findings(self):
        assert _StubReviewer("[]").review("f.py", "+x") == []


class TestBaseReviewerPrompts:
    def test_system_prompt_lists_fields_and_schema(self):
        prompt = _StubReviewer()._build_system_prompt()
        for name in ("filepath", "issue", "lineNumber", "reason", "recommendation"):
            assert name in prompt
        assert json.dumps(FINDINGS_SCHEMA) in prompt

    def test_system_prompt_includes_overview(self):
        prompt = _StubReviewer()._build_system_prompt("# Billing service")
        assert "# Billing service" in prompt

    def test_system_prompt_without_overview(self):
        assert "overview of the project" not in _StubReviewer()._build_system_prompt(None)

    def test_user_prompt_contains_filename_and_diff(self):
        prompt = _StubReviewer()._build_user_prompt("src/foo.py", "+added line")
        assert "src/foo.py" in prompt
        assert "```diff\n+added line\n```" in prompt

    def test_user_prompt_contains_file_content(self):
        prompt = _StubReviewer()._build_user_prompt("f.py", "", "class Foo: pass")
        assert "class Foo: pass" in prompt

    def test_user_prompt_omits_content_section_when_absent(self):
        assert "current state of the file" not in _StubReviewer()._build_user_prompt("f.py", "+x")


class TestBaseReviewerRetry:
    def test_raises_after_max_retries(self):
        class _AlwaysFailReviewer(BaseReviewer):
            def _call_api(self, model, messages, schema):
                raise RuntimeError("network error")

        with patch("prwarden_core.providers.base.time.sleep") as sleep:
            with pytest.raises(CollaboratorError, match="network error"):
                _AlwaysFailReviewer().review("f.py", "+x")
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2]

    def test_retries_on_transient_failure(self):
        call_count = 0

        class _FailOnceThenSucceed(BaseReviewer):
            def _call_api(self, model, messages, schema):
                nonlocal call_count
                call_count += 1
                if call_count == 1:
                    raise RuntimeError("transient")
                return VALID_JSON

        with patch("prwarden_core.providers.base.time.sleep"):
            result = _FailOnceThenSucceed().review("f.py", "+x")
        assert len(result) == 1
        assert call_count == 2

    def test_parse_errors_are_not_retried(self):
        reviewer = _StubReviewer("not json")
        with pytest.raises(ReviewParseError):
            reviewer.review("f.py", "+x")
        assert len(reviewer.calls) == 1


# ---------------------------------------------------------------------------
# Provider-specific
# ---------------------------------------------------------------------------


class TestOpenAIReviewer:
    def test_raises_import_error_without_sdk(self):
        import prwarden_core.providers.openai as openai_mod

        with patch.object(openai_mod, "_OpenAI", None):
            with pytest.raises(ImportError):
                OpenAIReviewer(api_key="key")

    def test_model_is_gpt(self):
        assert "gpt" in OpenAIReviewer.MODEL

    def test_requests_structured_output(self):
        reviewer = OpenAIReviewer(api_key="key")
        reviewer.client = MagicMock()
        reviewer.client.chat.completions.create.return_value.choices = [
            MagicMock(message=MagicMock(content=json.dumps({"findings": json.loads(VALID_JSON)})))
        ]

        findings = reviewer.review("src/foo.py", "+x", model="gpt-4o-mini")

        kwargs = reviewer.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"]["type"] == "json_schema"
        assert kwargs["response_format"]["json_schema"]["schema"]["required"] == ["findings"]
        assert findings[0].file_path == "src/foo.py"

    def test_envelope_keeps_definitions_at_root(self):
        wrapped = _envelope(FINDINGS_SCHEMA)
        assert wrapped["type"] == "object"
        assert wrapped["properties"]["findings"]["type"] == "array"
        assert "$defs" in wrapped
        assert "$defs" not in wrapped["properties"]["findings"]


class TestOllamaReviewer:
    def test_defaults_to_local_endpoint(self):
        with patch("prwarden_core.providers.openai._OpenAI") as client_cls:
            OllamaReviewer()
        client_cls.assert_called_once_with(api_key="ollama", base_url=DEFAULT_OLLAMA_URL)

    def test_custom_base_url(self):
        with patch("prwarden_core.providers.openai._OpenAI") as client_cls:
            OllamaReviewer(base_url="http://gpu-box:11434/v1")
        assert client_cls.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"


class TestAnthropicReviewer:
    def test_raises_import_error_without_sdk(self):
        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError):
                AnthropicReviewer(api_key="key")

    def test_model_is_claude(self):
        assert "claude" in AnthropicReviewer.MODEL

    def test_system_messages_go_to_system_parameter(self):
        pytest.importorskip("anthropic")
        from anthropic.types import TextBlock

        reviewer = AnthropicReviewer(api_key="key")
        reviewer.client = MagicMock()
        reviewer.client.messages.create.return_value.content = [TextBlock(type="text", text=VALID_JSON)]

        findings = reviewer.review("src/foo.py", "+x")

        kwargs = reviewer.client.messages.create.call_args.kwargs
        assert "senior developer" in kwargs["system"]
        assert [m["role"] for m in kwargs["messages"]] == ["user"]
        assert len(findings) == 1
