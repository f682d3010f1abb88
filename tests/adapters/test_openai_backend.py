"""Tests for claimflow.adapters.openai_backend."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from claimflow.adapters.llm_analysis import ANALYSIS_SYSTEM_PROMPT
from claimflow.adapters.openai_backend import create_openai_backend


def _response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def mock_openai():
    with patch("openai.AsyncOpenAI") as client_class:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_response('{"verdict": "true"}'))
        client_class.return_value = client
        yield client_class, client


class TestCreateOpenAIBackend:
    async def test_sends_system_and_user_messages(self, mock_openai):
        client_class, client = mock_openai
        backend = create_openai_backend("http://localhost:11434/v1", "key", "llama3", timeout=30.0)

        content = await backend("Analyze this")

        assert content == '{"verdict": "true"}'
        client_class.assert_called_once_with(base_url="http://localhost:11434/v1", api_key="key", timeout=30.0)
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama3"
        assert kwargs["temperature"] == 0.1
        assert kwargs["messages"][0] == {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT}
        assert kwargs["messages"][1] == {"role": "user", "content": "Analyze this"}

    async def test_custom_prompt_and_default_temperature(self, mock_openai):
        _, client = mock_openai
        backend = create_openai_backend("http://x/v1", "key", "m", system_prompt="Be terse", temperature=None)

        await backend("p")

        kwargs = client.chat.completions.create.call_args.kwargs
        assert "temperature" not in kwargs
        assert kwargs["messages"][0]["content"] == "Be terse"

    async def test_empty_content(self, mock_openai):
        _, client = mock_openai
        client.chat.completions.create.return_value = _response(None)
        backend = create_openai_backend("http://x/v1", "key", "m")

        with pytest.raises(RuntimeError, match="empty content"):
            await backend("p")

    def test_backend_name(self, mock_openai):
        backend = create_openai_backend("http://x/v1", "key", "m")

        assert backend.__name__ == "openai_compat_backend(m@http://x/v1)"
