"""Unit tests for the OpenAI-backed draft generator."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from contentflow_core.config import DraftConfig
from contentflow_core.errors import ContentflowError
from contentflow_core.pipeline.drafting import (
    EMPTY_COMPLETION,
    NO_RESEARCH_DATA,
    SYSTEM_PROMPT,
    OpenAIContentGenerator,
    build_prompt,
)


def completion(*contents: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=c)) for c in contents]
    )


def openai_client(response: SimpleNamespace) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


class TestBuildPrompt:
    def test_embeds_research(self):
        prompt = build_prompt("  AI news  ")
        assert "Research Data:\nAI news\n" in prompt
        assert "markdown article" in prompt

    def test_blank_research(self):
        assert NO_RESEARCH_DATA in build_prompt("   ")


class TestOpenAIContentGenerator:
    @pytest.mark.asyncio
    async def test_generate(self):
        """The configured model and sampling settings are sent."""
        client = openai_client(completion("# Article"))
        config = DraftConfig(model="gpt-4o-mini", max_tokens=800, temperature=0.2)
        generator = OpenAIContentGenerator(config, client=client)

        assert await generator.generate("AI news") == "# Article"

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 800
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert kwargs["messages"][1]["role"] == "user"
        assert "AI news" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_empty_completion(self):
        """No choices or empty content yields the placeholder text."""
        assert await OpenAIContentGenerator(client=openai_client(completion())).generate(
            "x"
        ) == EMPTY_COMPLETION
        assert await OpenAIContentGenerator(client=openai_client(completion(None))).generate(
            "x"
        ) == EMPTY_COMPLETION

    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch):
        """Without the key the generator is unavailable, at call time."""
        monkeypatch.delenv("CONTENTFLOW_TEST_KEY", raising=False)
        generator = OpenAIContentGenerator(DraftConfig(api_key_env="CONTENTFLOW_TEST_KEY"))

        with pytest.raises(ContentflowError) as exc_info:
            await generator.generate("AI news")

        assert exc_info.value.code == "GENERATOR_UNAVAILABLE"
        assert exc_info.value.detail == "Environment variable CONTENTFLOW_TEST_KEY is not set"

    def test_client_created_from_environment(self, monkeypatch):
        """The key from the environment builds an AsyncOpenAI client."""
        monkeypatch.setenv("CONTENTFLOW_TEST_KEY", "sk-test")
        generator = OpenAIContentGenerator(DraftConfig(api_key_env="CONTENTFLOW_TEST_KEY"))

        client = generator._get_client()

        assert client.api_key == "sk-test"
        assert generator._get_client() is client
