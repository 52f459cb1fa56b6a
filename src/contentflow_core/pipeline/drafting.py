"""Draft step collaborator - turns research text into an article."""

import os
from typing import Protocol

import openai

from contentflow_core.config.models import DraftConfig
from contentflow_core.errors import create_error

NO_RESEARCH_DATA = "No specific research data available for analysis."
EMPTY_COMPLETION = "Failed to generate content"

SYSTEM_PROMPT = (
    "You are a professional content writer and analyst. "
    "Create well-structured, insightful articles based on research data."
)

ARTICLE_PROMPT = """Based on the following research data, please create a well-structured, informative article. The article should:

1. Summarize the key findings from the research
2. Identify the most important insights and trends
3. Provide analysis and context
4. Include actionable takeaways or recommendations
5. Be written in a professional, engaging tone

Research Data:
{research}

Please format the response as a markdown article with appropriate headings, bullet points, and structure."""


class ContentGenerator(Protocol):
    """External content-generation call used by the draft step."""

    async def generate(self, research_summary: str) -> str: ...


def build_prompt(research_summary: str) -> str:
    return ARTICLE_PROMPT.format(research=research_summary.strip() or NO_RESEARCH_DATA)


class OpenAIContentGenerator:
    """ContentGenerator backed by the OpenAI chat completions API.

    The API key is read from the environment on first use, so a missing
    key fails the draft step rather than application startup.
    """

    def __init__(self, config: DraftConfig | None = None, client: openai.AsyncOpenAI | None = None):
        self.config = config or DraftConfig()
        self._client = client

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            api_key = os.environ.get(self.config.api_key_env)
            if not api_key:
                raise create_error(
                    "GENERATOR_UNAVAILABLE", api_key_env=self.config.api_key_env, step="draft"
                )
            self._client = openai.AsyncOpenAI(api_key=api_key)
        return self._client

    async def generate(self, research_summary: str) -> str:
        """Generate a markdown article from the research summary.

        Raises:
            ContentflowError(GENERATOR_UNAVAILABLE): API key missing
            openai.OpenAIError: API call failed
        """
        client = self._get_client()
        completion = await client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(research_summary)},
            ],
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        if not completion.choices:
            return EMPTY_COMPLETION
        return completion.choices[0].message.content or EMPTY_COMPLETION
