"""
OpenRouter provider (OpenAI-compatible chat completions)
"""
from typing import Optional

import openai
from openai import AsyncOpenAI
from loguru import logger

from app.core.interfaces.text_provider import (
    EmptyResponse,
    GenerationOutcome,
    Prompt,
    ProviderError,
    Success,
    TextProvider,
    Timeout,
)


class OpenRouterProvider(TextProvider):
    """
    One OpenRouter model

    Several instances usually share a single AsyncOpenAI client, one per
    model in the configured list.
    """

    def __init__(self, client: Optional[AsyncOpenAI], model: str):
        self.client = client
        self.model = model

    async def attempt(self, prompt: Prompt, timeout_budget: float) -> GenerationOutcome:
        if self.client is None:
            return ProviderError(reason="OpenRouter API key is not configured")

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt.system},
                    {"role": "user", "content": prompt.user},
                ],
                temperature=prompt.temperature,
                max_tokens=prompt.max_tokens,
                timeout=timeout_budget,
            )
        except openai.APITimeoutError:
            return Timeout(timeout_budget=timeout_budget)
        except openai.APIError as error:
            logger.warning(f"❌ OpenRouter {self.model} failed: {error}")
            return ProviderError(reason=f"{error.__class__.__name__}: {error}")

        if not completion.choices:
            return EmptyResponse()
        content = completion.choices[0].message.content
        if not content or not content.strip():
            return EmptyResponse()
        return Success(raw_content=content)

    def get_service_name(self) -> str:
        return f"OpenRouter ({self.model})"

    def is_available(self) -> bool:
        return self.client is not None
