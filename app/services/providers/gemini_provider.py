"""
Google Gemini provider
"""
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai import GenerativeModel
from google.generativeai.types import HarmBlockThreshold, HarmCategory
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
from app.utils.key_rotation import ApiKeyPool


class GeminiProvider(TextProvider):
    """
    Gemini text generation with a rotating key pool

    Each attempt uses exactly one key; retries across providers belong to
    the provider chain.
    """

    def __init__(self, key_pool: Optional[ApiKeyPool], model_name: str = "gemini-2.0-flash"):
        self.key_pool = key_pool
        self.model_name = model_name

        self.safety_settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
        }

    async def attempt(self, prompt: Prompt, timeout_budget: float) -> GenerationOutcome:
        if self.key_pool is None:
            return ProviderError(reason="Gemini API keys are not configured")

        api_key = await self.key_pool.acquire()
        if not api_key:
            return ProviderError(reason="All Gemini API keys are cooling down")

        try:
            genai.configure(api_key=api_key)
            model = GenerativeModel(
                model_name=self.model_name,
                safety_settings=self.safety_settings,
                system_instruction=prompt.system,
            )
            response = await model.generate_content_async(
                prompt.user,
                generation_config={
                    "temperature": prompt.temperature,
                    "max_output_tokens": prompt.max_tokens,
                },
                request_options={"timeout": timeout_budget},
            )
        except google_exceptions.DeadlineExceeded:
            return Timeout(timeout_budget=timeout_budget)
        except google_exceptions.GoogleAPIError as error:
            await self.key_pool.report_error(api_key, error)
            logger.warning(f"❌ Gemini request failed with key {api_key[:8]}...: {error}")
            return ProviderError(reason=f"{error.__class__.__name__}: {error}")

        await self.key_pool.report_success(api_key)
        try:
            text = response.text
        except ValueError:
            # raised when the candidate was blocked or carries no text part
            return EmptyResponse()
        if not text or not text.strip():
            return EmptyResponse()

        logger.info(f"✅ Gemini request successful with key {api_key[:8]}...")
        return Success(raw_content=text)

    def get_service_name(self) -> str:
        return f"Google Gemini ({self.model_name})"

    def is_available(self) -> bool:
        return self.key_pool is not None
