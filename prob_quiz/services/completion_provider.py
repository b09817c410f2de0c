"""
Completion providers: the boundary to the text-generation service.

Model: deepseek-chat over DeepSeek's OpenAI-compatible API
(override with DS_MODEL / DS_BASE_URL env vars).
"""

import logging
from typing import Optional, Protocol

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from prob_quiz.config import Settings
from prob_quiz.errors import ProviderTimeout, UpstreamError

logger = logging.getLogger(__name__)


class CompletionProvider(Protocol):
    """Anything that turns a system + user prompt into raw model text."""

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        ...


class DeepSeekCompletionProvider:
    """Chat completions against DeepSeek, through the OpenAI SDK."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None) -> None:
        self.model = settings.model
        self.temperature = settings.temperature
        self._settings = settings
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            api_key = self._settings.api_key.get_secret_value()
            if not api_key:
                raise UpstreamError(None, message="DEEPSEEK_API_KEY is not set. Add it to your .env file.")
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self._settings.base_url,
                timeout=self._settings.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Call Chat Completions and return the assistant message text.

        Raises:
            ProviderTimeout: no answer within the configured timeout.
            UpstreamError: non-success status or a connection failure.
        """
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
            )
        except APITimeoutError as e:
            raise ProviderTimeout(str(e)) from e
        except APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            raise UpstreamError(e.status_code, body) from e
        except APIConnectionError as e:
            raise UpstreamError(None, str(e)) from e

        logger.info("Provider answered (model=%s)", self.model)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
