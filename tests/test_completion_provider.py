import unittest
from unittest.mock import AsyncMock, MagicMock

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError

from prob_quiz.config import Settings
from prob_quiz.errors import ProviderTimeout, UpstreamError
from prob_quiz.services.completion_provider import DeepSeekCompletionProvider


def _settings(api_key: str = "sk-test") -> Settings:
    return Settings(
        _env_file=None,
        api_key=api_key,
        model="deepseek-chat",
        base_url="https://api.deepseek.com",
        temperature=0.4,
        timeout_seconds=5.0,
        cors_allow_origins="*",
        question_ttl_seconds=1800.0,
        max_batches=1000,
        log_level="INFO",
    )


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://api.deepseek.com/chat/completions")


def _client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    return client


class TestDeepSeekCompletionProvider(unittest.IsolatedAsyncioTestCase):
    async def test_returns_message_content(self):
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = '{"questions": []}'
        create = AsyncMock(return_value=response)
        provider = DeepSeekCompletionProvider(_settings(), client=_client(create))

        text = await provider.complete("system", "user")

        self.assertEqual(text, '{"questions": []}')
        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["model"], "deepseek-chat")
        self.assertEqual(kwargs["temperature"], 0.4)
        self.assertEqual(kwargs["messages"][0], {"role": "system", "content": "system"})
        self.assertEqual(kwargs["messages"][1], {"role": "user", "content": "user"})

    async def test_empty_choices(self):
        response = MagicMock()
        response.choices = []
        provider = DeepSeekCompletionProvider(_settings(), client=_client(AsyncMock(return_value=response)))
        self.assertEqual(await provider.complete("s", "u"), "")

    async def test_status_error(self):
        http_response = httpx.Response(503, request=_request(), text="overloaded")
        error = APIStatusError("overloaded", response=http_response, body=None)
        provider = DeepSeekCompletionProvider(_settings(), client=_client(AsyncMock(side_effect=error)))

        with self.assertRaises(UpstreamError) as ctx:
            await provider.complete("s", "u")
        self.assertEqual(ctx.exception.status, 503)
        self.assertEqual(ctx.exception.body, "overloaded")

    async def test_timeout(self):
        error = APITimeoutError(request=_request())
        provider = DeepSeekCompletionProvider(_settings(), client=_client(AsyncMock(side_effect=error)))
        with self.assertRaises(ProviderTimeout):
            await provider.complete("s", "u")

    async def test_connection_error(self):
        error = APIConnectionError(request=_request())
        provider = DeepSeekCompletionProvider(_settings(), client=_client(AsyncMock(side_effect=error)))
        with self.assertRaises(UpstreamError) as ctx:
            await provider.complete("s", "u")
        self.assertIsNone(ctx.exception.status)
        self.assertNotIsInstance(ctx.exception, ProviderTimeout)

    async def test_missing_api_key(self):
        provider = DeepSeekCompletionProvider(_settings(api_key=""))
        with self.assertRaises(UpstreamError) as ctx:
            await provider.complete("s", "u")
        self.assertIn("DEEPSEEK_API_KEY", str(ctx.exception))

    def test_settings_repr_hides_key(self):
        self.assertNotIn("sk-test", repr(_settings()))


if __name__ == "__main__":
    unittest.main()
