import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from prob_quiz.config import Settings


def _load(**env) -> Settings:
    with patch.dict(os.environ, env, clear=True):
        return Settings(_env_file=None)


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        settings = _load()
        self.assertEqual(settings.model, "deepseek-chat")
        self.assertEqual(settings.base_url, "https://api.deepseek.com")
        self.assertEqual(settings.api_key.get_secret_value(), "")
        self.assertEqual(settings.question_ttl_seconds, 1800.0)
        self.assertEqual(settings.max_batches, 1000)
        self.assertEqual(settings.cors_origins, ["*"])
        self.assertEqual(settings.log_level, "INFO")

    def test_reads_environment(self):
        settings = _load(
            DEEPSEEK_API_KEY="sk-secret",
            DS_MODEL="deepseek-reasoner",
            DS_TIMEOUT_SECONDS="15",
            QUESTION_TTL_SECONDS="600",
            QUESTION_STORE_MAX_BATCHES="50",
            LOG_LEVEL="debug",
        )
        self.assertEqual(settings.api_key.get_secret_value(), "sk-secret")
        self.assertEqual(settings.model, "deepseek-reasoner")
        self.assertEqual(settings.timeout_seconds, 15.0)
        self.assertEqual(settings.question_ttl_seconds, 600.0)
        self.assertEqual(settings.max_batches, 50)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_cors_origins(self):
        self.assertEqual(
            _load(CORS_ALLOW_ORIGINS="https://a.example, https://b.example").cors_origins,
            ["https://a.example", "https://b.example"],
        )
        self.assertEqual(_load(ALLOW_ORIGIN="https://c.example").cors_origins, ["https://c.example"])

    def test_malformed_values_are_rejected(self):
        with self.assertRaises(ValidationError):
            _load(QUESTION_TTL_SECONDS="abc")
        with self.assertRaises(ValidationError):
            _load(QUESTION_TTL_SECONDS="0")
        with self.assertRaises(ValidationError):
            _load(QUESTION_STORE_MAX_BATCHES="many")

    def test_key_is_hidden(self):
        settings = _load(DEEPSEEK_API_KEY="sk-secret")
        self.assertNotIn("sk-secret", repr(settings))
        self.assertNotIn("sk-secret", str(settings))


if __name__ == "__main__":
    unittest.main()
