import logging
import os
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

from documind.app import create_app
from documind.config import DEFAULT_GROQ_MODEL, DEFAULT_MAX_FILE_SIZE, Settings, load_settings
from documind.errors import AnalysisNotFound, FileTooLarge, InvalidRequest, QAError
from documind.logging_config import get_log_level

ENV_KEYS = [
    "GROQ_API_KEY",
    "GROQ_MODEL",
    "GROQ_BASE_URL",
    "LLM_TIMEOUT_SECONDS",
    "EMAIL_USER",
    "EMAIL_PASSWORD",
    "SMTP_HOST",
    "SMTP_PORT",
    "ANALYSIS_DIR",
    "UPLOAD_DIR",
    "MAX_FILE_SIZE",
    "FRONTEND_URL",
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "DEBUG",
]


def _clean_env(**values) -> dict:
    env = {key: value for key, value in os.environ.items() if key not in ENV_KEYS}
    env.update(values)
    return env


class TestLoadSettings(unittest.TestCase):
    def test_defaults_without_environment(self):
        with patch.dict(os.environ, _clean_env(), clear=True):
            settings = load_settings()

        self.assertEqual(settings.groq_api_key, "")
        self.assertEqual(settings.groq_model, DEFAULT_GROQ_MODEL)
        self.assertEqual(settings.max_file_size, DEFAULT_MAX_FILE_SIZE)
        self.assertEqual(settings.analysis_dir, Path("data/analyses"))
        self.assertEqual(settings.port, 5000)
        self.assertFalse(settings.email_configured)

    def test_environment_overrides(self):
        env = _clean_env(
            GROQ_API_KEY=" gsk-test ",
            GROQ_MODEL="llama-3.1-8b-instant",
            GROQ_BASE_URL="https://proxy.example.com/v1/",
            EMAIL_USER="bot@example.com",
            SMTP_PORT="2525",
            MAX_FILE_SIZE="2048",
            ANALYSIS_DIR="/tmp/records",
            PORT="8080",
        )
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()

        self.assertEqual(settings.groq_api_key, "gsk-test")
        self.assertEqual(settings.groq_model, "llama-3.1-8b-instant")
        self.assertEqual(settings.groq_base_url, "https://proxy.example.com/v1")
        self.assertTrue(settings.email_configured)
        self.assertEqual(settings.smtp_port, 2525)
        self.assertEqual(settings.max_file_size, 2048)
        self.assertEqual(settings.analysis_dir, Path("/tmp/records"))
        self.assertEqual(settings.port, 8080)

    def test_invalid_integer_is_reported(self):
        with patch.dict(os.environ, _clean_env(SMTP_PORT="not-a-port"), clear=True):
            with self.assertRaises(ValueError) as context:
                load_settings()

        self.assertIn("SMTP_PORT", str(context.exception))

    def test_to_dict_hides_secrets(self):
        payload = Settings(groq_api_key="gsk-secret", email_password="hunter2").to_dict()

        self.assertNotIn("groq_api_key", payload)
        self.assertNotIn("email_password", payload)
        self.assertEqual(payload["analysis_dir"], "data/analyses")


class TestLogLevel(unittest.TestCase):
    def test_log_level_variable_wins(self):
        with patch.dict(os.environ, _clean_env(LOG_LEVEL="warning", DEBUG="true"), clear=True):
            self.assertEqual(get_log_level(), logging.WARNING)

    def test_debug_flag_fallback(self):
        with patch.dict(os.environ, _clean_env(DEBUG="1"), clear=True):
            self.assertEqual(get_log_level(), logging.DEBUG)

    def test_defaults_to_info(self):
        with patch.dict(os.environ, _clean_env(LOG_LEVEL="verbose"), clear=True):
            self.assertEqual(get_log_level(), logging.INFO)


class TestErrorPayloads(unittest.TestCase):
    def test_default_messages_and_codes(self):
        self.assertEqual(
            AnalysisNotFound().to_dict(),
            {"success": False, "error": "Analysis not found", "code": "not_found", "retryable": False},
        )
        self.assertEqual(InvalidRequest().status_code, 400)
        self.assertEqual(FileTooLarge().message, "File size exceeds 10MB limit")

    def test_upstream_errors_are_retryable(self):
        error = QAError("Groq request failed with HTTP 503.")

        self.assertTrue(error.to_dict()["retryable"])
        self.assertEqual(error.status_code, 500)
        self.assertEqual(str(error), "Groq request failed with HTTP 503.")


class TestCorsConfig(unittest.TestCase):
    def test_default_cors_allows_local_frontend_origin(self):
        client = TestClient(create_app(settings=Settings()))

        response = client.options(
            "/api/health",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers.get("access-control-allow-origin"), "http://localhost:3000")

    def test_configured_frontend_origin_is_allowed(self):
        client = TestClient(create_app(settings=Settings(frontend_url="https://docs.example.com")))

        response = client.get("/health", headers={"Origin": "https://docs.example.com"})

        self.assertEqual(response.headers.get("access-control-allow-origin"), "https://docs.example.com")


if __name__ == "__main__":
    unittest.main()
