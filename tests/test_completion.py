"""
Tests for the completion capability: client retry policy, provider registry,
hosted backend payloads and configuration fail-fast.
"""

import base64
import unittest
from unittest.mock import MagicMock, patch

import requests

from examtutor.completion import (
    ClaudeProvider,
    CompletionClient,
    GeminiProvider,
    OpenAIProvider,
    QwenProvider,
    available_providers,
    get_provider_class,
)
from examtutor.exceptions import CompletionError, ConfigurationError
from examtutor.schema import CompletionPart, CompletionRequest, GenerationPolicy

from tests.fakes import FakeProvider, make_client, make_image_bytes, make_settings

PNG = make_image_bytes(8, 8, fmt="PNG")


def ok_response(body):
    response = MagicMock(ok=True, status_code=200)
    response.json.return_value = body
    return response


def error_response(status, text="error"):
    return MagicMock(ok=False, status_code=status, text=text, reason="Error")


def image_request(**policy):
    return CompletionRequest(
        parts=[CompletionPart.from_text("Describe"), CompletionPart.from_image(PNG)],
        system="Be brief.",
        policy=GenerationPolicy(**policy),
    )


class TestCompletionClient(unittest.TestCase):
    """Backend selection and the single-retry policy."""

    def setUp(self):
        self.request = CompletionRequest(parts=[CompletionPart.from_text("hi")])

    def test_transient_failure_is_retried_once(self):
        provider = FakeProvider(
            [CompletionError("fake", "busy", status=503, transient=True), "answer"]
        )
        response = make_client(provider).complete(self.request)
        self.assertEqual(response.text, "answer")
        self.assertEqual(len(provider.requests), 2)

    def test_second_transient_failure_propagates(self):
        provider = FakeProvider(
            [
                CompletionError("fake", "busy", status=503, transient=True),
                CompletionError("fake", "still busy", status=503, transient=True),
                "never reached",
            ]
        )
        with self.assertRaises(CompletionError) as ctx:
            make_client(provider).complete(self.request)
        self.assertEqual(ctx.exception.message, "still busy")
        self.assertEqual(len(provider.requests), 2)

    def test_permanent_failure_is_not_retried(self):
        provider = FakeProvider([CompletionError("fake", "bad key", status=401), "x"])
        with self.assertRaises(CompletionError) as ctx:
            make_client(provider).complete(self.request)
        self.assertEqual(ctx.exception.status, 401)
        self.assertEqual(len(provider.requests), 1)

    def test_retries_can_be_disabled(self):
        provider = FakeProvider([CompletionError("fake", "busy", transient=True), "x"])
        with self.assertRaises(CompletionError):
            make_client(provider, max_retries=0).complete(self.request)
        self.assertEqual(len(provider.requests), 1)

    def test_selector_routes_to_backend(self):
        default = FakeProvider(default="default")
        other = FakeProvider(default="other")
        client = CompletionClient(
            make_settings(),
            providers={"fake": default, "Other": other},
            eager=False,
        )
        self.assertEqual(client.complete(self.request).text, "default")
        self.assertEqual(client.complete(self.request, "OTHER").text, "other")

    def test_unknown_provider(self):
        client = make_client(FakeProvider())
        with self.assertRaises(ValueError):
            client.complete(self.request, "does-not-exist")

    def test_registry_builds_backends_lazily(self):
        client = make_client(FakeProvider())
        self.assertIsInstance(client.provider("gemini"), GeminiProvider)
        self.assertIs(client.provider("google"), client.provider("google"))


class TestConfiguration(unittest.TestCase):
    """Missing keys fail at construction, not at first call."""

    def test_missing_key_fails_on_construction(self):
        settings = make_settings(gemini_api_key=None)
        with self.assertRaises(ConfigurationError):
            GeminiProvider(settings)

    def test_blank_key_is_missing(self):
        with self.assertRaises(ConfigurationError):
            OpenAIProvider(make_settings(openai_api_key="  "))

    def test_client_fails_eagerly_for_default_provider(self):
        settings = make_settings(default_provider="claude", claude_api_key=None)
        with self.assertRaises(ConfigurationError):
            CompletionClient(settings)

    def test_registry_keys(self):
        for key in ["gemini", "google", "openai", "claude", "anthropic", "qwen", "local"]:
            with self.subTest(key=key):
                self.assertIn(key, available_providers())
        self.assertIs(get_provider_class("QWEN"), QwenProvider)

    def test_local_backend_needs_no_key(self):
        provider = QwenProvider(make_settings())
        self.assertEqual(provider.model, "Qwen/Qwen2.5-VL-3B-Instruct")


@patch("examtutor.completion.http.requests.post")
class TestHostedProviders(unittest.TestCase):
    """Request payloads and response parsing of the HTTP backends."""

    def setUp(self):
        self.settings = make_settings()

    def test_gemini_payload(self, mock_post):
        mock_post.return_value = ok_response(
            {
                "candidates": [
                    {
                        "content": {"parts": [{"text": "[1, "}, {"text": "2]"}]},
                        "finishReason": "STOP",
                    }
                ]
            }
        )
        response = GeminiProvider(self.settings).complete(
            image_request(temperature=0.1, json_mode=True, top_p=0.8)
        )
        self.assertEqual(response.text, "[1, 2]")
        self.assertEqual(response.finish_reason, "STOP")

        url = mock_post.call_args.args[0]
        payload = mock_post.call_args.kwargs["json"]
        headers = mock_post.call_args.kwargs["headers"]
        self.assertIn(self.settings.gemini_model, url)
        self.assertEqual(headers["x-goog-api-key"], "gemini-test-key")
        self.assertEqual(mock_post.call_args.kwargs["timeout"], self.settings.request_timeout)

        parts = payload["contents"][0]["parts"]
        self.assertEqual(parts[0], {"text": "Describe"})
        self.assertEqual(parts[1]["inline_data"]["mime_type"], "image/png")
        self.assertEqual(base64.b64decode(parts[1]["inline_data"]["data"]), PNG)
        self.assertEqual(payload["generationConfig"]["responseMimeType"], "application/json")
        self.assertEqual(payload["generationConfig"]["topP"], 0.8)
        self.assertEqual(payload["systemInstruction"]["parts"][0]["text"], "Be brief.")

    def test_gemini_without_candidates(self, mock_post):
        mock_post.return_value = ok_response({"promptFeedback": {"blockReason": "SAFETY"}})
        with self.assertRaises(CompletionError):
            GeminiProvider(self.settings).complete(image_request())

    def test_openai_payload(self, mock_post):
        mock_post.return_value = ok_response(
            {
                "model": "gpt-4o-2024",
                "choices": [{"message": {"content": "answer"}, "finish_reason": "stop"}],
            }
        )
        response = OpenAIProvider(self.settings).complete(image_request(json_mode=True))
        self.assertEqual(response.text, "answer")
        self.assertEqual(response.model, "gpt-4o-2024")

        payload = mock_post.call_args.kwargs["json"]
        headers = mock_post.call_args.kwargs["headers"]
        self.assertEqual(headers["Authorization"], "Bearer openai-test-key")
        self.assertEqual(payload["messages"][0], {"role": "system", "content": "Be brief."})
        content = payload["messages"][1]["content"]
        self.assertTrue(content[1]["image_url"]["url"].startswith("data:image/png;base64,"))
        self.assertIn("JSON", content[-1]["text"])

    def test_claude_payload(self, mock_post):
        mock_post.return_value = ok_response(
            {
                "content": [{"type": "text", "text": "answer"}],
                "stop_reason": "end_turn",
            }
        )
        response = ClaudeProvider(self.settings).complete(image_request())
        self.assertEqual(response.text, "answer")
        self.assertEqual(response.finish_reason, "end_turn")

        payload = mock_post.call_args.kwargs["json"]
        headers = mock_post.call_args.kwargs["headers"]
        self.assertEqual(headers["x-api-key"], "claude-test-key")
        self.assertIn("anthropic-version", headers)
        self.assertEqual(payload["system"], "Be brief.")
        image_block = payload["messages"][0]["content"][1]
        self.assertEqual(image_block["source"]["media_type"], "image/png")

    def test_rate_limit_is_transient(self, mock_post):
        mock_post.return_value = error_response(429, "slow down")
        with self.assertRaises(CompletionError) as ctx:
            OpenAIProvider(self.settings).complete(image_request())
        self.assertTrue(ctx.exception.transient)
        self.assertEqual(ctx.exception.status, 429)
        self.assertEqual(ctx.exception.provider, "openai")

    def test_client_error_is_permanent(self, mock_post):
        mock_post.return_value = error_response(400, "invalid image")
        with self.assertRaises(CompletionError) as ctx:
            ClaudeProvider(self.settings).complete(image_request())
        self.assertFalse(ctx.exception.transient)
        self.assertIn("invalid image", str(ctx.exception))

    def test_timeout_is_transient(self, mock_post):
        mock_post.side_effect = requests.Timeout("timed out")
        with self.assertRaises(CompletionError) as ctx:
            GeminiProvider(self.settings).complete(image_request())
        self.assertTrue(ctx.exception.transient)

    def test_client_retries_a_timeout_through_the_registry(self, mock_post):
        mock_post.side_effect = [
            requests.ConnectionError("reset"),
            ok_response({"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}),
        ]
        client = CompletionClient(
            make_settings(default_provider="gemini"), retry_delay=0.0
        )
        self.assertEqual(client.complete(image_request()).text, "ok")
        self.assertEqual(mock_post.call_count, 2)


if __name__ == "__main__":
    unittest.main()
