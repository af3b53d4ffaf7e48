import unittest
from unittest.mock import patch

import requests

from portrait_studio.clients import (
    FACE_ANALYSIS_FAILED,
    FACE_ANALYSIS_PROMPT,
    IMAGE_GENERATION_FAILED,
    PORTRAIT_GENERATION_FAILED,
    FaceDescriptionClient,
    ImageGenerationClient,
    build_portrait_prompt,
)
from portrait_studio.config import StudioConfig
from portrait_studio.errors import CredentialMissing, RemoteRequestFailure, RemoteResponseMalformed

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class MockResponse:
    def __init__(self, status_code=200, json_data=None, raise_on_json=False):
        self.status_code = status_code
        self._json = json_data if json_data is not None else {}
        self._raise_on_json = raise_on_json

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._raise_on_json:
            raise ValueError("No JSON object could be decoded")
        return self._json


class TestFaceDescriptionClient(unittest.TestCase):
    def setUp(self):
        self.client = FaceDescriptionClient("test_key", BASE_URL, "gemini-2.0-flash")

    @patch("requests.post")
    def test_description_comes_from_first_candidate(self, mock_post):
        mock_post.return_value = MockResponse(200, {
            "candidates": [{"content": {"parts": [{"text": "brown eyes"}]}}]
        })

        self.assertEqual(self.client.describe("QUJD"), "brown eyes")

        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], f"{BASE_URL}/models/gemini-2.0-flash:generateContent")
        self.assertEqual(kwargs["params"], {"key": "test_key"})
        self.assertEqual(kwargs["json"], {
            "contents": [{
                "role": "user",
                "parts": [
                    {"text": FACE_ANALYSIS_PROMPT},
                    {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}},
                ],
            }]
        })

    @patch("requests.post")
    def test_missing_credential_sends_nothing(self, mock_post):
        client = FaceDescriptionClient("", BASE_URL, "gemini-2.0-flash")
        with self.assertRaises(CredentialMissing):
            client.describe("QUJD")
        mock_post.assert_not_called()

    @patch("requests.post")
    def test_api_error_envelope(self, mock_post):
        mock_post.return_value = MockResponse(400, {"error": {"code": 400, "message": "API key not valid."}})
        with self.assertRaises(RemoteResponseMalformed) as ctx:
            self.client.describe("QUJD")
        self.assertEqual(ctx.exception.message, "API key not valid.")

    @patch("requests.post")
    def test_empty_candidates_use_default_message(self, mock_post):
        for body in ({"candidates": []}, {}, {"candidates": [{"content": {"parts": []}}]},
                     {"candidates": [{"content": {"parts": [{"text": 5}]}}]}):
            with self.subTest(body=body):
                mock_post.return_value = MockResponse(200, body)
                with self.assertRaises(RemoteResponseMalformed) as ctx:
                    self.client.describe("QUJD")
                self.assertEqual(ctx.exception.message, FACE_ANALYSIS_FAILED)

    @patch("requests.post")
    def test_non_json_body(self, mock_post):
        mock_post.return_value = MockResponse(500, raise_on_json=True)
        with self.assertRaises(RemoteResponseMalformed) as ctx:
            self.client.describe("QUJD")
        self.assertEqual(ctx.exception.message, FACE_ANALYSIS_FAILED)

    @patch("requests.post")
    def test_network_failure(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("connection refused")
        with self.assertRaises(RemoteRequestFailure) as ctx:
            self.client.describe("QUJD")
        self.assertEqual(ctx.exception.message,
                         "Error analyzing face: connection refused. Check the server log for details.")

    def test_empty_image_is_a_caller_error(self):
        with self.assertRaises(ValueError):
            self.client.describe("")

    def test_from_config(self):
        config = StudioConfig(api_key="k", text_model="gemini-x", request_timeout=12.0)
        client = FaceDescriptionClient.from_config(config)
        self.assertEqual(client.model, "gemini-x")
        self.assertEqual(client.timeout, 12.0)

    def test_from_config_takes_only_the_config(self):
        with self.assertRaises(TypeError):
            FaceDescriptionClient.from_config(StudioConfig(api_key="k"), action="ignored")


class TestImageGenerationClient(unittest.TestCase):
    def setUp(self):
        self.client = ImageGenerationClient("test_key", BASE_URL, "imagen-3.0-generate-002")

    def test_portrait_prompt(self):
        self.assertEqual(build_portrait_prompt("brown eyes", "as a knight"), "brown eyes. as a knight")

    @patch("requests.post")
    def test_generated_image_reference(self, mock_post):
        mock_post.return_value = MockResponse(200, {"predictions": [{"bytesBase64Encoded": "AAAA"}]})

        self.assertEqual(self.client.generate("a red fox"), "data:image/png;base64,AAAA")

        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], f"{BASE_URL}/models/imagen-3.0-generate-002:predict")
        self.assertEqual(kwargs["params"], {"key": "test_key"})
        self.assertEqual(kwargs["json"], {"instances": [{"prompt": "a red fox"}],
                                          "parameters": {"sampleCount": 1}})

    @patch("requests.post")
    def test_missing_bytes(self, mock_post):
        for body in ({"predictions": []}, {"predictions": [{}]}, {"predictions": [{"bytesBase64Encoded": ""}]}):
            with self.subTest(body=body):
                mock_post.return_value = MockResponse(200, body)
                with self.assertRaises(RemoteResponseMalformed) as ctx:
                    self.client.generate("a red fox")
                self.assertEqual(ctx.exception.message, IMAGE_GENERATION_FAILED)

    @patch("requests.post")
    def test_portrait_flavour_uses_its_own_wording(self, mock_post):
        client = ImageGenerationClient.for_portrait(StudioConfig(api_key="k"))
        mock_post.return_value = MockResponse(200, {})
        with self.assertRaises(RemoteResponseMalformed) as ctx:
            client.generate("brown eyes. as a knight")
        self.assertEqual(ctx.exception.message, PORTRAIT_GENERATION_FAILED)

        mock_post.side_effect = requests.exceptions.Timeout("read timed out")
        with self.assertRaises(RemoteRequestFailure) as ctx:
            client.generate("brown eyes. as a knight")
        self.assertTrue(ctx.exception.message.startswith("Error generating portrait: read timed out"))

    @patch("requests.post")
    def test_missing_credential_sends_nothing(self, mock_post):
        client = ImageGenerationClient.for_playground(StudioConfig(api_key=""))
        with self.assertRaises(CredentialMissing):
            client.generate("a red fox")
        mock_post.assert_not_called()


if __name__ == "__main__":
    unittest.main()
