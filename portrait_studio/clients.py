"""
Gemini / Imagen REST clients
One POST per call; no retries, no caching
"""

from typing import Any, Optional

import requests

from .config import StudioConfig
from .errors import (
    UNKNOWN_ERROR_MESSAGE,
    CredentialMissing,
    RemoteRequestFailure,
    RemoteResponseMalformed,
    get_api_error_string,
)

FACE_ANALYSIS_PROMPT = (
    "Describe the main person's facial features in detail. Focus on hair color and style, "
    "eye color, face shape, specific features like nose and mouth, and any distinctive elements "
    "such as glasses, beard, freckles, or facial expression. Provide a concise but comprehensive "
    "description suitable for an artist to recreate the likeness."
)

FACE_ANALYSIS_FAILED = (
    "Face analysis failed. The model couldn't describe the face or the response was empty. "
    "Try a different image or ensure the face is clear."
)
PORTRAIT_GENERATION_FAILED = (
    "Portrait generation failed. The model couldn't generate an image or the response was empty. "
    "Try adjusting your prompts."
)
IMAGE_GENERATION_FAILED = (
    "Image generation failed. The model couldn't generate an image or the response was empty. "
    "Try a different prompt."
)

FACE_IMAGE_MIME_TYPE = "image/jpeg"
GENERATED_IMAGE_MIME_TYPE = "image/png"


def build_portrait_prompt(description: str, scene: str) -> str:
    """Combine a face description and a scene prompt into one generation prompt"""
    return f"{description}. {scene}"


def _read_json(response) -> Any:
    try:
        return response.json()
    except ValueError:
        print(f"⚠️ Gemini API returned a non-JSON body (HTTP {response.status_code})")
        return {}


def _first(items: Any) -> Any:
    if isinstance(items, list) and items:
        return items[0]
    return None


class GeminiClient:
    """Shared request handling for the generative language endpoints"""

    def __init__(self, api_key: str, base_url: str, model: str,
                 timeout: Optional[float] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout

    def endpoint(self, method: str) -> str:
        return f"{self.base_url}/models/{self.model}:{method}"

    def post(self, method: str, payload: dict, action: str):
        """
        POST a JSON payload with the key as a query parameter

        Args:
            method: Model method, e.g. 'generateContent' or 'predict'
            payload: Request body
            action: Wording for transport errors, e.g. 'analyzing face'

        Returns:
            tuple: (response, parsed body)

        Raises:
            CredentialMissing: No API key configured; no request is sent
            RemoteRequestFailure: Network-level failure
        """
        if not self.api_key:
            raise CredentialMissing()

        try:
            response = requests.post(
                self.endpoint(method),
                params={'key': self.api_key},
                headers={'Content-Type': 'application/json'},
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            print(f"❌ Network error while {action} ({self.model}): {e}")
            reason = get_api_error_string(e, UNKNOWN_ERROR_MESSAGE)
            raise RemoteRequestFailure(
                f"Error {action}: {reason}. Check the server log for details.",
                details=str(e),
            ) from e

        return response, _read_json(response)


class FaceDescriptionClient(GeminiClient):
    """Describes the face in an image with a vision-capable text model"""

    @classmethod
    def from_config(cls, config: StudioConfig):
        return cls(config.api_key, config.api_base_url, config.text_model,
                   timeout=config.request_timeout)

    def build_payload(self, image_base64: str) -> dict:
        return {
            'contents': [
                {
                    'role': 'user',
                    'parts': [
                        {'text': FACE_ANALYSIS_PROMPT},
                        {
                            'inlineData': {
                                'mimeType': FACE_IMAGE_MIME_TYPE,
                                'data': image_base64
                            }
                        }
                    ]
                }
            ],
        }

    def describe(self, image_base64: str) -> str:
        """
        Ask the model for a description of the face in the image

        Args:
            image_base64: Image bytes as base64 text (no data-URI prefix)

        Returns:
            str: Description text of the first candidate

        Raises:
            CredentialMissing, RemoteRequestFailure, RemoteResponseMalformed
        """
        if not image_base64:
            raise ValueError("image_base64 is required")

        print(f"🔍 Analyzing face with {self.model}...")
        response, result = self.post('generateContent', self.build_payload(image_base64),
                                     'analyzing face')

        candidate = _first(result.get('candidates')) if isinstance(result, dict) else None
        content = candidate.get('content') if isinstance(candidate, dict) else None
        part = _first(content.get('parts')) if isinstance(content, dict) else None
        text = part.get('text') if isinstance(part, dict) else None

        if response.ok and isinstance(text, str):
            print(f"✅ Face described ({len(text)} characters)")
            return text

        print(f"❌ Face analysis failed (HTTP {response.status_code}), API response: {result}")
        raise RemoteResponseMalformed(
            get_api_error_string(result, FACE_ANALYSIS_FAILED),
            details=f"HTTP {response.status_code}",
        )


class ImageGenerationClient(GeminiClient):
    """Generates a single PNG image from a text prompt"""

    def __init__(self, api_key: str, base_url: str, model: str,
                 timeout: Optional[float] = None,
                 default_error: str = IMAGE_GENERATION_FAILED,
                 action: str = 'generating image'):
        super().__init__(api_key, base_url, model, timeout)
        self.default_error = default_error
        self.action = action

    @classmethod
    def from_config(cls, config: StudioConfig, **kwargs):
        return cls(config.api_key, config.api_base_url, config.image_model,
                   timeout=config.request_timeout, **kwargs)

    @classmethod
    def for_portrait(cls, config: StudioConfig):
        return cls.from_config(config, default_error=PORTRAIT_GENERATION_FAILED,
                               action='generating portrait')

    @classmethod
    def for_playground(cls, config: StudioConfig):
        return cls.from_config(config)

    def build_payload(self, prompt: str) -> dict:
        return {
            'instances': [{'prompt': prompt}],
            'parameters': {'sampleCount': 1}
        }

    def generate(self, prompt: str) -> str:
        """
        Generate one image for the prompt

        Args:
            prompt: Text prompt

        Returns:
            str: data:image/png;base64,... reference ready for an <img> tag

        Raises:
            CredentialMissing, RemoteRequestFailure, RemoteResponseMalformed
        """
        if not prompt:
            raise ValueError("prompt is required")

        print(f"🎨 Generating image with {self.model}...")
        print(f"   Prompt: {prompt[:100]}...")
        response, result = self.post('predict', self.build_payload(prompt), self.action)

        prediction = _first(result.get('predictions')) if isinstance(result, dict) else None
        encoded = prediction.get('bytesBase64Encoded') if isinstance(prediction, dict) else None

        if response.ok and isinstance(encoded, str) and encoded:
            print("✅ Image generated successfully")
            return f"data:{GENERATED_IMAGE_MIME_TYPE};base64,{encoded}"

        print(f"❌ Image generation failed (HTTP {response.status_code}), API response: {result}")
        raise RemoteResponseMalformed(
            get_api_error_string(result, self.default_error),
            details=f"HTTP {response.status_code}",
        )
