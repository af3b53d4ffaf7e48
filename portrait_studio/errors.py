"""
Error types and message normalization
Every failure shown to the user goes through get_api_error_string
"""

from collections.abc import Mapping
from typing import Any, Optional

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


class StudioError(Exception):
    """Base class for failures that end a studio operation"""

    error_code = "SERVICE_003"
    default_message = UNKNOWN_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


def format_size_limit(size_bytes: int) -> str:
    """Short label for an upload limit, e.g. 4MB or 512KB"""
    if size_bytes >= 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.3g}MB"
    if size_bytes >= 1024:
        return f"{size_bytes / 1024:.3g}KB"
    return f"{size_bytes} bytes"


class SizeLimitExceeded(StudioError):
    error_code = "VALIDATION_003"
    default_message = "Image is too large. Please upload an image smaller than 4MB."

    @classmethod
    def for_limit(cls, max_bytes: int, details: Any = None) -> "SizeLimitExceeded":
        return cls(f"Image is too large. Please upload an image smaller than {format_size_limit(max_bytes)}.",
                   details=details)


class FileReadFailure(StudioError):
    error_code = "VALIDATION_002"
    default_message = "Failed to load image. Please try again."


class CredentialMissing(StudioError):
    error_code = "AUTH_001"
    default_message = "Credential missing: add your Gemini API key (GEMINI_API_KEY) to use this feature."


class RemoteRequestFailure(StudioError):
    error_code = "SERVICE_001"
    default_message = "The Gemini API could not be reached."


class RemoteResponseMalformed(StudioError):
    error_code = "SERVICE_002"
    default_message = "The Gemini API returned an unexpected response."


def is_ui_element(value: Any) -> bool:
    """
    Check whether a value is markup meant for rendering rather than error data

    Args:
        value: Any value

    Returns:
        bool: True for objects exposing __html__ (markupsafe.Markup and friends)
              or mappings carrying a React-style $$typeof tag
    """
    if hasattr(value, '__html__'):
        return True
    if isinstance(value, Mapping) and '$$typeof' in value:
        return True
    return False


def _lookup(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and not is_ui_element(value) and value.strip():
        return value
    return None


def get_api_error_string(err: Any, default_message: str) -> str:
    """
    Turn an arbitrary failure value into a single displayable string

    Args:
        err: Parsed error envelope, exception, plain string or anything else
        default_message: Message used when nothing usable is found

    Returns:
        str: Non-empty message
    """
    fallback = default_message if isinstance(default_message, str) and default_message.strip() else UNKNOWN_ERROR_MESSAGE

    if err is None:
        return fallback

    if is_ui_element(err):
        print(f"⚠️ Error value looks like a UI element, using default message: {type(err).__name__}")
        return fallback

    nested = _lookup(err, 'error') if not isinstance(err, str) else None
    if nested is not None and not isinstance(nested, str):
        nested_message = _lookup(nested, 'message')
        if is_ui_element(nested_message):
            print("⚠️ UI element found in error.message, using default message")
            return fallback
        text = _text(nested_message)
        if text:
            return text

    if not isinstance(err, str):
        message = _lookup(err, 'message')
        if is_ui_element(message):
            print("⚠️ UI element found in message, using default message")
            return fallback
        text = _text(message)
        if text:
            return text
        if isinstance(err, BaseException):
            text = _text(str(err))
            if text:
                return text

    text = _text(err)
    if text:
        return text

    print(f"⚠️ Unrecognized error format, using default message: {type(err).__name__}")
    return fallback
