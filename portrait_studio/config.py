"""
Configuration loaded from environment variables and .env files
"""

import os
import secrets
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TEXT_MODEL = "gemini-2.0-flash"
DEFAULT_IMAGE_MODEL = "imagen-3.0-generate-002"
DEFAULT_MAX_UPLOAD_BYTES = 4 * 1024 * 1024
DEFAULT_MAX_SESSIONS = 100
DEFAULT_SESSION_IDLE_SECONDS = 60 * 60

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def load_env_file() -> Optional[str]:
    """Load the first .env found (project root, then current directory)"""
    env_paths = [
        os.path.join(ROOT_DIR, '.env'),
        os.path.join(os.getcwd(), '.env'),
    ]
    for env_path in env_paths:
        if os.path.exists(env_path):
            load_dotenv(env_path)
            print(f"✅ Loaded .env from: {env_path}")
            return env_path
    print("⚠️ No .env file found. Using system environment variables only.")
    return None


@dataclass(frozen=True)
class StudioConfig:
    api_key: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    request_timeout: Optional[float] = None
    secret_key: str = ""
    max_sessions: int = DEFAULT_MAX_SESSIONS
    session_idle_seconds: int = DEFAULT_SESSION_IDLE_SECONDS

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"⚠️ {name}={raw!r} is not an integer, using {default}")
        return default


def _timeout_env(name: str) -> Optional[float]:
    raw = os.getenv(name, '').strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        print(f"⚠️ {name}={raw!r} is not a number, using the transport default")
        return None
    return value if value > 0 else None


def load_config() -> StudioConfig:
    """
    Build the studio configuration from the environment

    A missing API key is not fatal: every operation reports it when triggered.

    Returns:
        StudioConfig: Current settings
    """
    api_key = (os.getenv('GEMINI_API_KEY') or os.getenv('GOOGLE_API_KEY') or '').strip()
    if not api_key:
        print("⚠️ GEMINI_API_KEY not found in environment variables. Face analysis and image generation will fail until it is set.")

    secret_key = os.getenv('SECRET_KEY', '').strip() or secrets.token_hex(32)

    return StudioConfig(
        api_key=api_key,
        api_base_url=os.getenv('GEMINI_API_BASE_URL', DEFAULT_API_BASE_URL).rstrip('/'),
        text_model=os.getenv('GEMINI_TEXT_MODEL', DEFAULT_TEXT_MODEL),
        image_model=os.getenv('GEMINI_IMAGE_MODEL', DEFAULT_IMAGE_MODEL),
        max_upload_bytes=_int_env('MAX_UPLOAD_BYTES', DEFAULT_MAX_UPLOAD_BYTES),
        request_timeout=_timeout_env('GEMINI_REQUEST_TIMEOUT'),
        secret_key=secret_key,
        max_sessions=max(1, _int_env('MAX_SESSIONS', DEFAULT_MAX_SESSIONS)),
        session_idle_seconds=_int_env('SESSION_IDLE_SECONDS', DEFAULT_SESSION_IDLE_SECONDS),
    )
