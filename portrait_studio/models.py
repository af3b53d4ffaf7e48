"""
API Data Models
Defines the uploaded image record and the JSON envelopes returned by the studio endpoints
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any
from datetime import datetime, timezone


@dataclass(frozen=True)
class UploadedImage:
    """Image selected by the user, encoded for inline transport"""
    raw_base64: str
    size_bytes: int
    mime_type: str = "image/jpeg"
    filename: Optional[str] = None

    @property
    def preview_url(self) -> str:
        # built on demand so the payload is held once per session
        return f"data:{self.mime_type};base64,{self.raw_base64}"


# Error codes for different types of failures
ERROR_CODES = {
    'AUTH_001': 'API key missing',
    'VALIDATION_001': 'Missing required parameter',
    'VALIDATION_002': 'Invalid or unreadable image',
    'VALIDATION_003': 'File too large',
    'STATE_001': 'Operation not allowed in current state',
    'SERVICE_001': 'Gemini API unavailable',
    'SERVICE_002': 'Gemini API returned an unusable response',
    'SERVICE_003': 'Internal processing error',
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_error_response(error_code: str, details: str = None,
                          state: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Create standardized error response

    Args:
        error_code: Error code from ERROR_CODES
        details: User-facing explanation
        state: Studio view to send back with the error

    Returns:
        dict: Error response dictionary
    """
    response = {
        'success': False,
        'error': ERROR_CODES.get(error_code, 'Unknown error'),
        'error_code': error_code,
        'details': details,
        'timestamp': _timestamp()
    }
    if state is not None:
        response['state'] = state
    return response


def create_success_response(message: str, state: Dict[str, Any] = None,
                            metadata: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Create standardized success response

    Args:
        message: Success message
        state: Studio view after the operation
        metadata: Additional metadata

    Returns:
        dict: Success response dictionary
    """
    response = {
        'success': True,
        'message': message,
        'timestamp': _timestamp()
    }

    if state is not None:
        response['state'] = state
    if metadata:
        response['metadata'] = metadata

    return response
