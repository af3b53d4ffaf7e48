"""
Creative Portrait Studio
Face description with Gemini and image generation with Imagen behind a small Flask blueprint
"""

from .endpoints import studio_bp
from .errors import get_api_error_string
from .models import UploadedImage, create_error_response, create_success_response

__all__ = ['studio_bp', 'get_api_error_string', 'UploadedImage',
           'create_error_response', 'create_success_response']
