"""
Image Encoder
Turns an uploaded image file into inline base64 data for the Gemini request
"""

import io
import base64
from typing import BinaryIO, Optional

from PIL import Image, UnidentifiedImageError
from werkzeug.utils import secure_filename

from .config import DEFAULT_MAX_UPLOAD_BYTES
from .errors import FileReadFailure, SizeLimitExceeded
from .models import UploadedImage

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'webp'}

# Pillow format name -> MIME type
ALLOWED_FORMATS = {
    'PNG': 'image/png',
    'JPEG': 'image/jpeg',
    'WEBP': 'image/webp',
}


def allowed_file(filename: str) -> bool:
    """
    Check if file extension is allowed for uploads

    Args:
        filename: Name of the file to check

    Returns:
        bool: True if file type is allowed
    """
    return '.' in filename and \
           filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def measure_size(stream: BinaryIO) -> int:
    """Size of a seekable stream in bytes, leaving the position at the start"""
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


def detect_mime_type(data: bytes) -> str:
    """
    Identify the image format with Pillow

    Args:
        data: Raw file bytes

    Returns:
        str: MIME type of a PNG, JPEG or WEBP image

    Raises:
        FileReadFailure: If the bytes are not one of the accepted formats
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise FileReadFailure(details=str(e)) from e

    mime_type = ALLOWED_FORMATS.get(image_format or '')
    if not mime_type:
        raise FileReadFailure(
            f"Unsupported image format. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
            details=image_format,
        )
    return mime_type


def encode_upload(file, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> UploadedImage:
    """
    Read an uploaded file and encode it for inline transport

    Args:
        file: werkzeug FileStorage (or any object with a binary `stream` and `filename`)
        max_bytes: Largest accepted file size

    Returns:
        UploadedImage: base64 payload (no data-URI prefix), size and detected MIME type

    Raises:
        SizeLimitExceeded: If the file is larger than max_bytes; nothing is encoded
        FileReadFailure: If the file is missing, empty, unreadable or not an accepted image
    """
    if file is None:
        raise FileReadFailure("No file provided")

    filename: Optional[str] = getattr(file, 'filename', None)
    if filename and not allowed_file(filename):
        raise FileReadFailure(
            f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
            details=filename,
        )

    stream = getattr(file, 'stream', file)
    try:
        size_bytes = measure_size(stream)
    except (OSError, ValueError, AttributeError) as e:
        print(f"❌ Error reading uploaded image: {e}")
        raise FileReadFailure(details=str(e)) from e

    if size_bytes > max_bytes:
        print(f"⚠️ Upload rejected: {size_bytes} bytes exceeds limit of {max_bytes}")
        raise SizeLimitExceeded.for_limit(max_bytes, details=f"{size_bytes} bytes")

    if size_bytes == 0:
        raise FileReadFailure("Empty file provided")

    try:
        data = stream.read()
    except (OSError, ValueError) as e:
        print(f"❌ Error reading uploaded image: {e}")
        raise FileReadFailure(details=str(e)) from e

    mime_type = detect_mime_type(data)
    encoded = base64.b64encode(data).decode('ascii')
    safe_name = (secure_filename(filename) or None) if filename else None
    print(f"📸 Encoded upload {safe_name or '<unnamed>'}: {size_bytes} bytes, {mime_type}")

    return UploadedImage(
        raw_base64=encoded,
        size_bytes=size_bytes,
        mime_type=mime_type,
        filename=safe_name,
    )
