from io import BytesIO
from typing import Optional, Tuple
import re

from PIL import Image, UnidentifiedImageError


def validate_image_file(file_size: int, max_size: int = 20 * 1024 * 1024) -> Tuple[bool, Optional[str]]:
    """
    Validate image file size

    Args:
        file_size: File size in bytes
        max_size: Maximum allowed file size (default 20MB)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if file_size <= 0:
        return False, "File is empty"

    if file_size > max_size:
        max_mb = max_size / (1024 * 1024)
        return False, f"File is too large. Maximum size: {max_mb:.0f}MB"

    return True, None


def detect_image_format(image_bytes: bytes) -> Optional[str]:
    """Return the Pillow format name (PNG, JPEG, ...) or None if the bytes are not an image"""
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.verify()
            return img.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None


def validate_image_upload(
    image_bytes: bytes,
    max_size: int = 20 * 1024 * 1024
) -> Tuple[bool, Optional[str]]:
    """
    Validate an uploaded image: size limits and decodable image content

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_image_file(len(image_bytes), max_size)
    if not is_valid:
        return is_valid, error

    if detect_image_format(image_bytes) is None:
        return False, "Please upload an image file."

    return True, None


def validate_product_name(product_name: Optional[str]) -> Tuple[bool, Optional[str]]:
    if not product_name or not product_name.strip():
        return False, "Product name is required"
    return True, None


def sanitize_text(text: str, max_length: int = 1000) -> str:
    """
    Sanitize user input text

    Args:
        text: Text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text.strip()

    if len(text) > max_length:
        text = text[:max_length]

    # Strip HTML/script tags
    text = re.sub(r'<[^>]+>', '', text)

    return text
