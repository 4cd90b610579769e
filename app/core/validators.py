"""
Reusable validators for uploads and free text.

Used by serializers for avatar/message image uploads and profile bios.
Validators raise django.core.exceptions.ValidationError, which DRF
converts into a 400 response.

Usage:
    from core.validators import validate_file_size, validate_image_extension

    image = serializers.ImageField(
        validators=[validate_file_size(max_mb=5), validate_image_extension]
    )
"""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError

if TYPE_CHECKING:
    from django.core.files import File

IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "webp"]


def validate_file_size(max_mb: int = 10):
    """
    Validator factory for file size limits.

    Args:
        max_mb: Maximum file size in megabytes

    Returns:
        Validator function
    """

    def validator(file: File):
        max_bytes = max_mb * 1024 * 1024
        if file.size > max_bytes:
            raise ValidationError(
                f"File size must be less than {max_mb}MB. "
                f"Current size: {file.size / 1024 / 1024:.1f}MB"
            )

    return validator


def validate_file_extension(allowed_extensions: list[str]):
    """
    Validator factory for file extension limits.

    Args:
        allowed_extensions: List of allowed extensions (without dot)
    """

    def validator(file: File):
        ext = os.path.splitext(file.name)[1].lower().lstrip(".")
        if ext not in allowed_extensions:
            raise ValidationError(
                f"File extension '{ext}' is not allowed. "
                f"Allowed: {', '.join(allowed_extensions)}"
            )

    return validator


validate_image_extension = validate_file_extension(IMAGE_EXTENSIONS)


def validate_no_html(value: str):
    """Reject strings containing HTML tags."""
    if re.search(r"<[^>]+>", value):
        raise ValidationError("HTML tags are not allowed in this field.")
