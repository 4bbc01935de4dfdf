"""Metadata helpers for file records."""

import mimetypes
from typing import Final

from django.core.exceptions import ValidationError

_NAME_MAX_LENGTH: Final = 255
_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'


def detect_mime_type(filename: str) -> str:
    """Guess MIME type from a file name.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def validate_file_name(name: str) -> str:
    """Validate and normalize a display name.

    Args:
        name: Proposed file name.

    Returns:
        The name stripped of surrounding whitespace.

    Raises:
        ValidationError: If the name is empty, too long or contains
            a path separator or control character.
    """
    normalized = name.strip()
    if not normalized:
        raise ValidationError('File name cannot be empty')
    if len(normalized) > _NAME_MAX_LENGTH:
        raise ValidationError(
            f'File name longer than {_NAME_MAX_LENGTH} characters',
        )
    if '/' in normalized or '\\' in normalized:
        raise ValidationError('File name cannot contain path separators')
    if any(not char.isprintable() for char in normalized):
        raise ValidationError('File name cannot contain control characters')
    return normalized


def validate_size(size_bytes: int) -> None:
    """Validate a declared blob size.

    Raises:
        ValidationError: If the size is negative.
    """
    if size_bytes < 0:
        raise ValidationError('File size cannot be negative')
