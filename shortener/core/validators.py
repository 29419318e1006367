"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.

Security Considerations:
- Short codes are restricted to the base62 alphabet before they reach storage
- Length limits prevent DoS attacks
"""

import re
from typing import Optional
from urllib.parse import urlparse

# fits a unique btree index entry on PostgreSQL
MAX_URL_LENGTH = 2048
MAX_SHORT_CODE_LENGTH = 20

_SHORT_CODE_RE = re.compile(r'^[0-9a-zA-Z]+$')


def sanitize_short_code(short_code: str) -> Optional[str]:
    """
    Sanitize and validate short code format.

    Short codes should only contain base62 characters: [0-9a-zA-Z]

    Args:
        short_code: The short code to sanitize

    Returns:
        Sanitized short code if valid, None otherwise
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()

    if len(short_code) > MAX_SHORT_CODE_LENGTH:
        return None

    if not _SHORT_CODE_RE.match(short_code):
        return None

    return short_code


def is_valid_url(url: str) -> bool:
    """
    Check that a URL is absolute: non-empty scheme and host.

    Args:
        url: The URL string to validate

    Returns:
        True if the URL can be stored, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if len(url) > MAX_URL_LENGTH:
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False

    return bool(result.scheme) and bool(result.netloc)
