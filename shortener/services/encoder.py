"""
Short Code Encoder

Generates short codes from cryptographically secure random bits.

Design Decisions:
- 42 random bits per code: at most 8 base62 characters
- Base62 alphabet [0-9A-Za-z]: URL-safe, no escaping needed
- Least-significant digit first
- No uniqueness guarantee: the repository reports collisions and the
  service retries with a fresh code
"""

import secrets

BASE62_CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
BASE62_LENGTH = len(BASE62_CHARS)

CODE_BITS = 42
CODE_MASK = (1 << CODE_BITS) - 1


def encode_base62(number: int) -> str:
    """
    Encode a non-negative number to base62, least-significant digit first.

    Args:
        number: The number to convert

    Returns:
        Base62 encoded string

    Example:
        encode_base62(0) -> "0"
        encode_base62(61) -> "z"
        encode_base62(62) -> "01"
    """
    if number < 0:
        raise ValueError(f"cannot encode negative number {number}")

    if number == 0:
        return BASE62_CHARS[0]

    digits = []
    while number > 0:
        number, remainder = divmod(number, BASE62_LENGTH)
        digits.append(BASE62_CHARS[remainder])

    return ''.join(digits)


class Base62Encoder:
    """Random short code generator."""

    def generate(self) -> str:
        """
        Generate a new short code.

        Reads 64 random bits, keeps the low 42 and renders them in base62.

        Returns:
            A short code of 1 to 8 characters
        """
        number = int.from_bytes(secrets.token_bytes(8), "big") & CODE_MASK
        return encode_base62(number)
