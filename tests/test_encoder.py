"""Tests for short code generation."""

import pytest

from shortener.services import encoder as encoder_module
from shortener.services.encoder import BASE62_CHARS, CODE_MASK, Base62Encoder, encode_base62


class TestBase62Encoding:
    """Test base62 rendering, least-significant digit first."""

    def test_single_digits(self):
        assert encode_base62(0) == "0"
        assert encode_base62(1) == "1"
        assert encode_base62(10) == "A"
        assert encode_base62(36) == "a"
        assert encode_base62(61) == "z"

    def test_least_significant_digit_first(self):
        assert encode_base62(62) == "01"
        assert encode_base62(62 * 2 + 3) == "32"
        assert encode_base62(62 ** 2) == "001"

    def test_largest_code_fits_in_eight_characters(self):
        assert len(encode_base62(CODE_MASK)) == 8

    def test_negative_number_rejected(self):
        with pytest.raises(ValueError):
            encode_base62(-1)


class TestBase62Encoder:
    """Test random code generation."""

    def test_generated_codes_are_base62(self):
        encoder = Base62Encoder()
        for _ in range(200):
            code = encoder.generate()
            assert 1 <= len(code) <= 8
            assert set(code) <= set(BASE62_CHARS)

    def test_random_bits_are_masked_to_42(self, monkeypatch):
        monkeypatch.setattr(encoder_module.secrets, "token_bytes", lambda n: b"\xff" * n)
        assert Base62Encoder().generate() == encode_base62(CODE_MASK)

    def test_zero_bits_give_non_empty_code(self, monkeypatch):
        monkeypatch.setattr(encoder_module.secrets, "token_bytes", lambda n: b"\x00" * n)
        assert Base62Encoder().generate() == "0"

    def test_codes_rarely_repeat(self):
        encoder = Base62Encoder()
        codes = {encoder.generate() for _ in range(1000)}
        assert len(codes) > 990
