"""Tests for input validation."""

from shortener.core.validators import MAX_URL_LENGTH, is_valid_url, sanitize_short_code


class TestURLValidation:
    """Test URL validation function."""

    def test_valid_urls(self):
        valid_urls = [
            "http://example.com",
            "https://www.example.com/path/to/page",
            "http://subdomain.example.com:8080/path?query=value",
            "ftp://files.example.com/archive.zip",
        ]
        for url in valid_urls:
            assert is_valid_url(url), f"Should be valid: {url}"

    def test_invalid_urls(self):
        invalid_urls = [
            "not-a-url",
            "example.com",  # Missing scheme
            "",
            "http://",  # Missing host
            "https://example.com/" + "a" * 5000,
        ]
        for url in invalid_urls:
            assert not is_valid_url(url), f"Should be invalid: {url}"

    def test_length_limit(self):
        prefix = "https://example.com/"
        at_limit = prefix + "a" * (MAX_URL_LENGTH - len(prefix))

        assert len(at_limit) == 2048
        assert is_valid_url(at_limit)
        assert not is_valid_url(at_limit + "a")


class TestShortCodeSanitizing:
    """Test short code sanitizing."""

    def test_valid_code_is_stripped(self):
        assert sanitize_short_code(" aB3 ") == "aB3"

    def test_invalid_codes(self):
        assert sanitize_short_code("") is None
        assert sanitize_short_code("../etc") is None
        assert sanitize_short_code("a-b") is None
        assert sanitize_short_code("a" * 21) is None
