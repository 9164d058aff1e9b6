"""
Unit tests for percent-decoding.
"""

import pytest

from fileserver.http.url import percent_decode


class TestPercentDecode:
    """Tests for percent_decode()."""

    def test_space_escape(self):
        """Test the common %20 escape."""
        assert percent_decode("a%20b") == "a b"
        assert percent_decode(b"a%20b") == b"a b"

    def test_returns_same_type(self):
        """Test that bytes stay bytes and str stays str."""
        assert isinstance(percent_decode(b"x"), bytes)
        assert isinstance(percent_decode("x"), str)

    def test_plain_text_unchanged(self):
        """Test input without escapes."""
        assert percent_decode("index.html") == "index.html"
        assert percent_decode(b"") == b""

    def test_trailing_percent_is_literal(self):
        """Test a % that is the last byte."""
        assert percent_decode("abc%") == "abc%"

    def test_trailing_incomplete_escape_is_literal(self):
        """Test a % followed by a single byte at the end."""
        assert percent_decode("abc%2") == "abc%2"
        assert percent_decode(b"%4") == b"%4"

    def test_escape_ending_at_last_byte_is_decoded(self):
        """Test that an escape using the final two bytes still decodes."""
        assert percent_decode("abc%41") == "abcA"
        assert percent_decode(b"%41") == b"A"

    def test_hex_digits_any_case(self):
        """Test upper and lower case hex."""
        assert percent_decode(b"%2f%2F") == b"//"
        assert percent_decode(b"%aB") == b"\xab"

    def test_non_hex_escape_is_literal(self):
        """Test that %zz is copied unchanged."""
        assert percent_decode("100%zz") == "100%zz"
        assert percent_decode(b"%g1x") == b"%g1x"

    def test_single_hex_digit_escape(self):
        """Test that %Xz decodes the one digit and skips the third byte."""
        assert percent_decode(b"a%2zb") == b"a\x02b"
        assert percent_decode(b"%1gx") == b"\x01x"
        assert percent_decode("%Fz.txt") == "\x0f.txt"

    def test_percent_escape_of_percent(self):
        """Test that %25 decodes once, not recursively."""
        assert percent_decode("%2541") == "%41"

    def test_consecutive_escapes(self):
        """Test back-to-back escapes."""
        assert percent_decode(b"%48%69%21") == b"Hi!"

    def test_utf8_in_str(self):
        """Test multi-byte UTF-8 escapes in str input."""
        assert percent_decode("caf%C3%A9.html") == "café.html"

    def test_invalid_utf8_survives_in_str(self):
        """Test that undecodable bytes round-trip via surrogateescape."""
        decoded = percent_decode("%FF")
        assert decoded.encode("utf-8", errors="surrogateescape") == b"\xff"

    def test_decodes_to_nul_byte(self):
        """Test that %00 becomes a real NUL byte."""
        assert percent_decode(b"a%00b") == b"a\x00b"

    @pytest.mark.parametrize("source", [
        b"", b"%", b"%%", b"%%%", b"abc%", b"abc%2", b"%20%20", b"%zz%41",
        b"a%2", b"%41%4", b"plain", b"%25%25%25",
    ])
    def test_never_longer_than_input(self, source: bytes):
        """Test that decoding never grows the input."""
        assert len(percent_decode(source)) <= len(source)

    @pytest.mark.parametrize("source", [
        "index.html", "a b", "abc%", "abc%2", "photo.JPG", "",
    ])
    def test_idempotent_without_escapes(self, source: str):
        """Test decode(decode(s)) == decode(s) when s has no %XX left."""
        once = percent_decode(source)
        assert percent_decode(once) == once
