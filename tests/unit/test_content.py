"""
Unit tests for content helpers.

Tests cover:
- Fingerprint determinism and format
- Highlight marking of every occurrence
"""

from clipvault.content import fingerprint, highlight


class TestFingerprint:
    """Tests for the dedup digest."""

    def test_deterministic(self) -> None:
        assert fingerprint("hello") == fingerprint("hello")

    def test_distinguishes_content(self) -> None:
        assert fingerprint("hello") != fingerprint("Hello")
        assert fingerprint("hello") != fingerprint("hello ")

    def test_fixed_length_hex(self) -> None:
        for text in ["", "a", "x" * 10_000, "剪贴板"]:
            digest = fingerprint(text)
            assert len(digest) == 32
            int(digest, 16)

    def test_known_value(self) -> None:
        """MD5 of the UTF-8 bytes."""
        assert fingerprint("123456") == "e10adc3949ba59abbe56e057f20f883e"


class TestHighlight:
    """Tests for search highlighting."""

    def test_single_match(self) -> None:
        assert highlight("world", "hello world") == "hello <mark>world</mark>"

    def test_every_occurrence(self) -> None:
        assert highlight("o", "foo") == "f<mark>o</mark><mark>o</mark>"

    def test_non_overlapping(self) -> None:
        """Matches are taken left to right without overlap."""
        assert highlight("aa", "aaa") == "<mark>aa</mark>a"

    def test_no_match(self) -> None:
        assert highlight("zzz", "hello") == "hello"

    def test_empty_query(self) -> None:
        assert highlight("", "hello") == "hello"

    def test_case_sensitive(self) -> None:
        assert highlight("h", "Hh") == "H<mark>h</mark>"

    def test_custom_markers(self) -> None:
        assert highlight("b", "abc", "**", "**") == "a**b**c"

    def test_pure(self) -> None:
        """The input string is not modified."""
        content = "abcabc"
        highlight("b", content)
        assert content == "abcabc"
