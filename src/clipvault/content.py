"""
Pure helpers for clipboard content.

- fingerprint: deterministic dedup key for a piece of text
- highlight: wraps search matches in display markers

The fingerprint is MD5 because it only needs to be a fast, fixed-length
equality key. Two texts with the same digest are treated as the same entry.
"""

import hashlib

DEFAULT_HIGHLIGHT_OPEN = "<mark>"
DEFAULT_HIGHLIGHT_CLOSE = "</mark>"


def fingerprint(content: str) -> str:
    """Return the 32-character hex digest used to deduplicate content."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def highlight(
    query: str,
    content: str,
    open_marker: str = DEFAULT_HIGHLIGHT_OPEN,
    close_marker: str = DEFAULT_HIGHLIGHT_CLOSE,
) -> str:
    """
    Wrap every occurrence of query in content with markers.

    Matching is literal and case-sensitive, scanning left to right without
    overlaps, so highlight("aa", "aaa") marks only the first two characters.
    An empty query leaves the content unchanged.

    Args:
        query: Substring to mark
        content: Text to annotate
        open_marker: Inserted before each match
        close_marker: Inserted after each match

    Returns:
        The annotated text
    """
    if not query:
        return content
    return content.replace(query, f"{open_marker}{query}{close_marker}")
