"""
clipvault - Persistent, searchable clipboard history.

clipvault is the storage core of a clipboard manager. It provides:
- Content-level deduplication (re-copied text moves to the top)
- Newest-first listing and substring search with highlighted matches
- One-way favorites
- Bounded growth through a capacity/margin retention pass

Example usage:
    $ clipvault add "some text"
    $ clipvault search text
    $ clipvault favorite 1
"""

__version__ = "0.1.0"
__author__ = "clipvault Contributors"

__all__ = [
    "__version__",
    "__author__",
]
