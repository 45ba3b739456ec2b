"""
Exceptions raised while loading TMX documents.

Loading is fail-fast: the first problem aborts the whole load and no
partial map is ever returned. Errors raised deep inside nested parses
(including failures to read a referenced file) collect positional context
on their way out, so the final message reads like a path into the
document:

    layer #3: group depth 1: <data> encoding 'xml': inline non-csv/base64
    tile data is not supported
"""

from typing import List


class TmxError(Exception):
    """Base class for every error raised by tmx_loader."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.context: List[str] = []

    def add_context(self, label: str) -> 'TmxError':
        """Prefix positional context (outermost context ends up first)."""
        self.context.insert(0, label)
        return self

    def __str__(self) -> str:
        return ": ".join(self.context + [self.message])


class TmxParseError(TmxError, ValueError):
    """
    The document (or a document it references) could not be turned into
    the model: malformed XML, a bad attribute value, an unsupported data
    encoding, a missing required element or an unresolved reference.
    """


class TmxResolveError(TmxError, OSError):
    """A referenced file could not be read."""
