"""
Exception types raised by the diagram codec.

Share-token decoding never lets these escape to the caller (a bad token
reads as "no data"); session-record import and strict parsing do.
"""

from typing import Optional


class StylerError(Exception):
    """Base class for every codec error."""


class EncodeError(StylerError, ValueError):
    """Input cannot be represented by the compact share encoding."""


class DecodeError(StylerError, ValueError):
    """Corrupted or truncated compressed data."""


class InvalidConfigError(StylerError, ValueError):
    """A session record could not be imported."""


class UnrecognizedSyntaxError(StylerError, ValueError):
    """Strict parsing met a line that matches no known form."""

    def __init__(self, line: str, line_number: Optional[int] = None):
        self.line = line
        self.line_number = line_number
        where = f' (line {line_number})' if line_number is not None else ''
        super().__init__(f'Unrecognized diagram syntax{where}: {line!r}')
