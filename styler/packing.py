"""
Variable-length integer packing and URL-safe base64.

Each non-negative integer below 2**21 is written most-significant 7-bit
chunk first. Every byte except the last of an integer carries the 0x80
continuation bit:

    n < 128            0xxxxxxx
    n < 16384          1xxxxxxx 0xxxxxxx
    n < 2097152        1xxxxxxx 1xxxxxxx 0xxxxxxx

Unpacking reads the chunks back in the same order, shifting the running
value left before adding each one.

The packed bytes travel as base64 with ``-``/``_`` in place of ``+``/``/``
and the ``=`` padding stripped.
"""

import base64
import binascii
from typing import Iterable, List

from styler.errors import DecodeError, EncodeError

MAX_VALUE = 1 << 21
MAX_BYTES = 3


def pack(codes: Iterable[int]) -> bytes:
    """Pack integers in ``[0, 2**21)`` into bytes."""
    out = bytearray()
    for num in codes:
        if num < 0 or num >= MAX_VALUE:
            raise EncodeError(f'Integer out of packable range [0, {MAX_VALUE}): {num}')
        if num < 0x80:
            out.append(num)
        elif num < 0x4000:
            out.append((num >> 7) | 0x80)
            out.append(num & 0x7F)
        else:
            out.append((num >> 14) | 0x80)
            out.append(((num >> 7) & 0x7F) | 0x80)
            out.append(num & 0x7F)
    return bytes(out)


def unpack(data: bytes) -> List[int]:
    """Inverse of :func:`pack`.

    Raises :class:`DecodeError` when the data ends inside an integer or an
    integer runs longer than three bytes.
    """
    nums: List[int] = []
    num = 0
    length = 0
    for byte in data:
        num = (num << 7) | (byte & 0x7F)
        length += 1
        if length > MAX_BYTES:
            raise DecodeError('Invalid packed data: integer longer than 3 bytes')
        if not byte & 0x80:
            nums.append(num)
            num = 0
            length = 0
    if length:
        raise DecodeError('Invalid packed data: truncated integer')
    return nums


def urlsafe_encode(data: bytes) -> str:
    """Base64 with ``-``/``_`` and no padding."""
    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


def urlsafe_decode(text: str) -> bytes:
    """Inverse of :func:`urlsafe_encode`. Restores padding before decoding."""
    padded = text + '=' * (-len(text) % 4)
    try:
        return base64.b64decode(padded.encode('ascii'), altchars=b'-_', validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise DecodeError(f'Invalid base64 data: {exc}') from exc


def numbers_to_token(codes: Iterable[int]) -> str:
    return urlsafe_encode(pack(codes))


def token_to_numbers(token: str) -> List[int]:
    return unpack(urlsafe_decode(token))
