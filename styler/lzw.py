"""
LZW (Lempel-Ziv-Welch) compression over text.

The dictionary is seeded with the 256 single characters ``chr(0)`` to
``chr(255)`` and grows as substrings are observed. Each call builds its
own dictionary and throws it away, so calls never share state.

Characters above ``chr(255)`` are not in the seed and can never be
emitted: compressing text that contains one raises :class:`EncodeError`.
"""

from typing import Dict, List, Sequence

from styler.errors import DecodeError, EncodeError

SEED_SIZE = 256


def compress(text: str) -> List[int]:
    """Compress *text* into a list of dictionary codes."""
    dictionary: Dict[str, int] = {chr(i): i for i in range(SEED_SIZE)}
    next_code = SEED_SIZE

    w = ''
    result: List[int] = []
    for c in text:
        wc = w + c
        if wc in dictionary:
            w = wc
            continue
        result.append(_code_for(dictionary, w))
        dictionary[wc] = next_code
        next_code += 1
        w = c

    if w:
        result.append(_code_for(dictionary, w))
    return result


def _code_for(dictionary: Dict[str, int], w: str) -> int:
    try:
        return dictionary[w]
    except KeyError:
        raise EncodeError(f'Character outside the LZW seed alphabet: {w!r}') from None


def decompress(codes: Sequence[int]) -> str:
    """Rebuild the text produced by :func:`compress`.

    Raises :class:`DecodeError` for a code that is neither in the
    dictionary nor the next one to be assigned.
    """
    if not codes:
        return ''

    dictionary: Dict[int, str] = {i: chr(i) for i in range(SEED_SIZE)}
    next_code = SEED_SIZE

    first = codes[0]
    if first not in dictionary:
        raise DecodeError(f'Invalid compressed data: first code {first} is not a seed code')

    w = dictionary[first]
    parts = [w]
    for k in codes[1:]:
        if k in dictionary:
            entry = dictionary[k]
        elif k == next_code:
            # Code refers to the entry being built right now
            entry = w + w[0]
        else:
            raise DecodeError(f'Invalid compressed data: unknown code {k}')

        parts.append(entry)
        dictionary[next_code] = w + entry[0]
        next_code += 1
        w = entry

    return ''.join(parts)
