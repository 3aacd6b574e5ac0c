"""
Keyword shortcut table for share-token compression.

Verbose sequence-diagram keywords and arrows are swapped for short
``~`` tokens before LZW runs. Every token is ``~`` plus one character,
so no token is a prefix of another, and that character is never the
first character of a long form, so a later substitution cannot eat into
an earlier token. Substitution walks the table top to bottom;
restoration walks it bottom to top.

A diagram that already contains a short token literally (a participant
named ``~P``) will not round-trip. That is a known limitation.
"""

from typing import List, Tuple


# Order matters: longer arrows and keywords that contain other entries
# ('deactivate' contains 'activate') come first.
CODE_SHORTCUTS: List[Tuple[str, str]] = [
    ('sequenceDiagram', '~S'),
    ('participant', '~P'),
    ('actor', '~A'),
    ('deactivate', '~D'),
    ('activate', '~V'),
    ('Note left of', '~L'),
    ('Note right of', '~R'),
    ('Note over', '~O'),
    ('loop', '~W'),
    ('alt', '~T'),
    ('else', '~E'),
    ('opt', '~Q'),
    ('par', '~Y'),
    ('and', '~J'),
    ('rect', '~X'),
    ('end', '~Z'),
    ('-->>>', '~4'),
    ('->>>', '~3'),
    ('-->>', '~2'),
    ('->>', '~1'),
    ('-->', '~6'),
    ('->', '~5'),
]


def substitute(text: str) -> str:
    """Replace every long form with its short token, in table order."""
    result = text
    for full, short in CODE_SHORTCUTS:
        result = result.replace(full, short)
    return result


def restore(text: str) -> str:
    """Undo :func:`substitute` by expanding tokens in reverse table order."""
    result = text
    for full, short in reversed(CODE_SHORTCUTS):
        result = result.replace(short, full)
    return result


def compact_lines(code: str) -> str:
    """Trim every line and drop blank ones. Lossy for indentation."""
    return '\n'.join(line.strip() for line in code.split('\n') if line.strip())
