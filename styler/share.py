#!/usr/bin/env python3
"""
Share links: a whole editor session packed into one URL parameter.

Encoding pipeline:

    code ──shortcuts──► {"c": ..., "s": ..., "t": ..., "tt": ..., "p": ...}
         ──JSON──► LZW codes ──varint──► bytes ──base64url──► token

Only non-default fields are written (``s`` when the syntax mode is not
mermaid, ``t`` with the theme colours that differ from the default,
``tt`` / ``p`` when non-empty).

If the LZW/varint path cannot represent the record (characters beyond
U+00FF, codes beyond 2**21) the token is ``b`` + base64url of the UTF-8
JSON instead. LZW tokens always start with ``e`` (the packed ``{``), so
the prefix is unambiguous.

Decoding never raises: a corrupted token reads as no data (``None``).

Usage:
    python -m styler.share --input session.json
    python -m styler.share --input diagram.puml --syntax plantuml
    python -m styler.share --decode "https://example.com/?d=..."
"""

import argparse
import json
import os
import sys
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from styler import lzw
from styler.errors import DecodeError, InvalidConfigError
from styler.packing import numbers_to_token, token_to_numbers, urlsafe_decode, urlsafe_encode
from styler.session import DEFAULT_SYNTAX_MODE, SYNTAX_MODES, ParticipantInfo, SaveData, import_config
from styler.shortcuts import compact_lines, restore, substitute
from styler.theme import ColorTheme, is_default_theme, theme_overrides

SHARE_BASE_URL = os.environ.get("STYLER_BASE_URL", "")
URL_WARN_LENGTH = int(os.environ.get("STYLER_URL_WARN_LENGTH", "2000"))
SHARE_PARAM = "d"
FALLBACK_PREFIX = "b"


@dataclass
class ShareResult:
    url: str
    token: str

    @property
    def length(self) -> int:
        return len(self.url)

    @property
    def too_long(self) -> bool:
        """Very long URLs break in some browsers and chat clients."""
        return self.length > URL_WARN_LENGTH

    def to_dict(self) -> dict:
        return {"url": self.url, "token": self.token, "length": self.length, "tooLong": self.too_long}


# ─── Token codec ─────────────────────────────────────────────────

def compress_for_url(text: str) -> str:
    try:
        return numbers_to_token(lzw.compress(text))
    except ValueError as exc:
        print(f"[share] LZW path failed ({exc}); using base64 fallback", file=sys.stderr)
        return FALLBACK_PREFIX + urlsafe_encode(text.encode("utf-8"))


def decompress_from_url(token: str) -> str:
    """Inverse of :func:`compress_for_url`. Raises DecodeError on corrupted input."""
    if token.startswith(FALLBACK_PREFIX):
        try:
            return urlsafe_decode(token[len(FALLBACK_PREFIX):]).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Invalid fallback token: {exc}") from exc
    return lzw.decompress(token_to_numbers(token))


# ─── Session <-> minimal record ──────────────────────────────────

def minimal_record(data: SaveData, compact: bool = False) -> Dict[str, Any]:
    code = compact_lines(data.code) if compact else data.code
    record: Dict[str, Any] = {"c": substitute(code)}

    if data.syntax_mode != DEFAULT_SYNTAX_MODE:
        record["s"] = data.syntax_mode
    if not is_default_theme(data.color_theme):
        record["t"] = theme_overrides(data.color_theme)
    if data.custom_tooltips:
        record["tt"] = dict(data.custom_tooltips)
    if data.custom_participants:
        record["p"] = {k: v.to_dict() for k, v in data.custom_participants.items()}
    return record


def record_to_session(record: Dict[str, Any]) -> SaveData:
    if not isinstance(record, dict):
        raise ValueError("share record is not an object")

    syntax_mode = record.get("s") or DEFAULT_SYNTAX_MODE
    if syntax_mode not in SYNTAX_MODES:
        raise ValueError(f"unknown syntax mode {syntax_mode!r}")

    tooltips = record.get("tt") or {}
    participants = record.get("p") or {}
    return SaveData(
        code=restore(str(record.get("c") or "")),
        syntax_mode=syntax_mode,
        color_theme=ColorTheme.from_dict(record.get("t")),
        custom_tooltips={str(k): str(v) for k, v in tooltips.items()},
        custom_participants={str(k): ParticipantInfo.from_dict(v) for k, v in participants.items()},
    )


def encode_session(data: SaveData, compact: bool = False) -> str:
    payload = json.dumps(minimal_record(data, compact), separators=(",", ":"), ensure_ascii=False)
    return compress_for_url(payload)


def decode_session(token: str) -> Optional[SaveData]:
    """Session carried by *token*, or None when the token is corrupted."""
    if not token:
        return None
    try:
        return record_to_session(json.loads(decompress_from_url(token)))
    except (ValueError, TypeError, AttributeError) as exc:
        print(f"[share] Ignoring unreadable share token: {exc}", file=sys.stderr)
        return None


# ─── URLs ────────────────────────────────────────────────────────

def generate_share_url(data: SaveData, base_url: Optional[str] = None,
                       compact: bool = False) -> ShareResult:
    token = encode_session(data, compact)
    base = SHARE_BASE_URL if base_url is None else base_url
    return ShareResult(url=f"{base}?{SHARE_PARAM}={token}", token=token)


def token_from_url(value: str) -> Optional[str]:
    """Pull the token out of a full URL, a query string, or return a bare token."""
    value = value.strip()
    if "?" in value:
        query = urllib.parse.urlsplit(value).query
    elif value.startswith(f"{SHARE_PARAM}="):
        query = value
    else:
        return value or None
    return urllib.parse.parse_qs(query).get(SHARE_PARAM, [None])[0]


def parse_share_url(value: str) -> Optional[SaveData]:
    token = token_from_url(value)
    if not token:
        return None
    return decode_session(token)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Encode a diagram session as a share URL, or decode one",
    )
    parser.add_argument("--input", "-i", help="Session record (.json) or diagram file to encode")
    parser.add_argument("--syntax", choices=SYNTAX_MODES, default=DEFAULT_SYNTAX_MODE,
                        help="Syntax of a plain diagram file")
    parser.add_argument("--decode", "-d", help="Share URL, query string or token to decode")
    parser.add_argument("--base-url", default=None, help="Origin + path to prefix the token with")
    parser.add_argument("--compact", action="store_true", help="Trim lines before encoding")
    args = parser.parse_args(argv)

    if args.decode:
        data = parse_share_url(args.decode)
        if data is None:
            print("Error: no session data in share link", file=sys.stderr)
            return 1
        print(json.dumps(data.to_dict(), indent=2))
        return 0

    if not args.input:
        parser.error("Either --input or --decode is required")

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    content = input_path.read_text(encoding="utf-8")
    if input_path.suffix.lower() == ".json":
        try:
            data = import_config(content)
        except InvalidConfigError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
    else:
        data = SaveData(code=content, syntax_mode=args.syntax)

    result = generate_share_url(data, base_url=args.base_url, compact=args.compact)
    if result.too_long:
        print(f"  ⚠ Share URL is {result.length} characters; consider a JSON export instead",
              file=sys.stderr)
    print(result.url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
