#!/usr/bin/env python3
"""
Participant and message extraction from Mermaid sequence diagrams.

Every trimmed, non-empty line is classified on its own:
1. ``participant`` / ``actor`` declaration, optionally ``as <label>``
2. message ``<from><arrow><to>: <text>``

Message endpoints count as implicit declarations (left, then right).
A name is recorded once, at its first appearance. Other lines are
ignored unless ``strict`` is set.

Usage:
    python -m styler.extract --input diagram.mmd
    python -m styler.extract --input diagram.puml --syntax plantuml
"""

import argparse
import json
import re
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from styler.errors import UnrecognizedSyntaxError
from styler.plantuml_to_mermaid import to_mermaid


@dataclass
class Participant:
    name: str
    label: Optional[str] = None
    kind: str = "participant"   # participant, actor

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MessageStep:
    sequence_index: int
    source: str
    target: str
    text: str
    is_response: bool = False

    @property
    def id(self) -> str:
        """Key used by tooltip overrides."""
        return f"msg-{self.sequence_index}"

    def default_description(self) -> str:
        verb = "replies to" if self.is_response else "sends to"
        return f"{self.source} {verb} {self.target}: {self.text}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sequenceIndex": self.sequence_index,
            "from": self.source,
            "to": self.target,
            "text": self.text,
            "isResponse": self.is_response,
        }


# ─── Line patterns ────────────────────────────────────────────────

_DECLARATION_RE = re.compile(
    r'^(?:create\s+)?(?P<kind>participant|actor)\s+(?P<name>.+?)(?:\s+as\s+(?P<label>.+))?$'
)

# Longest first so "-->>" is never read as "-->" followed by ">"
_ARROWS = ('-->>', '->>', '-->', '->', '--x', '-x', '--)', '-)')
_DASHED_ARROWS = frozenset(a for a in _ARROWS if a.startswith('--'))

_MESSAGE_RE = re.compile(
    r'^(?P<src>[^:]+?)\s*'
    r'(?P<arrow>' + '|'.join(re.escape(a) for a in _ARROWS) + r')'
    r'[+-]?\s*'
    r'(?P<dst>[^:]+?)\s*:\s*(?P<text>.*)$'
)

# Recognized but carrying no entities (only matters in strict mode)
_STRUCTURAL_RE = re.compile(
    r'^(?:sequenceDiagram\b|%%|Note\s|autonumber\b|title\b|'
    r'(?:loop|alt|else|opt|par|and|critical|break|rect|box|end|activate|deactivate|destroy)\b)',
    re.IGNORECASE,
)


def _scan(text: str, strict: bool = False) -> Tuple[List[Participant], List[MessageStep]]:
    participants: List[Participant] = []
    seen: Dict[str, Participant] = {}
    messages: List[MessageStep] = []

    def _add(name: str, label: Optional[str] = None, kind: str = "participant") -> None:
        if name and name not in seen:
            seen[name] = Participant(name=name, label=label, kind=kind)
            participants.append(seen[name])

    for number, raw in enumerate(text.split('\n'), start=1):
        line = raw.strip()
        if not line:
            continue

        m = _DECLARATION_RE.match(line)
        if m:
            label = m.group('label').strip() if m.group('label') else None
            _add(m.group('name').strip(), label, m.group('kind'))
            continue

        m = _MESSAGE_RE.match(line)
        if m:
            src, dst = m.group('src').strip(), m.group('dst').strip()
            _add(src)
            _add(dst)
            messages.append(MessageStep(
                sequence_index=len(messages),
                source=src,
                target=dst,
                text=m.group('text').strip(),
                is_response=m.group('arrow') in _DASHED_ARROWS,
            ))
            continue

        if strict and not _STRUCTURAL_RE.match(line):
            raise UnrecognizedSyntaxError(line, number)

    return participants, messages


def extract_participants(text: str, strict: bool = False) -> List[Participant]:
    """Participants in order of first appearance, without duplicates."""
    return _scan(text, strict)[0]


def extract_messages(text: str, strict: bool = False) -> List[MessageStep]:
    """Messages in source order, indexed from 0."""
    return _scan(text, strict)[1]


def parse_diagram(code: str, syntax_mode: str = "mermaid",
                  strict: bool = False) -> Tuple[str, List[Participant], List[MessageStep]]:
    """Convert (for PlantUML) then extract. Returns (mermaid, participants, messages)."""
    mermaid = to_mermaid(code, syntax_mode, strict=strict)
    participants, messages = _scan(mermaid, strict)
    return mermaid, participants, messages


def describe_steps(messages: List[MessageStep], tooltips: Optional[Dict[str, str]] = None) -> List[dict]:
    """Caption for each step: the tooltip override if set, else the default phrase."""
    tooltips = tooltips or {}
    return [
        {"text": msg.text, "description": tooltips.get(msg.id) or msg.default_description()}
        for msg in messages
    ]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract participants and messages from a sequence diagram as JSON",
    )
    parser.add_argument("--input", "-i", help="Diagram file (default: stdin)")
    parser.add_argument("--syntax", choices=("mermaid", "plantuml"), default="mermaid")
    parser.add_argument("--strict", action="store_true", help="Fail on unrecognized lines")
    args = parser.parse_args(argv)

    if args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            print(f"Error: file not found: {input_path}", file=sys.stderr)
            return 1
        code = input_path.read_text(encoding='utf-8')
    else:
        code = sys.stdin.read()

    try:
        _, participants, messages = parse_diagram(code, args.syntax, strict=args.strict)
    except UnrecognizedSyntaxError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    print(json.dumps({
        "participants": [p.to_dict() for p in participants],
        "messages": [m.to_dict() for m in messages],
    }, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
