#!/usr/bin/env python3
"""
PlantUML to Mermaid Converter

Rewrites PlantUML sequence diagrams line by line into Mermaid
``sequenceDiagram`` syntax:
- participant / actor declarations (with "Label" as Alias)
- single-line notes (left of / right of / over)
- fragment keywords (loop, alt, else, opt, par, and, critical, break, end)
- activate / deactivate
- messages with solid, dashed and return arrows

Unrecognized lines are dropped; multi-line notes are dropped as a whole.

Usage:
    python -m styler.plantuml_to_mermaid --input file.puml
    python -m styler.plantuml_to_mermaid --input doc.md --output doc.out.md
    echo "@startuml ... @enduml" | python -m styler.plantuml_to_mermaid --stdin
"""

import argparse
import re
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from styler.errors import UnrecognizedSyntaxError

MERMAID_HEADER = 'sequenceDiagram'
INDENT = '    '


# ─── Arrow tokenizer ──────────────────────────────────────────────

class ArrowKind(Enum):
    SOLID = 'solid'
    DASHED = 'dashed'
    RETURN_SOLID = 'return_solid'
    RETURN_DASHED = 'return_dashed'

    @property
    def is_dashed(self) -> bool:
        return self in (ArrowKind.DASHED, ArrowKind.RETURN_DASHED)

    @property
    def is_return(self) -> bool:
        return self in (ArrowKind.RETURN_SOLID, ArrowKind.RETURN_DASHED)


@dataclass
class ParsedArrow:
    kind: ArrowKind
    activate: int = 0   # +1 = activate target (++), -1 = deactivate (--)


# Shaft is one or two dashes, optionally split by a colour: -[#red]>, -[#red]->
_SHAFT = r'-(?:\[#[^\]]+\])?-?'

_ARROW = (
    r'(?:<<?' + _SHAFT + r'>{0,2}'      # return: <- <-- <<- <<--
    r'|' + _SHAFT + r'>>?)'              # forward: -> ->> --> -->>
)

_MESSAGE_RE = re.compile(
    r'^(?P<src>"[^"]+"|[^":]+?)\s*'
    r'(?P<arrow>' + _ARROW + r')'
    r'(?P<activation>\+\+|--)?'
    r'\s*(?P<dst>"[^"]+"|[^":]+?)'
    r'(?:\s+(?P<post_activation>\+\+|--))?\s*'
    r'(?::\s*(?P<text>.*))?$'
)


def classify_arrow(arrow: str, activation: Optional[str] = None) -> ParsedArrow:
    """
    Classify a PlantUML arrow token.

      ->  ->>        SOLID
      --> -->>       DASHED
      <-  <<-        RETURN_SOLID
      <-- <<--       RETURN_DASHED

    Colour brackets (``-[#red]>``) are ignored. *activation* is the
    optional ``++`` / ``--`` suffix.
    """
    core = re.sub(r'\[#[^\]]+\]', '', arrow.strip())
    is_return = core.startswith('<')
    dashed = '--' in core

    if is_return:
        kind = ArrowKind.RETURN_DASHED if dashed else ArrowKind.RETURN_SOLID
    else:
        kind = ArrowKind.DASHED if dashed else ArrowKind.SOLID

    activate = 0
    if activation == '++':
        activate = 1
    elif activation == '--':
        activate = -1
    return ParsedArrow(kind=kind, activate=activate)


def arrow_to_mermaid(parsed: ParsedArrow) -> str:
    """Mermaid arrows are always left to right: ->> or -->>, plus +/- activation."""
    base = '-->>' if parsed.kind.is_dashed else '->>'
    if parsed.activate == 1:
        base += '+'
    elif parsed.activate == -1:
        base += '-'
    return base


def _unquote(name: str) -> str:
    name = name.strip()
    if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
        return name[1:-1]
    return name


def convert_message(line: str) -> Optional[str]:
    """Convert one PlantUML message line, or return None if it is not one."""
    m = _MESSAGE_RE.match(line)
    if not m:
        return None

    src, dst = _unquote(m.group('src')), _unquote(m.group('dst'))
    if not src or not dst:
        return None
    text = (m.group('text') or '').strip()

    # "A -> B ++ : text" and "A ->++ B : text" both activate the target
    activation = m.group('activation') or m.group('post_activation')
    parsed = classify_arrow(m.group('arrow'), activation)
    if parsed.kind.is_return:
        src, dst = dst, src

    label_part = f': {text}' if text else ':'
    return f'{src}{arrow_to_mermaid(parsed)}{dst}{label_part}'


# ─── Line patterns ────────────────────────────────────────────────

_DECLARATION_RE = re.compile(
    r'^(?P<kind>participant|actor|entity|boundary|control|database|collections|queue)\s+'
    r'(?:"(?P<quoted>[^"]+)"|(?P<bare>[^"\s#<:>-][^"\s#<:>]*(?:\s+[^"\s#<:>]+)*?))'
    r'(?:\s+as\s+(?:"(?P<qalias>[^"]+)"|(?P<alias>[^"\s#<:>]+)))?'
    r'(?:\s+<<[^>]*>>)?'
    r'(?:\s+#\w+)?\s*$',
    re.IGNORECASE,
)

_NOTE_RE = re.compile(
    r'^[hr]?note\s+(?P<pos>left|right|over)\s+(?:of\s+)?'
    r'(?P<first>"[^"]+"|[^",:]+?)(?:\s*,\s*(?P<second>"[^"]+"|[^",:]+?))?\s*:\s*(?P<text>.+)$',
    re.IGNORECASE,
)

_NOTE_START_RE = re.compile(r'^[hr]?note\s+(?:left|right|over)\b', re.IGNORECASE)
_NOTE_END_RE = re.compile(r'^end\s*note$', re.IGNORECASE)

_BLOCK_RE = re.compile(
    r'^(?P<kw>loop|alt|else|opt|par|and|critical|break|activate|deactivate)\b\s*(?P<rest>.*)$',
)

_END_RE = re.compile(r'^end$')

_STYLING_RE = re.compile(r'^(?:(?:skinparam|hide|show|scale)\b|!)', re.IGNORECASE)


def convert_declaration(line: str) -> Optional[str]:
    """participant "API Gateway" as API  ->  participant API as API Gateway"""
    m = _DECLARATION_RE.match(line)
    if not m:
        return None

    keyword = 'actor' if m.group('kind').lower() == 'actor' else 'participant'
    quoted, bare = m.group('quoted'), m.group('bare')
    alias = m.group('alias') or m.group('qalias')
    name = re.sub(r'\s+', ' ', (quoted or bare).strip())

    if alias:
        if m.group('qalias') and bare:
            # participant Id as "Long Label"
            return f'{keyword} {name} as {alias}'
        return f'{keyword} {alias} as {name}'
    return f'{keyword} {name}'


def convert_note(line: str) -> Optional[str]:
    m = _NOTE_RE.match(line)
    if not m:
        return None
    pos = m.group('pos').lower()
    first = _unquote(m.group('first'))
    second = m.group('second')
    text = m.group('text').strip().replace('\\n', '<br/>')

    if pos == 'over':
        targets = f'{first},{_unquote(second)}' if second else first
        return f'Note over {targets}: {text}'
    return f'Note {pos} of {first}: {text}'


def convert_block(line: str) -> Optional[str]:
    if _END_RE.match(line):
        return 'end'
    m = _BLOCK_RE.match(line)
    if not m:
        return None
    keyword, rest = m.group('kw'), m.group('rest')
    if re.match(_ARROW, rest):
        # "loop -> Worker : x" is a message from a participant named loop
        return None
    return f'{keyword} {rest}' if rest else keyword


# ─── Sequence diagram conversion ─────────────────────────────────

def convert_plantuml_to_mermaid(content: str, strict: bool = False) -> str:
    """
    Convert a PlantUML sequence diagram to Mermaid.

    Output always starts with the ``sequenceDiagram`` header. Lines that
    match nothing are dropped, or raise :class:`UnrecognizedSyntaxError`
    when *strict* is set.
    """
    lines_out = [MERMAID_HEADER]
    in_multiline_note = False
    in_block_comment = False
    skinparam_depth = 0

    for number, raw in enumerate(content.split('\n'), start=1):
        line = raw.strip()

        if in_block_comment:
            if "'/" in line:
                in_block_comment = False
            continue

        if in_multiline_note:
            if _NOTE_END_RE.match(line):
                in_multiline_note = False
            continue

        if skinparam_depth:
            skinparam_depth = max(0, skinparam_depth + line.count('{') - line.count('}'))
            continue

        # Empty lines, @startuml/@enduml, comments
        if not line or line.startswith('@') or line.startswith("'"):
            continue

        if line.startswith("/'"):
            in_block_comment = "'/" not in line[2:]
            continue

        if _STYLING_RE.match(line):
            if line.lower().startswith('skinparam') and '{' in line:
                skinparam_depth = max(0, line.count('{') - line.count('}'))
            continue

        m = re.match(r'title\s+(.*)', line, re.IGNORECASE)
        if m:
            lines_out.append(f'{INDENT}title {m.group(1).strip()}')
            continue

        if re.match(r'autonumber\b', line, re.IGNORECASE):
            lines_out.append(f'{INDENT}autonumber')
            continue

        converted = convert_declaration(line)
        if converted is None:
            converted = convert_note(line)
        if converted is None and _NOTE_START_RE.match(line) and ':' not in line:
            # Multi-line note: dropped up to "end note"
            in_multiline_note = True
            continue
        if converted is None and _NOTE_END_RE.match(line):
            continue
        if converted is None:
            converted = convert_block(line)
        if converted is None:
            converted = convert_message(line)

        if converted is None:
            if strict:
                raise UnrecognizedSyntaxError(line, number)
            continue

        lines_out.append(f'{INDENT}{converted}')

    return '\n'.join(lines_out)


def is_plantuml(code: str) -> bool:
    """Heuristic dialect check used when the syntax mode is not known."""
    trimmed = code.strip().lower()
    return (
        trimmed.startswith('@startuml')
        or ('->' in trimmed and '->>' not in trimmed)
        or ('participant' in trimmed and 'sequencediagram' not in trimmed)
    )


def to_mermaid(code: str, syntax_mode: str = 'mermaid', strict: bool = False) -> str:
    """Return Mermaid text for *code*, converting when it is PlantUML."""
    if syntax_mode == 'plantuml':
        return convert_plantuml_to_mermaid(code, strict=strict)
    return code


# ─── File conversion ─────────────────────────────────────────────

PLANTUML_SUFFIXES = ('.puml', '.plantuml', '.pu', '.wsd')


def extract_plantuml_blocks(text: str) -> List[str]:
    """Extract PlantUML blocks from text (both @startuml and fenced code blocks)."""
    blocks = []

    for m in re.finditer(r'@startuml\b.*?\n(.*?)@enduml', text, re.DOTALL | re.IGNORECASE):
        blocks.append(m.group(1))

    for m in re.finditer(r'```(?:plantuml|puml)\s*\n(.*?)```', text, re.DOTALL | re.IGNORECASE):
        blocks.append(m.group(1))

    return blocks


def _fenced(mermaid: str) -> str:
    return f'```mermaid\n{mermaid}\n```'


def convert_file(input_path: Path) -> str:
    """Convert a PlantUML file, or every PlantUML block of a Markdown file."""
    content = input_path.read_text(encoding='utf-8', errors='ignore')

    if input_path.suffix.lower() in PLANTUML_SUFFIXES:
        return convert_plantuml_to_mermaid(content)

    if not extract_plantuml_blocks(content):
        print("  ⚠ No PlantUML blocks found", file=sys.stderr)
        return content

    count = 0

    # Fenced blocks first; they may carry @startuml/@enduml inside
    def _replace_fenced(m):
        nonlocal count
        inner = m.group(1).strip()
        if not inner:
            return m.group(0)
        count += 1
        return _fenced(convert_plantuml_to_mermaid(inner))

    result = re.sub(
        r'```(?:plantuml|puml)\s*\n(.*?)```',
        _replace_fenced,
        content,
        flags=re.DOTALL | re.IGNORECASE,
    )

    def _replace_bare(m):
        nonlocal count
        inner = m.group(1).strip()
        if not inner:
            return m.group(0)
        count += 1
        return _fenced(convert_plantuml_to_mermaid(inner))

    result = re.sub(
        r'@startuml\b[^\n]*\n(.*?)@enduml',
        _replace_bare,
        result,
        flags=re.DOTALL | re.IGNORECASE,
    )

    print(f"  [convert] Converted {count} PlantUML block(s) to Mermaid", file=sys.stderr)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Convert PlantUML sequence diagrams to Mermaid",
    )
    parser.add_argument("--input", "-i", help="Input .puml or .md file")
    parser.add_argument("--output", "-o", help="Output file (optional, prints to stdout if omitted)")
    parser.add_argument("--stdin", action="store_true", help="Read from stdin")
    parser.add_argument("--strict", action="store_true", help="Fail on unrecognized lines")
    args = parser.parse_args(argv)

    try:
        if args.stdin:
            result = convert_plantuml_to_mermaid(sys.stdin.read(), strict=args.strict)
        else:
            if not args.input:
                parser.error("Either --input or --stdin is required")
            input_path = Path(args.input)
            if not input_path.exists():
                print(f"Error: Input file not found: {input_path}", file=sys.stderr)
                return 1
            if args.strict and input_path.suffix.lower() in PLANTUML_SUFFIXES:
                result = convert_plantuml_to_mermaid(
                    input_path.read_text(encoding='utf-8'), strict=True)
            else:
                result = convert_file(input_path)
    except UnrecognizedSyntaxError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result, encoding='utf-8')
        print(f"  Output written to {output_path}", file=sys.stderr)
    else:
        print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
