"""
Literal transformer

Adds a gated ``oklch()`` entry to design-token mapping literals embedded in
TypeScript/JavaScript source, e.g.::

    ':root': {
        '--color-red-50': '#FEF2F2',
        '@supports (color: oklch(0 0 0))': {
            '--color-red-50': 'oklch(0.971 0.013 17.38)',
        },
    },

This works on raw text, not on a syntax tree. It assumes one mapping literal
per file, single-quoted keys and values, and one tab per nesting level. The
block is anchored after the last hex entry found and moved in front of the
closing brace that follows it; unusual formatting can misplace it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .colors import FEATURE_GATE, hex_to_oklch, is_hex_color
from .errors import InsertionPointNotFound
from .logger import get_logger
from .stylesheet import newline_style

log = get_logger(__name__)

__all__ = [
    "GATE_KEY",
    "LiteralEntry",
    "LiteralTransformResult",
    "scan_literal",
    "compose_block",
    "find_insertion_offset",
    "transform_literal",
]

GATE_KEY = f"'{FEATURE_GATE}':"

BLOCK_COMMENT = (
    "/**",
    " * OKLCH (https://oklch.com/) Color Primitives",
    " * Used for browsers that support the oklch() function.",
    " */",
)

_HEX_ENTRY_PATTERN = re.compile(r"'([^']*)':\s*'(#[0-9a-fA-F]{3,8})'")
_CLOSING_BRACE_LINE = re.compile(r"\n\s*},?\s*$", re.MULTILINE)
_LEADING_WHITESPACE = re.compile(r"[ \t]*")

DEFAULT_INDENT = "\t"


@dataclass(frozen=True)
class LiteralEntry:
    prop: str
    hex: str
    oklch: str


@dataclass
class LiteralTransformResult:
    output: str
    entries: List[LiteralEntry] = field(default_factory=list)
    already_processed: bool = False
    failures: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.entries) and not self.already_processed

    @property
    def colors_converted(self) -> int:
        return len(self.entries) if self.changed else 0


def scan_literal(content: str, failures: Optional[List[str]] = None) -> Dict[str, LiteralEntry]:
    """Map property -> entry for every ``'key': '#hex'`` pair.

    A repeated key keeps its first position but takes the last value.
    """
    entries: Dict[str, LiteralEntry] = {}
    for match in _HEX_ENTRY_PATTERN.finditer(content):
        prop, hex_value = match.group(1), match.group(2)
        if not is_hex_color(hex_value):
            continue
        oklch = hex_to_oklch(hex_value)
        if oklch is None:
            if failures is not None:
                failures.append(f"{prop}: {hex_value}")
            continue
        entries[prop] = LiteralEntry(prop, hex_value, oklch)
    return entries


def compose_block(
    entries: List[LiteralEntry], indent: str = DEFAULT_INDENT, newline: str = "\n"
) -> str:
    """Render the gated entry; one line per entry, sorted by property."""
    inner = indent + DEFAULT_INDENT
    lines = [""]
    lines.extend(f"{indent}{line}" for line in BLOCK_COMMENT)
    lines.append(f"{indent}{GATE_KEY} {{")
    for entry in sorted(entries, key=lambda e: e.prop):
        lines.append(f"{inner}'{entry.prop}': '{entry.oklch}',")
    lines.append(f"{indent}}},")
    return newline.join(lines)


def _line_indent_at(content: str, offset: int) -> str:
    line_start = content.rfind("\n", 0, offset) + 1
    return _LEADING_WHITESPACE.match(content, line_start).group(0)


def find_insertion_offset(content: str, anchor: str) -> int:
    """Offset right after the line holding the last ``anchor``.

    When a closing-brace line follows, the offset moves in front of it so the
    block stays inside the same mapping. Returns -1 if ``anchor`` is absent.
    """
    last = content.rfind(anchor)
    if last == -1:
        return -1
    offset = content.find("\n", last)
    if offset == -1:
        offset = len(content)
    closing = _CLOSING_BRACE_LINE.search(content, offset)
    if closing:
        offset = closing.start()
    if content[offset - 1:offset] == "\r" and content[offset:offset + 1] == "\n":
        offset -= 1
    return offset


def transform_literal(content: str, path: Optional[Path] = None) -> LiteralTransformResult:
    """Splice a gated ``oklch()`` block into a token mapping literal.

    Raises :class:`InsertionPointNotFound` when the anchor cannot be located.
    """
    if GATE_KEY in content:
        return LiteralTransformResult(output=content, already_processed=True)

    failures: List[str] = []
    collected = scan_literal(content, failures)
    if not collected:
        return LiteralTransformResult(output=content, failures=failures)

    entries = list(collected.values())
    anchor = entries[-1].hex
    offset = find_insertion_offset(content, anchor)
    if offset == -1:
        raise InsertionPointNotFound(anchor, path)

    indent = _line_indent_at(content, content.rfind(anchor)) or DEFAULT_INDENT
    newline = newline_style(content)
    block = compose_block(entries, indent, newline)
    log.debug("Inserting %s entries at offset %s", len(entries), offset)
    output = content[:offset] + newline + block + content[offset:]
    return LiteralTransformResult(output=output, entries=entries, failures=failures)
