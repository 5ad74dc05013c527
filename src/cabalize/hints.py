# src/cabalize/hints.py
"""Sniff layout hints from a previously rendered ``.cabal`` file.

Regenerating a file should produce a minimal diff, so the renderer follows
whatever field order, alignment, indentation and comma style the previous
rendering (possibly hand-edited) used.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from .config.config_types import CommaStyle
from .constants import DEFAULT_INDENTATION
from .logs import getAppLogger


_FIELD_RE = re.compile(r"^([A-Za-z][A-Za-z0-9_.-]*):(\s*)(.*)$")


@dataclass(frozen=True)
class FormattingHints:
    field_order: tuple[str, ...] = ()
    sections_field_order: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    alignment: int | None = None
    indentation: int = DEFAULT_INDENTATION
    comma_style: CommaStyle = "leading"


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _relevant_lines(text: str) -> list[str]:
    lines: list[str] = []
    for raw in text.splitlines():
        line = raw.rstrip()
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        lines.append(line.expandtabs())
    return lines


def _split_sections(lines: list[str]) -> list[tuple[str, list[str]]]:
    """Group indented lines under the unindented, non-field line above them."""
    sections: list[tuple[str, list[str]]] = []
    current: list[str] | None = None
    for line in lines:
        if _indent_of(line) == 0:
            if _FIELD_RE.match(line):
                current = None
            else:
                current = []
                sections.append((line.strip(), current))
        elif current is not None:
            current.append(line)
    return sections


def _direct_fields(body: list[str]) -> tuple[str, ...]:
    if not body:
        return ()
    indent = _indent_of(body[0])
    names: list[str] = []
    for line in body:
        if _indent_of(line) != indent:
            continue
        m = _FIELD_RE.match(line.strip())
        if m:
            names.append(m.group(1))
    return tuple(names)


def _field_lines(lines: list[str]) -> list[str]:
    """Lines that start a field, without the continuation lines below them.

    A line indented deeper than the field above it belongs to that field's
    value (block text, list items), even if it looks like ``word: text``.
    """
    fields: list[str] = []
    field_indent: int | None = None
    for line in lines:
        indent = _indent_of(line)
        if field_indent is not None and indent > field_indent:
            continue
        if _FIELD_RE.match(line.strip()):
            fields.append(line)
            field_indent = indent
        else:
            field_indent = None
    return fields


def _sniff_alignment(lines: list[str]) -> int | None:
    """The value column shared by every inline-valued field, if there is one.

    Fields padded with more than one space must all agree on the column;
    fields with a single space must have names too long to be padded.
    """
    padded: set[int] = set()
    unpadded: list[int] = []
    for line in _field_lines(lines):
        m = _FIELD_RE.match(line.strip())
        if not m or not m.group(3):
            continue
        name, spaces, _ = m.groups()
        column = len(name) + 1 + len(spaces)
        if len(spaces) > 1:
            padded.add(column)
        else:
            unpadded.append(column)
    if len(padded) != 1:
        return None
    alignment = padded.pop()
    if any(column < alignment for column in unpadded):
        return None
    return alignment


def _sniff_comma_style(lines: list[str]) -> CommaStyle:
    for line in lines:
        if line.strip().startswith(", "):
            return "leading"
    for line in lines:
        if line.endswith(","):
            return "trailing"
    return "leading"


def sniff_formatting_hints(text: str) -> FormattingHints:
    """Extract layout hints; comment and blank lines are ignored."""
    logger = getAppLogger()
    lines = _relevant_lines(text)

    field_order = tuple(
        m.group(1)
        for line in lines
        if _indent_of(line) == 0 and (m := _FIELD_RE.match(line))
    )

    sections = _split_sections(lines)
    sections_field_order: dict[str, tuple[str, ...]] = {}
    for header, body in sections:
        sections_field_order.setdefault(header, _direct_fields(body))

    indentation = DEFAULT_INDENTATION
    for _, body in sections:
        if body:
            indentation = _indent_of(body[0])
            break

    hints = FormattingHints(
        field_order=field_order,
        sections_field_order=sections_field_order,
        alignment=_sniff_alignment(lines),
        indentation=indentation,
        comma_style=_sniff_comma_style(lines),
    )
    logger.trace(f"[HINTS] {hints}")
    return hints
