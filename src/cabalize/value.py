# src/cabalize/value.py
"""Generic semi-structured values, paths into them, and the YAML adapter.

A manifest (or defaults document) is parsed into a ``Value`` tree made only
of ``None``, ``bool``, ``int``, ``float``, ``str``, ``list`` and ``dict``
with string keys. Everything downstream decodes from this closed set.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Union

import yaml

from .errors import ParseError


Value = Union[None, bool, int, float, str, list["Value"], dict[str, "Value"]]

ROOT_PATH = "$"


# --- shapes ------------------------------------------------------------------


def shape_name(value: Any) -> str:
    """Name the shape of a value as it appears in error messages."""
    if value is None:
        return "Null"
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, (int, float)):
        return "Number"
    if isinstance(value, str):
        return "String"
    if isinstance(value, list):
        return "Array"
    if isinstance(value, dict):
        return "Object"
    return type(value).__name__


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def scalar_text(value: Any) -> str:
    """Render a scalar the way it was most likely written."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# --- paths -------------------------------------------------------------------


def key_path(path: str, key: str) -> str:
    return f"{path}.{key}"


def index_path(path: str, index: int) -> str:
    return f"{path}[{index}]"


# --- warnings ----------------------------------------------------------------


@dataclass
class Warnings:
    """Ordered warning collector threaded through every decode call.

    Messages are kept exactly as reported: no sorting, no de-duplication.
    """

    messages: list[str] = field(default_factory=list)

    def add(self, msg: str) -> None:
        self.messages.append(msg)

    def unrecognized(self, source: str, path: str) -> None:
        self.add(f"{source}: Ignoring unrecognized field {path}")

    def __iter__(self):  # noqa: ANN204
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


# --- parsing -----------------------------------------------------------------


def _to_value(raw: Any) -> Value:
    """Coerce PyYAML output into the closed ``Value`` set."""
    if raw is None or isinstance(raw, (bool, int, float, str)):
        return raw
    if isinstance(raw, dict):
        return {str(k): _to_value(v) for k, v in raw.items()}
    if isinstance(raw, (list, tuple)):
        return [_to_value(v) for v in raw]
    if isinstance(raw, (datetime.date, datetime.datetime)):
        return raw.isoformat()
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def parse_value(text: str | bytes, source: str) -> Value:
    """Parse YAML (or JSON) text into a ``Value`` tree.

    Raises:
        ParseError: if the text is not well-formed YAML.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        problem = getattr(e, "problem", None) or str(e)
        mark = getattr(e, "problem_mark", None)
        where = f" (line {mark.line + 1}, column {mark.column + 1})" if mark else ""
        raise ParseError(source, ROOT_PATH, f"{problem}{where}") from e
    return _to_value(raw)
