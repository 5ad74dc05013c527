# src/cabalize/dependencies.py
"""Dependency lists: decoding and version-constraint normalization.

A decoded dependency list is an ordered list of ``(name, constraint)``
pairs (``None`` for "any version"). Entries are kept exactly as given:
merging concatenates lists and repeated names are not reconciled.
"""

import re
from typing import Any

from .errors import ParseError
from .logs import getAppLogger
from .value import index_path, is_number, key_path, shape_name


Dependencies = list[tuple[str, str | None]]

_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9_:.-]*)\s*(.*?)\s*$")
_BINARY_OPS_RE = re.compile(r"\s*(&&|\|\|)\s*")


# --- constraints ---------------------------------------------------------------


def normalize_constraint(constraint: str | None) -> str | None:
    """Collapse a version constraint into its canonical spacing.

    Operators sit directly against their version (``>= 2`` -> ``>=2``) and
    the ``&&`` / ``||`` combinators are surrounded by single spaces.
    An empty constraint means "any version" and normalizes to None.

    >>> normalize_constraint(">= 2 && < 3")
    '>=2 && <3'
    """
    if constraint is None:
        return None
    compact = "".join(constraint.split())
    if not compact:
        return None
    return _BINARY_OPS_RE.sub(lambda m: f" {m.group(1)} ", compact)


def parse_dependency(text: str, *, source: str, path: str) -> tuple[str, str | None]:
    """Split ``"name constraint"`` into its name and normalized constraint."""
    m = _NAME_RE.match(text)
    if not m:
        xmsg = f"invalid dependency {text!r}"
        raise ParseError(source, path, xmsg)
    name, rest = m.groups()
    return name, normalize_constraint(rest)


def render_dependency(name: str, constraint: str | None) -> str:
    if not constraint:
        return name
    return f"{name} {constraint}"


# --- decoding ------------------------------------------------------------------


def _decode_constraint(value: Any, *, source: str, path: str) -> str | None:
    """Decode the right-hand side of a ``name: constraint`` entry."""
    if value is None:
        return None
    if isinstance(value, str):
        return normalize_constraint(value)
    if is_number(value):
        return f"=={value}"
    if isinstance(value, dict):
        version = value.get("version")
        if version is None:
            return None
        return _decode_constraint(version, source=source, path=key_path(path, "version"))
    xmsg = f"expected Null, Object, Number, or String, encountered {shape_name(value)}"
    raise ParseError(source, path, xmsg)


def decode_dependencies(value: Any, *, source: str, path: str) -> Dependencies:
    """Decode the three accepted dependency forms.

    - a single string: ``"base >= 4"``
    - an array of strings or ``{name, version}`` objects
    - an object of ``name: constraint`` entries

    Raises:
        ParseError: for any other shape, citing the offending element.
    """
    logger = getAppLogger()
    deps: Dependencies = []

    if isinstance(value, str):
        name, constraint = parse_dependency(value, source=source, path=path)
        deps.append((name, constraint))

    elif isinstance(value, list):
        for i, item in enumerate(value):
            item_path = index_path(path, i)
            if isinstance(item, str):
                name, constraint = parse_dependency(item, source=source, path=item_path)
            elif isinstance(item, dict):
                name = item.get("name")
                if not isinstance(name, str):
                    xmsg = 'key "name" not present'
                    raise ParseError(source, item_path, xmsg)
                constraint = _decode_constraint(
                    item.get("version"), source=source, path=key_path(item_path, "version")
                )
            else:
                xmsg = f"expected Object or String, encountered {shape_name(item)}"
                raise ParseError(source, item_path, xmsg)
            deps.append((name, constraint))

    elif isinstance(value, dict):
        for name, rhs in value.items():
            constraint = _decode_constraint(rhs, source=source, path=key_path(path, name))
            deps.append((name, constraint))

    else:
        xmsg = f"expected Array, Object, or String, encountered {shape_name(value)}"
        raise ParseError(source, path, xmsg)

    logger.trace(f"[DEPS] {path}: {len(deps)} dependencies")
    return deps
