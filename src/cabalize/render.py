# src/cabalize/render.py
"""Render a resolved ``Package`` as ``.cabal`` text.

Rendering happens in two steps. The package is first turned into a small
element tree (fields, stanzas, raw verbatim lines) in canonical order, with
verbatim overrides applied per scope. The tree is then sorted by the field
order found in the previous rendering and serialized with its layout
(alignment, indentation, comma style).
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from .config.config_types import (
    FIELDS,
    HEADER_ORDER,
    Conditional,
    FieldSet,
    FieldSpec,
    Flag,
    Package,
    Section,
    SourceRepository,
)
from .constants import DEFAULT_CABAL_VERSION, DEFAULT_LANGUAGE, DEFAULT_LIST_INDENT
from .dependencies import render_dependency
from .hints import FormattingHints
from .logs import getAppLogger
from .modules import split_main
from .value import scalar_text


# --- elements -----------------------------------------------------------------------


@dataclass(frozen=True)
class Field:
    name: str
    value: str | tuple[str, ...]
    # "scalar": inline value; "block": value lines below the name;
    # "lines" / "commas": one list item per line
    style: str = "scalar"


@dataclass(frozen=True)
class Stanza:
    header: str
    elements: tuple["Element", ...]
    sortable: bool = True  # follow hinted field order (conditionals do not)


@dataclass(frozen=True)
class Lines:
    """Raw lines from a verbatim string, emitted as written."""

    lines: tuple[str, ...]


Element = Union[Field, Stanza, Lines]


def sort_fields_by(order: Sequence[str], elements: Sequence[Element]) -> list[Element]:
    """Order elements by ``order`` while keeping unknown ones in place.

    A field named in ``order`` sorts by its position there. Any other
    element (unknown field, stanza, raw lines) sorts right after the
    nearest preceding known field. Ties keep their original order.
    """
    index: dict[str, int] = {}
    for i, name in enumerate(order):
        index.setdefault(name, i)

    keyed: list[tuple[tuple[int, int], Element]] = []
    last = -1
    for position, element in enumerate(elements):
        if isinstance(element, Field) and element.name in index:
            last = index[element.name]
        keyed.append(((last, position), element))
    keyed.sort(key=lambda pair: pair[0])
    return [element for _, element in keyed]


# --- fields from field sets -------------------------------------------------------------


def _text_field(name: str, text: str) -> Field:
    lines = text.rstrip("\n").split("\n")
    if len(lines) == 1:
        return Field(name, lines[0])
    return Field(name, tuple(lines), "block")


def _field(spec: FieldSpec, value: Any) -> Field | None:
    name = spec.cabal_name
    if spec.decode == "dependencies":
        items = tuple(render_dependency(n, c) for n, c in value)
        return Field(name, items, "commas") if items else None
    if isinstance(value, bool):
        return Field(name, str(value))
    if isinstance(value, str):
        return _text_field(name, value)
    items = tuple(value)
    if not items:
        return None
    if spec.style == "words":
        return Field(name, " ".join(items))
    if spec.style == "joined":
        return Field(name, ", ".join(items))
    if spec.style == "commas":
        return Field(name, items, "commas")
    return Field(name, items, "lines")


def _with_main(fields: FieldSet) -> FieldSet:
    """Turn ``main`` into its ``main-is`` file plus a ``-main-is`` option."""
    if "main" not in fields:
        return fields
    result = dict(fields)
    file, target = split_main(fields["main"])
    result["main"] = file
    if target is not None:
        result["ghc-options"] = [*fields.get("ghc-options", ()), f"-main-is {target}"]
    return result


def _fields(
    fields: FieldSet, order: Iterable[str], registry: Mapping[str, FieldSpec]
) -> list[Element]:
    elements: list[Element] = []
    for key in order:
        if key not in fields:
            continue
        field = _field(registry.get(key) or FIELDS[key], fields[key])
        if field is not None:
            elements.append(field)
    return elements


def _branch(
    header: str,
    fields: FieldSet,
    order: Sequence[str],
    registry: Mapping[str, FieldSpec],
) -> Stanza:
    fields = _with_main(fields)
    elements = _fields(fields, order, registry)
    for conditional in fields.get("when") or ():
        elements.extend(_conditional(conditional, order, registry))
    return Stanza(header, tuple(elements), sortable=False)


def _conditional(
    conditional: Conditional,
    order: Sequence[str],
    registry: Mapping[str, FieldSpec],
) -> list[Element]:
    stanzas: list[Element] = [
        _branch(f"if {conditional.condition}", conditional.then, order, registry)
    ]
    if conditional.else_ is not None:
        stanzas.append(_branch("else", conditional.else_, order, registry))
    return stanzas


# --- verbatim -----------------------------------------------------------------------------


def apply_verbatim(elements: Sequence[Element], entries: Iterable[Any]) -> list[Element]:
    """Apply verbatim overrides to the elements of one scope.

    Strings are appended as raw lines. Mapping entries replace a field of
    the same name in place, remove it when the value is null, or are
    appended when no such field exists.
    """
    result = list(elements)
    for entry in entries:
        if isinstance(entry, str):
            result.append(Lines(tuple(entry.rstrip("\n").split("\n"))))
            continue
        for name, value in entry.items():
            index = next(
                (
                    i
                    for i, el in enumerate(result)
                    if isinstance(el, Field) and el.name == name
                ),
                None,
            )
            if value is None:
                if index is not None:
                    del result[index]
                continue
            field = _text_field(name, scalar_text(value))
            if index is None:
                result.append(field)
            else:
                result[index] = field
    return result


# --- package structure ---------------------------------------------------------------------


def _branch_fieldsets(conditionals: Iterable[Conditional]) -> Iterable[FieldSet]:
    for c in conditionals:
        for branch in (c.then, c.else_):
            if branch is not None:
                yield branch
                yield from _branch_fieldsets(branch.get("when") or ())


def _section_fieldsets(section: Section) -> Iterable[FieldSet]:
    yield section.fields
    yield from _branch_fieldsets(section.conditionals)


def required_cabal_version(package: Package) -> tuple[int, ...]:
    """The lowest cabal-version supporting every feature the package uses."""
    version = DEFAULT_CABAL_VERSION
    if package.fields.get("extra-doc-files"):
        version = max(version, (1, 18))
    for section in package.sections:
        if section.kind == "custom-setup":
            version = max(version, (1, 24))
        if section.kind == "internal-library":
            version = max(version, (2, 0))
        for fields in _section_fieldsets(section):
            if fields.get("reexported-modules"):
                version = max(version, (1, 22))
            if fields.get("signatures") or fields.get("autogen-modules"):
                version = max(version, (2, 0))
    return version


def _header_elements(package: Package) -> list[Element]:
    header = package.fields
    elements: list[Element] = [Field("name", package.name), Field("version", package.version)]
    for key in HEADER_ORDER:
        if key in ("name", "version"):
            continue
        if key == "cabal-version":
            version = ".".join(str(n) for n in required_cabal_version(package))
            elements.append(Field("cabal-version", f">= {version}"))
            continue
        if key not in header:
            continue
        if key == "license-file" and not header[key]:
            continue
        if key == "license-file" and len(header[key]) > 1:
            elements.append(Field("license-files", tuple(header[key]), "lines"))
            continue
        if key == "license-file":
            elements.append(Field("license-file", header[key][0]))
            continue
        field = _field(FIELDS[key], header[key])
        if field is not None:
            elements.append(field)
    return elements


def _source_repository(repo: SourceRepository) -> Stanza:
    elements: list[Element] = [Field("type", repo.kind), Field("location", repo.location)]
    if repo.subdir:
        elements.append(Field("subdir", repo.subdir))
    return Stanza("source-repository head", tuple(elements))


def _flag(flag: Flag) -> Stanza:
    elements: list[Element] = []
    if flag.description is not None:
        elements.append(_text_field("description", flag.description))
    elements.append(Field("manual", str(flag.manual)))
    elements.append(Field("default", str(flag.default)))
    return Stanza(f"flag {flag.name}", tuple(elements))


def _section(section: Section) -> Stanza:
    spec = section.spec
    elements: list[Element] = []
    if section.kind in ("test", "benchmark"):
        elements.append(Field("type", "exitcode-stdio-1.0"))
    elements.extend(_fields(_with_main(section.fields), spec.field_order, spec.fields))
    for conditional in section.conditionals:
        elements.extend(_conditional(conditional, spec.field_order, spec.fields))
    if section.kind != "custom-setup":
        elements.append(Field("default-language", DEFAULT_LANGUAGE))
    return Stanza(section.header, tuple(apply_verbatim(elements, section.verbatim)))


def package_elements(package: Package) -> list[Element]:
    """The whole package as an element tree, in canonical order."""
    elements = _header_elements(package)
    if package.source_repository is not None:
        elements.append(_source_repository(package.source_repository))
    elements.extend(_flag(flag) for flag in package.flags)
    elements.extend(_section(section) for section in package.sections)
    return apply_verbatim(elements, package.verbatim)


# --- serialization --------------------------------------------------------------------------


def _label(name: str, alignment: int | None) -> str:
    label = f"{name}:"
    if alignment is not None and len(label) + 1 <= alignment:
        return label.ljust(alignment)
    return label + " "


def _render_field(field: Field, indent: str, hints: FormattingHints) -> list[str]:
    if isinstance(field.value, str):
        if not field.value:
            return [f"{indent}{field.name}:"]
        return [f"{indent}{_label(field.name, hints.alignment)}{field.value}"]

    items = list(field.value)
    item_indent = indent + " " * DEFAULT_LIST_INDENT
    out = [f"{indent}{field.name}:"]
    if field.style == "block":
        # an empty line would end the field
        out.extend(f"{item_indent}{line or '.'}" for line in items)
    elif field.style == "commas" and hints.comma_style == "leading":
        out.append(f"{item_indent}{items[0]}")
        comma_indent = indent + " " * (DEFAULT_LIST_INDENT - 2)
        out.extend(f"{comma_indent}, {item}" for item in items[1:])
    elif field.style == "commas":
        last = len(items) - 1
        out.extend(
            f"{item_indent}{item}{',' if i < last else ''}" for i, item in enumerate(items)
        )
    else:
        out.extend(f"{item_indent}{item}" for item in items)
    return out


def _render_elements(
    elements: Sequence[Element],
    depth: int,
    hints: FormattingHints,
) -> list[str]:
    indent = " " * (hints.indentation * depth)
    out: list[str] = []
    previous: Element | None = None
    for element in elements:
        if (
            depth == 0
            and previous is not None
            and (isinstance(element, Stanza) or isinstance(previous, Stanza))
        ):
            out.append("")
        if isinstance(element, Field):
            out.extend(_render_field(element, indent, hints))
        elif isinstance(element, Lines):
            out.extend(f"{indent}{line}" if line else "" for line in element.lines)
        else:
            children: Sequence[Element] = element.elements
            if element.sortable:
                order = hints.sections_field_order.get(element.header, ())
                children = sort_fields_by(order, children)
            out.append(f"{indent}{element.header}")
            out.extend(_render_elements(children, depth + 1, hints))
        previous = element
    return out


def render_package(package: Package, hints: FormattingHints | None = None) -> str:
    """Serialize ``package``, following ``hints`` from a previous rendering."""
    logger = getAppLogger()
    hints = hints or FormattingHints()
    elements = sort_fields_by(hints.field_order, package_elements(package))
    lines = _render_elements(elements, 0, hints)
    logger.trace(f"[RENDER] {package.name}: {len(lines)} line(s)")
    return "\n".join(lines) + "\n"
