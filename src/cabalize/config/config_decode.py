# src/cabalize/config/config_decode.py
"""Decode a parsed manifest into field sets, collecting warnings.

One traversal handles every scope: the top level, each section body, each
conditional branch and each defaults document. Keys are looked up in the
scope's field registry; unknown keys warn with their full path, keys that
start with ``_`` are skipped silently, and shape mismatches raise
``ParseError`` at the offending path.

``defaults`` are expanded here, while the referencing scope is decoded, so
the resulting field set already carries everything the defaults documents
contributed (with the scope's own fields taking precedence).
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from cabalize.constants import BUILD_TYPES
from cabalize.dependencies import decode_dependencies
from cabalize.errors import InvalidEnumValue, ParseError
from cabalize.logs import getAppLogger
from cabalize.utils import glob_match
from cabalize.value import (
    ROOT_PATH,
    Warnings,
    index_path,
    is_number,
    key_path,
    scalar_text,
    shape_name,
)

from .config_defaults import DefaultsDocument, DefaultsResolver, decode_defaults_refs
from .config_resolve import merge_fieldsets
from .config_types import (
    COMMON_FIELDS,
    SCOPE_FIELDS,
    SECTION_KIND_BY_KEY,
    SECTION_KINDS,
    TOP_LEVEL_FIELDS,
    Conditional,
    FieldSet,
    FieldSpec,
    Flag,
    SectionKindSpec,
)


GlobMatch = Callable[[str, Path], list[str]]


@dataclass(frozen=True)
class DecodeContext:
    """Everything a decode call needs besides the value itself."""

    source: str  # label of the document being decoded
    package_dir: Path  # globs are always relative to the package
    warnings: Warnings
    resolver: DefaultsResolver | None = None
    base_dir: Path = Path()  # local defaults are relative to their referrer
    glob_match: GlobMatch = glob_match
    visited: tuple[str, ...] = ()

    def for_document(self, doc: DefaultsDocument) -> "DecodeContext":
        return replace(
            self,
            source=doc.source,
            base_dir=doc.directory,
            visited=(*self.visited, doc.canonical),
        )


def _expected(ctx: DecodeContext, path: str, expected: str, value: Any) -> ParseError:
    return ParseError(
        ctx.source, path, f"expected {expected}, encountered {shape_name(value)}"
    )


# --- scalar and list kinds --------------------------------------------------------


def _decode_string(spec: FieldSpec, value: Any, path: str, ctx: DecodeContext) -> Any:
    if value is None and spec.nullable:
        return None
    if not isinstance(value, str):
        raise _expected(ctx, path, "String", value)
    return value


def _decode_version(value: Any, path: str, ctx: DecodeContext) -> str:
    if isinstance(value, str):
        return value
    if is_number(value):
        return scalar_text(value)
    raise _expected(ctx, path, "Number or String", value)


def _decode_bool(value: Any, path: str, ctx: DecodeContext) -> bool:
    if not isinstance(value, bool):
        raise _expected(ctx, path, "Boolean", value)
    return value


def _decode_build_type(value: Any, path: str, ctx: DecodeContext) -> str:
    if value not in BUILD_TYPES:
        raise InvalidEnumValue(ctx.source, path, BUILD_TYPES)
    return value


def _decode_list(spec: FieldSpec, value: Any, path: str, ctx: DecodeContext) -> Any:
    if value is None and spec.nullable:
        return None
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise _expected(ctx, path, "Array or String", value)
    items: list[str] = []
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise _expected(ctx, index_path(path, i), "String", item)
        items.append(item)
    return items


def _expand_globs(spec: FieldSpec, patterns: list[str], ctx: DecodeContext) -> list[str]:
    logger = getAppLogger()
    expanded: dict[str, None] = {}
    for pattern in patterns:
        matches = ctx.glob_match(pattern, ctx.package_dir)
        if not matches:
            ctx.warnings.add(
                f'Specified pattern "{pattern}" for {spec.key}'
                " does not match any files"
            )
        logger.trace(f"[GLOB] {spec.key}: {pattern!r} -> {matches}")
        expanded.update(dict.fromkeys(matches))
    return list(expanded)


# --- structured kinds ----------------------------------------------------------------


def _decode_verbatim(value: Any, path: str, ctx: DecodeContext) -> list[Any]:
    """Normalize ``verbatim`` to a list of strings and scalar-valued mappings."""
    entries = value if isinstance(value, list) else [value]
    result: list[Any] = []
    for i, entry in enumerate(entries):
        entry_path = index_path(path, i) if isinstance(value, list) else path
        if isinstance(entry, str):
            result.append(entry)
        elif isinstance(entry, dict):
            for key, field_value in entry.items():
                if isinstance(field_value, (list, dict)):
                    raise _expected(
                        ctx,
                        key_path(entry_path, key),
                        "Null, Boolean, Number, or String",
                        field_value,
                    )
            result.append(dict(entry))
        else:
            raise _expected(ctx, entry_path, "Object or String", entry)
    return result


_FLAG_KEYS = ("description", "manual", "default")


def _decode_flags(value: Any, path: str, ctx: DecodeContext) -> dict[str, Flag]:
    if not isinstance(value, dict):
        raise _expected(ctx, path, "Object", value)
    flags: dict[str, Flag] = {}
    for name, body in value.items():
        flag_path = key_path(path, name)
        if not isinstance(body, dict):
            raise _expected(ctx, flag_path, "Object", body)
        for key in body:
            if key not in _FLAG_KEYS and not key.startswith("_"):
                ctx.warnings.unrecognized(ctx.source, key_path(flag_path, key))
        for required in ("manual", "default"):
            if required not in body:
                raise ParseError(ctx.source, flag_path, f'key "{required}" not present')
        description = body.get("description")
        if description is not None and not isinstance(description, str):
            raise _expected(ctx, key_path(flag_path, "description"), "String", description)
        flags[name] = Flag(
            name=name,
            manual=_decode_bool(body["manual"], key_path(flag_path, "manual"), ctx),
            default=_decode_bool(body["default"], key_path(flag_path, "default"), ctx),
            description=description,
        )
    return flags


def decode_conditional(
    value: Any,
    path: str,
    ctx: DecodeContext,
    fields: Mapping[str, FieldSpec],
) -> Conditional:
    """Decode one ``when`` node, flat or in ``then``/``else`` form."""
    if not isinstance(value, dict):
        raise _expected(ctx, path, "Object", value)
    if "condition" not in value:
        raise ParseError(ctx.source, path, 'key "condition" not present')

    condition = value["condition"]
    if isinstance(condition, bool):
        condition = scalar_text(condition)
    elif not isinstance(condition, str):
        raise _expected(ctx, key_path(path, "condition"), "Boolean or String", condition)

    if "then" not in value and "else" not in value:
        body = {k: v for k, v in value.items() if k != "condition"}
        return Conditional(condition, decode_fields(body, path, ctx, fields))

    for key in value:
        if key not in ("condition", "then", "else") and not key.startswith("_"):
            ctx.warnings.unrecognized(ctx.source, key_path(path, key))
    if "then" not in value:
        raise ParseError(ctx.source, path, 'key "then" not present')

    then = _decode_branch(value["then"], key_path(path, "then"), ctx, fields)
    else_ = None
    if "else" in value:
        else_ = _decode_branch(value["else"], key_path(path, "else"), ctx, fields)
    return Conditional(condition, then, else_)


def _decode_branch(
    value: Any,
    path: str,
    ctx: DecodeContext,
    fields: Mapping[str, FieldSpec],
) -> FieldSet:
    if not isinstance(value, dict):
        raise _expected(ctx, path, "Object", value)
    return decode_fields(value, path, ctx, fields)


def decode_conditionals(
    value: Any,
    path: str,
    ctx: DecodeContext,
    fields: Mapping[str, FieldSpec],
) -> list[Conditional]:
    if isinstance(value, list):
        return [
            decode_conditional(item, index_path(path, i), ctx, fields)
            for i, item in enumerate(value)
        ]
    return [decode_conditional(value, path, ctx, fields)]


# --- fields and scopes ------------------------------------------------------------------


def _decode_field(  # noqa: PLR0911
    spec: FieldSpec,
    value: Any,
    path: str,
    ctx: DecodeContext,
    conditional_fields: Mapping[str, FieldSpec],
) -> Any:
    kind = spec.decode
    if kind == "string":
        return _decode_string(spec, value, path, ctx)
    if kind == "version":
        return _decode_version(value, path, ctx)
    if kind == "bool":
        return _decode_bool(value, path, ctx)
    if kind == "build_type":
        return _decode_build_type(value, path, ctx)
    if kind == "list":
        return _decode_list(spec, value, path, ctx)
    if kind == "globs":
        return _expand_globs(spec, _decode_list(spec, value, path, ctx), ctx)
    if kind == "dependencies":
        return decode_dependencies(value, source=ctx.source, path=path)
    if kind == "conditionals":
        return decode_conditionals(value, path, ctx, conditional_fields)
    if kind == "verbatim":
        return _decode_verbatim(value, path, ctx)
    if kind == "flags":
        return _decode_flags(value, path, ctx)
    if kind == "section":
        section_kind = "executable" if spec.key == "executable" else spec.key
        return decode_section(value, path, ctx, SECTION_KINDS[section_kind])  # pyright: ignore[reportArgumentType]
    if kind == "sections":
        return _decode_sections(value, path, ctx, SECTION_KIND_BY_KEY[spec.key])
    xmsg = f"Unhandled field kind {kind!r} for {spec.key}"
    raise AssertionError(xmsg)


def decode_fields(
    obj: Mapping[str, Any],
    path: str,
    ctx: DecodeContext,
    fields: Mapping[str, FieldSpec],
    conditional_fields: Mapping[str, FieldSpec] | None = None,
) -> FieldSet:
    """Decode the recognized keys of one mapping, warning about the rest.

    ``conditional_fields`` is the registry used for nested ``when`` nodes;
    it defaults to ``fields`` (conditionals nest with the same keys).
    ``defaults`` is skipped here; see ``decode_scope``.
    """
    if conditional_fields is None:
        conditional_fields = fields
    result: FieldSet = {}
    for key, value in obj.items():
        if key.startswith("_"):
            continue
        spec = fields.get(key)
        if spec is None:
            ctx.warnings.unrecognized(ctx.source, key_path(path, key))
            continue
        if spec.decode == "defaults":
            continue
        result[key] = _decode_field(spec, value, key_path(path, key), ctx, conditional_fields)
    return result


def decode_scope(
    obj: Mapping[str, Any],
    path: str,
    ctx: DecodeContext,
    fields: Mapping[str, FieldSpec],
    conditional_fields: Mapping[str, FieldSpec],
) -> FieldSet:
    """Decode a whole document or section body, splicing in its defaults.

    Each defaults document is decoded with the same registries, under its
    own source label, and recursively expands its own defaults first.
    Later references win over earlier ones and the scope's own fields win
    over all of them.
    """
    logger = getAppLogger()
    own = decode_fields(obj, path, ctx, fields, conditional_fields)
    if "defaults" not in obj or "defaults" not in fields:
        return own

    defaults_path = key_path(path, "defaults")
    refs = decode_defaults_refs(
        obj["defaults"], defaults_path, source=ctx.source, warnings=ctx.warnings
    )
    if ctx.resolver is None:
        xmsg = "defaults are not supported without a resolver"
        raise RuntimeError(xmsg)

    inherited: FieldSet = {}
    for ref in refs:
        doc = ctx.resolver.resolve(ref, ctx.visited, base_dir=ctx.base_dir)
        logger.trace(f"[DEFAULTS] {ctx.source} {defaults_path} -> {doc.source}")
        decoded = decode_scope(
            doc.value, ROOT_PATH, ctx.for_document(doc), fields, conditional_fields
        )
        inherited = merge_fieldsets(inherited, decoded)
    return merge_fieldsets(inherited, own)


def decode_section(
    value: Any,
    path: str,
    ctx: DecodeContext,
    kind: SectionKindSpec,
) -> FieldSet:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _expected(ctx, path, "Object", value)
    return decode_scope(value, path, ctx, {**kind.fields, **SCOPE_FIELDS}, kind.fields)


def _decode_sections(
    value: Any,
    path: str,
    ctx: DecodeContext,
    kind: SectionKindSpec,
) -> dict[str, FieldSet]:
    if not isinstance(value, dict):
        raise _expected(ctx, path, "Object", value)
    return {
        name: decode_section(body, key_path(path, name), ctx, kind)
        for name, body in value.items()
    }


def decode_package(value: Any, ctx: DecodeContext) -> FieldSet:
    """Decode a whole ``package.yaml`` (including its defaults)."""
    logger = getAppLogger()
    if not isinstance(value, dict):
        raise _expected(ctx, ROOT_PATH, "Object", value)
    config = decode_scope(
        value, ROOT_PATH, ctx, {**TOP_LEVEL_FIELDS, **SCOPE_FIELDS}, COMMON_FIELDS
    )
    logger.trace(f"[DECODE] {ctx.source}: {len(config)} field(s), {len(ctx.warnings)} warning(s)")
    return config
