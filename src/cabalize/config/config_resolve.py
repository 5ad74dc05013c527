# src/cabalize/config/config_resolve.py
"""Merge decoded field sets into the resolved package.

Precedence, lowest first: inherited defaults, top-level (global) fields,
section fields. Verbatim overrides are applied later, at render time.
Conditionals are never folded into a field set: each section keeps the
global conditionals followed by its own, as a separate ordered tree.
"""

from pathlib import Path
from typing import Any

from cabalize.constants import (
    DEFAULT_BUILD_TYPE,
    DEFAULT_LICENSE_FILE,
    DEFAULT_VERSION,
    GITHUB_URL,
)
from cabalize.errors import ParseError
from cabalize.logs import getAppLogger
from cabalize.value import ROOT_PATH, Warnings, key_path

from .config_types import (
    COMMON_FIELDS,
    FIELDS,
    HEADER_ORDER,
    SECTION_KINDS,
    FieldSet,
    Package,
    Section,
    SectionKind,
    SourceRepository,
)


# --- merging --------------------------------------------------------------------


def _merge_value(key: str, lower: Any, higher: Any) -> Any:
    spec = FIELDS.get(key)
    kind = spec.merge if spec else "replace"
    if lower is None or higher is None or kind == "replace":
        return higher
    if kind == "concat":
        return [*lower, *higher]
    if kind == "keyed":
        return {**lower, **higher}
    if kind == "section":
        return merge_fieldsets(lower, higher)
    # sections: merge same-named bodies, append new names
    merged = dict(lower)
    for name, body in higher.items():
        merged[name] = merge_fieldsets(merged[name], body) if name in merged else body
    return merged


def merge_fieldsets(lower: FieldSet, higher: FieldSet) -> FieldSet:
    """Merge two field sets; ``higher`` takes precedence.

    Per field: lists (dependencies included) concatenate, lower items first
    and without de-duplication; flags merge by name; nested sections merge
    recursively; anything else is replaced.
    """
    merged = dict(lower)
    for key, value in higher.items():
        merged[key] = _merge_value(key, merged[key], value) if key in merged else value
    return merged


def merge(global_fields: FieldSet, section_fields: FieldSet) -> FieldSet:
    """Merge top-level common fields into one section's own fields.

    Only common build-info fields take part; conditionals and verbatim
    entries of either side are left out.
    """
    lower = {
        k: v for k, v in global_fields.items() if k in COMMON_FIELDS and k != "when"
    }
    higher = {k: v for k, v in section_fields.items() if k not in ("when", "verbatim")}
    return merge_fieldsets(lower, higher)


# --- sections ---------------------------------------------------------------------


def resolve_section(
    kind: SectionKind,
    name: str | None,
    body: FieldSet,
    config: FieldSet,
) -> Section:
    """Build one section from its decoded body and the top-level config."""
    logger = getAppLogger()
    spec = SECTION_KINDS[kind]
    own_when = tuple(body.get("when", ()))
    if spec.takes_globals:
        fields = merge(config, body)
        conditionals = (*config.get("when", ()), *own_when)
    else:
        fields = {k: v for k, v in body.items() if k not in ("when", "verbatim")}
        conditionals = own_when
    logger.trace(
        f"[MERGE] {spec.header} {name or ''}: {len(fields)} field(s),"
        f" {len(conditionals)} conditional(s)"
    )
    return Section(
        kind=kind,
        name=name,
        fields=fields,
        conditionals=conditionals,
        verbatim=tuple(body.get("verbatim", ())),
    )


def _resolve_sections(
    config: FieldSet, package_name: str, *, source: str, warnings: Warnings
) -> list[Section]:
    sections: list[Section] = []
    if "custom-setup" in config:
        sections.append(resolve_section("custom-setup", None, config["custom-setup"], config))
    if "library" in config:
        sections.append(resolve_section("library", None, config["library"], config))
    for name, body in config.get("internal-libraries", {}).items():
        sections.append(resolve_section("internal-library", name, body, config))

    executables: dict[str, FieldSet] = dict(config.get("executables", {}))
    if "executable" in config:
        if executables:
            warnings.add(
                f'{source}: Ignoring field "executable" in favor of "executables"'
            )
        else:
            executables = {package_name: config["executable"]}
    for name, body in executables.items():
        sections.append(resolve_section("executable", name, body, config))

    for name, body in config.get("tests", {}).items():
        sections.append(resolve_section("test", name, body, config))
    for name, body in config.get("benchmarks", {}).items():
        sections.append(resolve_section("benchmark", name, body, config))
    return sections


# --- package header -------------------------------------------------------------------


def _split_github(
    github: str, *, source: str
) -> tuple[str, str | None]:
    """Split ``owner/repo[/subdir]`` into its repository url and subdir."""
    parts = github.strip("/").split("/")
    if len(parts) < 2 or not all(parts[:2]):  # noqa: PLR2004
        xmsg = f"expected owner/repo, but encountered {github!r}"
        raise ParseError(source, key_path(ROOT_PATH, "github"), xmsg)
    url = f"{GITHUB_URL}/{parts[0]}/{parts[1]}"
    subdir = "/".join(parts[2:]) or None
    return url, subdir


def _resolve_header(
    config: FieldSet,
    *,
    source: str,
    package_dir: Path,
    has_custom_setup: bool,
) -> tuple[FieldSet, SourceRepository | None]:
    header: FieldSet = {
        k: config[k]
        for k in HEADER_ORDER
        if k in config and k not in ("name", "version")
    }

    repo: SourceRepository | None = None
    github = config.get("github")
    if github is not None:
        url, subdir = _split_github(github, source=source)
        header.setdefault("homepage", f"{url}#readme")
        header.setdefault("bug-reports", f"{url}/issues")
        repo = SourceRepository(location=url, subdir=subdir)
    elif config.get("git") is not None:
        repo = SourceRepository(location=config["git"])

    if "maintainer" not in header and "author" in header:
        header["maintainer"] = header["author"]

    if "license-file" not in header and (package_dir / DEFAULT_LICENSE_FILE).is_file():
        header["license-file"] = [DEFAULT_LICENSE_FILE]

    if "build-type" not in header:
        header["build-type"] = "Custom" if has_custom_setup else DEFAULT_BUILD_TYPE

    # explicit nulls suppress derived values
    header = {k: v for k, v in header.items() if v is not None}
    return header, repo


def resolve_package(
    config: FieldSet,
    *,
    source: str,
    package_dir: Path,
    warnings: Warnings,
) -> Package:
    """Turn a decoded manifest into the resolved ``Package``.

    Raises:
        ParseError: if the package has no name (after defaults expansion).
    """
    logger = getAppLogger()
    name = config.get("name")
    if name is None:
        raise ParseError(source, ROOT_PATH, 'key "name" not present')

    sections = _resolve_sections(config, name, source=source, warnings=warnings)
    header, repo = _resolve_header(
        config,
        source=source,
        package_dir=package_dir,
        has_custom_setup="custom-setup" in config,
    )
    package = Package(
        name=name,
        version=config.get("version", DEFAULT_VERSION),
        fields=header,
        sections=tuple(sections),
        flags=tuple(config.get("flags", {}).values()),
        source_repository=repo,
        verbatim=tuple(config.get("verbatim", ())),
    )
    logger.debug(
        "Resolved package %s-%s with %d section(s)",
        package.name,
        package.version,
        len(package.sections),
    )
    return package
