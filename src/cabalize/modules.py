# src/cabalize/modules.py
"""Module inference: fill in module lists nobody wrote down.

Modules are discovered by scanning a section's source directories. A
discovered module is *claimed* (and never inferred) when it is declared in
the section, named anywhere in the section's conditional tree, or
discovered in a conditional branch's own source directories.
"""

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath
from typing import Any

from .config.config_types import (
    MODULE_LIST_KEYS,
    Conditional,
    FieldSet,
    Package,
    Section,
)
from .constants import MODULE_EXTENSIONS
from .logs import getAppLogger
from .utils import list_files
from .value import Warnings


ListFiles = Callable[[Path], list[str]]

_COMPONENT_RE = re.compile(r"^[A-Z][A-Za-z0-9_']*$")

_GENERATED_KEYS = ("generated-exposed-modules", "generated-other-modules")


# --- names ------------------------------------------------------------------------


def path_to_module(rel_path: str) -> str | None:
    """Map ``Foo/Bar.hs`` to ``Foo.Bar``; None if it is not a module path."""
    p = PurePosixPath(rel_path)
    if p.suffix not in MODULE_EXTENSIONS:
        return None
    parts = [*p.parent.parts, p.stem]
    if not all(_COMPONENT_RE.match(part) for part in parts):
        return None
    return ".".join(parts)


def paths_module_name(package_name: str) -> str:
    return "Paths_" + package_name.replace("-", "_")


def split_main(main: str) -> tuple[str, str | None]:
    """Return the ``main-is`` file and the ``-main-is`` target, if any.

    ``Main.hs`` is a file and needs no ``-main-is``. ``Foo.Bar`` names a
    module (file ``Foo/Bar.hs``) and ``Foo.run`` names a function in
    module ``Foo``; both need ``-main-is``.
    """
    if PurePosixPath(main).suffix in MODULE_EXTENSIONS:
        return main, None
    parts = main.split(".")
    module_parts = parts if _COMPONENT_RE.match(parts[-1]) else parts[:-1]
    return "/".join(module_parts) + ".hs", main


def main_module(main: str) -> str | None:
    """The module a ``main`` value refers to."""
    file, _ = split_main(main)
    return path_to_module(file)


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


# --- discovery ------------------------------------------------------------------------


class ModuleScanner:
    """Discovers modules under source directories, once per directory.

    A missing directory warns once and contributes no modules.
    """

    def __init__(
        self,
        package_dir: Path,
        *,
        warnings: Warnings,
        list_files: ListFiles = list_files,
    ) -> None:
        self.package_dir = package_dir
        self.warnings = warnings
        self.list_files = list_files
        self._memo: dict[str, list[str]] = {}

    def modules_in(self, source_dir: str) -> list[str]:
        logger = getAppLogger()
        if source_dir in self._memo:
            return self._memo[source_dir]
        try:
            files = self.list_files(self.package_dir / source_dir)
        except FileNotFoundError:
            self.warnings.add(f'Specified source-dir "{source_dir}" does not exist')
            files = []
        modules = _unique(m for f in files if (m := path_to_module(f)))
        logger.trace(f"[INFER] {source_dir}: {modules}")
        self._memo[source_dir] = modules
        return modules

    def discover(self, source_dirs: Sequence[str]) -> list[str]:
        return _unique(m for d in source_dirs for m in self.modules_in(d))


# --- claimed modules --------------------------------------------------------------------


def declared_modules(fields: FieldSet) -> set[str]:
    """Modules a field set names itself (module lists and main)."""
    declared: set[str] = set()
    for key in MODULE_LIST_KEYS:
        declared.update(fields.get(key) or ())
    main = fields.get("main")
    if main and (module := main_module(main)):
        declared.add(module)
    return declared


def _branches(conditionals: Iterable[Conditional]) -> Iterable[FieldSet]:
    for c in conditionals:
        yield c.then
        if c.else_ is not None:
            yield c.else_


def mentioned_modules(conditionals: Iterable[Conditional]) -> set[str]:
    """Every module named anywhere in a conditional tree."""
    mentioned: set[str] = set()
    for branch in _branches(conditionals):
        mentioned |= declared_modules(branch)
        mentioned |= mentioned_modules(branch.get("when", ()))
    return mentioned


def branch_discovered_modules(
    conditionals: Iterable[Conditional], scanner: ModuleScanner
) -> set[str]:
    """Every module discovered in a conditional branch's own source dirs."""
    found: set[str] = set()
    for branch in _branches(conditionals):
        found.update(scanner.discover(branch.get("source-dirs") or ()))
        found |= branch_discovered_modules(branch.get("when", ()), scanner)
    return found


# --- inference ------------------------------------------------------------------------


@dataclass(frozen=True)
class InferredModules:
    exposed: tuple[str, ...] = ()
    other: tuple[str, ...] = ()
    autogen: tuple[str, ...] = ()


def infer(
    source_dirs: Sequence[str],
    explicit: FieldSet,
    conditionals: Sequence[Conditional],
    *,
    scanner: ModuleScanner,
    exposes_modules: bool,
    paths_module: str | None,
) -> InferredModules:
    """Compute a section's final module lists.

    Library-like sections (``exposes_modules``): with exposed-modules given,
    unclaimed modules become other-modules; with other-modules given, or
    with neither, they become exposed-modules; with both given nothing is
    inferred. Other sections only ever infer other-modules. The paths
    module joins other-modules whenever other-modules is inferred, unless
    it is claimed. Generated modules are appended and listed as autogen.
    """
    logger = getAppLogger()
    exposed_given = explicit.get("exposed-modules")
    other_given = explicit.get("other-modules")
    gen_exposed = list(explicit.get("generated-exposed-modules") or ())
    gen_other = list(explicit.get("generated-other-modules") or ())

    if exposes_modules:
        needs_inference = exposed_given is None or other_given is None
    else:
        needs_inference = other_given is None

    unclaimed: list[str] = []
    paths: list[str] = []
    if needs_inference:
        claimed = (
            declared_modules(explicit)
            | mentioned_modules(conditionals)
            | branch_discovered_modules(conditionals, scanner)
        )
        unclaimed = [m for m in scanner.discover(source_dirs) if m not in claimed]
        if paths_module and paths_module not in claimed and paths_module not in unclaimed:
            paths = [paths_module]

    exposed: list[str] = list(exposed_given or ())
    other: list[str] = list(other_given or ())
    if exposes_modules and exposed_given is None:
        exposed = unclaimed
        if other_given is None:
            other = paths
    elif other_given is None:
        other = unclaimed + paths

    result = InferredModules(
        exposed=tuple(exposed + gen_exposed) if exposes_modules else (),
        other=tuple(other + gen_other),
        autogen=tuple(gen_exposed + gen_other),
    )
    logger.trace(f"[INFER] {list(source_dirs)} -> {result}")
    return result


def _with_modules(fields: FieldSet, modules: InferredModules) -> FieldSet:
    """Replace module lists in ``fields`` with ``modules`` (empty lists dropped)."""
    result = {
        k: v
        for k, v in fields.items()
        if k not in (*_GENERATED_KEYS, "exposed-modules", "other-modules")
    }
    pairs: list[tuple[str, Any]] = [
        ("exposed-modules", modules.exposed),
        ("other-modules", modules.other),
        ("autogen-modules", modules.autogen),
    ]
    for key, value in pairs:
        if value:
            result[key] = list(value)
    return result


def _infer_branch(
    fields: FieldSet, outer_claimed: set[str], scanner: ModuleScanner
) -> FieldSet:
    """Inference inside one conditional branch.

    Only a branch with its own source-dirs discovers modules, and only into
    its other-modules; modules of the enclosing scope are never re-listed.
    """
    nested: list[Conditional] = list(fields.get("when") or ())
    gen_exposed = list(fields.get("generated-exposed-modules") or ())
    gen_other = list(fields.get("generated-other-modules") or ())
    exposed = list(fields.get("exposed-modules") or ())
    other_given = fields.get("other-modules")

    if fields.get("source-dirs") and other_given is None:
        claimed = (
            outer_claimed
            | declared_modules(fields)
            | mentioned_modules(nested)
            | branch_discovered_modules(nested, scanner)
        )
        other = [m for m in scanner.discover(fields["source-dirs"]) if m not in claimed]
    else:
        other = list(other_given or ())

    result = _with_modules(
        fields,
        InferredModules(
            exposed=tuple(exposed + gen_exposed),
            other=tuple(other + gen_other),
            autogen=tuple(gen_exposed + gen_other),
        ),
    )
    if nested:
        inner_claimed = outer_claimed | declared_modules(result)
        result["when"] = [_infer_conditional(c, inner_claimed, scanner) for c in nested]
    return result


def _infer_conditional(
    conditional: Conditional, outer_claimed: set[str], scanner: ModuleScanner
) -> Conditional:
    return Conditional(
        condition=conditional.condition,
        then=_infer_branch(conditional.then, outer_claimed, scanner),
        else_=(
            None
            if conditional.else_ is None
            else _infer_branch(conditional.else_, outer_claimed, scanner)
        ),
    )


def infer_section(section: Section, package_name: str, scanner: ModuleScanner) -> Section:
    spec = section.spec
    if section.kind == "custom-setup":
        return section
    modules = infer(
        section.fields.get("source-dirs") or (),
        section.fields,
        section.conditionals,
        scanner=scanner,
        exposes_modules=spec.exposes_modules,
        paths_module=paths_module_name(package_name) if spec.paths_module else None,
    )
    fields = _with_modules(section.fields, modules)
    outer_claimed = declared_modules(fields)
    conditionals = tuple(
        _infer_conditional(c, outer_claimed, scanner) for c in section.conditionals
    )
    return replace(section, fields=fields, conditionals=conditionals)


def infer_package_modules(package: Package, scanner: ModuleScanner) -> Package:
    """Run inference for every section of ``package``."""
    logger = getAppLogger()
    sections = tuple(infer_section(s, package.name, scanner) for s in package.sections)
    logger.debug("Inferred modules for %d section(s)", len(sections))
    return replace(package, sections=sections)
