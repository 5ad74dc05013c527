# src/cabalize/config/config_types.py
"""Field registry and decoded manifest types.

Every manifest key is described once in ``FIELDS``: how its value is
decoded, how two values for it merge, and how it is named and laid out in
the rendered ``.cabal`` file. The same key always behaves the same way,
whatever scope (top level, section, conditional, defaults document) it
appears in; the per-scope ``*_KEYS`` sets only decide where a key is
recognized.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal


# --- kinds ---------------------------------------------------------------------

DecodeKind = Literal[
    "string",  # String
    "version",  # Number or String
    "bool",  # Boolean
    "build_type",  # one of BUILD_TYPES
    "list",  # String or Array of String
    "globs",  # like list, expanded against the package directory
    "dependencies",  # see cabalize.dependencies
    "conditionals",  # `when`
    "verbatim",  # String, Object of scalars, or Array of those
    "defaults",  # consumed while decoding, never stored
    "section",  # one section body
    "sections",  # Object of named section bodies
    "flags",  # Object of flag definitions
]

MergeKind = Literal[
    "replace",  # higher precedence wins outright
    "concat",  # lower items first, then higher items
    "keyed",  # name-keyed mapping: higher replaces same name, new names append
    "section",  # recursive field-set merge
    "sections",  # recursive field-set merge per section name
]

RenderStyle = Literal[
    "scalar",  # name: value
    "lines",  # one item per line
    "commas",  # one item per line, comma separated
    "words",  # space separated on a single line
    "joined",  # comma separated on a single line
]

SectionKind = Literal[
    "library",
    "internal-library",
    "executable",
    "test",
    "benchmark",
    "custom-setup",
]

CommaStyle = Literal["leading", "trailing"]

# A decoded scope: manifest key -> decoded value. Keys never present in the
# source are absent; an explicit `null` for a nullable field is kept as None.
FieldSet = dict[str, Any]


@dataclass(frozen=True)
class FieldSpec:
    key: str
    decode: DecodeKind
    merge: MergeKind = "replace"
    cabal: str | None = None  # rendered field name (None: not rendered as-is)
    style: RenderStyle = "scalar"
    nullable: bool = False

    @property
    def cabal_name(self) -> str:
        return self.cabal or self.key


def _specs(*specs: FieldSpec) -> dict[str, FieldSpec]:
    return {s.key: s for s in specs}


# --- package header fields -------------------------------------------------------

PACKAGE_FIELDS: dict[str, FieldSpec] = _specs(
    FieldSpec("name", "string"),
    FieldSpec("version", "version"),
    FieldSpec("synopsis", "string"),
    FieldSpec("description", "string"),
    FieldSpec("category", "string"),
    FieldSpec("stability", "string"),
    FieldSpec("homepage", "string", nullable=True),
    FieldSpec("bug-reports", "string", nullable=True),
    FieldSpec("author", "list", style="joined"),
    FieldSpec("maintainer", "list", style="joined", nullable=True),
    FieldSpec("copyright", "list", style="joined"),
    FieldSpec("license", "string"),
    FieldSpec("license-file", "list", style="lines"),
    FieldSpec("tested-with", "list", style="joined"),
    FieldSpec("build-type", "build_type"),
    FieldSpec("extra-source-files", "globs", "concat", style="lines"),
    FieldSpec("extra-doc-files", "globs", "concat", style="lines"),
    FieldSpec("data-files", "globs", "concat", style="lines"),
    FieldSpec("data-dir", "string"),
    FieldSpec("github", "string"),
    FieldSpec("git", "string"),
    FieldSpec("flags", "flags", "keyed"),
    FieldSpec("custom-setup", "section", "section"),
    FieldSpec("library", "section", "section"),
    FieldSpec("internal-libraries", "sections", "sections"),
    FieldSpec("executable", "section", "section"),
    FieldSpec("executables", "sections", "sections"),
    FieldSpec("tests", "sections", "sections"),
    FieldSpec("benchmarks", "sections", "sections"),
)

# --- fields shared by the top level, every section and every conditional -------

COMMON_FIELDS: dict[str, FieldSpec] = _specs(
    FieldSpec("source-dirs", "list", "concat", "hs-source-dirs", "lines"),
    FieldSpec("default-extensions", "list", "concat", style="words"),
    FieldSpec("other-extensions", "list", "concat", style="words"),
    FieldSpec("ghc-options", "list", "concat", style="words"),
    FieldSpec("ghc-prof-options", "list", "concat", style="words"),
    FieldSpec("ghc-shared-options", "list", "concat", style="words"),
    FieldSpec("ghcjs-options", "list", "concat", style="words"),
    FieldSpec("cpp-options", "list", "concat", style="words"),
    FieldSpec("cc-options", "list", "concat", style="words"),
    FieldSpec("c-sources", "globs", "concat", style="lines"),
    FieldSpec("cxx-options", "list", "concat", style="words"),
    FieldSpec("cxx-sources", "globs", "concat", style="lines"),
    FieldSpec("js-sources", "globs", "concat", style="lines"),
    FieldSpec("extra-lib-dirs", "list", "concat", style="lines"),
    FieldSpec("extra-libraries", "list", "concat", style="lines"),
    FieldSpec("extra-frameworks-dirs", "list", "concat", style="lines"),
    FieldSpec("frameworks", "list", "concat", style="lines"),
    FieldSpec("include-dirs", "list", "concat", style="lines"),
    FieldSpec("install-includes", "list", "concat", style="lines"),
    FieldSpec("ld-options", "list", "concat", style="words"),
    FieldSpec("pkg-config-dependencies", "list", "concat", "pkgconfig-depends", "commas"),
    FieldSpec("dependencies", "dependencies", "concat", "build-depends", "commas"),
    FieldSpec("build-tools", "list", "concat", style="commas"),
    FieldSpec("buildable", "bool"),
    FieldSpec("when", "conditionals", "concat"),
)

# --- section-specific fields ------------------------------------------------------

LIBRARY_FIELDS: dict[str, FieldSpec] = _specs(
    FieldSpec("exposed", "bool"),
    FieldSpec("exposed-modules", "list", "concat", style="lines"),
    FieldSpec("other-modules", "list", "concat", style="lines"),
    FieldSpec("generated-exposed-modules", "list", "concat"),
    FieldSpec("generated-other-modules", "list", "concat"),
    FieldSpec("reexported-modules", "list", "concat", style="commas"),
    FieldSpec("signatures", "list", "concat", style="lines"),
)

EXECUTABLE_FIELDS: dict[str, FieldSpec] = _specs(
    FieldSpec("main", "string", cabal="main-is"),
    FieldSpec("other-modules", "list", "concat", style="lines"),
    FieldSpec("generated-other-modules", "list", "concat"),
)

CUSTOM_SETUP_FIELDS: dict[str, FieldSpec] = _specs(
    FieldSpec("dependencies", "dependencies", "concat", "setup-depends", "commas"),
)

# Only valid where a whole document or section body is decoded, never inside
# a conditional branch.
SCOPE_FIELDS: dict[str, FieldSpec] = _specs(
    FieldSpec("defaults", "defaults"),
    FieldSpec("verbatim", "verbatim", "concat"),
)

# Produced by module inference, never read from a manifest.
INFERRED_FIELDS: dict[str, FieldSpec] = _specs(
    FieldSpec("autogen-modules", "list", "concat", style="lines"),
)

FIELDS: dict[str, FieldSpec] = {
    **PACKAGE_FIELDS,
    **COMMON_FIELDS,
    **LIBRARY_FIELDS,
    **EXECUTABLE_FIELDS,
    **SCOPE_FIELDS,
    **INFERRED_FIELDS,
}

MODULE_LIST_KEYS: tuple[str, ...] = (
    "exposed-modules",
    "other-modules",
    "generated-exposed-modules",
    "generated-other-modules",
)

# Package-level fields that take part in the header rather than any section.
HEADER_ORDER: tuple[str, ...] = (
    "name",
    "version",
    "synopsis",
    "description",
    "category",
    "stability",
    "homepage",
    "bug-reports",
    "author",
    "maintainer",
    "copyright",
    "license",
    "license-file",
    "tested-with",
    "build-type",
    "cabal-version",
    "extra-source-files",
    "extra-doc-files",
    "data-files",
    "data-dir",
)

# Build-info fields in rendered order (after the module lists of a section).
BUILD_INFO_ORDER: tuple[str, ...] = (
    "source-dirs",
    "default-extensions",
    "other-extensions",
    "ghc-options",
    "ghc-prof-options",
    "ghc-shared-options",
    "ghcjs-options",
    "cpp-options",
    "cc-options",
    "c-sources",
    "cxx-options",
    "cxx-sources",
    "js-sources",
    "extra-lib-dirs",
    "extra-libraries",
    "extra-frameworks-dirs",
    "frameworks",
    "include-dirs",
    "install-includes",
    "ld-options",
    "pkg-config-dependencies",
    "dependencies",
    "build-tools",
    "buildable",
)


# --- section kinds ------------------------------------------------------------


@dataclass(frozen=True)
class SectionKindSpec:
    kind: SectionKind
    manifest_key: str  # where the section lives in the manifest
    header: str  # stanza keyword in the rendered file
    named: bool
    fields: Mapping[str, FieldSpec]  # recognized keys, besides SCOPE_FIELDS
    field_order: tuple[str, ...]  # rendered order of the section's own fields
    exposes_modules: bool = False  # infers exposed-modules, not only other-modules
    paths_module: bool = True  # gets the synthetic Paths_<name> module
    takes_globals: bool = True  # receives top-level common fields


_LIBRARY_ORDER = (
    "exposed",
    "exposed-modules",
    "other-modules",
    "autogen-modules",
    "reexported-modules",
    "signatures",
    *BUILD_INFO_ORDER,
)
_EXECUTABLE_ORDER = ("main", "other-modules", "autogen-modules", *BUILD_INFO_ORDER)

SECTION_KINDS: dict[SectionKind, SectionKindSpec] = {
    "custom-setup": SectionKindSpec(
        kind="custom-setup",
        manifest_key="custom-setup",
        header="custom-setup",
        named=False,
        fields=CUSTOM_SETUP_FIELDS,
        field_order=("dependencies",),
        paths_module=False,
        takes_globals=False,
    ),
    "library": SectionKindSpec(
        kind="library",
        manifest_key="library",
        header="library",
        named=False,
        fields={**COMMON_FIELDS, **LIBRARY_FIELDS},
        field_order=_LIBRARY_ORDER,
        exposes_modules=True,
    ),
    "internal-library": SectionKindSpec(
        kind="internal-library",
        manifest_key="internal-libraries",
        header="library",
        named=True,
        fields={**COMMON_FIELDS, **LIBRARY_FIELDS},
        field_order=_LIBRARY_ORDER,
        exposes_modules=True,
    ),
    "executable": SectionKindSpec(
        kind="executable",
        manifest_key="executables",
        header="executable",
        named=True,
        fields={**COMMON_FIELDS, **EXECUTABLE_FIELDS},
        field_order=_EXECUTABLE_ORDER,
    ),
    "test": SectionKindSpec(
        kind="test",
        manifest_key="tests",
        header="test-suite",
        named=True,
        fields={**COMMON_FIELDS, **EXECUTABLE_FIELDS},
        field_order=_EXECUTABLE_ORDER,
    ),
    "benchmark": SectionKindSpec(
        kind="benchmark",
        manifest_key="benchmarks",
        header="benchmark",
        named=True,
        fields={**COMMON_FIELDS, **EXECUTABLE_FIELDS},
        field_order=_EXECUTABLE_ORDER,
    ),
}

SECTION_KIND_BY_KEY: dict[str, SectionKindSpec] = {
    spec.manifest_key: spec for spec in SECTION_KINDS.values()
}

# Keys recognized at the top of a package.yaml (and of top-level defaults).
TOP_LEVEL_FIELDS: dict[str, FieldSpec] = {**PACKAGE_FIELDS, **COMMON_FIELDS}


# --- decoded structures ------------------------------------------------------------


@dataclass(frozen=True)
class Conditional:
    """One `when` node: fields gated by a condition, with an optional else.

    A flat `when` (no `then`) decodes with its own fields as ``then``.
    Branch field sets may carry their own nested ``when`` list.
    """

    condition: str
    then: FieldSet
    else_: FieldSet | None = None


@dataclass(frozen=True)
class Flag:
    name: str
    manual: bool
    default: bool
    description: str | None = None


@dataclass(frozen=True)
class SourceRepository:
    location: str
    subdir: str | None = None
    kind: str = "git"


@dataclass(frozen=True)
class Section:
    """A buildable target after merging (and later, module inference)."""

    kind: SectionKind
    name: str | None
    fields: FieldSet
    conditionals: tuple[Conditional, ...] = ()
    verbatim: tuple[Any, ...] = ()

    @property
    def spec(self) -> SectionKindSpec:
        return SECTION_KINDS[self.kind]

    @property
    def header(self) -> str:
        if self.name is None:
            return self.spec.header
        return f"{self.spec.header} {self.name}"


@dataclass(frozen=True)
class Package:
    """The fully resolved package, ready to render."""

    name: str
    version: str
    fields: FieldSet  # header fields, keyed by manifest key
    sections: tuple[Section, ...] = ()
    flags: tuple[Flag, ...] = ()
    source_repository: SourceRepository | None = None
    verbatim: tuple[Any, ...] = ()
