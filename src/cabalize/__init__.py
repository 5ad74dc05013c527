# src/cabalize/__init__.py

"""Cabalize — compile package.yaml into a .cabal file.

Full developer API
==================
This package re-exports all non-private symbols from its submodules,
making it suitable for programmatic use, custom integrations, or plugins.
Anything prefixed with "_" is considered internal and may change.

Highlights:
    - main()                    → CLI entrypoint
    - compile_package()         → Compile a manifest to .cabal text
    - run_build()               → Compile and write (or print) the result
    - sniff_formatting_hints()  → Layout hints from a previous rendering
"""

from .build import CompileResult, compile_package, run_build
from .cli import main
from .config import (
    Conditional,
    DefaultsCache,
    DefaultsResolver,
    GithubDefaults,
    LocalDefaults,
    Package,
    RemoteDefaultsStore,
    Section,
    find_manifest,
    merge,
)
from .errors import (
    CabalizeError,
    ConflictingDefaultsSource,
    CyclicDefaults,
    InvalidEnumValue,
    MissingDefaults,
    ParseError,
)
from .hints import FormattingHints, sniff_formatting_hints
from .meta import get_metadata
from .modules import InferredModules, infer
from .render import render_package, sort_fields_by
from .value import Value, Warnings, parse_value


__all__ = [  # noqa: RUF022
    # build
    "CompileResult",
    "compile_package",
    "run_build",
    # cli
    "main",
    # config
    "Conditional",
    "DefaultsCache",
    "DefaultsResolver",
    "GithubDefaults",
    "LocalDefaults",
    "Package",
    "RemoteDefaultsStore",
    "Section",
    "find_manifest",
    "merge",
    # errors
    "CabalizeError",
    "ConflictingDefaultsSource",
    "CyclicDefaults",
    "InvalidEnumValue",
    "MissingDefaults",
    "ParseError",
    # hints
    "FormattingHints",
    "sniff_formatting_hints",
    # meta
    "get_metadata",
    # modules
    "InferredModules",
    "infer",
    # render
    "render_package",
    "sort_fields_by",
    # value
    "Value",
    "Warnings",
    "parse_value",
]
