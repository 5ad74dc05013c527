# src/cabalize/config/__init__.py

"""Manifest handling for cabalize.

This package decodes a ``package.yaml`` (expanding its defaults), merges
top-level and section fields, and locates manifests on disk.
"""

from .config_decode import (
    DecodeContext,
    decode_conditional,
    decode_conditionals,
    decode_fields,
    decode_package,
    decode_scope,
    decode_section,
)
from .config_defaults import (
    DefaultsCache,
    DefaultsDocument,
    DefaultsRef,
    DefaultsResolver,
    GithubDefaults,
    LocalDefaults,
    RemoteDefaultsStore,
    decode_defaults_refs,
    fetch_local,
)
from .config_loader import find_manifest, load_manifest, resolve_defaults_dir
from .config_resolve import (
    merge,
    merge_fieldsets,
    resolve_package,
    resolve_section,
)
from .config_types import (
    FIELDS,
    SECTION_KINDS,
    Conditional,
    FieldSet,
    FieldSpec,
    Flag,
    Package,
    Section,
    SectionKind,
    SectionKindSpec,
    SourceRepository,
)


__all__ = [  # noqa: RUF022
    # config_decode
    "DecodeContext",
    "decode_conditional",
    "decode_conditionals",
    "decode_fields",
    "decode_package",
    "decode_scope",
    "decode_section",
    # config_defaults
    "DefaultsCache",
    "DefaultsDocument",
    "DefaultsRef",
    "DefaultsResolver",
    "GithubDefaults",
    "LocalDefaults",
    "RemoteDefaultsStore",
    "decode_defaults_refs",
    "fetch_local",
    # config_loader
    "find_manifest",
    "load_manifest",
    "resolve_defaults_dir",
    # config_resolve
    "merge",
    "merge_fieldsets",
    "resolve_package",
    "resolve_section",
    # config_types
    "FIELDS",
    "SECTION_KINDS",
    "Conditional",
    "FieldSet",
    "FieldSpec",
    "Flag",
    "Package",
    "Section",
    "SectionKind",
    "SectionKindSpec",
    "SourceRepository",
]
