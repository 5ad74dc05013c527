# tests/utils/__init__.py

from .constants import DEFAULT_TEST_LOG_LEVEL, PROJ_ROOT
from .manifest import (
    compile_manifest,
    dedent,
    make_resolver,
    not_found_transport,
    store_defaults,
    write_files,
    write_manifest,
)


__all__ = [  # noqa: RUF022
    # constants
    "DEFAULT_TEST_LOG_LEVEL",
    "PROJ_ROOT",
    # manifest
    "compile_manifest",
    "dedent",
    "make_resolver",
    "not_found_transport",
    "store_defaults",
    "write_files",
    "write_manifest",
]
