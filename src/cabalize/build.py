# src/cabalize/build.py

import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, TextIO

from .config import (
    DecodeContext,
    DefaultsResolver,
    Package,
    RemoteDefaultsStore,
    decode_package,
    load_manifest,
    resolve_defaults_dir,
    resolve_package,
)
from .hints import FormattingHints, sniff_formatting_hints
from .logs import getAppLogger
from .meta import PROGRAM_CONFIG, PROGRAM_SCRIPT
from .modules import ModuleScanner, infer_package_modules
from .render import render_package
from .utils import glob_match, list_files
from .value import Warnings


GENERATED_HEADER = (
    f"-- This file has been generated from {PROGRAM_CONFIG} by {PROGRAM_SCRIPT}.\n"
    "--\n"
    "-- Changes here are overwritten; edit the manifest instead.\n"
    "\n"
)

BuildStatus = Literal["generated", "up-to-date", "modified", "stdout"]


@dataclass(frozen=True)
class CompileResult:
    cabal_file: Path
    text: str  # rendered manifest, without the generated header
    warnings: tuple[str, ...]
    package: Package

    @property
    def output(self) -> str:
        """The full file contents, generated header included."""
        return GENERATED_HEADER + self.text


def compile_package(  # noqa: PLR0913
    manifest: Path,
    *,
    previous: str | None = None,
    resolver: DefaultsResolver | None = None,
    defaults_dir: Path | None = None,
    list_files: Callable[[Path], list[str]] = list_files,
    glob_match: Callable[[str, Path], list[str]] = glob_match,
) -> CompileResult:
    """Compile ``manifest`` into the text of its ``.cabal`` file.

    ``previous`` is the earlier rendering to take layout hints from; when
    omitted, the existing ``<name>.cabal`` next to the manifest is used if
    there is one. Nothing is written.

    Raises:
        CabalizeError: on any fatal decoding, defaults or naming problem.
    """
    logger = getAppLogger()
    package_dir = manifest.parent
    source = manifest.name
    warnings = Warnings()

    if resolver is None:
        store = RemoteDefaultsStore(resolve_defaults_dir(defaults_dir))
        resolver = DefaultsResolver(remote=store, display_root=package_dir)

    # --- decode (with defaults) ---
    value = load_manifest(manifest)
    ctx = DecodeContext(
        source=source,
        package_dir=package_dir,
        warnings=warnings,
        resolver=resolver,
        base_dir=package_dir,
        glob_match=glob_match,
    )
    config = decode_package(value, ctx)

    # --- merge and infer ---
    package = resolve_package(
        config, source=source, package_dir=package_dir, warnings=warnings
    )
    scanner = ModuleScanner(package_dir, warnings=warnings, list_files=list_files)
    package = infer_package_modules(package, scanner)

    # --- render ---
    cabal_file = package_dir / f"{package.name}.cabal"
    if previous is None and cabal_file.is_file():
        previous = cabal_file.read_text(encoding="utf-8")
    hints = sniff_formatting_hints(previous) if previous else FormattingHints()
    text = render_package(package, hints)

    logger.debug("Compiled %s (%d warning(s))", cabal_file.name, len(warnings))
    return CompileResult(
        cabal_file=cabal_file,
        text=text,
        warnings=tuple(warnings),
        package=package,
    )


def run_build(
    manifest: Path,
    *,
    to_stdout: bool = False,
    force: bool = False,
    defaults_dir: Path | None = None,
    stream: TextIO | None = None,
) -> BuildStatus:
    """Compile ``manifest`` and write (or print) the result.

    A ``.cabal`` file that does not carry the generated header was edited
    by hand and is only replaced with ``force``. An unchanged file is not
    rewritten.
    """
    logger = getAppLogger()
    result = compile_package(manifest, defaults_dir=defaults_dir)
    for msg in result.warnings:
        logger.warning(msg)

    if to_stdout:
        (stream or sys.stdout).write(result.output)
        return "stdout"

    target = result.cabal_file
    existing = target.read_text(encoding="utf-8") if target.is_file() else None
    if existing == result.output:
        logger.info("%s is up-to-date", target.name)
        return "up-to-date"
    if existing is not None and not existing.startswith(GENERATED_HEADER) and not force:
        logger.warning(
            "%s was modified manually, please use --force to overwrite.",
            target.name,
        )
        return "modified"

    target.write_text(result.output, encoding="utf-8")
    logger.info("Generated %s", target.name)
    return "generated"
