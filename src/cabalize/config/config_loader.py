# src/cabalize/config/config_loader.py
"""Locate and load a ``package.yaml``."""

import os
from pathlib import Path

from cabalize.constants import DEFAULT_DEFAULTS_DIR, DEFAULT_ENV_DEFAULTS_DIR
from cabalize.errors import ParseError
from cabalize.logs import getAppLogger
from cabalize.meta import PROGRAM_CONFIG, PROGRAM_ENV
from cabalize.value import ROOT_PATH, Value, parse_value, shape_name


def find_manifest(path: Path | str | None = None, *, cwd: Path | None = None) -> Path:
    """Locate the manifest to compile.

    ``path`` may name the manifest itself or the directory holding it;
    without one, the current directory is used.

    Raises:
        FileNotFoundError: if no manifest exists there.
    """
    logger = getAppLogger()
    cwd = cwd or Path.cwd()
    target = cwd if path is None else (cwd / Path(path).expanduser())
    if target.is_dir():
        target = target / PROGRAM_CONFIG
    logger.trace(f"[find_manifest] Checking {target}")
    if not target.is_file():
        xmsg = f"{target.name} does not exist"
        if target.parent != cwd:
            xmsg = f"{target} does not exist"
        raise FileNotFoundError(xmsg)
    return target.resolve()


def load_manifest(path: Path) -> dict[str, Value]:
    """Read and parse a manifest whose root must be an object."""
    logger = getAppLogger()
    logger.trace(f"[load_manifest] Loading {path}")
    value = parse_value(path.read_text(encoding="utf-8"), path.name)
    if not isinstance(value, dict):
        xmsg = f"expected Object, encountered {shape_name(value)}"
        raise ParseError(path.name, ROOT_PATH, xmsg)
    return value


def resolve_defaults_dir(explicit: Path | str | None = None) -> Path:
    """Where downloaded defaults documents are stored.

    Precedence: explicit value (CLI), ``<PROGRAM_ENV>_DEFAULTS_DIR``, then
    the built-in default under the home directory.
    """
    logger = getAppLogger()
    env_key = f"{PROGRAM_ENV}_{DEFAULT_ENV_DEFAULTS_DIR}"
    if explicit is not None:
        source, raw = "cli", str(explicit)
    elif os.getenv(env_key):
        source, raw = env_key, os.environ[env_key]
    else:
        source, raw = "default", DEFAULT_DEFAULTS_DIR
    resolved = Path(raw).expanduser()
    logger.trace(f"[resolve_defaults_dir] {resolved} (from {source})")
    return resolved
