# src/cabalize/utils/utils_files.py
"""Filesystem capabilities handed to the inference engine and decoder.

Both functions here are the default implementations; every caller takes
them as injectable callables so tests can substitute in-memory fakes.
"""

import glob
import os
from pathlib import Path

from apathetic_utils import has_glob_chars

from cabalize.logs import getAppLogger


def list_files(directory: Path) -> list[str]:
    """Recursively list regular files below ``directory``.

    Returns paths relative to ``directory``, ``/`` separated and sorted
    lexicographically.

    Raises:
        FileNotFoundError: if ``directory`` does not exist or is not a directory.
    """
    logger = getAppLogger()
    if not directory.is_dir():
        xmsg = f"Directory not found: {directory}"
        raise FileNotFoundError(xmsg)

    found: list[str] = []
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        rel_root = Path(root).relative_to(directory)
        for name in files:
            found.append((rel_root / name).as_posix())
    found.sort()
    logger.trace(f"[list_files] {directory}: {len(found)} file(s)")
    return found


def glob_match(pattern: str, base_dir: Path) -> list[str]:
    """Expand a file pattern relative to ``base_dir``.

    ``**`` matches across directories. Only files are returned, relative to
    ``base_dir``, sorted. A pattern without glob characters matches itself
    when the file exists.
    """
    logger = getAppLogger()
    if not has_glob_chars(pattern):
        return [pattern] if (base_dir / pattern).is_file() else []

    matches = [
        Path(m).as_posix()
        for m in glob.glob(pattern, root_dir=base_dir, recursive=True)
        if (base_dir / m).is_file()
    ]
    matches.sort()
    logger.trace(f"[glob_match] {pattern!r} in {base_dir}: {len(matches)} match(es)")
    return matches


def shorten_path_for_display(path: Path | str, *, cwd: Path | None = None) -> str:
    """Show ``path`` relative to ``cwd`` when it lives below it."""
    path_obj = Path(path).resolve()
    if cwd is not None:
        try:
            rel = path_obj.relative_to(Path(cwd).resolve())
        except ValueError:
            return str(path_obj)
        return str(rel) or "."
    return str(path_obj)
