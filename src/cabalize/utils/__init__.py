# src/cabalize/utils/__init__.py

from .utils_files import glob_match, list_files, shorten_path_for_display


__all__ = [  # noqa: RUF022
    # utils_files
    "glob_match",
    "list_files",
    "shorten_path_for_display",
]
