# src/cabalize/meta.py
"""Program identity shared by the CLI, logging and rendered output."""

from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version


# --- program identity --------------------------------------------------------

PROGRAM_PACKAGE = "cabalize"
PROGRAM_SCRIPT = "cabalize"
PROGRAM_DISPLAY = "Cabalize"
PROGRAM_ENV = "CABALIZE"
PROGRAM_CONFIG = "package.yaml"


@dataclass(frozen=True)
class Metadata:
    version: str

    def __str__(self) -> str:
        return f"{PROGRAM_DISPLAY} {self.version}"


def get_metadata() -> Metadata:
    """Return installed version info, or a placeholder when running from source."""
    try:
        return Metadata(version=version(PROGRAM_PACKAGE))
    except PackageNotFoundError:
        return Metadata(version="unknown")
