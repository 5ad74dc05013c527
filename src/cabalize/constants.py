# src/cabalize/constants.py
"""Central constants used across the project."""


# --- env keys ---
DEFAULT_ENV_LOG_LEVEL: str = "LOG_LEVEL"
DEFAULT_ENV_DEFAULTS_DIR: str = "DEFAULTS_DIR"

# --- program defaults ---
DEFAULT_LOG_LEVEL: str = "info"
DEFAULT_DEFAULTS_DIR: str = "~/.cabalize/defaults"

# --- manifest defaults ---
DEFAULT_VERSION: str = "0.0.0"
DEFAULT_BUILD_TYPE: str = "Simple"
DEFAULT_CABAL_VERSION: tuple[int, ...] = (1, 10)
DEFAULT_LANGUAGE: str = "Haskell2010"
DEFAULT_LICENSE_FILE: str = "LICENSE"

# Location of a defaults document inside a github repository when the
# reference does not name one.
DEFAULT_DEFAULTS_PATH: str = ".hpack/defaults.yaml"
GITHUB_RAW_URL: str = "https://raw.githubusercontent.com"
GITHUB_URL: str = "https://github.com"
DEFAULT_FETCH_TIMEOUT: float = 30.0

BUILD_TYPES: tuple[str, ...] = ("Simple", "Configure", "Make", "Custom")

# Source files that map to modules, in the order the build tool prefers them.
MODULE_EXTENSIONS: tuple[str, ...] = (".hs", ".lhs", ".chs", ".hsc", ".y", ".ly", ".x")

# --- rendering defaults ---
DEFAULT_INDENTATION: int = 2
DEFAULT_LIST_INDENT: int = 4
