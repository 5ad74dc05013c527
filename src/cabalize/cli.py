# src/cabalize/cli.py

import argparse
import platform
import sys
from difflib import get_close_matches
from pathlib import Path

from apathetic_logging import safeLog

from .build import run_build
from .config import find_manifest
from .logs import getAppLogger
from .meta import PROGRAM_CONFIG, PROGRAM_DISPLAY, PROGRAM_SCRIPT, get_metadata


# --------------------------------------------------------------------------- #
# CLI setup and helpers
# --------------------------------------------------------------------------- #


class HintingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        # Build known option strings: ["-v", "--verbose", "--log-level", ...]
        known_opts: list[str] = []
        for action in self._actions:
            known_opts.extend([s for s in action.option_strings if s])

        hint_lines: list[str] = []
        # "unrecognized arguments: --forse ..."
        if "unrecognized arguments:" in message:
            bad = message.split("unrecognized arguments:", 1)[1].strip()
            bad_args = [tok for tok in bad.split() if tok.startswith("-")]
            for arg in bad_args:
                close = get_close_matches(arg, known_opts, n=1, cutoff=0.6)
                if close:
                    hint_lines.append(f"Hint: did you mean {close[0]}?")

        self.print_usage(sys.stderr)
        full = f"{self.prog}: error: {message}"
        if hint_lines:
            full += "\n" + "\n".join(hint_lines)
        self.exit(2, full + "\n")


def _setup_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = HintingArgumentParser(
        prog=PROGRAM_SCRIPT,
        description=f"Generate a .cabal file from {PROGRAM_CONFIG}.",
    )

    parser.add_argument(
        "path",
        nargs="?",
        metavar="PATH",
        help=f"{PROGRAM_CONFIG} or the directory holding it (default: current dir).",
    )
    parser.add_argument(
        "stdout_dash",
        nargs="?",
        choices=["-"],
        metavar="-",
        help="Write the result to stdout (same as --stdout).",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Write the result to stdout instead of the .cabal file.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite a .cabal file even if it was modified manually.",
    )
    parser.add_argument(
        "--defaults-dir",
        metavar="DIR",
        help="Where downloaded defaults are stored (default: ~/.cabalize/defaults).",
    )

    # --- Version and verbosity ---
    parser.add_argument("--version", action="store_true", help="Show version info.")

    log_level = parser.add_mutually_exclusive_group()
    log_level.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        const="warning",
        dest="log_level",
        help="Suppress non-critical output (same as --log-level warning).",
    )
    log_level.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const="debug",
        dest="log_level",
        help="Verbose output (same as --log-level debug).",
    )
    log_level.add_argument(
        "--log-level",
        default=None,
        dest="log_level",
        help="Set log verbosity level (trace, debug, info, warning, error, silent).",
    )
    return parser


def _normalize_positional_args(args: argparse.Namespace) -> None:
    """Treat a lone ``-`` positional as ``--stdout``."""
    if args.path == "-" and args.stdout_dash is None:
        args.path = None
        args.stdout = True
    elif args.stdout_dash == "-":
        args.stdout = True


# --------------------------------------------------------------------------- #
# Main entry helpers
# --------------------------------------------------------------------------- #


def _initialize_logger(args: argparse.Namespace) -> None:
    """Initialize logger with CLI args, env vars, and defaults."""
    logger = getAppLogger()
    log_level = logger.determineLogLevel(args=args)
    logger.setLevel(log_level)
    logger.trace(f"[BOOT] log-level initialized: {logger.levelName}")

    logger.debug(
        "Runtime: Python %s (%s)\n    %s",
        platform.python_version(),
        platform.python_implementation(),
        sys.version.replace("\n", " "),
    )


def _handle_early_exits(args: argparse.Namespace) -> int | None:
    """Return an exit code if the run ends before compiling."""
    logger = getAppLogger()

    if getattr(args, "version", None):
        meta = get_metadata()
        logger.info("%s %s", PROGRAM_DISPLAY, meta.version)
        return 0

    return None


def main(argv: list[str] | None = None) -> int:
    logger = getAppLogger()  # init (use env + defaults)

    try:
        parser = _setup_parser()
        args = parser.parse_args(argv)
        _normalize_positional_args(args)

        # --- Early runtime init (use CLI + env + defaults) ---
        _initialize_logger(args)

        early_exit_code = _handle_early_exits(args)
        if early_exit_code is not None:
            return early_exit_code

        cwd = Path.cwd()
        manifest = find_manifest(args.path, cwd=cwd)
        logger.debug("Using manifest: %s", manifest)

        defaults_dir = Path(args.defaults_dir) if args.defaults_dir else None
        status = run_build(
            manifest,
            to_stdout=args.stdout,
            force=args.force,
            defaults_dir=defaults_dir,
        )
        if status == "modified":
            return 1

    except (FileNotFoundError, ValueError, TypeError, RuntimeError) as e:
        # controlled termination
        try:
            logger.errorIfNotDebug(str(e))
        except Exception:  # noqa: BLE001
            safeLog(f"[FATAL] Logging failed while reporting: {e}")
        return 1

    except Exception as e:  # noqa: BLE001
        # unexpected internal error
        try:
            logger.criticalIfNotDebug("Unexpected internal error: %s", e)
        except Exception:  # noqa: BLE001
            safeLog(f"[FATAL] Logging failed while reporting: {e}")
        return 1

    else:
        return 0
