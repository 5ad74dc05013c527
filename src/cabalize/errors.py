# src/cabalize/errors.py
"""Fatal error kinds.

Every error here aborts the whole run before any output is produced.
Non-fatal problems (unrecognized fields, empty glob matches, missing source
directories) are not exceptions; they are collected as warning strings by
``cabalize.value.Warnings``.
"""

from collections.abc import Sequence


def _one_of(values: Sequence[str]) -> str:
    """Join accepted values the way the messages read: "a, b, or c"."""
    if len(values) <= 1:
        return "".join(values)
    if len(values) == 2:  # noqa: PLR2004
        return f"{values[0]} or {values[1]}"
    return ", ".join(values[:-1]) + f", or {values[-1]}"


class CabalizeError(ValueError):
    """Base class for all fatal compilation errors."""


class ParseError(CabalizeError):
    """A value does not have the shape its field requires."""

    def __init__(self, source: str, path: str, detail: str) -> None:
        self.source = source
        self.path = path
        self.detail = detail
        super().__init__(f"{source}: Error while parsing {path} - {detail}")


class InvalidEnumValue(ParseError):
    """A keyword field holds a value outside its accepted set."""

    def __init__(self, source: str, path: str, accepted: Sequence[str]) -> None:
        self.accepted = tuple(accepted)
        super().__init__(source, path, f"expected one of {_one_of(self.accepted)}")


class ConflictingDefaultsSource(ParseError):
    """A defaults reference names both a github and a local source."""

    def __init__(self, source: str, path: str) -> None:
        super().__init__(
            source,
            path,
            'both "github" and "local" are present; please use one or the other.',
        )


class MissingDefaults(CabalizeError):
    """A referenced defaults document does not exist."""

    def __init__(self, location: str, *, local: bool) -> None:
        self.location = location
        self.local = local
        kind = "Local file" if local else "File"
        super().__init__(
            f'Invalid value for "defaults"! {kind} {location} does not exist!'
        )


class CyclicDefaults(CabalizeError):
    """A defaults document (transitively) references itself."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(f"cycle in defaults ({' -> '.join(self.cycle)})")
