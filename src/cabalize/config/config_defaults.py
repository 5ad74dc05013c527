# src/cabalize/config/config_defaults.py
"""Defaults references and the resolver that fetches them.

A ``defaults`` entry names another manifest fragment, either in a github
repository or on the local disk. The resolver turns a reference into the
parsed document; splicing the document into the referencing scope is the
decoder's job (see ``config_decode``), which calls back into ``resolve``
for nested references with the growing ``visited`` stack.
"""

import os
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from cabalize.constants import (
    DEFAULT_DEFAULTS_PATH,
    DEFAULT_FETCH_TIMEOUT,
    GITHUB_RAW_URL,
)
from cabalize.errors import (
    ConflictingDefaultsSource,
    CyclicDefaults,
    MissingDefaults,
    ParseError,
)
from cabalize.logs import getAppLogger
from cabalize.utils import shorten_path_for_display
from cabalize.value import (
    ROOT_PATH,
    Value,
    Warnings,
    index_path,
    key_path,
    parse_value,
    shape_name,
)


# --- references ----------------------------------------------------------------


@dataclass(frozen=True)
class GithubDefaults:
    owner: str
    repo: str
    ref: str
    path: str = DEFAULT_DEFAULTS_PATH

    @property
    def url(self) -> str:
        return f"{GITHUB_RAW_URL}/{self.owner}/{self.repo}/{self.ref}/{self.path}"


@dataclass(frozen=True)
class LocalDefaults:
    path: str


DefaultsRef = GithubDefaults | LocalDefaults

_REPO_RE = re.compile(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$")
_SHORTHAND_RE = re.compile(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)@(\S+)$")
_REF_KEYS = ("github", "ref", "path", "local")


def _decode_ref_mapping(
    obj: dict[str, Any],
    path: str,
    *,
    source: str,
    warnings: Warnings,
) -> DefaultsRef:
    for key in obj:
        if key not in _REF_KEYS and not key.startswith("_"):
            warnings.unrecognized(source, key_path(path, key))

    if "github" in obj and "local" in obj:
        raise ConflictingDefaultsSource(source, path)

    if "local" in obj:
        local = obj["local"]
        if not isinstance(local, str):
            xmsg = f"expected String, encountered {shape_name(local)}"
            raise ParseError(source, key_path(path, "local"), xmsg)
        return LocalDefaults(local)

    if "github" not in obj:
        xmsg = 'neither "github" nor "local" present'
        raise ParseError(source, path, xmsg)

    github = obj["github"]
    m = _REPO_RE.match(github) if isinstance(github, str) else None
    if not m:
        xmsg = f"expected owner/repo, but encountered {github!r}"
        raise ParseError(source, key_path(path, "github"), xmsg)

    ref = obj.get("ref")
    if ref is None:
        xmsg = 'key "ref" not present'
        raise ParseError(source, path, xmsg)
    if not isinstance(ref, str):
        xmsg = f"expected String, encountered {shape_name(ref)}"
        raise ParseError(source, key_path(path, "ref"), xmsg)

    ref_path = obj.get("path", DEFAULT_DEFAULTS_PATH)
    if not isinstance(ref_path, str):
        xmsg = f"expected String, encountered {shape_name(ref_path)}"
        raise ParseError(source, key_path(path, "path"), xmsg)

    return GithubDefaults(m.group(1), m.group(2), ref, ref_path)


def _decode_ref(
    value: Any,
    path: str,
    *,
    source: str,
    warnings: Warnings,
) -> DefaultsRef:
    if isinstance(value, str):
        m = _SHORTHAND_RE.match(value)
        if not m:
            xmsg = f"expected owner/repo@ref, but encountered {value!r}"
            raise ParseError(source, path, xmsg)
        return GithubDefaults(m.group(1), m.group(2), m.group(3))
    if isinstance(value, dict):
        return _decode_ref_mapping(value, path, source=source, warnings=warnings)
    xmsg = f"expected Object or String, encountered {shape_name(value)}"
    raise ParseError(source, path, xmsg)


def decode_defaults_refs(
    value: Any,
    path: str,
    *,
    source: str,
    warnings: Warnings,
) -> list[DefaultsRef]:
    """Decode a ``defaults`` value: one reference or a list of them.

    Shape problems (including naming both ``github`` and ``local``) are
    raised here, before anything is fetched.
    """
    if isinstance(value, list):
        return [
            _decode_ref(item, index_path(path, i), source=source, warnings=warnings)
            for i, item in enumerate(value)
        ]
    return [_decode_ref(value, path, source=source, warnings=warnings)]


# --- fetching --------------------------------------------------------------------


def fetch_local(path: Path) -> bytes:
    """Read a local defaults document. Raises FileNotFoundError if absent."""
    return path.read_bytes()


HttpGet = Callable[[str], httpx.Response]


class RemoteDefaultsStore:
    """On-disk store of github defaults documents, filled on first use.

    A document for ``owner/repo@ref:path`` lives at
    ``<defaults_dir>/<owner>/<repo>/<ref>/<path>``. Refs are expected to be
    immutable (tags or commits), so a stored copy is never refreshed.
    """

    def __init__(
        self,
        defaults_dir: Path,
        *,
        http_get: HttpGet | None = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        self.defaults_dir = defaults_dir
        self.timeout = timeout
        self._http_get = http_get or self._default_get

    def _default_get(self, url: str) -> httpx.Response:
        return httpx.get(url, timeout=self.timeout, follow_redirects=True)

    def location(self, ref: GithubDefaults) -> Path:
        return self.defaults_dir / ref.owner / ref.repo / ref.ref / ref.path

    def fetch(self, ref: GithubDefaults) -> bytes:
        """Return the document's bytes, downloading it if not stored yet.

        Raises:
            MissingDefaults: if the document does not exist upstream.
            RuntimeError: if the download fails for any other reason.
        """
        logger = getAppLogger()
        target = self.location(ref)
        if target.is_file():
            logger.trace(f"[DEFAULTS] using stored {target}")
            return target.read_bytes()

        logger.debug("Downloading defaults from %s", ref.url)
        try:
            response = self._http_get(ref.url)
        except httpx.HTTPError as e:
            xmsg = f"Failed to download {ref.url}: {e}"
            raise RuntimeError(xmsg) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            raise MissingDefaults(ref.url, local=False)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            xmsg = f"Failed to download {ref.url}: HTTP {response.status_code}"
            raise RuntimeError(xmsg) from e

        content = response.content
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.trace(f"[DEFAULTS] stored {ref.url} at {target}")
        return content


# --- resolution -------------------------------------------------------------------


@dataclass(frozen=True)
class DefaultsDocument:
    """A parsed defaults document and where it came from."""

    value: dict[str, Value]
    source: str  # label used in messages about this document
    canonical: str  # identity used for cycle detection
    directory: Path  # base for the document's own local references


@dataclass
class DefaultsCache:
    """Parsed documents of one run, keyed by canonical id."""

    documents: dict[str, dict[str, Value]] = field(default_factory=dict)

    def get(self, canonical: str) -> dict[str, Value] | None:
        return self.documents.get(canonical)

    def put(self, canonical: str, value: dict[str, Value]) -> None:
        self.documents[canonical] = value

    def __contains__(self, canonical: object) -> bool:
        return canonical in self.documents

    def __len__(self) -> int:
        return len(self.documents)


class DefaultsResolver:
    """Turn defaults references into parsed documents.

    ``visited`` is the chain of canonical ids from the outermost defaults
    document down to the one holding ``ref``. It is per path, so the same
    document reached along two branches (a diamond) is simply resolved
    twice, while a document reached again along one chain is a cycle.
    """

    def __init__(
        self,
        *,
        remote: RemoteDefaultsStore,
        fetch_local: Callable[[Path], bytes] = fetch_local,
        cache: DefaultsCache | None = None,
        display_root: Path | None = None,
    ) -> None:
        self.remote = remote
        self.fetch_local = fetch_local
        self.cache = cache if cache is not None else DefaultsCache()
        self.display_root = display_root

    def locate(self, ref: DefaultsRef, base_dir: Path) -> tuple[Path, str]:
        """Return the document's file and the label used in messages."""
        if isinstance(ref, LocalDefaults):
            file = base_dir / ref.path
        else:
            file = self.remote.location(ref)
        return file, shorten_path_for_display(file, cwd=self.display_root)

    def resolve(
        self,
        ref: DefaultsRef,
        visited: Sequence[str] = (),
        *,
        base_dir: Path = Path(),
    ) -> DefaultsDocument:
        """Fetch and parse the document ``ref`` points to.

        Raises:
            CyclicDefaults: if the document is already on the ``visited`` chain.
            MissingDefaults: if the document does not exist.
            ParseError: if it is not well-formed or its root is not an object.
        """
        logger = getAppLogger()
        file, label = self.locate(ref, base_dir)
        canonical = os.path.realpath(file)

        if canonical in visited:
            start = list(visited).index(canonical)
            raise CyclicDefaults([*visited[start:], canonical])

        value = self.cache.get(canonical)
        if value is None:
            value = self._load(ref, file, label)
            self.cache.put(canonical, value)
        else:
            logger.trace(f"[DEFAULTS] cache hit for {canonical}")

        return DefaultsDocument(
            value=value,
            source=label,
            canonical=canonical,
            directory=file.parent,
        )

    def _load(self, ref: DefaultsRef, file: Path, label: str) -> dict[str, Value]:
        logger = getAppLogger()
        if isinstance(ref, LocalDefaults):
            try:
                raw = self.fetch_local(file)
            except FileNotFoundError as e:
                raise MissingDefaults(label, local=True) from e
        else:
            raw = self.remote.fetch(ref)

        value = parse_value(raw, label)
        if not isinstance(value, dict):
            xmsg = f"expected Object, encountered {shape_name(value)}"
            raise ParseError(label, ROOT_PATH, xmsg)
        logger.trace(f"[DEFAULTS] loaded {label} ({len(value)} field(s))")
        return value
