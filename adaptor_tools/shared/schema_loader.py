"""Definition document loading utilities with caching support."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Sequence

import requests
import yaml
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import SchemaError

DOCUMENT_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Immutable cache key for definition files."""

    path: Path
    mtime: float
    size: int

    @classmethod
    def from_path(cls, path: Path) -> CacheKey:
        """Create a cache key from a file path."""
        stat = path.stat()
        return cls(
            path=path.resolve(),
            mtime=stat.st_mtime,
            size=stat.st_size,
        )


@dataclass
class CachedDocument:
    """A cached document with metadata."""

    data: dict[str, Any]
    key: CacheKey


class DocumentCache:
    """Document cache with automatic invalidation.

    Caches parsed definition files and automatically invalidates when
    the underlying file changes (based on mtime and size).
    """

    __slots__ = ("_cache", "_max_size")

    def __init__(self, max_size: int = 100) -> None:
        self._cache: dict[Path, CachedDocument] = {}
        self._max_size = max_size

    def get(self, path: Path) -> dict[str, Any]:
        """Get a document from cache, loading it if necessary.

        Args:
            path: Path to the definition file.

        Returns:
            The parsed document.

        Raises:
            SchemaError: If the document is invalid.
        """
        resolved = path.resolve()
        current_key = CacheKey.from_path(resolved)

        cached = self._cache.get(resolved)
        if cached is not None and cached.key == current_key:
            return cached.data

        data = load_document(resolved)

        # Evict oldest entries if cache is full
        if len(self._cache) >= self._max_size:
            oldest = next(iter(self._cache))
            del self._cache[oldest]

        self._cache[resolved] = CachedDocument(
            data=data,
            key=current_key,
        )

        return data

    def invalidate(self, path: Path | None = None) -> None:
        """Invalidate cached documents.

        Args:
            path: Specific path to invalidate, or None to clear all.
        """
        if path is None:
            self._cache.clear()
        else:
            self._cache.pop(path.resolve(), None)

    def __len__(self) -> int:
        return len(self._cache)


def _parse(content: str, *, yaml_first: bool, source: str) -> dict[str, Any]:
    try:
        if yaml_first:
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON: {e}", source) from e
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML: {e}", source) from e

    if not isinstance(data, dict):
        raise SchemaError("Document root must be a mapping", source)

    return data


def load_document(path: Path) -> dict[str, Any]:
    """Load a definition document from a JSON or YAML file.

    Args:
        path: Path to the document.

    Returns:
        The parsed document.

    Raises:
        SchemaError: If the file cannot be read or parsed.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read definition file: {e}", str(path)) from e

    yaml_first = path.suffix.lower() in {".yaml", ".yml"}
    return _parse(content, yaml_first=yaml_first, source=str(path))


def _session() -> requests.Session:
    session = requests.Session()
    retries = Retry(total=3, backoff_factor=0.5, status_forcelist=(500, 502, 503, 504))
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def fetch_document(url: str, timeout: float = 30) -> dict[str, Any]:
    """Fetch a definition document over HTTP(S).

    JSON is tried first, then YAML.

    Raises:
        SchemaError: If the request fails or the body is not a mapping.
    """
    try:
        resp = _session().get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise SchemaError(f"Failed to fetch definitions: {e}", url) from e

    try:
        data = resp.json()
    except ValueError:
        return _parse(resp.text, yaml_first=True, source=url)

    if not isinstance(data, dict):
        raise SchemaError("Document root must be a mapping", url)
    return data


def is_url(source: str | Path) -> bool:
    return isinstance(source, str) and source.startswith(("http://", "https://"))


def collect_definition_paths(inputs: Sequence[Path]) -> list[Path]:
    """Collect all definition files from the given inputs.

    Args:
        inputs: Paths to definition files or directories.

    Returns:
        List of unique, resolved file paths.

    Raises:
        FileNotFoundError: If any input path doesn't exist.
    """

    def _iter_paths() -> Iterator[Path]:
        for raw in inputs:
            path = Path(raw).resolve()
            if not path.exists():
                raise FileNotFoundError(f"Definition path '{raw}' does not exist")
            if path.is_dir():
                yield from sorted(
                    p
                    for p in path.iterdir()
                    if p.is_file() and p.suffix.lower() in DOCUMENT_SUFFIXES
                )
            else:
                yield path

    # Use dict to preserve order while deduplicating
    seen: dict[Path, None] = {}
    for path in _iter_paths():
        seen.setdefault(path, None)

    return list(seen.keys())


def iter_structure_definitions(document: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield StructureDefinitions from a single resource or a Bundle."""
    resource_type = document.get("resourceType")
    if resource_type == "StructureDefinition":
        yield document
    elif resource_type == "Bundle":
        for entry in document.get("entry") or []:
            if not isinstance(entry, dict):
                continue
            resource = entry.get("resource")
            if isinstance(resource, dict) and resource.get("resourceType") == "StructureDefinition":
                yield resource
