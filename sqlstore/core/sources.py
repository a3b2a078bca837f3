"""Catalog sources: units of text the query registry is built from."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .errors import CatalogLoadError


@dataclass(frozen=True)
class TextSource:
    """In-memory catalog text, mostly useful for tests and embedded catalogs."""

    identifier: str
    text: str

    def read(self) -> str:
        return self.text


@dataclass(frozen=True)
class FileSource:
    """Catalog stored in one file on disk."""

    path: Path
    encoding: str = "utf-8"

    @property
    def identifier(self) -> str:
        return str(self.path)

    def read(self) -> str:
        try:
            return self.path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise CatalogLoadError(self.identifier, str(exc)) from exc


def sources_from_path(
    path: str | Path,
    *,
    suffixes: Sequence[str] = (".sql",),
    encoding: str = "utf-8",
) -> List[FileSource]:
    """Resolve a file or a directory of catalog files into sources.

    A directory contributes every file directly inside it whose suffix is in
    `suffixes`, sorted by file name. Subdirectories are not searched.

    Raises:
        CatalogLoadError: If `path` does not exist or cannot be listed.
    """

    root = Path(path)
    if root.is_dir():
        try:
            entries = sorted(root.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            raise CatalogLoadError(str(root), str(exc)) from exc
        return [
            FileSource(entry, encoding=encoding)
            for entry in entries
            if entry.is_file() and entry.suffix in suffixes
        ]
    if not root.exists():
        raise CatalogLoadError(str(root), "no such file or directory")
    return [FileSource(root, encoding=encoding)]
