"""SGA archive reader and extractor."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from ..errors import DecompressionError, UnsafePathError
from ..utils.binary import BinaryReader
from .header import SGAHeader, SGATocEntry
from .nodes import FileNode, FolderNode, TreeResolver
from .payload import read_data
from .tables import SGATables

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Outcome of writing one file.

    ``error`` is only set when extracting with ``keep_going=True``; in that
    case nothing was written to ``output_path``.
    """

    archive_path: str
    output_path: Path
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SGAReader:
    """Reader for SGA (Relic archive) files."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._file: Optional[BinaryIO] = None
        self._reader: Optional[BinaryReader] = None
        self._tables: Optional[SGATables] = None
        self._resolver: Optional[TreeResolver] = None
        # TOC index -> tree built for find_file
        self._trees: Dict[int, FolderNode] = {}

    def __enter__(self) -> "SGAReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def open(self) -> None:
        """Open the archive and parse the header and index tables."""
        self._file = open(self.path, "rb")
        try:
            self._reader = BinaryReader(self._file)
            self._tables = SGATables.from_reader(self._reader)
        except Exception:
            self.close()
            raise
        self._resolver = TreeResolver(self._reader, self._tables)
        logger.debug("Opened %s (%r, version %d)", self.path, self.header.name, self.header.version)

    def close(self) -> None:
        """Close the archive file."""
        if self._file:
            self._file.close()
            self._file = None
        self._reader = None
        self._resolver = None
        self._trees.clear()

    @property
    def tables(self) -> SGATables:
        if not self._tables:
            raise RuntimeError("Archive not opened")
        return self._tables

    @property
    def header(self) -> SGAHeader:
        return self.tables.header

    @property
    def tocs(self) -> Tuple[SGATocEntry, ...]:
        return self.tables.tocs

    @property
    def resolver(self) -> TreeResolver:
        if not self._resolver:
            raise RuntimeError("Archive not opened")
        return self._resolver

    def read_data(self, node: FileNode) -> bytes:
        """Decode a single file's data."""
        if not self._reader:
            raise RuntimeError("Archive not opened")
        return read_data(self._reader, node)

    def build_tree(self, toc: SGATocEntry) -> FolderNode:
        """Build the complete folder tree of one TOC."""
        return self.resolver.build_tree(toc)

    def iter_files(self) -> Iterator[Tuple[str, FileNode]]:
        """Yield (archive_path, node) for every file, TOC by TOC, depth first."""
        for toc in self.tocs:
            root = self.resolver.build_root(toc)
            for folder, files, _ in self.resolver.walk(root):
                prefix = "/".join(part for part in folder.path_parts if part)
                for node in files:
                    yield (f"{prefix}/{node.name}" if prefix else node.name), node

    def list_files(self) -> List[str]:
        """List all file paths in the archive."""
        return [archive_path for archive_path, _ in self.iter_files()]

    def find_file(self, archive_path: str) -> Optional[FileNode]:
        """Find a file by its archive path ("/" or "\\" separated).

        The TOC tree holding the node stays cached on the reader until
        ``close``, so the node's parents remain reachable.
        """
        wanted = archive_path.replace("\\", "/").strip("/")
        for index in range(len(self.tocs)):
            for node in _tree_files(self._toc_tree(index)):
                if "/".join(part for part in node.path_parts if part) == wanted:
                    return node
        return None

    def _toc_tree(self, index: int) -> FolderNode:
        if index not in self._trees:
            self._trees[index] = self.resolver.build_tree(self.tocs[index])
        return self._trees[index]

    def extract_all(
        self, output_dir: Path, keep_going: bool = False
    ) -> Iterator[ExtractionResult]:
        """Extract every TOC to the output directory.

        Each folder's directory is created before its files are written and
        before any of its subfolders are visited. Yields one result per file.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        for toc in self.tocs:
            root = self.resolver.build_root(toc)
            logger.debug("Extracting toc %r (%r)", toc.name, toc.alias)
            for folder, files, _ in self.resolver.walk(root):
                folder_dir = self._folder_dir(output_dir, folder)
                yield from self._write_files(folder_dir, files, keep_going)

    def extract_toc_root_files(
        self, output_dir: Path, keep_going: bool = False
    ) -> Iterator[ExtractionResult]:
        """Extract only the files directly inside each TOC's root folder."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        for toc in self.tocs:
            root = self.resolver.build_root(toc)
            files, _ = self.resolver.expand_children(root)
            folder_dir = self._folder_dir(output_dir, root)
            yield from self._write_files(folder_dir, files, keep_going)

    def _folder_dir(self, output_dir: Path, folder: FolderNode) -> Path:
        folder_dir = _safe_join(output_dir, folder.path_parts)
        folder_dir.mkdir(parents=True, exist_ok=True)
        return folder_dir

    def _write_files(
        self, folder_dir: Path, files: List[FileNode], keep_going: bool
    ) -> Iterator[ExtractionResult]:
        for node in files:
            if not node.name:
                raise UnsafePathError(f"Empty file name at file index {node.index}")
            output_path = _safe_join(folder_dir, [node.name])
            archive_path = "/".join(part for part in node.path_parts if part)

            try:
                data = self.read_data(node)
            except DecompressionError as e:
                if not keep_going:
                    raise
                logger.warning("Skipping %s: %s", archive_path, e)
                yield ExtractionResult(archive_path, output_path, error=e)
                continue

            output_path.write_bytes(data)
            logger.debug("Wrote %d bytes to %s", len(data), output_path)
            yield ExtractionResult(archive_path, output_path)


def _safe_join(base: Path, parts: List[str]) -> Path:
    """Join archive names onto base, refusing anything that escapes it."""
    for part in parts:
        if part in (".", "..") or "/" in part or "\\" in part:
            raise UnsafePathError(f"Unsafe name in archive path: {part!r}")
    return base.joinpath(*(part for part in parts if part))


def _tree_files(folder: FolderNode) -> Iterator[FileNode]:
    for child in folder.children:
        if isinstance(child, FolderNode):
            yield from _tree_files(child)
        else:
            yield child
