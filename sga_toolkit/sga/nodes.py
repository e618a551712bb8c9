"""SGA folder/file tree.

Nodes are resolved from the index tables on demand. A folder's children are
never read while the folder itself is being resolved: callers ask the
resolver for them with ``expand_children`` (pure, returns fresh nodes) or
build a complete tree with ``build_tree``.
"""

import logging
import weakref
from dataclasses import dataclass, field
from pathlib import PureWindowsPath
from typing import FrozenSet, Iterator, List, Optional, Tuple, Union

from ..errors import IndexOutOfRangeError
from ..utils.binary import BinaryReader
from .header import FileStorageType, SGAFolderEntry, SGATocEntry, storage_type_from_code
from .tables import SGATables

logger = logging.getLogger(__name__)


def _deref(ref: Optional[weakref.ReferenceType]) -> Optional["FolderNode"]:
    return ref() if ref is not None else None


@dataclass(eq=False)
class FolderNode:
    """A folder in the archive tree.

    ``parent_ref`` is a weak reference: children never keep their parent
    alive.
    """

    name: str
    index: int  # Position in the folder table
    entry: SGAFolderEntry
    parent_ref: Optional[weakref.ReferenceType] = field(default=None, repr=False)
    children: List["Node"] = field(default_factory=list, repr=False)

    @property
    def parent(self) -> Optional["FolderNode"]:
        return _deref(self.parent_ref)

    @property
    def is_root(self) -> bool:
        return self.parent_ref is None

    @property
    def path_parts(self) -> List[str]:
        parts = []
        node = self
        while node is not None:
            parts.append(node.name)
            node = node.parent
        return parts[::-1]

    @property
    def files(self) -> List["FileNode"]:
        return [child for child in self.children if isinstance(child, FileNode)]

    @property
    def folders(self) -> List["FolderNode"]:
        return [child for child in self.children if isinstance(child, FolderNode)]

    def add_child(self, node: "Node") -> None:
        self.children.append(node)


@dataclass(frozen=True, eq=False)
class FileNode:
    """A file in the archive tree, pointing at its stored bytes."""

    name: str
    index: int  # Position in the file table
    data_position: int  # Absolute offset in the archive
    data_length: int  # Bytes stored in the archive
    data_uncompressed_length: int
    storage_code: int
    parent_ref: Optional[weakref.ReferenceType] = field(default=None, repr=False)

    @property
    def storage_type(self) -> Optional[FileStorageType]:
        """Known storage type, or None when ``storage_code`` is unrecognized."""
        return storage_type_from_code(self.storage_code)

    @property
    def parent(self) -> Optional[FolderNode]:
        return _deref(self.parent_ref)

    @property
    def path_parts(self) -> List[str]:
        parent = self.parent
        prefix = parent.path_parts if parent is not None else []
        return prefix + [self.name]


Node = Union[FolderNode, FileNode]


def folder_display_name(raw_name: str) -> str:
    """Reduce a stored folder name to its last path component.

    Folder names in the string blob are often full paths ("data\\art").
    """
    return PureWindowsPath(raw_name).name or raw_name


class TreeResolver:
    """Resolves folder and file nodes from the index tables."""

    def __init__(self, reader: BinaryReader, tables: SGATables):
        self._reader = reader
        self._tables = tables

    @property
    def tables(self) -> SGATables:
        return self._tables

    def _read_name(self, name_offset: int) -> str:
        self._reader.seek(self._tables.header.string_position + name_offset)
        return self._reader.read_cstring()

    @staticmethod
    def _check_index(index: int, table_len: int, table: str) -> None:
        if not 0 <= index < table_len:
            raise IndexOutOfRangeError(
                f"{table} index {index} out of range (table has {table_len} entries)"
            )

    @staticmethod
    def _check_range(start: int, end: int, table_len: int, table: str) -> range:
        if start > end or end > table_len:
            raise IndexOutOfRangeError(
                f"{table} range {start}..{end} invalid (table has {table_len} entries)"
            )
        return range(start, end)

    def resolve_folder(self, index: int, parent: Optional[FolderNode] = None) -> FolderNode:
        """Resolve a single folder entry without touching its children."""
        self._check_index(index, len(self._tables.folders), "Folder")
        entry = self._tables.folders[index]
        name = folder_display_name(self._read_name(entry.name_offset))
        return FolderNode(
            name=name,
            index=index,
            entry=entry,
            parent_ref=weakref.ref(parent) if parent is not None else None,
        )

    def resolve_file(self, index: int, parent: Optional[FolderNode] = None) -> FileNode:
        self._check_index(index, len(self._tables.files), "File")
        entry = self._tables.files[index]
        return FileNode(
            name=self._read_name(entry.name_offset),
            index=index,
            data_position=self._tables.header.data_offset + entry.data_offset,
            data_length=entry.compressed_length,
            data_uncompressed_length=entry.uncompressed_size,
            storage_code=entry.storage_code,
            parent_ref=weakref.ref(parent) if parent is not None else None,
        )

    def build_root(self, toc: SGATocEntry) -> FolderNode:
        """Resolve the root folder of a TOC (children not expanded)."""
        return self.resolve_folder(toc.folder_root_index)

    def expand_children(self, folder: FolderNode) -> Tuple[List[FileNode], List[FolderNode]]:
        """Resolve a folder's direct files and folders, in index order.

        Returns fresh nodes on every call and leaves ``folder`` untouched.
        Child folders are not expanded.
        """
        entry = folder.entry
        file_indices = self._check_range(
            entry.file_start_index, entry.file_end_index, len(self._tables.files), "File"
        )
        folder_indices = self._check_range(
            entry.folder_start_index, entry.folder_end_index, len(self._tables.folders), "Folder"
        )

        files = [self.resolve_file(i, folder) for i in file_indices]
        folders = [self.resolve_folder(i, folder) for i in folder_indices]

        logger.debug(
            "Expanded folder %r: %d files, %d folders", folder.name, len(files), len(folders)
        )
        return files, folders

    def walk(
        self, folder: FolderNode, _ancestors: FrozenSet[int] = frozenset()
    ) -> Iterator[Tuple[FolderNode, List[FileNode], List[FolderNode]]]:
        """Depth-first pre-order walk yielding (folder, files, folders).

        Raises IndexOutOfRangeError before yielding a folder that lists
        itself or one of its ancestors as a child.
        """
        files, folders = self.expand_children(folder)
        ancestors = self._check_no_cycle(folder, folders, _ancestors)
        yield folder, files, folders
        for subfolder in folders:
            yield from self.walk(subfolder, ancestors)

    def build_tree(self, toc: SGATocEntry) -> FolderNode:
        """Resolve a TOC root with every descendant attached as children."""
        root = self.build_root(toc)
        self._attach(root, frozenset())
        return root

    def _attach(self, folder: FolderNode, ancestors: FrozenSet[int]) -> None:
        files, folders = self.expand_children(folder)
        ancestors = self._check_no_cycle(folder, folders, ancestors)
        for file_node in files:
            folder.add_child(file_node)
        for subfolder in folders:
            folder.add_child(subfolder)
            self._attach(subfolder, ancestors)

    @staticmethod
    def _check_no_cycle(
        folder: FolderNode, folders: List[FolderNode], ancestors: FrozenSet[int]
    ) -> FrozenSet[int]:
        ancestors = ancestors | {folder.index}
        for subfolder in folders:
            if subfolder.index in ancestors:
                raise IndexOutOfRangeError(
                    f"Folder cycle: folder {folder.index} lists folder {subfolder.index} "
                    f"(itself or an ancestor) as a child"
                )
        return ancestors
