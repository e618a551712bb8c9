"""SGA archive support."""

from .header import FileStorageType, FileVerificationType, SGAHeader
from .nodes import FileNode, FolderNode, TreeResolver
from .reader import ExtractionResult, SGAReader

__all__ = [
    "ExtractionResult",
    "FileNode",
    "FileStorageType",
    "FileVerificationType",
    "FolderNode",
    "SGAHeader",
    "SGAReader",
    "TreeResolver",
]
