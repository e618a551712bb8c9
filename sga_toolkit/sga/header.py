"""SGA header and index table structures."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

# SGA magic bytes
SGA_MAGIC = b"_ARCHIVE"

# Fixed string widths (in characters)
ARCHIVE_NAME_LENGTH = 64
TOC_STRING_LENGTH = 64

# On-disk record sizes (bytes)
TOC_ENTRY_SIZE = 148
FOLDER_ENTRY_SIZE = 20
FILE_ENTRY_SIZE = 30
SIGNATURE_SIZE = 256


class FileVerificationType(IntEnum):
    """How a file is verified when the game loads it."""

    NONE = 0
    CRC = 1
    CRC_BLOCKS = 2
    MD5_BLOCKS = 3
    SHA1_BLOCKS = 4


class FileStorageType(IntEnum):
    """How a file's data is stored in the data blob."""

    STORE = 0
    STREAM_COMPRESS = 1  # deflate
    BUFFER_COMPRESS = 2  # deflate
    STREAM_COMPRESS_BROTLI = 3
    BUFFER_COMPRESS_BROTLI = 4

    @property
    def is_deflate(self) -> bool:
        return self in (FileStorageType.STREAM_COMPRESS, FileStorageType.BUFFER_COMPRESS)

    @property
    def is_brotli(self) -> bool:
        return self in (
            FileStorageType.STREAM_COMPRESS_BROTLI,
            FileStorageType.BUFFER_COMPRESS_BROTLI,
        )


@dataclass
class SGAHeader:
    """SGA archive header.

    The first part sits at offset 0; the table descriptors (everything from
    ``toc_data_offset`` on) live at ``header_blob_offset``. All descriptor
    offsets are relative to ``header_blob_offset``.
    """

    magic: bytes  # 8 bytes: "_ARCHIVE"
    version: int  # u16
    product: int  # u16
    name: str  # 64 UTF-16 characters
    header_blob_offset: int  # u64
    header_blob_length: int  # u32
    data_offset: int  # u64
    data_blob_length: int  # u64
    signature: bytes  # 256 bytes, unused

    toc_data_offset: int
    toc_data_count: int
    folder_data_offset: int
    folder_data_count: int
    file_data_offset: int
    file_data_count: int
    string_offset: int
    string_length: int
    file_hash_offset: int
    file_hash_length: int
    block_size: int

    @property
    def is_valid(self) -> bool:
        return self.magic == SGA_MAGIC

    @property
    def toc_position(self) -> int:
        return self.header_blob_offset + self.toc_data_offset

    @property
    def folder_position(self) -> int:
        return self.header_blob_offset + self.folder_data_offset

    @property
    def file_position(self) -> int:
        return self.header_blob_offset + self.file_data_offset

    @property
    def string_position(self) -> int:
        return self.header_blob_offset + self.string_offset


@dataclass(frozen=True)
class SGATocEntry:
    """Table of contents entry (148 bytes): one logical root of the archive."""

    alias: str  # 64 bytes
    name: str  # 64 bytes
    folder_start_index: int
    folder_end_index: int
    file_start_index: int
    file_end_index: int
    folder_root_index: int


@dataclass(frozen=True)
class SGAFolderEntry:
    """Folder entry (20 bytes).

    Child folders are ``folder_start_index..folder_end_index`` in the folder
    table and child files ``file_start_index..file_end_index`` in the file
    table (both half open).
    """

    name_offset: int
    folder_start_index: int
    folder_end_index: int
    file_start_index: int
    file_end_index: int

    @property
    def folder_count(self) -> int:
        return self.folder_end_index - self.folder_start_index

    @property
    def file_count(self) -> int:
        return self.file_end_index - self.file_start_index


@dataclass(frozen=True)
class SGAFileEntry:
    """File entry (30 bytes)."""

    name_offset: int  # 4 bytes: offset into the string blob
    hash_offset: int  # 4 bytes: offset into the hash blob
    data_offset: int  # 8 bytes: relative to header.data_offset
    compressed_length: int  # 4 bytes
    uncompressed_size: int  # 4 bytes
    verification_type: FileVerificationType  # 1 byte
    storage_code: int  # 1 byte, see storage_type
    crc: int  # 4 bytes, not checked

    @property
    def storage_type(self) -> Optional[FileStorageType]:
        """The FileStorageType, or None for a code this reader doesn't know."""
        return storage_type_from_code(self.storage_code)


def storage_type_from_code(code: int) -> Optional[FileStorageType]:
    try:
        return FileStorageType(code)
    except ValueError:
        return None
