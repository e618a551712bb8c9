"""SGA header and index table decoding."""

import logging
from dataclasses import dataclass
from typing import Tuple

from ..errors import InvalidEnumValueError, MagicMismatchError
from ..utils.binary import BinaryReader
from .header import (
    ARCHIVE_NAME_LENGTH,
    SGA_MAGIC,
    SIGNATURE_SIZE,
    TOC_STRING_LENGTH,
    FileVerificationType,
    SGAFileEntry,
    SGAFolderEntry,
    SGAHeader,
    SGATocEntry,
)

logger = logging.getLogger(__name__)


def read_header(reader: BinaryReader) -> SGAHeader:
    """Read the SGA header from the start of the stream.

    The header is split in two: the leading part at offset 0 and the table
    descriptors at ``header_blob_offset``. The reader is left positioned just
    after the descriptors.
    """
    reader.seek(0)

    magic = reader.read_bytes(len(SGA_MAGIC))
    if magic != SGA_MAGIC:
        raise MagicMismatchError(magic, SGA_MAGIC)

    version = reader.read_u16()
    product = reader.read_u16()
    name = reader.read_fixed_string(ARCHIVE_NAME_LENGTH, char_size=2)

    header_blob_offset = reader.read_u64()
    header_blob_length = reader.read_u32()
    data_offset = reader.read_u64()
    data_blob_length = reader.read_u64()

    reader.read_u32()  # Always 1

    signature = reader.read_bytes(SIGNATURE_SIZE)

    # Table descriptors are not contiguous with the leading header
    reader.seek(header_blob_offset)

    toc_data_offset = reader.read_u32()
    toc_data_count = reader.read_u32()
    folder_data_offset = reader.read_u32()
    folder_data_count = reader.read_u32()
    file_data_offset = reader.read_u32()
    file_data_count = reader.read_u32()
    string_offset = reader.read_u32()
    string_length = reader.read_u32()
    file_hash_offset = reader.read_u32()
    file_hash_length = reader.read_u32()
    block_size = reader.read_u32()

    return SGAHeader(
        magic=magic,
        version=version,
        product=product,
        name=name,
        header_blob_offset=header_blob_offset,
        header_blob_length=header_blob_length,
        data_offset=data_offset,
        data_blob_length=data_blob_length,
        signature=signature,
        toc_data_offset=toc_data_offset,
        toc_data_count=toc_data_count,
        folder_data_offset=folder_data_offset,
        folder_data_count=folder_data_count,
        file_data_offset=file_data_offset,
        file_data_count=file_data_count,
        string_offset=string_offset,
        string_length=string_length,
        file_hash_offset=file_hash_offset,
        file_hash_length=file_hash_length,
        block_size=block_size,
    )


def read_toc_entry(reader: BinaryReader) -> SGATocEntry:
    alias = reader.read_fixed_string(TOC_STRING_LENGTH)
    name = reader.read_fixed_string(TOC_STRING_LENGTH)
    return SGATocEntry(
        alias=alias,
        name=name,
        folder_start_index=reader.read_u32(),
        folder_end_index=reader.read_u32(),
        file_start_index=reader.read_u32(),
        file_end_index=reader.read_u32(),
        folder_root_index=reader.read_u32(),
    )


def read_folder_entry(reader: BinaryReader) -> SGAFolderEntry:
    return SGAFolderEntry(
        name_offset=reader.read_u32(),
        folder_start_index=reader.read_u32(),
        folder_end_index=reader.read_u32(),
        file_start_index=reader.read_u32(),
        file_end_index=reader.read_u32(),
    )


def read_file_entry(reader: BinaryReader) -> SGAFileEntry:
    """Read a single file entry.

    Unknown storage codes are kept as-is; unknown verification codes are
    rejected with InvalidEnumValueError.
    """
    name_offset = reader.read_u32()
    hash_offset = reader.read_u32()
    data_offset = reader.read_u64()
    compressed_length = reader.read_u32()
    uncompressed_size = reader.read_u32()
    verification_code = reader.read_u8()
    storage_code = reader.read_u8()
    crc = reader.read_u32()

    try:
        verification_type = FileVerificationType(verification_code)
    except ValueError:
        raise InvalidEnumValueError(
            f"Invalid file verification type: {verification_code}"
        ) from None

    return SGAFileEntry(
        name_offset=name_offset,
        hash_offset=hash_offset,
        data_offset=data_offset,
        compressed_length=compressed_length,
        uncompressed_size=uncompressed_size,
        verification_type=verification_type,
        storage_code=storage_code,
        crc=crc,
    )


@dataclass(frozen=True)
class SGATables:
    """The header and the three index tables of an archive."""

    header: SGAHeader
    tocs: Tuple[SGATocEntry, ...]
    folders: Tuple[SGAFolderEntry, ...]
    files: Tuple[SGAFileEntry, ...]

    @classmethod
    def from_reader(cls, reader: BinaryReader) -> "SGATables":
        """Parse the header, then each table at its blob-relative offset."""
        header = read_header(reader)

        reader.seek(header.toc_position)
        tocs = tuple(read_toc_entry(reader) for _ in range(header.toc_data_count))

        reader.seek(header.folder_position)
        folders = tuple(read_folder_entry(reader) for _ in range(header.folder_data_count))

        reader.seek(header.file_position)
        files = tuple(read_file_entry(reader) for _ in range(header.file_data_count))

        logger.debug(
            "Read %d tocs, %d folders, %d files", len(tocs), len(folders), len(files)
        )
        return cls(header=header, tocs=tocs, folders=folders, files=files)
