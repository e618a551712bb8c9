"""Shared fixtures: build small SGA archives in memory."""

import struct
import zlib

import brotli
import pytest

SGA_HEADER_SIZE = 428
DESCRIPTOR_SIZE = 44
# Filler between the leading header and the header blob
BLOB_GAP = 16


class ArchiveBuilder:
    """Assembles an SGA archive byte-for-byte.

    Folder and file ranges are given explicitly as (start, end) index pairs,
    so tests control the exact table layout.
    """

    def __init__(self, name: str = "Data", version: int = 10, product: int = 0):
        self.name = name
        self.version = version
        self.product = product
        self.block_size = 0x40000
        self.tocs = []
        self.folders = []
        self.files = []
        self.strings = bytearray()
        self.data = bytearray()

    def add_string(self, value: str) -> int:
        offset = len(self.strings)
        self.strings += value.encode("utf-8") + b"\x00"
        return offset

    def add_toc(self, alias: str, name: str, root: int = 0, folders=(0, 0), files=(0, 0)) -> int:
        record = (
            alias.encode("utf-8").ljust(64, b"\x00")
            + name.encode("utf-8").ljust(64, b"\x00")
            + struct.pack("<5I", folders[0], folders[1], files[0], files[1], root)
        )
        self.tocs.append(record)
        return len(self.tocs) - 1

    def add_folder(self, name: str, folders=(0, 0), files=(0, 0)) -> int:
        name_offset = self.add_string(name)
        self.folders.append(
            struct.pack("<5I", name_offset, folders[0], folders[1], files[0], files[1])
        )
        return len(self.folders) - 1

    def add_file(
        self,
        name: str,
        stored: bytes,
        storage_type: int = 0,
        uncompressed_size: int = None,
        verification_type: int = 0,
        crc: int = 0,
    ) -> int:
        if uncompressed_size is None:
            uncompressed_size = len(stored)
        name_offset = self.add_string(name)
        data_offset = len(self.data)
        self.data += stored
        self.files.append(
            struct.pack(
                "<IIQIIBBI",
                name_offset,
                0,
                data_offset,
                len(stored),
                uncompressed_size,
                verification_type,
                storage_type,
                crc,
            )
        )
        return len(self.files) - 1

    def build(self) -> bytes:
        toc_bytes = b"".join(self.tocs)
        folder_bytes = b"".join(self.folders)
        file_bytes = b"".join(self.files)

        toc_offset = DESCRIPTOR_SIZE
        folder_offset = toc_offset + len(toc_bytes)
        file_offset = folder_offset + len(folder_bytes)
        string_offset = file_offset + len(file_bytes)
        hash_offset = string_offset + len(self.strings)

        blob = (
            struct.pack(
                "<11I",
                toc_offset,
                len(self.tocs),
                folder_offset,
                len(self.folders),
                file_offset,
                len(self.files),
                string_offset,
                len(self.strings),
                hash_offset,
                0,
                self.block_size,
            )
            + toc_bytes
            + folder_bytes
            + file_bytes
            + bytes(self.strings)
        )

        header_blob_offset = SGA_HEADER_SIZE + BLOB_GAP
        data_offset = header_blob_offset + len(blob)

        header = (
            b"_ARCHIVE"
            + struct.pack("<HH", self.version, self.product)
            + self.name.encode("utf-16-le").ljust(128, b"\x00")
            + struct.pack("<QIQQI", header_blob_offset, len(blob), data_offset, len(self.data), 1)
            + b"\x5A" * 256
        )
        assert len(header) == SGA_HEADER_SIZE

        return header + b"\xEE" * BLOB_GAP + blob + bytes(self.data)


def deflate_payload(plain: bytes) -> bytes:
    """zlib stream: 2-byte header, raw deflate, adler32 trailer."""
    return zlib.compress(plain)


def brotli_payload(plain: bytes) -> bytes:
    return brotli.compress(plain)


README = b"Age of Empires IV art archive\n"
DATA_BIN = bytes(range(256)) * 8
MUSIC = b"\x00\x01\x02\x03music" * 50


@pytest.fixture
def simple_archive_bytes():
    """One TOC, one root folder, a Store file and a StreamCompress file."""
    builder = ArchiveBuilder()
    builder.add_toc("data", "ArtJapanese", root=0, folders=(0, 1), files=(0, 2))
    builder.add_folder("root", folders=(1, 1), files=(0, 2))
    builder.add_file("readme.txt", README, storage_type=0)
    builder.add_file(
        "data.bin", deflate_payload(DATA_BIN), storage_type=1, uncompressed_size=len(DATA_BIN)
    )
    return builder.build()


@pytest.fixture
def nested_archive_bytes():
    """Nested layout:

    Data/root.txt
    Data/art/a.txt
    Data/art/b.bin          (BufferCompress)
    Data/art/ui/button.txt
    Data/sound/music.bin    (StreamCompressBrotli)
    """
    builder = ArchiveBuilder()
    builder.add_toc("data", "Data", root=0, folders=(0, 4), files=(0, 5))
    builder.add_folder("Data", folders=(1, 3), files=(0, 1))
    builder.add_folder("data\\art", folders=(3, 4), files=(1, 3))
    builder.add_folder("data\\sound", folders=(4, 4), files=(3, 4))
    builder.add_folder("data\\art\\ui", folders=(4, 4), files=(4, 5))
    builder.add_file("root.txt", README)
    builder.add_file("a.txt", b"alpha")
    builder.add_file("b.bin", deflate_payload(DATA_BIN), storage_type=2, uncompressed_size=len(DATA_BIN))
    builder.add_file("music.bin", brotli_payload(MUSIC), storage_type=3, uncompressed_size=len(MUSIC))
    builder.add_file("button.txt", b"click me")
    return builder.build()


@pytest.fixture
def simple_archive(tmp_path, simple_archive_bytes):
    path = tmp_path / "ArtJapanese.sga"
    path.write_bytes(simple_archive_bytes)
    return path


@pytest.fixture
def nested_archive(tmp_path, nested_archive_bytes):
    path = tmp_path / "Data.sga"
    path.write_bytes(nested_archive_bytes)
    return path
