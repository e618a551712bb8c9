"""Relic Chunky container parser.

A chunky file is a 24-byte header followed by a sequence of chunks. Each
chunk has a small header (type, name, version, length, path) followed by
``length`` bytes of payload. ``FOLD`` chunks contain further chunks; ``DATA``
chunks hold raw data.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, List, Union

from ..errors import MagicMismatchError, TruncatedInputError
from ..utils.binary import BinaryReader

logger = logging.getLogger(__name__)

CHUNKY_MAGIC = b"Relic Chunky\r\n\x1a\x00"

CHUNK_TYPE_DATA = "DATA"
CHUNK_TYPE_FOLDER = "FOLD"


@dataclass
class ChunkyFileHeader:
    """Chunky file header (24 bytes)."""

    major: int
    minor: int
    platform: int

    @classmethod
    def parse(cls, reader: BinaryReader) -> "ChunkyFileHeader":
        magic = reader.read_bytes(len(CHUNKY_MAGIC))
        if magic != CHUNKY_MAGIC:
            raise MagicMismatchError(magic, CHUNKY_MAGIC)

        return cls(
            major=reader.read_u16(),
            minor=reader.read_u16(),
            platform=reader.read_u32(),
        )


@dataclass
class ChunkHeader:
    """Header of a single chunk plus, for FOLD chunks, its child chunks."""

    chunk_type: str  # "DATA", "FOLD", or whatever 4 bytes were found
    name: str
    version: int
    length: int
    path: str
    data_position: int
    children: List["ChunkHeader"] = field(default_factory=list, repr=False)

    @property
    def is_data(self) -> bool:
        return self.chunk_type == CHUNK_TYPE_DATA

    @property
    def is_folder(self) -> bool:
        return self.chunk_type == CHUNK_TYPE_FOLDER

    @property
    def end_position(self) -> int:
        return self.data_position + self.length

    @classmethod
    def parse(cls, reader: BinaryReader) -> "ChunkHeader":
        chunk_type = reader.read_bytes(4).decode("ascii", errors="replace")
        name = reader.read_bytes(4).decode("ascii", errors="replace")
        version = reader.read_u32()
        length = reader.read_u32()
        path_length = reader.read_u32()
        path = reader.read_bytes(path_length).decode("utf-8", errors="replace")

        return cls(
            chunk_type=chunk_type,
            name=name,
            version=version,
            length=length,
            path=path,
            data_position=reader.tell(),
        )


class ChunkFile:
    """Parser for Relic Chunky files."""

    def __init__(self, data: Union[bytes, Path, BinaryIO]):
        if isinstance(data, Path):
            data = data.read_bytes()
        self._reader = BinaryReader(data)
        self.header = ChunkyFileHeader.parse(self._reader)
        self.chunks = self._parse_chunks(
            self._reader.tell() + self._reader.remaining(), top_level=True
        )

    def _parse_chunks(self, end: int, top_level: bool = False) -> List[ChunkHeader]:
        """Parse chunks up to ``end``.

        At the top level a chunk header cut short by the end of the file ends
        parsing quietly; inside a folder it raises TruncatedInputError.
        """
        chunks = []
        while self._reader.tell() < end:
            start = self._reader.tell()
            try:
                chunk = ChunkHeader.parse(self._reader)
            except TruncatedInputError:
                if not top_level:
                    raise
                logger.debug("Ignoring %d trailing bytes at offset %d", end - start, start)
                break
            if chunk.end_position > end:
                raise TruncatedInputError(
                    f"Chunk {chunk.chunk_type} {chunk.name} runs past the end of its container"
                )
            if chunk.is_folder:
                chunk.children = self._parse_chunks(chunk.end_position)
            logger.debug(
                "Chunk %s %s v%d (%d bytes)", chunk.chunk_type, chunk.name, chunk.version, chunk.length
            )
            # Skip the payload (or whatever a folder left unread)
            self._reader.seek(chunk.end_position)
            chunks.append(chunk)
        return chunks

    @property
    def reader(self) -> BinaryReader:
        return self._reader

    def iter_chunks(self) -> Iterator[ChunkHeader]:
        """Iterate over every chunk, depth first."""

        def visit(chunks: List[ChunkHeader]) -> Iterator[ChunkHeader]:
            for chunk in chunks:
                yield chunk
                yield from visit(chunk.children)

        return visit(self.chunks)

    def find_chunks(self, chunk_type: str, name: str) -> List[ChunkHeader]:
        return [c for c in self.iter_chunks() if c.chunk_type == chunk_type and c.name == name]

    def extract_chunk_data(self, chunk: ChunkHeader) -> bytes:
        """Read a chunk's payload."""
        self._reader.seek(chunk.data_position)
        return self._reader.read_bytes(chunk.length)

    @classmethod
    def from_file(cls, path: Path) -> "ChunkFile":
        """Load a chunky file from disk."""
        return cls(Path(path))

    @classmethod
    def from_bytes(cls, data: bytes) -> "ChunkFile":
        return cls(data)

    def __repr__(self) -> str:
        return (
            f"ChunkFile(version={self.header.major}.{self.header.minor}, "
            f"chunks={len(self.chunks)})"
        )
