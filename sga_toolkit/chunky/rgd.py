"""RGD (Relic game data) parser.

RGD files are chunky files with a ``DATA KEYS`` chunk mapping 64-bit key
hashes to names and a ``DATA AEGD`` chunk holding the typed values.
Only the key table and the AEGD preamble are decoded so far.
"""

import json
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, List, Union

from ..errors import DuplicateChunkError, MissingChunkError, UnknownDataTypeError
from ..utils.binary import BinaryReader
from .chunky import CHUNK_TYPE_DATA, ChunkFile, ChunkHeader


class RGDDataType(IntEnum):
    FLOAT = 0
    INT = 1
    BOOLEAN = 2
    STRING = 3
    LIST = 100
    LIST2 = 101


@dataclass
class RGDValue:
    """A single key/value record from an RGD value list."""

    key: int
    data_type: RGDDataType
    index: int
    value: Any


def read_value_list(reader: BinaryReader) -> List[RGDValue]:
    """Read a count-prefixed list of typed records.

    Each record is (u64 key, i32 type, i32 index) followed by the value.
    List types carry no inline value and come back as empty lists.
    """
    values = []
    for _ in range(reader.read_u32()):
        key = reader.read_u64()
        type_code = reader.read_i32()
        index = reader.read_i32()

        try:
            data_type = RGDDataType(type_code)
        except ValueError:
            raise UnknownDataTypeError(type_code) from None

        if data_type == RGDDataType.FLOAT:
            value = reader.read_f32()
        elif data_type == RGDDataType.INT:
            value = reader.read_i32()
        elif data_type == RGDDataType.BOOLEAN:
            value = reader.read_u8() != 0
        elif data_type == RGDDataType.STRING:
            value = reader.read_cstring()
        else:
            value = []

        values.append(RGDValue(key=key, data_type=data_type, index=index, value=value))
    return values


@dataclass
class RelicGameData:
    """Decoded RGD contents."""

    keys: Dict[int, str] = field(default_factory=dict)
    aegd_header: int = 0

    @classmethod
    def parse(cls, chunk_file: ChunkFile) -> "RelicGameData":
        keys_chunk = _single_data_chunk(chunk_file, "KEYS")
        aegd_chunk = _single_data_chunk(chunk_file, "AEGD")

        return cls(
            keys=cls._parse_keys(chunk_file, keys_chunk),
            aegd_header=cls._parse_aegd(chunk_file, aegd_chunk),
        )

    @staticmethod
    def _parse_keys(chunk_file: ChunkFile, chunk: ChunkHeader) -> Dict[int, str]:
        reader = BinaryReader(chunk_file.extract_chunk_data(chunk))
        keys = {}
        for _ in range(reader.read_u32()):
            key = reader.read_u64()
            length = reader.read_u32()
            keys[key] = reader.read_bytes(length).decode("utf-8", errors="replace")
        return keys

    @staticmethod
    def _parse_aegd(chunk_file: ChunkFile, chunk: ChunkHeader) -> int:
        reader = BinaryReader(chunk_file.extract_chunk_data(chunk))
        return reader.read_u32()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RelicGameData":
        return cls.parse(ChunkFile.from_file(Path(path)))

    def to_json(self, indent: int = 2) -> str:
        """Export the key table to JSON (keys as hex strings)."""
        data = {
            "aegd_header": self.aegd_header,
            "keys": {f"0x{key:016X}": name for key, name in sorted(self.keys.items())},
        }
        return json.dumps(data, indent=indent, ensure_ascii=False)

    def to_text(self) -> str:
        return "\n".join(f"0x{key:016X} {name}" for key, name in sorted(self.keys.items()))


def _single_data_chunk(chunk_file: ChunkFile, name: str) -> ChunkHeader:
    chunks = chunk_file.find_chunks(CHUNK_TYPE_DATA, name)
    if not chunks:
        raise MissingChunkError(f"No DATA {name} chunk present")
    if len(chunks) > 1:
        raise DuplicateChunkError(f"More than one DATA {name} chunk present")
    return chunks[0]
