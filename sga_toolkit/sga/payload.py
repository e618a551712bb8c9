"""SGA file payload decoding."""

import logging
import zlib

import brotli

from ..errors import DecompressionError
from ..utils.binary import BinaryReader
from .header import FileStorageType
from .nodes import FileNode

logger = logging.getLogger(__name__)

# Deflate payloads start with a 2-byte prefix (a zlib header) that is skipped
# before raw-inflating the rest.
DEFLATE_PREFIX_SIZE = 2

# Brotli input is fed to the decoder in chunks of this size
BROTLI_CHUNK_SIZE = 4096


def read_data(reader: BinaryReader, node: FileNode) -> bytes:
    """Read and decode a file's payload.

    Seeks to the node's data position and decodes according to its storage
    type. Unknown storage codes are logged and copied raw. Nothing is cached.
    """
    reader.seek(node.data_position)
    storage_type = node.storage_type

    if storage_type is None:
        logger.warning(
            "Unknown storage type %d for %r, copying raw bytes", node.storage_code, node.name
        )
        return reader.read_bytes(node.data_length)

    if storage_type == FileStorageType.STORE:
        return reader.read_bytes(node.data_length)

    if storage_type.is_deflate:
        reader.skip(DEFLATE_PREFIX_SIZE)
        compressed = reader.read_bytes(max(0, node.data_length - DEFLATE_PREFIX_SIZE))
        return _inflate(compressed, node)

    return _brotli_decode(reader.read_bytes(node.data_length), node)


def _inflate(compressed: bytes, node: FileNode) -> bytes:
    expected = node.data_uncompressed_length
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    try:
        data = decompressor.decompress(compressed, expected) if expected else b""
    except zlib.error as e:
        raise DecompressionError(f"Deflate error in {node.name!r}: {e}") from e
    return _check_size(data, node)


def _brotli_decode(compressed: bytes, node: FileNode) -> bytes:
    """Decode a Brotli stream, ignoring any bytes after its end.

    Input goes in ``BROTLI_CHUNK_SIZE`` pieces until the stream finishes or
    enough output exists.
    """
    expected = node.data_uncompressed_length
    decompressor = brotli.Decompressor()
    result = bytearray()
    start = 0
    try:
        while start < len(compressed) and len(result) < expected and not decompressor.is_finished():
            chunk = compressed[start : start + BROTLI_CHUNK_SIZE]
            try:
                result.extend(decompressor.process(chunk))
            except brotli.error:
                # process() rejects a chunk holding data past the stream end;
                # replay that chunk a byte at a time to stop at the end
                decompressor = brotli.Decompressor()
                result = bytearray(decompressor.process(compressed[:start]))
                for offset in range(len(chunk)):
                    if decompressor.is_finished() or len(result) >= expected:
                        break
                    result.extend(decompressor.process(chunk[offset : offset + 1]))
            start += BROTLI_CHUNK_SIZE
    except brotli.error as e:
        raise DecompressionError(f"Brotli error in {node.name!r}: {e}") from e
    return _check_size(bytes(result[:expected]), node)


def _check_size(data: bytes, node: FileNode) -> bytes:
    if len(data) < node.data_uncompressed_length:
        raise DecompressionError(
            f"{node.name!r}: expected {node.data_uncompressed_length} bytes, "
            f"got {len(data)}"
        )
    return data
