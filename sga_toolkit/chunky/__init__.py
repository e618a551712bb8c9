"""Relic Chunky file support."""

from .chunky import ChunkFile, ChunkHeader
from .rgd import RelicGameData

__all__ = ["ChunkFile", "ChunkHeader", "RelicGameData"]
