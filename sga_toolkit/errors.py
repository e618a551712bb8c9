"""Exception types raised by the SGA and Chunky readers."""


class ArchiveError(Exception):
    """Base class for all archive parsing errors."""


class MagicMismatchError(ArchiveError, ValueError):
    """The file does not start with the expected magic bytes."""

    def __init__(self, found: bytes, expected: bytes):
        super().__init__(f"Invalid magic: {found!r}, expected {expected!r}")
        self.found = found
        self.expected = expected


class TruncatedInputError(ArchiveError, EOFError):
    """A read ran past the end of the stream."""


class InvalidEncodingError(ArchiveError, ValueError):
    """A string field could not be decoded."""


class InvalidEnumValueError(ArchiveError, ValueError):
    """An enum-coded byte has no known meaning."""


class IndexOutOfRangeError(ArchiveError, IndexError):
    """An index range points outside of its table."""


class DecompressionError(ArchiveError):
    """A payload could not be decoded to its declared size."""


class UnsafePathError(ArchiveError, ValueError):
    """An archive name would be written outside of the output directory."""


class ChunkyError(ArchiveError):
    """Base class for Relic Chunky errors."""


class MissingChunkError(ChunkyError):
    """A required chunk is absent."""


class DuplicateChunkError(ChunkyError):
    """A chunk that must be unique appears more than once."""


class UnknownDataTypeError(ChunkyError):
    """An RGD value has an unknown type code."""

    def __init__(self, data_type: int):
        super().__init__(f"Unknown data type {data_type}")
        self.data_type = data_type
