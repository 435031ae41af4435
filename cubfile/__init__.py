"""cubfile – read-only access to CUBIT .cub container files."""

__version__ = "0.1.0"

from .format import (
    MAGIC, BIGENDIAN, LITENDIAN, COPY_CHUNK_SIZE,
    BlockType, ByteOrder, TYPE_NAMES,
    host_byte_order,
)
from .reader import (
    CubError, CubIOError, InvalidFormatError, CorruptFileError,
    TocOverflowError, BlockNotFoundError, ErrorKind,
    FileHeader, BlockDescriptor, CubReader,
    check, read_toc, extract, extract_by_index, extract_by_type, find_block,
    block_at, block_of_type,
)
from .listing import describe_error, format_listing, write_listing

__all__ = [
    "__version__",
    "MAGIC", "BIGENDIAN", "LITENDIAN", "COPY_CHUNK_SIZE",
    "BlockType", "ByteOrder", "TYPE_NAMES", "host_byte_order",
    "CubError", "CubIOError", "InvalidFormatError", "CorruptFileError",
    "TocOverflowError", "BlockNotFoundError", "ErrorKind",
    "FileHeader", "BlockDescriptor", "CubReader",
    "check", "read_toc", "extract", "extract_by_index", "extract_by_type",
    "find_block", "block_at", "block_of_type",
    "describe_error", "format_listing", "write_listing",
]
