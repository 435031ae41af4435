"""Cub file reader – validate the header, decode the TOC, and copy blocks out.

Every operation takes an already-open, seekable binary stream and re-derives
the header and table of contents from it; nothing is cached between calls.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

import numpy as np

from .format import (
    MAGIC,
    MAGIC_SIZE,
    HEADER_SIZE,
    TOC_RECORD_SIZE,
    TOC_RECORD_WORDS,
    HDR_ENDIAN,
    HDR_BLOCK_COUNT,
    HDR_TOC_OFFSET,
    REC_TYPE,
    REC_OFFSET,
    REC_LENGTH,
    COPY_CHUNK_SIZE,
    BlockType,
    ByteOrder,
    host_byte_order,
    type_name,
)

logger = logging.getLogger("cubfile")


# ── Exceptions ──────────────────────────────────────────────────────────────


class ErrorKind(Enum):
    IO = "io"
    INVALID_FORMAT = "invalid_format"
    CORRUPT_FILE = "corrupt_file"
    OVERFLOW = "overflow"
    NOT_FOUND = "not_found"


class CubError(Exception):
    """Base exception for Cub file parse and extraction errors."""

    kind: ErrorKind


class CubIOError(CubError):
    """Seek, read or write on the underlying stream failed or came up short."""

    kind = ErrorKind.IO


class InvalidFormatError(CubError):
    """Magic tag mismatch: not a Cub file."""

    kind = ErrorKind.INVALID_FORMAT


class CorruptFileError(CubError):
    """A Cub file whose header or TOC violates the format."""

    kind = ErrorKind.CORRUPT_FILE


class TocOverflowError(CubError):
    """Caller-supplied capacity is smaller than the TOC."""

    kind = ErrorKind.OVERFLOW


class BlockNotFoundError(CubError):
    """Requested index or type does not resolve to a non-empty block."""

    kind = ErrorKind.NOT_FOUND


# ── Parsed structures ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class FileHeader:
    """Fields decoded from the fixed header (after byte swapping)."""

    byte_order: ByteOrder
    swap_needed: bool
    block_count: int
    toc_offset: int


@dataclass(frozen=True)
class BlockDescriptor:
    """One TOC entry; ``index`` is its 0-based position in the TOC."""

    index: int
    kind: int
    offset: int
    length: int

    @property
    def block_type(self) -> BlockType | None:
        try:
            return BlockType(self.kind)
        except ValueError:
            return None

    @property
    def type_name(self) -> str:
        return type_name(self.kind)

    @property
    def is_empty(self) -> bool:
        return self.length == 0


# ── Stream helpers ──────────────────────────────────────────────────────────


def _seek(source: BinaryIO, offset: int) -> None:
    try:
        source.seek(offset)
    except (OSError, ValueError) as exc:
        raise CubIOError(f"seek to offset {offset} failed: {exc}") from exc


def _read_exact(source: BinaryIO, length: int, what: str) -> bytes:
    try:
        data = source.read(length) or b""
    except (OSError, ValueError) as exc:
        raise CubIOError(f"reading {what} failed: {exc}") from exc
    if len(data) != length:
        raise CubIOError(
            f"short read of {what}: got {len(data)} of {length} bytes"
        )
    return data


def _write_all(sink: BinaryIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        try:
            written = sink.write(view)
        except (OSError, ValueError) as exc:
            raise CubIOError(f"write failed: {exc}") from exc
        if not written:
            raise CubIOError("write made no progress")
        view = view[written:]


def _decode_words(raw: bytes, swap: bool) -> np.ndarray:
    """Decode *raw* as host-order u32 words, byte-reversing each if *swap*."""
    words = np.frombuffer(raw, dtype=host_byte_order().numpy_word)
    if swap:
        words = words.byteswap()
    return words


# ── Header ──────────────────────────────────────────────────────────────────


def check(source: BinaryIO) -> FileHeader:
    """Validate magic and endian tag; return the decoded header.

    Raises :class:`InvalidFormatError` if the file does not start with
    ``CUBE``, :class:`CorruptFileError` if the endian word is neither
    sentinel, and :class:`CubIOError` on seek/read failure.
    """
    _seek(source, 0)
    magic = _read_exact(source, MAGIC_SIZE, "magic")
    if magic != MAGIC:
        raise InvalidFormatError(f"bad magic: {magic!r}")

    raw = _read_exact(source, HEADER_SIZE, "header")
    host = host_byte_order()
    tag = int(np.frombuffer(raw, dtype=host.numpy_word)[HDR_ENDIAN])
    try:
        file_order = ByteOrder.from_sentinel(tag)
    except ValueError:
        raise CorruptFileError(f"unrecognized endian tag 0x{tag:08x}") from None

    swap = tag != host.sentinel
    words = _decode_words(raw, swap)
    header = FileHeader(
        byte_order=file_order,
        swap_needed=swap,
        block_count=int(words[HDR_BLOCK_COUNT]),
        toc_offset=int(words[HDR_TOC_OFFSET]),
    )
    logger.debug(
        "cub header: %s-endian file on %s-endian host (swap=%s), "
        "%d blocks, TOC at %d",
        file_order.value, host.value, swap,
        header.block_count, header.toc_offset,
    )
    return header


# ── Table of contents ───────────────────────────────────────────────────────


def read_toc(
    source: BinaryIO,
    capacity: int | None = None,
) -> list[BlockDescriptor]:
    """Decode the TOC in file order.

    *capacity* bounds the number of descriptors the caller is prepared to
    accept; a larger TOC raises :class:`TocOverflowError` before anything is
    read. ``None`` accepts any size.
    """
    header = check(source)
    count = header.block_count
    if capacity is not None and capacity < count:
        raise TocOverflowError(
            f"TOC has {count} blocks but capacity is {capacity}"
        )
    if count == 0:
        return []

    _seek(source, header.toc_offset)
    records = [
        _read_exact(source, TOC_RECORD_SIZE, f"TOC record {i}")
        for i in range(count)
    ]
    words = _decode_words(b"".join(records), header.swap_needed)
    rows = words.reshape(count, TOC_RECORD_WORDS).tolist()

    return [
        BlockDescriptor(
            index=i,
            kind=row[REC_TYPE],
            offset=row[REC_OFFSET],
            length=row[REC_LENGTH],
        )
        for i, row in enumerate(rows)
    ]


# ── Block extraction ────────────────────────────────────────────────────────


def extract(
    source: BinaryIO,
    offset: int,
    length: int,
    sink: BinaryIO,
    chunk_size: int = COPY_CHUNK_SIZE,
) -> int:
    """Copy *length* bytes starting at *offset* from *source* into *sink*.

    Copies in pieces of at most *chunk_size* bytes. Returns the number of
    bytes written, which always equals *length*. On error the sink may hold
    a partial payload and must be discarded.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    logger.debug("copying %d bytes from offset %d", length, offset)
    _seek(source, offset)
    remaining = length
    while remaining:
        want = min(remaining, chunk_size)
        try:
            chunk = source.read(want)
        except (OSError, ValueError) as exc:
            raise CubIOError(f"reading block data failed: {exc}") from exc
        if not chunk:
            raise CubIOError(
                f"unexpected end of file at offset {offset + length - remaining} "
                f"({remaining} of {length} bytes left)"
            )
        remaining -= len(chunk)
        _write_all(sink, chunk)
    return length


def _toc_for_lookup(source: BinaryIO) -> list[BlockDescriptor]:
    blocks = read_toc(source)
    # An empty TOC is a corrupt file rather than a missing block, so even
    # index 0 raises CorruptFileError here instead of BlockNotFoundError.
    if not blocks:
        raise CorruptFileError("table of contents is empty")
    return blocks


def find_block(
    blocks: list[BlockDescriptor], kind: int
) -> BlockDescriptor | None:
    """Return the first non-empty descriptor of type *kind*, or ``None``."""
    for block in blocks:
        if block.kind == int(kind) and block.length:
            return block
    return None


def block_at(source: BinaryIO, index: int) -> BlockDescriptor:
    """Return the non-empty descriptor at TOC position *index*."""
    blocks = _toc_for_lookup(source)
    if index < 0 or index >= len(blocks):
        raise BlockNotFoundError(
            f"block index {index} out of range (0..{len(blocks) - 1})"
        )
    block = blocks[index]
    if block.is_empty:
        raise BlockNotFoundError(f"block {index} is empty")
    return block


def block_of_type(source: BinaryIO, kind: int) -> BlockDescriptor:
    """Return the first non-empty descriptor of type *kind*."""
    block = find_block(_toc_for_lookup(source), kind)
    if block is None:
        raise BlockNotFoundError(
            f"no non-empty block of type {type_name(kind)} ({int(kind)})"
        )
    return block


def extract_by_index(
    source: BinaryIO,
    index: int,
    sink: BinaryIO,
    chunk_size: int = COPY_CHUNK_SIZE,
) -> int:
    """Copy block *index* to *sink*; returns bytes written."""
    block = block_at(source, index)
    return extract(source, block.offset, block.length, sink, chunk_size)


def extract_by_type(
    source: BinaryIO,
    kind: int,
    sink: BinaryIO,
    chunk_size: int = COPY_CHUNK_SIZE,
) -> int:
    """Copy the first non-empty block of type *kind* to *sink*."""
    block = block_of_type(source, kind)
    return extract(source, block.offset, block.length, sink, chunk_size)


# ── CubReader ───────────────────────────────────────────────────────────────


class CubReader:
    """Open a Cub file by path and run the stream operations against it.

    Usage::

        with CubReader("model.cub") as r:
            for b in r.list_blocks():
                print(b.index, b.type_name, b.length)
            mesh = r.read_type_bytes(BlockType.MESH)

    The header is validated on open. Nothing else is kept: each call
    re-reads the header and TOC from the file.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        self._fd = open(path, "rb")  # noqa: SIM115
        try:
            check(self._fd)
        except CubError:
            self._fd.close()
            raise

    @property
    def path(self) -> str:
        return self._path

    @property
    def stream(self) -> BinaryIO:
        return self._fd

    def header(self) -> FileHeader:
        return check(self._fd)

    def list_blocks(self) -> list[BlockDescriptor]:
        return read_toc(self._fd)

    def extract_block(self, index: int, sink: BinaryIO) -> int:
        return extract_by_index(self._fd, index, sink)

    def extract_type(self, kind: int, sink: BinaryIO) -> int:
        return extract_by_type(self._fd, kind, sink)

    def read_block_bytes(self, index: int) -> bytes:
        buf = io.BytesIO()
        self.extract_block(index, buf)
        return buf.getvalue()

    def read_type_bytes(self, kind: int) -> bytes:
        buf = io.BytesIO()
        self.extract_type(kind, buf)
        return buf.getvalue()

    # ── Lifecycle ────────────────────────────────────────────────────────

    def close(self) -> None:
        self._fd.close()

    def __enter__(self) -> CubReader:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
