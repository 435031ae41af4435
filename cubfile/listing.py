"""Human-readable TOC listing and error text for Cub files.

This is the only layer that turns :class:`~cubfile.reader.CubError` into
text instead of propagating it.
"""

from __future__ import annotations

import sys
from typing import BinaryIO, TextIO

from .reader import BlockDescriptor, CubError, ErrorKind, check, read_toc

_ERROR_TEXT = {
    ErrorKind.INVALID_FORMAT: "INVALID FILE",
    ErrorKind.CORRUPT_FILE: "CORRUPT FILE",
    ErrorKind.OVERFLOW: "OVERFLOW",
    ErrorKind.NOT_FOUND: "NOT FOUND",
}

UNKNOWN_ERROR = "UNKNOWN ERROR"
EMPTY_TOC = "Table of contents is empty"

LISTING_HEADER = (
    "Idx  Type Name  Type      Offset      Length",
    "---  ---------  ----  ----------  ----------",
)


def describe_error(exc: CubError) -> str:
    """One-line text for *exc*; I/O errors show the platform message."""
    if exc.kind is ErrorKind.IO:
        cause = exc.__cause__
        if isinstance(cause, OSError) and cause.strerror:
            return cause.strerror
        return str(exc)
    return _ERROR_TEXT.get(exc.kind, UNKNOWN_ERROR)


def format_row(block: BlockDescriptor) -> str:
    return (
        f"{block.index:3d}  {block.type_name:>9}  {block.kind:4d}  "
        f"{block.offset:10d}  {block.length:10d}"
    )


def format_listing(source: BinaryIO) -> str:
    """Render the TOC of *source* as a fixed-width table.

    Never raises for format or I/O problems: an error produces a single
    line of error text in place of the table.
    """
    try:
        header = check(source)
        if not header.block_count:
            return EMPTY_TOC + "\n"
        blocks = read_toc(source, header.block_count)
    except CubError as exc:
        return describe_error(exc) + "\n"

    lines = list(LISTING_HEADER)
    lines.extend(format_row(b) for b in blocks)
    return "\n".join(lines) + "\n"


def write_listing(source: BinaryIO, stream: TextIO | None = None) -> None:
    if stream is None:
        stream = sys.stdout
    stream.write(format_listing(source))
