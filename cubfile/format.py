"""Cub file format constants, record layouts, and host byte-order probe."""

import functools
import struct
from enum import Enum, IntEnum

# ── Magic & endian sentinels ────────────────────────────────────────────────

MAGIC = b"CUBE"

# Values CUBIT writes into header word 0 (symmetric under byte reversal).
BIGENDIAN = 0xFFFFFFFF
LITENDIAN = 0x00000000

# ── Fixed sizes (bytes) ────────────────────────────────────────────────────

MAGIC_SIZE = 4
WORD_SIZE = 4
HEADER_WORDS = 6
TOC_RECORD_WORDS = 6

HEADER_SIZE = HEADER_WORDS * WORD_SIZE          # after the magic
TOC_RECORD_SIZE = TOC_RECORD_WORDS * WORD_SIZE

# Header word indices
HDR_ENDIAN = 0
HDR_BLOCK_COUNT = 2
HDR_TOC_OFFSET = 3

# TOC record word indices
REC_TYPE = 0
REC_OFFSET = 1
REC_LENGTH = 2

# ── Block copy ──────────────────────────────────────────────────────────────

COPY_CHUNK_SIZE = 1024

# ── Block types (u32) ──────────────────────────────────────────────────────


class BlockType(IntEnum):
    UNKNOWN = 0
    ACIS = 1
    MESH = 2
    FACET = 3
    FREE_MESH = 4
    GRANITE = 5
    ASSEMBLY = 6


TYPE_PLACEHOLDER = "?"

TYPE_NAMES: dict[BlockType, str] = {
    BlockType.UNKNOWN: TYPE_PLACEHOLDER,
    BlockType.ACIS: "ACIS",
    BlockType.MESH: "MESH",
    BlockType.FACET: "FACET",
    BlockType.FREE_MESH: "FREE MESH",
    BlockType.GRANITE: "GRANITE",
    BlockType.ASSEMBLY: "ASSEMBLY",
}


def type_name(kind: int) -> str:
    """Display name for a raw type code; unrecognized codes get ``"?"``."""
    try:
        return TYPE_NAMES[BlockType(kind)]
    except ValueError:
        return TYPE_PLACEHOLDER


def parse_block_type(text: str) -> int:
    """Parse ``"mesh"``, ``"free-mesh"``, ``"FREE_MESH"`` or ``"2"`` into a type code."""
    text = text.strip()
    if text.isdigit():
        return int(text)
    key = text.upper().replace("-", "_").replace(" ", "_")
    try:
        return int(BlockType[key])
    except KeyError:
        raise ValueError(f"unknown block type: {text!r}") from None


# ── Byte order ──────────────────────────────────────────────────────────────


class ByteOrder(Enum):
    BIG = "big"
    LITTLE = "little"

    @property
    def sentinel(self) -> int:
        return BIGENDIAN if self is ByteOrder.BIG else LITENDIAN

    @property
    def numpy_word(self) -> str:
        """numpy dtype string for an unsigned 32-bit word in this order."""
        return ">u4" if self is ByteOrder.BIG else "<u4"

    @classmethod
    def from_sentinel(cls, value: int) -> "ByteOrder":
        if value == BIGENDIAN:
            return cls.BIG
        if value == LITENDIAN:
            return cls.LITTLE
        raise ValueError(f"not an endian sentinel: 0x{value:08x}")


@functools.lru_cache(maxsize=None)
def host_byte_order() -> ByteOrder:
    """Byte order of this machine, found by looking at how ``1`` is packed."""
    first = struct.pack("=I", 1)[0]
    return ByteOrder.LITTLE if first == 1 else ByteOrder.BIG
