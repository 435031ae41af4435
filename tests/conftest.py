"""Shared builders for small Cub files written with ``struct``."""

import struct

import pytest

from cubfile.format import BIGENDIAN, LITENDIAN, MAGIC

PREFIX_SIZE = 28   # magic + 6 header words
RECORD_SIZE = 24


def pack_cub(
    records,
    order="<",
    *,
    payload=b"",
    toc_offset=PREFIX_SIZE,
    tag=None,
    magic=MAGIC,
    block_count=None,
):
    """Raw layout: magic, header words, TOC at *toc_offset*, then *payload*.

    *records* is a list of ``(kind, offset, length)`` tuples written as-is.
    """
    if tag is None:
        tag = BIGENDIAN if order == ">" else LITENDIAN
    count = len(records) if block_count is None else block_count
    data = bytearray(magic)
    data += struct.pack(order + "6I", tag, 0, count, toc_offset, 0, 0)
    data += b"\x00" * (toc_offset - len(data))
    for kind, off, length in records:
        data += struct.pack(order + "6I", kind, off, length, 0, 0, 0)
    data += payload
    return bytes(data)


def layout_cub(blocks, order="<"):
    """Build a file from ``(kind, payload)`` pairs stored right after the TOC."""
    pos = PREFIX_SIZE + RECORD_SIZE * len(blocks)
    records = []
    payload = bytearray()
    for kind, body in blocks:
        records.append((kind, pos, len(body)))
        payload += body
        pos += len(body)
    return pack_cub(records, order, payload=bytes(payload))


@pytest.fixture(name="pack_cub")
def pack_cub_fixture():
    return pack_cub


@pytest.fixture(name="layout_cub")
def layout_cub_fixture():
    return layout_cub


@pytest.fixture
def write_cub(tmp_path):
    """Write bytes to a file under tmp_path and return its path."""
    def _write(data, name="test.cub"):
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return _write


@pytest.fixture(params=["<", ">"], ids=["little", "big"])
def order(request):
    return request.param
