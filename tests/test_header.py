"""Header validation: magic, endian tag, byte-order detection."""

import io
import struct

import pytest

from cubfile.format import BIGENDIAN, LITENDIAN, ByteOrder, host_byte_order
from cubfile.reader import (
    CorruptFileError,
    CubIOError,
    ErrorKind,
    InvalidFormatError,
    check,
)


def test_host_byte_order_matches_struct_layout():
    order = host_byte_order()
    expected = ByteOrder.LITTLE if struct.pack("=H", 1) == b"\x01\x00" else ByteOrder.BIG
    assert order is expected
    assert host_byte_order() is order


def test_sentinels():
    assert ByteOrder.BIG.sentinel == BIGENDIAN == 0xFFFFFFFF
    assert ByteOrder.LITTLE.sentinel == LITENDIAN == 0
    assert ByteOrder.from_sentinel(0xFFFFFFFF) is ByteOrder.BIG
    assert ByteOrder.from_sentinel(0) is ByteOrder.LITTLE
    with pytest.raises(ValueError):
        ByteOrder.from_sentinel(1)


def test_check_reads_count_and_offset(pack_cub, order):
    data = pack_cub([(1, 100, 5), (2, 105, 7)], order, toc_offset=40)
    header = check(io.BytesIO(data))
    assert header.block_count == 2
    assert header.toc_offset == 40
    file_order = ByteOrder.BIG if order == ">" else ByteOrder.LITTLE
    assert header.byte_order is file_order
    assert header.swap_needed == (file_order is not host_byte_order())


def test_check_seeks_to_start(pack_cub):
    src = io.BytesIO(pack_cub([(2, 52, 10)]))
    src.seek(17)
    assert check(src).block_count == 1


@pytest.mark.parametrize("magic", [b"CUBF", b"cube", b"\x00\x00\x00\x00", b"EBUC"])
def test_bad_magic(pack_cub, magic):
    data = pack_cub([(2, 52, 10)], magic=magic)
    with pytest.raises(InvalidFormatError, match="bad magic") as info:
        check(io.BytesIO(data))
    assert info.value.kind is ErrorKind.INVALID_FORMAT


def test_bad_magic_ignores_rest_of_file():
    with pytest.raises(InvalidFormatError):
        check(io.BytesIO(b"NOPE" + b"\xff" * 3))


@pytest.mark.parametrize("tag", [1, 0x12345678, 0xFFFFFFFE, 0x00FF00FF])
def test_unknown_endian_tag(pack_cub, tag):
    data = pack_cub([(2, 52, 10)], tag=tag)
    with pytest.raises(CorruptFileError, match="endian tag") as info:
        check(io.BytesIO(data))
    assert info.value.kind is ErrorKind.CORRUPT_FILE


def test_truncated_header_is_io_error(pack_cub):
    data = pack_cub([(2, 52, 10)])[:20]
    with pytest.raises(CubIOError, match="short read of header"):
        check(io.BytesIO(data))


def test_empty_input_is_io_error():
    with pytest.raises(CubIOError, match="short read of magic"):
        check(io.BytesIO(b""))


class _FailingSource(io.BytesIO):
    def read(self, *args):
        raise OSError(5, "Input/output error")


def test_read_failure_wraps_os_error(pack_cub):
    with pytest.raises(CubIOError) as info:
        check(_FailingSource(pack_cub([])))
    assert isinstance(info.value.__cause__, OSError)
    assert info.value.kind is ErrorKind.IO


def test_closed_stream_is_io_error(pack_cub):
    src = io.BytesIO(pack_cub([]))
    src.close()
    with pytest.raises(CubIOError):
        check(src)
