"""TOC listing text and error rendering."""

import io

from cubfile.listing import (
    EMPTY_TOC,
    LISTING_HEADER,
    describe_error,
    format_listing,
    write_listing,
)
from cubfile.reader import (
    BlockNotFoundError,
    CorruptFileError,
    CubIOError,
    InvalidFormatError,
    TocOverflowError,
)


def test_listing_table(pack_cub, order):
    data = pack_cub([(1, 100, 20), (4, 120, 0), (6, 120, 123456)], order)
    text = format_listing(io.BytesIO(data))
    assert text.splitlines() == [
        LISTING_HEADER[0],
        LISTING_HEADER[1],
        "  0       ACIS     1         100          20",
        "  1  FREE MESH     4         120           0",
        "  2   ASSEMBLY     6         120      123456",
    ]


def test_listing_unknown_type_uses_placeholder(pack_cub):
    data = pack_cub([(99, 28, 0), (0, 28, 0)])
    rows = format_listing(io.BytesIO(data)).splitlines()[2:]
    assert rows == [
        "  0          ?    99          28           0",
        "  1          ?     0          28           0",
    ]


def test_listing_empty_toc(pack_cub):
    assert format_listing(io.BytesIO(pack_cub([]))) == EMPTY_TOC + "\n"


def test_listing_bad_magic(pack_cub):
    text = format_listing(io.BytesIO(pack_cub([(1, 0, 0)], magic=b"XXXX")))
    assert text == "INVALID FILE\n"


def test_listing_corrupt_tag(pack_cub):
    text = format_listing(io.BytesIO(pack_cub([(1, 0, 0)], tag=7)))
    assert text == "CORRUPT FILE\n"


def test_listing_truncated_toc_has_no_partial_rows(pack_cub):
    data = pack_cub([(1, 0, 0), (2, 0, 0), (3, 0, 0)])[:-30]
    text = format_listing(io.BytesIO(data))
    assert len(text.splitlines()) == 1
    assert "Idx" not in text


def test_listing_os_error_uses_strerror(pack_cub):
    class Failing(io.BytesIO):
        def read(self, *args):
            raise OSError(5, "Input/output error")

    assert format_listing(Failing(pack_cub([]))) == "Input/output error\n"


def test_write_listing_to_stream(pack_cub):
    out = io.StringIO()
    write_listing(io.BytesIO(pack_cub([(2, 52, 10)])), out)
    assert out.getvalue().splitlines()[2] == "  0       MESH     2          52          10"


def test_describe_error():
    assert describe_error(InvalidFormatError("x")) == "INVALID FILE"
    assert describe_error(CorruptFileError("x")) == "CORRUPT FILE"
    assert describe_error(TocOverflowError("x")) == "OVERFLOW"
    assert describe_error(BlockNotFoundError("x")) == "NOT FOUND"
    assert describe_error(CubIOError("short read of magic")) == "short read of magic"
