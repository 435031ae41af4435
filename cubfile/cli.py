"""cubfile CLI – list, check, inspect and extract blocks from Cub files."""

from __future__ import annotations

import argparse
import logging
import os
import shutil
import sys
import tempfile
from typing import BinaryIO

from . import __version__
from . import _blake3
from .format import parse_block_type
from .listing import describe_error, write_listing
from .reader import (
    BlockDescriptor,
    CubError,
    block_at,
    block_of_type,
    check,
    extract,
    read_toc,
)

logger = logging.getLogger("cubfile")


# ── Terminal UI (stdlib only: colors when TTY, Unicode tables) ───────────────

def _color_enabled() -> bool:
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False
    return os.environ.get("NO_COLOR", "").strip() == ""

_COLORS = {
    "reset": "\033[0m",
    "dim": "\033[2m",
    "green": "\033[32m",
    "red": "\033[31m",
    "cyan": "\033[36m",
    "bold": "\033[1m",
}

def _c(name: str, text: str) -> str:
    if not _color_enabled() or name not in _COLORS:
        return text
    return f"{_COLORS[name]}{text}{_COLORS['reset']}"

def _section(title: str) -> str:
    return _c("cyan", f"\n  ◆ {title}")

def _ok(msg: str) -> str:
    return _c("green", "✓ ") + msg

def _fail(msg: str) -> str:
    return _c("red", "✗ ") + msg

def _table(headers: list[str], rows: list[list[str]], padding: int = 1) -> list[str]:
    """Return lines for a UTF-8 box table. Column widths from content."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))
    pad = " " * padding
    lines = ["╭" + "┬".join("─" * (w + 2 * padding) for w in widths) + "╮"]
    lines.append("│" + "│".join(pad + h.ljust(w) + pad for h, w in zip(headers, widths)) + "│")
    lines.append("├" + "┼".join("─" * (w + 2 * padding) for w in widths) + "┤")
    for row in rows:
        # numbers read better right-aligned
        cells = [
            pad + (cell.rjust(w) if cell.isdigit() else cell.ljust(w)) + pad
            for cell, w in zip(row, widths)
        ]
        lines.append("│" + "│".join(cells) + "│")
    lines.append("╰" + "┴".join("─" * (w + 2 * padding) for w in widths) + "╯")
    return lines


def _error_text(exc: CubError) -> str:
    text = describe_error(exc)
    detail = str(exc)
    if detail and detail != text:
        return f"{text}: {detail}"
    return text


# ── list ────────────────────────────────────────────────────────────────────


def cmd_list(args: argparse.Namespace) -> int:
    for path in args.files:
        print(f"{path} :")
        try:
            f = open(path, "rb")
        except OSError as exc:
            print(f"{path}: {exc.strerror or exc}")
            continue
        with f:
            write_listing(f, sys.stdout)
    return 0


# ── check ───────────────────────────────────────────────────────────────────


def cmd_check(args: argparse.Namespace) -> int:
    try:
        with open(args.file, "rb") as f:
            header = check(f)
    except OSError as exc:
        print(_fail(f"{args.file}: {exc.strerror or exc}"), file=sys.stderr)
        return 1
    except CubError as exc:
        print(_fail(f"{args.file}: {_error_text(exc)}"), file=sys.stderr)
        return 1

    print(_c("bold", "\n  CUB  ") + _c("dim", args.file))
    print(f"    Byte order  {header.byte_order.value}-endian")
    print(f"    Swap        {'yes' if header.swap_needed else 'no'}")
    print(f"    Blocks      {header.block_count}")
    print(f"    TOC offset  {header.toc_offset}")
    print()
    return 0


# ── inspect ─────────────────────────────────────────────────────────────────


def cmd_inspect(args: argparse.Namespace) -> int:
    try:
        with open(args.file, "rb") as f:
            header = check(f)
            blocks = read_toc(f)
    except OSError as exc:
        print(_fail(f"{args.file}: {exc.strerror or exc}"), file=sys.stderr)
        return 1
    except CubError as exc:
        print(_fail(f"{args.file}: {_error_text(exc)}"), file=sys.stderr)
        return 1

    print(_c("bold", "\n  CUB  ") + _c("dim", args.file))
    print(_section("File"))
    print(f"    Byte order  {header.byte_order.value}-endian"
          + _c("dim", "  (swapped)" if header.swap_needed else ""))
    print(f"    TOC offset  {header.toc_offset}")
    print(_section(f"Blocks ({len(blocks)})"))
    rows = [
        [str(b.index), b.type_name, str(b.kind), str(b.offset), str(b.length)]
        for b in blocks
    ]
    for line in _table(["#", "Type", "Code", "Offset", "Length"], rows):
        print("  " + line)
    print()
    return 0


# ── extract ─────────────────────────────────────────────────────────────────


class _DigestSink:
    """Forward writes to *out*, feeding an optional BLAKE3 hasher."""

    def __init__(self, out: BinaryIO) -> None:
        self._out = out
        self._hasher = _blake3.hasher()

    def write(self, data) -> int:
        written = self._out.write(data)
        if written and self._hasher is not None:
            self._hasher.update(bytes(data[:written]))
        return written

    def hexdigest(self) -> str | None:
        if self._hasher is None:
            return None
        return self._hasher.hexdigest()


def _resolve(args: argparse.Namespace, src: BinaryIO) -> BlockDescriptor:
    if args.index is not None:
        logger.debug("extracting block %d from %s", args.index, args.file)
        return block_at(src, args.index)
    logger.debug("extracting type %d from %s", args.type, args.file)
    return block_of_type(src, args.type)


def _copy_block(src: BinaryIO, block: BlockDescriptor, out: BinaryIO, dest: str) -> int:
    sink = _DigestSink(out)
    n = extract(src, block.offset, block.length, sink)
    out.flush()
    print(_ok(f"Extracted {n:,} bytes → {dest}"), file=sys.stderr)
    digest = sink.hexdigest()
    if digest is not None:
        print(_c("dim", f"  BLAKE3  {digest}"), file=sys.stderr)
    return 0


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except OSError as exc:
        logger.warning("could not remove %s: %s", path, exc)


def _copy_to_path(src: BinaryIO, block: BlockDescriptor, dest: str) -> int:
    """Write the block to *dest*, leaving an existing file untouched on failure.

    Regular files are written to a temporary sibling and renamed into place.
    Devices and pipes are written directly and never removed.
    """
    if os.path.exists(dest) and not os.path.isfile(dest):
        with open(dest, "wb") as out:
            return _copy_block(src, block, out, dest)

    fd, tmp = tempfile.mkstemp(
        prefix=".cubfile-", dir=os.path.dirname(os.path.abspath(dest))
    )
    try:
        with os.fdopen(fd, "wb") as out:
            if os.path.exists(dest):
                shutil.copymode(dest, tmp)
            else:
                os.chmod(tmp, 0o644)
            result = _copy_block(src, block, out, dest)
        os.replace(tmp, dest)
    except BaseException:
        _discard(tmp)
        raise
    return result


def cmd_extract(args: argparse.Namespace) -> int:
    try:
        src = open(args.file, "rb")
    except OSError as exc:
        print(_fail(f"{args.file}: {exc.strerror or exc}"), file=sys.stderr)
        return 1

    with src:
        # the output is only touched once a non-empty block is found
        try:
            block = _resolve(args, src)
            if args.output == "-":
                return _copy_block(src, block, sys.stdout.buffer, "stdout")
            return _copy_to_path(src, block, args.output)
        except CubError as exc:
            print(_fail(f"{args.file}: {_error_text(exc)}"), file=sys.stderr)
            return 1
        except OSError as exc:
            print(_fail(f"{args.output}: {exc.strerror or exc}"), file=sys.stderr)
            return 1


def _block_type_arg(text: str) -> int:
    try:
        return parse_block_type(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


# ── Entry point ─────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cubfile", description="Read CUBIT .cub container files"
    )
    parser.add_argument(
        "--version", action="version", version=f"cubfile {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )
    sub = parser.add_subparsers(dest="command")

    # list
    p = sub.add_parser("list", help="Print the table of contents of Cub files")
    p.add_argument("files", nargs="+")

    # check
    p = sub.add_parser("check", help="Validate the header of a Cub file")
    p.add_argument("file")

    # inspect
    p = sub.add_parser("inspect", help="Show header and blocks of a Cub file")
    p.add_argument("file")

    # extract
    p = sub.add_parser("extract", help="Copy one block's payload out of a Cub file")
    p.add_argument("file")
    which = p.add_mutually_exclusive_group(required=True)
    which.add_argument("--index", "-i", type=int, help="block index in the TOC")
    which.add_argument("--type", "-t", type=_block_type_arg,
                       help="block type name (acis, mesh, facet, free-mesh, "
                            "granite, assembly) or numeric code")
    p.add_argument("--output", "-o", required=True,
                   help="output file, or - for stdout")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    cmds = {
        "list": cmd_list,
        "check": cmd_check,
        "inspect": cmd_inspect,
        "extract": cmd_extract,
    }
    fn = cmds.get(args.command)
    if fn is None:
        parser.print_help()
        return 1
    return fn(args)


if __name__ == "__main__":
    sys.exit(main())
