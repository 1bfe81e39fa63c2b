"""
Decompress a file written by compress.py.

How to run:
  python decompress.py INPUT OUTPUT
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

from bitstream import INT_BYTES, BitInputStream
from errors import HuffmanError
from huffman import HuffmanTree


def decompress_stream(inp: BitInputStream) -> bytes:
    if inp.size_in_bytes() == 0:
        return b"" # empty input compresses to an empty file
    total = inp.read_int()
    if total == 0:
        return b""

    shape_bits = (inp.size_in_bytes() - INT_BYTES) * 8
    tree = HuffmanTree.deserialize(shape_bits, inp)

    out = bytearray()
    for _ in range(total):
        out.append(tree.decode(inp))
    return bytes(out)


def decompress_bytes(blob: bytes) -> bytes:
    return decompress_stream(BitInputStream(blob))


def decompress_file(src: Path, dst: Path) -> Tuple[int, int]:
    inp = BitInputStream.from_file(src)
    data = decompress_stream(inp)
    Path(dst).write_bytes(data)
    return inp.size_in_bytes(), len(data)


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Decompress a Huffman compressed file")
    ap.add_argument("input", type=Path, help="Compressed file")
    ap.add_argument("output", type=Path, help="Where to write the restored file")
    args = ap.parse_args(argv)

    try:
        in_size, out_size = decompress_file(args.input, args.output)
    except (OSError, HuffmanError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"{args.input} -> {args.output}: {in_size} -> {out_size} bytes")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
