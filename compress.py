"""
Compress a file with Huffman coding.

Output layout: 4-byte little-endian symbol count, the preorder tree bits
padded to a byte, then the code of every input byte in order, padded to a
byte. An empty input produces an empty file.

How to run:
  python compress.py INPUT OUTPUT
"""

from __future__ import annotations

import argparse
import io
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from bitstream import BitOutputStream
from errors import HuffmanError
from huffman import ALPHABET_SIZE, HuffmanTree


def count_frequencies(data: bytes) -> List[int]:
    freqs = [0] * ALPHABET_SIZE
    for b in data:
        freqs[b] += 1
    return freqs


def compress_stream(data: bytes, out: BitOutputStream) -> HuffmanTree:
    tree = HuffmanTree.build(count_frequencies(data))
    tree.serialize(out)
    if tree.root is None:
        return tree
    for b in data:
        tree.encode(b, out)
    out.flush()
    return tree


def compress_bytes(data: bytes) -> bytes:
    buf = io.BytesIO()
    compress_stream(data, BitOutputStream(buf))
    return buf.getvalue()


def compress_file(src: Path, dst: Path) -> Tuple[int, int]:
    data = Path(src).read_bytes()
    with open(dst, "wb") as f:
        compress_stream(data, BitOutputStream(f))
    return len(data), Path(dst).stat().st_size


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Compress a file with Huffman coding")
    ap.add_argument("input", type=Path, help="File to compress")
    ap.add_argument("output", type=Path, help="Where to write the compressed file")
    args = ap.parse_args(argv)

    try:
        in_size, out_size = compress_file(args.input, args.output)
    except (OSError, HuffmanError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    ratio = out_size / max(1, in_size)
    print(f"{args.input} -> {args.output}: {in_size} -> {out_size} bytes (ratio {ratio:.3f})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
