"""Bit-granularity streams used by the Huffman codec.

Bits are packed most-significant first. Fixed width integers (the 4-byte
symbol count header) are little-endian and always start on a byte boundary.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Union

from errors import TruncatedStreamError

INT_BYTES = 4
WRITE_CHUNK = 65_536  # buffered bytes before handing them to the file


class BitOutputStream:
    """Accumulates bits and writes whole bytes to a binary file object."""

    def __init__(self, f: BinaryIO) -> None:
        self.f = f
        self._buffer = bytearray()
        self._current = 0
        self._filled = 0  # bits held in _current
        self.bits_written = 0

    def write_bit(self, bit: int) -> None:
        self._current = (self._current << 1) | (1 if bit else 0)
        self._filled += 1
        self.bits_written += 1
        if self._filled == 8:
            self._buffer.append(self._current)
            self._current = 0
            self._filled = 0
            if len(self._buffer) >= WRITE_CHUNK:
                self._drain()

    def write_byte(self, value: int) -> None:
        for i in range(7, -1, -1):
            self.write_bit((value >> i) & 1)

    def write_int(self, value: int) -> None:
        if not 0 <= value < 1 << (8 * INT_BYTES):
            raise ValueError(f"{value} does not fit in a {INT_BYTES}-byte header")
        self._pad()
        self._buffer.extend(value.to_bytes(INT_BYTES, "little"))
        self.bits_written += 8 * INT_BYTES

    def flush(self) -> int:
        """Pad the partial byte with zeros and write everything out.

        Returns the number of pad bits added (0..7).
        """
        pad_bits = self._pad()
        self._drain()
        self.f.flush()
        return pad_bits

    def _pad(self) -> int:
        if self._filled == 0:
            return 0
        pad_bits = 8 - self._filled
        self._buffer.append((self._current << pad_bits) & 0xFF)
        self.bits_written += pad_bits
        self._current = 0
        self._filled = 0
        return pad_bits

    def _drain(self) -> None:
        if self._buffer:
            self.f.write(bytes(self._buffer))
            self._buffer.clear()


class BitInputStream:
    """Reads bits and byte-aligned integers from an in-memory byte string."""

    def __init__(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self._data = bytes(data)
        self._byte_pos = 0
        self._bit_pos = 0  # 0..7 inside the current byte
        self.bits_read = 0

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "BitInputStream":
        return cls(Path(path).read_bytes())

    def size_in_bytes(self) -> int:
        return len(self._data)

    def at_end(self) -> bool:
        return self._byte_pos >= len(self._data)

    def read_bit(self) -> int:
        if self._byte_pos >= len(self._data):
            raise TruncatedStreamError(
                f"bit stream exhausted after {self.bits_read} bits"
            )
        bit = (self._data[self._byte_pos] >> (7 - self._bit_pos)) & 1
        self._bit_pos += 1
        self.bits_read += 1
        if self._bit_pos == 8:
            self._bit_pos = 0
            self._byte_pos += 1
        return bit

    def read_byte(self) -> int:
        value = 0
        for _ in range(8):
            value = (value << 1) | self.read_bit()
        return value

    def read_int(self) -> int:
        self.align_to_byte()
        end = self._byte_pos + INT_BYTES
        if end > len(self._data):
            raise TruncatedStreamError(
                f"need {INT_BYTES} bytes for an integer, "
                f"{len(self._data) - self._byte_pos} left"
            )
        value = int.from_bytes(self._data[self._byte_pos:end], "little")
        self._byte_pos = end
        self.bits_read += 8 * INT_BYTES
        return value

    def align_to_byte(self) -> None:
        if self._bit_pos == 0:
            return
        self.bits_read += 8 - self._bit_pos
        self._bit_pos = 0
        self._byte_pos += 1
