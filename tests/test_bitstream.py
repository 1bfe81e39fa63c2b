import io

import pytest

from bitstream import BitInputStream, BitOutputStream
from errors import TruncatedStreamError


def test_bits_are_packed_msb_first():
    buf = io.BytesIO()
    out = BitOutputStream(buf)
    for bit in (1, 0, 1, 1, 0, 0, 0, 0, 1):
        out.write_bit(bit)
    assert out.flush() == 7
    assert buf.getvalue() == b"\xb0\x80"
    assert out.bits_written == 16


def test_flush_on_byte_boundary_adds_no_padding():
    buf = io.BytesIO()
    out = BitOutputStream(buf)
    out.write_byte(0x5A)
    assert out.flush() == 0
    assert buf.getvalue() == b"\x5a"


def test_int_is_little_endian_and_byte_aligned():
    buf = io.BytesIO()
    out = BitOutputStream(buf)
    out.write_bit(1)
    out.write_int(0x01020304)
    out.flush()
    assert buf.getvalue() == b"\x80\x04\x03\x02\x01"

    inp = BitInputStream(buf.getvalue())
    assert inp.read_bit() == 1
    assert inp.read_int() == 0x01020304
    assert inp.at_end()


@pytest.mark.parametrize("value", [-1, 1 << 32])
def test_int_out_of_range(value):
    with pytest.raises(ValueError):
        BitOutputStream(io.BytesIO()).write_int(value)


def test_read_bits_and_bytes():
    inp = BitInputStream(b"\xb0\x80")
    assert inp.size_in_bytes() == 2
    assert [inp.read_bit() for _ in range(4)] == [1, 0, 1, 1]
    assert inp.read_byte() == 0x08
    assert inp.bits_read == 12
    assert not inp.at_end()


def test_read_past_end():
    inp = BitInputStream(b"\x01")
    inp.read_byte()
    assert inp.at_end()
    with pytest.raises(TruncatedStreamError):
        inp.read_bit()


def test_truncated_int():
    with pytest.raises(TruncatedStreamError):
        BitInputStream(b"\x01\x02").read_int()
    with pytest.raises(EOFError):
        BitInputStream(b"").read_int()


def test_from_file(tmp_path):
    path = tmp_path / "bits.bin"
    path.write_bytes(b"\xff\x00")
    inp = BitInputStream.from_file(path)
    assert inp.size_in_bytes() == 2
    assert inp.read_byte() == 0xFF
