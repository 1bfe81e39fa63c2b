import io
import random

import pytest

from bitstream import BitInputStream, BitOutputStream
from errors import CorruptTreeError, TruncatedStreamError
from huffman import HuffmanTree


def freqs_for(data: bytes):
    freqs = [0] * 256
    for b in data:
        freqs[b] += 1
    return freqs


def serialized(tree):
    buf = io.BytesIO()
    tree.serialize(BitOutputStream(buf))
    return buf.getvalue()


def same_shape(a, b):
    if a.is_leaf() or b.is_leaf():
        return a.is_leaf() and b.is_leaf() and a.symbol == b.symbol
    return same_shape(a.left, b.left) and same_shape(a.right, b.right)


def test_two_symbol_layout():
    blob = serialized(HuffmanTree.build(freqs_for(b"ab")))
    # count 2, then 0 1'a' 1'b' padded: 0101100001101100010 + 00000
    assert blob == b"\x02\x00\x00\x00\x58\x6c\x40"


def test_single_symbol_layout():
    blob = serialized(HuffmanTree.build(freqs_for(b"AAA")))
    assert blob == b"\x03\x00\x00\x00\xa0\x80"


def test_empty_tree_writes_nothing():
    assert serialized(HuffmanTree.build([0] * 256)) == b""


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_deserialized_tree_is_isomorphic(seed):
    rng = random.Random(seed)
    freqs = [rng.choice([0, 0, 1, 5, 20, 300]) for _ in range(256)]
    tree = HuffmanTree.build(freqs)
    blob = serialized(tree)

    inp = BitInputStream(blob)
    assert inp.read_int() == tree.total == sum(freqs)
    restored = HuffmanTree.deserialize((len(blob) - 4) * 8, inp)

    assert same_shape(tree.root, restored.root)
    assert restored.symbols() == tree.symbols()
    assert restored.codes() == tree.codes()
    for symbol in restored.symbols():
        assert restored.leaves[symbol].symbol == symbol
    assert inp.at_end()


def test_full_alphabet_round_trip():
    tree = HuffmanTree.build([1] * 256)
    blob = serialized(tree)
    inp = BitInputStream(blob)
    inp.read_int()
    restored = HuffmanTree.deserialize((len(blob) - 4) * 8, inp)
    assert len(restored) == 256
    assert restored.codes() == tree.codes()


def test_deserialized_weights_are_zero():
    blob = serialized(HuffmanTree.build(freqs_for(b"abcabca")))
    inp = BitInputStream(blob)
    inp.read_int()
    restored = HuffmanTree.deserialize((len(blob) - 4) * 8, inp)
    assert restored.root.weight == 0
    assert restored.total == 0


@pytest.mark.parametrize("data, shape_bits", [(b"abc", 29), (b"abcd", 39)])
def test_stream_is_realigned_after_tree(data, shape_bits):
    tree = HuffmanTree.build(freqs_for(data))
    buf = io.BytesIO()
    out = BitOutputStream(buf)
    tree.serialize(out)
    assert out.bits_written - 32 == shape_bits + (-shape_bits % 8)
    out.write_byte(0xA5)
    out.flush()

    inp = BitInputStream(buf.getvalue())
    inp.read_int()
    HuffmanTree.deserialize(inp.size_in_bytes() * 8, inp)
    assert inp.bits_read == 32 + (shape_bits + 7) // 8 * 8
    assert inp.read_byte() == 0xA5


def test_pad_bits_are_discarded_whatever_their_value():
    out_buf = io.BytesIO()
    out = BitOutputStream(out_buf)
    # single leaf 'Z' (9 bits) followed by seven 1 pad bits, then a payload byte
    for bit in "1" + format(ord("Z"), "08b") + "1111111" + "00111100":
        out.write_bit(int(bit))
    out.flush()

    inp = BitInputStream(out_buf.getvalue())
    tree = HuffmanTree.deserialize(16, inp)
    assert tree.symbols() == [ord("Z")]
    assert inp.bits_read == 16
    assert inp.read_byte() == 0x3C


def test_shape_longer_than_declared_length():
    blob = serialized(HuffmanTree.build(freqs_for(b"abcd")))
    inp = BitInputStream(blob)
    inp.read_int()
    with pytest.raises(TruncatedStreamError):
        HuffmanTree.deserialize(20, inp)


def test_source_exhausted_mid_tree():
    blob = serialized(HuffmanTree.build(freqs_for(b"abcd")))[:6]
    inp = BitInputStream(blob)
    inp.read_int()
    with pytest.raises(TruncatedStreamError):
        HuffmanTree.deserialize(1000, inp)


def test_duplicate_symbol_is_corrupt():
    buf = io.BytesIO()
    out = BitOutputStream(buf)
    out.write_bit(0)
    for _ in range(2):
        out.write_bit(1)
        out.write_byte(ord("x"))
    out.flush()
    with pytest.raises(CorruptTreeError):
        HuffmanTree.deserialize(24, BitInputStream(buf.getvalue()))


def test_overly_deep_shape_is_corrupt():
    inp = BitInputStream(bytes(300))
    with pytest.raises(CorruptTreeError):
        HuffmanTree.deserialize(300 * 8, inp)
