import heapq
from typing import Dict, List, Optional, Sequence

from bitstream import BitInputStream, BitOutputStream
from errors import CorruptTreeError, EmptyTreeError, TruncatedStreamError, UnknownSymbolError

ALPHABET_SIZE = 256
SYMBOL_BITS = 8
MAX_DEPTH = ALPHABET_SIZE - 1  # deepest leaf of a 256-leaf tree


class HuffmanNode: # Node for Huffman tree
    __slots__ = ("weight", "symbol", "left", "right", "parent")

    def __init__(self, weight, symbol=None):
        self.weight = weight
        self.symbol = symbol    # byte, None for internal nodes
        self.left = None
        self.right = None
        self.parent = None      # navigation only, children are owned top-down

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(weight={self.weight}, symbol={self.symbol})"
        return f"HuffmanNode(weight={self.weight})"


def _link(parent: HuffmanNode, left: HuffmanNode, right: HuffmanNode) -> HuffmanNode:
    parent.left = left
    parent.right = right
    left.parent = parent
    right.parent = parent
    return parent


def check_frequencies(freqs: Sequence[int]) -> None:
    if len(freqs) != ALPHABET_SIZE:
        raise ValueError(f"frequency table must have {ALPHABET_SIZE} entries, got {len(freqs)}")
    for symbol, count in enumerate(freqs):
        if count < 0:
            raise ValueError(f"negative frequency {count} for symbol {symbol}")


def generate_huffman_codes(root: Optional[HuffmanNode]) -> Dict[int, str]: # root: root of the Huffman tree
    codes = {}
    if root is None:
        return codes
    if root.is_leaf():
        codes[root.symbol] = "0" # single symbol trees spend one bit per occurrence
        return codes

    def generate_codes_helper(node, current_code):
        if node.is_leaf():
            codes[node.symbol] = current_code
            return
        generate_codes_helper(node.left, current_code + "0")
        generate_codes_helper(node.right, current_code + "1")

    generate_codes_helper(root, "")
    return codes # mapping of symbols to their Huffman codes


class HuffmanTree:
    """Huffman code tree with a byte -> leaf lookup table.

    Build one with :meth:`build` from a 256-entry frequency table, or with
    :meth:`deserialize` from the header of a compressed stream.
    """

    def __init__(self):
        self.root: Optional[HuffmanNode] = None
        self.leaves: List[Optional[HuffmanNode]] = [None] * ALPHABET_SIZE

    @classmethod
    def build(cls, freqs: Sequence[int]) -> "HuffmanTree":
        """Run the greedy Huffman merge over every byte with a nonzero count.

        Ties on weight are broken by insertion order: leaves are numbered in
        ascending byte order, each merged node takes the next number. The node
        popped first becomes the left (0) child.
        """
        check_frequencies(freqs)
        tree = cls()
        priority_queue = []
        sequence = 0
        for symbol, count in enumerate(freqs):
            if count > 0:
                leaf = HuffmanNode(count, symbol)
                tree.leaves[symbol] = leaf
                priority_queue.append((count, sequence, leaf))
                sequence += 1
        heapq.heapify(priority_queue)

        while len(priority_queue) > 1:
            left_weight, _, left = heapq.heappop(priority_queue)
            right_weight, _, right = heapq.heappop(priority_queue)
            merged = _link(HuffmanNode(left_weight + right_weight), left, right)
            heapq.heappush(priority_queue, (merged.weight, sequence, merged))
            sequence += 1

        if priority_queue:
            tree.root = priority_queue[0][2]
        return tree

    @property
    def total(self) -> int:
        return self.root.weight if self.root is not None else 0

    def __len__(self):
        return sum(1 for leaf in self.leaves if leaf is not None)

    def symbols(self) -> List[int]:
        return [symbol for symbol, leaf in enumerate(self.leaves) if leaf is not None]

    def codes(self) -> Dict[int, str]:
        return generate_huffman_codes(self.root)

    def code_for(self, symbol: int) -> List[int]:
        """Root-to-leaf bit path for ``symbol``, found by walking parent links."""
        if self.root is None:
            raise EmptyTreeError("cannot encode with an empty Huffman tree")
        node = self.leaves[symbol] if 0 <= symbol < ALPHABET_SIZE else None
        if node is None:
            raise UnknownSymbolError(symbol)
        if node is self.root:
            return [0]

        path = []
        while node is not self.root:
            parent = node.parent
            path.append(1 if parent.right is node else 0)
            node = parent
        path.reverse()
        return path

    def encode(self, symbol: int, out: BitOutputStream) -> None:
        for bit in self.code_for(symbol):
            out.write_bit(bit)

    def decode(self, inp: BitInputStream) -> int:
        node = self.root
        if node is None:
            raise EmptyTreeError("cannot decode with an empty Huffman tree")
        if node.is_leaf():
            inp.read_bit() # the filler bit written for single symbol trees
            return node.symbol
        while not node.is_leaf():
            node = node.right if inp.read_bit() else node.left
        return node.symbol

    def serialize(self, out: BitOutputStream) -> None:
        """Write the count header and the preorder shape, then flush ``out``.

        Leaves are a 1 bit followed by the symbol MSB first, internal nodes a
        0 bit followed by the left and right subtrees. Nothing is written for
        an empty tree.
        """
        if self.root is None:
            return
        out.write_int(self.root.weight)

        def write_node(node):
            if node.is_leaf():
                out.write_bit(1)
                out.write_byte(node.symbol)
                return
            out.write_bit(0)
            write_node(node.left)
            write_node(node.right)

        write_node(self.root)
        out.flush()

    @classmethod
    def deserialize(cls, bit_length: int, inp: BitInputStream) -> "HuffmanTree":
        """Rebuild a tree written by :meth:`serialize`, minus its count header.

        ``bit_length`` bounds how many bits the shape may occupy. Pad bits up
        to the next byte boundary are consumed so ``inp`` is left at the first
        payload bit. Node weights are not stored and come back as 0.
        """
        tree = cls()
        consumed = 0

        def next_bit():
            nonlocal consumed
            if consumed >= bit_length:
                raise TruncatedStreamError(f"serialized tree runs past its {bit_length} bits")
            bit = inp.read_bit()
            consumed += 1
            return bit

        def read_node(depth):
            if depth > MAX_DEPTH:
                raise CorruptTreeError(f"serialized tree is deeper than {MAX_DEPTH} levels")
            if next_bit() == 0:
                left = read_node(depth + 1)
                right = read_node(depth + 1)
                return _link(HuffmanNode(0), left, right)

            symbol = 0
            for _ in range(SYMBOL_BITS):
                symbol = (symbol << 1) | next_bit()
            if tree.leaves[symbol] is not None:
                raise CorruptTreeError(f"symbol {symbol} appears twice in serialized tree")
            leaf = HuffmanNode(0, symbol)
            tree.leaves[symbol] = leaf
            return leaf

        tree.root = read_node(0)

        while consumed % 8:
            inp.read_bit()
            consumed += 1
        return tree

    def clear(self) -> int:
        """Unlink every node in post-order and return how many were released."""
        released = 0
        stack = [(self.root, False)] if self.root is not None else []
        while stack:
            node, children_done = stack.pop()
            if not children_done and not node.is_leaf():
                stack.append((node, True))
                stack.append((node.right, False))
                stack.append((node.left, False))
                continue
            node.left = node.right = node.parent = None
            released += 1
        self.root = None
        self.leaves = [None] * ALPHABET_SIZE
        return released
