"""Exceptions raised by the Huffman codec and its bit streams."""


class HuffmanError(ValueError):
    pass


class EmptyTreeError(HuffmanError):
    """Encode or decode was requested on a tree built from no symbols."""


class UnknownSymbolError(HuffmanError):
    def __init__(self, symbol: int):
        super().__init__(f"symbol {symbol} does not occur in the Huffman tree")
        self.symbol = symbol


class TruncatedStreamError(HuffmanError, EOFError):
    """The bit source ran out before a tree or symbol was complete."""


class CorruptTreeError(HuffmanError):
    """The serialized tree describes a shape no Huffman build can produce."""
