from __future__ import annotations


def decompose(address: int, line_size_bytes: int, num_sets: int) -> tuple[int, int, int]:
    """Reference decomposition using division. Used to cross-check AddressDecoder."""
    offset = address % line_size_bytes
    index = (address // line_size_bytes) % num_sets
    tag = address // (line_size_bytes * num_sets)
    return tag, index, offset


class AddressDecoder:
    """Splits addresses into (tag, index, offset) with shifts and masks computed once."""

    __slots__ = ("offset_bits", "index_bits", "tag_shift", "offset_mask", "index_mask")

    def __init__(self, line_size_bytes: int, num_sets: int):
        self.offset_bits = line_size_bytes.bit_length() - 1
        self.index_bits = num_sets.bit_length() - 1
        self.tag_shift = self.offset_bits + self.index_bits
        self.offset_mask = (1 << self.offset_bits) - 1
        self.index_mask = (1 << self.index_bits) - 1

    @classmethod
    def from_config(cls, config) -> AddressDecoder:
        return cls(config.line_size_bytes, config.num_sets)

    def decode(self, address: int) -> tuple[int, int, int]:
        """Decomposes an address into tag, index, and offset."""
        offset = address & self.offset_mask
        index = (address >> self.offset_bits) & self.index_mask
        tag = address >> self.tag_shift
        return tag, index, offset

    def encode(self, tag: int, index: int, offset: int = 0) -> int:
        """Inverse of decode."""
        return (tag << self.tag_shift) | (index << self.offset_bits) | offset

    def block_address(self, address: int) -> int:
        """The address of the first byte of the line containing `address`."""
        return address & ~self.offset_mask
