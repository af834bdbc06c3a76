"""Address resolution for scalar and arrayed registers/clusters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import IndexOutOfRangeError
from .model import DimElement
from .naming import hex_literal


@dataclass(frozen=True)
class AddressExpr:
    """
    Address of a register or cluster, possibly arrayed

    ``offset`` is the sum of the cluster path offsets and the item's own offset,
    relative to ``base``. Addresses are right-shifted by ``shift`` for targets
    addressing in units wider than a byte.
    """

    base: int
    offset: int
    shift: int = 0
    dim: Optional[int] = None
    increment: int = 0
    name: str = ""

    @property
    def is_array(self) -> bool:
        return self.dim is not None

    def check_index(self, n: int) -> None:
        assert self.dim is not None
        if not 0 <= n < self.dim:
            raise IndexOutOfRangeError(self.name, n, self.dim)

    def address(self, n: Optional[int] = None) -> int:
        if n is None:
            if self.is_array:
                raise TypeError(f"'{self.name}' is an array, an index is required")
            return (self.base + self.offset) >> self.shift
        if not self.is_array:
            raise TypeError(f"'{self.name}' is not an array")
        self.check_index(n)
        return (self.base + self.offset + self.increment * n) >> self.shift

    def offsets(self) -> List[int]:
        """Byte offsets relative to ``base``, one per element"""
        if self.dim is None:
            return [self.offset]
        return [self.offset + self.increment * n for n in range(self.dim)]

    def addresses(self) -> List[int]:
        """The distinct element addresses"""
        return [(self.base + o) >> self.shift for o in self.offsets()]

    def render(self, index: Optional[str] = None) -> str:
        """Python expression of the byte offset relative to the enclosing block"""
        offset = hex_literal(self.offset)
        if index is None:
            return offset
        return f"{offset} + {hex_literal(self.increment)} * {index}"


class AddressCalculator:
    """Resolves absolute addresses, applying the configured address shift"""

    def __init__(self, shift: int = 0) -> None:
        if shift < 0:
            raise ValueError(f"address shift must not be negative, got {shift}")
        self.shift = shift

    def resolve(
        self,
        base: int,
        path_offsets: Sequence[int],
        register_offset: int,
        dim: Optional[DimElement] = None,
        name: str = "",
    ) -> AddressExpr:
        offset = sum(path_offsets) + register_offset
        if dim is None:
            return AddressExpr(base=base, offset=offset, shift=self.shift, name=name)
        return AddressExpr(
            base=base,
            offset=offset,
            shift=self.shift,
            dim=dim.dim,
            increment=dim.dim_increment,
            name=name,
        )


__all__ = ["AddressCalculator", "AddressExpr"]
