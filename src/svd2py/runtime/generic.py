"""
Register access runtime

Generated device modules subclass the types defined here. A register is
described by a :class:`RegisterSpec` subclass carrying its width, reset value
and modify bitmaps as class constants; a :class:`Reg` binds a spec to one
address of a master and implements the read/write/modify/reset protocol.

Every protocol call performs exactly its documented memory operations through
the master: nothing is cached, elided, reordered or batched. No locking is
done; callers sharing a register between contexts supply their own exclusion.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from enum import IntEnum
from typing import Any, ClassVar, Optional, TypeVar

from ..errors import IndexOutOfRangeError, UnsafeAccessError
from ..masks import extract, mask, modify_baseline, splice, write_baseline
from ..masters import MasterBase

T = TypeVar("T")


def check_index(name: str, n: int, dim: int) -> None:
    """Reject array indexes outside ``0..dim``; never wraps"""
    if not 0 <= n < dim:
        raise IndexOutOfRangeError(name, n, dim)


# ----------------------------------------------------------------------
# Register readers and writers
# ----------------------------------------------------------------------
class R:
    """
    Register reader

    Result of ``read`` and first argument of the ``modify`` callback.
    Generated subclasses add one method per readable field and list the
    method names in ``FIELDS``, which ``repr`` shows field by field.
    """

    FIELDS: ClassVar[tuple[str, ...]] = ()

    __slots__ = ("_bits",)

    def __init__(self, bits: int) -> None:
        self._bits = bits

    def bits(self) -> int:
        """Raw bits of the register"""
        return self._bits

    def _field(self, reader: type[FR]) -> FR:
        return reader(extract(self._bits, reader.WIDTH, reader.OFFSET))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, R):
            return self._bits == other._bits
        if isinstance(other, int):
            return self._bits == int(other)
        return NotImplemented

    def __int__(self) -> int:
        return self._bits

    def __repr__(self) -> str:
        fields = "".join(f", {name}={getattr(self, name)()}" for name in self.FIELDS)
        return f"{type(self).__name__}({self._bits:#x}{fields})"


class W:
    """
    Register writer

    Argument of the ``write`` and ``modify`` callbacks. Field writer methods
    return the writer so calls can be chained.
    """

    __slots__ = ("_bits", "_width")

    def __init__(self, bits: int, width: int) -> None:
        self._bits = bits
        self._width = width

    def bits(self, value: int, *, unsafe: bool = False) -> W:
        """
        Writes raw bits to the register

        Unchecked: the caller guarantees ``value`` is valid for the hardware,
        including its reserved bits. Requires ``unsafe=True``.
        """
        if not unsafe:
            raise UnsafeAccessError("raw register writes require unsafe=True")
        self._bits = value & mask(self._width)
        return self

    def __int__(self) -> int:
        return self._bits

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._bits:#x})"


# ----------------------------------------------------------------------
# Register specs and capabilities
# ----------------------------------------------------------------------
class RegisterSpec:
    """Constants of one register type"""

    WIDTH: ClassVar[int] = 32
    RAW_TYPE: ClassVar[str] = "u32"
    RESET_VALUE: ClassVar[int] = 0
    Reader: ClassVar[type[R]] = R
    Writer: ClassVar[type[W]] = W


class Readable(RegisterSpec):
    """Enables ``read``; with :class:`Writable` also ``modify``"""


class Writable(RegisterSpec):
    """Enables ``write``, ``write_with_zero`` and ``reset``"""

    # Bits that are not changed if you pass `1` and are changed if you pass `0`
    ZERO_TO_MODIFY_FIELDS_BITMAP: ClassVar[int] = 0
    # Bits that are not changed if you pass `0` and are changed if you pass `1`
    ONE_TO_MODIFY_FIELDS_BITMAP: ClassVar[int] = 0


class Resettable(RegisterSpec):
    """``RESET_VALUE`` seeds ``write`` and is stored as is by ``reset``"""

    @classmethod
    def reset_value(cls) -> int:
        return cls.RESET_VALUE


# ----------------------------------------------------------------------
# Field readers
# ----------------------------------------------------------------------
class FieldReader:
    """Multi-bit field reader; ``OFFSET``/``WIDTH`` locate the field in its register"""

    OFFSET: ClassVar[int] = 0
    WIDTH: ClassVar[int] = 8
    VARIANTS: ClassVar[Optional[type[IntEnum]]] = None

    __slots__ = ("_bits",)

    def __init__(self, bits: int) -> None:
        self._bits = bits

    def bits(self) -> int:
        """Raw bits of the field"""
        return self._bits

    def variant(self) -> Optional[IntEnum]:
        """Named variant of the value, or ``None`` when the value has no name"""
        if self.VARIANTS is None:
            return None
        try:
            return self.VARIANTS(self._bits)
        except ValueError:
            return None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldReader):
            return int(self._bits) == int(other._bits)
        if isinstance(other, int):
            return int(self._bits) == int(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self._bits):#x})"

    def __str__(self) -> str:
        variant = self.variant()
        return variant.name if variant is not None else f"{int(self._bits):#x}"


FR = TypeVar("FR", bound=FieldReader)


class BitReader(FieldReader):
    """Single-bit field reader"""

    WIDTH: ClassVar[int] = 1

    __slots__ = ()

    def bit(self) -> bool:
        return bool(self._bits)

    def bit_is_set(self) -> bool:
        return self.bit()

    def bit_is_clear(self) -> bool:
        return not self.bit()


# ----------------------------------------------------------------------
# Field writers
# ----------------------------------------------------------------------
class _FieldProxy:
    OFFSET: ClassVar[int] = 0
    WIDTH: ClassVar[int] = 1
    VARIANTS: ClassVar[Optional[type[IntEnum]]] = None

    __slots__ = ("_w",)

    def __init__(self, w: W) -> None:
        assert self.WIDTH >= 1 and self.OFFSET + self.WIDTH <= w._width, (
            f"{type(self).__name__} does not fit a {w._width}-bit register"
        )
        self._w = w

    def _splice(self, value: int) -> W:
        self._w._bits = splice(self._w._bits, value, self.WIDTH, self.OFFSET)
        return self._w

    def _set_one(self) -> W:
        self._w._bits |= 1 << self.OFFSET
        return self._w

    def _set_zero(self) -> W:
        self._w._bits &= ~(1 << self.OFFSET)
        return self._w

    def _check_variant(self, variant: Any) -> int:
        if self.VARIANTS is None:
            raise TypeError(f"{type(self).__name__} has no enumerated values")
        if not isinstance(variant, self.VARIANTS):
            raise TypeError(f"expected a {self.VARIANTS.__name__} variant, got {variant!r}")
        return int(variant)


class FieldWriter(_FieldProxy):
    """Multi-bit field writer whose raw ``bits`` need an explicit acknowledgment"""

    WIDTH: ClassVar[int] = 8
    SAFE: ClassVar[bool] = False

    __slots__ = ()

    def bits(self, value: int, *, unsafe: bool = False) -> W:
        """
        Writes raw bits to the field

        Only the low ``WIDTH`` bits of ``value`` are used. Unless the field is
        safe, the caller must pass ``unsafe=True``, taking responsibility for a
        value the hardware accepts; a wrong value may corrupt unrelated state.
        """
        if not (self.SAFE or unsafe):
            raise UnsafeAccessError(f"{type(self).__name__}.bits requires unsafe=True")
        return self._splice(value)

    def variant(self, variant: IntEnum) -> W:
        """Writes ``variant`` to the field"""
        return self._splice(self._check_variant(variant))


class FieldWriterSafe(FieldWriter):
    """Multi-bit field writer accepting every raw value"""

    SAFE: ClassVar[bool] = True

    __slots__ = ()


class BitWriter(_FieldProxy):
    """Single-bit field writer: the bit takes the written value"""

    __slots__ = ()

    def bit(self, value: bool) -> W:
        """Writes bit to the field"""
        return self._set_one() if value else self._set_zero()

    def variant(self, variant: IntEnum) -> W:
        """Writes ``variant`` to the field"""
        return self.bit(bool(self._check_variant(variant)))

    def set_bit(self) -> W:
        return self._set_one()

    def clear_bit(self) -> W:
        return self._set_zero()


class BitWriter1S(_FieldProxy):
    """Writing 1 sets the bit, writing 0 has no effect"""

    __slots__ = ()

    def set_bit(self) -> W:
        return self._set_one()


class BitWriter0C(_FieldProxy):
    """Writing 0 clears the bit, writing 1 has no effect"""

    __slots__ = ()

    def clear_bit(self) -> W:
        return self._set_zero()


class BitWriter1C(_FieldProxy):
    """Writing 1 clears the bit"""

    __slots__ = ()

    def clear_bit_by_one(self) -> W:
        return self._set_one()


class BitWriter0S(_FieldProxy):
    """Writing 0 sets the bit"""

    __slots__ = ()

    def set_bit_by_zero(self) -> W:
        return self._set_zero()


class BitWriter1T(_FieldProxy):
    """Writing 1 toggles the bit"""

    __slots__ = ()

    def toggle_bit(self) -> W:
        return self._set_one()


class BitWriter0T(_FieldProxy):
    """Writing 0 toggles the bit"""

    __slots__ = ()

    def toggle_bit(self) -> W:
        return self._set_zero()


# ----------------------------------------------------------------------
# Registers
# ----------------------------------------------------------------------
class Reg:
    """
    Register at one fixed address

    ``Reg(spec, master, address)`` returns an instance of the subclass matching
    the capabilities of ``spec``: read-only registers have no ``write``,
    write-only registers have no ``read`` nor ``modify``.
    """

    __slots__ = ("_spec", "_master", "_address")

    def __new__(cls, spec: type[RegisterSpec], master: MasterBase, address: int) -> Reg:
        if cls is Reg:
            cls = _reg_class(spec)
        return super().__new__(cls)

    def __init__(self, spec: type[RegisterSpec], master: MasterBase, address: int) -> None:
        self._spec = spec
        self._master = master
        self._address = address

    @property
    def spec(self) -> type[RegisterSpec]:
        return self._spec

    @property
    def address(self) -> int:
        return self._address

    def _load(self) -> int:
        return self._master.read(self._address, self._spec.WIDTH // 8)

    def _store(self, bits: int) -> None:
        self._master.write(self._address, bits, self._spec.WIDTH // 8)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._spec.__name__} @ {self._address:#x}>"


class ReadableReg(Reg):
    __slots__ = ()

    def read(self) -> R:
        """
        Reads the contents of the register: one load

        ``reg.read().bits()`` gives the raw value, ``reg.read().field()`` one field.
        """
        return self._spec.Reader(self._load())


class WritableReg(Reg):
    __slots__ = ()

    def reset(self) -> W:
        """Stores the reset value: one store"""
        spec: Any = self._spec
        self._store(spec.reset_value())
        return spec.Writer(spec.reset_value(), spec.WIDTH)

    def write(self, f: Callable[[W], Any]) -> W:
        """
        Writes the register: one store

        ``f`` receives a writer seeded with the reset value, with the
        one-to-modify bits cleared and the zero-to-modify bits set, so that
        fields ``f`` does not mention have no side effect::

            reg.write(lambda w: w.field1().set_bit().field2().variant(Mode.FAST))
        """
        spec: Any = self._spec
        w = spec.Writer(
            write_baseline(spec.reset_value(), spec.ONE_TO_MODIFY_FIELDS_BITMAP, spec.ZERO_TO_MODIFY_FIELDS_BITMAP),
            spec.WIDTH,
        )
        f(w)
        self._store(w._bits)
        return w

    def write_with_zero(self, f: Callable[[W], Any], *, unsafe: bool = False) -> W:
        """
        Like ``write``, but unmentioned bits are 0: one store

        Requires ``unsafe=True``; zero may not be a valid value for every bit.
        """
        if not unsafe:
            raise UnsafeAccessError("write_with_zero requires unsafe=True")
        w = self._spec.Writer(0, self._spec.WIDTH)
        f(w)
        self._store(w._bits)
        return w


class ReadWriteReg(ReadableReg, WritableReg):
    __slots__ = ()

    def modify(self, f: Callable[[R, W], Any]) -> W:
        """
        Read-modify-write: one load, then one store

        ``f`` receives a reader of the loaded value and a writer seeded with it,
        one-to-modify bits cleared and zero-to-modify bits set. Unmentioned
        fields keep their value, except act-on-write bits which are neutralized.
        """
        spec: Any = self._spec
        bits = self._load()
        w = spec.Writer(
            modify_baseline(bits, spec.ONE_TO_MODIFY_FIELDS_BITMAP, spec.ZERO_TO_MODIFY_FIELDS_BITMAP),
            spec.WIDTH,
        )
        f(spec.Reader(bits), w)
        self._store(w._bits)
        return w


def _reg_class(spec: type[RegisterSpec]) -> type[Reg]:
    readable = issubclass(spec, Readable)
    writable = issubclass(spec, Writable) and issubclass(spec, Resettable)
    if readable and writable:
        return ReadWriteReg
    if readable:
        return ReadableReg
    if writable:
        return WritableReg
    return Reg


# ----------------------------------------------------------------------
# Register blocks and arrays
# ----------------------------------------------------------------------
class RegisterArray(Sequence[T]):
    """Fixed array of register or cluster references; finite and restartable"""

    def __init__(self, name: str, items: Sequence[T]) -> None:
        self._name = name
        self._items = tuple(items)

    def __getitem__(self, n: int) -> T:  # type: ignore[override]
        if not isinstance(n, int):
            raise TypeError(f"{self._name} indexes must be integers")
        check_index(self._name, n, len(self._items))
        return self._items[n]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"RegisterArray({self._name!r}, dim={len(self._items)})"


class RegisterBlock:
    """
    Registers and clusters of a peripheral or cluster

    ``addr`` is the byte address of the block; register addresses are
    ``(addr + offset) >> ADDRESS_SHIFT``. Generated constructors keep the
    references they build in ``_regs``, keyed by accessor name.
    """

    ADDRESS_SHIFT: ClassVar[int] = 0

    def __init__(self, master: MasterBase, address: int) -> None:
        self._master = master
        self._regs: dict[str, Any] = {}
        self.addr = address

    def _at(self, offset: int) -> int:
        return (self.addr + offset) >> self.ADDRESS_SHIFT

    def _reg(self, spec: type[RegisterSpec], offset: int) -> Reg:
        return Reg(spec, self._master, self._at(offset))

    def _block(self, block: type[B], offset: int) -> B:
        return block(self._master, self.addr + offset)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} @ {self.addr:#x}>"


B = TypeVar("B", bound=RegisterBlock)


class Peripheral(RegisterBlock):
    """Peripheral instance with a compile-time base address ``PTR``"""

    PTR: ClassVar[int] = 0

    def __init__(self, master: MasterBase, address: Optional[int] = None) -> None:
        super().__init__(master, self.PTR if address is None else address)

    @classmethod
    def ptr(cls) -> int:
        return cls.PTR


__all__ = [
    "BitReader",
    "BitWriter",
    "BitWriter0C",
    "BitWriter0S",
    "BitWriter0T",
    "BitWriter1C",
    "BitWriter1S",
    "BitWriter1T",
    "FieldReader",
    "FieldWriter",
    "FieldWriterSafe",
    "Peripheral",
    "R",
    "Readable",
    "Reg",
    "RegisterArray",
    "RegisterBlock",
    "RegisterSpec",
    "Resettable",
    "W",
    "Writable",
    "check_index",
]
