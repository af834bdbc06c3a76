"""
Bitfield masks and write semantics

Derives the per-register modify bitmaps and the per-field write kind from
field descriptors, and maps bit widths to integral representations.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

from .errors import WidthMappingError
from .model import Field, ModifiedWriteValues

BITS_PER_BYTE = 8

REGISTER_WIDTHS = {8: "u8", 16: "u16", 32: "u32", 64: "u64"}


class WriteKind(Enum):
    """Write semantics of a field and the runtime writer class implementing it"""

    MODIFY = "BitWriter"
    SET_1S = "BitWriter1S"
    CLEAR_0C = "BitWriter0C"
    CLEAR_BY_ONE_1C = "BitWriter1C"
    SET_BY_ZERO_0S = "BitWriter0S"
    TOGGLE_1T = "BitWriter1T"
    TOGGLE_0T = "BitWriter0T"

    @property
    def writer_class(self) -> str:
        return self.value


_BIT_KINDS = {
    ModifiedWriteValues.ONE_TO_SET: WriteKind.SET_1S,
    ModifiedWriteValues.ZERO_TO_CLEAR: WriteKind.CLEAR_0C,
    ModifiedWriteValues.ONE_TO_CLEAR: WriteKind.CLEAR_BY_ONE_1C,
    ModifiedWriteValues.ZERO_TO_SET: WriteKind.SET_BY_ZERO_0S,
    ModifiedWriteValues.ONE_TO_TOGGLE: WriteKind.TOGGLE_1T,
    ModifiedWriteValues.ZERO_TO_TOGGLE: WriteKind.TOGGLE_0T,
}

ONE_TO_MODIFY_WRITES = frozenset(
    {ModifiedWriteValues.ONE_TO_CLEAR, ModifiedWriteValues.ONE_TO_SET, ModifiedWriteValues.ONE_TO_TOGGLE}
)
ZERO_TO_MODIFY_WRITES = frozenset(
    {ModifiedWriteValues.ZERO_TO_CLEAR, ModifiedWriteValues.ZERO_TO_SET, ModifiedWriteValues.ZERO_TO_TOGGLE}
)


def mask(width: int) -> int:
    """All-ones mask of ``width`` bits"""
    return (1 << width) - 1


def field_mask(field: Field) -> int:
    return mask(field.bit_width) << field.bit_offset


def write_kind(field: Field) -> WriteKind:
    """Write kind of a field; only single-bit fields get the one/zero-to-X writers"""
    if field.bit_width != 1:
        return WriteKind.MODIFY
    return _BIT_KINDS.get(field.modified_write_values, WriteKind.MODIFY)


@dataclass(frozen=True)
class ModifyBitmaps:
    zero_to_modify: int = 0
    one_to_modify: int = 0

    def __or__(self, other: "ModifyBitmaps") -> "ModifyBitmaps":
        return ModifyBitmaps(
            self.zero_to_modify | other.zero_to_modify,
            self.one_to_modify | other.one_to_modify,
        )


def field_contribution(field: Field) -> ModifyBitmaps:
    """Bits a field forces in the written word when it is left untouched"""
    if field.modified_write_values in ONE_TO_MODIFY_WRITES:
        return ModifyBitmaps(one_to_modify=field_mask(field))
    if field.modified_write_values in ZERO_TO_MODIFY_WRITES:
        return ModifyBitmaps(zero_to_modify=field_mask(field))
    return ModifyBitmaps()


def register_bitmaps(fields: Iterable[Field]) -> ModifyBitmaps:
    result = ModifyBitmaps()
    for field in fields:
        result = result | field_contribution(field)
    return result


def write_baseline(reset_value: int, one_to_modify: int, zero_to_modify: int) -> int:
    """Initial writer value of ``write``"""
    return (reset_value & ~one_to_modify) | zero_to_modify


def modify_baseline(current: int, one_to_modify: int, zero_to_modify: int) -> int:
    """Initial writer value of ``modify``"""
    return (current & ~one_to_modify) | zero_to_modify


def splice(word: int, value: int, width: int, offset: int) -> int:
    """Replace ``width`` bits of ``word`` at ``offset`` with ``value``"""
    m = mask(width)
    return (word & ~(m << offset)) | ((value & m) << offset)


def extract(word: int, width: int, offset: int) -> int:
    return (word >> offset) & mask(width)


def raw_width_name(bits: int) -> str:
    """Raw register type of a register of ``bits`` bits"""
    try:
        return REGISTER_WIDTHS[bits]
    except KeyError:
        raise WidthMappingError(bits, "register size type") from None


def field_type_width(bits: int) -> int:
    if bits == 1:
        return 1
    if 2 <= bits <= 8:
        return 8
    if 9 <= bits <= 16:
        return 16
    if 17 <= bits <= 32:
        return 32
    if 33 <= bits <= 64:
        return 64
    raise WidthMappingError(bits, "an integral type width")


def field_type(bits: int) -> str:
    """Python annotation of a field value of ``bits`` bits"""
    return "bool" if field_type_width(bits) == 1 else "int"


def check_field_fits(field: Field, register_width: int) -> None:
    if field.bit_width < 1 or field.bit_offset < 0 or field.bit_offset + field.bit_width > register_width:
        raise WidthMappingError(
            field.bit_width,
            f"field '{field.name}' at offset {field.bit_offset} of a {register_width}-bit register",
        )


def write_values(field: Field) -> Tuple[int, ...]:
    """Enumerated values usable for writing"""
    return tuple(
        v.value
        for enum in field.enumerated_values
        if enum.usage.can_write
        for v in enum.values
        if v.value is not None
    )


def writer_is_safe(field: Field) -> bool:
    """
    Whether raw ``bits`` writes of a field need no acknowledgment

    True when a write constraint covers the whole range of the field, or when
    the enumerated write values cover every value of the field.
    """
    full = mask(field.bit_width)
    wc = field.write_constraint
    if wc is not None and wc.minimum <= 0 and wc.maximum >= full:
        return True
    values = set(write_values(field))
    return bool(values) and values == set(range(full + 1))


__all__ = [
    "BITS_PER_BYTE",
    "ModifyBitmaps",
    "WriteKind",
    "check_field_fits",
    "extract",
    "field_contribution",
    "field_mask",
    "field_type",
    "field_type_width",
    "mask",
    "modify_baseline",
    "raw_width_name",
    "register_bitmaps",
    "splice",
    "write_baseline",
    "write_kind",
    "writer_is_safe",
]
