"""
Tests for bitfield masks, modify bitmaps and width mapping
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from svd2py.errors import WidthMappingError
from svd2py.masks import (
    ModifyBitmaps,
    WriteKind,
    check_field_fits,
    extract,
    field_contribution,
    field_mask,
    field_type,
    field_type_width,
    mask,
    modify_baseline,
    raw_width_name,
    register_bitmaps,
    splice,
    write_baseline,
    write_kind,
    writer_is_safe,
)
from svd2py.model import (
    EnumeratedValue,
    EnumeratedValues,
    Field,
    ModifiedWriteValues,
    Usage,
    WriteConstraint,
)


@st.composite
def field_layout(draw):
    """(register width, field width, field offset) with the field inside the register"""
    width = draw(st.sampled_from([8, 16, 32, 64]))
    fw = draw(st.integers(min_value=1, max_value=width))
    offset = draw(st.integers(min_value=0, max_value=width - fw))
    return width, fw, offset


class TestMaskProperties:
    @given(layout=field_layout())
    def test_mask_is_all_ones(self, layout):
        width, fw, _ = layout
        assert mask(fw) == (1 << fw) - 1
        if fw == width:
            assert mask(fw) == (1 << width) - 1

    @given(layout=field_layout(), value=st.integers(min_value=0, max_value=(1 << 64) - 1))
    def test_splice_then_extract(self, layout, value):
        _, fw, offset = layout
        word = splice(0, value, fw, offset)
        assert extract(word, fw, offset) == value & mask(fw)

    @given(
        layout=field_layout(),
        word=st.integers(min_value=0, max_value=(1 << 64) - 1),
        value=st.integers(min_value=0, max_value=(1 << 64) - 1),
    )
    def test_splice_preserves_other_bits(self, layout, word, value):
        width, fw, offset = layout
        word &= mask(width)
        spliced = splice(word, value, fw, offset)
        outside = mask(width) & ~(mask(fw) << offset)
        assert spliced & outside == word & outside
        assert splice(spliced, value, fw, offset) == spliced


class TestBaselines:
    def test_write_baseline(self):
        assert write_baseline(0xA5, one_to_modify=0x0F, zero_to_modify=0x00) == 0xA0

    def test_modify_baseline(self):
        assert modify_baseline(0x3C, one_to_modify=0x0F, zero_to_modify=0x00) == 0x30

    def test_zero_to_modify_forced_on(self):
        assert write_baseline(0x00, one_to_modify=0x00, zero_to_modify=0x08) == 0x08
        assert modify_baseline(0x31, one_to_modify=0x01, zero_to_modify=0x08) == 0x38


class TestWriteSemantics:
    @pytest.mark.parametrize(
        "mwv, kind",
        [
            (ModifiedWriteValues.MODIFY, WriteKind.MODIFY),
            (ModifiedWriteValues.ONE_TO_SET, WriteKind.SET_1S),
            (ModifiedWriteValues.ZERO_TO_CLEAR, WriteKind.CLEAR_0C),
            (ModifiedWriteValues.ONE_TO_CLEAR, WriteKind.CLEAR_BY_ONE_1C),
            (ModifiedWriteValues.ZERO_TO_SET, WriteKind.SET_BY_ZERO_0S),
            (ModifiedWriteValues.ONE_TO_TOGGLE, WriteKind.TOGGLE_1T),
            (ModifiedWriteValues.ZERO_TO_TOGGLE, WriteKind.TOGGLE_0T),
            (ModifiedWriteValues.CLEAR, WriteKind.MODIFY),
        ],
    )
    def test_single_bit_kinds(self, mwv, kind):
        assert write_kind(Field("F", 3, 1, modified_write_values=mwv)) is kind

    def test_wide_fields_are_modify(self):
        field = Field("F", 0, 4, modified_write_values=ModifiedWriteValues.ONE_TO_CLEAR)
        assert write_kind(field) is WriteKind.MODIFY

    def test_writer_class_names(self):
        assert WriteKind.MODIFY.writer_class == "BitWriter"
        assert WriteKind.CLEAR_BY_ONE_1C.writer_class == "BitWriter1C"


class TestBitmaps:
    def test_contributions(self):
        w1c = Field("OVR", 1, 1, modified_write_values=ModifiedWriteValues.ONE_TO_CLEAR)
        w0c = Field("WKUP", 3, 1, modified_write_values=ModifiedWriteValues.ZERO_TO_CLEAR)
        wide = Field("FLAGS", 8, 4, modified_write_values=ModifiedWriteValues.ONE_TO_SET)
        plain = Field("EN", 0, 1)

        assert field_contribution(w1c) == ModifyBitmaps(one_to_modify=0x2)
        assert field_contribution(w0c) == ModifyBitmaps(zero_to_modify=0x8)
        assert field_contribution(wide) == ModifyBitmaps(one_to_modify=0xF00)
        assert field_contribution(plain) == ModifyBitmaps()
        assert register_bitmaps([w1c, w0c, wide, plain]) == ModifyBitmaps(zero_to_modify=0x8, one_to_modify=0xF02)

    def test_toggle_contributions(self):
        t1 = Field("T1", 4, 1, modified_write_values=ModifiedWriteValues.ONE_TO_TOGGLE)
        t0 = Field("T0", 5, 1, modified_write_values=ModifiedWriteValues.ZERO_TO_TOGGLE)
        assert register_bitmaps([t1, t0]) == ModifyBitmaps(zero_to_modify=0x20, one_to_modify=0x10)

    def test_field_mask(self):
        assert field_mask(Field("F", 4, 2)) == 0x30


class TestWidthMapping:
    @pytest.mark.parametrize("bits, name", [(8, "u8"), (16, "u16"), (32, "u32"), (64, "u64")])
    def test_register_widths(self, bits, name):
        assert raw_width_name(bits) == name

    @pytest.mark.parametrize("bits", [0, 1, 12, 24, 128])
    def test_bad_register_width(self, bits):
        with pytest.raises(WidthMappingError):
            raw_width_name(bits)

    @pytest.mark.parametrize(
        "bits, width", [(1, 1), (2, 8), (8, 8), (9, 16), (16, 16), (17, 32), (32, 32), (33, 64), (64, 64)]
    )
    def test_field_type_width(self, bits, width):
        assert field_type_width(bits) == width

    @pytest.mark.parametrize("bits", [0, 65, 100])
    def test_bad_field_width(self, bits):
        with pytest.raises(WidthMappingError, match=f"can't convert {bits} bits"):
            field_type(bits)

    def test_field_type(self):
        assert field_type(1) == "bool"
        assert field_type(7) == "int"

    def test_field_must_fit(self):
        check_field_fits(Field("F", 24, 8), 32)
        with pytest.raises(WidthMappingError):
            check_field_fits(Field("F", 28, 8), 32)


class TestWriterSafety:
    def test_plain_field_is_unsafe(self):
        assert not writer_is_safe(Field("F", 0, 4))

    def test_full_range_constraint_is_safe(self):
        assert writer_is_safe(Field("F", 0, 4, write_constraint=WriteConstraint(0, 15)))
        assert not writer_is_safe(Field("F", 0, 4, write_constraint=WriteConstraint(0, 9)))

    def test_exhaustive_write_enum_is_safe(self):
        values = tuple(EnumeratedValue(f"V{i}", i) for i in range(4))
        full = EnumeratedValues(values=values)
        partial = EnumeratedValues(values=values[:3])
        read_only = EnumeratedValues(usage=Usage.READ, values=values)

        assert writer_is_safe(Field("F", 0, 2, enumerated_values=(full,)))
        assert not writer_is_safe(Field("F", 0, 2, enumerated_values=(partial,)))
        assert not writer_is_safe(Field("F", 0, 2, enumerated_values=(read_only,)))
