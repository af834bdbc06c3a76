"""
Tests for the register access runtime, driven by hand-written register types
"""

from enum import IntEnum

import pytest

from svd2py.errors import IndexOutOfRangeError, UnsafeAccessError
from svd2py.masters import MockMaster
from svd2py.runtime import generic


class Mode(IntEnum):
    SLOW = 0
    FAST = 1
    TURBO = 2


class Enable(IntEnum):
    OFF = 0
    ON = 1


class ModeR(generic.FieldReader):
    OFFSET = 4
    WIDTH = 2
    VARIANTS = Mode


class ModeW(generic.FieldWriter):
    OFFSET = 4
    WIDTH = 2
    VARIANTS = Mode


class EnR(generic.BitReader):
    OFFSET = 6
    VARIANTS = Enable


class EnW(generic.BitWriter):
    OFFSET = 6
    VARIANTS = Enable


class OvrW(generic.BitWriter1C):
    OFFSET = 1


class CtrlReader(generic.R):
    FIELDS = ("mode", "en")

    def mode(self):
        return self._field(ModeR)

    def en(self):
        return self._field(EnR)


class CtrlWriter(generic.W):
    def mode(self):
        return ModeW(self)

    def en(self):
        return EnW(self)

    def ovr(self):
        return OvrW(self)


class CtrlSpec(generic.Readable, generic.Writable, generic.Resettable):
    WIDTH = 8
    RAW_TYPE = "u8"
    RESET_VALUE = 0xA5
    ZERO_TO_MODIFY_FIELDS_BITMAP = 0x00
    ONE_TO_MODIFY_FIELDS_BITMAP = 0x0F
    Reader = CtrlReader
    Writer = CtrlWriter


class IdSpec(generic.Readable):
    WIDTH = 16
    RESET_VALUE = 0x1234


class DataSpec(generic.Writable, generic.Resettable):
    WIDTH = 32


class S0W(generic.BitWriter0S):
    OFFSET = 0


class T1W(generic.BitWriter1T):
    OFFSET = 1


class T0W(generic.BitWriter0T):
    OFFSET = 2


class EventsWriter(generic.W):
    def s0(self):
        return S0W(self)

    def t1(self):
        return T1W(self)

    def t0(self):
        return T0W(self)


class EventsSpec(generic.Readable, generic.Writable, generic.Resettable):
    WIDTH = 8
    ZERO_TO_MODIFY_FIELDS_BITMAP = 0b101
    ONE_TO_MODIFY_FIELDS_BITMAP = 0b010
    Writer = EventsWriter


ADDR = 0x4000_0000


@pytest.fixture
def master():
    return MockMaster()


@pytest.fixture
def ctrl(master):
    return generic.Reg(CtrlSpec, master, ADDR)


class TestCapabilities:
    def test_read_write_register(self, ctrl):
        assert isinstance(ctrl, generic.ReadWriteReg)
        for op in ("read", "write", "modify", "reset", "write_with_zero"):
            assert hasattr(ctrl, op)

    def test_read_only_register_has_no_write(self, master):
        reg = generic.Reg(IdSpec, master, ADDR)
        assert hasattr(reg, "read")
        assert not hasattr(reg, "write")
        assert not hasattr(reg, "modify")
        assert not hasattr(reg, "reset")

    def test_write_only_register_has_no_read(self, master):
        reg = generic.Reg(DataSpec, master, ADDR)
        assert hasattr(reg, "write")
        assert not hasattr(reg, "read")
        assert not hasattr(reg, "modify")

    def test_special_bit_writers_expose_only_their_op(self):
        assert hasattr(generic.BitWriter1C, "clear_bit_by_one")
        assert not hasattr(generic.BitWriter1C, "set_bit")
        assert not hasattr(generic.BitWriter1C, "bit")
        assert not hasattr(generic.BitWriter1S, "clear_bit")
        assert not hasattr(generic.BitWriter0T, "bits")


class TestProtocol:
    def test_read_is_one_load(self, ctrl, master):
        master.memory[ADDR] = 0x5A
        value = ctrl.read()
        assert value.bits() == 0x5A
        assert value == 0x5A
        assert len(master.reads()) == 1
        assert master.writes() == []

    def test_read_width_in_bytes(self, master):
        generic.Reg(IdSpec, master, ADDR).read()
        assert master.reads()[0].width == 2

    def test_write_baseline(self, ctrl, master):
        ctrl.write(lambda w: w)
        assert master.memory[ADDR] == 0xA0
        assert len(master.writes()) == 1
        assert master.reads() == []

    def test_modify_baseline(self, ctrl, master):
        master.memory[ADDR] = 0x3C
        ctrl.modify(lambda r, w: w)
        assert master.memory[ADDR] == 0x30
        assert [t.op for t in master.transactions] == ["read", "write"]

    def test_modify_sees_fresh_value(self, ctrl, master):
        seen = []
        master.memory[ADDR] = 0x10
        ctrl.modify(lambda r, w: seen.append(r.mode().variant()))
        master.memory[ADDR] = 0x20
        ctrl.modify(lambda r, w: seen.append(r.mode().variant()))
        assert seen == [Mode.FAST, Mode.TURBO]
        assert len(master.reads()) == 2

    def test_reset_stores_reset_value(self, ctrl, master):
        master.memory[ADDR] = 0xFF
        ctrl.reset()
        assert master.memory[ADDR] == 0xA5
        assert CtrlSpec.reset_value() == 0xA5
        assert len(master.writes()) == 1

    def test_write_with_zero_requires_acknowledgment(self, ctrl, master):
        with pytest.raises(UnsafeAccessError):
            ctrl.write_with_zero(lambda w: w.mode().variant(Mode.FAST))
        assert master.writes() == []
        ctrl.write_with_zero(lambda w: w.mode().variant(Mode.FAST), unsafe=True)
        assert master.memory[ADDR] == 0x10

    def test_no_caching(self, ctrl, master):
        ctrl.read()
        ctrl.read()
        ctrl.write(lambda w: w)
        ctrl.write(lambda w: w)
        assert [t.op for t in master.transactions] == ["read", "read", "write", "write"]


class TestFieldAccess:
    @pytest.mark.parametrize("variant", list(Mode))
    def test_variant_round_trip(self, ctrl, variant):
        ctrl.write(lambda w: w.mode().variant(variant))
        assert ctrl.read().mode().variant() is variant
        assert ctrl.read().mode() == variant

    def test_variant_idempotent(self, ctrl, master):
        ctrl.write(lambda w: w.mode().variant(Mode.TURBO))
        once = master.memory[ADDR]
        ctrl.write(lambda w: w.mode().variant(Mode.TURBO).mode().variant(Mode.TURBO))
        assert master.memory[ADDR] == once

    def test_variant_rejects_other_enum(self, ctrl):
        with pytest.raises(TypeError):
            ctrl.write(lambda w: w.mode().variant(Enable.ON))

    def test_unnamed_value_has_no_variant(self, ctrl, master):
        master.memory[ADDR] = 0x30
        field = ctrl.read().mode()
        assert field.bits() == 3
        assert field.variant() is None

    def test_bits_requires_acknowledgment(self, ctrl, master):
        with pytest.raises(UnsafeAccessError):
            ctrl.write(lambda w: w.mode().bits(3))
        assert master.writes() == []
        ctrl.write(lambda w: w.mode().bits(3, unsafe=True))
        assert ctrl.read().mode().bits() == 3

    def test_bits_masked_to_field(self, ctrl, master):
        ctrl.write_with_zero(lambda w: w.mode().bits(0xFF, unsafe=True), unsafe=True)
        assert master.memory[ADDR] == 0x30

    def test_repr_lists_fields(self, ctrl, master):
        master.memory[ADDR] = 0x50
        assert repr(ctrl.read()) == "CtrlReader(0x50, mode=FAST, en=ON)"
        master.memory[ADDR] = 0x30
        assert repr(ctrl.read()) == "CtrlReader(0x30, mode=0x3, en=OFF)"
        assert repr(generic.R(0x12)) == "R(0x12)"

    def test_bit_reader(self, ctrl, master):
        master.memory[ADDR] = 0x40
        en = ctrl.read().en()
        assert en.bit() is True
        assert en.bit_is_set()
        assert not en.bit_is_clear()
        assert en.variant() is Enable.ON
        assert en == Enable.ON

    def test_bit_writer(self, ctrl, master):
        ctrl.write(lambda w: w.en().set_bit())
        assert master.memory[ADDR] == 0xA0 | 0x40
        master.memory[ADDR] = 0xFF
        ctrl.modify(lambda r, w: w.en().clear_bit())
        assert master.memory[ADDR] == 0xF0 & ~0x40
        ctrl.write(lambda w: w.en().variant(Enable.ON))
        assert master.memory[ADDR] & 0x40

    def test_clear_by_one(self, ctrl, master):
        ctrl.write(lambda w: w.ovr().clear_bit_by_one())
        assert master.memory[ADDR] == 0xA0 | 0x02

    @pytest.fixture
    def events(self, master):
        return generic.Reg(EventsSpec, master, ADDR)

    def test_untouched_act_on_write_bits_are_neutral(self, events, master):
        events.write(lambda w: w)
        assert master.memory[ADDR] == 0b101
        master.memory[ADDR] = 0xF0
        events.modify(lambda r, w: w)
        assert master.memory[ADDR] == 0xF5

    def test_set_by_zero(self, events, master):
        events.write(lambda w: w.s0().set_bit_by_zero())
        assert master.memory[ADDR] == 0b100

    def test_toggle_by_one(self, events, master):
        events.write(lambda w: w.t1().toggle_bit())
        assert master.memory[ADDR] == 0b111

    def test_toggle_by_zero(self, events, master):
        events.write(lambda w: w.t0().toggle_bit())
        assert master.memory[ADDR] == 0b001

    def test_all_operations(self, events, master):
        events.write(lambda w: w.s0().set_bit_by_zero().t1().toggle_bit().t0().toggle_bit())
        assert master.memory[ADDR] == 0b010

    def test_raw_register_bits(self, ctrl, master):
        with pytest.raises(UnsafeAccessError):
            ctrl.write(lambda w: w.bits(0x12))
        ctrl.write(lambda w: w.bits(0x1FF, unsafe=True))
        assert master.memory[ADDR] == 0xFF

    def test_field_must_fit_register(self):
        class Wide(generic.FieldWriter):
            OFFSET = 4
            WIDTH = 8

        with pytest.raises(AssertionError):
            Wide(generic.W(0, 8))


class TestBlocks:
    def test_block_addressing(self, master):
        class Block(generic.RegisterBlock):
            ADDRESS_SHIFT = 2

        block = Block(master, 0x1000)
        assert block._reg(CtrlSpec, 0x8).address == (0x1000 + 0x8) >> 2
        nested = block._block(Block, 0x20)
        assert nested.addr == 0x1020

    def test_peripheral_base(self, master):
        class Periph(generic.Peripheral):
            PTR = 0x4000_1000

        assert Periph(master).addr == 0x4000_1000
        assert Periph(master, 0x2000).addr == 0x2000
        assert Periph.ptr() == 0x4000_1000

    def test_register_array(self, master):
        regs = [generic.Reg(CtrlSpec, master, ADDR + 4 * n) for n in range(3)]
        array = generic.RegisterArray("ctrl", regs)
        assert len(array) == 3
        assert array[2] is regs[2]
        assert list(array) == regs
        assert list(array) == regs
        with pytest.raises(IndexOutOfRangeError):
            array[3]
        with pytest.raises(IndexOutOfRangeError):
            array[-1]

    def test_check_index(self):
        generic.check_index("buf", 0, 1)
        with pytest.raises(IndexOutOfRangeError, match="buf"):
            generic.check_index("buf", 1, 1)
