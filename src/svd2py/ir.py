"""Intermediate representation of a generated device package."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Union

from .accessor import Accessor, emit_accessors
from .address import AddressCalculator
from .config import Config, Target
from .errors import GenerationError, ModelError, Svd2PyError
from .log import get_logger
from .masks import (
    ModifyBitmaps,
    WriteKind,
    check_field_fits,
    field_type,
    mask,
    raw_width_name,
    register_bitmaps,
    write_kind,
    writer_is_safe,
)
from .model import (
    Access,
    Cluster,
    Device,
    EnumeratedValues,
    Field,
    Peripheral,
    Register,
    RegisterProperties,
    access_of,
    array_names,
    replace_suffix,
)
from .naming import NameResolver

logger = get_logger(__name__)

# Names taken by the runtime base classes or by the generated package itself
_BLOCK_ATTRS = frozenset({"addr", "ptr", "_at", "_block", "_master", "_reg", "_regs"})
_WRITER_ATTRS = frozenset({"variant"})
_FIELD_ATTRS = frozenset({"_bits", "_field", "_width"})
_PACKAGE_NAMES = frozenset(
    {"generic", "IntEnum", "Iterator", "Interrupt", "MasterBase", "Peripherals", "RegisterBlock"}
)

_VARIANT_WRITERS = frozenset({"FieldWriter", "FieldWriterSafe", WriteKind.MODIFY.writer_class})


@dataclass
class EnumValueIR:
    """Enumerated value of a field."""

    name: str
    accessor: str
    value: int
    description: str = ""


@dataclass
class EnumIR:
    """Enumerated value set of a field."""

    name: str
    description: str
    values: List[EnumValueIR] = field(default_factory=list)


@dataclass
class FieldIR:
    """Description of a register field."""

    name: str
    accessor: str
    description: str
    offset: int
    width: int
    type: str
    reader: Optional[str]
    writer: Optional[str]
    reader_base: str
    writer_base: str
    read_enum: Optional[EnumIR] = None
    write_enum: Optional[EnumIR] = None

    @property
    def bit_doc(self) -> str:
        if self.width == 1:
            return f"Bit {self.offset}"
        return f"Bits {self.offset}:{self.offset + self.width - 1}"

    @property
    def writer_has_variants(self) -> bool:
        return self.write_enum is not None and self.writer_base in _VARIANT_WRITERS


@dataclass
class RegisterIR:
    """Description of a register."""

    name: str
    spec: str
    reader: Optional[str]
    writer: Optional[str]
    description: str
    width: int
    raw_type: str
    access: Access
    reset_value: int
    zero_to_modify: int
    one_to_modify: int
    addresses: List[int]
    fields: List[FieldIR] = field(default_factory=list)

    @property
    def readable(self) -> bool:
        return self.reader is not None

    @property
    def writable(self) -> bool:
        return self.writer is not None

    @property
    def capabilities(self) -> List[str]:
        caps = []
        if self.readable:
            caps.append("Readable")
        if self.writable:
            caps.extend(["Writable", "Resettable"])
        return caps or ["RegisterSpec"]

    def enums(self) -> Iterator[EnumIR]:
        seen = set()
        for f in self.fields:
            for enum in (f.read_enum, f.write_enum):
                if enum is not None and enum.name not in seen:
                    seen.add(enum.name)
                    yield enum


@dataclass
class BlockIR:
    """Register block of a peripheral or cluster."""

    name: str
    description: str
    registers: List[RegisterIR] = field(default_factory=list)
    blocks: List["BlockIR"] = field(default_factory=list)
    accessors: List[Accessor] = field(default_factory=list)

    def init_lines(self) -> List[str]:
        return [line for accessor in self.accessors for line in accessor.init_lines()]

    def walk(self) -> Iterator["BlockIR"]:
        """Nested blocks first, so every class is defined before it is used"""
        for block in self.blocks:
            yield from block.walk()
        yield self


@dataclass
class ModuleIR:
    """Generated module holding the register block of one or more peripherals."""

    name: str
    description: str
    block: BlockIR


@dataclass
class PeripheralIR:
    """Peripheral instance at a fixed base address."""

    name: str
    class_name: str
    singleton: str
    module: str
    base_address: int
    description: str = ""


@dataclass
class InterruptIR:
    name: str
    value: int
    description: str = ""


@dataclass
class DeviceIR:
    """Root object representing the generated package."""

    name: str
    package: str
    description: str
    target: Target
    address_shift: int
    modules: List[ModuleIR] = field(default_factory=list)
    peripherals: List[PeripheralIR] = field(default_factory=list)
    interrupts: List[InterruptIR] = field(default_factory=list)
    nvic_prio_bits: Optional[int] = None
    errors: List[GenerationError] = field(default_factory=list)

    @property
    def has_interrupts(self) -> bool:
        return self.target is not Target.NONE

    @property
    def has_nvic(self) -> bool:
        return self.target is Target.CORTEX_M and self.nvic_prio_bits is not None


class IRBuilder:
    """Builds the IR from a device description."""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self.names = NameResolver(self.config)
        self.addresses = AddressCalculator(self.config.base_address_shift)
        self._offsets = AddressCalculator()
        self._errors: List[GenerationError] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def build(self, device: Device) -> DeviceIR:
        self._errors = []
        modules: Dict[str, ModuleIR] = {}
        module_of: Dict[str, str] = {}

        for p in device.peripherals:
            if p.derived_from and not p.children:
                continue
            logger.debug("Building peripheral %s", p.name)
            try:
                module = self._module(p, device.properties)
                if module.name in modules:
                    raise ModelError(f"module '{module.name}' is already generated for another peripheral")
            except Svd2PyError as exc:
                self._fail(p.name, exc)
                continue
            modules[module.name] = module
            module_of[p.name] = module.name

        peripherals: List[PeripheralIR] = []
        failed = {e.item for e in self._errors}
        for p in device.peripherals:
            if p.name in failed:
                continue
            module_name = module_of.get(p.name)
            if module_name is None:
                module_name = module_of.get(p.derived_from or "")
                if module_name is None:
                    self._fail(p.name, ModelError(f"derived from unknown or failed peripheral '{p.derived_from}'"))
                    continue
                module_of[p.name] = module_name
            peripherals.extend(self._instances(p, module_name))

        return DeviceIR(
            name=device.name,
            package=self.names(device.name, "peripheral_mod"),
            description=device.description or "",
            target=self.config.target,
            address_shift=self.config.base_address_shift,
            modules=list(modules.values()),
            peripherals=peripherals,
            interrupts=[
                InterruptIR(self.names(i.name, "interrupt"), i.value, i.description or "")
                for i in device.interrupts()
            ],
            nvic_prio_bits=device.nvic_prio_bits,
            errors=list(self._errors),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _fail(self, item: str, exc: Exception) -> None:
        error = GenerationError(item, exc)
        logger.error("%s", error)
        self._errors.append(error)

    def _type(self, scope: Sequence[str], raw: str, role: str) -> str:
        name = self.names.qualified(list(scope), raw, role)
        return name + "_" if name in _PACKAGE_NAMES else name

    def _member(self, raw: str, role: str) -> str:
        name = self.names(raw, role)
        if name.startswith("__"):
            # no private name mangling for generated attributes
            name = "_" + name.lstrip("_")
        return name + "_" if name in _BLOCK_ATTRS else name

    @staticmethod
    def _unique(name: str, taken: Set[str], iterable: bool = False) -> str:
        while name in taken or (iterable and f"{name}_iter" in taken):
            name += "_"
        return name

    def _module(self, p: Peripheral, defaults: RegisterProperties) -> ModuleIR:
        name = self.names(replace_suffix(p.name, ""), "peripheral_mod")
        if name in _PACKAGE_NAMES:
            name += "_"
        block = self._block(
            "RegisterBlock",
            [],
            p.children,
            p.properties.inherit(defaults),
            p.base_address,
            [],
            p.name,
            p.description or "Register block",
        )
        return ModuleIR(name=name, description=p.description or p.name, block=block)

    def _instances(self, p: Peripheral, module: str) -> List[PeripheralIR]:
        if p.dim is None:
            raws = [(p.name, p.base_address)]
        else:
            raws = [
                (name, p.base_address + p.dim.dim_increment * n) for n, name in enumerate(array_names(p.name, p.dim))
            ]
        return [
            PeripheralIR(
                name=raw,
                class_name=self._type([], raw, "peripheral"),
                singleton=self._member(raw, "peripheral_singleton"),
                module=module,
                base_address=base,
                description=p.description or "",
            )
            for raw, base in raws
        ]

    def _block(
        self,
        class_name: str,
        scope: List[str],
        children: Iterable[Union[Register, Cluster]],
        properties: RegisterProperties,
        base: int,
        path_offsets: List[int],
        path: str,
        description: str,
    ) -> BlockIR:
        block = BlockIR(name=class_name, description=description)
        taken: Set[str] = set()
        for child in children:
            item = f"{path}.{child.name}"
            try:
                if isinstance(child, Cluster):
                    sub = self._cluster(child, scope, properties, base, path_offsets, item)
                    block.blocks.append(sub)
                    accessors = self._accessors(child, sub.name, "cluster_accessor", sub.description, taken)
                    block.accessors.extend(accessors)
                else:
                    reg = self._register(child, scope, properties, base, path_offsets)
                    block.registers.append(reg)
                    accessors = self._accessors(child, reg.spec, "register_accessor", reg.description, taken)
                    block.accessors.extend(accessors)
            except Svd2PyError as exc:
                self._fail(item, exc)
        return block

    def _cluster(
        self,
        cluster: Cluster,
        scope: List[str],
        properties: RegisterProperties,
        base: int,
        path_offsets: List[int],
        path: str,
    ) -> BlockIR:
        raw = replace_suffix(cluster.name, "")
        return self._block(
            self._type(scope, raw, "cluster"),
            scope + [raw],
            cluster.children,
            cluster.properties.inherit(properties),
            base,
            path_offsets + [cluster.address_offset],
            path,
            cluster.description or f"Cluster {raw}",
        )

    def _accessors(
        self,
        item: Union[Register, Cluster],
        ty: str,
        role: str,
        description: str,
        taken: Set[str],
    ) -> List[Accessor]:
        """Accessors of one block child; their names are added to ``taken``"""
        full = item.fullname(self.config.ignore_groups)
        name = self._unique(self._member(replace_suffix(full, ""), role), taken, item.dim is not None)
        addr = self._offsets.resolve(0, (), item.address_offset, item.dim, name=name)
        listed = item.dim is not None and "%s" in full and "[%s]" not in full
        element_names = []
        if listed:
            reserved = taken | {f"{name}_iter"}
            for raw in array_names(full, item.dim):
                element = self._member(raw, role)
                element = element if element == name else self._unique(element, reserved)
                reserved.add(element)
                element_names.append(element)
        accessors = emit_accessors(
            name,
            ty,
            addr,
            is_cluster=isinstance(item, Cluster),
            doc=description,
            listed=listed,
            element_names=element_names,
            raw=self.config.raw_access,
            array_proxy=self.config.array_proxy,
            keep_list=self.config.keep_list,
        )
        taken.update(member for accessor in accessors for member in accessor.members())
        return accessors

    def _register(
        self,
        reg: Register,
        scope: List[str],
        properties: RegisterProperties,
        base: int,
        path_offsets: List[int],
    ) -> RegisterIR:
        props = reg.properties.inherit(properties)
        width = props.size or 32
        raw_type = raw_width_name(width)
        raw = replace_suffix(reg.fullname(self.config.ignore_groups), "")
        access = access_of(props, reg.fields)
        reset_value = props.reset_value or 0
        if reset_value >> width:
            raise ModelError(f"reset value {reset_value:#x} does not fit in {width} bits")

        reg_scope = scope + [raw]
        fields = [self._field(f, reg_scope, access, width) for f in reg.fields]
        bitmaps = register_bitmaps(reg.fields) if access.can_write else ModifyBitmaps()
        register_name = self._type(scope, raw, "register")
        return RegisterIR(
            name=raw,
            spec=self._type(scope, raw, "register_spec"),
            reader=register_name + "Reader" if access.can_read else None,
            writer=register_name + "Writer" if access.can_write else None,
            description=reg.description or raw,
            width=width,
            raw_type=raw_type,
            access=access,
            reset_value=reset_value,
            zero_to_modify=bitmaps.zero_to_modify,
            one_to_modify=bitmaps.one_to_modify,
            addresses=self.addresses.resolve(base, path_offsets, reg.address_offset, reg.dim, raw).addresses(),
            fields=fields,
        )

    def _field(self, f: Field, scope: List[str], reg_access: Access, width: int) -> FieldIR:
        check_field_fits(f, width)
        accessor = self.names(f.name, "field_accessor")
        if accessor in _FIELD_ATTRS:
            accessor += "_"
        ftype = field_type(f.bit_width)
        access = f.access or reg_access
        readable = reg_access.can_read and access.can_read
        writable = reg_access.can_write and access.can_write

        if f.bit_width == 1:
            reader_base = "BitReader"
            writer_base = write_kind(f).writer_class
        else:
            reader_base = "FieldReader"
            writer_base = "FieldWriterSafe" if writer_is_safe(f) else "FieldWriter"

        read_values = next((e for e in f.enumerated_values if e.usage.can_read), None)
        write_values = next((e for e in f.enumerated_values if e.usage.can_write), None)
        read_enum = write_enum = None
        if readable and read_values is not None:
            read_enum = self._enum(read_values, f, scope, "enum_name")
        if writable and write_values is not None and writer_base in _VARIANT_WRITERS:
            if write_values is read_values and read_enum is not None:
                write_enum = read_enum
            else:
                role = "enum_write_name" if read_enum is not None else "enum_name"
                write_enum = self._enum(write_values, f, scope, role)

        return FieldIR(
            name=f.name,
            accessor=accessor,
            description=f.description or "",
            offset=f.bit_offset,
            width=f.bit_width,
            type=ftype,
            reader=self._type(scope, f.name, "field_reader") if readable else None,
            writer=self._type(scope, f.name, "field_writer") if writable else None,
            reader_base=reader_base,
            writer_base=writer_base,
            read_enum=read_enum,
            write_enum=write_enum,
        )

    def _enum(self, ev: EnumeratedValues, f: Field, scope: List[str], role: str) -> Optional[EnumIR]:
        limit = mask(f.bit_width)
        seen = set()
        values = []
        for v in ev.values:
            if v.value is None:
                continue
            if v.value > limit:
                logger.warning("%s: value %s=%#x does not fit in %d bits, skipped", f.name, v.name, v.value, f.bit_width)
                continue
            name = self.names(v.name, "enum_value")
            if name in seen:
                continue
            seen.add(name)
            accessor = self.names(v.name, "enum_value_accessor")
            if accessor in _WRITER_ATTRS:
                accessor += "_"
            values.append(EnumValueIR(name, accessor, v.value, v.description or ""))
        if not values:
            return None
        return EnumIR(
            name=self._type(scope, ev.name or f.name, role),
            description=f.description or f.name,
            values=values,
        )


__all__ = [
    "BlockIR",
    "DeviceIR",
    "EnumIR",
    "EnumValueIR",
    "FieldIR",
    "IRBuilder",
    "InterruptIR",
    "ModuleIR",
    "PeripheralIR",
    "RegisterIR",
]
