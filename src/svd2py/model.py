"""
Normalized device description

Immutable tree of peripherals, clusters, registers and fields. The tree is
produced once (by an external SVD parser, or by :func:`load_device` from an
already-normalized JSON/YAML document) and never mutated afterwards.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Union

import yaml

from .config import SourceType
from .errors import ModelError


class Access(Enum):
    READ_ONLY = "read-only"
    WRITE_ONLY = "write-only"
    WRITE_ONCE = "writeOnce"
    READ_WRITE = "read-write"
    READ_WRITE_ONCE = "read-writeOnce"

    @property
    def can_read(self) -> bool:
        return self in (Access.READ_ONLY, Access.READ_WRITE, Access.READ_WRITE_ONCE)

    @property
    def can_write(self) -> bool:
        return self is not Access.READ_ONLY

    @classmethod
    def parse(cls, s: str) -> "Access":
        key = s.replace("_", "-").lower()
        for access in cls:
            if access.value.lower() == key:
                return access
        aliases = {"ro": cls.READ_ONLY, "wo": cls.WRITE_ONLY, "rw": cls.READ_WRITE}
        if key in aliases:
            return aliases[key]
        raise ModelError(f"unknown access mode {s}")


class ModifiedWriteValues(Enum):
    MODIFY = "modify"
    ONE_TO_CLEAR = "oneToClear"
    ONE_TO_SET = "oneToSet"
    ONE_TO_TOGGLE = "oneToToggle"
    ZERO_TO_CLEAR = "zeroToClear"
    ZERO_TO_SET = "zeroToSet"
    ZERO_TO_TOGGLE = "zeroToToggle"
    CLEAR = "clear"
    SET = "set"

    @classmethod
    def parse(cls, s: str) -> "ModifiedWriteValues":
        for mwv in cls:
            if mwv.value.lower() == s.lower():
                return mwv
        raise ModelError(f"unknown modifiedWriteValues {s}")


class Usage(Enum):
    READ = "read"
    WRITE = "write"
    READ_WRITE = "read-write"

    @property
    def can_read(self) -> bool:
        return self is not Usage.WRITE

    @property
    def can_write(self) -> bool:
        return self is not Usage.READ


@dataclass(frozen=True)
class EnumeratedValue:
    name: str
    value: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class EnumeratedValues:
    name: Optional[str] = None
    usage: Usage = Usage.READ_WRITE
    values: Tuple[EnumeratedValue, ...] = ()


@dataclass(frozen=True)
class WriteConstraint:
    minimum: int
    maximum: int


@dataclass(frozen=True)
class DimElement:
    """Array information: dimension N and address increment between elements"""

    dim: int
    dim_increment: int
    dim_index: Tuple[str, ...] = ()

    def indexes(self) -> Tuple[str, ...]:
        return self.dim_index or tuple(str(i) for i in range(self.dim))


@dataclass(frozen=True)
class RegisterProperties:
    size: Optional[int] = None
    access: Optional[Access] = None
    reset_value: Optional[int] = None
    reset_mask: Optional[int] = None

    def inherit(self, parent: "RegisterProperties") -> "RegisterProperties":
        """Fill the unset properties from ``parent``"""
        return RegisterProperties(
            size=self.size if self.size is not None else parent.size,
            access=self.access if self.access is not None else parent.access,
            reset_value=self.reset_value if self.reset_value is not None else parent.reset_value,
            reset_mask=self.reset_mask if self.reset_mask is not None else parent.reset_mask,
        )


@dataclass(frozen=True)
class Field:
    name: str
    bit_offset: int
    bit_width: int
    description: Optional[str] = None
    access: Optional[Access] = None
    modified_write_values: ModifiedWriteValues = ModifiedWriteValues.MODIFY
    enumerated_values: Tuple[EnumeratedValues, ...] = ()
    write_constraint: Optional[WriteConstraint] = None


@dataclass(frozen=True)
class Register:
    name: str
    address_offset: int
    description: Optional[str] = None
    properties: RegisterProperties = field(default_factory=RegisterProperties)
    fields: Tuple[Field, ...] = ()
    dim: Optional[DimElement] = None
    alternate_group: Optional[str] = None

    def fullname(self, ignore_group: bool = False) -> str:
        if self.alternate_group and not ignore_group:
            return f"{self.alternate_group}_{self.name}"
        return self.name


@dataclass(frozen=True)
class Cluster:
    name: str
    address_offset: int
    description: Optional[str] = None
    children: Tuple[Union[Register, "Cluster"], ...] = ()
    dim: Optional[DimElement] = None
    properties: RegisterProperties = field(default_factory=RegisterProperties)

    def fullname(self, ignore_group: bool = False) -> str:
        return self.name


@dataclass(frozen=True)
class Interrupt:
    name: str
    value: int
    description: Optional[str] = None


@dataclass(frozen=True)
class Peripheral:
    name: str
    base_address: int
    description: Optional[str] = None
    children: Tuple[Union[Register, Cluster], ...] = ()
    dim: Optional[DimElement] = None
    derived_from: Optional[str] = None
    group_name: Optional[str] = None
    interrupts: Tuple[Interrupt, ...] = ()
    properties: RegisterProperties = field(default_factory=RegisterProperties)

    def fullname(self, ignore_group: bool = False) -> str:
        return self.name


@dataclass(frozen=True)
class Device:
    name: str
    description: Optional[str] = None
    peripherals: Tuple[Peripheral, ...] = ()
    properties: RegisterProperties = field(
        default_factory=lambda: RegisterProperties(size=32, reset_value=0)
    )
    nvic_prio_bits: Optional[int] = None

    def get_peripheral(self, name: str) -> Peripheral:
        for peripheral in self.peripherals:
            if peripheral.name == name:
                return peripheral
        raise ModelError(f"no peripheral named {name}")

    def interrupts(self) -> Iterator[Interrupt]:
        """All interrupts, deduplicated by number, in ascending order"""
        seen: Dict[int, Interrupt] = {}
        for peripheral in self.peripherals:
            for interrupt in peripheral.interrupts:
                seen.setdefault(interrupt.value, interrupt)
        for value in sorted(seen):
            yield seen[value]


def access_of(properties: RegisterProperties, fields: Optional[Sequence[Field]]) -> Access:
    """Register access mode, derived from its fields when not declared"""
    if properties.access is not None:
        return properties.access
    if not fields:
        return Access.READ_WRITE
    accesses = [f.access for f in fields]
    if all(a is Access.READ_ONLY for a in accesses):
        return Access.READ_ONLY
    if all(a is Access.WRITE_ONCE for a in accesses):
        return Access.WRITE_ONCE
    if all(a is Access.READ_WRITE_ONCE for a in accesses):
        return Access.READ_WRITE_ONCE
    if all(a in (Access.WRITE_ONLY, Access.WRITE_ONCE) for a in accesses):
        return Access.WRITE_ONLY
    return Access.READ_WRITE


def replace_suffix(name: str, suffix: str) -> str:
    if "[%s]" in name:
        return name.replace("[%s]", suffix)
    return name.replace("%s", suffix)


def array_names(name: str, dim: DimElement) -> Tuple[str, ...]:
    return tuple(replace_suffix(name, index) for index in dim.indexes())


# ----------------------------------------------------------------------
# Loading from a normalized document
# ----------------------------------------------------------------------
def _int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise ModelError(f"{what}: expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.replace("_", ""), 0)
        except ValueError:
            pass
    raise ModelError(f"{what}: expected an integer, got {value!r}")


def _opt_int(data: Dict[str, Any], key: str, what: str) -> Optional[int]:
    value = data.get(key)
    return None if value is None else _int(value, f"{what}.{key}")


def _properties(data: Dict[str, Any], what: str) -> RegisterProperties:
    access = data.get("access")
    return RegisterProperties(
        size=_opt_int(data, "size", what),
        access=Access.parse(access) if access else None,
        reset_value=_opt_int(data, "reset_value", what),
        reset_mask=_opt_int(data, "reset_mask", what),
    )


def _dim(data: Dict[str, Any], what: str) -> Optional[DimElement]:
    if data.get("dim") is None:
        return None
    index = data.get("dim_index") or ()
    if isinstance(index, str):
        index = index.split(",")
    return DimElement(
        dim=_int(data["dim"], f"{what}.dim"),
        dim_increment=_int(data.get("dim_increment", 0), f"{what}.dim_increment"),
        dim_index=tuple(str(i).strip() for i in index),
    )


def _usage(value: Optional[str], what: str) -> Usage:
    if value is None:
        return Usage.READ_WRITE
    try:
        return Usage(value)
    except ValueError:
        raise ModelError(f"{what}: unknown enumerated values usage {value!r}") from None


def _name(data: Dict[str, Any], what: str) -> str:
    name = data.get("name")
    if not isinstance(name, str):
        raise ModelError(f"{what}: missing name")
    return name


def _field(data: Dict[str, Any], what: str) -> Field:
    name = _name(data, what)
    what = f"{what}.{name}"
    if "bit_range" in data:
        msb, lsb = (_int(v, f"{what}.bit_range") for v in data["bit_range"])
        offset, width = lsb, msb - lsb + 1
    else:
        offset = _int(data.get("bit_offset", 0), f"{what}.bit_offset")
        width = _int(data.get("bit_width", 1), f"{what}.bit_width")

    raw_enums = data.get("enumerated_values") or []
    if isinstance(raw_enums, dict):
        raw_enums = [raw_enums]
    enums = []
    for raw in raw_enums:
        values = tuple(
            EnumeratedValue(
                name=_name(v, f"{what}.enumerated_values"),
                value=_opt_int(v, "value", what),
                description=v.get("description"),
            )
            for v in raw.get("values", [])
        )
        enums.append(EnumeratedValues(name=raw.get("name"), usage=_usage(raw.get("usage"), what), values=values))

    constraint = data.get("write_constraint")
    access = data.get("access")
    mwv = data.get("modified_write_values")
    return Field(
        name=name,
        bit_offset=offset,
        bit_width=width,
        description=data.get("description"),
        access=Access.parse(access) if access else None,
        modified_write_values=ModifiedWriteValues.parse(mwv) if mwv else ModifiedWriteValues.MODIFY,
        enumerated_values=tuple(enums),
        write_constraint=(
            WriteConstraint(_int(constraint["minimum"], what), _int(constraint["maximum"], what))
            if constraint
            else None
        ),
    )


def _register(data: Dict[str, Any], what: str) -> Register:
    name = _name(data, what)
    what = f"{what}.{name}"
    return Register(
        name=name,
        address_offset=_int(data.get("address_offset", 0), f"{what}.address_offset"),
        description=data.get("description"),
        properties=_properties(data, what),
        fields=tuple(_field(f, what) for f in data.get("fields", [])),
        dim=_dim(data, what),
        alternate_group=data.get("alternate_group"),
    )


def _children(items: Sequence[Dict[str, Any]], what: str) -> Tuple[Union[Register, Cluster], ...]:
    children = []
    for item in items:
        if "children" in item or item.get("kind") == "cluster":
            children.append(_cluster(item, what))
        else:
            children.append(_register(item, what))
    return tuple(children)


def _cluster(data: Dict[str, Any], what: str) -> Cluster:
    name = _name(data, what)
    what = f"{what}.{name}"
    return Cluster(
        name=name,
        address_offset=_int(data.get("address_offset", 0), f"{what}.address_offset"),
        description=data.get("description"),
        children=_children(data.get("children", []), what),
        dim=_dim(data, what),
        properties=_properties(data, what),
    )


def _peripheral(data: Dict[str, Any], what: str) -> Peripheral:
    name = _name(data, what)
    what = f"{what}.{name}"
    return Peripheral(
        name=name,
        base_address=_int(data.get("base_address", 0), f"{what}.base_address"),
        description=data.get("description"),
        children=_children(data.get("registers", data.get("children", [])), what),
        dim=_dim(data, what),
        derived_from=data.get("derived_from"),
        group_name=data.get("group_name"),
        interrupts=tuple(
            Interrupt(name=_name(i, what), value=_int(i["value"], f"{what}.interrupt"), description=i.get("description"))
            for i in data.get("interrupts", [])
        ),
        properties=_properties(data, what),
    )


def device_from_dict(data: Dict[str, Any]) -> Device:
    """Build a :class:`Device` from a normalized mapping"""
    if not isinstance(data, dict):
        raise ModelError("device: expected a mapping")
    name = _name(data, "device")
    defaults = RegisterProperties(size=32, reset_value=0)
    return Device(
        name=name,
        description=data.get("description"),
        peripherals=tuple(_peripheral(p, name) for p in data.get("peripherals", [])),
        properties=_properties(data, name).inherit(defaults),
        nvic_prio_bits=_opt_int(data, "nvic_prio_bits", name),
    )


def load_device(path: str | Path) -> Device:
    """Load a normalized device description from a JSON or YAML file"""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        try:
            if SourceType.from_path(path) is SourceType.YAML:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        except (ValueError, yaml.YAMLError) as exc:
            raise ModelError(f"{path}: {exc}") from exc
    return device_from_dict(data)


__all__ = [
    "Access",
    "Cluster",
    "Device",
    "DimElement",
    "EnumeratedValue",
    "EnumeratedValues",
    "Field",
    "Interrupt",
    "ModifiedWriteValues",
    "Peripheral",
    "Register",
    "RegisterProperties",
    "Usage",
    "WriteConstraint",
    "access_of",
    "array_names",
    "device_from_dict",
    "load_device",
    "replace_suffix",
]
