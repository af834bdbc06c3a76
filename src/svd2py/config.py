"""Generator configuration."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError


class Target(Enum):
    """Target architecture. Only gates peripheral-external output (interrupts, NVIC)."""

    CORTEX_M = "cortex-m"
    MSP430 = "msp430"
    RISCV = "riscv"
    XTENSA_LX = "xtensa-lx"
    MIPS = "mips"
    NONE = "none"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, s: str) -> "Target":
        for target in cls:
            if target.value == s:
                return target
        raise ConfigError(f"unknown target {s}")


class Case(Enum):
    CONSTANT = "constant"
    UPPER = "upper"
    PASCAL = "pascal"
    SNAKE = "snake"
    UNCHANGED = "unchanged"

    @classmethod
    def parse(cls, s: str) -> "Case":
        try:
            return cls(s.lower())
        except ValueError:
            raise ConfigError(f"unknown case {s}") from None


class SourceType(Enum):
    JSON = "json"
    YAML = "yaml"

    @classmethod
    def from_extension(cls, ext: str) -> Optional["SourceType"]:
        if ext in ("yml", "yaml"):
            return cls.YAML
        if ext == "json":
            return cls.JSON
        return None

    @classmethod
    def from_path(cls, path: Path) -> "SourceType":
        return cls.from_extension(path.suffix.lstrip(".").lower()) or cls.JSON


@dataclass(frozen=True)
class IdentFormat:
    """Naming rule of one identifier role. ``case=None`` leaves the case untouched."""

    case: Optional[Case] = None
    prefix: str = ""
    suffix: str = ""

    def constant_case(self) -> "IdentFormat":
        return replace(self, case=Case.CONSTANT)

    def pascal_case(self) -> "IdentFormat":
        return replace(self, case=Case.PASCAL)

    def snake_case(self) -> "IdentFormat":
        return replace(self, case=Case.SNAKE)

    def with_suffix(self, suffix: str) -> "IdentFormat":
        return replace(self, suffix=suffix)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IdentFormat":
        unknown = set(data) - {"case", "prefix", "suffix"}
        if unknown:
            raise ConfigError(f"unknown ident format keys: {', '.join(sorted(unknown))}")
        case = data.get("case")
        return cls(
            case=Case.parse(case) if case else None,
            prefix=str(data.get("prefix") or ""),
            suffix=str(data.get("suffix") or ""),
        )


class IdentFormats(Dict[str, IdentFormat]):
    """Per-role naming rule table."""

    @classmethod
    def default(cls) -> "IdentFormats":
        base = IdentFormat()
        return cls(
            {
                "field_accessor": base.snake_case(),
                "field_reader": base.pascal_case().with_suffix("R"),
                "field_writer": base.pascal_case().with_suffix("W"),
                "enum_name": base.pascal_case(),
                "enum_write_name": base.pascal_case().with_suffix("WO"),
                "enum_value": base.constant_case(),
                "enum_value_accessor": base.snake_case(),
                "interrupt": base.constant_case(),
                "cluster": base.pascal_case(),
                "cluster_accessor": base.snake_case(),
                "register": base.pascal_case(),
                "register_spec": base.pascal_case().with_suffix("Spec"),
                "register_accessor": base.snake_case(),
                "peripheral": base.pascal_case(),
                "peripheral_singleton": base.snake_case(),
                "peripheral_mod": base.snake_case(),
            }
        )

    def updated(self, overrides: Dict[str, Any]) -> "IdentFormats":
        result = IdentFormats(self)
        for role, value in overrides.items():
            if role not in result:
                raise ConfigError(f"unknown identifier role {role}")
            result[role] = value if isinstance(value, IdentFormat) else IdentFormat.from_dict(value)
        return result


@dataclass
class Config:
    """
    Options that control code generation

    Parameters:
        target: Target architecture tag
        ident_formats: Naming rule per identifier role
        base_address_shift: Right shift applied to every computed address
        raw_access: Emit address-computing accessors instead of materialized references
        array_proxy: Emit arrays as bounds-checked runtime formulas instead of fixed sequences
        keep_list: Emit one accessor per array element instead of an array accessor
        ignore_groups: Do not prefix register names with their alternate group
    """

    target: Target = Target.CORTEX_M
    ident_formats: IdentFormats = field(default_factory=IdentFormats.default)
    base_address_shift: int = 0
    raw_access: bool = False
    array_proxy: bool = False
    keep_list: bool = False
    ignore_groups: bool = False
    log_level: Optional[str] = None
    output_dir: Path = field(default_factory=lambda: Path("."))
    input: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")

        kwargs: Dict[str, Any] = dict(data)
        if "target" in kwargs:
            kwargs["target"] = Target.parse(str(kwargs["target"]))
        if "ident_formats" in kwargs:
            kwargs["ident_formats"] = IdentFormats.default().updated(kwargs["ident_formats"] or {})
        if "base_address_shift" in kwargs:
            shift = int(kwargs["base_address_shift"])
            if shift < 0:
                raise ConfigError(f"base_address_shift must not be negative, got {shift}")
            kwargs["base_address_shift"] = shift
        for key in ("output_dir", "input"):
            if kwargs.get(key) is not None:
                kwargs[key] = Path(kwargs[key])
        return cls(**kwargs)


def load_config(path: str | Path) -> Config:
    """Load a :class:`Config` from a YAML or JSON file."""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        try:
            if SourceType.from_path(path) is SourceType.YAML:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        except (ValueError, yaml.YAMLError) as exc:
            raise ConfigError(f"{path}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return Config.from_dict(data)


__all__ = ["Case", "Config", "IdentFormat", "IdentFormats", "SourceType", "Target", "load_config"]
