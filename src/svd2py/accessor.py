"""
Register and cluster accessors

Each accessor describes how a register block exposes one register or
cluster and renders the Python source of that access path: lines for the
block constructor and the accessor methods themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import List, Sequence

from .address import AddressExpr
from .naming import digit_or_hex, escape_docstring, hex_literal


@dataclass(frozen=True)
class Accessor(ABC):
    """
    Parameters:
        name: Accessor name in the block
        ty: Register spec class, or cluster block class
        addr: Offset of the item relative to the enclosing block
        is_cluster: ``ty`` is a register block rather than a register spec
        doc: Accessor docstring
    """

    name: str
    ty: str
    addr: AddressExpr
    is_cluster: bool = False
    doc: str = ""

    def raw(self) -> "Accessor":
        return self

    def raw_if(self, flag: bool) -> "Accessor":
        """Degrade to the address-computing form when ``flag`` is set"""
        return self.raw() if flag else self

    def init_lines(self) -> List[str]:
        return []

    @abstractmethod
    def method_lines(self) -> List[str]:
        """Source of the accessor methods, indented relative to the class body"""

    def members(self) -> List[str]:
        """Attribute names the accessor defines on its block"""
        return [self.name]

    @property
    def returns(self) -> str:
        return self.ty if self.is_cluster else "generic.Reg"

    def _make(self, offset: str) -> str:
        if self.is_cluster:
            return f"self._block({self.ty}, {offset})"
        return f"self._reg({self.ty}, {offset})"

    def _docstring(self, prefix: str) -> List[str]:
        doc = escape_docstring(self.doc)
        text = f"{prefix} - {doc}" if doc else prefix
        return [f'    """{text}"""']


@dataclass(frozen=True)
class RegAccessor(Accessor):
    """Reference built once in the block constructor"""

    def raw(self) -> Accessor:
        return RawRegAccessor(**_fields(self))

    def init_lines(self) -> List[str]:
        return [f'self._regs["{self.name}"] = {self._make(self.addr.render())}']

    def method_lines(self) -> List[str]:
        return [
            "@property",
            f"def {self.name}(self) -> {self.returns}:",
            *self._docstring(self.addr.render()),
            f'    return self._regs["{self.name}"]',
        ]


@dataclass(frozen=True)
class RawRegAccessor(Accessor):
    """Reference computed from the block address on every access"""

    def method_lines(self) -> List[str]:
        return [
            "@property",
            f"def {self.name}(self) -> {self.returns}:",
            *self._docstring(self.addr.render()),
            f"    return {self._make(self.addr.render())}",
        ]


@dataclass(frozen=True)
class ArrayAccessor(Accessor):
    """Fixed sequence of references built from literal offsets"""

    def members(self) -> List[str]:
        return [self.name, f"{self.name}_iter"]

    def raw(self) -> Accessor:
        return RawArrayAccessor(**_fields(self))

    def init_lines(self) -> List[str]:
        items = [f"    {self._make(hex_literal(offset))}," for offset in self.addr.offsets()]
        return [
            f'self._regs["{self.name}"] = generic.RegisterArray(',
            f'    "{self.name}",',
            "    (",
            *("    " + item for item in items),
            "    ),",
            ")",
        ]

    def method_lines(self) -> List[str]:
        return [
            f"def {self.name}(self, n: int) -> {self.returns}:",
            *self._docstring(self.addr.render("n")),
            f'    return self._regs["{self.name}"][n]',
            "",
            f"def {self.name}_iter(self) -> Iterator[{self.returns}]:",
            f'    """Iterator over the {self.addr.dim} elements of `{self.name}`"""',
            f'    return iter(self._regs["{self.name}"])',
        ]


@dataclass(frozen=True)
class RawArrayAccessor(Accessor):
    """Bounds-checked address formula evaluated on every access"""

    def members(self) -> List[str]:
        return [self.name, f"{self.name}_iter"]

    def method_lines(self) -> List[str]:
        return [
            f"def {self.name}(self, n: int) -> {self.returns}:",
            *self._docstring(self.addr.render("n")),
            f'    generic.check_index("{self.name}", n, {self.addr.dim})',
            f"    return {self._make(self.addr.render('n'))}",
            "",
            f"def {self.name}_iter(self) -> Iterator[{self.returns}]:",
            f'    """Iterator over the {self.addr.dim} elements of `{self.name}`"""',
            f"    return (self.{self.name}(n) for n in range({self.addr.dim}))",
        ]


@dataclass(frozen=True)
class ArrayElemAccessor(Accessor):
    """Named element forwarding to a literal index of a sibling array accessor"""

    basename: str = ""
    index: int = 0

    def method_lines(self) -> List[str]:
        return [
            "@property",
            f"def {self.name}(self) -> {self.returns}:",
            *self._docstring(self.addr.render()),
            f"    return self.{self.basename}({digit_or_hex(self.index)})",
        ]


def _fields(accessor: Accessor) -> dict:
    return {
        "name": accessor.name,
        "ty": accessor.ty,
        "addr": accessor.addr,
        "is_cluster": accessor.is_cluster,
        "doc": accessor.doc,
    }


def emit_accessors(
    name: str,
    ty: str,
    addr: AddressExpr,
    *,
    is_cluster: bool = False,
    doc: str = "",
    listed: bool = False,
    element_names: Sequence[str] = (),
    raw: bool = False,
    array_proxy: bool = False,
    keep_list: bool = False,
) -> List[Accessor]:
    """
    Accessors exposing one register or cluster

    Scalars get a single reference accessor. Arrays get a fixed sequence, or a
    bounds-checked formula with ``array_proxy``. A ``%s`` list (``listed``)
    additionally gets one forwarder per named element, or with ``keep_list``
    one scalar accessor per element and no array at all. ``raw`` degrades every
    typed accessor to its address-computing form.
    """
    if not addr.is_array:
        return [RegAccessor(name, ty, addr, is_cluster, doc).raw_if(raw)]

    if listed and keep_list:
        return [
            RegAccessor(
                element,
                ty,
                replace(addr, offset=offset, dim=None, increment=0, name=element),
                is_cluster,
                doc,
            ).raw_if(raw)
            for element, offset in zip(element_names, addr.offsets())
        ]

    array_cls = RawArrayAccessor if array_proxy else ArrayAccessor
    accessors: List[Accessor] = [array_cls(name, ty, addr, is_cluster, doc).raw_if(raw)]
    if listed:
        for index, (element, offset) in enumerate(zip(element_names, addr.offsets())):
            if element == name:
                continue
            elem_addr = replace(addr, offset=offset, dim=None, increment=0, name=element)
            accessors.append(ArrayElemAccessor(element, ty, elem_addr, is_cluster, doc, basename=name, index=index))
    return accessors


__all__ = [
    "Accessor",
    "ArrayAccessor",
    "ArrayElemAccessor",
    "RawArrayAccessor",
    "RawRegAccessor",
    "RegAccessor",
    "emit_accessors",
]
