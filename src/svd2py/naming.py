"""
Identifier sanitizing

Turns raw names of the device description into valid Python identifiers
according to the per-role naming rules of the configuration.
"""

from __future__ import annotations

import keyword
import re
from typing import List, Optional

from .config import Case, Config, IdentFormat, IdentFormats

# Characters some vendors use in their peripheral/field names
BLACKLIST_CHARS = "()[]/ -"

# Methods of the generated reader/writer classes
INTERNALS = frozenset({"set_bit", "clear_bit", "bit", "bits"})

# Words reserved by C-family languages; generated names are shared with C headers
SYSTEMS_RESERVED = frozenset(
    {
        "auto", "bool", "break", "case", "char", "const", "continue", "default", "do",
        "double", "else", "enum", "extern", "float", "for", "goto", "if", "inline",
        "int", "long", "register", "restrict", "return", "short", "signed", "sizeof",
        "static", "struct", "switch", "typedef", "union", "unsigned", "void",
        "volatile", "while",
    }
)

RESERVED_WORDS = (
    frozenset(keyword.kwlist)
    | (frozenset(keyword.softkwlist) - {"_"})
    | frozenset({"self", "cls"})
    | SYSTEMS_RESERVED
)

FALLBACK_NAME = "unnamed"

_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")
_INVALID = re.compile(r"[^0-9A-Za-z_]")


def strip_blacklist(s: str) -> str:
    return "".join(ch for ch in s if ch not in BLACKLIST_CHARS)


def split_words(s: str) -> List[str]:
    """
    Split a name into words

    Boundaries are separators, lower→upper transitions (digits following a
    lowercase letter count as lowercase), a leading digit run followed by a
    capitalized word (``2Wire``) and acronym ends (``ABCDef`` → ``ABC``, ``Def``).
    """
    words: List[str] = []
    for chunk in _SEPARATORS.split(s):
        if not chunk:
            continue
        start = 0
        last_letter = chunk[0] if chunk[0].isalpha() else ""
        for i in range(1, len(chunk)):
            prev, cur = chunk[i - 1], chunk[i]
            nxt = chunk[i + 1] if i + 1 < len(chunk) else ""
            if cur.isupper():
                if (
                    prev.islower()
                    or (prev.isdigit() and last_letter.islower())
                    or (prev.isdigit() and not last_letter and nxt.islower())
                    or (prev.isupper() and nxt.islower())
                ):
                    words.append(chunk[start:i])
                    start = i
            if cur.isalpha():
                last_letter = cur
        words.append(chunk[start:])
    return words


def _split_underscores(s: str) -> tuple[str, str, str]:
    core = s.strip("_")
    if not core:
        return s, "", ""
    lead = len(s) - len(s.lstrip("_"))
    trail = len(s) - len(s.rstrip("_"))
    return s[:lead], core, s[len(s) - trail:] if trail else ""


def _convert(s: str, case: Case) -> str:
    if case is Case.UNCHANGED:
        return _INVALID.sub("_", s)
    if case is Case.UPPER:
        return _INVALID.sub("_", s).upper()

    lead, core, trail = _split_underscores(s)
    words = split_words(core)
    if case is Case.SNAKE:
        body = "_".join(w.lower() for w in words)
    elif case is Case.CONSTANT:
        body = "_".join(w.upper() for w in words)
    else:
        body = "".join(w[:1].upper() + w[1:].lower() for w in words)
    return lead + body + trail


def is_case(s: str, case: Case) -> bool:
    return _convert(s, case) == s


def to_case(s: str, case: Optional[Case]) -> str:
    """Convert ``s`` to ``case``; a string already in that case is returned untouched."""
    if case is None:
        case = Case.UNCHANGED
    if is_case(s, case):
        return s
    return _convert(s, case)


def to_snake_case(s: str) -> str:
    return to_case(s, Case.SNAKE)


def to_pascal_case(s: str) -> str:
    return to_case(s, Case.PASCAL)


def to_constant_case(s: str) -> str:
    return to_case(s, Case.CONSTANT)


def sanitize_keyword(s: str) -> str:
    if s in RESERVED_WORDS:
        return s + "_"
    return s


def apply_format(raw: str, fmt: IdentFormat) -> str:
    """Run the sanitizing pipeline for one naming rule"""
    s = strip_blacklist(raw)
    cased = to_case(s, fmt.case) if s else ""
    if not cased.strip("_"):
        cased = cased or to_case(FALLBACK_NAME, fmt.case)

    if fmt.prefix:
        name = f"{fmt.prefix}{cased}{fmt.suffix}"
    elif cased[0].isdigit():
        name = f"_{cased}{fmt.suffix}"
    else:
        name = f"{cased}{fmt.suffix}"

    if fmt.case is Case.SNAKE and name in INTERNALS:
        name += "_"
    return sanitize_keyword(name)


def sanitize(raw: str, role: str, config: Optional[Config] = None) -> str:
    """
    Sanitize ``raw`` for the identifier ``role``

    Never fails: unknown roles leave the case untouched, empty input falls back
    to a fixed name.
    """
    formats = config.ident_formats if config is not None else IdentFormats.default()
    return apply_format(raw, formats.get(role, IdentFormat()))


class NameResolver:
    """Role-scoped sanitizer bound to one configuration"""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()

    def __call__(self, raw: str, role: str) -> str:
        return sanitize(raw, role, self.config)

    def qualified(self, scope: List[str], raw: str, role: str) -> str:
        """Type name prefixed by the Pascal-cased names of its enclosing scopes"""
        return "".join(to_pascal_case(strip_blacklist(s)) for s in scope) + self(raw, role)


def respace(s: str) -> str:
    return " ".join(s.split()).replace(r"\n", "\n")


def escape_docstring(s: str) -> str:
    """Make ``s`` safe to embed in a triple-quoted docstring"""
    return respace(s).replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def hex_literal(n: int) -> str:
    """Python hex literal with ``_`` separated 16-bit groups"""
    h4, h3, h2, h1 = (n >> 48) & 0xFFFF, (n >> 32) & 0xFFFF, (n >> 16) & 0xFFFF, n & 0xFFFF
    if n >> 64:
        return hex(n)
    if h4:
        return f"0x{h4:04x}_{h3:04x}_{h2:04x}_{h1:04x}"
    if h3:
        return f"0x{h3:04x}_{h2:04x}_{h1:04x}"
    if h2:
        return f"0x{h2:04x}_{h1:04x}"
    if h1 & 0xFF00:
        return f"0x{h1:04x}"
    if h1:
        return f"0x{h1 & 0xFF:02x}"
    return "0"


def digit_or_hex(n: int) -> str:
    return str(n) if n < 10 else hex_literal(n)


__all__ = [
    "BLACKLIST_CHARS",
    "INTERNALS",
    "NameResolver",
    "RESERVED_WORDS",
    "digit_or_hex",
    "escape_docstring",
    "hex_literal",
    "is_case",
    "respace",
    "sanitize",
    "split_words",
    "to_case",
]
