"""Core data structures for tuple-function translation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..constants import OUTPUT_PARAM_PREFIX


@dataclass(frozen=True)
class SimpleType:
    """A C type spelled as an identifier followed by pointer markers."""

    base: str
    pointers: int = 0

    @property
    def spelling(self) -> str:
        if not self.pointers:
            return self.base
        return f"{self.base} {'*' * self.pointers}"

    def pointer_to(self) -> "SimpleType":
        return SimpleType(self.base, self.pointers + 1)

    def declare(self, name: str) -> str:
        """Render a declarator, e.g. ``char *name``."""

        return f"{self.base} {'*' * self.pointers}{name}"

    def __str__(self) -> str:
        return self.spelling


@dataclass(frozen=True)
class Param:
    type: SimpleType
    name: str

    @property
    def declaration(self) -> str:
        return self.type.declare(self.name)


@dataclass(frozen=True)
class Binding:
    """One destructure target of a call directive.

    ``type`` is ``None`` when the target is an existing variable rather than
    a fresh declaration.
    """

    type: Optional[SimpleType]
    name: str

    @property
    def declared(self) -> bool:
        return self.type is not None


def output_param_name(slot: int, prefix: str = OUTPUT_PARAM_PREFIX) -> str:
    return f"{prefix}{slot}"


@dataclass
class FunctionSignature:
    """Declared contract of one tuple function."""

    name: str
    is_static: bool
    return_tuple: tuple[SimpleType, ...]
    params: tuple[Param, ...]
    origin_text: str = ""
    line_number: int = 0
    defined: bool = False

    def __post_init__(self):
        self.return_tuple = tuple(self.return_tuple)
        self.params = tuple(self.params)
        if not self.return_tuple:
            raise ValueError(f"Tuple function {self.name} needs at least one return type")

    @property
    def arity(self) -> int:
        return len(self.return_tuple)

    @property
    def param_count(self) -> int:
        return len(self.params)

    def output_params(self, prefix: str = OUTPUT_PARAM_PREFIX) -> list[Param]:
        """Synthetic pointer parameters standing in for slots 1..N-1."""

        return [
            Param(slot_type.pointer_to(), output_param_name(slot, prefix))
            for slot, slot_type in enumerate(self.return_tuple)
            if slot > 0
        ]

    def header(self, prefix: str = OUTPUT_PARAM_PREFIX) -> str:
        formals = [p.declaration for p in self.params]
        formals += [p.declaration for p in self.output_params(prefix)]
        param_text = ", ".join(formals) if formals else "void"
        storage = "static " if self.is_static else ""
        return f"{storage}{self.return_tuple[0].declare(self.name)}({param_text})"

    def matches(self, other: "FunctionSignature") -> bool:
        """Compare contracts; parameter names do not take part."""

        return (
            self.name == other.name
            and self.is_static == other.is_static
            and self.return_tuple == other.return_tuple
            and [p.type for p in self.params] == [p.type for p in other.params]
        )

    def describe(self) -> str:
        kind = "defined" if self.defined else "declared"
        return f"{self.name} {kind} on line {self.line_number}: {self.origin_text.strip()}"

    def to_dict(self):
        return {
            "name": self.name,
            "static": self.is_static,
            "returns": [t.spelling for t in self.return_tuple],
            "params": [
                {"type": p.type.spelling, "name": p.name} for p in self.params
            ],
            "line": self.line_number,
            "defined": self.defined,
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError("Function signature must be built from a mapping")
        from .parsing import parse_simple_type

        def type_of(text):
            parsed = parse_simple_type(text)
            if parsed is None:
                raise ValueError(f"Invalid type spelling: {text!r}")
            return parsed

        return cls(
            name=data["name"],
            is_static=bool(data.get("static", False)),
            return_tuple=tuple(type_of(t) for t in data.get("returns") or []),
            params=tuple(
                Param(type_of(p["type"]), p["name"]) for p in data.get("params") or []
            ),
            line_number=int(data.get("line", 0)),
            defined=bool(data.get("defined", False)),
        )


__all__ = [
    "SimpleType",
    "Param",
    "Binding",
    "FunctionSignature",
    "output_param_name",
]
