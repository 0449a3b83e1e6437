"""
Declaration model produced by the declaration parser.

Declarations, binding kinds and custom-expression syntax are three
independent tagged unions. Instances are immutable: each pass of the
generator builds new declarations instead of mutating its input.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .errors import Location, NO_LOCATION
from .types import Type


# Custom-expression syntax


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class StringLiteral:
    value: str


@dataclass(frozen=True)
class Call:
    callee: "Expr"
    args: Tuple["Expr", ...]


Expr = Union[Identifier, StringLiteral, Call]


# Binding kinds


@dataclass(frozen=True)
class Cast:
    """Reinterpret one opaque type as another."""

    def __str__(self) -> str:
        return "js.cast"


@dataclass(frozen=True)
class PropertyGet:
    name: str

    def __str__(self) -> str:
        return f'js.get "{self.name}"'


@dataclass(frozen=True)
class PropertySet:
    name: str

    def __str__(self) -> str:
        return f'js.set "{self.name}"'


@dataclass(frozen=True)
class MethodCall:
    name: str

    def __str__(self) -> str:
        return f'js.meth "{self.name}"'


@dataclass(frozen=True)
class GlobalVariable:
    name: str

    def __str__(self) -> str:
        return f'js.global "{self.name}"'


@dataclass(frozen=True)
class CustomExpr:
    expr: Expr

    def __str__(self) -> str:
        return "js.expr"


BindingKind = Union[Cast, PropertyGet, PropertySet, MethodCall, GlobalVariable, CustomExpr]


# Declarations


@dataclass(frozen=True)
class ModuleDecl:
    name: str
    children: Tuple["Declaration", ...] = ()
    location: Location = field(default=NO_LOCATION, compare=False)


@dataclass(frozen=True)
class OpaqueTypeDecl:
    """``type t = private Ojs.t``: a named type represented as a JS value."""

    name: str
    location: Location = field(default=NO_LOCATION, compare=False)


class DefaultPayload:
    """Payload kinds accepted by catch-all enum constructors."""

    STRING = "string"
    INT = "int"


@dataclass(frozen=True)
class EnumConstructor:
    """
    One constructor of an enumeration.

    ``tag`` is the JS scalar the constructor maps to. Default constructors
    have no tag; they carry the unmatched scalar as payload instead.
    """

    name: str
    tag: Union[str, int, None] = None
    default: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class EnumTypeDecl:
    name: str
    constructors: Tuple[EnumConstructor, ...]
    location: Location = field(default=NO_LOCATION, compare=False)

    @property
    def tagged(self) -> Tuple[EnumConstructor, ...]:
        return tuple(c for c in self.constructors if not c.is_default)

    def default_for(self, payload: str) -> Optional[EnumConstructor]:
        for ctor in self.constructors:
            if ctor.default == payload:
                return ctor
        return None


@dataclass(frozen=True)
class RecordField:
    name: str
    js_name: str
    type: Type


@dataclass(frozen=True)
class RecordTypeDecl:
    name: str
    fields: Tuple[RecordField, ...]
    location: Location = field(default=NO_LOCATION, compare=False)


@dataclass(frozen=True)
class ValueDecl:
    """
    A value binding.

    ``binding`` is the explicit attribute straight out of the parser (or
    ``None``) and always set once the resolver has run.
    """

    name: str
    type: Type
    binding: Optional[BindingKind] = None
    location: Location = field(default=NO_LOCATION, compare=False)


TypeDecl = Union[OpaqueTypeDecl, EnumTypeDecl, RecordTypeDecl]
Declaration = Union[ModuleDecl, OpaqueTypeDecl, EnumTypeDecl, RecordTypeDecl, ValueDecl]


def iter_values(decls):
    """Yield ``(module_path, ValueDecl)`` for every value, depth first."""
    for decl in decls:
        if isinstance(decl, ModuleDecl):
            for path, value in iter_values(decl.children):
                yield (decl.name,) + path, value
        elif isinstance(decl, ValueDecl):
            yield (), decl
