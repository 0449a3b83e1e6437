"""
Core type model for binding generation.

The closed set of types that can appear in a binding signature. Every
algorithm in the generator dispatches on these classes exhaustively.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

from .errors import Location


class PrimitiveKind(Enum):
    """Scalar types with a fixed runtime conversion."""

    STRING = "string"
    INT = "int"
    BOOL = "bool"
    FLOAT = "float"
    UNIT = "unit"


@dataclass(frozen=True)
class Primitive:
    """A scalar type converted by the runtime bridge."""

    kind: PrimitiveKind

    def __str__(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class Foreign:
    """The opaque JavaScript value type itself (``Ojs.t``)."""

    def __str__(self) -> str:
        return "Ojs.t"


@dataclass(frozen=True)
class Named:
    """Reference to a declared type that owns a conversion pair."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Array:
    """Sequence type, converted element-wise through an indexed JS array."""

    element: "Type"

    def __str__(self) -> str:
        return f"{_atom(self.element)} array"


@dataclass(frozen=True)
class Option:
    """Optional value; ``None`` maps to JS ``null``."""

    element: "Type"

    def __str__(self) -> str:
        return f"{_atom(self.element)} option"


@dataclass(frozen=True)
class Arrow:
    """
    Function type with its parameters already flattened.

    ``variadic`` marks the last parameter as a sequence whose elements are
    spread into the JS argument list. ``location`` points at the arrow in
    the signature and takes no part in equality.
    """

    params: Tuple["Type", ...]
    result: "Type"
    variadic: bool = field(default=False)
    location: Optional[Location] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not self.params:
            raise ValueError("Arrow type needs at least one parameter")
        object.__setattr__(self, "params", tuple(self.params))

    @property
    def js_params(self) -> Tuple["Type", ...]:
        """Parameters visible to JavaScript: a sole ``unit`` means none."""
        if self.params == (UNIT,):
            return ()
        return self.params

    def __str__(self) -> str:
        parts = [_atom(p) for p in self.params]
        if self.variadic:
            parts[-1] = f"{parts[-1]} [@js.variadic]"
        return " -> ".join(parts + [str(self.result)])


Type = Union[Primitive, Foreign, Named, Array, Option, Arrow]

STRING = Primitive(PrimitiveKind.STRING)
INT = Primitive(PrimitiveKind.INT)
BOOL = Primitive(PrimitiveKind.BOOL)
FLOAT = Primitive(PrimitiveKind.FLOAT)
UNIT = Primitive(PrimitiveKind.UNIT)
FOREIGN = Foreign()

# Signature names of the builtin nullary types
BUILTIN_TYPES = {
    "string": STRING,
    "int": INT,
    "bool": BOOL,
    "float": FLOAT,
    "unit": UNIT,
    "Ojs.t": FOREIGN,
}

# Builtin unary type constructors
SEQUENCE_CONSTRUCTORS = {"array", "list"}
OPTION_CONSTRUCTOR = "option"


def arrow(
    params, result: Type, variadic: bool = False, location: Optional[Location] = None
) -> Arrow:
    """Build an arrow, flattening a curried result into the parameter list."""
    params = tuple(params)
    if isinstance(result, Arrow) and not variadic:
        return Arrow(params + result.params, result.result, result.variadic, location)
    return Arrow(params, result, variadic, location)


def is_callback(ty: Type) -> bool:
    """Check for the only nested function shape that can be wrapped."""
    return isinstance(ty, Arrow) and ty.params == (UNIT,) and ty.result == UNIT


def _atom(ty: Type) -> str:
    if isinstance(ty, Arrow):
        return f"({ty})"
    return str(ty)
