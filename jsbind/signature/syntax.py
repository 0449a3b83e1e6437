"""
Raw signature tree.

This is the front-end's output: it keeps every shape the reader can
recognize, supported or not. Deciding what is supported is the job of the
declaration parser.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..codegen.core.errors import Location


# Expressions appearing in attribute payloads


@dataclass
class SynIdent:
    name: str
    location: Location


@dataclass
class SynConstruct:
    """An uppercase constructor or module path used as an expression."""

    name: str
    location: Location


@dataclass
class SynString:
    value: str
    location: Location


@dataclass
class SynInt:
    value: int
    location: Location


@dataclass
class SynApply:
    func: "SynExpr"
    args: List["SynExpr"]
    location: Location


@dataclass
class SynOther:
    """Any expression form the payload reader does not model (tuples, ...)."""

    description: str
    location: Location


SynExpr = Union[SynIdent, SynConstruct, SynString, SynInt, SynApply, SynOther]


@dataclass
class Payload:
    """
    Attribute payload.

    ``kind`` is ``"structure"`` for ordinary payloads (``items`` holds one
    expression per ``;;``-separated item), ``"type"`` for ``[@attr: t]`` and
    ``"pattern"`` for ``[@attr? p]``.
    """

    kind: str
    items: List[SynExpr] = field(default_factory=list)
    location: Optional[Location] = None


@dataclass
class Attribute:
    name: str
    payload: Payload
    location: Location


# Type expressions


@dataclass
class TyConstr:
    """Type constructor application, e.g. ``int``, ``t array``, ``Dom.node``."""

    name: str
    args: List["TypeExpr"]
    location: Location
    attributes: List[Attribute] = field(default_factory=list)


@dataclass
class TyArrow:
    param: "TypeExpr"
    result: "TypeExpr"
    location: Location
    label: Optional[str] = None
    attributes: List[Attribute] = field(default_factory=list)


@dataclass
class TyTuple:
    items: List["TypeExpr"]
    location: Location
    attributes: List[Attribute] = field(default_factory=list)


@dataclass
class TyVar:
    name: str
    location: Location
    attributes: List[Attribute] = field(default_factory=list)


TypeExpr = Union[TyConstr, TyArrow, TyTuple, TyVar]


# Signature items


@dataclass
class SigValue:
    name: str
    type: TypeExpr
    attributes: List[Attribute]
    location: Location
    primitive: bool = False  # declared with ``external``


@dataclass
class SigConstructor:
    name: str
    args: List[TypeExpr]
    attributes: List[Attribute]
    location: Location


@dataclass
class SigField:
    name: str
    type: TypeExpr
    attributes: List[Attribute]
    location: Location
    mutable: bool = False


@dataclass
class SigType:
    """
    A ``type`` item.

    Exactly one of ``manifest``, ``constructors`` and ``fields`` describes
    the body; all empty means an abstract type.
    """

    name: str
    params: List[str]
    location: Location
    private: bool = False
    manifest: Optional[TypeExpr] = None
    constructors: List[SigConstructor] = field(default_factory=list)
    fields: List[SigField] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)
    recursive_group: bool = False  # part of a ``type ... and ...`` group


@dataclass
class SigModule:
    """``module M : sig ... end``; ``items`` is ``None`` for any other module type."""

    name: str
    items: Optional[List["SigItem"]]
    location: Location


@dataclass
class SigUnsupported:
    """An item whose leading keyword the reader only skips over."""

    keyword: str
    location: Location


SigItem = Union[SigValue, SigType, SigModule, SigUnsupported]
