"""
Binding-kind resolver.

Gives every value declaration exactly one binding kind. An explicit
attribute always wins; otherwise the kind is inferred from the declared
name and the shape of its type.
"""

from dataclasses import replace
from typing import List, Sequence, Tuple

from ..logging_config import get_logger
from .core.declarations import (
    BindingKind,
    Declaration,
    GlobalVariable,
    MethodCall,
    ModuleDecl,
    PropertyGet,
    PropertySet,
    ValueDecl,
)
from .core.types import UNIT, Arrow, Named, Type

logger = get_logger(__name__)

SETTER_PREFIX = "set_"


def infer_binding(name: str, ty: Type) -> BindingKind:
    """
    Infer the binding kind of an unannotated value.

    Rules, first match wins:

    1. one parameter of a named type: property read of ``name``
    2. two parameters, first named, unit result, ``set_`` prefix: property
       write of the name without the prefix
    3. first parameter of a named type: method call ``name``
    4. anything else: global variable ``name``
    """
    if isinstance(ty, Arrow) and isinstance(ty.params[0], Named):
        if len(ty.params) == 1:
            return PropertyGet(name)
        if len(ty.params) == 2 and ty.result == UNIT and name.startswith(SETTER_PREFIX):
            return PropertySet(name[len(SETTER_PREFIX):])
        return MethodCall(name)
    return GlobalVariable(name)


def resolve_value(decl: ValueDecl, warnings: List[str]) -> ValueDecl:
    if decl.binding is not None:
        return decl

    binding = infer_binding(decl.name, decl.type)
    if isinstance(binding, PropertyGet) and decl.type.result == UNIT:
        warnings.append(
            f"{decl.name}: inferred as a property read of '{binding.name}' although it "
            "returns unit; add [@@js.meth] to call it as a method"
        )
    logger.debug("Inferred %s for %s", binding, decl.name)
    return replace(decl, binding=binding)


def resolve_declarations(
    decls: Sequence[Declaration],
) -> Tuple[List[Declaration], List[str]]:
    """
    Resolve binding kinds throughout a declaration tree.

    Returns:
        The rebuilt declarations and the warnings collected on the way
    """
    warnings: List[str] = []

    def walk(items: Sequence[Declaration]) -> List[Declaration]:
        resolved = []
        for decl in items:
            if isinstance(decl, ValueDecl):
                decl = resolve_value(decl, warnings)
            elif isinstance(decl, ModuleDecl):
                decl = replace(decl, children=tuple(walk(decl.children)))
            resolved.append(decl)
        return resolved

    return walk(decls), warnings
