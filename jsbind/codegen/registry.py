"""
Type registry.

Maps every declared (or externally provided) type name to its Python
class and its pair of conversion functions. Generated code never derives
a conversion function name from a type name; it asks the registry, which
turns a missing declaration into a located error instead of broken code.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from ..logging_config import get_logger
from .core.declarations import (
    Declaration,
    EnumTypeDecl,
    ModuleDecl,
    OpaqueTypeDecl,
    RecordTypeDecl,
    TypeDecl,
    ValueDecl,
)
from .core.errors import GeneratorError, Location, UnboundTypeError, UnsupportedSignatureError
from .core.naming import ScopedNames, create_python_names
from .core.types import Array, Arrow, Named, Option, Type

logger = get_logger(__name__)

Scope = Tuple[str, ...]


class RegistryError(GeneratorError):
    """Exception raised for registry lookups that cannot be satisfied."""

    pass


@dataclass(frozen=True)
class TypeEntry:
    """Conversion information for one named type."""

    name: str  # qualified signature name, e.g. "Window.t"
    kind: str  # opaque | enum | record | extern
    py_type: str
    of_js: str
    to_js: str
    decl: Optional[TypeDecl] = None
    module: Optional[str] = None  # Python module to import, externs only


def _kind_of(decl: TypeDecl) -> str:
    if isinstance(decl, OpaqueTypeDecl):
        return "opaque"
    if isinstance(decl, EnumTypeDecl):
        return "enum"
    if isinstance(decl, RecordTypeDecl):
        return "record"
    raise RegistryError(f"Not a type declaration: {decl!r}")


def named_types(ty: Type) -> Iterator[Named]:
    """Yield every ``Named`` reference inside ``ty``."""
    if isinstance(ty, Named):
        yield ty
    elif isinstance(ty, (Array, Option)):
        yield from named_types(ty.element)
    elif isinstance(ty, Arrow):
        for param in ty.params:
            yield from named_types(param)
        yield from named_types(ty.result)


class TypeRegistry:
    """
    Lexically scoped table of named types.

    Types are registered in declaration order, so a lookup only ever sees
    types declared before the point where it happens. After ``rewind`` the
    same order is replayed with ``define``, which makes each registered type
    visible again without binding its names twice.
    """

    def __init__(
        self,
        extern_types: Optional[Mapping[str, str]] = None,
        names: Optional[ScopedNames] = None,
    ):
        self._entries: Dict[str, TypeEntry] = {}
        self._externs: Dict[str, str] = dict(extern_types or {})
        self.names = names or create_python_names()
        self.used_externs: Set[str] = set()
        self._visible: Set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, qualified_name: str) -> TypeEntry:
        try:
            return self._entries[qualified_name]
        except KeyError:
            raise RegistryError(f"No type registered under {qualified_name}") from None

    def register(self, scope: Scope, decl: TypeDecl) -> TypeEntry:
        """Bind the Python names of a type declaration in ``scope``."""
        qualified = ".".join(scope + (decl.name,))
        if qualified in self._entries:
            raise UnsupportedSignatureError(
                decl.location, f"Type {decl.name} is declared twice in this signature"
            )

        names = self.names
        py_type = names.bind(scope, decl.name)
        of_js = names.bind(scope, f"{decl.name}_of_js")
        to_js = names.bind(scope, f"{decl.name}_to_js")
        entry = TypeEntry(
            name=qualified,
            kind=_kind_of(decl),
            py_type=names.qualify(scope, py_type),
            of_js=names.qualify(scope, of_js),
            to_js=names.qualify(scope, to_js),
            decl=decl,
        )
        self._entries[qualified] = entry
        self._visible.add(qualified)
        logger.debug("Registered %s type %s", entry.kind, qualified)
        return entry

    def rewind(self):
        """Hide every registered type until it is defined again."""
        self._visible.clear()

    def define(self, scope: Scope, decl: TypeDecl) -> TypeEntry:
        """Make a registered type visible from here on and return its entry."""
        entry = self.get(".".join(scope + (decl.name,)))
        self._visible.add(entry.name)
        return entry

    def _extern(self, name: str) -> Optional[TypeEntry]:
        module = self._externs.get(name)
        if module is None:
            return None
        base = name.rsplit(".", 1)[-1]
        return TypeEntry(
            name=name,
            kind="extern",
            py_type=f"{module}.{base}",
            of_js=f"{module}.{base}_of_js",
            to_js=f"{module}.{base}_to_js",
            module=module,
        )

    def lookup(self, name: str, scope: Scope = ()) -> Optional[TypeEntry]:
        """Find ``name`` from inside ``scope``, innermost module first."""
        for depth in range(len(scope), -1, -1):
            candidate = ".".join(scope[:depth] + (name,))
            if candidate in self._visible:
                return self._entries[candidate]
        entry = self._extern(name)
        if entry is not None:
            self.used_externs.add(entry.module)
        return entry

    def resolve(self, name: str, scope: Scope, location: Optional[Location]) -> TypeEntry:
        entry = self.lookup(name, scope)
        if entry is None:
            raise UnboundTypeError(location, name)
        return entry

    def check_type(self, ty: Type, scope: Scope, location: Optional[Location]):
        """Raise ``UnboundTypeError`` for the first unresolvable reference in ``ty``."""
        for named in named_types(ty):
            self.resolve(named.name, scope, location)

    def extern_modules(self) -> List[str]:
        return sorted(self.used_externs)


def build_type_registry(
    decls: Sequence[Declaration],
    extern_types: Optional[Mapping[str, str]] = None,
    names: Optional[ScopedNames] = None,
) -> TypeRegistry:
    """
    Register every type of a declaration tree and check all references.

    Each ``Named`` reference must resolve to a type declared earlier in
    an enclosing scope or to an entry of ``extern_types``.

    Raises:
        UnboundTypeError: for the first unresolvable reference
    """
    registry = TypeRegistry(extern_types, names)

    def walk(items: Sequence[Declaration], scope: Scope):
        for decl in items:
            if isinstance(decl, ModuleDecl):
                registry.names.bind_module(scope, decl.name)
                walk(decl.children, scope + (decl.name,))
            elif isinstance(decl, RecordTypeDecl):
                # Records may refer to themselves
                registry.register(scope, decl)
                for field in decl.fields:
                    registry.check_type(field.type, scope, decl.location)
            elif isinstance(decl, (OpaqueTypeDecl, EnumTypeDecl)):
                registry.register(scope, decl)
            elif isinstance(decl, ValueDecl):
                registry.check_type(decl.type, scope, decl.location)

    walk(decls, ())
    logger.debug("Type registry holds %d types", len(registry))
    return registry
