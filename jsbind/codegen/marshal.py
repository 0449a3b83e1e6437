"""
Type-directed marshalling.

Builds the Python expressions that convert values between the host and
the JS runtime, and the function bodies implementing each binding kind.
Everything here produces source text; nothing is evaluated.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from ..logging_config import get_logger
from .core.declarations import (
    Call,
    Cast,
    CustomExpr,
    Expr,
    GlobalVariable,
    Identifier,
    MethodCall,
    PropertyGet,
    PropertySet,
    StringLiteral,
    ValueDecl,
)
from .core.errors import (
    BindingTypeMismatchError,
    GeneratorError,
    InvalidExpressionError,
    Location,
    UnsupportedTypeError,
)
from .core.types import (
    UNIT,
    Array,
    Arrow,
    Foreign,
    Named,
    Option,
    Primitive,
    PrimitiveKind,
    Type,
    is_callback,
)
from .registry import Scope, TypeRegistry

logger = get_logger(__name__)

RUNTIME = "ojs"

PYTHON_TYPES = {
    PrimitiveKind.STRING: "str",
    PrimitiveKind.INT: "int",
    PrimitiveKind.BOOL: "bool",
    PrimitiveKind.FLOAT: "float",
    PrimitiveKind.UNIT: "None",
}


def py_literal(value) -> str:
    """Python source for a string or int constant."""
    return repr(value)


@dataclass
class Param:
    name: str
    annotation: str


@dataclass
class Binding:
    """
    Generated implementation of one value declaration.

    Function bindings have ``params`` (possibly empty) and a statement
    ``body``; plain values have ``params=None`` and a single ``value``
    expression evaluated once at import time.
    """

    params: Optional[List[Param]]
    body: List[str] = field(default_factory=list)
    returns: str = "None"
    value: Optional[str] = None

    @property
    def is_function(self) -> bool:
        return self.params is not None


class Marshaller:
    """
    Conversion code generator for one lexical scope.

    Args:
        registry: Registry resolving named types
        scope: Signature module path the declaration lives in
        location: Location reported by errors
        runtime: Name under which the generated module imports the bridge
    """

    def __init__(
        self,
        registry: TypeRegistry,
        scope: Scope = (),
        location: Optional[Location] = None,
        runtime: str = RUNTIME,
    ):
        self.registry = registry
        self.scope = scope
        self.location = location
        self.runtime = runtime
        self.typing_names: Set[str] = set()

    def _rt(self, name: str) -> str:
        return f"{self.runtime}.{name}"

    def _entry(self, ty: Named):
        return self.registry.resolve(ty.name, self.scope, self.location)

    # Annotations

    def annotation(self, ty: Type) -> str:
        if isinstance(ty, Primitive):
            return PYTHON_TYPES[ty.kind]
        if isinstance(ty, Foreign):
            return self._rt("t")
        if isinstance(ty, Named):
            return self._entry(ty).py_type
        if isinstance(ty, Array):
            self.typing_names.add("List")
            return f"List[{self.annotation(ty.element)}]"
        if isinstance(ty, Option):
            self.typing_names.add("Optional")
            return f"Optional[{self.annotation(ty.element)}]"
        if is_callback(ty):
            self.typing_names.add("Callable")
            return "Callable[[], None]"
        raise self._unsupported(ty)

    # Converters

    def of_js_function(self, ty: Type) -> str:
        """A callable expression converting one JS value of type ``ty``."""
        if isinstance(ty, Primitive):
            return self._rt(f"{ty.kind.value}_of_js")
        if isinstance(ty, Foreign):
            return self._rt("t_of_js")
        if isinstance(ty, Named):
            return self._entry(ty).of_js
        return f"lambda elt: {self.js_to_py(ty, 'elt')}"

    def to_js_function(self, ty: Type) -> str:
        if isinstance(ty, Primitive):
            return self._rt(f"{ty.kind.value}_to_js")
        if isinstance(ty, Foreign):
            return self._rt("t_to_js")
        if isinstance(ty, Named):
            return self._entry(ty).to_js
        return f"lambda elt: {self.py_to_js(ty, 'elt')}"

    def js_to_py(self, ty: Type, expr: str) -> str:
        """Expression converting the JS value ``expr`` to the host type ``ty``."""
        if isinstance(ty, Foreign):
            return expr
        if isinstance(ty, (Primitive, Named)):
            return f"{self.of_js_function(ty)}({expr})"
        if isinstance(ty, Array):
            return f"{self._rt('array_of_js')}({self.of_js_function(ty.element)}, {expr})"
        if isinstance(ty, Option):
            return f"{self._rt('option_of_js')}({self.of_js_function(ty.element)}, {expr})"
        if is_callback(ty):
            return f"{self._rt('fun_unit_of_js')}({expr})"
        raise self._unsupported(ty)

    def py_to_js(self, ty: Type, expr: str) -> str:
        """Expression converting the host value ``expr`` of type ``ty`` to JS."""
        if isinstance(ty, Foreign):
            return expr
        if isinstance(ty, (Primitive, Named)):
            return f"{self.to_js_function(ty)}({expr})"
        if isinstance(ty, Array):
            return f"{self._rt('array_to_js')}({self.to_js_function(ty.element)}, {expr})"
        if isinstance(ty, Option):
            return f"{self._rt('option_to_js')}({self.to_js_function(ty.element)}, {expr})"
        if is_callback(ty):
            return f"{self._rt('fun_unit_to_js')}({expr})"
        raise self._unsupported(ty)

    # Bindings

    def _params(self, types: Sequence[Type], names: Sequence[str]) -> List[Param]:
        return [Param(name, self.annotation(ty)) for name, ty in zip(names, types)]

    def _js_args(self, types: Sequence[Type], names: Sequence[str], variadic: bool) -> str:
        """Source of the flat JS argument list, spreading a variadic last argument."""
        args = [self.py_to_js(ty, name) for ty, name in zip(types, names)]
        if variadic and args:
            element = types[-1].element
            if isinstance(element, Foreign):
                args[-1] = f"*{names[-1]}"
            else:
                args[-1] = f"*[{self.py_to_js(element, 'elt')} for elt in {names[-1]}]"
        return "[" + ", ".join(args) + "]"

    def _finish(self, params: List[Param], result: Type, expr: str) -> Binding:
        if result == UNIT:
            return Binding(params, [expr], "None")
        return Binding(params, [f"return {self.js_to_py(result, expr)}"], self.annotation(result))

    def _mismatch(self, message: Optional[str] = None) -> BindingTypeMismatchError:
        return BindingTypeMismatchError(self.location, message)

    def _unsupported(self, ty: Type) -> UnsupportedTypeError:
        # Report nested function types where they are written
        location = ty.location if isinstance(ty, Arrow) and ty.location else self.location
        return UnsupportedTypeError(location)

    def gen_binding(self, decl: ValueDecl) -> Binding:
        """Implementation of a resolved value declaration."""
        binding, ty = decl.binding, decl.type
        if binding is None:
            raise GeneratorError(f"Value {decl.name} reached code generation unresolved")

        if isinstance(ty, Arrow) and ty.variadic and not isinstance(
            binding, (MethodCall, GlobalVariable)
        ):
            raise self._mismatch(
                "Variadic parameters are only supported on method calls and globals"
            )

        if isinstance(binding, Cast):
            if not (
                isinstance(ty, Arrow)
                and len(ty.params) == 1
                and isinstance(ty.params[0], Named)
                and isinstance(ty.result, Named)
            ):
                raise self._mismatch()
            params = self._params(ty.params, ["this"])
            converted = self.js_to_py(ty.result, self.py_to_js(ty.params[0], "this"))
            return Binding(params, [f"return {converted}"], self.annotation(ty.result))

        if isinstance(binding, PropertyGet):
            if not (isinstance(ty, Arrow) and len(ty.params) == 1):
                raise self._mismatch()
            this = self.py_to_js(ty.params[0], "this")
            expr = f"{self._rt('get')}({this}, {py_literal(binding.name)})"
            return self._finish(self._params(ty.params, ["this"]), ty.result, expr)

        if isinstance(binding, PropertySet):
            if not (
                isinstance(ty, Arrow)
                and len(ty.params) == 2
                and isinstance(ty.params[0], Named)
                and ty.result == UNIT
            ):
                raise self._mismatch()
            this = self.py_to_js(ty.params[0], "this")
            arg = self.py_to_js(ty.params[1], "arg")
            expr = f"{self._rt('set')}({this}, {py_literal(binding.name)}, {arg})"
            return Binding(self._params(ty.params, ["this", "arg"]), [expr], "None")

        if isinstance(binding, MethodCall):
            if not isinstance(ty, Arrow):
                raise self._mismatch()
            this_ty, arg_types = ty.params[0], ty.params[1:]
            if ty.variadic and not arg_types:
                raise self._mismatch("The receiver of a method call cannot be variadic")
            if arg_types == (UNIT,):
                arg_types = ()
            names = [f"arg{i}" for i in range(len(arg_types))]
            call = "call_unit" if ty.result == UNIT else "call"
            expr = (
                f"{self._rt(call)}({self.py_to_js(this_ty, 'this')}, "
                f"{py_literal(binding.name)}, {self._js_args(arg_types, names, ty.variadic)})"
            )
            params = self._params((this_ty,) + tuple(arg_types), ["this"] + names)
            return self._finish(params, ty.result, expr)

        if isinstance(binding, GlobalVariable):
            target = f"{self._rt('variable')}({py_literal(binding.name)})"
            if not isinstance(ty, Arrow):
                return Binding(None, value=self.js_to_py(ty, target), returns=self.annotation(ty))
            arg_types = ty.js_params
            names = [f"arg{i}" for i in range(len(arg_types))]
            apply = "apply_unit" if ty.result == UNIT else "apply"
            expr = f"{self._rt(apply)}({target}, {self._js_args(arg_types, names, ty.variadic)})"
            return self._finish(self._params(arg_types, names), ty.result, expr)

        if isinstance(binding, CustomExpr):
            if not isinstance(ty, Arrow):
                value = self.js_to_py(ty, self.gen_expr(binding.expr, {}))
                return Binding(None, value=value, returns=self.annotation(ty))
            arg_types = ty.js_params
            names = [f"arg{i}" for i in range(len(arg_types))]
            ids = {name: self.py_to_js(t, name) for name, t in zip(names, arg_types)}
            expr = self.gen_expr(binding.expr, ids)
            return self._finish(self._params(arg_types, names), ty.result, expr)

        raise GeneratorError(f"Unknown binding kind: {binding!r}")

    def gen_expr(self, expr: Expr, ids: Dict[str, str]) -> str:
        """
        Translate a custom binding expression.

        Supported forms are ``call obj "meth" args...``, ``global "name"``,
        string literals and the parameter names ``arg0``, ``arg1``, ...
        """
        if isinstance(expr, Call) and expr.callee == Identifier("call"):
            if len(expr.args) >= 2 and isinstance(expr.args[1], StringLiteral):
                obj, meth = expr.args[0], expr.args[1]
                args = ", ".join(self.gen_expr(arg, ids) for arg in expr.args[2:])
                return (
                    f"{self._rt('call')}({self.gen_expr(obj, ids)}, "
                    f"{py_literal(meth.value)}, [{args}])"
                )
        elif isinstance(expr, Call) and expr.callee == Identifier("global"):
            if len(expr.args) == 1 and isinstance(expr.args[0], StringLiteral):
                return f"{self._rt('variable')}({py_literal(expr.args[0].value)})"
        elif isinstance(expr, StringLiteral):
            return self.py_to_js(Primitive(PrimitiveKind.STRING), py_literal(expr.value))
        elif isinstance(expr, Identifier) and expr.name in ids:
            return ids[expr.name]
        raise InvalidExpressionError(self.location)
