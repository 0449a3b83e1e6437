"""
In-process JavaScript value model.

``MemoryBackend`` implements enough of JavaScript's object semantics for
generated bindings to run without a JS engine: plain objects, arrays with
a live ``length``, functions with ``this``, constructors and a global
object. JS scalars are plain Python values (``str``, ``int``/``float``,
``bool``), ``null`` is ``None``.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .ojs import (
    Backend,
    DecodeError,
    JsReferenceError,
    JsTypeError,
    null,
    t,
    undefined,
)


class JsObject:
    """A plain JS object: an ordered property map."""

    def __init__(self, properties: Optional[Dict[str, Any]] = None):
        self.properties: Dict[str, Any] = dict(properties or {})

    def get_property(self, key: str) -> Any:
        return self.properties.get(key, undefined)

    def set_property(self, key: str, value: Any):
        self.properties[key] = value

    def __repr__(self) -> str:
        return f"JsObject({self.properties!r})"


class JsArray(JsObject):
    """A JS array; integer keys and ``length`` address ``items``."""

    def __init__(self, items: Optional[List[Any]] = None):
        super().__init__()
        self.items: List[Any] = list(items or [])

    @staticmethod
    def _index(key: Union[str, int]) -> Optional[int]:
        if isinstance(key, int) and not isinstance(key, bool):
            return key
        if isinstance(key, str) and key.isdigit():
            return int(key)
        return None

    def get_property(self, key):
        if key == "length":
            return len(self.items)
        index = self._index(key)
        if index is not None:
            return self.items[index] if 0 <= index < len(self.items) else undefined
        return super().get_property(key)

    def set_property(self, key, value):
        if key == "length":
            length = int(value)
            del self.items[length:]
            self.items.extend([undefined] * (length - len(self.items)))
            return
        index = self._index(key)
        if index is None:
            super().set_property(key, value)
        elif index < 0:
            super().set_property(str(index), value)
        else:
            if index >= len(self.items):
                self.items.extend([undefined] * (index + 1 - len(self.items)))
            self.items[index] = value

    def __repr__(self) -> str:
        return f"JsArray({self.items!r})"


class JsFunction(JsObject):
    """
    A JS function backed by a Python callable ``func(this, *args)``.

    ``construct`` overrides what ``new`` does; by default a fresh object is
    passed as ``this`` and returned.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        name: str = "anonymous",
        construct: Optional[Callable[..., Any]] = None,
    ):
        super().__init__()
        self.func = func
        self.name = name
        self.construct = construct

    def invoke(self, this: Any, args: Sequence[Any]) -> Any:
        result = self.func(this, *args)
        return undefined if result is None else result

    def __repr__(self) -> str:
        return f"JsFunction({self.name})"


def _construct_array(*args):
    if len(args) == 1 and isinstance(args[0], int) and not isinstance(args[0], bool):
        return JsArray([undefined] * args[0])
    return JsArray(list(args))


def _construct_object(*args):
    if args and isinstance(args[0], JsObject):
        return args[0]
    return JsObject()


def _describe(value: Any) -> str:
    if isinstance(value, JsFunction):
        return f"function {value.name}"
    return repr(value)


class MemoryBackend(Backend):
    """JavaScript semantics over Python objects."""

    def __init__(self, variables: Optional[Dict[str, Any]] = None):
        self._global = JsObject()
        self._global.set_property(
            "Array", JsFunction(lambda this, *args: _construct_array(*args), "Array", _construct_array)
        )
        self._global.set_property(
            "Object",
            JsFunction(lambda this, *args: _construct_object(*args), "Object", _construct_object),
        )
        self._global.set_property("globalThis", self._global)
        for name, value in (variables or {}).items():
            self._global.set_property(name, value)

    # Test helpers

    def define(self, name: str, value: Any) -> Any:
        """Bind a global variable."""
        self._global.set_property(name, value)
        return value

    def function(self, func: Callable[..., Any], name: str = "anonymous") -> JsFunction:
        return JsFunction(func, name)

    def make_object(self, **properties) -> JsObject:
        return JsObject(properties)

    def make_array(self, items: Sequence[Any]) -> JsArray:
        return JsArray(list(items))

    # Backend

    def global_object(self) -> t:
        return self._global

    def get(self, obj, key):
        if isinstance(obj, JsObject):
            return obj.get_property(key)
        if obj is null or obj is undefined:
            raise JsTypeError(f"Cannot read properties of {obj!r} (reading {key!r})")
        if isinstance(obj, str):
            if key == "length":
                return len(obj)
            if isinstance(key, int) and 0 <= key < len(obj):
                return obj[key]
        return undefined

    def set(self, obj, key, value):
        if isinstance(obj, JsObject):
            obj.set_property(key, value)
            return
        if obj is null or obj is undefined:
            raise JsTypeError(f"Cannot set properties of {obj!r} (setting {key!r})")
        # Assignments to properties of primitives are silently dropped

    def call(self, obj, name, args):
        method = self.get(obj, name)
        if not isinstance(method, JsFunction):
            raise JsTypeError(f"{name} is not a function")
        return method.invoke(obj, args)

    def apply(self, func, args):
        if not isinstance(func, JsFunction):
            raise JsTypeError(f"{_describe(func)} is not a function")
        return func.invoke(undefined, args)

    def new_obj(self, constructor, args):
        if not isinstance(constructor, JsFunction):
            raise JsTypeError(f"{_describe(constructor)} is not a constructor")
        if constructor.construct is not None:
            return constructor.construct(*args)
        instance = JsObject()
        result = constructor.func(instance, *args)
        return result if isinstance(result, JsObject) else instance

    def obj(self, fields: Sequence[Tuple[str, t]]) -> t:
        return JsObject(dict(fields))

    def variable(self, name: str) -> t:
        value = self._global.get_property(name)
        if value is undefined and name not in self._global.properties:
            raise JsReferenceError(f"{name} is not defined")
        return value

    def type_of(self, value) -> str:
        if value is undefined:
            return "undefined"
        if value is null:
            return "object"
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, (int, float)):
            return "number"
        if isinstance(value, str):
            return "string"
        if isinstance(value, JsFunction):
            return "function"
        return "object"

    def equals(self, a, b) -> bool:
        """Loose equality restricted to what bindings rely on."""
        nullish = (null, undefined)
        if a in nullish or b in nullish:
            return a in nullish and b in nullish
        if isinstance(a, JsObject) or isinstance(b, JsObject):
            return a is b
        return a == b

    def wrap_function(self, func: Callable[[List[t]], t]) -> t:
        return JsFunction(lambda this, *args: func(list(args)), getattr(func, "__name__", "anonymous"))

    def string_of_js(self, value) -> str:
        if not isinstance(value, str):
            raise DecodeError(f"Expected a JS string, got {self.type_of(value)}")
        return value

    def string_to_js(self, value: str) -> t:
        return str(value)

    def number_of_js(self, value) -> Union[int, float]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodeError(f"Expected a JS number, got {self.type_of(value)}")
        return value

    def number_to_js(self, value: Union[int, float]) -> t:
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    def bool_of_js(self, value) -> bool:
        if not isinstance(value, bool):
            raise DecodeError(f"Expected a JS boolean, got {self.type_of(value)}")
        return value

    def bool_to_js(self, value: bool) -> t:
        return bool(value)
