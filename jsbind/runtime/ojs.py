"""
Runtime bridge for generated bindings.

Generated modules only ever talk to JavaScript through the functions in
this module. Each of them delegates to the active ``Backend``; the
default is an in-process ``MemoryBackend``.

Backends share two conventions: JS ``null`` is ``None`` and JS
``undefined`` is the ``undefined`` singleton defined here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar, Union

A = TypeVar("A")

# An opaque JavaScript value
t = Any


class JsError(Exception):
    """Base exception for failures raised by the JavaScript side."""

    pass


class DecodeError(JsError):
    """A JS value does not have the shape the binding expects."""

    pass


class JsTypeError(JsError):
    pass


class JsReferenceError(JsError):
    pass


class _Undefined:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


undefined = _Undefined()
null = None


@dataclass(frozen=True)
class Variant:
    """
    One constructor of a generated enumeration.

    ``payload`` is only set for catch-all constructors, which carry the JS
    scalar that matched no declared tag.
    """

    type_name: str
    name: str
    payload: Union[str, int, None] = None

    def __repr__(self) -> str:
        if self.payload is None:
            return f"{self.type_name}.{self.name}"
        return f"{self.type_name}.{self.name}({self.payload!r})"


class Backend(ABC):
    """Primitive operations on JavaScript values."""

    @abstractmethod
    def global_object(self) -> t:
        pass

    @abstractmethod
    def get(self, obj: t, key: Union[str, int]) -> t:
        pass

    @abstractmethod
    def set(self, obj: t, key: Union[str, int], value: t) -> None:
        pass

    @abstractmethod
    def call(self, obj: t, name: str, args: Sequence[t]) -> t:
        pass

    @abstractmethod
    def apply(self, func: t, args: Sequence[t]) -> t:
        pass

    @abstractmethod
    def new_obj(self, constructor: t, args: Sequence[t]) -> t:
        pass

    @abstractmethod
    def obj(self, fields: Sequence[Tuple[str, t]]) -> t:
        pass

    @abstractmethod
    def type_of(self, value: t) -> str:
        pass

    @abstractmethod
    def equals(self, a: t, b: t) -> bool:
        pass

    @abstractmethod
    def wrap_function(self, func: Callable[[List[t]], t]) -> t:
        """Expose ``func`` to JS; it receives the JS arguments as a list."""
        pass

    @abstractmethod
    def string_of_js(self, value: t) -> str:
        pass

    @abstractmethod
    def string_to_js(self, value: str) -> t:
        pass

    @abstractmethod
    def number_of_js(self, value: t) -> Union[int, float]:
        pass

    @abstractmethod
    def number_to_js(self, value: Union[int, float]) -> t:
        pass

    @abstractmethod
    def bool_of_js(self, value: t) -> bool:
        pass

    @abstractmethod
    def bool_to_js(self, value: bool) -> t:
        pass

    def variable(self, name: str) -> t:
        scope = self.global_object()
        if self.type_of(self.get(scope, name)) == "undefined":
            raise JsReferenceError(f"{name} is not defined")
        return self.get(scope, name)


_backend: Optional[Backend] = None


def use_backend(backend: Optional[Backend]) -> Optional[Backend]:
    """Install ``backend`` for all bridge calls and return the previous one."""
    global _backend
    previous, _backend = _backend, backend
    return previous


def current_backend() -> Backend:
    global _backend
    if _backend is None:
        from .memory import MemoryBackend

        _backend = MemoryBackend()
    return _backend


# Scalars


def t_of_js(value: t) -> t:
    return value


def t_to_js(value: t) -> t:
    return value


def string_of_js(value: t) -> str:
    return current_backend().string_of_js(value)


def string_to_js(value: str) -> t:
    return current_backend().string_to_js(value)


def int_of_js(value: t) -> int:
    return int(current_backend().number_of_js(value))


def int_to_js(value: int) -> t:
    return current_backend().number_to_js(value)


def float_of_js(value: t) -> float:
    return float(current_backend().number_of_js(value))


def float_to_js(value: float) -> t:
    return current_backend().number_to_js(value)


def bool_of_js(value: t) -> bool:
    return current_backend().bool_of_js(value)


def bool_to_js(value: bool) -> t:
    return current_backend().bool_to_js(value)


def unit_of_js(value: t) -> None:
    return None


def unit_to_js(value: None = None) -> t:
    return undefined


# Objects and functions


def global_object() -> t:
    return current_backend().global_object()


def variable(name: str) -> t:
    return current_backend().variable(name)


def get(obj: t, name: str) -> t:
    return current_backend().get(obj, name)


def set(obj: t, name: str, value: t) -> None:
    current_backend().set(obj, name, value)


def call(obj: t, name: str, args: Sequence[t]) -> t:
    return current_backend().call(obj, name, list(args))


def call_unit(obj: t, name: str, args: Sequence[t]) -> None:
    call(obj, name, args)


def apply(func: t, args: Sequence[t]) -> t:
    return current_backend().apply(func, list(args))


def apply_unit(func: t, args: Sequence[t]) -> None:
    apply(func, args)


def new_obj(name: str, args: Sequence[t]) -> t:
    backend = current_backend()
    return backend.new_obj(backend.get(backend.global_object(), name), list(args))


def obj(fields: Sequence[Tuple[str, t]]) -> t:
    return current_backend().obj(list(fields))


def type_of(value: t) -> str:
    return current_backend().type_of(value)


def equals(a: t, b: t) -> bool:
    return current_backend().equals(a, b)


def is_null(value: t) -> bool:
    """True for JS ``null`` and ``undefined``."""
    return value is null or value is undefined


def fun_to_js(func: Callable[[List[t]], t]) -> t:
    return current_backend().wrap_function(func)


def fun_unit_to_js(func: Callable[[], None]) -> t:
    def wrapper(args: List[t]) -> t:
        func()
        return undefined

    return fun_to_js(wrapper)


def fun_unit_of_js(value: t) -> Callable[[], None]:
    def callback() -> None:
        apply_unit(value, [])

    return callback


# Arrays


def array_make(length: int) -> t:
    return new_obj("Array", [int_to_js(length)])


def array_get(arr: t, index: int) -> t:
    return current_backend().get(arr, index)


def array_set(arr: t, index: int, value: t) -> None:
    current_backend().set(arr, index, value)


def array_length(arr: t) -> int:
    return int_of_js(get(arr, "length"))


def array_of_js(convert: Callable[[t], A], arr: t) -> List[A]:
    return [convert(array_get(arr, i)) for i in range(array_length(arr))]


def array_to_js(convert: Callable[[A], t], items: Sequence[A]) -> t:
    arr = array_make(len(items))
    for i, item in enumerate(items):
        array_set(arr, i, convert(item))
    return arr


# Options


def option_of_js(convert: Callable[[t], A], value: t) -> Optional[A]:
    if is_null(value):
        return None
    return convert(value)


def option_to_js(convert: Callable[[A], t], value: Optional[A]) -> t:
    if value is None:
        return null
    return convert(value)
