"""
Runtime support for generated bindings.

Generated modules import ``ojs``; ``MemoryBackend`` runs them in-process.
"""

from . import ojs
from .memory import JsArray, JsFunction, JsObject, MemoryBackend
from .ojs import Backend, DecodeError, JsError, JsReferenceError, JsTypeError, Variant, use_backend

__all__ = [
    "ojs",
    "Backend",
    "MemoryBackend",
    "JsObject",
    "JsArray",
    "JsFunction",
    "Variant",
    "use_backend",
    "JsError",
    "DecodeError",
    "JsTypeError",
    "JsReferenceError",
]
