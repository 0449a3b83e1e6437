"""
Python binding generator module.

Generates Python modules whose functions marshal values through the
``ojs`` runtime bridge.
"""

from .generator import RESERVED_NAMES, PythonBindingGenerator, create_python_generator

__all__ = [
    "RESERVED_NAMES",
    "PythonBindingGenerator",
    "create_python_generator",
]
