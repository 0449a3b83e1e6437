"""
Language-specific binding generators.

Python is the only target; its generator emits modules over the ``ojs``
runtime bridge.
"""

from .python import PythonBindingGenerator, create_python_generator

__all__ = ["PythonBindingGenerator", "create_python_generator"]
