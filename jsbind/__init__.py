"""
jsbind: Python bindings to JavaScript objects from typed signatures.

The generator reads an ML-style signature and writes a Python module whose
functions marshal values through the ``jsbind.runtime.ojs`` bridge.
"""

__version__ = "0.1.0"

from .codegen import (
    GenerationResult,
    GeneratorConfig,
    expand_fragment,
    generate_bindings,
    load_config,
    prepare_declarations,
)
from .codegen.core.errors import BindingError, GeneratorError

__all__ = [
    "__version__",
    "BindingError",
    "GenerationResult",
    "GeneratorConfig",
    "GeneratorError",
    "expand_fragment",
    "generate_bindings",
    "load_config",
    "prepare_declarations",
]
