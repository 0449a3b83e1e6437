"""
jsbind Code Generation Module

Turns typed signatures into Python binding modules.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from ..logging_config import get_logger
from ..signature import read_signature
from .core.config import ConfigManager, GeneratorConfig, load_config
from .core.declarations import Declaration
from .core.errors import BindingError, GeneratorError
from .core.generator import CodeGenerator, GenerationResult, generate_code
from .languages.python import PythonBindingGenerator, create_python_generator
from .parser import parse_signature
from .registry import TypeRegistry, build_type_registry
from .resolver import infer_binding, resolve_declarations

logger = get_logger(__name__)


def _as_config(config: Union[GeneratorConfig, Dict[str, Any], None]) -> GeneratorConfig:
    if isinstance(config, GeneratorConfig):
        return config
    return load_config(custom_config=config)


def prepare_declarations(
    source: str, filename: str = "<string>"
) -> Tuple[List[Declaration], List[str]]:
    """
    Read, parse and resolve a signature.

    Returns:
        Resolved declarations and resolver warnings

    Raises:
        BindingError: on the first malformed or unsupported item
    """
    items = read_signature(source, filename)
    decls = parse_signature(items)
    return resolve_declarations(decls)


def generate_bindings(
    source: str,
    config: Union[GeneratorConfig, Dict[str, Any], None] = None,
    filename: str = "<string>",
    fragment: bool = False,
) -> GenerationResult:
    """
    Generate a Python binding module from signature text.

    Args:
        source: Signature text
        config: Generator configuration or a dict of overrides
        filename: Name used in diagnostics and the module docstring
        fragment: Generate the bindings only, without module header

    Returns:
        GenerationResult with generated code, warnings and metadata
    """
    generator = create_python_generator(_as_config(config))

    try:
        decls, warnings = prepare_declarations(source, filename)
    except BindingError as e:
        logger.debug("Signature rejected: %s", e.message)
        return GenerationResult.error(str(e), exception=e)

    result = generate_code(generator, decls, filename, fragment=fragment)
    if result.success:
        result.warnings = warnings + result.warnings
    return result


def expand_fragment(
    text: str, config: Union[GeneratorConfig, Dict[str, Any], None] = None
) -> str:
    """
    Generate the bindings for a signature fragment.

    Raises:
        GeneratorError: the error that stopped generation
    """
    result = generate_bindings(text, config, filename="<fragment>", fragment=True)
    if not result.success:
        if result.exception is not None:
            raise result.exception
        raise GeneratorError(result.error_message)
    return result.code


__all__ = [
    "CodeGenerator",
    "ConfigManager",
    "GenerationResult",
    "GeneratorConfig",
    "PythonBindingGenerator",
    "TypeRegistry",
    "build_type_registry",
    "create_python_generator",
    "expand_fragment",
    "generate_bindings",
    "generate_code",
    "infer_binding",
    "load_config",
    "prepare_declarations",
    "resolve_declarations",
]
