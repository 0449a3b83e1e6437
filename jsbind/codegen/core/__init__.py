"""
Core code generation components.

Provides the declaration model, errors, naming, configuration and the
base generator interface shared by every target.
"""

from .config import ConfigError, ConfigManager, GeneratorConfig, load_config, validate_config
from .declarations import (
    Cast,
    CustomExpr,
    EnumConstructor,
    EnumTypeDecl,
    GlobalVariable,
    MethodCall,
    ModuleDecl,
    OpaqueTypeDecl,
    PropertyGet,
    PropertySet,
    RecordField,
    RecordTypeDecl,
    ValueDecl,
)
from .errors import BindingError, GeneratorError, Location
from .generator import CodeGenerator, GenerationResult, declaration_stats, generate_code
from .naming import NameSanitizer, ScopedNames, create_python_names
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base generator interface
    "CodeGenerator",
    "GeneratorError",
    "GenerationResult",
    "generate_code",
    "declaration_stats",
    # Declaration model
    "ModuleDecl",
    "OpaqueTypeDecl",
    "EnumConstructor",
    "EnumTypeDecl",
    "RecordField",
    "RecordTypeDecl",
    "ValueDecl",
    "Cast",
    "PropertyGet",
    "PropertySet",
    "MethodCall",
    "GlobalVariable",
    "CustomExpr",
    # Errors
    "BindingError",
    "Location",
    # Naming utilities
    "NameSanitizer",
    "ScopedNames",
    "create_python_names",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    "validate_config",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
