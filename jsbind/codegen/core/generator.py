"""
Base generator interface for binding generation targets.

Defines the contract a target generator implements and the driver that
runs it: validate, generate, format.
"""

from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ...logging_config import get_logger
from .config import GeneratorConfig
from .declarations import (
    Declaration,
    EnumTypeDecl,
    ModuleDecl,
    OpaqueTypeDecl,
    RecordTypeDecl,
    iter_values,
)
from .errors import BindingError, GeneratorError
from .templates import TemplateEngine, create_template_engine

logger = get_logger(__name__)


class CodeGenerator(ABC):
    """Abstract base class for all binding generators."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize generator with optional configuration."""
        self.config = config or GeneratorConfig()
        self.warnings: List[str] = []
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        self._template_engine = create_template_engine(self.get_template_directory())

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for generated files (e.g., '.py')."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Return None to use in-memory templates only.
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def generate(self, decls: Sequence[Declaration], source: str = "<string>") -> str:
        """
        Generate a complete module for resolved declarations.

        Args:
            decls: Declarations with every binding kind resolved
            source: Name of the signature the declarations come from

        Returns:
            Generated code as a string
        """
        pass

    @abstractmethod
    def generate_fragment(self, decls: Sequence[Declaration]) -> str:
        """
        Generate the bindings for ``decls`` without any module header.

        Returns:
            Generated code for these declarations only
        """
        pass

    def validate_declarations(self, decls: Sequence[Declaration]) -> List[str]:
        """
        Check declarations for suspicious but legal shapes.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        def walk(items, path):
            for decl in items:
                if isinstance(decl, ModuleDecl):
                    name = ".".join(path + (decl.name,))
                    if not decl.children:
                        warnings.append(f"Module {name} is empty")
                    walk(decl.children, path + (decl.name,))

        walk(decls, ())
        return warnings

    def format_code(self, code: str) -> str:
        """
        Apply formatting to generated code.

        Args:
            code: Raw generated code

        Returns:
            Formatted code
        """
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 2:  # Allow max 2 consecutive blank lines
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"

    # Template helper methods

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with context.

        Args:
            template_name: Template file name
            context: Template variables

        Returns:
            Rendered content
        """
        return self.template_engine.render_template(template_name, context)


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self, code: str, warnings: List[str] = None, metadata: Dict[str, Any] = None
    ):
        """
        Initialize generation result.

        Args:
            code: Generated code
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.code = code
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message: Optional[str] = None
        self.exception: Optional[Exception] = None

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls(code="")
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def declaration_stats(decls: Sequence[Declaration]) -> Dict[str, Any]:
    """Count modules, types, values and binding kinds in a declaration tree."""
    stats = Counter()

    def walk(items):
        for decl in items:
            if isinstance(decl, ModuleDecl):
                stats["module_count"] += 1
                walk(decl.children)
            elif isinstance(decl, OpaqueTypeDecl):
                stats["opaque_type_count"] += 1
            elif isinstance(decl, EnumTypeDecl):
                stats["enum_type_count"] += 1
            elif isinstance(decl, RecordTypeDecl):
                stats["record_type_count"] += 1

    walk(decls)
    kinds = Counter(
        type(value.binding).__name__ for _, value in iter_values(decls) if value.binding
    )
    return {
        "module_count": stats["module_count"],
        "opaque_type_count": stats["opaque_type_count"],
        "enum_type_count": stats["enum_type_count"],
        "record_type_count": stats["record_type_count"],
        "value_count": sum(1 for _ in iter_values(decls)),
        "binding_kinds": dict(sorted(kinds.items())),
    }


def generate_code(
    generator: CodeGenerator,
    decls: Sequence[Declaration],
    source: str = "<string>",
    fragment: bool = False,
) -> GenerationResult:
    """
    Generate code using the specified generator with error handling.

    The first binding error aborts generation; a failed result never
    carries partial code.

    Args:
        generator: Code generator instance
        decls: Resolved declarations
        source: Name of the signature being bound
        fragment: Generate bindings only, without module header

    Returns:
        GenerationResult with code, warnings, and metadata
    """
    try:
        warnings = generator.validate_declarations(decls)

        if fragment:
            code = generator.generate_fragment(decls)
        else:
            code = generator.generate(decls, source)

        formatted_code = generator.format_code(code)

        metadata = {
            "language": generator.language_name,
            "file_extension": generator.file_extension,
            "source": source,
            **declaration_stats(decls),
        }

        return GenerationResult(formatted_code, warnings + generator.warnings, metadata)

    except BindingError as e:
        logger.debug("Binding error in %s: %s", source, e.message)
        return GenerationResult.error(str(e), exception=e)
    except GeneratorError as e:
        logger.error("Code generation failed for %s: %s", source, e)
        return GenerationResult.error(f"Code generation failed: {e}", exception=e)
