"""
Python binding generator.

Emits one Python module per signature. Nested signature modules become
nested namespace classes whose members are static methods; every
generated reference is qualified from the module root. Plain values of
nested modules are assigned right after their outermost class, once the
class exists.
"""

from pathlib import Path
from typing import Any, Dict, List, Sequence, Set, Tuple

from ....logging_config import get_logger
from ...core.config import GeneratorConfig
from ...core.declarations import (
    Declaration,
    EnumTypeDecl,
    ModuleDecl,
    OpaqueTypeDecl,
    RecordTypeDecl,
    ValueDecl,
)
from ...core.errors import GeneratorError
from ...core.generator import CodeGenerator
from ...core.naming import create_python_names
from ...enums import enum_block, local_name, record_block
from ...marshal import RUNTIME, Marshaller, Param
from ...registry import Scope, TypeRegistry, build_type_registry

logger = get_logger(__name__)

# Names the generated module binds or relies on in every scope
RESERVED_NAMES = {RUNTIME, "dataclass", "staticmethod", "Callable", "List", "Optional"}

TYPING_ORDER = ["Callable", "List", "Optional"]


class PythonBindingGenerator(CodeGenerator):
    """Code generator producing Python modules over the ``ojs`` bridge."""

    def __init__(self, config: GeneratorConfig = None):
        """Initialize Python generator with configuration."""
        super().__init__(config)
        self._reset()

    @property
    def language_name(self) -> str:
        return "python"

    @property
    def file_extension(self) -> str:
        return ".py"

    def get_template_directory(self) -> Path:
        """Return the Python templates directory."""
        return Path(__file__).parent / "templates"

    def _reserved_names(self) -> Set[str]:
        reserved = set(RESERVED_NAMES)
        for module in self.config.extern_types.values():
            reserved.add(module.split(".", 1)[0])
        return reserved

    def _reset(self):
        self.registry = TypeRegistry(
            self.config.extern_types, create_python_names(self._reserved_names())
        )
        self.warnings: List[str] = []
        self.typing_names: Set[str] = set()
        self.uses_dataclass = False

    # Entry points

    def generate(self, decls: Sequence[Declaration], source: str = "<string>") -> str:
        """Generate a complete module for all declarations."""
        body = self._generate_body(decls)
        context = {
            "comment": self.config.add_comments,
            "source": source,
            "dataclass": self.uses_dataclass,
            "typing_names": [name for name in TYPING_ORDER if name in self.typing_names],
            "extern_modules": self.registry.extern_modules(),
            "runtime_module": self.config.runtime_module,
            "body": body,
        }
        return self.render_template("module.py.j2", context)

    def generate_fragment(self, decls: Sequence[Declaration]) -> str:
        """Generate the bindings only; the caller provides imports."""
        return self._generate_body(decls)

    def _generate_body(self, decls: Sequence[Declaration]) -> str:
        self._reset()
        # Unbound types fail here, before anything is rendered. Emission
        # then replays the declarations in order against the same registry.
        self.registry = build_type_registry(
            decls, self.config.extern_types, create_python_names(self._reserved_names())
        )
        self.registry.rewind()
        blocks = self._emit_scope(decls, ())
        self.warnings.extend(self.registry.names.renames)
        logger.info(
            "Generated %d top-level blocks, %d types registered",
            len(blocks),
            len(self.registry),
        )
        return "\n\n\n".join(block.rstrip("\n") for block in blocks) + "\n"

    # Scopes

    def _emit_scope(self, decls: Sequence[Declaration], scope: Scope) -> List[str]:
        """
        Render one scope.

        At the root, the returned blocks are top-level statements. Inside a
        module, the returned blocks form the class body and the deferred
        value assignments are collected on ``self._deferred``.
        """
        blocks: List[str] = []
        nested = bool(scope)
        for decl in decls:
            if isinstance(decl, ModuleDecl):
                blocks.extend(self._emit_module(decl, scope))
            elif isinstance(decl, OpaqueTypeDecl):
                blocks.extend(self._emit_opaque(decl, scope, nested))
            elif isinstance(decl, EnumTypeDecl):
                blocks.extend(self._emit_enum(decl, scope, nested))
            elif isinstance(decl, RecordTypeDecl):
                blocks.extend(self._emit_record(decl, scope, nested))
            elif isinstance(decl, ValueDecl):
                block = self._emit_value(decl, scope, nested)
                if block is not None:
                    blocks.append(block)
            else:
                raise GeneratorError(f"Unknown declaration: {decl!r}")
        return blocks

    def _emit_module(self, decl: ModuleDecl, scope: Scope) -> List[str]:
        name = self.registry.names.python_path(scope + (decl.name,))[-1]
        outermost = not scope
        if outermost:
            self._deferred: List[str] = []

        body = self._emit_scope(decl.children, scope + (decl.name,))
        namespace = self.render_template(
            "namespace.py.j2",
            {
                "name": name,
                "module_name": ".".join(scope + (decl.name,)),
                "comment": self.config.add_comments,
                "body": "\n\n".join(block.rstrip("\n") for block in body),
            },
        )

        if not outermost:
            return [namespace]
        blocks = [namespace]
        if self._deferred:
            blocks.append("\n".join(self._deferred))
        return blocks

    # Types

    def _identity(self, name: str, params_type: str, returns: str, nested: bool) -> str:
        return self._render_function(
            {
                "name": name,
                "params": [Param("value", params_type)],
                "returns": returns,
                "body": ["return value"],
                "static": nested,
            }
        )

    def _emit_opaque(self, decl: OpaqueTypeDecl, scope: Scope, nested: bool) -> List[str]:
        entry = self.registry.define(scope, decl)
        alias = self.render_template(
            "opaque.py.j2",
            {
                "name": local_name(entry.py_type),
                "type_name": entry.name,
                "comment": self.config.add_comments,
            },
        )
        return [
            alias,
            self._identity(local_name(entry.of_js), f"{RUNTIME}.t", entry.py_type, nested),
            self._identity(local_name(entry.to_js), entry.py_type, f"{RUNTIME}.t", nested),
        ]

    def _type_marshaller(self, decl, scope: Scope) -> Marshaller:
        return Marshaller(self.registry, scope, decl.location)

    def _emit_enum(self, decl: EnumTypeDecl, scope: Scope, nested: bool) -> List[str]:
        entry = self.registry.define(scope, decl)
        marshaller = self._type_marshaller(decl, scope)
        data = enum_block(decl, entry, marshaller, self.warnings)
        self._collect_typing(marshaller)
        cls = self.render_template(
            "enum.py.j2",
            {
                "name": data["name"],
                "type_name": data["type_name"],
                "comment": self.config.add_comments,
                "constants": data["constants"],
                "factories": [self._render_function(f) for f in data["factories"]],
            },
        )
        return [cls] + [self._render_function(dict(f, static=nested)) for f in data["functions"]]

    def _emit_record(self, decl: RecordTypeDecl, scope: Scope, nested: bool) -> List[str]:
        entry = self.registry.define(scope, decl)
        marshaller = self._type_marshaller(decl, scope)
        data = record_block(decl, entry, marshaller, self.warnings)
        self._collect_typing(marshaller, force=True)
        self.uses_dataclass = True
        cls = self.render_template(
            "record.py.j2",
            {
                "name": data["name"],
                "type_name": data["type_name"],
                "comment": self.config.add_comments,
                "fields": data["fields"],
            },
        )
        return [cls] + [self._render_function(dict(f, static=nested)) for f in data["functions"]]

    # Values

    def _emit_value(self, decl: ValueDecl, scope: Scope, nested: bool):
        names = self.registry.names
        name = names.bind(scope, decl.name)
        marshaller = Marshaller(self.registry, scope, decl.location)
        binding = marshaller.gen_binding(decl)
        self._collect_typing(marshaller)
        comment = f"{decl.name} : {decl.type}  ({decl.binding})" if self.config.add_comments else None

        if binding.is_function:
            return self._render_function(
                {
                    "name": name,
                    "params": binding.params,
                    "returns": binding.returns,
                    "body": binding.body,
                    "static": nested,
                    "comment": comment,
                }
            )

        context = {
            "comment": comment,
            "target": names.qualify(scope, name),
            "annotation": binding.returns if not nested else None,
            "hints": self.config.type_hints,
            "value": binding.value,
        }
        rendered = self.render_template("value.py.j2", context)
        if nested:
            self._deferred.append(rendered.rstrip("\n"))
            return None
        return rendered

    # Helpers

    def _collect_typing(self, marshaller: Marshaller, force: bool = False):
        if self.config.type_hints or force:
            self.typing_names |= marshaller.typing_names

    def _render_function(self, function: Dict[str, Any]) -> str:
        context = {
            "comment": None,
            "static": False,
            "hints": self.config.type_hints,
        }
        context.update(function)
        return self.render_template("function.py.j2", context)

    def validate_declarations(self, decls: Sequence[Declaration]) -> List[str]:
        warnings = super().validate_declarations(decls)

        def walk(items: Sequence[Declaration], path: Tuple[str, ...]):
            seen: Set[str] = set()
            for decl in items:
                if isinstance(decl, ModuleDecl):
                    walk(decl.children, path + (decl.name,))
                elif isinstance(decl, ValueDecl):
                    if decl.name in seen:
                        where = ".".join(path + (decl.name,))
                        warnings.append(f"Value {where} is declared more than once")
                    seen.add(decl.name)

        walk(decls, ())
        return warnings


def create_python_generator(config: GeneratorConfig = None) -> PythonBindingGenerator:
    """Create a Python binding generator."""
    return PythonBindingGenerator(config or GeneratorConfig())
