"""
Naming utilities for safe code generation.

Signature identifiers are almost always valid Python identifiers; the
exceptions are Python keywords, primes (``x'``) and names that collide
with something already bound in the same generated scope.
"""

import keyword
import re
from typing import Dict, List, Optional, Set, Tuple


class NameSanitizer:
    """Hands out unique, valid identifiers for one generated scope."""

    def __init__(self, reserved_words: Set[str] = None):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Names that must never be bound in this scope
        """
        self.reserved_words = reserved_words or set()
        self._used_names: Set[str] = set()

    def sanitize_name(self, name: str, suffix_on_conflict: str = "_") -> str:
        """
        Sanitize a name for safe use in the generated scope.

        Args:
            name: Original signature name
            suffix_on_conflict: Suffix appended until the name is free

        Returns:
            Sanitized name, now marked as used
        """
        cleaned = self._clean_basic(name)
        final_name = self._resolve_conflicts(cleaned, suffix_on_conflict)
        self._used_names.add(final_name)
        return final_name

    def _clean_basic(self, name: str) -> str:
        """Replace characters Python identifiers cannot contain."""
        cleaned = re.sub(r"[^a-zA-Z0-9_]", "_", name)
        if not cleaned or cleaned[0].isdigit():
            cleaned = f"_{cleaned}"
        return cleaned

    def _resolve_conflicts(self, name: str, suffix: str) -> str:
        while name in self.reserved_words or name in self._used_names:
            name = f"{name}{suffix}"
        return name


class ScopedNames:
    """
    One ``NameSanitizer`` per generated scope, keyed by signature module path.

    Every rename is recorded so the generator can report it.
    """

    def __init__(self, reserved_words: Set[str] = None):
        self.reserved_words = set(reserved_words or ())
        self._scopes: Dict[Tuple[str, ...], NameSanitizer] = {}
        self._python_paths: Dict[Tuple[str, ...], Tuple[str, ...]] = {(): ()}
        self.renames: List[str] = []

    def sanitizer(self, scope: Tuple[str, ...]) -> NameSanitizer:
        if scope not in self._scopes:
            self._scopes[scope] = NameSanitizer(self.reserved_words)
        return self._scopes[scope]

    def bind(self, scope: Tuple[str, ...], name: str) -> str:
        """Bind ``name`` in ``scope`` and return its Python identifier."""
        python_name = self.sanitizer(scope).sanitize_name(name)
        if python_name != name:
            where = ".".join(scope + (name,))
            self.renames.append(f"{where} renamed to {python_name}")
        return python_name

    def bind_module(self, scope: Tuple[str, ...], name: str) -> str:
        python_name = self.bind(scope, name)
        self._python_paths[scope + (name,)] = self.python_path(scope) + (python_name,)
        return python_name

    def python_path(self, scope: Tuple[str, ...]) -> Tuple[str, ...]:
        return self._python_paths[scope]

    def qualify(self, scope: Tuple[str, ...], python_name: Optional[str] = None) -> str:
        """Root-qualified Python reference to ``python_name`` inside ``scope``."""
        parts = self.python_path(scope)
        if python_name is not None:
            parts = parts + (python_name,)
        return ".".join(parts)


PYTHON_KEYWORDS = set(keyword.kwlist)


def create_python_names(extra_reserved: Set[str] = None) -> ScopedNames:
    """Create a scoped namer configured for generated Python modules."""
    return ScopedNames(PYTHON_KEYWORDS | set(extra_reserved or ()))
