"""
Error taxonomy for binding generation.

Every user-facing failure is a ``BindingError`` carrying the source
location of the offending signature item. Generation stops at the first
one; there is no accumulation and no best-effort output.
"""

from dataclasses import dataclass
from typing import Optional


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


@dataclass(frozen=True)
class Location:
    """A span inside a signature file (1-based line, 0-based columns)."""

    filename: str
    line: int
    start: int
    end: int

    def __str__(self) -> str:
        return (
            f'File "{self.filename}", line {self.line}, '
            f"characters {self.start}-{self.end}"
        )


NO_LOCATION = Location("<none>", 0, 0, 0)


class BindingError(GeneratorError):
    """A diagnostic attached to a location in the input signature."""

    default_message = "Binding generation failed"

    def __init__(self, location: Optional[Location] = None, message: Optional[str] = None):
        self.location = location or NO_LOCATION
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.location}:\nError: {self.message}"


class SignatureSyntaxError(BindingError):
    """The signature text could not be tokenized or read."""

    default_message = "Syntax error"


class UnsupportedSignatureError(BindingError):
    """A signature item shape outside the supported forms."""

    default_message = "Cannot parse this signature item"


class UnsupportedTypeError(UnsupportedSignatureError):
    """A type expression the generator cannot marshal."""

    default_message = "Cannot parse this type"


class ExpressionExpectedError(BindingError):
    default_message = "Expression expected"


class IdentifierExpectedError(BindingError):
    default_message = "String literal expected"


class InvalidExpressionError(BindingError):
    default_message = "Invalid expression"


class MultipleBindingDeclarationsError(BindingError):
    default_message = "Multiple binding declarations"


class BindingTypeMismatchError(BindingError):
    default_message = "Binding declaration and type are not compatible"


class UnboundTypeError(BindingError):
    """A named type with no registered conversion pair."""

    def __init__(self, location: Optional[Location], type_name: str):
        self.type_name = type_name
        super().__init__(location, f"Unbound type {type_name}: no conversion functions in scope")


class InvalidEnumError(BindingError):
    default_message = "Invalid enumeration declaration"
