"""
Signature front-end.

Reads ML-style interface descriptions into a raw signature tree.
"""

from .lexer import Lexer, Token, tokenize
from .reader import SignatureReader, read_signature

__all__ = ["Lexer", "Token", "tokenize", "SignatureReader", "read_signature"]
