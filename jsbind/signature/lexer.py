"""
Tokenizer for ML-style interface descriptions.

Produces a flat token list with source positions; nested ``(* *)``
comments are skipped.
"""

import re
from dataclasses import dataclass
from typing import List

from ..codegen.core.errors import Location, SignatureSyntaxError
from ..logging_config import get_logger

logger = get_logger(__name__)

KEYWORDS = {
    "val",
    "external",
    "type",
    "module",
    "sig",
    "end",
    "private",
    "of",
    "mutable",
    "and",
    "exception",
    "open",
    "include",
    "class",
}

# Longest punctuation first
PUNCTUATION = [
    "[@@", "[@", "->", ";;", ":", "|", "=", ";", "{", "}", "(", ")", "[", "]", "*", ",", "?", "~",
]

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_']*")
_INT = re.compile(r"-?[0-9][0-9_]*")
_TYVAR = re.compile(r"'[a-z_][A-Za-z0-9_']*")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "\\": "\\", '"': '"', "'": "'", " ": " "}


@dataclass(frozen=True)
class Token:
    kind: str  # one of: LIDENT UIDENT KEYWORD STRING INT TYVAR PUNCT EOF
    value: str
    location: Location

    def is_punct(self, value: str) -> bool:
        return self.kind == "PUNCT" and self.value == value

    def is_keyword(self, value: str) -> bool:
        return self.kind == "KEYWORD" and self.value == value


class Lexer:
    """Splits signature text into tokens."""

    def __init__(self, text: str, filename: str = "<string>"):
        self.text = text
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.line_start = 0

    def tokenize(self) -> List[Token]:
        tokens = []
        while True:
            self._skip_blank()
            if self.pos >= len(self.text):
                tokens.append(Token("EOF", "", self._loc(self.pos, self.pos)))
                break
            tokens.append(self._next_token())
        logger.debug("Tokenized %s: %d tokens", self.filename, len(tokens))
        return tokens

    def _loc(self, start: int, end: int) -> Location:
        return Location(self.filename, self.line, start - self.line_start, end - self.line_start)

    def _newline(self, index: int):
        self.line += 1
        self.line_start = index + 1

    def _skip_blank(self):
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "\n":
                self._newline(self.pos)
                self.pos += 1
            elif ch.isspace():
                self.pos += 1
            elif self.text.startswith("(*", self.pos):
                self._skip_comment()
            else:
                break

    def _skip_comment(self):
        start = self.pos
        depth = 0
        while self.pos < len(self.text):
            if self.text.startswith("(*", self.pos):
                depth += 1
                self.pos += 2
            elif self.text.startswith("*)", self.pos):
                depth -= 1
                self.pos += 2
                if depth == 0:
                    return
            else:
                if self.text[self.pos] == "\n":
                    self._newline(self.pos)
                self.pos += 1
        raise SignatureSyntaxError(self._loc(start, start + 2), "Unterminated comment")

    def _next_token(self) -> Token:
        start = self.pos
        ch = self.text[start]

        if ch == '"':
            return self._string()

        match = _INT.match(self.text, start)
        if match:
            self.pos = match.end()
            return Token("INT", match.group().replace("_", ""), self._loc(start, self.pos))

        match = _TYVAR.match(self.text, start)
        if match:
            self.pos = match.end()
            return Token("TYVAR", match.group(), self._loc(start, self.pos))

        match = _IDENT.match(self.text, start)
        if match:
            self.pos = match.end()
            word = match.group()
            if word in KEYWORDS:
                kind = "KEYWORD"
            elif word[0].isupper():
                kind = "UIDENT"
            else:
                kind = "LIDENT"
            return Token(kind, word, self._loc(start, self.pos))

        for punct in PUNCTUATION:
            if self.text.startswith(punct, start):
                self.pos = start + len(punct)
                return Token("PUNCT", punct, self._loc(start, self.pos))

        # Dots are only legal inside paths and attribute names
        if ch == ".":
            self.pos = start + 1
            return Token("PUNCT", ".", self._loc(start, self.pos))

        raise SignatureSyntaxError(self._loc(start, start + 1), f"Illegal character {ch!r}")

    def _string(self) -> Token:
        start = self.pos
        opening = self._loc(start, start + 1)
        self.pos += 1
        chars = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == '"':
                self.pos += 1
                location = Location(
                    self.filename, opening.line, opening.start, opening.start + self.pos - start
                )
                return Token("STRING", "".join(chars), location)
            if ch == "\\":
                nxt = self.text[self.pos + 1 : self.pos + 2]
                if nxt in _ESCAPES:
                    chars.append(_ESCAPES[nxt])
                    self.pos += 2
                    continue
                if nxt.isdigit() and self.text[self.pos + 1 : self.pos + 4].isdigit():
                    chars.append(chr(int(self.text[self.pos + 1 : self.pos + 4])))
                    self.pos += 4
                    continue
                raise SignatureSyntaxError(
                    self._loc(self.pos, self.pos + 2), "Illegal backslash escape in string"
                )
            if ch == "\n":
                self._newline(self.pos)
            chars.append(ch)
            self.pos += 1
        raise SignatureSyntaxError(opening, "Unterminated string literal")


def tokenize(text: str, filename: str = "<string>") -> List[Token]:
    """Convenience wrapper around ``Lexer``."""
    return Lexer(text, filename).tokenize()
