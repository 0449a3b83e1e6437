"""
Recursive-descent reader for ML-style interface descriptions.

Turns signature text into the raw tree of ``syntax.py``. The reader is
permissive: it records items it cannot use as ``SigUnsupported`` so the
declaration parser can reject them with a proper diagnostic.
"""

from typing import List, Optional

from ..codegen.core.errors import Location, SignatureSyntaxError
from ..logging_config import get_logger
from .lexer import Token, tokenize
from .syntax import (
    Attribute,
    Payload,
    SigConstructor,
    SigField,
    SigItem,
    SigModule,
    SigType,
    SigUnsupported,
    SigValue,
    SynApply,
    SynConstruct,
    SynExpr,
    SynIdent,
    SynInt,
    SynOther,
    SynString,
    TyArrow,
    TyConstr,
    TyTuple,
    TyVar,
    TypeExpr,
)

logger = get_logger(__name__)

ITEM_KEYWORDS = {"val", "external", "type", "module", "exception", "open", "include", "class"}


def span(first: Location, last: Location) -> Location:
    """Location covering two locations; multi-line spans keep the first line."""
    if first.line == last.line:
        return Location(first.filename, first.line, first.start, last.end)
    return first


class SignatureReader:
    """Reads a token stream into a list of signature items."""

    def __init__(self, text: str, filename: str = "<string>"):
        self.filename = filename
        self.tokens = tokenize(text, filename)
        self.index = 0

    # Token helpers

    @property
    def tok(self) -> Token:
        return self.tokens[self.index]

    def peek(self, offset: int = 1) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        tok = self.tok
        if tok.kind != "EOF":
            self.index += 1
        return tok

    @property
    def last(self) -> Token:
        return self.tokens[max(self.index - 1, 0)]

    def error(self, message: str, tok: Optional[Token] = None):
        tok = tok or self.tok
        found = "end of input" if tok.kind == "EOF" else repr(tok.value)
        raise SignatureSyntaxError(tok.location, f"{message}, found {found}")

    def expect_punct(self, value: str) -> Token:
        if not self.tok.is_punct(value):
            self.error(f"Expected '{value}'")
        return self.advance()

    def expect_keyword(self, value: str) -> Token:
        if not self.tok.is_keyword(value):
            self.error(f"Expected '{value}'")
        return self.advance()

    def expect_kind(self, kind: str, what: str) -> Token:
        if self.tok.kind != kind:
            self.error(f"Expected {what}")
        return self.advance()

    # Signature items

    def read(self) -> List[SigItem]:
        items = self.read_items(toplevel=True)
        logger.debug("Read %d signature items from %s", len(items), self.filename)
        return items

    def read_items(self, toplevel: bool) -> List[SigItem]:
        items: List[SigItem] = []
        while True:
            tok = self.tok
            if tok.is_punct(";;"):
                self.advance()
            elif tok.kind == "EOF":
                if not toplevel:
                    self.error("Expected 'end'")
                return items
            elif tok.is_keyword("end"):
                if toplevel:
                    self.error("Unexpected 'end'")
                return items
            else:
                items.extend(self.read_item())

    def read_item(self) -> List[SigItem]:
        tok = self.tok
        if tok.is_keyword("val") or tok.is_keyword("external"):
            return [self.read_value()]
        if tok.is_keyword("type"):
            return self.read_type_group()
        if tok.is_keyword("module"):
            return [self.read_module()]
        if tok.kind == "KEYWORD" and tok.value in ITEM_KEYWORDS:
            return [self.skip_item(tok.value)]
        self.error("Expected a signature item")

    def read_value(self) -> SigValue:
        start = self.advance()
        primitive = start.value == "external"
        name_tok = self.tok
        if name_tok.kind != "LIDENT":
            self.error("Expected a value name")
        self.advance()
        self.expect_punct(":")
        ty = self.read_type()
        if primitive:
            self.expect_punct("=")
            self.expect_kind("STRING", "a primitive name")
            while self.tok.kind == "STRING":
                self.advance()
        attributes = self.read_attributes("[@@")
        return SigValue(
            name=name_tok.value,
            type=ty,
            attributes=attributes,
            location=span(start.location, self.last.location),
            primitive=primitive,
        )

    def read_type_group(self) -> List[SigItem]:
        decls = [self.read_type_decl(self.advance())]
        while self.tok.is_keyword("and"):
            decls.append(self.read_type_decl(self.advance()))
        if len(decls) > 1:
            for decl in decls:
                decl.recursive_group = True
        return decls

    def read_type_decl(self, start: Token) -> SigType:
        params = self.read_type_params()
        name_tok = self.expect_kind("LIDENT", "a type name")
        decl = SigType(name=name_tok.value, params=params, location=start.location)
        if self.tok.is_punct("="):
            self.advance()
            if self.tok.is_keyword("private"):
                self.advance()
                decl.private = True
            if self.tok.is_punct("{"):
                decl.fields = self.read_fields()
            elif self.tok.is_punct("|") or self._starts_constructor():
                decl.constructors = self.read_constructors()
            else:
                decl.manifest = self.read_type()
                if self.tok.is_punct("="):
                    # type t = M.t = A | B: re-exported definitions
                    self.advance()
                    if self.tok.is_punct("{"):
                        decl.fields = self.read_fields()
                    else:
                        decl.constructors = self.read_constructors()
        decl.attributes = self.read_attributes("[@@")
        decl.location = span(start.location, self.last.location)
        return decl

    def read_type_params(self) -> List[str]:
        if self.tok.kind == "TYVAR":
            return [self.advance().value]
        if self.tok.is_punct("(") and self.peek().kind == "TYVAR":
            self.advance()
            params = [self.expect_kind("TYVAR", "a type variable").value]
            while self.tok.is_punct(","):
                self.advance()
                params.append(self.expect_kind("TYVAR", "a type variable").value)
            self.expect_punct(")")
            return params
        return []

    def _starts_constructor(self) -> bool:
        return self.tok.kind == "UIDENT" and not self.peek().is_punct(".")

    def read_constructors(self) -> List[SigConstructor]:
        ctors = []
        if self.tok.is_punct("|"):
            self.advance()
        while True:
            name_tok = self.expect_kind("UIDENT", "a constructor name")
            args: List[TypeExpr] = []
            attributes: List[Attribute] = []
            if self.tok.is_keyword("of"):
                self.advance()
                arg = self.read_type()
                attributes = detach_trailing_attributes(arg)
                args = arg.items if isinstance(arg, TyTuple) else [arg]
            attributes += self.read_attributes("[@")
            ctors.append(
                SigConstructor(
                    name=name_tok.value,
                    args=args,
                    attributes=attributes,
                    location=span(name_tok.location, self.last.location),
                )
            )
            if not self.tok.is_punct("|"):
                return ctors
            self.advance()

    def read_fields(self) -> List[SigField]:
        self.expect_punct("{")
        fields = []
        while not self.tok.is_punct("}"):
            start = self.tok
            mutable = False
            if start.is_keyword("mutable"):
                self.advance()
                mutable = True
            name_tok = self.expect_kind("LIDENT", "a field name")
            self.expect_punct(":")
            ty = self.read_type()
            attributes = detach_trailing_attributes(ty) + self.read_attributes("[@")
            fields.append(
                SigField(
                    name=name_tok.value,
                    type=ty,
                    attributes=attributes,
                    location=span(start.location, self.last.location),
                    mutable=mutable,
                )
            )
            if self.tok.is_punct(";"):
                self.advance()
            elif not self.tok.is_punct("}"):
                self.error("Expected ';' or '}'")
        self.advance()
        return fields

    def read_module(self) -> SigItem:
        start = self.advance()
        if self.tok.is_keyword("type"):
            self.advance()
            return self.skip_item("module type", start)
        if self.tok.kind != "UIDENT":
            return self.skip_item("module", start)
        name_tok = self.advance()
        if not self.tok.is_punct(":"):
            return self.skip_item("module", start)
        self.advance()
        if self.tok.is_keyword("sig"):
            self.advance()
            items = self.read_items(toplevel=False)
            self.expect_keyword("end")
            if self.tok.kind == "UIDENT" or self.tok.kind == "LIDENT":
                # ``sig ... end with ...`` and similar constraints
                self.skip_tokens()
                return SigModule(name_tok.value, None, span(start.location, self.last.location))
            self.read_attributes("[@@")
            return SigModule(name_tok.value, items, span(start.location, self.last.location))
        self.skip_tokens()
        return SigModule(name_tok.value, None, span(start.location, self.last.location))

    def skip_item(self, keyword: str, start: Optional[Token] = None) -> SigUnsupported:
        start = start or self.advance()
        self.skip_tokens()
        return SigUnsupported(keyword, span(start.location, self.last.location))

    def skip_tokens(self):
        """Skip to the start of the next item at the current nesting depth."""
        depth = 0
        while True:
            tok = self.tok
            if tok.kind == "EOF":
                return
            if tok.is_keyword("sig") or (tok.kind == "LIDENT" and tok.value == "object"):
                depth += 1
            elif tok.is_keyword("end"):
                if depth == 0:
                    return
                depth -= 1
            elif depth == 0 and (tok.kind == "KEYWORD" and tok.value in ITEM_KEYWORDS or tok.is_punct(";;")):
                return
            self.advance()

    # Type expressions

    def read_type(self) -> TypeExpr:
        start = self.tok
        label = None
        if start.kind == "LIDENT" and self.peek().is_punct(":"):
            label = self.advance().value
            self.advance()
        elif start.is_punct("?") and self.peek().kind == "LIDENT" and self.peek(2).is_punct(":"):
            self.advance()
            label = "?" + self.advance().value
            self.advance()
        elif start.is_punct("~"):
            self.advance()
            label = self.expect_kind("LIDENT", "a label").value
            self.expect_punct(":")
        lhs = self.read_tuple_type()
        if self.tok.is_punct("->"):
            self.advance()
            rhs = self.read_type()
            return TyArrow(lhs, rhs, span(start.location, self.last.location), label=label)
        if label is not None:
            self.error("Expected '->' after labelled argument")
        return lhs

    def read_tuple_type(self) -> TypeExpr:
        first = self.read_app_type()
        if not self.tok.is_punct("*"):
            return first
        items = [first]
        while self.tok.is_punct("*"):
            self.advance()
            items.append(self.read_app_type())
        return TyTuple(items, span(first.location, self.last.location))

    def read_app_type(self) -> TypeExpr:
        start = self.tok
        args: List[TypeExpr]
        if start.kind == "TYVAR":
            self.advance()
            ty: TypeExpr = TyVar(start.value, start.location)
        elif start.is_punct("("):
            self.advance()
            args = [self.read_type()]
            while self.tok.is_punct(","):
                self.advance()
                args.append(self.read_type())
            self.expect_punct(")")
            if len(args) > 1:
                if not self._at_type_path():
                    self.error("Expected a type constructor")
                name_loc = self.tok.location
                ty = TyConstr(self.read_type_path(), args, span(start.location, name_loc))
            else:
                ty = args[0]
        elif self._at_type_path():
            ty = TyConstr(self.read_type_path(), [], span(start.location, self.last.location))
        else:
            self.error("Expected a type")
        while True:
            if self._at_type_path():
                name = self.read_type_path()
                ty = TyConstr(name, [ty], span(start.location, self.last.location))
            elif self.tok.is_punct("[@"):
                ty.attributes.extend(self.read_attributes("[@"))
            else:
                return ty

    def _at_type_path(self) -> bool:
        tok = self.tok
        return tok.kind == "LIDENT" or (tok.kind == "UIDENT" and self.peek().is_punct("."))

    def read_type_path(self) -> str:
        parts = []
        while self.tok.kind == "UIDENT":
            parts.append(self.advance().value)
            self.expect_punct(".")
        parts.append(self.expect_kind("LIDENT", "a type name").value)
        return ".".join(parts)

    # Attributes

    def read_attributes(self, opener: str) -> List[Attribute]:
        attributes = []
        while self.tok.is_punct(opener):
            attributes.append(self.read_attribute())
        return attributes

    def read_attribute(self) -> Attribute:
        start = self.advance()
        name = self.read_attribute_name()
        payload_start = self.tok.location
        if self.tok.is_punct(":"):
            self.advance()
            self.read_type()
            payload = Payload("type", [], payload_start)
        elif self.tok.is_punct("?"):
            self.skip_to_bracket()
            payload = Payload("pattern", [], payload_start)
        else:
            payload = Payload("structure", self.read_structure(), payload_start)
        self.expect_punct("]")
        return Attribute(name, payload, span(start.location, self.last.location))

    def read_attribute_name(self) -> str:
        parts = [self._attribute_word()]
        while self.tok.is_punct("."):
            self.advance()
            parts.append(self._attribute_word())
        return ".".join(parts)

    def _attribute_word(self) -> str:
        tok = self.tok
        if tok.kind in ("LIDENT", "UIDENT", "KEYWORD"):
            return self.advance().value
        self.error("Expected an attribute name")

    def read_structure(self) -> List[SynExpr]:
        items = []
        while not self.tok.is_punct("]"):
            if self.tok.kind == "EOF":
                self.error("Expected ']'")
            items.append(self.read_payload_item())
            if self.tok.is_punct(";;"):
                self.advance()
        return items

    def read_payload_item(self) -> SynExpr:
        start = self.tok
        expr = self.read_payload_expr()
        if expr is None or not (self.tok.is_punct("]") or self.tok.is_punct(";;")):
            self.skip_to_bracket()
            return SynOther("unsupported expression", span(start.location, self.last.location))
        return expr

    def read_payload_expr(self) -> Optional[SynExpr]:
        start = self.tok
        func = self.read_simple_expr()
        if func is None:
            return None
        args = []
        while True:
            arg = self.read_simple_expr()
            if arg is None:
                break
            args.append(arg)
        if self.tok.is_punct(","):
            return None
        if not args:
            return func
        return SynApply(func, args, span(start.location, self.last.location))

    def read_simple_expr(self) -> Optional[SynExpr]:
        tok = self.tok
        if tok.kind == "LIDENT":
            self.advance()
            return SynIdent(tok.value, tok.location)
        if tok.kind == "STRING":
            self.advance()
            return SynString(tok.value, tok.location)
        if tok.kind == "INT":
            self.advance()
            return SynInt(int(tok.value), tok.location)
        if tok.kind == "UIDENT":
            parts = [self.advance().value]
            while self.tok.is_punct(".") and self.peek().kind in ("UIDENT", "LIDENT"):
                self.advance()
                parts.append(self.advance().value)
            name = ".".join(parts)
            if parts[-1][0].islower():
                return SynIdent(name, span(tok.location, self.last.location))
            return SynConstruct(name, span(tok.location, self.last.location))
        if tok.is_punct("("):
            self.advance()
            if self.tok.is_punct(")"):
                self.advance()
                return SynConstruct("()", span(tok.location, self.last.location))
            inner = self.read_payload_expr()
            if inner is None or not self.tok.is_punct(")"):
                return None
            self.advance()
            return inner
        return None

    def skip_to_bracket(self):
        """Skip to the ``]`` closing the current attribute."""
        depth = 0
        while True:
            tok = self.tok
            if tok.kind == "EOF":
                self.error("Expected ']'")
            if tok.is_punct("[") or tok.is_punct("[@") or tok.is_punct("[@@"):
                depth += 1
            elif tok.is_punct("]"):
                if depth == 0:
                    return
                depth -= 1
            self.advance()


def detach_trailing_attributes(ty: TypeExpr) -> List[Attribute]:
    """
    Remove and return the attributes written after a whole type.

    In constructor and field declarations, ``T [@attr]`` annotates the
    declaration, not ``T``.
    """
    while isinstance(ty, TyArrow):
        ty = ty.result
    if isinstance(ty, TyTuple):
        ty = ty.items[-1]
    attributes = list(ty.attributes)
    ty.attributes.clear()
    return attributes


def read_signature(text: str, filename: str = "<string>") -> List[SigItem]:
    """Read signature text into raw signature items."""
    return SignatureReader(text, filename).read()
