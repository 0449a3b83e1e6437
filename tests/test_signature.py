"""
Tests for the signature lexer and reader.
"""

import pytest

from jsbind.codegen.core.errors import Location, SignatureSyntaxError
from jsbind.signature import read_signature, tokenize
from jsbind.signature.syntax import (
    SigModule,
    SigType,
    SigUnsupported,
    SigValue,
    SynApply,
    SynIdent,
    SynInt,
    SynString,
    TyArrow,
    TyConstr,
    TyTuple,
)


class TestLexer:
    """Tokenization of signature text."""

    def test_token_kinds(self):
        tokens = tokenize("val id : Dom.t -> 'a")
        kinds = [(tok.kind, tok.value) for tok in tokens]
        assert kinds == [
            ("KEYWORD", "val"),
            ("LIDENT", "id"),
            ("PUNCT", ":"),
            ("UIDENT", "Dom"),
            ("PUNCT", "."),
            ("LIDENT", "t"),
            ("PUNCT", "->"),
            ("TYVAR", "'a"),
            ("EOF", ""),
        ]

    def test_locations_track_lines(self):
        tokens = tokenize("val a : int\n  val b : int", "x.mli")
        second_val = tokens[4]
        assert second_val.value == "val"
        assert second_val.location == Location("x.mli", 2, 2, 5)

    def test_attribute_openers_are_single_tokens(self):
        values = [tok.value for tok in tokenize("[@@js.get] [@js.variadic]")]
        assert values[0] == "[@@"
        assert "[@" in values

    def test_nested_comments_are_skipped(self):
        tokens = tokenize("(* outer (* inner *) still outer *) val")
        assert [tok.value for tok in tokens] == ["val", ""]

    def test_unterminated_comment(self):
        with pytest.raises(SignatureSyntaxError, match="Unterminated comment"):
            tokenize("(* never closed")

    def test_string_escapes(self):
        tokens = tokenize(r'"a\"b\n\065"')
        assert tokens[0].kind == "STRING"
        assert tokens[0].value == 'a"b\nA'

    def test_unterminated_string(self):
        with pytest.raises(SignatureSyntaxError, match="Unterminated string"):
            tokenize('"abc')

    def test_negative_integer(self):
        tokens = tokenize("-42 1_000")
        assert [(t.kind, t.value) for t in tokens[:2]] == [("INT", "-42"), ("INT", "1000")]

    def test_illegal_character(self):
        with pytest.raises(SignatureSyntaxError, match="Illegal character"):
            tokenize("val x : int $")


class TestReader:
    """Reading signature items and type expressions."""

    def test_value_item(self):
        (item,) = read_signature('val title : t -> string [@@js.get "title"]')
        assert isinstance(item, SigValue)
        assert item.name == "title"
        assert isinstance(item.type, TyArrow)
        assert item.type.param == TyConstr("t", [], item.type.param.location)
        assert [attr.name for attr in item.attributes] == ["js.get"]
        payload = item.attributes[0].payload
        assert payload.kind == "structure"
        assert isinstance(payload.items[0], SynString)
        assert payload.items[0].value == "title"

    def test_arrows_are_right_associative(self):
        (item,) = read_signature("val f : a -> b -> c")
        assert isinstance(item.type.result, TyArrow)
        assert item.type.result.result.name == "c"

    def test_postfix_type_application(self):
        (item,) = read_signature("val f : int array list")
        ty = item.type
        assert ty.name == "list"
        assert ty.args[0].name == "array"
        assert ty.args[0].args[0].name == "int"

    def test_tuple_type(self):
        (item,) = read_signature("val f : int * string -> unit")
        assert isinstance(item.type.param, TyTuple)

    def test_type_attribute_on_parameter(self):
        (item,) = read_signature("val f : string list [@js.variadic] -> unit")
        param = item.type.param
        assert [attr.name for attr in param.attributes] == ["js.variadic"]

    def test_opaque_type(self):
        (item,) = read_signature("type t = private Ojs.t")
        assert isinstance(item, SigType)
        assert item.private
        assert item.manifest.name == "Ojs.t"

    def test_variant_type_with_attributes(self):
        (item,) = read_signature(
            'type color = Red [@js "red"] | Code [@js 42] | Other of string [@js.default]'
        )
        names = [ctor.name for ctor in item.constructors]
        assert names == ["Red", "Code", "Other"]
        assert isinstance(item.constructors[1].attributes[0].payload.items[0], SynInt)
        other = item.constructors[2]
        assert [attr.name for attr in other.attributes] == ["js.default"]
        assert other.args[0].attributes == []

    def test_record_type(self):
        (item,) = read_signature('type p = { x : int; label : string [@js "name"] }')
        assert [f.name for f in item.fields] == ["x", "label"]
        assert [attr.name for attr in item.fields[1].attributes] == ["js"]

    def test_mutually_recursive_types(self):
        items = read_signature("type a = private Ojs.t and b = private Ojs.t")
        assert [item.name for item in items] == ["a", "b"]
        assert all(item.recursive_group for item in items)

    def test_nested_module(self):
        (item,) = read_signature("module M : sig\n  val x : int\nend")
        assert isinstance(item, SigModule)
        assert [child.name for child in item.items] == ["x"]

    def test_module_alias_is_unsupported_module(self):
        (item,) = read_signature("module M : S")
        assert isinstance(item, SigModule)
        assert item.items is None

    def test_other_items_are_recorded(self):
        items = read_signature("open Foo\nexception E\nval x : int")
        assert isinstance(items[0], SigUnsupported)
        assert isinstance(items[1], SigUnsupported)
        assert isinstance(items[2], SigValue)

    def test_external_is_marked_primitive(self):
        (item,) = read_signature('external f : int -> int = "caml_f"')
        assert item.primitive

    def test_expression_payload(self):
        (item,) = read_signature(
            'val mk : unit -> t [@@js.expr call (global "document") "createElement" "div"]'
        )
        expr = item.attributes[0].payload.items[0]
        assert isinstance(expr, SynApply)
        assert isinstance(expr.func, SynIdent)
        assert expr.func.name == "call"
        assert isinstance(expr.args[0], SynApply)
        assert [type(arg) for arg in expr.args[1:]] == [SynString, SynString]

    def test_type_payload(self):
        (item,) = read_signature("val f : t -> int [@@js.get : int]")
        assert item.attributes[0].payload.kind == "type"

    def test_missing_colon(self):
        with pytest.raises(SignatureSyntaxError) as exc_info:
            read_signature("val f int", "bad.mli")
        assert "Expected ':'" in exc_info.value.message
        assert exc_info.value.location.filename == "bad.mli"

    def test_unclosed_module(self):
        with pytest.raises(SignatureSyntaxError, match="Expected 'end'"):
            read_signature("module M : sig val x : int")
