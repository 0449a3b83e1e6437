"""
End-to-end tests: generate bindings, import them, run them against the
in-memory JS world.
"""

import pytest

from jsbind import expand_fragment
from jsbind.codegen.core.errors import (
    BindingError,
    BindingTypeMismatchError,
    UnboundTypeError,
    UnsupportedTypeError,
)
from jsbind.codegen.languages.python.generator import PythonBindingGenerator
from jsbind.runtime import DecodeError, JsArray, JsObject, JsReferenceError


class TestPropertiesAndMethods:
    """Getters, setters, methods and globals on opaque objects."""

    SIG = """
type element = private Ojs.t
val document : element [@@js.global "document"]
val id : element -> string
val set_id : element -> string -> unit
val append_child : element -> element -> unit [@@js.meth "appendChild"]
val focus : element -> unit -> unit
val query : element -> string -> element option [@@js.meth "querySelector"]
"""

    @pytest.fixture
    def world(self, js):
        self.appended = []
        self.focused = []
        doc = js.make_object(id="main")
        doc.set_property("appendChild", js.function(lambda this, child: self.appended.append(child)))
        doc.set_property("focus", js.function(lambda this: self.focused.append(this)))
        doc.set_property(
            "querySelector",
            js.function(lambda this, selector: js.make_object(id=selector) if selector else None),
        )
        js.define("document", doc)
        return doc

    def test_global_value_is_read_at_import(self, world, bind):
        m = bind(self.SIG)
        assert m.document is world

    def test_property_read(self, world, bind):
        m = bind(self.SIG)
        assert m.id(m.document) == "main"

    def test_property_write(self, world, bind):
        m = bind(self.SIG)
        m.set_id(m.document, "other")
        assert world.get_property("id") == "other"

    def test_method_call(self, world, js, bind):
        m = bind(self.SIG)
        child = js.make_object(id="child")
        assert m.append_child(m.document, child) is None
        assert self.appended == [child]

    def test_sole_unit_argument_is_dropped(self, world, bind):
        m = bind(self.SIG)
        m.focus(m.document)
        assert self.focused == [world]

    def test_optional_result(self, world, bind):
        m = bind(self.SIG)
        assert m.id(m.query(m.document, "#x")) == "#x"
        assert m.query(m.document, "") is None

    def test_missing_global_fails_at_import(self, js, bind):
        with pytest.raises(JsReferenceError):
            bind(self.SIG)

    def test_generated_source(self, generate):
        code = generate(self.SIG).code
        assert "def id(this: element) -> str:" in code
        assert "return ojs.string_of_js(ojs.get(element_to_js(this), 'id'))" in code
        assert "ojs.set(element_to_js(this), 'id', ojs.string_to_js(arg))" in code
        assert "ojs.call_unit(element_to_js(this), 'focus', [])" in code
        assert "document: element = element_of_js(ojs.variable('document'))" in code


class TestOpaqueTypes:
    def test_conversions_are_identity(self, js, bind):
        m = bind("type node = private Ojs.t")
        obj = js.make_object()
        assert m.node_of_js(obj) is obj
        assert m.node_to_js(obj) is obj
        assert m.node is not None

    def test_cast(self, js, bind):
        m = bind(
            "type element = private Ojs.t\n"
            "type node = private Ojs.t\n"
            "val as_node : element -> node [@@js.cast]"
        )
        obj = js.make_object()
        assert m.as_node(obj) is obj


class TestScalars:
    """Primitive conversions in both directions."""

    SIG = """
type box = private Ojs.t
val count : box -> int
val ratio : box -> float
val visible : box -> bool
val label : box -> string
val set_count : box -> int -> unit
val raw : box -> Ojs.t [@@js.get "count"]
"""

    def test_reads(self, js, bind):
        m = bind(self.SIG)
        box = js.make_object(count=3, ratio=0.5, visible=True, label="b")
        assert m.count(box) == 3
        assert m.ratio(box) == 0.5
        assert m.visible(box) is True
        assert m.label(box) == "b"
        assert m.raw(box) == 3

    def test_write(self, js, bind):
        m = bind(self.SIG)
        box = js.make_object()
        m.set_count(box, 7)
        assert box.get_property("count") == 7

    def test_wrong_js_type_fails_to_decode(self, js, bind):
        m = bind(self.SIG)
        with pytest.raises(DecodeError, match="Expected a JS string"):
            m.label(js.make_object(label=1))


class TestSequences:
    """Arrays, lists and variadic arguments."""

    SIG = """
type element = private Ojs.t
val children : element -> element array
val set_tags : element -> string list -> unit
val push : element -> int array [@js.variadic] -> unit [@@js.meth "push"]
val sep : string -> string list [@js.variadic] -> string [@@js.global "sep"]
"""

    def test_array_result(self, js, bind):
        m = bind(self.SIG)
        a, b = js.make_object(), js.make_object()
        parent = js.make_object(children=js.make_array([a, b]))
        assert m.children(parent) == [a, b]

    def test_list_argument(self, js, bind):
        m = bind(self.SIG)
        obj = js.make_object()
        m.set_tags(obj, ["a", "b"])
        tags = obj.get_property("tags")
        assert isinstance(tags, JsArray)
        assert tags.items == ["a", "b"]

    def test_variadic_global(self, js, bind):
        received = []

        def sep(this, *args):
            received.append(list(args))
            return args[0].join(args[1:])

        js.define("sep", js.function(sep))
        m = bind(self.SIG)
        assert m.sep("-", ["a", "b", "c"]) == "a-b-c"
        assert received == [["-", "a", "b", "c"]]

    def test_variadic_method(self, js, bind):
        received = []
        obj = js.make_object()
        obj.set_property("push", js.function(lambda this, *args: received.extend(args)))
        m = bind(self.SIG)
        m.push(obj, [1, 2, 3])
        m.push(obj, [])
        assert received == [1, 2, 3]


class TestCallbacks:
    SIG = """
type element = private Ojs.t
type timer = private Ojs.t
val set_timeout : (unit -> unit) -> int -> timer [@@js.global "setTimeout"]
val onload : element -> (unit -> unit) option [@@js.get "onload"]
"""

    def test_python_callback_is_callable_from_js(self, js, bind):
        calls = []

        def set_timeout(this, callback, delay):
            js.apply(callback, [])
            return js.make_object(delay=delay)

        js.define("setTimeout", js.function(set_timeout))
        m = bind(self.SIG)
        timer = m.set_timeout(lambda: calls.append("fired"), 10)
        assert calls == ["fired"]
        assert timer.get_property("delay") == 10

    def test_js_callback_is_callable_from_python(self, js, bind):
        calls = []
        obj = js.make_object()
        obj.set_property("onload", js.function(lambda this: calls.append(this)))
        m = bind(self.SIG)
        m.onload(obj)()
        assert len(calls) == 1
        assert m.onload(js.make_object()) is None

    def test_other_function_types_are_rejected(self, generate):
        result = generate('val f : (int -> int) -> unit [@@js.global "f"]')
        assert not result.success
        assert isinstance(result.exception, UnsupportedTypeError)
        assert result.error_message.startswith('File "test.mli", line 1, characters 9-19')

    def test_nested_function_error_points_at_the_element(self, generate):
        result = generate('val f : (int -> string) list -> unit [@@js.global "f"]')
        assert isinstance(result.exception, UnsupportedTypeError)
        assert (result.exception.location.start, result.exception.location.end) == (9, 22)


class TestEnums:
    SIG = """
type kind =
  | Foo [@js "foo"]
  | Bar [@js 42]
  | Baz
  | Other of string [@js.default]

type level =
  | Low [@js 1]
  | High [@js 2]
  | Custom of int [@js.default]

type strict = Yes [@js "yes"] | No [@js "no"]
"""

    def test_decode_tags(self, js, bind):
        m = bind(self.SIG)
        assert m.kind_of_js("foo") == m.kind.Foo
        assert m.kind_of_js(42) == m.kind.Bar
        assert m.kind_of_js("Baz") == m.kind.Baz

    def test_encode_tags(self, js, bind):
        m = bind(self.SIG)
        assert m.kind_to_js(m.kind.Foo) == "foo"
        assert m.kind_to_js(m.kind.Bar) == 42
        assert m.kind_to_js(m.kind.Baz) == "Baz"

    def test_string_default(self, js, bind):
        m = bind(self.SIG)
        other = m.kind_of_js("zzz")
        assert other == m.kind.Other("zzz")
        assert other.payload == "zzz"
        assert m.kind_to_js(m.kind.Other("x")) == "x"

    def test_int_default(self, js, bind):
        m = bind(self.SIG)
        assert m.level_of_js(2) == m.level.High
        assert m.level_of_js(7) == m.level.Custom(7)
        assert m.level_to_js(m.level.Custom(9)) == 9

    def test_unmatched_value_without_default(self, js, bind):
        m = bind(self.SIG)
        with pytest.raises(DecodeError, match="as strict"):
            m.strict_of_js("maybe")
        with pytest.raises(DecodeError):
            m.kind_of_js(7)

    def test_encoding_a_foreign_value_fails(self, js, bind):
        m = bind(self.SIG)
        with pytest.raises(TypeError):
            m.strict_to_js(m.kind.Foo)

    def test_warning_for_missing_default(self, generate):
        result = generate(self.SIG)
        assert any("strict has no default" in w for w in result.warnings)
        assert not any("kind has no default" in w for w in result.warnings)


class TestRecords:
    SIG = """
type point = { x : int; y : int; label : string [@js "name"] }
type node = { value : int; next : node option }
"""

    def test_decode(self, js, bind):
        m = bind(self.SIG)
        p = m.point_of_js(js.make_object(x=1, y=2, name="origin"))
        assert p == m.point(1, 2, "origin")

    def test_encode(self, js, bind):
        m = bind(self.SIG)
        obj = m.point_to_js(m.point(x=3, y=4, label="p"))
        assert isinstance(obj, JsObject)
        assert obj.properties == {"x": 3, "y": 4, "name": "p"}

    def test_recursive_record(self, js, bind):
        m = bind(self.SIG)
        tail = js.make_object(value=2, next=None)
        head = m.node_of_js(js.make_object(value=1, next=tail))
        assert head.next.value == 2
        assert head.next.next is None

    def test_dataclass_import(self, generate):
        assert "from dataclasses import dataclass" in generate(self.SIG).code


class TestCustomExpressions:
    SIG = """
type element = private Ojs.t
val make_div : unit -> element [@@js.expr call (global "document") "createElement" "div"]
val log : string -> unit [@@js.expr call (global "console") "log" arg0]
"""

    def test_call_on_global(self, js, bind):
        document = js.make_object()
        document.set_property(
            "createElement", js.function(lambda this, tag: js.make_object(tagName=tag))
        )
        js.define("document", document)
        m = bind(self.SIG)
        assert m.make_div().get_property("tagName") == "div"

    def test_arguments_are_converted(self, js, bind):
        logged = []
        console = js.make_object()
        console.set_property("log", js.function(lambda this, msg: logged.append(msg)))
        js.define("console", console)
        m = bind(self.SIG)
        assert m.log("hello") is None
        assert logged == ["hello"]


class TestModules:
    SIG = """
module Window : sig
  type t = private Ojs.t
  val current : t [@@js.global "window"]
  val title : t -> string
  module Location : sig
    val href : t -> string
  end
end
val main_title : unit -> string [@@js.expr call (global "window") "getTitle"]
"""

    @pytest.fixture
    def window(self, js):
        window = js.make_object(title="Home", href="/index")
        window.set_property("getTitle", js.function(lambda this: this.get_property("title")))
        return js.define("window", window)

    def test_nesting_is_preserved(self, window, bind):
        m = bind(self.SIG)
        assert m.Window.current is window
        assert m.Window.title(m.Window.current) == "Home"
        assert m.Window.Location.href(m.Window.current) == "/index"
        assert m.main_title() == "Home"

    def test_references_are_root_qualified(self, generate):
        code = generate(self.SIG).code
        assert "def href(this: Window.t) -> str:" in code
        assert "Window.t_to_js(this)" in code
        assert "Window.current = Window.t_of_js(ojs.variable('window'))" in code

    def test_empty_module(self, js, bind, generate):
        m = bind("module Empty : sig end")
        assert isinstance(m.Empty, type)
        assert "Module Empty is empty" in generate("module Empty : sig end").warnings
        bind("module Empty : sig end", add_comments=False)

    def test_types_are_visible_from_their_declaration_on(self, js, bind, generate):
        sig = (
            "type t = private Ojs.t\n"
            "module M : sig\n"
            "  val x : t -> int\n"
            "  type t = private Ojs.t\n"
            "  val y : t -> int\n"
            "end"
        )
        code = generate(sig).code
        assert "def x(this: t) -> int:" in code
        assert "def y(this: M.t) -> int:" in code
        m = bind(sig)
        assert m.M.y(js.make_object(y=2)) == 2


class TestNaming:
    def test_keywords_are_renamed(self, js, bind, generate):
        sig = "type element = private Ojs.t\nval lambda : element -> int"
        m = bind(sig)
        assert m.lambda_(js.make_object(**{"lambda": 5})) == 5
        assert "lambda renamed to lambda_" in generate(sig).warnings

    def test_reserved_runtime_name(self, js, bind):
        m = bind("type ojs = private Ojs.t\nval ojs_size : ojs -> int [@@js.get \"size\"]")
        assert m.ojs_size(js.make_object(size=1)) == 1
        assert m.ojs_ is not None

    def test_duplicate_values(self, generate):
        result = generate("val x : int\nval x : string")
        assert result.success
        assert "x renamed to x_" in result.warnings
        assert "Value x is declared more than once" in result.warnings


class TestGenerationResult:
    """Driver behavior: fail fast, warnings, metadata, configuration."""

    def test_failure_carries_no_code(self, generate):
        result = generate("type element = private Ojs.t\nval f : widget -> int")
        assert not result.success
        assert result.code == ""
        assert isinstance(result.exception, UnboundTypeError)
        assert result.error_message.startswith('File "test.mli", line 2')
        assert "Unbound type widget" in result.error_message

    def test_unbound_types_fail_before_rendering(self, generate, monkeypatch):
        rendered = []
        original = PythonBindingGenerator.render_template

        def spy(self, name, context):
            rendered.append(name)
            return original(self, name, context)

        monkeypatch.setattr(PythonBindingGenerator, "render_template", spy)
        sig = "type element = private Ojs.t\nval a : element -> int\nval b : widget -> int"
        result = generate(sig)
        assert isinstance(result.exception, UnboundTypeError)
        assert result.error_message.startswith('File "test.mli", line 3')
        assert rendered == []

    def test_syntax_errors_are_binding_errors(self, generate):
        result = generate("val f int")
        assert not result.success
        assert isinstance(result.exception, BindingError)

    def test_type_mismatch_is_reported(self, generate):
        result = generate("type t = private Ojs.t\nval f : t -> string [@@js.cast]")
        assert isinstance(result.exception, BindingTypeMismatchError)

    def test_getter_warning(self, generate):
        result = generate("type t = private Ojs.t\nval close : t -> unit")
        assert result.success
        assert any("[@@js.meth]" in w for w in result.warnings)

    def test_metadata(self, generate):
        result = generate(TestModules.SIG)
        assert result.metadata["language"] == "python"
        assert result.metadata["module_count"] == 2
        assert result.metadata["opaque_type_count"] == 1
        assert result.metadata["value_count"] == 4
        assert result.metadata["binding_kinds"] == {
            "CustomExpr": 1,
            "GlobalVariable": 1,
            "PropertyGet": 2,
        }

    def test_module_header(self, generate):
        code = generate("val v : string list").code
        assert code.startswith('"""\nBindings generated by jsbind from test.mli.')
        assert "from __future__ import annotations" in code
        assert "from typing import List" in code
        assert "from jsbind.runtime import ojs" in code
        assert "dataclass" not in code

    def test_no_comments(self, generate):
        code = generate("val v : string", add_comments=False).code
        assert code.startswith("from __future__ import annotations")
        assert "#" not in code

    def test_no_type_hints(self, generate):
        code = generate("type t = private Ojs.t\nval size : t -> int", type_hints=False).code
        assert "def size(this):" in code
        assert "from typing" not in code

    def test_runtime_module(self, generate):
        code = generate("val v : string", runtime_module="myapp.js").code
        assert "from myapp.js import ojs" in code

    def test_extern_types(self, generate):
        code = generate(
            "val tag : Dom.element -> string", extern_types={"Dom.element": "mylib.dom"}
        ).code
        assert "import mylib.dom\n" in code
        assert "def tag(this: mylib.dom.element) -> str:" in code
        assert "mylib.dom.element_to_js(this)" in code

    def test_blank_lines_are_capped(self, generate):
        assert "\n\n\n\n" not in generate(TestModules.SIG).code


class TestFragments:
    def test_fragment_has_no_header(self):
        code = expand_fragment("val version : string")
        assert code == (
            '# version : string  (js.global "version")\n'
            "version: str = ojs.string_of_js(ojs.variable('version'))\n"
        )

    def test_fragment_errors_are_raised(self):
        with pytest.raises(UnboundTypeError):
            expand_fragment("val f : widget -> int")

    def test_fragment_with_config(self):
        code = expand_fragment("val version : string", {"add_comments": False})
        assert code == "version: str = ojs.string_of_js(ojs.variable('version'))\n"
