"""
Enumeration and record encoding.

An enumeration maps each constant constructor to a JS string or number
tag and back; catch-all constructors carry any unmatched scalar of their
payload type. A record maps each field to one JS property.
"""

from typing import Any, Dict, List

from ..logging_config import get_logger
from .core.declarations import DefaultPayload, EnumTypeDecl, RecordTypeDecl
from .core.naming import PYTHON_KEYWORDS, NameSanitizer
from .core.types import INT, STRING
from .marshal import Marshaller, Param, py_literal
from .registry import TypeEntry

logger = get_logger(__name__)


def local_name(path: str) -> str:
    return path.rsplit(".", 1)[-1]


def _function(name: str, params: List[Param], returns: str, body: List[str]) -> Dict[str, Any]:
    return {"name": name, "params": params, "returns": returns, "body": body, "static": False}


def enum_block(
    decl: EnumTypeDecl, entry: TypeEntry, marshaller: Marshaller, warnings: List[str]
) -> Dict[str, Any]:
    """
    Template data for an enumeration: its namespace class and conversions.

    Decoding dispatches on ``ojs.type_of``; a value matching no tag and no
    catch-all raises ``ojs.DecodeError`` when the binding runs.
    """
    rt = marshaller.runtime
    cls = entry.py_type
    names = NameSanitizer(PYTHON_KEYWORDS)
    members = {}
    for ctor in decl.constructors:
        members[ctor.name] = names.sanitize_name(ctor.name)
        if members[ctor.name] != ctor.name:
            warnings.append(f"{entry.name}.{ctor.name} renamed to {members[ctor.name]}")

    constants = []
    factories = []
    for ctor in decl.constructors:
        variant = f"{rt}.Variant({py_literal(entry.name)}, {py_literal(ctor.name)}"
        if not ctor.is_default:
            constants.append({"name": members[ctor.name], "variant": variant + ")"})
            continue
        payload = STRING if ctor.default == DefaultPayload.STRING else INT
        factories.append(
            {
                "name": members[ctor.name],
                "params": [Param("payload", marshaller.annotation(payload))],
                "returns": f"{rt}.Variant",
                "body": [f"return {variant}, payload)"],
                "static": True,
            }
        )

    string_tags = [c for c in decl.tagged if isinstance(c.tag, str)]
    number_tags = [c for c in decl.tagged if isinstance(c.tag, int)]
    string_default = decl.default_for(DefaultPayload.STRING)
    int_default = decl.default_for(DefaultPayload.INT)

    decode = [f"kind = {rt}.type_of(value)"]
    if string_tags or string_default:
        decode.append('if kind == "string":')
        decode.append(f"    tag = {rt}.string_of_js(value)")
        for ctor in string_tags:
            decode.append(f"    if tag == {py_literal(ctor.tag)}:")
            decode.append(f"        return {cls}.{members[ctor.name]}")
        if string_default:
            decode.append(f"    return {cls}.{members[string_default.name]}(tag)")
    if number_tags or int_default:
        decode.append('if kind == "number":')
        decode.append(f"    tag = {rt}.float_of_js(value)")
        for ctor in number_tags:
            decode.append(f"    if tag == {py_literal(ctor.tag)}:")
            decode.append(f"        return {cls}.{members[ctor.name]}")
        if int_default:
            decode.append("    if tag.is_integer():")
            decode.append(f"        return {cls}.{members[int_default.name]}(int(tag))")
    decode.append(
        f'raise {rt}.DecodeError(f"Cannot decode {{value!r}} as {entry.name}")'
    )

    encode = []
    for ctor in decl.tagged:
        convert = "string_to_js" if isinstance(ctor.tag, str) else "int_to_js"
        encode.append(f"if value == {cls}.{members[ctor.name]}:")
        encode.append(f"    return {rt}.{convert}({py_literal(ctor.tag)})")
    for ctor in (string_default, int_default):
        if ctor is None:
            continue
        convert = "string_to_js" if ctor.default == DefaultPayload.STRING else "int_to_js"
        encode.append(
            f"if isinstance(value, {rt}.Variant) and value.type_name == {py_literal(entry.name)} "
            f"and value.name == {py_literal(ctor.name)}:"
        )
        encode.append(f"    return {rt}.{convert}(value.payload)")
    encode.append(f'raise TypeError(f"{{value!r}} is not a {entry.name}")')

    if string_default is None and int_default is None:
        warnings.append(
            f"Enumeration {entry.name} has no default constructor; "
            "unknown JS values fail to decode"
        )
    logger.debug("Encoded enumeration %s with %d constructors", entry.name, len(decl.constructors))

    return {
        "kind": "enum",
        "name": local_name(entry.py_type),
        "type_name": entry.name,
        "constants": constants,
        "factories": factories,
        "functions": [
            _function(local_name(entry.of_js), [Param("value", f"{rt}.t")], cls, decode),
            _function(local_name(entry.to_js), [Param("value", cls)], f"{rt}.t", encode),
        ],
    }


def record_block(
    decl: RecordTypeDecl, entry: TypeEntry, marshaller: Marshaller, warnings: List[str]
) -> Dict[str, Any]:
    """Template data for a record: a dataclass and its conversions."""
    rt = marshaller.runtime
    cls = entry.py_type
    names = NameSanitizer(PYTHON_KEYWORDS)
    fields = []
    for field in decl.fields:
        py_name = names.sanitize_name(field.name)
        if py_name != field.name:
            warnings.append(f"{entry.name}.{field.name} renamed to {py_name}")
        js_name = py_literal(field.js_name)
        fields.append(
            {
                "name": py_name,
                "annotation": marshaller.annotation(field.type),
                "decode": marshaller.js_to_py(field.type, f"{rt}.get(value, {js_name})"),
                "encode": f"({js_name}, {marshaller.py_to_js(field.type, f'value.{py_name}')})",
            }
        )

    decode = [f"return {cls}("]
    decode += [f"    {f['name']}={f['decode']}," for f in fields]
    decode.append(")")

    encode = [f"return {rt}.obj(["]
    encode += [f"    {f['encode']}," for f in fields]
    encode.append("])")

    return {
        "kind": "record",
        "name": local_name(entry.py_type),
        "type_name": entry.name,
        "fields": fields,
        "functions": [
            _function(local_name(entry.of_js), [Param("value", f"{rt}.t")], cls, decode),
            _function(local_name(entry.to_js), [Param("value", cls)], f"{rt}.t", encode),
        ],
    }
