"""
Declaration parser.

Turns the raw signature tree into the canonical declaration list: value
types are resolved into the type model, binding attributes are collected,
and every shape outside the supported forms is rejected with a located
diagnostic.
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..logging_config import get_logger
from ..signature.syntax import (
    Attribute,
    SigConstructor,
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
    SynString,
    TyArrow,
    TyConstr,
    TypeExpr,
)
from .core.declarations import (
    BindingKind,
    Call,
    Cast,
    CustomExpr,
    Declaration,
    DefaultPayload,
    EnumConstructor,
    EnumTypeDecl,
    Expr,
    GlobalVariable,
    Identifier,
    MethodCall,
    ModuleDecl,
    OpaqueTypeDecl,
    PropertyGet,
    PropertySet,
    RecordField,
    RecordTypeDecl,
    StringLiteral,
    ValueDecl,
)
from .core.errors import (
    BindingTypeMismatchError,
    ExpressionExpectedError,
    IdentifierExpectedError,
    InvalidEnumError,
    InvalidExpressionError,
    Location,
    MultipleBindingDeclarationsError,
    UnsupportedSignatureError,
    UnsupportedTypeError,
)
from .core.types import (
    BUILTIN_TYPES,
    FOREIGN,
    INT,
    OPTION_CONSTRUCTOR,
    SEQUENCE_CONSTRUCTORS,
    STRING,
    Array,
    Arrow,
    Named,
    Option,
    Type,
    arrow,
)

logger = get_logger(__name__)

# Attribute names
VARIADIC = "js.variadic"
DEFAULT = "js.default"
JS_NAME = "js"
BINDING_ATTRIBUTES = ("js.cast", "js.expr", "js.get", "js.set", "js.meth", "js.global")


# Types


def has_attribute(attributes: Sequence[Attribute], name: str) -> bool:
    return any(attr.name == name for attr in attributes)


def parse_type(ty: TypeExpr) -> Type:
    """Resolve a type expression; arrows are flattened as they are read."""
    if isinstance(ty, TyArrow):
        param = parse_param_type(ty.param)
        variadic = has_attribute(ty.param.attributes, VARIADIC)
        result = parse_type(ty.result)
        if variadic and isinstance(result, Arrow):
            raise BindingTypeMismatchError(
                ty.param.location, "Only the last parameter can be variadic"
            )
        return arrow((param,), result, variadic, ty.location)

    if has_attribute(ty.attributes, VARIADIC):
        raise BindingTypeMismatchError(ty.location, "Only the last parameter can be variadic")
    return parse_param_type(ty)


def parse_param_type(ty: TypeExpr) -> Type:
    if isinstance(ty, TyArrow):
        return parse_type(ty)
    if isinstance(ty, TyConstr):
        if len(ty.args) == 1 and ty.name in SEQUENCE_CONSTRUCTORS:
            element = parse_type(ty.args[0])
            if has_attribute(ty.attributes, VARIADIC) and isinstance(element, Arrow):
                raise UnsupportedTypeError(ty.location)
            return Array(element)
        if len(ty.args) == 1 and ty.name == OPTION_CONSTRUCTOR:
            return Option(parse_type(ty.args[0]))
        if not ty.args:
            if has_attribute(ty.attributes, VARIADIC):
                raise BindingTypeMismatchError(
                    ty.location, "A variadic parameter must be a list or an array"
                )
            return BUILTIN_TYPES.get(ty.name) or Named(ty.name)
    raise UnsupportedTypeError(ty.location)


# Attribute payloads


def parse_expr(expr: SynExpr) -> Expr:
    if isinstance(expr, SynIdent) and "." not in expr.name:
        return Identifier(expr.name)
    if isinstance(expr, SynString):
        return StringLiteral(expr.value)
    if isinstance(expr, SynApply):
        return Call(parse_expr(expr.func), tuple(parse_expr(arg) for arg in expr.args))
    raise InvalidExpressionError(expr.location)


def id_of_expr(expr: SynExpr) -> str:
    if isinstance(expr, SynString):
        return expr.value
    if isinstance(expr, (SynIdent, SynConstruct)) and "." not in expr.name:
        return expr.name
    raise IdentifierExpectedError(expr.location)


def expr_of_payload(attr: Attribute) -> SynExpr:
    payload = attr.payload
    if payload.kind == "structure" and len(payload.items) == 1:
        return payload.items[0]
    raise ExpressionExpectedError(attr.location)


def payload_is_empty(attr: Attribute) -> bool:
    return attr.payload.kind == "structure" and not attr.payload.items


def parse_binding_attributes(
    name: str, attributes: Sequence[Attribute], location: Location
) -> Optional[BindingKind]:
    """
    Collect the explicit binding marker of a value declaration.

    Name payloads default to the declared name. Unknown attributes are
    ignored.
    """

    def opt_name(attr: Attribute) -> str:
        if payload_is_empty(attr):
            return name
        return id_of_expr(expr_of_payload(attr))

    kinds: List[BindingKind] = []
    for attr in attributes:
        if attr.name == "js.cast":
            kinds.append(Cast())
        elif attr.name == "js.expr":
            kinds.append(CustomExpr(parse_expr(expr_of_payload(attr))))
        elif attr.name == "js.get":
            kinds.append(PropertyGet(opt_name(attr)))
        elif attr.name == "js.set":
            kinds.append(PropertySet(opt_name(attr)))
        elif attr.name == "js.meth":
            kinds.append(MethodCall(opt_name(attr)))
        elif attr.name == "js.global":
            kinds.append(GlobalVariable(opt_name(attr)))

    if len(kinds) > 1:
        raise MultipleBindingDeclarationsError(location)
    return kinds[0] if kinds else None


# Type declarations


def _is_opaque(decl: SigType) -> bool:
    manifest = decl.manifest
    return (
        decl.private
        and isinstance(manifest, TyConstr)
        and not manifest.args
        and BUILTIN_TYPES.get(manifest.name) == FOREIGN
        and not decl.constructors
        and not decl.fields
    )


def _constructor_tag(ctor: SigConstructor) -> Union[str, int]:
    tags = [attr for attr in ctor.attributes if attr.name == JS_NAME]
    if not tags:
        return ctor.name
    if len(tags) > 1:
        raise MultipleBindingDeclarationsError(ctor.location)
    attr = tags[0]
    if payload_is_empty(attr):
        return ctor.name
    expr = expr_of_payload(attr)
    if isinstance(expr, SynString):
        return expr.value
    if isinstance(expr, SynInt):
        return expr.value
    raise InvalidExpressionError(expr.location, "String or integer literal expected")


def parse_enum(decl: SigType) -> EnumTypeDecl:
    constructors: List[EnumConstructor] = []
    names: Dict[str, SigConstructor] = {}
    tags: Dict[Tuple[type, Union[str, int]], str] = {}
    defaults: Dict[str, str] = {}

    for ctor in decl.constructors:
        if ctor.name in names:
            raise InvalidEnumError(ctor.location, f"Constructor {ctor.name} is defined twice")
        names[ctor.name] = ctor

        if has_attribute(ctor.attributes, DEFAULT):
            payload = parse_type(ctor.args[0]) if len(ctor.args) == 1 else None
            if payload == STRING:
                kind = DefaultPayload.STRING
            elif payload == INT:
                kind = DefaultPayload.INT
            else:
                raise InvalidEnumError(
                    ctor.location,
                    f"Default constructor {ctor.name} must carry a string or an int",
                )
            if has_attribute(ctor.attributes, JS_NAME):
                raise InvalidEnumError(
                    ctor.location, f"Default constructor {ctor.name} cannot have a tag"
                )
            if kind in defaults:
                raise InvalidEnumError(
                    ctor.location,
                    f"Constructors {defaults[kind]} and {ctor.name} are both "
                    f"defaults for {kind} values",
                )
            defaults[kind] = ctor.name
            constructors.append(EnumConstructor(ctor.name, default=kind))
            continue

        if ctor.args:
            raise UnsupportedSignatureError(
                ctor.location,
                f"Constructor {ctor.name} has arguments; only constant constructors "
                "can be mapped to JS values",
            )
        tag = _constructor_tag(ctor)
        key = (type(tag), tag)
        if key in tags:
            raise InvalidEnumError(
                ctor.location, f"Tag {tag!r} is used by both {tags[key]} and {ctor.name}"
            )
        tags[key] = ctor.name
        constructors.append(EnumConstructor(ctor.name, tag=tag))

    return EnumTypeDecl(decl.name, tuple(constructors), decl.location)


def parse_record(decl: SigType) -> RecordTypeDecl:
    fields = []
    seen = set()
    for field in decl.fields:
        if field.name in seen:
            raise UnsupportedSignatureError(field.location, f"Field {field.name} is defined twice")
        seen.add(field.name)
        js_name = field.name
        for attr in field.attributes:
            if attr.name == JS_NAME and not payload_is_empty(attr):
                js_name = id_of_expr(expr_of_payload(attr))
        fields.append(RecordField(field.name, js_name, parse_type(field.type)))
    return RecordTypeDecl(decl.name, tuple(fields), decl.location)


def parse_type_decl(decl: SigType) -> Declaration:
    if decl.params:
        raise UnsupportedSignatureError(decl.location, "Parametrized types are not supported")
    if _is_opaque(decl):
        return OpaqueTypeDecl(decl.name, decl.location)
    if decl.manifest is None and decl.constructors:
        return parse_enum(decl)
    if decl.manifest is None and decl.fields:
        return parse_record(decl)
    raise UnsupportedSignatureError(decl.location)


# Signature items


def parse_value(item: SigValue) -> ValueDecl:
    if item.primitive:
        raise UnsupportedSignatureError(item.location)
    ty = parse_type(item.type)
    binding = parse_binding_attributes(item.name, item.attributes, item.location)
    return ValueDecl(item.name, ty, binding, item.location)


def parse_sig_item(item: SigItem) -> Declaration:
    if isinstance(item, SigValue):
        return parse_value(item)
    if isinstance(item, SigType):
        return parse_type_decl(item)
    if isinstance(item, SigModule) and item.items is not None:
        return ModuleDecl(item.name, tuple(parse_sig(item.items)), item.location)
    if isinstance(item, (SigModule, SigUnsupported)):
        raise UnsupportedSignatureError(item.location)
    raise TypeError(f"Unknown signature item: {item!r}")


def parse_sig(items: Sequence[SigItem]) -> List[Declaration]:
    return [parse_sig_item(item) for item in items]


def parse_signature(items: Sequence[SigItem]) -> List[Declaration]:
    """
    Build the canonical declaration list from raw signature items.

    Raises:
        BindingError: on the first unsupported or malformed item
    """
    decls = parse_sig(items)
    logger.debug("Parsed %d top-level declarations", len(decls))
    return decls
