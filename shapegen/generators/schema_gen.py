"""Validation schema generation (IR -> Zod source text).

Each declaration becomes one ``export const <Name>Schema = ...;`` statement.
Referenced declarations are rendered by name (``<Name>Schema``) and are
expected to be emitted separately in the same batch; recursive declarations
are wrapped in ``z.lazy`` so they can refer to themselves.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

from shapegen.ir.models import (
    ArrayType,
    Declaration,
    EnumMember,
    EnumType,
    FunctionType,
    GenerationContext,
    IntersectionType,
    LiteralType,
    ObjectType,
    PrimitiveType,
    Property,
    RecordType,
    ReferenceType,
    TupleType,
    TypeNode,
    UnionType,
    UnknownType,
)
from shapegen.ir.traversal import (
    detect_discriminator,
    is_string_literal_enum,
    ts_literal,
    unwrap_nullable_union,
    unwrap_optional_union,
)

PRIMITIVE_VALIDATORS: dict[str, str] = {
    "string": "z.string()",
    "number": "z.number()",
    "boolean": "z.boolean()",
    "Date": "z.date()",
    "date": "z.date()",
    "bigint": "z.bigint()",
    "any": "z.any()",
    "unknown": "z.unknown()",
    "never": "z.never()",
    "void": "z.void()",
    "null": "z.null()",
    "undefined": "z.undefined()",
}

OPTIONAL_SUFFIX = ".optional()"


def schema_name(name: str) -> str:
    return f"{name}Schema"


def build_schema(decl: Declaration, ctx: GenerationContext) -> Optional[str]:
    """Render the validator statement for *decl*, or ``None`` if ineligible.

    Non-exported declarations are only emitted when another declaration
    depends on them (``ctx.known_types``).  Function-typed roots are never
    emitted.
    """
    name = decl.name

    if not decl.is_exported and name not in ctx.known_types:
        ctx.warn(f"Skipping {name}: not exported and not referenced")
        return None

    if isinstance(decl.type, FunctionType):
        ctx.warn(f"Skipping {name}: contains function type")
        return None

    body = type_to_zod(decl.type, ctx)
    if name in ctx.recursive_types:
        return f"export const {schema_name(name)}: z.ZodType<{name}> = z.lazy(() => {body});"
    return f"export const {schema_name(name)} = {body};"


def generate_type_export(name: str) -> str:
    """Companion type alias inferred from the schema."""
    return f"export type {name} = z.infer<typeof {schema_name(name)}>;"


def type_to_zod(node: TypeNode, ctx: GenerationContext) -> str:
    """Render a validator expression for any IR node."""
    if isinstance(node, PrimitiveType):
        return _primitive_to_zod(node.name, ctx)

    if isinstance(node, LiteralType):
        return f"z.literal({ts_literal(node.value)})"

    if isinstance(node, ArrayType):
        if node.element is None:
            return "z.array(z.unknown())"
        return f"z.array({type_to_zod(node.element, ctx)})"

    if isinstance(node, TupleType):
        elements = ", ".join(type_to_zod(e, ctx) for e in node.elements)
        return f"z.tuple([{elements}])"

    if isinstance(node, UnionType):
        return _union_to_zod(node, ctx)

    if isinstance(node, IntersectionType):
        return _intersection_to_zod(node.members, ctx)

    if isinstance(node, ObjectType):
        return _object_to_zod(node.properties, ctx)

    if isinstance(node, ReferenceType):
        return schema_name(node.name)

    if isinstance(node, EnumType):
        return _enum_to_zod(node.values)

    if isinstance(node, RecordType):
        if node.key is None or node.value is None:
            return "z.record(z.string(), z.unknown())"
        return f"z.record({type_to_zod(node.key, ctx)}, {type_to_zod(node.value, ctx)})"

    if isinstance(node, FunctionType):
        ctx.warn("Function types cannot be converted to Zod schemas")
        return "z.any() /* function type */"

    if isinstance(node, UnknownType) and node.raw_text:
        ctx.warn(f"Unknown type: {node.raw_text}")
        return f"z.any() /* {_comment_safe(node.raw_text)} */"

    return "z.unknown()"


# ---------------------------------------------------------------------------
# Per-kind renderers
# ---------------------------------------------------------------------------

def _primitive_to_zod(name: str, ctx: GenerationContext) -> str:
    validator = PRIMITIVE_VALIDATORS.get(name)
    if validator is None:
        ctx.warn(f"Unrecognized primitive type: {name}")
        return "z.unknown()"
    return validator


def _union_to_zod(node: UnionType, ctx: GenerationContext) -> str:
    if not node.members:
        return "z.never()"

    # Rule order matters: the first matching rule wins.
    optional = unwrap_optional_union(node)
    if optional.optional:
        return _suffix_optional(type_to_zod(optional.node, ctx))

    nullable = unwrap_nullable_union(node)
    if nullable.nullable:
        return f"{type_to_zod(nullable.node, ctx)}.nullable()"

    if is_string_literal_enum(node):
        values = ", ".join(ts_literal(m.value) for m in node.members)
        return f"z.enum([{values}])"

    schemas = ", ".join(type_to_zod(m, ctx) for m in node.members)

    discriminator = detect_discriminator(node.members)
    if discriminator is not None:
        return f"z.discriminatedUnion({ts_literal(discriminator)}, [{schemas}])"

    return f"z.union([{schemas}])"


def _intersection_to_zod(members: Sequence[TypeNode], ctx: GenerationContext) -> str:
    if not members:
        return "z.object({})"

    result = type_to_zod(members[0], ctx)
    for member in members[1:]:
        result = f"{result}.and({type_to_zod(member, ctx)})"
    return result


def _object_to_zod(properties: Sequence[Property], ctx: GenerationContext) -> str:
    if not properties:
        return "z.object({})"

    lines = []
    for prop in properties:
        schema = type_to_zod(prop.type, ctx)
        if prop.is_optional:
            schema = _suffix_optional(schema)
        lines.append(f"  {prop.name}: {schema},".replace("\n", "\n  "))
    return "z.object({\n" + "\n".join(lines) + "\n})"


def _enum_to_zod(values: Sequence[EnumMember]) -> str:
    if not values:
        return "z.never()"
    if all(isinstance(v.value, str) for v in values):
        return f"z.enum([{', '.join(ts_literal(v.value) for v in values)}])"

    literals = ", ".join(f"z.literal({ts_literal(v.value)})" for v in values)
    return f"z.union([{literals}])"


def _suffix_optional(schema: str) -> str:
    if schema.endswith(OPTIONAL_SUFFIX):
        return schema
    return schema + OPTIONAL_SUFFIX


def _comment_safe(text: Union[str, None]) -> str:
    return (text or "").replace("*/", "* /")
