"""Type IR for shapegen.

The IR is the information-preserving description of a type system that all
three backends read: tagged type nodes, properties, declarations, and the
traversal utilities that interpret them consistently.

Usage::

    from shapegen.ir import load_parse_result, GenerationContext

    result = load_parse_result("types.json")
    ctx = GenerationContext(declarations=result.by_name())
"""

from shapegen.ir.loader import find_declaration, load_parse_result
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
    ParseResult,
    PrimitiveType,
    Property,
    RecordType,
    ReferenceType,
    TupleType,
    TypeNode,
    UnionType,
    UnknownType,
)

__all__ = [
    "ArrayType",
    "Declaration",
    "EnumMember",
    "EnumType",
    "FunctionType",
    "GenerationContext",
    "IntersectionType",
    "LiteralType",
    "ObjectType",
    "ParseResult",
    "PrimitiveType",
    "Property",
    "RecordType",
    "ReferenceType",
    "TupleType",
    "TypeNode",
    "UnionType",
    "UnknownType",
    "find_declaration",
    "load_parse_result",
]
