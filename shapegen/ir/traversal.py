"""Shared traversal utilities over the type IR.

Every backend answers "is this field optional?", "is this union a closed
choice?" and "what is the empty value of this type?" through the functions in
this module.  Keeping them in one place is what makes the schema, the store and
the form agree on the same field set.
"""

from __future__ import annotations

import json
import re
from collections import Counter
from typing import Mapping, NamedTuple, Optional, Sequence

from .models import (
    ArrayType,
    Declaration,
    EnumType,
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
)

DATE_PRIMITIVES = frozenset({"Date", "date"})
ABSENT = "undefined"


# ---------------------------------------------------------------------------
# Union unwrapping
# ---------------------------------------------------------------------------

class Unwrapped(NamedTuple):
    """A node with its optional/nullable wrapper removed."""
    node: TypeNode
    optional: bool = False
    nullable: bool = False


def _is_primitive(node: TypeNode, name: str) -> bool:
    return isinstance(node, PrimitiveType) and node.name == name


def unwrap_optional_union(node: TypeNode) -> Unwrapped:
    """Turn ``T | undefined`` into ``T`` tagged optional.

    Only a union with exactly one ``undefined`` member and exactly one other
    member qualifies; anything else comes back unchanged and required.
    """
    if isinstance(node, UnionType):
        undefined = [m for m in node.members if _is_primitive(m, "undefined")]
        rest = [m for m in node.members if not _is_primitive(m, "undefined")]
        if len(undefined) == 1 and len(rest) == 1:
            return Unwrapped(rest[0], optional=True)
    return Unwrapped(node)


def unwrap_nullable_union(node: TypeNode) -> Unwrapped:
    """Turn ``T | null`` into ``T`` tagged nullable (``undefined`` must be absent)."""
    if isinstance(node, UnionType):
        if any(_is_primitive(m, "undefined") for m in node.members):
            return Unwrapped(node)
        nulls = [m for m in node.members if _is_primitive(m, "null")]
        rest = [m for m in node.members if not _is_primitive(m, "null")]
        if len(nulls) == 1 and len(rest) == 1:
            return Unwrapped(rest[0], nullable=True)
    return Unwrapped(node)


class ResolvedField(NamedTuple):
    """A property after optional/nullable resolution."""
    name: str
    node: TypeNode
    optional: bool
    nullable: bool


def resolve_property(prop: Property) -> ResolvedField:
    """Resolve a property into its main type plus optional/nullable flags.

    A property is optional when it carries a question token *or* its type is
    an optional union, so ``a?: T`` and ``a: T | undefined`` resolve alike.
    """
    opt = unwrap_optional_union(prop.type)
    nul = unwrap_nullable_union(opt.node)
    return ResolvedField(
        name=prop.name,
        node=nul.node,
        optional=prop.is_optional or opt.optional,
        nullable=nul.nullable,
    )


# ---------------------------------------------------------------------------
# Union classification
# ---------------------------------------------------------------------------

def is_string_literal_enum(node: TypeNode) -> bool:
    """True for a non-empty union whose members are all textual literals."""
    return (
        isinstance(node, UnionType)
        and len(node.members) > 0
        and all(
            isinstance(m, LiteralType) and isinstance(m.value, str)
            for m in node.members
        )
    )


def string_enum_options(node: TypeNode) -> Optional[list[str]]:
    """Return the closed list of string choices for a literal union or string enum."""
    if is_string_literal_enum(node):
        return [m.value for m in node.members]
    if isinstance(node, EnumType) and node.values and all(
        isinstance(v.value, str) for v in node.values
    ):
        return [v.value for v in node.values]
    return None


def detect_discriminator(members: Sequence[TypeNode]) -> Optional[str]:
    """Return the first common literal-typed property of a union of objects.

    The candidate order is the property order of the *first* member; the first
    property that is literal-typed in every member wins.  Returns ``None`` when
    any member is not an object or no property qualifies.
    """
    if not members or not all(isinstance(m, ObjectType) for m in members):
        return None

    for prop in members[0].properties:
        if not isinstance(prop.type, LiteralType):
            continue
        if all(_has_literal_property(m, prop.name) for m in members):
            return prop.name
    return None


def _has_literal_property(obj: ObjectType, name: str) -> bool:
    for prop in obj.properties:
        if prop.name == name:
            return isinstance(prop.type, LiteralType)
    return False


# ---------------------------------------------------------------------------
# Array element classification
# ---------------------------------------------------------------------------

def is_object_element(
    node: Optional[TypeNode],
    declarations: Optional[Mapping[str, Declaration]] = None,
) -> bool:
    """Decide whether array items of this type are updated by partial merge.

    Objects, intersections, records and unions made only of those merge.  A
    reference merges when it points at an object-like declaration, or at a
    declaration this run does not know about (assumed to be an interface).
    Everything else is replaced outright.
    """
    return _is_object_element(node, declarations or {}, frozenset())


def _is_object_element(node, declarations, seen: frozenset[str]) -> bool:
    if isinstance(node, (ObjectType, IntersectionType, RecordType)):
        return True
    if isinstance(node, UnionType):
        return bool(node.members) and all(
            _is_object_element(m, declarations, seen) for m in node.members
        )
    if isinstance(node, ReferenceType):
        target = declarations.get(node.name)
        if target is None or node.name in seen:
            return target is None or target.is_object_root
        return _is_object_element(target.type, declarations, seen | {node.name})
    return False


# ---------------------------------------------------------------------------
# Default-value synthesis
# ---------------------------------------------------------------------------

_PRIMITIVE_DEFAULTS: dict[str, str] = {
    "string": "''",
    "number": "0",
    "boolean": "false",
    "bigint": "BigInt(0)",
    "Date": "new Date()",
    "date": "new Date()",
    "null": "null",
}


def default_value_for(
    node: Optional[TypeNode],
    is_optional: bool,
    declarations: Optional[Mapping[str, Declaration]] = None,
) -> str:
    """Synthesise the initial value of a field as TypeScript expression text.

    Optional fields get the absent sentinel ``undefined``.  Required fields
    get a per-kind empty value; references resolve by name against
    *declarations* and fall back to the referenced store's
    ``default<Name>State`` constant.
    """
    if is_optional:
        return ABSENT
    return _default(node, declarations or {}, frozenset())


def _default(node, declarations, seen: frozenset[str]) -> str:
    if node is None:
        return ABSENT

    if isinstance(node, PrimitiveType):
        return _PRIMITIVE_DEFAULTS.get(node.name, ABSENT)

    if isinstance(node, LiteralType):
        return ts_literal(node.value)

    if isinstance(node, EnumType):
        if node.values:
            return ts_literal(node.values[0].value)
        return ABSENT

    if isinstance(node, ArrayType):
        return "[]"

    if isinstance(node, TupleType):
        parts = [_default(e, declarations, seen) for e in node.elements]
        return f"[{', '.join(parts)}]"

    if isinstance(node, RecordType):
        return "{}"

    if isinstance(node, ObjectType):
        if not node.properties:
            return "{}"
        parts = [
            f"{p.name}: {_property_default(p, declarations, seen)}"
            for p in node.properties
        ]
        return f"{{ {', '.join(parts)} }}"

    if isinstance(node, UnionType):
        if is_string_literal_enum(node):
            return ts_literal(node.members[0].value)
        for member in node.members:
            if not (_is_primitive(member, "null") or _is_primitive(member, "undefined")):
                return _default(member, declarations, seen)
        return ABSENT

    if isinstance(node, IntersectionType):
        if node.members and all(isinstance(m, ObjectType) for m in node.members):
            # Later members win on shared keys; first-seen key order is kept.
            merged: dict[str, Property] = {}
            for member in node.members:
                for prop in member.properties:
                    merged[prop.name] = prop
            return _default(ObjectType(properties=list(merged.values())), declarations, seen)
        return "{}"

    if isinstance(node, ReferenceType):
        target = declarations.get(node.name)
        if target is None or target.has_store or node.name in seen:
            return f"default{node.name}State"
        return _default(target.type, declarations, seen | {node.name})

    return ABSENT


def _property_default(prop: Property, declarations, seen) -> str:
    field = resolve_property(prop)
    if field.optional:
        return ABSENT
    return _default(prop.type, declarations, seen)


# ---------------------------------------------------------------------------
# Literal & identifier helpers
# ---------------------------------------------------------------------------

def ts_literal(value) -> str:
    """Render a Python literal as JavaScript source text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def capitalize(name: str) -> str:
    """Upper-case the first letter: ``field`` -> ``Field``."""
    return name[:1].upper() + name[1:]


def camel_to_title(name: str) -> str:
    """Humanise an identifier: ``camelCase`` -> ``Camel Case``."""
    spaced = re.sub(r"([A-Z])", r" \1", name)
    return capitalize(spaced).strip()


def storage_slug(name: str) -> str:
    """Default persistence key for a declaration: ``Foo`` -> ``foo-storage``."""
    return f"{name.lower()}-storage"


def single_quoted(text: str) -> str:
    """Render *text* as a single-quoted JavaScript string literal."""
    escaped = text.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def duplicate_names(names: Sequence[str]) -> list[str]:
    """Names that occur more than once, in order of first occurrence."""
    counts = Counter(names)
    return [n for n in dict.fromkeys(names) if counts[n] > 1]
