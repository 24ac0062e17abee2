"""Pydantic v2 models for the shapegen type IR.

Defines the closed set of tagged type nodes, properties, declarations and the
per-run generation context shared by every backend.  The IR is produced once by
an introspection front end and treated as immutable input; backends only ever
append to ``GenerationContext.warnings``.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
)


LiteralValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]
EnumValue = Union[StrictInt, StrictFloat, StrictStr]


class _Node(BaseModel):
    """Base for all IR models: immutable, unknown keys rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Type nodes
# ---------------------------------------------------------------------------

class PrimitiveType(_Node):
    """A built-in scalar such as ``string``, ``number`` or ``Date``."""
    kind: Literal["primitive"] = "primitive"
    name: str = Field(..., description="Primitive name, e.g. 'string', 'Date', 'undefined'")


class LiteralType(_Node):
    """A single literal value (string, number or boolean)."""
    kind: Literal["literal"] = "literal"
    value: LiteralValue = Field(..., description="The exact literal value")


class ArrayType(_Node):
    kind: Literal["array"] = "array"
    element: Optional[TypeNode] = Field(default=None, description="Element type, if known")


class TupleType(_Node):
    kind: Literal["tuple"] = "tuple"
    elements: list[TypeNode] = Field(default_factory=list)


class UnionType(_Node):
    kind: Literal["union"] = "union"
    members: list[TypeNode] = Field(default_factory=list)


class IntersectionType(_Node):
    kind: Literal["intersection"] = "intersection"
    members: list[TypeNode] = Field(default_factory=list)


class ObjectType(_Node):
    """An inline or declared record shape; property order is significant."""
    kind: Literal["object"] = "object"
    properties: list[Property] = Field(default_factory=list)
    name: Optional[str] = Field(default=None, description="Declared name, if any")


class ReferenceType(_Node):
    """A by-name reference to a sibling declaration (breaks cycles)."""
    kind: Literal["reference"] = "reference"
    name: str


class EnumMember(_Node):
    name: str
    value: EnumValue


class EnumType(_Node):
    kind: Literal["enum"] = "enum"
    values: list[EnumMember] = Field(default_factory=list)
    name: Optional[str] = None


class RecordType(_Node):
    kind: Literal["record"] = "record"
    key: Optional[TypeNode] = None
    value: Optional[TypeNode] = None


class FunctionType(_Node):
    kind: Literal["function"] = "function"


class UnknownType(_Node):
    """Anything the front end could not represent precisely."""
    kind: Literal["unknown"] = "unknown"
    raw_text: Optional[str] = Field(default=None, description="Source text of the type")


TypeNode = Annotated[
    Union[
        PrimitiveType,
        LiteralType,
        ArrayType,
        TupleType,
        UnionType,
        IntersectionType,
        ObjectType,
        ReferenceType,
        EnumType,
        RecordType,
        FunctionType,
        UnknownType,
    ],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Properties & declarations
# ---------------------------------------------------------------------------

class Property(_Node):
    """A named field of an object type."""
    name: str = Field(..., description="Field name as written in source")
    type: TypeNode = Field(..., description="Field type")
    is_optional: bool = Field(default=False, description="Declared with a question token")


class Declaration(_Node):
    """A named top-level type definition (interface, alias or enum)."""
    name: str
    type: TypeNode
    dependencies: frozenset[str] = Field(
        default_factory=frozenset,
        description="Names of sibling declarations referenced by this type",
    )
    is_exported: bool = Field(default=True)

    @property
    def is_object_root(self) -> bool:
        return isinstance(self.type, ObjectType)

    @property
    def has_store(self) -> bool:
        """Exported object declarations get a store and a ``default<Name>State``."""
        return self.is_exported and self.is_object_root


class ParseResult(_Node):
    """Output of the introspection front end for one source location."""
    declarations: list[Declaration] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    def by_name(self) -> dict[str, Declaration]:
        """Return the name-indexed declaration arena."""
        return {decl.name: decl for decl in self.declarations}


for _model in (
    ArrayType,
    TupleType,
    UnionType,
    IntersectionType,
    ObjectType,
    RecordType,
    Property,
    Declaration,
    ParseResult,
):
    _model.model_rebuild()


# ---------------------------------------------------------------------------
# Generation context
# ---------------------------------------------------------------------------

class GenerationContext(BaseModel):
    """Per-run diagnostics sink and lookup tables.

    Create one per generation run and discard it afterwards; nothing in here
    is meant to survive across runs.
    """

    warnings: list[str] = Field(default_factory=list, description="Non-fatal diagnostics")
    recursive_types: set[str] = Field(
        default_factory=set, description="Declarations that reference themselves"
    )
    known_types: set[str] = Field(
        default_factory=set,
        description="Declarations depended upon by others (emitted even if not exported)",
    )
    declarations: dict[str, Declaration] = Field(
        default_factory=dict, description="Name-indexed arena for by-name lookups"
    )

    def warn(self, message: str) -> None:
        self.warnings.append(message)
