"""State store generation (IR -> Zustand store source text).

For an object-rooted declaration ``Foo`` this emits, in order:

* ``export interface FooState`` -- the state shape,
* ``export interface FooActions`` -- the action surface,
* ``export const defaultFooState`` -- the synthesised initial state,
* ``export const useFooStore`` -- the store, optionally wrapped in ``persist``.

Every field gets a setter; array fields additionally get the extended
mutation set (prepend, append, insert-at, remove-at, remove-by-predicate,
move, update-at, clear).  ``update<F>At`` replaces primitive items outright and
merges partial updates into object items.
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Sequence

from pydantic import BaseModel, Field

from shapegen.ir.models import (
    ArrayType,
    Declaration,
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
)
from shapegen.ir.traversal import (
    ResolvedField,
    capitalize,
    default_value_for,
    duplicate_names,
    is_object_element,
    resolve_property,
    single_quoted,
    storage_slug,
    ts_literal,
    unwrap_optional_union,
)

from .templates import TemplateRenderer, default_renderer


# ---------------------------------------------------------------------------
# Options & naming
# ---------------------------------------------------------------------------

class StoreOptions(BaseModel):
    """Options for a single store generation call."""

    persist: bool = Field(default=True, description="Persist state to browser storage")
    storage_key: Optional[str] = Field(
        default=None, description="Storage key; defaults to '<name>-storage'"
    )

    def resolved_storage_key(self, name: str) -> str:
        return self.storage_key or storage_slug(name)


def store_name(name: str) -> str:
    return f"use{name}Store"


def state_name(name: str) -> str:
    return f"{name}State"


def actions_name(name: str) -> str:
    return f"{name}Actions"


def default_state_name(name: str) -> str:
    return f"default{name}State"


ARRAY_ACTIONS = (
    "prepend{}",
    "append{}",
    "insert{}At",
    "remove{}At",
    "remove{}",
    "move{}",
    "update{}At",
    "clear{}",
)


def store_members(name: str, fields: Sequence[ResolvedField]) -> list[str]:
    """Every member the generated store exposes: fields, bulk actions, field actions."""
    members = [f.name for f in fields] + [f"set{name}", f"reset{name}"]
    for f in fields:
        cap = capitalize(f.name)
        members.append(f"set{cap}")
        if isinstance(f.node, ArrayType):
            members.extend(action.format(cap) for action in ARRAY_ACTIONS)
    return members


class _StoreField(NamedTuple):
    prop: Property
    field: ResolvedField

    @property
    def is_array(self) -> bool:
        return isinstance(self.field.node, ArrayType)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_store(
    decl: Declaration,
    options: StoreOptions,
    ctx: GenerationContext,
    renderer: Optional[TemplateRenderer] = None,
) -> Optional[str]:
    """Render the store module body for *decl*, or ``None`` if ineligible."""
    name = decl.name

    if not decl.is_exported:
        ctx.warn(f"Skipping {name}: not exported")
        return None

    if not isinstance(decl.type, ObjectType):
        ctx.warn(f"Skipping {name}: not an object type")
        return None

    fields = collect_store_fields(decl, ctx)

    signatures = [
        f"  set{name}: (state: Partial<{state_name(name)}>) => void",
        f"  reset{name}: () => void",
    ]
    entries = [
        [f"...{default_state_name(name)}"],
        [f"set{name}: (state) => set(state)"],
        [f"reset{name}: () => set({default_state_name(name)})"],
    ]
    for sf in fields:
        sigs, impls = _field_actions(name, sf, ctx)
        signatures.extend(sigs)
        entries.extend(impls)

    clashes = duplicate_names(store_members(name, [sf.field for sf in fields]))
    if clashes:
        ctx.warn(
            f"Skipping {name}: generated store member(s) defined twice: {', '.join(clashes)}"
        )
        return None

    indent = "    " if options.persist else "  "
    context = {
        "state_name": state_name(name),
        "actions_name": actions_name(name),
        "default_name": default_state_name(name),
        "store_name": store_name(name),
        "state_fields": "\n".join(_state_field(sf, ctx) for sf in fields),
        "action_signatures": "\n".join(signatures),
        "default_fields": "\n".join(
            f"  {sf.prop.name}: {_field_default(sf, ctx)}," for sf in fields
        ),
        "persist": options.persist,
        "storage_key": single_quoted(options.resolved_storage_key(name)),
        "store_body": _store_body(entries, indent),
    }
    return (renderer or default_renderer()).render("store.ts.j2", context)


def collect_store_fields(decl: Declaration, ctx: GenerationContext) -> list[_StoreField]:
    """Resolve the declaration's properties, dropping function-typed ones."""
    fields = []
    for prop in decl.type.properties:
        field = resolve_property(prop)
        if isinstance(field.node, FunctionType):
            ctx.warn(f"Skipping field '{prop.name}' of {decl.name}: function type")
            continue
        fields.append(_StoreField(prop, field))
    return fields


# ---------------------------------------------------------------------------
# TypeScript type rendering
# ---------------------------------------------------------------------------

def type_to_typescript(node: Optional[TypeNode], ctx: GenerationContext) -> str:
    """Render the TypeScript type text for an IR node."""
    if node is None:
        return "unknown"

    if isinstance(node, PrimitiveType):
        return "Date" if node.name == "date" else node.name

    if isinstance(node, LiteralType):
        return ts_literal(node.value)

    if isinstance(node, ArrayType):
        if node.element is None:
            return "unknown[]"
        element = type_to_typescript(node.element, ctx)
        if isinstance(node.element, (UnionType, IntersectionType, FunctionType)):
            element = f"({element})"
        return f"{element}[]"

    if isinstance(node, TupleType):
        return f"[{', '.join(type_to_typescript(e, ctx) for e in node.elements)}]"

    if isinstance(node, UnionType):
        if not node.members:
            return "never"
        return " | ".join(type_to_typescript(m, ctx) for m in node.members)

    if isinstance(node, IntersectionType):
        if not node.members:
            return "unknown"
        return " & ".join(type_to_typescript(m, ctx) for m in node.members)

    if isinstance(node, ObjectType):
        if not node.properties:
            return "{}"
        parts = []
        for prop in node.properties:
            field = resolve_property(prop)
            inner = unwrap_optional_union(prop.type).node
            mark = "?" if field.optional else ""
            parts.append(f"{prop.name}{mark}: {type_to_typescript(inner, ctx)}")
        return f"{{ {'; '.join(parts)} }}"

    if isinstance(node, ReferenceType):
        target = ctx.declarations.get(node.name)
        if target is None or target.has_store:
            return state_name(node.name)
        return node.name

    if isinstance(node, RecordType):
        if node.key is None or node.value is None:
            return "Record<string, unknown>"
        return (
            f"Record<{type_to_typescript(node.key, ctx)}, "
            f"{type_to_typescript(node.value, ctx)}>"
        )

    if isinstance(node, EnumType):
        if not node.values:
            return "never"
        return " | ".join(ts_literal(v.value) for v in node.values)

    if isinstance(node, FunctionType):
        return "(() => void)"

    return "unknown"


# ---------------------------------------------------------------------------
# Section builders
# ---------------------------------------------------------------------------

def _state_field(sf: _StoreField, ctx: GenerationContext) -> str:
    inner = unwrap_optional_union(sf.prop.type).node
    mark = "?" if sf.field.optional else ""
    return f"  {sf.prop.name}{mark}: {type_to_typescript(inner, ctx)}"


def _field_default(sf: _StoreField, ctx: GenerationContext) -> str:
    return default_value_for(sf.prop.type, sf.field.optional, ctx.declarations)


def _field_actions(
    name: str, sf: _StoreField, ctx: GenerationContext
) -> tuple[list[str], list[list[str]]]:
    """Signatures and implementation entries for one field."""
    key = sf.prop.name
    cap = capitalize(key)
    value_type = f"{state_name(name)}['{key}']"
    if sf.field.optional:
        value_type += " | undefined"

    signatures = [f"  set{cap}: (value: {value_type}) => void"]
    entries = [[f"set{cap}: (value) => set({{ {key}: value }})"]]
    if not sf.is_array:
        return signatures, entries

    array = sf.field.node
    item = type_to_typescript(array.element, ctx)
    merge = is_object_element(array.element, ctx.declarations)
    # Optional and nullable arrays may hold undefined/null until first write.
    current = f"(state.{key} ?? [])" if sf.field.optional or sf.field.nullable else f"state.{key}"

    update_input = f"Partial<{item}>" if merge else item
    signatures += [
        f"  prepend{cap}: (item: {item}) => void",
        f"  append{cap}: (item: {item}) => void",
        f"  insert{cap}At: (index: number, item: {item}) => void",
        f"  remove{cap}At: (index: number) => void",
        f"  remove{cap}: (predicate: (item: {item}, index: number) => boolean) => void",
        f"  move{cap}: (fromIndex: number, toIndex: number) => void",
        f"  update{cap}At: (index: number, item: {update_input} | ((item: {item}) => {item})) => void",
        f"  clear{cap}: () => void",
    ]

    if merge:
        update = [
            f"update{cap}At: (index, update) => set((state) => {{",
            f"  const next = [...{current}]",
            "  const current = next[index]",
            "  next[index] = typeof update === 'function'",
            "    ? update(current)",
            "    : { ...current, ...update }",
            f"  return {{ {key}: next }}",
            "})",
        ]
    else:
        update = [
            f"update{cap}At: (index, update) => set((state) => {{",
            f"  const next = [...{current}]",
            "  next[index] = typeof update === 'function' ? update(next[index]) : update",
            f"  return {{ {key}: next }}",
            "})",
        ]

    entries += [
        [f"prepend{cap}: (item) => set((state) => ({{ {key}: [item, ...{current}] }}))"],
        [f"append{cap}: (item) => set((state) => ({{ {key}: [...{current}, item] }}))"],
        [
            f"insert{cap}At: (index, item) => set((state) => {{",
            f"  const next = [...{current}]",
            "  next.splice(index, 0, item)",
            f"  return {{ {key}: next }}",
            "})",
        ],
        [
            f"remove{cap}At: (index) => set((state) => ({{",
            f"  {key}: {current}.filter((_, i) => i !== index),",
            "}))",
        ],
        [
            f"remove{cap}: (predicate) => set((state) => ({{",
            f"  {key}: {current}.filter((item, index) => !predicate(item, index)),",
            "}))",
        ],
        [
            f"move{cap}: (fromIndex, toIndex) => set((state) => {{",
            f"  const next = [...{current}]",
            "  const [item] = next.splice(fromIndex, 1)",
            "  next.splice(toIndex, 0, item)",
            f"  return {{ {key}: next }}",
            "})",
        ],
        update,
        [f"clear{cap}: () => set({{ {key}: [] }})"],
    ]
    return signatures, entries


def _store_body(entries: list[list[str]], indent: str) -> str:
    """Lay out the ``(set) => ({ ... })`` initializer.

    The first line sits wherever the template places it; later lines are
    indented by *indent* so they line up under it.
    """
    lines = ["(set) => ({"]
    for entry in entries:
        for i, line in enumerate(entry):
            suffix = "," if i == len(entry) - 1 else ""
            lines.append(f"  {line}{suffix}")
    lines.append("})")
    return lines[0] + "".join(f"\n{indent}{line}" for line in lines[1:])

