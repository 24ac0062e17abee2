"""Form component generation (IR -> React/MUI form source text).

The component reads and writes every field through the store generated for
the same declaration and validates against the generated schema:

* scalar fields are bound to ``set<Field>``,
* array fields are bound to ``append<Field>``, ``remove<Field>At`` and
  ``update<Field>At``,
* the reset button calls ``reset<Name>``.

Widget fragments are assembled here; the component shell lives in
``templates/form.tsx.j2``.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel, Field

from shapegen.ir.models import (
    ArrayType,
    Declaration,
    FunctionType,
    GenerationContext,
    LiteralType,
    ObjectType,
    PrimitiveType,
    Property,
    ReferenceType,
    TypeNode,
)
from shapegen.ir.traversal import (
    DATE_PRIMITIVES,
    ResolvedField,
    camel_to_title,
    capitalize,
    default_value_for,
    duplicate_names,
    resolve_property,
    single_quoted,
    string_enum_options,
    ts_literal,
)

from .schema_gen import schema_name
from .store_gen import store_members, store_name
from .templates import TemplateRenderer, default_renderer


# ---------------------------------------------------------------------------
# Options & result
# ---------------------------------------------------------------------------

class FormOptions(BaseModel):
    """Default button labels baked into the generated props."""

    submit_label: str = Field(default="Submit", description="Default submit button label")
    cancel_label: str = Field(default="Cancel", description="Default cancel button label")


class FormBuildResult(BaseModel):
    """A rendered form component plus the identifiers it depends on."""

    component: str = Field(..., description="Component source text")
    schema_name: str = Field(..., description="Validator identifier the form imports")
    store_name: str = Field(..., description="Store hook identifier the form imports")


# Identifiers the component shell declares or imports itself; a store member
# with one of these names would be bound twice in the same scope.
FORM_LOCALS = frozenset({
    "React",
    "z",
    "useState",
    "useCallback",
    "onSubmit",
    "onCancel",
    "submitLabel",
    "cancelLabel",
    "errors",
    "setErrors",
    "touched",
    "setTouched",
    "isSubmitting",
    "setIsSubmitting",
    "submitError",
    "setSubmitError",
    "formData",
    "validateField",
    "handleBlur",
    "validateForm",
    "handleSubmit",
    "handleReset",
    "isDirty",
    "hasErrors",
})


def component_name(name: str) -> str:
    return f"{name}Form"


def props_name(name: str) -> str:
    return f"{name}FormProps"


# ---------------------------------------------------------------------------
# Bindings
# ---------------------------------------------------------------------------

class _Binding(NamedTuple):
    """Where a widget reads its value from and how it writes one back.

    ``field`` is set only for top-level fields, which carry blur, touched and
    error wiring.  Widgets inside array rows and cards are ``compact``.
    """
    value: str
    write: Callable[[str], str]
    field: Optional[str] = None
    compact: bool = False


def _top_binding(name: str) -> _Binding:
    return _Binding(name, lambda v: f"set{capitalize(name)}({v})", field=name)


def _row_binding(array: str) -> _Binding:
    return _Binding(
        "item", lambda v: f"update{capitalize(array)}At(index, {v})", compact=True
    )


def _card_binding(array: str, prop: str) -> _Binding:
    return _Binding(
        f"item.{prop}",
        lambda v: f"update{capitalize(array)}At(index, {{ {prop}: {v} }})",
        compact=True,
    )


def _nested_binding(array: str, obj: str, prop: str) -> _Binding:
    return _Binding(
        f"item.{obj}?.{prop}",
        lambda v: (
            f"update{capitalize(array)}At(index, {{ {obj}: {{ ...item.{obj}, {prop}: {v} }} }})"
        ),
        compact=True,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_form(
    decl: Declaration,
    options: FormOptions,
    ctx: GenerationContext,
    renderer: Optional[TemplateRenderer] = None,
) -> Optional[FormBuildResult]:
    """Render the form component for *decl*, or ``None`` if ineligible."""
    name = decl.name

    if not decl.is_exported:
        ctx.warn(f"Skipping {name}: not exported")
        return None

    if not isinstance(decl.type, ObjectType):
        ctx.warn(f"Skipping {name}: not an object type")
        return None

    fields: list[tuple[Property, ResolvedField]] = []
    for prop in decl.type.properties:
        field = resolve_property(prop)
        if isinstance(field.node, FunctionType):
            ctx.warn(f"Skipping field '{prop.name}' of {name}: function type")
            continue
        fields.append((prop, field))

    scalar = [f for _, f in fields if not isinstance(f.node, ArrayType)]
    arrays = [f for _, f in fields if isinstance(f.node, ArrayType)]

    selectors = [f.name for _, f in fields]
    selectors += [f"set{capitalize(f.name)}" for f in scalar]
    for f in arrays:
        cap = capitalize(f.name)
        selectors += [f"append{cap}", f"remove{cap}At", f"update{cap}At"]
    selectors.append(f"reset{name}")

    clashes = duplicate_names(store_members(name, [f for _, f in fields]))
    if clashes:
        ctx.warn(
            f"Skipping {name}: generated store member(s) defined twice: {', '.join(clashes)}"
        )
        return None

    shadowed = [s for s in selectors if s in FORM_LOCALS]
    if shadowed:
        ctx.warn(
            f"Skipping {component_name(name)}: store member(s) clash with form locals: "
            f"{', '.join(shadowed)}"
        )
        return None

    context = {
        "component_name": component_name(name),
        "props_name": props_name(name),
        "schema_name": schema_name(name),
        "store_name": store_name(name),
        "reset_name": f"reset{name}",
        "lazy_schema": name in ctx.recursive_types,
        "selectors": selectors,
        "field_names": [f.name for _, f in fields],
        "fields": [_field(name, f, ctx) for _, f in fields],
        "submit_label": single_quoted(options.submit_label),
        "cancel_label": single_quoted(options.cancel_label),
    }
    component = (renderer or default_renderer()).render("form.tsx.j2", context)
    return FormBuildResult(
        component=component,
        schema_name=schema_name(name),
        store_name=store_name(name),
    )


# ---------------------------------------------------------------------------
# Field dispatch
# ---------------------------------------------------------------------------

def _field(owner: str, field: ResolvedField, ctx: GenerationContext) -> str:
    """Top-level widget for one resolved field."""
    label = camel_to_title(field.name)
    binding = _top_binding(field.name)
    required = not field.optional

    if isinstance(field.node, ArrayType):
        return _array_field(field, label, required, ctx)

    widget = _scalar_widget(field.node, label, binding, required)
    if widget is not None:
        return widget

    ctx.warn(f"Field '{field.name}' of {owner}: rendered as JSON editor")
    return _json_editor(label, binding, required)


def _scalar_widget(
    node: TypeNode, label: Optional[str], binding: _Binding, required: Optional[bool]
) -> Optional[str]:
    """Widget for a primitive, literal or closed-choice node; ``None`` otherwise."""
    if isinstance(node, PrimitiveType):
        if node.name == "number":
            return _number_field(label, binding, required)
        if node.name == "boolean":
            return _switch_field(label, binding)
        if node.name in DATE_PRIMITIVES:
            return _date_field(label, binding, required)
        return _text_field(label, binding, required)

    options = string_enum_options(node)
    if options is not None:
        return _select_field(label, binding, options, required)

    if isinstance(node, LiteralType) and isinstance(node.value, str):
        return _readonly_field(label, binding, node.value)

    return None


def _object_properties(
    node: Optional[TypeNode], ctx: GenerationContext
) -> Optional[list[Property]]:
    """Properties of an inline object or of a non-recursive object declaration."""
    if isinstance(node, ObjectType):
        return node.properties
    if isinstance(node, ReferenceType) and node.name not in ctx.recursive_types:
        target = ctx.declarations.get(node.name)
        if target is not None and isinstance(target.type, ObjectType):
            return target.type.properties
    return None


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------

def _array_field(
    field: ResolvedField, label: str, required: bool, ctx: GenerationContext
) -> str:
    name = field.name
    cap = capitalize(name)
    element = field.node.element
    items = f"({name} ?? [])" if field.optional or field.nullable else name
    default = default_value_for(element, False, ctx.declarations)

    properties = _object_properties(element, ctx)
    if properties is not None:
        body = _card(name, label, properties, ctx)
        spacing = 2
    else:
        body = _row(name, element, ctx)
        spacing = 1

    marker = " *" if required else ""
    return "\n".join(
        [
            f"<Box onBlur={{() => handleBlur('{name}')}}>",
            "  <Stack direction=\"row\" alignItems=\"center\" justifyContent=\"space-between\" sx={{ mb: 1 }}>",
            f"    <Typography variant=\"subtitle1\">{_jsx_text(label + marker)}</Typography>",
            f"    <Button size=\"small\" startIcon={{<AddIcon />}} onClick={{() => append{cap}({default})}}>",
            "      Add",
            "    </Button>",
            "  </Stack>",
            f"  {{touched['{name}'] && errors['{name}'] && (",
            f"    <FormHelperText error>{{errors['{name}']}}</FormHelperText>",
            "  )}",
            f"  <Stack spacing={{{spacing}}}>",
            f"    {{{items}.map((item, index) => (",
            _indent(body, 6),
            "    ))}",
            f"    {{{items}.length === 0 && (",
            "      <Typography variant=\"body2\" color=\"text.secondary\" sx={{ py: 2, textAlign: 'center' }}>",
            "        No items. Click \"Add\" to add one.",
            "      </Typography>",
            "    )}",
            "  </Stack>",
            "</Box>",
        ]
    )


def _row(array: str, element: Optional[TypeNode], ctx: GenerationContext) -> str:
    """One repeatable single-input row of a primitive array."""
    binding = _row_binding(array)
    widget = None if element is None else _scalar_widget(element, None, binding, None)
    if widget is None:
        ctx.warn(f"Field '{array}': items rendered as JSON editors")
        widget = _json_editor(None, binding, None)

    return "\n".join(
        [
            "<Stack key={index} direction=\"row\" spacing={1} alignItems=\"center\">",
            "  <Box sx={{ flex: 1 }}>",
            _indent(widget, 4),
            "  </Box>",
            _indent(_remove_button(array), 2),
            "</Stack>",
        ]
    )


def _card(
    array: str, label: str, properties: list[Property], ctx: GenerationContext
) -> str:
    """One sub-form card of an object array."""
    subfields = []
    for prop in properties:
        field = resolve_property(prop)
        if isinstance(field.node, FunctionType):
            ctx.warn(f"Skipping field '{array}.{prop.name}': function type")
            continue
        subfields.append(_card_field(array, field, ctx))

    return "\n".join(
        [
            "<Card key={index} variant=\"outlined\" sx={{ p: 2 }}>",
            "  <Stack spacing={2}>",
            "    <Stack direction=\"row\" justifyContent=\"space-between\" alignItems=\"center\">",
            "      <Typography variant=\"subtitle2\" color=\"text.secondary\">",
            f"        {_jsx_text(label)} #{{index + 1}}",
            "      </Typography>",
            _indent(_remove_button(array), 6),
            "    </Stack>",
            *(_indent(s, 4) for s in subfields),
            "  </Stack>",
            "</Card>",
        ]
    )


def _card_field(array: str, field: ResolvedField, ctx: GenerationContext) -> str:
    label = camel_to_title(field.name)
    binding = _card_binding(array, field.name)

    widget = _scalar_widget(field.node, label, binding, None)
    if widget is not None:
        return widget

    properties = None
    if not isinstance(field.node, ArrayType):
        properties = _object_properties(field.node, ctx)
    if properties is not None:
        return _nested_object(array, field.name, label, properties, ctx)

    ctx.warn(f"Field '{array}.{field.name}': rendered as JSON editor")
    return _json_editor(label, binding, None)


def _nested_object(
    array: str, obj: str, label: str, properties: list[Property], ctx: GenerationContext
) -> str:
    """Sub-fields of an object nested inside a card; deeper structure becomes JSON."""
    widgets = []
    for prop in properties:
        field = resolve_property(prop)
        if isinstance(field.node, FunctionType):
            ctx.warn(f"Skipping field '{array}.{obj}.{prop.name}': function type")
            continue
        nested_label = camel_to_title(field.name)
        binding = _nested_binding(array, obj, field.name)
        widget = _scalar_widget(field.node, nested_label, binding, None)
        if widget is None:
            ctx.warn(f"Field '{array}.{obj}.{field.name}': rendered as JSON editor")
            widget = _json_editor(nested_label, binding, None)
        widgets.append(widget)

    return "\n".join(
        [
            "<Box sx={{ border: 1, borderColor: 'divider', borderRadius: 1, p: 2 }}>",
            f"  <Typography variant=\"subtitle2\" sx={{{{ mb: 1 }}}}>{_jsx_text(label)}</Typography>",
            "  <Stack spacing={1}>",
            *(_indent(w, 4) for w in widgets),
            "  </Stack>",
            "</Box>",
        ]
    )


def _remove_button(array: str) -> str:
    return "\n".join(
        [
            "<IconButton",
            "  size=\"small\"",
            "  color=\"error\"",
            "  aria-label=\"Remove\"",
            f"  onClick={{() => remove{capitalize(array)}At(index)}}",
            ">",
            "  <DeleteIcon />",
            "</IconButton>",
        ]
    )


# ---------------------------------------------------------------------------
# Widgets
# ---------------------------------------------------------------------------

def _common_attrs(label: Optional[str], binding: _Binding) -> list[str]:
    attrs = ["fullWidth"]
    if binding.compact:
        attrs.append('size="small"')
    if label is not None:
        attrs.append(f"label={_jsx_attr(label)}")
    return attrs


def _validation_attrs(
    binding: _Binding, required: Optional[bool], hint: Optional[str] = None
) -> list[str]:
    attrs = []
    if binding.field is not None:
        f = binding.field
        attrs.append(f"onBlur={{() => handleBlur('{f}')}}")
        attrs.append(f"error={{touched['{f}'] && !!errors['{f}']}}")
        if hint is None:
            attrs.append(f"helperText={{touched['{f}'] && errors['{f}']}}")
        else:
            attrs.append(f"helperText={{touched['{f}'] ? errors['{f}'] || '{hint}' : '{hint}'}}")
    if required is not None:
        attrs.append(f"required={{{ts_literal(required)}}}")
    return attrs


def _text_field(label, binding: _Binding, required) -> str:
    attrs = _common_attrs(label, binding) + [
        f"value={{{binding.value} ?? ''}}",
        f"onChange={{(e) => {binding.write('e.target.value')}}}",
    ]
    return _element("TextField", attrs + _validation_attrs(binding, required))


def _number_field(label, binding: _Binding, required) -> str:
    attrs = _common_attrs(label, binding) + [
        'type="number"',
        f"value={{{binding.value} ?? ''}}",
        "onChange={(e) => "
        + binding.write("e.target.value === '' ? 0 : Number(e.target.value)")
        + "}",
    ]
    return _element("TextField", attrs + _validation_attrs(binding, required))


def _date_field(label, binding: _Binding, required) -> str:
    v = binding.value
    attrs = _common_attrs(label, binding) + [
        'type="date"',
        f"value={{{v} instanceof Date ? {v}.toISOString().split('T')[0] : ''}}",
        "onChange={(e) => "
        + binding.write("e.target.value ? new Date(e.target.value) : new Date()")
        + "}",
        "slotProps={{ inputLabel: { shrink: true } }}",
    ]
    return _element("TextField", attrs + _validation_attrs(binding, required))


def _readonly_field(label, binding: _Binding, value: str) -> str:
    attrs = _common_attrs(label, binding) + [
        f"value={{{binding.value} ?? {ts_literal(value)}}}",
        "slotProps={{ input: { readOnly: true } }}",
    ]
    return _element("TextField", attrs)


def _switch_field(label, binding: _Binding) -> str:
    switch = [
        f"checked={{{binding.value} ?? false}}",
        f"onChange={{(e) => {binding.write('e.target.checked')}}}",
    ]
    if binding.field is not None:
        switch.append(f"onBlur={{() => handleBlur('{binding.field}')}}")
    if label is None:
        return _element("Switch", switch)

    return "\n".join(
        [
            "<FormControlLabel",
            "  control={",
            _indent(_element("Switch", switch), 4),
            "  }",
            f"  label={_jsx_attr(label)}",
            "/>",
        ]
    )


def _select_field(label, binding: _Binding, options: list[str], required) -> str:
    menu = [
        f"<MenuItem value={_jsx_attr(opt)}>{_jsx_text(camel_to_title(opt))}</MenuItem>"
        for opt in options
    ]
    select = [f"value={{{binding.value} ?? ''}}"]
    if label is not None:
        select.append(f"label={_jsx_attr(label)}")
    if binding.field is not None:
        f = binding.field
        select.append(f"onChange={{(e) => {binding.write(f'e.target.value as typeof {f}')}}}")
        select.append(f"onBlur={{() => handleBlur('{f}')}}")
    else:
        select.append(f"onChange={{(e) => {binding.write('e.target.value')}}}")

    control = ["fullWidth"]
    if binding.compact:
        control.append('size="small"')
    if binding.field is not None:
        control.append(f"error={{touched['{binding.field}'] && !!errors['{binding.field}']}}")
    if required is not None:
        control.append(f"required={{{ts_literal(required)}}}")

    lines = [f"<FormControl {' '.join(control)}>"]
    if label is not None:
        lines.append(f"  <InputLabel>{_jsx_text(label)}</InputLabel>")
    lines += [
        "  <Select",
        *(f"    {a}" for a in select),
        "  >",
        *(f"    {m}" for m in menu),
        "  </Select>",
    ]
    if binding.field is not None:
        f = binding.field
        lines += [
            f"  {{touched['{f}'] && errors['{f}'] && (",
            f"    <FormHelperText>{{errors['{f}']}}</FormHelperText>",
            "  )}",
        ]
    lines.append("</FormControl>")
    return "\n".join(lines)


def _json_editor(label, binding: _Binding, required) -> str:
    """Raw JSON text area; unparsable input keeps the last valid value."""
    attrs = _common_attrs(label, binding) + [
        "multiline",
        "rows={2}" if binding.compact else "rows={4}",
        f"value={{JSON.stringify({binding.value} ?? null, null, 2)}}",
        "onChange={(e) => {",
        "  try {",
        f"    {binding.write('JSON.parse(e.target.value)')}",
        "  } catch {",
        "    // keep the last valid value",
        "  }",
        "}}",
    ]
    return _element(
        "TextField", attrs + _validation_attrs(binding, required, hint="Enter valid JSON")
    )


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def _element(tag: str, attrs: list[str]) -> str:
    lines = [f"<{tag}"]
    lines += [_indent(a, 2) for a in attrs]
    lines.append("/>")
    return "\n".join(lines)


def _indent(text: str, width: int) -> str:
    pad = " " * width
    return "\n".join(pad + line if line else line for line in text.split("\n"))


def _jsx_attr(text: str) -> str:
    if '"' in text:
        return "{" + ts_literal(text) + "}"
    return f'"{text}"'


def _jsx_text(text: str) -> str:
    if any(c in text for c in "{}<>"):
        return "{" + ts_literal(text) + "}"
    return text
