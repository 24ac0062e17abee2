"""Tests for form component generation (shapegen.generators.form_gen).

Covers:
- Eligibility and the FormBuildResult identifiers
- Store bindings (scalar setters vs. array actions)
- Widget selection per resolved field kind
- Repeatable rows and sub-form cards for arrays
- Submission, validation and reset wiring in the component shell
"""

from __future__ import annotations

import pytest

from shapegen.generators.form_gen import FormBuildResult, FormOptions, build_form
from shapegen.ir.models import (
    ArrayType,
    Declaration,
    FunctionType,
    LiteralType,
    ObjectType,
    PrimitiveType,
    Property,
    ReferenceType,
    UnionType,
)

pytestmark = pytest.mark.unit

STRING = PrimitiveType(name="string")


def _decl(name: str, *props: Property, exported: bool = True) -> Declaration:
    return Declaration(name=name, type=ObjectType(properties=list(props)), is_exported=exported)


def _widget(component: str, field: str) -> str:
    """The rendered widget block that wires blur handling for *field*."""
    blocks = [b for b in component.split("\n\n") if f"handleBlur('{field}')" in b]
    assert len(blocks) == 1, f"expected one widget for {field}"
    return blocks[0]


# ---------------------------------------------------------------------------
# Eligibility & result
# ---------------------------------------------------------------------------


class TestBuildForm:
    def test_result_identifiers(self, order_decl, ctx):
        result = build_form(order_decl, FormOptions(), ctx)
        assert isinstance(result, FormBuildResult)
        assert result.schema_name == "OrderSchema"
        assert result.store_name == "useOrderStore"
        assert "export function OrderForm({" in result.component
        assert "export interface OrderFormProps {" in result.component

    def test_unexported_skipped(self, ctx):
        decl = _decl("Hidden", Property(name="a", type=STRING), exported=False)
        assert build_form(decl, FormOptions(), ctx) is None
        assert ctx.warnings == ["Skipping Hidden: not exported"]

    def test_non_object_skipped(self, ctx):
        assert build_form(Declaration(name="Id", type=STRING), FormOptions(), ctx) is None
        assert ctx.warnings == ["Skipping Id: not an object type"]

    def test_function_fields_skipped(self, ctx):
        decl = _decl("Widget", Property(name="label", type=STRING), Property(name="onClick", type=FunctionType()))
        component = build_form(decl, FormOptions(), ctx).component
        assert "onClick" not in component.split("return (")[0]
        assert "const formData = { label }" in component
        assert ctx.warnings == ["Skipping field 'onClick' of Widget: function type"]

    def test_idempotent(self, profile_decl, address_decl, make_context):
        first = build_form(profile_decl, FormOptions(), make_context(profile_decl, address_decl))
        second = build_form(profile_decl, FormOptions(), make_context(profile_decl, address_decl))
        assert first == second

    def test_field_named_like_form_state_skipped(self, ctx):
        decl = _decl("Report", Property(name="errors", type=ArrayType(element=STRING)))
        assert build_form(decl, FormOptions(), ctx) is None
        assert ctx.warnings == [
            "Skipping ReportForm: store member(s) clash with form locals: errors"
        ]

    def test_setter_clashing_with_field_skipped(self, ctx):
        decl = _decl(
            "Report",
            Property(name="name", type=STRING),
            Property(name="setName", type=STRING),
        )
        assert build_form(decl, FormOptions(), ctx) is None
        assert ctx.warnings == [
            "Skipping Report: generated store member(s) defined twice: setName"
        ]

    def test_array_action_clashing_with_field_skipped(self, ctx):
        decl = _decl(
            "Report",
            Property(name="tags", type=ArrayType(element=STRING)),
            Property(name="clearTags", type=STRING),
        )
        assert build_form(decl, FormOptions(), ctx) is None
        assert ctx.warnings == [
            "Skipping Report: generated store member(s) defined twice: clearTags"
        ]


# ---------------------------------------------------------------------------
# Shell
# ---------------------------------------------------------------------------


class TestShell:
    def test_store_bindings(self, order_decl, ctx):
        component = build_form(order_decl, FormOptions(), ctx).component
        assert (
            "  const { id, status, tags, setId, setStatus, appendTags, removeTagsAt, "
            "updateTagsAt, resetOrder } = useOrderStore()"
        ) in component
        assert "setTags" not in component

    def test_default_labels_from_options(self, order_decl, ctx):
        component = build_form(
            order_decl, FormOptions(submit_label="Place order", cancel_label="Back"), ctx
        ).component
        assert "  submitLabel = 'Place order'," in component
        assert "  cancelLabel = 'Back'," in component

    def test_field_level_validation_uses_shape(self, order_decl, ctx):
        component = build_form(order_decl, FormOptions(), ctx).component
        assert "OrderSchema.shape[field as keyof typeof OrderSchema.shape]" in component
        assert "const result = OrderSchema.safeParse(formData)" in component

    def test_recursive_root_validates_whole_object(self, make_context):
        tree = _decl(
            "Tree",
            Property(name="label", type=STRING),
            Property(name="children", type=ArrayType(element=ReferenceType(name="Tree"))),
        )
        tree = tree.model_copy(update={"dependencies": frozenset({"Tree"})})
        component = build_form(tree, FormOptions(), make_context(tree)).component
        assert ".shape[" not in component
        assert "const result = TreeSchema.safeParse({ ...formData, [field]: value })" in component
        assert "result.error.issues.find((i) => i.path[0]?.toString() === field)" in component
        assert "  }, [formData])" in component

    def test_submit_guards(self, order_decl, ctx):
        component = build_form(order_decl, FormOptions(), ctx).component
        assert "if (isSubmitting) return" in component
        assert "disabled={isSubmitting || hasErrors}" in component
        assert "} finally {\n      setIsSubmitting(false)\n    }" in component
        assert "setSubmitError(err instanceof Error ? err.message : 'An error occurred')" in component

    def test_reset_clears_state(self, order_decl, ctx):
        component = build_form(order_decl, FormOptions(), ctx).component
        assert (
            "  const handleReset = () => {\n"
            "    resetOrder()\n"
            "    setErrors({})\n"
            "    setTouched({})\n"
            "    setSubmitError(null)\n"
            "  }"
        ) in component

    def test_fields_indented_inside_stack(self, order_decl, ctx):
        component = build_form(order_decl, FormOptions(), ctx).component
        assert "\n\n        <TextField\n          fullWidth\n          label=\"Id\"\n" in component


# ---------------------------------------------------------------------------
# Widgets
# ---------------------------------------------------------------------------


class TestWidgets:
    @pytest.fixture
    def profile_form(self, profile_decl, address_decl, make_context):
        ctx = make_context(profile_decl, address_decl)
        return build_form(profile_decl, FormOptions(), ctx).component, ctx

    def test_text_input(self, profile_form):
        widget = _widget(profile_form[0], "displayName")
        assert 'label="Display Name"' in widget
        assert "onChange={(e) => setDisplayName(e.target.value)}" in widget
        assert "required={true}" in widget

    def test_optional_fields_not_required(self, profile_form):
        assert "required={false}" in _widget(profile_form[0], "notes")
        assert "required={false}" in _widget(profile_form[0], "nickname")

    def test_number_input_coerces_blank_to_zero(self, profile_form):
        widget = _widget(profile_form[0], "age")
        assert 'type="number"' in widget
        assert "setAge(e.target.value === '' ? 0 : Number(e.target.value))" in widget

    def test_switch(self, profile_form):
        widget = _widget(profile_form[0], "active")
        assert "<Switch" in widget
        assert "checked={active ?? false}" in widget
        assert "setActive(e.target.checked)" in widget

    def test_date_input(self, profile_form):
        widget = _widget(profile_form[0], "birthday")
        assert 'type="date"' in widget
        assert "birthday instanceof Date ? birthday.toISOString().split('T')[0] : ''" in widget
        assert "slotProps={{ inputLabel: { shrink: true } }}" in widget

    def test_enum_select(self, profile_form):
        widget = _widget(profile_form[0], "role")
        assert '<MenuItem value="admin">Admin</MenuItem>' in widget
        assert '<MenuItem value="member">Member</MenuItem>' in widget

    def test_reference_falls_back_to_json(self, profile_form):
        component, ctx = profile_form
        widget = _widget(component, "home")
        assert "JSON.stringify(home ?? null, null, 2)" in widget
        assert "setHome(JSON.parse(e.target.value))" in widget
        assert "Field 'home' of Profile: rendered as JSON editor" in ctx.warnings

    def test_string_literal_is_read_only(self, ctx):
        decl = _decl("Account", Property(name="kind", type=LiteralType(value="user")))
        component = build_form(decl, FormOptions(), ctx).component
        assert 'value={kind ?? "user"}' in component
        assert "slotProps={{ input: { readOnly: true } }}" in component

    def test_select_option_labels_are_humanised(self, ctx):
        status = UnionType(members=[LiteralType(value="inProgress"), LiteralType(value="done")])
        component = build_form(_decl("Task", Property(name="status", type=status)), FormOptions(), ctx).component
        assert '<MenuItem value="inProgress">In Progress</MenuItem>' in component
        assert "setStatus(e.target.value as typeof status)" in component

    def test_option_with_quote_uses_expression(self, ctx):
        status = UnionType(members=[LiteralType(value='say "hi"')])
        component = build_form(_decl("Greeting", Property(name="text", type=status)), FormOptions(), ctx).component
        assert '<MenuItem value={"say \\"hi\\""}>' in component


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------


class TestArrays:
    def test_primitive_rows(self, order_decl, ctx):
        widget = _widget(build_form(order_decl, FormOptions(), ctx).component, "tags")
        assert "onClick={() => appendTags('')}" in widget
        assert "{tags.map((item, index) => (" in widget
        assert "onChange={(e) => updateTagsAt(index, e.target.value)}" in widget
        assert "onClick={() => removeTagsAt(index)}" in widget
        assert "Tags *" in widget

    def test_optional_array_reads_through_fallback(self, profile_decl, make_context):
        component = build_form(profile_decl, FormOptions(), make_context(profile_decl)).component
        widget = _widget(component, "scores")
        assert "{(scores ?? []).map((item, index) => (" in widget
        assert "onClick={() => appendScores(0)}" in widget
        assert "updateScoresAt(index, e.target.value === '' ? 0 : Number(e.target.value))" in widget
        assert "Scores *" not in widget

    def test_object_cards(self, profile_decl, address_decl, make_context):
        ctx = make_context(profile_decl, address_decl)
        widget = _widget(build_form(profile_decl, FormOptions(), ctx).component, "contacts")
        assert "<Card key={index} variant=\"outlined\" sx={{ p: 2 }}>" in widget
        assert "Contacts #{index + 1}" in widget
        assert (
            "onClick={() => appendContacts({ email: '', primary: false, "
            "address: defaultAddressState, labels: [] })}"
        ) in widget
        assert "updateContactsAt(index, { email: e.target.value })" in widget
        assert "updateContactsAt(index, { primary: e.target.checked })" in widget

    def test_nested_object_inside_card(self, profile_decl, address_decl, make_context):
        ctx = make_context(profile_decl, address_decl)
        widget = _widget(build_form(profile_decl, FormOptions(), ctx).component, "contacts")
        assert "value={item.address?.zipCode ?? ''}" in widget
        assert (
            "updateContactsAt(index, { address: { ...item.address, zipCode: e.target.value } })"
        ) in widget

    def test_nested_array_inside_card_is_json(self, profile_decl, address_decl, make_context):
        ctx = make_context(profile_decl, address_decl)
        widget = _widget(build_form(profile_decl, FormOptions(), ctx).component, "contacts")
        assert "updateContactsAt(index, { labels: JSON.parse(e.target.value) })" in widget
        assert "Field 'contacts.labels': rendered as JSON editor" in ctx.warnings

    def test_unresolved_reference_in_card_is_json(self, profile_decl, make_context):
        ctx = make_context(profile_decl)
        widget = _widget(build_form(profile_decl, FormOptions(), ctx).component, "contacts")
        assert "updateContactsAt(index, { address: JSON.parse(e.target.value) })" in widget

    def test_array_of_arrays_rows_are_json(self, ctx):
        decl = _decl("Grid", Property(name="rows", type=ArrayType(element=ArrayType(element=STRING))))
        widget = _widget(build_form(decl, FormOptions(), ctx).component, "rows")
        assert "updateRowsAt(index, JSON.parse(e.target.value))" in widget
        assert "Field 'rows': items rendered as JSON editors" in ctx.warnings
