"""
Tests for engine/mapping.py and engine/codegen.py

Validates:
- Identity and rename_from source field identities
- Effective unpack flag: field override beats the schema-wide default
- Mappings keep target declaration order and relay type expressions verbatim
- Two target fields reading one source field is ConflictingFieldDirective
- Conversion kind selection and unpack check ordering
"""

import pytest

from fromsuper.engine.codegen import build_artifact, conversion_kind
from fromsuper.engine.diagnostics import ConflictingFieldDirectiveError
from fromsuper.engine.mapping import resolve_field, resolve_fields
from fromsuper.engine.models import (
    ConversionKind,
    ConversionSpec,
    FieldMapping,
    MappingDirective,
    SourceReference,
)


def _spec(mappings=None, global_unpack=False, resolved=True):
    return ConversionSpec(
        schema="Foo",
        from_type="Bar",
        global_unpack=global_unpack,
        mappings=mappings or {},
        source_reference=SourceReference("Bar") if resolved else None,
    )


# ---------------------------------------------------------------------------
# resolve_field
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "directive,global_unpack,expected",
    [
        (MappingDirective(), False, ("a", False)),
        (MappingDirective(), True, ("a", True)),
        (MappingDirective(unpack=False), True, ("a", False)),
        (MappingDirective(unpack=True), False, ("a", True)),
        (MappingDirective(source_field="c"), False, ("c", False)),
        (MappingDirective(source_field="c", unpack=True), False, ("c", True)),
    ],
)
def test_resolve_field(directive, global_unpack, expected):
    assert resolve_field("a", directive, global_unpack) == expected


# ---------------------------------------------------------------------------
# resolve_fields
# ---------------------------------------------------------------------------


def test_resolve_fields_in_declaration_order(make_schema):
    target = make_schema("Foo", [("b", "String"), ("a", "u32"), ("new_name", "HashSet<u64>")])
    spec = _spec(
        {"new_name": MappingDirective(source_field="c")},
        global_unpack=True,
    )

    mappings = resolve_fields(spec, target)

    assert [m.target_field for m in mappings] == ["b", "a", "new_name"]
    assert [m.source_field for m in mappings] == ["b", "a", "c"]
    assert all(m.unpack for m in mappings)
    assert [m.type for m in mappings] == ["String", "u32", "HashSet<u64>"]
    assert [m.is_renamed for m in mappings] == [False, False, True]


def test_missing_mapping_entry_uses_defaults(make_schema):
    target = make_schema("Foo", [("a", "u32")])
    (mapping,) = resolve_fields(_spec(), target)
    assert mapping == FieldMapping("a", "a", False, "u32")


def test_rename_onto_declared_field_conflicts(make_schema):
    target = make_schema("Foo", [("a", "u32"), ("b", "u32")])
    spec = _spec({"b": MappingDirective(source_field="a")})

    with pytest.raises(ConflictingFieldDirectiveError) as exc_info:
        resolve_fields(spec, target)
    diagnostic = exc_info.value.diagnostic
    assert diagnostic.field == "b"
    assert diagnostic.key == "rename_from"
    assert "'a'" in diagnostic.message


def test_two_renames_onto_one_source_field_conflict(make_schema):
    target = make_schema("Foo", [("x", "u32"), ("y", "u32")])
    spec = _spec({
        "x": MappingDirective(source_field="c"),
        "y": MappingDirective(source_field="c"),
    })
    with pytest.raises(ConflictingFieldDirectiveError) as exc_info:
        resolve_fields(spec, target)
    assert exc_info.value.diagnostic.field == "y"


def test_swapped_names_do_not_conflict(make_schema):
    target = make_schema("Foo", [("a", "u32"), ("b", "u32")])
    spec = _spec({
        "a": MappingDirective(source_field="b"),
        "b": MappingDirective(source_field="a"),
    })
    mappings = resolve_fields(spec, target)
    assert [(m.target_field, m.source_field) for m in mappings] == [("a", "b"), ("b", "a")]


# ---------------------------------------------------------------------------
# Conversion kind and artifact
# ---------------------------------------------------------------------------


def test_no_unpack_is_infallible():
    mappings = (FieldMapping("a", "a", False, "u32"), FieldMapping("b", "b", False, "String"))
    assert conversion_kind(mappings) is ConversionKind.INFALLIBLE


def test_empty_target_is_infallible():
    assert conversion_kind(()) is ConversionKind.INFALLIBLE


def test_any_unpack_is_fallible():
    mappings = (FieldMapping("a", "a", False, "u32"), FieldMapping("c", "c", True, "u32"))
    assert conversion_kind(mappings) is ConversionKind.FALLIBLE


def test_build_artifact_checks_unpack_fields_in_order(make_schema):
    target = make_schema("Foo", [("d", "ComplexData"), ("b", "String"), ("c", "HashSet<u64>")])
    spec = _spec({"b": MappingDirective(unpack=False)}, global_unpack=True)
    mappings = resolve_fields(spec, target)

    artifact = build_artifact(spec, mappings, target)

    assert artifact.kind is ConversionKind.FALLIBLE
    assert artifact.is_fallible
    assert artifact.entry_point == "try_convert"
    assert [m.target_field for m in artifact.unpack_checks] == ["d", "c"]
    assert [m.target_field for m in artifact.fields] == ["d", "b", "c"]
    assert artifact.source == SourceReference("Bar")
    assert artifact.target_name == "Foo"


def test_build_artifact_infallible(make_schema):
    target = make_schema("Foo", [("a", "u32")])
    spec = _spec()
    artifact = build_artifact(spec, resolve_fields(spec, target), target)
    assert artifact.entry_point == "convert"
    assert artifact.unpack_checks == ()


def test_build_artifact_requires_resolved_spec(make_schema):
    target = make_schema("Foo", [("a", "u32")])
    spec = _spec(resolved=False)
    with pytest.raises(ValueError, match="no resolved source reference"):
        build_artifact(spec, resolve_fields(spec, target), target)
