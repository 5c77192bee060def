"""
Tests for backend/python.py

Generated functions are compiled with load_conversion and run against real
objects. Validates:
- Infallible conversions copy every field verbatim, None included
- Fallible conversions return the target when every unpacked field is set
- The first unpacked field that is None, in target declaration order, is
  reported and later fields are never read
- rename_from redirects the read even when a same-named source field exists
- A partially instantiated generic conversion works for any free type
- Module rendering: header, conditional imports, TypeVars, __all__, determinism
"""

from dataclasses import dataclass
from types import SimpleNamespace
from typing import Generic, TypeVar

import pytest

from fromsuper.backend.python import PythonCodegen, camel_to_snake, function_name, load_conversion
from fromsuper.engine import generate
from fromsuper.runtime import MissingFieldError

T = TypeVar("T")


@dataclass
class Foo:
    a: int
    c: set


@dataclass
class Unpacked:
    b: str
    c: set
    d: dict


@dataclass
class Pair(Generic[T]):
    x: list[T]
    z: int


@dataclass
class Renamed:
    new_name: set


@dataclass
class Unit:
    pass


def _source(**fields):
    base = dict(a=5, b="bee", c={1, 2}, d={"k": 1}, e=None)
    base.update(fields)
    return SimpleNamespace(**base)


@pytest.fixture
def foo_artifact(make_schema):
    return generate(make_schema("Foo", [("a", "int"), ("c", "set[int]")]), 'from_type = "Bar"')


@pytest.fixture
def unpacked_artifact(make_schema):
    target = make_schema("Unpacked", [("b", "str | None"), ("c", "set[int]"), ("d", "dict")])
    return generate(target, "from_type='Bar', unpack=True", {"b": "unpack=False"})


# ---------------------------------------------------------------------------
# Infallible conversions
# ---------------------------------------------------------------------------


def test_render_infallible_function(foo_artifact):
    assert PythonCodegen().render_function(foo_artifact) == (
        "def foo_from_bar(value: Bar) -> Foo:\n"
        '    """Convert Bar into Foo."""\n'
        "    return Foo(\n"
        "        a=value.a,\n"
        "        c=value.c,\n"
        "    )\n"
    )


def test_infallible_copies_fields(foo_artifact):
    convert = load_conversion(foo_artifact, {"Foo": Foo})
    assert convert(_source()) == Foo(a=5, c={1, 2})


def test_infallible_passes_none_through(foo_artifact):
    convert = load_conversion(foo_artifact, {"Foo": Foo})
    assert convert(_source(c=None)) == Foo(a=5, c=None)


def test_empty_target(make_schema):
    artifact = generate(make_schema("Unit", []), 'from_type = "Bar"')
    assert "    return Unit()\n" in PythonCodegen().render_function(artifact)
    assert load_conversion(artifact, {"Unit": Unit})(_source()) == Unit()


# ---------------------------------------------------------------------------
# Fallible conversions
# ---------------------------------------------------------------------------


def test_render_fallible_checks(unpacked_artifact):
    text = PythonCodegen().render_function(unpacked_artifact)
    assert text.startswith("def try_unpacked_from_bar(value: Bar) -> Unpacked:\n")
    assert (
        "    field_c = value.c\n"
        "    if field_c is None:\n"
        "        raise MissingFieldError('c', 'c', 'Bar')\n"
    ) in text
    assert "        b=value.b,\n" in text
    assert "        c=field_c,\n" in text
    assert "field_b" not in text
    assert text.index("field_c = value.c") < text.index("field_d = value.d")


def test_fallible_all_present(unpacked_artifact):
    try_convert = load_conversion(unpacked_artifact, {"Unpacked": Unpacked})
    assert try_convert(_source(b=None)) == Unpacked(b=None, c={1, 2}, d={"k": 1})


def test_first_missing_field_wins(unpacked_artifact):
    try_convert = load_conversion(unpacked_artifact, {"Unpacked": Unpacked})
    with pytest.raises(MissingFieldError) as exc_info:
        try_convert(_source(c=None, d=None))
    assert exc_info.value.field == "c"
    assert exc_info.value.source == "Bar"


def test_later_missing_field_reported(unpacked_artifact):
    try_convert = load_conversion(unpacked_artifact, {"Unpacked": Unpacked})
    with pytest.raises(MissingFieldError) as exc_info:
        try_convert(_source(d=None))
    assert exc_info.value.field == "d"


def test_fails_fast_without_reading_later_fields(unpacked_artifact):
    class Source:
        b = "bee"
        c = None

        @property
        def d(self):
            raise AssertionError("d must not be read after c is found missing")

    try_convert = load_conversion(unpacked_artifact, {"Unpacked": Unpacked})
    with pytest.raises(MissingFieldError):
        try_convert(Source())


def test_falsy_values_are_not_missing(unpacked_artifact):
    try_convert = load_conversion(unpacked_artifact, {"Unpacked": Unpacked})
    assert try_convert(_source(c=set(), d={})) == Unpacked(b="bee", c=set(), d={})


def test_field_named_value(make_schema):
    artifact = generate(make_schema("Wrapper", [("value", "int")]), 'from_type = "Bar", unpack')

    @dataclass
    class Wrapper:
        value: int

    try_convert = load_conversion(artifact, {"Wrapper": Wrapper})
    assert try_convert(SimpleNamespace(value=3)) == Wrapper(value=3)
    with pytest.raises(MissingFieldError):
        try_convert(SimpleNamespace(value=None))


# ---------------------------------------------------------------------------
# Renames and generics
# ---------------------------------------------------------------------------


def test_rename_reads_named_source_field(make_schema):
    artifact = generate(
        make_schema("Renamed", [("new_name", "set[int]")]),
        'from_type = "Bar"',
        {"new_name": 'rename_from = "c"'},
    )
    convert = load_conversion(artifact, {"Renamed": Renamed})
    assert convert(_source(new_name="decoy")) == Renamed(new_name={1, 2})


def test_renamed_unpack_reports_both_names(make_schema):
    artifact = generate(
        make_schema("Renamed", [("new_name", "set[int]")]),
        'from_type = "Bar"',
        {"new_name": 'rename_from = "c", unpack = true'},
    )
    try_convert = load_conversion(artifact, {"Renamed": Renamed})
    with pytest.raises(MissingFieldError) as exc_info:
        try_convert(_source(c=None, new_name={9}))
    assert exc_info.value.field == "new_name"
    assert exc_info.value.source_field == "c"


def test_generic_partial_instantiation(make_schema):
    target = make_schema("Pair", [("x", "list[T]"), ("z", "int")], params=["T"])
    artifact = generate(target, 'from_type = "Bar[#T, int]"')

    text = PythonCodegen().render_function(artifact)
    assert text.startswith("def pair_from_bar(value: Bar[T, int]) -> Pair[T]:\n")

    convert = load_conversion(artifact, {"Pair": Pair})
    assert convert(SimpleNamespace(x=[1, 2], y=[], z=7)) == Pair(x=[1, 2], z=7)
    assert convert(SimpleNamespace(x=["a"], y=[], z=8)) == Pair(x=["a"], z=8)


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Foo", "foo"),
        ("ParserOutput", "parser_output"),
        ("HTTPResponse", "http_response"),
        ("Vec3D", "vec3_d"),
    ],
)
def test_camel_to_snake(name, expected):
    assert camel_to_snake(name) == expected


def test_function_name_uses_short_source_name(make_schema):
    artifact = generate(
        make_schema("FooBar", [("a", "int")]),
        'from_type = "models.BigRecord", unpack = true',
    )
    assert function_name(artifact) == "try_foo_bar_from_big_record"


# ---------------------------------------------------------------------------
# Module rendering
# ---------------------------------------------------------------------------


def test_module_header_and_exports(foo_artifact, unpacked_artifact):
    codegen = PythonCodegen(imports=["from models import Bar, Foo, Unpacked"], source_label="models.py")
    text = codegen.generate([foo_artifact, unpacked_artifact])

    assert text.startswith(
        "# AUTO-GENERATED by fromsuper\n"
        "# DO NOT EDIT MANUALLY\n"
        "# Source: models.py\n"
    )
    assert "from __future__ import annotations\n" in text
    assert "from fromsuper.runtime import MissingFieldError\n" in text
    assert "from models import Bar, Foo, Unpacked\n" in text
    assert "TypeVar" not in text
    assert '__all__ = [\n    "foo_from_bar",\n    "try_unpacked_from_bar",\n]\n' in text
    assert text.index("def foo_from_bar") < text.index("def try_unpacked_from_bar")


def test_module_without_fallible_skips_runtime_import(foo_artifact):
    text = PythonCodegen().generate([foo_artifact])
    assert "MissingFieldError" not in text
    assert "# Source:" not in text


def test_module_declares_type_vars_once(make_schema):
    first = generate(make_schema("Pair", [("x", "list[T]")], params=["T"]), 'from_type = "Bar[#T]"')
    second = generate(make_schema("Other", [("x", "list[T]")], params=["T"]), 'from_type = "Baz[#T]"')
    text = PythonCodegen().generate([first, second])
    assert "from typing import TypeVar\n" in text
    assert text.count('T = TypeVar("T")') == 1


def test_module_output_is_deterministic(foo_artifact, unpacked_artifact):
    codegen = PythonCodegen(source_label="models.py")
    assert codegen.generate([foo_artifact, unpacked_artifact]) == codegen.generate(
        [foo_artifact, unpacked_artifact]
    )


def test_generated_module_executes(foo_artifact, unpacked_artifact):
    text = PythonCodegen().generate([foo_artifact, unpacked_artifact])
    namespace = {"Foo": Foo, "Unpacked": Unpacked}
    exec(compile(text, "<generated>", "exec"), namespace)

    assert namespace["__all__"] == ["foo_from_bar", "try_unpacked_from_bar"]
    assert namespace["foo_from_bar"](_source()) == Foo(a=5, c={1, 2})
    with pytest.raises(MissingFieldError):
        namespace["try_unpacked_from_bar"](_source(d=None))
