"""Tests for runtime.py (MissingFieldError raised by generated conversions)."""

from fromsuper.runtime import MissingFieldError


def test_message_without_rename():
    exc = MissingFieldError("c", source="Bar")
    assert isinstance(exc, ValueError)
    assert exc.source_field == "c"
    assert str(exc) == "Field 'c' is missing: source field of Bar is None"


def test_message_with_rename():
    exc = MissingFieldError("new_name", "c", "Bar[T, int]")
    assert exc.field == "new_name"
    assert exc.source_field == "c"
    assert str(exc) == "Field 'new_name' (read from 'c') is missing: source field of Bar[T, int] is None"


def test_message_without_source():
    assert str(MissingFieldError("c")) == "Field 'c' is missing: source field is None"
