"""
pytest configuration for fromsuper tests.

Adds the repository root to sys.path so that 'import fromsuper' works when
the package is not installed, and provides schema-building fixtures.
"""

import sys
from pathlib import Path

import pytest

# Ensure the repository root is on the path (fromsuper package lives there)
repo_root = Path(__file__).parent.parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from fromsuper.engine.models import FieldDecl, GenericParam, RecordSchema  # noqa: E402


def build_schema(name, fields, params=(), lifetimes=()):
    """RecordSchema from (name, type) pairs and parameter names."""
    return RecordSchema(
        name=name,
        generic_params=tuple(GenericParam.free(p) for p in params),
        lifetime_params=tuple(lifetimes),
        fields=tuple(FieldDecl(field_name, field_type) for field_name, field_type in fields),
    )


@pytest.fixture
def make_schema():
    """Factory fixture: make_schema("Foo", [("a", "u32")], params=["T"])."""
    return build_schema
