#!/usr/bin/env python3
"""
FromSuper Engine Diagnostics

Every structural problem found while generating a conversion is raised as a
GenerationError subclass carrying a Diagnostic. A diagnostic names the schema
and, where it applies, the field and directive key at fault. Raising one
abandons generation for that schema only; there is no partial artifact.
"""

from dataclasses import dataclass
from enum import Enum

from .models import SourceLocation


class DiagnosticKind(Enum):
    MALFORMED_DIRECTIVE = "MalformedDirective"
    MISSING_FROM_TYPE = "MissingFromType"
    UNKNOWN_GENERIC_PARAMETER = "UnknownGenericParameter"
    ARITY_MISMATCH = "ArityMismatch"
    CONFLICTING_FIELD_DIRECTIVE = "ConflictingFieldDirective"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    schema: str
    field: str | None = None
    key: str | None = None
    location: SourceLocation | None = None

    @property
    def subject(self) -> str:
        """`Foo`, `Foo.b`, `Foo [from_type]` or `Foo.b [unpack]`."""
        subject = self.schema if self.field is None else f"{self.schema}.{self.field}"
        if self.key is not None:
            subject += f" [{self.key}]"
        return subject

    def format(self) -> str:
        prefix = f"{self.location}: " if self.location is not None else ""
        return f"{prefix}{self.kind.value}: {self.subject}: {self.message}"

    def __str__(self) -> str:
        return self.format()


# ---------------------------------------------------------------------------
# Error types
# ---------------------------------------------------------------------------


class GenerationError(ValueError):
    """Raised when a target schema cannot be converted. Carries a Diagnostic."""

    kind: DiagnosticKind

    def __init__(
        self,
        message: str,
        schema: str,
        field: str | None = None,
        key: str | None = None,
        location: SourceLocation | None = None,
    ):
        self.diagnostic = Diagnostic(
            kind=self.kind,
            message=message,
            schema=schema,
            field=field,
            key=key,
            location=location,
        )
        super().__init__(self.diagnostic.format())


class MalformedDirectiveError(GenerationError):
    """Unparsable directive text, unknown key, or a value of the wrong type."""

    kind = DiagnosticKind.MALFORMED_DIRECTIVE


class MissingFromTypeError(GenerationError):
    """The required `from_type` key is absent."""

    kind = DiagnosticKind.MISSING_FROM_TYPE


class UnknownGenericParameterError(GenerationError):
    """A free argument names a parameter the target schema does not declare."""

    kind = DiagnosticKind.UNKNOWN_GENERIC_PARAMETER


class ArityMismatchError(GenerationError):
    """A declared target parameter is missing from, or repeated in, the source reference."""

    kind = DiagnosticKind.ARITY_MISMATCH


class ConflictingFieldDirectiveError(GenerationError):
    """Contradictory per-field options."""

    kind = DiagnosticKind.CONFLICTING_FIELD_DIRECTIVE
