#!/usr/bin/env python3
"""
FromSuper Code Generator

Chooses between the two conversion shapes and assembles the artifact that a
back end renders:

- no field unpacks  → INFALLIBLE `convert`: every field taken directly
- any field unpacks → FALLIBLE `try_convert`: unpack fields are checked in
  target declaration order and the first empty one is reported; fields
  without the flag are taken verbatim, optional or not

Semantics validated by the earlier stages are not re-checked here.
"""

from .models import (
    ConversionKind,
    ConversionSpec,
    FieldMapping,
    GeneratedArtifact,
    RecordSchema,
)


def conversion_kind(mappings: tuple[FieldMapping, ...]) -> ConversionKind:
    if any(m.unpack for m in mappings):
        return ConversionKind.FALLIBLE
    return ConversionKind.INFALLIBLE


def build_artifact(
    spec: ConversionSpec,
    mappings: tuple[FieldMapping, ...],
    target: RecordSchema,
) -> GeneratedArtifact:
    """Assemble the GeneratedArtifact for a resolved spec."""
    if spec.source_reference is None:
        raise ValueError(f"ConversionSpec for {spec.schema} has no resolved source reference")

    kind = conversion_kind(mappings)
    unpack_checks = tuple(m for m in mappings if m.unpack)

    return GeneratedArtifact(
        kind=kind,
        target=target,
        source=spec.source_reference,
        fields=mappings,
        unpack_checks=unpack_checks,
    )
