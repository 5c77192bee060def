"""
FromSuper Engine: conversion generation between a wide source record and a
narrow target record.

Pipeline (each stage may abort the schema with a GenerationError):
    directives.parse_directives   → ConversionSpec (from_type still raw text)
    reference.resolve_reference   → SourceReference (Free / Bound arguments)
    mapping.resolve_fields        → FieldMapping per target field
    codegen.build_artifact        → GeneratedArtifact

The engine never inspects the source record's fields. Whether a source field
exists, or really is optional, is left to the host compiler that consumes
the emitted code.
"""

from .diagnostics import (
    ArityMismatchError,
    ConflictingFieldDirectiveError,
    Diagnostic,
    DiagnosticKind,
    GenerationError,
    MalformedDirectiveError,
    MissingFromTypeError,
    UnknownGenericParameterError,
)
from .models import (
    ConversionKind,
    ConversionSpec,
    FieldDecl,
    FieldMapping,
    GeneratedArtifact,
    GenericParam,
    MappingDirective,
    ParamDecl,
    RecordSchema,
    SourceLocation,
    SourceReference,
    TargetDeclaration,
)
from .pipeline import GenerationReport, generate, generate_all

__all__ = [
    "ArityMismatchError",
    "ConflictingFieldDirectiveError",
    "ConversionKind",
    "ConversionSpec",
    "Diagnostic",
    "DiagnosticKind",
    "FieldDecl",
    "FieldMapping",
    "GeneratedArtifact",
    "GenerationError",
    "GenerationReport",
    "GenericParam",
    "MalformedDirectiveError",
    "MappingDirective",
    "MissingFromTypeError",
    "ParamDecl",
    "RecordSchema",
    "SourceLocation",
    "SourceReference",
    "TargetDeclaration",
    "UnknownGenericParameterError",
    "generate",
    "generate_all",
]
