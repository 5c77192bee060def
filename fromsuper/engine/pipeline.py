#!/usr/bin/env python3
"""
FromSuper Generation Pipeline

`generate` is the whole engine as one pure function:

    (target schema, directive texts) → GeneratedArtifact, or a GenerationError

Stages run strictly in order (directives → reference → fields → artifact) and
the first error aborts the schema. Nothing is shared between calls, so
independent schemas can be generated in any order or concurrently.

`generate_all` runs many schemas and keeps their failures separate: each
schema either yields an artifact or a diagnostic, never both.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .codegen import build_artifact
from .diagnostics import Diagnostic, GenerationError
from .directives import parse_directives
from .mapping import resolve_fields
from .models import GeneratedArtifact, RecordSchema, TargetDeclaration
from .reference import resolve_reference

logger = logging.getLogger(__name__)


def generate(
    target: RecordSchema,
    directive: str | None,
    field_directives: Mapping[str, str] | None = None,
) -> GeneratedArtifact:
    """
    Generate the conversion for one target schema.

    Args:
        target: The target schema as read by a front end.
        directive: Raw top-level directive text (None if the marker had no options).
        field_directives: Raw per-field directive texts keyed by target field name.

    Raises:
        GenerationError: any structural problem; no artifact is produced.
    """
    spec = parse_directives(target, directive, field_directives)
    logger.debug("%s: from_type=%r unpack=%s", target.name, spec.from_type, spec.global_unpack)

    spec = resolve_reference(spec, target)
    mappings = resolve_fields(spec, target)

    artifact = build_artifact(spec, mappings, target)
    logger.debug(
        "%s: %s conversion from %s (%d field(s), %d unpacked)",
        target.name, artifact.kind.value, artifact.source,
        len(artifact.fields), len(artifact.unpack_checks),
    )
    return artifact


@dataclass
class GenerationReport:
    """Outcome of a batch: artifacts for the schemas that succeeded, diagnostics for the rest."""
    artifacts: list[GeneratedArtifact] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def extend(self, other: "GenerationReport") -> None:
        self.artifacts.extend(other.artifacts)
        self.diagnostics.extend(other.diagnostics)


def generate_all(declarations: Iterable[TargetDeclaration]) -> GenerationReport:
    """Generate every declaration independently, collecting diagnostics instead of raising."""
    report = GenerationReport()
    for decl in declarations:
        try:
            artifact = generate(decl.schema, decl.directive, decl.field_directives)
        except GenerationError as exc:
            logger.warning("%s", exc.diagnostic.format())
            report.diagnostics.append(exc.diagnostic)
            continue
        report.artifacts.append(artifact)
    return report
