#!/usr/bin/env python3
"""
FromSuper Build Step

Glue between a configured target and the engine: read declarations from the
input file, generate every schema independently, render the successful ones
with the target language's codegen, and write or compare the output file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .backend import CODEGENS
from .config import TargetConfig
from .engine import GenerationReport, generate_all
from .frontend import read_declarations

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Rendered output for one target plus the engine's report on it."""
    target: TargetConfig
    content: str
    report: GenerationReport
    schema_count: int

    @property
    def ok(self) -> bool:
        return self.report.ok


def build_target(target: TargetConfig, marker: str = "fromsuper") -> BuildResult:
    """
    Generate the output text for one target.

    Schemas with diagnostics are left out of the output; the others are
    rendered regardless.

    Raises:
        DeclarationSyntaxError: the input file cannot be read as declarations
    """
    declarations = read_declarations(target.input, language=target.language, marker=marker)
    logger.debug("%s: %d marked declaration(s)", target.input, len(declarations))

    report = generate_all(declarations)
    codegen = CODEGENS[target.language](imports=target.imports, source_label=target.input.name)
    content = codegen.generate(report.artifacts)

    return BuildResult(
        target=target,
        content=content,
        report=report,
        schema_count=len(declarations),
    )


def check_output(result: BuildResult) -> str | None:
    """Compare generated content with the file on disk; return a problem description or None."""
    output = result.target.output
    if not output.exists():
        return f"{output} does not exist"
    if output.read_text(encoding="utf-8") != result.content:
        return f"Generated code differs from {output}"
    return None


def write_file(path: Path, content: str) -> None:
    """Write generated content to file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
