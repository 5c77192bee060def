#!/usr/bin/env python3
"""
Python back end.

Renders each artifact as a module-level function:

    def foo_from_bar(value: Bar[T, int]) -> Foo[T]: ...       (infallible)
    def try_foo_from_bar(value: Bar) -> Foo: ...              (fallible)

The fallible form reads each unpacked field into a local, in target
declaration order, and raises MissingFieldError for the first one that is
None. Locals are named `field_<name>` so they never shadow `value`.
"""

import re
from typing import Any, Callable, Iterable

from ..engine.models import GeneratedArtifact
from ..runtime import MissingFieldError


def camel_to_snake(name: str) -> str:
    """Transform CamelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    s2 = re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1)
    return s2.lower()


def function_name(artifact: GeneratedArtifact) -> str:
    base = f"{camel_to_snake(artifact.target_name)}_from_{camel_to_snake(artifact.source.short_name)}"
    return f"try_{base}" if artifact.is_fallible else base


def _target_type(artifact: GeneratedArtifact) -> str:
    if not artifact.generic_params:
        return artifact.target_name
    return f"{artifact.target_name}[{', '.join(artifact.generic_params)}]"


class PythonCodegen:
    """Generate a Python module of conversion functions."""

    def __init__(self, imports: Iterable[str] | None = None, source_label: str | None = None):
        self.imports = list(imports or [])
        self.source_label = source_label

    def generate(self, artifacts: list[GeneratedArtifact]) -> str:
        """Generate full module content. Output depends only on the artifacts and settings."""
        header = self._generate_header()
        imports = self._generate_imports(artifacts)
        type_vars = self._generate_type_vars(artifacts)

        names = [function_name(a) for a in artifacts]
        exports = "__all__ = [\n" + "".join(f'    "{n}",\n' for n in names) + "]\n"

        functions = [self.render_function(a) for a in artifacts]

        sections = [header + imports]
        if type_vars:
            sections.append(type_vars)
        sections.append(exports)
        return "\n\n".join(sections + functions)

    def _generate_header(self) -> str:
        source = f"# Source: {self.source_label}\n" if self.source_label else ""
        return (
            "# AUTO-GENERATED by fromsuper\n"
            "# DO NOT EDIT MANUALLY\n"
            f"{source}"
            '"""Conversions generated from fromsuper directives."""\n'
            "\n"
            "from __future__ import annotations\n"
        )

    def _generate_imports(self, artifacts: list[GeneratedArtifact]) -> str:
        lines = []
        if any(a.generic_params for a in artifacts):
            lines.append("from typing import TypeVar")
        if any(a.is_fallible for a in artifacts):
            if lines:
                lines.append("")
            lines.append("from fromsuper.runtime import MissingFieldError")
        if self.imports:
            if lines:
                lines.append("")
            lines.extend(self.imports)
        if not lines:
            return ""
        return "\n" + "\n".join(lines) + "\n"

    def _generate_type_vars(self, artifacts: list[GeneratedArtifact]) -> str:
        seen: list[str] = []
        for artifact in artifacts:
            for param in artifact.generic_params:
                if param not in seen:
                    seen.append(param)
        return "".join(f'{param} = TypeVar("{param}")\n' for param in seen)

    def render_function(self, artifact: GeneratedArtifact) -> str:
        """Render one artifact as a function definition."""
        name = function_name(artifact)
        source_type = artifact.source.render("[]")
        target_type = _target_type(artifact)

        lines = [f"def {name}(value: {source_type}) -> {target_type}:"]
        if artifact.is_fallible:
            lines.extend([
                f'    """Convert {source_type} into {target_type}, unpacking optional fields.',
                "",
                "    Raises:",
                "        MissingFieldError: for the first unpacked field that is None.",
                '    """',
            ])
        else:
            lines.append(f'    """Convert {source_type} into {target_type}."""')

        for m in artifact.unpack_checks:
            local = f"field_{m.target_field}"
            lines.append(f"    {local} = value.{m.source_field}")
            lines.append(f"    if {local} is None:")
            lines.append(
                f"        raise MissingFieldError({m.target_field!r}, {m.source_field!r}, {source_type!r})"
            )

        if not artifact.fields:
            lines.append(f"    return {artifact.target_name}()")
        else:
            lines.append(f"    return {artifact.target_name}(")
            for m in artifact.fields:
                expr = f"field_{m.target_field}" if m.unpack else f"value.{m.source_field}"
                lines.append(f"        {m.target_field}={expr},")
            lines.append("    )")

        return "\n".join(lines) + "\n"


def load_conversion(artifact: GeneratedArtifact, namespace: dict[str, Any] | None = None) -> Callable:
    """
    Compile one rendered conversion and return the function.

    For tests and interactive inspection of an artifact; the build step
    writes modules with PythonCodegen and never executes generated code.

    `namespace` must provide the target class. Annotations are not evaluated,
    so the source type and free parameters need not be present.
    MissingFieldError is supplied if absent.
    """
    name = function_name(artifact)
    code = "from __future__ import annotations\n\n" + PythonCodegen().render_function(artifact)
    scope = dict(namespace or {})
    scope.setdefault("MissingFieldError", MissingFieldError)
    exec(compile(code, f"<fromsuper:{name}>", "exec"), scope)
    return scope[name]
