#!/usr/bin/env python3
"""
Rust back end.

Renders each artifact as a conversion trait impl:

    impl<'a, T> ::std::convert::From<Bar<T, u32>> for Foo<'a, T> { ... }
    impl<T> ::std::convert::TryFrom<Bar<T, u32>> for Foo<T> { ... }

A TryFrom impl comes with its own error struct holding the name of the first
unpacked field that was None. The impl restates the target's generic
declarations and where clause as written:

    impl<'a, T: Clone, const N: usize> ::std::convert::From<Bar<T, N>> for Foo<'a, T, N> where T: Default { ... }

Lifetimes that appear only in the source reference are added to the impl;
`'static` needs no declaration. Bound arguments are copied as written.
"""

import re
from typing import Iterable

from ..engine.models import GeneratedArtifact


def _local_name(field: str) -> str:
    # raw identifiers (r#type) cannot be prefixed
    return "field_" + field.removeprefix("r#")


_LIFETIME_RE = re.compile(r"'[A-Za-z_][A-Za-z0-9_]*(?![A-Za-z0-9_'])")


def source_lifetimes(artifact: GeneratedArtifact) -> list[str]:
    """Lifetimes named in bound source arguments that the target does not declare."""
    declared = set(artifact.lifetime_params)
    extra: list[str] = []
    for arg in artifact.source.args:
        if arg.is_free:
            continue
        for lifetime in _LIFETIME_RE.findall(arg.value):
            if lifetime == "'static" or lifetime in declared or lifetime in extra:
                continue
            extra.append(lifetime)
    return extra


def _generics(artifact: GeneratedArtifact) -> tuple[str, str]:
    """(impl generics with bounds, target type generics by name)."""
    decls = artifact.target.declared_generics
    lifetimes = [d.text for d in decls if d.name.startswith("'")]
    others = [d.text for d in decls if not d.name.startswith("'")]
    impl_params = lifetimes + source_lifetimes(artifact) + others
    type_params = [d.name for d in decls]

    impl_generics = f"<{', '.join(impl_params)}>" if impl_params else ""
    type_generics = f"<{', '.join(type_params)}>" if type_params else ""
    return impl_generics, type_generics


def _impl_header(artifact: GeneratedArtifact, trait: str) -> str:
    impl_generics, type_generics = _generics(artifact)
    source = artifact.source.render("<>")
    where = f" {artifact.target.where_clause}" if artifact.target.where_clause else ""
    return (
        f"impl{impl_generics} ::std::convert::{trait}<{source}> "
        f"for {artifact.target_name}{type_generics}{where} {{"
    )


def error_type_name(artifact: GeneratedArtifact) -> str:
    """`Foo` from `Bar<T, u32>` → `FooFromBarTu32MissingField`."""
    spelled = artifact.source.short_name + "".join(arg.value for arg in artifact.source.args)
    source = re.sub(r"[^A-Za-z0-9]", "", spelled)
    return f"{artifact.target_name}From{source}MissingField"


class RustCodegen:
    """Generate a Rust source file of From / TryFrom impls."""

    def __init__(self, imports: Iterable[str] | None = None, source_label: str | None = None):
        self.imports = list(imports or [])
        self.source_label = source_label

    def generate(self, artifacts: list[GeneratedArtifact]) -> str:
        """Generate full file content, for inclusion with `include!`."""
        sections = [self._generate_header()]
        for artifact in artifacts:
            if artifact.is_fallible:
                sections.append(self.render_error_type(artifact))
            sections.append(self.render_impl(artifact))
        return "\n".join(sections)

    def _generate_header(self) -> str:
        source = f"// Source: {self.source_label}\n" if self.source_label else ""
        header = (
            "// AUTO-GENERATED by fromsuper\n"
            "// DO NOT EDIT MANUALLY\n"
            f"{source}"
        )
        if self.imports:
            header += "\n" + "\n".join(self.imports) + "\n"
        return header

    def render_impl(self, artifact: GeneratedArtifact) -> str:
        if artifact.is_fallible:
            return self._render_try_from(artifact)
        return self._render_from(artifact)

    def _render_from(self, artifact: GeneratedArtifact) -> str:
        source = artifact.source.render("<>")
        lines = [
            _impl_header(artifact, "From"),
            f"    fn from(value: {source}) -> Self {{",
            "        Self {",
        ]
        for m in artifact.fields:
            lines.append(f"            {m.target_field}: value.{m.source_field},")
        lines.extend([
            "        }",
            "    }",
            "}",
        ])
        return "\n".join(lines) + "\n"

    def _render_try_from(self, artifact: GeneratedArtifact) -> str:
        source = artifact.source.render("<>")
        error = error_type_name(artifact)
        lines = [
            _impl_header(artifact, "TryFrom"),
            f"    type Error = {error};",
            "",
            f"    fn try_from(value: {source}) -> ::std::result::Result<Self, Self::Error> {{",
        ]
        for m in artifact.unpack_checks:
            lines.extend([
                f"        let {_local_name(m.target_field)} = match value.{m.source_field} {{",
                "            ::std::option::Option::Some(inner) => inner,",
                "            ::std::option::Option::None => {",
                f'                return ::std::result::Result::Err({error} {{ field: "{m.target_field}" }})',
                "            }",
                "        };",
            ])
        lines.append("        ::std::result::Result::Ok(Self {")
        for m in artifact.fields:
            expr = _local_name(m.target_field) if m.unpack else f"value.{m.source_field}"
            lines.append(f"            {m.target_field}: {expr},")
        lines.extend([
            "        })",
            "    }",
            "}",
        ])
        return "\n".join(lines) + "\n"

    def render_error_type(self, artifact: GeneratedArtifact) -> str:
        error = error_type_name(artifact)
        # braces would be read as format placeholders by write!
        source = artifact.source.render("<>").replace("{", "{{").replace("}", "}}")
        return "\n".join([
            f"/// The first unpacked field of `{artifact.target_name}` whose source value was `None`.",
            "#[allow(non_camel_case_types)]",
            "#[derive(Debug, Clone, Copy, PartialEq, Eq)]",
            f"pub struct {error} {{",
            "    pub field: &'static str,",
            "}",
            "",
            f"impl ::std::fmt::Display for {error} {{",
            "    fn fmt(&self, f: &mut ::std::fmt::Formatter<'_>) -> ::std::fmt::Result {",
            f'        write!(f, "field `{{}}` of the super struct {source} is missing", self.field)',
            "    }",
            "}",
            "",
            f"impl ::std::error::Error for {error} {{}}",
        ]) + "\n"
