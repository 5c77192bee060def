#!/usr/bin/env python3
"""
FromSuper Directive Parser

Turns the raw directive texts attached to a target schema into an unresolved
ConversionSpec. A directive text is a comma-separated list of options:

    from_type = "Bar<#T, u32>", unpack = true

Recognized schema keys:   from_type (string, required), unpack (bool)
Recognized field keys:    rename_from (string holding an identifier), unpack (bool)

Strings may use double or single quotes. Booleans are accepted in Rust
(`true`) and Python (`True`) spelling, and a boolean key written alone
(`unpack`) means true. There is no error recovery: the first problem aborts
the schema.
"""

import re
from dataclasses import dataclass
from typing import Mapping

from .diagnostics import (
    ConflictingFieldDirectiveError,
    MalformedDirectiveError,
    MissingFromTypeError,
)
from .models import ConversionSpec, MappingDirective, RecordSchema, SourceLocation


SCHEMA_KEYS = ("from_type", "unpack")
FIELD_KEYS = ("rename_from", "unpack")

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_TRUE = frozenset(["true", "True"])
_FALSE = frozenset(["false", "False"])

_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<punct>[=,])
    """,
    re.VERBOSE | re.DOTALL,
)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Token:
    kind: str       # "string", "ident" or "punct"
    text: str
    column: int     # 1-based offset inside the directive text


@dataclass(frozen=True)
class _Value:
    kind: str       # "string", "ident" or "flag" (key written without a value)
    text: str | None


@dataclass(frozen=True)
class _Context:
    """Who is being parsed, for diagnostics."""
    schema: str
    field: str | None
    location: SourceLocation | None

    def malformed(self, message: str, key: str | None = None) -> MalformedDirectiveError:
        return MalformedDirectiveError(
            message, self.schema, field=self.field, key=key, location=self.location
        )


def _tokenize(text: str, ctx: _Context) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            if text[pos] in "\"'":
                raise ctx.malformed(f"unterminated string starting at column {pos + 1}")
            raise ctx.malformed(f"unexpected character {text[pos]!r} at column {pos + 1}")
        kind = match.lastgroup
        if kind != "space":
            tokens.append(_Token(kind, match.group(), pos + 1))
        pos = match.end()
    return tokens


def _unquote(literal: str) -> str:
    return re.sub(r"\\(.)", r"\1", literal[1:-1], flags=re.DOTALL)


def _parse_items(text: str, ctx: _Context) -> list[tuple[str, _Value]]:
    """Parse `key = value, key, ...` into (key, value) pairs in written order."""
    tokens = _tokenize(text, ctx)
    items: list[tuple[str, _Value]] = []
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind != "ident":
            raise ctx.malformed(f"expected an option name at column {tok.column}, found {tok.text!r}")
        key = tok.text
        i += 1

        if i < len(tokens) and tokens[i].text == "=":
            i += 1
            if i >= len(tokens) or tokens[i].kind == "punct":
                raise ctx.malformed("missing value after '='", key)
            val = tokens[i]
            i += 1
            if val.kind == "string":
                value = _Value("string", _unquote(val.text))
            else:
                value = _Value("ident", val.text)
        else:
            value = _Value("flag", None)
        items.append((key, value))

        if i < len(tokens):
            if tokens[i].text != ",":
                raise ctx.malformed(
                    f"expected ',' at column {tokens[i].column}, found {tokens[i].text!r}", key
                )
            i += 1
    return items


def _as_bool(key: str, value: _Value, ctx: _Context) -> bool:
    if value.kind == "flag":
        return True
    if value.kind == "ident" and value.text in _TRUE:
        return True
    if value.kind == "ident" and value.text in _FALSE:
        return False
    shown = f'"{value.text}"' if value.kind == "string" else value.text
    raise ctx.malformed(f"expected a boolean, found {shown}", key)


def _as_string(key: str, value: _Value, ctx: _Context) -> str:
    if value.kind != "string":
        shown = "no value" if value.kind == "flag" else value.text
        raise ctx.malformed(f"expected a quoted string, found {shown}", key)
    return value.text


# ---------------------------------------------------------------------------
# Schema and field directives
# ---------------------------------------------------------------------------


def parse_schema_directive(
    text: str | None,
    schema: str,
    location: SourceLocation | None = None,
) -> tuple[str, bool]:
    """
    Parse the top-level directive of a target schema.

    Returns:
        (from_type text, global unpack flag)

    Raises:
        MissingFromTypeError: no directive arguments, or no `from_type` key
        MalformedDirectiveError: anything unparsable, unknown or repeated
    """
    ctx = _Context(schema, None, location)
    if text is None or not text.strip():
        raise MissingFromTypeError(
            "directive has no options; `from_type` is required",
            schema, key="from_type", location=location,
        )

    seen: dict[str, _Value] = {}
    for key, value in _parse_items(text, ctx):
        if key not in SCHEMA_KEYS:
            raise ctx.malformed(
                f"unknown option '{key}'; expected one of: {', '.join(SCHEMA_KEYS)}", key
            )
        if key in seen:
            raise ctx.malformed("option given more than once", key)
        seen[key] = value

    if "from_type" not in seen:
        raise MissingFromTypeError(
            "`from_type` is required", schema, key="from_type", location=location
        )

    from_type = _as_string("from_type", seen["from_type"], ctx).strip()
    if not from_type:
        raise ctx.malformed("empty source type", "from_type")

    unpack = _as_bool("unpack", seen["unpack"], ctx) if "unpack" in seen else False
    return from_type, unpack


def parse_field_directive(
    text: str | None,
    schema: str,
    field: str,
    location: SourceLocation | None = None,
) -> MappingDirective:
    """Parse one per-field directive. An empty directive leaves every default in place."""
    ctx = _Context(schema, field, location)
    if text is None or not text.strip():
        return MappingDirective()

    seen: dict[str, _Value] = {}
    for key, value in _parse_items(text, ctx):
        if key not in FIELD_KEYS:
            raise ctx.malformed(
                f"unknown option '{key}'; expected one of: {', '.join(FIELD_KEYS)}", key
            )
        if key in seen:
            raise ConflictingFieldDirectiveError(
                "option given more than once", schema, field=field, key=key, location=location
            )
        seen[key] = value

    source_field = None
    if "rename_from" in seen:
        source_field = _as_string("rename_from", seen["rename_from"], ctx).strip()
        if not IDENTIFIER_RE.match(source_field):
            raise ctx.malformed(f"'{source_field}' is not a field identifier", "rename_from")

    unpack = _as_bool("unpack", seen["unpack"], ctx) if "unpack" in seen else None
    return MappingDirective(source_field=source_field, unpack=unpack)


def parse_directives(
    schema: RecordSchema,
    directive: str | None,
    field_directives: Mapping[str, str] | None = None,
) -> ConversionSpec:
    """
    Build the unresolved ConversionSpec for one target schema.

    Every declared field gets a MappingDirective, in declaration order;
    fields without a directive get the all-defaults one.
    """
    field_directives = field_directives or {}
    from_type, unpack = parse_schema_directive(directive, schema.name, schema.location)

    for name in field_directives:
        if schema.get_field(name) is None:
            raise MalformedDirectiveError(
                "directive attached to a field the schema does not declare",
                schema.name, field=name, location=schema.location,
            )

    mappings: dict[str, MappingDirective] = {}
    for decl in schema.fields:
        mappings[decl.name] = parse_field_directive(
            field_directives.get(decl.name), schema.name, decl.name, decl.location
        )

    return ConversionSpec(
        schema=schema.name,
        from_type=from_type,
        global_unpack=unpack,
        mappings=mappings,
        location=schema.location,
    )
