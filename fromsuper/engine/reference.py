#!/usr/bin/env python3
"""
FromSuper Schema Reference Resolver

Parses the `from_type` text into a SourceReference and reconciles its free
arguments with the target schema's declared generic parameters.

Grammar:
    reference := Name | Name '<' Arg (',' Arg)* '>' | Name '[' Arg (',' Arg)* ']'
    Name      := identifier (('.' | '::') identifier)*
    Arg       := '#' identifier      (free: stays generic in emitted code)
               | type expression     (bound: copied verbatim, never checked)

`Bar<T>` alone is ambiguous (parameter or concrete type named T); the `#`
marker is what makes a slot free. Lifetimes inside bound arguments are
relayed as written, except the anonymous `'_`, which cannot be declared on
an impl. Borrowed sources (`&'a Bar`) are not accepted.
"""

import logging
import re
from dataclasses import replace

from .diagnostics import (
    ArityMismatchError,
    MalformedDirectiveError,
    UnknownGenericParameterError,
)
from .models import ConversionSpec, GenericParam, RecordSchema, SourceLocation, SourceReference

logger = logging.getLogger(__name__)

FREE_MARKER = "#"

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?:(?:\.|::)[A-Za-z_][A-Za-z0-9_]*)*$")
_FREE_RE = re.compile(r"^#([A-Za-z_][A-Za-z0-9_]*)$")
_ANONYMOUS_LIFETIME_RE = re.compile(r"'_(?![A-Za-z0-9_])")

_CLOSERS = {"<": ">", "[": "]", "(": ")"}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _split_arguments(inner: str) -> list[str] | None:
    """
    Split an argument list on top-level commas.

    Returns None when the delimiters are unbalanced. The `>` of a Rust
    `->` arrow is not a closing delimiter.
    """
    args: list[str] = []
    stack: list[str] = []
    start = 0
    for i, ch in enumerate(inner):
        if ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ">])":
            if ch == ">" and i > 0 and inner[i - 1] == "-":
                continue
            if not stack or stack.pop() != ch:
                return None
        elif ch == "," and not stack:
            args.append(inner[start:i])
            start = i + 1
    if stack:
        return None
    args.append(inner[start:])
    return args


def parse_reference(
    text: str,
    schema: str,
    location: SourceLocation | None = None,
) -> SourceReference:
    """
    Parse `from_type` text into a SourceReference with tagged arguments.

    Raises:
        MalformedDirectiveError: bad name, unbalanced or empty argument list,
            empty argument, a `#` that is not a whole free argument, an
            anonymous lifetime, or a borrowed source
    """
    def malformed(message: str) -> MalformedDirectiveError:
        return MalformedDirectiveError(
            f"{message} in '{text}'", schema, key="from_type", location=location
        )

    stripped = text.strip()
    openers = [i for i in (stripped.find("<"), stripped.find("[")) if i != -1]

    if not openers:
        name, raw_args = stripped, []
    else:
        idx = min(openers)
        name = stripped[:idx].strip()
        opener = stripped[idx]
        if not stripped.endswith(_CLOSERS[opener]):
            raise malformed(f"argument list opened with '{opener}' is not closed")
        raw_args = _split_arguments(stripped[idx + 1:-1])
        if raw_args is None:
            raise malformed("unbalanced delimiters")
        if len(raw_args) == 1 and not raw_args[0].strip():
            raise malformed("empty generic argument list")

    if name.startswith("&"):
        raise malformed("borrowed sources are not supported; name the record type itself")
    if not _NAME_RE.match(name):
        raise malformed(f"'{name}' is not a type name")

    args: list[GenericParam] = []
    for position, raw in enumerate(raw_args, start=1):
        arg = raw.strip()
        if not arg:
            raise malformed(f"generic argument {position} is empty")
        if FREE_MARKER in arg:
            match = _FREE_RE.match(arg)
            if match is None:
                raise malformed(
                    f"generic argument {position} ('{arg}'): '#' must be followed by a "
                    f"parameter name and form the whole argument"
                )
            args.append(GenericParam.free(match.group(1)))
        else:
            if _ANONYMOUS_LIFETIME_RE.search(arg):
                raise malformed(
                    f"generic argument {position} ('{arg}'): the anonymous lifetime '_ is not supported"
                )
            args.append(GenericParam.bound(arg))

    return SourceReference(name=name, args=tuple(args))


# ---------------------------------------------------------------------------
# Reconciliation with the target schema
# ---------------------------------------------------------------------------


def check_free_params(reference: SourceReference, target: RecordSchema) -> None:
    """
    Every free argument must name a declared target parameter, and every
    declared target parameter must appear exactly once as a free argument.
    Order does not matter.
    """
    declared = target.param_names
    seen: list[str] = []
    for name in reference.free_params:
        if name not in declared:
            declared_text = ", ".join(declared) if declared else "none"
            raise UnknownGenericParameterError(
                f"free parameter '#{name}' is not declared on {target.name} "
                f"(declared: {declared_text})",
                target.name, key="from_type", location=target.location,
            )
        if name in seen:
            raise ArityMismatchError(
                f"free parameter '#{name}' appears more than once in '{reference}'",
                target.name, key="from_type", location=target.location,
            )
        seen.append(name)

    missing = [name for name in declared if name not in seen]
    if missing:
        raise ArityMismatchError(
            f"declared parameter(s) {', '.join(missing)} missing from '{reference}'; "
            f"each must appear once as a free '#' argument",
            target.name, key="from_type", location=target.location,
        )


def resolve_reference(spec: ConversionSpec, target: RecordSchema) -> ConversionSpec:
    """Return `spec` with `source_reference` filled in and checked against `target`."""
    reference = parse_reference(spec.from_type, spec.schema, spec.location)
    check_free_params(reference, target)
    logger.debug(
        "%s: source %s (free: %s)",
        target.name, reference, ", ".join(reference.free_params) or "none",
    )
    return replace(spec, source_reference=reference)
