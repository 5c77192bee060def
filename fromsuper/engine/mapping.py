#!/usr/bin/env python3
"""
FromSuper Field Mapping Resolver

Binds each target field, in declaration order, to one source field identity
(`rename_from` if given, else the field's own name) and an effective unpack
flag (the field's own `unpack` if given, else the schema-wide one).

Nothing here checks that the source field exists or that it is optional when
unpacking is requested. Those mistakes surface when the host compiles the
emitted code.
"""

from .diagnostics import ConflictingFieldDirectiveError
from .models import ConversionSpec, FieldMapping, MappingDirective, RecordSchema


def resolve_field(decl_name: str, directive: MappingDirective, global_unpack: bool) -> tuple[str, bool]:
    """Return (source field identity, effective unpack flag) for one field."""
    source_field = directive.source_field or decl_name
    unpack = directive.unpack if directive.unpack is not None else global_unpack
    return source_field, unpack


def resolve_fields(spec: ConversionSpec, target: RecordSchema) -> tuple[FieldMapping, ...]:
    """
    Resolve every target field.

    Raises:
        ConflictingFieldDirectiveError: two target fields read the same source field
    """
    mappings: list[FieldMapping] = []
    claimed: dict[str, str] = {}   # source field -> target field reading it

    for decl in target.fields:
        directive = spec.mappings.get(decl.name, MappingDirective())
        source_field, unpack = resolve_field(decl.name, directive, spec.global_unpack)

        if source_field in claimed:
            raise ConflictingFieldDirectiveError(
                f"source field '{source_field}' is already read by field "
                f"'{claimed[source_field]}'",
                target.name, field=decl.name,
                key="rename_from" if directive.source_field else None,
                location=decl.location or target.location,
            )
        claimed[source_field] = decl.name

        mappings.append(
            FieldMapping(
                target_field=decl.name,
                source_field=source_field,
                unpack=unpack,
                type=decl.type,
                location=decl.location,
            )
        )

    return tuple(mappings)
