#!/usr/bin/env python3
"""
FromSuper Engine Data Models

Typed dataclasses for everything that flows through one generation pass:
the target schema handed over by a front end, the parsed directives, the
resolved source reference, the per-field mapping and the emitted artifact.

Type expressions and lifetime parameters are opaque strings. The engine
relays them into generated code and never looks inside.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceLocation:
    """Where a declaration or directive was written (1-based line and column)."""
    path: str | None
    line: int
    column: int = 1

    def __str__(self) -> str:
        path = self.path or "<input>"
        return f"{path}:{self.line}:{self.column}"


# ---------------------------------------------------------------------------
# Generic parameters
# ---------------------------------------------------------------------------


class GenericParamKind(Enum):
    """Whether a generic slot stays generic in emitted code or is fixed."""

    FREE = "free"
    BOUND = "bound"


@dataclass(frozen=True)
class GenericParam:
    """
    A tagged generic slot.

    FREE carries the parameter identifier and is passed through unresolved.
    BOUND carries a concrete type expression copied verbatim into the output.
    """
    kind: GenericParamKind
    value: str

    @classmethod
    def free(cls, name: str) -> "GenericParam":
        return cls(GenericParamKind.FREE, name)

    @classmethod
    def bound(cls, type_expr: str) -> "GenericParam":
        return cls(GenericParamKind.BOUND, type_expr)

    @property
    def is_free(self) -> bool:
        return self.kind is GenericParamKind.FREE

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SourceReference:
    """The resolved `from_type`: a source schema name plus its generic arguments."""
    name: str
    args: tuple[GenericParam, ...] = ()

    @property
    def free_params(self) -> tuple[str, ...]:
        """Names of the arguments left generic, in argument order."""
        return tuple(arg.value for arg in self.args if arg.is_free)

    @property
    def short_name(self) -> str:
        """Last segment of a qualified name (`crate::model::Bar` → `Bar`)."""
        return self.name.replace("::", ".").rsplit(".", 1)[-1]

    def render(self, brackets: str = "<>") -> str:
        """Spell the reference with the given delimiter pair, e.g. `Bar[T, int]`."""
        if not self.args:
            return self.name
        opening, closing = brackets
        joined = ", ".join(arg.value for arg in self.args)
        return f"{self.name}{opening}{joined}{closing}"

    def __str__(self) -> str:
        return self.render()


# ---------------------------------------------------------------------------
# Target schema (supplied by a front end)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldDecl:
    """A declared target field. `type` is an opaque type expression."""
    name: str
    type: str
    location: SourceLocation | None = None


@dataclass(frozen=True)
class ParamDecl:
    """
    A generic parameter as written in its declaration, default removed:
    `'a`, `T: Clone + Default`, `const N: usize`. `text` is opaque.
    """
    name: str
    text: str


@dataclass(frozen=True)
class RecordSchema:
    """
    A record type as handed over by a front end.

    `param_decls` and `where_clause` hold the declaration texts of the
    generic parameters (lifetimes included, in written order) and of the
    where clause, for back ends that must restate them. A front end that
    leaves `param_decls` empty gets the bare names.
    """
    name: str
    generic_params: tuple[GenericParam, ...] = ()
    lifetime_params: tuple[str, ...] = ()
    fields: tuple[FieldDecl, ...] = ()
    location: SourceLocation | None = None
    param_decls: tuple[ParamDecl, ...] = ()
    where_clause: str | None = None

    def __post_init__(self) -> None:
        for param in self.generic_params:
            if not param.is_free:
                raise ValueError(
                    f"Record {self.name} declares a bound generic parameter "
                    f"'{param.value}'; declared parameters must be free"
                )

    @property
    def param_names(self) -> tuple[str, ...]:
        """Declared generic parameter names, in declaration order."""
        return tuple(param.value for param in self.generic_params)

    @property
    def declared_generics(self) -> tuple[ParamDecl, ...]:
        """Every generic parameter, lifetimes first when no declaration texts were given."""
        if self.param_decls:
            return self.param_decls
        names = list(self.lifetime_params) + list(self.param_names)
        return tuple(ParamDecl(name, name) for name in names)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get_field(self, name: str) -> FieldDecl | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass
class TargetDeclaration:
    """
    A target schema together with its raw directive texts.

    `directive` is the top-level directive text (None when the schema carries
    the marker without arguments); `field_directives` maps target field names
    to their per-field directive texts.
    """
    schema: RecordSchema
    directive: str | None
    field_directives: Mapping[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Parsed directives
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MappingDirective:
    """Per-field options. None means "not given"; defaults apply later."""
    source_field: str | None = None
    unpack: bool | None = None


@dataclass
class ConversionSpec:
    """
    One conversion request for one target schema.

    Built by the directive parser with `from_type` as raw text; the reference
    resolver fills in `source_reference`. Lives for a single generation pass.
    """
    schema: str
    from_type: str
    global_unpack: bool = False
    mappings: dict[str, MappingDirective] = field(default_factory=dict)
    source_reference: SourceReference | None = None
    location: SourceLocation | None = None

    @property
    def is_resolved(self) -> bool:
        return self.source_reference is not None


@dataclass(frozen=True)
class FieldMapping:
    """A target field bound to its source field identity and effective unpack flag."""
    target_field: str
    source_field: str
    unpack: bool
    type: str
    location: SourceLocation | None = None

    @property
    def is_renamed(self) -> bool:
        return self.source_field != self.target_field


# ---------------------------------------------------------------------------
# Generated artifact
# ---------------------------------------------------------------------------


class ConversionKind(Enum):
    INFALLIBLE = "infallible"
    FALLIBLE = "fallible"


ENTRY_POINTS = {
    ConversionKind.INFALLIBLE: "convert",
    ConversionKind.FALLIBLE: "try_convert",
}


@dataclass(frozen=True)
class GeneratedArtifact:
    """
    The emitted conversion, ready for a back end to render.

    `fields` is in target declaration order; `unpack_checks` is the subset
    that a fallible conversion checks, also in target declaration order, so
    the first empty one is the one reported.
    """
    kind: ConversionKind
    target: RecordSchema
    source: SourceReference
    fields: tuple[FieldMapping, ...]
    unpack_checks: tuple[FieldMapping, ...] = ()

    @property
    def is_fallible(self) -> bool:
        return self.kind is ConversionKind.FALLIBLE

    @property
    def entry_point(self) -> str:
        return ENTRY_POINTS[self.kind]

    @property
    def target_name(self) -> str:
        return self.target.name

    @property
    def generic_params(self) -> tuple[str, ...]:
        return self.target.param_names

    @property
    def lifetime_params(self) -> tuple[str, ...]:
        return self.target.lifetime_params
