#!/usr/bin/env python3
"""
Python declaration front end.

Reads target schemas from Python source with the `ast` module. A target is a
class decorated with the marker; its fields are the annotated assignments of
the class body, in order, excluding ClassVar. Per-field directives ride in
`Annotated` metadata:

    @fromsuper(from_type="Bar[#T, int]", unpack=True)
    @dataclass
    class Foo(Generic[T]):
        x: list[T]
        b: Annotated[str, fromsuper(unpack=False)]

The marker's keyword arguments are passed on as directive text (`key=value`,
values as written); nothing is evaluated. Only module-level classes may
carry the marker. Python has no lifetime parameters.
"""

import ast
from pathlib import Path

from ..engine.models import FieldDecl, GenericParam, RecordSchema, SourceLocation, TargetDeclaration
from . import DeclarationSyntaxError


def _dotted_tail(node: ast.AST) -> str | None:
    """`fromsuper` for both `fromsuper` and `markers.fromsuper`."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _subscript_elements(node: ast.Subscript) -> list[ast.expr]:
    if isinstance(node.slice, ast.Tuple):
        return list(node.slice.elts)
    return [node.slice]


class PythonDeclarationReader:
    """Extract TargetDeclarations from one module's source text."""

    def __init__(self, source: str, path: str | None = None, marker: str = "fromsuper"):
        self.source = source
        self.path = path
        self.marker = marker

    def read(self) -> list[TargetDeclaration]:
        try:
            tree = ast.parse(self.source, filename=self.path or "<unknown>")
        except SyntaxError as exc:
            raise DeclarationSyntaxError(
                f"{self.path or '<input>'}:{exc.lineno}: {exc.msg}"
            ) from exc

        top_level = {id(node) for node in tree.body if isinstance(node, ast.ClassDef)}
        classes = [node for node in ast.walk(tree) if isinstance(node, ast.ClassDef)]
        classes.sort(key=lambda node: (node.lineno, node.col_offset))

        declarations = []
        for node in classes:
            directive = self._marker_text(node.decorator_list)
            if directive is None:
                continue
            if id(node) not in top_level:
                raise DeclarationSyntaxError(
                    f"{self._location(node)}: class {node.name} is marked with "
                    f"@{self.marker} but is not defined at module level"
                )
            declarations.append(self._read_class(node, directive))
        return declarations

    def _location(self, node: ast.AST) -> SourceLocation:
        return SourceLocation(self.path, node.lineno, node.col_offset + 1)

    def _segment(self, node: ast.AST) -> str:
        return ast.get_source_segment(self.source, node)

    def _call_arguments(self, call: ast.Call) -> str:
        """
        Directive text of a marker call, rebuilt from its arguments so that
        comments inside the call are dropped. Positional arguments are kept
        as written and left for the directive parser to reject.
        """
        items = [self._segment(arg) for arg in call.args]
        for keyword in call.keywords:
            value = self._segment(keyword.value)
            items.append(f"**{value}" if keyword.arg is None else f"{keyword.arg}={value}")
        return ", ".join(items)

    def _marker_text(self, nodes: list[ast.expr]) -> str | None:
        """
        Directive text of every marker among `nodes`, joined with commas, or
        None if there is no marker. A bare marker contributes no options.
        """
        texts = []
        found = False
        for node in nodes:
            if isinstance(node, ast.Call) and _dotted_tail(node.func) == self.marker:
                found = True
                texts.append(self._call_arguments(node))
            elif _dotted_tail(node) == self.marker:
                found = True
        if not found:
            return None
        return ", ".join(text for text in texts if text.strip())

    def _generic_params(self, node: ast.ClassDef) -> list[str]:
        # PEP 695: class Foo[T]: ...
        declared = [param.name for param in getattr(node, "type_params", [])]
        if declared:
            return declared
        for base in node.bases:
            if isinstance(base, ast.Subscript) and _dotted_tail(base.value) == "Generic":
                return [e.id for e in _subscript_elements(base) if isinstance(e, ast.Name)]
        return []

    def _is_classvar(self, annotation: ast.expr) -> bool:
        if isinstance(annotation, ast.Subscript):
            annotation = annotation.value
        return _dotted_tail(annotation) == "ClassVar"

    def _read_class(self, node: ast.ClassDef, directive: str) -> TargetDeclaration:
        fields: list[FieldDecl] = []
        field_directives: dict[str, str] = {}

        for stmt in node.body:
            if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
                continue
            annotation = stmt.annotation
            if self._is_classvar(annotation):
                continue

            name = stmt.target.id
            type_text = self._segment(annotation)
            if isinstance(annotation, ast.Subscript) and _dotted_tail(annotation.value) == "Annotated":
                elements = _subscript_elements(annotation)
                type_text = self._segment(elements[0])
                field_directive = self._marker_text(elements[1:])
                if field_directive is not None:
                    field_directives[name] = field_directive

            fields.append(FieldDecl(name=name, type=type_text, location=self._location(stmt)))

        schema = RecordSchema(
            name=node.name,
            generic_params=tuple(GenericParam.free(p) for p in self._generic_params(node)),
            fields=tuple(fields),
            location=self._location(node),
        )
        return TargetDeclaration(schema=schema, directive=directive, field_directives=field_directives)


def parse_python_source(source: str, path: str | None = None, marker: str = "fromsuper") -> list[TargetDeclaration]:
    return PythonDeclarationReader(source, path=path, marker=marker).read()


def parse_python_file(path: str | Path, marker: str = "fromsuper") -> list[TargetDeclaration]:
    path = Path(path)
    return parse_python_source(path.read_text(encoding="utf-8"), path=str(path), marker=marker)
