#!/usr/bin/env python3
"""
Rust declaration front end.

Parses Rust source with tree-sitter to find structs carrying the marker
attribute, and extracts their generics, named fields and directive texts:

    #[derive(FromSuper)]
    #[fromsuper(from_type = "Bar<#T, u32>", unpack = true)]
    struct Foo<'a, T> {
        x: Vec<T>,
        #[fromsuper(unpack = false)]
        name: &'a str,
    }

Attribute token trees are passed on as directive text with comments removed.
Lifetime parameters go to `lifetime_params`; type and const parameters to
`generic_params`. Each parameter's declaration (bounds kept, default
dropped) and the where clause are kept as text so the impl can restate them.
Marked structs must be top-level items: generated impls name the target by
its bare name.
"""

from pathlib import Path

import tree_sitter_rust
from tree_sitter import Language, Parser

from ..engine.models import (
    FieldDecl,
    GenericParam,
    ParamDecl,
    RecordSchema,
    SourceLocation,
    TargetDeclaration,
)
from . import DeclarationSyntaxError

_COMMENTS = ("line_comment", "block_comment")
_BOUNDED_PARAMS = ("type_parameter", "constrained_type_parameter", "lifetime_parameter")


class RustDeclarationParser:
    """Extract TargetDeclarations from Rust source using tree-sitter."""

    def __init__(self, marker: str = "fromsuper"):
        """Initialize tree-sitter Rust parser."""
        self.marker = marker
        self.parser = Parser(language=Language(tree_sitter_rust.language()))

    def parse_file(self, path: str | Path) -> list[TargetDeclaration]:
        path = Path(path)
        return self.parse(path.read_bytes(), path=str(path))

    def parse(self, source: bytes | str, path: str | None = None) -> list[TargetDeclaration]:
        """Return every marked struct in source order.

        Raises:
            DeclarationSyntaxError: the source does not parse, or a marked
                struct has no named fields
        """
        if isinstance(source, str):
            source = source.encode("utf-8")
        tree = self.parser.parse(source)

        if tree.root_node.has_error:
            bad = self._find_error(tree.root_node) or tree.root_node
            raise DeclarationSyntaxError(f"{self._location(bad, path)}: Rust syntax error")

        declarations: list[TargetDeclaration] = []
        self._collect(tree.root_node, source, path, declarations)
        return declarations

    # -----------------------------------------------------------------------
    # Tree walking
    # -----------------------------------------------------------------------

    def _collect(
        self,
        node,
        source: bytes,
        path: str | None,
        out: list[TargetDeclaration],
        nested: bool = False,
    ) -> None:
        """Visit items of a source file or module body, pairing structs with the attributes above them."""
        pending = []
        for child in node.named_children:
            if child.type == "attribute_item":
                pending.append(child)
                continue
            if child.type in _COMMENTS:
                continue

            if child.type == "struct_item":
                directive = self._marker_text(pending, source)
                if directive is not None and nested:
                    name = self._text(child.child_by_field_name("name"), source)
                    raise DeclarationSyntaxError(
                        f"{self._location(child, path)}: struct {name} is marked with "
                        f"#[{self.marker}] inside a module; only top-level structs are supported"
                    )
                if directive is not None:
                    out.append(self._read_struct(child, directive, source, path))
            elif child.type == "mod_item":
                body = child.child_by_field_name("body")
                if body is not None:
                    self._collect(body, source, path, out, nested=True)
            pending = []

    def _find_error(self, node):
        if node.type == "ERROR" or node.is_missing:
            return node
        for child in node.children:
            result = self._find_error(child)
            if result is not None:
                return result
        return None

    @staticmethod
    def _text(node, source: bytes) -> str:
        return source[node.start_byte : node.end_byte].decode("utf-8")

    def _text_without_comments(self, node, source: bytes) -> str:
        """Node text with every comment inside it replaced by a space."""
        pieces = []
        pos = node.start_byte
        for comment in self._comments(node):
            pieces.append(source[pos : comment.start_byte])
            pieces.append(b" ")
            pos = comment.end_byte
        pieces.append(source[pos : node.end_byte])
        return b"".join(pieces).decode("utf-8")

    def _comments(self, node):
        for child in node.children:
            if child.type in _COMMENTS:
                yield child
            else:
                yield from self._comments(child)

    @staticmethod
    def _location(node, path: str | None) -> SourceLocation:
        row, column = node.start_point[0], node.start_point[1]
        return SourceLocation(path, row + 1, column + 1)

    # -----------------------------------------------------------------------
    # Attributes
    # -----------------------------------------------------------------------

    def _marker_text(self, attribute_items: list, source: bytes) -> str | None:
        """
        Joined token-tree text of every marker attribute, or None if there is
        none. `#[fromsuper]` without arguments contributes no options.
        """
        texts = []
        found = False
        for item in attribute_items:
            attribute = next((c for c in item.named_children if c.type == "attribute"), None)
            if attribute is None or not attribute.named_children:
                continue
            if self._text(attribute.named_children[0], source) != self.marker:
                continue
            found = True
            arguments = attribute.child_by_field_name("arguments")
            if arguments is not None:
                # token tree text includes its delimiters
                texts.append(self._text_without_comments(arguments, source).strip()[1:-1])
        if not found:
            return None
        return ", ".join(text for text in texts if text.strip())

    # -----------------------------------------------------------------------
    # Structs
    # -----------------------------------------------------------------------

    def _generic_param(self, node, source: bytes) -> tuple[str, str, str] | None:
        """
        Classify one entry of a type parameter list.

        Returns ("lifetime" | "type" | "const", name, declaration text), the
        declaration keeping its bounds but not its default.
        """
        if node.type in ("lifetime", "type_identifier"):
            name = self._text(node, source)
            return ("lifetime" if node.type == "lifetime" else "type"), name, name
        if node.type == "const_parameter":
            name = self._text(node.child_by_field_name("name"), source)
            const_type = self._text(node.child_by_field_name("type"), source)
            return "const", name, f"const {name}: {const_type}"
        if node.type == "optional_type_parameter":
            return self._generic_param(node.child_by_field_name("name"), source)
        if node.type in _BOUNDED_PARAMS:
            inner = node.child_by_field_name("name") or node.child_by_field_name("left")
            if inner is None:
                inner = next(c for c in node.named_children if c.type in ("lifetime", "type_identifier"))
            kind, name, _ = self._generic_param(inner, source)
            bounds = node.child_by_field_name("bounds")
            if bounds is None:
                return kind, name, name
            # trait_bounds text starts with its ':'
            bounds_text = " ".join(self._text_without_comments(bounds, source).lstrip(":").split())
            return kind, name, f"{name}: {bounds_text}"
        return None

    def _read_struct(self, node, directive: str, source: bytes, path: str | None) -> TargetDeclaration:
        name = self._text(node.child_by_field_name("name"), source)
        location = self._location(node, path)

        body = node.child_by_field_name("body")
        if body is None or body.type != "field_declaration_list":
            raise DeclarationSyntaxError(
                f"{location}: struct {name} is marked with #[{self.marker}] "
                f"but has no named fields"
            )

        lifetimes: list[str] = []
        type_params: list[GenericParam] = []
        decls: list[ParamDecl] = []
        params_node = node.child_by_field_name("type_parameters")
        if params_node is not None:
            for child in params_node.named_children:
                param = self._generic_param(child, source)
                if param is None:
                    continue
                kind, param_name, decl_text = param
                if kind == "lifetime":
                    lifetimes.append(param_name)
                else:
                    type_params.append(GenericParam.free(param_name))
                decls.append(ParamDecl(param_name, decl_text))

        where_clause = None
        where_node = next((c for c in node.named_children if c.type == "where_clause"), None)
        if where_node is not None:
            where_clause = " ".join(self._text_without_comments(where_node, source).split())

        fields: list[FieldDecl] = []
        field_directives: dict[str, str] = {}
        pending = []
        for child in body.named_children:
            if child.type == "attribute_item":
                pending.append(child)
                continue
            if child.type != "field_declaration":
                continue
            field_name = self._text(child.child_by_field_name("name"), source)
            field_type = self._text(child.child_by_field_name("type"), source)
            field_directive = self._marker_text(pending, source)
            if field_directive is not None:
                field_directives[field_name] = field_directive
            pending = []
            fields.append(FieldDecl(field_name, field_type, self._location(child, path)))

        schema = RecordSchema(
            name=name,
            generic_params=tuple(type_params),
            lifetime_params=tuple(lifetimes),
            fields=tuple(fields),
            location=location,
            param_decls=tuple(decls),
            where_clause=where_clause,
        )
        return TargetDeclaration(schema=schema, directive=directive, field_directives=field_directives)
