"""
Front ends: read target schemas and their directive texts from source files.

    python: classes decorated with @fromsuper(...) (standard `ast` module)
    rust:   structs carrying #[fromsuper(...)] (tree-sitter)
"""

from pathlib import Path

from ..engine.models import TargetDeclaration

LANGUAGES_BY_SUFFIX = {
    ".py": "python",
    ".pyi": "python",
    ".rs": "rust",
}


class DeclarationSyntaxError(ValueError):
    """Raised when a source file cannot be read as declarations."""

    pass


def infer_language(path: str | Path) -> str:
    suffix = Path(path).suffix
    if suffix not in LANGUAGES_BY_SUFFIX:
        raise ValueError(
            f"Cannot infer language of {path}; expected one of: "
            f"{', '.join(sorted(LANGUAGES_BY_SUFFIX))}"
        )
    return LANGUAGES_BY_SUFFIX[suffix]


def read_declarations(
    path: str | Path,
    language: str | None = None,
    marker: str = "fromsuper",
) -> list[TargetDeclaration]:
    """Read every marked target schema from one file, in source order."""
    language = language or infer_language(path)
    if language == "python":
        from .python_source import parse_python_file
        return parse_python_file(path, marker=marker)
    if language == "rust":
        from .rust_source import RustDeclarationParser
        return RustDeclarationParser(marker=marker).parse_file(path)
    raise ValueError(f"Unknown language '{language}'; expected python or rust")


__all__ = [
    "DeclarationSyntaxError",
    "LANGUAGES_BY_SUFFIX",
    "infer_language",
    "read_declarations",
]
