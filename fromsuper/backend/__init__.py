"""
Back ends: render GeneratedArtifacts as source text.

Each back end spells the same artifact in its host language's idiom.
"""

from .python import PythonCodegen, load_conversion
from .rust import RustCodegen

CODEGENS = {
    "python": PythonCodegen,
    "rust": RustCodegen,
}

__all__ = ["CODEGENS", "PythonCodegen", "RustCodegen", "load_conversion"]
