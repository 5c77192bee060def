"""
fromsuper: generate conversions from wide source records to narrow target
records, optionally unpacking optional fields.

The engine (`fromsuper.engine`) is a pure function from a target schema and
its directive texts to a GeneratedArtifact. Front ends read declarations from
Python or Rust source; back ends render artifacts as Python or Rust code.
"""

from .engine import GeneratedArtifact, GenerationError, generate, generate_all
from .markers import fromsuper
from .runtime import MissingFieldError

__version__ = "0.3.0"

__all__ = [
    "GeneratedArtifact",
    "GenerationError",
    "MissingFieldError",
    "fromsuper",
    "generate",
    "generate_all",
]
