"""
Runtime support for generated Python conversions.

A fallible conversion raises MissingFieldError for the first unpacked field
whose source value is None, in target declaration order. It is an ordinary
recoverable failure for the caller, not a generator error.
"""


class MissingFieldError(ValueError):
    """Raised by a generated `try_...` conversion when an unpacked source value is None."""

    def __init__(self, field: str, source_field: str | None = None, source: str | None = None):
        self.field = field
        self.source_field = source_field or field
        self.source = source
        origin = f" of {source}" if source else ""
        renamed = f" (read from '{self.source_field}')" if self.source_field != field else ""
        super().__init__(f"Field '{field}'{renamed} is missing: source field{origin} is None")
