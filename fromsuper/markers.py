"""
Declaration markers for Python target schemas.

These have no runtime effect. The Python front end finds them by name in the
source text and hands their arguments to the directive parser:

    @fromsuper(from_type="Bar[#T, int]", unpack=True)
    @dataclass
    class Foo(Generic[T]):
        x: list[T]
        b: Annotated[str, fromsuper(unpack=False)]
"""


class Directive:
    """Inert holder for directive options, usable as decorator or Annotated metadata."""

    def __init__(self, **options):
        self.options = options

    def __call__(self, cls):
        return cls

    def __repr__(self) -> str:
        args = ", ".join(f"{key}={value!r}" for key, value in self.options.items())
        return f"fromsuper({args})"


def fromsuper(_cls=None, /, **options):
    """Mark a target schema (as a class decorator) or a field (inside Annotated)."""
    if _cls is not None:
        return _cls
    return Directive(**options)
