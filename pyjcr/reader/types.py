"""
Options shared by the decoder mixins.
"""

from dataclasses import dataclass


DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True)
class ReaderOptions:
    """Knobs for one decode call.

    max_depth bounds nesting of element values, annotations and the
    attribute lists nested inside Code and Record attributes.

    strict_attribute_length makes a known attribute whose body does not use
    exactly attribute_length bytes an error; when False the mismatch is
    logged and the reader skips to the declared end of the attribute.
    """
    max_depth: int = DEFAULT_MAX_DEPTH
    strict_attribute_length: bool = True

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
