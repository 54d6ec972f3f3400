"""
Exceptions raised while decoding a class file.

Every failure is fatal for the decode call that raised it: the reader never
resynchronizes, so callers get either a complete tree or one of these.
"""

from typing import Optional


class ClassFormatError(ValueError):
    """Malformed or unsupported class file contents."""

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.stage: Optional[str] = None

    def __str__(self) -> str:
        text = self.message
        if self.offset is not None:
            text = f"{text} (at byte {self.offset})"
        if self.stage:
            text = f"{self.stage}: {text}"
        return text


class MagicMismatch(ClassFormatError):
    """The first four bytes are not CAFEBABE."""


class TruncatedInput(ClassFormatError):
    """A read or a declared count needs more bytes than remain."""

    def __init__(self, wanted: int, available: int, offset: Optional[int] = None):
        super().__init__(f"Need {wanted} byte(s), only {available} available", offset)
        self.wanted = wanted
        self.available = available


class UnknownConstantTag(ClassFormatError):
    def __init__(self, tag: int, offset: Optional[int] = None):
        super().__init__(f"Unknown constant pool tag: {tag}", offset)
        self.tag = tag


class UnknownElementValueTag(ClassFormatError):
    def __init__(self, tag: int, offset: Optional[int] = None):
        super().__init__(f"Unknown annotation element value tag: {tag!r} ({chr(tag)!r})", offset)
        self.tag = tag


class UnknownTargetType(ClassFormatError):
    def __init__(self, target_type: int, offset: Optional[int] = None):
        super().__init__(f"Unknown type annotation target_type: {target_type:#04x}", offset)
        self.target_type = target_type


class UnknownVerificationType(ClassFormatError):
    def __init__(self, tag: int, offset: Optional[int] = None):
        super().__init__(f"Unknown verification type tag: {tag}", offset)
        self.tag = tag


class BadConstantIndex(ClassFormatError):
    """A constant pool index is out of range or points at the wrong kind."""


class AttributeLengthMismatch(ClassFormatError):
    def __init__(self, name: str, declared: int, consumed: int, offset: Optional[int] = None):
        super().__init__(
            f"Attribute {name} declares {declared} byte(s) but its body used {consumed}",
            offset,
        )
        self.name = name
        self.declared = declared
        self.consumed = consumed


class NestingTooDeep(ClassFormatError):
    def __init__(self, limit: int, offset: Optional[int] = None):
        super().__init__(f"Structure nesting exceeds the limit of {limit}", offset)
        self.limit = limit
