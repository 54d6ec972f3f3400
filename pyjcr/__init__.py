"""pyjcr - decode Java class files into an immutable tree."""

from .errors import (
    ClassFormatError, MagicMismatch, TruncatedInput, UnknownConstantTag,
    UnknownElementValueTag, UnknownTargetType, UnknownVerificationType,
    BadConstantIndex, AttributeLengthMismatch, NestingTooDeep,
)
from .model import ClassFile, ConstantPool
from .reader import ClassReader, ReaderOptions, decode

__version__ = "0.1.0"
__all__ = [
    "decode",
    "ClassReader",
    "ReaderOptions",
    "ClassFile",
    "ConstantPool",
    "ClassFormatError",
    "MagicMismatch",
    "TruncatedInput",
    "UnknownConstantTag",
    "UnknownElementValueTag",
    "UnknownTargetType",
    "UnknownVerificationType",
    "BadConstantIndex",
    "AttributeLengthMismatch",
    "NestingTooDeep",
]
