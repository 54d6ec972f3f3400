"""
Numeric constants of the Java class file format (JVMS chapter 4).
"""

from enum import IntEnum, IntFlag


CLASS_FILE_MAGIC = 0xCAFEBABE


class ClassFileVersion:
    JAVA_6 = (50, 0)
    JAVA_7 = (51, 0)
    JAVA_8 = (52, 0)
    JAVA_9 = (53, 0)
    JAVA_11 = (55, 0)
    JAVA_17 = (61, 0)


class AccessFlags(IntFlag):
    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SUPER = 0x0020  # For classes (invokespecial semantics)
    SYNCHRONIZED = 0x0020  # For methods
    VOLATILE = 0x0040
    BRIDGE = 0x0040
    TRANSIENT = 0x0080
    VARARGS = 0x0080
    NATIVE = 0x0100
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000
    MODULE = 0x8000


# Keyword order used when rendering flags, per member kind.
CLASS_FLAG_NAMES = (
    (AccessFlags.PUBLIC, "public"),
    (AccessFlags.PRIVATE, "private"),
    (AccessFlags.PROTECTED, "protected"),
    (AccessFlags.STATIC, "static"),
    (AccessFlags.FINAL, "final"),
    (AccessFlags.ABSTRACT, "abstract"),
)

FIELD_FLAG_NAMES = CLASS_FLAG_NAMES[:5] + (
    (AccessFlags.VOLATILE, "volatile"),
    (AccessFlags.TRANSIENT, "transient"),
)

METHOD_FLAG_NAMES = CLASS_FLAG_NAMES + (
    (AccessFlags.SYNCHRONIZED, "synchronized"),
    (AccessFlags.NATIVE, "native"),
    (AccessFlags.STRICT, "strictfp"),
)


class ConstantPoolTag(IntEnum):
    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELDREF = 9
    METHODREF = 10
    INTERFACE_METHODREF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20


class MethodHandleKind(IntEnum):
    GET_FIELD = 1
    GET_STATIC = 2
    PUT_FIELD = 3
    PUT_STATIC = 4
    INVOKE_VIRTUAL = 5
    INVOKE_STATIC = 6
    INVOKE_SPECIAL = 7
    NEW_INVOKE_SPECIAL = 8
    INVOKE_INTERFACE = 9


class VerificationTypeTag(IntEnum):
    TOP = 0
    INTEGER = 1
    FLOAT = 2
    DOUBLE = 3
    LONG = 4
    NULL = 5
    UNINITIALIZED_THIS = 6
    OBJECT = 7
    UNINITIALIZED = 8


class TargetType(IntEnum):
    """Values of the type_annotation.target_type byte."""
    CLASS_TYPE_PARAMETER = 0x00
    METHOD_TYPE_PARAMETER = 0x01
    CLASS_EXTENDS = 0x10
    CLASS_TYPE_PARAMETER_BOUND = 0x11
    METHOD_TYPE_PARAMETER_BOUND = 0x12
    FIELD = 0x13
    METHOD_RETURN = 0x14
    METHOD_RECEIVER = 0x15
    METHOD_FORMAL_PARAMETER = 0x16
    THROWS = 0x17
    LOCAL_VARIABLE = 0x40
    RESOURCE_VARIABLE = 0x41
    EXCEPTION_PARAMETER = 0x42
    INSTANCEOF = 0x43
    NEW = 0x44
    CONSTRUCTOR_REFERENCE = 0x45
    METHOD_REFERENCE = 0x46
    CAST = 0x47
    CONSTRUCTOR_INVOCATION_TYPE_ARGUMENT = 0x48
    METHOD_INVOCATION_TYPE_ARGUMENT = 0x49
    CONSTRUCTOR_REFERENCE_TYPE_ARGUMENT = 0x4A
    METHOD_REFERENCE_TYPE_ARGUMENT = 0x4B
