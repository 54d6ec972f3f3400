"""
Immutable tree produced by the class file reader.
All nodes are frozen dataclasses; sequences are tuples and cross references
are constant pool indices, so the tree has no cycles.
"""

import json
import struct
from dataclasses import dataclass
from typing import ClassVar, Iterator, Optional

from .constants import ConstantPoolTag, VerificationTypeTag
from .errors import BadConstantIndex


class Node:
    """Base class for all tree nodes."""

    def to_dict(self) -> dict:
        """Convert node to dictionary for JSON serialization."""
        result = {"_type": self.__class__.__name__}
        # Pool entries and verification types keep their tag on the class
        tag = getattr(type(self), "tag", None)
        if isinstance(tag, int):
            result["tag"] = int(tag)
        for key, value in self.__dict__.items():
            if key.startswith("_"):
                continue
            result[key] = _serialize_value(value)
        return result

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def _serialize_value(value):
    """Helper to serialize a value for JSON."""
    if value is None:
        return None
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, (list, tuple)):
        return [_serialize_value(v) for v in value]
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def decode_modified_utf8(raw: bytes) -> str:
    """Decode the modified UTF-8 used by CONSTANT_Utf8 entries.

    NUL is stored as C0 80 and supplementary characters as two encoded
    surrogates; both are folded back into ordinary code points.
    """
    data = raw.replace(b"\xc0\x80", b"\x00")
    try:
        text = data.decode("utf-8", errors="surrogatepass")
    except UnicodeDecodeError:
        return data.decode("utf-8", errors="replace")
    return text.encode("utf-16-le", errors="surrogatepass").decode("utf-16-le", errors="replace")


# ---------------------------------------------------------------------------
# Constant pool

class ConstantPoolEntry(Node):
    tag: ClassVar[ConstantPoolTag]


@dataclass(frozen=True)
class Utf8Info(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.UTF8
    length: int
    bytes: bytes

    @property
    def value(self) -> str:
        return decode_modified_utf8(self.bytes)


@dataclass(frozen=True)
class IntegerInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INTEGER
    bytes: int

    @property
    def value(self) -> int:
        return struct.unpack(">i", struct.pack(">I", self.bytes))[0]


@dataclass(frozen=True)
class FloatInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.FLOAT
    bytes: int

    @property
    def value(self) -> float:
        return struct.unpack(">f", struct.pack(">I", self.bytes))[0]


@dataclass(frozen=True)
class LongInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.LONG
    high_bytes: int
    low_bytes: int

    @property
    def value(self) -> int:
        return struct.unpack(">q", struct.pack(">II", self.high_bytes, self.low_bytes))[0]


@dataclass(frozen=True)
class DoubleInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.DOUBLE
    high_bytes: int
    low_bytes: int

    @property
    def value(self) -> float:
        return struct.unpack(">d", struct.pack(">II", self.high_bytes, self.low_bytes))[0]


@dataclass(frozen=True)
class ClassInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.CLASS
    name_index: int


@dataclass(frozen=True)
class StringInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.STRING
    string_index: int


@dataclass(frozen=True)
class FieldrefInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.FIELDREF
    class_index: int
    name_and_type_index: int


@dataclass(frozen=True)
class MethodrefInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHODREF
    class_index: int
    name_and_type_index: int


@dataclass(frozen=True)
class InterfaceMethodrefInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INTERFACE_METHODREF
    class_index: int
    name_and_type_index: int


@dataclass(frozen=True)
class NameAndTypeInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.NAME_AND_TYPE
    name_index: int
    descriptor_index: int


@dataclass(frozen=True)
class MethodHandleInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHOD_HANDLE
    reference_kind: int
    reference_index: int


@dataclass(frozen=True)
class MethodTypeInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHOD_TYPE
    descriptor_index: int


@dataclass(frozen=True)
class InvokeDynamicInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INVOKE_DYNAMIC
    bootstrap_method_attr_index: int
    name_and_type_index: int


@dataclass(frozen=True)
class ModuleInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.MODULE
    name_index: int


@dataclass(frozen=True)
class PackageInfo(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.PACKAGE
    name_index: int


@dataclass(frozen=True)
class ConstantPool(Node):
    """The constant pool, indexed from 1.

    Slot 0 and the slot after each long or double hold None. declared_count
    is the constant_pool_count read from the file, which can differ from
    len(entries) when it is 0 or when a wide constant fills the last slot.
    """
    entries: tuple[Optional[ConstantPoolEntry], ...] = (None,)
    declared_count: Optional[int] = None

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> Optional[ConstantPoolEntry]:
        return self.entries[index]

    def __iter__(self) -> Iterator[Optional[ConstantPoolEntry]]:
        return iter(self.entries)

    @property
    def count(self) -> int:
        """The constant_pool_count this pool was decoded from."""
        if self.declared_count is None:
            return len(self.entries)
        return self.declared_count

    def get(self, index: int, *kinds: type) -> ConstantPoolEntry:
        """Return entry at index, checking it is usable and of one of kinds."""
        if not 0 < index < len(self.entries):
            raise BadConstantIndex(f"Constant pool index {index} out of range 1..{len(self.entries) - 1}")
        entry = self.entries[index]
        if entry is None:
            raise BadConstantIndex(f"Constant pool index {index} is an unusable slot")
        if kinds and not isinstance(entry, kinds):
            expected = "/".join(k.__name__ for k in kinds)
            raise BadConstantIndex(f"Expected {expected} at index {index}, got {type(entry).__name__}")
        return entry

    def utf8(self, index: int) -> str:
        """Get UTF8 string from constant pool."""
        return self.get(index, Utf8Info).value

    def class_name(self, index: int) -> Optional[str]:
        """Get class name from constant pool, None for index 0."""
        if index == 0:
            return None
        return self.utf8(self.get(index, ClassInfo).name_index)


# ---------------------------------------------------------------------------
# Annotations

@dataclass(frozen=True)
class ElementValue(Node):
    tag: str


@dataclass(frozen=True)
class ConstElementValue(ElementValue):
    """Primitive or String constant: tags B C D F I J S Z s."""
    const_value_index: int


@dataclass(frozen=True)
class EnumElementValue(ElementValue):
    type_name_index: int
    const_name_index: int


@dataclass(frozen=True)
class ClassElementValue(ElementValue):
    class_info_index: int


@dataclass(frozen=True)
class AnnotationElementValue(ElementValue):
    annotation: "Annotation"


@dataclass(frozen=True)
class ArrayElementValue(ElementValue):
    values: tuple[ElementValue, ...]


@dataclass(frozen=True)
class ElementValuePair(Node):
    element_name_index: int
    element_value: ElementValue


@dataclass(frozen=True)
class Annotation(Node):
    type_index: int
    element_value_pairs: tuple[ElementValuePair, ...]


@dataclass(frozen=True)
class ParameterAnnotations(Node):
    annotations: tuple[Annotation, ...]


# ---------------------------------------------------------------------------
# Type annotations

class TargetInfo(Node):
    pass


@dataclass(frozen=True)
class TypeParameterTarget(TargetInfo):
    type_parameter_index: int


@dataclass(frozen=True)
class SupertypeTarget(TargetInfo):
    supertype_index: int


@dataclass(frozen=True)
class TypeParameterBoundTarget(TargetInfo):
    type_parameter_index: int
    bound_index: int


@dataclass(frozen=True)
class EmptyTarget(TargetInfo):
    pass


@dataclass(frozen=True)
class FormalParameterTarget(TargetInfo):
    formal_parameter_index: int


@dataclass(frozen=True)
class ThrowsTarget(TargetInfo):
    throws_type_index: int


@dataclass(frozen=True)
class LocalvarTargetEntry(Node):
    start_pc: int
    length: int
    index: int


@dataclass(frozen=True)
class LocalvarTarget(TargetInfo):
    table: tuple[LocalvarTargetEntry, ...]


@dataclass(frozen=True)
class CatchTarget(TargetInfo):
    exception_table_index: int


@dataclass(frozen=True)
class OffsetTarget(TargetInfo):
    offset: int


@dataclass(frozen=True)
class TypeArgumentTarget(TargetInfo):
    offset: int
    type_argument_index: int


@dataclass(frozen=True)
class TypePathEntry(Node):
    type_path_kind: int
    type_argument_index: int


@dataclass(frozen=True)
class TypePath(Node):
    path: tuple[TypePathEntry, ...] = ()


@dataclass(frozen=True)
class TypeAnnotation(Node):
    target_type: int
    target_info: TargetInfo
    type_path: TypePath
    type_index: int
    element_value_pairs: tuple[ElementValuePair, ...]


# ---------------------------------------------------------------------------
# Stack map frames

class VerificationTypeInfo(Node):
    tag: ClassVar[VerificationTypeTag]


@dataclass(frozen=True)
class TopVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.TOP


@dataclass(frozen=True)
class IntegerVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.INTEGER


@dataclass(frozen=True)
class FloatVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.FLOAT


@dataclass(frozen=True)
class DoubleVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.DOUBLE


@dataclass(frozen=True)
class LongVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.LONG


@dataclass(frozen=True)
class NullVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.NULL


@dataclass(frozen=True)
class UninitializedThisVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.UNINITIALIZED_THIS


@dataclass(frozen=True)
class ObjectVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.OBJECT
    cpool_index: int


@dataclass(frozen=True)
class UninitializedVariable(VerificationTypeInfo):
    tag: ClassVar[VerificationTypeTag] = VerificationTypeTag.UNINITIALIZED
    offset: int


@dataclass(frozen=True)
class StackMapEntry(Node):
    """A frame of the legacy (CLDC) StackMap attribute."""
    offset: int
    locals: tuple[VerificationTypeInfo, ...]
    stack: tuple[VerificationTypeInfo, ...]


@dataclass(frozen=True)
class StackMapFrame(Node):
    frame_type: int


@dataclass(frozen=True)
class SameFrame(StackMapFrame):
    @property
    def offset_delta(self) -> int:
        return self.frame_type


@dataclass(frozen=True)
class SameLocals1StackItemFrame(StackMapFrame):
    stack: tuple[VerificationTypeInfo, ...]

    @property
    def offset_delta(self) -> int:
        return self.frame_type - 64


@dataclass(frozen=True)
class ReservedFrame(StackMapFrame):
    """Frame types 128-246 have no defined payload."""

    @property
    def offset_delta(self) -> int:
        return 0


@dataclass(frozen=True)
class SameLocals1StackItemFrameExtended(StackMapFrame):
    offset_delta: int
    stack: tuple[VerificationTypeInfo, ...]


@dataclass(frozen=True)
class ChopFrame(StackMapFrame):
    offset_delta: int

    @property
    def chopped(self) -> int:
        return 251 - self.frame_type


@dataclass(frozen=True)
class SameFrameExtended(StackMapFrame):
    offset_delta: int


@dataclass(frozen=True)
class AppendFrame(StackMapFrame):
    offset_delta: int
    locals: tuple[VerificationTypeInfo, ...]


@dataclass(frozen=True)
class FullFrame(StackMapFrame):
    offset_delta: int
    locals: tuple[VerificationTypeInfo, ...]
    stack: tuple[VerificationTypeInfo, ...]


# ---------------------------------------------------------------------------
# Attributes

@dataclass(frozen=True)
class Attribute(Node):
    name: str
    attribute_name_index: int
    attribute_length: int


@dataclass(frozen=True)
class UnknownAttribute(Attribute):
    """Attribute this reader has no layout for; body kept verbatim."""
    info: bytes


@dataclass(frozen=True)
class AnnotationsAttribute(Attribute):
    """RuntimeVisibleAnnotations / RuntimeInvisibleAnnotations."""
    annotations: tuple[Annotation, ...]


@dataclass(frozen=True)
class ParameterAnnotationsAttribute(Attribute):
    """RuntimeVisibleParameterAnnotations / RuntimeInvisibleParameterAnnotations."""
    parameter_annotations: tuple[ParameterAnnotations, ...]


@dataclass(frozen=True)
class TypeAnnotationsAttribute(Attribute):
    """RuntimeVisibleTypeAnnotations / RuntimeInvisibleTypeAnnotations."""
    annotations: tuple[TypeAnnotation, ...]


@dataclass(frozen=True)
class AnnotationDefaultAttribute(Attribute):
    default_value: ElementValue


@dataclass(frozen=True)
class MarkerAttribute(Attribute):
    """Deprecated / Synthetic: presence is the whole payload."""


@dataclass(frozen=True)
class InnerClassEntry(Node):
    inner_class_info_index: int
    outer_class_info_index: int
    inner_name_index: int
    inner_class_access_flags: int


@dataclass(frozen=True)
class InnerClassesAttribute(Attribute):
    classes: tuple[InnerClassEntry, ...]


@dataclass(frozen=True)
class LocalVariableEntry(Node):
    start_pc: int
    length: int
    name_index: int
    descriptor_index: int
    index: int


@dataclass(frozen=True)
class LocalVariableTableAttribute(Attribute):
    local_variable_table: tuple[LocalVariableEntry, ...]


@dataclass(frozen=True)
class LocalVariableTypeEntry(Node):
    start_pc: int
    length: int
    name_index: int
    signature_index: int
    index: int


@dataclass(frozen=True)
class LocalVariableTypeTableAttribute(Attribute):
    local_variable_type_table: tuple[LocalVariableTypeEntry, ...]


@dataclass(frozen=True)
class BootstrapMethod(Node):
    bootstrap_method_ref: int
    bootstrap_arguments: tuple[int, ...]


@dataclass(frozen=True)
class BootstrapMethodsAttribute(Attribute):
    bootstrap_methods: tuple[BootstrapMethod, ...]


@dataclass(frozen=True)
class SourceDebugExtensionAttribute(Attribute):
    debug_extension: bytes


@dataclass(frozen=True)
class SourceFileAttribute(Attribute):
    sourcefile_index: int


@dataclass(frozen=True)
class SignatureAttribute(Attribute):
    signature_index: int


@dataclass(frozen=True)
class ConstantValueAttribute(Attribute):
    constantvalue_index: int


@dataclass(frozen=True)
class EnclosingMethodAttribute(Attribute):
    class_index: int
    method_index: int


@dataclass(frozen=True)
class ModuleMainClassAttribute(Attribute):
    main_class_index: int


@dataclass(frozen=True)
class ModuleTargetAttribute(Attribute):
    target_platform_index: int


@dataclass(frozen=True)
class NestHostAttribute(Attribute):
    host_class_index: int


@dataclass(frozen=True)
class ClassListAttribute(Attribute):
    """NestMembers / PermittedSubclasses: a list of class indices."""
    classes: tuple[int, ...]


@dataclass(frozen=True)
class MethodParameter(Node):
    name_index: int
    access_flags: int


@dataclass(frozen=True)
class MethodParametersAttribute(Attribute):
    parameters: tuple[MethodParameter, ...]


@dataclass(frozen=True)
class ExceptionsAttribute(Attribute):
    exception_index_table: tuple[int, ...]


@dataclass(frozen=True)
class ExceptionTableEntry(Node):
    start_pc: int
    end_pc: int
    handler_pc: int
    catch_type: int  # 0 for finally (catches all)


@dataclass(frozen=True)
class CodeAttribute(Attribute):
    max_stack: int
    max_locals: int
    code: bytes
    exception_table: tuple[ExceptionTableEntry, ...]
    attributes: tuple[Attribute, ...]

    def find_attribute(self, name: str) -> Optional[Attribute]:
        return _find_attribute(self.attributes, name)


@dataclass(frozen=True)
class LineNumberEntry(Node):
    start_pc: int
    line_number: int


@dataclass(frozen=True)
class LineNumberTableAttribute(Attribute):
    line_number_table: tuple[LineNumberEntry, ...]


@dataclass(frozen=True)
class StackMapAttribute(Attribute):
    entries: tuple[StackMapEntry, ...]


@dataclass(frozen=True)
class StackMapTableAttribute(Attribute):
    entries: tuple[StackMapFrame, ...]


@dataclass(frozen=True)
class ModuleRequires(Node):
    requires_index: int
    requires_flags: int
    requires_version_index: int


@dataclass(frozen=True)
class ModuleExports(Node):
    exports_index: int
    exports_flags: int
    exports_to_index: tuple[int, ...]


@dataclass(frozen=True)
class ModuleOpens(Node):
    opens_index: int
    opens_flags: int
    opens_to_index: tuple[int, ...]


@dataclass(frozen=True)
class ModuleProvides(Node):
    provides_index: int
    provides_with_index: tuple[int, ...]


@dataclass(frozen=True)
class ModuleAttribute(Attribute):
    module_name_index: int
    module_flags: int
    module_version_index: int
    requires: tuple[ModuleRequires, ...]
    exports: tuple[ModuleExports, ...]
    opens: tuple[ModuleOpens, ...]
    uses_index: tuple[int, ...]
    provides: tuple[ModuleProvides, ...]


@dataclass(frozen=True)
class ModulePackagesAttribute(Attribute):
    package_index: tuple[int, ...]


@dataclass(frozen=True)
class ModuleHash(Node):
    module_name_index: int
    hash: bytes


@dataclass(frozen=True)
class ModuleHashesAttribute(Attribute):
    algorithm_index: int
    hashes_table: tuple[ModuleHash, ...]


@dataclass(frozen=True)
class RecordComponent(Node):
    name_index: int
    descriptor_index: int
    attributes: tuple[Attribute, ...]


@dataclass(frozen=True)
class RecordAttribute(Attribute):
    components: tuple[RecordComponent, ...]


def _find_attribute(attributes: tuple[Attribute, ...], name: str) -> Optional[Attribute]:
    for attr in attributes:
        if attr.name == name:
            return attr
    return None


# ---------------------------------------------------------------------------
# Class file

@dataclass(frozen=True)
class MemberInfo(Node):
    """field_info and method_info share this layout."""
    access_flags: int
    name_index: int
    descriptor_index: int
    attributes: tuple[Attribute, ...]

    def find_attribute(self, name: str) -> Optional[Attribute]:
        return _find_attribute(self.attributes, name)


@dataclass(frozen=True)
class FieldInfo(MemberInfo):
    pass


@dataclass(frozen=True)
class MethodInfo(MemberInfo):
    pass


@dataclass(frozen=True)
class ClassFile(Node):
    """A decoded class file."""
    minor_version: int
    major_version: int
    constant_pool: ConstantPool
    access_flags: int
    this_class: int
    super_class: int
    interfaces: tuple[int, ...]
    fields: tuple[FieldInfo, ...]
    methods: tuple[MethodInfo, ...]
    attributes: tuple[Attribute, ...]

    @property
    def version(self) -> tuple[int, int]:
        return (self.major_version, self.minor_version)

    @property
    def name(self) -> Optional[str]:
        return self.constant_pool.class_name(self.this_class)

    def find_attribute(self, name: str) -> Optional[Attribute]:
        return _find_attribute(self.attributes, name)

