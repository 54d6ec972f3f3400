"""
attribute_info decoding (JVMS 4.7).

The layout of an attribute is chosen by its name, looked up in the
already-decoded constant pool. Names without a known layout are kept as
UnknownAttribute holding the raw body.
"""

import logging

from ..errors import AttributeLengthMismatch, BadConstantIndex
from ..model import (
    ConstantPool, Attribute, UnknownAttribute, AnnotationsAttribute,
    ParameterAnnotationsAttribute, ParameterAnnotations, TypeAnnotationsAttribute,
    AnnotationDefaultAttribute, MarkerAttribute, InnerClassesAttribute, InnerClassEntry,
    LocalVariableTableAttribute, LocalVariableEntry, LocalVariableTypeTableAttribute,
    LocalVariableTypeEntry, BootstrapMethodsAttribute, BootstrapMethod,
    SourceDebugExtensionAttribute, SourceFileAttribute, SignatureAttribute,
    ConstantValueAttribute, EnclosingMethodAttribute, ModuleMainClassAttribute,
    ModuleTargetAttribute, NestHostAttribute, ClassListAttribute,
    MethodParametersAttribute, MethodParameter, ExceptionsAttribute, CodeAttribute,
    ExceptionTableEntry, LineNumberTableAttribute, LineNumberEntry, StackMapAttribute,
    StackMapTableAttribute, ModuleAttribute, ModuleRequires, ModuleExports, ModuleOpens,
    ModuleProvides, ModulePackagesAttribute, ModuleHashesAttribute, ModuleHash,
    RecordAttribute, RecordComponent,
)
from .cursor import Cursor
from .types import ReaderOptions

logger = logging.getLogger(__name__)

# attribute_name_index + attribute_length
_ATTRIBUTE_HEADER_SIZE = 6


class AttributeMixin:
    """Mixin decoding attribute tables."""

    # These are expected from the reader and other mixins
    cursor: Cursor
    pool: ConstantPool
    options: ReaderOptions
    _nested: callable
    _read_annotations: callable
    _read_element_value: callable
    _read_type_annotations: callable
    _read_stack_map_entries: callable
    _read_stack_map_frames: callable

    def _read_attributes(self) -> tuple[Attribute, ...]:
        """Read a u2 count followed by that many attributes."""
        count = self.cursor.read_u2()
        self.cursor.require_items(count, _ATTRIBUTE_HEADER_SIZE)
        return tuple(self._read_attribute() for _ in range(count))

    def _read_attribute(self) -> Attribute:
        offset = self.cursor.position
        name_index = self.cursor.read_u2()
        length = self.cursor.read_u4()
        try:
            name = self.pool.utf8(name_index)
        except BadConstantIndex as e:
            e.offset = offset
            raise
        self.cursor.require(length)
        header = (name, name_index, length)

        reader = self._ATTRIBUTE_READERS.get(name)
        if reader is None:
            logger.debug("Keeping unknown attribute %r (%d byte(s)) as raw data", name, length)
            return UnknownAttribute(*header, self.cursor.read_bytes(length))

        start = self.cursor.position
        attribute = reader(self, header)
        self._check_attribute_length(name, start, length)
        return attribute

    def _check_attribute_length(self, name: str, start: int, length: int):
        consumed = self.cursor.position - start
        if consumed == length:
            return
        if self.options.strict_attribute_length:
            raise AttributeLengthMismatch(name, length, consumed, start)
        logger.warning(
            "Attribute %s at byte %d declares %d byte(s) but its body used %d; "
            "skipping to the declared end", name, start, length, consumed)
        self.cursor.seek(start + length)

    def _read_table(self, entry_size: int, read_entry) -> tuple:
        """Read a u2 count followed by that many entries of at least entry_size bytes."""
        count = self.cursor.read_u2()
        self.cursor.require_items(count, entry_size)
        return tuple(read_entry() for _ in range(count))

    def _read_index_list(self) -> tuple[int, ...]:
        """Read a u2 count followed by that many u2 constant pool indices."""
        return self.cursor.read_u2_list(self.cursor.read_u2())

    def _read_nested_attributes(self) -> tuple[Attribute, ...]:
        with self._nested():
            return self._read_attributes()

    # -- annotations --------------------------------------------------------

    def _read_annotations_attribute(self, header) -> AnnotationsAttribute:
        return AnnotationsAttribute(*header, self._read_annotations())

    def _read_parameter_annotations_attribute(self, header) -> ParameterAnnotationsAttribute:
        num_parameters = self.cursor.read_u1()
        self.cursor.require_items(num_parameters, 2)
        parameters = tuple(
            ParameterAnnotations(self._read_annotations()) for _ in range(num_parameters)
        )
        return ParameterAnnotationsAttribute(*header, parameters)

    def _read_type_annotations_attribute(self, header) -> TypeAnnotationsAttribute:
        return TypeAnnotationsAttribute(*header, self._read_type_annotations())

    def _read_annotation_default(self, header) -> AnnotationDefaultAttribute:
        return AnnotationDefaultAttribute(*header, self._read_element_value())

    # -- class structure ----------------------------------------------------

    def _read_marker(self, header) -> MarkerAttribute:
        return MarkerAttribute(*header)

    def _read_inner_classes(self, header) -> InnerClassesAttribute:
        read_u2 = self.cursor.read_u2
        classes = self._read_table(
            8, lambda: InnerClassEntry(read_u2(), read_u2(), read_u2(), read_u2()))
        return InnerClassesAttribute(*header, classes)

    def _read_enclosing_method(self, header) -> EnclosingMethodAttribute:
        class_index = self.cursor.read_u2()
        return EnclosingMethodAttribute(*header, class_index, self.cursor.read_u2())

    def _read_nest_host(self, header) -> NestHostAttribute:
        return NestHostAttribute(*header, self.cursor.read_u2())

    def _read_class_list(self, header) -> ClassListAttribute:
        return ClassListAttribute(*header, self._read_index_list())

    def _read_bootstrap_methods(self, header) -> BootstrapMethodsAttribute:
        def read_entry():
            ref = self.cursor.read_u2()
            return BootstrapMethod(ref, self._read_index_list())

        return BootstrapMethodsAttribute(*header, self._read_table(4, read_entry))

    def _read_record(self, header) -> RecordAttribute:
        def read_component():
            name_index = self.cursor.read_u2()
            descriptor_index = self.cursor.read_u2()
            return RecordComponent(name_index, descriptor_index, self._read_nested_attributes())

        return RecordAttribute(*header, self._read_table(6, read_component))

    # -- single index -------------------------------------------------------

    def _read_source_file(self, header) -> SourceFileAttribute:
        return SourceFileAttribute(*header, self.cursor.read_u2())

    def _read_signature(self, header) -> SignatureAttribute:
        return SignatureAttribute(*header, self.cursor.read_u2())

    def _read_constant_value(self, header) -> ConstantValueAttribute:
        return ConstantValueAttribute(*header, self.cursor.read_u2())

    def _read_module_main_class(self, header) -> ModuleMainClassAttribute:
        return ModuleMainClassAttribute(*header, self.cursor.read_u2())

    def _read_module_target(self, header) -> ModuleTargetAttribute:
        return ModuleTargetAttribute(*header, self.cursor.read_u2())

    def _read_source_debug_extension(self, header) -> SourceDebugExtensionAttribute:
        _, _, length = header
        return SourceDebugExtensionAttribute(*header, self.cursor.read_bytes(length))

    # -- methods ------------------------------------------------------------

    def _read_method_parameters(self, header) -> MethodParametersAttribute:
        parameters_count = self.cursor.read_u1()
        self.cursor.require_items(parameters_count, 4)
        read_u2 = self.cursor.read_u2
        parameters = tuple(
            MethodParameter(read_u2(), read_u2()) for _ in range(parameters_count)
        )
        return MethodParametersAttribute(*header, parameters)

    def _read_exceptions(self, header) -> ExceptionsAttribute:
        return ExceptionsAttribute(*header, self._read_index_list())

    def _read_code(self, header) -> CodeAttribute:
        max_stack = self.cursor.read_u2()
        max_locals = self.cursor.read_u2()
        code_length = self.cursor.read_u4()
        code = self.cursor.read_bytes(code_length)
        read_u2 = self.cursor.read_u2
        exception_table = self._read_table(
            8, lambda: ExceptionTableEntry(read_u2(), read_u2(), read_u2(), read_u2()))
        return CodeAttribute(
            *header,
            max_stack=max_stack,
            max_locals=max_locals,
            code=code,
            exception_table=exception_table,
            attributes=self._read_nested_attributes(),
        )

    # -- code attributes ----------------------------------------------------

    def _read_line_number_table(self, header) -> LineNumberTableAttribute:
        read_u2 = self.cursor.read_u2
        table = self._read_table(4, lambda: LineNumberEntry(read_u2(), read_u2()))
        return LineNumberTableAttribute(*header, table)

    def _read_local_variable_table(self, header) -> LocalVariableTableAttribute:
        read_u2 = self.cursor.read_u2
        table = self._read_table(
            10, lambda: LocalVariableEntry(read_u2(), read_u2(), read_u2(), read_u2(), read_u2()))
        return LocalVariableTableAttribute(*header, table)

    def _read_local_variable_type_table(self, header) -> LocalVariableTypeTableAttribute:
        read_u2 = self.cursor.read_u2
        table = self._read_table(
            10, lambda: LocalVariableTypeEntry(read_u2(), read_u2(), read_u2(), read_u2(), read_u2()))
        return LocalVariableTypeTableAttribute(*header, table)

    def _read_stack_map(self, header) -> StackMapAttribute:
        return StackMapAttribute(*header, self._read_stack_map_entries())

    def _read_stack_map_table(self, header) -> StackMapTableAttribute:
        return StackMapTableAttribute(*header, self._read_stack_map_frames())

    # -- modules ------------------------------------------------------------

    def _read_module(self, header) -> ModuleAttribute:
        read_u2 = self.cursor.read_u2
        module_name_index = read_u2()
        module_flags = read_u2()
        module_version_index = read_u2()

        requires = self._read_table(6, lambda: ModuleRequires(read_u2(), read_u2(), read_u2()))
        exports = self._read_table(
            6, lambda: ModuleExports(read_u2(), read_u2(), self._read_index_list()))
        opens = self._read_table(
            6, lambda: ModuleOpens(read_u2(), read_u2(), self._read_index_list()))
        uses_index = self._read_index_list()
        provides = self._read_table(
            4, lambda: ModuleProvides(read_u2(), self._read_index_list()))

        return ModuleAttribute(
            *header,
            module_name_index=module_name_index,
            module_flags=module_flags,
            module_version_index=module_version_index,
            requires=requires,
            exports=exports,
            opens=opens,
            uses_index=uses_index,
            provides=provides,
        )

    def _read_module_packages(self, header) -> ModulePackagesAttribute:
        return ModulePackagesAttribute(*header, self._read_index_list())

    def _read_module_hashes(self, header) -> ModuleHashesAttribute:
        algorithm_index = self.cursor.read_u2()

        def read_entry():
            module_name_index = self.cursor.read_u2()
            hash_length = self.cursor.read_u2()
            return ModuleHash(module_name_index, self.cursor.read_bytes(hash_length))

        return ModuleHashesAttribute(*header, algorithm_index, self._read_table(4, read_entry))

    _ATTRIBUTE_READERS = {
        "RuntimeVisibleAnnotations": _read_annotations_attribute,
        "RuntimeInvisibleAnnotations": _read_annotations_attribute,
        "RuntimeVisibleParameterAnnotations": _read_parameter_annotations_attribute,
        "RuntimeInvisibleParameterAnnotations": _read_parameter_annotations_attribute,
        "RuntimeVisibleTypeAnnotations": _read_type_annotations_attribute,
        "RuntimeInvisibleTypeAnnotations": _read_type_annotations_attribute,
        "AnnotationDefault": _read_annotation_default,
        "Deprecated": _read_marker,
        "Synthetic": _read_marker,
        "InnerClasses": _read_inner_classes,
        "EnclosingMethod": _read_enclosing_method,
        "NestHost": _read_nest_host,
        "NestMembers": _read_class_list,
        "PermittedSubclasses": _read_class_list,
        "BootstrapMethods": _read_bootstrap_methods,
        "Record": _read_record,
        "SourceFile": _read_source_file,
        "Signature": _read_signature,
        "ConstantValue": _read_constant_value,
        "ModuleMainClass": _read_module_main_class,
        "ModuleTarget": _read_module_target,
        "SourceDebugExtension": _read_source_debug_extension,
        "MethodParameters": _read_method_parameters,
        "Exceptions": _read_exceptions,
        "Code": _read_code,
        "LineNumberTable": _read_line_number_table,
        "LocalVariableTable": _read_local_variable_table,
        "LocalVariableTypeTable": _read_local_variable_type_table,
        "StackMap": _read_stack_map,
        "StackMapTable": _read_stack_map_table,
        "Module": _read_module,
        "ModulePackages": _read_module_packages,
        "ModuleHashes": _read_module_hashes,
    }


KNOWN_ATTRIBUTES = frozenset(AttributeMixin._ATTRIBUTE_READERS)
