"""
Type annotation decoding (JVMS 4.7.20): target_info union and type_path.
"""

from ..constants import TargetType
from ..errors import UnknownTargetType
from ..model import (
    TypeAnnotation, TargetInfo, TypePath, TypePathEntry, TypeParameterTarget,
    SupertypeTarget, TypeParameterBoundTarget, EmptyTarget, FormalParameterTarget,
    ThrowsTarget, LocalvarTarget, LocalvarTargetEntry, CatchTarget, OffsetTarget,
    TypeArgumentTarget,
)
from .cursor import Cursor


# target_type + path_length + type_index + num_element_value_pairs
_MIN_TYPE_ANNOTATION_SIZE = 6


class TypeAnnotationMixin:
    """Mixin decoding type_annotation structures."""

    # These are expected from other mixins
    cursor: Cursor
    _nested: callable
    _read_element_value_pairs: callable

    def _read_type_annotations(self) -> tuple[TypeAnnotation, ...]:
        count = self.cursor.read_u2()
        self.cursor.require_items(count, _MIN_TYPE_ANNOTATION_SIZE)
        return tuple(self._read_type_annotation() for _ in range(count))

    def _read_type_annotation(self) -> TypeAnnotation:
        with self._nested():
            target_type = self.cursor.read_u1()
            target_info = self._read_target_info(target_type)
            type_path = self._read_type_path()
            type_index = self.cursor.read_u2()
            return TypeAnnotation(
                target_type=target_type,
                target_info=target_info,
                type_path=type_path,
                type_index=type_index,
                element_value_pairs=self._read_element_value_pairs(),
            )

    def _read_target_info(self, target_type: int) -> TargetInfo:
        """Read the target_info union selected by target_type."""
        read_u1 = self.cursor.read_u1
        read_u2 = self.cursor.read_u2

        if target_type in (TargetType.CLASS_TYPE_PARAMETER, TargetType.METHOD_TYPE_PARAMETER):
            return TypeParameterTarget(read_u1())

        elif target_type == TargetType.CLASS_EXTENDS:
            return SupertypeTarget(read_u2())

        elif target_type in (TargetType.CLASS_TYPE_PARAMETER_BOUND,
                             TargetType.METHOD_TYPE_PARAMETER_BOUND):
            type_parameter_index = read_u1()
            return TypeParameterBoundTarget(type_parameter_index, read_u1())

        elif TargetType.FIELD <= target_type <= TargetType.METHOD_RECEIVER:
            return EmptyTarget()

        elif target_type == TargetType.METHOD_FORMAL_PARAMETER:
            return FormalParameterTarget(read_u1())

        elif target_type == TargetType.THROWS:
            return ThrowsTarget(read_u2())

        elif target_type in (TargetType.LOCAL_VARIABLE, TargetType.RESOURCE_VARIABLE):
            table_length = read_u2()
            self.cursor.require_items(table_length, 6)
            table = tuple(
                LocalvarTargetEntry(read_u2(), read_u2(), read_u2())
                for _ in range(table_length)
            )
            return LocalvarTarget(table)

        elif target_type == TargetType.EXCEPTION_PARAMETER:
            return CatchTarget(read_u2())

        # instanceof, new and the two member references
        elif TargetType.INSTANCEOF <= target_type <= TargetType.METHOD_REFERENCE:
            return OffsetTarget(read_u2())

        # casts and the four type-argument positions
        elif TargetType.CAST <= target_type <= TargetType.METHOD_REFERENCE_TYPE_ARGUMENT:
            offset = read_u2()
            return TypeArgumentTarget(offset, read_u1())

        raise UnknownTargetType(target_type, self.cursor.position - 1)

    def _read_type_path(self) -> TypePath:
        path_length = self.cursor.read_u1()
        self.cursor.require_items(path_length, 2)
        path = tuple(
            TypePathEntry(self.cursor.read_u1(), self.cursor.read_u1())
            for _ in range(path_length)
        )
        return TypePath(path)
