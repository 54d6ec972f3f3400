"""
Annotation and element_value decoding (JVMS 4.7.16).
"""

from ..errors import UnknownElementValueTag
from ..model import (
    Annotation, ElementValue, ElementValuePair, ConstElementValue, EnumElementValue,
    ClassElementValue, AnnotationElementValue, ArrayElementValue,
)
from .cursor import Cursor


CONST_VALUE_TAGS = frozenset("BCDFIJSZs")

# type_index + num_element_value_pairs
_MIN_ANNOTATION_SIZE = 4
# name index + tag + u2
_MIN_PAIR_SIZE = 5
# tag + u2
_MIN_ELEMENT_VALUE_SIZE = 3


class AnnotationMixin:
    """Mixin decoding annotations and their element values.

    _read_annotation and _read_element_value call each other; every step
    down goes through the depth guard.
    """

    # These are expected from the reader
    cursor: Cursor
    _nested: callable

    def _read_annotations(self) -> tuple[Annotation, ...]:
        """Read a u2 count followed by that many annotations."""
        count = self.cursor.read_u2()
        self.cursor.require_items(count, _MIN_ANNOTATION_SIZE)
        return tuple(self._read_annotation() for _ in range(count))

    def _read_annotation(self) -> Annotation:
        """Read a single annotation."""
        with self._nested():
            type_index = self.cursor.read_u2()
            return Annotation(type_index, self._read_element_value_pairs())

    def _read_element_value_pairs(self) -> tuple[ElementValuePair, ...]:
        num_pairs = self.cursor.read_u2()
        self.cursor.require_items(num_pairs, _MIN_PAIR_SIZE)
        pairs = []
        for _ in range(num_pairs):
            name_index = self.cursor.read_u2()
            pairs.append(ElementValuePair(name_index, self._read_element_value()))
        return tuple(pairs)

    def _read_element_value(self) -> ElementValue:
        """Read an annotation element value."""
        with self._nested():
            offset = self.cursor.position
            tag_byte = self.cursor.read_u1()
            tag = chr(tag_byte)

            if tag in CONST_VALUE_TAGS:
                return ConstElementValue(tag, self.cursor.read_u2())

            elif tag == "e":
                type_name_index = self.cursor.read_u2()
                return EnumElementValue(tag, type_name_index, self.cursor.read_u2())

            elif tag == "c":
                return ClassElementValue(tag, self.cursor.read_u2())

            elif tag == "@":
                return AnnotationElementValue(tag, self._read_annotation())

            elif tag == "[":
                num_values = self.cursor.read_u2()
                self.cursor.require_items(num_values, _MIN_ELEMENT_VALUE_SIZE)
                values = tuple(self._read_element_value() for _ in range(num_values))
                return ArrayElementValue(tag, values)

            raise UnknownElementValueTag(tag_byte, offset)
