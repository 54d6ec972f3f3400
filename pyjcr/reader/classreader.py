"""
Class file reader: drives one linear pass over the bytes of a class file.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from ..constants import CLASS_FILE_MAGIC
from ..errors import ClassFormatError, MagicMismatch, NestingTooDeep
from ..model import ClassFile, ConstantPool, FieldInfo, MethodInfo, MemberInfo
from .cursor import Cursor
from .types import ReaderOptions
from .constant_pool import ConstantPoolMixin
from .annotations import AnnotationMixin
from .type_annotations import TypeAnnotationMixin
from .stackmap import StackMapMixin
from .attributes import AttributeMixin

logger = logging.getLogger(__name__)

# access_flags + name_index + descriptor_index + attributes_count
_MIN_MEMBER_SIZE = 8


class ClassReader(
    ConstantPoolMixin,
    AnnotationMixin,
    TypeAnnotationMixin,
    StackMapMixin,
    AttributeMixin,
):
    """Reads one class file.

    An instance is the decode context of a single call: it owns the cursor,
    the constant pool once it has been read, and the current nesting depth.
    Create a new reader per input; nothing is shared between readers.
    """

    def __init__(self, data: bytes, options: Optional[ReaderOptions] = None):
        self.cursor = Cursor(data)
        self.options = options or ReaderOptions()
        self.pool = ConstantPool()
        self._depth = 0

    @contextmanager
    def _nested(self):
        """Guard one level of recursive structure."""
        if self._depth >= self.options.max_depth:
            raise NestingTooDeep(self.options.max_depth, self.cursor.position)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    @contextmanager
    def _stage(self, name: str):
        """Label errors escaping this block with the structure being read."""
        try:
            yield
        except ClassFormatError as e:
            if e.stage is None:
                e.stage = name
            raise

    def _read_magic(self):
        with self._stage("magic"):
            magic = self.cursor.read_u4()
            if magic != CLASS_FILE_MAGIC:
                raise MagicMismatch(f"Invalid class file magic: {magic:#010x}", 0)

    def _read_members(self, kind: str, member_class: type) -> tuple[MemberInfo, ...]:
        """Read a u2 count followed by field_info or method_info structures."""
        with self._stage(f"{kind} count"):
            count = self.cursor.read_u2()
            self.cursor.require_items(count, _MIN_MEMBER_SIZE)
        members = []
        for i in range(count):
            with self._stage(f"{kind} {i}"):
                access_flags = self.cursor.read_u2()
                name_index = self.cursor.read_u2()
                descriptor_index = self.cursor.read_u2()
                members.append(member_class(
                    access_flags=access_flags,
                    name_index=name_index,
                    descriptor_index=descriptor_index,
                    attributes=self._read_attributes(),
                ))
        return tuple(members)

    def read(self) -> ClassFile:
        """Read the class file and return the decoded tree."""
        self._read_magic()

        with self._stage("version"):
            minor = self.cursor.read_u2()
            major = self.cursor.read_u2()
        logger.debug("Class file version %d.%d", major, minor)

        with self._stage("constant pool"):
            self.pool = self._read_constant_pool(self.cursor.read_u2())

        with self._stage("class header"):
            access_flags = self.cursor.read_u2()
            this_class = self.cursor.read_u2()
            super_class = self.cursor.read_u2()

        with self._stage("interfaces"):
            interfaces = self.cursor.read_u2_list(self.cursor.read_u2())

        fields = self._read_members("field", FieldInfo)
        methods = self._read_members("method", MethodInfo)

        with self._stage("class attributes"):
            attributes = self._read_attributes()

        if self.cursor.remaining:
            logger.debug("Ignoring %d trailing byte(s) after the class attributes",
                         self.cursor.remaining)

        return ClassFile(
            minor_version=minor,
            major_version=major,
            constant_pool=self.pool,
            access_flags=access_flags,
            this_class=this_class,
            super_class=super_class,
            interfaces=interfaces,
            fields=fields,
            methods=methods,
            attributes=attributes,
        )


def decode(data: bytes, options: Optional[ReaderOptions] = None) -> ClassFile:
    """Decode the bytes of a class file into a ClassFile tree."""
    return ClassReader(data, options).read()
