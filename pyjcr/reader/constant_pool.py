"""
Constant pool decoding.
"""

import logging

from ..constants import ConstantPoolTag
from ..errors import UnknownConstantTag
from ..model import (
    ConstantPool, ConstantPoolEntry, Utf8Info, IntegerInfo, FloatInfo, LongInfo,
    DoubleInfo, ClassInfo, StringInfo, FieldrefInfo, MethodrefInfo,
    InterfaceMethodrefInfo, NameAndTypeInfo, MethodHandleInfo, MethodTypeInfo,
    InvokeDynamicInfo, ModuleInfo, PackageInfo,
)
from .cursor import Cursor

logger = logging.getLogger(__name__)

# Every entry is at least a tag byte plus a u2.
_MIN_ENTRY_SIZE = 3

# Entry classes whose body is (u2, u2).
_REF_KINDS = {
    ConstantPoolTag.FIELDREF: FieldrefInfo,
    ConstantPoolTag.METHODREF: MethodrefInfo,
    ConstantPoolTag.INTERFACE_METHODREF: InterfaceMethodrefInfo,
    ConstantPoolTag.NAME_AND_TYPE: NameAndTypeInfo,
    ConstantPoolTag.INVOKE_DYNAMIC: InvokeDynamicInfo,
}

# Entry classes whose body is a single u2.
_INDEX_KINDS = {
    ConstantPoolTag.CLASS: ClassInfo,
    ConstantPoolTag.STRING: StringInfo,
    ConstantPoolTag.METHOD_TYPE: MethodTypeInfo,
    ConstantPoolTag.MODULE: ModuleInfo,
    ConstantPoolTag.PACKAGE: PackageInfo,
}


class ConstantPoolMixin:
    """Mixin decoding the constant_pool table."""

    cursor: Cursor

    def _read_constant_pool(self, count: int) -> ConstantPool:
        """Read count - 1 pool slots; index 0 stays a None sentinel."""
        self.cursor.require_items(max(count - 1, 0), _MIN_ENTRY_SIZE)
        entries: list = [None]  # 1-indexed
        remaining = count - 1
        while remaining > 0:
            entry = self._read_constant_pool_entry()
            entries.append(entry)
            remaining -= 1
            # 8-byte constants take two slots; the second is unusable
            if entry.tag in (ConstantPoolTag.LONG, ConstantPoolTag.DOUBLE):
                entries.append(None)
                remaining -= 1
        logger.debug("Read constant pool: %d slot(s), %d byte(s) consumed",
                     len(entries), self.cursor.position)
        return ConstantPool(tuple(entries), declared_count=count)

    def _read_constant_pool_entry(self) -> ConstantPoolEntry:
        offset = self.cursor.position
        tag = self.cursor.read_u1()

        if tag == ConstantPoolTag.UTF8:
            length = self.cursor.read_u2()
            return Utf8Info(length, self.cursor.read_bytes(length))

        elif tag == ConstantPoolTag.INTEGER:
            return IntegerInfo(self.cursor.read_u4())

        elif tag == ConstantPoolTag.FLOAT:
            return FloatInfo(self.cursor.read_u4())

        elif tag == ConstantPoolTag.LONG:
            high = self.cursor.read_u4()
            return LongInfo(high, self.cursor.read_u4())

        elif tag == ConstantPoolTag.DOUBLE:
            high = self.cursor.read_u4()
            return DoubleInfo(high, self.cursor.read_u4())

        elif tag in _INDEX_KINDS:
            return _INDEX_KINDS[tag](self.cursor.read_u2())

        elif tag in _REF_KINDS:
            first = self.cursor.read_u2()
            return _REF_KINDS[tag](first, self.cursor.read_u2())

        elif tag == ConstantPoolTag.METHOD_HANDLE:
            kind = self.cursor.read_u1()
            return MethodHandleInfo(kind, self.cursor.read_u2())

        raise UnknownConstantTag(tag, offset)
