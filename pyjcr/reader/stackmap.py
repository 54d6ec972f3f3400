"""
Stack map decoding: the legacy CLDC StackMap attribute and the
StackMapTable attribute (JVMS 4.7.4).
"""

from ..constants import VerificationTypeTag
from ..errors import UnknownVerificationType
from ..model import (
    VerificationTypeInfo, TopVariable, IntegerVariable, FloatVariable, DoubleVariable,
    LongVariable, NullVariable, UninitializedThisVariable, ObjectVariable,
    UninitializedVariable, StackMapEntry, StackMapFrame, SameFrame,
    SameLocals1StackItemFrame, ReservedFrame, SameLocals1StackItemFrameExtended,
    ChopFrame, SameFrameExtended, AppendFrame, FullFrame,
)
from .cursor import Cursor


# frame_type ranges of StackMapTable entries, inclusive
SAME_MIN, SAME_MAX = 0, 63
SAME_LOCALS_1_STACK_ITEM_MIN, SAME_LOCALS_1_STACK_ITEM_MAX = 64, 127
RESERVED_MIN, RESERVED_MAX = 128, 246
SAME_LOCALS_1_STACK_ITEM_EXTENDED = 247
CHOP_MIN, CHOP_MAX = 248, 250
SAME_FRAME_EXTENDED = 251
APPEND_MIN, APPEND_MAX = 252, 254
FULL_FRAME = 255

# Verification types without a payload, by tag.
_SIMPLE_TYPES = {
    VerificationTypeTag.TOP: TopVariable(),
    VerificationTypeTag.INTEGER: IntegerVariable(),
    VerificationTypeTag.FLOAT: FloatVariable(),
    VerificationTypeTag.DOUBLE: DoubleVariable(),
    VerificationTypeTag.LONG: LongVariable(),
    VerificationTypeTag.NULL: NullVariable(),
    VerificationTypeTag.UNINITIALIZED_THIS: UninitializedThisVariable(),
}


class StackMapMixin:
    """Mixin decoding stack map frames."""

    cursor: Cursor

    def _read_verification_type_info(self) -> VerificationTypeInfo:
        tag = self.cursor.read_u1()
        if tag in _SIMPLE_TYPES:
            return _SIMPLE_TYPES[tag]
        elif tag == VerificationTypeTag.OBJECT:
            return ObjectVariable(self.cursor.read_u2())
        elif tag == VerificationTypeTag.UNINITIALIZED:
            return UninitializedVariable(self.cursor.read_u2())
        raise UnknownVerificationType(tag, self.cursor.position - 1)

    def _read_verification_types(self, count: int) -> tuple[VerificationTypeInfo, ...]:
        self.cursor.require(count)
        return tuple(self._read_verification_type_info() for _ in range(count))

    def _read_stack_map_entries(self) -> tuple[StackMapEntry, ...]:
        """Read the legacy StackMap entry list; every count is explicit.

        CLDC allows 32-bit fields for very large methods; like other
        readers this assumes the 16-bit form throughout.
        """
        number_of_entries = self.cursor.read_u2()
        self.cursor.require_items(number_of_entries, 6)
        entries = []
        for _ in range(number_of_entries):
            offset = self.cursor.read_u2()
            locals_ = self._read_verification_types(self.cursor.read_u2())
            stack = self._read_verification_types(self.cursor.read_u2())
            entries.append(StackMapEntry(offset, locals_, stack))
        return tuple(entries)

    def _read_stack_map_frames(self) -> tuple[StackMapFrame, ...]:
        number_of_entries = self.cursor.read_u2()
        self.cursor.require(number_of_entries)
        return tuple(self._read_stack_map_frame() for _ in range(number_of_entries))

    def _read_stack_map_frame(self) -> StackMapFrame:
        """Read one StackMapTable frame; its kind is implied by the range of frame_type."""
        frame_type = self.cursor.read_u1()

        if SAME_MIN <= frame_type <= SAME_MAX:
            return SameFrame(frame_type)

        elif SAME_LOCALS_1_STACK_ITEM_MIN <= frame_type <= SAME_LOCALS_1_STACK_ITEM_MAX:
            return SameLocals1StackItemFrame(frame_type, (self._read_verification_type_info(),))

        elif RESERVED_MIN <= frame_type <= RESERVED_MAX:
            return ReservedFrame(frame_type)

        elif frame_type == SAME_LOCALS_1_STACK_ITEM_EXTENDED:
            offset_delta = self.cursor.read_u2()
            return SameLocals1StackItemFrameExtended(
                frame_type, offset_delta, (self._read_verification_type_info(),))

        elif CHOP_MIN <= frame_type <= CHOP_MAX:
            return ChopFrame(frame_type, self.cursor.read_u2())

        elif frame_type == SAME_FRAME_EXTENDED:
            return SameFrameExtended(frame_type, self.cursor.read_u2())

        elif APPEND_MIN <= frame_type <= APPEND_MAX:
            offset_delta = self.cursor.read_u2()
            locals_ = self._read_verification_types(frame_type - SAME_FRAME_EXTENDED)
            return AppendFrame(frame_type, offset_delta, locals_)

        # FULL_FRAME is the only value left
        offset_delta = self.cursor.read_u2()
        locals_ = self._read_verification_types(self.cursor.read_u2())
        stack = self._read_verification_types(self.cursor.read_u2())
        return FullFrame(frame_type, offset_delta, locals_, stack)
