"""Tests for whole class file decoding."""

import json

import pytest

from pyjcr import decode, ClassReader, ReaderOptions, ClassFile
from pyjcr.constants import AccessFlags, ClassFileVersion
from pyjcr.errors import ClassFormatError, MagicMismatch, TruncatedInput
from pyjcr.model import FieldInfo, MethodInfo, CodeAttribute, ConstantValueAttribute

from .builder import ClassFileBuilder, u2

# Magic, version 52.0 and a pool holding only the sentinel.
MINIMAL_PREFIX = bytes.fromhex("CAFEBABE 00000034 0001".replace(" ", ""))
# access_flags, this_class, super_class and four empty counts.
MINIMAL_REST = u2(0x0021) + u2(0) + u2(0) + u2(0) + u2(0) + u2(0) + u2(0)


@pytest.fixture
def sample_class():
    builder = ClassFileBuilder(name="com/example/Point")
    builder.add_interface("java/io/Serializable")
    cp = builder.cp
    builder.add_field(
        AccessFlags.PUBLIC | AccessFlags.STATIC | AccessFlags.FINAL, "ORIGIN", "I",
        [builder.attribute("ConstantValue", u2(cp.add_integer(0)))],
    )
    builder.add_field(AccessFlags.PRIVATE, "x", "I")
    code = (u2(1) + u2(1) + bytes.fromhex("00000005") + bytes.fromhex("2ab70001b1")
            + u2(0) + u2(0))
    builder.add_method(AccessFlags.PUBLIC, "<init>", "()V", [builder.attribute("Code", code)])
    builder.add_attribute("SourceFile", u2(cp.add_utf8("Point.java")))
    return builder


class TestMagicAndVersion:
    def test_minimal_class(self):
        class_file = decode(MINIMAL_PREFIX + MINIMAL_REST)
        assert isinstance(class_file, ClassFile)
        assert class_file.major_version == 52
        assert class_file.minor_version == 0
        assert class_file.version == ClassFileVersion.JAVA_8
        assert class_file.constant_pool.entries == (None,)
        assert class_file.interfaces == ()
        assert class_file.fields == ()
        assert class_file.methods == ()
        assert class_file.attributes == ()

    def test_magic_mismatch(self):
        data = bytes.fromhex("CAFEBAAD") + MINIMAL_PREFIX[4:] + MINIMAL_REST
        with pytest.raises(MagicMismatch) as exc_info:
            decode(data)
        assert exc_info.value.stage == "magic"
        assert "0xcafebaad" in str(exc_info.value)

    def test_empty_input(self):
        with pytest.raises(TruncatedInput) as exc_info:
            decode(b"")
        assert exc_info.value.stage == "magic"

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            decode(b"\x00\x01\x02\x03")


class TestClassStructure:
    def test_header(self, sample_class):
        class_file = decode(sample_class.to_bytes())
        assert class_file.name == "com/example/Point"
        assert class_file.constant_pool.class_name(class_file.super_class) == "java/lang/Object"
        assert class_file.access_flags == AccessFlags.PUBLIC | AccessFlags.SUPER
        (interface,) = class_file.interfaces
        assert class_file.constant_pool.class_name(interface) == "java/io/Serializable"

    def test_members(self, sample_class):
        class_file = decode(sample_class.to_bytes())
        pool = class_file.constant_pool

        origin, x = class_file.fields
        assert isinstance(origin, FieldInfo)
        assert pool.utf8(origin.name_index) == "ORIGIN"
        assert pool.utf8(x.descriptor_index) == "I"
        constant = origin.find_attribute("ConstantValue")
        assert isinstance(constant, ConstantValueAttribute)
        assert pool[constant.constantvalue_index].value == 0
        assert x.attributes == ()

        (init,) = class_file.methods
        assert isinstance(init, MethodInfo)
        assert pool.utf8(init.name_index) == "<init>"
        code = init.find_attribute("Code")
        assert isinstance(code, CodeAttribute)
        assert code.code == bytes.fromhex("2ab70001b1")

    def test_class_attributes(self, sample_class):
        class_file = decode(sample_class.to_bytes())
        source = class_file.find_attribute("SourceFile")
        assert class_file.constant_pool.utf8(source.sourcefile_index) == "Point.java"
        assert class_file.find_attribute("Deprecated") is None

    def test_decoding_is_deterministic(self, sample_class):
        data = sample_class.to_bytes()
        assert decode(data) == decode(data)
        assert decode(data).to_json() == decode(data).to_json()

    def test_reader_instances_are_independent(self, sample_class):
        data = sample_class.to_bytes()
        first = ClassReader(data)
        second = ClassReader(MINIMAL_PREFIX + MINIMAL_REST)
        assert first.read().name == "com/example/Point"
        assert second.read().name is None

    def test_trailing_bytes_are_ignored(self, sample_class):
        data = sample_class.to_bytes()
        assert decode(data + b"\x00\x00") == decode(data)

    def test_to_json(self, sample_class):
        tree = json.loads(decode(sample_class.to_bytes()).to_json())
        assert tree["_type"] == "ClassFile"
        assert tree["major_version"] == 52
        method = tree["methods"][0]
        assert method["_type"] == "MethodInfo"
        assert method["attributes"][0]["code"] == [0x2A, 0xB7, 0x00, 0x01, 0xB1]
        assert tree["constant_pool"]["entries"][0] is None


class TestTruncation:
    @pytest.mark.parametrize("cut,stage", [
        (6, "version"),
        (9, "constant pool"),
        (12, "class header"),
    ])
    def test_stage_is_reported(self, cut, stage):
        data = (MINIMAL_PREFIX + MINIMAL_REST)[:cut]
        with pytest.raises(TruncatedInput) as exc_info:
            decode(data)
        assert exc_info.value.stage == stage
        assert str(exc_info.value).startswith(f"{stage}: ")

    def test_every_prefix_fails_cleanly(self, sample_class):
        data = sample_class.to_bytes()
        for cut in range(len(data)):
            with pytest.raises(ClassFormatError):
                decode(data[:cut])

    def test_huge_interface_count(self):
        data = MINIMAL_PREFIX + u2(0x21) + u2(0) + u2(0) + u2(0xFFFF) + u2(1)
        with pytest.raises(TruncatedInput) as exc_info:
            decode(data)
        assert exc_info.value.stage == "interfaces"

    def test_huge_method_count(self):
        data = MINIMAL_PREFIX + u2(0x21) + u2(0) + u2(0) + u2(0) + u2(0) + u2(0xFFFF)
        with pytest.raises(TruncatedInput) as exc_info:
            decode(data)
        assert exc_info.value.stage == "method count"

    def test_truncated_member(self, sample_class):
        sample_class.add_method(AccessFlags.PUBLIC, "run", "()V")
        data = sample_class.to_bytes()
        # Drop the class attributes and the tail of the last method.
        cut = data[:-(2 + 8 + 4)]
        with pytest.raises(ClassFormatError) as exc_info:
            decode(cut)
        assert exc_info.value.stage.startswith("method")


class TestReaderOptions:
    def test_defaults(self):
        options = ReaderOptions()
        assert options.max_depth == 64
        assert options.strict_attribute_length is True

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            ReaderOptions(max_depth=0)
