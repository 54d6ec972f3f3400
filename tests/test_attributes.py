"""Tests for attribute decoding."""

import logging

import pytest

from pyjcr import decode, ReaderOptions
from pyjcr.errors import (
    AttributeLengthMismatch, BadConstantIndex, NestingTooDeep, TruncatedInput,
)
from pyjcr.model import (
    UnknownAttribute, MarkerAttribute, InnerClassesAttribute, InnerClassEntry,
    EnclosingMethodAttribute, NestHostAttribute, ClassListAttribute,
    BootstrapMethodsAttribute, BootstrapMethod, RecordAttribute, SourceFileAttribute,
    SignatureAttribute, ConstantValueAttribute, ModuleMainClassAttribute,
    ModuleTargetAttribute, SourceDebugExtensionAttribute, MethodParametersAttribute,
    MethodParameter, ExceptionsAttribute, CodeAttribute, ExceptionTableEntry,
    LineNumberTableAttribute, LineNumberEntry, LocalVariableTableAttribute,
    LocalVariableEntry, LocalVariableTypeTableAttribute, LocalVariableTypeEntry,
    StackMapTableAttribute, SameFrame, ModuleAttribute, ModuleRequires, ModuleExports,
    ModuleOpens, ModuleProvides, ModulePackagesAttribute, ModuleHashesAttribute, ModuleHash,
)
from pyjcr.reader import KNOWN_ATTRIBUTES

from .builder import ClassFileBuilder, decode_attribute, u1, u2, u4, u2s


@pytest.fixture
def builder():
    return ClassFileBuilder()


def code_body(builder, code=b"\xb1", exception_table=(), attributes=(),
              max_stack=1, max_locals=1) -> bytes:
    return (u2(max_stack) + u2(max_locals) + u4(len(code)) + code
            + u2(len(exception_table)) + b"".join(u2s(*e) for e in exception_table)
            + builder.attribute_table(*attributes))


class TestAttributeHeader:
    def test_header_fields(self, builder):
        attr = decode_attribute("SourceFile", u2(7), builder)
        assert attr.name == "SourceFile"
        assert attr.attribute_name_index == builder.cp.add_utf8("SourceFile")
        assert attr.attribute_length == 2

    def test_unknown_attribute_keeps_bytes(self, builder):
        attr = decode_attribute("com.example.Custom", b"\x01\x02\x03", builder)
        assert isinstance(attr, UnknownAttribute)
        assert attr.info == b"\x01\x02\x03"
        assert attr.attribute_length == 3

    def test_unknown_attribute_between_known_ones(self, builder):
        builder.add_attribute("SourceFile", u2(1))
        builder.add_attribute("Vendor", b"\xff" * 10)
        builder.add_attribute("Deprecated", b"")
        class_file = decode(builder.to_bytes())
        assert [type(a) for a in class_file.attributes] == [
            SourceFileAttribute, UnknownAttribute, MarkerAttribute,
        ]

    def test_name_index_must_be_utf8(self, builder):
        builder.attributes.append(u2(builder.this_class) + u4(0))
        with pytest.raises(BadConstantIndex) as exc_info:
            decode(builder.to_bytes())
        assert exc_info.value.stage == "class attributes"
        assert exc_info.value.offset is not None

    def test_name_index_out_of_range(self, builder):
        builder.attributes.append(u2(0x7FFF) + u4(0))
        with pytest.raises(BadConstantIndex):
            decode(builder.to_bytes())

    def test_length_beyond_input(self, builder):
        builder.attributes.append(u2(builder.cp.add_utf8("Vendor")) + u4(1000) + b"abc")
        with pytest.raises(TruncatedInput):
            decode(builder.to_bytes())

    def test_known_attribute_names(self):
        assert "Code" in KNOWN_ATTRIBUTES
        assert "StackMapTable" in KNOWN_ATTRIBUTES
        assert "Vendor" not in KNOWN_ATTRIBUTES


class TestLengthMismatch:
    def test_strict_by_default(self, builder):
        builder.add_attribute("SourceFile", u2(1) + b"\x00\x00", length=4)
        with pytest.raises(AttributeLengthMismatch) as exc_info:
            decode(builder.to_bytes())
        err = exc_info.value
        assert err.name == "SourceFile"
        assert err.declared == 4
        assert err.consumed == 2

    def test_lenient_skips_to_declared_end(self, builder, caplog):
        builder.add_attribute("SourceFile", u2(1) + b"\x00\x00", length=4)
        builder.add_attribute("Deprecated", b"")
        with caplog.at_level(logging.WARNING, logger="pyjcr"):
            class_file = decode(builder.to_bytes(),
                                ReaderOptions(strict_attribute_length=False))
        source, deprecated = class_file.attributes
        assert source.sourcefile_index == 1
        assert source.attribute_length == 4
        assert isinstance(deprecated, MarkerAttribute)
        assert "declares 4 byte(s)" in caplog.text

    def test_marker_with_payload(self, builder):
        builder.add_attribute("Synthetic", b"\x00")
        with pytest.raises(AttributeLengthMismatch):
            decode(builder.to_bytes())


class TestClassAttributes:
    def test_markers(self, builder):
        assert isinstance(decode_attribute("Deprecated", b"", builder), MarkerAttribute)
        assert decode_attribute("Synthetic", b"").name == "Synthetic"

    def test_inner_classes(self, builder):
        body = u2(2) + u2s(3, 1, 4, 0x0009) + u2s(5, 0, 0, 0x1010)
        attr = decode_attribute("InnerClasses", body, builder)
        assert isinstance(attr, InnerClassesAttribute)
        assert attr.classes == (
            InnerClassEntry(3, 1, 4, 0x0009),
            InnerClassEntry(5, 0, 0, 0x1010),
        )

    def test_enclosing_method(self):
        attr = decode_attribute("EnclosingMethod", u2s(2, 0))
        assert attr == EnclosingMethodAttribute("EnclosingMethod", attr.attribute_name_index, 4, 2, 0)

    def test_nest_host_and_members(self, builder):
        host = decode_attribute("NestHost", u2(1))
        assert isinstance(host, NestHostAttribute)
        assert host.host_class_index == 1
        members = decode_attribute("NestMembers", u2s(2, 7, 9), builder)
        assert isinstance(members, ClassListAttribute)
        assert members.classes == (7, 9)

    def test_permitted_subclasses(self):
        attr = decode_attribute("PermittedSubclasses", u2s(1, 4))
        assert isinstance(attr, ClassListAttribute)
        assert attr.classes == (4,)

    def test_bootstrap_methods(self):
        body = u2(2) + u2s(10, 3, 11, 12, 13) + u2s(14, 0)
        attr = decode_attribute("BootstrapMethods", body)
        assert isinstance(attr, BootstrapMethodsAttribute)
        assert attr.bootstrap_methods == (
            BootstrapMethod(10, (11, 12, 13)),
            BootstrapMethod(14, ()),
        )

    @pytest.mark.parametrize("name,cls,field", [
        ("SourceFile", SourceFileAttribute, "sourcefile_index"),
        ("Signature", SignatureAttribute, "signature_index"),
        ("ConstantValue", ConstantValueAttribute, "constantvalue_index"),
        ("ModuleMainClass", ModuleMainClassAttribute, "main_class_index"),
        ("ModuleTarget", ModuleTargetAttribute, "target_platform_index"),
    ])
    def test_single_index(self, name, cls, field):
        attr = decode_attribute(name, u2(0x1234))
        assert isinstance(attr, cls)
        assert getattr(attr, field) == 0x1234

    def test_source_debug_extension(self):
        smap = b"SMAP\nTest.java\nJava\n*E\n"
        attr = decode_attribute("SourceDebugExtension", smap)
        assert isinstance(attr, SourceDebugExtensionAttribute)
        assert attr.debug_extension == smap

    def test_record(self, builder):
        signature = builder.attribute("Signature", u2(builder.cp.add_utf8("TT;")))
        body = (u2(2)
                + u2s(1, 2) + builder.attribute_table()
                + u2s(3, 4) + builder.attribute_table(signature))
        attr = decode_attribute("Record", body, builder)
        assert isinstance(attr, RecordAttribute)
        first, second = attr.components
        assert (first.name_index, first.descriptor_index, first.attributes) == (1, 2, ())
        assert isinstance(second.attributes[0], SignatureAttribute)


class TestMethodAttributes:
    def test_method_parameters(self):
        body = u1(2) + u2s(5, 0) + u2s(0, 0x8010)
        attr = decode_attribute("MethodParameters", body)
        assert isinstance(attr, MethodParametersAttribute)
        assert attr.parameters == (MethodParameter(5, 0), MethodParameter(0, 0x8010))

    def test_exceptions(self):
        attr = decode_attribute("Exceptions", u2s(2, 8, 9))
        assert isinstance(attr, ExceptionsAttribute)
        assert attr.exception_index_table == (8, 9)

    def test_code(self, builder):
        line_numbers = builder.attribute("LineNumberTable", u2(2) + u2s(0, 10) + u2s(4, 11))
        body = code_body(
            builder,
            code=bytes.fromhex("2a b7 00 01 b1".replace(" ", "")),
            exception_table=[(0, 4, 4, 0)],
            attributes=[line_numbers],
            max_stack=2,
            max_locals=3,
        )
        attr = decode_attribute("Code", body, builder)
        assert isinstance(attr, CodeAttribute)
        assert attr.max_stack == 2
        assert attr.max_locals == 3
        assert attr.code == b"\x2a\xb7\x00\x01\xb1"
        assert attr.exception_table == (ExceptionTableEntry(0, 4, 4, 0),)

        table = attr.find_attribute("LineNumberTable")
        assert isinstance(table, LineNumberTableAttribute)
        assert table.line_number_table == (LineNumberEntry(0, 10), LineNumberEntry(4, 11))
        assert attr.find_attribute("StackMapTable") is None

    def test_code_with_local_variables_and_frames(self, builder):
        attributes = [
            builder.attribute("LocalVariableTable", u2(1) + u2s(0, 5, 6, 7, 0)),
            builder.attribute("LocalVariableTypeTable", u2(1) + u2s(0, 5, 6, 8, 0)),
            builder.attribute("StackMapTable", u2(1) + u1(3)),
        ]
        attr = decode_attribute("Code", code_body(builder, attributes=attributes), builder)
        lvt, lvtt, frames = attr.attributes
        assert isinstance(lvt, LocalVariableTableAttribute)
        assert lvt.local_variable_table == (LocalVariableEntry(0, 5, 6, 7, 0),)
        assert isinstance(lvtt, LocalVariableTypeTableAttribute)
        assert lvtt.local_variable_type_table == (LocalVariableTypeEntry(0, 5, 6, 8, 0),)
        assert isinstance(frames, StackMapTableAttribute)
        assert frames.entries == (SameFrame(3),)

    def test_nested_attribute_length_is_checked(self, builder):
        bad = builder.attribute("SourceFile", u2(1) + b"\x00", length=3)
        with pytest.raises(AttributeLengthMismatch) as exc_info:
            decode_attribute("Code", code_body(builder, attributes=[bad]), builder)
        assert exc_info.value.name == "SourceFile"

    def test_code_length_beyond_attribute(self, builder):
        body = u2s(1, 1) + u4(0xFFFFFF) + b"\xb1"
        with pytest.raises(TruncatedInput):
            decode_attribute("Code", body, builder)

    def test_nesting_limit(self, builder):
        inner = builder.attribute("Code", code_body(builder))
        for _ in range(70):
            inner = builder.attribute("Code", code_body(builder, attributes=[inner]))
        builder.attributes.append(inner)
        with pytest.raises(NestingTooDeep):
            decode(builder.to_bytes())


class TestModuleAttributes:
    def test_module(self, builder):
        body = (
            u2s(1, 0x0020, 0)
            + u2(1) + u2s(2, 0x8000, 3)
            + u2(2) + u2s(4, 0, 0) + u2s(5, 0, 2, 6, 7)
            + u2(1) + u2s(8, 0, 1, 6)
            + u2s(2, 9, 10)
            + u2(1) + u2s(11, 2, 12, 13)
        )
        attr = decode_attribute("Module", body, builder)
        assert isinstance(attr, ModuleAttribute)
        assert (attr.module_name_index, attr.module_flags, attr.module_version_index) == (1, 0x20, 0)
        assert attr.requires == (ModuleRequires(2, 0x8000, 3),)
        assert attr.exports == (ModuleExports(4, 0, ()), ModuleExports(5, 0, (6, 7)))
        assert attr.opens == (ModuleOpens(8, 0, (6,)),)
        assert attr.uses_index == (9, 10)
        assert attr.provides == (ModuleProvides(11, (12, 13)),)

    def test_module_packages(self):
        attr = decode_attribute("ModulePackages", u2s(3, 1, 2, 3))
        assert isinstance(attr, ModulePackagesAttribute)
        assert attr.package_index == (1, 2, 3)

    def test_module_hashes(self):
        digest = bytes(range(32))
        body = u2(4) + u2(2) + u2(5) + u2(len(digest)) + digest + u2(6) + u2(0)
        attr = decode_attribute("ModuleHashes", body)
        assert isinstance(attr, ModuleHashesAttribute)
        assert attr.algorithm_index == 4
        assert attr.hashes_table == (ModuleHash(5, digest), ModuleHash(6, b""))
