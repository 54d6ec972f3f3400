"""Tests for descriptor parsing."""

import pytest

from pyjcr.descriptors import (
    FieldType, MethodDescriptor, VOID, parse_field_descriptor, parse_method_descriptor,
)


class TestFieldDescriptors:
    @pytest.mark.parametrize("descriptor,expected", [
        ("I", "int"),
        ("Z", "boolean"),
        ("J", "long"),
        ("Ljava/lang/String;", "java.lang.String"),
        ("[I", "int[]"),
        ("[[Ljava/util/Map$Entry;", "java.util.Map$Entry[][]"),
    ])
    def test_rendering(self, descriptor, expected):
        assert str(parse_field_descriptor(descriptor)) == expected

    def test_array_dimensions(self):
        assert parse_field_descriptor("[[[D") == FieldType("double", 3)

    @pytest.mark.parametrize("descriptor", ["", "V", "Q", "Ljava/lang/String", "[", "II"])
    def test_invalid(self, descriptor):
        with pytest.raises(ValueError):
            parse_field_descriptor(descriptor)


class TestMethodDescriptors:
    def test_no_arguments(self):
        desc = parse_method_descriptor("()V")
        assert desc == MethodDescriptor((), VOID)
        assert str(desc) == "()void"

    def test_arguments(self):
        desc = parse_method_descriptor("(IJ[Ljava/lang/Object;)Ljava/lang/String;")
        assert desc.parameters == (
            FieldType("int"),
            FieldType("long"),
            FieldType("java.lang.Object", 1),
        )
        assert desc.return_type == FieldType("java.lang.String")

    @pytest.mark.parametrize("descriptor", ["(V)V", "()", "I", "(I"])
    def test_invalid(self, descriptor):
        with pytest.raises(ValueError):
            parse_method_descriptor(descriptor)
