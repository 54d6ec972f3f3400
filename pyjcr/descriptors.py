"""
Field and method descriptor parsing using Lark.
Renders descriptors as Java source-style type names.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from lark import Lark, Transformer
from lark.exceptions import LarkError


GRAMMAR_FILE = Path(__file__).parent / "descriptors.lark"

BASE_TYPE_NAMES = {
    "B": "byte", "C": "char", "D": "double", "F": "float",
    "I": "int", "J": "long", "S": "short", "Z": "boolean",
}


@dataclass(frozen=True)
class FieldType:
    """A field type: primitive, class or array of either."""
    name: str
    dimensions: int = 0

    def __str__(self) -> str:
        return self.name + "[]" * self.dimensions


@dataclass(frozen=True)
class MethodDescriptor:
    parameters: tuple[FieldType, ...]
    return_type: FieldType

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"({params}){self.return_type}"


VOID = FieldType("void")


class DescriptorTransformer(Transformer):
    """Transforms the descriptor parse tree into FieldType/MethodDescriptor."""

    def field_descriptor(self, items):
        return items[0]

    def method_descriptor(self, items):
        return MethodDescriptor(parameters=tuple(items[:-1]), return_type=items[-1])

    def base_type(self, items):
        return FieldType(BASE_TYPE_NAMES[str(items[0])])

    def object_type(self, items):
        internal_name = str(items[0])[1:-1]
        return FieldType(internal_name.replace("/", "."))

    def array_type(self, items):
        element = items[0]
        return FieldType(element.name, element.dimensions + 1)

    def void_type(self, items):
        return VOID


class DescriptorParser:
    """Parses field and method descriptors."""

    def __init__(self):
        with open(GRAMMAR_FILE, "r") as f:
            grammar = f.read()

        self._parser = Lark(
            grammar,
            start=["field_descriptor", "method_descriptor"],
            parser="lalr",
            transformer=DescriptorTransformer(),
        )

    def parse_field(self, descriptor: str) -> FieldType:
        try:
            return self._parser.parse(descriptor, start="field_descriptor")
        except LarkError as e:
            raise ValueError(f"Invalid field descriptor: {descriptor!r}") from e

    def parse_method(self, descriptor: str) -> MethodDescriptor:
        try:
            return self._parser.parse(descriptor, start="method_descriptor")
        except LarkError as e:
            raise ValueError(f"Invalid method descriptor: {descriptor!r}") from e


@lru_cache(maxsize=None)
def _parser() -> DescriptorParser:
    return DescriptorParser()


def parse_field_descriptor(descriptor: str) -> FieldType:
    """Parse a field descriptor such as "[Ljava/lang/String;"."""
    return _parser().parse_field(descriptor)


def parse_method_descriptor(descriptor: str) -> MethodDescriptor:
    """Parse a method descriptor such as "(IJ)V"."""
    return _parser().parse_method(descriptor)
