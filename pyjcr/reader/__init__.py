"""
Class file decoder package.
"""

from .types import ReaderOptions, DEFAULT_MAX_DEPTH
from .cursor import Cursor
from .attributes import KNOWN_ATTRIBUTES
from .classreader import ClassReader, decode

__all__ = [
    'ClassReader',
    'Cursor',
    'ReaderOptions',
    'DEFAULT_MAX_DEPTH',
    'KNOWN_ATTRIBUTES',
    'decode',
]
