"""
Locating and loading class files from directories and jar archives.
"""

import logging
import zipfile
from pathlib import Path
from typing import Optional

from .model import ClassFile
from .reader import ReaderOptions, decode

logger = logging.getLogger(__name__)


class ClassPath:
    """Ordered lookup of class files over directories and zip archives.

    Decoded classes are cached by internal name with the options given at
    construction. Archives stay open until close().
    """

    def __init__(self, options: Optional[ReaderOptions] = None):
        self.options = options
        self.entries: list[Path | zipfile.ZipFile] = []
        self._cache: dict[str, ClassFile] = {}

    def add_path(self, path: str | Path):
        """Append a directory or a zip-format archive such as a .jar or .zip."""
        path = Path(path)
        if path.is_dir():
            self.entries.append(path)
        elif path.is_file() and zipfile.is_zipfile(path):
            self.entries.append(zipfile.ZipFile(path, "r"))
        else:
            raise ValueError(f"Classpath entry is neither a directory nor a zip archive: {path}")
        logger.debug("Added classpath entry %s", path)

    def find_bytes(self, class_name: str) -> Optional[bytes]:
        """Return the raw bytes of a class (e.g., 'java/lang/String'), or None."""
        member = class_name.replace(".", "/") + ".class"

        for entry in self.entries:
            if isinstance(entry, zipfile.ZipFile):
                try:
                    return entry.read(member)
                except KeyError:
                    continue
            path = entry / member
            if path.is_file():
                return path.read_bytes()

        return None

    def find_class(self, class_name: str) -> Optional[ClassFile]:
        """Find and decode a class by name (e.g., 'java/lang/String')."""
        key = class_name.replace(".", "/")
        if key in self._cache:
            return self._cache[key]

        data = self.find_bytes(key)
        if data is None:
            return None
        info = decode(data, self.options)
        self._cache[key] = info
        return info

    def close(self):
        """Close open archives and drop every entry and cached class."""
        for entry in self.entries:
            if isinstance(entry, zipfile.ZipFile):
                entry.close()
        self.entries.clear()
        self._cache.clear()

    def __enter__(self) -> "ClassPath":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def read_class_file(path: str | Path, options: Optional[ReaderOptions] = None) -> ClassFile:
    """Read and decode a single .class file."""
    return decode(Path(path).read_bytes(), options)
