#!/usr/bin/env python3
"""
Command-line interface for pyjcr - Python Java Class Reader.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from .constants import AccessFlags, CLASS_FLAG_NAMES, FIELD_FLAG_NAMES, METHOD_FLAG_NAMES
from .reader import ReaderOptions, DEFAULT_MAX_DEPTH


def _render_flags(flags: int, names) -> str:
    return " ".join(word for flag, word in names if flags & flag)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _options(args) -> ReaderOptions:
    return ReaderOptions(
        max_depth=args.max_depth,
        strict_attribute_length=not args.lenient,
    )


def _load_classes(args):
    """Yield (label, ClassFile) for each requested class, exiting on failure."""
    from .classpath import ClassPath, read_class_file

    options = _options(args)

    if args.classpath:
        with ClassPath(options) as classpath:
            try:
                for entry in args.classpath.split(os.pathsep):
                    if entry:
                        classpath.add_path(entry)
            except (ValueError, OSError) as e:
                print(f"Error: Bad classpath: {e}", file=sys.stderr)
                sys.exit(1)
            for name in args.files:
                try:
                    info = classpath.find_class(name)
                except (ValueError, OSError) as e:
                    print(f"Error reading {name}: {e}", file=sys.stderr)
                    sys.exit(1)
                if info is None:
                    print(f"Error: Class not found on classpath: {name}", file=sys.stderr)
                    sys.exit(1)
                yield name, info
        return

    for source_file in args.files:
        path = Path(source_file)
        if not path.exists():
            print(f"Error: File not found: {source_file}", file=sys.stderr)
            sys.exit(1)
        try:
            info = read_class_file(path, options)
        except (ValueError, OSError) as e:
            print(f"Error reading {source_file}: {e}", file=sys.stderr)
            sys.exit(1)
        yield source_file, info


def dump_command(args):
    """Decode class files and output the tree as JSON."""
    for _, class_file in _load_classes(args):
        print(class_file.to_json())


def format_class_summary(class_file) -> str:
    """Render a javap-like summary of a decoded class."""
    from .descriptors import parse_field_descriptor, parse_method_descriptor

    pool = class_file.constant_pool
    lines = []

    source = class_file.find_attribute("SourceFile")
    if source is not None:
        lines.append(f'Compiled from "{pool.utf8(source.sourcefile_index)}"')

    kind = "interface" if class_file.access_flags & AccessFlags.INTERFACE else "class"
    flags = _render_flags(class_file.access_flags, CLASS_FLAG_NAMES)
    if kind == "interface":
        flags = flags.replace("abstract", "").strip()
    header = f"{flags} {kind} " if flags else f"{kind} "
    header += (class_file.name or "<unnamed>").replace("/", ".")
    super_name = pool.class_name(class_file.super_class)
    if super_name is not None and kind == "class":
        header += f" extends {super_name.replace('/', '.')}"
    if class_file.interfaces:
        names = [pool.class_name(i).replace("/", ".") for i in class_file.interfaces]
        header += (" extends " if kind == "interface" else " implements ") + ", ".join(names)
    lines.append(header + " {")
    lines.append(f"  // version {class_file.major_version}.{class_file.minor_version}")

    for fld in class_file.fields:
        field_type = parse_field_descriptor(pool.utf8(fld.descriptor_index))
        flags = _render_flags(fld.access_flags, FIELD_FLAG_NAMES)
        prefix = f"{flags} " if flags else ""
        lines.append(f"  {prefix}{field_type} {pool.utf8(fld.name_index)};")

    for method in class_file.methods:
        desc = parse_method_descriptor(pool.utf8(method.descriptor_index))
        flags = _render_flags(method.access_flags, METHOD_FLAG_NAMES)
        prefix = f"{flags} " if flags else ""
        params = ", ".join(str(p) for p in desc.parameters)
        lines.append(f"  {prefix}{desc.return_type} {pool.utf8(method.name_index)}({params});")

    if class_file.attributes:
        names = ", ".join(attr.name for attr in class_file.attributes)
        lines.append(f"  // attributes: {names}")
    lines.append("}")
    return "\n".join(lines)


def info_command(args):
    """Print a javap-like summary of class files."""
    for label, class_file in _load_classes(args):
        try:
            summary = format_class_summary(class_file)
        except ValueError as e:
            print(f"Error summarizing {label}: {e}", file=sys.stderr)
            sys.exit(1)
        print(summary)


def _add_common_arguments(parser):
    parser.add_argument(
        "files",
        nargs="+",
        help="Class files to read (class names when --classpath is given)",
    )
    parser.add_argument(
        "-cp", "--classpath",
        help="Look classes up in these entries (os.pathsep-separated .jar files or directories)",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Tolerate attributes whose body does not match their declared length",
    )
    parser.add_argument(
        "--max-depth",
        type=_positive_int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum nesting of annotations and attributes (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log decoding progress to stderr",
    )


def main(argv=None):
    """Main entry point for pyjcr CLI."""
    parser = argparse.ArgumentParser(
        prog="pyjcr",
        description="Python Java Class Reader - Decode Java class files",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Dump command
    dump_parser = subparsers.add_parser(
        "dump",
        help="Decode class files and output the tree as JSON",
    )
    _add_common_arguments(dump_parser)
    dump_parser.set_defaults(func=dump_command)

    # Info command
    info_parser = subparsers.add_parser(
        "info",
        help="Print a javap-like summary of class files",
    )
    _add_common_arguments(info_parser)
    info_parser.set_defaults(func=info_command)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
