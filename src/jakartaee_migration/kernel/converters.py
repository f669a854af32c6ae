"""Content transformers, selected by entry name in a fixed priority order.

Each transformer is a (predicate, transform) pair. Dispatch walks the
ordered tuple and the first transformer whose predicate accepts the name
wins; the last one accepts everything and copies bytes through.

Transforms consume the whole input stream and write the whole output
stream before returning. They never seek.
"""

import logging
import shutil
from dataclasses import dataclass
from typing import BinaryIO, Callable, FrozenSet, Optional, Sequence

from jakartaee_migration.kernel.classfile import ClassFormatError, rewrite_constant_pool
from jakartaee_migration.kernel.profile import EESpecProfile

logger = logging.getLogger(__name__)

# Byte-preserving: every input byte maps to one code point and back
TEXT_ENCODING = "iso-8859-1"

TEXT_EXTENSIONS: FrozenSet[str] = frozenset({
    "java",
    "json",
    "jsp",
    "jspf",
    "jspx",
    "properties",
    "tag",
    "tagf",
    "tagx",
    "tld",
    "txt",
    "xml",
})

CLASS_EXTENSION = "class"


@dataclass(frozen=True)
class Converter:
    """A named content transformer."""
    name: str
    accepts: Callable[[str], bool]
    convert: Callable[[BinaryIO, BinaryIO, EESpecProfile], None]


def file_extension(name: str) -> str:
    """Extension of the last path segment of ``name`` (empty if none)."""
    basename = name.rsplit("/", 1)[-1]
    _, dot, extension = basename.rpartition(".")
    return extension if dot else ""


def accepts_text(name: str) -> bool:
    return file_extension(name) in TEXT_EXTENSIONS


def convert_text(src: BinaryIO, dest: BinaryIO, profile: EESpecProfile) -> None:
    """Line-by-line namespace substitution keeping line endings."""
    text = src.read().decode(TEXT_ENCODING)
    for line in text.splitlines(keepends=True):
        dest.write(profile.convert(line).encode(TEXT_ENCODING))


def accepts_class(name: str) -> bool:
    return file_extension(name) == CLASS_EXTENSION


def convert_class(src: BinaryIO, dest: BinaryIO, profile: EESpecProfile) -> None:
    """Rewrite the constant pool of a class file.

    Raises:
        ClassFormatError: If the class file is malformed; the original bytes
            have already been written to ``dest``
    """
    data = src.read()
    try:
        converted, changed = rewrite_constant_pool(data, profile.convert_bytes)
    except ClassFormatError:
        dest.write(data)
        raise
    if changed:
        logger.debug("Rewrote %d constant(s)", changed)
    dest.write(converted)


def accepts_any(name: str) -> bool:
    return True


def copy_stream(src: BinaryIO, dest: BinaryIO, profile: EESpecProfile) -> None:
    shutil.copyfileobj(src, dest)


TEXT_CONVERTER = Converter(name="text", accepts=accepts_text, convert=convert_text)
CLASS_CONVERTER = Converter(name="class", accepts=accepts_class, convert=convert_class)
PASS_THROUGH_CONVERTER = Converter(name="pass-through", accepts=accepts_any, convert=copy_stream)

DEFAULT_CONVERTERS = (TEXT_CONVERTER, CLASS_CONVERTER, PASS_THROUGH_CONVERTER)


def select_converter(name: str, converters: Sequence[Converter] = DEFAULT_CONVERTERS) -> Optional[Converter]:
    """Return the first converter accepting ``name``, or None if none does."""
    for converter in converters:
        if converter.accepts(name):
            return converter
    return None
