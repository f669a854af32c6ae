"""Class-file constant pool rewriting.

Only CONSTANT_Utf8 entries are changed: their bytes pass through a rewrite
function and their u2 length is recomputed. Every other byte of the class
file (other constants, fields, methods, attributes) is copied verbatim.
Constants are referenced by index throughout the format, so the number and
order of constants never change.
"""

import struct
from typing import Callable, Dict, Tuple

from jakartaee_migration.kernel.errors import ConversionError

CLASS_MAGIC = 0xCAFEBABE

CONSTANT_UTF8 = 1
CONSTANT_LONG = 5
CONSTANT_DOUBLE = 6

# Payload size (bytes after the tag) of every fixed-size constant
_FIXED_SIZES: Dict[int, int] = {
    3: 4,    # Integer
    4: 4,    # Float
    5: 8,    # Long
    6: 8,    # Double
    7: 2,    # Class
    8: 2,    # String
    9: 4,    # Fieldref
    10: 4,   # Methodref
    11: 4,   # InterfaceMethodref
    12: 4,   # NameAndType
    15: 3,   # MethodHandle
    16: 2,   # MethodType
    17: 4,   # Dynamic
    18: 4,   # InvokeDynamic
    19: 2,   # Module
    20: 2,   # Package
}

_MAX_UTF8_LENGTH = 0xFFFF


class ClassFormatError(ConversionError):
    """Raised when class-file bytes are malformed or cannot be rewritten."""
    pass


def rewrite_constant_pool(data: bytes, rewrite: Callable[[bytes], bytes]) -> Tuple[bytes, int]:
    """Rewrite every Utf8 constant of a class file.

    Args:
        data: Complete class-file bytes
        rewrite: Function applied to the raw (modified UTF-8) bytes of each Utf8 constant

    Returns:
        Tuple of (new class-file bytes, number of constants changed)

    Raises:
        ClassFormatError: On bad magic, a truncated pool, an unknown tag,
            or a rewritten constant longer than 65535 bytes
    """
    if len(data) < 10:
        raise ClassFormatError("Class file is truncated before the constant pool")
    (magic,) = struct.unpack_from(">I", data, 0)
    if magic != CLASS_MAGIC:
        raise ClassFormatError(f"Bad class file magic 0x{magic:08X}")
    (pool_count,) = struct.unpack_from(">H", data, 8)

    out = bytearray(data[:10])
    changed = 0
    pos = 10
    index = 1
    while index < pool_count:
        if pos >= len(data):
            raise ClassFormatError(f"Constant pool truncated at index {index}")
        tag = data[pos]
        if tag == CONSTANT_UTF8:
            if pos + 3 > len(data):
                raise ClassFormatError(f"Utf8 constant {index} truncated")
            (length,) = struct.unpack_from(">H", data, pos + 1)
            start = pos + 3
            end = start + length
            if end > len(data):
                raise ClassFormatError(f"Utf8 constant {index} truncated")
            value = data[start:end]
            new_value = rewrite(value)
            if new_value != value:
                if len(new_value) > _MAX_UTF8_LENGTH:
                    raise ClassFormatError(
                        f"Utf8 constant {index} exceeds {_MAX_UTF8_LENGTH} bytes after rewrite"
                    )
                changed += 1
            out.append(tag)
            out += struct.pack(">H", len(new_value))
            out += new_value
            pos = end
            index += 1
            continue

        size = _FIXED_SIZES.get(tag)
        if size is None:
            raise ClassFormatError(f"Unknown constant pool tag {tag} at index {index}")
        end = pos + 1 + size
        if end > len(data):
            raise ClassFormatError(f"Constant {index} truncated")
        out += data[pos:end]
        pos = end
        # Long and Double take two pool slots
        index += 2 if tag in (CONSTANT_LONG, CONSTANT_DOUBLE) else 1

    out += data[pos:]
    return bytes(out), changed
