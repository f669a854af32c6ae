"""Pytest configuration and in-memory artifact builders.

No sys.path hacks - tests import from the installed jakartaee_migration package.
Archives and class files are built in memory with zipfile/struct so tests
never depend on binary fixtures checked into the repository.
"""

import io
import os
import struct
import zipfile
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

from jakartaee_migration.config import MigrationConfig
from jakartaee_migration.kernel.classfile import rewrite_constant_pool


def pytest_sessionfinish(session, exitstatus):
    """Best-effort cleanup for basetemp on Windows without patching pytest internals."""
    if os.name != "nt":
        return
    basetemp = getattr(session.config.option, "basetemp", None)
    if not basetemp:
        return
    basetemp_path = Path(basetemp)
    if not basetemp_path.exists():
        return
    try:
        import shutil
        shutil.rmtree(basetemp_path)
    except (PermissionError, OSError):
        # If cleanup fails, let it surface as a warning rather than masking errors.
        import warnings
        warnings.warn(f"Could not remove basetemp: {basetemp_path}")


def build_zip(entries: Sequence[Tuple[str, bytes]], compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    """Build a zip archive holding ``entries`` in the given order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as zf:
        for name, data in entries:
            zf.writestr(name, data)
    return buffer.getvalue()


def read_zip(data: bytes) -> List[Tuple[str, bytes]]:
    """Return (name, content) pairs of an archive in entry order."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return [(info.filename, zf.read(info)) for info in zf.infolist()]


ENCRYPTED_FLAG = 0x1
DEFLATE64 = 9


def patch_entry(data: bytes, name: str, flag_bits: int = 0, compress_type: Optional[int] = None) -> bytes:
    """Rewrite one entry's flag bits and compression method in both headers.

    Lets tests produce entries zipfile refuses to open (encrypted, or an
    unsupported method) without shipping such archives as fixtures.
    """
    buffer = bytearray(data)
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        local = zf.getinfo(name).header_offset

    eocd = buffer.rfind(b"PK\x05\x06")
    count, _, central = struct.unpack_from("<HII", buffer, eocd + 10)
    offsets = [local + 6]
    for _ in range(count):
        name_len, extra_len, comment_len = struct.unpack_from("<HHH", buffer, central + 28)
        if bytes(buffer[central + 46:central + 46 + name_len]) == name.encode("utf-8"):
            offsets.append(central + 8)
        central += 46 + name_len + extra_len + comment_len

    for offset in offsets:
        flags, method = struct.unpack_from("<HH", buffer, offset)
        struct.pack_into(
            "<HH", buffer, offset,
            flags | flag_bits,
            method if compress_type is None else compress_type,
        )
    return bytes(buffer)


def _utf8_constant(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack(">BH", 1, len(encoded)) + encoded


def build_class(constants: Sequence[str], trailer: bytes = b"") -> bytes:
    """Build a minimal class file.

    Pool layout: the Utf8 ``constants`` (indices 1..n), a Class constant
    pointing at index 1, a Long (two slots) and an Integer. ``trailer`` is
    appended after the empty fields/methods/attributes tables.
    """
    pool = bytearray()
    for value in constants:
        pool += _utf8_constant(value)
    class_index = len(constants) + 1
    pool += struct.pack(">BH", 7, 1)
    pool += struct.pack(">Bq", 5, 0x0102030405060708)
    pool += struct.pack(">Bi", 3, 42)
    # Utf8 entries + Class + Long (2 slots) + Integer, plus the unused slot 0
    pool_count = len(constants) + 1 + 2 + 1 + 1

    header = struct.pack(">IHHH", 0xCAFEBABE, 0, 52, pool_count)
    body = struct.pack(">HHHHHHH", 0x0021, class_index, 0, 0, 0, 0, 0)
    return header + bytes(pool) + body + trailer


def class_constants(data: bytes) -> List[str]:
    """Utf8 constants of a class file, in pool order."""
    seen: List[bytes] = []

    def collect(value: bytes) -> bytes:
        seen.append(value)
        return value

    rewrite_constant_pool(data, collect)
    return [value.decode("utf-8") for value in seen]


MANIFEST = (
    b"Manifest-Version: 1.0\r\n"
    b"Implementation-Version: 2.3\r\n"
    b"Created-By: test\r\n"
    b"\r\n"
)

SIGNED_MANIFEST = (
    b"Manifest-Version: 1.0\r\n"
    b"Implementation-Version: 2.3\r\n"
    b"Signature-Version: 1.0\r\n"
    b"\r\n"
    b"Name: org/example/Servlet.class\r\n"
    b"SHA-256-Digest: q1w2e3r4t5y6u7i8o9p0\r\n"
    b"\r\n"
    b"Name: org/example/\r\n"
    b"Implementation-Version: 2.3\r\n"
    b"\r\n"
)


@pytest.fixture
def config() -> MigrationConfig:
    """TOMCAT profile with a fixed tool version."""
    return MigrationConfig(tool_version="1.0.0")


@pytest.fixture
def ee_config() -> MigrationConfig:
    return MigrationConfig(profile="EE", tool_version="1.0.0")
