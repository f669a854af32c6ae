"""JAR manifest model, codec and migration processing.

The manifest is a key/value document with one main section followed by
zero or more named sections. Attribute names compare case-insensitively;
the spelling found in the input is kept on output.

Processing never touches the caller's manifest: it works on a deep copy,
stamps the migration tool version onto Implementation-Version attributes
and strips every piece of signature material that a rewrite invalidates.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from jakartaee_migration.config import MigrationConfig

logger = logging.getLogger(__name__)

MANIFEST_NAME = "META-INF/MANIFEST.MF"
MANIFEST_VERSION = "Manifest-Version"
SIGNATURE_VERSION = "Signature-Version"
IMPLEMENTATION_VERSION = "Implementation-Version"
SECTION_NAME = "Name"
DIGEST_SUFFIX = "-Digest"

MAX_LINE_BYTES = 72
_NEWLINE = b"\r\n"
_LINE_SPLIT = re.compile(rb"\r\n|\r|\n")
_HEADER_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


class ManifestError(ValueError):
    """Raised when manifest bytes cannot be parsed."""
    pass


def find_attribute(attributes: Dict[str, str], name: str) -> Optional[str]:
    """Return the key in ``attributes`` matching ``name`` case-insensitively, if any."""
    wanted = name.lower()
    for key in attributes:
        if key.lower() == wanted:
            return key
    return None


class Manifest(BaseModel):
    """A parsed manifest: main attributes plus named per-entry sections."""
    main: Dict[str, str] = Field(default_factory=dict)
    entries: Dict[str, Dict[str, str]] = Field(default_factory=dict)

    @classmethod
    def parse(cls, data: bytes) -> "Manifest":
        """Parse manifest bytes.

        Continuation lines (starting with a single space) are joined at the
        byte level before decoding, so multi-byte characters split across
        lines are reassembled.

        Raises:
            ManifestError: If a line is not a valid ``Name: value`` header
        """
        sections = _split_sections(data)
        manifest = cls()
        if not sections:
            return manifest

        manifest.main.update(_parse_section(sections[0]))
        for lines in sections[1:]:
            attributes = _parse_section(lines)
            name_key = find_attribute(attributes, SECTION_NAME)
            if name_key is None:
                raise ManifestError("Manifest section is missing its 'Name' attribute")
            section_name = attributes.pop(name_key)
            # Repeated sections merge, later values win
            manifest.entries.setdefault(section_name, {}).update(attributes)
        return manifest

    def to_bytes(self) -> bytes:
        """Serialize with CRLF line endings and 72-byte line wrapping."""
        out = bytearray()

        version_key = find_attribute(self.main, MANIFEST_VERSION)
        if version_key is None:
            version_key = find_attribute(self.main, SIGNATURE_VERSION)
        if version_key is not None:
            out += _header_line(version_key, self.main[version_key])
        for key, value in self.main.items():
            if key != version_key:
                out += _header_line(key, value)
        out += _NEWLINE

        for section_name, attributes in self.entries.items():
            out += _header_line(SECTION_NAME, section_name)
            for key, value in attributes.items():
                out += _header_line(key, value)
            out += _NEWLINE
        return bytes(out)


def _split_sections(data: bytes) -> List[List[bytes]]:
    """Split raw bytes into sections of logical (continuation-joined) lines."""
    sections: List[List[bytes]] = []
    current: List[bytes] = []
    for raw in _LINE_SPLIT.split(data):
        if raw.startswith(b" "):
            if not current:
                raise ManifestError("Continuation line without a preceding header")
            current[-1] += raw[1:]
            continue
        if not raw:
            if current:
                sections.append(current)
                current = []
            elif not sections:
                # An empty main section is still the main section
                sections.append([])
            continue
        current.append(raw)
    if current:
        sections.append(current)
    return sections


def _parse_section(lines: List[bytes]) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for raw in lines:
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestError(f"Manifest line is not valid UTF-8: {raw[:40]!r}") from e
        key, sep, value = line.partition(": ")
        if not sep or not _HEADER_NAME.match(key):
            raise ManifestError(f"Invalid manifest header: {line[:72]!r}")
        attributes[key] = value
    return attributes


def _header_line(key: str, value: str) -> bytes:
    """Encode one header, wrapped so no physical line exceeds 72 bytes."""
    encoded = f"{key}: {value}".encode("utf-8")
    out = bytearray()
    limit = MAX_LINE_BYTES
    while len(encoded) > limit:
        cut = limit
        # Never split a UTF-8 sequence: back off over continuation bytes
        while cut > 0 and (encoded[cut] & 0xC0) == 0x80:
            cut -= 1
        out += encoded[:cut] + _NEWLINE + b" "
        encoded = encoded[cut:]
        limit = MAX_LINE_BYTES - 1
    out += encoded + _NEWLINE
    return bytes(out)


def update_version(attributes: Dict[str, str], tool_version: str) -> None:
    """Append ``-<tool_version>`` to an Implementation-Version attribute in place.

    Prior stamps are not detected: stamping twice appends the suffix twice.
    """
    key = find_attribute(attributes, IMPLEMENTATION_VERSION)
    if key is not None:
        attributes[key] = f"{attributes[key]}-{tool_version}"


def is_signature_section(attributes: Dict[str, str]) -> bool:
    """A section carries signature material if any attribute name ends in -Digest."""
    suffix = DIGEST_SUFFIX.lower()
    return any(key.lower().endswith(suffix) for key in attributes)


def remove_signatures(manifest: Manifest) -> bool:
    """Remove signature material from ``manifest`` in place.

    Returns:
        True if a Signature-Version attribute or any digest section was removed
    """
    removed = False
    version_key = find_attribute(manifest.main, SIGNATURE_VERSION)
    if version_key is not None:
        del manifest.main[version_key]
        removed = True

    signed = [name for name, attributes in manifest.entries.items() if is_signature_section(attributes)]
    for name in signed:
        logger.debug("Removing signature section '%s' from manifest", name)
        del manifest.entries[name]
    return removed or bool(signed)


def process_manifest(manifest: Manifest, config: MigrationConfig) -> Tuple[Manifest, bool]:
    """Stamp versions and strip signatures on a copy of ``manifest``.

    Args:
        manifest: Manifest read from the source archive (left untouched)
        config: Run configuration supplying the tool version

    Returns:
        Tuple of (processed copy, whether signature material was removed)
    """
    processed = manifest.model_copy(deep=True)
    update_version(processed.main, config.tool_version)
    for attributes in processed.entries.values():
        update_version(attributes, config.tool_version)
    removed = remove_signatures(processed)
    return processed, removed
