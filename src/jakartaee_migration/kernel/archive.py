"""Archive codec: migrate zip-based containers entry by entry.

Pipeline per container:
- Manifest (if any) is processed on a copy and written as the first entry
- Signature files under META-INF/ and duplicate manifests are dropped
- Every other entry is renamed through the namespace profile and its
  content dispatched to a transformer, recursing into nested archives
- Entry order of the input is kept

The caller owns both streams. They are lent to the zip reader/writer
through non-closing adapters so closing the container (which writes its
central directory) never closes the caller's stream; a nested archive
therefore finishes without cutting off the enclosing archive's entries.
"""

import logging
import zipfile
import zlib
from typing import BinaryIO, List, Optional, Sequence

from jakartaee_migration._internal.streams import NonClosingInputStream, NonClosingOutputStream
from jakartaee_migration.config import MigrationConfig
from jakartaee_migration.kernel.converters import DEFAULT_CONVERTERS, Converter, copy_stream, select_converter
from jakartaee_migration.kernel.errors import ConversionError
from jakartaee_migration.kernel.manifest import MANIFEST_NAME, Manifest, ManifestError, process_manifest

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSIONS = (".jar", ".war", ".zip")
SIGNATURE_EXTENSIONS = (".SF", ".RSA", ".DSA")
METADATA_DIR = "META-INF/"

# Unreadable or corrupt input: encrypted entries raise RuntimeError, unknown
# compression methods NotImplementedError
ENTRY_FAULTS = (
    EOFError,
    zlib.error,
    zipfile.BadZipFile,
    ManifestError,
    RuntimeError,
    NotImplementedError,
)

# Failures that abort the artifact being migrated (but not its siblings)
ARTIFACT_FAULTS = (OSError,) + ENTRY_FAULTS

# Rewriting may grow an entry; past this size its headers are written as ZIP64
ZIP64_THRESHOLD = zipfile.ZIP64_LIMIT // 2


def is_archive(name: str) -> bool:
    return name.endswith(ARCHIVE_EXTENSIONS)


def is_signature_file(name: str) -> bool:
    """Signature files live in META-INF/ and end in .SF, .RSA or .DSA."""
    return name.startswith(METADATA_DIR) and name.endswith(SIGNATURE_EXTENSIONS)


def is_manifest(name: str) -> bool:
    return name.upper() == MANIFEST_NAME


def _find_manifest(infos: List[zipfile.ZipInfo]) -> Optional[zipfile.ZipInfo]:
    for info in infos:
        if is_manifest(info.filename):
            return info
    return None


def needs_zip64(info: zipfile.ZipInfo) -> bool:
    return info.file_size > ZIP64_THRESHOLD


def _entry_info(source: zipfile.ZipInfo, name: str, streaming: bool) -> zipfile.ZipInfo:
    """Header for an output entry, carrying over the source entry's metadata.

    A streaming (non-seekable) writer has to append a data descriptor to
    every entry; stored entries are deflated instead since readers that
    stream zip files reject stored entries with descriptors.
    """
    target = zipfile.ZipInfo(name, date_time=source.date_time)
    target.compress_type = source.compress_type
    if streaming and target.compress_type == zipfile.ZIP_STORED:
        target.compress_type = zipfile.ZIP_DEFLATED
    target.comment = source.comment
    target.create_system = source.create_system
    target.external_attr = source.external_attr
    return target


class ArchiveMigrator:
    """Migrate streams and archives with a fixed configuration.

    Args:
        config: Run configuration (profile and tool version)
        converters: Transformers tried in order for non-archive content
    """

    def __init__(
        self,
        config: Optional[MigrationConfig] = None,
        converters: Sequence[Converter] = DEFAULT_CONVERTERS,
    ):
        self.config = config if config is not None else MigrationConfig()
        self.converters = tuple(converters)

    def migrate_stream(self, name: str, src: BinaryIO, dest: BinaryIO) -> bool:
        """Migrate one named stream.

        Archives recurse into :meth:`migrate_archive`; anything else goes to
        the first accepting transformer, or is copied unchanged.

        Returns:
            False if a transformer (here or in a nested entry) failed

        Raises:
            ARTIFACT_FAULTS: Stream-level faults of this artifact itself
        """
        if is_archive(name):
            logger.info("Migrating archive %s", name)
            return self.migrate_archive(src, dest)

        converter = select_converter(name, self.converters)
        if converter is None:
            logger.debug("Copying %s unchanged", name)
            copy_stream(src, dest, self.config.profile)
            return True

        logger.debug("Migrating %s with %s converter", name, converter.name)
        try:
            converter.convert(src, dest, self.config.profile)
        except ConversionError as e:
            logger.warning("Failed to migrate %s: %s", name, e)
            return False
        return True

    def migrate_archive(self, src: BinaryIO, dest: BinaryIO) -> bool:
        """Migrate a zip container from ``src`` into ``dest``.

        Neither stream is closed. The loop continues past a failing entry. An
        entry that cannot be opened (encrypted, unsupported compression) is left
        out; one that fails part way keeps what was written before the fault.

        Returns:
            True only if every entry migrated successfully
        """
        result = True
        signatures_removed = False

        with NonClosingInputStream(src) as archive_in, NonClosingOutputStream(dest) as archive_out:
            streaming = not archive_out.seekable()
            with zipfile.ZipFile(archive_in, "r") as zip_in, zipfile.ZipFile(archive_out, "w") as zip_out:
                infos = zip_in.infolist()

                manifest_info = _find_manifest(infos)
                if manifest_info is not None:
                    manifest = Manifest.parse(zip_in.read(manifest_info))
                    manifest, removed = process_manifest(manifest, self.config)
                    signatures_removed = signatures_removed or removed
                    zip_out.writestr(
                        _entry_info(manifest_info, MANIFEST_NAME, streaming),
                        manifest.to_bytes(),
                    )

                for info in infos:
                    if info is manifest_info:
                        continue
                    source_name = info.filename
                    if is_manifest(source_name):
                        logger.debug("Dropping duplicate manifest %s", source_name)
                        continue
                    logger.debug("Processing entry %s", source_name)
                    if is_signature_file(source_name):
                        logger.debug("Skipping signature file %s", source_name)
                        signatures_removed = True
                        continue

                    dest_name = self.config.profile.convert(source_name)
                    dest_info = _entry_info(info, dest_name, streaming)
                    if info.is_dir():
                        zip_out.writestr(dest_info, b"")
                        continue

                    try:
                        with zip_in.open(info) as entry_in, zip_out.open(
                            dest_info, "w", force_zip64=needs_zip64(info)
                        ) as entry_out:
                            entry_ok = self.migrate_stream(dest_name, entry_in, entry_out)
                    except ENTRY_FAULTS as e:
                        logger.error("Failed to read entry %s: %s", source_name, e)
                        entry_ok = False
                    result = result and entry_ok

        if signatures_removed:
            logger.warning(
                "Removed signature material from archive; "
                "previously valid signatures are no longer present"
            )
        return result
