"""Tree orchestrator: mirror a source tree (or file) into a migrated destination.

Directories are re-created, files migrated one at a time through the
archive codec. Results fold upward with logical AND, but a failure never
stops the remaining siblings from being attempted.
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict

from jakartaee_migration.codes import ArtifactKind, OutcomeCode
from jakartaee_migration.config import MigrationConfig
from jakartaee_migration.kernel.archive import ARTIFACT_FAULTS, ArchiveMigrator, is_archive

logger = logging.getLogger(__name__)


class Artifact(BaseModel):
    """Progress record emitted once per artifact as it is entered."""
    source: Path
    destination: Path
    kind: ArtifactKind

    model_config = ConfigDict(frozen=True)


ProgressCallback = Callable[[Artifact], None]


class Migration:
    """Migrate ``source`` into ``destination``.

    Args:
        source: File or directory to migrate
        destination: Path the migrated copy is written to
        config: Run configuration; defaults to the TOMCAT profile
        progress: Optional callback receiving one :class:`Artifact` per artifact

    Raises:
        ValueError: If ``source`` does not exist or cannot be read
    """

    def __init__(
        self,
        source: Union[str, os.PathLike],
        destination: Union[str, os.PathLike],
        config: Optional[MigrationConfig] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        source_path = Path(source).absolute()
        if not source_path.exists() or not os.access(source_path, os.R_OK):
            raise ValueError(f"Cannot read source location '{source_path}'")
        self.source = source_path
        self.destination = Path(destination).absolute()
        self.config = config if config is not None else MigrationConfig()
        self.progress = progress
        self.migrator = ArchiveMigrator(self.config)
        self.outcome: Optional[OutcomeCode] = None
        self.artifact_count = 0
        self.elapsed_ms = 0

    def execute(self) -> bool:
        """Run the migration.

        Returns:
            True only if every artifact in the tree migrated successfully
        """
        logger.info(
            "Migrating %s to %s using the %s profile",
            self.source, self.destination, self.config.profile.value,
        )
        self.outcome = OutcomeCode.SUCCESS
        self.artifact_count = 0
        start = time.monotonic()

        if self.source.is_dir():
            self._report(self.source, self.destination, ArtifactKind.DIRECTORY)
            if self._make_directory(self.destination, parents=True):
                result = self._migrate_directory(self.source, self.destination)
            else:
                self.outcome = OutcomeCode.DIRECTORY_FAILURE
                result = False
        else:
            parent = self.destination.parent
            if self._make_directory(parent, parents=True):
                result = self._migrate_file(self.source, self.destination)
            else:
                self.outcome = OutcomeCode.DIRECTORY_FAILURE
                result = False

        if not result and self.outcome is OutcomeCode.SUCCESS:
            self.outcome = OutcomeCode.PARTIAL_FAILURE
        self.elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("Migration finished in %d ms with result %s", self.elapsed_ms, result)
        return result

    def _report(self, source: Path, destination: Path, kind: ArtifactKind) -> None:
        self.artifact_count += 1
        artifact = Artifact(source=source, destination=destination, kind=kind)
        logger.debug("Entering %s %s", kind.value, source)
        if self.progress is not None:
            self.progress(artifact)

    def _make_directory(self, path: Path, parents: bool = False) -> bool:
        try:
            path.mkdir(parents=parents, exist_ok=True)
        except OSError as e:
            logger.warning("Unable to create directory %s: %s", path, e)
            return False
        return True

    def _migrate_directory(self, src: Path, dest: Path) -> bool:
        result = True
        for src_child in src.iterdir():
            dest_child = dest / src_child.name
            if src_child.is_dir():
                self._report(src_child, dest_child, ArtifactKind.DIRECTORY)
                if not self._make_directory(dest_child):
                    result = False
                    continue
                child_ok = self._migrate_directory(src_child, dest_child)
            else:
                child_ok = self._migrate_file(src_child, dest_child)
            result = result and child_ok
        return result

    def _migrate_file(self, src: Path, dest: Path) -> bool:
        kind = ArtifactKind.ARCHIVE if is_archive(src.name) else ArtifactKind.FILE
        self._report(src, dest, kind)
        try:
            with open(src, "rb") as src_stream, open(dest, "wb") as dest_stream:
                return self.migrator.migrate_stream(src.name, src_stream, dest_stream)
        except ARTIFACT_FAULTS as e:
            logger.error("Failed to migrate %s: %s", src, e)
            return False
