"""Public API for jakartaee_migration.

High-level functions that return complete, structured results.
Callers should use these functions instead of importing from kernel or
_internal modules.
"""

import io
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

from jakartaee_migration.codes import OutcomeCode
from jakartaee_migration.config import MigrationConfig
from jakartaee_migration.kernel.archive import ArchiveMigrator
from jakartaee_migration.kernel.profile import EESpecProfile
from jakartaee_migration.migration import Migration, ProgressCallback


class MigrationResult(BaseModel):
    """Stable result model for a migration run."""
    ok: bool
    outcome: OutcomeCode
    source: str
    destination: str
    profile: EESpecProfile
    tool_version: str
    elapsed_ms: int
    artifacts: int  # Number of files and directories entered


def _config_for(profile: Union[str, EESpecProfile]) -> MigrationConfig:
    if isinstance(profile, EESpecProfile):
        return MigrationConfig(profile=profile)
    return MigrationConfig.for_profile(profile)


def migrate(
    source: Union[str, os.PathLike, Path],
    destination: Union[str, os.PathLike, Path],
    profile: Union[str, EESpecProfile] = EESpecProfile.TOMCAT,
    progress: Optional[ProgressCallback] = None,
) -> MigrationResult:
    """Migrate a file or directory tree from javax.* to jakarta.*.

    Args:
        source: File or directory to migrate
        destination: Where the migrated copy is written
        profile: Profile name or value selecting the migrated packages
        progress: Optional callback receiving one record per artifact

    Returns:
        MigrationResult describing the run

    Raises:
        ValueError: If the profile is unknown or the source cannot be read
            (both checked before any I/O happens)
    """
    config = _config_for(profile)
    migration = Migration(source, destination, config=config, progress=progress)
    ok = migration.execute()
    return MigrationResult(
        ok=ok,
        outcome=migration.outcome,
        source=str(migration.source),
        destination=str(migration.destination),
        profile=config.profile,
        tool_version=config.tool_version,
        elapsed_ms=migration.elapsed_ms,
        artifacts=migration.artifact_count,
    )


class BytesResult(BaseModel):
    """Result of migrating one in-memory artifact."""
    ok: bool  # False if any transformer (including nested entries) failed
    data: bytes


def migrate_bytes(
    name: str,
    data: bytes,
    profile: Union[str, EESpecProfile] = EESpecProfile.TOMCAT,
    tool_version: Optional[str] = None,
) -> BytesResult:
    """Migrate a single in-memory artifact; ``name`` selects the transformer.

    Raises:
        ValueError: If the profile is unknown
        zipfile.BadZipFile, ManifestError: If the top-level archive or its
            manifest is malformed
    """
    config = _config_for(profile)
    if tool_version is not None:
        config = MigrationConfig(profile=config.profile, tool_version=tool_version)
    migrator = ArchiveMigrator(config)
    dest = io.BytesIO()
    ok = migrator.migrate_stream(name, io.BytesIO(data), dest)
    return BytesResult(ok=ok, data=dest.getvalue())
