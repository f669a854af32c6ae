"""jakartaee_migration: rewrite javax.* references to jakarta.* in archives, classes and descriptors."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("jakartaee-migration")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from jakartaee_migration.api import migrate, migrate_bytes, MigrationResult, BytesResult
from jakartaee_migration.codes import OutcomeCode, ArtifactKind
from jakartaee_migration.config import MigrationConfig
from jakartaee_migration.kernel.profile import EESpecProfile

__all__ = [
    "__version__",
    "migrate",
    "migrate_bytes",
    "MigrationResult",
    "BytesResult",
    "MigrationConfig",
    "EESpecProfile",
    "OutcomeCode",
    "ArtifactKind",
]
