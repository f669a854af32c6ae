"""Immutable run configuration threaded through the migration engine."""

from importlib.metadata import version, PackageNotFoundError
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jakartaee_migration.kernel.profile import EESpecProfile


def resolve_tool_version() -> str:
    """Installed distribution version, or "dev" when running from a checkout."""
    try:
        return version("jakartaee-migration")
    except PackageNotFoundError:
        return "dev"


class MigrationConfig(BaseModel):
    """Process-wide settings, read-only once a run has started.

    - profile: namespace table that decides which javax packages migrate
    - tool_version: suffix stamped onto Implementation-Version attributes
    """
    profile: EESpecProfile = EESpecProfile.TOMCAT
    tool_version: str = Field(default_factory=resolve_tool_version)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("profile", mode="before")
    @classmethod
    def validate_profile(cls, v):
        """Accept profile names in any case."""
        if isinstance(v, str) and not isinstance(v, EESpecProfile):
            return EESpecProfile.from_name(v)
        return v

    @field_validator("tool_version")
    @classmethod
    def validate_tool_version(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("tool_version must be non-empty")
        return v

    @classmethod
    def for_profile(cls, name: str, tool_version: Optional[str] = None) -> "MigrationConfig":
        """Build a config from a profile name.

        Raises:
            ValueError: If the profile name is unknown
        """
        profile = EESpecProfile.from_name(name)
        if tool_version is None:
            return cls(profile=profile)
        return cls(profile=profile, tool_version=tool_version)
