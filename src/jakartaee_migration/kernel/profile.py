"""Namespace profiles: which javax.* packages migrate to jakarta.*.

A profile selects the specification level whose packages are rewritten.
Packages are matched as whole segment sequences in either package form
(``javax.servlet.http``) or internal / path form (``javax/servlet/http``);
the separator found in the input is kept in the output.

Key rules:
- The legacy prefix ``javax`` is replaced by ``jakarta``, nothing else changes
- Multi-segment packages must use one separator throughout
- Java SE packages that share a migrated root are never touched
  (``javax.annotation.processing``, ``javax.transaction.xa``)
"""

import re
from enum import Enum
from typing import Dict, Pattern, Tuple

LEGACY_PREFIX = "javax"
SUCCESSOR_PREFIX = "jakarta"

# Packages shipped by a servlet container
_TOMCAT_PACKAGES: Tuple[str, ...] = (
    "annotation",
    "ejb",
    "el",
    "mail",
    "persistence",
    "security.auth.message",
    "servlet",
    "transaction",
    "websocket",
)

# Everything Jakarta EE 9 moved
_EE_PACKAGES: Tuple[str, ...] = _TOMCAT_PACKAGES + (
    "activation",
    "batch",
    "decorator",
    "enterprise",
    "faces",
    "inject",
    "interceptor",
    "jms",
    "json",
    "jws",
    "resource",
    "security.enterprise",
    "security.jacc",
    "validation",
    "ws.rs",
    "xml.bind",
    "xml.soap",
    "xml.ws",
)

# Java SE sub-packages living under a migrated root
_SE_EXCLUSIONS: Dict[str, str] = {
    "annotation": "processing",
    "transaction": "xa",
}

_IDENT_END = r"(?![A-Za-z0-9_])"


def _package_alternative(package: str) -> str:
    """Build the regex alternative for one dotted package name."""
    alternative = r"\1".join(re.escape(segment) for segment in package.split("."))
    excluded = _SE_EXCLUSIONS.get(package)
    if excluded is not None:
        alternative += r"(?!\1" + re.escape(excluded) + _IDENT_END + ")"
    return alternative + _IDENT_END


def _build_pattern(packages: Tuple[str, ...]) -> str:
    # Longest first so that "security.auth.message" wins over shorter roots
    ordered = sorted(packages, key=len, reverse=True)
    alternatives = "|".join(_package_alternative(p) for p in ordered)
    return LEGACY_PREFIX + r"([./])(" + alternatives + ")"


class EESpecProfile(str, Enum):
    """Specification level whose javax packages are migrated."""

    TOMCAT = "TOMCAT"
    EE = "EE"

    @property
    def packages(self) -> Tuple[str, ...]:
        """Dotted package names (without the legacy prefix) this profile migrates."""
        return _EE_PACKAGES if self is EESpecProfile.EE else _TOMCAT_PACKAGES

    @property
    def pattern(self) -> Pattern[str]:
        return _TEXT_PATTERNS[self]

    @property
    def bytes_pattern(self) -> Pattern[bytes]:
        return _BYTES_PATTERNS[self]

    def convert(self, text: str) -> str:
        """Rewrite every legacy package reference in ``text``."""
        return self.pattern.sub(SUCCESSOR_PREFIX + r"\1\2", text)

    def convert_bytes(self, data: bytes) -> bytes:
        """Rewrite every legacy package reference in ASCII-compatible ``data``.

        Safe on UTF-8 and modified UTF-8 content: multi-byte sequences never
        contain ASCII bytes, so only genuine ASCII package names can match.
        """
        return self.bytes_pattern.sub(SUCCESSOR_PREFIX.encode("ascii") + rb"\1\2", data)

    @classmethod
    def from_name(cls, name: str) -> "EESpecProfile":
        """Look up a profile by name (case-insensitive).

        Raises:
            ValueError: If ``name`` is not a known profile
        """
        normalized = name.strip().upper() if isinstance(name, str) else name
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown profile '{name}', expected one of: {valid}") from None


_TEXT_PATTERNS: Dict[EESpecProfile, Pattern[str]] = {
    profile: re.compile(_build_pattern(profile.packages)) for profile in EESpecProfile
}
_BYTES_PATTERNS: Dict[EESpecProfile, Pattern[bytes]] = {
    profile: re.compile(_build_pattern(profile.packages).encode("ascii"))
    for profile in EESpecProfile
}
