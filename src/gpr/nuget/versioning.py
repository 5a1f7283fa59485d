"""NuGet semantic versions.

NuGet accepts SemVer 2.0 plus a legacy fourth ``revision`` part::

    1.2.3
    1.2.3.4
    1.2.3-beta.1+build.42
    1.2            (normalized to 1.2.0)

The normalized form drops a zero revision and keeps prerelease labels and
build metadata as given. Build metadata does not take part in precedence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering

from gpr.core.errors import InvalidVersionError

_LABEL = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"

_VERSION_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)"
    r"(?:\.(?P<patch>0|[1-9]\d*))?"
    r"(?:\.(?P<revision>0|[1-9]\d*))?"
    rf"(?:-(?P<release>{_LABEL}(?:\.{_LABEL})*))?"
    r"(?:\+(?P<metadata>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """A parsed NuGet version with SemVer precedence."""

    major: int
    minor: int
    patch: int = 0
    revision: int = 0
    release_labels: tuple[str, ...] = ()
    metadata: str | None = field(default=None, compare=False)

    @classmethod
    def parse(cls, value: str) -> SemanticVersion:
        """Parse ``value`` or raise :class:`InvalidVersionError`."""
        match = _VERSION_RE.match(value.strip()) if value else None
        if match is None:
            raise InvalidVersionError(value)
        release = match.group("release")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch") or 0),
            revision=int(match.group("revision") or 0),
            release_labels=tuple(release.split(".")) if release else (),
            metadata=match.group("metadata"),
        )

    @classmethod
    def try_parse(cls, value: str | None) -> SemanticVersion | None:
        if value is None:
            return None
        try:
            return cls.parse(value)
        except InvalidVersionError:
            return None

    @property
    def is_prerelease(self) -> bool:
        return bool(self.release_labels)

    @property
    def release(self) -> str:
        return ".".join(self.release_labels)

    def _key(self) -> tuple:
        labels = tuple(
            (0, int(label), "") if label.isdigit() else (1, 0, label.lower())
            for label in self.release_labels
        )
        # A release sorts after all of its prereleases
        return (
            self.major,
            self.minor,
            self.patch,
            self.revision,
            0 if labels else 1,
            labels,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: SemanticVersion) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text += f".{self.revision}"
        if self.release_labels:
            text += f"-{self.release}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


__all__ = ["SemanticVersion"]
