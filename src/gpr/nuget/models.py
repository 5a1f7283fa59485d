"""Package identity types shared by discovery and the publish pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from gpr.core.errors import ConfigurationError, GprError

GITHUB_URL = "https://github.com"

_SLUG_RE = re.compile(r"^(?P<owner>[A-Za-z0-9][A-Za-z0-9-]*)/(?P<repo>[A-Za-z0-9._-]+)$")
_URL_RE = re.compile(
    r"^(?:https?://(?:www\.)?github\.com/|git@github\.com:|ssh://git@github\.com/)"
    r"(?P<owner>[A-Za-z0-9][A-Za-z0-9-]*)/(?P<repo>[A-Za-z0-9._-]+?)(?:\.git)?/?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class RepositoryRef:
    """A GitHub repository: ``owner/name`` plus its canonical URL."""

    owner: str
    name: str

    @property
    def url(self) -> str:
        return f"{GITHUB_URL}/{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> RepositoryRef:
        """Accept ``owner/repo`` or a GitHub URL (https, ssh or scp-like)."""
        text = (value or "").strip()
        match = _SLUG_RE.match(text) or _URL_RE.match(text)
        if match is None:
            raise ConfigurationError(
                f"Not a valid GitHub repository: {value!r}. Expected owner/repository, "
                "e.g. jcansdale/gpr, or https://github.com/owner/repository"
            )
        return cls(owner=match.group("owner"), name=match.group("repo"))

    @classmethod
    def try_parse(cls, value: str | None) -> RepositoryRef | None:
        if not value:
            return None
        try:
            return cls.parse(value)
        except ConfigurationError:
            return None

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class PackageItem:
    """One archive to publish.

    ``version`` is filled in by the pipeline once the manifest has been read
    (after any rewrite). ``error`` holds the failure that kept the item from
    being resolved (unreadable manifest); such an item has no repository and
    fails on its own when the pipeline picks it up. ``uploaded`` flips to True exactly once, on terminal
    success, and is never written by anyone else.
    """

    path: Path
    repository: RepositoryRef | None
    version: str | None = None
    uploaded: bool = False
    error: GprError | None = field(default=None, repr=False)

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def owner(self) -> str:
        return self.repository.owner

    @property
    def repository_name(self) -> str:
        return self.repository.name

    @property
    def repository_url(self) -> str:
        return self.repository.url

    def mark_uploaded(self) -> None:
        if self.uploaded:
            raise RuntimeError(f"{self.filename} was already marked as uploaded")
        self.uploaded = True


__all__ = ["GITHUB_URL", "PackageItem", "RepositoryRef"]
