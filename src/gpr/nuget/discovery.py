"""Resolve a glob pattern into :class:`~gpr.nuget.models.PackageItem` objects.

Patterns::

    Foo.1.0.0.nupkg            single file (relative or absolute)
    *.nupkg                    glob relative to the working directory
    artifacts/**/*.nupkg       recursive glob
    artifacts                  directory: every package below it
"""

from __future__ import annotations

import glob as globlib
from collections.abc import Iterable
from pathlib import Path

from gpr.core.errors import ArchiveError, ConfigurationError
from gpr.core.logging import get_logger
from gpr.nuget.archive import PACKAGE_EXTENSIONS, read_manifest
from gpr.nuget.models import PackageItem, RepositoryRef

logger = get_logger(__name__)


def _is_package(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in PACKAGE_EXTENSIONS


def find_package_files(pattern: str | None, cwd: Path | None = None) -> list[Path]:
    """Return absolute paths of package archives matching ``pattern``.

    Raises:
        ConfigurationError: nothing matched
    """
    cwd = Path(cwd or Path.cwd())
    pattern = pattern or "**/*.nupkg"

    candidate = Path(pattern)
    if not candidate.is_absolute():
        candidate = cwd / candidate

    if candidate.is_file():
        matches = [candidate] if _is_package(candidate) else []
    else:
        if candidate.is_dir():
            candidate = candidate / "**" / "*"
        matches = [
            Path(match)
            for match in globlib.glob(str(candidate), recursive=True)
            if _is_package(Path(match))
        ]

    files = sorted({match.resolve() for match in matches})
    if not files:
        raise ConfigurationError(
            f"Unable to find any packages matching glob pattern: {pattern}. "
            f"Valid filename extensions are {', '.join(PACKAGE_EXTENSIONS)}."
        )

    logger.debug("discovery.matched", pattern=pattern, count=len(files))
    return files


def build_package_items(
    paths: Iterable[Path],
    repository: str | None = None,
) -> list[PackageItem]:
    """Attach an owning repository to every archive.

    With ``repository`` (``--repository``) every item publishes to that
    repository. Otherwise the ``<repository url>`` of each manifest is used.
    An archive whose manifest can't be read becomes an item carrying the
    :class:`ArchiveError`, so it fails without stopping the others.

    Raises:
        ConfigurationError: bad override, or a manifest without a usable URL
    """
    override = RepositoryRef.parse(repository) if repository is not None else None

    items = []
    for path in paths:
        ref = override
        if ref is None:
            try:
                declared = read_manifest(path).repository_url
            except ArchiveError as exc:
                error = exc.with_context(filename=path.name)
                logger.warning("discovery.unreadable_manifest", **error.to_dict())
                items.append(PackageItem(path=path, repository=None, error=error))
                continue
            ref = RepositoryRef.try_parse(declared)
            if ref is None:
                raise ConfigurationError(
                    f"Project is missing a valid <RepositoryUrl /> XML element value: {declared}. "
                    f"Package filename: {path} "
                    "Please use --repository option to set a valid upstream GitHub repository."
                ).with_context(filename=path.name)
        items.append(PackageItem(path=path, repository=ref))
    return items


__all__ = ["build_package_items", "find_package_files"]
