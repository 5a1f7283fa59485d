"""Archive metadata rewriter — edit the nuspec inside a ``.nupkg`` in place.

A package archive is a ZIP file whose single root-level ``*.nuspec`` entry
carries the package identity. :func:`rewrite` replaces the version and/or
repository URL in that entry and leaves everything else alone:

- every other entry keeps its content, compression method, timestamps,
  attributes and position
- the manifest entry keeps its name, position and compression method
- the archive comment is preserved

Without overrides (or when the manifest already carries the requested
values) nothing is written and the original bytes are returned, so the same
call serves both "rewrite" and "just read the version" and running it twice
converges.

The new archive is written to a temporary file next to the original and
moved over it with :func:`os.replace`; a failure at any point leaves the
original file untouched.

Example::

    result = rewrite(Path("Foo.1.0.0.nupkg"), version="1.0.1",
                     repository_url="https://github.com/owner/foo")
    result.manifest.version   # '1.0.1'
    len(result.data)          # size of the archive to upload
"""

from __future__ import annotations

import io
import os
import shutil
import struct
import tempfile
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path

from gpr.core.errors import ArchiveError, ArchiveFailure
from gpr.core.logging import get_logger
from gpr.nuget.manifest import Manifest
from gpr.nuget.versioning import SemanticVersion

logger = get_logger(__name__)

MANIFEST_SUFFIX = ".nuspec"
PACKAGE_EXTENSIONS = (".nupkg", ".snupkg")

_ZIP64_EXTRA_ID = 0x0001

# Raised by ZipFile.read for damaged or unsupported entries
_ENTRY_READ_ERRORS = (zipfile.BadZipFile, zlib.error, NotImplementedError, EOFError)


@dataclass(frozen=True)
class RewriteResult:
    """Outcome of :func:`rewrite`."""

    manifest: Manifest
    data: bytes
    rewritten: bool

    @property
    def version(self) -> str:
        return self.manifest.version

    @property
    def size(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def find_manifest_entry(entries: list[zipfile.ZipInfo]) -> zipfile.ZipInfo:
    """Return the single root-level ``.nuspec`` entry."""
    candidates = [
        info
        for info in entries
        if "/" not in info.filename and info.filename.lower().endswith(MANIFEST_SUFFIX)
    ]
    if len(candidates) != 1:
        detail = "no" if not candidates else f"{len(candidates)}"
        raise ArchiveError(
            f"Expected exactly one {MANIFEST_SUFFIX} entry at the archive root, found {detail}",
            reason=ArchiveFailure.MANIFEST_MISSING,
        )
    return candidates[0]


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ArchiveError(
            f"Couldn't read package file: {exc}", reason=ArchiveFailure.READ_FAILED, cause=exc
        ).with_context(filename=path.name) from exc


def _open_zip(data: bytes, path: Path) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise ArchiveError(
            f"Not a valid package archive: {exc}", reason=ArchiveFailure.READ_FAILED, cause=exc
        ).with_context(filename=path.name) from exc


def _read_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, path: Path) -> bytes:
    try:
        return archive.read(info)
    except _ENTRY_READ_ERRORS as exc:
        raise ArchiveError(
            f"Couldn't read archive entry '{info.filename}': {exc}",
            reason=ArchiveFailure.READ_FAILED,
            cause=exc,
        ).with_context(filename=path.name, entry=info.filename) from exc


def read_manifest(path: Path) -> Manifest:
    """Parse the manifest of the archive at ``path`` without modifying it."""
    path = Path(path)
    with _open_zip(_read_bytes(path), path) as archive:
        entry = find_manifest_entry(archive.infolist())
        return Manifest.parse(_read_entry(archive, entry, path))


# ---------------------------------------------------------------------------
# Rewriting
# ---------------------------------------------------------------------------


def rewrite(
    path: Path,
    version: str | None = None,
    repository_url: str | None = None,
) -> RewriteResult:
    """Apply overrides to the archive's manifest and return the final bytes.

    Raises:
        InvalidVersionError: ``version`` is not a valid semantic version
        ArchiveError: manifest missing/malformed or the archive can't be written
    """
    path = Path(path)
    target_version = str(SemanticVersion.parse(version)) if version is not None else None

    data = _read_bytes(path)
    with _open_zip(data, path) as archive:
        entry = find_manifest_entry(archive.infolist())
        try:
            manifest = Manifest.parse(_read_entry(archive, entry, path))
        except ArchiveError as exc:
            raise exc.with_context(filename=path.name, entry=entry.filename)

        changes = {}
        if target_version is not None and manifest.version != target_version:
            changes["version"] = (manifest.version, target_version)
            manifest.version = target_version
        if repository_url is not None and manifest.repository_url != repository_url:
            changes["repository_url"] = (manifest.repository_url, repository_url)
            manifest.repository_url = repository_url

        if not changes:
            return RewriteResult(manifest=manifest, data=data, rewritten=False)

        new_data = _rebuild(archive, entry, manifest.to_bytes(), path)

    _replace_atomically(path, new_data)
    logger.info(
        "archive.rewritten",
        filename=path.name,
        **{name: new for name, (_, new) in changes.items()},
    )
    return RewriteResult(manifest=manifest, data=new_data, rewritten=True)


def _strip_zip64(extra: bytes) -> bytes:
    """Drop zip64 extra fields; zipfile writes its own when needed."""
    kept = bytearray()
    offset = 0
    while offset + 4 <= len(extra):
        header_id, size = struct.unpack("<HH", extra[offset:offset + 4])
        chunk = extra[offset:offset + 4 + size]
        if header_id != _ZIP64_EXTRA_ID:
            kept += chunk
        offset += 4 + size
    return bytes(kept)


def _copy_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    clone = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    clone.compress_type = info.compress_type
    clone.comment = info.comment
    clone.extra = _strip_zip64(info.extra)
    clone.create_system = info.create_system
    clone.external_attr = info.external_attr
    clone.internal_attr = info.internal_attr
    return clone


def _rebuild(
    archive: zipfile.ZipFile,
    manifest_entry: zipfile.ZipInfo,
    manifest_data: bytes,
    path: Path,
) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as out:
        out.comment = archive.comment
        for info in archive.infolist():
            if info.filename == manifest_entry.filename:
                payload = manifest_data
            else:
                payload = _read_entry(archive, info, path)
            out.writestr(_copy_info(info), payload)
    return buffer.getvalue()


def _replace_atomically(path: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise ArchiveError(
            f"Couldn't write rewritten package: {exc}",
            reason=ArchiveFailure.WRITE_FAILED,
            cause=exc,
        ).with_context(filename=path.name) from exc


__all__ = [
    "MANIFEST_SUFFIX",
    "PACKAGE_EXTENSIONS",
    "RewriteResult",
    "find_manifest_entry",
    "read_manifest",
    "rewrite",
]
