"""NuGet package handling — versions, nuspec manifests, archives, discovery.

Public API:
    SemanticVersion.parse(text) -> SemanticVersion
    Manifest.parse(data) -> Manifest
    rewrite(path, version, repository_url) -> RewriteResult
    read_manifest(path) -> Manifest
    find_package_files(pattern, cwd) -> list[Path]
    build_package_items(paths, repository) -> list[PackageItem]
"""

from gpr.nuget.archive import RewriteResult, read_manifest, rewrite
from gpr.nuget.discovery import build_package_items, find_package_files
from gpr.nuget.manifest import Manifest
from gpr.nuget.models import PackageItem, RepositoryRef
from gpr.nuget.versioning import SemanticVersion

__all__ = [
    "Manifest",
    "PackageItem",
    "RepositoryRef",
    "RewriteResult",
    "SemanticVersion",
    "build_package_items",
    "find_package_files",
    "read_manifest",
    "rewrite",
]
