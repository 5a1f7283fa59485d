"""Tests for the archive metadata rewriter."""

import os
import zipfile
from unittest.mock import patch

import pytest

from gpr.core.errors import ArchiveError, ArchiveFailure, InvalidVersionError
from gpr.nuget.archive import find_manifest_entry, read_manifest, rewrite
from gpr.nuget.manifest import Manifest
from tests._support.packages import build_nupkg, corrupt_stored_entry, nuspec, read_entries, read_infos


class TestReadManifest:
    def test_reads_identity(self, nupkg):
        manifest = read_manifest(nupkg)
        assert (manifest.id, manifest.version) == ("Foo", "1.0.0")

    def test_missing_manifest(self, tmp_path):
        path = build_nupkg(tmp_path / "Foo.nupkg", manifest_name=None)
        with pytest.raises(ArchiveError) as exc_info:
            read_manifest(path)
        assert exc_info.value.reason is ArchiveFailure.MANIFEST_MISSING

    def test_nested_nuspec_is_not_the_manifest(self, tmp_path):
        path = build_nupkg(
            tmp_path / "Foo.nupkg",
            manifest_name=None,
            entries={"content/Other.nuspec": nuspec()},
        )
        with pytest.raises(ArchiveError) as exc_info:
            read_manifest(path)
        assert exc_info.value.reason is ArchiveFailure.MANIFEST_MISSING

    def test_two_manifests(self):
        infos = [zipfile.ZipInfo("A.nuspec"), zipfile.ZipInfo("B.nuspec")]
        with pytest.raises(ArchiveError, match="found 2"):
            find_manifest_entry(infos)

    def test_corrupted_entry(self, tmp_path):
        path = corrupt_stored_entry(build_nupkg(tmp_path / "Foo.1.0.0.nupkg"))
        with pytest.raises(ArchiveError) as excinfo:
            rewrite(path, version="2.0.0")
        assert excinfo.value.reason is ArchiveFailure.READ_FAILED
        assert excinfo.value.context.filename == "Foo.1.0.0.nupkg"
        assert excinfo.value.context.metadata["entry"] == "lib/net6.0/Foo.dll"

    def test_not_a_zip(self, tmp_path):
        path = tmp_path / "Foo.nupkg"
        path.write_bytes(b"definitely not a zip")
        with pytest.raises(ArchiveError) as exc_info:
            read_manifest(path)
        assert exc_info.value.reason is ArchiveFailure.READ_FAILED
        assert exc_info.value.context.filename == "Foo.nupkg"

    def test_malformed_manifest(self, tmp_path):
        path = build_nupkg(tmp_path / "Foo.nupkg", b"<package>")
        with pytest.raises(ArchiveError) as exc_info:
            read_manifest(path)
        assert exc_info.value.reason is ArchiveFailure.MALFORMED_MANIFEST


class TestRewriteNoChange:
    def test_no_overrides_returns_original_bytes(self, nupkg):
        before = nupkg.read_bytes()
        result = rewrite(nupkg)
        assert result.rewritten is False
        assert result.data == before
        assert result.version == "1.0.0"
        assert nupkg.read_bytes() == before

    def test_matching_values_skip_the_write(self, nupkg):
        before = nupkg.stat().st_mtime_ns
        result = rewrite(nupkg, version="1.0.0", repository_url="https://github.com/owner/foo")
        assert result.rewritten is False
        assert nupkg.stat().st_mtime_ns == before


class TestRewrite:
    def test_version_override(self, nupkg):
        result = rewrite(nupkg, version="1.0.1-beta.1")
        assert result.rewritten is True
        assert result.version == "1.0.1-beta.1"
        assert read_manifest(nupkg).version == "1.0.1-beta.1"
        assert result.data == nupkg.read_bytes()
        assert result.size == len(result.data)

    def test_version_is_normalized(self, nupkg):
        assert rewrite(nupkg, version="2.1").version == "2.1.0"

    def test_repository_override(self, tmp_path):
        path = build_nupkg(tmp_path / "Foo.nupkg", nuspec(repository_url=None))
        rewrite(path, repository_url="https://github.com/other/bar")
        assert read_manifest(path).repository_url == "https://github.com/other/bar"

    def test_other_manifest_fields_unchanged(self, nupkg):
        before = read_manifest(nupkg)
        rewrite(nupkg, version="3.0.0")
        after = read_manifest(nupkg)
        assert after.id == before.id
        assert after.other_fields == before.other_fields
        assert after.repository_url == before.repository_url

    def test_non_manifest_entries_byte_identical(self, nupkg):
        before = read_entries(nupkg)
        rewrite(nupkg, version="2.0.0")
        after = read_entries(nupkg)
        assert list(after) == list(before)
        for name, data in before.items():
            if name != "Foo.nuspec":
                assert after[name] == data, name

    def test_entry_metadata_preserved(self, nupkg):
        before = {info.filename: info for info in read_infos(nupkg)}
        rewrite(nupkg, version="2.0.0")
        for info in read_infos(nupkg):
            original = before[info.filename]
            assert info.compress_type == original.compress_type, info.filename
            assert info.date_time == original.date_time
            assert info.external_attr == original.external_attr

    def test_archive_comment_preserved(self, tmp_path):
        path = build_nupkg(tmp_path / "Foo.nupkg", comment=b"signed")
        rewrite(path, version="2.0.0")
        with zipfile.ZipFile(path) as archive:
            assert archive.comment == b"signed"

    def test_idempotent(self, nupkg):
        first = rewrite(nupkg, version="2.0.0", repository_url="https://github.com/other/bar")
        manifest_after_first = read_entries(nupkg)["Foo.nuspec"]
        entries_after_first = read_entries(nupkg)

        second = rewrite(nupkg, version="2.0.0", repository_url="https://github.com/other/bar")
        assert second.rewritten is False
        assert second.version == first.version == "2.0.0"
        assert read_entries(nupkg)["Foo.nuspec"] == manifest_after_first
        assert read_entries(nupkg) == entries_after_first

    def test_manifest_serialization_converges(self, tmp_path):
        path = build_nupkg(tmp_path / "Foo.nupkg")
        rewrite(path, version="2.0.0")
        first = read_entries(path)["Foo.nuspec"]
        rewrite(path, version="3.0.0")
        rewrite(path, version="2.0.0")
        assert read_entries(path)["Foo.nuspec"] == first
        assert Manifest.parse(first).version == "2.0.0"


class TestRewriteFailures:
    def test_invalid_version_touches_nothing(self, nupkg):
        before = nupkg.read_bytes()
        with pytest.raises(InvalidVersionError):
            rewrite(nupkg, version="not-a-version")
        assert nupkg.read_bytes() == before

    def test_missing_file(self, tmp_path):
        with pytest.raises(ArchiveError) as exc_info:
            rewrite(tmp_path / "missing.nupkg", version="1.0.0")
        assert exc_info.value.reason is ArchiveFailure.READ_FAILED

    def test_failed_replace_leaves_original(self, nupkg):
        before = nupkg.read_bytes()
        with patch("gpr.nuget.archive.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(ArchiveError) as exc_info:
                rewrite(nupkg, version="9.9.9")
        assert exc_info.value.reason is ArchiveFailure.WRITE_FAILED
        assert nupkg.read_bytes() == before
        # temp file cleaned up
        assert sorted(os.listdir(nupkg.parent)) == [nupkg.name]
