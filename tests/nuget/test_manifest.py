"""Tests for nuspec parsing and serialization."""

import xml.etree.ElementTree as ET

import pytest

from gpr.core.errors import ArchiveError, ArchiveFailure
from gpr.nuget.manifest import Manifest
from tests._support.packages import NUSPEC_NS, nuspec


def _metadata_children(manifest: Manifest) -> list[str]:
    metadata = manifest.root.find(f"{{{manifest.namespace}}}metadata" if manifest.namespace else "metadata")
    return [
        child.tag.rpartition("}")[2]
        for child in metadata
        if isinstance(child.tag, str)
    ]


class TestParse:
    def test_identity(self):
        manifest = Manifest.parse(nuspec(id="Foo", version="1.2.3"))
        assert manifest.id == "Foo"
        assert manifest.version == "1.2.3"
        assert manifest.repository_url == "https://github.com/owner/foo"
        assert manifest.namespace == NUSPEC_NS

    def test_without_namespace(self):
        manifest = Manifest.parse(nuspec(namespace=None))
        assert manifest.namespace == ""
        assert manifest.id == "Foo"

    def test_other_fields(self):
        manifest = Manifest.parse(nuspec())
        assert ("authors", "someone") in manifest.other_fields
        assert ("description", "Test package") in manifest.other_fields

    @pytest.mark.parametrize(
        "data",
        [
            b"not xml",
            b"<nuspec><metadata/></nuspec>",
            b"<package><files/></package>",
            b"<package><metadata><id>Foo</id></metadata></package>",
            b"<package><metadata><id> </id><version>1.0.0</version></metadata></package>",
        ],
    )
    def test_malformed(self, data):
        with pytest.raises(ArchiveError) as exc_info:
            Manifest.parse(data)
        assert exc_info.value.reason is ArchiveFailure.MALFORMED_MANIFEST


class TestModify:
    def test_set_version(self):
        manifest = Manifest.parse(nuspec())
        manifest.version = "2.0.0"
        assert Manifest.parse(manifest.to_bytes()).version == "2.0.0"

    def test_set_existing_repository_keeps_other_attributes(self):
        manifest = Manifest.parse(nuspec())
        manifest.repository_url = "https://github.com/other/bar"
        reparsed = Manifest.parse(manifest.to_bytes())
        repository = reparsed.root.find(f"{{{NUSPEC_NS}}}metadata/{{{NUSPEC_NS}}}repository")
        assert repository.get("url") == "https://github.com/other/bar"
        assert repository.get("type") == "git"
        assert repository.get("commit") == "abc123"

    def test_insert_repository_before_dependencies(self):
        manifest = Manifest.parse(nuspec(repository_url=None))
        assert manifest.repository_url is None
        manifest.repository_url = "https://github.com/owner/foo"
        reparsed = Manifest.parse(manifest.to_bytes())
        assert reparsed.repository_url == "https://github.com/owner/foo"
        children = _metadata_children(reparsed)
        assert children.index("repository") == children.index("dependencies") - 1

    def test_insert_repository_appends_without_groups(self):
        manifest = Manifest.parse(nuspec(repository_url=None, dependencies=False))
        manifest.repository_url = "https://github.com/owner/foo"
        assert _metadata_children(Manifest.parse(manifest.to_bytes()))[-1] == "repository"


class TestSerialize:
    def test_namespace_is_default(self):
        data = Manifest.parse(nuspec()).to_bytes()
        assert f'xmlns="{NUSPEC_NS}"'.encode() in data
        assert b"ns0:" not in data

    def test_comments_survive(self):
        data = Manifest.parse(nuspec(comment=" keep me ")).to_bytes()
        assert b"<!-- keep me -->" in data

    def test_reserialization_is_stable(self):
        once = Manifest.parse(nuspec()).to_bytes()
        twice = Manifest.parse(once).to_bytes()
        assert once == twice

    def test_declaration(self):
        data = Manifest.parse(nuspec()).to_bytes()
        assert data.startswith(b"<?xml version='1.0' encoding='utf-8'?>")
        ET.fromstring(data)
