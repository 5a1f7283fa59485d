"""Tests for RepositoryRef and PackageItem."""

from pathlib import Path

import pytest

from gpr.core.errors import ConfigurationError
from gpr.nuget.models import PackageItem, RepositoryRef


class TestRepositoryRef:
    @pytest.mark.parametrize(
        "value",
        [
            "owner/repo",
            "https://github.com/owner/repo",
            "https://github.com/owner/repo/",
            "https://github.com/owner/repo.git",
            "http://www.github.com/owner/repo",
            "git@github.com:owner/repo.git",
            "ssh://git@github.com/owner/repo.git",
        ],
    )
    def test_parse(self, value):
        ref = RepositoryRef.parse(value)
        assert (ref.owner, ref.name) == ("owner", "repo")
        assert ref.url == "https://github.com/owner/repo"
        assert str(ref) == "owner/repo"

    def test_dotted_repository_name(self):
        assert RepositoryRef.parse("owner/my.lib").name == "my.lib"

    @pytest.mark.parametrize("value", ["", "owner", "https://gitlab.com/owner/repo", "a/b/c"])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError):
            RepositoryRef.parse(value)
        assert RepositoryRef.try_parse(value) is None


class TestPackageItem:
    def test_properties(self):
        item = PackageItem(path=Path("/tmp/Foo.1.0.0.nupkg"), repository=RepositoryRef("owner", "foo"))
        assert item.filename == "Foo.1.0.0.nupkg"
        assert item.owner == "owner"
        assert item.repository_url == "https://github.com/owner/foo"

    def test_mark_uploaded_once(self):
        item = PackageItem(path=Path("Foo.nupkg"), repository=RepositoryRef("owner", "foo"))
        item.mark_uploaded()
        assert item.uploaded is True
        with pytest.raises(RuntimeError):
            item.mark_uploaded()
