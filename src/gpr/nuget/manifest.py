"""Nuspec manifest parsing and serialization.

A ``.nuspec`` is the package identity document stored at the root of every
``.nupkg``::

    <?xml version="1.0" encoding="utf-8"?>
    <package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
      <metadata>
        <id>Foo</id>
        <version>1.0.0</version>
        <authors>someone</authors>
        <repository type="git" url="https://github.com/owner/foo" />
        <dependencies>...</dependencies>
      </metadata>
    </package>

:class:`Manifest` exposes ``id``, ``version`` and ``repository_url`` and keeps
the full element tree so every other field (and XML comment) round-trips.
Serializing a manifest that was parsed from this module's own output gives
the same bytes back.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass

from gpr.core.errors import ArchiveError, ArchiveFailure

# Group elements come after all scalar metadata in packed nuspecs;
# an inserted <repository> goes in front of the first one found.
GROUP_ELEMENTS = (
    "packageTypes",
    "dependencies",
    "frameworkAssemblies",
    "frameworkReferences",
    "references",
    "contentFiles",
)


def _split_tag(tag: str) -> tuple[str, str]:
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return "", tag


def _malformed(message: str, cause: Exception | None = None) -> ArchiveError:
    return ArchiveError(message, reason=ArchiveFailure.MALFORMED_MANIFEST, cause=cause)


@dataclass
class Manifest:
    """Parsed nuspec document."""

    root: ET.Element
    namespace: str

    # ── Parsing ──────────────────────────────────────────────────

    @classmethod
    def parse(cls, data: bytes) -> Manifest:
        """Parse nuspec bytes, raising ``ArchiveError(MalformedManifest)``."""
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        try:
            parser.feed(data)
            root = parser.close()
        except ET.ParseError as exc:
            raise _malformed(f"Unparsable nuspec: {exc}", exc) from exc

        namespace, local = _split_tag(root.tag)
        if local != "package":
            raise _malformed(f"Unexpected nuspec root element <{local}>")

        manifest = cls(root=root, namespace=namespace)
        if manifest._metadata() is None:
            raise _malformed("Nuspec has no <metadata> element")
        for required in ("id", "version"):
            element = manifest._find(required)
            if element is None or not (element.text or "").strip():
                raise _malformed(f"Nuspec is missing <{required}>")
        return manifest

    # ── Element helpers ──────────────────────────────────────────

    def _qname(self, local: str) -> str:
        return f"{{{self.namespace}}}{local}" if self.namespace else local

    def _metadata(self) -> ET.Element | None:
        return self.root.find(self._qname("metadata"))

    def _find(self, local: str) -> ET.Element | None:
        metadata = self._metadata()
        return metadata.find(self._qname(local)) if metadata is not None else None

    # ── Identity fields ──────────────────────────────────────────

    @property
    def id(self) -> str:
        return self._find("id").text.strip()

    @property
    def version(self) -> str:
        return self._find("version").text.strip()

    @version.setter
    def version(self, value: str) -> None:
        self._find("version").text = value

    @property
    def repository_url(self) -> str | None:
        element = self._find("repository")
        if element is None:
            return None
        return element.get("url") or None

    @repository_url.setter
    def repository_url(self, url: str) -> None:
        element = self._find("repository")
        if element is None:
            self._insert_repository(url)
        else:
            element.set("url", url)

    @property
    def other_fields(self) -> list[tuple[str, str]]:
        """Remaining metadata children as ``(name, text)`` in document order."""
        fields = []
        for child in self._metadata():
            if not isinstance(child.tag, str):
                continue  # comment
            _, local = _split_tag(child.tag)
            if local not in ("id", "version", "repository"):
                fields.append((local, (child.text or "").strip()))
        return fields

    def _insert_repository(self, url: str) -> None:
        metadata = self._metadata()
        children = list(metadata)
        position = len(children)
        for index, child in enumerate(children):
            if isinstance(child.tag, str) and _split_tag(child.tag)[1] in GROUP_ELEMENTS:
                position = index
                break

        element = ET.Element(self._qname("repository"), {"type": "git", "url": url})
        if position < len(children):
            # Take the indentation of the element we are inserting in front of
            previous_tail = children[position - 1].tail if position else metadata.text
            element.tail = previous_tail
        elif children:
            # Appending: the new last element inherits the closing indentation
            element.tail = children[-1].tail
            children[-1].tail = metadata.text
        metadata.insert(position, element)

    # ── Serialization ────────────────────────────────────────────

    def to_bytes(self) -> bytes:
        """Serialize as UTF-8 with an XML declaration, namespace as default."""
        try:
            return ET.tostring(
                self.root,
                encoding="utf-8",
                xml_declaration=True,
                default_namespace=self.namespace or None,
            )
        except ValueError:
            # Un-namespaced elements mixed in: fall back to generated prefixes
            return ET.tostring(self.root, encoding="utf-8", xml_declaration=True)


__all__ = ["GROUP_ELEMENTS", "Manifest"]
