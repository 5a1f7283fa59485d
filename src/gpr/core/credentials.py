"""Access-token discovery and storage.

Tokens are looked up in this order:

1. ``--api-key`` on the command line
2. ``GPR_API_KEY`` (see :class:`~gpr.core.settings.GprSettings`)
3. ``ClearTextPassword`` of the ``github`` source in NuGet.Config
4. ``READ_PACKAGES_TOKEN`` environment variable

NuGet.Config layout::

    <configuration>
      <packageSourceCredentials>
        <github>
          <add key="Username" value="PublicToken" />
          <add key="ClearTextPassword" value="ghp_..." />
        </github>
      </packageSourceCredentials>
    </configuration>
"""

from __future__ import annotations

import os
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from gpr.core.errors import ConfigurationError
from gpr.core.logging import get_logger
from gpr.core.settings import GprSettings

logger = get_logger(__name__)

DEFAULT_SOURCE = "github"
PASSWORD_KEY = "ClearTextPassword"
USERNAME_KEY = "Username"
DEFAULT_USERNAME = "PublicToken"


@dataclass(frozen=True)
class Credentials:
    """Basic-auth pair sent to the registry."""

    user: str
    token: str

    def __repr__(self) -> str:
        return f"Credentials(user={self.user!r}, token='***')"


def default_config_file() -> Path:
    """Per-user NuGet.Config location."""
    if sys.platform == "win32" and os.environ.get("APPDATA"):
        return Path(os.environ["APPDATA"]) / "NuGet" / "NuGet.Config"
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "NuGet" / "NuGet.Config"


def _read_config(config_file: Path, warn: Callable[[str], None]) -> ET.ElementTree | None:
    if not config_file.is_file():
        return None
    try:
        return ET.parse(config_file)
    except ET.ParseError as exc:
        warn(f"Couldn't parse NuGet config file '{config_file}': {exc}")
        return None


def find_token_in_config(
    config_file: Path,
    source: str = DEFAULT_SOURCE,
    warn: Callable[[str], None] | None = None,
) -> str | None:
    """Return the stored ``ClearTextPassword`` for ``source``, if any."""
    warn = warn or (lambda line: logger.warning("credentials.config_warning", detail=line))
    tree = _read_config(config_file, warn)
    if tree is None:
        return None

    for add in tree.getroot().iterfind(f"./packageSourceCredentials/{source}/add"):
        if add.get("key") == PASSWORD_KEY and add.get("value"):
            return add.get("value")
    return None


def find_token(
    explicit: str | None,
    settings: GprSettings,
    *,
    warn: Callable[[str], None] | None = None,
) -> str:
    """Resolve the personal access token, raising when none is available."""
    candidates: list[tuple[str, Callable[[], str | None]]] = [
        ("option", lambda: explicit),
        ("settings", lambda: settings.api_key),
        (
            "nuget_config",
            lambda: find_token_in_config(
                settings.nuget_config_file or default_config_file(), warn=warn
            ),
        ),
        ("environment", lambda: os.environ.get("READ_PACKAGES_TOKEN")),
    ]
    for origin, lookup in candidates:
        token = lookup()
        if token and token.strip():
            logger.debug("credentials.token_found", origin=origin)
            return token.strip()

    raise ConfigurationError("Couldn't find personal access token")


def set_api_key(config_file: Path, api_key: str, source: str = DEFAULT_SOURCE) -> None:
    """Store ``api_key`` for ``source`` in a NuGet.Config file.

    Creates the file (and parents) when missing, keeps unrelated content.

    Raises:
        ConfigurationError: the existing file is not valid XML; it is left as is
    """
    tree = None
    if config_file.is_file():
        try:
            tree = ET.parse(config_file)
        except ET.ParseError as exc:
            raise ConfigurationError(
                f"Couldn't parse NuGet config file '{config_file}': {exc}", cause=exc
            ) from exc
    if tree is None:
        root = ET.Element("configuration")
        tree = ET.ElementTree(root)
    else:
        root = tree.getroot()

    credentials = root.find("packageSourceCredentials")
    if credentials is None:
        credentials = ET.SubElement(root, "packageSourceCredentials")

    source_element = credentials.find(source)
    if source_element is None:
        source_element = ET.SubElement(credentials, source)

    entries = {add.get("key"): add for add in source_element.findall("add")}
    if USERNAME_KEY not in entries:
        ET.SubElement(source_element, "add", {"key": USERNAME_KEY, "value": DEFAULT_USERNAME})
    password = entries.get(PASSWORD_KEY)
    if password is None:
        ET.SubElement(source_element, "add", {"key": PASSWORD_KEY, "value": api_key})
    else:
        password.set("value", api_key)

    ET.indent(tree, space="  ")
    config_file.parent.mkdir(parents=True, exist_ok=True)
    tree.write(config_file, encoding="utf-8", xml_declaration=True)
    logger.info("credentials.stored", config_file=str(config_file), source=source)


__all__ = [
    "Credentials",
    "DEFAULT_SOURCE",
    "default_config_file",
    "find_token",
    "find_token_in_config",
    "set_api_key",
]
