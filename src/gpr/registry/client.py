"""HTTP transport for the GitHub Packages NuGet endpoint.

One :class:`httpx.AsyncClient` is shared by every upload of a run::

    async with RegistryTransport.from_settings(settings) as transport:
        response = await transport.put_archive(
            transport.upload_url("owner"), credentials, "Foo.1.0.0.nupkg", data
        )
        response.status_code   # 200

The transport knows nothing about retries or status semantics. Responses of
any status are returned as :class:`TransportResponse`; transport failures
surface as :class:`httpx.HTTPError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

import httpx

from gpr import __version__
from gpr.core.credentials import Credentials
from gpr.core.logging import get_logger
from gpr.core.settings import DEFAULT_REGISTRY_URL, GprSettings
from gpr.execution.cancellation import CancellationToken

logger = get_logger(__name__)

USER_AGENT = f"gpr-tool/{__version__}"
PACKAGE_FIELD = "package"
PACKAGE_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers (lower-cased names) and body of one response."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> TransportResponse:
        return cls(
            status_code=response.status_code,
            headers={name.lower(): value for name, value in response.headers.items()},
            body=response.text,
        )


class RegistryTransport:
    """Thin async wrapper around the NuGet push and metadata endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        *,
        timeout: float | None = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: GprSettings, **kwargs: Any) -> RegistryTransport:
        return cls(settings.registry_url, timeout=settings.attempt_timeout_seconds, **kwargs)

    # ── Lifecycle ────────────────────────────────────────────────

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RegistryTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ── Endpoints ────────────────────────────────────────────────

    def upload_url(self, owner: str) -> str:
        return f"{self.base_url}/{owner}/"

    def details_url(self, owner: str, name: str, version: str) -> str:
        return f"{self.base_url}/{owner}/{name}/{version}.json"

    async def put_archive(
        self,
        endpoint: str,
        credentials: Credentials,
        filename: str,
        content: bytes,
        cancellation: CancellationToken | None = None,
    ) -> TransportResponse:
        """Upload one archive as multipart form field ``package``.

        Raises:
            PublishCancelledError: cancellation was requested before sending
            httpx.HTTPError: connection, protocol or client timeout failure
        """
        if cancellation is not None:
            cancellation.raise_if_cancelled()

        logger.debug("registry.put", url=endpoint, filename=filename, length=len(content))
        response = await self._client.put(
            endpoint,
            files={PACKAGE_FIELD: (filename, content, PACKAGE_CONTENT_TYPE)},
            auth=httpx.BasicAuth(credentials.user, credentials.token),
        )
        return TransportResponse.from_httpx(response)

    async def get_package_details(
        self,
        owner: str,
        name: str,
        version: str,
        credentials: Credentials,
    ) -> TransportResponse:
        url = self.details_url(owner, name, version)
        logger.debug("registry.get", url=url)
        response = await self._client.get(
            url, auth=httpx.BasicAuth(credentials.user, credentials.token)
        )
        return TransportResponse.from_httpx(response)


__all__ = ["RegistryTransport", "TransportResponse", "USER_AGENT"]
