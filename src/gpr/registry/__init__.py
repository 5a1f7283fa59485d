"""Registry transport (httpx)."""

from gpr.registry.client import RegistryTransport, TransportResponse

__all__ = ["RegistryTransport", "TransportResponse"]
