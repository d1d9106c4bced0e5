"""Lookup of a profile's browser address on the provisioning service."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from cef_mcp.errors import ProvisioningError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome of one lookup. ``address`` is set only on success."""

    ok: bool
    address: Optional[str] = None
    error: Optional[str] = None


class ProvisioningClient:
    """Resolves ``/profiles/{profile}/cef`` to a connection address."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def resolve(self, profile: str) -> ProvisionResult:
        url = f"{self.base_url}/profiles/{quote(profile, safe='')}/cef"
        logger.info("Resolving browser address for profile %s", profile)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            raise ProvisioningError(f"Provisioning lookup failed for {url}: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        error = payload.get("error")
        if not response.is_success or error:
            logger.warning(
                "Provisioning lookup for %s returned %s: %s", profile, response.status_code, error
            )
            return ProvisionResult(ok=False, error=str(error) if error else None)

        address = (payload.get("data") or {}).get("address")
        if not address:
            return ProvisionResult(ok=False, error="Provisioning response has no address")
        return ProvisionResult(ok=True, address=address)
