"""Base class for gateways that talk to a remote REST API."""
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class BaseHttpGateway:
    """Owns an ``httpx.AsyncClient`` for the lifetime of an ``async with`` block."""

    name: str = "base"
    timeout: float = 30.0

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=self.timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    async def fetch_json(self, url: str, **kwargs) -> dict[str, Any] | None:
        """Fetch JSON from URL, logging and returning None on any HTTP failure."""
        try:
            response = await self.client.get(url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error(f"[{self.name}] HTTP error fetching {url}: {e}")
            return None
        except ValueError as e:
            logger.error(f"[{self.name}] Invalid JSON from {url}: {e}")
            return None
