import asyncio

import aiohttp

from app.config import settings
from app.errors import ProviderError

PROVIDER = "FSIS"

class FsisClient:
    """The FSIS recall API has no server-side filtering; it returns the whole feed."""

    def __init__(self, base_url=None, timeout=None):
        self.base_url = base_url or settings.FSIS_API_URL
        self.timeout = timeout or settings.FSIS_TIMEOUT_SECONDS
        self.headers = {"User-Agent": settings.HTTP_USER_AGENT, "Accept": "application/json"}

    async def get(self, timeout: float | None = None) -> list:
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=client_timeout, headers=self.headers) as session:
                async with session.get(self.base_url) as resp:
                    if resp.status >= 400:
                        text = await resp.text()
                        raise ProviderError(PROVIDER, f"GET error {resp.status}: {text[:200]}", resp.status)
                    payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ProviderError(PROVIDER, f"request failed: {exc!r}") from exc

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ProviderError(PROVIDER, "unexpected payload shape")
        return payload

    async def ping(self, timeout: float = 5.0) -> None:
        await self.get(timeout=timeout)
