import asyncio

import aiohttp

from app.config import settings
from app.errors import ProviderError

PROVIDER = "FDA"

class FdaClient:
    """Thin async wrapper around the openFDA food enforcement endpoint."""

    def __init__(self, base_url=None, api_key=None, timeout=None):
        self.base_url = base_url or settings.FDA_API_URL
        self.api_key = api_key if api_key is not None else settings.FDA_API_KEY
        self.timeout = timeout or settings.FDA_TIMEOUT_SECONDS
        self.headers = {"User-Agent": settings.HTTP_USER_AGENT, "Accept": "application/json"}

    async def get(self, params: dict | None = None, timeout: float | None = None) -> dict:
        params = dict(params or {})
        if self.api_key:
            params["api_key"] = self.api_key

        client_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=client_timeout, headers=self.headers) as session:
                async with session.get(self.base_url, params=params) as resp:
                    # openFDA answers 404 when a search simply has no matches
                    if resp.status == 404:
                        return {"results": []}
                    if resp.status >= 400:
                        text = await resp.text()
                        raise ProviderError(PROVIDER, f"GET error {resp.status}: {text[:200]}", resp.status)
                    payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ProviderError(PROVIDER, f"request failed: {exc!r}") from exc

        if not isinstance(payload, dict):
            raise ProviderError(PROVIDER, "unexpected payload shape")
        return payload

    async def ping(self, timeout: float = 5.0) -> None:
        await self.get({"limit": 1}, timeout=timeout)
