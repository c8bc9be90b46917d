from typing import Any

import httpx

from app.core.base_client import BaseClient
from app.core.version import __version__


class LastFmClient(BaseClient):
    """
    Client for interacting with the Last.fm web API.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://ws.audioscrobbler.com/2.0/",
        timeout: float = 10.0,
        max_retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {
            "User-Agent": f"TuneMatch/{__version__}",
            "Accept": "application/json",
        }
        super().__init__(
            base_url=base_url, timeout=timeout, max_retries=max_retries, headers=headers, transport=transport
        )
        self.api_key = api_key

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """Override request to always include API key and JSON format."""
        params = kwargs.get("params", {})
        if params is None:
            params = {}
        params["api_key"] = self.api_key
        params["format"] = "json"
        kwargs["params"] = params
        return await super()._request(method, url, **kwargs)

    async def call(self, method: str, **params: Any) -> dict[str, Any]:
        """Invoke a Last.fm API method, e.g. ``user.gettopartists``."""
        return await self.get("", params={"method": method, **params})
