"""
Search engine notification adapter.

Pings sitemap endpoints and submits new URLs through IndexNow so freshly
published posts get crawled quickly. Every call is best-effort: failures
are logged and reported as False, never raised.
"""

import logging
from typing import Optional
from urllib.parse import quote, urlparse

import httpx

from core.interfaces.services import SearchEngineNotifier
from infrastructure.config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class SearchEnginePinger(SearchEngineNotifier):
    """Notifies Google, Bing and IndexNow about sitemap and URL changes."""

    SITEMAP_PING_URLS = {
        "google": "https://www.google.com/ping?sitemap={sitemap}",
        "bing": "https://www.bing.com/ping?sitemap={sitemap}",
    }
    INDEXNOW_URL = "https://api.indexnow.org/indexnow"

    def __init__(
        self,
        config: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = config or default_settings
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.search_ping_timeout,
                follow_redirects=True,
            )
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def ping_sitemap(self) -> dict[str, bool]:
        """GET each engine's sitemap ping endpoint."""
        if not self._settings.search_ping_enabled:
            return {}

        sitemap = quote(self._settings.sitemap_url, safe="")
        results: dict[str, bool] = {}
        for engine, template in self.SITEMAP_PING_URLS.items():
            try:
                response = await self._get_client().get(template.format(sitemap=sitemap))
                results[engine] = response.status_code < 400
                if not results[engine]:
                    logger.warning("Sitemap ping to %s returned %d", engine, response.status_code)
            except httpx.HTTPError as e:
                logger.warning("Sitemap ping to %s failed: %s", engine, e)
                results[engine] = False
        return results

    async def submit_url(self, url: str) -> dict[str, bool]:
        """Submit *url* via IndexNow. Skipped when no IndexNow key is configured."""
        if not self._settings.search_ping_enabled or not self._settings.indexnow_key:
            return {}

        payload = {
            "host": urlparse(self._settings.site_url).netloc,
            "key": self._settings.indexnow_key,
            "urlList": [url],
        }
        try:
            response = await self._get_client().post(self.INDEXNOW_URL, json=payload)
        except httpx.HTTPError as e:
            logger.warning("IndexNow submission failed for %s: %s", url, e)
            return {"indexnow": False}

        # 200 OK and 202 Accepted both mean the URL was received
        ok = response.status_code in (200, 202)
        if not ok:
            logger.warning("IndexNow returned %d for %s", response.status_code, url)
        return {"indexnow": ok}
