"""Spoonacular recipe source: async complexSearch client with throttling and quota tracking.

This module provides the SpoonacularClient class used by the query engine as
its upstream recipe source. Failures surface as UpstreamFetchError; retrying
is left to the caller.
"""

import asyncio
from typing import Any, Mapping, Optional

import aiohttp

from smartplates.engine.errors import UpstreamFetchError
from smartplates.models.models import QuotaInfo, UpstreamBatch, UpstreamQuery
from smartplates.utils.config import Config, config
from smartplates.utils.logger import logger


QUOTA_HEADERS = {
    "request_cost": "X-API-Quota-Request",
    "used": "X-API-Quota-Used",
    "remaining": "X-API-Quota-Left",
}


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class SpoonacularClient:
    """Query Spoonacular's complexSearch endpoint.

    Requests are spaced at least `min_request_interval` seconds apart to stay
    under the upstream rate limit. Quota headers from the latest response are
    kept in `last_quota`.
    """

    SEARCH_PATH = "/recipes/complexSearch"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.spoonacular.com",
        timeout: float = 10.0,
        min_request_interval: float = 0.5,
        quota_warning_threshold: int = 10,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize SpoonacularClient with configuration.

        Args:
            api_key: Spoonacular API key for authentication.
            base_url: API root URL (default: https://api.spoonacular.com).
            timeout: Total timeout per request in seconds (default: 10).
            min_request_interval: Minimum seconds between requests (default: 0.5).
            quota_warning_threshold: Warn when fewer quota points remain (default: 10).
            session: Optional aiohttp session to use. The client closes only sessions it created.

        Raises:
            ValueError: If api_key is None or empty string.
        """
        if not api_key:
            raise ValueError("SPOONACULAR_API_KEY is required")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.min_request_interval = min_request_interval
        self.quota_warning_threshold = quota_warning_threshold
        self.last_quota: Optional[QuotaInfo] = None

        self._session = session
        self._owns_session = session is None
        self._throttle_lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None

    @classmethod
    def from_config(cls, settings: Config = config) -> "SpoonacularClient":
        return cls(
            api_key=settings.SPOONACULAR_API_KEY,
            base_url=settings.SPOONACULAR_BASE_URL,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
            min_request_interval=settings.MIN_REQUEST_INTERVAL_SECONDS,
            quota_warning_threshold=settings.QUOTA_WARNING_THRESHOLD,
        )

    async def __aenter__(self) -> "SpoonacularClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    def build_params(self, query: UpstreamQuery) -> dict[str, str]:
        """Translate an UpstreamQuery into complexSearch query parameters.

        Empty facets are omitted. The 1-indexed page becomes an item offset.
        """
        params: dict[str, str] = {
            "apiKey": self.api_key,
            "number": str(query.number),
            "offset": str((query.page - 1) * query.number),
            "addRecipeInformation": "true",
            "fillIngredients": "true",
        }
        if query.query:
            params["query"] = query.query
        if query.type:
            params["type"] = query.type
        if query.diet:
            params["diet"] = query.diet
        if query.intolerances:
            params["intolerances"] = query.intolerances
        if query.max_ready_time is not None:
            params["maxReadyTime"] = str(query.max_ready_time)
        return params

    async def _throttle(self) -> None:
        if self.min_request_interval <= 0:
            return
        async with self._throttle_lock:
            loop = asyncio.get_running_loop()
            if self._last_request_at is not None:
                wait = self._last_request_at + self.min_request_interval - loop.time()
                if wait > 0:
                    logger.debug(f"Throttling upstream request for {wait:.2f}s")
                    await asyncio.sleep(wait)
            self._last_request_at = loop.time()

    def _record_quota(self, headers: Mapping[str, str]) -> None:
        quota = QuotaInfo(**{field: _parse_float(headers.get(name)) for field, name in QUOTA_HEADERS.items()})
        if quota.used is None and quota.remaining is None:
            return

        self.last_quota = quota
        logger.debug(f"Spoonacular quota: used={quota.used}, remaining={quota.remaining}")
        if quota.remaining is not None and quota.remaining < self.quota_warning_threshold:
            logger.warning(f"Spoonacular quota running low: {quota.remaining} points left")

    async def search(self, query: UpstreamQuery) -> UpstreamBatch:
        """Run one complexSearch request.

        Args:
            query: Upstream parameters (facets, number, page).

        Returns:
            UpstreamBatch with raw recipe records and the upstream total.

        Raises:
            UpstreamFetchError: On network failure, timeout, non-success status
                or an unreadable body.
        """
        url = f"{self.base_url}{self.SEARCH_PATH}"
        params = self.build_params(query)
        await self._throttle()

        logger.debug(
            f"Calling Spoonacular complexSearch (query={query.query!r}, type={query.type!r}, "
            f"page={query.page}, number={query.number})"
        )

        try:
            session = self._get_session()
            async with session.get(url, params=params) as response:
                self._record_quota(response.headers)
                if not 200 <= response.status < 300:
                    body = await response.text(errors="replace")
                    raise UpstreamFetchError(
                        f"Spoonacular API error: status {response.status} {body[:200]}",
                        status=response.status,
                    )
                data: Any = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Spoonacular request failed: {e!r}")
            raise UpstreamFetchError(f"Spoonacular request failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamFetchError("Spoonacular returned a body that is not JSON") from e

        if not isinstance(data, dict):
            raise UpstreamFetchError(f"Unexpected Spoonacular payload: {type(data).__name__}")

        results = data.get("results") or []
        if not isinstance(results, list):
            raise UpstreamFetchError("Unexpected Spoonacular payload: results is not a list")

        total = data.get("totalResults")
        if not isinstance(total, int) or total < 0:
            total = len(results)

        return UpstreamBatch(results=results, total_results=total)

    async def check_quota(self) -> Optional[QuotaInfo]:
        """Make a minimal request and return the quota it reports."""
        await self.search(UpstreamQuery(query="test", number=1))
        return self.last_quota
