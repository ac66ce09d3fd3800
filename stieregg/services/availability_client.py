"""Client for the /availability endpoint, as used by listing and detail views."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum

import httpx

from stieregg.models.availability import AvailabilityResponse, BookedRange
from stieregg.utils.logger import get_logger

logger = get_logger(__name__)


class AvailabilityStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class AvailabilityResult:
    """Outcome of one availability request."""

    slug: str
    status: AvailabilityStatus
    booked_ranges: list[BookedRange] = field(default_factory=list)

    @property
    def is_known(self) -> bool:
        """False when availability could not be loaded; the UI must not block on it."""
        return self.status == AvailabilityStatus.OK


# =============================================================================
# Stale Response Guard
# =============================================================================


class RequestGuard:
    """
    Tracks the newest request per view key.

    A response is applied only if its token is still the latest one
    issued for its key; superseded or cancelled requests are dropped.
    """

    def __init__(self):
        self._latest: dict[str, int] = {}
        self._counter = 0

    def begin(self, key: str) -> int:
        self._counter += 1
        self._latest[key] = self._counter
        return self._counter

    def is_current(self, key: str, token: int) -> bool:
        return self._latest.get(key) == token

    def cancel(self, key: str) -> None:
        self._latest.pop(key, None)


# =============================================================================
# Availability Client
# =============================================================================


class AvailabilityClient:
    """
    Async client for GET /availability.

    Usage:
        async with AvailabilityClient("https://stieregg.ch/api") as client:
            results = await client.get_many(["eiger-view", "alpenrose"])
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "AvailabilityClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def get_booked_ranges(self, slug: str) -> AvailabilityResult:
        """
        Fetch booked ranges for one apartment.

        Never raises for HTTP or network problems; the result status says
        whether availability is known.
        """
        try:
            response = await self.client.get(f"{self.base_url}/availability", params={"slug": slug})
            if response.status_code == 404:
                return AvailabilityResult(slug=slug, status=AvailabilityStatus.NOT_FOUND)
            response.raise_for_status()
            payload = AvailabilityResponse.model_validate(response.json())
            return AvailabilityResult(
                slug=slug,
                status=AvailabilityStatus.OK,
                booked_ranges=payload.booked_ranges,
            )

        except httpx.HTTPStatusError as e:
            logger.warning("availability_request_failed", slug=slug, status=e.response.status_code)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("availability_request_error", slug=slug, error=str(e))
        return AvailabilityResult(slug=slug, status=AvailabilityStatus.ERROR)

    async def get_many(self, slugs: list[str]) -> dict[str, AvailabilityResult]:
        """Fetch several apartments in parallel; each request fails on its own."""
        results = await asyncio.gather(*(self.get_booked_ranges(slug) for slug in slugs))
        return {result.slug: result for result in results}


class AvailabilityView:
    """
    Availability state of one apartment view.

    Switching the slug before a request resolves, or unmounting the
    view, discards the older response.
    """

    KEY = "availability"

    def __init__(self, client: AvailabilityClient, guard: RequestGuard | None = None):
        self.client = client
        self.guard = guard or RequestGuard()
        self.slug: str | None = None
        self.result: AvailabilityResult | None = None
        self.loading = False

    async def load(self, slug: str) -> AvailabilityResult | None:
        """
        Load availability for a slug.

        Returns:
            The applied result, or None when the response was stale
        """
        token = self.guard.begin(self.KEY)
        self.slug = slug
        self.loading = True

        result = await self.client.get_booked_ranges(slug)

        if not self.guard.is_current(self.KEY, token):
            logger.debug("availability_stale_response_dropped", slug=slug)
            return None

        self.result = result
        self.loading = False
        return result

    def unmount(self) -> None:
        self.guard.cancel(self.KEY)
        self.loading = False
