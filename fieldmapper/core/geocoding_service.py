"""Place search via Nominatim (OpenStreetMap).

Searches are generation-numbered: every submit() bumps the generation and
only results delivered for the latest generation are kept. An answer to an
older query can never overwrite the results of a newer one.
"""

import logging
from dataclasses import dataclass

import requests

from fieldmapper.constants import GeocodingConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    """One geocoder hit."""

    display_name: str
    lat: float
    lon: float

    @classmethod
    def from_nominatim(cls, item: dict) -> "SearchResult":
        return cls(display_name=item["display_name"], lat=float(item["lat"]), lon=float(item["lon"]))


class GeocodingService:
    """Place search with stale-response protection.

    Example:
        service = GeocodingService()
        results = service.search("Jaipur")
    """

    def __init__(
        self,
        search_url: str = GeocodingConfig.SEARCH_URL,
        region_hint: str = GeocodingConfig.REGION_HINT,
        session: requests.Session | None = None,
    ) -> None:
        self.search_url = search_url
        self.region_hint = region_hint
        self.session = session or requests.Session()
        self.generation = 0
        self.results: list[SearchResult] = []
        self.query = ""

    def submit(self, query: str) -> int:
        """Register a new query and return its generation number."""
        self.generation += 1
        self.query = query
        return self.generation

    def deliver(self, generation: int, results: list[SearchResult]) -> bool:
        """Store results if they belong to the latest query.

        Returns:
            True if stored, False if the generation is stale.
        """
        if generation != self.generation:
            logger.debug(f"Dropping stale search results (generation {generation} < {self.generation})")
            return False
        self.results = results
        return True

    def fetch(self, query: str) -> list[SearchResult]:
        """Query Nominatim. Failures are logged and yield []."""
        q = f"{query} {self.region_hint}".strip() if self.region_hint else query
        params = {
            "format": "json",
            "q": q,
            "limit": GeocodingConfig.RESULT_LIMIT,
            "dedupe": 1,
        }
        try:
            response = self.session.get(
                self.search_url,
                params=params,
                headers={"User-Agent": GeocodingConfig.USER_AGENT},
                timeout=GeocodingConfig.REQUEST_TIMEOUT_S,
            )
            response.raise_for_status()
            return [SearchResult.from_nominatim(item) for item in response.json()]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error(f"Search failed for '{query}': {e}")
            return []

    def search(self, query: str) -> list[SearchResult]:
        """Submit, fetch and deliver in one step.

        Queries shorter than GeocodingConfig.MIN_QUERY_LENGTH clear the
        results without a request.
        """
        generation = self.submit(query)
        if len(query.strip()) < GeocodingConfig.MIN_QUERY_LENGTH:
            self.deliver(generation, [])
            return []

        results = self.fetch(query.strip())
        self.deliver(generation, results)
        return self.results if generation == self.generation else []

    def clear(self) -> None:
        """Forget the current results (after the user picks one)."""
        self.submit("")
        self.results = []
