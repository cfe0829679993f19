"""Elevation service - relay to the Google Maps Elevation API.

The relay accepts {"points": [{"lat", "lng"}], "apiKey"} and answers with
the provider's {"status": "OK", "results": [...]} payload or an error body
{"message", "error"}. Two transports talk to it:

- RelayElevationClient: HTTP POST to a deployed relay endpoint
- LocalRelayElevationClient: calls GoogleElevationRelay in-process

Both expose fetch_batch(points) -> list[float] and raise
ElevationServiceError on any failure, so the analyzer never sees a
partial batch.
"""

import logging
from typing import Any, Protocol

import requests

from fieldmapper.constants import ElevationConfig
from fieldmapper.model.vertex import Vertex

logger = logging.getLogger(__name__)


class ElevationServiceError(Exception):
    """Elevation lookup failed (transport, relay validation or upstream status).

    Attributes:
        status_code: HTTP status returned by the relay, None for transport errors
        detail: Upstream error text when available
    """

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    def __str__(self) -> str:
        text = super().__str__()
        if self.detail:
            text = f"{text}: {self.detail}"
        if self.status_code is not None:
            text = f"{text} (HTTP {self.status_code})"
        return text


class ElevationClient(Protocol):
    """Anything that resolves a batch of points to elevations in order."""

    def fetch_batch(self, points: list[Vertex]) -> list[float]: ...


class GoogleElevationRelay:
    """Server side of the elevation relay.

    Validates the request, forwards it to the Google Maps Elevation API and
    translates the outcome into (status_code, payload).

    Example:
        relay = GoogleElevationRelay()
        status, payload = relay.handle({"points": [{"lat": 0, "lng": 0}], "apiKey": "..."})
    """

    def __init__(
        self,
        upstream_url: str = ElevationConfig.GOOGLE_ELEVATION_URL,
        timeout_s: float = ElevationConfig.REQUEST_TIMEOUT_S,
    ) -> None:
        self.upstream_url = upstream_url
        self.timeout_s = timeout_s

    @staticmethod
    def format_locations(points: list[dict]) -> str:
        """Google "locations" parameter: "lat,lng|lat,lng|..."."""
        return "|".join(f"{p['lat']},{p['lng']}" for p in points)

    def handle(self, body: dict | None, method: str = "POST") -> tuple[int, dict[str, Any]]:
        """Process one relay request.

        Args:
            body: Parsed JSON request body
            method: HTTP method of the request

        Returns:
            (status_code, payload) where payload is JSON-serializable.
        """
        if method != "POST":
            return 405, {"message": "Method not allowed"}

        body = body or {}
        points = body.get("points")
        if not points or not isinstance(points, list):
            return 400, {"message": "Invalid points data"}

        api_key = body.get("apiKey")
        if not api_key:
            return 400, {"message": "API key is required"}

        try:
            response = requests.get(
                self.upstream_url,
                params={"locations": self.format_locations(points), "key": api_key},
                timeout=self.timeout_s,
            )
            data = response.json()
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error(f"[ELEVATION] Relay transport failure: {e}")
            return 500, {"message": "Failed to fetch elevation data", "error": str(e)}

        if data.get("status") == "OK" and data.get("results"):
            return 200, data

        logger.error(f"[ELEVATION] Google API error: status={data.get('status')}")
        return 500, {
            "message": "Failed to get elevation data",
            "error": data.get("error_message") or "Unknown error",
        }


def parse_relay_response(status_code: int, payload: dict | None, expected: int) -> list[float]:
    """Turn a relay answer into elevations, or raise.

    Raises:
        ElevationServiceError: Non-200 status, non-OK payload, or a result
            count different from the number of points sent.
    """
    payload = payload or {}
    if status_code != 200:
        raise ElevationServiceError(
            payload.get("message", "Elevation relay error"),
            status_code=status_code,
            detail=payload.get("error"),
        )

    results = payload.get("results")
    if payload.get("status") != "OK" or not isinstance(results, list):
        raise ElevationServiceError("Invalid elevation data format", status_code=status_code)

    if len(results) != expected:
        raise ElevationServiceError(
            f"Expected {expected} elevations, got {len(results)}",
            status_code=status_code,
        )

    try:
        return [float(r["elevation"]) for r in results]
    except (KeyError, TypeError, ValueError) as e:
        raise ElevationServiceError("Invalid elevation data format", status_code=status_code, detail=str(e)) from e


class RelayElevationClient:
    """HTTP client of a deployed elevation relay."""

    def __init__(
        self,
        relay_url: str,
        api_key: str,
        timeout_s: float = ElevationConfig.REQUEST_TIMEOUT_S,
        session: requests.Session | None = None,
    ) -> None:
        self.relay_url = relay_url
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def fetch_batch(self, points: list[Vertex]) -> list[float]:
        body = {"points": [p.to_dict() for p in points], "apiKey": self.api_key}
        try:
            response = self.session.post(self.relay_url, json=body, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise ElevationServiceError("Failed to fetch elevation data", detail=str(e)) from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        return parse_relay_response(status_code=response.status_code, payload=payload, expected=len(points))


class LocalRelayElevationClient:
    """Runs the relay in-process (no separate server needed)."""

    def __init__(self, api_key: str, relay: GoogleElevationRelay | None = None) -> None:
        self.api_key = api_key
        self.relay = relay or GoogleElevationRelay()

    def fetch_batch(self, points: list[Vertex]) -> list[float]:
        body = {"points": [p.to_dict() for p in points], "apiKey": self.api_key}
        status_code, payload = self.relay.handle(body)
        return parse_relay_response(status_code=status_code, payload=payload, expected=len(points))


def create_elevation_client(
    api_key: str = ElevationConfig.API_KEY,
    relay_url: str = ElevationConfig.RELAY_URL,
) -> ElevationClient:
    """Pick the remote relay when a URL is configured, else the in-process one."""
    if relay_url:
        logger.info(f"[ELEVATION] Using relay at {relay_url}")
        return RelayElevationClient(relay_url=relay_url, api_key=api_key)
    logger.info("[ELEVATION] Using in-process relay")
    return LocalRelayElevationClient(api_key=api_key)
