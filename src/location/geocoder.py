"""
Urban Feedback - Reverse Geocoding
Resolves report coordinates to a street address via Nominatim.
"""

import asyncio
import logging
from typing import Optional

import httpx

from src.core.config import settings
from src.core.geo_utils import format_coordinates, shorten_address

logger = logging.getLogger(__name__)


class GeocodeLookupError(Exception):
    """Raised when the geocoding service gives no usable address."""


class ReverseGeocoder:
    """
    Reverse geocoding stage backed by the Nominatim /reverse endpoint.

    resolve() never fails: when the lookup errors out or times out, the
    address falls back to the rounded coordinates.

    Usage:
        async with ReverseGeocoder() as geocoder:
            address = await geocoder.resolve(10.77296, 106.70030)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        zoom: Optional[int] = None,
        segments: Optional[int] = None,
        precision: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the geocoder.

        Args:
            base_url: Nominatim base URL
            user_agent: Identifying client header, required by Nominatim
            timeout_seconds: Upper bound for one lookup
            zoom: Address detail level
            segments: Address segments kept from display_name
            precision: Decimals in the coordinate fallback
            client: Shared HTTP client; one is created when omitted
        """
        self.base_url = (base_url or settings.geocoding_base_url).rstrip("/")
        self.user_agent = user_agent or settings.geocoding_user_agent
        self.timeout_seconds = (
            settings.geocoding_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.zoom = settings.geocoding_zoom if zoom is None else zoom
        self.segments = settings.address_segments if segments is None else segments
        self.precision = settings.coordinate_precision if precision is None else precision

        self._client = client
        self._owns_client = client is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this geocoder created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds)
            self._owns_client = True
        return self._client

    async def lookup(self, lat: float, lng: float) -> str:
        """
        Fetch the full display name for a coordinate pair.

        Args:
            lat: Latitude
            lng: Longitude

        Returns:
            Nominatim display_name

        Raises:
            httpx.HTTPError: Transport error or non-2xx response
            GeocodeLookupError: Malformed response or no display_name
        """
        params = {
            "format": "json",
            "lat": lat,
            "lon": lng,
            "zoom": self.zoom,
            "addressdetails": 1,
        }

        response = await self._get_client().get(
            f"{self.base_url}/reverse",
            params=params,
            headers={"User-Agent": self.user_agent}
        )
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise GeocodeLookupError(f"Response is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise GeocodeLookupError("Unexpected response shape")

        display_name = data.get("display_name")
        if not isinstance(display_name, str) or not display_name.strip():
            raise GeocodeLookupError(data.get("error") or "No display_name in response")

        return display_name

    async def resolve(self, lat: float, lng: float) -> str:
        """
        Resolve coordinates to a short address.

        Args:
            lat: Latitude
            lng: Longitude

        Returns:
            First address segments, or "lat, lng" rounded to the configured
            precision when the lookup fails
        """
        fallback = format_coordinates(lat, lng, self.precision)
        try:
            display_name = await asyncio.wait_for(
                self.lookup(lat, lng),
                timeout=self.timeout_seconds
            )
        except Exception as e:
            logger.warning(f"Reverse geocoding failed for ({lat}, {lng}): {e!r}; using {fallback}")
            return fallback

        address = shorten_address(display_name, self.segments)
        if not address:
            logger.warning(f"Reverse geocoding gave a blank address for ({lat}, {lng}); using {fallback}")
            return fallback

        logger.info(f"Resolved ({lat}, {lng}) to {address}")
        return address
