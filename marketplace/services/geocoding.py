"""Address geocoding through a Nominatim search endpoint"""

import httpx
from typing import Optional, Tuple
import structlog

from marketplace.config.settings import settings

logger = structlog.get_logger(__name__)


class Geocoder:
    """Resolve a street address to a (longitude, latitude) pair"""

    def __init__(self, base_url: str = None, user_agent: str = None, timeout: float = None,
                 client: httpx.Client = None):
        self.base_url = base_url or settings.GEOCODER_URL
        self.session = client or httpx.Client(
            timeout=timeout or settings.GEOCODER_TIMEOUT,
            headers={
                "User-Agent": user_agent or settings.GEOCODER_USER_AGENT,
                "Accept": "application/json"
            }
        )

    def geocode(self, address: str, city: str, country: str, postal_code: str) -> Optional[Tuple[float, float]]:
        """
        Look up coordinates for an address.

        Returns None when the service fails or has no match; callers store
        the location without coordinates rather than inventing a point.
        """
        params = {
            "street": address,
            "city": city,
            "country": country,
            "postalcode": postal_code,
            "format": "json",
            "limit": "1",
        }

        try:
            response = self.session.get(self.base_url, params=params)
            response.raise_for_status()
            results = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geocoding request failed", address=address, city=city, error=str(e))
            return None

        if not results or not isinstance(results, list):
            logger.warning("Geocoding returned no results", address=address, city=city)
            return None

        try:
            longitude = float(results[0]["lon"])
            latitude = float(results[0]["lat"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Geocoding result has no coordinates", address=address, city=city)
            return None

        logger.info("Address geocoded", address=address, longitude=longitude, latitude=latitude)
        return longitude, latitude

    def close(self):
        self.session.close()
