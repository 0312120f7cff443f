"""
Image Provider - Random photos from the Pexels curated feed.

Lookup degrades gracefully: a timeout, HTTP error or empty page falls
back to a fixed photo reference instead of failing the request. Only the
byte download can fail, with UpstreamError.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import random

import requests

from ..config import FALLBACK_IMAGE_URL, FALLBACK_PHOTOGRAPHER
from ..engine_core.errors import UpstreamError, UpstreamTimeout

logger = logging.getLogger(__name__)

PER_PAGE = 80
MAX_PAGE = 100
SIZE_PREFERENCE = ("large2x", "large", "medium", "small")


@dataclass(frozen=True)
class PhotoReference:
    """A photo chosen for a puzzle."""
    photo_id: str
    url: str
    photographer: str
    is_fallback: bool = False


class ImageProvider(ABC):
    """
    Abstract photo source.

    Implementations:
    - PexelsImageProvider: Pexels curated feed over HTTP
    - StaticImageProvider: fixed bytes, for tests and offline use
    """

    @abstractmethod
    def random_photo(self) -> PhotoReference:
        """Pick a photo. Never fails; falls back to a fixed reference."""

    @abstractmethod
    def download(self, url: str) -> bytes:
        """Fetch photo bytes. Raises UpstreamError on failure."""

    def fallback_photo(self) -> PhotoReference | None:
        """Fixed photo to retry with when a download fails, if any."""
        return None


class PexelsImageProvider(ImageProvider):
    """
    Pexels adapter over requests.

    Usage:
        provider = PexelsImageProvider(api_key=settings.pexels_api_key)
        photo = provider.random_photo()
        data = provider.download(photo.url)
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.pexels.com/v1",
        timeout: float = 10.0,
        fallback_url: str = FALLBACK_IMAGE_URL,
        rng: random.Random | None = None,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.fallback_url = fallback_url
        self._rng = rng or random.Random()
        self._http = session or requests

    def random_photo(self) -> PhotoReference:
        if not self.api_key:
            logger.warning("No Pexels API key configured; using fallback image")
            return self.fallback_photo()

        try:
            photos = self._fetch_curated_page()
        except UpstreamError as e:
            logger.warning("Pexels lookup failed (%s); using fallback image", e)
            return self.fallback_photo()

        if not photos:
            logger.warning("Pexels returned no photos; using fallback image")
            return self.fallback_photo()

        try:
            photo = self._rng.choice(photos)
            url = self._pick_url(photo["src"])
            photographer = photo.get("photographer") or "Unknown"
            photo_id = str(photo["id"])
        except (AttributeError, TypeError, KeyError) as e:
            logger.warning("Malformed Pexels photo (%r); using fallback image", e)
            return self.fallback_photo()

        if not url:
            logger.warning("Pexels photo %s has no usable source; using fallback", photo_id)
            return self.fallback_photo()

        logger.info("Selected Pexels photo %s", photo_id)
        return PhotoReference(
            photo_id=photo_id,
            url=url,
            photographer=photographer,
        )

    def download(self, url: str) -> bytes:
        try:
            response = self._http.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise UpstreamTimeout(f"Timed out downloading {url}") from e
        except requests.RequestException as e:
            raise UpstreamError(f"Failed to download {url}: {e}") from e

        logger.info("Downloaded %d bytes", len(response.content))
        return response.content

    def fallback_photo(self) -> PhotoReference:
        return PhotoReference(
            photo_id=f"fallback{self._rng.randrange(16 ** 6):06x}",
            url=self.fallback_url,
            photographer=FALLBACK_PHOTOGRAPHER,
            is_fallback=True,
        )

    def _fetch_curated_page(self) -> list[dict]:
        page = self._rng.randint(1, MAX_PAGE)
        try:
            response = self._http.get(
                f"{self.base_url}/curated",
                headers={"Authorization": self.api_key},
                params={"per_page": PER_PAGE, "page": page},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout as e:
            raise UpstreamTimeout(f"Pexels did not answer within {self.timeout}s") from e
        except (requests.RequestException, ValueError) as e:
            raise UpstreamError(str(e)) from e

        if not isinstance(payload, dict):
            raise UpstreamError(f"Unexpected Pexels payload: {type(payload).__name__}")
        photos = payload.get("photos") or []
        if not isinstance(photos, list):
            raise UpstreamError(f"Unexpected Pexels photo list: {type(photos).__name__}")
        return [photo for photo in photos if isinstance(photo, dict)]

    @staticmethod
    def _pick_url(sources: dict) -> str | None:
        if not isinstance(sources, dict):
            return None
        for size in SIZE_PREFERENCE:
            if isinstance(sources.get(size), str) and sources[size]:
                return sources[size]
        return None


class StaticImageProvider(ImageProvider):
    """Serves the same bytes for every request."""

    def __init__(self, data: bytes, photographer: str = FALLBACK_PHOTOGRAPHER):
        self.data = data
        self.photographer = photographer
        self._counter = 0

    def random_photo(self) -> PhotoReference:
        self._counter += 1
        return PhotoReference(
            photo_id=f"static{self._counter}",
            url="static://image",
            photographer=self.photographer,
        )

    def download(self, url: str) -> bytes:
        return self.data
