"""
Tests for the Pexels image provider.

requests is never hit; a mock session stands in for the network.
"""

import random
from unittest.mock import MagicMock

import pytest
import requests

from ..config import FALLBACK_IMAGE_URL
from ..engine_core.errors import UpstreamError, UpstreamTimeout
from ..imaging import PexelsImageProvider, StaticImageProvider


def make_response(payload=None, content=b"", status_error=None):
    response = MagicMock()
    response.json.return_value = payload
    response.content = content
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    return response


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def provider(http):
    return PexelsImageProvider(api_key="key", rng=random.Random(0), session=http)


class TestRandomPhoto:
    """Tests for PexelsImageProvider.random_photo()."""

    def test_picks_photo_from_curated_page(self, provider, http):
        http.get.return_value = make_response({
            "photos": [{
                "id": 42,
                "photographer": "Sari",
                "src": {"large2x": "https://img/42-2x.jpg", "large": "https://img/42.jpg"},
            }],
        })

        photo = provider.random_photo()

        assert photo.photo_id == "42"
        assert photo.url == "https://img/42-2x.jpg"
        assert photo.photographer == "Sari"
        assert not photo.is_fallback

        args, kwargs = http.get.call_args
        assert args[0] == "https://api.pexels.com/v1/curated"
        assert kwargs["headers"] == {"Authorization": "key"}
        assert kwargs["params"]["per_page"] == 80
        assert 1 <= kwargs["params"]["page"] <= 100
        assert kwargs["timeout"] == 10.0

    @pytest.mark.parametrize("sources,expected", [
        ({"large": "L", "medium": "M"}, "L"),
        ({"medium": "M", "small": "S"}, "M"),
        ({"small": "S"}, "S"),
    ])
    def test_size_preference(self, provider, http, sources, expected):
        http.get.return_value = make_response({"photos": [{"id": 1, "src": sources}]})

        assert provider.random_photo().url == expected

    def test_missing_photographer(self, provider, http):
        http.get.return_value = make_response({"photos": [{"id": 1, "src": {"small": "S"}}]})

        assert provider.random_photo().photographer == "Unknown"

    def test_no_api_key_uses_fallback(self, http):
        provider = PexelsImageProvider(api_key="", session=http)

        photo = provider.random_photo()

        assert photo.is_fallback
        assert photo.url == FALLBACK_IMAGE_URL
        assert photo.photographer == "Default"
        http.get.assert_not_called()

    def test_timeout_uses_fallback(self, provider, http):
        http.get.side_effect = requests.Timeout("slow")

        photo = provider.random_photo()

        assert photo.is_fallback
        assert photo.url == FALLBACK_IMAGE_URL

    def test_http_error_uses_fallback(self, provider, http):
        http.get.return_value = make_response(status_error=requests.HTTPError("503"))

        assert provider.random_photo().is_fallback

    def test_bad_json_uses_fallback(self, provider, http):
        response = make_response()
        response.json.side_effect = ValueError("not json")
        http.get.return_value = response

        assert provider.random_photo().is_fallback

    def test_empty_page_uses_fallback(self, provider, http):
        http.get.return_value = make_response({"photos": []})

        assert provider.random_photo().is_fallback

    def test_photo_without_sources_uses_fallback(self, provider, http):
        http.get.return_value = make_response({"photos": [{"id": 5, "src": {}}]})

        assert provider.random_photo().is_fallback

    @pytest.mark.parametrize("payload", [
        ["not", "a", "dict"],
        "photos",
        None,
        {"photos": "none"},
        {"photos": {"id": 1}},
        {"photos": ["x", 3]},
        {"photos": [{"id": 1, "src": None}]},
        {"photos": [{"id": 1, "src": ["large"]}]},
        {"photos": [{"id": 1, "src": {"large": 42}}]},
        {"photos": [{"src": {"large": "L"}}]},
    ])
    def test_malformed_payload_uses_fallback(self, provider, http, payload):
        """Any unexpected response shape degrades to the fallback photo."""
        http.get.return_value = make_response(payload)

        photo = provider.random_photo()

        assert photo.is_fallback
        assert photo.url == FALLBACK_IMAGE_URL

    def test_fallback_ids_are_distinct(self, provider):
        assert provider.fallback_photo().photo_id.startswith("fallback")


class TestDownload:
    """Tests for PexelsImageProvider.download()."""

    def test_returns_bytes(self, provider, http):
        http.get.return_value = make_response(content=b"jpeg")

        assert provider.download("https://img/1.jpg") == b"jpeg"
        http.get.assert_called_once_with("https://img/1.jpg", timeout=10.0)

    def test_timeout(self, provider, http):
        http.get.side_effect = requests.Timeout("slow")

        with pytest.raises(UpstreamTimeout):
            provider.download("https://img/1.jpg")

    def test_http_error(self, provider, http):
        http.get.return_value = make_response(status_error=requests.HTTPError("404"))

        with pytest.raises(UpstreamError):
            provider.download("https://img/1.jpg")

    def test_connection_error(self, provider, http):
        http.get.side_effect = requests.ConnectionError("down")

        with pytest.raises(UpstreamError):
            provider.download("https://img/1.jpg")


class TestStaticProvider:

    def test_serves_fixed_bytes(self):
        provider = StaticImageProvider(b"img", photographer="Tester")

        first = provider.random_photo()
        second = provider.random_photo()

        assert first.photo_id != second.photo_id
        assert provider.download(first.url) == b"img"
        assert provider.fallback_photo() is None
