"""Tests for the provider roster and the request-shape strategy table."""

from urllib.parse import parse_qs, urlparse

import pytest

from app.services.providers import (
    MSHOTS_FULL_PAGE_HEIGHT,
    STRATEGIES,
    CaptureTarget,
    PROVIDERS,
    select_providers,
)

_URL = "https://example.com/about"


class TestStrategyTable:
    @pytest.mark.parametrize(
        "viewport, full_page, expected",
        [
            ("mobile", False, ["microlink", "thum.io"]),
            ("mobile", True, ["microlink", "thum.io"]),
            ("desktop", True, ["microlink", "thum.io"]),
            ("desktop", False, ["mshots", "microlink", "thum.io"]),
        ],
    )
    def test_order_per_request_shape(self, viewport, full_page, expected):
        assert [p.name for p in select_providers(viewport, full_page)] == expected

    def test_every_shape_is_covered(self):
        assert set(STRATEGIES) == {
            (viewport, full_page)
            for viewport in ("desktop", "mobile")
            for full_page in (False, True)
        }

    @pytest.mark.parametrize("full_page", [False, True])
    def test_mobile_starts_with_microlink_and_never_uses_mshots(self, full_page):
        names = [p.name for p in select_providers("mobile", full_page)]
        assert names[0] == "microlink"
        assert "mshots" not in names

    def test_no_provider_listed_twice(self):
        for names in STRATEGIES.values():
            assert len(names) == len(set(names))

    def test_proxy_routing(self):
        assert PROVIDERS["microlink"].use_proxy is False
        assert PROVIDERS["thum.io"].use_proxy is True
        assert PROVIDERS["mshots"].use_proxy is True


class TestMicrolinkUrl:
    def _params(self, target: CaptureTarget) -> dict:
        url = PROVIDERS["microlink"].build_url(target)
        assert url.startswith("https://api.microlink.io/?")
        return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}

    def test_mobile_emulation(self):
        params = self._params(CaptureTarget(_URL, 393, 852, "mobile", False))
        assert params["url"] == _URL
        assert params["viewport.width"] == "393"
        assert params["viewport.height"] == "852"
        assert params["viewport.isMobile"] == "true"
        assert params["viewport.deviceScaleFactor"] == "2"
        assert "screenshot.fullPage" not in params

    def test_desktop_full_page(self):
        params = self._params(CaptureTarget(_URL, 1440, 900, "desktop", True))
        assert params["viewport.isMobile"] == "false"
        assert params["viewport.deviceScaleFactor"] == "1"
        assert params["screenshot.fullPage"] == "true"
        assert params["embed"] == "screenshot.url"


class TestThumIoUrl:
    def test_viewport_crop(self):
        url = PROVIDERS["thum.io"].build_url(CaptureTarget(_URL, 1440, 900, "desktop", False))
        assert url == f"https://image.thum.io/get/width/1440/crop/900/noanimate/{_URL}"

    def test_full_page(self):
        url = PROVIDERS["thum.io"].build_url(CaptureTarget(_URL, 393, 852, "mobile", True))
        assert url == f"https://image.thum.io/get/width/393/fullpage/noanimate/{_URL}"


class TestMshotsUrl:
    def test_encodes_target_and_size(self):
        url = PROVIDERS["mshots"].build_url(CaptureTarget(_URL, 1440, 900, "desktop", False))
        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        assert parsed.path == "/mshots/v1/https%3A%2F%2Fexample.com%2Fabout"
        assert params["w"] == ["1440"]
        assert params["h"] == ["900"]
        assert params["v"][0]

    def test_full_page_uses_height_ceiling(self):
        url = PROVIDERS["mshots"].build_url(CaptureTarget(_URL, 1440, 900, "desktop", True))
        assert parse_qs(urlparse(url).query)["h"] == [str(MSHOTS_FULL_PAGE_HEIGHT)]

    def test_cache_buster_changes(self):
        target = CaptureTarget(_URL, 1440, 900, "desktop", False)
        assert PROVIDERS["mshots"].build_url(target) != PROVIDERS["mshots"].build_url(target)
