"""Tests for app.services.normalizer."""

import pytest

from app.services.normalizer import canonicalize_url, normalize_url, strip_trailing_slash


class TestNormalizeUrl:
    def test_adds_https_scheme(self):
        assert normalize_url("example.com") == "https://example.com/"

    def test_trims_whitespace(self):
        assert normalize_url("  example.com/about \n") == "https://example.com/about"

    def test_keeps_http_scheme(self):
        assert normalize_url("http://example.com/") == "http://example.com/"

    def test_scheme_detection_is_case_insensitive(self):
        assert normalize_url("HTTPS://Example.COM/Path") == "https://example.com/Path"

    def test_preserves_query_and_port(self):
        assert (
            normalize_url("example.com:8080/search?q=1")
            == "https://example.com:8080/search?q=1"
        )

    def test_is_idempotent(self):
        once = normalize_url("www.example.com/blog")
        assert normalize_url(once) == once

    def test_unparseable_input_returned_trimmed(self):
        assert normalize_url("  not a url  ") == "not a url"

    def test_missing_host_returned_trimmed(self):
        assert normalize_url("http://") == "http://"

    def test_invalid_port_returned_trimmed(self):
        assert normalize_url("example.com:99999") == "example.com:99999"

    def test_drops_default_port(self):
        assert normalize_url("https://example.com:443/about") == "https://example.com/about"
        assert normalize_url("http://example.com:80/") == "http://example.com/"

    def test_keeps_port_of_other_scheme(self):
        assert normalize_url("http://example.com:443/") == "http://example.com:443/"


class TestCanonicalizeUrl:
    def test_matches_normalize_url_on_valid_input(self):
        assert canonicalize_url(" Example.COM:443/a?b=1 ") == "https://example.com/a?b=1"

    @pytest.mark.parametrize(
        "raw",
        ["https://exa mple.com/", "https://example.com:99999/", "http://", "  "],
    )
    def test_unparseable_input_raises(self, raw):
        with pytest.raises(ValueError):
            canonicalize_url(raw)


class TestStripTrailingSlash:
    def test_strips_one_slash(self):
        assert strip_trailing_slash("https://example.com/about/") == "https://example.com/about"

    def test_root_and_bare_host_collide(self):
        assert strip_trailing_slash("https://example.com/") == "https://example.com"

    def test_no_slash_unchanged(self):
        assert strip_trailing_slash("https://example.com/about") == "https://example.com/about"
