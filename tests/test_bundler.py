"""Tests for app.services.bundler."""

import io
import zipfile
from datetime import datetime

from app.services.bundler import archive_name, bundle_images


def _names(archive: bytes) -> list:
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        return zf.namelist()


class TestBundleImages:
    def test_one_entry_per_image(self):
        archive = bundle_images([("a.jpg", b"1"), ("b.png", b"2")])
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            assert zf.namelist() == ["a.jpg", "b.png"]
            assert zf.read("b.png") == b"2"

    def test_duplicate_names_are_disambiguated(self):
        archive = bundle_images([("shot.jpg", b"1"), ("shot.jpg", b"2"), ("shot.jpg", b"3")])
        assert _names(archive) == ["shot.jpg", "shot (2).jpg", "shot (3).jpg"]

    def test_unsafe_names_are_sanitised(self):
        assert _names(bundle_images([("../etc/passwd", b"x")])) == [".._etc_passwd.jpg"]

    def test_empty_bundle_is_valid_zip(self):
        assert _names(bundle_images([])) == []


class TestArchiveName:
    def test_timestamped(self):
        assert archive_name(datetime(2024, 1, 2, 3, 4, 5)) == "Capture_Batch_2024-01-02-03-04-05.zip"
