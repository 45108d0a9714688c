"""Tests for app.services.imaging."""

import base64
import io

import pytest
from PIL import Image

from app.services.imaging import decode_image_data, image_dimensions, render_placeholder


class TestImageDimensions:
    def test_reads_png_size(self):
        buffer = io.BytesIO()
        Image.new("RGB", (640, 2000), "white").save(buffer, format="PNG")
        assert image_dimensions(buffer.getvalue()) == (640, 2000)

    def test_garbage_returns_zero(self):
        assert image_dimensions(b"definitely not an image") == (0, 0)


class TestRenderPlaceholder:
    def test_is_jpeg_of_requested_size(self):
        content = render_placeholder(393, 852, "https://example.com/a-very-long-path" * 5)
        with Image.open(io.BytesIO(content)) as img:
            assert img.format == "JPEG"
            assert img.size == (393, 852)

    def test_tiny_canvas_does_not_fail(self):
        assert image_dimensions(render_placeholder(10, 10, "x")) == (10, 10)


class TestDecodeImageData:
    def test_plain_base64(self):
        assert decode_image_data(base64.b64encode(b"abc").decode()) == b"abc"

    def test_data_url_prefix(self):
        data = "data:image/png;base64," + base64.b64encode(b"abc").decode()
        assert decode_image_data(data) == b"abc"

    def test_invalid_raises_value_error(self):
        with pytest.raises(ValueError):
            decode_image_data("not base64!!")
