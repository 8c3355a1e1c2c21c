"""
Tests for placeholder and recompressed preview images
"""

import io

import pytest
from PIL import Image

from core.exceptions import PreviewGenerationError
from d1_artifacts.previews import PreviewGenerator
from tests.doubles import make_image_bytes, make_pdf_bytes

pytestmark = pytest.mark.unit


@pytest.fixture
def generator():
    return PreviewGenerator(placeholder_width=300, max_width=400, jpeg_quality=70)


class TestPlaceholderPreview:
    def test_first_page_size(self, generator):
        assert generator.first_page_size(make_pdf_bytes(padded=False, width=595, height=842)) == (595.0, 842.0)

    def test_placeholder_is_white_png_within_width(self, generator):
        data = generator.placeholder_from_pdf(make_pdf_bytes(width=595, height=842))

        image = Image.open(io.BytesIO(data))
        assert image.format == "PNG"
        assert image.width == 300
        assert image.height == round(842 * 300 / 595)
        assert image.convert("RGB").getpixel((image.width - 1, image.height - 1)) == (255, 255, 255)

    def test_placeholder_draws_label(self, generator):
        image = Image.open(io.BytesIO(generator.placeholder_from_pdf(make_pdf_bytes())))

        colors = {color for _, color in image.convert("RGB").getcolors(maxcolors=100000)}
        assert colors != {(255, 255, 255)}

    def test_small_page_is_not_upscaled(self, generator):
        image = Image.open(io.BytesIO(generator.placeholder_from_pdf(make_pdf_bytes(padded=False, width=200, height=100))))

        assert image.size == (200, 100)

    @pytest.mark.parametrize("data", [b"", b"not a pdf at all", b"%PDF-1.7\n garbage"])
    def test_unreadable_pdf(self, generator, data):
        with pytest.raises(PreviewGenerationError):
            generator.placeholder_from_pdf(data)


class TestRecompression:
    def test_large_image_is_resized_to_jpeg(self, generator):
        data = generator.recompress(make_image_bytes(size=(1200, 1600)))

        image = Image.open(io.BytesIO(data))
        assert image.format == "JPEG"
        assert image.size == (400, 533)

    def test_small_image_keeps_size(self, generator):
        image = Image.open(io.BytesIO(generator.recompress(make_image_bytes(size=(320, 200)))))

        assert image.size == (320, 200)
        assert image.format == "JPEG"

    def test_transparency_flattened_on_white(self, generator):
        source = make_image_bytes(size=(100, 100), mode="RGBA", color=(0, 0, 0, 0))

        image = Image.open(io.BytesIO(generator.recompress(source)))
        r, g, b = image.getpixel((50, 50))

        assert image.mode == "RGB"
        assert min(r, g, b) > 245

    def test_jpeg_input(self, generator):
        source = make_image_bytes(size=(800, 800), fmt="JPEG")

        assert Image.open(io.BytesIO(generator.recompress(source))).size == (400, 400)

    def test_unreadable_image(self, generator):
        with pytest.raises(PreviewGenerationError):
            generator.recompress(b"definitely not an image")

    def test_oversized_image(self, generator, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        source = make_image_bytes(size=(100, 100))

        with pytest.raises(PreviewGenerationError) as exc_info:
            generator.recompress(source)

        assert "too large" in exc_info.value.message
