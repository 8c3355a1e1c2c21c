"""
Preview images for poster PDFs.

Two modes:
- placeholder: a white canvas sized from the first PDF page with a static
  "Preview PDF" label. The PDF content itself is not rendered.
- recompression: an already rendered preview sent by the browser is resized
  and re-encoded as a small JPEG.
"""

import logging
from io import BytesIO
from typing import Tuple

import fitz  # PyMuPDF
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from core.exceptions import PreviewGenerationError

logger = logging.getLogger(__name__)

PLACEHOLDER_LABEL = "Preview PDF"
PLACEHOLDER_BACKGROUND = "#ffffff"
PLACEHOLDER_TEXT_COLOR = "#333333"
PLACEHOLDER_FONT_SIZE = 20


def _fit_width(w: float, h: float, max_width: int) -> Tuple[int, int]:
    """Scale (w, h) so the width does not exceed max_width, never upscaling"""
    scale = min(1.0, max_width / w)
    return max(1, round(w * scale)), max(1, round(h * scale))


class PreviewGenerator:
    """Produces preview image bytes for stored artifacts"""

    def __init__(
        self,
        placeholder_width: int = 300,
        max_width: int = 400,
        jpeg_quality: int = 70,
    ):
        self.placeholder_width = placeholder_width
        self.max_width = max_width
        self.jpeg_quality = jpeg_quality

    @staticmethod
    def first_page_size(pdf_bytes: bytes) -> Tuple[float, float]:
        """Return (width, height) in points of the first PDF page"""
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
                if doc.page_count < 1:
                    raise PreviewGenerationError("PDF has no pages", source="pdf")
                rect = doc[0].rect
                return float(rect.width), float(rect.height)
        except PreviewGenerationError:
            raise
        except Exception as e:
            raise PreviewGenerationError(f"Unreadable PDF: {e}", source="pdf")

    def placeholder_from_pdf(self, pdf_bytes: bytes) -> bytes:
        """Build the placeholder PNG for a PDF"""
        width, height = self.first_page_size(pdf_bytes)
        if width <= 0 or height <= 0:
            raise PreviewGenerationError("PDF page has no area", source="pdf")

        size = _fit_width(width, height, self.placeholder_width)
        canvas = Image.new("RGB", size, PLACEHOLDER_BACKGROUND)
        draw = ImageDraw.Draw(canvas)
        font = ImageFont.load_default(size=PLACEHOLDER_FONT_SIZE)
        draw.text((20, 20), PLACEHOLDER_LABEL, fill=PLACEHOLDER_TEXT_COLOR, font=font)

        buf = BytesIO()
        canvas.save(buf, format="PNG")
        logger.debug(f"Generated placeholder preview {size[0]}x{size[1]}")
        return buf.getvalue()

    def recompress(self, image_bytes: bytes) -> bytes:
        """Resize a rendered preview to max_width and re-encode it as JPEG"""
        try:
            im = Image.open(BytesIO(image_bytes))
            im.load()
        except Image.DecompressionBombError as e:
            raise PreviewGenerationError(f"Preview image too large: {e}", source="image")
        except (UnidentifiedImageError, OSError) as e:
            raise PreviewGenerationError(f"Unreadable preview image: {e}", source="image")

        if im.mode in ("RGBA", "LA") or (im.mode == "P" and "transparency" in im.info):
            rgba = im.convert("RGBA")
            flattened = Image.new("RGB", rgba.size, PLACEHOLDER_BACKGROUND)
            flattened.paste(rgba, mask=rgba.getchannel("A"))
            im = flattened
        elif im.mode != "RGB":
            im = im.convert("RGB")

        w, h = im.size
        if w > self.max_width:
            im = im.resize(_fit_width(w, h, self.max_width), Image.LANCZOS)

        buf = BytesIO()
        im.save(buf, format="JPEG", quality=self.jpeg_quality, optimize=True)
        return buf.getvalue()
