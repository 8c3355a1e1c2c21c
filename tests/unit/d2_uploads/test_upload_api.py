"""
Tests for the multipart upload endpoints
"""

import io

import pytest
from PIL import Image

from tests.doubles import CART_ITEM_ID, INVALID_CART_ITEM_IDS, make_image_bytes, make_pdf_bytes

pytestmark = pytest.mark.unit


def stored_files(store):
    return sorted(p.relative_to(store.root).as_posix() for p in store.root.rglob("*") if p.is_file())


class TestUploadPosterPdf:
    def test_upload_success(self, client, store, pdf_bytes):
        response = client.post(
            "/api/upload-poster-pdf",
            files={"pdf": ("poster.pdf", pdf_bytes, "application/pdf")},
            data={"cartItemId": CART_ITEM_ID},
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "PDF uploaded successfully.",
            "filename": f"poster-{CART_ITEM_ID}.pdf",
        }
        assert stored_files(store) == [
            f"poster-{CART_ITEM_ID}.pdf",
            f"previews/poster-{CART_ITEM_ID}.pdf.png",
        ]
        assert store.artifact_path_for(CART_ITEM_ID).read_bytes() == pdf_bytes

        preview = Image.open(store.preview_path_for(CART_ITEM_ID))
        assert preview.width <= 300

    def test_preview_served_statically(self, client, pdf_bytes):
        client.post(
            "/api/upload-poster-pdf",
            files={"pdf": ("poster.pdf", pdf_bytes, "application/pdf")},
            data={"cartItemId": CART_ITEM_ID},
        )

        response = client.get(f"/previews/poster-{CART_ITEM_ID}.pdf.png")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"

    def test_small_pdf_rejected_without_writing(self, client, store):
        small_pdf = make_pdf_bytes(padded=False)
        assert len(small_pdf) < 10 * 1024

        response = client.post(
            "/api/upload-poster-pdf",
            files={"pdf": ("poster.pdf", small_pdf, "application/pdf")},
            data={"cartItemId": CART_ITEM_ID},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert stored_files(store) == []

    @pytest.mark.parametrize("cart_item_id", [value for value in INVALID_CART_ITEM_IDS if value])
    def test_invalid_cart_item_id(self, client, store, pdf_bytes, cart_item_id):
        response = client.post(
            "/api/upload-poster-pdf",
            files={"pdf": ("poster.pdf", pdf_bytes, "application/pdf")},
            data={"cartItemId": cart_item_id},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid cartItemId format."
        assert stored_files(store) == []

    def test_pdf_sent_as_text_field(self, client, store):
        response = client.post(
            "/api/upload-poster-pdf",
            data={"pdf": "not a file", "cartItemId": CART_ITEM_ID},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert any(error["field"].endswith("pdf") for error in body["details"]["errors"])
        assert stored_files(store) == []

    def test_missing_cart_item_id(self, client, pdf_bytes):
        response = client.post(
            "/api/upload-poster-pdf",
            files={"pdf": ("poster.pdf", pdf_bytes, "application/pdf")},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "cartItemId is missing."

    def test_missing_file(self, client):
        response = client.post("/api/upload-poster-pdf", data={"cartItemId": CART_ITEM_ID})

        assert response.status_code == 400
        assert response.json()["message"] == "No file uploaded."

    def test_wrong_mime_type(self, client, store):
        response = client.post(
            "/api/upload-poster-pdf",
            files={"pdf": ("poster.png", make_image_bytes(), "image/png")},
            data={"cartItemId": CART_ITEM_ID},
        )

        assert response.status_code == 400
        assert "Invalid file type" in response.json()["message"]
        assert stored_files(store) == []

    def test_oversized_upload(self, client, app, store, pdf_bytes):
        app.state.upload_intake.max_upload_bytes = len(pdf_bytes) - 1

        response = client.post(
            "/api/upload-poster-pdf",
            files={"pdf": ("poster.pdf", pdf_bytes, "application/pdf")},
            data={"cartItemId": CART_ITEM_ID},
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("File too large")
        assert stored_files(store) == []

    def test_unreadable_pdf_writes_nothing(self, client, store):
        response = client.post(
            "/api/upload-poster-pdf",
            files={"pdf": ("poster.pdf", b"%PDF-1.7\n" + b"x" * 12000, "application/pdf")},
            data={"cartItemId": CART_ITEM_ID},
        )

        assert response.status_code == 500
        assert response.json()["error"] == "PREVIEW_GENERATION_ERROR"
        assert stored_files(store) == []


class TestUploadPdf:
    def test_upload_by_filename(self, client, store, pdf_bytes):
        response = client.post("/api/upload-pdf", files={"file": ("race-day.pdf", pdf_bytes, "application/pdf")})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "pdfUrl": "/pdfs/race-day.pdf",
            "previewUrl": "/previews/race-day.pdf.png",
        }
        assert stored_files(store) == ["previews/race-day.pdf.png", "race-day.pdf"]

    def test_upload_with_cart_item_id(self, client, store, pdf_bytes):
        response = client.post(
            "/api/upload-pdf",
            files={"file": ("race-day.pdf", pdf_bytes, "application/pdf")},
            data={"cartItemId": CART_ITEM_ID},
        )

        assert response.status_code == 200
        assert response.json()["pdfUrl"] == f"/pdfs/poster-{CART_ITEM_ID}.pdf"
        assert store.has_artifact(CART_ITEM_ID)
        assert store.has_preview(CART_ITEM_ID)

    def test_small_files_allowed(self, client):
        response = client.post(
            "/api/upload-pdf",
            files={"file": ("tiny.pdf", make_pdf_bytes(padded=False), "application/pdf")},
        )

        assert response.status_code == 200

    @pytest.mark.parametrize("filename", ["../../evil.pdf", "..\\evil.pdf"])
    def test_path_components_are_dropped(self, client, store, pdf_bytes, filename):
        response = client.post("/api/upload-pdf", files={"file": (filename, pdf_bytes, "application/pdf")})

        assert response.status_code == 200
        assert response.json()["pdfUrl"] == "/pdfs/evil.pdf"
        assert (store.root / "evil.pdf").is_file()
        assert not (store.root.parent / "evil.pdf").exists()

    def test_unsafe_filename_rejected(self, client, store, pdf_bytes):
        response = client.post("/api/upload-pdf", files={"file": ("my poster.pdf", pdf_bytes, "application/pdf")})

        assert response.status_code == 400
        assert stored_files(store) == []

    def test_invalid_cart_item_id(self, client, pdf_bytes):
        response = client.post(
            "/api/upload-pdf",
            files={"file": ("poster.pdf", pdf_bytes, "application/pdf")},
            data={"cartItemId": "cart-1-XYZ"},
        )

        assert response.status_code == 400

    def test_missing_file(self, client):
        assert client.post("/api/upload-pdf").status_code == 400


class TestUploadPdfWithPreview:
    def test_upload_success(self, client, store, pdf_bytes):
        response = client.post(
            "/api/upload-pdf-with-preview",
            files={
                "file": ("race-day.pdf", pdf_bytes, "application/pdf"),
                "previewImage": ("preview.png", make_image_bytes(size=(1200, 1600)), "image/png"),
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "pdfUrl": "/pdfs/race-day.pdf",
            "previewUrl": "/previews/race-day.pdf.png",
        }

        preview = Image.open(io.BytesIO((store.previews_dir / "race-day.pdf.png").read_bytes()))
        assert preview.format == "JPEG"
        assert preview.width == 400

    def test_jpeg_preview_accepted(self, client, store, pdf_bytes):
        response = client.post(
            "/api/upload-pdf-with-preview",
            files={
                "file": ("poster.pdf", pdf_bytes, "application/pdf"),
                "previewImage": ("preview.jpg", make_image_bytes(fmt="JPEG"), "image/jpeg"),
            },
            data={"cartItemId": CART_ITEM_ID},
        )

        assert response.status_code == 200
        assert store.has_preview(CART_ITEM_ID)

    def test_missing_preview(self, client, store, pdf_bytes):
        response = client.post(
            "/api/upload-pdf-with-preview",
            files={"file": ("poster.pdf", pdf_bytes, "application/pdf")},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "PDF file or preview image missing."
        assert stored_files(store) == []

    def test_preview_must_be_image(self, client, store, pdf_bytes):
        response = client.post(
            "/api/upload-pdf-with-preview",
            files={
                "file": ("poster.pdf", pdf_bytes, "application/pdf"),
                "previewImage": ("preview.pdf", pdf_bytes, "application/pdf"),
            },
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "previewImage"
        assert stored_files(store) == []

    def test_pdf_field_must_be_pdf(self, client, store):
        response = client.post(
            "/api/upload-pdf-with-preview",
            files={
                "file": ("poster.png", make_image_bytes(), "image/png"),
                "previewImage": ("preview.png", make_image_bytes(), "image/png"),
            },
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "file"
