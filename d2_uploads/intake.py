"""
D2 Upload Intake

Validates multipart uploads and hands them to the artifact store and preview
generator. Each successful call stores exactly two files: the PDF and its
preview. The preview is built before anything is written, so a rejected or
unreadable upload leaves nothing on disk.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from core.exceptions import ValidationError
from d1_artifacts.identifiers import (
    artifact_filename,
    preview_filename,
    sanitize_upload_filename,
    validate_cart_item_id,
)
from d1_artifacts.previews import PreviewGenerator
from d1_artifacts.store import ArtifactStore

logger = logging.getLogger(__name__)

PDF_TYPES = ("application/pdf",)
PREVIEW_IMAGE_TYPES = ("image/png", "image/jpeg")
READ_CHUNK_SIZE = 1024 * 1024

PDFS_URL_PREFIX = "/pdfs"
PREVIEWS_URL_PREFIX = "/previews"


def _media_type(upload: UploadFile) -> str:
    return (upload.content_type or "").split(";", 1)[0].strip().lower()


async def read_upload(
    upload: Optional[UploadFile],
    field: str,
    allowed_types: Iterable[str],
    max_bytes: int,
) -> bytes:
    """
    Check presence and MIME type of an uploaded file, then read it in chunks.

    Reading stops as soon as the size limit is passed, so an oversized body
    is never held in memory in full.
    """
    if upload is None or not upload.filename:
        raise ValidationError("No file uploaded.", field=field)

    media_type = _media_type(upload)
    if media_type not in allowed_types:
        raise ValidationError(
            f"Invalid file type for {field}: {media_type or 'unknown'}. Allowed: {', '.join(allowed_types)}.",
            field=field,
        )

    chunks = []
    size = 0
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise ValidationError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)} MiB.", field=field)
        chunks.append(chunk)

    return b"".join(chunks)


class UploadIntake:
    """Upload validation and storage for poster PDFs"""

    def __init__(
        self,
        store: ArtifactStore,
        previews: PreviewGenerator,
        max_upload_bytes: int,
        min_pdf_bytes: int,
    ):
        self.store = store
        self.previews = previews
        self.max_upload_bytes = max_upload_bytes
        self.min_pdf_bytes = min_pdf_bytes

    def _store_pair(self, artifact_name: str, pdf_bytes: bytes, preview_bytes: bytes) -> None:
        self.store.save_artifact(artifact_name, pdf_bytes)
        self.store.save_preview(artifact_name, preview_bytes)

    def _resolve_name(self, upload: UploadFile, cart_item_id: Optional[str]) -> str:
        if cart_item_id:
            return artifact_filename(validate_cart_item_id(cart_item_id))
        return sanitize_upload_filename(upload.filename)

    @staticmethod
    def _urls(artifact_name: str) -> Dict[str, object]:
        return {
            "success": True,
            "pdfUrl": f"{PDFS_URL_PREFIX}/{artifact_name}",
            "previewUrl": f"{PREVIEWS_URL_PREFIX}/{preview_filename(artifact_name)}",
        }

    async def upload_poster_pdf(self, pdf: Optional[UploadFile], cart_item_id: Optional[str]) -> Dict[str, str]:
        """Store a poster PDF under its cart item id with a placeholder preview"""
        data = await read_upload(pdf, "pdf", PDF_TYPES, self.max_upload_bytes)
        if len(data) < self.min_pdf_bytes:
            logger.warning(f"Rejected {pdf.filename}: {len(data)} bytes is below the minimum PDF size")
            raise ValidationError(
                f"PDF file is too small ({len(data)} bytes), it is probably corrupt.",
                field="pdf",
                size=len(data),
            )

        artifact_name = artifact_filename(validate_cart_item_id(cart_item_id))

        preview = await run_in_threadpool(self.previews.placeholder_from_pdf, data)
        await run_in_threadpool(self._store_pair, artifact_name, data, preview)

        logger.info(f"Poster PDF stored for {cart_item_id} as {artifact_name}")
        return {"message": "PDF uploaded successfully.", "filename": artifact_name}

    async def upload_pdf_with_preview(
        self,
        file: Optional[UploadFile],
        preview_image: Optional[UploadFile],
        cart_item_id: Optional[str] = None,
    ) -> Dict[str, object]:
        """Store a PDF together with the preview image rendered by the browser"""
        if file is None or not file.filename or preview_image is None or not preview_image.filename:
            raise ValidationError(
                "PDF file or preview image missing.",
                field="file" if file is None or not file.filename else "previewImage",
            )

        pdf_bytes, image_bytes = await self._read_pair(file, preview_image)
        artifact_name = self._resolve_name(file, cart_item_id)

        preview = await run_in_threadpool(self.previews.recompress, image_bytes)
        await run_in_threadpool(self._store_pair, artifact_name, pdf_bytes, preview)

        logger.info(
            f"PDF {artifact_name} stored with recompressed preview ({len(image_bytes)} -> {len(preview)} bytes)"
        )
        return self._urls(artifact_name)

    async def _read_pair(self, file: UploadFile, preview_image: UploadFile) -> Tuple[bytes, bytes]:
        pdf_bytes = await read_upload(file, "file", PDF_TYPES, self.max_upload_bytes)
        image_bytes = await read_upload(preview_image, "previewImage", PREVIEW_IMAGE_TYPES, self.max_upload_bytes)
        return pdf_bytes, image_bytes

    async def upload_pdf(self, file: Optional[UploadFile], cart_item_id: Optional[str] = None) -> Dict[str, object]:
        """Store a PDF alone and generate its placeholder preview"""
        data = await read_upload(file, "file", PDF_TYPES, self.max_upload_bytes)
        artifact_name = self._resolve_name(file, cart_item_id)

        preview = await run_in_threadpool(self.previews.placeholder_from_pdf, data)
        await run_in_threadpool(self._store_pair, artifact_name, data, preview)

        logger.info(f"PDF {artifact_name} stored with placeholder preview")
        return self._urls(artifact_name)
