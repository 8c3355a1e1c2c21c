"""
D2 Uploads API

Multipart endpoints used by the poster editor to store finished PDFs.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.dependencies import get_upload_intake

from .intake import UploadIntake
from .schemas import PdfUploadResponse, PosterUploadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])


@router.post("/upload-poster-pdf", response_model=PosterUploadResponse)
async def upload_poster_pdf(
    pdf: Optional[UploadFile] = File(None),
    cartItemId: Optional[str] = Form(None),
    intake: UploadIntake = Depends(get_upload_intake),
) -> PosterUploadResponse:
    """Store a poster PDF under its cart item id"""
    result = await intake.upload_poster_pdf(pdf, cartItemId)
    return PosterUploadResponse(**result)


@router.post("/upload-pdf-with-preview", response_model=PdfUploadResponse)
async def upload_pdf_with_preview(
    file: Optional[UploadFile] = File(None),
    previewImage: Optional[UploadFile] = File(None),
    cartItemId: Optional[str] = Form(None),
    intake: UploadIntake = Depends(get_upload_intake),
) -> PdfUploadResponse:
    result = await intake.upload_pdf_with_preview(file, previewImage, cartItemId)
    return PdfUploadResponse(**result)


@router.post("/upload-pdf", response_model=PdfUploadResponse)
async def upload_pdf(
    file: Optional[UploadFile] = File(None),
    cartItemId: Optional[str] = Form(None),
    intake: UploadIntake = Depends(get_upload_intake),
) -> PdfUploadResponse:
    result = await intake.upload_pdf(file, cartItemId)
    return PdfUploadResponse(**result)
