"""Response schemas for the upload endpoints"""

from pydantic import BaseModel, Field


class PosterUploadResponse(BaseModel):
    message: str
    filename: str = Field(..., description="Stored artifact name, poster-<cartItemId>.pdf")


class PdfUploadResponse(BaseModel):
    success: bool = True
    pdfUrl: str
    previewUrl: str = Field(..., description="Relative URL of the preview under /previews")
