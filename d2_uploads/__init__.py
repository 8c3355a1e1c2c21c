"""
D2 Upload Intake

Multipart upload endpoints for finished poster PDFs and their previews.
"""

from .intake import PDF_TYPES, PREVIEW_IMAGE_TYPES, UploadIntake, read_upload

__all__ = ["UploadIntake", "read_upload", "PDF_TYPES", "PREVIEW_IMAGE_TYPES"]
