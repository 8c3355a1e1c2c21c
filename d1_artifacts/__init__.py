"""
D1 Artifacts

Filesystem storage for poster PDFs and preview images, plus the preview
generator and the cart item identifier rules that guard every derived path.
"""

from .identifiers import (
    CART_ITEM_ID_PATTERN,
    artifact_filename,
    is_valid_cart_item_id,
    preview_filename,
    validate_cart_item_id,
)
from .previews import PreviewGenerator
from .store import ArtifactStore

__all__ = [
    "ArtifactStore",
    "PreviewGenerator",
    "CART_ITEM_ID_PATTERN",
    "artifact_filename",
    "preview_filename",
    "is_valid_cart_item_id",
    "validate_cart_item_id",
]
