"""
D8 Downloads API

Download gateway for purchased posters. Buyers reach it from the links in
their order confirmation email.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from api.dependencies import get_artifact_store
from core.exceptions import NotFoundError
from d1_artifacts.identifiers import download_filename, validate_cart_item_id
from d1_artifacts.store import ArtifactStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["downloads"])

PDF_MEDIA_TYPE = "application/pdf"


@router.get(
    "/download-pdf/{cart_item_id}",
    response_class=FileResponse,
    summary="Download a poster PDF",
    responses={200: {"content": {PDF_MEDIA_TYPE: {}}}},
)
async def download_pdf(
    cart_item_id: str,
    store: ArtifactStore = Depends(get_artifact_store),
) -> FileResponse:
    """
    Stream the stored PDF for a cart item.

    The identifier is checked against the cart item pattern before any path
    is built from it.
    """
    validate_cart_item_id(cart_item_id)

    path = store.artifact_path_for(cart_item_id)
    if not path.is_file():
        logger.warning(f"Download requested for missing artifact {cart_item_id}")
        raise NotFoundError("PDF", cart_item_id)

    logger.info(f"Serving {path.name} for {cart_item_id}")
    return FileResponse(path, media_type=PDF_MEDIA_TYPE, filename=download_filename(cart_item_id))
