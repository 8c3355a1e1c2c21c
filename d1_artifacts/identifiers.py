"""
Order line item identifiers and the artifact names derived from them.

Every filesystem name built from client input goes through this module, so the
identifier pattern is checked before any path is constructed.
"""
import re
from pathlib import PurePath
from typing import Optional

from core.exceptions import ValidationError

CART_ITEM_ID_PATTERN = re.compile(r"^cart-[0-9]+-[a-f0-9]+$")
UPLOAD_FILENAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+\.pdf$", re.IGNORECASE)

ARTIFACT_PREFIX = "poster-"
PREVIEW_SUFFIX = ".png"
DOWNLOAD_NAME_PREFIX = "runmemories-"


def is_valid_cart_item_id(value: Optional[str]) -> bool:
    """Check a value against the cart item identifier pattern"""
    return isinstance(value, str) and CART_ITEM_ID_PATTERN.fullmatch(value) is not None


def validate_cart_item_id(value: Optional[str], field: str = "cartItemId") -> str:
    """Return the identifier unchanged or raise a 400 validation error"""
    if not value:
        raise ValidationError(f"{field} is missing.", field=field)
    if not is_valid_cart_item_id(value):
        raise ValidationError(f"Invalid {field} format.", field=field)
    return value


def artifact_filename(cart_item_id: str) -> str:
    """Canonical PDF name for a cart item: poster-<id>.pdf"""
    validate_cart_item_id(cart_item_id)
    return f"{ARTIFACT_PREFIX}{cart_item_id}.pdf"


def preview_filename(artifact_name: str) -> str:
    """Preview name for an artifact: the artifact name plus a fixed suffix"""
    return f"{artifact_name}{PREVIEW_SUFFIX}"


def download_filename(cart_item_id: str) -> str:
    """Short human-readable name offered to the browser on download"""
    return f"{DOWNLOAD_NAME_PREFIX}{cart_item_id[5:13]}.pdf"


def sanitize_upload_filename(filename: Optional[str]) -> str:
    """
    Reduce a client supplied filename to a safe artifact name.

    Directory components are dropped and the remaining basename must be a
    plain ``.pdf`` name made of letters, digits, dots, dashes and underscores.
    """
    if not filename:
        raise ValidationError("Uploaded file has no filename.", field="file")

    basename = PurePath(filename.replace("\\", "/")).name
    if basename in ("", ".", "..") or not UPLOAD_FILENAME_PATTERN.fullmatch(basename):
        raise ValidationError(f"Invalid upload filename: {filename}", field="file")
    return basename
