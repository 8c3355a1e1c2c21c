"""
Local filesystem store for poster PDFs and their preview images.

Layout::

    <root>/poster-<cart item id>.pdf
    <root>/previews/poster-<cart item id>.pdf.png

Files are written through a temporary sibling and renamed into place, so
concurrent writers of the same name leave one complete file (last writer wins).
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from core.exceptions import StorageError

from .identifiers import artifact_filename, preview_filename

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Filesystem store keyed by artifact name"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.previews_dir = self.root / "previews"

    def ensure_directories(self) -> None:
        """Create the artifact and preview directories if missing"""
        try:
            self.previews_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directories: {e}", path=str(self.root))

    def _child(self, directory: Path, name: str) -> Path:
        if not name or Path(name).name != name or name in (".", ".."):
            raise StorageError(f"Refusing to use non-flat file name: {name!r}", path=str(directory))
        return directory / name

    def artifact_path(self, artifact_name: str) -> Path:
        return self._child(self.root, artifact_name)

    def preview_path(self, artifact_name: str) -> Path:
        return self._child(self.previews_dir, preview_filename(artifact_name))

    def artifact_path_for(self, cart_item_id: str) -> Path:
        """Path of the canonical PDF for a cart item"""
        return self.artifact_path(artifact_filename(cart_item_id))

    def preview_path_for(self, cart_item_id: str) -> Path:
        """Path of the preview image for a cart item"""
        return self.preview_path(artifact_filename(cart_item_id))

    def has_artifact(self, cart_item_id: str) -> bool:
        return self.artifact_path_for(cart_item_id).is_file()

    def has_preview(self, cart_item_id: str) -> bool:
        return self.preview_path_for(cart_item_id).is_file()

    def save_artifact(self, artifact_name: str, data: bytes) -> Path:
        """Write a PDF artifact and return its path"""
        path = self.artifact_path(artifact_name)
        self._atomic_write(path, data)
        logger.info(f"Stored artifact {artifact_name} ({len(data)} bytes)")
        return path

    def save_preview(self, artifact_name: str, data: bytes) -> Path:
        """Write the preview image belonging to an artifact and return its path"""
        path = self.preview_path(artifact_name)
        self._atomic_write(path, data)
        logger.info(f"Stored preview {path.name} ({len(data)} bytes)")
        return path

    def _atomic_write(self, path: Path, data: bytes) -> None:
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=path.parent, prefix=f".{path.name}.", suffix=".part", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Failed to write file: {path.name}", path=str(path))
