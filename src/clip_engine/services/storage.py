"""Blob storage service for uploaded videos and derived clip media."""

import hashlib
import shutil
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

from clip_engine.config import settings
from clip_engine.domain.errors import NotFoundError, PayloadTooLargeError, ValidationError
from clip_engine.logging import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024

EXTENSION_BY_MIME = {
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/x-msvideo": ".avi",
    "video/webm": ".webm",
}


@dataclass
class StoredVideo:
    """Metadata for a stored upload."""

    handle: str
    file_path: Path
    size: int
    checksum: str
    created_at: datetime


class StorageService:
    """Service for storing and retrieving video blobs on local disk.

    Uploads are partitioned by owner: ``<base>/user_<id>/video_<ts><ext>``.
    Handles returned to callers are paths relative to the base directory.
    """

    def __init__(
        self,
        base_path: Path | None = None,
        create_dirs: bool = True,
    ) -> None:
        """Initialize storage service.

        Args:
            base_path: Base directory for local storage. Defaults to settings.storage_path
            create_dirs: Whether to create directories if they don't exist
        """
        self.base_path = (base_path or Path(settings.storage_path)).resolve()

        if create_dirs:
            (self.base_path / "temp").mkdir(parents=True, exist_ok=True)

    def user_dir(self, user_id: int) -> Path:
        """Directory holding a user's uploads."""
        return self.base_path / f"user_{user_id}"

    def store_upload(
        self,
        user_id: int,
        stream: BinaryIO,
        original_name: str | None,
        content_type: str | None,
        max_bytes: int,
    ) -> StoredVideo:
        """Stream an upload into the user's directory.

        Data is written to a temp file first and only moved under the user's
        directory once the size check passes.

        Raises:
            PayloadTooLargeError: If more than ``max_bytes`` are read
            ValidationError: If the stream is empty
        """
        temp_path = self.base_path / "temp" / f"{uuid4().hex}.part"
        digest = hashlib.sha256()
        size = 0

        try:
            with temp_path.open("wb") as out:
                while chunk := stream.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > max_bytes:
                        raise PayloadTooLargeError(
                            f"Upload exceeds the {max_bytes} byte limit"
                        )
                    digest.update(chunk)
                    out.write(chunk)

            if size == 0:
                raise ValidationError("Uploaded video is empty")

            ext = self._guess_extension(original_name, content_type)
            target_dir = self.user_dir(user_id)
            target_dir.mkdir(parents=True, exist_ok=True)
            filename = f"video_{int(time.time() * 1000)}_{uuid4().hex[:6]}{ext}"
            target = target_dir / filename
            shutil.move(str(temp_path), target)
        finally:
            temp_path.unlink(missing_ok=True)

        logger.info(
            "storage_upload_stored",
            user_id=user_id,
            file_path=str(target),
            size=size,
        )

        return StoredVideo(
            handle=str(target.relative_to(self.base_path)),
            file_path=target,
            size=size,
            checksum=digest.hexdigest(),
            created_at=datetime.now(UTC),
        )

    def resolve(self, handle: str) -> Path:
        """Get the local path for a handle.

        Raises:
            NotFoundError: If the handle escapes the base directory or does not exist
        """
        path = (self.base_path / handle).resolve()
        if not path.is_relative_to(self.base_path) or not path.is_file():
            raise NotFoundError(f"Stored file not found: {handle}")
        return path

    def clip_handle(self, video_handle: str, index: int) -> str:
        """Derived media reference for the ``index``-th clip (1-based) of a video."""
        video = Path(video_handle)
        return str(video.parent / "clips" / f"{video.stem}_clip{index:02d}{video.suffix}")

    def delete(self, handle: str) -> bool:
        """Delete a stored file. Returns False if it was not there."""
        try:
            path = self.resolve(handle)
        except NotFoundError:
            return False
        path.unlink(missing_ok=True)
        return True

    def _guess_extension(self, original_name: str | None, content_type: str | None) -> str:
        """Guess file extension from the original name or the content type."""
        if original_name:
            suffix = Path(original_name).suffix.lower()
            if suffix in EXTENSION_BY_MIME.values():
                return suffix
        return EXTENSION_BY_MIME.get(content_type or "", ".bin")
