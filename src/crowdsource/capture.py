"""
Photo capture capability
Hands captured images to the report pipeline as opaque handles
"""

import logging
import mimetypes
import uuid
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Deque, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageHandle:
    """
    Opaque reference to a captured image.

    The bytes stay with the capture subsystem; the pipeline only carries
    the reference around.
    """
    ref: str
    content_type: str = "image/jpeg"
    size_bytes: int = 0
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class CaptureCapability(ABC):
    """Camera or file picker producing image handles."""

    @abstractmethod
    async def capture(self) -> Optional[ImageHandle]:
        """Capture an image. Returns None when the user cancelled."""


class InMemoryCapture(CaptureCapability):
    """
    Capture subsystem backed by memory.

    Images are queued with add() (an upload, a camera frame) and handed out
    by capture() in arrival order. Bytes stay available by ref until
    discard() is called.
    """

    def __init__(self):
        self._queue: Deque[ImageHandle] = deque()
        self._handles: Dict[str, ImageHandle] = {}
        self._images: Dict[str, bytes] = {}

    def add(self, data: bytes, content_type: str = "image/jpeg") -> ImageHandle:
        """Store image bytes and queue a handle for the next capture."""
        handle = ImageHandle(
            ref=f"memory://{uuid.uuid4().hex}",
            content_type=content_type,
            size_bytes=len(data),
        )
        self._handles[handle.ref] = handle
        self._images[handle.ref] = data
        self._queue.append(handle)
        return handle

    async def capture(self) -> Optional[ImageHandle]:
        if not self._queue:
            logger.info("Capture cancelled: no image available")
            return None
        return self._queue.popleft()

    def get_image(self, ref: str) -> Optional[bytes]:
        """Get image bytes by handle reference."""
        return self._images.get(ref)

    def get_handle(self, ref: str) -> Optional[ImageHandle]:
        return self._handles.get(ref)

    def discard(self, ref: str) -> bool:
        """
        Drop an image that will not be attached to a report.

        Returns:
            True if the image was stored
        """
        handle = self._handles.pop(ref, None)
        if handle is None:
            return False

        del self._images[ref]
        if handle in self._queue:
            self._queue.remove(handle)
        logger.debug(f"Discarded image {ref}")
        return True

    def __len__(self) -> int:
        return len(self._images)


class FileCapture(CaptureCapability):
    """Picks a photo from disk, as a gallery/file picker would."""

    def __init__(self, path: str):
        self.path = Path(path)

    async def capture(self) -> Optional[ImageHandle]:
        if not self.path.is_file():
            logger.info(f"Capture cancelled: {self.path} not found")
            return None

        size = self.path.stat().st_size
        if size == 0:
            logger.info(f"Capture cancelled: {self.path} is empty")
            return None

        content_type, _ = mimetypes.guess_type(self.path.name)
        return ImageHandle(
            ref=self.path.resolve().as_uri(),
            content_type=content_type or "application/octet-stream",
            size_bytes=size,
        )
