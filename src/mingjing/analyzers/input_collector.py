"""
Input Collector Module
Stages free text and at most one image for the next submission.
"""

import asyncio
import base64
import logging
from typing import Awaitable, Optional

from mingjing import config
from mingjing.core.errors import ImageTooLargeError, InputValidationError
from mingjing.core.models import AnalysisRequest

logger = logging.getLogger(__name__)


def to_data_url(data: bytes, content_type: str) -> str:
    """Encode raw image bytes the way a browser FileReader would."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


class InputCollector:
    """
    Per-session input staging.

    An image read is asynchronous: while one is in flight the collector
    refuses to build a request, so submission only becomes possible once
    the image is ready. A newer image always replaces the staged one.
    """

    def __init__(self):
        self.text = ""
        self.image: Optional[str] = None
        self._image_read: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def set_text(self, text: str) -> None:
        self.text = text or ""

    # ------------------------------------------------------------------
    # Image
    # ------------------------------------------------------------------

    @property
    def image_pending(self) -> bool:
        return self._image_read is not None and not self._image_read.done()

    def stage_image(self, image: str) -> None:
        """Stage an already-encoded image, replacing any previous one."""
        self._cancel_read()
        self.image = image or None

    def begin_image_read(self, reader: Awaitable[bytes], content_type: Optional[str]) -> asyncio.Task:
        """
        Start reading an uploaded image in the background.

        Args:
            reader: Awaitable yielding the raw image bytes
            content_type: MIME type reported by the client

        Raises:
            InputValidationError: if the content type is not a supported image
        """
        if not content_type or content_type not in config.ALLOWED_IMAGE_TYPES:
            if asyncio.iscoroutine(reader):
                reader.close()
            raise InputValidationError(f"不支持的图片格式: {content_type}")

        self._cancel_read()
        self.image = None
        task = asyncio.ensure_future(self._read_image(reader, content_type))
        self._image_read = task
        return task

    async def wait_for_image(self) -> None:
        """Wait for the in-flight image read, re-raising its failure."""
        if self._image_read is not None:
            task = self._image_read
            try:
                await task
            finally:
                if self._image_read is task:
                    self._image_read = None

    def clear_image(self) -> None:
        self._cancel_read()
        self.image = None

    def clear(self) -> None:
        self.text = ""
        self.clear_image()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    @property
    def can_submit(self) -> bool:
        return not self.image_pending and (bool(self.text.strip()) or self.image is not None)

    def build_request(self) -> AnalysisRequest:
        """
        Build the request for the staged input.

        Raises:
            InputValidationError: while an image is still loading, or when
                neither text nor image is present
        """
        return self.preview_request(self.text)

    def preview_request(self, text: str, image: Optional[str] = None) -> AnalysisRequest:
        """
        Validate a submission against the staged input without staging anything.

        A given image takes the place of the staged one; otherwise the staged
        image (if any) is used. The collector is left untouched either way.

        Raises:
            InputValidationError: as for build_request
        """
        if not image and self.image_pending:
            raise InputValidationError("图片仍在读取中，请稍候。")
        return AnalysisRequest.create(text, image or self.image)

    # ------------------------------------------------------------------
    # Private Helper Methods
    # ------------------------------------------------------------------

    async def _read_image(self, reader: Awaitable[bytes], content_type: str) -> str:
        data = await reader
        if not data:
            raise InputValidationError("图片文件为空。")
        if len(data) > config.MAX_IMAGE_BYTES:
            raise ImageTooLargeError(
                f"图片超过 {config.MAX_IMAGE_BYTES // (1024 * 1024)} MB 限制。"
            )
        self.image = to_data_url(data, content_type)
        logger.debug("Image staged (%s, %d bytes)", content_type, len(data))
        return self.image

    def _cancel_read(self) -> None:
        if self.image_pending:
            self._image_read.cancel()
        self._image_read = None
