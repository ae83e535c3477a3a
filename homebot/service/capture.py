"""
Capture-and-post workflow.
Takes a photo, uploads it and posts the composite status, then cools down before the next cycle.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ..camera.raspicam import RaspiCam
from ..status.publisher import Publisher
from ..status.store import StatusStore


CAMERA_ERROR_TEXT = ' 📸 Cam error!'


@dataclass
class CaptureResult:
    """Outcome of one capture cycle."""
    success: bool
    image: Optional[bytes] = None
    media_id: Optional[str] = None
    published: bool = False


class CaptureWorkflow:
    """
    Self-rescheduling photo post.

    The cooldown is armed only after a cycle completes, so a slow capture
    never overlaps the next one. Every cycle publishes exactly once, with
    or without a photo.
    """

    def __init__(self, camera: RaspiCam, publisher: Publisher, store: StatusStore,
                 cooldown: float, logger: Optional[logging.Logger] = None):
        self.camera = camera
        self.publisher = publisher
        self.store = store
        self.cooldown = cooldown
        self.logger = logger or logging.getLogger('homebot.capture')

        self.cycles = 0

    async def _capture_image(self) -> Optional[bytes]:
        try:
            event = await self.camera.take_photo()
        except Exception:
            self.logger.exception("Unexpected camera failure")
            return None

        if event.error:
            self.logger.error(f"cam error: {event.error}")
            return None

        self.logger.info(f"cam saved: {event.filename} ({event.timestamp})")

        # Only the single expected photo is ever uploaded
        if event.filename != self.camera.filename:
            self.logger.warning(f"Ignoring unrelated camera output: {event.filename}")
            return None

        try:
            return await self.camera.read_photo()
        except OSError as e:
            self.logger.error(f"Could not read photo: {e}")
            return None

    async def run_cycle(self) -> CaptureResult:
        """
        Capture, upload and publish once.

        Returns:
            CaptureResult: What happened in this cycle
        """
        self.cycles += 1
        image = await self._capture_image()

        media_id = None
        if image is not None:
            media_id = await self.publisher.upload_photo(image)

        # Read fragments after the slow steps so the post carries current values
        status = self.store.composite()
        if media_id is None:
            status += CAMERA_ERROR_TEXT

        published = await self.publisher.publish(status, media_id)

        return CaptureResult(
            success=media_id is not None,
            image=image,
            media_id=media_id,
            published=published,
        )

    async def run(self, max_cycles: Optional[int] = None):
        """Capture immediately, then once per cooldown after each completed cycle."""
        self.logger.info(f"Starting capture workflow (cooldown: {self.cooldown}s)")
        count = 0
        while max_cycles is None or count < max_cycles:
            try:
                await self.run_cycle()
            except Exception:
                self.logger.exception("Unexpected error in capture cycle")
            count += 1
            await asyncio.sleep(self.cooldown)
