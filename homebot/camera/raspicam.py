"""
Raspberry Pi camera wrapper.
Runs the still-capture command line tool as an asyncio subprocess.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..utils.config import Config


class CameraError(Exception):
    """Raised when the capture tool cannot be run or fails."""
    pass


@dataclass
class CameraEvent:
    """Completion report of one capture, mirroring the tool's read event."""
    error: Optional[CameraError]
    timestamp: int  # epoch milliseconds
    filename: str

    @property
    def ok(self) -> bool:
        return self.error is None


class RaspiCam:
    """
    Single-photo camera driver.

    Each take_photo() call starts the capture tool writing to one fixed
    output path and resolves to a CameraEvent once the tool exits. Errors
    are reported in the event rather than raised.
    """

    def __init__(self, config: Config, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('homebot.camera')
        self.command = config.camera_command
        self.output_path = Path(config.camera_output_path)
        self.width = config.camera_width
        self.height = config.camera_height
        self.quality = config.camera_quality
        self.capture_timeout_ms = config.camera_timeout_ms
        self.process_timeout = config.camera_process_timeout

    @property
    def filename(self) -> str:
        """Name of the single photo file this camera produces."""
        return self.output_path.name

    def build_command(self) -> List[str]:
        return [
            self.command,
            '--nopreview',
            '--output', str(self.output_path),
            '--width', str(self.width),
            '--height', str(self.height),
            '--quality', str(self.quality),
            '--encoding', 'jpg',
            '--timeout', str(self.capture_timeout_ms),
        ]

    async def _run(self) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.build_command(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise CameraError(f"{self.command} not found - is the camera stack installed?")
        except OSError as e:
            raise CameraError(f"Could not start {self.command}: {e}")

        self.logger.info("cam start")

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.process_timeout)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            raise CameraError(f"{self.command} timed out after {self.process_timeout}s")
        finally:
            self.logger.info("cam stop")

        self.logger.info(f"cam exit (code {process.returncode})")

        if process.returncode != 0:
            detail = stderr.decode(errors='replace').strip() if stderr else ''
            raise CameraError(f"{self.command} exited with {process.returncode}: {detail}")

    async def take_photo(self) -> CameraEvent:
        """
        Capture one photo to the output path.

        Returns:
            CameraEvent: error (or None), completion timestamp and file name
        """
        error = None
        try:
            await self._run()
        except CameraError as e:
            error = e

        return CameraEvent(
            error=error,
            timestamp=int(time.time() * 1000),
            filename=self.filename,
        )

    async def read_photo(self) -> bytes:
        """Read the captured photo bytes."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.output_path.read_bytes)
