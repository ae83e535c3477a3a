"""
Status publisher.
Stamps a status string with the current epoch time and posts it.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from ..social.twitter import TwitterClient, TwitterError


TIMESTAMP_SEPARATOR = ' ⏰ '
DRY_RUN_MEDIA_ID = 'dry-run'


def stamp_status(text: str, now: float) -> str:
    """Append the separator, integer epoch seconds and the UTC suffix."""
    return f"{text}{TIMESTAMP_SEPARATOR}{int(now)}UTC"


class Publisher:
    """
    Posts status text to the social feed.

    Any failure is logged and reported through the return value; publish()
    never raises for a collaborator error.
    """

    def __init__(self, client: Optional[TwitterClient], logger: Optional[logging.Logger] = None,
                 dry_run: bool = False, clock: Callable[[], float] = time.time):
        """
        Initialize publisher.

        Args:
            client: Twitter client (may be None in dry-run mode)
            logger: Logger instance
            dry_run: Log what would be posted instead of posting
            clock: Source of epoch seconds
        """
        self.client = client
        self.logger = logger or logging.getLogger('homebot.publish')
        self.dry_run = dry_run
        self.clock = clock

        self.posts_attempted = 0
        self.posts_failed = 0

    async def publish(self, status_text: str, media_id: Optional[str] = None) -> bool:
        """
        Post a status, attaching the uploaded media when given.

        Returns:
            bool: True if the post succeeded
        """
        text = stamp_status(status_text, self.clock())
        self.posts_attempted += 1

        if self.dry_run or self.client is None:
            self.logger.info(f"DRY RUN: {text!r} media={media_id}")
            return True

        media_ids = [media_id] if media_id else None
        loop = asyncio.get_running_loop()

        try:
            await loop.run_in_executor(None, self.client.update_status, text, media_ids)
        except TwitterError as e:
            self.posts_failed += 1
            self.logger.error(f"Error: {e}")
            return False
        except Exception as e:
            self.posts_failed += 1
            self.logger.exception(f"Unexpected error while posting status: {e}")
            return False

        self.logger.info(f"POST: {text!r} media={media_id}")
        return True

    async def upload_photo(self, data: bytes) -> Optional[str]:
        """
        Upload a photo.

        Returns:
            Optional[str]: Media id, or None if the upload failed
        """
        if self.dry_run or self.client is None:
            self.logger.info(f"DRY RUN: skipping upload of {len(data)} bytes")
            return DRY_RUN_MEDIA_ID

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self.client.upload_media, data)
        except TwitterError as e:
            self.logger.error(f"Media upload failed: {e}")
            return None
        except Exception as e:
            self.logger.exception(f"Unexpected error during media upload: {e}")
            return None
