"""
Twitter client for posting status updates with optional photos.
Uses OAuth 1.0a user context signing via requests-oauthlib.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests_oauthlib import OAuth1Session

from ..utils.config import Config


class TwitterError(Exception):
    """Base exception for Twitter operations."""
    pass


class TwitterClient:
    """
    Minimal Twitter API client.

    Two calls are supported: media upload (bytes in, media id string out)
    and tweet creation (text plus optional media ids). Every call is a
    single attempt; callers decide what a failure means.
    """

    def __init__(self, config: Config, logger: Optional[logging.Logger] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize Twitter client.

        Args:
            config: Application configuration
            logger: Logger instance
            session: Pre-built session (an OAuth1Session is created from config otherwise)
        """
        self.logger = logger or logging.getLogger('homebot.twitter')
        self.api_base_url = config.twitter_api_base_url
        self.upload_base_url = config.twitter_upload_base_url
        self.timeout = config.http_timeout

        if session is None:
            session = OAuth1Session(
                config.twitter_consumer_key,
                client_secret=config.twitter_consumer_secret,
                resource_owner_key=config.twitter_access_token_key,
                resource_owner_secret=config.twitter_access_token_secret,
            )
        self.session = session

    def _post(self, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise TwitterError(f"Request to {url} failed: {e}")
        except ValueError as e:
            raise TwitterError(f"Invalid JSON response from {url}: {e}")

    def upload_media(self, data: bytes) -> str:
        """
        Upload image bytes.

        Returns:
            str: Opaque media id to attach to a tweet

        Raises:
            TwitterError: If the upload fails
        """
        url = f"{self.upload_base_url}/1.1/media/upload.json"
        payload = self._post(url, files={'media': data})

        media_id = payload.get('media_id_string')
        if not media_id:
            raise TwitterError(f"Media upload returned no media id: {payload}")

        self.logger.debug(f"Uploaded {len(data)} bytes as media {media_id}")
        return media_id

    def update_status(self, text: str, media_ids: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Post a tweet.

        Returns:
            Dict[str, Any]: Created tweet data

        Raises:
            TwitterError: If posting fails
        """
        body: Dict[str, Any] = {'text': text}
        if media_ids:
            body['media'] = {'media_ids': list(media_ids)}

        payload = self._post(f"{self.api_base_url}/2/tweets", json=body)

        if 'data' not in payload:
            raise TwitterError(f"Tweet creation failed: {payload.get('errors', payload)}")

        return payload['data']
