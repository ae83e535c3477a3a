"""
Sony Bravia TV client.
Speaks the Bravia JSON-RPC control API over the local network using a pre-shared key.
"""

import itertools
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from ..utils.config import Config


# Private use areas and the pictograph/emoji blocks the TV guide embeds in titles
INVALID_TEXT_PATTERN = re.compile(
    '['
    '\uE000-\uF8FF'
    '\U0001F300-\U0001F5FF'
    '\U0001F600-\U0001F64F'
    '\U0001F680-\U0001F6FF'
    '\U0001F900-\U0001F9FF'
    '\U000F0000-\U000FFFFD'
    '\U00100000-\U0010FFFD'
    ']'
)

POWER_ACTIVE = 'active'


class BraviaError(Exception):
    """Base exception for Bravia API operations."""
    pass


def strip_invalid_text(text: str) -> str:
    """Remove private-use and pictograph code points, leaving other text untouched."""
    return INVALID_TEXT_PATTERN.sub('', text)


def describe_playing_content(info: Dict[str, Any]) -> str:
    """Render now-playing info as "title" or "title: program title"."""
    status = info.get('title') or ''
    program_title = info.get('programTitle')
    if not isinstance(status, str) or not isinstance(program_title, (str, type(None))):
        raise BraviaError(f"Malformed playing content info: {info!r}")
    if program_title:
        status += ': ' + strip_invalid_text(program_title)
    return status


class BraviaClient:
    """
    Minimal Bravia JSON-RPC client.

    Only the two calls the display monitor needs are exposed, but invoke()
    can reach any service/method pair.
    """

    def __init__(self, config: Config, logger: Optional[logging.Logger] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize Bravia client.

        Args:
            config: Application configuration
            logger: Logger instance
            session: HTTP session (a new one is created if omitted)
        """
        self.logger = logger or logging.getLogger('homebot.tv')
        self.base_url = f"http://{config.bravia_host}:{config.bravia_port}/sony"
        self.timeout = config.http_timeout
        self.session = session or requests.Session()
        self.session.headers.update({'X-Auth-PSK': config.bravia_psk})
        self._ids = itertools.count(1)

    def invoke(self, service: str, method: str, params: Optional[List[Any]] = None,
               version: str = '1.0') -> Dict[str, Any]:
        """
        Call one JSON-RPC method.

        Returns:
            Dict[str, Any]: First element of the result list

        Raises:
            BraviaError: On network failure, RPC error or unexpected response
        """
        body = {
            'method': method,
            'params': params or [],
            'id': next(self._ids),
            'version': version,
        }

        try:
            response = self.session.post(f"{self.base_url}/{service}", json=body, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise BraviaError(f"{service}.{method} request failed: {e}")
        except ValueError as e:
            raise BraviaError(f"{service}.{method} returned invalid JSON: {e}")

        if 'error' in payload:
            raise BraviaError(f"{service}.{method} error: {payload['error']}")

        result = payload.get('result')
        if not isinstance(result, list) or not result or not isinstance(result[0], dict):
            raise BraviaError(f"{service}.{method} returned malformed result: {result!r}")

        self.logger.debug(f"{service}.{method} -> {result[0]}")
        return result[0]

    def get_power_status(self) -> str:
        """Return the power status keyword, e.g. "active" or "standby"."""
        status = self.invoke('system', 'getPowerStatus').get('status')
        if not status or not isinstance(status, str):
            raise BraviaError(f"getPowerStatus returned no usable status: {status!r}")
        return status

    def get_playing_content_info(self) -> Dict[str, Any]:
        """Return now-playing info (title and optional programTitle)."""
        return self.invoke('avContent', 'getPlayingContentInfo')

    def get_display_status(self) -> str:
        """
        Describe what the TV is doing.

        Returns:
            str: Raw power status when not active, otherwise now-playing text
        """
        power = self.get_power_status()
        if power != POWER_ACTIVE:
            return power
        return describe_playing_content(self.get_playing_content_info())
