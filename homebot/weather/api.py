"""
Weather station API module for fetching readings from Netatmo.
Handles OAuth2 token lifetime; every data request is a single attempt.
"""

import time
from typing import Any, Dict, List, Optional
import logging

import requests

from ..utils.config import Config


# Refresh the access token a little before Netatmo expires it
TOKEN_EXPIRY_MARGIN = 60


class WeatherAPIError(Exception):
    """Base exception for weather station API operations."""
    pass


class NetatmoAPI:
    """
    Netatmo weather station client.

    Features:
    - Password or refresh-token OAuth2 grant
    - Access token caching with transparent renewal
    - Station data retrieval (one device record per station)
    """

    def __init__(self, config: Config, logger: Optional[logging.Logger] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize Netatmo API client.

        Args:
            config: Application configuration
            logger: Logger instance
            session: HTTP session (a new one is created if omitted)
        """
        self.logger = logger or logging.getLogger('homebot.weather')

        self.base_url = config.netatmo_api_base_url
        self.timeout = config.http_timeout
        self.client_id = config.netatmo_client_id
        self.client_secret = config.netatmo_client_secret
        self.username = config.netatmo_username
        self.password = config.netatmo_password

        self._refresh_token: Optional[str] = config.netatmo_refresh_token
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

        self.session = session or requests.Session()

        self.logger.info(f"NetatmoAPI initialized for {self.base_url}")

    def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """
        Make HTTP request to the Netatmo API.

        Raises:
            WeatherAPIError: If request fails or the body is not JSON
        """
        url = f"{self.base_url}/{endpoint}"

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()

            data = response.json()
            self.logger.debug(f"API request successful: {endpoint}")
            return data

        except requests.exceptions.RequestException as e:
            raise WeatherAPIError(f"API request failed: {e}")
        except ValueError as e:
            raise WeatherAPIError(f"Invalid JSON response: {e}")

    def _token_grant(self) -> Dict[str, str]:
        if self._refresh_token:
            return {
                'grant_type': 'refresh_token',
                'refresh_token': self._refresh_token,
            }
        if self.username and self.password:
            return {
                'grant_type': 'password',
                'username': self.username,
                'password': self.password,
                'scope': 'read_station',
            }
        raise WeatherAPIError("No Netatmo credentials configured")

    def authenticate(self) -> str:
        """
        Obtain a fresh access token.

        Returns:
            str: Access token
        """
        data = dict(self._token_grant(), client_id=self.client_id, client_secret=self.client_secret)
        payload = self._request('POST', 'oauth2/token', data=data)

        access_token = payload.get('access_token')
        if not access_token:
            raise WeatherAPIError(f"Token response has no access_token: {payload.get('error', payload)}")

        self._access_token = access_token
        self._refresh_token = payload.get('refresh_token', self._refresh_token)
        self._token_expires_at = time.time() + float(payload.get('expires_in', 0))

        self.logger.info("Netatmo access token acquired")
        return access_token

    def _valid_token(self) -> str:
        if self._access_token and time.time() < self._token_expires_at - TOKEN_EXPIRY_MARGIN:
            return self._access_token
        return self.authenticate()

    def get_stations_data(self) -> List[Dict[str, Any]]:
        """
        Fetch the station device records.

        Returns:
            List[Dict[str, Any]]: Device records as returned by Netatmo

        Raises:
            WeatherAPIError: On any network, auth or response-shape failure
        """
        token = self._valid_token()
        payload = self._request(
            'GET', 'api/getstationsdata',
            headers={'Authorization': f"Bearer {token}"}
        )

        if 'error' in payload:
            raise WeatherAPIError(f"Netatmo error: {payload['error']}")

        body = payload.get('body')
        if not isinstance(body, dict) or not isinstance(body.get('devices'), list):
            raise WeatherAPIError("Malformed getstationsdata response")

        return body['devices']
