"""
Formatting of a single weather station reading.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from .api import WeatherAPIError


# (dashboard field, emoji, unit) in publication order
READING_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ('Temperature', '🌡', '℃'),
    ('Humidity', '💧', '%'),
    ('Pressure', '🎈', 'hPa'),
    ('CO2', '🌳', 'ppm'),
    ('Noise', '🔊', 'dB'),
)

logger = logging.getLogger('homebot.weather')


def format_value(value: Any) -> str:
    """Render a reading value; integral floats lose their decimal part."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_station_reading(device: Optional[Dict[str, Any]]) -> str:
    """
    Build the weather fragment for one station device record.

    Args:
        device: Netatmo device record carrying a ``dashboard_data`` reading

    Returns:
        str: "<emoji> <value><unit> " for every field, or "" without a reading

    Raises:
        WeatherAPIError: If the record or its reading is not a JSON object
    """
    if device is not None and not isinstance(device, dict):
        raise WeatherAPIError(f"Malformed station record: {device!r}")

    data = device.get('dashboard_data') if device else None

    if data and not isinstance(data, dict):
        raise WeatherAPIError(f"Malformed station reading: {data!r}")

    if not data:
        logger.warning(f"No station reading available: {data!r}")
        return ''

    return ''.join(
        f"{emoji} {format_value(data.get(key))}{unit} "
        for key, emoji, unit in READING_FIELDS
    )
