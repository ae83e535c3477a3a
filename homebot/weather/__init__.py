"""
Weather station module.
Provides Netatmo station data fetching and status fragment formatting.
"""

from .api import NetatmoAPI, WeatherAPIError
from .snapshot import READING_FIELDS, format_station_reading

__all__ = [
    'NetatmoAPI',
    'WeatherAPIError',
    'READING_FIELDS',
    'format_station_reading',
]
