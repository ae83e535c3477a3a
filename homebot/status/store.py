"""
Shared status fragments.
"""

from dataclasses import dataclass


DEFAULT_WEATHER_STATUS = '🌬 N/A'
DEFAULT_DISPLAY_STATUS = '📺 N/A'


@dataclass
class StatusStore:
    """
    Last known fragment of each data source.

    Each field has exactly one writer: the weather monitor owns
    ``weather``, the display monitor owns ``display``. Readers only ever see
    whole strings.
    """
    weather: str = DEFAULT_WEATHER_STATUS
    display: str = DEFAULT_DISPLAY_STATUS

    def composite(self) -> str:
        """Concatenate fragments in publication order."""
        return f"{self.weather} {self.display}"
