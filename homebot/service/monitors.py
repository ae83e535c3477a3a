"""
Poll loops for the weather station and the TV.
Each monitor owns one status fragment and republishes the composite when it changes.
"""

import asyncio
import logging
import time
from typing import Optional

from ..status.light import LightLevelSampler
from ..status.publisher import Publisher
from ..status.store import StatusStore
from ..tv.bravia import BraviaClient, BraviaError
from ..utils.logging import PerformanceMonitor
from ..weather.api import NetatmoAPI, WeatherAPIError
from ..weather.snapshot import format_station_reading


WEATHER_ERROR_TEXT = 'Netatmo error! '
DISPLAY_PREFIX = '📺 '
DISPLAY_UNKNOWN = '?'


class StatusMonitor:
    """
    Base class for a sequential, self-rescheduling poll loop.

    A tick computes a fresh fragment, compares it with the stored one and
    publishes the composite status only on change. The next tick is armed
    after the current one has fully resolved, so polls never overlap.
    """

    source = 'status'

    def __init__(self, store: StatusStore, publisher: Publisher, interval: float,
                 logger: Optional[logging.Logger] = None,
                 performance_monitor: Optional[PerformanceMonitor] = None):
        self.store = store
        self.publisher = publisher
        self.interval = interval
        self.logger = logger or logging.getLogger(f'homebot.{self.source}')
        self.performance_monitor = performance_monitor

        self.ticks = 0
        self.publications = 0

    async def poll(self) -> str:
        """Return the new fragment. Collaborator failures must be folded into the text."""
        raise NotImplementedError

    def get_fragment(self) -> str:
        raise NotImplementedError

    def set_fragment(self, fragment: str):
        raise NotImplementedError

    async def tick(self) -> bool:
        """
        Run one poll and publish if the fragment changed.

        Returns:
            bool: True if a publication was attempted
        """
        self.ticks += 1
        fragment = await self.poll()

        if fragment == self.get_fragment():
            self.logger.debug(f"{self.source} status unchanged: {fragment!r}")
            return False

        self.set_fragment(fragment)
        self.publications += 1
        self.logger.info(f"{self.source} status changed: {fragment!r}")
        await self.publisher.publish(self.store.composite())
        return True

    async def run(self, max_ticks: Optional[int] = None):
        """
        Poll forever (or max_ticks times), sleeping interval seconds between ticks.
        """
        self.logger.info(f"Starting {self.source} monitor (interval: {self.interval}s)")
        count = 0
        while max_ticks is None or count < max_ticks:
            try:
                await self.tick()
            except Exception:
                self.logger.exception(f"Unexpected error in {self.source} poll")
            count += 1
            await asyncio.sleep(self.interval)

    def _record_poll(self, started: float, success: bool):
        if self.performance_monitor:
            self.performance_monitor.log_poll(self.source, time.monotonic() - started, success)


class WeatherMonitor(StatusMonitor):
    """Weather station plus ambient light fragment."""

    source = 'weather'

    def __init__(self, store: StatusStore, publisher: Publisher, api: NetatmoAPI,
                 sampler: LightLevelSampler, interval: float, **kwargs):
        super().__init__(store, publisher, interval, **kwargs)
        self.api = api
        self.sampler = sampler

    def get_fragment(self) -> str:
        return self.store.weather

    def set_fragment(self, fragment: str):
        self.store.weather = fragment

    async def poll(self) -> str:
        started = time.monotonic()
        loop = asyncio.get_running_loop()

        try:
            devices = await loop.run_in_executor(None, self.api.get_stations_data)
            reading = format_station_reading(devices[0] if devices else None)
        except WeatherAPIError as e:
            self.logger.warning(f"Station data unavailable: {e}")
            self._record_poll(started, False)
            return self.sampler.drain_and_summarize() + WEATHER_ERROR_TEXT

        self._record_poll(started, True)
        return self.sampler.drain_and_summarize() + reading


class DisplayMonitor(StatusMonitor):
    """TV power and now-playing fragment."""

    source = 'display'

    def __init__(self, store: StatusStore, publisher: Publisher, client: BraviaClient,
                 interval: float, **kwargs):
        super().__init__(store, publisher, interval, **kwargs)
        self.client = client

    def get_fragment(self) -> str:
        return self.store.display

    def set_fragment(self, fragment: str):
        self.store.display = fragment

    async def poll(self) -> str:
        started = time.monotonic()
        loop = asyncio.get_running_loop()

        try:
            status = await loop.run_in_executor(None, self.client.get_display_status)
            fragment = DISPLAY_PREFIX + status
        except (BraviaError, TypeError) as e:
            self.logger.warning(f"Bravia err {e}")
            self._record_poll(started, False)
            return DISPLAY_PREFIX + DISPLAY_UNKNOWN

        self._record_poll(started, True)
        return fragment
