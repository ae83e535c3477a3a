"""
Background daemon for the Home Status Bot.
Wires the collaborators together and runs the poll loops, the capture workflow and the beacon scanner.
"""

import asyncio
import signal
import sys
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, asdict
from datetime import datetime

from ..utils.config import Config, ConfigurationError
from ..utils.logging import PerformanceMonitor, setup_logging
from ..ble.scanner import BeaconScanner, LightReading
from ..camera.raspicam import RaspiCam
from ..social.twitter import TwitterClient
from ..status.light import LightLevelSampler
from ..status.publisher import Publisher
from ..status.store import StatusStore
from ..tv.bravia import BraviaClient
from ..weather.api import NetatmoAPI
from .capture import CaptureWorkflow
from .monitors import DisplayMonitor, WeatherMonitor


@dataclass
class DaemonStats:
    """Daemon statistics container."""
    start_time: datetime
    uptime_seconds: int
    light_samples: int
    weather_ticks: int
    display_ticks: int
    capture_cycles: int
    posts_attempted: int
    posts_failed: int
    last_light_sample_time: Optional[datetime] = None


class HomeBotDaemonError(Exception):
    """Base exception for daemon operations."""
    pass


class HomeBotDaemon:
    """
    Long-running status bot.

    Features:
    - Independent weather, display and capture loops sharing one status store
    - Continuous beacon listening feeding the light sampler
    - Periodic statistics and resource logging
    - Graceful shutdown on SIGINT/SIGTERM
    """

    def __init__(self, config: Optional[Config] = None):
        """Initialize daemon."""
        self.config = config
        self.logger = logging.getLogger('homebot.daemon')
        self.performance_monitor: Optional[PerformanceMonitor] = None

        self.store = StatusStore()
        self.sampler = LightLevelSampler()
        self.publisher: Optional[Publisher] = None
        self.weather_monitor: Optional[WeatherMonitor] = None
        self.display_monitor: Optional[DisplayMonitor] = None
        self.capture_workflow: Optional[CaptureWorkflow] = None
        self.ble_scanner: Optional[BeaconScanner] = None

        # Daemon state
        self._running = False
        self._shutdown_requested = False
        self._tasks: List[asyncio.Task] = []

        self._stats = DaemonStats(
            start_time=datetime.now(),
            uptime_seconds=0,
            light_samples=0,
            weather_ticks=0,
            display_ticks=0,
            capture_cycles=0,
            posts_attempted=0,
            posts_failed=0,
        )

    def _initialize_components(self):
        """Initialize all daemon components."""
        try:
            if self.config is None:
                self.config = Config()
            self.config.validate_environment()

            setup_logging(self.config)
            self.performance_monitor = PerformanceMonitor()

            twitter = None if self.config.publish_dry_run else TwitterClient(self.config)
            self.publisher = Publisher(twitter, dry_run=self.config.publish_dry_run)

            self.weather_monitor = WeatherMonitor(
                self.store, self.publisher,
                NetatmoAPI(self.config), self.sampler,
                interval=self.config.weather_poll_interval,
                performance_monitor=self.performance_monitor
            )
            self.display_monitor = DisplayMonitor(
                self.store, self.publisher,
                BraviaClient(self.config),
                interval=self.config.display_poll_interval,
                performance_monitor=self.performance_monitor
            )

            if self.config.capture_enabled:
                self.capture_workflow = CaptureWorkflow(
                    RaspiCam(self.config), self.publisher, self.store,
                    cooldown=self.config.capture_cooldown
                )

            self.ble_scanner = BeaconScanner(self.config, performance_monitor=self.performance_monitor)
            self.ble_scanner.add_callback(self._handle_light_reading)

            self.logger.info("Daemon components initialized successfully")

        except ConfigurationError as e:
            raise HomeBotDaemonError(f"Configuration invalid: {e}")
        except Exception as e:
            self.logger.error(f"Component initialization failed: {e}")
            raise HomeBotDaemonError(f"Initialization failed: {e}")

    def _setup_signal_handlers(self):
        """Set up signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            self.logger.info(f"Received {signal_name}, initiating graceful shutdown...")
            self._shutdown_requested = True

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

    def _handle_light_reading(self, reading: LightReading):
        """Feed a beacon reading into the sampler."""
        self.sampler.record(reading.lux)
        self._stats.light_samples += 1
        self._stats.last_light_sample_time = reading.timestamp

    async def _statistics_loop(self):
        """Background loop for updating statistics and logging resource usage."""
        interval = self.config.performance_log_interval

        while self._running and not self._shutdown_requested:
            await asyncio.sleep(interval)
            try:
                self._refresh_stats()
                self.performance_monitor.log_system_resources()
                self.logger.info(f"Status: {self.store.composite()!r} stats={asdict(self._stats)}")
            except Exception:
                self.logger.exception("Statistics loop error")

    def _refresh_stats(self):
        self._stats.uptime_seconds = int((datetime.now() - self._stats.start_time).total_seconds())
        if self.weather_monitor:
            self._stats.weather_ticks = self.weather_monitor.ticks
        if self.display_monitor:
            self._stats.display_ticks = self.display_monitor.ticks
        if self.capture_workflow:
            self._stats.capture_cycles = self.capture_workflow.cycles
        if self.publisher:
            self._stats.posts_attempted = self.publisher.posts_attempted
            self._stats.posts_failed = self.publisher.posts_failed

    def get_status(self) -> Dict[str, Any]:
        """Get current daemon status."""
        self._refresh_stats()
        return {
            "running": self._running,
            "shutdown_requested": self._shutdown_requested,
            "composite_status": self.store.composite(),
            "fragments": {
                "weather": self.store.weather,
                "display": self.store.display,
            },
            "pending_light_samples": len(self.sampler),
            "stats": asdict(self._stats),
            "components": {
                "publisher": self.publisher is not None,
                "weather_monitor": self.weather_monitor is not None,
                "display_monitor": self.display_monitor is not None,
                "capture_workflow": self.capture_workflow is not None,
                "ble_scanner": self.ble_scanner is not None and self.ble_scanner.is_scanning(),
            }
        }

    def get_statistics(self) -> DaemonStats:
        """Get daemon statistics."""
        self._refresh_stats()
        return self._stats

    async def _start_tasks(self):
        await self.ble_scanner.start_continuous_scan()

        self._tasks = [
            asyncio.create_task(self.weather_monitor.run()),
            asyncio.create_task(self.display_monitor.run()),
            asyncio.create_task(self._statistics_loop()),
        ]
        if self.capture_workflow:
            self._tasks.append(asyncio.create_task(self.capture_workflow.run()))

    async def start(self):
        """Start the daemon and block until shutdown is requested."""
        if self._running:
            raise HomeBotDaemonError("Daemon is already running")

        self._initialize_components()

        self.logger.info("=== Start ===")
        self._setup_signal_handlers()
        self._running = True

        try:
            await self._start_tasks()
            while self._running and not self._shutdown_requested:
                await asyncio.sleep(1)
        finally:
            await self.stop()

    async def stop(self):
        """Stop the daemon gracefully."""
        if not self._running:
            return

        self.logger.info("Stopping Home Status Bot...")
        self._running = False

        for task in self._tasks:
            if not task.done():
                task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                self.logger.warning(f"Task ended with error during shutdown: {e}")
        self._tasks = []

        if self.ble_scanner:
            await self.ble_scanner.cleanup()

        self.logger.info("Home Status Bot stopped")


async def run_daemon(config: Optional[Config] = None):
    """Run the daemon from command line."""
    daemon = HomeBotDaemon(config)

    try:
        await daemon.start()
    except HomeBotDaemonError as e:
        print(f"Daemon initialization failed: {e}")
        sys.exit(1)
