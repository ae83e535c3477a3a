"""
Bluetooth Low Energy scanner for light-sensor beacons.
Listens to advertisements continuously and extracts the lux value carried in manufacturer data.
"""

import asyncio
import re
import struct
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timezone
from dataclasses import dataclass
import logging

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData

from ..utils.config import Config
from ..utils.logging import PerformanceMonitor


# Offset of the little-endian lux value in the raw manufacturer data,
# counted from the start of the company identifier
LUX_OFFSET = 4
MIN_MANUFACTURER_DATA_LENGTH = 6


@dataclass
class LightReading:
    """One lux reading taken from a beacon advertisement."""
    name: str
    address: str
    lux: int
    timestamp: datetime
    rssi: Optional[int] = None


def raw_manufacturer_data(manufacturer_data: Dict[int, bytes]) -> Optional[bytes]:
    """
    Rebuild the manufacturer-specific data field as broadcast.

    bleak strips the 16-bit company identifier into the dict key; put it
    back in front of the payload, little-endian as on the air.
    """
    if not manufacturer_data:
        return None
    company_id, payload = next(iter(manufacturer_data.items()))
    return struct.pack('<H', company_id) + bytes(payload)


def parse_light_sample(raw: Optional[bytes]) -> Optional[int]:
    """
    Extract the lux value from raw manufacturer data.

    Returns:
        Optional[int]: Unsigned 16-bit value at offsets 4-5, or None if too short
    """
    if raw is None or len(raw) < MIN_MANUFACTURER_DATA_LENGTH:
        return None
    return struct.unpack_from('<H', raw, LUX_OFFSET)[0]


class ScannerError(Exception):
    """Base exception for scanner operations."""
    pass


class ScannerInitError(ScannerError):
    """Exception for scanner initialization errors."""
    pass


class ScannerOperationError(ScannerError):
    """Exception for scanner operation errors."""
    pass


class BeaconScanner:
    """
    Async BLE scanner for light-sensor beacons.

    Features:
    - Continuous advertisement listening without scan gaps
    - Beacon filtering by local name pattern
    - Lux extraction from manufacturer data
    - Callback fan-out of every accepted reading
    """

    def __init__(self, config: Config, logger: Optional[logging.Logger] = None,
                 performance_monitor: Optional[PerformanceMonitor] = None):
        """
        Initialize BLE scanner.

        Args:
            config: Application configuration
            logger: Logger instance
            performance_monitor: Performance monitoring instance
        """
        self.logger = logger or logging.getLogger('homebot.ble')
        self.performance_monitor = performance_monitor or PerformanceMonitor()

        self.scan_duration = config.ble_scan_duration
        self.adapter = config.ble_adapter
        self.name_pattern = re.compile(config.beacon_name_pattern)

        # State management
        self._scanner: Optional[BleakScanner] = None
        self._is_scanning = False
        self._scan_task: Optional[asyncio.Task] = None
        self._callbacks: List[Callable[[LightReading], None]] = []
        self._last_readings: Dict[str, LightReading] = {}

        # Statistics
        self._reading_count = 0
        self._ignored_count = 0
        self._error_count = 0
        self._last_reading_time: Optional[datetime] = None

        self.logger.info(f"BeaconScanner initialized with adapter: {self.adapter}")

    def add_callback(self, callback: Callable[[LightReading], None]):
        """
        Add callback for light readings.

        Args:
            callback: Function to call when a beacon reading is received
        """
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[LightReading], None]):
        """Remove a previously added callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self, reading: LightReading):
        for callback in self._callbacks:
            try:
                callback(reading)
            except Exception:
                self.logger.exception(f"Error in callback {getattr(callback, '__name__', callback)}")

    def parse_advertisement(self, device: BLEDevice, advertisement_data: AdvertisementData) -> Optional[LightReading]:
        """
        Turn an advertisement into a light reading.

        Returns:
            Optional[LightReading]: Reading, or None for unrelated or short advertisements
        """
        name = advertisement_data.local_name or device.name
        if not isinstance(name, str) or not self.name_pattern.match(name):
            return None

        lux = parse_light_sample(raw_manufacturer_data(advertisement_data.manufacturer_data))
        if lux is None:
            self.logger.debug(f"Beacon {name} advertised without usable manufacturer data")
            return None

        return LightReading(
            name=name,
            address=device.address.upper(),
            lux=lux,
            timestamp=datetime.now(timezone.utc),
            rssi=advertisement_data.rssi,
        )

    def _detection_callback(self, device: BLEDevice, advertisement_data: AdvertisementData):
        """
        Callback for BLE device detection.

        Args:
            device: Detected BLE device
            advertisement_data: Advertisement data
        """
        try:
            reading = self.parse_advertisement(device, advertisement_data)
            if reading is None:
                self._ignored_count += 1
                return

            self._last_readings[reading.address] = reading
            self._reading_count += 1
            self._last_reading_time = reading.timestamp

            self.logger.info(f"MEASURE: {reading.name} {reading.lux}")

            self._notify_callbacks(reading)

        except Exception:
            self.logger.exception(f"Error processing BLE device {device.address}")
            self._error_count += 1
            self.performance_monitor.record_metric("ble_scan_errors", 1)

    def _create_scanner(self) -> BleakScanner:
        try:
            return BleakScanner(
                detection_callback=self._detection_callback,
                adapter=self.adapter if self.adapter != "auto" else None
            )
        except Exception as e:
            raise ScannerInitError(f"Failed to create BLE scanner: {e}")

    async def scan_once(self, duration: Optional[float] = None) -> Dict[str, LightReading]:
        """
        Listen for beacons for a fixed time.

        Args:
            duration: Scan duration in seconds (uses config default if None)

        Returns:
            Dict[str, LightReading]: Latest reading per beacon address

        Raises:
            ScannerOperationError: If scan operation fails
        """
        scan_duration = duration or self.scan_duration

        with self.performance_monitor.measure_time("ble_scan"):
            try:
                self._last_readings.clear()

                if self._scanner is None:
                    self._scanner = self._create_scanner()

                self.logger.info(f"Starting BLE scan for {scan_duration} seconds...")

                await self._scanner.start()
                self._is_scanning = True

                await asyncio.sleep(scan_duration)

                await self._scanner.stop()
                self._is_scanning = False

                self.logger.info(f"BLE scan completed. Found {len(self._last_readings)} beacons")
                return self._last_readings.copy()

            except Exception as e:
                self._error_count += 1
                self.logger.error(f"BLE scan failed: {e}")

                if self._is_scanning and self._scanner:
                    try:
                        await self._scanner.stop()
                    except Exception as stop_error:
                        self.logger.warning(f"Error stopping scanner: {stop_error}")
                    self._is_scanning = False

                raise ScannerOperationError(f"BLE scan failed: {e}")

    async def start_continuous_scan(self):
        """Start listening to advertisements in a background task."""
        if self._scan_task and not self._scan_task.done():
            self.logger.warning("Continuous scan already running")
            return

        self.logger.info("Starting continuous BLE scan")
        self._scan_task = asyncio.create_task(self._continuous_scan_loop())

    async def stop_continuous_scan(self):
        """Stop continuous BLE scanning."""
        if self._scan_task and not self._scan_task.done():
            self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                pass
            self.logger.info("Continuous BLE scan stopped")

        if self._is_scanning and self._scanner:
            try:
                await self._scanner.stop()
            except Exception as e:
                self.logger.warning(f"Error stopping scanner: {e}")
            self._is_scanning = False

    async def _continuous_scan_loop(self):
        """Keep the scanner running until cancelled."""
        try:
            self._scanner = self._create_scanner()
            await self._scanner.start()
            self._is_scanning = True
            self.logger.info("Continuous BLE listening started")

            loop_count = 0
            while True:
                await asyncio.sleep(1)
                loop_count += 1
                if loop_count % 60 == 0:
                    self.logger.debug(f"Continuous scan alive, {self._reading_count} readings so far")

        except asyncio.CancelledError:
            self.logger.info("Continuous scan loop cancelled")
            raise
        except Exception:
            # Light readings are optional; the weather fragment falls back to the asleep marker
            self._error_count += 1
            self.logger.exception("Continuous scan error")
        finally:
            if self._is_scanning and self._scanner:
                try:
                    await self._scanner.stop()
                except Exception as e:
                    self.logger.warning(f"Error stopping scanner: {e}")
                self._is_scanning = False

    def is_scanning(self) -> bool:
        """Check if scanner is currently scanning."""
        return self._is_scanning

    def get_last_readings(self) -> Dict[str, LightReading]:
        """Latest reading per beacon address."""
        return self._last_readings.copy()

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get scanner statistics.

        Returns:
            Dict[str, Any]: Scanner statistics
        """
        return {
            "reading_count": self._reading_count,
            "ignored_count": self._ignored_count,
            "error_count": self._error_count,
            "last_reading_time": self._last_reading_time,
            "is_scanning": self._is_scanning,
            "beacons_seen": len(self._last_readings),
            "callbacks_registered": len(self._callbacks)
        }

    async def cleanup(self):
        """Cleanup scanner resources."""
        await self.stop_continuous_scan()
        self._scanner = None
        self._callbacks.clear()
        self._last_readings.clear()

        self.logger.info("BLE scanner cleanup completed")
