"""
Unit tests for light beacon advertisement parsing.
"""

import pytest
from datetime import timezone
from unittest.mock import Mock

from homebot.ble.scanner import (
    BeaconScanner, LightReading, parse_light_sample, raw_manufacturer_data
)
from homebot.status.light import LightLevelSampler
from tests.fixtures.beacon_data import BeaconDataFixtures
from tests.mocks.mock_ble_scanner import MockBLEDevice, MockAdvertisementData


class TestManufacturerDataParsing:
    """Test suite for lux extraction from manufacturer data."""

    def setup_method(self):
        self.fixtures = BeaconDataFixtures()

    def test_company_id_is_restored_little_endian(self):
        raw = raw_manufacturer_data({0x004C: b'\x02\x15'})

        assert raw == b'\x4C\x00\x02\x15'

    def test_raw_data_empty(self):
        assert raw_manufacturer_data({}) is None

    def test_lux_is_little_endian_at_offset_four(self):
        """Byte 5 is the high byte."""
        assert parse_light_sample(bytes([0, 0, 0, 0, 0x34, 0x01])) == 308

    def test_valid_samples(self):
        for sample_name, sample in self.fixtures.valid_samples().items():
            raw = raw_manufacturer_data(sample['manufacturer_data'])
            assert parse_light_sample(raw) == sample['expected'], f"Wrong lux for {sample_name}"

    def test_short_samples_are_rejected(self):
        for sample_name, manufacturer_data in self.fixtures.short_samples().items():
            raw = raw_manufacturer_data(manufacturer_data)
            assert parse_light_sample(raw) is None, f"{sample_name} should not parse"

    def test_none_is_rejected(self):
        assert parse_light_sample(None) is None


class TestBeaconScannerParsing:
    """Test suite for advertisement filtering in the scanner."""

    def setup_method(self):
        self.fixtures = BeaconDataFixtures()
        self.scanner = BeaconScanner(Mock(
            ble_scan_duration=0.1,
            ble_adapter="auto",
            beacon_name_pattern="^BLECAST_BL",
        ), Mock(), Mock())

    def _advertisement(self, lux=308, local_name=BeaconDataFixtures.BEACON_NAME):
        return MockAdvertisementData(
            manufacturer_data=self.fixtures.manufacturer_data(lux),
            rssi=-70,
            local_name=local_name,
        )

    def test_matching_beacon_produces_reading(self):
        device = MockBLEDevice("aa:bb:cc:dd:ee:ff")

        reading = self.scanner.parse_advertisement(device, self._advertisement())

        assert isinstance(reading, LightReading)
        assert reading.lux == 308
        assert reading.name == BeaconDataFixtures.BEACON_NAME
        assert reading.address == "AA:BB:CC:DD:EE:FF"
        assert reading.rssi == -70
        assert reading.timestamp.tzinfo == timezone.utc

    def test_device_name_used_when_advertisement_has_none(self):
        device = MockBLEDevice("AA:BB:CC:DD:EE:FF", name="BLECAST_BL 42")

        reading = self.scanner.parse_advertisement(device, self._advertisement(local_name=None))

        assert reading is not None
        assert reading.name == "BLECAST_BL 42"

    def test_unrelated_name_is_ignored(self):
        device = MockBLEDevice("AA:BB:CC:DD:EE:FF")

        assert self.scanner.parse_advertisement(device, self._advertisement(local_name="Ruuvi 1234")) is None

    def test_prefix_must_be_at_start(self):
        device = MockBLEDevice("AA:BB:CC:DD:EE:FF")

        assert self.scanner.parse_advertisement(device, self._advertisement(local_name="X BLECAST_BL")) is None

    def test_nameless_device_is_ignored(self):
        device = MockBLEDevice("AA:BB:CC:DD:EE:FF")

        assert self.scanner.parse_advertisement(device, self._advertisement(local_name=None)) is None

    def test_short_manufacturer_data_is_ignored(self):
        device = MockBLEDevice("AA:BB:CC:DD:EE:FF")
        advertisement = MockAdvertisementData(
            manufacturer_data={BeaconDataFixtures.COMPANY_ID: b'\x02\x15'},
            local_name=BeaconDataFixtures.BEACON_NAME,
        )

        assert self.scanner.parse_advertisement(device, advertisement) is None

    def test_detection_callback_feeds_sampler(self):
        """Accepted readings reach callbacks; ignored ones are only counted."""
        sampler = LightLevelSampler()
        self.scanner.add_callback(lambda reading: sampler.record(reading.lux))
        device = MockBLEDevice("AA:BB:CC:DD:EE:FF")

        self.scanner._detection_callback(device, self._advertisement())
        self.scanner._detection_callback(device, self._advertisement(local_name="other"))

        stats = self.scanner.get_statistics()
        assert stats["reading_count"] == 1
        assert stats["ignored_count"] == 1
        assert sampler.drain_and_summarize() == "💡 308 "

    def test_failing_callback_does_not_stop_others(self):
        received = []

        def broken(reading):
            raise RuntimeError("boom")

        self.scanner.add_callback(broken)
        self.scanner.add_callback(received.append)

        self.scanner._detection_callback(MockBLEDevice("AA:BB:CC:DD:EE:FF"), self._advertisement())

        assert len(received) == 1

    def test_remove_callback(self):
        received = []
        self.scanner.add_callback(received.append)
        self.scanner.remove_callback(received.append)

        self.scanner._detection_callback(MockBLEDevice("AA:BB:CC:DD:EE:FF"), self._advertisement())

        assert received == []
        assert self.scanner.get_statistics()["callbacks_registered"] == 0
