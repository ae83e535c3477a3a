"""
Pytest configuration and shared fixtures for Home Status Bot tests.
Provides common test fixtures, mock objects, and test utilities.
"""

import pytest
from pathlib import Path
from unittest.mock import Mock, AsyncMock, MagicMock
from typing import Dict

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from homebot.utils.config import Config
from homebot.status.publisher import Publisher
from homebot.status.store import StatusStore


@pytest.fixture
def mock_config(tmp_path):
    """Create a mock configuration for testing."""
    config = Mock(spec=Config)

    # Collaborators
    config.netatmo_api_base_url = "https://api.netatmo.test"
    config.netatmo_client_id = "client-id"
    config.netatmo_client_secret = "client-secret"
    config.netatmo_username = "user@example.com"
    config.netatmo_password = "secret"
    config.netatmo_refresh_token = None
    config.bravia_host = "192.168.10.4"
    config.bravia_port = 80
    config.bravia_psk = "0000"
    config.twitter_api_base_url = "https://api.twitter.test"
    config.twitter_upload_base_url = "https://upload.twitter.test"
    config.http_timeout = 5.0

    # Cadence
    config.weather_poll_interval = 300.0
    config.display_poll_interval = 60.0
    config.capture_enabled = True
    config.capture_cooldown = 900.0

    # Camera
    config.camera_command = "libcamera-still"
    config.camera_output_path = tmp_path / "raspicam.jpg"
    config.camera_width = 1280
    config.camera_height = 720
    config.camera_quality = 70
    config.camera_timeout_ms = 2000
    config.camera_process_timeout = 30.0

    # BLE configuration
    config.ble_adapter = "auto"
    config.ble_scan_duration = 0.1
    config.beacon_name_pattern = "^BLECAST_BL"

    config.publish_dry_run = False

    # Logging configuration
    config.log_level = "DEBUG"
    config.log_dir = tmp_path / "logs"
    config.log_max_file_size = 1024 * 1024  # 1MB
    config.log_backup_count = 2
    config.log_enable_console = False
    config.log_enable_syslog = False
    config.performance_log_interval = 60

    return config


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    logger = Mock()
    logger.debug = Mock()
    logger.info = Mock()
    logger.warning = Mock()
    logger.error = Mock()
    logger.exception = Mock()
    return logger


@pytest.fixture
def mock_performance_monitor():
    """Create a mock performance monitor for testing."""
    monitor = Mock()
    monitor.record_metric = Mock()
    monitor.log_poll = Mock()

    mock_context = MagicMock()
    mock_context.__enter__ = Mock(return_value=mock_context)
    mock_context.__exit__ = Mock(return_value=None)
    monitor.measure_time.return_value = mock_context

    return monitor


@pytest.fixture
def store():
    """Fresh status store with start-up defaults."""
    return StatusStore()


@pytest.fixture
def mock_publisher():
    """Publisher double recording publish and upload calls."""
    publisher = Mock(spec=Publisher)
    publisher.publish = AsyncMock(return_value=True)
    publisher.upload_photo = AsyncMock(return_value="media-123")
    return publisher


@pytest.fixture
def station_device() -> Dict:
    """Netatmo device record with a complete reading."""
    return {
        '_id': '70:ee:50:00:00:01',
        'station_name': 'Home',
        'dashboard_data': {
            'Temperature': 21,
            'Humidity': 55,
            'Pressure': 1008,
            'CO2': 450,
            'Noise': 40,
        },
    }


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "requires_bluetooth: mark test as requiring Bluetooth hardware"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
