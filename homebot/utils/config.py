"""
Configuration management for the Home Status Bot.
Loads configuration from environment variables with validation and defaults.
"""

import os
import re
import sys
from pathlib import Path
from typing import Optional, Union
from dotenv import load_dotenv
import logging


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


class Config:
    """
    Configuration manager that loads settings from environment variables.
    Provides validation and type conversion for configuration values.
    """

    def __init__(self, env_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            env_file: Path to .env file (defaults to .env in project root)
        """
        self.logger = logging.getLogger(__name__)

        if env_file is None:
            env_file = Path(__file__).parent.parent.parent / ".env"

        if Path(env_file).exists():
            load_dotenv(env_file)
            self.logger.info(f"Loaded configuration from {env_file}")
        else:
            self.logger.warning(f"Environment file {env_file} not found, using system environment")

        if self.get_bool("VIRTUAL_ENV_REQUIRED", False):
            self._check_virtual_environment()

    def _check_virtual_environment(self):
        """Check if running in a virtual environment."""
        if not self.is_virtual_environment():
            raise ConfigurationError(
                "Virtual environment required but not detected. "
                "Please activate the virtual environment or set VIRTUAL_ENV_REQUIRED=false"
            )

    def get_str(self, key: str, default: Optional[str] = None) -> str:
        """Get string configuration value."""
        value = os.getenv(key, default)
        if value is None:
            raise ConfigurationError(f"Required configuration key '{key}' not found")
        return value

    def get_optional_str(self, key: str) -> Optional[str]:
        """Get string configuration value, or None when unset or blank."""
        value = os.getenv(key)
        if value is None or not value.strip():
            return None
        return value

    def get_int(self, key: str, default: Optional[int] = None) -> int:
        """Get integer configuration value."""
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise ConfigurationError(f"Required configuration key '{key}' not found")
            return default

        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"Configuration key '{key}' must be an integer, got '{value}'")

    def get_float(self, key: str, default: Optional[float] = None) -> float:
        """Get float configuration value."""
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise ConfigurationError(f"Required configuration key '{key}' not found")
            return default

        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"Configuration key '{key}' must be a float, got '{value}'")

    def get_bool(self, key: str, default: Optional[bool] = None) -> bool:
        """Get boolean configuration value."""
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise ConfigurationError(f"Required configuration key '{key}' not found")
            return default

        return value.lower() in ('true', '1', 'yes', 'on', 'enabled')

    def get_path(self, key: str, default: Optional[Union[str, Path]] = None) -> Path:
        """Get path configuration value."""
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise ConfigurationError(f"Required configuration key '{key}' not found")
            value = str(default)

        path = Path(value)
        if not path.is_absolute():
            # Relative paths are resolved against the project root
            project_root = Path(__file__).parent.parent.parent
            path = project_root / path

        return path

    # Netatmo weather station
    @property
    def netatmo_client_id(self) -> str:
        return self.get_str("NETATMO_CLIENT_ID")

    @property
    def netatmo_client_secret(self) -> str:
        return self.get_str("NETATMO_CLIENT_SECRET")

    @property
    def netatmo_username(self) -> Optional[str]:
        return self.get_optional_str("NETATMO_USERNAME")

    @property
    def netatmo_password(self) -> Optional[str]:
        return self.get_optional_str("NETATMO_PASSWORD")

    @property
    def netatmo_refresh_token(self) -> Optional[str]:
        return self.get_optional_str("NETATMO_REFRESH_TOKEN")

    @property
    def netatmo_api_base_url(self) -> str:
        return self.get_str("NETATMO_API_BASE_URL", "https://api.netatmo.com").rstrip("/")

    # Bravia TV
    @property
    def bravia_host(self) -> str:
        return self.get_str("BRAVIA_HOST")

    @property
    def bravia_port(self) -> int:
        return self.get_int("BRAVIA_PORT", 80)

    @property
    def bravia_psk(self) -> str:
        return self.get_str("BRAVIA_PSK", "0000")

    # Twitter
    @property
    def twitter_consumer_key(self) -> str:
        return self.get_str("TWITTER_CONSUMER_KEY")

    @property
    def twitter_consumer_secret(self) -> str:
        return self.get_str("TWITTER_CONSUMER_SECRET")

    @property
    def twitter_access_token_key(self) -> str:
        return self.get_str("TWITTER_ACCESS_TOKEN_KEY")

    @property
    def twitter_access_token_secret(self) -> str:
        return self.get_str("TWITTER_ACCESS_TOKEN_SECRET")

    @property
    def twitter_api_base_url(self) -> str:
        return self.get_str("TWITTER_API_BASE_URL", "https://api.twitter.com").rstrip("/")

    @property
    def twitter_upload_base_url(self) -> str:
        return self.get_str("TWITTER_UPLOAD_BASE_URL", "https://upload.twitter.com").rstrip("/")

    @property
    def http_timeout(self) -> float:
        return self.get_float("HTTP_TIMEOUT", 10.0)

    # Polling cadence (seconds)
    @property
    def weather_poll_interval(self) -> float:
        return self.get_float("WEATHER_POLL_INTERVAL", 300.0)

    @property
    def display_poll_interval(self) -> float:
        return self.get_float("DISPLAY_POLL_INTERVAL", 60.0)

    # Camera / capture workflow
    @property
    def capture_enabled(self) -> bool:
        return self.get_bool("CAPTURE_ENABLED", True)

    @property
    def capture_cooldown(self) -> float:
        return self.get_float("CAPTURE_COOLDOWN", 15 * 60.0)

    @property
    def camera_command(self) -> str:
        return self.get_str("CAMERA_COMMAND", "libcamera-still")

    @property
    def camera_output_path(self) -> Path:
        return self.get_path("CAMERA_OUTPUT_PATH", "/tmp/raspicam.jpg")

    @property
    def camera_width(self) -> int:
        return self.get_int("CAMERA_WIDTH", 1280)

    @property
    def camera_height(self) -> int:
        return self.get_int("CAMERA_HEIGHT", 720)

    @property
    def camera_quality(self) -> int:
        return self.get_int("CAMERA_QUALITY", 70)

    @property
    def camera_timeout_ms(self) -> int:
        return self.get_int("CAMERA_TIMEOUT_MS", 2000)

    @property
    def camera_process_timeout(self) -> float:
        return self.get_float("CAMERA_PROCESS_TIMEOUT", 30.0)

    # BLE beacon
    @property
    def ble_adapter(self) -> str:
        return self.get_str("BLE_ADAPTER", "auto")

    @property
    def ble_scan_duration(self) -> float:
        return self.get_float("BLE_SCAN_DURATION", 10.0)

    @property
    def beacon_name_pattern(self) -> str:
        return self.get_str("BEACON_NAME_PATTERN", "^BLECAST_BL")

    # Publishing
    @property
    def publish_dry_run(self) -> bool:
        return self.get_bool("PUBLISH_DRY_RUN", False)

    # Logging Configuration
    @property
    def log_level(self) -> str:
        return self.get_str("LOG_LEVEL", "INFO").upper()

    @property
    def log_dir(self) -> Path:
        return self.get_path("LOG_DIR", "./logs")

    @property
    def log_max_file_size(self) -> int:
        return self.get_int("LOG_MAX_FILE_SIZE", 10 * 1024 * 1024)  # 10MB

    @property
    def log_backup_count(self) -> int:
        return self.get_int("LOG_BACKUP_COUNT", 5)

    @property
    def log_enable_console(self) -> bool:
        return self.get_bool("LOG_ENABLE_CONSOLE", True)

    @property
    def log_enable_syslog(self) -> bool:
        return self.get_bool("LOG_ENABLE_SYSLOG", False)

    # Performance Monitoring
    @property
    def performance_log_interval(self) -> int:
        return self.get_int("PERFORMANCE_LOG_INTERVAL", 300)

    def validate_configuration(self) -> bool:
        """
        Validate all configuration values.

        Returns:
            bool: True if configuration is valid

        Raises:
            ConfigurationError: If configuration is invalid
        """
        errors = []

        # Netatmo
        try:
            if not self.netatmo_client_id:
                errors.append("NETATMO_CLIENT_ID cannot be empty")
            if not self.netatmo_client_secret:
                errors.append("NETATMO_CLIENT_SECRET cannot be empty")
            if not self.netatmo_refresh_token and not (self.netatmo_username and self.netatmo_password):
                errors.append("Either NETATMO_REFRESH_TOKEN or NETATMO_USERNAME/NETATMO_PASSWORD must be set")
        except ConfigurationError as e:
            errors.append(str(e))

        # Bravia
        try:
            if not self.bravia_host:
                errors.append("BRAVIA_HOST cannot be empty")
            if self.bravia_port < 1 or self.bravia_port > 65535:
                errors.append("BRAVIA_PORT must be between 1 and 65535")
        except ConfigurationError as e:
            errors.append(str(e))

        # Twitter credentials are only needed when actually posting
        if not self.publish_dry_run:
            for key in ("TWITTER_CONSUMER_KEY", "TWITTER_CONSUMER_SECRET",
                        "TWITTER_ACCESS_TOKEN_KEY", "TWITTER_ACCESS_TOKEN_SECRET"):
                try:
                    if not self.get_str(key):
                        errors.append(f"{key} cannot be empty")
                except ConfigurationError as e:
                    errors.append(str(e))

        # Cadence
        try:
            if self.weather_poll_interval <= 0:
                errors.append("WEATHER_POLL_INTERVAL must be positive")
            if self.display_poll_interval <= 0:
                errors.append("DISPLAY_POLL_INTERVAL must be positive")
            if self.capture_cooldown <= 0:
                errors.append("CAPTURE_COOLDOWN must be positive")
            if self.http_timeout <= 0:
                errors.append("HTTP_TIMEOUT must be positive")
        except ConfigurationError as e:
            errors.append(str(e))

        # Camera
        try:
            if not 1 <= self.camera_quality <= 100:
                errors.append("CAMERA_QUALITY must be between 1 and 100")
            if self.camera_width <= 0 or self.camera_height <= 0:
                errors.append("CAMERA_WIDTH and CAMERA_HEIGHT must be positive")
        except ConfigurationError as e:
            errors.append(str(e))

        # Beacon
        try:
            re.compile(self.beacon_name_pattern)
        except re.error as e:
            errors.append(f"BEACON_NAME_PATTERN is not a valid regular expression: {e}")

        try:
            valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
            if self.log_level not in valid_levels:
                errors.append(f"LOG_LEVEL must be one of {valid_levels}")
        except ConfigurationError as e:
            errors.append(str(e))

        if errors:
            raise ConfigurationError("Configuration validation failed:\n" + "\n".join(f"- {error}" for error in errors))

        return True

    def get_summary(self) -> dict:
        """Get configuration summary for logging/debugging. Secrets are never included."""
        return {
            'netatmo': {
                'api_base_url': self.netatmo_api_base_url,
                'grant': 'refresh_token' if self.netatmo_refresh_token else 'password',
            },
            'bravia': {
                'host': os.getenv("BRAVIA_HOST", ""),
                'port': self.bravia_port,
            },
            'twitter': {
                'api_base_url': self.twitter_api_base_url,
                'upload_base_url': self.twitter_upload_base_url,
                'dry_run': self.publish_dry_run,
            },
            'polling': {
                'weather_interval': self.weather_poll_interval,
                'display_interval': self.display_poll_interval,
                'http_timeout': self.http_timeout,
            },
            'capture': {
                'enabled': self.capture_enabled,
                'cooldown': self.capture_cooldown,
                'command': self.camera_command,
                'output_path': str(self.camera_output_path),
                'resolution': f"{self.camera_width}x{self.camera_height}",
                'quality': self.camera_quality,
            },
            'ble': {
                'adapter': self.ble_adapter,
                'scan_duration': self.ble_scan_duration,
                'name_pattern': self.beacon_name_pattern,
            },
            'logging': {
                'level': self.log_level,
                'dir': str(self.log_dir),
                'enable_console': self.log_enable_console,
                'enable_syslog': self.log_enable_syslog,
            },
        }

    def validate_environment(self):
        """Validate environment and configuration."""
        return self.validate_configuration()

    def is_virtual_environment(self) -> bool:
        """Check if running in a virtual environment."""
        return (hasattr(sys, 'real_prefix') or
                (hasattr(sys, 'base_prefix') and sys.base_prefix != sys.prefix) or
                'VIRTUAL_ENV' in os.environ)
