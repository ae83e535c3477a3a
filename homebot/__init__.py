"""
Home Status Bot - a home monitoring bot that tweets what the house is doing.

Polls a Netatmo weather station, a Sony Bravia TV and a BLE light-sensor
beacon, folds their readings into one short status line and posts it to
Twitter whenever it changes, plus a photo every cooldown period.

Features:
- Continuous BLE beacon listening for ambient light
- Change-driven publication with duplicate suppression
- Periodic camera capture and photo posting
- Configuration management with environment variables
- Logging and performance monitoring
"""

__version__ = "1.0.0"
__author__ = "Home Status Bot Team"
__description__ = "Home status bot for weather, TV and light"

# Package imports for convenience
from .utils.config import Config
from .utils.logging import ProductionLogger, PerformanceMonitor
from .status.store import StatusStore
from .status.light import LightLevelSampler
from .status.publisher import Publisher
from .service.daemon import HomeBotDaemon

__all__ = [
    "Config",
    "ProductionLogger",
    "PerformanceMonitor",
    "StatusStore",
    "LightLevelSampler",
    "Publisher",
    "HomeBotDaemon",
]
