"""
Logging configuration for the Home Status Bot.
Provides logging setup with multiple handlers and lightweight performance monitoring.
"""

import logging
import logging.handlers
import sys
import time
from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import Optional
import colorlog
import psutil
from datetime import datetime


# Entries kept per metric; older ones are discarded
METRIC_HISTORY_LIMIT = 1000


class ProductionLogger:
    """
    Logging setup for long-running deployment with console, rotating file,
    optional syslog and per-component log files.
    """

    def __init__(self,
                 app_name: str = "homebot",
                 log_dir: str = "./logs",
                 log_level: str = "INFO",
                 max_file_size: int = 10 * 1024 * 1024,  # 10MB
                 backup_count: int = 5,
                 enable_console: bool = True,
                 enable_syslog: bool = False):

        self.app_name = app_name
        self.log_dir = Path(log_dir)
        self.log_level = getattr(logging, log_level.upper())
        self.max_file_size = max_file_size
        self.backup_count = backup_count
        self.enable_console = enable_console
        self.enable_syslog = enable_syslog

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_root_logger()
        self._setup_component_loggers()

    def _setup_root_logger(self):
        """Configure root logger with multiple handlers."""
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)

        root_logger.handlers.clear()

        if self.enable_console:
            console_handler = colorlog.StreamHandler(sys.stdout)
            console_handler.setLevel(self.log_level)
            console_formatter = colorlog.ColoredFormatter(
                '%(log_color)s%(asctime)s [%(levelname)8s] %(name)s: %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S',
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            )
            console_handler.setFormatter(console_formatter)
            root_logger.addHandler(console_handler)

        file_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / f"{self.app_name}.log",
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(self.log_level)
        file_formatter = logging.Formatter(
            '%(asctime)s [%(levelname)8s] %(name)s [%(process)d:%(thread)d] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

        # Syslog handler for systemd integration
        if self.enable_syslog:
            try:
                syslog_handler = logging.handlers.SysLogHandler(address='/dev/log')
                syslog_handler.setLevel(logging.WARNING)
                syslog_formatter = logging.Formatter(
                    f'{self.app_name}[%(process)d]: %(levelname)s - %(message)s'
                )
                syslog_handler.setFormatter(syslog_formatter)
                root_logger.addHandler(syslog_handler)
            except OSError as e:
                root_logger.warning(f"Could not setup syslog handler: {e}")

    def _component_handler(self, filename: str, fmt: str) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8"
        )
        handler.setFormatter(logging.Formatter(fmt))
        return handler

    def _setup_component_loggers(self):
        """Configure specific loggers for different components."""
        # Beacon advertisements are chatty, keep them in their own file too
        ble_logger = logging.getLogger('homebot.ble')
        ble_logger.addHandler(self._component_handler(
            "ble_scanner.log", '%(asctime)s [%(levelname)s] BLE: %(message)s'
        ))

        publish_logger = logging.getLogger('homebot.publish')
        publish_logger.addHandler(self._component_handler(
            "publish.log", '%(asctime)s [%(levelname)s] POST: %(message)s'
        ))

        perf_logger = logging.getLogger('homebot.performance')
        perf_logger.addHandler(self._component_handler(
            "performance.log", '%(asctime)s PERF: %(message)s'
        ))

    def get_logger(self, name: str = None) -> logging.Logger:
        """Get a logger instance."""
        if name:
            return logging.getLogger(name)
        return logging.getLogger()


class PerformanceMonitor:
    """
    Poll timing and process resource metrics for debugging a long-running bot.
    """

    def __init__(self, logger=None, history_limit: int = METRIC_HISTORY_LIMIT):
        self.logger = logger or logging.getLogger('homebot.performance')
        self.history_limit = history_limit
        self.metrics = {
            'polls': deque(maxlen=history_limit),
            'memory_usage': deque(maxlen=history_limit),
            'cpu_usage': deque(maxlen=history_limit)
        }
        self.start_time = datetime.now()

    def log_poll(self, source: str, duration: float, success: bool):
        """Log one poll of an external collaborator."""
        self.metrics['polls'].append({
            'source': source,
            'duration': duration,
            'success': success,
            'timestamp': datetime.now()
        })

        self.logger.info(
            f"POLL source={source} duration={duration:.2f}s success={success}"
        )

    def log_system_resources(self):
        """Log current system resource usage."""
        try:
            process = psutil.Process()

            memory_info = process.memory_info()
            cpu_percent = process.cpu_percent()

            self.metrics['memory_usage'].append({
                'rss': memory_info.rss,
                'vms': memory_info.vms,
                'timestamp': datetime.now()
            })

            self.metrics['cpu_usage'].append({
                'cpu_percent': cpu_percent,
                'timestamp': datetime.now()
            })

            self.logger.info(
                f"RESOURCES memory_rss={memory_info.rss/1024/1024:.1f}MB "
                f"memory_vms={memory_info.vms/1024/1024:.1f}MB cpu={cpu_percent:.1f}%"
            )

        except psutil.Error as e:
            self.logger.error(f"Failed to log system resources: {e}")

    def get_performance_summary(self) -> dict:
        """Generate per-source poll summary."""
        summary = {
            'uptime_seconds': (datetime.now() - self.start_time).total_seconds(),
            'polls': {}
        }

        for poll in self.metrics['polls']:
            entry = summary['polls'].setdefault(poll['source'], {
                'total': 0,
                'successful': 0,
                'avg_duration': 0.0
            })
            entry['total'] += 1
            if poll['success']:
                entry['successful'] += 1

        for source, entry in summary['polls'].items():
            durations = [p['duration'] for p in self.metrics['polls']
                         if p['source'] == source and p['success']]
            if durations:
                entry['avg_duration'] = sum(durations) / len(durations)

        return summary

    def record_metric(self, metric_name: str, value: float):
        """Record a metric value."""
        if metric_name not in self.metrics:
            self.metrics[metric_name] = deque(maxlen=self.history_limit)

        self.metrics[metric_name].append({
            'value': value,
            'timestamp': datetime.now()
        })

        self.logger.debug(f"METRIC {metric_name}={value}")

    @contextmanager
    def measure_time(self, operation_name: str):
        """Context manager for measuring operation time."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            self.record_metric(f"{operation_name}_duration", duration)
            self.logger.debug(f"TIMING {operation_name}={duration:.3f}s")

    def get_metrics(self) -> dict:
        """Get all recorded metrics."""
        return self.metrics.copy()


def setup_logging(config=None) -> ProductionLogger:
    """
    Setup logging for the Home Status Bot using configuration.

    Args:
        config: Configuration instance (if None, one is loaded from the environment)

    Returns:
        ProductionLogger instance
    """
    if config is None:
        from .config import Config
        config = Config()

    return ProductionLogger(
        log_level=config.log_level,
        log_dir=str(config.log_dir),
        max_file_size=config.log_max_file_size,
        backup_count=config.log_backup_count,
        enable_console=config.log_enable_console,
        enable_syslog=config.log_enable_syslog
    )
