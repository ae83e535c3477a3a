"""
Unit tests for logging setup and performance monitoring.
"""

import logging
from unittest.mock import Mock

from homebot.utils.logging import PerformanceMonitor, ProductionLogger


class TestPerformanceMonitor:
    """Test suite for PerformanceMonitor."""

    def setup_method(self):
        self.monitor = PerformanceMonitor(Mock())

    def test_poll_summary_per_source(self):
        self.monitor.log_poll("weather", 0.5, True)
        self.monitor.log_poll("weather", 1.5, True)
        self.monitor.log_poll("weather", 9.0, False)
        self.monitor.log_poll("display", 0.2, True)

        summary = self.monitor.get_performance_summary()

        assert summary["polls"]["weather"] == {'total': 3, 'successful': 2, 'avg_duration': 1.0}
        assert summary["polls"]["display"]["total"] == 1
        assert summary["uptime_seconds"] >= 0

    def test_measure_time_records_duration(self):
        with self.monitor.measure_time("ble_scan"):
            pass

        metrics = self.monitor.get_metrics()
        assert len(metrics["ble_scan_duration"]) == 1
        assert metrics["ble_scan_duration"][0]["value"] >= 0

    def test_record_metric(self):
        self.monitor.record_metric("ble_scan_errors", 1)
        self.monitor.record_metric("ble_scan_errors", 1)

        assert len(self.monitor.get_metrics()["ble_scan_errors"]) == 2

    def test_system_resources(self):
        self.monitor.log_system_resources()

        metrics = self.monitor.get_metrics()
        assert len(metrics["memory_usage"]) == 1
        assert metrics["memory_usage"][0]["rss"] > 0

    def test_history_is_capped(self):
        monitor = PerformanceMonitor(Mock(), history_limit=3)

        for i in range(5):
            monitor.log_poll("weather", float(i), True)
            monitor.record_metric("ble_scan_errors", i)

        metrics = monitor.get_metrics()
        assert [p["duration"] for p in metrics["polls"]] == [2.0, 3.0, 4.0]
        assert [m["value"] for m in metrics["ble_scan_errors"]] == [2, 3, 4]
        assert monitor.get_performance_summary()["polls"]["weather"]["total"] == 3


class TestProductionLogger:
    """Test suite for ProductionLogger."""

    def setup_method(self):
        root = logging.getLogger()
        self._saved_handlers = root.handlers[:]
        self._saved_level = root.level

    def teardown_method(self):
        root = logging.getLogger()
        for handler in root.handlers:
            if handler not in self._saved_handlers:
                handler.close()
        root.handlers[:] = self._saved_handlers
        root.setLevel(self._saved_level)
        for name in ('homebot.ble', 'homebot.publish', 'homebot.performance'):
            for handler in logging.getLogger(name).handlers[:]:
                handler.close()
                logging.getLogger(name).removeHandler(handler)

    def test_creates_log_files(self, tmp_path):
        ProductionLogger(log_dir=str(tmp_path), log_level="DEBUG", enable_console=False)

        logging.getLogger('homebot.publish').info("POST test")
        for handler in logging.getLogger().handlers + logging.getLogger('homebot.publish').handlers:
            handler.flush()

        assert (tmp_path / "homebot.log").exists()
        assert "POST test" in (tmp_path / "publish.log").read_text(encoding="utf-8")
        assert logging.getLogger().level == logging.DEBUG
