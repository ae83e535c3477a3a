"""
Unit tests for package discovery.
"""

from pathlib import Path

from setuptools import find_namespace_packages

ROOT = Path(__file__).resolve().parents[2]


def test_all_subpackages_are_installed():
    packages = set(find_namespace_packages(where=str(ROOT), include=["homebot*"]))

    expected = {
        'homebot', 'homebot.ble', 'homebot.camera', 'homebot.cli', 'homebot.service',
        'homebot.social', 'homebot.status', 'homebot.tv', 'homebot.utils', 'homebot.weather',
    }
    assert expected <= packages


def test_namespace_discovery_enabled():
    pyproject = (ROOT / "pyproject.toml").read_text(encoding="utf-8")

    assert "namespaces = true" in pyproject
