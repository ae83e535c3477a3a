#!/usr/bin/env python3
"""
Home Status Bot - Main Entry Point

Polls a Netatmo weather station, a Sony Bravia TV and a BLE light beacon,
and tweets a short composite status (with a photo every 15 minutes).

Usage:
    python main.py --help                 # Show help
    python main.py run                    # Run the bot
    python main.py status                 # Poll once and print the status
    python main.py scan                   # Listen for light beacons
    python main.py config                 # Validate configuration
    python main.py capture --dry-run      # One photo cycle without posting

Environment Setup:
    Copy and configure the environment file:
    cp .env.sample .env
    # Edit .env with your credentials

Requirements:
    - Python 3.8+
    - Bluetooth adapter available
    - Camera tool (libcamera-still or raspistill) for photos
"""

import sys
from pathlib import Path

from homebot.cli.menu import cli


def check_environment():
    """Check if the environment is properly set up."""
    issues = []

    if sys.version_info < (3, 8):
        issues.append(f"Python 3.8+ required, found {sys.version_info.major}.{sys.version_info.minor}")

    env_file = Path(__file__).parent / ".env"
    if not env_file.exists():
        issues.append(".env file not found. Copy .env.sample to .env and configure it")

    return issues


def main():
    """Main entry point with environment validation."""
    issues = check_environment()
    if issues:
        print("Environment issues found:")
        for issue in issues:
            print(f"   - {issue}")
        print("\nQuick Setup:")
        print("1. Install dependencies: pip install -e .")
        print("2. Copy environment file: cp .env.sample .env")
        print("3. Edit .env with your credentials")
        print("4. Run again: python main.py run")
        sys.exit(1)

    try:
        cli()
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
