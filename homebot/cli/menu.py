"""
Command-line interface for the Home Status Bot.
Provides the daemon entry point and one-shot diagnostic commands using click and rich.
"""

import asyncio
import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ..utils.config import Config, ConfigurationError
from ..utils.logging import PerformanceMonitor, setup_logging
from ..ble.scanner import BeaconScanner, ScannerError
from ..camera.raspicam import RaspiCam
from ..service.capture import CaptureWorkflow
from ..service.daemon import run_daemon
from ..service.monitors import DisplayMonitor, WeatherMonitor
from ..social.twitter import TwitterClient
from ..status.light import LightLevelSampler
from ..status.publisher import Publisher
from ..status.store import StatusStore
from ..tv.bravia import BraviaClient
from ..weather.api import NetatmoAPI


console = Console()


def _load_config(validate: bool = True) -> Config:
    try:
        config = Config()
        if validate:
            config.validate_configuration()
        return config
    except ConfigurationError as e:
        console.print(f"[red]Configuration Error: {e}[/red]")
        sys.exit(1)


def _build_publisher(config: Config, dry_run: bool) -> Publisher:
    dry_run = dry_run or config.publish_dry_run
    client: Optional[TwitterClient] = None if dry_run else TwitterClient(config)
    return Publisher(client, dry_run=dry_run)


@click.group()
@click.version_option(version="1.0.0", prog_name="homebot")
def cli():
    """Home Status Bot - weather, TV and light status posted to Twitter."""
    pass


@cli.command()
def run():
    """Run the bot until interrupted."""
    try:
        asyncio.run(run_daemon())
    except KeyboardInterrupt:
        console.print("\n[yellow]Daemon interrupted by user[/yellow]")


@cli.command()
def status():
    """Poll weather station and TV once and show the composite status (no posting)."""
    config = _load_config()
    setup_logging(config)

    async def poll_once():
        store = StatusStore()
        publisher = Publisher(None, dry_run=True)
        weather = WeatherMonitor(store, publisher, NetatmoAPI(config), LightLevelSampler(),
                                 interval=config.weather_poll_interval)
        display = DisplayMonitor(store, publisher, BraviaClient(config),
                                 interval=config.display_poll_interval)
        store.weather = await weather.poll()
        store.display = await display.poll()
        return store

    store = asyncio.run(poll_once())

    table = Table(title="Current Status")
    table.add_column("Source", style="cyan")
    table.add_column("Fragment")
    table.add_row("Weather + light", store.weather)
    table.add_row("Display", store.display)
    table.add_row("Composite", store.composite(), style="bold")
    console.print(table)


@cli.command()
@click.option("--duration", "-d", default=10.0, help="Scan duration in seconds")
def scan(duration):
    """Listen for light beacons and show their readings."""
    config = _load_config(validate=False)
    setup_logging(config)

    async def run_scan():
        sampler = LightLevelSampler()
        scanner = BeaconScanner(config, performance_monitor=PerformanceMonitor())
        scanner.add_callback(lambda reading: sampler.record(reading.lux))
        try:
            readings = await scanner.scan_once(duration)
        finally:
            await scanner.cleanup()
        return readings, sampler.drain_and_summarize()

    console.print(f"[blue]Scanning for beacons for {duration} seconds...[/blue]")
    try:
        readings, summary = asyncio.run(run_scan())
    except ScannerError as e:
        console.print(f"[red]Scan failed: {e}[/red]")
        sys.exit(1)

    if not readings:
        console.print("[yellow]No beacons found[/yellow]")
    else:
        table = Table(title="Light Beacons")
        table.add_column("Name", style="cyan")
        table.add_column("Address")
        table.add_column("Lux", justify="right")
        table.add_column("RSSI", justify="right")
        for reading in readings.values():
            table.add_row(reading.name, reading.address, str(reading.lux),
                          str(reading.rssi) if reading.rssi is not None else "-")
        console.print(table)

    console.print(f"Light fragment: {summary!r}")


@cli.command(name="config")
def show_config():
    """Validate configuration and print a summary."""
    config = _load_config(validate=False)

    try:
        config.validate_configuration()
        console.print("[green]Configuration valid[/green]")
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")

    table = Table(title="Configuration")
    table.add_column("Section", style="cyan")
    table.add_column("Setting")
    table.add_column("Value")
    for section, values in config.get_summary().items():
        for key, value in values.items():
            table.add_row(section, key, str(value))
    console.print(table)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Do not upload or post")
def capture(dry_run):
    """Take one photo and post the (default) status with it."""
    config = _load_config()
    setup_logging(config)

    workflow = CaptureWorkflow(
        RaspiCam(config), _build_publisher(config, dry_run), StatusStore(),
        cooldown=config.capture_cooldown
    )
    result = asyncio.run(workflow.run_cycle())

    colour = "green" if result.published else "red"
    console.print(f"[{colour}]photo={'yes' if result.image else 'no'} "
                  f"media={result.media_id} published={result.published}[/{colour}]")


if __name__ == "__main__":
    cli()
