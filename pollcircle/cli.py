import time

import click
from flask import current_app

from .services import get_services


def register_cli(app):
    @app.cli.command("sweep-polls")
    @click.option("--loop", is_flag=True, help="Keep running instead of sweeping once.")
    @click.option(
        "--every-hours",
        type=click.IntRange(min=1),
        default=None,
        help="Interval for --loop (default RETENTION_SWEEP_INTERVAL_HOURS).",
    )
    def sweep_polls(loop, every_hours):
        """Delete resolved polls older than RETENTION_DAYS."""
        sweeper = get_services().sweeper
        interval = every_hours or current_app.config["RETENTION_SWEEP_INTERVAL_HOURS"]
        while True:
            deleted = sweeper.sweep()
            click.echo(f"Deleted {deleted} resolved poll(s)")
            if not loop:
                return
            current_app.logger.info("Next retention sweep in %d hour(s)", interval)
            time.sleep(interval * 3600)
