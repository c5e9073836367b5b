"""Poll the latest fix."""

import typer

from gpsd_json.app_context import use_context
from gpsd_json.errors import GpsdJsonError


def poll(ctx: typer.Context) -> None:
    """Print a snapshot of the latest fixes (watching must be enabled for gpsd to have one)."""
    app = use_context(ctx)
    with app.connect() as client:
        try:
            client.watch_mode(True)
            snapshot = client.poll()
        except GpsdJsonError as e:
            app.out.print_error_and_exit(e.code, str(e))
    app.out.print_poll(snapshot)
