"""List devices known to the daemon."""

import typer

from gpsd_json.app_context import use_context
from gpsd_json.errors import GpsdJsonError


def devices(ctx: typer.Context) -> None:
    """List GPS devices attached to gpsd."""
    app = use_context(ctx)
    with app.connect() as client:
        try:
            result = client.devices()
        except GpsdJsonError as e:
            app.out.print_error_and_exit(e.code, str(e))
    app.out.print_devices(result)
