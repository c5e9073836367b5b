"""Show daemon version."""

import typer

from gpsd_json.app_context import use_context
from gpsd_json.errors import GpsdJsonError


def version(ctx: typer.Context) -> None:
    """Show gpsd release and protocol version."""
    app = use_context(ctx)
    with app.connect() as client:
        try:
            info = client.version()
        except GpsdJsonError as e:
            app.out.print_error_and_exit(e.code, str(e))
    app.out.print_version(info)
