"""Application context shared across CLI commands."""

from dataclasses import dataclass

import typer

from gpsd_json.client.blocking import GpsdClient
from gpsd_json.config import Config
from gpsd_json.errors import GpsdJsonError
from gpsd_json.output import Output


@dataclass(frozen=True, slots=True)
class AppContext:
    """Output mode and daemon settings passed through Typer context."""

    out: Output
    cfg: Config

    def connect(self) -> GpsdClient:
        """Connect to the configured daemon, or print the error and exit."""
        try:
            return GpsdClient.from_config(self.cfg)
        except GpsdJsonError as e:
            self.out.print_error_and_exit(e.code, str(e))


def use_context(ctx: typer.Context) -> AppContext:
    """Extract application context from Typer context."""
    result: AppContext = ctx.obj
    return result
