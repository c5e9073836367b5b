"""CLI entry point for gpsd-json."""

from pathlib import Path
from typing import Annotated

import typer
from mm_clikit import TyperPlus

from gpsd_json.app_context import AppContext
from gpsd_json.commands.devices import devices
from gpsd_json.commands.poll import poll
from gpsd_json.commands.version import version
from gpsd_json.commands.watch import watch
from gpsd_json.config import Config
from gpsd_json.log import setup_logging
from gpsd_json.output import Output

app = TyperPlus(package_name="gpsd-json")


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON.")] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path.")] = None,
    host: Annotated[str | None, typer.Option("--host", help="gpsd host.")] = None,
    port: Annotated[int | None, typer.Option("--port", help="gpsd TCP port.")] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Log protocol traffic.")] = False,
) -> None:
    """Query and stream GPS data from gpsd."""
    cfg = Config.build(data_dir, host=host, port=port)
    cfg.data_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(cfg.log_path, debug=debug)
    ctx.obj = AppContext(out=Output(json_mode=json_output), cfg=cfg)


# Queries
app.command(aliases=["v"])(version)
app.command(aliases=["d"])(devices)
app.command(aliases=["p"])(poll)

# Streaming
app.command(aliases=["w"])(watch)
