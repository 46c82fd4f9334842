"""Command-line interface for the node problem detector."""

import json
import logging
import sys
from pathlib import Path

import click
from click.core import ParameterSource
from rich.console import Console
from rich.table import Table
from rich.text import Text

from node_problem_detector import __version__
from node_problem_detector.aggregator import Aggregator
from node_problem_detector.client import DetectorClient, DetectorError
from node_problem_detector.config import (
    DEFAULT_ROOT_DIR,
    CONFIG_FILENAME,
    AggregatorConfig,
    ConfigError,
    DetectorConfig,
    discover_check_configs,
    get_auth_token,
    load_settings,
    normalize_port,
    parse_duration,
    save_check_configs,
)
from node_problem_detector.controller import EligibilityController
from node_problem_detector.detector import Detector
from node_problem_detector.models import HealthCheck, Node
from node_problem_detector.orchestrator import NomadClient

console = Console()

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"])


def setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


class Duration(click.ParamType):
    """Duration given as ``15s``, ``1m``, ``500ms`` or plain seconds."""

    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, float):
            return value
        try:
            return parse_duration(value)
        except ConfigError as e:
            self.fail(str(e), param, ctx)


DURATION = Duration()


def result_style(check: HealthCheck) -> str:
    """Get Rich color for a check result."""
    return "red" if check.unhealthy else "green"


def create_checks_table(checks: list[HealthCheck], title: str) -> Table:
    """Create a Rich table listing health check results."""
    table = Table(title=title, show_header=True, header_style="bold")

    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Result", justify="center")
    table.add_column("Message")

    for check in sorted(checks, key=lambda c: c.type):
        table.add_row(
            check.type,
            Text(check.result, style=result_style(check)),
            check.message,
        )

    return table


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Node Problem Detector - take unhealthy nodes out of scheduling."""
    pass


def detector_options(func):
    """Options shared by commands that evaluate local checks."""
    options = [
        click.option("--root-dir", default=DEFAULT_ROOT_DIR, show_default=True,
                     help="Directory holding config.json and health check scripts"),
        click.option("-c", "--config", "config_path", type=click.Path(exists=True),
                     help=f"Check config file (default: <root-dir>/{CONFIG_FILENAME})"),
        click.option("--cpu-limit", default=85.0, show_default=True,
                     help="CPU usage percentage above which the node is under pressure"),
        click.option("--memory-limit", default=10.0, show_default=True,
                     help="Available memory percentage below which the node is under pressure"),
        click.option("--disk-limit", default=90.0, show_default=True,
                     help="Disk usage percentage above which the node is under pressure"),
        click.option("--disk-path", default="/", show_default=True,
                     help="Mount point checked for disk usage"),
        click.option("--script-timeout", default="30s", type=DURATION, show_default=True,
                     help="Timeout for a single health check script"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


SETTINGS_OPTION = click.option(
    "--settings", type=click.Path(exists=True, dir_okay=False),
    help="YAML settings file; options given on the command line take precedence",
)


def merge_settings(ctx: click.Context, settings: str | None, fields: dict[str, str]) -> dict:
    """Combine a settings file with the command's options.

    ``fields`` maps config field names to click parameter names. Without a
    settings file every option value is used. With one, only options given
    explicitly override the file.
    """
    data = load_settings(settings) if settings else {}
    for name, param in fields.items():
        source = ctx.get_parameter_source(param)
        if not settings or source is not ParameterSource.DEFAULT:
            data[name] = ctx.params[param]
    return data


@main.command()
@detector_options
@click.option("--host", default="0.0.0.0", show_default=True, help="Detector HTTP host")
@click.option("-p", "--port", default=8083, type=int, show_default=True, help="Detector HTTP port")
@click.option("--cpu-monitoring-interval", default="10s", type=DURATION, show_default=True,
              help="Time between CPU checks")
@click.option("--memory-monitoring-interval", default="10s", type=DURATION, show_default=True,
              help="Time between memory checks")
@click.option("--disk-monitoring-interval", default="1m", type=DURATION, show_default=True,
              help="Time between disk checks")
@click.option("-t", "--detector-cycle-time", default="3s", type=DURATION, show_default=True,
              help="Time between runs of each health check script")
@SETTINGS_OPTION
@click.option("--log-level", default="INFO", type=LOG_LEVELS, help="Logging level")
@click.pass_context
def detector(ctx: click.Context, settings: str | None, log_level: str, **options) -> None:
    """Run health checks on this node and serve them over HTTP."""
    setup_logging(log_level)

    try:
        cfg = DetectorConfig.from_dict(merge_settings(ctx, settings, {
            "host": "host",
            "port": "port",
            "root_dir": "root_dir",
            "config_path": "config_path",
            "cpu_limit": "cpu_limit",
            "memory_limit": "memory_limit",
            "disk_limit": "disk_limit",
            "disk_path": "disk_path",
            "cpu_interval": "cpu_monitoring_interval",
            "memory_interval": "memory_monitoring_interval",
            "disk_interval": "disk_monitoring_interval",
            "detector_cycle_time": "detector_cycle_time",
            "script_timeout": "script_timeout",
        }))
        node_detector = Detector(cfg)
    except ConfigError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    console.print(f"[green]Starting detector at http://{cfg.host}:{cfg.port}[/]")
    node_detector.serve()


@main.command()
@click.option("-t", "--aggregation-cycle-time", default="15s", type=DURATION, show_default=True,
              help="Time to wait between each aggregation cycle")
@click.option("-p", "--detector-port", default=":8083", show_default=True,
              help="Detector HTTP server port")
@click.option("-s", "--nomad-server", default="http://localhost:4646", show_default=True,
              help="HTTP API address of a Nomad server or agent")
@click.option("--timeout", default="5s", type=DURATION, show_default=True,
              help="Timeout for each HTTP request")
@SETTINGS_OPTION
@click.option("--log-level", default="INFO", type=LOG_LEVELS, help="Logging level")
@click.pass_context
def aggregator(ctx: click.Context, settings: str | None, log_level: str, **options) -> None:
    """Poll every node's detector and toggle its scheduling eligibility."""
    setup_logging(log_level)

    try:
        cfg = AggregatorConfig.from_dict(merge_settings(ctx, settings, {
            "cycle_time": "aggregation_cycle_time",
            "detector_port": "detector_port",
            "nomad_server": "nomad_server",
            "timeout": "timeout",
        }))
    except ConfigError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    nomad = NomadClient(cfg.nomad_server, token=cfg.nomad_token, timeout=cfg.timeout)
    detectors = DetectorClient(cfg.detector_port, token=cfg.auth_token, timeout=cfg.timeout)
    loop = Aggregator(nomad, EligibilityController(nomad, detectors), cycle_time=cfg.cycle_time)
    loop.install_signal_handlers()

    console.print(f"[green]Aggregating node health from {cfg.nomad_server}[/]")
    try:
        loop.run()
    finally:
        detectors.close()
        nomad.close()


@main.command()
@detector_options
@click.option("--json", "output_json", is_flag=True, help="Output in JSON format")
@click.option("--log-level", default="WARNING", type=LOG_LEVELS, help="Logging level")
def check(
    root_dir: str,
    config_path: str | None,
    cpu_limit: float,
    memory_limit: float,
    disk_limit: float,
    disk_path: str,
    script_timeout: float,
    output_json: bool,
    log_level: str,
) -> None:
    """Run every health check once on this node and print the results."""
    setup_logging(log_level)

    cfg = DetectorConfig(
        root_dir=root_dir,
        config_path=config_path,
        cpu_limit=cpu_limit,
        memory_limit=memory_limit,
        disk_limit=disk_limit,
        disk_path=disk_path,
        script_timeout=script_timeout,
    )

    try:
        node_detector = Detector(cfg)
    except ConfigError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    for health_check in node_detector.checks:
        node_detector.run_check(health_check)
    results = node_detector.registry.snapshot()

    if output_json:
        click.echo(json.dumps([c.to_dict() for c in results], indent=2))
    else:
        console.print(create_checks_table(results, "Local Health Checks"))

    # Exit with error code if any check is failing
    if any(c.unhealthy for c in results):
        sys.exit(1)


@main.command()
@click.argument("address")
@click.option("-p", "--detector-port", default=":8083", show_default=True,
              help="Detector HTTP server port")
@click.option("--timeout", default="5s", type=DURATION, show_default=True,
              help="Request timeout")
@click.option("--json", "output_json", is_flag=True, help="Output in JSON format")
def status(address: str, detector_port: str, timeout: float, output_json: bool) -> None:
    """Show the health checks reported by the detector at ADDRESS."""
    setup_logging("WARNING")

    try:
        port = normalize_port(detector_port)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="--detector-port")

    node = Node(id=address, address=address)
    with DetectorClient(port, token=get_auth_token(), timeout=timeout) as client:
        try:
            if not client.is_active(node):
                console.print(f"[red]Detector on {address} is not healthy[/]")
                sys.exit(2)
            results = client.fetch_health(node)
        except DetectorError as e:
            console.print(f"[red]{e}[/]")
            sys.exit(2)

    if output_json:
        click.echo(json.dumps([c.to_dict() for c in results], indent=2))
    else:
        console.print(create_checks_table(results, f"Health: {address}"))

    if any(c.unhealthy for c in results):
        sys.exit(1)


@main.group()
def config() -> None:
    """Manage the detector check config."""
    pass


@config.command()
@click.option("--root-dir", default=DEFAULT_ROOT_DIR, show_default=True,
              help="Directory holding one <type>/health_check script per check")
@click.option("-o", "--output", help=f"Output file path (default: <root-dir>/{CONFIG_FILENAME})")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing file")
def generate(root_dir: str, output: str | None, force: bool) -> None:
    """Create a check config from the scripts under --root-dir."""
    path = Path(output) if output else Path(root_dir) / CONFIG_FILENAME

    if path.exists() and not force:
        console.print(f"[red]File already exists: {path}[/]")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        configs = discover_check_configs(root_dir)
    except ConfigError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    save_check_configs(configs, path)
    console.print(f"[green]Wrote {len(configs)} health checks to {path}[/]")


if __name__ == "__main__":
    main()
