"""
CapacityCore CLI - service runner and one-shot diagnostics.

Commands:
    capacitycore serve                  - Run the HTTP API
    capacitycore check [AGENT]          - Poll agent health once
    capacitycore predict-los CATEGORY   - Length-of-stay prediction
    capacitycore forecast UNIT_ID       - Hourly census forecast
    capacitycore surge                  - Current surge level

Usage:
    capacitycore --data snapshot.yaml surge --facility main
"""

import asyncio
from typing import Optional

import click
from rich.table import Table

from capacitycore.core.app import CapacityCore
from capacitycore.core.exceptions import CapacityCoreError
from capacitycore.core.logging import console, setup_logging
from capacitycore.settings import EnvironmentSettings, Settings

_STATUS_STYLE = {
    "healthy": "green",
    "degraded": "yellow",
    "unhealthy": "red",
    "unreachable": "bold red",
    "normal": "green",
    "warning": "yellow",
    "critical": "red",
    "diversion": "bold red",
}


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


def build_core(ctx: click.Context) -> CapacityCore:
    settings = Settings()
    if ctx.obj.get("data_path"):
        settings.predictive.data_path = ctx.obj["data_path"]
    if ctx.obj.get("agents_path"):
        settings.registry.config_path = ctx.obj["agents_path"]
    return CapacityCore.from_settings(settings)


def styled(value: str) -> str:
    style = _STATUS_STYLE.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


@click.group()
@click.option("--data", "-d", "data_path", type=click.Path(exists=True), help="Capacity data snapshot (YAML)")
@click.option("--agents", "-a", "agents_path", type=click.Path(exists=True), help="Agent catalog (YAML)")
@click.option("--log-level", default=None, help="Log level (default from APP_LOG_LEVEL)")
@click.pass_context
def cli(ctx, data_path: Optional[str], agents_path: Optional[str], log_level: Optional[str]):
    """CapacityCore - agent orchestration and predictive bed capacity."""
    ctx.ensure_object(dict)
    ctx.obj["data_path"] = data_path
    ctx.obj["agents_path"] = agents_path
    setup_logging(level=log_level or EnvironmentSettings().log_level)


@cli.command()
@click.option("--host", default=None, help="Bind host (default from APP_API_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (default from APP_API_PORT)")
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int]):
    """Run the HTTP API with the health scheduler."""
    import uvicorn

    from capacitycore.api.server import CapacityAPI

    core = build_core(ctx)
    api = CapacityAPI(core)
    uvicorn.run(
        api.app,
        host=host or core.settings.app.api_host,
        port=port or core.settings.app.api_port,
        log_config=None,
    )


@cli.command()
@click.argument("agent", required=False)
@click.pass_context
def check(ctx, agent: Optional[str]):
    """Poll every agent (or one AGENT) once and print the results."""

    async def _check():
        core = build_core(ctx)
        try:
            if agent:
                return [await core.monitor.check_one(agent)]
            return (await core.monitor.check_all()).results
        finally:
            await core.close()

    try:
        results = run_async(_check())
    except CapacityCoreError as e:
        raise click.ClickException(e.message) from e

    table = Table(title="Agent health")
    table.add_column("Agent")
    table.add_column("Status")
    table.add_column("Time (ms)", justify="right")
    table.add_column("Detail")
    for result in results:
        table.add_row(
            result.agent_name,
            styled(result.status.value),
            f"{result.response_time_ms:.0f}",
            result.error_message or "",
        )
    console.print(table)


@cli.command("predict-los")
@click.argument("category")
@click.option("--z", type=float, default=None, help="Interval width in standard deviations")
@click.pass_context
def predict_los(ctx, category: str, z: Optional[float]):
    """Predict length of stay for a diagnosis CATEGORY."""

    async def _predict():
        core = build_core(ctx)
        try:
            return await core.engine.predict_los(category, z=z)
        finally:
            await core.close()

    prediction = run_async(_predict())
    interval = prediction.confidence_interval
    console.print(
        f"[bold]{prediction.category}[/bold]: {prediction.predicted_hours:.1f}h "
        f"({interval.lower:.1f}-{interval.upper:.1f}h), "
        f"{prediction.sample_size} samples, source={prediction.source.value}"
    )
    if prediction.insufficient_history:
        console.print("[yellow]Insufficient history: prediction uses baseline data[/yellow]")


@cli.command()
@click.argument("unit_id")
@click.option("--hours", "-h", "hours", type=int, default=None, help="Forecast horizon in hours")
@click.pass_context
def forecast(ctx, unit_id: str, hours: Optional[int]):
    """Forecast hourly census for UNIT_ID."""

    async def _forecast():
        core = build_core(ctx)
        try:
            return await core.engine.forecast_capacity(unit_id, hours)
        finally:
            await core.close()

    try:
        result = run_async(_forecast())
    except (CapacityCoreError, ValueError) as e:
        raise click.ClickException(getattr(e, "message", str(e))) from e

    table = Table(title=f"Forecast for {unit_id} ({result.total_beds} beds)")
    for column in ("Hour", "Time", "Census", "Interval", "Occupancy", "Risk"):
        table.add_column(column)
    for point in result.points:
        table.add_row(
            str(point.hour),
            point.timestamp.strftime("%a %H:%M"),
            f"{point.predicted_census:.1f}",
            f"{point.confidence_interval.lower:.1f}-{point.confidence_interval.upper:.1f}",
            f"{point.occupancy_pct:.1f}%",
            point.risk_level.value,
        )
    console.print(table)
    if result.insufficient_history:
        console.print("[yellow]Insufficient admission history: default pattern used[/yellow]")


@cli.command()
@click.option("--facility", "-f", "facility_id", default=None, help="Facility ID (all units when omitted)")
@click.pass_context
def surge(ctx, facility_id: Optional[str]):
    """Show the current surge level."""

    async def _surge():
        core = build_core(ctx)
        try:
            return await core.engine.check_surge(facility_id)
        finally:
            await core.close()

    status = run_async(_surge())
    console.print(
        f"Surge level: {styled(status.level.value)} at {status.occupancy_pct:.1f}% "
        f"({status.occupied_beds}/{status.total_beds} beds)"
    )
    console.print(f"Trigger: {status.trigger}")
    if status.affected_units:
        console.print(f"Affected units: {', '.join(status.affected_units)}")
    for action in status.recommended_actions:
        console.print(f"  - {action}")
