"""CLI entrypoint for bridge-metrics."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any

import typer

from .domain import Snapshot, SnapshotRequest, SnapshotStatus
from .errors import ConfigurationError, SnapshotError, ValidationError
from .logger import setup_logging
from .report import publish_snapshot
from .service import BridgeDataService
from .settings import BridgeSettings, OutputFormat, ResilienceMode

DEGRADED_EXIT_CODE = 3

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Cross-chain bridge volumes, rates, liquidity and listed assets.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a TOML config file (can include [bridge_metrics] table).",
    ),
]
BaseUrlOption = Annotated[
    str | None,
    typer.Option("--base-url", help="Bridge metrics API base URL."),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    ),
]


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("bridge_metrics")


def _load_settings(config_path: Path | None, **overrides: Any) -> BridgeSettings:
    """Load settings, applying only the CLI flags that were actually given."""
    if config_path:
        os.environ["BRIDGE_METRICS_CONFIG"] = str(config_path)

    init_kwargs = {k: v for k, v in overrides.items() if v is not None}
    if "log_level" in init_kwargs:
        init_kwargs["log_level"] = init_kwargs["log_level"].upper()

    settings = BridgeSettings(**init_kwargs)
    setup_logging(settings.log_level)
    return settings


def _load_request(request_file: Path) -> SnapshotRequest:
    try:
        data = json.loads(request_file.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise typer.BadParameter(
            f"cannot read request file: {e}", param_hint="REQUEST_FILE"
        ) from e
    if not isinstance(data, dict):
        raise typer.BadParameter(
            "request file must hold a JSON object", param_hint="REQUEST_FILE"
        )
    try:
        return SnapshotRequest.from_dict(data)
    except ValidationError as e:
        raise typer.BadParameter(str(e), param_hint="REQUEST_FILE") from e


async def _fetch_snapshot(
    service: BridgeDataService, request: SnapshotRequest
) -> Snapshot:
    try:
        await service.initialize()
        return await service.get_snapshot(
            request.routes, request.notionals, request.windows
        )
    finally:
        service.close()


async def _fetch_health(service: BridgeDataService) -> dict[str, str]:
    try:
        return await service.ping()
    finally:
        service.close()


def _build_service(settings: BridgeSettings) -> BridgeDataService:
    try:
        return BridgeDataService.from_settings(settings, logger=_build_logger())
    except ConfigurationError as e:
        raise typer.BadParameter(
            str(e), param_hint=["--base-url", "BRIDGE_METRICS_BASE_URL"]
        ) from e


@app.command()
def snapshot(
    request_file: Annotated[
        Path,
        typer.Argument(
            help="JSON file with {routes, notionals, includeWindows}.",
        ),
    ],
    config_path: ConfigOption = None,
    base_url: BaseUrlOption = None,
    output_format: Annotated[
        OutputFormat | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format (table or json). Estimated items are only "
            "flagged in the table and by exit code 3.",
        ),
    ] = None,
    strict: Annotated[
        bool | None,
        typer.Option(
            "--strict/--resilient",
            help="Fail the whole snapshot on any missing item instead of estimating it.",
        ),
    ] = None,
    log_level: LogLevelOption = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Fetch volumes, rates, liquidity depth and listed assets in one snapshot.

    Exits with code 3 when any item had to be estimated; the JSON output
    itself carries no provenance.
    """
    resilience_mode = None
    if strict is not None:
        resilience_mode = ResilienceMode.STRICT if strict else ResilienceMode.RESILIENT

    settings = _load_settings(
        config_path,
        base_url=base_url,
        output_format=output_format,
        resilience_mode=resilience_mode,
        log_level=log_level,
    )
    logger = _build_logger()

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    request = _load_request(request_file)
    service = _build_service(settings)

    try:
        result = asyncio.run(_fetch_snapshot(service, request))
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        raise typer.Exit(code=2) from e
    except SnapshotError as e:
        logger.error("%s", e)
        for label, error in e.failures:
            logger.error("  %s: %s", label, error)
        raise typer.Exit(code=1) from e

    publish_snapshot(result, settings.output_format)
    if result.status is SnapshotStatus.DEGRADED:
        raise typer.Exit(code=DEGRADED_EXIT_CODE)


@app.command()
def ping(
    config_path: ConfigOption = None,
    base_url: BaseUrlOption = None,
    log_level: LogLevelOption = None,
):
    """Report service liveness; always prints status ok."""
    settings = _load_settings(config_path, base_url=base_url, log_level=log_level)
    service = _build_service(settings)
    health = asyncio.run(_fetch_health(service))
    typer.echo(json.dumps(health))


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
