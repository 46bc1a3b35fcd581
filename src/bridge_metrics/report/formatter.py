"""Rich console formatter for snapshots."""

from __future__ import annotations

from decimal import Decimal

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..domain import Asset, Provenance, Snapshot, SnapshotStatus, isoformat_z
from ..units import from_smallest_units


def _format_units(amount: int, asset: Asset) -> str:
    """Format a smallest-unit amount as whole tokens with the asset symbol."""
    value = from_smallest_units(amount, asset.decimals)
    return f"{value:,.{min(asset.decimals, 6)}f} {asset.symbol}"


def _format_usd(value: Decimal) -> str:
    return f"${value:,.2f}"


def _source_cell(provenance: Provenance) -> str:
    if provenance is Provenance.ESTIMATED:
        return "[yellow]estimated[/]"
    return "[green]live[/]"


def _status_panel(snapshot: Snapshot) -> Panel:
    status = snapshot.status
    style = "green" if status is SnapshotStatus.LIVE else "yellow"

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("Status", f"[{style}]{status.value}[/]")
    table.add_row("Volumes", str(len(snapshot.volumes)))
    table.add_row("Rates", str(len(snapshot.rates)))
    table.add_row("Routes probed", str(len(snapshot.liquidity)))
    table.add_row("Listed assets", str(len(snapshot.listed_assets.assets)))
    for label in snapshot.fallbacks:
        table.add_row("Estimated", f"[yellow]{label}[/]")

    return Panel(table, title="[bold]Summary[/]", border_style=style)


def _volumes_panel(snapshot: Snapshot) -> Panel:
    table = Table(expand=True)
    table.add_column("Window", style="cyan")
    table.add_column("Volume (USD)", justify="right", style="green")
    table.add_column("Measured At", style="dim")
    table.add_column("Source")
    for volume in snapshot.volumes:
        table.add_row(
            volume.window,
            _format_usd(volume.volume_usd),
            isoformat_z(volume.measured_at),
            _source_cell(volume.provenance),
        )
    return Panel(table, title="[bold]Volumes[/]", border_style="blue")


def _rates_panel(snapshot: Snapshot) -> Panel:
    table = Table(expand=True)
    table.add_column("Route", style="cyan", no_wrap=True)
    table.add_column("Amount In", justify="right")
    table.add_column("Amount Out", justify="right")
    table.add_column("Rate", justify="right", style="yellow")
    table.add_column("Fees (USD)", justify="right")
    table.add_column("Source")
    for rate in snapshot.rates:
        table.add_row(
            f"{rate.source.symbol}@{rate.source.chain_id}"
            f" -> {rate.destination.symbol}@{rate.destination.chain_id}",
            _format_units(rate.amount_in, rate.source),
            _format_units(rate.amount_out, rate.destination),
            f"{rate.effective_rate:.6f}",
            _format_usd(rate.total_fees_usd),
            _source_cell(rate.provenance),
        )
    return Panel(table, title="[bold]Rates[/]", border_style="yellow")


def _liquidity_panel(snapshot: Snapshot) -> Panel:
    table = Table(expand=True)
    table.add_column("Route", style="cyan", no_wrap=True)
    table.add_column("Slippage", justify="right")
    table.add_column("Max Amount In", justify="right", style="green")
    table.add_column("Source")
    for depth in snapshot.liquidity:
        for threshold in depth.thresholds:
            table.add_row(
                depth.route.label,
                f"{threshold.slippage_bps} bps",
                _format_units(threshold.max_amount_in, depth.route.source),
                _source_cell(depth.provenance),
            )
    return Panel(table, title="[bold]Liquidity Depth[/]", border_style="magenta")


def _assets_panel(snapshot: Snapshot) -> Panel:
    table = Table(expand=True)
    table.add_column("Chain", style="dim")
    table.add_column("Symbol", style="cyan")
    table.add_column("Asset ID", overflow="fold")
    table.add_column("Decimals", justify="right")
    for asset in snapshot.listed_assets.assets:
        table.add_row(asset.chain_id, asset.symbol, asset.asset_id, str(asset.decimals))
    title = "[bold]Listed Assets[/]"
    if snapshot.listed_assets.provenance is Provenance.ESTIMATED:
        title = "[bold]Listed Assets[/] [yellow](estimated)[/]"
    return Panel(table, title=title, border_style="cyan")


def format_snapshot_table(snapshot: Snapshot, console: Console | None = None) -> None:
    """Print a rich dashboard of the snapshot to stdout.

    Args:
        snapshot: The snapshot to format
        console: Console to print to (a fresh stdout console by default)
    """
    console = console or Console()

    outer_panel = Panel(
        Group(
            _status_panel(snapshot),
            "",
            _volumes_panel(snapshot),
            "",
            _rates_panel(snapshot),
            "",
            _liquidity_panel(snapshot),
            "",
            _assets_panel(snapshot),
        ),
        title="[bold white]Bridge Snapshot[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()
