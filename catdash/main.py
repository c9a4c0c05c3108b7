from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import uvicorn
from rich.console import Console
from rich.table import Table

from catdash.alerts import PriceAlert
from catdash.composition import build_aggregator
from catdash.config import config_section, config_value
from catdash.core.logging import configure_logging
from catdash.data.types import DashboardSnapshot
from catdash.poller import DashboardPoller

console = Console()


def snapshot_table(snapshot: DashboardSnapshot, limit: int = 20) -> Table:
    state = "stale" if snapshot.is_stale else "fresh"
    table = Table(title=f"CAT dashboard @ {snapshot.fetched_at} ({state}, {snapshot.fiat_rate:.2f} USD/XCH)")
    table.add_column("Symbol")
    table.add_column("Name")
    table.add_column("Price XCH", justify="right")
    table.add_column("Price USD", justify="right")
    table.add_column("24h %", justify="right")
    table.add_column("7d Vol XCH", justify="right")
    table.add_column("Liquidity XCH", justify="right")
    table.add_column("Source")
    for token in snapshot.tokens[:limit]:
        table.add_row(
            token.symbol,
            token.name,
            f"{token.price_xch:.6g}",
            f"{token.price_usd:.4f}",
            f"{token.change_24h:+.2f}",
            f"{token.volume_7d_xch:.2f}",
            f"{token.liquidity_xch:.2f}",
            token.price_source,
        )
    return table


def cmd_serve(host: Optional[str], port: Optional[int]) -> None:
    api_cfg = config_section("api")
    uvicorn.run(
        "catdash.api.server:create_app",
        factory=True,
        host=host or api_cfg.get("host", "127.0.0.1"),
        port=port or int(api_cfg.get("port", 8000)),
        log_config=None,
    )


async def _snapshot(sources: Optional[str]) -> DashboardSnapshot:
    aggregator = build_aggregator(sources)
    try:
        return await aggregator.fetch_dashboard_data_safe()
    finally:
        await aggregator.aclose()


def cmd_snapshot(sources: Optional[str], as_json: bool, limit: int) -> int:
    snapshot = asyncio.run(_snapshot(sources))
    if as_json:
        sys.stdout.write(json.dumps(snapshot.to_payload(), indent=2) + "\n")
    else:
        console.print(snapshot_table(snapshot, limit=limit))
    return 1 if snapshot.is_stale else 0


async def _watch(sources: Optional[str], cycles: Optional[int], alert_ids: List[str], limit: int) -> None:
    aggregator = build_aggregator(sources)

    def show(previous: Optional[DashboardSnapshot], current: DashboardSnapshot, alerts: List[PriceAlert]) -> None:
        console.print(snapshot_table(current, limit=limit))
        for alert in alerts:
            console.print(f"[bold]{alert.describe()}[/bold]")

    poller = DashboardPoller(
        aggregator,
        on_snapshot=show,
        interval_sec=float(config_value("poll.interval_sec", 30)),
        alert_ids=alert_ids,
        threshold_percent=float(config_value("alerts.threshold_percent", 5.0)),
    )
    try:
        await poller.run(max_cycles=cycles)
    finally:
        await aggregator.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="catdash CLI")
    parser.add_argument("command", choices=["serve", "snapshot", "watch"], help="Command to run")
    parser.add_argument("--sources", type=str, default=None, help="Upstream sources (live|mock)")
    parser.add_argument("--host", type=str, default=None, help="Bind host for serve")
    parser.add_argument("--port", type=int, default=None, help="Bind port for serve")
    parser.add_argument("--json", action="store_true", help="Print the snapshot as JSON")
    parser.add_argument("--limit", type=int, default=20, help="Rows to show in tables")
    parser.add_argument("--cycles", type=int, default=None, help="Stop watch after this many cycles")
    parser.add_argument("--alert", action="append", default=[], help="Token id to watch for price alerts")
    args = parser.parse_args(argv)

    configure_logging(config_value("log_level"))

    if args.command == "serve":
        cmd_serve(args.host, args.port)
    elif args.command == "snapshot":
        return cmd_snapshot(args.sources, args.json, args.limit)
    elif args.command == "watch":
        try:
            asyncio.run(_watch(args.sources, args.cycles, args.alert, args.limit))
        except KeyboardInterrupt:
            console.print("Stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
