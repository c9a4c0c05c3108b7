from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable, Collection, List, Optional, Union

from catdash.aggregator import DashboardAggregator
from catdash.alerts import DEFAULT_THRESHOLD_PERCENT, PriceAlert, detect_price_alerts
from catdash.core.logging import get_logger
from catdash.data.types import DashboardSnapshot

log = get_logger("poller")

DEFAULT_INTERVAL_SEC = 30.0

SnapshotCallback = Callable[
    [Optional[DashboardSnapshot], DashboardSnapshot, List[PriceAlert]], Union[None, Awaitable[None]]
]


class DashboardPoller:
    """Refreshes the dashboard on a fixed interval and reports price alerts between cycles."""

    def __init__(
        self,
        aggregator: DashboardAggregator,
        on_snapshot: Optional[SnapshotCallback] = None,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        alert_ids: Collection[str] = (),
        threshold_percent: float = DEFAULT_THRESHOLD_PERCENT,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self.aggregator = aggregator
        self.on_snapshot = on_snapshot
        self.interval_sec = interval_sec
        self.alert_ids = set(alert_ids)
        self.threshold_percent = threshold_percent
        self.previous: Optional[DashboardSnapshot] = None
        self.cycles = 0
        self._sleep = sleep or asyncio.sleep
        self._stopped = asyncio.Event()

    def stop(self) -> None:
        self._stopped.set()

    async def poll_once(self) -> DashboardSnapshot:
        current = await self.aggregator.fetch_dashboard_data_safe()
        previous = self.previous
        alerts: List[PriceAlert] = []
        # A stale snapshot is empty, so diffing against it would only hide moves.
        if previous is not None and not current.is_stale:
            alerts = detect_price_alerts(
                previous.tokens, current.tokens, self.alert_ids, threshold_percent=self.threshold_percent
            )
        for alert in alerts:
            log.info(f"Price alert: {alert.describe()}")
        if self.on_snapshot is not None:
            outcome = self.on_snapshot(previous, current, alerts)
            if inspect.isawaitable(outcome):
                await outcome
        if not current.is_stale:
            self.previous = current
        self.cycles += 1
        return current

    async def run(self, max_cycles: Optional[int] = None) -> None:
        self._stopped.clear()
        while not self._stopped.is_set():
            await self.poll_once()
            if max_cycles is not None and self.cycles >= max_cycles:
                break
            await self._sleep(self.interval_sec)


__all__ = ["DEFAULT_INTERVAL_SEC", "DashboardPoller", "SnapshotCallback"]
