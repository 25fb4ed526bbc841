"""Generation of multiwindow multi-burn alerts for an SLO."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol

from slothgen.durations import format_duration
from slothgen.model import AlertSeverity, MWMBAlert, MWMBAlertGroup
from slothgen.windows import Window, Windows


class _WindowsRepo(Protocol):
    def get_windows(self, period: timedelta) -> Windows: ...


@dataclass(frozen=True)
class SLO:
    """The parts of an SLO that alert generation needs."""

    id: str
    time_window: timedelta
    objective: float


class AlertGenerator:
    """Builds the generic page/ticket alert matrix for SLOs."""

    def __init__(self, windows_repo: _WindowsRepo):
        self._windows_repo = windows_repo

    def generate_mwmb_alerts(self, slo: SLO) -> MWMBAlertGroup:
        try:
            windows = self._windows_repo.get_windows(slo.time_window)
        except LookupError as err:
            raise ValueError(
                f"the {format_duration(slo.time_window)} SLO period time window is not supported"
            ) from err

        error_budget = 100 - slo.objective

        def build(suffix: str, window: Window, speed: float, severity: AlertSeverity) -> MWMBAlert:
            return MWMBAlert(
                id=f"{slo.id}-{suffix}",
                short_window=window.short_window,
                long_window=window.long_window,
                burn_rate_factor=speed,
                error_budget=error_budget,
                severity=severity,
            )

        return MWMBAlertGroup(
            page_quick=build("page-quick", windows.page_quick, windows.speed_page_quick(), AlertSeverity.PAGE),
            page_slow=build("page-slow", windows.page_slow, windows.speed_page_slow(), AlertSeverity.PAGE),
            ticket_quick=build(
                "ticket-quick", windows.ticket_quick, windows.speed_ticket_quick(), AlertSeverity.TICKET
            ),
            ticket_slow=build(
                "ticket-slow", windows.ticket_slow, windows.speed_ticket_slow(), AlertSeverity.TICKET
            ),
        )