"""Multiwindow-multiburn alert generation for SLOs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Protocol

from slothgen.windows import Window, Windows, WindowsError, format_duration


class AlertSeverity(str, Enum):
    PAGE = "page"
    TICKET = "ticket"


@dataclass(frozen=True)
class MWMBAlert:
    """One multiwindow-multiburn alert definition."""

    id: str
    short_window: timedelta
    long_window: timedelta
    burn_rate_factor: float
    error_budget: float
    severity: AlertSeverity


@dataclass(frozen=True)
class MWMBAlertGroup:
    page_quick: MWMBAlert
    page_slow: MWMBAlert
    ticket_quick: MWMBAlert
    ticket_slow: MWMBAlert


@dataclass(frozen=True)
class SLO:
    id: str
    time_window: timedelta
    objective: float


class WindowsRepo(Protocol):
    def get_windows(self, period: timedelta) -> Windows: ...


class Generator:
    """Builds the generic MWMB alerts of an SLO from the windows catalog."""

    def __init__(self, windows_repo: WindowsRepo) -> None:
        self._windows_repo = windows_repo

    def generate_mwmb_alerts(self, slo: SLO) -> MWMBAlertGroup:
        try:
            windows = self._windows_repo.get_windows(slo.time_window)
        except WindowsError as err:
            raise WindowsError(
                f"the {format_duration(slo.time_window)} SLO period time window is not supported"
            ) from err

        error_budget = 100 - slo.objective

        def make(name: str, window: Window, speed: float, severity: AlertSeverity) -> MWMBAlert:
            return MWMBAlert(
                id=f"{slo.id}-{name}",
                short_window=window.short_window,
                long_window=window.long_window,
                burn_rate_factor=speed,
                error_budget=error_budget,
                severity=severity,
            )

        return MWMBAlertGroup(
            page_quick=make("page-quick", windows.page_quick, windows.speed_page_quick(), AlertSeverity.PAGE),
            page_slow=make("page-slow", windows.page_slow, windows.speed_page_slow(), AlertSeverity.PAGE),
            ticket_quick=make(
                "ticket-quick", windows.ticket_quick, windows.speed_ticket_quick(), AlertSeverity.TICKET
            ),
            ticket_slow=make("ticket-slow", windows.ticket_slow, windows.speed_ticket_slow(), AlertSeverity.TICKET),
        )