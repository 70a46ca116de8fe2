"""SLO period alert windows: durations, window specs and the windows catalog."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from slothgen.log import NOOP, Logger

API_VERSION = "sloth.slok.dev/v1"
KIND = "AlertWindows"

_DURATION_RE = re.compile(
    r"^(?:(\d+)y)?(?:(\d+)w)?(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?(?:(\d+)ms)?$"
)
_DAY_MS = 24 * 60 * 60 * 1000
# (unit, milliseconds, only-when-exact)
_UNITS = (
    ("y", 365 * _DAY_MS, True),
    ("w", 7 * _DAY_MS, True),
    ("d", _DAY_MS, False),
    ("h", 60 * 60 * 1000, False),
    ("m", 60 * 1000, False),
    ("s", 1000, False),
    ("ms", 1, False),
)
_HOUR_US = 3_600_000_000


class WindowsError(ValueError):
    """Raised for invalid or missing alert windows."""


def parse_duration(text: str) -> timedelta:
    """Parse a Prometheus style duration such as ``30d`` or ``1h30m``."""
    if text == "":
        raise ValueError("empty duration string")
    if text == "0":
        return timedelta(0)
    match = _DURATION_RE.match(text)
    if match is None:
        raise ValueError(f"not a valid duration string: {text!r}")
    total_ms = sum(int(group) * mult for group, (_, mult, _) in zip(match.groups(), _UNITS) if group)
    return timedelta(milliseconds=total_ms)


def format_duration(duration: timedelta) -> str:
    """Render a duration the way Prometheus does (``30d``, ``4w``, ``1h30m``)."""
    ms = duration // timedelta(milliseconds=1)
    if ms == 0:
        return "0s"
    if ms < 0:
        return "-" + format_duration(-duration)
    parts = []
    for unit, mult, exact in _UNITS:
        if exact and ms % mult:
            continue
        value = ms // mult
        if value > 0:
            parts.append(f"{value}{unit}")
            ms -= value * mult
    return "".join(parts)


def _hours(duration: timedelta) -> float:
    hours, rest = divmod(duration // timedelta(microseconds=1), _HOUR_US)
    return hours + rest / _HOUR_US


@dataclass(frozen=True)
class Window:
    """One alerting window: error budget % consumed and its short/long windows."""

    error_budget_percent: float
    short_window: timedelta
    long_window: timedelta

    def validate(self) -> None:
        if not self.long_window:
            raise WindowsError("long window is required")
        if not self.short_window:
            raise WindowsError("short window is required")
        if not self.error_budget_percent:
            raise WindowsError("error budget is required")


@dataclass(frozen=True)
class Windows:
    """Multiwindow-multiburn windows for one SLO period."""

    slo_period: timedelta
    page_quick: Window
    page_slow: Window
    ticket_quick: Window
    ticket_slow: Window

    def validate(self) -> None:
        if not self.slo_period:
            raise WindowsError("slo period is required")
        for name, window in (
            ("page quick", self.page_quick),
            ("page slow", self.page_slow),
            ("ticket quick", self.ticket_quick),
            ("ticket slow", self.ticket_slow),
        ):
            try:
                window.validate()
            except WindowsError as err:
                raise WindowsError(f"invalid {name}: {err}") from err

    def _burn_rate_factor(self, window: Window) -> float:
        hours_required = window.error_budget_percent * _hours(self.slo_period) / 100
        return hours_required / _hours(window.long_window)

    def speed_page_quick(self) -> float:
        return self._burn_rate_factor(self.page_quick)

    def speed_page_slow(self) -> float:
        return self._burn_rate_factor(self.page_slow)

    def speed_ticket_quick(self) -> float:
        return self._burn_rate_factor(self.ticket_quick)

    def speed_ticket_slow(self) -> float:
        return self._burn_rate_factor(self.ticket_slow)


def _default_windows(period: timedelta) -> Windows:
    return Windows(
        slo_period=period,
        page_quick=Window(2, timedelta(minutes=5), timedelta(hours=1)),
        page_slow=Window(5, timedelta(minutes=30), timedelta(hours=6)),
        ticket_quick=Window(10, timedelta(hours=2), timedelta(days=1)),
        ticket_slow=Window(10, timedelta(hours=6), timedelta(days=3)),
    )


_DEFAULT_PERIODS = (timedelta(days=28), timedelta(days=30))


def _section(node: dict[str, Any], key: str) -> dict[str, Any]:
    value = node.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise WindowsError(f"could not unmarshall YAML spec correctly: {key!r} must be a mapping")
    return value


def _duration_field(node: dict[str, Any], key: str) -> timedelta:
    value = node.get(key)
    if value is None:
        return timedelta(0)
    try:
        return parse_duration(str(value))
    except ValueError as err:
        raise WindowsError(f"could not unmarshall YAML spec correctly: {err}") from err


def _percent_field(node: dict[str, Any], key: str) -> float:
    value = node.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise WindowsError(f"could not unmarshall YAML spec correctly: {key!r} must be a number")
    return float(value)


def _window(node: dict[str, Any]) -> Window:
    return Window(
        error_budget_percent=_percent_field(node, "errorBudgetPercent"),
        short_window=_duration_field(node, "shortWindow"),
        long_window=_duration_field(node, "longWindow"),
    )


def load_windows(data: bytes | str) -> Windows:
    """Load and validate an ``AlertWindows`` YAML spec."""
    if not data:
        raise WindowsError("spec is required")
    try:
        doc = yaml.safe_load(data)
    except yaml.YAMLError as err:
        raise WindowsError(f"could not unmarshall YAML spec correctly: {err}") from err
    if doc is None:
        doc = {}
    if not isinstance(doc, dict):
        raise WindowsError("could not unmarshall YAML spec correctly: document must be a mapping")

    if doc.get("apiVersion") != API_VERSION or doc.get("kind") != KIND:
        raise WindowsError("invalid spec version")

    spec = _section(doc, "spec")
    page = _section(spec, "page")
    ticket = _section(spec, "ticket")
    windows = Windows(
        slo_period=_duration_field(spec, "sloPeriod"),
        page_quick=_window(_section(page, "quick")),
        page_slow=_window(_section(page, "slow")),
        ticket_quick=_window(_section(ticket, "quick")),
        ticket_slow=_window(_section(ticket, "slow")),
    )
    try:
        windows.validate()
    except WindowsError as err:
        raise WindowsError(f"invalid alerting window: {err}") from err
    return windows


class FSWindowsRepo:
    """Catalog of windows keyed by SLO period, built-in or loaded from a directory."""

    def __init__(self, path: str | Path | None = None, logger: Logger | None = None) -> None:
        self._logger = (logger or NOOP).with_values({"svc": "alert.WindowsRepo"})
        self._windows: dict[timedelta, Windows] = {}

        if path is None:
            for period in _DEFAULT_PERIODS:
                self._add(_default_windows(period))
        else:
            self._logger.info("Using custom slo period windows catalog")
            try:
                self._load_dir(Path(path))
            except WindowsError as err:
                raise WindowsError(f"could not initialize custom windows: {err}") from err

        self._logger.with_values({"windows": len(self._windows)}).info("SLO period windows loaded")

    def _load_dir(self, root: Path) -> None:
        if not root.is_dir():
            raise WindowsError(f"could not discover period windows: {str(root)!r} is not a directory")
        files = sorted(
            (p for p in root.rglob("*") if p.is_file() and p.suffix in (".yaml", ".yml")),
            key=lambda p: p.relative_to(root).parts,
        )
        for file in files:
            rel = file.relative_to(root).as_posix()
            try:
                data = file.read_bytes()
            except OSError as err:
                raise WindowsError(
                    f"could not discover period windows: could not read {rel!r} alert windows data from file: {err}"
                ) from err
            try:
                windows = load_windows(data)
            except WindowsError as err:
                raise WindowsError(
                    f"could not discover period windows: could not load {rel!r} alert windows: {err}"
                ) from err
            self._add(windows)

    def _add(self, windows: Windows) -> None:
        stored = self._windows.get(windows.slo_period)
        if stored is not None:
            period = format_duration(windows.slo_period)
            if stored != windows:
                raise WindowsError(f"could not discover period windows: {period!r} slo period is already loaded")
            self._logger.warning("Identical %r slo periods have been loaded multiple times", period)
            return
        self._windows[windows.slo_period] = windows

    def get_windows(self, period: timedelta) -> Windows:
        """Return the windows for ``period`` or raise :class:`WindowsError`."""
        try:
            return self._windows[period]
        except KeyError:
            raise WindowsError(f"window period {format_duration(period)} missing") from None