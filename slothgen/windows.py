"""SLO period alert windows for multiwindow multi-burn alerting."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Iterator

import yaml

from slothgen.durations import format_duration, parse_duration
from slothgen.log import NOOP, Logger

API_VERSION = "sloth.slok.dev/v1"
KIND = "AlertWindows"

_YAML_EXTENSIONS = (".yaml", ".yml")
_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class Window:
    """One alert window.

    ``error_budget_percent`` is the error budget consumed for a full SLO period;
    the SRE workbook defaults are 2% page quick, 5% page slow and 10% for tickets.
    """

    error_budget_percent: float
    short_window: timedelta
    long_window: timedelta

    def validate(self) -> None:
        if not self.long_window:
            raise ValueError("long window is required")
        if not self.short_window:
            raise ValueError("short window is required")
        if self.error_budget_percent == 0:
            raise ValueError("error budget is required")


@dataclass(frozen=True)
class Windows:
    """The page/ticket by quick/slow window matrix for one SLO period."""

    slo_period: timedelta
    page_quick: Window
    page_slow: Window
    ticket_quick: Window
    ticket_slow: Window

    def validate(self) -> None:
        if not self.slo_period:
            raise ValueError("slo period is required")
        for name, window in (
            ("page quick", self.page_quick),
            ("page slow", self.page_slow),
            ("ticket quick", self.ticket_quick),
            ("ticket slow", self.ticket_slow),
        ):
            try:
                window.validate()
            except ValueError as err:
                raise ValueError(f"invalid {name}: {err}") from err

    def speed_page_quick(self) -> float:
        return self._burn_rate_factor(self.page_quick)

    def speed_page_slow(self) -> float:
        return self._burn_rate_factor(self.page_slow)

    def speed_ticket_quick(self) -> float:
        return self._burn_rate_factor(self.ticket_quick)

    def speed_ticket_slow(self) -> float:
        return self._burn_rate_factor(self.ticket_slow)

    def _burn_rate_factor(self, window: Window) -> float:
        """Speed needed to consume the window's budget share within its long window."""
        hours_required = window.error_budget_percent * (self.slo_period / _HOUR) / 100
        return hours_required / (window.long_window / _HOUR)


def _duration(value: Any) -> timedelta:
    if value is None:
        return timedelta(0)
    return parse_duration(str(value))


def _window(section: Any) -> Window:
    section = section or {}
    return Window(
        error_budget_percent=float(section.get("errorBudgetPercent") or 0),
        short_window=_duration(section.get("shortWindow")),
        long_window=_duration(section.get("longWindow")),
    )


def load_windows(data: bytes | str) -> Windows:
    """Load and validate an ``AlertWindows`` YAML spec."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    if not data:
        raise ValueError("spec is required")

    try:
        doc = yaml.safe_load(data)
    except yaml.YAMLError as err:
        raise ValueError(f"could not unmarshal YAML spec correctly: {err}") from err
    if doc is None:
        doc = {}
    if not isinstance(doc, dict):
        raise ValueError("could not unmarshal YAML spec correctly: a mapping is required")

    if doc.get("apiVersion") != API_VERSION or doc.get("kind") != KIND:
        raise ValueError("invalid spec version")

    try:
        spec = doc.get("spec") or {}
        page = spec.get("page") or {}
        ticket = spec.get("ticket") or {}
        windows = Windows(
            slo_period=_duration(spec.get("sloPeriod")),
            page_quick=_window(page.get("quick")),
            page_slow=_window(page.get("slow")),
            ticket_quick=_window(ticket.get("quick")),
            ticket_slow=_window(ticket.get("slow")),
        )
    except (AttributeError, TypeError, ValueError) as err:
        raise ValueError(f"could not unmarshal YAML spec correctly: {err}") from err

    try:
        windows.validate()
    except ValueError as err:
        raise ValueError(f"invalid alerting window: {err}") from err
    return windows


def _workbook_windows(period: timedelta) -> Windows:
    return Windows(
        slo_period=period,
        page_quick=Window(2.0, timedelta(minutes=5), timedelta(hours=1)),
        page_slow=Window(5.0, timedelta(minutes=30), timedelta(hours=6)),
        ticket_quick=Window(10.0, timedelta(hours=2), timedelta(days=1)),
        ticket_slow=Window(10.0, timedelta(hours=6), timedelta(days=3)),
    )


def default_windows() -> dict[timedelta, Windows]:
    """The built-in catalog: SRE workbook windows for 28 and 30 day periods."""
    return {timedelta(days=days): _workbook_windows(timedelta(days=days)) for days in (28, 30)}


def _yaml_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            if os.path.splitext(name)[1] in _YAML_EXTENSIONS:
                yield Path(dirpath, name)


class FSWindowsRepo:
    """Catalog of alert windows indexed by SLO period.

    Without a directory the built-in catalog is used; otherwise every YAML file
    found recursively under the directory replaces it.
    """

    def __init__(self, directory: str | os.PathLike[str] | None = None, logger: Logger | None = None):
        self._logger = (logger or NOOP).with_values({"svc": "alert.WindowsRepo"})
        self._windows: dict[timedelta, Windows] = {}

        if directory is None:
            self._windows.update(default_windows())
        else:
            self._logger.info("Using custom slo period windows catalog")
            try:
                self._load(Path(directory))
            except ValueError as err:
                raise ValueError(f"could not initialize custom windows: {err}") from err

        self._logger.with_values({"windows": len(self._windows)}).info("SLO period windows loaded")

    def _load(self, root: Path) -> None:
        if not root.is_dir():
            raise ValueError(f"could not discover period windows: {root} is not a directory")
        for path in _yaml_files(root):
            try:
                data = path.read_bytes()
            except OSError as err:
                raise ValueError(f"could not read {str(path)!r} alert windows data from file: {err}") from err
            try:
                windows = load_windows(data)
            except ValueError as err:
                raise ValueError(f"could not load {str(path)!r} alert windows: {err}") from err

            stored = self._windows.get(windows.slo_period)
            if stored is None:
                self._windows[windows.slo_period] = windows
                continue
            period = format_duration(windows.slo_period)
            if stored != windows:
                raise ValueError(f"{period!r} slo period is already loaded")
            self._logger.warning("Identical %r slo periods have been loaded multiple times", period)

    def get_windows(self, period: timedelta) -> Windows:
        """Return the windows for ``period``; raises ``LookupError`` when missing."""
        try:
            return self._windows[period]
        except KeyError:
            raise LookupError(f"window period {format_duration(period)} missing") from None