"""Domain model shared by the SLO rule generators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Mapping

VERSION = "dev"

MODE_TEST = "test"
MODE_CONTROLLER_GEN_KUBERNETES = "ctrl-gen-k8s"


class AlertSeverity(str, Enum):
    """Severity of a multiwindow multi-burn alert."""

    PAGE = "page"
    TICKET = "ticket"


@dataclass(frozen=True)
class MWMBAlert:
    """One multiwindow multi-burn alert definition."""

    id: str
    short_window: timedelta
    long_window: timedelta
    burn_rate_factor: float
    error_budget: float
    severity: AlertSeverity


@dataclass(frozen=True)
class MWMBAlertGroup:
    """The four alerts of the multiwindow multi-burn matrix."""

    page_quick: MWMBAlert
    page_slow: MWMBAlert
    ticket_quick: MWMBAlert
    ticket_slow: MWMBAlert


@dataclass
class Rule:
    """A Prometheus recording or alerting rule."""

    record: str = ""
    alert: str = ""
    expr: str = ""
    for_: timedelta = timedelta(0)
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class RuleGroup:
    """A group of rules evaluated at the same interval."""

    interval: timedelta = timedelta(0)
    rules: list[Rule] = field(default_factory=list)


@dataclass
class SLORules:
    """All the rules generated for one SLO."""

    sli_error_rec_rules: RuleGroup = field(default_factory=RuleGroup)
    metadata_rec_rules: RuleGroup = field(default_factory=RuleGroup)
    alert_rules: RuleGroup = field(default_factory=RuleGroup)


@dataclass
class AlertMeta:
    """Metadata for the page or ticket alert of an SLO."""

    disable: bool = False
    name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class SLOPluginMetadata:
    """Reference to an SLO plugin with its configuration and priority."""

    id: str
    config: Any = None
    priority: int = 0


@dataclass
class SLOPlugins:
    """Plugins attached to an SLO."""

    override_default_plugins: bool = False
    plugins: list[SLOPluginMetadata] = field(default_factory=list)


@dataclass
class SLO:
    """A service level objective ready for rule generation."""

    id: str
    name: str = ""
    service: str = ""
    sli: Any = None
    time_window: timedelta = timedelta(0)
    objective: float = 0.0
    labels: dict[str, str] = field(default_factory=dict)
    page_alert_meta: AlertMeta = field(default_factory=AlertMeta)
    ticket_alert_meta: AlertMeta = field(default_factory=AlertMeta)
    plugins: SLOPlugins = field(default_factory=SLOPlugins)


@dataclass
class SLOGroup:
    """A set of SLOs loaded from one spec, with the spec they came from."""

    slos: list[SLO] = field(default_factory=list)
    original_source: Any = None


@dataclass(frozen=True)
class Info:
    """Information about the application run, used as rule metadata."""

    version: str = VERSION
    mode: str = ""
    spec: str = ""


def merge_labels(*label_sets: Mapping[str, str] | None) -> dict[str, str]:
    """Merge label maps into a new dict; later maps win on key clashes."""
    merged: dict[str, str] = {}
    for labels in label_sets:
        if labels:
            merged.update(labels)
    return merged