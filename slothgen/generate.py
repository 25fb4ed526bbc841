"""Application service that generates the Prometheus rules of SLO groups."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Protocol, Sequence

from slothgen.alert import SLO as AlertSLO
from slothgen.log import NOOP, Logger
from slothgen.model import SLO, Info, MWMBAlertGroup, SLOGroup, SLORules, merge_labels
from slothgen.process import (
    PluginFactory,
    SLOProcessor,
    SLOProcessorRequest,
    SLOProcessorResult,
    processor_from_plugin,
)


class PluginNotFoundError(LookupError):
    """Raised when an SLO references a plugin that is not available."""


@dataclass(frozen=True)
class SLOPluginEntry:
    """An available SLO plugin and the factory that builds it."""

    id: str
    plugin_v1_factory: PluginFactory | None = None


class _PluginGetter(Protocol):
    def get_slo_plugin(self, ctx: Any, plugin_id: str) -> SLOPluginEntry: ...


class _AlertGenerator(Protocol):
    def generate_mwmb_alerts(self, slo: AlertSLO) -> MWMBAlertGroup: ...


class _NoPlugins:
    def get_slo_plugin(self, ctx: Any, plugin_id: str) -> SLOPluginEntry:
        raise PluginNotFoundError(f"SLO plugin {plugin_id!r} not found")


@dataclass
class Request:
    """A generation request."""

    info: Info = field(default_factory=Info)
    extra_labels: dict[str, str] = field(default_factory=dict)
    slo_group: SLOGroup = field(default_factory=SLOGroup)


@dataclass
class SLOResult:
    """An SLO (with the extra labels applied) and its generated rules."""

    slo: SLO
    slo_rules: SLORules


@dataclass
class Response:
    """The generation result for every SLO of the group, in order."""

    prometheus_slos: list[SLOResult] = field(default_factory=list)


class Service:
    """Runs each SLO through its processors to produce Prometheus rules.

    The processors run in this order: the SLO's plugins with negative priority,
    the default processors (unless the SLO overrides them), then the plugins
    with priority zero or more. Plugins are ordered stably by priority.
    """

    def __init__(
        self,
        alert_generator: _AlertGenerator,
        default_processors: Sequence[SLOProcessor] | None = None,
        plugin_getter: _PluginGetter | None = None,
        logger: Logger | None = None,
    ):
        if alert_generator is None:
            raise ValueError("invalid configuration: alert generator is required")
        self._alert_generator = alert_generator
        self._default_processors = list(default_processors or ())
        self._plugin_getter = plugin_getter if plugin_getter is not None else _NoPlugins()
        self._logger = (logger or NOOP).with_values({"svc": "generate.prometheus.Service"})

    def generate(self, request: Request, ctx: Any = None) -> Response:
        """Generate the rules for every SLO of the request."""
        try:
            self._validate_slo_group(request.slo_group)
        except ValueError as err:
            raise ValueError(f"invalid SLO group: {err}") from err

        results = []
        for slo in request.slo_group.slos:
            slo = replace(slo, labels=merge_labels(slo.labels, request.extra_labels))
            try:
                rules = self._generate_slo(ctx, request.info, request.slo_group, slo)
            except Exception as err:
                raise RuntimeError(f"could not generate {slo.id!r} slo: {err}") from err
            results.append(SLOResult(slo=slo, slo_rules=rules))

        return Response(prometheus_slos=results)

    def _generate_slo(self, ctx: Any, info: Info, slo_group: SLOGroup, slo: SLO) -> SLORules:
        logger = self._logger.with_ctx_values(ctx).with_values({"slo": slo.id})

        try:
            alerts = self._alert_generator.generate_mwmb_alerts(
                AlertSLO(id=slo.id, time_window=slo.time_window, objective=slo.objective)
            )
        except ValueError as err:
            raise ValueError(f"could not generate SLO alerts: {err}") from err
        logger.debug("Multiwindow-multiburn alerts generated")

        pre_default: list[SLOProcessor] = []
        post_default: list[SLOProcessor] = []
        for meta in sorted(slo.plugins.plugins, key=lambda p: p.priority):
            try:
                entry = self._plugin_getter.get_slo_plugin(ctx, meta.id)
            except LookupError as err:
                raise PluginNotFoundError(f"could not get SLO plugin {meta.id!r}: {err}") from err
            if entry.plugin_v1_factory is None:
                raise ValueError(f"SLO plugin {meta.id!r} has no supported factory")
            try:
                processor = processor_from_plugin(
                    entry.plugin_v1_factory, logger.with_values({"plugin": entry.id}), meta.config
                )
            except ValueError as err:
                raise ValueError(f"could not create SLO plugin {meta.id!r}: {err}") from err
            (pre_default if meta.priority < 0 else post_default).append(processor)

        processors = list(pre_default)
        if not slo.plugins.override_default_plugins:
            processors.extend(self._default_processors)
        processors.extend(post_default)

        proc_request = SLOProcessorRequest(
            info=info, slo=slo, slo_group=slo_group, mwmb_alert_group=alerts
        )
        proc_result = SLOProcessorResult()
        for processor in processors:
            try:
                processor.process_slo(ctx, proc_request, proc_result)
            except Exception as err:
                raise RuntimeError(f"slo processor failed: {err}") from err

        return proc_result.slo_rules

    @staticmethod
    def _validate_slo_group(slo_group: SLOGroup) -> None:
        if not slo_group.slos:
            raise ValueError("at least one SLO is required")
        seen: set[str] = set()
        for slo in slo_group.slos:
            if slo.id in seen:
                raise ValueError(f"SLO ID {slo.id!r} is repeated")
            seen.add(slo.id)