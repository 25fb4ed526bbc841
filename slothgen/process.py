"""SLO processors: the steps that turn an SLO into Prometheus rules."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from slothgen.log import Logger
from slothgen.model import SLO, Info, MWMBAlertGroup, SLOGroup, SLORules


@dataclass
class SLOProcessorRequest:
    """What a processor receives; processors may update it for the next ones."""

    info: Info
    slo: SLO
    slo_group: SLOGroup
    mwmb_alert_group: MWMBAlertGroup


@dataclass
class SLOProcessorResult:
    """The rules accumulated by the processors of one SLO."""

    slo_rules: SLORules = field(default_factory=SLORules)


class SLOProcessor(ABC):
    """A step that processes an SLO and adds to or changes its generated rules."""

    @abstractmethod
    def process_slo(self, ctx: Any, request: SLOProcessorRequest, result: SLOProcessorResult) -> None:
        """Process ``request`` and update ``result`` in place."""


ProcessFunc = Callable[[Any, SLOProcessorRequest, SLOProcessorResult], None]


class FunctionProcessor(SLOProcessor):
    """Processor backed by a plain function."""

    def __init__(self, func: ProcessFunc):
        self._func = func

    def process_slo(self, ctx: Any, request: SLOProcessorRequest, result: SLOProcessorResult) -> None:
        self._func(ctx, request, result)


class _Plugin(Protocol):
    def process_slo(self, ctx: Any, request: SLOProcessorRequest, result: SLOProcessorResult) -> None: ...


PluginFactory = Callable[[bytes, Logger], _Plugin]


def processor_from_plugin(factory: PluginFactory, logger: Logger, config: Any = None) -> SLOProcessor:
    """Build an SLO plugin (v1) and expose it as a processor.

    The factory receives ``config`` encoded as compact JSON bytes and the logger.
    The plugin sees the processor request, whose ``slo_group.original_source``
    holds the spec the SLO was loaded from.
    """
    try:
        config_data = json.dumps(
            config, sort_keys=True, separators=(",", ":"), allow_nan=False
        ).encode("utf-8")
    except (TypeError, ValueError) as err:
        raise ValueError(f"could not marshal config: {err}") from err

    try:
        plugin = factory(config_data, logger)
    except Exception as err:
        raise ValueError(f"could not create plugin: {err}") from err

    return FunctionProcessor(plugin.process_slo)


def _do_nothing(ctx: Any, request: SLOProcessorRequest, result: SLOProcessorResult) -> None:
    return None


def noop_processor() -> SLOProcessor:
    """A processor that leaves the request and the result untouched."""
    return FunctionProcessor(_do_nothing)