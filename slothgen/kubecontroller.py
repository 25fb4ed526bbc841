"""Kubernetes controller handler for ``PrometheusServiceLevel`` resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol, Sequence

from slothgen.generate import Request, Response
from slothgen.log import NOOP, Logger
from slothgen.model import MODE_CONTROLLER_GEN_KUBERNETES, VERSION, Info, SLOGroup
from slothgen.modelmap import K8sMeta, SLORulesResult

SLOTH_GROUP = "sloth.slok.dev"
SLOTH_VERSION = "v1"
SLOTH_API_VERSION = f"{SLOTH_GROUP}/{SLOTH_VERSION}"
SLOTH_KIND = "PrometheusServiceLevel"

DEFAULT_IGNORE_HANDLE_BEFORE = timedelta(minutes=3)


@dataclass
class ServiceLevelStatus:
    """Status of a ``PrometheusServiceLevel`` resource."""

    observed_generation: int = 0
    prom_op_rules_generated: bool = False
    last_prom_op_rules_successful_generated: datetime | None = None


@dataclass
class PrometheusServiceLevel:
    """A ``PrometheusServiceLevel`` Kubernetes resource."""

    name: str = ""
    namespace: str = ""
    uid: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    generation: int = 0
    deletion_timestamp: datetime | None = None
    spec: Any = None
    status: ServiceLevelStatus = field(default_factory=ServiceLevelStatus)


class _Generator(Protocol):
    def generate(self, request: Request, ctx: Any = None) -> Response: ...


class _SpecLoader(Protocol):
    def load_spec(self, ctx: Any, psl: PrometheusServiceLevel) -> SLOGroup: ...


class _Repository(Protocol):
    def store_slos(self, ctx: Any, kmeta: K8sMeta, slos: Sequence[SLORulesResult]) -> None: ...


class _StatusStorer(Protocol):
    def ensure_prometheus_service_level_status(
        self, ctx: Any, psl: PrometheusServiceLevel, error: BaseException | None
    ) -> None: ...


def _as_utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def _source_object(slo_group: SLOGroup, fallback: PrometheusServiceLevel) -> PrometheusServiceLevel:
    source = slo_group.original_source
    source = getattr(source, "k8s_sloth_v1", source)
    return source if isinstance(source, PrometheusServiceLevel) else fallback


class Handler:
    """Generates and stores the Prometheus rules of each handled resource."""

    def __init__(
        self,
        generator: _Generator,
        spec_loader: _SpecLoader,
        repository: _Repository,
        status_storer: _StatusStorer,
        extra_labels: dict[str, str] | None = None,
        ignore_handle_before: timedelta | None = None,
        logger: Logger | None = None,
    ):
        if generator is None:
            raise ValueError("invalid configuration: generator is required")
        if spec_loader is None:
            raise ValueError("invalid configuration: kubernetes cr spec loader is required")
        if status_storer is None:
            raise ValueError("invalid configuration: kubernetes status storer is required")
        if repository is None:
            raise ValueError("invalid configuration: repository is required")

        self._generator = generator
        self._spec_loader = spec_loader
        self._repository = repository
        self._status_storer = status_storer
        self._extra_labels = dict(extra_labels or {})
        self._ignore_handle_before = ignore_handle_before or DEFAULT_IGNORE_HANDLE_BEFORE
        self._logger = (logger or NOOP).with_values({"service": "kubecontroller.Handler"})

    def handle(self, obj: Any, ctx: Any = None) -> None:
        """Handle a Kubernetes object; unsupported object types are ignored."""
        if isinstance(obj, PrometheusServiceLevel):
            self._handle_service_level(obj, ctx)
            return
        self._logger.warning("Unsupported Kubernetes object type: %s", type(obj).__name__)

    def _handle_service_level(self, psl: PrometheusServiceLevel, ctx: Any) -> None:
        ctx = self._logger.set_values_on_ctx(ctx, {"ns": psl.namespace, "name": psl.name})
        logger = self._logger.with_ctx_values(ctx)

        reason = self._ignore_reason(psl)
        if reason:
            logger.debug("Ignoring object due to %r", reason)
            return

        # The status reflects the result of every processed resource.
        error: BaseException | None = None
        try:
            self._process(ctx, psl)
        except Exception as err:
            error = err
            raise
        finally:
            try:
                self._status_storer.ensure_prometheus_service_level_status(ctx, psl, error)
            except Exception as stored_err:
                logger.error("Could not set PrometheusServiceLevel CRD status: %s", stored_err)

    def _process(self, ctx: Any, psl: PrometheusServiceLevel) -> None:
        try:
            slo_group = self._spec_loader.load_spec(ctx, psl)
        except Exception as err:
            raise RuntimeError(f"could not load CR spec into model: {err}") from err

        request = Request(
            info=Info(version=VERSION, mode=MODE_CONTROLLER_GEN_KUBERNETES, spec=SLOTH_API_VERSION),
            extra_labels=self._extra_labels,
            slo_group=slo_group,
        )
        try:
            response = self._generator.generate(request, ctx)
        except Exception as err:
            raise RuntimeError(f"could not generate SLOs: {err}") from err

        results = [SLORulesResult(slo=r.slo, rules=r.slo_rules) for r in response.prometheus_slos]
        source = _source_object(slo_group, psl)
        kmeta = K8sMeta(
            kind=SLOTH_KIND,
            api_version=SLOTH_API_VERSION,
            uid=source.uid,
            name=source.name,
            namespace=source.namespace,
            labels=dict(source.labels),
            annotations=dict(source.annotations),
        )
        try:
            self._repository.store_slos(ctx, kmeta, results)
        except Exception as err:
            raise RuntimeError(f"could not store SLOs: {err}") from err

    def _ignore_reason(self, psl: PrometheusServiceLevel) -> str:
        if psl.deletion_timestamp is not None:
            return "deletion in progress"

        # Status updates trigger new events; skip those where the spec did not
        # change and the last success is very recent, to break the update loop.
        status = psl.status
        last = status.last_prom_op_rules_successful_generated
        if (
            psl.generation == status.observed_generation
            and status.prom_op_rules_generated
            and last is not None
            and datetime.now(timezone.utc) - _as_utc(last) < self._ignore_handle_before
        ):
            return "no spec change in correct state object"
        return ""