"""Kubernetes controller handler for PrometheusServiceLevel objects."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol

from slothgen.generate import Request, Response
from slothgen.log import NOOP, VERSION, Logger
from slothgen.modelmap import K8sMeta, SLORulesResult
from slothgen.process import Info, PromSLOGroup

KIND = "PrometheusServiceLevel"
API_VERSION = "sloth.slok.dev/v1"
MODE_CONTROLLER_GEN_KUBERNETES = "ctrl-gen-k8s"

Context = Optional[Mapping[str, Any]]


@dataclass
class ServiceLevelStatus:
    """Status of a PrometheusServiceLevel as stored by the controller."""

    observed_generation: int = 0
    prom_op_rules_generated: bool = False
    last_prom_op_rules_successful_generated: Optional[datetime] = None


@dataclass
class PrometheusServiceLevel:
    """A PrometheusServiceLevel Kubernetes object."""

    name: str = ""
    namespace: str = ""
    uid: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    generation: int = 0
    deletion_timestamp: Optional[datetime] = None
    spec: Any = None
    status: ServiceLevelStatus = field(default_factory=ServiceLevelStatus)


class SpecLoader(Protocol):
    def load_spec(self, ctx: Context, psl: PrometheusServiceLevel) -> PromSLOGroup: ...


class RulesGenerator(Protocol):
    def generate(self, request: Request, ctx: Context = None) -> Response: ...


class Repository(Protocol):
    def store_slos(self, ctx: Context, kmeta: K8sMeta, slos: list[SLORulesResult]) -> None: ...


class KubeStatusStorer(Protocol):
    def ensure_prometheus_service_level_status(
        self, ctx: Context, psl: PrometheusServiceLevel, err: Optional[BaseException]
    ) -> None: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Handler:
    """Loads, generates and stores the rules of each PrometheusServiceLevel it receives."""

    def __init__(
        self,
        generator: Optional[RulesGenerator] = None,
        spec_loader: Optional[SpecLoader] = None,
        repository: Optional[Repository] = None,
        kube_status_storer: Optional[KubeStatusStorer] = None,
        extra_labels: Optional[Mapping[str, str]] = None,
        ignore_handle_before: timedelta = timedelta(0),
        logger: Optional[Logger] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if generator is None:
            raise ValueError("invalid configuration: generator is required")
        if spec_loader is None:
            raise ValueError("invalid configuration: kubernetes cr spec loader is required")
        if kube_status_storer is None:
            raise ValueError("invalid configuration: kubernetes status storer is required")
        if repository is None:
            raise ValueError("invalid configuration: repository is required")

        self._generator = generator
        self._spec_loader = spec_loader
        self._repository = repository
        self._status_storer = kube_status_storer
        self._extra_labels = dict(extra_labels or {})
        self._ignore_handle_before = ignore_handle_before or timedelta(minutes=3)
        self._logger = (logger or NOOP).with_values({"service": "kubecontroller.Handler"})
        self._clock = clock

    def handle(self, obj: Any, ctx: Context = None) -> None:
        """Handle one Kubernetes object; unsupported object types are logged and skipped."""
        if isinstance(obj, PrometheusServiceLevel):
            self._handle_service_level(ctx, obj)
            return
        self._logger.warning("Unsuported Kubernetes object type: %s", type(obj).__name__)

    def _handle_service_level(self, ctx: Context, psl: PrometheusServiceLevel) -> None:
        ctx = self._logger.set_values_on_ctx(ctx, {"ns": psl.namespace, "name": psl.name})
        logger = self._logger.with_ctx_values(ctx)

        reason = self._ignore_reason(psl)
        if reason:
            logger.debug("Ignoring object due to %r", reason)
            return

        error: Optional[BaseException] = None
        try:
            self._process(ctx, psl)
        except Exception as err:
            error = err
            raise
        finally:
            try:
                self._status_storer.ensure_prometheus_service_level_status(ctx, psl, error)
            except Exception as store_err:
                logger.error("Could not set PrometheusServiceLevel CRD status: %s", store_err)

    def _process(self, ctx: Context, psl: PrometheusServiceLevel) -> None:
        try:
            slo_group = self._spec_loader.load_spec(ctx, psl)
        except Exception as err:
            raise RuntimeError(f"could not load CR spec into model: {err}") from err

        request = Request(
            info=Info(version=VERSION, mode=MODE_CONTROLLER_GEN_KUBERNETES, spec=API_VERSION),
            extra_labels=self._extra_labels,
            slo_group=slo_group,
        )
        try:
            response = self._generator.generate(request, ctx)
        except Exception as err:
            raise RuntimeError(f"could not generate SLOs: {err}") from err

        results = [SLORulesResult(slo=r.slo, rules=r.slo_rules) for r in response.prometheus_slos]

        source = slo_group.original_source
        if not isinstance(source, PrometheusServiceLevel):
            source = psl
        kmeta = K8sMeta(
            kind=KIND,
            api_version=API_VERSION,
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

        # A status-only update of a healthy object would otherwise loop forever.
        status = psl.status
        last_success = status.last_prom_op_rules_successful_generated
        if (
            psl.generation == status.observed_generation
            and status.prom_op_rules_generated
            and last_success is not None
            and self._clock() - last_success < self._ignore_handle_before
        ):
            return "no spec change in correct state object"

        return ""