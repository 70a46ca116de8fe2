"""Application service that turns SLO groups into Prometheus rules."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from slothgen.alert import SLO, MWMBAlertGroup
from slothgen.log import NOOP, Logger
from slothgen.process import (
    Context,
    Info,
    PluginFactory,
    PromSLO,
    PromSLOGroup,
    SLOProcessor,
    SLOProcessorRequest,
    SLOProcessorResult,
    SLORules,
    noop_processor,
    processor_from_plugin,
)


def merge_labels(*args: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Merge label maps into a new one; later maps win."""
    merged: dict[str, str] = {}
    for labels in args:
        if labels:
            merged.update(labels)
    return merged


@dataclass(frozen=True)
class SLOPlugin:
    """A registered SLO plugin: its ID and the factory that builds it."""

    id: str
    factory: Optional[PluginFactory] = None


class PluginNotFoundError(LookupError):
    """Raised when an SLO plugin is not registered."""


class SLOPluginGetter(Protocol):
    def get_slo_plugin(self, ctx: Context, plugin_id: str) -> SLOPlugin: ...


class AlertGenerator(Protocol):
    def generate_mwmb_alerts(self, slo: SLO) -> MWMBAlertGroup: ...


class _NoPlugins:
    def get_slo_plugin(self, ctx: Context, plugin_id: str) -> SLOPlugin:
        raise PluginNotFoundError(f"SLO plugin {plugin_id!r} not found")


@dataclass
class Request:
    info: Info = field(default_factory=Info)
    extra_labels: dict[str, str] = field(default_factory=dict)
    slo_group: PromSLOGroup = field(default_factory=PromSLOGroup)


@dataclass
class SLOResult:
    slo: PromSLO
    slo_rules: SLORules


@dataclass
class Response:
    prometheus_slos: list[SLOResult] = field(default_factory=list)


class Service:
    """Runs every SLO of a group through the processor chain.

    Processors run in this order: SLO plugins with negative priority, the
    validate, SLI rules, alert rules and metadata rules processors, then the
    SLO plugins with priority zero or more. Default processors that are not
    given do nothing.
    """

    def __init__(
        self,
        alert_generator: AlertGenerator,
        *,
        sli_rules_processor: Optional[SLOProcessor] = None,
        alert_rules_processor: Optional[SLOProcessor] = None,
        metadata_rules_processor: Optional[SLOProcessor] = None,
        validate_processor: Optional[SLOProcessor] = None,
        plugin_getter: Optional[SLOPluginGetter] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        if alert_generator is None:
            raise ValueError("invalid configuration: alert generator is required")
        self._alert_gen = alert_generator
        self._plugin_getter = plugin_getter if plugin_getter is not None else _NoPlugins()
        self._default_processors: list[SLOProcessor] = [
            validate_processor or noop_processor,
            sli_rules_processor or noop_processor,
            alert_rules_processor or noop_processor,
            metadata_rules_processor or noop_processor,
        ]
        self._logger = (logger or NOOP).with_values({"svc": "generate.prometheus.Service"})

    def generate(self, request: Request, ctx: Context = None) -> Response:
        """Generate the rules of every SLO in ``request``."""
        try:
            self._validate_slo_group(request.slo_group)
        except ValueError as err:
            raise ValueError(f"invalid SLO group: {err}") from err

        results = []
        for slo in request.slo_group.slos:
            slo = dataclasses.replace(slo, labels=merge_labels(slo.labels, request.extra_labels))
            try:
                rules = self._generate_slo(ctx, request.info, request.slo_group, slo)
            except Exception as err:
                raise ValueError(f"could not generate {slo.id!r} slo: {err}") from err
            results.append(SLOResult(slo=slo, slo_rules=rules))

        return Response(prometheus_slos=results)

    def _generate_slo(self, ctx: Context, info: Info, slo_group: PromSLOGroup, slo: PromSLO) -> SLORules:
        logger = self._logger.with_ctx_values(ctx).with_values({"slo": slo.id})

        try:
            alerts = self._alert_gen.generate_mwmb_alerts(
                SLO(id=slo.id, time_window=slo.time_window, objective=slo.objective)
            )
        except Exception as err:
            raise ValueError(f"could not generate SLO alerts: {err}") from err
        logger.debug("Multiwindow-multiburn alerts generated")

        pre_default: list[SLOProcessor] = []
        post_default: list[SLOProcessor] = []
        for meta in sorted(slo.plugins, key=lambda p: p.priority):
            try:
                plugin = self._plugin_getter.get_slo_plugin(ctx, meta.id)
            except Exception as err:
                raise ValueError(f"could not get SLO plugin {meta.id!r}: {err}") from err
            if plugin.factory is None:
                raise ValueError(f"SLO plugin {meta.id!r} has no plugin factory")
            try:
                processor = processor_from_plugin(
                    plugin.factory, logger.with_values({"plugin": plugin.id}), meta.config
                )
            except ValueError as err:
                raise ValueError(f"could not create SLO plugin {meta.id!r}: {err}") from err
            (pre_default if meta.priority < 0 else post_default).append(processor)

        processors = [*pre_default, *self._default_processors, *post_default]

        req = SLOProcessorRequest(info=info, slo=slo, slo_group=slo_group, mwmb_alert_group=alerts)
        res = SLOProcessorResult()
        for processor in processors:
            try:
                processor(ctx, req, res)
            except Exception as err:
                raise ValueError(f"slo processor failed: {err}") from err

        return res.slo_rules

    @staticmethod
    def _validate_slo_group(slo_group: PromSLOGroup) -> None:
        if not slo_group.slos:
            raise ValueError("at least one SLO is required")
        seen: set[str] = set()
        for slo in slo_group.slos:
            if slo.id in seen:
                raise ValueError(f"SLO ID {slo.id!r} is repeated")
            seen.add(slo.id)


__all__ = [
    "SLOPlugin",
    "PluginNotFoundError",
    "Request",
    "SLOResult",
    "Response",
    "Service",
    "merge_labels",
]


def _unused(_: Any) -> None:  # pragma: no cover
    return None