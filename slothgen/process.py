"""SLO models shared by processors, and the adapter from SLO plugins to processors."""

from __future__ import annotations

import copy
import dataclasses
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional

from slothgen.alert import MWMBAlertGroup
from slothgen.log import Logger

Context = Optional[Mapping[str, Any]]


@dataclass
class Info:
    """Application and execution metadata attached to generated rules."""

    version: str = ""
    mode: str = ""
    spec: str = ""


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
    """Rules evaluated together at an optional interval."""

    interval: timedelta = timedelta(0)
    rules: list[Rule] = field(default_factory=list)


@dataclass
class SLORules:
    """All the Prometheus rules generated for one SLO."""

    sli_error_rec_rules: RuleGroup = field(default_factory=RuleGroup)
    metadata_rec_rules: RuleGroup = field(default_factory=RuleGroup)
    alert_rules: RuleGroup = field(default_factory=RuleGroup)


@dataclass
class PluginMetadata:
    """Reference to an SLO plugin attached to an SLO, with its config and priority."""

    id: str
    config: Any = None
    priority: int = 0


@dataclass
class PromSLO:
    """An SLO ready to be turned into Prometheus rules."""

    id: str = ""
    name: str = ""
    service: str = ""
    sli: Any = None
    time_window: timedelta = timedelta(0)
    objective: float = 0.0
    labels: dict[str, str] = field(default_factory=dict)
    page_alert_meta: Any = None
    ticket_alert_meta: Any = None
    plugins: list[PluginMetadata] = field(default_factory=list)


@dataclass
class PromSLOGroup:
    """A group of SLOs loaded from one spec, with the spec they came from."""

    slos: list[PromSLO] = field(default_factory=list)
    original_source: Any = None


@dataclass
class SLOProcessorRequest:
    info: Info = field(default_factory=Info)
    slo: PromSLO = field(default_factory=PromSLO)
    slo_group: PromSLOGroup = field(default_factory=PromSLOGroup)
    mwmb_alert_group: Optional[MWMBAlertGroup] = None


@dataclass
class SLOProcessorResult:
    slo_rules: SLORules = field(default_factory=SLORules)


@dataclass
class PluginRequest:
    """What an SLO plugin receives."""

    info: Info = field(default_factory=Info)
    slo: PromSLO = field(default_factory=PromSLO)
    mwmb_alert_group: Optional[MWMBAlertGroup] = None
    original_source: Any = None


@dataclass
class PluginResult:
    """What an SLO plugin fills in."""

    slo_rules: SLORules = field(default_factory=SLORules)


SLOProcessor = Callable[[Context, SLOProcessorRequest, SLOProcessorResult], None]
PluginFactory = Callable[[bytes, Logger], Any]


def noop_processor(ctx: Context, req: SLOProcessorRequest, res: SLOProcessorResult) -> None:
    """Processor that leaves request and result untouched."""
    return None


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def processor_from_plugin(factory: PluginFactory, logger: Logger, config: Any) -> SLOProcessor:
    """Build a plugin with its JSON encoded ``config`` and wrap it as an SLO processor."""
    try:
        config_data = json.dumps(
            config,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=_json_default,
        ).encode()
    except (TypeError, ValueError) as err:
        raise ValueError(f"could not marshal config: {err}") from err

    try:
        plugin = factory(config_data, logger)
    except Exception as err:
        raise ValueError(f"could not create plugin: {err}") from err

    def process(ctx: Context, req: SLOProcessorRequest, res: SLOProcessorResult) -> None:
        plugin_req = PluginRequest(
            info=req.info,
            slo=req.slo,
            mwmb_alert_group=req.mwmb_alert_group,
            original_source=req.slo_group.original_source,
        )
        plugin_res = PluginResult(slo_rules=copy.deepcopy(res.slo_rules))

        plugin.process_slo(ctx, plugin_req, plugin_res)

        req.info = plugin_req.info
        req.slo = plugin_req.slo
        req.mwmb_alert_group = plugin_req.mwmb_alert_group
        res.slo_rules = plugin_res.slo_rules

    return process