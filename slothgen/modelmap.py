"""Mapping of generated SLO rules to a Prometheus operator PrometheusRule object."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from slothgen.process import PromSLO, Rule, RuleGroup, SLORules
from slothgen.windows import format_duration


class NoSLORulesError(ValueError):
    """Raised when there are no SLO rules to store."""

    def __init__(self, message: str = "0 SLO Prometheus rules generated") -> None:
        super().__init__(message)


@dataclass
class K8sMeta:
    """Kubernetes metadata of the object the rules belong to."""

    kind: str = ""
    api_version: str = ""
    uid: str = ""
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class SLORulesResult:
    slo: PromSLO
    rules: SLORules


def _kube_rules(rules: Sequence[Rule]) -> list[dict[str, Any]]:
    result = []
    for rule in rules:
        item: dict[str, Any] = {}
        if rule.record:
            item["record"] = rule.record
        if rule.alert:
            item["alert"] = rule.alert
        item["expr"] = rule.expr
        if rule.for_ != timedelta(0):
            item["for"] = format_duration(rule.for_)
        if rule.labels:
            item["labels"] = dict(rule.labels)
        if rule.annotations:
            item["annotations"] = dict(rule.annotations)
        result.append(item)
    return result


def _group(name: str, group: RuleGroup) -> dict[str, Any]:
    item: dict[str, Any] = {"name": name}
    if group.interval != timedelta(0):
        item["interval"] = format_duration(group.interval)
    item["rules"] = _kube_rules(group.rules)
    return item


def map_to_prometheus_operator(kmeta: K8sMeta, slos: Sequence[SLORulesResult]) -> dict[str, Any]:
    """Build a ``PrometheusRule`` object (as a mapping) holding every SLO's rule groups."""
    labels = {
        "app.kubernetes.io/component": "SLO",
        "app.kubernetes.io/managed-by": "sloth",
        **(kmeta.labels or {}),
    }
    metadata: dict[str, Any] = {"name": kmeta.name}
    if kmeta.namespace:
        metadata["namespace"] = kmeta.namespace
    metadata["labels"] = labels
    if kmeta.annotations:
        metadata["annotations"] = dict(kmeta.annotations)

    if not slos:
        raise ValueError("slo rules required")

    groups = []
    for slo in slos:
        for prefix, group in (
            ("sloth-slo-sli-recordings", slo.rules.sli_error_rec_rules),
            ("sloth-slo-meta-recordings", slo.rules.metadata_rec_rules),
            ("sloth-slo-alerts", slo.rules.alert_rules),
        ):
            if group.rules:
                groups.append(_group(f"{prefix}-{slo.slo.id}", group))

    # Nothing to store is most likely an unintended misconfiguration.
    if not groups:
        raise NoSLORulesError()

    return {
        "apiVersion": "monitoring.coreos.com/v1",
        "kind": "PrometheusRule",
        "metadata": metadata,
        "spec": {"groups": groups},
    }