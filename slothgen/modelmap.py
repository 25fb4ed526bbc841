"""Mapping of generated SLO rules to a Prometheus operator ``PrometheusRule`` manifest."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from slothgen.durations import format_duration
from slothgen.model import SLO, Rule, RuleGroup, SLORules

API_VERSION = "monitoring.coreos.com/v1"
KIND = "PrometheusRule"


class NoSLORulesError(ValueError):
    """Raised when there are no rules at all to store."""


@dataclass
class K8sMeta:
    """Kubernetes metadata of the object the rules are generated for."""

    kind: str = ""
    api_version: str = ""
    uid: str = ""
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class SLORulesResult:
    """An SLO with the rules generated for it."""

    slo: SLO
    rules: SLORules


def _rule(rule: Rule) -> dict[str, Any]:
    mapped: dict[str, Any] = {}
    if rule.record:
        mapped["record"] = rule.record
    if rule.alert:
        mapped["alert"] = rule.alert
    mapped["expr"] = rule.expr
    if rule.for_:
        mapped["for"] = format_duration(rule.for_)
    if rule.labels:
        mapped["labels"] = dict(rule.labels)
    if rule.annotations:
        mapped["annotations"] = dict(rule.annotations)
    return mapped


def _group(name: str, group: RuleGroup) -> dict[str, Any]:
    mapped: dict[str, Any] = {"name": name}
    if group.interval:
        mapped["interval"] = format_duration(group.interval)
    mapped["rules"] = [_rule(rule) for rule in group.rules]
    return mapped


def map_model_to_prometheus_operator(kmeta: K8sMeta, slos: Sequence[SLORulesResult]) -> dict[str, Any]:
    """Build a ``PrometheusRule`` manifest holding the rule groups of every SLO."""
    labels = {
        "app.kubernetes.io/component": "SLO",
        "app.kubernetes.io/managed-by": "sloth",
        **(kmeta.labels or {}),
    }

    if not slos:
        raise ValueError("slo rules required")

    groups = []
    for result in slos:
        for prefix, group in (
            ("sloth-slo-sli-recordings", result.rules.sli_error_rec_rules),
            ("sloth-slo-meta-recordings", result.rules.metadata_rec_rules),
            ("sloth-slo-alerts", result.rules.alert_rules),
        ):
            if group.rules:
                groups.append(_group(f"{prefix}-{result.slo.id}", group))

    # Nothing to store most likely means a mistake (typos, everything disabled...).
    if not groups:
        raise NoSLORulesError("no SLO rules generated")

    metadata: dict[str, Any] = {}
    if kmeta.name:
        metadata["name"] = kmeta.name
    if kmeta.namespace:
        metadata["namespace"] = kmeta.namespace
    metadata["labels"] = labels
    if kmeta.annotations:
        metadata["annotations"] = dict(kmeta.annotations)

    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "metadata": metadata,
        "spec": {"groups": groups},
    }