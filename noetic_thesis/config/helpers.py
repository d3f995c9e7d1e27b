"""Utility helpers shared by the reference data loader."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from noetic_thesis._constants import RISK_LEVELS

from .models import (
    ChartMetadata,
    KeyMetricConfig,
    NarrativeConfig,
    PhaseConfig,
    RiskEntry,
    SeriesConfig,
    SummaryMetric,
    ThesisConfigError,
)

SERIES_KEYS = (
    "market",
    "capital",
    "noetic_os",
    "platform_kpis",
    "value_creation",
    "return_scenarios",
)


def _require_mapping(value: object, label: str) -> typ.Mapping[str, typ.Any]:
    """Return ``value`` as a mapping or raise a ThesisConfigError naming it."""
    if not isinstance(value, cabc.Mapping):
        msg = f"'{label}' must be a mapping."
        raise ThesisConfigError(msg)
    return value


def _require_list(value: object, label: str) -> list[typ.Any]:
    """Return ``value`` as a list or raise a ThesisConfigError naming it."""
    if not isinstance(value, list):
        msg = f"'{label}' must be a list."
        raise ThesisConfigError(msg)
    return value


def _require_str(payload: typ.Mapping[str, typ.Any], key: str, label: str) -> str:
    """Return a stripped, non-empty string field from ``payload``."""
    value = payload.get(key)
    if value is None:
        msg = f"'{label}' is missing '{key}'."
        raise ThesisConfigError(msg)
    text = str(value).strip()
    if not text:
        msg = f"'{label}.{key}' must not be empty."
        raise ThesisConfigError(msg)
    return text


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_tuple(value: object, label: str) -> tuple[str, ...]:
    """Normalize a YAML list into a tuple of non-empty strings."""
    if value is None:
        return ()
    items = _require_list(value, label)
    return tuple(text for text in (str(item).strip() for item in items) if text)


def _string_map(value: object, label: str) -> dict[str, str]:
    """Normalize a YAML mapping into ``str -> str`` preserving key order."""
    if value is None:
        return {}
    mapping = _require_mapping(value, label)
    return {str(key): str(item) for key, item in mapping.items()}


def _ensure_unique(ids: cabc.Iterable[str], label: str) -> None:
    seen: set[str] = set()
    for item_id in ids:
        if item_id in seen:
            msg = f"Duplicate id '{item_id}' in '{label}'."
            raise ThesisConfigError(msg)
        seen.add(item_id)


def _build_series(key: str, payload: object) -> SeriesConfig:
    """Build a SeriesConfig from a ``labels`` list plus numeric series lists."""
    mapping = _require_mapping(payload, key)
    labels = _string_tuple(mapping.get("labels"), f"{key}.labels")
    values: dict[str, tuple[float, ...]] = {}
    for name, raw in mapping.items():
        if name in {"labels", "title", "colors", "color"}:
            continue
        if not isinstance(raw, list):
            continue
        try:
            series = tuple(float(item) for item in raw)
        except (TypeError, ValueError) as exc:
            msg = f"'{key}.{name}' must contain only numbers."
            raise ThesisConfigError(msg) from exc
        if labels and len(series) != len(labels):
            msg = (
                f"'{key}.{name}' has {len(series)} values for "
                f"{len(labels)} labels."
            )
            raise ThesisConfigError(msg)
        values[str(name)] = series
    return SeriesConfig(
        labels=labels, values=values, title=_optional_str(mapping.get("title"))
    )


def _build_phases(payload: object) -> tuple[PhaseConfig, ...]:
    phases: list[PhaseConfig] = []
    for index, raw in enumerate(_require_list(payload, "phases")):
        label = f"phases[{index}]"
        entry = _require_mapping(raw, label)
        phases.append(
            PhaseConfig(
                id=_require_str(entry, "id", label),
                title=_require_str(entry, "title", label),
                duration=str(entry.get("duration", "") or ""),
                metrics=_string_map(entry.get("metrics"), f"{label}.metrics"),
            )
        )
    _ensure_unique((phase.id for phase in phases), "phases")
    return tuple(phases)


def _build_risks(payload: object) -> tuple[RiskEntry, ...]:
    risks: list[RiskEntry] = []
    for index, raw in enumerate(_require_list(payload, "risks")):
        label = f"risks[{index}]"
        entry = _require_mapping(raw, label)
        level = _require_str(entry, "level", label).lower()
        if level not in RISK_LEVELS:
            msg = f"'{label}.level' must be one of {', '.join(RISK_LEVELS)}."
            raise ThesisConfigError(msg)
        risks.append(RiskEntry(level=level, name=_require_str(entry, "name", label)))
    return tuple(risks)


def _build_charts(payload: object) -> tuple[ChartMetadata, ...]:
    charts: list[ChartMetadata] = []
    for index, raw in enumerate(_require_list(payload, "charts")):
        label = f"charts[{index}]"
        entry = _require_mapping(raw, label)
        charts.append(
            ChartMetadata(
                id=_require_str(entry, "id", label),
                title=_require_str(entry, "title", label),
                insight=_optional_str(entry.get("insight")),
            )
        )
    _ensure_unique((chart.id for chart in charts), "charts")
    return tuple(charts)


def _build_key_metrics(
    payload: object, capital_plan: typ.Mapping[str, str]
) -> tuple[KeyMetricConfig, ...]:
    metrics: list[KeyMetricConfig] = []
    for index, raw in enumerate(_require_list(payload, "key_metrics")):
        label = f"key_metrics[{index}]"
        entry = _require_mapping(raw, label)
        plan_key = _require_str(entry, "capital_plan_key", label)
        if plan_key not in capital_plan:
            msg = f"'{label}.capital_plan_key' references unknown key '{plan_key}'."
            raise ThesisConfigError(msg)
        metrics.append(
            KeyMetricConfig(
                id=_require_str(entry, "id", label),
                title=_require_str(entry, "title", label),
                capital_plan_key=plan_key,
            )
        )
    _ensure_unique((metric.id for metric in metrics), "key_metrics")
    return tuple(metrics)


def _build_narrative(payload: object) -> NarrativeConfig:
    entry = _require_mapping(payload, "narrative")
    summary_metrics = tuple(
        SummaryMetric(
            label=_require_str(item, "label", "narrative.summary_metrics"),
            value=_require_str(item, "value", "narrative.summary_metrics"),
        )
        for item in (
            _require_mapping(raw, "narrative.summary_metrics")
            for raw in _require_list(
                entry.get("summary_metrics", []), "narrative.summary_metrics"
            )
        )
    )
    return NarrativeConfig(
        product_name=_require_str(entry, "product_name", "narrative"),
        subtitle=_require_str(entry, "subtitle", "narrative"),
        tagline=_require_str(entry, "tagline", "narrative"),
        highlights=_string_tuple(entry.get("highlights"), "narrative.highlights"),
        prepared_by=_require_str(entry, "prepared_by", "narrative"),
        opportunity=_require_str(entry, "opportunity", "narrative"),
        summary_metrics=summary_metrics,
        value_drivers=_string_tuple(
            entry.get("value_drivers"), "narrative.value_drivers"
        ),
        thesis=_require_str(entry, "thesis", "narrative"),
        mitigations=_string_tuple(entry.get("mitigations"), "narrative.mitigations"),
        generic_insight=_require_str(entry, "generic_insight", "narrative"),
    )


__all__ = [
    "SERIES_KEYS",
    "_build_charts",
    "_build_key_metrics",
    "_build_narrative",
    "_build_phases",
    "_build_risks",
    "_build_series",
    "_optional_str",
    "_require_mapping",
    "_string_map",
    "_string_tuple",
]
