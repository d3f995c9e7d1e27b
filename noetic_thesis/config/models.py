"""Typed dataclasses describing the read-only Noetic reference dataset."""

from __future__ import annotations

import dataclasses as dc

from noetic_thesis.models import ThesisConfigError


@dc.dataclass(frozen=True, slots=True)
class SeriesConfig:
    """A labelled numeric series backing one of the dashboard charts."""

    labels: tuple[str, ...]
    values: dict[str, tuple[float, ...]]
    title: str | None = None


@dc.dataclass(frozen=True, slots=True)
class PhaseConfig:
    """One investment phase with its duration and metrics map."""

    id: str
    title: str
    duration: str
    metrics: dict[str, str]


@dc.dataclass(frozen=True, slots=True)
class RiskEntry:
    """A named risk and its severity level."""

    level: str
    name: str


@dc.dataclass(frozen=True, slots=True)
class ChartMetadata:
    """Chart id, display title, and the insight paragraph shown beside it."""

    id: str
    title: str
    insight: str | None = None


@dc.dataclass(frozen=True, slots=True)
class KeyMetricConfig:
    """Selectable headline metric resolved against the capital plan."""

    id: str
    title: str
    capital_plan_key: str


@dc.dataclass(frozen=True, slots=True)
class SummaryMetric:
    """Headline figure shown on the executive summary."""

    label: str
    value: str


@dc.dataclass(frozen=True, slots=True)
class NarrativeConfig:
    """Fixed copy used on the cover, summary, and risk pages."""

    product_name: str
    subtitle: str
    tagline: str
    highlights: tuple[str, ...]
    prepared_by: str
    opportunity: str
    summary_metrics: tuple[SummaryMetric, ...]
    value_drivers: tuple[str, ...]
    thesis: str
    mitigations: tuple[str, ...]
    generic_insight: str


@dc.dataclass(frozen=True, slots=True)
class ReferenceData:
    """The full dataset consumed by the catalog and plan builder."""

    series: dict[str, SeriesConfig]
    phases: tuple[PhaseConfig, ...]
    capital_plan: dict[str, str]
    risks: tuple[RiskEntry, ...]
    charts: tuple[ChartMetadata, ...]
    key_metrics: tuple[KeyMetricConfig, ...]
    narrative: NarrativeConfig

    def phase(self, phase_id: str) -> PhaseConfig | None:
        """Return the phase with ``phase_id`` or ``None`` when unknown."""
        return next((phase for phase in self.phases if phase.id == phase_id), None)

    def risks_by_level(self, level: str | None = None) -> tuple[RiskEntry, ...]:
        """Return every risk, or only those at ``level`` when provided."""
        if level is None:
            return self.risks
        return tuple(risk for risk in self.risks if risk.level == level)

    def insight(self, chart_id: str) -> str | None:
        """Return the configured insight for ``chart_id`` if there is one."""
        for chart in self.charts:
            if chart.id == chart_id:
                return chart.insight
        return None

    def capital_plan_value(self, key: str) -> str | None:
        """Return the capital plan entry stored under ``key``."""
        return self.capital_plan.get(key)


__all__ = [
    "ChartMetadata",
    "KeyMetricConfig",
    "NarrativeConfig",
    "PhaseConfig",
    "ReferenceData",
    "RiskEntry",
    "SeriesConfig",
    "SummaryMetric",
    "ThesisConfigError",
]
