"""Fixed presentation templates and selection compatibility scoring."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import types
import typing as typ

from noetic_thesis.models import Template, ThesisConfigError

if typ.TYPE_CHECKING:
    from noetic_thesis.models import Selection


class ScoreBand(enum.StrEnum):
    """Qualitative bucket for a compatibility ratio."""

    STRONG = "strong"
    FAIR = "fair"
    WEAK = "weak"
    POOR = "poor"


BAND_THRESHOLDS: tuple[tuple[float, ScoreBand], ...] = (
    (0.8, ScoreBand.STRONG),
    (0.6, ScoreBand.FAIR),
    (0.4, ScoreBand.WEAK),
)


@dc.dataclass(frozen=True, slots=True)
class CompatibilityScore:
    """Share of a template's default items present in a selection list.

    Attributes
    ----------
    match_ratio : float
        ``matching_count / len(default_selection_ids)``, or ``1.0`` when the
        template declares no defaults.
    matching_count : int
        Number of default ids found among the selections.
    missing_ids : tuple[str, ...]
        Default ids absent from the selections, in the template's order.
    """

    match_ratio: float
    matching_count: int
    missing_ids: tuple[str, ...]

    @property
    def band(self) -> ScoreBand:
        """Return the qualitative band for :attr:`match_ratio`."""
        for threshold, band in BAND_THRESHOLDS:
            if self.match_ratio >= threshold:
                return band
        return ScoreBand.POOR

    @property
    def percent(self) -> int:
        """Return the ratio as a rounded percentage."""
        return round(self.match_ratio * 100)


EXECUTIVE_SUMMARY = Template(
    id="executive-summary",
    name="Executive Summary",
    description=(
        "Concise overview perfect for board presentations and initial "
        "investor meetings"
    ),
    sections=(
        "Cover Page",
        "Investment Thesis",
        "Market Opportunity",
        "Capital Strategy",
        "Key Metrics",
        "Risk Assessment",
        "Expected Returns",
    ),
    default_selection_ids=(
        "market-line",
        "capital-doughnut",
        "return-bar",
        "risk-assessment",
        "target-fund-size",
    ),
)

DETAILED_ANALYSIS = Template(
    id="detailed-analysis",
    name="Detailed Analysis",
    description=(
        "Comprehensive analysis with all phases and metrics for thorough "
        "due diligence"
    ),
    sections=(
        "Cover Page",
        "Executive Summary",
        "Market Analysis",
        "Investment Strategy",
        "Phase 0: Foundation",
        "Phase 1: Anchor",
        "Phase 2: Bolt-Ons",
        "Phase 3: Scale",
        "Phase 4: Exit",
        "Financial Projections",
        "Risk Analysis",
        "Appendix",
    ),
    default_selection_ids=(
        "market-line",
        "capital-doughnut",
        "noetic-os-radar",
        "platform-kpi-bar",
        "value-creation-dual",
        "return-bar",
        "p0",
        "p1",
        "p2",
        "p3",
        "p4",
        "risk-assessment",
    ),
)

INVESTOR_PITCH = Template(
    id="investor-pitch",
    name="Investor Pitch",
    description=(
        "Focused pitch deck designed to generate investor interest and commitment"
    ),
    sections=(
        "Title Slide",
        "Problem & Opportunity",
        "Solution Overview",
        "Market Size & Growth",
        "Business Model",
        "Competitive Advantage",
        "Financial Projections",
        "Investment Ask",
        "Use of Funds",
        "Team & Advisors",
        "Next Steps",
    ),
    default_selection_ids=(
        "market-line",
        "value-creation-dual",
        "return-bar",
        "target-fund-size",
        "anchor-allocation",
    ),
)

CUSTOM = Template(
    id="custom",
    name="Custom Template",
    description=(
        "Flexible template that adapts to your selected content with minimal "
        "structure"
    ),
    sections=("Cover Page", "Selected Content", "Appendix"),
)

DEFAULT_TEMPLATES: tuple[Template, ...] = (
    EXECUTIVE_SUMMARY,
    DETAILED_ANALYSIS,
    INVESTOR_PITCH,
    CUSTOM,
)


class TemplateRegistry:
    """Read-only catalog of presentation templates in a fixed order."""

    def __init__(self, templates: cabc.Iterable[Template]) -> None:
        entries: dict[str, Template] = {}
        for template in templates:
            if template.id in entries:
                msg = f"Duplicate template id '{template.id}'."
                raise ThesisConfigError(msg)
            entries[template.id] = template
        self._templates = types.MappingProxyType(entries)

    def list(self) -> tuple[Template, ...]:
        """Return every template in catalog order."""
        return tuple(self._templates.values())

    def get(self, template_id: str) -> Template | None:
        """Return the template registered under ``template_id``, if any."""
        return self._templates.get(template_id)

    def score(
        self, template: Template, selections: cabc.Iterable[Selection]
    ) -> CompatibilityScore:
        """Score how many of ``template``'s default ids are selected.

        Parameters
        ----------
        template : Template
            Template whose ``default_selection_ids`` define the target set.
        selections : Iterable[Selection]
            Current selections; only their ids are inspected.

        Returns
        -------
        CompatibilityScore
            Ratio in ``[0, 1]``, the matching count, and the missing ids in
            declared order. Templates without defaults always score ``1.0``.

        Examples
        --------
        >>> registry = default_template_registry()
        >>> registry.score(registry.get("custom"), []).match_ratio
        1.0
        """
        selected_ids = {selection.id for selection in selections}
        defaults = template.default_selection_ids
        if not defaults:
            return CompatibilityScore(match_ratio=1.0, matching_count=0, missing_ids=())
        matching = sum(1 for item_id in defaults if item_id in selected_ids)
        missing = tuple(item_id for item_id in defaults if item_id not in selected_ids)
        return CompatibilityScore(
            match_ratio=matching / len(defaults),
            matching_count=matching,
            missing_ids=missing,
        )

    def rank(
        self, selections: cabc.Iterable[Selection]
    ) -> list[tuple[Template, CompatibilityScore]]:
        """Score every template against ``selections`` in catalog order."""
        chosen = list(selections)
        return [(template, self.score(template, chosen)) for template in self.list()]

    def __iter__(self) -> cabc.Iterator[Template]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)


def default_template_registry() -> TemplateRegistry:
    """Return a registry holding the four built-in templates."""
    return TemplateRegistry(DEFAULT_TEMPLATES)


__all__ = [
    "BAND_THRESHOLDS",
    "CUSTOM",
    "DEFAULT_TEMPLATES",
    "DETAILED_ANALYSIS",
    "EXECUTIVE_SUMMARY",
    "INVESTOR_PITCH",
    "CompatibilityScore",
    "ScoreBand",
    "TemplateRegistry",
    "default_template_registry",
]
