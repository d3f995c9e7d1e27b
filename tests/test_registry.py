"""Unit tests for template compatibility scoring."""

from __future__ import annotations

import typing as typ

import pytest

from noetic_thesis.models import ItemKind, Template, ThesisConfigError
from noetic_thesis.registry import (
    CUSTOM,
    DETAILED_ANALYSIS,
    EXECUTIVE_SUMMARY,
    CompatibilityScore,
    ScoreBand,
    TemplateRegistry,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from noetic_thesis.models import Selection

    SelectionFactory = cabc.Callable[..., list[Selection]]


def test_registry_lists_four_templates_in_order(templates: TemplateRegistry) -> None:
    assert [template.id for template in templates.list()] == [
        "executive-summary",
        "detailed-analysis",
        "investor-pitch",
        "custom",
    ]
    assert len(templates) == 4
    assert templates.get("custom") is CUSTOM
    assert templates.get("unknown") is None


def test_duplicate_template_ids_are_rejected() -> None:
    with pytest.raises(ThesisConfigError, match="Duplicate template id"):
        TemplateRegistry([CUSTOM, CUSTOM])


def test_score_counts_matches_and_lists_missing_in_order(
    templates: TemplateRegistry, make_selections: SelectionFactory
) -> None:
    selections = make_selections(
        ("return-bar", ItemKind.CHART),
        ("market-line", ItemKind.CHART),
        ("p0", ItemKind.PHASE),
    )

    score = templates.score(EXECUTIVE_SUMMARY, selections)

    assert score.matching_count == 2
    assert score.match_ratio == pytest.approx(0.4)
    assert score.missing_ids == (
        "capital-doughnut",
        "risk-assessment",
        "target-fund-size",
    ), "missing ids should follow the template's declared order"
    assert score.percent == 40
    assert score.band is ScoreBand.WEAK


def test_score_is_one_when_all_defaults_selected(
    templates: TemplateRegistry, make_selections: SelectionFactory
) -> None:
    selections = make_selections(
        *((item_id, ItemKind.CHART) for item_id in EXECUTIVE_SUMMARY.default_selection_ids)
    )

    score = templates.score(EXECUTIVE_SUMMARY, selections)

    assert score.match_ratio == 1.0
    assert score.missing_ids == ()
    assert score.band is ScoreBand.STRONG


def test_custom_template_always_scores_one(templates: TemplateRegistry) -> None:
    score = templates.score(CUSTOM, [])

    assert score == CompatibilityScore(match_ratio=1.0, matching_count=0, missing_ids=())


def test_empty_selection_scores_zero(templates: TemplateRegistry) -> None:
    score = templates.score(DETAILED_ANALYSIS, [])

    assert score.match_ratio == 0.0
    assert score.missing_ids == DETAILED_ANALYSIS.default_selection_ids
    assert score.band is ScoreBand.POOR


def test_scores_stay_within_bounds(
    templates: TemplateRegistry, make_selections: SelectionFactory
) -> None:
    selections = make_selections(
        ("market-line", ItemKind.CHART),
        ("p2", ItemKind.PHASE),
        ("anchor-allocation", ItemKind.METRIC),
        ("not-in-any-template", ItemKind.CHART),
    )

    for template, score in templates.rank(selections):
        assert 0.0 <= score.match_ratio <= 1.0, (
            f"{template.id} scored {score.match_ratio} outside [0, 1]"
        )
        assert score.matching_count + len(score.missing_ids) == len(
            template.default_selection_ids
        )


@pytest.mark.parametrize(
    ("ratio", "band"),
    [
        (1.0, ScoreBand.STRONG),
        (0.8, ScoreBand.STRONG),
        (0.79, ScoreBand.FAIR),
        (0.6, ScoreBand.FAIR),
        (0.5, ScoreBand.WEAK),
        (0.4, ScoreBand.WEAK),
        (0.39, ScoreBand.POOR),
        (0.0, ScoreBand.POOR),
    ],
)
def test_band_thresholds(ratio: float, band: ScoreBand) -> None:
    score = CompatibilityScore(match_ratio=ratio, matching_count=0, missing_ids=())

    assert score.band is band


def test_score_accepts_unregistered_templates(templates: TemplateRegistry) -> None:
    template = Template(
        id="adhoc",
        name="Ad hoc",
        description="",
        sections=(),
        default_selection_ids=("p0",),
    )

    assert templates.score(template, []).missing_ids == ("p0",)
