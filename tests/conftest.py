"""Shared fixtures for the thesis builder test suite."""

from __future__ import annotations

import datetime as dt
import typing as typ

import pytest

from noetic_thesis.catalog import SelectionCatalog, default_chart_registry
from noetic_thesis.config import default_reference_data
from noetic_thesis.models import ExportOptions, ItemKind, Selection
from noetic_thesis.plan import PagePlanBuilder
from noetic_thesis.registry import default_template_registry

if typ.TYPE_CHECKING:
    from noetic_thesis.catalog import ChartRegistry
    from noetic_thesis.config import ReferenceData
    from noetic_thesis.registry import TemplateRegistry

FIXED_DATE = dt.date(2025, 3, 14)


@pytest.fixture
def reference() -> ReferenceData:
    """Return the packaged reference dataset."""
    return default_reference_data()


@pytest.fixture
def charts(reference: ReferenceData) -> ChartRegistry:
    """Return placeholder chart providers for the packaged dataset."""
    return default_chart_registry(reference)


@pytest.fixture
def catalog(reference: ReferenceData, charts: ChartRegistry) -> SelectionCatalog:
    """Return an empty selection catalog."""
    return SelectionCatalog(reference, charts)


@pytest.fixture
def templates() -> TemplateRegistry:
    """Return the built-in template registry."""
    return default_template_registry()


@pytest.fixture
def plan_builder(reference: ReferenceData, charts: ChartRegistry) -> PagePlanBuilder:
    """Return a plan builder over the packaged dataset."""
    return PagePlanBuilder(reference, charts)


@pytest.fixture
def options() -> ExportOptions:
    """Return default export options."""
    return ExportOptions()


def _make_selections(*pairs: tuple[str, ItemKind]) -> list[Selection]:
    """Build selections numbered in argument order."""
    return [
        Selection(id=item_id, kind=kind, title="", order=index)
        for index, (item_id, kind) in enumerate(pairs)
    ]


@pytest.fixture
def make_selections() -> typ.Callable[..., list[Selection]]:
    """Return a factory turning ``(id, kind)`` pairs into ordered selections."""
    return _make_selections


@pytest.fixture
def generated_at() -> dt.date:
    """Return the fixed date stamped on cover pages in tests."""
    return FIXED_DATE
