"""Selectable thesis content and the user's ordered selection list.

The catalog enumerates every item a user can add to a thesis: one entry per
registered chart provider, one per phase in the reference dataset, one per
declared key metric, and the single ``risk-assessment`` pseudo-item. It also
owns the selection list, keeping ``order`` values contiguous from zero after
every toggle or reorder.

Example
-------
>>> from noetic_thesis.catalog import SelectionCatalog, default_chart_registry
>>> from noetic_thesis.config import default_reference_data
>>> data = default_reference_data()
>>> catalog = SelectionCatalog(data, default_chart_registry(data))
>>> [item.id for item in catalog.list_available(category="risks")]
['risk-assessment']
>>> [s.order for s in catalog.toggle("p0")]
[0]
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import types
import typing as typ

from noetic_thesis._constants import RISK_PAGE_ID
from noetic_thesis.models import ItemKind, SelectableItem, Selection, ThesisConfigError

if typ.TYPE_CHECKING:
    from noetic_thesis.config import ReferenceData

ChartRenderer = cabc.Callable[[], "bytes | None"]

RISK_ITEM_TITLE = "Risk Assessment"
CATEGORY_KINDS: dict[str, ItemKind] = {
    "charts": ItemKind.CHART,
    "metrics": ItemKind.METRIC,
    "phases": ItemKind.PHASE,
    "risks": ItemKind.RISK,
}


@dc.dataclass(frozen=True, slots=True)
class ChartProvider:
    """Opaque chart source keyed by a globally unique chart id.

    Attributes
    ----------
    id : str
        Chart identifier shared with selections and the insight table.
    title : str
        Human-readable chart title.
    render : Callable[[], bytes | None], optional
        Callable returning a PNG image for the chart, or ``None`` when the
        provider has no static visual and renderers should draw a placeholder.
    """

    id: str
    title: str
    render: ChartRenderer | None = None

    def visual(self) -> bytes | None:
        """Return the rendered PNG bytes, or ``None`` for a placeholder."""
        if self.render is None:
            return None
        return self.render()


class ChartRegistry:
    """Immutable mapping from chart id to :class:`ChartProvider`."""

    def __init__(self, providers: cabc.Iterable[ChartProvider]) -> None:
        entries: dict[str, ChartProvider] = {}
        for provider in providers:
            if provider.id in entries:
                msg = f"Duplicate chart provider id '{provider.id}'."
                raise ThesisConfigError(msg)
            entries[provider.id] = provider
        self._providers = types.MappingProxyType(entries)

    def lookup(self, chart_id: str) -> ChartProvider | None:
        """Return the provider registered for ``chart_id``, if any."""
        return self._providers.get(chart_id)

    def ids(self) -> tuple[str, ...]:
        """Return the registered chart ids in registration order."""
        return tuple(self._providers)

    def __iter__(self) -> cabc.Iterator[ChartProvider]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, chart_id: object) -> bool:
        return chart_id in self._providers


def default_chart_registry(reference: ReferenceData) -> ChartRegistry:
    """Build placeholder providers for every chart declared in ``reference``."""
    return ChartRegistry(
        ChartProvider(id=chart.id, title=chart.title) for chart in reference.charts
    )


class SelectionCatalog:
    """Enumerate selectable items and track the user's ordered choices."""

    def __init__(
        self,
        reference: ReferenceData,
        charts: ChartRegistry,
        selections: cabc.Iterable[Selection] = (),
    ) -> None:
        """Initialize the catalog from reference data and chart providers.

        Parameters
        ----------
        reference : ReferenceData
            Dataset providing phases, key metrics, and risks.
        charts : ChartRegistry
            Registered chart providers; each becomes a ``chart`` item.
        selections : Iterable[Selection], optional
            Existing selections to restore. They are sorted by ``order``,
            de-duplicated by id, and renumbered from zero.
        """
        self.reference = reference
        self.charts = charts
        self._items = self._build_items()
        self._items_by_id = {item.id: item for item in self._items}
        restored: list[Selection] = []
        seen: set[str] = set()
        for selection in sorted(selections, key=lambda s: s.order):
            if selection.id in seen:
                continue
            seen.add(selection.id)
            restored.append(selection)
        self._selections = _renumber(restored)

    @property
    def selections(self) -> list[Selection]:
        """Return a snapshot of the current selections in display order."""
        return [dc.replace(selection) for selection in self._selections]

    def items(self) -> tuple[SelectableItem, ...]:
        """Return every selectable item in catalog order."""
        return self._items

    def item(self, item_id: str) -> SelectableItem | None:
        """Return the catalog item with ``item_id`` or ``None``."""
        return self._items_by_id.get(item_id)

    def is_selected(self, item_id: str) -> bool:
        """Return whether ``item_id`` is part of the selection list."""
        return any(selection.id == item_id for selection in self._selections)

    def list_available(
        self,
        category: str | ItemKind | None = None,
        search_text: str | None = None,
    ) -> list[SelectableItem]:
        """Return catalog items matching a category and title search.

        Parameters
        ----------
        category : str or ItemKind, optional
            ``"all"``/``None`` for every kind, a plural UI label such as
            ``"charts"``, or a singular kind. Unknown labels match nothing.
        search_text : str, optional
            Case-insensitive substring matched against item titles only.

        Returns
        -------
        list[SelectableItem]
            Matching items in catalog order.
        """
        kinds = _category_kinds(category)
        needle = (search_text or "").lower()
        return [
            item
            for item in self._items
            if item.kind in kinds and needle in item.title.lower()
        ]

    def toggle(self, item_id: str) -> list[Selection]:
        """Remove ``item_id`` if selected, otherwise append it at the end.

        Removal renumbers the remaining selections from zero. Ids that are
        not in the catalog leave the list unchanged.
        """
        if self.is_selected(item_id):
            remaining = [s for s in self._selections if s.id != item_id]
            self._selections = _renumber(remaining)
            return self.selections

        item = self._items_by_id.get(item_id)
        if item is None:
            return self.selections
        self._selections = [
            *self._selections,
            Selection.from_item(item, order=len(self._selections)),
        ]
        return self.selections

    def reorder(self, from_index: int, to_index: int) -> list[Selection]:
        """Move the selection at ``from_index`` to ``to_index``.

        ``to_index`` is clamped into range; an out-of-range ``from_index``
        leaves the list unchanged. Orders are renumbered ``0..n-1`` and the
        relative order of every other selection is preserved.
        """
        count = len(self._selections)
        if not 0 <= from_index < count:
            return self.selections
        target = min(max(to_index, 0), count - 1)
        reordered = list(self._selections)
        moved = reordered.pop(from_index)
        reordered.insert(target, moved)
        self._selections = _renumber(reordered)
        return self.selections

    def clear(self) -> list[Selection]:
        """Drop every selection."""
        self._selections = []
        return self.selections

    def _build_items(self) -> tuple[SelectableItem, ...]:
        items: list[SelectableItem] = [
            SelectableItem(id=provider.id, kind=ItemKind.CHART, title=provider.title)
            for provider in self.charts
        ]
        items.extend(
            SelectableItem(
                id=phase.id, kind=ItemKind.PHASE, title=phase.title, payload=phase
            )
            for phase in self.reference.phases
        )
        items.extend(
            SelectableItem(
                id=metric.id,
                kind=ItemKind.METRIC,
                title=metric.title,
                payload=self.reference.capital_plan_value(metric.capital_plan_key),
            )
            for metric in self.reference.key_metrics
        )
        items.append(
            SelectableItem(
                id=RISK_PAGE_ID,
                kind=ItemKind.RISK,
                title=RISK_ITEM_TITLE,
                payload=self.reference.risks,
            )
        )
        return tuple(
            dc.replace(item, display_order=index) for index, item in enumerate(items)
        )


def _category_kinds(category: str | ItemKind | None) -> frozenset[ItemKind]:
    """Map a UI category label onto the set of item kinds it covers."""
    if category is None:
        return frozenset(ItemKind)
    if isinstance(category, ItemKind):
        return frozenset({category})
    label = category.strip().lower()
    if label in {"", "all"}:
        return frozenset(ItemKind)
    if label in CATEGORY_KINDS:
        return frozenset({CATEGORY_KINDS[label]})
    try:
        return frozenset({ItemKind(label)})
    except ValueError:
        return frozenset()


def _renumber(selections: cabc.Sequence[Selection]) -> list[Selection]:
    """Return copies of ``selections`` with orders reassigned ``0..n-1``."""
    return [
        dc.replace(selection, order=index) for index, selection in enumerate(selections)
    ]


__all__ = [
    "CATEGORY_KINDS",
    "RISK_ITEM_TITLE",
    "ChartProvider",
    "ChartRegistry",
    "ChartRenderer",
    "SelectionCatalog",
    "default_chart_registry",
]
