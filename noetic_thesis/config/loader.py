"""Load the reference dataset YAML into typed dataclasses."""

from __future__ import annotations

import functools
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    SERIES_KEYS,
    _build_charts,
    _build_key_metrics,
    _build_narrative,
    _build_phases,
    _build_risks,
    _build_series,
    _require_mapping,
    _string_map,
)
from .models import ReferenceData, ThesisConfigError

DEFAULT_DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "metrics.yaml"


def load_reference_data(path: Path | None = None) -> ReferenceData:
    """Load the YAML dataset describing markets, phases, and risks.

    Parameters
    ----------
    path : Path, optional
        Filesystem path to the dataset. Defaults to the ``metrics.yaml`` file
        shipped inside the package.

    Returns
    -------
    ReferenceData
        Parsed dataset with chart series, phases, capital plan, risk entries,
        chart metadata, key metric definitions, and narrative copy.

    Raises
    ------
    FileNotFoundError
        If the dataset file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    ThesisConfigError
        If required sections are missing or contain invalid values (for
        example, an unknown risk level or duplicate phase ids).

    Examples
    --------
    >>> from noetic_thesis.config import load_reference_data
    >>> data = load_reference_data()
    >>> [phase.id for phase in data.phases][:2]
    ['p0', 'p1']
    """
    source = path or DEFAULT_DATA_PATH
    if not source.exists():
        msg = f"Reference data file '{source}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with source.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    for section in ("phases", "capital_plan", "risks", "charts", "narrative"):
        if section not in raw:
            msg = f"Reference data is missing the '{section}' section."
            raise ThesisConfigError(msg)

    series_raw = _require_mapping(raw.get("series", {}) or {}, "series")
    series = {
        key: _build_series(key, series_raw[key])
        for key in SERIES_KEYS
        if key in series_raw
    }
    capital_plan = _string_map(raw["capital_plan"], "capital_plan")

    return ReferenceData(
        series=series,
        phases=_build_phases(raw["phases"]),
        capital_plan=capital_plan,
        risks=_build_risks(raw["risks"]),
        charts=_build_charts(raw["charts"]),
        key_metrics=_build_key_metrics(raw.get("key_metrics", []), capital_plan),
        narrative=_build_narrative(raw["narrative"]),
    )


@functools.cache
def default_reference_data() -> ReferenceData:
    """Return the packaged dataset, loaded once per process."""
    return load_reference_data()


__all__ = ["DEFAULT_DATA_PATH", "default_reference_data", "load_reference_data"]
