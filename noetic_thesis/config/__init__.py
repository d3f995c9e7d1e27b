"""Load and validate the Noetic reference dataset.

This subpackage parses the dataset YAML (market series, capital allocation,
phases, capital plan, risks, chart metadata, and narrative copy) into frozen
dataclasses that the selection catalog and page plan builder consume. The
primary entry point is :func:`load_reference_data`; the packaged dataset is
also available through :func:`default_reference_data`, which loads it once
per process.

Examples
--------
>>> from noetic_thesis.config import load_reference_data
>>> data = load_reference_data()
>>> data.phase("p0").duration
'Months 0-6'
"""

from .loader import DEFAULT_DATA_PATH, default_reference_data, load_reference_data
from .models import (
    ChartMetadata,
    KeyMetricConfig,
    NarrativeConfig,
    PhaseConfig,
    ReferenceData,
    RiskEntry,
    SeriesConfig,
    SummaryMetric,
    ThesisConfigError,
)

__all__ = [
    "DEFAULT_DATA_PATH",
    "ChartMetadata",
    "KeyMetricConfig",
    "NarrativeConfig",
    "PhaseConfig",
    "ReferenceData",
    "RiskEntry",
    "SeriesConfig",
    "SummaryMetric",
    "ThesisConfigError",
    "default_reference_data",
    "load_reference_data",
]
