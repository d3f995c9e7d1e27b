"""Common literal values used across noetic_thesis.

These constants keep filenames, MIME types, and fixed palette entries
centralized so renderers, the HTTP layer, and tests import the same values
without drifting. Intended for internal use within the noetic_thesis package.

Examples
--------
>>> from noetic_thesis import _constants
>>> _constants.EXPORT_FILENAME_TEMPLATE.format(ext="pdf")
'noetic-2.0-thesis.pdf'
>>> _constants.RISK_LEVELS
('high', 'medium', 'low')
"""

EXPORT_FILENAME_TEMPLATE = "noetic-2.0-thesis.{ext}"
BRAND_WORDMARK = "NOETIC 2.0"

PDF_MEDIA_TYPE = "application/pdf"
PPTX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.presentationml.presentation"
)

COVER_PAGE_ID = "cover"
SUMMARY_PAGE_ID = "executive-summary"
RISK_PAGE_ID = "risk-assessment"

RISK_LEVELS = ("high", "medium", "low")

# Severity colors are fixed and never taken from the export branding.
RISK_COLORS: dict[str, str] = {
    "high": "#DC2626",
    "medium": "#D97706",
    "low": "#059669",
}
RISK_TINTS: dict[str, str] = {
    "high": "#FEE2E2",
    "medium": "#FEF3C7",
    "low": "#D1FAE5",
}

ZOOM_MIN = 0.5
ZOOM_MAX = 2.0
ZOOM_STEP = 0.25
