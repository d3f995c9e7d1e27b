"""Color and font helpers shared by the document and slide-deck back-ends."""

from __future__ import annotations

import dataclasses as dc

from noetic_thesis.models import HEX_COLOR_PATTERN

# Base PDF fonts available without embedding; unknown families fall back to
# Helvetica.
PDF_FONT_FAMILIES: dict[str, tuple[str, str]] = {
    "inter": ("Helvetica", "Helvetica-Bold"),
    "arial": ("Helvetica", "Helvetica-Bold"),
    "helvetica": ("Helvetica", "Helvetica-Bold"),
    "times new roman": ("Times-Roman", "Times-Bold"),
    "times": ("Times-Roman", "Times-Bold"),
    "georgia": ("Times-Roman", "Times-Bold"),
    "courier": ("Courier", "Courier-Bold"),
    "courier new": ("Courier", "Courier-Bold"),
}


@dc.dataclass(frozen=True, slots=True)
class RenderedArtifact:
    """Binary output of a back-end plus the titles of the units it drew."""

    payload: bytes
    unit_titles: tuple[str, ...]
    unit_count: int


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Return the ``(r, g, b)`` components of a ``#RRGGBB`` color.

    Examples
    --------
    >>> hex_to_rgb("#667eea")
    (102, 126, 234)
    """
    if not HEX_COLOR_PATTERN.match(value):
        msg = f"Expected a #RRGGBB color, got {value!r}"
        raise ValueError(msg)
    return (int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16))


def tint(value: str, strength: float) -> str:
    """Mix ``value`` with white, keeping ``strength`` of the original color.

    Examples
    --------
    >>> tint("#000000", 0.5)
    '#808080'
    """
    red, green, blue = hex_to_rgb(value)

    def mix(channel: int) -> int:
        return round(255 - (255 - channel) * strength)

    return f"#{mix(red):02X}{mix(green):02X}{mix(blue):02X}"


def pdf_fonts(font_family: str) -> tuple[str, str]:
    """Return the ``(regular, bold)`` base PDF fonts for ``font_family``."""
    return PDF_FONT_FAMILIES.get(
        font_family.strip().lower(), ("Helvetica", "Helvetica-Bold")
    )


__all__ = [
    "PDF_FONT_FAMILIES",
    "RenderedArtifact",
    "hex_to_rgb",
    "pdf_fonts",
    "tint",
]
