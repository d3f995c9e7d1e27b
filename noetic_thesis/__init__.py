"""Build and export Noetic 2.0 investment theses.

This package turns a user's selection of charts, phases, metrics, and risks
into an ordered page plan, previews it, and exports it as a branded PDF
document or PPTX slide deck. The ``thesis`` console script and the FastAPI
application in :mod:`noetic_thesis.api` are the two outer surfaces.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from noetic_thesis import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
