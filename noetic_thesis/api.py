"""HTTP endpoints for exporting a thesis.

``create_app`` returns a FastAPI application exposing three POST routes:

* ``/api/thesis/generate-pdf`` always renders the document format,
* ``/api/thesis/generate-pptx`` always renders the slide-deck format,
* ``/api/thesis/export`` renders whatever ``options.format`` requests.

Successful responses carry the binary artifact with ``Content-Type``,
``Content-Disposition`` and ``Content-Length`` headers. Validation failures
return ``400 {"error": "Missing required fields", "details": ...}``, render
failures ``500 {"error": "Failed to generate PDF", "details": ...}``, and any
other method ``405 {"error": "Method not allowed"}``.
"""

from __future__ import annotations

import asyncio
import logging
import typing as typ

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from noetic_thesis.export import (
    ExportRenderError,
    ExportValidationError,
    decode_export_request,
    default_export_service,
)
from noetic_thesis.models import ExportFormat

if typ.TYPE_CHECKING:
    from noetic_thesis.export import ExportService

logger = logging.getLogger(__name__)

MISSING_FIELDS_ERROR = "Missing required fields"
METHOD_NOT_ALLOWED_ERROR = "Method not allowed"


def create_app(service: ExportService | None = None) -> FastAPI:
    """Build the export API around ``service``.

    Parameters
    ----------
    service : ExportService, optional
        Service used for every request. Defaults to one built over the
        packaged reference dataset.

    Returns
    -------
    FastAPI
        Application ready to be served by uvicorn or a test client.
    """
    export_service = service or default_export_service()
    app = FastAPI(title="Noetic Thesis Export", version="1.0.0")
    app.state.export_service = export_service

    @app.exception_handler(StarletteHTTPException)
    async def http_error(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 405:
            return JSONResponse(
                {"error": METHOD_NOT_ALLOWED_ERROR},
                status_code=405,
                headers=exc.headers,
            )
        return JSONResponse(
            {"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers
        )

    async def run_export(
        request: Request, export_format: ExportFormat | None
    ) -> Response:
        body = await request.body()
        try:
            export_request = decode_export_request(
                body, templates=export_service.templates
            )
            target = export_format or export_request.options.format
            artifact = await asyncio.to_thread(
                export_service.export, export_request, export_format=target
            )
        except ExportValidationError as exc:
            logger.info("Rejected export request: %s", exc)
            return JSONResponse(
                {"error": MISSING_FIELDS_ERROR, "details": str(exc)}, status_code=400
            )
        except ExportRenderError as exc:
            return JSONResponse(
                {"error": exc.message, "details": exc.details}, status_code=500
            )
        logger.info(
            "Served %s (%d bytes)", artifact.filename, len(artifact.payload)
        )
        return Response(content=artifact.payload, headers=artifact.headers)

    @app.post("/api/thesis/generate-pdf")
    async def generate_pdf(request: Request) -> Response:
        return await run_export(request, ExportFormat.DOCUMENT)

    @app.post("/api/thesis/generate-pptx")
    async def generate_pptx(request: Request) -> Response:
        return await run_export(request, ExportFormat.SLIDE_DECK)

    @app.post("/api/thesis/export")
    async def export(request: Request) -> Response:
        return await run_export(request, None)

    return app


__all__ = ["METHOD_NOT_ALLOWED_ERROR", "MISSING_FIELDS_ERROR", "create_app"]
