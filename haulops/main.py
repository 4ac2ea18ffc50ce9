from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from haulops.adapters.api.controllers.gps import router as gps_router
from haulops.adapters.api.controllers.proximity import router as proximity_router
from haulops.adapters.api.controllers.trips import router as trips_router
from haulops.adapters.api.schemas.common import Envelope
from haulops.container import Container, build_container
from haulops.domain.exceptions import ConflictError, NotFoundError, ValidationError


def _error(status_code: int, message: str, error: str) -> JSONResponse:
    body = Envelope[None](success=False, data=None, message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_app(container: Container | None = None) -> FastAPI:
    app = FastAPI(title="HaulOps")
    app.state.container = container or build_container()

    app.include_router(trips_router)
    app.include_router(gps_router)
    app.include_router(proximity_router)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = first.get("msg", "Invalid request")
        if where:
            message = f"{where}: {message}"
        return _error(400, message, "VALIDATION_ERROR")

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, str(exc), "NOT_FOUND")

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        return _error(409, str(exc), "CONFLICT")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Ensure unexpected errors still use the envelope, without internals."""

        logging.getLogger("uvicorn.error").exception(
            "Unhandled exception", extra={"path": str(request.url.path)}
        )

        if app.state.container.settings.reveal_errors:
            detail = str(exc) or exc.__class__.__name__
        else:
            detail = "Internal Server Error"
        return _error(500, detail, "INTERNAL_ERROR")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
