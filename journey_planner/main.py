from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from journey_planner.adapters.api.controllers.journeys import router as journeys_router
from journey_planner.adapters.api.controllers.stops import router as stops_router
from journey_planner.domain.exceptions import (
    AddressNotFound,
    NoRouteFound,
    NoStopsNearLocation,
    RoutingError,
    StopNotFound,
)

app = FastAPI(title="Transit Journey Planner")
app.include_router(journeys_router)
app.include_router(stops_router)

# status code, machine-readable code
_ROUTING_ERRORS: tuple[tuple[type[RoutingError], int, str], ...] = (
    (StopNotFound, 404, "stop_not_found"),
    (AddressNotFound, 404, "address_not_found"),
    (NoStopsNearLocation, 422, "no_stops_near_location"),
    (NoRouteFound, 404, "no_route_found"),
)


@app.exception_handler(RoutingError)
async def routing_error_handler(request: Request, exc: RoutingError) -> JSONResponse:
    """Expected search outcomes the client can message differently."""

    for exc_type, status_code, code in _ROUTING_ERRORS:
        if isinstance(exc, exc_type):
            return JSONResponse(
                status_code=status_code, content={"detail": str(exc), "code": code}
            )
    return JSONResponse(
        status_code=400, content={"detail": str(exc), "code": "routing_error"}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Ensure API errors are JSON so clients can display them.

    Starlette's default 500 handler may return plain text/HTML.
    """

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("PLANNER_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, (FileNotFoundError, RuntimeError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
