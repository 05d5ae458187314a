from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.limits.api.v1.routes_daily_limit import (
    router as daily_limit_router,
)
from app.core.matches.api.v1.routes_matches import router as matches_router
from app.database.session import SessionLocal
from app.response import StandardResponse, make_error_response
from app.response.response import APIError


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

app = FastAPI()


@app.exception_handler(APIError)
async def api_error_handler(
    request: Request,
    exc: APIError,
) -> JSONResponse:
    response: StandardResponse = make_error_response(
        code=exc.code,
        http_code=exc.http_code,
        message=exc.message,
        details=exc.details,
        fields=exc.fields,
    )
    return JSONResponse(
        status_code=exc.http_code,
        content=jsonable_encoder(response),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    response: StandardResponse = make_error_response(
        code="INTERNAL_ERROR",
        http_code=500,
        message="Internal server error",
        details=str(exc),
    )
    return JSONResponse(
        status_code=500,
        content=jsonable_encoder(response),
    )


app.title = "Hireoo API"
app.version = "1.0.0"


@app.get("/health", include_in_schema=False)
def health() -> dict:
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception as exc:
        logger.warning("health check: database unavailable: %r", exc)
    finally:
        db.close()

    worker_ok = False
    try:
        from hireoo_bg_worker.celery_app import celery_app

        replies = celery_app.control.ping(timeout=0.5)
        worker_ok = bool(replies)
    except Exception as exc:
        logger.warning("health check: worker unavailable: %r", exc)

    return {"api": True, "database": db_ok, "worker": worker_ok}


app.include_router(daily_limit_router, prefix="/api")
app.include_router(matches_router, prefix="/api")


__all__ = ["app"]
