import asyncio

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from auctionhouse.config import config
from auctionhouse.database import Base, engine
from auctionhouse.errors import AppError, PersistenceError
from auctionhouse.logger import get_logger
from auctionhouse.routers import analytics, auctions, stock, verification

import auctionhouse.models  # noqa: F401 – register all models with Base.metadata

logger = get_logger("api")

Base.metadata.create_all(bind=engine)

app = FastAPI(title="auctionhouse", version="0.1.0")
app.include_router(auctions.router)
app.include_router(stock.router)
app.include_router(verification.admin_router)
app.include_router(verification.router)
app.include_router(analytics.router)


@app.middleware("http")
async def request_timeout(request: Request, call_next):
    try:
        return await asyncio.wait_for(
            call_next(request), timeout=config.REQUEST_TIMEOUT_SECONDS
        )
    except asyncio.TimeoutError:
        logger.error(
            "Request timed out after %ss: %s %s",
            config.REQUEST_TIMEOUT_SECONDS, request.method, request.url.path,
        )
        return JSONResponse(
            status_code=504,
            content={"error": {"code": "REQUEST_TIMEOUT", "message": "Request timed out"}},
        )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": {"code": "VALIDATION_ERROR", "message": str(exc)}},
    )


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=PersistenceError().to_content())
