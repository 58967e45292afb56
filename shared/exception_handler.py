import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from shared.core.exceptions import RentalError
from shared.core.schemas import JsonOutResult
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(RentalError)
    async def rental_exception_handler(request: Request, exc: RentalError):
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        wrapped = JsonOutResult(
            data=None,
            status="Failed",
            status_code=exc.status_code,
            message=exc.message
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=exc.http_status)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg')}"
            for err in exc.errors()
        )
        wrapped = JsonOutResult(
            data=None,
            status="Failed",
            status_code=AppStatusCode.INVALID_INPUT,
            message=errors or "Invalid input"
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=422)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")

        wrapped = JsonOutResult(
            data=None,
            status="Failed",
            status_code=AppStatusCode.OPERATION_FAILED,
            message="Internal server error"
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=500)
