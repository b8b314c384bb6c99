import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import FoodOrderError, InfrastructureError, ValidationError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI):
    """Преобразование ошибок сервиса в HTTP ответы"""

    @app.exception_handler(InfrastructureError)
    async def infrastructure_error_handler(request: Request, exc: InfrastructureError):
        logger.error(f"Infrastructure failure on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=500,
            content={"error": "server_error", "detail": "Internal server error"}
        )

    @app.exception_handler(FoodOrderError)
    async def business_error_handler(request: Request, exc: FoodOrderError):
        content = {"error": exc.error, "detail": exc.message}
        if isinstance(exc, ValidationError) and exc.errors:
            content["errors"] = exc.errors
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "detail": "Invalid request",
                "errors": jsonable_encoder(exc.errors())
            }
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "server_error", "detail": "Internal server error"}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Глобальный обработчик исключений"""
        logger.error(f"❌ Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "server_error", "detail": "Something went wrong"}
        )
