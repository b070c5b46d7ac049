"""Erreurs métier et handlers FastAPI.

Chaque erreur porte son code HTTP; la réponse JSON est toujours {"error": message}.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import requests

logger = logging.getLogger(__name__)


class BlogError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BlogError):
    """Document, page ou commentaire absent"""
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedError(BlogError):
    """Token absent, invalide, expiré ou mauvais mot de passe"""
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(BlogError):
    """Document pas en statut draft"""
    status_code = status.HTTP_403_FORBIDDEN


class ValidationError(BlogError):
    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamError(BlogError):
    """Notion ou la base injoignable"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def blog_error_handler(request: Request, exc: BlogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")
    return _error(exc.status_code, exc.message)


async def upstream_error_handler(request: Request, exc: requests.RequestException) -> JSONResponse:
    logger.warning(f"Notion request failed: {exc}")
    return await blog_error_handler(request, UpstreamError("Failed to reach document source"))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.url.path}: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # 405 et routes inconnues
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return _error(exc.status_code, message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BlogError, blog_error_handler)
    app.add_exception_handler(requests.RequestException, upstream_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
