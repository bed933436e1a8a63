"""
Error types shared by the stores and the HTTP layer, plus the handlers that
map them to JSON responses.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GpevimError(Exception):
    """Base class. `message` is safe to show to API clients."""

    status_code = 500
    message = "Erro interno do servidor"

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        if message is not None:
            self.message = message
        # Logged, never returned to the client.
        self.detail = detail
        super().__init__(detail or self.message)


class ClientInputError(GpevimError):
    status_code = 400
    message = "Campos obrigatórios não preenchidos"


class AuthError(GpevimError):
    status_code = 401
    message = "Usuário ou senha incorretos"


class NotFoundError(GpevimError):
    status_code = 404
    message = "Registro não encontrado"


class BackendUnavailableError(GpevimError):
    """The durable record store could not complete the operation."""


class StorageError(GpevimError):
    message = "Erro ao fazer upload da imagem"


class ProcessingError(GpevimError):
    message = "Erro ao processar a imagem"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_gpevim_error(request: Request, exc: GpevimError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info(
            "%s %s rejected (%d): %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc,
        )
    return _error_response(exc.status_code, exc.message)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info("%s %s invalid request: %s", request.method, request.url.path, exc.errors())
    return _error_response(400, "Requisição inválida")


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, GpevimError.message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GpevimError, handle_gpevim_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
