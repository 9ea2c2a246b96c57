"""
Errores de la API y manejadores de excepciones.

Todas las respuestas de error usan el sobre {"error": ...}. Los errores de
validación llevan un mapa campo -> mensaje; el resto, un mensaje de texto.
"""
import logging
from typing import Dict, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from app.core.request_id import request_id_ctx


logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"
NOT_FOUND_MESSAGE = "the requested resource could not be found"


# Errores de la capa de datos

class RecordNotFoundError(Exception):
    """El registro pedido no existe (o el token expiró)"""


class DuplicateEmailError(Exception):
    """Ya existe un usuario con ese email"""


class DuplicateEntryError(Exception):
    """El libro ya está en la lista"""


class EditConflictError(Exception):
    """La versión del registro cambió entre la lectura y la escritura"""


class RandomSourceError(Exception):
    """No hay fuente de aleatoriedad segura disponible"""


class MailerError(Exception):
    """No se pudo entregar un email"""


# Errores HTTP

class APIError(Exception):
    status_code: int = 500
    message: Union[str, Dict[str, str]] = SERVER_ERROR_MESSAGE

    def __init__(
        self,
        message: Optional[Union[str, Dict[str, str]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if message is not None:
            self.message = message
        self.headers = headers
        super().__init__(str(self.message))


class BadRequestError(APIError):
    status_code = 400


class FailedValidationError(APIError):
    status_code = 422

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__(dict(errors))


class NotFoundError(APIError):
    status_code = 404
    message = NOT_FOUND_MESSAGE


class InvalidAuthenticationTokenError(APIError):
    status_code = 401
    message = "invalid or missing authentication token"

    def __init__(self) -> None:
        super().__init__(headers={"WWW-Authenticate": "Bearer"})


class AuthenticationRequiredError(APIError):
    status_code = 401
    message = "you must be authenticated to access this resource"


class InvalidCredentialsError(APIError):
    status_code = 401
    message = "invalid authentication credentials"


class InactiveAccountError(APIError):
    status_code = 403
    message = "your user account must be activated to access this resource"


class NotPermittedError(APIError):
    status_code = 403
    message = "you do not have permission to modify this resource"


class RateLimitExceededError(APIError):
    status_code = 429
    message = "rate limit exceeded"


class ServerError(APIError):
    status_code = 500


def _request_uri(request: Request) -> str:
    if request.url.query:
        return f"{request.url.path}?{request.url.query}"
    return request.url.path


def log_error(request: Request, exc: BaseException) -> None:
    logger.error(
        "%s method=%s uri=%s request_id=%s",
        exc,
        request.method,
        _request_uri(request),
        request_id_ctx.get(),
        exc_info=exc,
    )


def error_response(
    status_code: int,
    message: Union[str, Dict[str, str]],
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    try:
        return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)
    except (TypeError, ValueError):
        logger.exception("No se pudo serializar la respuesta de error")
        return Response(status_code=500)


def server_error_response(request: Request, exc: BaseException) -> Response:
    log_error(request, exc)
    return error_response(500, SERVER_ERROR_MESSAGE)


def api_error_handler(request: Request, exc: APIError) -> Response:
    if exc.status_code >= 500:
        # Nunca se expone el detalle interno al cliente
        return server_error_response(request, exc)
    return error_response(exc.status_code, exc.message, exc.headers)


def record_not_found_handler(request: Request, exc: RecordNotFoundError) -> Response:
    return error_response(404, NOT_FOUND_MESSAGE)


def edit_conflict_handler(request: Request, exc: EditConflictError) -> Response:
    return error_response(409, "unable to update the record due to an edit conflict, please try again")


def internal_error_handler(request: Request, exc: Exception) -> Response:
    return server_error_response(request, exc)


def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 404:
        message = NOT_FOUND_MESSAGE
    elif exc.status_code == 405:
        message = f"the {request.method} method is not supported for this resource"
    else:
        message = exc.detail
    return error_response(exc.status_code, message, getattr(exc, "headers", None))


def _describe_body_error(error: dict) -> str:
    error_type = error.get("type", "")
    loc = [str(part) for part in error.get("loc", ())[1:]]
    field = ".".join(loc)

    if error_type == "json_invalid":
        return "body contains badly-formed JSON"
    if error_type == "missing" and not loc:
        return "body must not be empty"
    if error_type == "extra_forbidden":
        return f'body contains unknown key "{field}"'
    if not loc:
        return "body contains incorrect JSON type"
    return f'body contains incorrect JSON type for "{field}"'


def validation_exception_handler(request: Request, exc: RequestValidationError) -> Response:
    errors = exc.errors()
    if any(error.get("loc", ("",))[0] == "path" for error in errors):
        # Un id mal formado equivale a un recurso inexistente
        return error_response(404, NOT_FOUND_MESSAGE)

    first = errors[0] if errors else {}
    if first.get("loc", ("",))[0] == "body":
        return error_response(400, _describe_body_error(first))
    return error_response(400, str(first.get("msg", "bad request")))


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    return error_response(429, RateLimitExceededError.message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RecordNotFoundError, record_not_found_handler)
    app.add_exception_handler(EditConflictError, edit_conflict_handler)
    app.add_exception_handler(RandomSourceError, internal_error_handler)
    app.add_exception_handler(MailerError, internal_error_handler)
    app.add_exception_handler(SQLAlchemyError, internal_error_handler)
    app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
