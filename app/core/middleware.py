"""
Middlewares HTTP transversales: recuperación de errores no controlados,
límite de tamaño del cuerpo y cabecera Vary para la autenticación.
"""
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.errors import SERVER_ERROR_MESSAGE, error_response, log_error


logger = logging.getLogger(__name__)


class RecoverPanicMiddleware(BaseHTTPMiddleware):
    """Convierte cualquier excepción no controlada en un 500 y cierra la conexión."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            log_error(request, exc)
            response = error_response(500, SERVER_ERROR_MESSAGE)
            response.headers["Connection"] = "close"
            return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_body_bytes: int) -> None:
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("Content-Length")
        if content_length is not None:
            try:
                length = int(content_length)
            except ValueError:
                return error_response(400, "invalid Content-Length header")
            if length > self.max_body_bytes:
                return error_response(400, f"body must not be larger than {self.max_body_bytes} bytes")
        return await call_next(request)


class VaryAuthorizationMiddleware(BaseHTTPMiddleware):
    """Las respuestas dependen del usuario: las cachés intermedias no deben compartirlas."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.append("Vary", "Authorization")
        return response
