import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

# Solo se reutiliza el X-Request-ID del cliente si es corto y seguro para logs
_REQUEST_ID_RX = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(header_value: str) -> str:
    if header_value and _REQUEST_ID_RX.match(header_value):
        return header_value
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get("X-Request-ID", ""))
        token = request_id_ctx.set(request_id)
        try:
            response: Response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response
