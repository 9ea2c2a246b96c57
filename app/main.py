import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.auth import authenticate
from app.core.config import Settings, settings as default_settings
from app.core.database import create_db_and_tables
from app.core.errors import register_error_handlers
from app.core.middleware import BodySizeLimitMiddleware, RecoverPanicMiddleware, VaryAuthorizationMiddleware
from app.core.rate_limit import RateLimiter, RateLimitMiddleware, limiter
from app.core.request_id import RequestIdMiddleware
from app.routers import books, lists, reviews, tokens, users

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Construir la aplicación a partir de una configuración explícita"""
    config = settings or default_settings

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    rate_limiter = RateLimiter(
        rps=config.limiter_rps,
        burst=config.limiter_burst,
        idle_timeout=config.limiter_idle_timeout_seconds,
        sweep_interval=config.limiter_sweep_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Eventos que se ejecutan al iniciar la aplicación"""
        if config.auto_create_db:
            create_db_and_tables()
        if config.limiter_enabled:
            rate_limiter.start()
        logger.info("%s %s iniciada (environment=%s)", config.app_name, config.app_version, config.environment)
        yield

    # Crear la aplicación FastAPI; toda ruta resuelve primero la identidad
    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="API para Bookclub - libros, listas de lectura y reseñas",
        docs_url="/docs",
        redoc_url="/redoc",
        debug=config.debug,
        lifespan=lifespan,
        dependencies=[Depends(authenticate)],
    )
    app.state.settings = config
    limiter.enabled = config.limiter_enabled
    app.state.limiter = limiter
    app.state.rate_limiter = rate_limiter

    register_error_handlers(app)

    # Middlewares: el último agregado es el más externo
    app.add_middleware(RateLimitMiddleware, rate_limiter=rate_limiter, enabled=config.limiter_enabled)
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=config.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RecoverPanicMiddleware)
    # Vary va por fuera de la recuperación para cubrir también los 500
    app.add_middleware(VaryAuthorizationMiddleware)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/api/v1/healthcheck", tags=["health"])
    def healthcheck():
        """Endpoint para verificar el estado de la API"""
        return {
            "status": "available",
            "system_info": {
                "environment": config.environment,
                "version": config.app_version,
            },
        }

    # Incluir routers
    app.include_router(users.router, prefix="/api/v1")
    app.include_router(tokens.router, prefix="/api/v1")
    app.include_router(books.router, prefix="/api/v1")
    app.include_router(lists.router, prefix="/api/v1")
    app.include_router(reviews.router, prefix="/api/v1")

    return app


app = create_app()
