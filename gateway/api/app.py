from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


def create_app(ApplicationConfig) -> FastAPI:
    app = FastAPI(title="Adaptive Trust Gateway", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    from gateway.api.routes import (
        admin,
        elevation,
        geo,
        health_check,
        rate_limit,
        security_events,
        sessions,
        tokens,
    )

    prefix = ApplicationConfig.API_PREFIX
    app.include_router(health_check.router, tags=["Health"])
    app.include_router(tokens.router, prefix=prefix, tags=["Tokens"])
    app.include_router(rate_limit.router, prefix=prefix, tags=["Rate Limit"])
    app.include_router(sessions.router, prefix=prefix, tags=["Sessions"])
    app.include_router(geo.router, prefix=prefix, tags=["Geo"])
    app.include_router(elevation.router, prefix=prefix, tags=["Trust"])
    app.include_router(security_events.router, prefix=prefix, tags=["Security Events"])
    app.include_router(admin.router, prefix=prefix, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
