import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.router import api_router
from app.core.config import GatewayConfig, build_config, get_settings
from app.core.errors import GatewayError, MethodNotAllowed


async def gateway_error_handler(request: Request, error: GatewayError):
    return JSONResponse({"error": error.message}, status_code=error.status_code)


# Unknown routes and methods outside the route table use the same envelope
async def http_error_handler(request: Request, error: StarletteHTTPException):
    message = error.detail
    if error.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = MethodNotAllowed().message
    return JSONResponse(
        {"error": message},
        status_code=error.status_code,
        headers=getattr(error, "headers", None),
    )


def create_app(config: Optional[GatewayConfig] = None) -> FastAPI:
    """
    Build the gateway. Without an explicit config the settings are read at
    startup and the engines created from them are disposed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_config = app.state.config is None
        if owns_config:
            settings = get_settings()
            logging.basicConfig(level=settings.LOG_LEVEL)
            app.state.config = build_config(settings)
            logging.info("Gateway configuration loaded")

        yield

        if owns_config:
            await app.state.config.dispose()

    app = FastAPI(title="SQL REST Gateway", lifespan=lifespan)
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    # Include the master router containing all our endpoints
    app.include_router(api_router)
    return app


app = create_app()
