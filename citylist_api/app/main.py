"""
Main entrypoint for the CityList API.

This module assembles the FastAPI application, sets up logging,
registers the error handlers that render the JSON envelope and
includes the versioned routers and the web pages.  ``create_app``
builds one application around one ``Settings`` instance; every
service the handlers need lives on ``app.state``.

The command line launcher (``citylist_api.cli``) builds the app and
serves it with uvicorn.  For ad hoc use::

    uvicorn --factory citylist_api.app.main:create_app
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .api.responses import error_response
from .api.v1.router import router as v1_router
from .core.config import Settings
from .core.db import get_database_path, init_db
from .core.exceptions import CityListError, RateLimited
from .core.logging_config import setup_logging
from .core.network import get_accessible_url
from .core.rate_limit import RateLimiter
from .services.audit_service import AuditService
from .services.city_store import CityStore
from .services.credentials_service import CredentialsService
from .services.query_engine import QueryEngine
from .services.settings_service import SettingsService
from .web.pages import dev_router, router as web_router


logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data: https://fastapi.tiangolo.com"
    ),
}


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("query", "path", "body"))
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration for this application.  A fresh ``Settings`` read
        from the environment is used when omitted.

    Returns
    -------
    FastAPI
        A configured application.  The database, the city corpus and
        the admin credentials are prepared by its startup hook.
    """
    settings = settings or Settings()

    # Initialise logging before anything else so that the services below
    # can safely log messages.
    setup_logging(settings.log_level, settings.logs_dir or None)

    db_path = get_database_path(settings)
    audit_service = AuditService(db_path)
    city_store = CityStore(db_path)
    settings_service = SettingsService(db_path, audit_service)
    credentials_service = CredentialsService(db_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Apply migrations, then populate the corpus before any request is
        # served.  A dataset that cannot be read aborts the startup.
        init_db(db_path)
        cities = city_store.load_file(settings.dataset_path)
        logger.info("City store ready: %s new, %s total", cities, city_store.count())

        if settings.generate_admin_credentials:
            port = settings.port or settings_service.get_value("server.http_port", "0")
            server_url = get_accessible_url(settings.address, port)
            app.state.admin_credentials = credentials_service.ensure_admin(settings.config_dir or None, server_url)
        yield

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        description="Global cities database: listing, search, country filter and nearest city lookup.",
        docs_url="/openapi",
        redoc_url=None,
        openapi_url="/api/v1/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db_path = db_path
    app.state.city_store = city_store
    app.state.query_engine = QueryEngine(city_store)
    app.state.audit_service = audit_service
    app.state.settings_service = settings_service
    app.state.credentials_service = credentials_service
    app.state.admin_credentials = None
    app.state.started_at = time.time()
    app.state.rate_limiter = RateLimiter(settings.rate_limit_per_minute)

    @app.exception_handler(CityListError)
    async def citylist_error_handler(request: Request, exc: CityListError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
        return error_response(exc.code, exc.message, exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response("INVALID_PARAMETER", _describe_validation_error(exc), 400)

    @app.middleware("http")
    async def limit_by_client_ip(request: Request, call_next):
        client = request.client.host if request.client else "unknown"
        retry_after = app.state.rate_limiter.check(client)
        if retry_after:
            return error_response(
                RateLimited.code,
                RateLimited.default_message,
                RateLimited.status_code,
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    if settings.dev_mode:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(web_router)
    if settings.dev_mode:
        app.include_router(dev_router)

    return app
