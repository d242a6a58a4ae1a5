"""
FastAPI Application Factory

Creates and configures the FastAPI application with:
- API versioning
- Middleware (CORS, error handling)
- Backend wiring (profile store, proxy runtime, activation controller)
- Lifecycle management (startup/shutdown)

@.architecture
Incoming: main.py, config/settings.py, api/v1/router.py, api/middleware/*.py --- {Settings object, APIRouter instances, middleware constructors}
Processing: create_app(), build_backends(), build_controller(), startup_event(), shutdown_event() --- {6 jobs: application_creation, backend_wiring, cleanup, dependency_injection, lifecycle_management, middleware_registration}
Outgoing: main.py, Frontend (HTTP) --- {FastAPI application instance, HTTP responses}
"""

import time
from typing import Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.dependencies import set_controller, set_health_checker
from .api.middleware import create_error_handler_middleware
from .api.v1.router import api_v1_router
from .config.settings import Settings, get_settings
from .core.profiles.store import HTTPProfileStore, InMemoryProfileStore, ProfileStore
from .core.runtime.proxy import ClashProxyRuntime, InMemoryProxyRuntime, ProxyRuntime
from .core.sync.cache import StateCache
from .core.sync.controller import ActivationController
from .core.sync.notifications import NoticeBoard
from .monitoring import configure_from_preset, get_logger, initialize_health_checks
from .utils.http import HTTPClient, HTTPClientConfig

logger = get_logger(__name__)

# Track startup time for uptime calculation
START_TIME = time.time()


def build_backends(settings: Settings) -> Tuple[ProfileStore, ProxyRuntime]:
    """Profile store and proxy runtime for the configured backend."""
    if settings.backend == "memory":
        logger.info("Using in-memory profile store and proxy runtime")
        return InMemoryProfileStore(), InMemoryProxyRuntime()

    store_http = HTTPClient(HTTPClientConfig.from_settings(settings.store))
    runtime_http = HTTPClient(
        HTTPClientConfig.from_settings(settings.runtime, headers=settings.runtime.auth_headers())
    )
    logger.info(
        f"Using profile store at {settings.store.base_url} "
        f"and Clash controller at {settings.runtime.controller_url}"
    )
    return HTTPProfileStore(store_http), ClashProxyRuntime(runtime_http)


def build_controller(
    settings: Settings,
    store: ProfileStore,
    runtime: ProxyRuntime,
) -> ActivationController:
    return ActivationController(
        store,
        runtime,
        cache=StateCache(),
        notices=NoticeBoard(max_notices=settings.sync.max_notices),
        reconcile_delay=settings.sync.reconcile_delay,
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ProfileStore] = None,
    runtime: Optional[ProxyRuntime] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to use instead of the cached ones
        store: Profile store to use instead of the configured backend
        runtime: Proxy runtime to use instead of the configured backend

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    # Configure logging based on environment
    if settings.environment == "production":
        configure_from_preset("production", level=settings.monitoring.log_level)
    elif settings.environment == "test":
        configure_from_preset("testing")
    else:
        configure_from_preset("development", level=settings.monitoring.log_level)

    logger.info(f"Creating profilesync application (environment: {settings.environment})")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Profile selection sync between the profile store and the proxy runtime",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        redirect_slashes=False
    )

    # ==========================================================================
    # Middleware Configuration
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.allowed_origins,
        allow_credentials=settings.security.cors_allow_credentials,
        allow_methods=settings.security.cors_allow_methods,
        allow_headers=settings.security.cors_allow_headers,
    )

    middleware_class, middleware_kwargs = create_error_handler_middleware(
        development=settings.environment == "development"
    )
    app.add_middleware(middleware_class, **middleware_kwargs)

    # ==========================================================================
    # API Routers
    # ==========================================================================

    app.include_router(api_v1_router)

    @app.get("/")
    async def root():
        return JSONResponse({
            "status": "ok",
            "message": "profilesync API",
            "version": settings.app_version,
            "environment": settings.environment,
            "docs": "/docs"
        })

    @app.get("/health")
    async def health_check():
        """Root-level liveness check."""
        return JSONResponse({
            "status": "ok",
            "timestamp": time.time(),
            "uptime_seconds": time.time() - START_TIME,
            "version": settings.app_version
        })

    # ==========================================================================
    # Lifecycle Events
    # ==========================================================================

    @app.on_event("startup")
    async def startup_event():
        """
        Application startup.

        Builds the backends and the activation controller, registers health
        checks and performs the initial profile load.
        """
        logger.info("=== Application Startup ===")

        if store is not None and runtime is not None:
            backends = (store, runtime)
        else:
            backends = build_backends(settings)

        controller = build_controller(settings, *backends)
        set_controller(controller)
        set_health_checker(initialize_health_checks(store=backends[0], runtime=backends[1]))
        app.state.controller = controller

        await controller.start()
        logger.info("=== Startup Complete ===")

    @app.on_event("shutdown")
    async def shutdown_event():
        """
        Application shutdown.

        Stops the controller and closes backend connections.
        """
        logger.info("=== Application Shutdown ===")

        controller: Optional[ActivationController] = getattr(app.state, "controller", None)
        if controller is not None:
            try:
                await controller.stop()
                await controller.store.close()
                await controller.runtime.close()
            except Exception as e:
                logger.error(f"Error during shutdown: {e}", exc_info=True)
            finally:
                set_controller(None)
                set_health_checker(None)

        logger.info("=== Shutdown Complete ===")

    return app
