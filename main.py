from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from viajatheme import __version__
from viajatheme.api.colors import router as colors_router
from viajatheme.api.themes import agency_router, router as themes_router
from viajatheme.config import config
from viajatheme.errors import StoreError
from viajatheme.schemas import HealthResponse
from viajatheme.services.colors import ColorSampler
from viajatheme.services.themes import StyleSink, ThemeResolver, ThemeStore, build_theme_store
from viajatheme.utils.logging import get_logger
from viajatheme.utils.metrics import get_metrics_instance

logger = get_logger()


def create_app(store: Optional[ThemeStore] = None,
               sink: Optional[StyleSink] = None,
               sampler: Optional[ColorSampler] = None) -> FastAPI:
    """
    Build the theming API.

    The store is created from configuration at startup unless one is passed in;
    the resolver follows the store's change feed for the app's lifetime.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            theme_store = store if store is not None else build_theme_store(config)
        except StoreError as e:
            logger.error(f"Theme store misconfigured: {e}")
            raise

        if not config.WEBHOOK_SECRET:
            logger.warning("VIAJATHEME_WEBHOOK_SECRET is not set; POST /themes/changed accepts unauthenticated calls")

        resolver = ThemeResolver(theme_store, sink=sink)
        app.state.resolver = resolver
        app.state.sampler = sampler if sampler is not None else ColorSampler()

        async with resolver.running():
            logger.info("ViajaTheme API ready", extra={
                "store_backend": type(theme_store).__name__,
                "active_theme": resolver.state.active_global.id,
            })
            yield
        logger.info("ViajaTheme API shut down")

    app = FastAPI(
        title="ViajaTheme",
        description="Storefront theming: logo color extraction, palettes and theme resolution",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(colors_router)
    app.include_router(themes_router)
    app.include_router(agency_router)

    @app.get("/healthz", response_model=HealthResponse)
    def health_check(request: Request) -> HealthResponse:
        resolver: ThemeResolver = request.app.state.resolver
        return HealthResponse(
            ok=True,
            version=__version__,
            store_backend=type(resolver.store).__name__,
            resolver_running=resolver.is_running,
        )

    @app.get("/metrics")
    def metrics_summary():
        """In-process counters and timing percentiles."""
        try:
            return get_metrics_instance().get_summary()
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to get metrics: {str(e)}")

    return app


app = create_app()
