# badgesmith/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from concurrent.futures import ThreadPoolExecutor
import threading
import logging
import os

from badgesmith.config.settings import settings
from badgesmith.delivery.api.badges import router
from badgesmith.domain.export_service import ExportService
from badgesmith.domain.template_resolver import TemplateResolver
from badgesmith.infrastructure.io.image_loader import ImageLoader
from badgesmith.infrastructure.raster.rasterizer import Rasterizer
from badgesmith.infrastructure.templates.builtin import BuiltinTemplateSource
from badgesmith.infrastructure.templates.svg_source import ManifestTemplateSource

logger = logging.getLogger("uvicorn.error")

# --- Lazy service bootstrap state ---
_service_lock = threading.Lock()
_service_ready = False


def template_sources():
    """Manifest templates first when configured; the builtin catalogue always backs them."""
    sources = []
    if settings.TEMPLATE_MANIFEST:
        sources.append(ManifestTemplateSource(settings.TEMPLATE_MANIFEST))
    sources.append(BuiltinTemplateSource())
    return sources


def _ensure_service(app: FastAPI) -> None:
    global _service_ready
    with _service_lock:
        if _service_ready:
            return
        logger.info("Initializing TemplateResolver and ExportService (lazy-init)...")
        resolver = TemplateResolver(template_sources(), executor=app.state.executor)
        app.state.template_resolver = resolver
        app.state.export_service = ExportService(
            resolver,
            rasterizer=Rasterizer(),
            image_loader=ImageLoader(),
            executor=app.state.executor,
        )
        _service_ready = True
        logger.info("Service initialization finished.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _service_ready
    max_workers = min(settings.MAX_WORKERS, os.cpu_count() or 1)
    app.state.executor = ThreadPoolExecutor(max_workers=max_workers)
    logger.info(f"Badge service '{settings.PROJECT_NAME}' starting (mode: {settings.ENVIRONMENT}).")
    logger.info(f"Shared ThreadPoolExecutor created with {max_workers} workers.")
    yield
    logger.info("Shutting down ThreadPoolExecutor...")
    app.state.executor.shutdown(wait=True)
    with _service_lock:
        _service_ready = False
    logger.info("Badge service stopped.")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Badge layout, SVG rendering and export service",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Lazy-load only for API routes
@app.middleware("http")
async def lazy_boot(request: Request, call_next):
    if request.url.path.startswith(settings.API_V1_STR):
        _ensure_service(request.app)
    return await call_next(request)


app.include_router(router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": settings.PROJECT_NAME, "version": "1.0.0", "status": "ok"}


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": settings.PROJECT_NAME, "services_ready": _service_ready}
