# badgesmith/delivery/api/badges.py
import asyncio
import base64
import logging
import traceback

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response

from badgesmith.delivery.schemas.badge import Badge, new_badge
from badgesmith.delivery.schemas.body import (
    BadgeResponse, BatchExportRequest, BatchExportResponse, ExportedFile, ExportError, ExportRequest,
    MigrateRequest, NewBadgeRequest, RenderRequest, TemplateListResponse, TemplateSummary,
)
from badgesmith.domain.errors import (
    BadgeEngineError, ExportEncodingError, ImageLoadError, TemplateError, TemplateFetchError,
    TemplateNotFoundError, UnsupportedFormatError,
)
from badgesmith.domain.export_service import ExportService, get_format
from badgesmith.domain.layout import center_lines, ensure_initial_layout
from badgesmith.domain.normalizer import canonicalize_badge, migrate, suggest_template_optimizations
from badgesmith.domain.template_resolver import TemplateResolver

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

ENDPOINT_TIMEOUT_SECONDS = 55


def _services(request: Request):
    resolver = getattr(request.app.state, "template_resolver", None)
    exporter = getattr(request.app.state, "export_service", None)
    if resolver is None or exporter is None:
        logger.error("Badge services are not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not ready. Please try again in a moment.",
        )
    return resolver, exporter


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, UnsupportedFormatError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, TemplateNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, TemplateFetchError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    if isinstance(e, TemplateError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if isinstance(e, (ImageLoadError, ExportEncodingError)):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    logger.error(f"Unexpected error: {e}\n{traceback.format_exc()}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error.")


def _file(artifact) -> ExportedFile:
    return ExportedFile(
        filename=artifact.filename,
        media_type=artifact.media_type,
        content_base64=base64.b64encode(artifact.content).decode("ascii"),
        width_px=artifact.width_px,
        height_px=artifact.height_px,
        page_size_mm=artifact.page_size_mm,
    )


@router.get("/templates", response_model=TemplateListResponse)
async def list_templates(request: Request):
    resolver: TemplateResolver = _services(request)[0]
    try:
        templates, errors = await resolver.load_all()
    except BadgeEngineError as e:
        logger.error(f"Template catalogue unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except Exception as e:
        raise _to_http(e)
    summaries = [
        TemplateSummary(
            id=t.id, name=t.name, width_in=t.width_in, height_in=t.height_in,
            width_px=t.width_px, height_px=t.height_px, design_box=t.design_box, safe_inset_px=t.safe_inset_px,
        )
        for t in templates.values()
    ]
    return TemplateListResponse(templates=summaries, errors=errors)


@router.post("/badges/new", response_model=BadgeResponse)
async def create_badge(request: Request, body: NewBadgeRequest):
    resolver: TemplateResolver = _services(request)[0]
    badge = new_badge(body.template_id)
    try:
        template = await resolver.resolve_for_badge(badge)
    except Exception as e:
        raise _to_http(e)
    return BadgeResponse(badge=ensure_initial_layout(badge, template.design_box))


@router.post("/badges/center", response_model=BadgeResponse)
async def center_badge(request: Request, badge: Badge):
    resolver: TemplateResolver = _services(request)[0]
    try:
        template = await resolver.resolve_for_badge(badge)
    except Exception as e:
        raise _to_http(e)
    canonical = canonicalize_badge(badge, template)
    centered = canonical.model_copy(update={"lines": center_lines(canonical.lines, template.design_box)})
    return BadgeResponse(badge=centered)


@router.post("/badges/migrate", response_model=BadgeResponse)
async def migrate_badge(request: Request, body: MigrateRequest):
    resolver: TemplateResolver = _services(request)[0]
    try:
        old = await resolver.resolve_for_badge(body.badge)
        new = await resolver.get(body.template_id)
    except Exception as e:
        raise _to_http(e)
    migrated, warnings = migrate(body.badge, old, new)
    return BadgeResponse(
        badge=migrated,
        warnings=warnings,
        suggestions=suggest_template_optimizations(migrated, new),
    )


@router.post("/render")
async def render_badge(request: Request, body: RenderRequest):
    exporter: ExportService = _services(request)[1]
    try:
        svg = await exporter.render_svg(body.badge, show_outline=body.show_outline)
    except Exception as e:
        raise _to_http(e)
    return Response(content=svg, media_type="image/svg+xml")


@router.post("/export/{fmt}")
async def export_badge(request: Request, fmt: str, body: ExportRequest):
    exporter: ExportService = _services(request)[1]
    badge_id = body.badge.id
    logger.info(f"=== EXPORT START {badge_id} as {fmt} ===")
    try:
        export_format = get_format(fmt)
        artifact = await asyncio.wait_for(
            exporter.export_badge(body.badge, fmt, body.scale, filename=body.filename or f"badge.{export_format.ext}"),
            timeout=ENDPOINT_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error(f"=== EXPORT TIMEOUT for {badge_id} after {ENDPOINT_TIMEOUT_SECONDS}s ===")
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="Export timed out")
    except Exception as e:
        logger.error(f"=== EXPORT ERROR for {badge_id}: {e} ===")
        raise _to_http(e)

    logger.info(f"=== EXPORT SUCCESS {artifact.filename} ({len(artifact.content)} bytes) ===")
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.filename}"',
            "Cache-Control": "no-store",
        },
    )


@router.post("/export-batch/{fmt}", response_model=BatchExportResponse)
async def export_batch(request: Request, fmt: str, body: BatchExportRequest):
    exporter: ExportService = _services(request)[1]
    try:
        get_format(fmt)
        result = await exporter.export_batch(body.badges, fmt, base_name=body.base_name, scale=body.scale)
    except Exception as e:
        raise _to_http(e)

    if result.timed_out and not result.artifacts:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=f"Batch export timed out after {exporter.batch_timeout}s",
        )
    return BatchExportResponse(
        files=[_file(a) for a in result.artifacts],
        errors=[ExportError(index=f.index, badge_id=f.badge_id, message=f.message) for f in result.failures],
        timed_out=result.timed_out,
    )
