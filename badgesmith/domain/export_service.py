# badgesmith/domain/export_service.py
import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

import aiohttp
from pydantic import BaseModel

from badgesmith.config.settings import settings
from badgesmith.delivery.schemas.badge import Badge
from badgesmith.domain.errors import ImageLoadError, UnsupportedFormatError
from badgesmith.domain.normalizer import canonicalize_badge
from badgesmith.domain.renderer import RenderOptions, canvas_size, render_badge_svg
from badgesmith.domain.template_resolver import TemplateResolver
from badgesmith.infrastructure.io.image_loader import ImageLoader
from badgesmith.infrastructure.raster.rasterizer import Rasterizer, page_size_mm, to_vector_file

# --- LOGGER SETUP ---
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False

IMAGE_FIELDS = ("background_image", "logo")


class ExportFormat(BaseModel):
    ext: str
    media_type: str
    raster: bool


# CorelDRAW opens SVG, so .cdr is the SVG document under another name
EXPORT_FORMATS: Dict[str, ExportFormat] = {
    "svg": ExportFormat(ext="svg", media_type="image/svg+xml", raster=False),
    "cdr": ExportFormat(ext="cdr", media_type="image/svg+xml", raster=False),
    "png": ExportFormat(ext="png", media_type="image/png", raster=True),
}


def get_format(fmt: str) -> ExportFormat:
    export_format = EXPORT_FORMATS.get((fmt or "").lower())
    if export_format is None:
        raise UnsupportedFormatError(fmt, list(EXPORT_FORMATS))
    return export_format


class ExportArtifact(BaseModel):
    filename: str
    media_type: str
    content: bytes
    width_px: int
    height_px: int
    page_size_mm: Tuple[float, float]
    badge_id: str
    template_id: str
    index: Optional[int] = None


class ExportFailure(BaseModel):
    index: int
    total: int
    badge_id: str
    error: str

    @property
    def message(self) -> str:
        return f"failed to export badge {self.index + 1} of {self.total}: {self.error}"


class BatchExportResult(BaseModel):
    artifacts: List[ExportArtifact] = []
    failures: List[ExportFailure] = []
    timed_out: bool = False


class ExportService:
    def __init__(self, resolver: TemplateResolver, rasterizer: Optional[Rasterizer] = None,
                 image_loader: Optional[ImageLoader] = None, executor: Optional[ThreadPoolExecutor] = None,
                 concurrency: int = settings.EXPORT_CONCURRENCY, batch_timeout: float = settings.EXPORT_BATCH_TIMEOUT):
        self.resolver = resolver
        self.rasterizer = rasterizer or Rasterizer()
        self.image_loader = image_loader or ImageLoader()
        self.executor = executor
        self.concurrency = max(1, concurrency)
        self.batch_timeout = batch_timeout

    async def render_svg(self, badge: Badge, show_outline: bool = False) -> str:
        template = await self.resolver.resolve_for_badge(badge)
        return render_badge_svg(badge, template, RenderOptions(show_outline=show_outline))

    async def _inline_images(self, badge: Badge) -> Badge:
        """Replace image sources with data URIs so the rasterizer never touches the network."""
        fields = [f for f in IMAGE_FIELDS if getattr(badge, f) is not None]
        if not fields:
            return badge
        async with aiohttp.ClientSession() as session:
            results = await asyncio.gather(
                *(self.image_loader.inline(getattr(badge, f).src, session) for f in fields),
                return_exceptions=True,
            )

        updates = {}
        for field, result in zip(fields, results):
            if isinstance(result, ImageLoadError):
                if not settings.DROP_UNLOADABLE_IMAGES:
                    raise result
                logger.warning(f"Badge {badge.id}: dropping {field}, {result}")
                updates[field] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                updates[field] = getattr(badge, field).model_copy(update={"src": result})
        return badge.model_copy(update=updates)

    async def export_badge(self, badge: Badge, fmt: str, scale: Optional[float] = None,
                           filename: Optional[str] = None) -> ExportArtifact:
        export_format = get_format(fmt)
        template = await self.resolver.resolve_for_badge(badge)
        badge = canonicalize_badge(badge, template)
        width, height = canvas_size(template, settings.RENDER_PADDING_PX)

        if export_format.raster:
            scale = scale or settings.DEFAULT_RASTER_SCALE
            badge = await self._inline_images(badge)
            svg = render_badge_svg(badge, template)
            loop = asyncio.get_running_loop()
            content = await loop.run_in_executor(
                self.executor, self.rasterizer.rasterize, svg, round(width), round(height), scale
            )
            out_w, out_h = round(width * scale), round(height * scale)
        else:
            content = to_vector_file(render_badge_svg(badge, template))
            out_w, out_h = round(width), round(height)

        return ExportArtifact(
            filename=filename or f"badge.{export_format.ext}",
            media_type=export_format.media_type,
            content=content,
            width_px=out_w,
            height_px=out_h,
            page_size_mm=page_size_mm(template),
            badge_id=badge.id,
            template_id=template.id,
        )

    async def export_batch(self, badges: Sequence[Badge], fmt: str, base_name: str = "badge",
                           scale: Optional[float] = None) -> BatchExportResult:
        """Export every badge to ``{base_name}_{n}.{ext}``.

        A failing badge is recorded and the rest carry on. Items still running
        when the batch timeout expires are cancelled and reported as failed.
        Artifacts and failures come back ordered by index.
        """
        export_format = get_format(fmt)
        total = len(badges)
        semaphore = asyncio.Semaphore(self.concurrency)
        start = time.perf_counter()
        logger.info(f"=== START BATCH EXPORT: {total} x {export_format.ext} ===")

        async def export_one(index: int, badge: Badge) -> ExportArtifact:
            async with semaphore:
                artifact = await self.export_badge(badge, fmt, scale, filename=f"{base_name}_{index + 1}.{export_format.ext}")
            logger.info(f"Badge {index + 1}/{total} exported (T+{time.perf_counter() - start:.2f}s).")
            return artifact.model_copy(update={"index": index})

        tasks = [asyncio.ensure_future(export_one(i, badge)) for i, badge in enumerate(badges)]
        result = BatchExportResult()
        try:
            async with asyncio.timeout(self.batch_timeout):
                await asyncio.gather(*tasks, return_exceptions=True)
        except TimeoutError:
            result.timed_out = True
            logger.error(f"Batch export timed out after {self.batch_timeout}s.")
            # gather has cancelled the unfinished items; wait for them to settle
            await asyncio.gather(*tasks, return_exceptions=True)

        for index, (badge, task) in enumerate(zip(badges, tasks)):
            if task.cancelled():
                error = f"timed out after {self.batch_timeout}s"
            elif task.exception() is not None:
                error = str(task.exception())
            else:
                result.artifacts.append(task.result())
                continue
            failure = ExportFailure(index=index, total=total, badge_id=badge.id, error=error)
            logger.error(failure.message)
            result.failures.append(failure)

        logger.info(f"=== BATCH EXPORT DONE: {len(result.artifacts)} ok, {len(result.failures)} failed "
                    f"in {time.perf_counter() - start:.2f}s ===")
        return result
