# badgesmith/infrastructure/raster/rasterizer.py
import io
import logging
from typing import Tuple

import numpy as np
from PIL import Image

from badgesmith.config.settings import settings
from badgesmith.delivery.schemas.template import Template
from badgesmith.domain import constants as C
from badgesmith.domain.errors import ExportEncodingError

logger = logging.getLogger(__name__)


def page_size_mm(template: Template) -> Tuple[float, float]:
    """Physical page size for print sinks (PDF/TIFF assemblers)."""
    return (round(template.width_px * C.MM_PER_INCH / settings.DPI, 3),
            round(template.height_px * C.MM_PER_INCH / settings.DPI, 3))


def to_vector_file(svg: str) -> bytes:
    return svg.encode("utf-8")


class Rasterizer:
    """cairosvg-backed SVG to PNG conversion. Blocking; call it from an executor."""

    def rasterize(self, svg: str, width_px: int, height_px: int, scale: float) -> bytes:
        if scale <= 0:
            raise ExportEncodingError(f"Raster scale must be positive, got {scale}")
        out_w = max(1, round(width_px * scale))
        out_h = max(1, round(height_px * scale))
        try:
            import cairosvg
            png = cairosvg.svg2png(bytestring=svg.encode("utf-8"), output_width=out_w, output_height=out_h)
        except Exception as e:
            logger.error(f"Rasterization to {out_w}x{out_h} failed: {e}")
            raise ExportEncodingError(f"PNG encoding failed: {e}") from e
        logger.debug(f"Rasterized {width_px}x{height_px} at x{scale} ({len(png)} bytes).")
        return png

    def rasterize_rgba(self, svg: str, width_px: int, height_px: int, scale: float) -> np.ndarray:
        png = self.rasterize(svg, width_px, height_px, scale)
        with Image.open(io.BytesIO(png)) as img:
            return np.asarray(img.convert("RGBA"))
