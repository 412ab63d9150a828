# badgesmith/domain/normalizer.py
"""Coordinate normalisation and template migration.

Badge lines arrive in one of three shapes: normalized fractions of the design
box (``xNorm``/``yNorm``/``sizeNorm``), legacy absolute template pixels
(``x``/``y``/``fontSize``), or nothing at all. ``resolve_position`` and
``resolve_size`` turn any of them into pixels; ``canonicalize_badge`` upgrades a
whole badge to normalized fields once, at ingestion, so later stages never
need to care which shape a design was saved in.
"""
import logging
import math
from typing import List, Optional, Tuple

from badgesmith.delivery.schemas.badge import Badge, BadgeImage, BadgeLine, clamp
from badgesmith.delivery.schemas.template import DesignBox, Template
from badgesmith.domain import constants as C
from badgesmith.domain.errors import OutOfRangeValueError

logger = logging.getLogger(__name__)


def resolve_position(line: BadgeLine, box: DesignBox) -> Tuple[float, float]:
    if line.x_norm is not None:
        px = box.x + line.x_norm * box.width
    elif line.x is not None:
        px = line.x
    else:
        px = box.center_x

    if line.y_norm is not None:
        py = box.y + line.y_norm * box.height
    elif line.y is not None:
        py = line.y
    else:
        py = box.center_y
    return px, py


def resolve_size(line: BadgeLine, box: DesignBox) -> float:
    if line.size_norm is not None:
        return round(line.size_norm * box.height)
    if line.font_size is not None:
        return line.font_size
    return box.height * C.DEFAULT_SIZE_NORM


def to_norm(px: float, py: float, box: DesignBox) -> Tuple[float, float]:
    """Inverse of ``resolve_position`` for normalized lines."""
    return (px - box.x) / box.width, (py - box.y) / box.height


def position_norm(line: BadgeLine, box: DesignBox) -> Tuple[float, float]:
    """Normalized (x, y) of a line, converting legacy pixels and clamping to [0, 1]."""
    xn, yn = to_norm(*resolve_position(line, box), box)
    return (clamp(xn, C.POSITION_NORM_MIN, C.POSITION_NORM_MAX),
            clamp(yn, C.POSITION_NORM_MIN, C.POSITION_NORM_MAX))


def clamp_size_norm(value: Optional[float]) -> float:
    if value is None or not math.isfinite(value):
        return C.DEFAULT_SIZE_NORM
    return clamp(value, C.SIZE_NORM_MIN, C.SIZE_NORM_MAX)


def canonicalize_line(line: BadgeLine, box: DesignBox) -> BadgeLine:
    if line.x_norm is not None and line.y_norm is not None and line.size_norm is not None \
            and line.x is None and line.y is None and line.font_size is None:
        return line
    xn, yn = position_norm(line, box)
    if line.size_norm is not None:
        size_norm = line.size_norm
    elif line.font_size is not None:
        size_norm = clamp_size_norm(line.font_size / box.height)
    else:
        size_norm = C.DEFAULT_SIZE_NORM
    return line.model_copy(update={
        "x_norm": xn, "y_norm": yn, "size_norm": size_norm,
        "x": None, "y": None, "font_size": None,
    })


def canonicalize_image(image: BadgeImage, box: DesignBox, role: str) -> BadgeImage:
    """Upgrade legacy image placement to center anchor + base size + scale.

    ``role`` picks the legacy convention: ``"background"`` reads offsets from
    the design-box center, ``"logo"`` reads an absolute top-left corner.
    """
    if image.is_canonical:
        return image
    scale = image.scale
    if role == "background":
        base_w = image.width_px or box.width
        base_h = image.height_px or box.height
        cx = box.center_x + (image.offset_x or 0.0)
        cy = box.center_y + (image.offset_y or 0.0)
        fit = image.fit or "cover"
    else:
        base_w = image.width_px or round(box.height * C.LOGO_DEFAULT_SIZE)
        base_h = image.height_px or base_w
        left = image.x if image.x is not None else box.x + box.width * C.LOGO_DEFAULT_X
        top = image.y if image.y is not None else box.y + box.height * C.LOGO_DEFAULT_Y
        cx = left + base_w * scale / 2
        cy = top + base_h * scale / 2
        fit = image.fit or "contain"

    return image.model_copy(update={
        "x_norm": image.x_norm if image.x_norm is not None else (cx - box.x) / box.width,
        "y_norm": image.y_norm if image.y_norm is not None else (cy - box.y) / box.height,
        "width_norm": image.width_norm or base_w / box.width,
        "height_norm": image.height_norm or base_h / box.height,
        "fit": fit,
        "offset_x": None, "offset_y": None, "width_px": None, "height_px": None, "x": None, "y": None,
    })


def canonicalize_badge(badge: Badge, template: Template) -> Badge:
    box = template.design_box
    return badge.model_copy(update={
        "lines": [canonicalize_line(line, box) for line in badge.lines],
        "background_image": canonicalize_image(badge.background_image, box, "background")
        if badge.background_image else None,
        "logo": canonicalize_image(badge.logo, box, "logo") if badge.logo else None,
    })


def _range_violations(badge: Badge) -> List[OutOfRangeValueError]:
    found = []
    for i, line in enumerate(badge.lines):
        checks = (
            ("X position", line.x_norm, C.POSITION_NORM_MIN, C.POSITION_NORM_MAX),
            ("Y position", line.y_norm, C.POSITION_NORM_MIN, C.POSITION_NORM_MAX),
            ("font size", line.size_norm, C.SIZE_NORM_MIN, C.SIZE_NORM_MAX),
        )
        for field, value, low, high in checks:
            if value is not None and not (low <= value <= high):
                found.append(OutOfRangeValueError(field, value, low, high, line_index=i))
    return found


def check_template_compatibility(badge: Badge, template: Template) -> List[str]:
    warnings = [str(e) for e in _range_violations(badge)]
    if template.id == C.HOUSE_TEMPLATE_ID and len(badge.lines) > C.HOUSE_MAX_LINES:
        warnings.append(f"House template works best with {C.HOUSE_MAX_LINES} or fewer text lines")
    if template.id == C.OVAL_TEMPLATE_ID and any(line.align != "center" for line in badge.lines):
        warnings.append("Oval template works best with center-aligned text")
    return warnings


def suggest_template_optimizations(badge: Badge, template: Template) -> List[str]:
    suggestions = []
    if template.id == C.HOUSE_TEMPLATE_ID and len(badge.lines) > 2:
        suggestions.append("Consider reducing text lines for better fit in house shape")
    if template.id == C.OVAL_TEMPLATE_ID and any(line.align != "center" for line in badge.lines):
        suggestions.append("Center alignment recommended for oval templates")
    for i, line in enumerate(badge.lines):
        size = line.size_norm if line.size_norm is not None else C.DEFAULT_SIZE_NORM
        if size < 0.08:
            suggestions.append(f"Line {i + 1} font size may be too small for readability")
        if size > 0.3:
            suggestions.append(f"Line {i + 1} font size may be too large for template")
    return suggestions


def migrate(badge: Badge, old: Template, new: Template) -> Tuple[Badge, List[str]]:
    """Move a badge onto another template.

    Positions are already template-relative fractions and only get re-clamped;
    sizes follow the design-box height ratio. Warnings never block the move.
    """
    if old.id == new.id:
        return badge, []

    old_box, new_box = old.design_box, new.design_box
    height_ratio = new_box.height / old_box.height
    width_ratio = new_box.width / old_box.width
    logger.info(f"Migrating badge {badge.id} from {old.id} to {new.id} "
                f"(height x{height_ratio:.3f}, width x{width_ratio:.3f})")

    # Legacy pixels are read against the old box so their fractions carry over
    canonical = canonicalize_badge(badge, old)
    warnings = []
    lines = []
    for i, line in enumerate(canonical.lines):
        rescaled = line.size_norm * height_ratio
        size_norm = clamp_size_norm(rescaled)
        if size_norm != rescaled:
            warnings.append(f"Line {i + 1} font size {rescaled:.3f} clamped to {size_norm}")
        lines.append(line.model_copy(update={
            "x_norm": clamp(line.x_norm, C.POSITION_NORM_MIN, C.POSITION_NORM_MAX),
            "y_norm": clamp(line.y_norm, C.POSITION_NORM_MIN, C.POSITION_NORM_MAX),
            "size_norm": size_norm,
        }))
    migrated = canonical.model_copy(update={"template_id": new.id, "lines": lines})

    if abs(height_ratio - width_ratio) > C.ASPECT_TOLERANCE * width_ratio:
        warnings.append(
            f"Aspect ratio changes from {old.id} to {new.id} "
            f"(height x{height_ratio:.2f} vs width x{width_ratio:.2f}); text may need repositioning"
        )
    warnings.extend(check_template_compatibility(migrated, new))
    for w in warnings:
        logger.warning(f"Badge {badge.id}: {w}")
    return migrated, warnings
