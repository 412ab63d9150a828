# badgesmith/domain/renderer.py
"""Single SVG rendering kernel shared by preview and every export format."""
import logging
import re
from typing import Optional, Tuple

import svgwrite

from badgesmith.config.settings import settings
from badgesmith.delivery.schemas.badge import Badge, BadgeImage, BadgeLine, CamelModel
from badgesmith.delivery.schemas.template import DesignBox, Template
from badgesmith.domain import constants as C
from badgesmith.domain.fonts import font_family_or_fallback
from badgesmith.domain.normalizer import canonicalize_badge, resolve_position, resolve_size

logger = logging.getLogger(__name__)

FIT_ASPECT = {"cover": "xMidYMid slice", "contain": "xMidYMid meet"}


class RenderOptions(CamelModel):
    show_outline: bool = False
    padding_px: Optional[float] = None


def _r(value: float) -> float:
    return round(float(value), 3) + 0.0


# ElementTree escapes &, < and > in text nodes (and > in attributes), so text
# content never contains "<" and a start tag never contains ">".
_TEXT_CONTENT_RE = re.compile(r"(<text\b[^>]*>)([^<]*)(</text>)")


def _escape_text_quotes(svg: str) -> str:
    """Escape quotes inside <text> content as well."""
    return _TEXT_CONTENT_RE.sub(
        lambda m: m.group(1) + m.group(2).replace('"', "&quot;").replace("'", "&apos;") + m.group(3),
        svg,
    )


def canvas_size(template: Template, padding: float = 0.0) -> Tuple[float, float]:
    return template.width_px + 2 * padding, template.height_px + 2 * padding


def image_rect(image: BadgeImage, box: DesignBox) -> Tuple[float, float, float, float]:
    """Top-left corner and size of a canonical image in template pixels."""
    w = image.width_norm * box.width * image.scale
    h = image.height_norm * box.height * image.scale
    cx = box.x + image.x_norm * box.width
    cy = box.y + image.y_norm * box.height
    return cx - w / 2, cy - h / 2, w, h


def _image_element(dwg: svgwrite.Drawing, image: BadgeImage, box: DesignBox, role: str):
    x, y, w, h = image_rect(image, box)
    attrs = {
        "id": f"badge-{role.replace('_', '-')}",
        "preserveAspectRatio": FIT_ASPECT.get(image.fit or "contain"),
    }
    if image.rotation_deg:
        cx, cy = x + w / 2, y + h / 2
        attrs["transform"] = f"rotate({_r(image.rotation_deg)} {_r(cx)} {_r(cy)})"
    return dwg.image(href=image.src, insert=(_r(x), _r(y)), size=(_r(w), _r(h)), **attrs)


def _text_element(dwg: svgwrite.Drawing, line: BadgeLine, box: DesignBox):
    px, py = resolve_position(line, box)
    attrs = {
        "insert": (_r(px), _r(py)),
        "text_anchor": C.TEXT_ANCHORS[line.align],
        "dominant_baseline": "middle",
        "font_size": _r(resolve_size(line, box)),
        "font_family": font_family_or_fallback(line.font_family),
        "font_weight": "bold" if line.bold else "normal",
        "font_style": "italic" if line.italic else "normal",
        "fill": line.color,
    }
    if line.underline:
        attrs["text_decoration"] = "underline"
    return dwg.text(line.text, id=line.id, **attrs)


def render_badge_svg(badge: Badge, template: Template, options: Optional[RenderOptions] = None) -> str:
    """Render ``badge`` inside ``template`` as one SVG document.

    The output depends only on the arguments and settings: identical inputs
    give byte-identical strings. Everything except the optional outline is
    clipped to the template's inner shape. Image sources are referenced as
    given; loading them is the rasterizer's concern, so an unreachable URL
    still yields a valid document.
    """
    options = options or RenderOptions()
    pad = settings.RENDER_PADDING_PX if options.padding_px is None else options.padding_px
    badge = canonicalize_badge(badge, template)
    box = template.design_box
    width, height = canvas_size(template, pad)

    dwg = svgwrite.Drawing(size=(f"{_r(width)}px", f"{_r(height)}px"), profile="full", debug=False)
    dwg.viewbox(_r(-pad), _r(-pad), _r(width), _r(height))

    clip_id = "badge-clip"
    clip = dwg.defs.add(dwg.clipPath(id=clip_id))
    clip.add(dwg.path(d=template.inner_path))
    body = dwg.add(dwg.g(id="badge-body", clip_path=f"url(#{clip_id})"))

    for layer in settings.LAYER_ORDER:
        if layer == "background":
            body.add(dwg.path(d=template.inner_path, id="badge-background", fill=badge.background_color))
        elif layer == "background_image":
            if badge.background_image:
                body.add(_image_element(dwg, badge.background_image, box, layer))
        elif layer == "logo":
            if badge.logo:
                body.add(_image_element(dwg, badge.logo, box, layer))
        elif layer == "text":
            text = body.add(dwg.g(id="badge-text"))
            for line in badge.lines:
                text.add(_text_element(dwg, line, box))
        else:
            logger.warning(f"Ignoring unknown render layer '{layer}'.")

    if options.show_outline:
        dwg.add(dwg.path(
            d=template.edge_path,
            id="badge-outline",
            fill="none",
            stroke=settings.OUTLINE_STROKE,
            stroke_width=settings.OUTLINE_STROKE_WIDTH,
        ))
    return _escape_text_quotes(dwg.tostring())
