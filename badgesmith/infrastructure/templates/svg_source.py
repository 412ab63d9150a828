# badgesmith/infrastructure/templates/svg_source.py
import asyncio
import json
import logging
import os
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Union
from urllib.parse import urljoin

import aiohttp

from badgesmith.config.settings import settings
from badgesmith.delivery.schemas.template import TemplateSource
from badgesmith.domain.errors import InvalidPathError, TemplateFetchError
from badgesmith.infrastructure.io.fetch import fetch_with_retry, is_url

logger = logging.getLogger(__name__)

INNER_ID = "inner"
OUTLINE_ID = "outline"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _num(el: ET.Element, name: str, default: float = 0.0) -> float:
    raw = (el.get(name) or "").strip().rstrip("px")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def element_to_path_data(el: ET.Element) -> Optional[str]:
    """Path data for <path>, <rect>, <circle> or <ellipse>; None for anything else."""
    kind = _local_name(el.tag)
    if kind == "path":
        return el.get("d")
    if kind == "rect":
        x, y = _num(el, "x"), _num(el, "y")
        w, h = _num(el, "width"), _num(el, "height")
        # A missing radius takes the other one's value; both are capped at half the side
        rx = _num(el, "rx", _num(el, "ry"))
        ry = _num(el, "ry", rx)
        rx, ry = min(max(rx, 0.0), w / 2), min(max(ry, 0.0), h / 2)
        if rx <= 0 or ry <= 0:
            return f"M{x},{y} H{x + w} V{y + h} H{x} Z"
        return (f"M{x + rx},{y} H{x + w - rx} A{rx},{ry} 0 0,1 {x + w},{y + ry} "
                f"V{y + h - ry} A{rx},{ry} 0 0,1 {x + w - rx},{y + h} "
                f"H{x + rx} A{rx},{ry} 0 0,1 {x},{y + h - ry} "
                f"V{y + ry} A{rx},{ry} 0 0,1 {x + rx},{y} Z")
    if kind in ("circle", "ellipse"):
        cx, cy = _num(el, "cx"), _num(el, "cy")
        if kind == "circle":
            rx = ry = _num(el, "r")
        else:
            rx, ry = _num(el, "rx"), _num(el, "ry")
        return (f"M{cx - rx},{cy} A{rx},{ry} 0 1,0 {cx + rx},{cy} "
                f"A{rx},{ry} 0 1,0 {cx - rx},{cy} Z")
    return None


def parse_template_svg(template_id: str, svg_text: Union[str, bytes], width_in: float, height_in: float,
                       name: Optional[str] = None, safe_inset_px: Optional[float] = None) -> TemplateSource:
    """Extract the viewBox and the elements whose id is Inner/Outline (any case)."""
    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise InvalidPathError(template_id, f"SVG document does not parse ({e})") from e

    shapes: Dict[str, str] = {}
    for el in root.iter():
        el_id = (el.get("id") or "").lower()
        if el_id in (INNER_ID, OUTLINE_ID) and el_id not in shapes:
            d = element_to_path_data(el)
            if d:
                shapes[el_id] = d

    return TemplateSource(
        id=template_id,
        name=name,
        width_in=width_in,
        height_in=height_in,
        inner_path=shapes.get(INNER_ID),
        outline_path=shapes.get(OUTLINE_ID),
        view_box=root.get("viewBox"),
        safe_inset_px=safe_inset_px,
    )


class ManifestTemplateSource:
    """Templates listed in a JSON manifest, each backed by an SVG file or URL.

    Manifest shape::

        {"version": 1, "templates": [
            {"id": "rect-1x3", "name": "...", "widthInches": 3, "heightInches": 1,
             "svgFile": "templates/rect-1x3.svg", "safeInsetPx": 6}]}
    """

    def __init__(self, manifest: str, timeout: float = settings.TEMPLATE_FETCH_TIMEOUT,
                 retries: int = settings.TEMPLATE_FETCH_RETRIES):
        self.manifest = manifest
        self.timeout = timeout
        self.retries = retries
        self._entries: Optional[Dict[str, dict]] = None
        self._lock = asyncio.Lock()

    def _resolve(self, location: str) -> str:
        if is_url(location) or os.path.isabs(location):
            return location
        if is_url(self.manifest):
            return urljoin(self.manifest, location)
        return os.path.join(os.path.dirname(self.manifest), location)

    async def _load_entries(self) -> Dict[str, dict]:
        async with self._lock:
            if self._entries is None:
                try:
                    raw = await fetch_with_retry(self.manifest, self.timeout, self.retries)
                    data = json.loads(raw)
                except (aiohttp.ClientError, OSError, asyncio.TimeoutError, ValueError) as e:
                    raise TemplateFetchError("*", f"manifest '{self.manifest}' unavailable ({type(e).__name__})") from e
                self._entries = {t["id"]: t for t in data.get("templates", []) if t.get("id")}
                logger.info(f"Manifest '{self.manifest}' lists {len(self._entries)} templates.")
            return self._entries

    async def list_ids(self) -> List[str]:
        return list(await self._load_entries())

    async def fetch(self, template_id: str) -> Optional[TemplateSource]:
        entries = await self._load_entries()
        entry = entries.get(template_id)
        if entry is None:
            return None
        location = self._resolve(entry["svgFile"])
        try:
            raw = await fetch_with_retry(location, self.timeout, self.retries)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            raise TemplateFetchError(template_id, f"'{location}' unavailable ({type(e).__name__})") from e
        logger.info(f"Fetched SVG for '{template_id}' ({len(raw)} bytes).")
        return parse_template_svg(
            template_id,
            raw,
            width_in=float(entry["widthInches"]),
            height_in=float(entry["heightInches"]),
            name=entry.get("name"),
            safe_inset_px=entry.get("safeInsetPx"),
        )
