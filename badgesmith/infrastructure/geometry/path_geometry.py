# badgesmith/infrastructure/geometry/path_geometry.py
import math
import re
from typing import Callable, List, Optional, Tuple

from svgpathtools import Arc, CubicBezier, Line, Path, QuadraticBezier, parse_path

from badgesmith.delivery.schemas.template import DesignBox, Template, TemplateSource
from badgesmith.domain.errors import InvalidPathError, MissingGeometryError, TemplateError

# Rotated arcs cannot be scaled non-uniformly as arcs; they are flattened instead
ARC_FLATTEN_STEPS = 16

# Relative to the bounding-box diagonal
SPLIT_TOLERANCE = 1e-9
CLOSE_TOLERANCE = 1e-4

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
# A moveto with a single coordinate pair followed by another moveto or the end draws nothing
_STRAY_MOVETO_RE = re.compile(rf"[Mm]\s*{_NUMBER}\s*,?\s*{_NUMBER}\s*(?=[Mm]|$)")

Point = complex
Bounds = Tuple[float, float, float, float]


def parse_svg_path(template_id: str, path_data: str) -> Path:
    try:
        path = parse_path(path_data)
    except Exception as e:
        raise InvalidPathError(template_id, f"path data does not parse ({type(e).__name__}: {e})") from e
    if len(path) == 0:
        raise InvalidPathError(template_id, "path data has no segments")
    if _STRAY_MOVETO_RE.search(path_data.strip()):
        raise InvalidPathError(template_id, "path data has a moveto that draws nothing")
    return path


def path_bounds(path: Path) -> Bounds:
    """Exact (x, y, width, height) of a path: Bezier extrema and arc extents, not control points."""
    xmin, xmax, ymin, ymax = path.bbox()
    return xmin, ymin, xmax - xmin, ymax - ymin


def _diagonal(path: Path) -> float:
    _, _, w, h = path_bounds(path)
    return max(1.0, math.hypot(w, h))


def split_subpaths(path: Path) -> List[List]:
    """Group segments into continuous runs; a new run starts wherever the pen jumps."""
    tol = SPLIT_TOLERANCE * _diagonal(path)
    subpaths: List[List] = []
    current: List = []
    for seg in path:
        if current and abs(seg.start - current[-1].end) > tol:
            subpaths.append(current)
            current = []
        current.append(seg)
    if current:
        subpaths.append(current)
    return subpaths


def closed_subpaths(template_id: str, path: Path, label: str) -> List[List]:
    tol = CLOSE_TOLERANCE * _diagonal(path)
    subpaths = split_subpaths(path)
    for i, sub in enumerate(subpaths):
        gap = abs(sub[-1].end - sub[0].start)
        if gap > tol:
            raise InvalidPathError(template_id, f"{label} subpath {i + 1} is open (gap {gap:.3f})")
    return subpaths


def _sample_segment(seg, f: Callable[[Point], Point], steps: int = ARC_FLATTEN_STEPS) -> List[Line]:
    points = [f(seg.point(i / steps)) for i in range(steps + 1)]
    return [Line(a, b) for a, b in zip(points, points[1:])]


def transform_segment(seg, f: Callable[[Point], Point], sx: float, sy: float) -> List:
    if isinstance(seg, Line):
        return [Line(f(seg.start), f(seg.end))]
    if isinstance(seg, QuadraticBezier):
        return [QuadraticBezier(f(seg.start), f(seg.control), f(seg.end))]
    if isinstance(seg, CubicBezier):
        return [CubicBezier(f(seg.start), f(seg.control1), f(seg.control2), f(seg.end))]
    if isinstance(seg, Arc):
        if math.isclose(sx, sy, rel_tol=1e-9) or seg.rotation % 180 == 0:
            radius = complex(seg.radius.real * sx, seg.radius.imag * sy)
            return [Arc(f(seg.start), radius, seg.rotation, seg.large_arc, seg.sweep, f(seg.end))]
        return _sample_segment(seg, f)
    raise TypeError(f"Unsupported path segment {type(seg).__name__}")


def _fmt(v: float) -> str:
    text = f"{v:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _pt(z: Point) -> str:
    return f"{_fmt(z.real)},{_fmt(z.imag)}"


def format_subpaths(subpaths: List[List]) -> str:
    """Serialise closed subpaths as absolute path data with three decimals."""
    parts = []
    for sub in subpaths:
        parts.append(f"M{_pt(sub[0].start)}")
        for seg in sub:
            if isinstance(seg, Line):
                parts.append(f"L{_pt(seg.end)}")
            elif isinstance(seg, QuadraticBezier):
                parts.append(f"Q{_pt(seg.control)} {_pt(seg.end)}")
            elif isinstance(seg, CubicBezier):
                parts.append(f"C{_pt(seg.control1)} {_pt(seg.control2)} {_pt(seg.end)}")
            elif isinstance(seg, Arc):
                parts.append(
                    f"A{_fmt(seg.radius.real)},{_fmt(seg.radius.imag)} {_fmt(seg.rotation)} "
                    f"{int(seg.large_arc)},{int(seg.sweep)} {_pt(seg.end)}"
                )
        parts.append("Z")
    return " ".join(parts)


def to_pixel_space(subpaths: List[List], f: Callable[[Point], Point], sx: float, sy: float) -> List[List]:
    return [[out for seg in sub for out in transform_segment(seg, f, sx, sy)] for sub in subpaths]


def build_template(source: TemplateSource, dpi: int = 96) -> Template:
    """Resolve a template's geometry into pixel space.

    Raises MissingGeometryError when there is no inner path and InvalidPathError
    when either path is malformed, open, or encloses no area.
    """
    if not source.inner_path:
        raise MissingGeometryError(source.id, "no inner path")

    width_px = round(source.width_in * dpi)
    height_px = round(source.height_in * dpi)
    if width_px <= 0 or height_px <= 0:
        raise TemplateError(source.id, f"physical size must be positive ({source.width_in}x{source.height_in} in)")

    vb = source.view_box
    if vb is not None and vb.width > 0 and vb.height > 0:
        sx, sy = width_px / vb.width, height_px / vb.height
        ox, oy = vb.x, vb.y
    else:
        # No viewBox: the paths are already in pixel coordinates
        sx = sy = 1.0
        ox = oy = 0.0

    def to_px(z: Point) -> Point:
        return complex((z.real - ox) * sx, (z.imag - oy) * sy)

    inner = parse_svg_path(source.id, source.inner_path)
    inner_subpaths = closed_subpaths(source.id, inner, "inner")

    x, y, w, h = path_bounds(inner)
    design_box = DesignBox(x=(x - ox) * sx, y=(y - oy) * sy, width=w * sx, height=h * sy)
    if not (design_box.width > 0 and design_box.height > 0):
        raise InvalidPathError(source.id, "inner path encloses no area")

    outline_d: Optional[str] = None
    if source.outline_path:
        outline = parse_svg_path(source.id, source.outline_path)
        outline_d = format_subpaths(to_pixel_space(closed_subpaths(source.id, outline, "outline"), to_px, sx, sy))

    return Template(
        id=source.id,
        name=source.name or source.id,
        width_in=source.width_in,
        height_in=source.height_in,
        width_px=width_px,
        height_px=height_px,
        design_box=design_box,
        inner_path=format_subpaths(to_pixel_space(inner_subpaths, to_px, sx, sy)),
        outline_path=outline_d,
        safe_inset_px=source.safe_inset_px if source.safe_inset_px is not None else round(0.15 * dpi),
    )
