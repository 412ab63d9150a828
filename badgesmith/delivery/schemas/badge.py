# badgesmith/delivery/schemas/badge.py
import math
import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from badgesmith.config.settings import settings
from badgesmith.domain import constants as C
from badgesmith.domain.colors import normalize_color
from badgesmith.domain.fonts import DEFAULT_FONT


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def finite_or_none(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


class CamelModel(BaseModel):
    """Frozen value object that reads and writes camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class BadgeLine(CamelModel):
    id: str = Field(default_factory=lambda: f"line-{uuid.uuid4().hex[:8]}")
    text: str = ""

    # Fractions of the design box; None means "not set"
    x_norm: Optional[float] = None
    y_norm: Optional[float] = None
    size_norm: Optional[float] = None

    # Legacy absolute template pixels
    x: Optional[float] = None
    y: Optional[float] = None
    font_size: Optional[float] = None

    color: str = C.DEFAULT_COLOR
    bold: bool = False
    italic: bool = False
    underline: bool = False
    font_family: str = DEFAULT_FONT
    align: Literal["left", "center", "right"] = "center"

    @field_validator("text", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("x_norm", "y_norm")
    @classmethod
    def _position_norm(cls, v):
        v = finite_or_none(v)
        return None if v is None else clamp(v, C.POSITION_NORM_MIN, C.POSITION_NORM_MAX)

    @field_validator("size_norm")
    @classmethod
    def _size_norm(cls, v):
        v = finite_or_none(v)
        return None if v is None else clamp(v, C.SIZE_NORM_MIN, C.SIZE_NORM_MAX)

    @field_validator("x", "y")
    @classmethod
    def _legacy_position(cls, v):
        return finite_or_none(v)

    @field_validator("font_size")
    @classmethod
    def _legacy_size(cls, v):
        v = finite_or_none(v)
        return v if v is not None and v > 0 else None

    @field_validator("color", mode="before")
    @classmethod
    def _color(cls, v):
        return normalize_color(v, C.DEFAULT_COLOR)

    @field_validator("font_family", mode="before")
    @classmethod
    def _font_family(cls, v):
        return str(v).strip() if v and str(v).strip() else DEFAULT_FONT

    @field_validator("align", mode="before")
    @classmethod
    def _align(cls, v):
        return v if v in C.ALIGNMENTS else "center"

    @field_validator("bold", "italic", "underline", mode="before")
    @classmethod
    def _flag(cls, v):
        return v if isinstance(v, bool) else False


class BadgeImage(CamelModel):
    """Background image or logo.

    The canonical placement is a center anchor (``x_norm``/``y_norm``), a base
    size (``width_norm`` of the design-box width, ``height_norm`` of its height)
    and a uniform ``scale``. The pixel/offset fields are only read when a legacy
    design is upgraded, see ``normalizer.canonicalize_image``.
    """
    src: str
    x_norm: Optional[float] = None
    y_norm: Optional[float] = None
    width_norm: Optional[float] = None
    height_norm: Optional[float] = None
    scale: float = 1.0
    fit: Optional[Literal["cover", "contain"]] = None
    rotation_deg: float = 0.0

    # Legacy: background convention
    offset_x: Optional[float] = None
    offset_y: Optional[float] = None
    width_px: Optional[float] = None
    height_px: Optional[float] = None
    # Legacy: logo convention (top-left corner)
    x: Optional[float] = None
    y: Optional[float] = None

    @field_validator("scale", mode="before")
    @classmethod
    def _scale(cls, v):
        try:
            v = float(v)
        except (TypeError, ValueError):
            return 1.0
        return v if math.isfinite(v) and v > 0 else 1.0

    @field_validator("rotation_deg", mode="before")
    @classmethod
    def _rotation(cls, v):
        v = finite_or_none(v)
        return 0.0 if v is None else v % 360

    @field_validator("x_norm", "y_norm", "offset_x", "offset_y", "x", "y")
    @classmethod
    def _finite(cls, v):
        return finite_or_none(v)

    @field_validator("width_norm", "height_norm", "width_px", "height_px")
    @classmethod
    def _positive(cls, v):
        v = finite_or_none(v)
        return v if v is not None and v > 0 else None

    @property
    def is_canonical(self) -> bool:
        return None not in (self.x_norm, self.y_norm, self.width_norm, self.height_norm)


class Badge(CamelModel):
    id: str = Field(default_factory=lambda: f"badge-{uuid.uuid4().hex[:12]}")
    template_id: str = Field(default_factory=lambda: settings.DEFAULT_TEMPLATE_ID)
    lines: List[BadgeLine] = Field(min_length=1, max_length=C.MAX_LINES)
    background_color: str = C.DEFAULT_BACKGROUND
    background_image: Optional[BadgeImage] = None
    logo: Optional[BadgeImage] = None
    backing: Literal["pin", "magnetic", "adhesive"] = C.DEFAULT_BACKING

    @field_validator("background_color", mode="before")
    @classmethod
    def _background(cls, v):
        return normalize_color(v, C.DEFAULT_BACKGROUND)

    @field_validator("backing", mode="before")
    @classmethod
    def _backing(cls, v):
        return v if v in C.BACKINGS else C.DEFAULT_BACKING

    @field_validator("background_image", "logo", mode="before")
    @classmethod
    def _image(cls, v):
        # {"src": ""} is how clients clear an image
        if isinstance(v, dict) and not v.get("src"):
            return None
        return v


def new_badge(template_id: Optional[str] = None) -> Badge:
    """A fresh design: two centred lines on a white background."""
    return Badge(
        template_id=template_id or settings.DEFAULT_TEMPLATE_ID,
        lines=[
            BadgeLine(id="line-1", text="Your Name", x_norm=0.5, y_norm=C.SENTINEL_Y_NORM, size_norm=0.20),
            BadgeLine(id="line-2", text="Title", x_norm=0.5, y_norm=C.SENTINEL_Y_NORM, size_norm=0.143),
        ],
    )
