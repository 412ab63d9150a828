# badgesmith/delivery/schemas/template.py
from typing import Optional

from pydantic import field_validator

from badgesmith.delivery.schemas.badge import CamelModel


class DesignBox(CamelModel):
    x: float
    y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


class ViewBox(CamelModel):
    x: float = 0.0
    y: float = 0.0
    width: float
    height: float


class TemplateSource(CamelModel):
    """Raw geometry for one template, in its native coordinate space."""
    id: str
    name: Optional[str] = None
    width_in: float
    height_in: float
    inner_path: Optional[str] = None
    outline_path: Optional[str] = None
    view_box: Optional[ViewBox] = None
    safe_inset_px: Optional[float] = None

    @field_validator("view_box", mode="before")
    @classmethod
    def _view_box(cls, v):
        if isinstance(v, str):
            parts = v.replace(",", " ").split()
            if len(parts) != 4:
                return None
            try:
                x, y, w, h = (float(p) for p in parts)
            except ValueError:
                return None
            return {"x": x, "y": y, "width": w, "height": h}
        if isinstance(v, (list, tuple)) and len(v) == 4:
            x, y, w, h = v
            return {"x": x, "y": y, "width": w, "height": h}
        return v

    @field_validator("inner_path", "outline_path", mode="before")
    @classmethod
    def _blank_path(cls, v):
        return v if v and str(v).strip() else None


class Template(CamelModel):
    """A resolved template. Both paths are already in pixel space."""
    id: str
    name: str
    width_in: float
    height_in: float
    width_px: int
    height_px: int
    design_box: DesignBox
    inner_path: str
    outline_path: Optional[str] = None
    safe_inset_px: float = 0.0

    @property
    def edge_path(self) -> str:
        return self.outline_path or self.inner_path
