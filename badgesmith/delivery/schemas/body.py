# badgesmith/delivery/schemas/body.py
from typing import Dict, List, Optional, Tuple

from pydantic import Field

from badgesmith.delivery.schemas.badge import Badge, CamelModel
from badgesmith.delivery.schemas.template import DesignBox


class NewBadgeRequest(CamelModel):
    template_id: Optional[str] = None


class MigrateRequest(CamelModel):
    badge: Badge
    template_id: str


class RenderRequest(CamelModel):
    badge: Badge
    show_outline: bool = False


class ExportRequest(CamelModel):
    badge: Badge
    scale: Optional[float] = Field(default=None, gt=0, le=16)
    filename: Optional[str] = None


class BatchExportRequest(CamelModel):
    badges: List[Badge] = Field(min_length=1)
    base_name: str = "badge"
    scale: Optional[float] = Field(default=None, gt=0, le=16)


class TemplateSummary(CamelModel):
    id: str
    name: str
    width_in: float
    height_in: float
    width_px: int
    height_px: int
    design_box: DesignBox
    safe_inset_px: float


class TemplateListResponse(CamelModel):
    templates: List[TemplateSummary]
    errors: Dict[str, str] = Field(default_factory=dict)


class BadgeResponse(CamelModel):
    badge: Badge
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class ExportedFile(CamelModel):
    filename: str
    media_type: str
    content_base64: str
    width_px: int
    height_px: int
    page_size_mm: Tuple[float, float]


class ExportError(CamelModel):
    index: int
    badge_id: str
    message: str


class BatchExportResponse(CamelModel):
    files: List[ExportedFile]
    errors: List[ExportError] = Field(default_factory=list)
    timed_out: bool = False
