# badgesmith/config/settings.py
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # API
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Badge Render Service"

    # CORS
    ALLOWED_HOSTS: List[str] = ["*"]

    # Geometry
    DPI: int = 96
    DEFAULT_TEMPLATE_ID: str = "rect-1x3"

    # Templates (manifest path or URL; builtin catalogue when unset)
    TEMPLATE_MANIFEST: Optional[str] = None
    TEMPLATE_FETCH_TIMEOUT: float = 10.0
    TEMPLATE_FETCH_RETRIES: int = 2

    # Images
    IMAGE_FETCH_TIMEOUT: float = 30.0
    DROP_UNLOADABLE_IMAGES: bool = False

    # Rendering
    RENDER_PADDING_PX: float = 0.0
    LAYER_ORDER: List[str] = ["background", "background_image", "logo", "text"]
    OUTLINE_STROKE: str = "#222222"
    OUTLINE_STROKE_WIDTH: float = 1.25

    # Export
    EXPORT_CONCURRENCY: int = 4
    EXPORT_BATCH_TIMEOUT: float = 300.0
    DEFAULT_RASTER_SCALE: float = 2.0
    MAX_WORKERS: int = 4

    # Env
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
