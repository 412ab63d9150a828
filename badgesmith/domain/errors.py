# badgesmith/domain/errors.py
from typing import Optional


class BadgeEngineError(Exception):
    """Base class for every error raised by the layout and rendering engine."""


class TemplateError(BadgeEngineError):
    def __init__(self, template_id: str, message: str):
        self.template_id = template_id
        super().__init__(f"Template '{template_id}': {message}")


class MissingGeometryError(TemplateError):
    """The template definition has no inner path."""


class InvalidPathError(TemplateError):
    """Path data does not describe valid closed geometry."""


class TemplateNotFoundError(TemplateError):
    pass


class TemplateFetchError(TemplateError):
    """The geometry source could not be fetched (network, timeout, missing file)."""


class OutOfRangeValueError(BadgeEngineError, ValueError):
    def __init__(self, field: str, value: float, low: float, high: float, line_index: Optional[int] = None):
        self.field = field
        self.value = value
        self.low = low
        self.high = high
        self.line_index = line_index
        where = f"Line {line_index + 1} " if line_index is not None else ""
        super().__init__(f"{where}{field} is outside [{low}, {high}] ({value:.3f})")


class UnresolvedFontError(BadgeEngineError, LookupError):
    def __init__(self, family: str):
        self.family = family
        super().__init__(f"Unknown font family '{family}'")


class ImageLoadError(BadgeEngineError):
    def __init__(self, src: str, reason: str):
        self.src = src
        self.reason = reason
        super().__init__(f"Could not load image '{src[:70]}': {reason}")


class ExportEncodingError(BadgeEngineError):
    def __init__(self, message: str, index: Optional[int] = None, badge_id: Optional[str] = None):
        self.index = index
        self.badge_id = badge_id
        super().__init__(message)


class LineLimitError(BadgeEngineError, ValueError):
    """Adding or removing a line would leave the badge outside 1..MAX_LINES lines."""


class UnsupportedFormatError(BadgeEngineError, ValueError):
    def __init__(self, fmt: str, supported):
        self.fmt = fmt
        super().__init__(f"Unsupported export format '{fmt}' (expected one of: {', '.join(supported)})")
