# badgesmith/domain/colors.py
from typing import Optional

from PIL import ImageColor


def normalize_color(value: Optional[str], default: str) -> str:
    """Return ``value`` as uppercase ``#RRGGBB``; anything Pillow cannot parse yields ``default``.

    Accepts hex (3, 4, 6 or 8 digits), ``rgb()``, ``hsl()``, ``hsv()`` and CSS
    colour names. Alpha is dropped.
    """
    if not value or not isinstance(value, str):
        return default
    try:
        rgb = ImageColor.getrgb(value.strip())
    except ValueError:
        return default
    r, g, b = rgb[:3]
    return f"#{r:02X}{g:02X}{b:02X}"
