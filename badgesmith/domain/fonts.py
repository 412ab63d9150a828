# badgesmith/domain/fonts.py
import logging

from badgesmith.domain.errors import UnresolvedFontError

logger = logging.getLogger(__name__)

GENERIC_FAMILY = "sans-serif"
DEFAULT_FONT = "Roboto"

# family -> CSS generic fallback
FONT_FAMILIES = {
    "Roboto": "sans-serif",
    "Inter": "sans-serif",
    "Open Sans": "sans-serif",
    "Lato": "sans-serif",
    "Montserrat": "sans-serif",
    "Oswald": "sans-serif",
    "Source Sans 3": "sans-serif",
    "Raleway": "sans-serif",
    "PT Sans": "sans-serif",
    "Cabin": "sans-serif",
    "Nunito": "sans-serif",
    "Noto Sans": "sans-serif",
    "Arial": "sans-serif",
    "Roboto Mono": "monospace",
    "Merriweather": "serif",
    "Noto Serif": "serif",
    "Roboto Serif": "serif",
    "Roboto Slab": "serif",
    "Georgia": "serif",
}

_BY_LOWER = {name.lower(): name for name in FONT_FAMILIES}


def resolve_font_family(family: str) -> str:
    """Return the CSS font-family value for a known family.

    Raises UnresolvedFontError when the family is not part of the font set.
    """
    name = _BY_LOWER.get((family or "").strip().lower())
    if name is None:
        raise UnresolvedFontError(family)
    quoted = f"'{name}'" if " " in name else name
    return f"{quoted}, {FONT_FAMILIES[name]}"


def font_family_or_fallback(family: str) -> str:
    try:
        return resolve_font_family(family)
    except UnresolvedFontError as e:
        logger.warning(f"{e}; substituting {GENERIC_FAMILY}.")
        return GENERIC_FAMILY
