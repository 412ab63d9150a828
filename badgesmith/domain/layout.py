# badgesmith/domain/layout.py
import logging
from typing import List, Sequence

from badgesmith.delivery.schemas.badge import Badge, BadgeLine, clamp
from badgesmith.delivery.schemas.template import DesignBox
from badgesmith.domain import constants as C
from badgesmith.domain.errors import LineLimitError
from badgesmith.domain.normalizer import position_norm, resolve_size

logger = logging.getLogger(__name__)


def center_lines(lines: Sequence[BadgeLine], box: DesignBox) -> List[BadgeLine]:
    """Stack the lines so the whole block sits on the design box's vertical center.

    Only positions change: every line keeps its size. Each line occupies
    ``font_size * LINE_SPACING_FACTOR`` of pitch and is anchored in the middle
    of its glyph height; the result is clamped to [0.1, 0.9] of the box.
    """
    sizes = [resolve_size(line, box) for line in lines]
    total = sum(fs * C.LINE_SPACING_FACTOR for fs in sizes)
    running = box.height / 2 - total / 2

    centered = []
    for line, fs in zip(lines, sizes):
        anchor = running + fs / 2
        running += fs * C.LINE_SPACING_FACTOR
        x_norm = line.x_norm if line.x_norm is not None else position_norm(line, box)[0]
        centered.append(line.model_copy(update={
            "x_norm": x_norm,
            "y_norm": clamp(anchor / box.height, C.CENTER_CLAMP_MIN, C.CENTER_CLAMP_MAX),
            "x": None,
            "y": None,
        }))
    return centered


def needs_initial_layout(lines: Sequence[BadgeLine]) -> bool:
    return all(line.y_norm is None or line.y_norm == C.SENTINEL_Y_NORM for line in lines)


def ensure_initial_layout(badge: Badge, box: DesignBox) -> Badge:
    if not needs_initial_layout(badge.lines):
        return badge
    logger.debug(f"Badge {badge.id}: laying out {len(badge.lines)} untouched lines.")
    return badge.model_copy(update={"lines": center_lines(badge.lines, box)})


def add_line(badge: Badge, box: DesignBox, text: str = "Line Text") -> Badge:
    if len(badge.lines) >= C.MAX_LINES:
        raise LineLimitError(f"A badge holds at most {C.MAX_LINES} lines")
    template_line = badge.lines[-1]
    line = BadgeLine(
        id=f"line-{len(badge.lines) + 1}",
        text=text,
        x_norm=0.5,
        y_norm=C.SENTINEL_Y_NORM,
        size_norm=0.143,
        color=template_line.color,
        font_family=template_line.font_family,
    )
    if any(existing.id == line.id for existing in badge.lines):
        line = line.model_copy(update={"id": f"{line.id}-{len(badge.lines)}"})
    return badge.model_copy(update={"lines": center_lines([*badge.lines, line], box)})


def remove_line(badge: Badge, index: int, box: DesignBox) -> Badge:
    if len(badge.lines) <= 1:
        raise LineLimitError("A badge needs at least one line")
    lines = [line for i, line in enumerate(badge.lines) if i != index]
    if len(lines) == len(badge.lines):
        raise IndexError(f"No line at index {index}")
    return badge.model_copy(update={"lines": center_lines(lines, box)})


def update_line(badge: Badge, index: int, box: DesignBox, **changes) -> Badge:
    """Apply ``changes`` to one line (validated), re-centering when its size changed."""
    old = badge.lines[index]
    new = BadgeLine.model_validate({**old.model_dump(), **changes})
    lines = list(badge.lines)
    lines[index] = new
    if resolve_size(new, box) != resolve_size(old, box):
        lines = center_lines(lines, box)
    return badge.model_copy(update={"lines": lines})
