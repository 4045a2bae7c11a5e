from dataclasses import dataclass
from typing import Callable, List, Optional

# --- SETTINGS ---
START_FONT_SIZE = 14.0
MIN_FONT_SIZE = 6.0
FONT_SIZE_STEP = 1.0
LINE_HEIGHT_RATIO = 1.4     # line pitch as a multiple of the font size
FIT_TOLERANCE = 2.0         # points of overflow still accepted as a fit
PLACEHOLDER_TEXT = "..."

# measure(text, font_size) -> width in points
Measure = Callable[[str, float], float]


@dataclass(frozen=True)
class FittedText:
    font_size: float
    lines: List[str]
    line_height: float

    @property
    def block_height(self) -> float:
        return len(self.lines) * self.line_height


def wrap_text(text: Optional[str], measure: Measure, font_size: float, max_width: float) -> List[str]:
    """
    Greedy word wrap. A word joins the current line only while the joined line
    stays strictly narrower than ``max_width``; a single word that is wider than
    ``max_width`` gets a line of its own and is allowed to overflow.
    """
    words = text.split() if text else []
    if not words:
        return [PLACEHOLDER_TEXT]

    lines = []
    current_line = words[0]
    for word in words[1:]:
        candidate = current_line + " " + word
        if measure(candidate, font_size) < max_width:
            current_line = candidate
        else:
            lines.append(current_line)
            current_line = word
    lines.append(current_line)
    return lines


def fit_text(text: Optional[str], measure: Measure, box_width: float, box_height: float,
             start_size: float = START_FONT_SIZE,
             min_size: float = MIN_FONT_SIZE,
             step: float = FONT_SIZE_STEP,
             line_height: float = LINE_HEIGHT_RATIO,
             tolerance: float = FIT_TOLERANCE) -> FittedText:
    """
    Pick the largest font size, scanning down from ``start_size``, at which the
    wrapped block is no taller than ``box_height + tolerance``.

    The scan is clamped to ``min_size`` so the floor is always tried; if the
    text still does not fit there, the floor wrapping is returned anyway.
    """
    if step <= 0:
        raise ValueError(f"font size step must be positive, got {step}")
    if line_height <= 0:
        raise ValueError(f"line height ratio must be positive, got {line_height}")

    floor = min(min_size, start_size)
    size = start_size
    while True:
        lines = wrap_text(text, measure, size, box_width)
        pitch = size * line_height
        if len(lines) * pitch <= box_height + tolerance or size <= floor:
            return FittedText(size, lines, pitch)
        size = max(size - step, floor)
