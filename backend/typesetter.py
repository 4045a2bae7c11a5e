import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from backend.overlay.geometry import (
    COLLISION_MARGIN,
    MAX_COLLISION_ATTEMPTS,
    Placement,
    Rect,
    map_box,
    place_patch,
)
from backend.overlay.text_fit import (
    FIT_TOLERANCE,
    FONT_SIZE_STEP,
    LINE_HEIGHT_RATIO,
    MIN_FONT_SIZE,
    START_FONT_SIZE,
    Measure,
    fit_text,
)
from backend.segments import DetectedSegment, Skipped, parse_segment

logger = logging.getLogger(__name__)

# --- SETTINGS ---
PATCH_PADDING = 4.0         # patch grows past the detected box on every side
TEXT_PADDING = 4.0          # gap between patch edge and text block
MIN_PATCH_WIDTH = 40.0
MIN_PATCH_HEIGHT = 16.0
DESCENT_RATIO = 0.2         # baseline sits this fraction of the size above the line bottom

WHITE = (1.0, 1.0, 1.0)
BLACK = (0.0, 0.0, 0.0)


@dataclass
class TypesetOptions:
    start_font_size: float = START_FONT_SIZE
    min_font_size: float = MIN_FONT_SIZE
    font_size_step: float = FONT_SIZE_STEP
    line_height: float = LINE_HEIGHT_RATIO
    fit_tolerance: float = FIT_TOLERANCE
    patch_padding: float = PATCH_PADDING
    text_padding: float = TEXT_PADDING
    min_patch_width: float = MIN_PATCH_WIDTH
    min_patch_height: float = MIN_PATCH_HEIGHT
    avoid_collisions: bool = True
    collision_margin: float = COLLISION_MARGIN
    max_collision_attempts: int = MAX_COLLISION_ATTEMPTS
    vertical_anchor: str = "center"     # "center" or "top"
    fill_color: Tuple[float, float, float] = WHITE
    border_color: Tuple[float, float, float] = BLACK
    border_width: float = 1.5
    opacity: float = 0.95
    text_color: Tuple[float, float, float] = BLACK

    def __post_init__(self):
        if self.vertical_anchor not in ("center", "top"):
            raise ValueError(f"vertical_anchor must be 'center' or 'top', got {self.vertical_anchor!r}")


@dataclass(frozen=True)
class TextRun:
    text: str
    font_size: float
    x: float
    y: float            # baseline, bottom-up page space


@dataclass
class SegmentLayout:
    segment: DetectedSegment
    patch: Rect
    runs: List[TextRun]
    font_size: float
    placement: Placement

    @property
    def degraded(self) -> bool:
        return not self.placement.resolved


@dataclass
class TypesetReport:
    layouts: List[SegmentLayout] = field(default_factory=list)
    skipped: List[Tuple[int, Skipped]] = field(default_factory=list)

    @property
    def rendered(self) -> int:
        return len(self.layouts)

    @property
    def degraded(self) -> int:
        return sum(1 for layout in self.layouts if layout.degraded)


class PatchRegistry:
    """Patches already drawn in one document, per 0-based page index."""

    def __init__(self):
        self._pages: Dict[int, List[Rect]] = defaultdict(list)

    def for_page(self, page_index: int) -> List[Rect]:
        return self._pages[page_index]

    def __len__(self):
        return sum(len(rects) for rects in self._pages.values())


def build_patch(box_rect: Rect, options: TypesetOptions) -> Rect:
    """
    Padded overlay: cover the detected box plus ``patch_padding`` on every side,
    growing symmetrically to the minimum patch size. Inverted or empty boxes
    collapse to a minimum-size patch centered on their position.
    """
    width = max(box_rect.width, 0.0) + 2 * options.patch_padding
    height = max(box_rect.height, 0.0) + 2 * options.patch_padding
    width = max(width, options.min_patch_width)
    height = max(height, options.min_patch_height)

    center_x = box_rect.x + max(box_rect.width, 0.0) / 2
    center_y = box_rect.y + max(box_rect.height, 0.0) / 2
    return Rect(center_x - width / 2, center_y - height / 2, width, height)


def layout_text_runs(text, patch: Rect, measure: Measure, options: TypesetOptions):
    inner = patch.inset(options.text_padding)
    inner_width = max(inner.width, 0.0)
    inner_height = max(inner.height, 0.0)

    fitted = fit_text(
        text, measure, inner_width, inner_height,
        start_size=options.start_font_size,
        min_size=options.min_font_size,
        step=options.font_size_step,
        line_height=options.line_height,
        tolerance=options.fit_tolerance,
    )

    if options.vertical_anchor == "top":
        block_top = inner.top
    else:
        block_top = patch.center_y + fitted.block_height / 2

    size = fitted.font_size
    pitch = fitted.line_height
    runs = []
    for i, line in enumerate(fitted.lines):
        line_bottom = block_top - (i + 1) * pitch
        baseline = line_bottom + (pitch - size) / 2 + size * DESCENT_RATIO
        line_width = measure(line, size)
        x = patch.x + (patch.width - line_width) / 2
        runs.append(TextRun(line, size, x, baseline))
    return fitted, runs


def layout_segment(segment: DetectedSegment, page_size, placed: List[Rect],
                   measure: Measure, options: TypesetOptions) -> SegmentLayout:
    """Compute the cover patch and text runs for one segment and record the patch."""
    page_width, page_height = page_size
    box_rect = map_box(segment.box, page_width, page_height)
    natural = build_patch(box_rect, options)

    if options.avoid_collisions:
        placement = place_patch(natural, placed,
                                margin=options.collision_margin,
                                max_attempts=options.max_collision_attempts)
    else:
        placed.append(natural)
        placement = Placement(natural, 0, True)

    fitted, runs = layout_text_runs(segment.text, placement.rect, measure, options)
    return SegmentLayout(segment, placement.rect, runs, fitted.font_size, placement)


def draw_layout(canvas, layout: SegmentLayout, options: TypesetOptions):
    page_index = layout.segment.page_index
    patch = layout.patch
    canvas.draw_rectangle(
        page_index, patch.x, patch.y, patch.width, patch.height,
        fill_color=options.fill_color,
        border_color=options.border_color,
        border_width=options.border_width,
        opacity=options.opacity,
    )
    for run in layout.runs:
        canvas.draw_text(page_index, run.text, run.x, run.y, run.font_size, color=options.text_color)


def typeset_document(canvas, raw_segments: Iterable, measure: Measure,
                     options: TypesetOptions = None) -> TypesetReport:
    """
    Cover every valid segment with an opaque patch and write its translation
    into it. Segments are handled in the order given; on each page a later
    patch is pushed down to make room for earlier ones.
    """
    options = options or TypesetOptions()
    registry = PatchRegistry()
    report = TypesetReport()
    page_count = canvas.page_count

    for index, raw in enumerate(raw_segments):
        outcome = parse_segment(raw, page_count)
        if isinstance(outcome, Skipped):
            logger.debug("Skipping segment %d: %s %s", index, outcome.reason.value, outcome.detail)
            report.skipped.append((index, outcome))
            continue

        segment = outcome.segment
        layout = layout_segment(
            segment,
            canvas.page_size(segment.page_index),
            registry.for_page(segment.page_index),
            measure,
            options,
        )
        if layout.degraded:
            logger.warning(
                "Segment %d on page %d still overlaps after %d moves",
                index, segment.page_number, layout.placement.attempts,
            )
        draw_layout(canvas, layout, options)
        report.layouts.append(layout)

    logger.info(
        "Typeset %d segments (%d skipped, %d degraded)",
        report.rendered, len(report.skipped), report.degraded,
    )
    return report
