"""
Validation of the segment list returned by the vision/translation model.

The model output is untrusted: every entry is checked on its own and turned
into either an ``Accepted`` segment or a ``Skipped`` outcome carrying the
reason, so one bad bubble never takes down the rest of the batch.
"""
import enum
import math
import numbers
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

PAGE_KEY = "page_number"
TEXT_KEY = "text"
BOX_KEY = "box_2d"


class SkipReason(enum.Enum):
    NOT_AN_OBJECT = "not_an_object"
    MISSING_PAGE = "missing_page"
    INVALID_PAGE = "invalid_page"
    PAGE_OUT_OF_RANGE = "page_out_of_range"
    MISSING_TEXT = "missing_text"
    MISSING_BOX = "missing_box"
    INVALID_BOX = "invalid_box"


@dataclass(frozen=True)
class DetectedSegment:
    """One translated speech bubble.

    ``box`` is ``(y_min, x_min, y_max, x_max)`` normalized to 0-1000 with the
    origin at the top-left corner of the page.
    """
    page_number: int
    text: str
    box: Tuple[float, float, float, float]

    @property
    def page_index(self) -> int:
        return self.page_number - 1


@dataclass(frozen=True)
class Accepted:
    segment: DetectedSegment


@dataclass(frozen=True)
class Skipped:
    reason: SkipReason
    detail: str = ""


SegmentOutcome = Union[Accepted, Skipped]


def _to_number(value: Any) -> Optional[float]:
    """Coerce a coordinate or page value; numeric strings such as ``"120"`` count."""
    # bool is an int subclass; "true" is not a coordinate
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, str)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _parse_page(value: Any) -> Optional[int]:
    number = _to_number(value)
    if number is None or int(number) != number:
        return None
    return int(number)


def _parse_box(value: Any) -> Optional[Tuple[float, float, float, float]]:
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        return None
    coords = tuple(_to_number(v) for v in value)
    if any(c is None for c in coords):
        return None
    return coords


def parse_segment(raw: Any, page_count: int) -> SegmentOutcome:
    """Validate one raw model entry against a document of ``page_count`` pages."""
    if not isinstance(raw, dict):
        return Skipped(SkipReason.NOT_AN_OBJECT, type(raw).__name__)

    page_value = raw.get(PAGE_KEY)
    if page_value is None:
        return Skipped(SkipReason.MISSING_PAGE)
    page_number = _parse_page(page_value)
    if page_number is None or page_number < 1:
        return Skipped(SkipReason.INVALID_PAGE, repr(page_value))
    if page_number > page_count:
        return Skipped(SkipReason.PAGE_OUT_OF_RANGE, f"{page_number} > {page_count}")

    text = raw.get(TEXT_KEY)
    if not isinstance(text, str) or not text.strip():
        return Skipped(SkipReason.MISSING_TEXT)

    box = raw.get(BOX_KEY)
    if box is None:
        return Skipped(SkipReason.MISSING_BOX)
    coords = _parse_box(box)
    if coords is None:
        return Skipped(SkipReason.INVALID_BOX, repr(box))

    return Accepted(DetectedSegment(
        page_number=page_number,
        text=text.strip(),
        box=coords,
    ))
