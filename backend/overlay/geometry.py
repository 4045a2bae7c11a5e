from dataclasses import dataclass, replace
from typing import List, Sequence

# --- SETTINGS ---
NORMALIZED_SCALE = 1000.0
COLLISION_MARGIN = 4.0
MAX_COLLISION_ATTEMPTS = 5


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in page space (origin bottom-left, y grows up)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def overlaps(self, other: "Rect") -> bool:
        # Strict: rectangles that only share an edge do not collide
        return (self.x < other.right and self.right > other.x
                and self.y < other.top and self.top > other.y)

    def shifted(self, dy: float) -> "Rect":
        return replace(self, y=self.y + dy)

    def inset(self, amount: float) -> "Rect":
        """Shrink (or grow, for negative amounts) by ``amount`` on every side."""
        return Rect(self.x + amount, self.y + amount,
                    self.width - 2 * amount, self.height - 2 * amount)


@dataclass(frozen=True)
class Placement:
    rect: Rect
    attempts: int
    resolved: bool


def map_box(box: Sequence[float], page_width: float, page_height: float) -> Rect:
    """
    Convert a normalized ``(y_min, x_min, y_max, x_max)`` box (0-1000, y down)
    into an absolute page rectangle (y up).

    The result is positioned by its bottom-left corner. Inverted boxes are
    passed through and come out with a non-positive width or height.
    """
    y_min, x_min, y_max, x_max = box
    x = (x_min / NORMALIZED_SCALE) * page_width
    width = ((x_max - x_min) / NORMALIZED_SCALE) * page_width
    y_bottom = page_height - (y_max / NORMALIZED_SCALE) * page_height
    height = ((y_max - y_min) / NORMALIZED_SCALE) * page_height
    return Rect(x, y_bottom, width, height)


def find_collision(rect: Rect, placed: Sequence[Rect]):
    for other in placed:
        if rect.overlaps(other):
            return other
    return None


def place_patch(candidate: Rect, placed: List[Rect],
                margin: float = COLLISION_MARGIN,
                max_attempts: int = MAX_COLLISION_ATTEMPTS) -> Placement:
    """
    Move ``candidate`` down the page until it clears every rectangle in ``placed``.

    On each collision the candidate drops by the height of the rectangle it hit
    plus ``margin`` and the scan restarts from the first placed rectangle.
    After ``max_attempts`` moves the current position is kept even if it still
    overlaps. The final rectangle is appended to ``placed``.
    """
    rect = candidate
    attempts = 0
    while True:
        hit = find_collision(rect, placed)
        if hit is None:
            resolved = True
            break
        if attempts >= max_attempts:
            resolved = False
            break
        rect = rect.shifted(-(hit.height + margin))
        attempts += 1

    placed.append(rect)
    return Placement(rect, attempts, resolved)
