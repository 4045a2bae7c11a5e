from __future__ import annotations

import os
import sys
from pathlib import Path

import fitz
import pytest

# Make `backend` importable when pytest is run without installing the project.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

A4_WIDTH = 595.0
A4_HEIGHT = 842.0

SYSTEM_FONT = next(
    (p for p in (
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/Library/Fonts/Arial.ttf",
        "C:\\Windows\\Fonts\\arial.ttf",
    ) if os.path.exists(p)),
    None,
)


def monospace_measure(text, font_size):
    """Every character is half an em wide."""
    return len(text) * font_size * 0.5


class RecordingCanvas:
    """In-memory stand-in for PdfCanvas that records draw calls."""

    def __init__(self, page_sizes):
        self.page_sizes = list(page_sizes)
        self.rectangles = []
        self.texts = []

    @property
    def page_count(self):
        return len(self.page_sizes)

    def page_size(self, page_index):
        return self.page_sizes[page_index]

    def draw_rectangle(self, page_index, x, y, width, height, **style):
        self.rectangles.append({"page": page_index, "x": x, "y": y,
                                "width": width, "height": height, **style})

    def draw_text(self, page_index, line, x, y, font_size, color=(0, 0, 0)):
        self.texts.append({"page": page_index, "line": line, "x": x, "y": y,
                           "size": font_size, "color": color})


def make_pdf(page_count=1, width=A4_WIDTH, height=A4_HEIGHT) -> bytes:
    doc = fitz.open()
    for _ in range(page_count):
        doc.new_page(width=width, height=height)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def measure():
    return monospace_measure


@pytest.fixture
def a4_canvas():
    return RecordingCanvas([(A4_WIDTH, A4_HEIGHT), (A4_WIDTH, A4_HEIGHT)])


@pytest.fixture
def pdf_bytes():
    return make_pdf(page_count=2)


@pytest.fixture
def no_font(monkeypatch):
    """Run without a TTF: built-in Helvetica for both metrics and drawing."""
    from backend import config
    monkeypatch.setattr(config, "FONT_PATH", "")
