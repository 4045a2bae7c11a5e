import logging
import os
from functools import lru_cache

import fitz  # PyMuPDF
from PIL import ImageFont

from backend.overlay.text_overlay import BUILTIN_FONT

logger = logging.getLogger(__name__)


class FontNotFoundError(FileNotFoundError):
    pass


class FontMetrics:
    """
    Measures rendered string widths with the font that ends up in the PDF:
    the configured TTF through Pillow, or PyMuPDF's built-in Helvetica when
    no font file is set.

    Instances are callable as ``metrics(text, font_size)`` so they can be
    handed to the wrapper and auto-fitter directly.
    """

    def __init__(self, font_path=None):
        if font_path and not os.path.exists(font_path):
            raise FontNotFoundError(f"Font file not found: {font_path}")
        self.font_path = font_path or None
        self._load = lru_cache(maxsize=64)(self._load_font)
        if self.font_path is None:
            logger.warning("No font file configured, falling back to built-in Helvetica")

    def _load_font(self, font_size: float):
        # PyMuPDF does not shape text, so neither may the measurement
        return ImageFont.truetype(self.font_path, font_size, layout_engine=ImageFont.Layout.BASIC)

    def measure(self, text: str, font_size: float) -> float:
        if not text:
            return 0.0
        if self.font_path is None:
            return float(fitz.get_text_length(text, fontname=BUILTIN_FONT, fontsize=font_size))
        return float(self._load(font_size).getlength(text))

    __call__ = measure
