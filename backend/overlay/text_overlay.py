import logging

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

BUILTIN_FONT = "helv"
EMBEDDED_FONT = "bubblefont"


class PdfCanvas:
    """
    Drawing surface over a PyMuPDF document.

    Callers work in PDF user space with the origin at the bottom-left corner
    and y growing upwards; PyMuPDF's top-left, y-down space is only used here.
    """

    def __init__(self, doc, font_path=None):
        self.doc = doc
        self.font_path = font_path or None
        self.font_name = EMBEDDED_FONT if self.font_path else BUILTIN_FONT
        self._font_pages = set()

    @classmethod
    def from_bytes(cls, pdf_bytes: bytes, font_path=None) -> "PdfCanvas":
        if not pdf_bytes:
            raise ValueError("Empty PDF upload")
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except RuntimeError as e:
            raise ValueError(f"Could not open PDF: {e}") from e
        if not doc.is_pdf or doc.page_count == 0:
            doc.close()
            raise ValueError("Upload is not a PDF with at least one page")
        return cls(doc, font_path)

    @property
    def page_count(self) -> int:
        return self.doc.page_count

    def page_size(self, page_index: int):
        rect = self.doc[page_index].rect
        return rect.width, rect.height

    def _to_fitz_rect(self, page, x, y, width, height):
        page_height = page.rect.height
        return fitz.Rect(x, page_height - (y + height), x + width, page_height - y)

    def _ensure_font(self, page):
        if not self.font_path or page.number in self._font_pages:
            return
        page.insert_font(fontname=EMBEDDED_FONT, fontfile=self.font_path)
        self._font_pages.add(page.number)
        logger.debug("Embedded %s on page %d", self.font_path, page.number + 1)

    def draw_rectangle(self, page_index, x, y, width, height,
                       fill_color=(1, 1, 1), border_color=(0, 0, 0),
                       border_width=1.5, opacity=0.95):
        page = self.doc[page_index]
        rect = self._to_fitz_rect(page, x, y, width, height)
        stroke = border_color if border_width > 0 else None
        page.draw_rect(
            rect,
            color=stroke,
            fill=fill_color,
            width=border_width,
            fill_opacity=opacity,
            stroke_opacity=opacity,
            overlay=True,
        )

    def draw_text(self, page_index, line, x, y, font_size, color=(0, 0, 0)):
        page = self.doc[page_index]
        self._ensure_font(page)
        # y is the baseline in bottom-up space
        point = fitz.Point(x, page.rect.height - y)
        page.insert_text(point, line, fontsize=font_size, fontname=self.font_name, color=color)

    def to_bytes(self) -> bytes:
        return self.doc.tobytes(garbage=3, deflate=True)

    def close(self):
        self.doc.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
