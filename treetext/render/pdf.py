"""PDF sink: paginated archive text with page-number footers."""

from __future__ import annotations

import logging
from typing import BinaryIO

from fpdf import FPDF

from .fonts import FontResource
from .stream import iter_text_chunks

logger = logging.getLogger(__name__)

DEFAULT_PDF_FONT_SIZE = 9
FOOTER_FONT_SIZE = 8
BOTTOM_MARGIN_INCHES = 0.5
LINE_HEIGHT_FACTOR = 1.4
POINTS_PER_INCH = 72.0


class ArchivePDF(FPDF):
    """US-letter portrait document measured in inches, with ``Page N`` footers."""

    def __init__(self, font: FontResource) -> None:
        super().__init__(orientation="P", unit="in", format="letter")
        self.archive_font = font
        self.add_font(font.family, "", str(font.path))
        self.set_auto_page_break(True, margin=BOTTOM_MARGIN_INCHES)

    def footer(self) -> None:
        self.set_y(-BOTTOM_MARGIN_INCHES)
        self.set_font(self.archive_font.family, size=FOOTER_FONT_SIZE)
        self.cell(0, 0.2, f"Page {self.page_no()}", align="C")


class PdfSink:
    """Stream archive text into a PDF as it arrives."""

    def __init__(self, font: FontResource, *, font_size: float = DEFAULT_PDF_FONT_SIZE) -> None:
        self.font = font
        self.font_size = font_size

    def __call__(self, reader: BinaryIO, out: BinaryIO) -> None:
        pdf = ArchivePDF(self.font)
        pdf.add_page()
        pdf.set_font(self.font.family, size=self.font_size)
        line_height = self.font_size / POINTS_PER_INCH * LINE_HEIGHT_FACTOR
        for text in iter_text_chunks(reader):
            pdf.write(line_height, text)
        logger.debug("rendered %d PDF pages", pdf.page_no())
        out.write(bytes(pdf.output()))


__all__ = ["ArchivePDF", "DEFAULT_PDF_FONT_SIZE", "PdfSink"]
