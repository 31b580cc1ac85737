"""PDF rendering of composed documents with fpdf2.

Works from a Document's plain-text sections, so every composer gets a PDF
form without a second template. The built-in Helvetica font covers
Latin-1 only; characters outside it print as ``?`` unless a Unicode
TrueType font is supplied. Text is laid out left to right in either case.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from conduct.documents.referral import Document
from conduct.exceptions import DocumentRenderError

logger = logging.getLogger(__name__)

_CORE_FONT = "helvetica"
_TTF_FONT = "document"


class DocumentPDF(FPDF):
    """A4 page with the document title as header and page numbers as footer."""

    def __init__(self, title: str, *, font_path: str | Path | None = None) -> None:
        super().__init__(orientation="P", unit="mm", format="A4")
        self.doc_title = title
        self.doc_family = _CORE_FONT
        self.doc_unicode = font_path is not None
        if font_path is not None:
            # One file serves both weights; headings are set larger instead.
            self.add_font(_TTF_FONT, "", str(font_path))
            self.add_font(_TTF_FONT, "B", str(font_path))
            self.doc_family = _TTF_FONT

    def header(self) -> None:
        self.set_font(self.doc_family, "B", 15)
        self.cell(0, 10, self.clean(self.doc_title), align="C",
                  new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(5)

    def footer(self) -> None:
        self.set_y(-15)
        self.set_font(self.doc_family, "", 8)
        self.cell(0, 10, f"{self.page_no()}/{{nb}}", align="C")

    def section_heading(self, label: str) -> None:
        self.set_font(self.doc_family, "B", 12)
        self.set_fill_color(226, 232, 240)
        self.cell(0, 7, self.clean(label), fill=True,
                  new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(2)

    def section_body(self, text: str) -> None:
        self.set_font(self.doc_family, "", 11)
        self.multi_cell(0, 6, self.clean(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(1)

    def key_value_pair(self, key: str, value: str) -> None:
        self.set_font(self.doc_family, "B", 11)
        self.cell(50, 7, self.clean(f"{key}:"))
        self.set_font(self.doc_family, "", 11)
        self.multi_cell(0, 7, self.clean(value), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def clean(self, text: str) -> str:
        """Text the current font can encode."""
        if self.doc_unicode:
            return text
        return text.encode("latin-1", "replace").decode("latin-1")


def render_pdf(document: Document, *, font_path: str | Path | None = None) -> bytes:
    """Render ``document`` to PDF bytes.

    Args:
        document: A composed document; its ``sections`` are printed.
        font_path: Optional TrueType font for scripts outside Latin-1.

    Raises:
        DocumentRenderError: If the document carries no sections.
    """
    if not document.sections:
        raise DocumentRenderError(f"{document.title} has no printable sections")
    pdf = DocumentPDF(document.title, font_path=font_path)
    pdf.set_title(document.title)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    for section in document.sections:
        if section.heading:
            pdf.section_heading(section.heading)
        for key, value in section.fields:
            pdf.key_value_pair(key, value)
        if section.text:
            pdf.section_body(section.text)
        pdf.ln(3)
    logger.debug("Rendered %s to PDF (%d pages)", document.title, pdf.page_no())
    return bytes(pdf.output())
