"""Presentation surfaces for composed documents.

The composers return a Document and stop there. A DocumentSurface is the
collaborator that shows it: opening it for viewing, sending it to print, or
exporting it to a file.
"""

from __future__ import annotations

import logging
import webbrowser
from pathlib import Path
from typing import Literal, Protocol, runtime_checkable

from conduct.documents.pdf import render_pdf
from conduct.documents.referral import Document

logger = logging.getLogger(__name__)

ExportFormat = Literal["html", "pdf"]


@runtime_checkable
class DocumentSurface(Protocol):
    """Protocol for anything that can present a Document."""

    def open(self, document: Document) -> None:
        ...

    def print(self, document: Document) -> None:
        ...

    def export(self, document: Document) -> Path:
        ...


class FileSurface:
    """Write documents as HTML or PDF files and hand them to the system browser.

    Printing is done from the browser; :meth:`print` opens the file the
    same way, since both the page and the PDF print as laid out.
    """

    def __init__(
        self,
        directory: str | Path = ".",
        *,
        browser: bool = True,
        output_format: ExportFormat = "html",
        font_path: str | Path | None = None,
    ) -> None:
        if output_format not in ("html", "pdf"):
            raise ValueError(f"Unsupported export format: {output_format}")
        self._directory = Path(directory)
        self._browser = browser
        self._format = output_format
        self._font_path = font_path

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def output_format(self) -> ExportFormat:
        return self._format

    def path_for(self, document: Document) -> Path:
        """Where :meth:`export` writes ``document``."""
        return (self._directory / document.filename).with_suffix(f".{self._format}")

    def export(self, document: Document) -> Path:
        """Write ``document`` to the output directory and return its path.

        Raises:
            DocumentRenderError: If a PDF is requested for a document
                without printable sections.
        """
        path = self.path_for(document)
        if self._format == "pdf":
            content = render_pdf(document, font_path=self._font_path)
            self._directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        else:
            self._directory.mkdir(parents=True, exist_ok=True)
            path.write_text(document.html, encoding="utf-8")
        logger.info("Exported %s to %s", document.title, path)
        return path

    def open(self, document: Document) -> None:
        path = self.export(document)
        if self._browser:
            webbrowser.open(path.resolve().as_uri())

    def print(self, document: Document) -> None:
        self.open(document)
