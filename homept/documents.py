"""
Render a validated report to both formats and write the pair to disk.
"""
import logging
import os
from dataclasses import dataclass
from typing import Tuple

from homept.errors import RenderError, ReportError
from homept.schema import Report
from homept.services.docx_service import render_docx
from homept.services.pdf_service import render_pdf
from homept.services.storage_service import ensure_directory, write_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SavedDocuments:
    pdf_path: str
    docx_path: str

    @property
    def pdf_filename(self) -> str:
        return os.path.basename(self.pdf_path)

    @property
    def docx_filename(self) -> str:
        return os.path.basename(self.docx_path)


def render_documents(report: Report) -> Tuple[bytes, bytes]:
    try:
        return render_pdf(report), render_docx(report)
    except Exception as e:
        raise RenderError(f"Document rendering failed: {type(e).__name__}: {e}") from e


def save_documents(report: Report, output_dir: str, stem: str) -> SavedDocuments:
    pdf_bytes, docx_bytes = render_documents(report)
    try:
        ensure_directory(output_dir)
        pdf_path = write_file(os.path.join(output_dir, f"{stem}.pdf"), pdf_bytes)
        docx_path = write_file(os.path.join(output_dir, f"{stem}.docx"), docx_bytes)
    except OSError as e:
        raise ReportError(f"Could not write documents: {e}", stage="persist") from e

    logger.info("PDF saved: %s", pdf_path)
    logger.info("DOCX saved: %s", docx_path)
    return SavedDocuments(pdf_path=pdf_path, docx_path=docx_path)
