"""DOCX rendering.

Same section order as the PDF, taken from the document plan. Word reflows
the text itself, so nothing here paginates.
"""
from __future__ import annotations

import io
import zipfile

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt

from homept.document_plan import (
    SUBSECTION,
    BulletList,
    Gap,
    Heading,
    Lines,
    Paragraph,
    SignatureBlock,
    Title,
    build_document_plan,
)
from homept.schema import Report

# Extra space after these signature lines: greeting, date
_SIGNATURE_SPACED = {0, 5}

# zip entries otherwise carry the save time
FIXED_ZIP_TIME = (1980, 1, 1, 0, 0, 0)


def _pin_zip_timestamps(data: bytes) -> bytes:
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(data)) as src, zipfile.ZipFile(out, "w") as dst:
        for info in src.infolist():
            pinned = zipfile.ZipInfo(info.filename, date_time=FIXED_ZIP_TIME)
            pinned.compress_type = info.compress_type
            pinned.external_attr = info.external_attr
            dst.writestr(pinned, src.read(info.filename))
    return out.getvalue()


def render_docx(report: Report) -> bytes:
    doc = DocxDocument()
    doc.core_properties.title = f"Medical Report - {report.patient_information.name}"
    doc.core_properties.author = report.signature.doctor_name

    for command in build_document_plan(report):
        if isinstance(command, Title):
            p = doc.add_heading(command.text, level=0)
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER
            p.paragraph_format.space_after = Pt(20)
        elif isinstance(command, Heading):
            level = 3 if command.level == SUBSECTION else 2
            p = doc.add_heading(command.text, level=level)
            p.paragraph_format.space_after = Pt(5 if level == 3 else 10)
        elif isinstance(command, Paragraph):
            doc.add_paragraph(command.text)
        elif isinstance(command, Lines):
            for item in command.items:
                p = doc.add_paragraph(item)
                p.paragraph_format.space_after = Pt(5)
        elif isinstance(command, BulletList):
            for item in command.items:
                doc.add_paragraph(item, style="List Bullet")
        elif isinstance(command, Gap):
            p = doc.add_paragraph()
            p.paragraph_format.space_after = Pt(command.size)
        elif isinstance(command, SignatureBlock):
            for i, line in enumerate(command.lines):
                p = doc.add_paragraph(line)
                p.paragraph_format.space_after = Pt(10 if i in _SIGNATURE_SPACED else 5)
        else:
            raise TypeError(f"Unknown document command: {type(command).__name__}")

    buf = io.BytesIO()
    doc.save(buf)
    return _pin_zip_timestamps(buf.getvalue())
