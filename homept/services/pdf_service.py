"""PDF rendering.

Lays the document plan out on fixed A4 pages, then draws the placed lines
with the reportlab canvas. Layout is pure and can be inspected without
producing a PDF.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.pdfgen import canvas

from homept.document_plan import (
    SUBSECTION,
    BulletList,
    Command,
    Gap,
    Heading,
    Lines,
    Paragraph,
    SignatureBlock,
    Title,
    build_document_plan,
)
from homept.layout.page_flow import (
    BODY_STYLE,
    HEADING_STYLE,
    MAJOR_SECTION_MIN_SPACE,
    SIGNATURE_MIN_SPACE,
    SUBHEADING_STYLE,
    SUBSECTION_MIN_SPACE,
    TITLE_STYLE,
    PageCursor,
    PageGeometry,
    Placement,
    advance,
    ensure_space,
    place,
    write_paragraph,
)
from homept.layout.text_flow import WidthFn, reportlab_width_fn
from homept.schema import Report

BULLET = "•"

# Space below each signature line: greeting, doctor, title, license, facility, date
SIGNATURE_ADVANCES = (24, 18, 18, 18, 18, 24)


@dataclass(frozen=True)
class LaidOutDocument:
    placements: List[Placement]
    page_count: int
    geometry: PageGeometry


def layout_document(
    plan: Sequence[Command],
    geometry: Optional[PageGeometry] = None,
    width_for: Callable[[str], WidthFn] = reportlab_width_fn,
) -> LaidOutDocument:
    cursor = PageCursor.start(geometry)
    g = cursor.geometry
    body_width = width_for(BODY_STYLE.font_name)
    placements: List[Placement] = []

    def paragraph(text: str) -> None:
        nonlocal cursor
        cursor, placed = write_paragraph(cursor, text, BODY_STYLE, body_width)
        placements.extend(placed)

    for command in plan:
        if isinstance(command, Title):
            style = TITLE_STYLE
            text_width = width_for(style.font_name)(command.text, style.font_size)
            placements.append(place(cursor, command.text, style, x=(g.width - text_width) / 2))
            cursor = advance(cursor, style.line_height)
        elif isinstance(command, Heading):
            if command.level == SUBSECTION:
                style, min_space = SUBHEADING_STYLE, SUBSECTION_MIN_SPACE
            else:
                style, min_space = HEADING_STYLE, MAJOR_SECTION_MIN_SPACE
            cursor = ensure_space(cursor, min_space)
            placements.append(place(cursor, command.text, style))
            cursor = advance(cursor, style.line_height)
        elif isinstance(command, Paragraph):
            paragraph(command.text)
        elif isinstance(command, Lines):
            for item in command.items:
                paragraph(item)
        elif isinstance(command, BulletList):
            for item in command.items:
                paragraph(f"{BULLET} {item}")
        elif isinstance(command, Gap):
            cursor = advance(cursor, command.size)
        elif isinstance(command, SignatureBlock):
            # the whole block moves to a new page rather than splitting
            cursor = ensure_space(cursor, SIGNATURE_MIN_SPACE)
            for i, line in enumerate(command.lines):
                placements.append(place(cursor, line, BODY_STYLE))
                if i < len(SIGNATURE_ADVANCES):
                    cursor = advance(cursor, SIGNATURE_ADVANCES[i])
        else:
            raise TypeError(f"Unknown document command: {type(command).__name__}")

    return LaidOutDocument(placements=placements, page_count=cursor.page + 1, geometry=g)


def draw_pdf(document: LaidOutDocument, title: str = "") -> bytes:
    g = document.geometry
    buf = io.BytesIO()
    # invariant=1 drops creation dates and random ids so output is reproducible
    c = canvas.Canvas(buf, pagesize=(g.width, g.height), invariant=1)
    if title:
        c.setTitle(title)

    page = 0
    for placement in document.placements:
        while page < placement.page:
            c.showPage()
            page += 1
        c.setFillColor(colors.black)
        c.setFont(placement.style.font_name, placement.style.font_size)
        c.drawString(placement.x, placement.y, placement.text)
    while page < document.page_count - 1:
        c.showPage()
        page += 1

    c.showPage()
    c.save()
    return buf.getvalue()


def render_pdf(report: Report, geometry: Optional[PageGeometry] = None) -> bytes:
    document = layout_document(build_document_plan(report), geometry)
    return draw_pdf(document, title=f"Medical Report - {report.patient_information.name}")
