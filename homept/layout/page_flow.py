"""
Page flow

Tracks where the next line goes on a fixed-size page. Every function takes a
cursor and returns a new one; callers thread the cursor through the
document and collect the resulting placements.

Two kinds of page break exist:
- ensure_space() looks ahead before a unit (a header plus its first lines,
  the signature block) and starts a new page if the unit would not fit.
- write_line() breaks mid-paragraph when the cursor has already dropped
  below the bottom padding.
"""
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from homept.layout.text_flow import WidthFn, wrap_text


@dataclass(frozen=True)
class PageGeometry:
    # A4 in points; the top padding leaves room for the hospital letterhead
    width: float = 595
    height: float = 842
    top_padding: float = 230
    bottom_padding: float = 100
    margin: float = 50

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def top(self) -> float:
        return self.height - self.top_padding

    @property
    def capacity(self) -> float:
        return self.top - self.bottom_padding


@dataclass(frozen=True)
class LineStyle:
    font_name: str
    font_size: float
    line_height: float


TITLE_STYLE = LineStyle("Helvetica-Bold", 20, 40)
HEADING_STYLE = LineStyle("Helvetica-Bold", 14, 24)
SUBHEADING_STYLE = LineStyle("Helvetica-Bold", 12, 18)
BODY_STYLE = LineStyle("Helvetica", 12, 18)

# header + its spacing + two body lines
MAJOR_SECTION_MIN_SPACE = 74
SUBSECTION_MIN_SPACE = 66
SIGNATURE_MIN_SPACE = 150


@dataclass(frozen=True)
class Placement:
    page: int
    x: float
    y: float
    text: str
    style: LineStyle


@dataclass(frozen=True)
class PageCursor:
    page: int
    offset: float
    geometry: PageGeometry

    @classmethod
    def start(cls, geometry: Optional[PageGeometry] = None) -> "PageCursor":
        geometry = geometry or PageGeometry()
        return cls(page=0, offset=geometry.top, geometry=geometry)


def new_page(cursor: PageCursor) -> PageCursor:
    return replace(cursor, page=cursor.page + 1, offset=cursor.geometry.top)


def ensure_space(cursor: PageCursor, min_required: float) -> PageCursor:
    if cursor.offset - min_required < cursor.geometry.bottom_padding:
        return new_page(cursor)
    return cursor


def advance(cursor: PageCursor, dy: float) -> PageCursor:
    return replace(cursor, offset=cursor.offset - dy)


def place(cursor: PageCursor, text: str, style: LineStyle, x: Optional[float] = None) -> Placement:
    """Position text at the cursor without moving it or checking for overflow."""
    return Placement(
        page=cursor.page,
        x=cursor.geometry.margin if x is None else x,
        y=cursor.offset,
        text=text,
        style=style,
    )


def write_line(cursor: PageCursor, line: str, style: LineStyle) -> Tuple[PageCursor, Placement]:
    if cursor.offset < cursor.geometry.bottom_padding:
        cursor = new_page(cursor)
    placement = place(cursor, line, style)
    return advance(cursor, style.line_height), placement


def write_paragraph(
    cursor: PageCursor,
    text: str,
    style: LineStyle,
    width_fn: WidthFn,
) -> Tuple[PageCursor, List[Placement]]:
    placements = []
    for line in wrap_text(text, cursor.geometry.content_width, width_fn, style.font_size):
        cursor, placement = write_line(cursor, line, style)
        placements.append(placement)
    return cursor, placements
