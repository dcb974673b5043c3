from homept.layout.page_flow import (
    BODY_STYLE,
    HEADING_STYLE,
    SUBHEADING_STYLE,
    TITLE_STYLE,
    LineStyle,
    PageCursor,
    PageGeometry,
    Placement,
    advance,
    ensure_space,
    new_page,
    place,
    write_line,
    write_paragraph,
)
from homept.layout.text_flow import reportlab_width_fn, wrap_text
