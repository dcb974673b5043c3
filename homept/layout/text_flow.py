"""Greedy word wrap against a font metric."""
from typing import Callable, List

from reportlab.pdfbase.pdfmetrics import stringWidth

WidthFn = Callable[[str, float], float]


def reportlab_width_fn(font_name: str) -> WidthFn:
    def width(text: str, size: float) -> float:
        return stringWidth(text, font_name, size)
    return width


def wrap_text(text: str, max_width: float, width_fn: WidthFn, font_size: float) -> List[str]:
    """
    Break text into lines no wider than max_width.

    A single word wider than max_width gets a line of its own and overflows;
    words are never split.
    """
    lines: List[str] = []
    current = ""
    for word in (text or "").split():
        candidate = f"{current} {word}" if current else word
        if current and width_fn(candidate, font_size) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines
