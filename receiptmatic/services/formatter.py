# receiptmatic/services/formatter.py
from __future__ import annotations

import enum
import re
from typing import Iterable, Sequence

HEADER = "收据"
SEPARATOR = "-" * 24
FOOTER = "谢谢惠顾"
MARKER = "* * * * *"

# only \n, \r\n and \r end a line; form feeds and U+2028 stay inside it
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class LineKind(str, enum.Enum):
    title = "title"
    date = "date"
    separator = "separator"
    thanks = "thanks"
    marker = "marker"
    body = "body"


def format_lines(raw_text: str, wrap_width: int) -> list[str]:
    """Split text into printable lines, dropping blank ones and hard-wrapping
    anything longer than ``wrap_width`` columns.

    A non-positive ``wrap_width`` leaves long lines untouched.
    """
    out: list[str] = []
    for line in _LINE_BREAK.split(raw_text or ""):
        if not line.strip():
            continue
        if wrap_width <= 0 or len(line) <= wrap_width:
            out.append(line)
            continue
        out.extend(line[i:i + wrap_width] for i in range(0, len(line), wrap_width))
    return out


def build_template(body: Sequence[str], enrichment: Iterable[str], timestamp: str) -> list[str]:
    """Assemble the full receipt: header, timestamp, body block, optional
    enrichment block, footer and closing marker."""
    extra = list(enrichment or [])
    lines = [HEADER, timestamp, SEPARATOR, *body, SEPARATOR]
    if extra:
        lines += [*extra, SEPARATOR]
    lines += [FOOTER, MARKER]
    return lines


def classify_line(index: int, text: str, total: int) -> LineKind:
    # display policy only; body text containing "*" is not a marker
    if index == 0:
        return LineKind.title
    if index == 1:
        return LineKind.date
    if "----" in text:
        return LineKind.separator
    if FOOTER in text:
        return LineKind.thanks
    if "*" in text and index == total - 1:
        return LineKind.marker
    return LineKind.body


__all__ = [
    "HEADER",
    "SEPARATOR",
    "FOOTER",
    "MARKER",
    "LineKind",
    "format_lines",
    "build_template",
    "classify_line",
]
