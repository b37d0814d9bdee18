"""
Text and DOM normalization helpers shared by every extractor.

The portal's markup is table soup: layout tables nested in layout tables,
1px spacer cells between data cells, icons instead of text. The helpers
here give the extractors a DOM-like view of it:

- normalize_text: whitespace collapsing (NBSP included)
- table_rows / row_cells: the rows and cells a table owns itself
- extract_cell_content / should_keep_cell: what a cell shows and whether
  it is a real column or a decorative spacer
"""

from __future__ import annotations

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag


_WS_RE = re.compile(r"\s+")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")
_POSITIVE_INT_RE = re.compile(r"[0-9]+")

INTERACTIVE_TAGS = ["img", "input", "select", "button", "textarea", "a"]


def normalize_text(value: Optional[str]) -> str:
    """
    Collapse every whitespace run (tabs, newlines, NBSP) to one space and trim.
    """
    if not value:
        return ""
    return _WS_RE.sub(" ", value).strip()


def element_text(element: Optional[Tag]) -> str:
    """
    Normalized text content of an element ("" for None).
    """
    if element is None:
        return ""
    return normalize_text(element.get_text())


def parse_int(value: Optional[str]) -> Optional[int]:
    """
    Read the leading integer of an attribute value ("1px" -> 1), like parseInt.
    """
    if value is None:
        return None
    m = _LEADING_INT_RE.match(str(value))
    return int(m.group(1)) if m else None


def int_attr(element: Tag, name: str, default: int) -> int:
    parsed = parse_int(element.get(name))
    return default if parsed is None else parsed


def is_positive_int(text: str) -> bool:
    """
    True for bare positive integer strings ("1", "12"), never for "0", "1." or "".
    """
    return bool(_POSITIVE_INT_RE.fullmatch(text)) and int(text) > 0


# ---------------------------------------------------------------------------
# Table helpers
# ---------------------------------------------------------------------------


def all_tables(soup: BeautifulSoup | Tag) -> List[Tag]:
    return soup.find_all("table")


def table_rows(table: Tag) -> List[Tag]:
    """
    Rows owned by this table (thead/tbody/tfoot included, nested tables excluded).
    """
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def row_cells(row: Tag) -> List[Tag]:
    return row.find_all(["td", "th"], recursive=False)


def owning_table(element: Tag) -> Optional[Tag]:
    return element.find_parent("table")


def innermost(tables: List[Tag]) -> List[Tag]:
    """
    Drop every table that wraps another table of the same list.

    Legacy pages nest the real table inside layout tables; a text search
    matches the wrappers too.
    """
    chosen = set(id(t) for t in tables)
    out: List[Tag] = []
    for table in tables:
        wraps_candidate = any(id(inner) in chosen for inner in table.find_all("table"))
        if not wraps_candidate:
            out.append(table)
    return out


# ---------------------------------------------------------------------------
# Cell content
# ---------------------------------------------------------------------------


def _last_path_segment(src: str) -> str:
    return src.rstrip("/").split("/")[-1] if src else ""


def extract_cell_content(cell: Tag) -> str:
    """
    What a cell shows, in priority order:
    own text, image alt/title (or its file name), link text or href, "".
    """
    inline_text = element_text(cell)
    if inline_text:
        return inline_text

    image = cell.find("img")
    if image is not None:
        alt = image.get("alt") or image.get("title") or ""
        if not alt.strip():
            alt = _last_path_segment(image.get("src") or "")
        return normalize_text(alt)

    link = cell.find("a")
    if link is not None:
        link_text = element_text(link)
        if link_text:
            return link_text
        return link.get("href") or ""

    return ""


def has_element_children(element: Tag) -> bool:
    return any(isinstance(child, Tag) for child in element.children)


def should_keep_cell(cell: Tag, content: str) -> bool:
    """
    Decide whether a cell is a logical column or a layout spacer.

    Spacers are the 1-2px wide, childless <td>s the portal uses for borders.
    """
    if int_attr(cell, "colspan", 1) > 1 or int_attr(cell, "rowspan", 1) > 1:
        return True
    if content:
        return True

    width = parse_int(cell.get("width"))
    if width is not None and width <= 2:
        return False

    if not has_element_children(cell):
        return False

    if cell.find("table") is not None:
        return True

    return cell.find(INTERACTIVE_TAGS) is not None


def kept_cell_texts(row: Tag) -> List[str]:
    """
    Cell contents of a row with spacer cells removed.
    """
    values: List[str] = []
    for cell in row_cells(row):
        content = extract_cell_content(cell)
        if should_keep_cell(cell, content):
            values.append(content)
    return values
