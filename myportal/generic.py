"""
Generic fallback extraction (any page -> generic blocks).

Used when no specialized page shape matched. Walks a copy of the body
depth-first and emits headings, paragraphs, lists, key-value tables,
tables, links, notes and dividers in document order.

Rules:
- loose text accumulates in a buffer that becomes one paragraph whenever
  a block-level element starts or the walk ends
- an element without block-level children contributes its whole text to
  the buffer
- adjacent single-link blocks are merged into one links block
"""

from __future__ import annotations

import copy
import re
from typing import List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from myportal.model import (
    Block,
    ContentModel,
    DividerBlock,
    HeadingBlock,
    KeyValueBlock,
    KeyValueItem,
    LinkItem,
    LinksBlock,
    ListBlock,
    NoteBlock,
    ParagraphBlock,
    TableBlock,
)
from myportal.text import (
    element_text,
    extract_cell_content,
    normalize_text,
    row_cells,
    should_keep_cell,
    table_rows,
)


DEFAULT_TITLE = "ข้อมูล"
DEFAULT_LABEL = "ข้อมูล"
FORM_NOTE = "ฟอร์มนี้ยังไม่รองรับในเวอร์ชันใหม่ กรุณาเปิดหน้าต้นฉบับเพื่อดำเนินการ"

MAX_KEY_VALUE_CELLS = 3

BLOCK_LEVEL_TAGS = {"p", "table", "ul", "ol", "h1", "h2", "h3", "h4", "form"}
STRIPPED_TAGS = ["script", "style", "iframe", "noscript", "head"]

_HEADING_RE = re.compile(r"h([1-4])")
_HEADER_LETTER_RE = re.compile("[A-Za-z\u0E00-\u0E7F]")
_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def placeholder_header(index: int) -> str:
    return f"ข้อมูลที่ {index + 1}"


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def extract_key_value_table(table: Tag) -> Optional[List[KeyValueItem]]:
    """
    Read a narrow table (at most 3 cells per row) as label / value pairs.

    Returns None when any row is wider or no row has content.
    """
    rows = table_rows(table)
    if not rows:
        return None

    items: List[KeyValueItem] = []
    for row in rows:
        cells = row_cells(row)
        if not cells:
            continue
        if len(cells) > MAX_KEY_VALUE_CELLS:
            return None

        label = element_text(cells[0])
        value = normalize_text(" ".join(cell.get_text() for cell in cells[1:]))
        if not label and not value:
            continue
        items.append(KeyValueItem(label=label or DEFAULT_LABEL, value=value))

    return items or None


def extract_general_table(table: Tag) -> TableBlock:
    """
    Read any table as headers + rows, with every row as wide as the headers.
    """
    headers = [element_text(th) for th in table.select("thead th")]

    rows: List[List[str]] = []
    for row in table_rows(table):
        if row.parent is not None and row.parent.name == "thead":
            continue
        values: List[str] = []
        for cell in row_cells(row):
            content = extract_cell_content(cell)
            if should_keep_cell(cell, content):
                values.append(content)
        if any(values):
            rows.append(values)

    data_rows = rows
    if not headers and data_rows:
        candidate = data_rows[0]
        same_length = len(data_rows[1]) == len(candidate) if len(data_rows) > 1 else True
        has_letters = any(_HEADER_LETTER_RE.search(v) for v in candidate)
        if candidate and same_length and has_letters:
            headers = list(candidate)
            data_rows = data_rows[1:]

    column_count = max([len(headers)] + [len(r) for r in data_rows])
    headers = headers + [placeholder_header(i) for i in range(len(headers), column_count)]

    padded = [r + [""] * (column_count - len(r)) for r in data_rows]
    return TableBlock(headers=headers, rows=padded)


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


def sanitize_root(root: Tag) -> None:
    for element in root.find_all(STRIPPED_TAGS):
        element.decompose()
    for br in root.find_all("br"):
        br.replace_with(NavigableString("\n"))


def is_block_level(element: Tag) -> bool:
    return element.name in BLOCK_LEVEL_TAGS


def merge_adjacent_link_blocks(blocks: List[Block]) -> List[Block]:
    merged: List[Block] = []
    for block in blocks:
        previous = merged[-1] if merged else None
        if isinstance(block, LinksBlock) and isinstance(previous, LinksBlock):
            merged[-1] = LinksBlock(items=previous.items + block.items)
            continue
        merged.append(block)
    return merged


class _Walker:
    """
    Depth-first walk collecting blocks and a pending paragraph buffer.
    """

    def __init__(self) -> None:
        self.blocks: List[Block] = []
        self.buffer: List[str] = []

    def flush(self) -> None:
        text = normalize_text("".join(self.buffer))
        if text:
            self.blocks.append(ParagraphBlock(text=text))
        self.buffer = []

    def visit(self, node) -> None:
        if isinstance(node, NavigableString):
            if not isinstance(node, _SKIPPED_STRINGS):
                self.buffer.append(str(node) + " ")
            return
        if not isinstance(node, Tag):
            return

        tag = node.name

        if tag == "br":
            self.buffer.append("\n")
            return

        if tag == "hr":
            self.flush()
            self.blocks.append(DividerBlock())
            return

        heading = _HEADING_RE.fullmatch(tag)
        if heading:
            self.flush()
            text = element_text(node)
            if text:
                self.blocks.append(HeadingBlock(level=int(heading.group(1)), text=text))
            return

        if tag == "p":
            self.flush()
            text = element_text(node)
            if text:
                self.blocks.append(ParagraphBlock(text=text))
            return

        if tag in ("ul", "ol"):
            self.flush()
            items = [t for t in (element_text(li) for li in node.find_all("li")) if t]
            if items:
                self.blocks.append(ListBlock(ordered=tag == "ol", items=items))
            return

        if tag == "table":
            self.flush()
            kv_items = extract_key_value_table(node)
            if kv_items:
                self.blocks.append(KeyValueBlock(items=kv_items))
                return
            table = extract_general_table(node)
            if table.rows:
                self.blocks.append(table)
            return

        if tag == "a":
            href = node.get("href") or ""
            label = element_text(node)
            if href and label:
                self.flush()
                self.blocks.append(LinksBlock(items=[LinkItem(label=label, href=href)]))
                return

        if tag == "form":
            self.flush()
            legend = node.find("legend")
            note = normalize_text(node.get("title") or (legend.get_text() if legend is not None else ""))
            self.blocks.append(NoteBlock(tone="info", text=note or FORM_NOTE))
            return

        text = element_text(node)
        has_nested_blocks = any(isinstance(child, Tag) and is_block_level(child) for child in node.children)
        if not has_nested_blocks and text:
            self.buffer.append(text + " ")
            return

        for child in list(node.children):
            self.visit(child)


def _document_title(soup: BeautifulSoup) -> str:
    if soup.title is None:
        return ""
    return normalize_text(soup.title.get_text())


def map_generic_content(soup: BeautifulSoup) -> ContentModel:
    """
    Layout-agnostic extraction; never fails, may be noisy.

    The input document is not modified: the walk runs on a copy.
    """
    root = soup.body if soup.body is not None else soup
    working = copy.copy(root)
    sanitize_root(working)

    walker = _Walker()
    for child in list(working.children):
        walker.visit(child)
    walker.flush()

    title_candidate = element_text(working.select_one("h1, h2, .title, .header"))
    title = title_candidate or _document_title(soup) or DEFAULT_TITLE

    return ContentModel(title=title, blocks=merge_adjacent_link_blocks(walker.blocks))
