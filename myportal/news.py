"""
News listing pages (newsX.php).

The listing is a table whose rows each start with a link into
group_news; the same page also wraps that table in layout tables, so the
table with the most such rows wins.
"""

from __future__ import annotations

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from myportal.model import ContentModel, NewsItem, NewsListBlock
from myportal.text import all_tables, element_text, normalize_text, row_cells, table_rows


NEWS_LINK_MARKER = "group_news"
NEWS_LINK_SELECTOR = f"a[href*='{NEWS_LINK_MARKER}']"
MIN_NEWS_ROWS = 4
DEFAULT_TITLE = "ข่าวประชาสัมพันธ์"

# [ 21 Oct. 62 - 10:06 ]
_DATE_TIME_RE = re.compile(r"\[\s*(\d{1,2}\s+[^\d\s]+\s+\d{2,4})\s*-\s*(\d{1,2}:\d{2}\s*[^\]]*)\s*\]")
_DATE_RE = re.compile(r"\d{1,2}\s+[^\d\s]+\s+\d{2,4}")


def _news_link(row: Tag) -> Optional[Tag]:
    cells = row_cells(row)
    if not cells:
        return None
    return cells[0].select_one(NEWS_LINK_SELECTOR)


def find_news_list_table(soup: BeautifulSoup) -> Optional[Tag]:
    """
    Table with the most rows whose first cell links into group_news.

    Needs at least MIN_NEWS_ROWS such rows; ties go to the first table.
    """
    best: Optional[Tag] = None
    best_count = 0
    for table in all_tables(soup):
        count = sum(1 for row in table_rows(table) if _news_link(row) is not None)
        if count > best_count:
            best, best_count = table, count

    if best_count < MIN_NEWS_ROWS:
        return None
    return best


def parse_news_date(text: str) -> Optional[str]:
    """
    "[ 21 Oct. 62 - 10:06 ]" -> "21 Oct. 62 10:06"; bare dates are returned as-is.
    """
    m = _DATE_TIME_RE.search(text)
    if m:
        return f"{m.group(1).strip()} {m.group(2).strip()}"
    m = _DATE_RE.search(text)
    return m.group(0).strip() if m else None


def _news_title(soup: BeautifulSoup) -> str:
    image = soup.select_one("img[src*='group']")
    if image is not None:
        title = normalize_text(image.get("alt") or "")
    else:
        title = element_text(soup.select_one("h1, h2"))
    return title or DEFAULT_TITLE


def extract_news_items(table: Tag) -> List[NewsItem]:
    items: List[NewsItem] = []
    for index, row in enumerate(table_rows(table)):
        link = _news_link(row)
        if link is None:
            continue

        href = link.get("href") or ""
        if not href or href.startswith("javascript:"):
            continue

        title = element_text(link.find(["span", "strong"]) or link)
        if not title:
            continue

        cell_text = row_cells(row)[0].get_text()
        items.append(NewsItem(id=f"news-{index}", title=title, href=href, date=parse_news_date(cell_text)))
    return items


def extract_news_list_content(soup: BeautifulSoup, source_url: Optional[str] = None) -> Optional[ContentModel]:
    table = find_news_list_table(soup)
    if table is None:
        return None

    items = extract_news_items(table)
    if not items:
        return None

    return ContentModel(type="newsList", title=_news_title(soup), blocks=[NewsListBlock(items=items)])
