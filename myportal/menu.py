"""
Portal home page menu (index.php -> PortalDataset).

The legacy home page groups its links in "slide menus": one layout table
per group, headed by an image named header1.gif ... header8.gif, with the
links inside td.slideMenu cells. Links meant for the page's content frame
open through onclick="getiContent('...')" instead of href.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag
from loguru import logger

from myportal.model import PortalDataset, PortalMenuItem, PortalMeta, PortalSection
from myportal.text import normalize_text


DEFAULT_PORTAL_TITLE = "KMITL Portal"

_HEADER_RE = re.compile(r"header(\d+)", re.IGNORECASE)
_ICONTENT_RE = re.compile(r"""getiContent\(['"]([^'"]+)""", re.IGNORECASE)
_SERVER_DATE_RE = re.compile(r"""server_date\(['"]([^'"]+)['"]\)""")
_SLUG_RE = re.compile(r"[^a-z0-9]+", re.IGNORECASE)


@dataclass(frozen=True)
class SectionMeta:
    key: str
    id: str
    title: str
    description: str
    icon: str
    accent: str
    order: int


SECTION_LOOKUP = (
    SectionMeta("header1", "general", "ข้อมูลและบริการทั่วไป", "บริการพื้นฐานและลิงก์ภายนอกที่ใช้งานบ่อย", "ph:compass-duotone", "#fb923c", 1),
    SectionMeta("header2", "student", "ข้อมูลนักศึกษา", "โปรไฟล์และข้อมูลพื้นฐานของนักศึกษา", "ph:identification-card-duotone", "#f97316", 2),
    SectionMeta("header3", "registration", "การลงทะเบียน", "วางแผนตารางเรียนและการลงทะเบียน", "ph:calendar-check-duotone", "#f59e0b", 3),
    SectionMeta("header4", "grades", "ผลการเรียน", "ติดตามคะแนน สรุปผล และทรานสคริปต์", "ph:chart-line-up-duotone", "#f97316", 4),
    SectionMeta("header5", "scholarship", "ทุนและสวัสดิการ", "ประกาศทุนและข้อมูลการสนับสนุนนักศึกษา", "ph:hand-coins-duotone", "#fb923c", 5),
    SectionMeta("header6", "systems", "ระบบสนับสนุน", "เครื่องมือและระบบเสริมการเรียน", "ph:toolbox-duotone", "#fbbf24", 6),
    SectionMeta("header7", "news", "ข่าวและประกาศ", "ข่าวสาร กิจกรรม และเว็บบอร์ด", "ph:megaphone-duotone", "#fb923c", 7),
    SectionMeta("header8", "messages", "กล่องข้อความ", "ส่งข้อความ รายงานปัญหา และติดตามแจ้งเตือน", "ph:chat-circle-text-duotone", "#fb923c", 8),
)

HEADER_META: Dict[str, SectionMeta] = {meta.key: meta for meta in SECTION_LOOKUP}


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


def slugify_url(url: str) -> str:
    return _SLUG_RE.sub("-", url).lower()


def extract_url_from_onclick(onclick: str) -> str:
    m = _ICONTENT_RE.search(onclick)
    return m.group(1) if m else ""


class PortalScraping:
    """
    Reads the menu sections and page meta of the portal home page.
    """

    def __init__(self, soup: BeautifulSoup, page_url: str) -> None:
        self.soup = soup
        self.page_url = page_url
        self.page_origin = _origin(page_url)

    def get_portal_dataset(self) -> PortalDataset:
        return PortalDataset(sections=self.extract_sections(), meta=self.extract_meta())

    # -- sections ----------------------------------------------------------

    def extract_sections(self) -> List[PortalSection]:
        grouped: Dict[str, List[PortalMenuItem]] = {}
        taken = set()

        for index, anchor in enumerate(self.soup.select("td.slideMenu a")):
            header_key = self.resolve_header_key(anchor)
            meta = HEADER_META.get(header_key) if header_key else None
            if meta is None:
                continue

            item = self.build_menu_item(anchor, meta.id, index)
            if item is None:
                continue

            dedupe_key = (meta.id, item.absolute_url)
            if dedupe_key in taken:
                continue
            taken.add(dedupe_key)
            grouped.setdefault(meta.id, []).append(item)

        sections = [
            PortalSection(
                key=meta.key,
                id=meta.id,
                title=meta.title,
                description=meta.description,
                icon=meta.icon,
                accent=meta.accent,
                order=meta.order,
                items=sorted(grouped[meta.id], key=lambda item: item.label),
            )
            for meta in SECTION_LOOKUP
            if meta.id in grouped
        ]
        sections.sort(key=lambda section: section.order)
        logger.debug("Portal menu: {} sections", len(sections))
        return sections

    def resolve_header_key(self, anchor: Tag) -> Optional[str]:
        table = anchor.find_parent("table")
        if table is None:
            return None
        image = table.select_one("img[src*='header']")
        if image is None:
            return None
        m = _HEADER_RE.search(image.get("src") or "")
        return f"header{m.group(1)}" if m else None

    def build_menu_item(self, anchor: Tag, section_id: str, index: int) -> Optional[PortalMenuItem]:
        label = normalize_text(anchor.get_text())
        if not label:
            return None

        onclick = anchor.get("onclick") or ""
        extracted = extract_url_from_onclick(onclick)
        candidate = extracted or anchor.get("href") or ""
        if not candidate or candidate.startswith("javascript"):
            return None

        absolute_url = self.to_absolute_url(candidate)
        if not absolute_url:
            return None

        same_origin = _origin(absolute_url) == self.page_origin
        supports_embed = same_origin and bool(extracted)

        return PortalMenuItem(
            id=f"{section_id}-{index}-{slugify_url(absolute_url)}",
            label=label,
            url=candidate,
            absolute_url=absolute_url,
            type="internal" if same_origin else "external",
            supports_embed=supports_embed,
            open_in_new_tab=anchor.get("target") == "_blank" or not supports_embed,
            raw_onclick=onclick or None,
        )

    # -- meta --------------------------------------------------------------

    def extract_meta(self) -> PortalMeta:
        title = normalize_text(self.soup.title.get_text()) if self.soup.title is not None else ""
        logo = self.soup.select_one("img[src*='KMITL_Sublogo'], img[src*='LogoX']")
        return PortalMeta(
            title=title or DEFAULT_PORTAL_TITLE,
            logo_url=self.to_absolute_url(logo.get("src")) if logo is not None else None,
            initial_server_time=self.extract_server_seed(),
            home_url=self.page_url,
        )

    def extract_server_seed(self) -> Optional[str]:
        for script in self.soup.find_all("script"):
            m = _SERVER_DATE_RE.search(script.get_text())
            if m:
                return m.group(1)
        return None

    def to_absolute_url(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        try:
            return urljoin(self.page_url, url)
        except ValueError:
            return None
