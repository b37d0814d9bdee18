"""
Fetching portal pages (URL -> decoded, cleaned document).

- Loads pages with requests, at most one request per throttle interval
- Caches every page per absolute URL; concurrent loads of the same URL
  share a single request
- Decodes bytes with the server charset, UTF-8, then the legacy Thai
  single-byte encodings
- Rewrites relative links to absolute ones and strips legacy styling
  attributes, scripts and stylesheets before handing the document on

Extraction never imports this module: callers pass the resulting
document to myportal.mapper themselves.
"""

from __future__ import annotations

import re
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from loguru import logger


# ---------------------------------------------------------------------------
# Paths & URLs
# ---------------------------------------------------------------------------

BASE_URL = "https://new.reg.kmitl.ac.th/u_student/"

DEFAULT_THROTTLE_SECONDS = 0.35
REQUEST_TIMEOUT = 30

# Tried after the server-declared charset, in order
FALLBACK_ENCODINGS = ("utf-8", "windows-874", "tis-620", "iso-8859-11")

# Charset labels Python knows under another name
CODEC_ALIASES = {"windows-874": "cp874", "x-windows-874": "cp874"}

# (selector, attribute) pairs rewritten to absolute URLs
LINK_ATTRIBUTES = (
    ("a", "href"),
    ("link", "href"),
    ("form", "action"),
    ("img", "src"),
    ("script", "src"),
    ("iframe", "src"),
)
STRIPPED_ATTRIBUTES = ("background", "bgcolor", "width", "height")

_CHARSET_RE = re.compile(r"charset=([^;]+)", re.IGNORECASE)


class PortalFetchError(Exception):
    """Raised when the portal answers with a non-success status."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"Could not load {url} ({status})")
        self.url = url
        self.status = status


@dataclass
class PortalScript:
    src: Optional[str] = None
    content: Optional[str] = None


@dataclass
class PortalContent:
    url: str
    html: str
    title: str
    document: BeautifulSoup
    encoding: str
    fetched_at: float
    scripts: List[PortalScript] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def extract_charset(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    m = _CHARSET_RE.search(content_type)
    return m.group(1).strip().strip("\"'").lower() if m else None


def build_encoding_chain(preferred: Optional[str]) -> List[str]:
    """
    Preferred charset first, then the fallbacks, without duplicates.
    """
    chain: List[str] = []
    for codec in (preferred, *FALLBACK_ENCODINGS):
        if codec and codec.lower() not in chain:
            chain.append(codec.lower())
    return chain


def decode_bytes(data: bytes, preferred: Optional[str] = None) -> Tuple[str, str]:
    """
    Decode page bytes; returns (text, encoding).

    Each candidate is tried strictly. Unknown codec names and decoding
    errors move on to the next candidate; lenient UTF-8 is the last resort.
    """
    for encoding in build_encoding_chain(preferred):
        try:
            text = data.decode(CODEC_ALIASES.get(encoding, encoding))
        except (LookupError, UnicodeDecodeError):
            logger.debug("Decoding with {} failed", encoding)
            continue
        if text or not data:
            return text, encoding
    return data.decode("utf-8", errors="replace"), "utf-8"


# ---------------------------------------------------------------------------
# Document cleanup
# ---------------------------------------------------------------------------


def _safe_resolve(value: str, base_url: str) -> Optional[str]:
    try:
        return urljoin(base_url, value)
    except ValueError:
        return None


def normalize_links(soup: BeautifulSoup, base_url: str) -> None:
    """
    Make link targets absolute and drop inline background / size attributes.
    """
    for tag_name, attr in LINK_ATTRIBUTES:
        for element in soup.find_all(tag_name, attrs={attr: True}):
            value = element.get(attr) or ""
            if not value or value.startswith("javascript"):
                continue
            absolute = _safe_resolve(value, base_url)
            if absolute:
                element[attr] = absolute

    for attr in STRIPPED_ATTRIBUTES:
        for element in soup.find_all(attrs={attr: True}):
            del element[attr]


def extract_scripts(soup: BeautifulSoup, base_url: str) -> List[PortalScript]:
    """
    Collect and remove every <script>, and remove legacy stylesheets.
    """
    scripts: List[PortalScript] = []
    for script in soup.find_all("script"):
        src = script.get("src")
        if src:
            resolved = _safe_resolve(src, base_url)
            if resolved:
                scripts.append(PortalScript(src=resolved))
        elif script.get_text().strip():
            scripts.append(PortalScript(content=script.get_text()))
        script.decompose()

    for link in soup.find_all("link"):
        if "stylesheet" in (link.get("rel") or []):
            link.decompose()

    return scripts


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class PortalFetcher:
    """
    Throttled, caching page loader.

    Safe to share between threads: the first caller for a URL performs the
    request, later callers wait for the same result.
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        throttle_seconds: float = DEFAULT_THROTTLE_SECONDS,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.throttle_seconds = throttle_seconds
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

        self._cache: Dict[str, Future] = {}
        self._cache_lock = threading.Lock()
        self._throttle_lock = threading.Lock()
        self._last_request = 0.0
        self._executed_scripts: Set[str] = set()

    def to_absolute(self, url: str) -> str:
        return urljoin(self.base_url, url)

    def load(self, url: str) -> PortalContent:
        absolute_url = self.to_absolute(url)

        with self._cache_lock:
            future = self._cache.get(absolute_url)
            owner = future is None
            if owner:
                future = Future()
                self._cache[absolute_url] = future

        if not owner:
            logger.debug("Cache hit for {}", absolute_url)
            return future.result()

        try:
            content = self._fetch_and_transform(absolute_url)
        except Exception as exc:
            # failed loads are not cached, waiting callers get the error
            with self._cache_lock:
                self._cache.pop(absolute_url, None)
            future.set_exception(exc)
            raise

        future.set_result(content)
        return content

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    def mark_script_executed(self, src: str) -> None:
        self._executed_scripts.add(src)

    def has_executed_script(self, src: str) -> bool:
        return src in self._executed_scripts

    def _apply_throttle(self) -> None:
        with self._throttle_lock:
            elapsed = time.monotonic() - self._last_request
            if self._last_request and elapsed < self.throttle_seconds:
                wait = self.throttle_seconds - elapsed
                logger.debug("Throttling for {:.3f}s", wait)
                time.sleep(wait)
            self._last_request = time.monotonic()

    def _fetch_and_transform(self, url: str) -> PortalContent:
        self._apply_throttle()

        logger.debug("FETCH {}", url)
        resp = self.session.get(url, timeout=self.timeout)
        if not 200 <= resp.status_code < 300:
            raise PortalFetchError(url, resp.status_code)

        preferred = extract_charset(resp.headers.get("content-type"))
        text, encoding = decode_bytes(resp.content, preferred)

        soup = BeautifulSoup(text, "html.parser")
        normalize_links(soup, url)
        scripts = extract_scripts(soup, url)

        body = soup.body
        html = body.decode_contents().strip() if body is not None else text
        title = soup.title.get_text() if soup.title is not None else ""

        return PortalContent(
            url=url,
            html=html,
            title=title,
            scripts=scripts,
            document=soup,
            encoding=encoding,
            fetched_at=time.time(),
        )
