import os
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol
from urllib.parse import quote, urljoin, urlparse, urlunparse

import requests
from bs4 import BeautifulSoup
from dotenv import load_dotenv

from markup import html_to_markdown

load_dotenv()

USER_AGENT = os.getenv("SEED_USER_AGENT", "site-seeder/1.0")
FETCH_TIMEOUT = float(os.getenv("SEED_FETCH_TIMEOUT", "20"))
DEFAULT_MAX_DEPTH = int(os.getenv("SEED_MAX_DEPTH", "2"))
DEFAULT_MAX_PAGES = int(os.getenv("SEED_MAX_PAGES", "1"))


SpiderEventCallback = Callable[[dict], None]


@dataclass(frozen=True)
class FrontierEntry:
    url: str
    depth: int


@dataclass(frozen=True)
class Page:
    url: str
    text: str


@dataclass(frozen=True)
class FetchResult:
    url: str
    ok: bool
    content: str = ""
    status_code: int | None = None
    error: str = ""


@dataclass(frozen=True)
class CrawlConfig:
    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages: int = DEFAULT_MAX_PAGES

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_pages < 0:
            raise ValueError(f"max_pages must be >= 0, got {self.max_pages}")


class Fetcher(Protocol):
    def fetch(self, url: str) -> FetchResult: ...


def _emit_event(
    callback: SpiderEventCallback | None,
    event_type: str,
    message: str,
    **payload,
) -> None:
    event = {"type": event_type, "message": message, **payload}
    if callback is None:
        print(message)
        return
    callback(event)


class PageFetcher:
    """Retrieves raw page markup; failures come back as empty results."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = FETCH_TIMEOUT,
        event_callback: SpiderEventCallback | None = None,
    ):
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.timeout = timeout
        self.event_callback = event_callback

    def fetch(self, url: str) -> FetchResult:
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except (requests.RequestException, ValueError) as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            _emit_event(
                self.event_callback,
                "fetch_error",
                f"[fetch-error] {url} -> {exc}",
                url=url,
                error=str(exc),
            )
            return FetchResult(url=url, ok=False, status_code=status, error=str(exc))
        return FetchResult(url=url, ok=True, content=resp.text, status_code=resp.status_code)


_DEFAULT_PORTS = {"http": ":80", "https": ":443"}
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"


def _normalize_url(url: str) -> str:
    """Bring a resolved URL into one string form so equal addresses compare equal.

    Scheme and host are lowercased, default ports dropped, an empty path becomes
    ``/`` and unsafe characters are percent-encoded. Fragments are kept.
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        return url

    userinfo, at, hostport = parsed.netloc.rpartition("@")
    hostport = hostport.lower()
    if hostport.endswith(_DEFAULT_PORTS[scheme]):
        hostport = hostport[: -len(_DEFAULT_PORTS[scheme])]
    netloc = f"{userinfo}{at}{hostport}"

    path = quote(parsed.path or "/", safe=_PATH_SAFE)
    query = quote(parsed.query, safe=_QUERY_SAFE)
    fragment = quote(parsed.fragment, safe=_QUERY_SAFE)
    return urlunparse((scheme, netloc, path, parsed.params, query, fragment))


def extract_links(html: str, base_url: str) -> list[str]:
    if not html:
        return []
    soup = BeautifulSoup(html, "lxml")
    links: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = (anchor.get("href") or "").strip()
        if not href:
            continue
        try:
            links.append(_normalize_url(urljoin(base_url, href)))
        except ValueError:
            continue
    return links


def _validate_start_url(url: str) -> None:
    parsed = urlparse(url or "")
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"Start address must be an absolute http(s) URL: {url!r}")


class SiteCrawler:
    """Breadth-first crawler bounded by depth and page count.

    Entries are admitted to the frontier unconditionally; the depth bound and
    the seen set are only checked when an entry is dequeued. A page whose
    fetch failed is still recorded, with empty text.
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        fetcher: Fetcher | None = None,
        link_extractor: Callable[[str, str], Iterable[str]] = extract_links,
        converter: Callable[[str], str] = html_to_markdown,
        event_callback: SpiderEventCallback | None = None,
        stop_event: threading.Event | None = None,
    ):
        self.config = config or CrawlConfig()
        self.event_callback = event_callback
        self.fetcher = fetcher or PageFetcher(event_callback=event_callback)
        self.link_extractor = link_extractor
        self.converter = converter
        self.stop_event = stop_event

    def crawl(self, start_url: str) -> list[Page]:
        _validate_start_url(start_url)
        max_depth = self.config.max_depth
        max_pages = self.config.max_pages

        frontier: deque[FrontierEntry] = deque([FrontierEntry(start_url, 0)])
        seen: set[str] = set()
        pages: list[Page] = []

        _emit_event(
            self.event_callback,
            "start",
            f"[start] url={start_url} max_depth={max_depth} max_pages={max_pages}",
            url=start_url,
            max_depth=max_depth,
            max_pages=max_pages,
        )

        while frontier and len(pages) < max_pages:
            if self.stop_event is not None and self.stop_event.is_set():
                _emit_event(
                    self.event_callback,
                    "interrupted",
                    "[interrupted] Crawl stopped by caller request.",
                )
                break

            entry = frontier.popleft()
            if entry.depth > max_depth:
                _emit_event(
                    self.event_callback,
                    "skip_depth",
                    f"[skip-depth] depth={entry.depth} {entry.url}",
                    url=entry.url,
                    depth=entry.depth,
                )
                continue
            if entry.url in seen:
                continue
            seen.add(entry.url)

            result = self.fetcher.fetch(entry.url)
            html = result.content if result.ok else ""

            pages.append(Page(url=entry.url, text=self.converter(html)))
            _emit_event(
                self.event_callback,
                "page",
                f"[page] depth={entry.depth} ok={result.ok} url={entry.url}",
                url=entry.url,
                depth=entry.depth,
                ok=result.ok,
                pages_total=len(pages),
            )

            for link in self.link_extractor(html, entry.url):
                frontier.append(FrontierEntry(link, entry.depth + 1))

        _emit_event(
            self.event_callback,
            "done",
            f"[done] pages={len(pages)} pending={len(frontier)}",
            pages_total=len(pages),
            pending=len(frontier),
        )
        return pages

