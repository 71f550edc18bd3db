import pytest

from site_spider import FetchResult


class FakeFetcher:
    """Serves pages from a dict; unknown URLs fail like a dead link."""

    def __init__(self, site: dict[str, str]):
        self.site = site
        self.calls: list[str] = []

    def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        if url not in self.site:
            return FetchResult(url=url, ok=False, status_code=404, error="404 Client Error")
        return FetchResult(url=url, ok=True, content=self.site[url], status_code=200)


def links_page(*hrefs: str, body: str = "") -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return f"<html><body><p>{body}</p>{anchors}</body></html>"


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def page_with_links():
    return links_page


@pytest.fixture
def events():
    collected: list[dict] = []
    return collected
