import re

from bs4 import BeautifulSoup
from markdownify import markdownify

DROPPED_TAGS = ["script", "style", "noscript", "template"]


def _collapse_blank_lines(text: str) -> str:
    return re.sub(r"\n{3,}", "\n\n", text or "").strip()


def html_to_markdown(html: str) -> str:
    """Render page markup as markdown with every link target removed.

    Anchors keep their text but lose ``href`` before conversion, so the output
    carries no ``[text](target)`` syntax.
    """
    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, "lxml")
    for tag in soup(DROPPED_TAGS):
        tag.decompose()
    for anchor in soup.find_all("a"):
        if anchor.has_attr("href"):
            del anchor["href"]

    return _collapse_blank_lines(markdownify(str(soup), heading_style="ATX"))
