from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup, Comment, Tag

from faithsearch.config import settings
from faithsearch.tools import web_utils

NOISE_SELECTORS = (
    "nav",
    ".menu",
    ".navbar",
    ".sidebar",
    "aside",
    "header",
    "footer",
    "form",
    "script",
    "style",
    "noscript",
)

CONTENT_SELECTORS = (
    ".content",
    "#content",
    ".main-content",
    "main",
    "article",
    "[role='main']",
)

BLOCK_TAGS = ["p", "div", "section", "span", "li"]

TITLE_META_SELECTORS = (
    'meta[property="og:title"]',
    'meta[name="twitter:title"]',
)


@dataclass
class ExtractedContent:
    url: str
    title: str
    text: str
    method: str
    used_selector: str | None

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.title


def _strip_noise(soup: BeautifulSoup) -> None:
    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()
    for selector in NOISE_SELECTORS:
        for node in soup.select(selector):
            node.decompose()


def _qualifying_blocks(container: Tag, min_chars: int) -> list[str]:
    blocks: list[str] = []
    for block in container.find_all(BLOCK_TAGS):
        text = web_utils.collapse_whitespace(block.get_text(" "))
        if len(text) > min_chars:
            blocks.append(text)
    return blocks


def _extract_title(soup: BeautifulSoup) -> str:
    if soup.title is not None:
        title = web_utils.collapse_whitespace(soup.title.get_text(" "))
        if title:
            return title
    for selector in TITLE_META_SELECTORS:
        meta = soup.select_one(selector)
        content = meta.get("content") if meta is not None else None
        if isinstance(content, str) and content.strip():
            return web_utils.collapse_whitespace(content)
    return ""


def _extract_from_selectors(soup: BeautifulSoup, min_chars: int) -> tuple[str, str | None]:
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue
        blocks = _qualifying_blocks(container, min_chars)
        if not blocks:
            whole = container.get_text(" ").strip()
            if len(whole) > min_chars:
                blocks.append(whole)
        if blocks:
            return "\n\n".join(blocks), selector
    return "", None


def _extract_from_body(soup: BeautifulSoup, min_chars: int, max_chars: int) -> str:
    body = soup.body or soup
    blocks = _qualifying_blocks(body, min_chars)
    if not blocks:
        whole = body.get_text(" ").strip()
        if len(whole) > min_chars:
            blocks.append(whole)
    return web_utils.truncate("\n\n".join(blocks), max_chars)


def _extract_with_trafilatura(raw_html: str) -> str:
    import trafilatura

    extracted = trafilatura.extract(raw_html, output_format="txt")
    if not isinstance(extracted, str):
        return ""
    return extracted


def extract_main_content(
    url: str,
    raw_html: str,
    *,
    min_block_chars: int | None = None,
    fallback_max_chars: int | None = None,
) -> ExtractedContent:
    """Isolate the main text of a page: content selectors, then body scan, then trafilatura."""
    min_chars = (
        min_block_chars if min_block_chars is not None else int(settings.extractor_min_block_chars)
    )
    max_chars = (
        fallback_max_chars
        if fallback_max_chars is not None
        else int(settings.extractor_fallback_max_chars)
    )

    soup = BeautifulSoup(raw_html, "html.parser")
    title = _extract_title(soup)
    _strip_noise(soup)

    text, selector = _extract_from_selectors(soup, min_chars)
    method = "selector"
    if not text:
        text = _extract_from_body(soup, min_chars, max_chars)
        method = "body"
    if not text and settings.extractor_fallback.lower().strip() == "trafilatura":
        text = web_utils.truncate(_extract_with_trafilatura(raw_html), max_chars)
        method = "trafilatura"

    return ExtractedContent(
        url=url,
        title=web_utils.clean_content(title),
        text=web_utils.clean_content(text),
        method=method if text else "none",
        used_selector=selector,
    )
