from __future__ import annotations

import html
import re
from urllib.parse import urlparse

_BLOCK_NOISE_RE = re.compile(
    r"<(script|style|header|footer|nav|aside|form)\b[\s\S]*?</\1\s*>",
    re.IGNORECASE,
)
_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_TAG_RE = re.compile(r"<[^>]+>")
_LEFTOVER_ENTITY_RE = re.compile(r"&[a-z]+;", re.IGNORECASE)


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except Exception:
        return False


def extract_domain(url: str) -> str:
    """Extract domain from URL for display."""
    try:
        return urlparse(url).netloc
    except Exception:
        return url


def hostname_matches(url: str, domains: tuple[str, ...] | list[str]) -> bool:
    """True when the URL's hostname contains one of the allow-listed domains."""
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except Exception:
        return False
    if not hostname:
        return False
    return any(domain.lower() in hostname for domain in domains)


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def clean_content(text: str) -> str:
    """Strip leftover markup, decode entities and collapse whitespace runs."""
    text = _COMMENT_RE.sub("", text)
    text = _BLOCK_NOISE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    text = _LEFTOVER_ENTITY_RE.sub(" ", text)
    text = text.replace("\xa0", " ")
    text = re.sub(r"\r\n?", "\n", text)
    text = re.sub(r"[ \t\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."
