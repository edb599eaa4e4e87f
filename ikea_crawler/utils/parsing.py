from __future__ import annotations

import logging
import re
from typing import List, Optional, Union
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

logger = logging.getLogger(__name__)

Node = Union[BeautifulSoup, Tag]

_SPACE_RUNS = re.compile(" {2,}")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def normalize_url(url: str) -> str:
    """
    Normalize URL by removing the fragment.
    """
    parts = list(urlparse(url))
    parts[5] = ""  # strip fragment
    return urlunparse(parts)


def absolute_url(base_url: str, href: str) -> str:
    return normalize_url(urljoin(base_url, href))


def select(node: Optional[Node], css: str) -> List[Tag]:
    """
    Ordered matches of ``css`` under ``node``.
    A malformed selector or a missing node yields no matches.
    """
    if node is None:
        return []
    try:
        return list(node.select(css))
    except (SelectorSyntaxError, ValueError) as exc:
        logger.debug("Selector %r failed: %r", css, exc)
        return []


def select_last(node: Optional[Node], css: str) -> Optional[Tag]:
    """
    The authoritative match for ``css``: the last one in document order.
    Pages repeat values for mobile and desktop layouts and put the canonical one last.
    """
    matches = select(node, css)
    return matches[-1] if matches else None


def text_of(element: Optional[Tag]) -> Optional[str]:
    if element is None:
        return None
    text = element.get_text().strip()
    return text or None


def attr_of(element: Optional[Tag], name: str) -> Optional[str]:
    if element is None:
        return None
    value = element.get(name)
    if isinstance(value, list):  # multi-valued attributes such as class
        value = " ".join(value)
    return value


def parent_of(element: Optional[Tag]) -> Optional[Tag]:
    if element is None:
        return None
    return element.parent


def last_text(node: Optional[Node], css: str) -> str:
    return text_of(select_last(node, css)) or ""


def last_attr(node: Optional[Node], css: str, name: str) -> str:
    return attr_of(select_last(node, css), name) or ""


def collapse_spaces(text: str) -> str:
    """
    Fold line breaks into spaces and reduce runs of spaces to one.
    "IKEA   SMÅSTAD\\nShelf" -> "IKEA SMÅSTAD Shelf"
    """
    text = text.replace("\r", " ").replace("\n", " ")
    return _SPACE_RUNS.sub(" ", text).strip()


def strip_punctuation(value: str, chars: str = ".") -> str:
    """Remove separator characters from an identifier, e.g. "100.222.33" -> "10022233"."""
    return value.translate({ord(c): None for c in chars})
