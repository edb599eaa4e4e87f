from __future__ import annotations

import logging
from typing import List
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .base import Department, Product
from ..utils.parsing import (
    attr_of,
    collapse_spaces,
    last_attr,
    last_text,
    parent_of,
    select,
    select_last,
    strip_punctuation,
    text_of,
)

logger = logging.getLogger(__name__)


class IkeaAdapter:
    """
    Adapter for the IKEA catalogue: department pages with visual navigation
    tiles and listing pages with product blocks.
    """

    name = "ikea"
    domains = ["www.ikea.com", "ikea.com"]

    # Market home page
    ROOT_LINKS = ".departmentLinkBlock a"
    # Listing pages come in two shapes: the product list container and legacy SEO blocks.
    LISTING_BLOCKS = "#productLists .productDetails, .seoProduct"
    LISTING_ANCHORS = "#productLists .productDetails a, .seoProduct"
    # Department pages
    CHILD_LINKS = ".visualNavContainer a"
    CHILD_LABEL = ".categoryContainer a:first-child"
    # Product pages
    ITEM_NUMBER = "#itemNumber"
    NAME = "#name"
    TYPE = "#type"
    PRICE = "#price1"
    UNIT = ".productunit"
    METRIC = "#metric"
    IMAGE = "#productImg"

    def matches(self, url: str) -> bool:
        netloc = urlparse(url).netloc.lower()
        return netloc.endswith("ikea.com")

    def root_departments(self, document: BeautifulSoup) -> List[Department]:
        roots: List[Department] = []
        for link in select(document, self.ROOT_LINKS):
            href = attr_of(link, "href")
            name = text_of(link)
            if not href or not name:
                continue
            roots.append(Department(name=name, url=href))
        return roots

    def is_product_listing(self, document: BeautifulSoup) -> bool:
        return len(select(document, self.LISTING_BLOCKS)) > 0

    def product_links(self, document: BeautifulSoup) -> List[str]:
        links: List[str] = []
        for anchor in select(document, self.LISTING_ANCHORS):
            href = attr_of(anchor, "href")
            if not href or href == "#":
                continue
            links.append(href)
        return links

    def child_departments(self, document: BeautifulSoup) -> List[Department]:
        children: List[Department] = []
        seen = set()
        for link in select(document, self.CHILD_LINKS):
            href = attr_of(link, "href")
            # The label anchor usually repeats the tile link; keep the first.
            if not href or href in seen:
                continue
            # The label lives in a cousin node under the tile container, not in the link itself.
            name = text_of(select_last(parent_of(link), self.CHILD_LABEL))
            if not name:
                logger.debug("No label for department link %s", href)
                continue
            seen.add(href)
            children.append(Department(name=name, url=href))
        return children

    def extract_product(self, document: BeautifulSoup, url: str, country: str) -> Product:
        return Product(
            item_number=strip_punctuation(last_text(document, self.ITEM_NUMBER)),
            name=collapse_spaces(last_text(document, self.NAME)),
            type=last_text(document, self.TYPE),
            price=last_text(document, self.PRICE),
            unit=last_text(document, self.UNIT),
            metric=last_text(document, self.METRIC),
            image_url=last_attr(document, self.IMAGE, "src"),
            url=url,
            country=country,
        )
