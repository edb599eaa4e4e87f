from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup


@dataclass(frozen=True)
class Department:
    """One node of the category hierarchy: root department, category or subcategory."""

    name: str
    url: str


# Root first. Only the first three levels are exported.
Lineage = Tuple[Department, ...]

LINEAGE_DEPTH = 3


def extend_lineage(lineage: Lineage, child: Department) -> Lineage:
    return lineage + (child,)


def lineage_level(lineage: Lineage, index: int) -> Optional[Department]:
    if index < len(lineage) and index < LINEAGE_DEPTH:
        return lineage[index]
    return None


@dataclass(frozen=True)
class ProductStub:
    """A discovered product URL that has not been fetched yet."""

    url: str
    lineage: Lineage

    @property
    def department(self) -> Optional[Department]:
        return lineage_level(self.lineage, 0)

    @property
    def category(self) -> Optional[Department]:
        return lineage_level(self.lineage, 1)

    @property
    def subcategory(self) -> Optional[Department]:
        return lineage_level(self.lineage, 2)


# Fixed header of the flat file, including the historical space before the last column.
CSV_HEADER = (
    "Item Number,Name,Type,Price,Unit,Metric,Image URL,URL,"
    "Department,Category,Subcategory,Department URL,Category URL, Subcategory URL"
)


@dataclass(frozen=True)
class Product:
    """Structured record extracted from a product page plus the lineage it was found under."""

    item_number: str
    name: str
    type: str
    price: str
    unit: str
    metric: str
    image_url: str
    url: str
    country: str = ""
    department: Optional[Department] = None
    category: Optional[Department] = None
    subcategory: Optional[Department] = None

    def _names_and_urls(self) -> Tuple[List[str], List[str]]:
        levels = (self.department, self.category, self.subcategory)
        names = [d.name if d else "" for d in levels]
        urls = [d.url if d else "" for d in levels]
        return names, urls

    def to_row(self) -> List[str]:
        names, urls = self._names_and_urls()
        return [
            self.item_number,
            self.name,
            self.type,
            self.price,
            self.unit,
            self.metric,
            self.image_url,
            self.url,
            *names,
            *urls,
        ]

    def to_record(self) -> Dict[str, str]:
        names, urls = self._names_and_urls()
        return {
            "id": self.item_number,
            "name": self.name,
            "type": self.type,
            "country": self.country,
            "price": self.price,
            "unit": self.unit,
            "metric": self.metric,
            "url": self.url,
            "image_url": self.image_url,
            "department": names[0],
            "category": names[1],
            "subcategory": names[2],
            "department_url": urls[0],
            "category_url": urls[1],
            "subcategory_url": urls[2],
        }

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = self.to_record()
        data["item_number"] = data.pop("id")
        return data


class SiteAdapter(Protocol):
    """
    Interface for retailer-specific page understanding.
    The engine owns HTTP, traversal and aggregation; adapters only read documents.
    """

    name: str
    domains: List[str]  # e.g. ["www.ikea.com"]

    def matches(self, url: str) -> bool:
        """Return True if this adapter should handle the given site."""
        ...

    def root_departments(self, document: BeautifulSoup) -> List[Department]:
        """Top-level departments linked from a market's home page."""
        ...

    def is_product_listing(self, document: BeautifulSoup) -> bool:
        """True for leaf pages that list products, False for department pages."""
        ...

    def product_links(self, document: BeautifulSoup) -> List[str]:
        """Navigable product hrefs on a listing page, in document order."""
        ...

    def child_departments(self, document: BeautifulSoup) -> List[Department]:
        """Sub-departments linked from a department page, in document order."""
        ...

    def extract_product(self, document: BeautifulSoup, url: str, country: str) -> Product:
        """Build a Product (without lineage) from a fetched product page."""
        ...


def domain_of(url: str) -> str:
    return urlparse(url).netloc
