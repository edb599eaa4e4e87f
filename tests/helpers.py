"""Synthetic catalogue pages and an in-memory fetcher for the crawler tests."""
from __future__ import annotations

from typing import Dict, List

from bs4 import BeautifulSoup

from ikea_crawler.adapters.base import Department, Product
from ikea_crawler.engines.base import CrawlEngine, CrawlReport
from ikea_crawler.utils.http import FetchError
from ikea_crawler.utils.parsing import parse_html


def department_page(*children: tuple[str, str]) -> str:
    tiles = "".join(
        f"""
        <div class="tile">
          <a class="tileLink" href="{url}"><img src="{url}.jpg"></a>
          <div class="categoryContainer"><a href="{url}">{name}</a><span>more</span></div>
        </div>"""
        for name, url in children
    )
    return f'<html><body><div class="visualNavContainer">{tiles}</div></body></html>'


def listing_page(*hrefs: str, seo: bool = False) -> str:
    if seo:
        body = "".join(f'<a class="seoProduct" href="{h}">product</a>' for h in hrefs)
    else:
        details = "".join(
            f'<div class="productDetails"><a href="{h}">product</a></div>' for h in hrefs
        )
        body = f'<div id="productLists">{details}</div>'
    return f"<html><body>{body}</body></html>"


def product_page(
    item: str = "702.612.04",
    name: str = "SMÅSTAD  Wardrobe",
    type_: str = "Wardrobe",
    price: str = "S$ 299",
    unit: str = "/ piece",
    metric: str = "60x57x181 cm",
    image: str | None = "/PIAimages/0601207_PE680198_S4.JPG",
) -> str:
    img = f'<img id="productImg" src="{image}">' if image is not None else ""
    return f"""<html><body>
      <span id="itemNumber">{item}</span>
      <h1 id="name">{name}</h1>
      <span id="type">{type_}</span>
      <span id="price1">{price}</span>
      <span class="productunit">{unit}</span>
      <span id="metric">{metric}</span>
      {img}
    </body></html>"""


class FakeFetcher:
    """Serves pages from a dict; unknown URLs fail like an unreachable host."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.fetched: List[str] = []

    async def fetch(self, url: str) -> BeautifulSoup:
        self.fetched.append(url)
        if url not in self.pages:
            raise FetchError(url, ConnectionError("host unreachable"))
        return parse_html(self.pages[url])


class StaticEngine(CrawlEngine):
    """Engine stand-in that emits one fixed product, used to test the API wiring."""

    def __init__(self, config, registry=None, *, sink) -> None:
        self.config = config
        self.sink = sink

    async def crawl(self) -> CrawlReport:
        self.sink.open()
        self.sink.write(
            Product(
                item_number="00263850",
                name="LACK Side table",
                type="Side table",
                price="S$ 12",
                unit="",
                metric="55x55 cm",
                image_url="",
                url="/catalog/products/00263850/",
                country=self.config.country_name,
                department=Department("Living room", "/living/"),
            )
        )
        self.sink.finalize()
        report = CrawlReport(country=self.config.country_name, product_count=1, stub_count=1)
        report.errors.append("Could not fetch product /catalog/products/gone/: timeout")
        return report
