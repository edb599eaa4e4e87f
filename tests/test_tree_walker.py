import asyncio

import pytest

from ikea_crawler.adapters.base import Department, ProductStub
from ikea_crawler.adapters.ikea import IkeaAdapter
from ikea_crawler.engines.base import ErrorLog
from ikea_crawler.engines.tree_walker import ProductCollector, TreeWalker

from helpers import FakeFetcher, department_page, listing_page

ROOT = Department("Root", "/r")


def _walk(pages, lineage=(ROOT,)):
    fetcher = FakeFetcher(pages)
    errors = ErrorLog()
    collector = ProductCollector()
    visited = set()
    walker = TreeWalker(IkeaAdapter(), fetcher, errors)
    fetched = asyncio.run(walker.walk(visited, collector, lineage))
    return fetcher, errors, collector, visited, fetched


def test_listing_root_collects_without_descending():
    pages = {
        "/r": listing_page("/p/1", "/p/2") + department_page(("Never", "/never")),
    }
    fetcher, errors, collector, _, fetched = _walk(pages)
    assert fetcher.fetched == ["/r"]
    assert fetched == 1
    assert [s.url for s in collector] == ["/p/1", "/p/2"]
    assert collector.get("/p/1").lineage == (ROOT,)
    assert not errors


def test_department_without_children_ends_quietly():
    fetcher, errors, collector, _, _ = _walk({"/r": "<html><body><p>Coming soon</p></body></html>"})
    assert fetcher.fetched == ["/r"]
    assert len(collector) == 0
    assert not errors


def test_cycle_is_walked_once():
    pages = {
        "/a": department_page(("B", "/b")),
        "/b": department_page(("A", "/a")),
    }
    fetcher, errors, _, visited, _ = _walk(pages, (Department("A", "/a"),))
    assert fetcher.fetched == ["/a", "/b"]
    assert visited == {"/a", "/b"}
    assert not errors


def test_shared_child_is_fetched_once_per_walk():
    pages = {
        "/r": department_page(("X", "/x"), ("Y", "/y")),
        "/x": department_page(("Shared", "/s")),
        "/y": department_page(("Shared", "/s")),
        "/s": listing_page("/p/1"),
    }
    fetcher, _, collector, _, _ = _walk(pages)
    assert fetcher.fetched == ["/r", "/x", "/s", "/y"]
    assert [d.name for d in collector.get("/p/1").lineage] == ["Root", "X", "Shared"]


def test_children_are_walked_depth_first_in_document_order():
    pages = {
        "/r": department_page(("A", "/a"), ("B", "/b")),
        "/a": department_page(("A1", "/a1")),
        "/a1": listing_page("/p/a1"),
        "/b": listing_page("/p/b"),
    }
    fetcher, _, collector, _, _ = _walk(pages)
    assert fetcher.fetched == ["/r", "/a", "/a1", "/b"]
    assert [s.url for s in collector] == ["/p/a1", "/p/b"]


def test_fetch_error_abandons_only_that_branch():
    pages = {
        "/r": department_page(("Broken", "/broken"), ("Fine", "/fine")),
        "/fine": listing_page("/p/1"),
    }
    fetcher, errors, collector, _, fetched = _walk(pages)
    assert fetcher.fetched == ["/r", "/broken", "/fine"]
    assert fetched == 2
    assert len(errors) == 1
    assert "/broken" in errors.summary()
    assert [s.url for s in collector] == ["/p/1"]


def test_cross_listed_product_keeps_last_lineage():
    pages = {
        "/r": department_page(("Beds", "/beds"), ("Kids", "/kids")),
        "/beds": listing_page("/p/bed"),
        "/kids": listing_page("/p/bed"),
    }
    _, _, collector, _, _ = _walk(pages)
    assert len(collector) == 1
    assert collector.get("/p/bed").category == Department("Kids", "/kids")


def test_deep_lineage_is_traversed_but_only_three_levels_exported():
    pages = {
        "/r": department_page(("L1", "/l1")),
        "/l1": department_page(("L2", "/l2")),
        "/l2": department_page(("L3", "/l3")),
        "/l3": listing_page("/p/deep"),
    }
    _, _, collector, _, _ = _walk(pages)
    stub = collector.get("/p/deep")
    assert len(stub.lineage) == 4
    assert (stub.department.name, stub.category.name, stub.subcategory.name) == ("Root", "L1", "L2")


def test_empty_lineage_is_rejected():
    walker = TreeWalker(IkeaAdapter(), FakeFetcher({}), ErrorLog())
    with pytest.raises(ValueError):
        asyncio.run(walker.walk(set(), ProductCollector(), ()))


def test_collector_upsert_replaces_stub_with_same_url():
    collector = ProductCollector()
    first = ProductStub("/p/1", (ROOT,))
    second = ProductStub("/p/1", (ROOT, Department("Cat A", "/r/a")))
    collector.upsert(first)
    collector.upsert(second)
    assert len(collector) == 1
    assert list(collector) == [second]
    assert "/p/1" in collector
