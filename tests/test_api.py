from fastapi.testclient import TestClient

from ikea_crawler.apis.app import app

client = TestClient(app)


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_countries_are_indexed():
    countries = client.get("/countries").json()
    assert countries[0] == {"index": 0, "name": "Singapore", "path": "/sg/en"}


def test_crawl_rejects_unknown_country():
    resp = client.post("/crawl", json={"country": 42})
    assert resp.status_code == 422


def test_crawl_returns_products_and_errors(monkeypatch):
    monkeypatch.setenv("CRAWLER_ENGINE", "helpers:StaticEngine")
    resp = client.post("/crawl", json={"country": 0, "departments": [{"name": "Living room", "url": "/living/"}]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["country"] == "Singapore"
    assert body["products"][0]["item_number"] == "00263850"
    assert body["products"][0]["department"] == "Living room"
    assert body["errors"] == ["Could not fetch product /catalog/products/gone/: timeout"]
