"""Tests for the JSON API"""

import pytest
from fastapi.testclient import TestClient

from conftest import ADDR_FOO, raw_nft
from nft_gallery.api import app, get_engine, get_simulator
from nft_gallery.market import SyntheticMarket
from nft_gallery.simulator import ActionSimulator


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_simulator] = lambda: ActionSimulator(
        market=SyntheticMarket(seed=1), resolver=engine.resolver, purchase_delay=0, listing_delay=0, cancel_delay=0
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestQueryRoutes:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_networks(self, client):
        assert client.get("/networks").json() == {"default": "mainnet", "networks": ["mainnet", "sepolia"]}

    def test_collections(self, client):
        data = client.get("/collections", params={"page_size": 2}).json()
        assert data["total"] == 3
        assert [record["name"] for record in data["collections"]] == ["Foo", "Bar Club"]

    def test_collection_detail(self, client):
        data = client.get(f"/collections/{ADDR_FOO}").json()
        assert data["symbol"] == "FOO"
        assert data["total_supply"] == "3"

    def test_collection_items_with_traits(self, client):
        response = client.get(f"/collections/{ADDR_FOO}/items", params={"trait": ["Hat=Cap", "Hat=Crown"]})
        data = response.json()

        assert response.status_code == 200
        assert data["total_count"] == 2
        assert data["facets"] == {"Hat": ["Cap", "Crown"]}

    def test_invalid_trait_filter(self, client):
        response = client.get(f"/collections/{ADDR_FOO}/items", params={"trait": "Hat"})
        assert response.status_code == 400

    def test_owner_items(self, client, indexer):
        indexer.owned["0xOwner"] = {"ownedNfts": [raw_nft(ADDR_FOO, "0x01", name="Foo #1")]}
        data = client.get("/owners/0xOwner/items").json()
        assert [item["name"] for item in data] == ["Foo #1"]
        assert data[0]["owner"] == "0xOwner"

    def test_browse(self, client):
        data = client.get("/items/browse", params={"limit": 2}).json()
        assert [item["token_id"] for item in data] == ["01", "02"]

    def test_item_detail(self, client, indexer):
        indexer.tokens[(ADDR_FOO.lower(), "0x01")] = raw_nft(ADDR_FOO, "0x01", name="Foo #1")

        assert client.get(f"/items/{ADDR_FOO}/01").json()["name"] == "Foo #1"
        assert client.get(f"/items/{ADDR_FOO}/99").status_code == 404
        assert client.get(f"/items/{ADDR_FOO}/%20").status_code == 400

    def test_search(self, client):
        data = client.get("/search", params={"q": "special"}).json()
        assert data == []
        data = client.get("/search", params={"q": "foo", "limit": 1}).json()
        assert [item["name"] for item in data] == ["Foo #1"]


class TestActionRoutes:
    def test_purchase(self, client):
        payload = {"token_id": "1", "contract_address": ADDR_FOO, "buyer_address": "0xBuyer"}
        data = client.post("/actions/purchase", json=payload).json()
        assert data["action"] == "purchase"
        assert data["simulated"] is True

    def test_listing(self, client):
        payload = {"token_id": "1", "contract_address": ADDR_FOO, "price": "0.5", "owner_address": "0xOwner"}
        data = client.post("/actions/list", json=payload).json()
        assert data["price"] == "0.5"

    def test_listing_bad_price(self, client):
        payload = {"token_id": "1", "contract_address": ADDR_FOO, "price": "free", "owner_address": "0xOwner"}
        assert client.post("/actions/list", json=payload).status_code == 400

    def test_cancel(self, client):
        payload = {"token_id": "1", "contract_address": ADDR_FOO, "owner_address": "0xOwner"}
        data = client.post("/actions/cancel", json=payload).json()
        assert data["action"] == "cancel"
        assert data["network"] == "mainnet"

    def test_cancel_missing_owner(self, client):
        payload = {"token_id": "1", "contract_address": ADDR_FOO, "owner_address": ""}
        assert client.post("/actions/cancel", json=payload).status_code == 400
