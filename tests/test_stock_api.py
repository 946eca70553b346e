import uuid

from sqlalchemy.exc import OperationalError

from auctionhouse.models import StockItem
from tests.helpers import stock_row


def _create(client, headers, **overrides):
    payload = {
        "title": "Elite Trainer Box",
        "description": "Sealed",
        "price": 49.99,
        "stockCount": 8,
        "category": "Sealed Product",
        "condition": "NEW",
    }
    payload.update(overrides)
    return client.post("/api/admin/stock", json=payload, headers=headers)


class TestAdminGuard:
    def test_anonymous_rejected(self, client):
        res = client.post("/api/admin/stock/bulk", json=[stock_row()])
        assert res.status_code == 401
        assert res.json()["error"]["code"] == "UNAUTHORIZED"

    def test_unknown_token_rejected(self, client):
        res = client.get("/api/admin/stock", headers={"Authorization": "Bearer nope"})
        assert res.status_code == 401

    def test_non_admin_rejected(self, client, db_session, user_headers):
        res = client.post("/api/admin/stock/bulk", json=[stock_row()], headers=user_headers)
        assert res.status_code == 401
        assert db_session.query(StockItem).count() == 0


class TestBulkImport:
    def test_imports_all_rows(self, client, db_session, admin_headers):
        rows = [stock_row(Title=f"Box {i}") for i in range(3)]
        res = client.post("/api/admin/stock/bulk", json=rows, headers=admin_headers)
        assert res.status_code == 200
        assert res.json() == {"message": "Successfully imported 3 items", "count": 3}

        items = db_session.query(StockItem).order_by(StockItem.title).all()
        assert [i.title for i in items] == ["Box 0", "Box 1", "Box 2"]
        assert items[0].price == 129.99
        assert items[0].stock_count == 12
        assert items[0].low_stock_threshold == 3
        assert items[0].images == []

    def test_numeric_cells_from_decoder(self, client, db_session, admin_headers):
        row = stock_row(Price=10, **{"Stock Count": 2.0, "Low Stock Threshold": None})
        res = client.post("/api/admin/stock/bulk", json=[row], headers=admin_headers)
        assert res.status_code == 200
        item = db_session.query(StockItem).one()
        assert item.stock_count == 2
        assert item.low_stock_threshold == 5

    def test_one_bad_row_writes_nothing(self, client, db_session, admin_headers):
        rows = [stock_row(), stock_row(**{"Stock Count": "lots"}), stock_row()]
        res = client.post("/api/admin/stock/bulk", json=rows, headers=admin_headers)
        assert res.status_code == 400
        error = res.json()["error"]
        assert error["code"] == "ROW_VALIDATION_ERROR"
        assert error["rows"] == [
            {"row": 1, "field": "Stock Count", "reason": "not an integer: 'lots'"},
        ]
        assert db_session.query(StockItem).count() == 0

    def test_negative_price_rejected(self, client, db_session, admin_headers):
        res = client.post(
            "/api/admin/stock/bulk", json=[stock_row(Price="-4")], headers=admin_headers,
        )
        assert res.status_code == 400
        assert res.json()["error"]["rows"][0]["field"] == "Price"

    def test_price_beyond_column_rejected(self, client, db_session, admin_headers):
        for price in ("1e400", "1e20"):
            res = client.post(
                "/api/admin/stock/bulk", json=[stock_row(Price=price)], headers=admin_headers,
            )
            assert res.status_code == 400
            body = res.json()["error"]
            assert body["code"] == "ROW_VALIDATION_ERROR"
            assert body["rows"] == [
                {"row": 0, "field": "Price", "reason": f"out of range: {price!r}"}
            ]
        assert db_session.query(StockItem).count() == 0

    def test_huge_stock_count_rejected(self, client, db_session, admin_headers):
        row = stock_row(**{"Stock Count": "1e30", "Low Stock Threshold": "1e999999"})
        res = client.post("/api/admin/stock/bulk", json=[row], headers=admin_headers)
        assert res.status_code == 400
        fields = [r["field"] for r in res.json()["error"]["rows"]]
        assert fields == ["Stock Count", "Low Stock Threshold"]
        assert db_session.query(StockItem).count() == 0

    def test_empty_batch(self, client, admin_headers):
        res = client.post("/api/admin/stock/bulk", json=[], headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_body_must_be_array(self, client, admin_headers):
        res = client.post("/api/admin/stock/bulk", json={"Title": "x"}, headers=admin_headers)
        assert res.status_code == 400

    def test_persistence_failure_is_opaque(self, client, db_session, admin_headers, monkeypatch):
        from sqlalchemy.orm import Session

        def boom(self):
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(Session, "commit", boom)
        res = client.post("/api/admin/stock/bulk", json=[stock_row()], headers=admin_headers)
        assert res.status_code == 500
        assert res.json()["error"]["code"] == "PERSISTENCE_ERROR"
        assert "disk" not in res.json()["error"]["message"]


class TestExport:
    def test_export_round_trips(self, client, db_session, admin_headers):
        _create(client, admin_headers, title="A", lowStockThreshold=2)
        _create(client, admin_headers, title="B")

        res = client.get("/api/admin/stock/export", headers=admin_headers)
        assert res.status_code == 200
        rows = sorted(res.json(), key=lambda r: r["Title"])
        assert rows[0] == {
            "Title": "A",
            "Description": "Sealed",
            "Price": 49.99,
            "Stock Count": 8,
            "Category": "Sealed Product",
            "Condition": "NEW",
            "Low Stock Threshold": 2,
        }
        assert rows[1]["Low Stock Threshold"] == 5

        res = client.post("/api/admin/stock/bulk", json=rows, headers=admin_headers)
        assert res.status_code == 200
        assert db_session.query(StockItem).count() == 4


class TestStockCrud:
    def test_create_and_list_with_low_stock(self, client, admin_headers):
        _create(client, admin_headers, title="plenty", stockCount=50)
        _create(client, admin_headers, title="short", stockCount=2)
        _create(client, admin_headers, title="custom", stockCount=8, lowStockThreshold=10)

        res = client.get("/api/admin/stock", headers=admin_headers)
        assert res.status_code == 200
        body = res.json()
        assert body["lowStockCount"] == 2
        flags = {i["title"]: i["lowStock"] for i in body["data"]}
        assert flags == {"plenty": False, "short": True, "custom": True}

        res = client.get("/api/admin/stock?lowStockOnly=true", headers=admin_headers)
        assert sorted(i["title"] for i in res.json()["data"]) == ["custom", "short"]

    def test_create_validation(self, client, admin_headers):
        res = _create(client, admin_headers, price=-1)
        assert res.status_code == 400
        res = _create(client, admin_headers, stockCount=-1)
        assert res.status_code == 400

    def test_update(self, client, admin_headers):
        item_id = _create(client, admin_headers).json()["id"]
        res = client.patch(
            f"/api/admin/stock/{item_id}",
            json={"stockCount": 1},
            headers=admin_headers,
        )
        assert res.status_code == 200
        data = res.json()
        assert data["stockCount"] == 1
        assert data["title"] == "Elite Trainer Box"
        assert data["lowStock"] is True

    def test_delete(self, client, db_session, admin_headers):
        item_id = _create(client, admin_headers).json()["id"]
        res = client.delete(f"/api/admin/stock/{item_id}", headers=admin_headers)
        assert res.status_code == 200
        assert res.json() == {"id": item_id, "deleted": True}
        assert db_session.query(StockItem).count() == 0

    def test_missing_item(self, client, admin_headers):
        fake_id = uuid.uuid4()
        res = client.delete(f"/api/admin/stock/{fake_id}", headers=admin_headers)
        assert res.status_code == 404
        assert res.json()["error"]["code"] == "STOCK_ITEM_NOT_FOUND"
