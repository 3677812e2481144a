"""End-to-end tests through the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from sd_inventory_service.errors import StorageUnavailable
from sd_inventory_service.items import ComputerRepository


def create_computer(client: TestClient, **overrides) -> dict:
    payload = {"make": "Dell", "model": "XPS", "office": "Office 1"}
    payload.update(overrides)
    response = client.post("/api/computers", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestComputerLifecycle:
    """Create, reuse a serial, replace serials, delete."""

    def test_scenario(self, client: TestClient) -> None:
        first = create_computer(client, serial_numbers=["SN1", "SN2"])
        assert first["id"]
        assert first["quantity"] == 1
        assert first["status"] == "active"
        assert sorted(s["serial_number"] for s in first["serial_numbers"]) == ["SN1", "SN2"]

        duplicate = client.post(
            "/api/computers",
            json={"make": "HP", "model": "EliteBook", "office": "Office 2", "serial_numbers": ["SN1"]},
        )
        assert duplicate.status_code == 400
        assert duplicate.json()["success"] is False
        assert duplicate.json()["message"] == "Serial number 'SN1' already exists"
        assert client.get("/api/computers").json()["count"] == 1

        updated = client.put(f"/api/computers/{first['id']}", json={"serial_numbers": ["SN1"]})
        assert updated.status_code == 200
        assert [s["serial_number"] for s in updated.json()["data"]["serial_numbers"]] == ["SN1"]

        deleted = client.delete(f"/api/computers/{first['id']}")
        assert deleted.status_code == 200
        assert deleted.json() == {
            "success": True,
            "data": None,
            "message": "Computer deleted successfully",
            "count": None,
        }

        assert client.get(f"/api/computers/{first['id']}").status_code == 404
        reused = create_computer(client, serial_numbers=["SN1", "SN2"])
        assert len(reused["serial_numbers"]) == 2

    def test_mutations_are_audited(self, client: TestClient) -> None:
        created = create_computer(client)
        client.put(f"/api/computers/{created['id']}", json={"quantity": 3})
        client.delete(f"/api/computers/{created['id']}")

        history = client.get(f"/api/audit-log/computers/{created['id']}").json()["data"]

        assert sorted(entry["action"] for entry in history) == ["create", "delete", "update"]
        update = next(entry for entry in history if entry["action"] == "update")
        assert update["old_values"]["quantity"] == 1
        assert update["new_values"]["quantity"] == 3
        assert update["office"] == "Office 1"

    def test_search_and_counts(self, client: TestClient) -> None:
        create_computer(client)
        create_computer(client, make="Lenovo", model="ThinkPad", quantity=4)

        found = client.get("/api/computers", params={"search": "Think"}).json()
        counts = client.get("/api/computers/counts").json()["data"]

        assert found["count"] == 1
        assert counts == [{"office": "Office 1", "total": 2, "total_quantity": 5}]


class TestErrors:
    """Tests for the error envelope."""

    def test_validation_error(self, client: TestClient) -> None:
        response = client.post("/api/computers", json={"make": "Dell", "quantity": 0})

        body = response.json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["error"] == "Validation failed"
        assert {"model", "office", "quantity"} <= {detail["field"] for detail in body["details"]}

    def test_empty_update_rejected(self, client: TestClient) -> None:
        created = create_computer(client)

        assert client.put(f"/api/computers/{created['id']}", json={}).status_code == 400

    def test_bad_id_rejected(self, client: TestClient) -> None:
        assert client.get("/api/computers/not-a-uuid").status_code == 400

    def test_missing_item(self, client: TestClient) -> None:
        response = client.get("/api/peripherals/8a6f0c5e-0000-4000-8000-000000000001")

        assert response.status_code == 404
        assert response.json()["message"] == "Peripheral not found"

    def test_unknown_route(self, client: TestClient) -> None:
        response = client.get("/api/gadgets")

        assert response.status_code == 404
        assert response.json()["error"] == "Route not found"

    def test_locked_database_is_a_500(self, client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a busy database surfaces as a 500 with the storage label."""
        def locked(self, office=None):
            raise StorageUnavailable("database is locked")

        monkeypatch.setattr(ComputerRepository, "find_all", locked)

        response = client.get("/api/computers")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Storage unavailable",
            "message": "database is locked",
        }

    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json()["status"] == "OK"


class TestCatalogApi:
    """Tests for the makes and models routes."""

    def test_make_rename_propagates(self, client: TestClient) -> None:
        make = client.post("/api/makes", json={"name": "Dell", "category": "computer"}).json()["data"]
        computer = create_computer(client)

        renamed = client.put(f"/api/makes/{make['id']}", json={"name": "Dell Inc", "category": "computer"})

        assert renamed.status_code == 200
        assert client.get(f"/api/computers/{computer['id']}").json()["data"]["make"] == "Dell Inc"

    def test_model_category_mismatch(self, client: TestClient) -> None:
        make = client.post("/api/makes", json={"name": "Brother", "category": "printer"}).json()["data"]

        response = client.post("/api/models", json={"name": "HL", "make_id": make["id"], "category": "computer"})

        assert response.status_code == 400
        assert response.json()["error"] == "Category mismatch"
        assert client.get("/api/models").json()["count"] == 0

    def test_duplicate_make(self, client: TestClient) -> None:
        client.post("/api/makes", json={"name": "Dell", "category": "computer"})

        response = client.post("/api/makes", json={"name": " Dell ", "category": "computer"})

        assert response.status_code == 400
        assert response.json()["error"] == "Duplicate name"

    def test_delete_make_in_use(self, client: TestClient) -> None:
        make = client.post("/api/makes", json={"name": "Dell", "category": "computer"}).json()["data"]
        client.post("/api/models", json={"name": "XPS", "make_id": make["id"], "category": "computer"})

        response = client.delete(f"/api/makes/{make['id']}")

        assert response.status_code == 400
        assert response.json()["error"] == "Foreign key constraint"


class TestRestockApi:
    """Tests for restock routes."""

    def test_lifecycle(self, client: TestClient) -> None:
        payload = {
            "item_category": "printer_items",
            "item_description": "Cyan toner",
            "quantity_requested": 2,
            "office": "Office 2",
            "priority": "high",
            "make_id": "",
        }
        created = client.post("/api/restock-requests", json=payload)
        assert created.status_code == 201
        request_id = created.json()["data"]["id"]

        pending = client.get("/api/restock-requests/pending-priority").json()["data"]
        assert pending == [{"priority": "high", "count": 1}]

        updated = client.put(f"/api/restock-requests/{request_id}", json={"status": "approved"})
        assert updated.json()["data"]["status"] == "approved"
        assert client.get("/api/restock-requests/status-counts").json()["data"] == [
            {"status": "approved", "count": 1}
        ]
        assert client.get("/api/restock-requests", params={"status": "approved"}).json()["count"] == 1


class TestReportsApi:
    """Tests for the report routes."""

    def test_inventory_summary(self, client: TestClient) -> None:
        create_computer(client, quantity=2)
        create_computer(client, status="retired")
        client.post("/api/printer-items", json={"item_type": "Toner", "quantity": 5, "office": "Office 3"})

        data = client.get("/api/reports/inventory-summary").json()["data"]

        assert data["computers"] == [
            {"office": "Office 1", "total_items": 2, "total_quantity": 3, "active_items": 1}
        ]
        assert data["peripherals"] == []
        assert {row["category"] for row in data["totals"]} == {"computers", "printer_items"}

    def test_other_reports(self, client: TestClient) -> None:
        create_computer(client)

        for path in ("restock-requests", "activity", "office-comparison"):
            response = client.get(f"/api/reports/{path}")
            assert response.status_code == 200
            assert response.json()["success"] is True

        activity = client.get("/api/reports/activity").json()["data"]
        assert activity["summary"][0]["table_name"] == "computers"

    def test_audit_windows(self, client: TestClient) -> None:
        create_computer(client)

        assert client.get("/api/audit-log/recent").json()["count"] == 1
        assert client.get("/api/audit-log/action-counts").json()["data"] == [{"action": "create", "count": 1}]
        assert client.get("/api/audit-log/table-activity", params={"days": 0}).status_code == 400
