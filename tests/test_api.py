import json
import pytest
from datetime import timedelta

from tests.conftest import FIXED_NOW

API = "/api/v1"
WALLET = "0x0000000100000000000000000000000000000000"


def drug_payload(batch_number: str = "BATCH-TEST01", expiry_days: int = 730) -> dict:
    return {
        "batch_number": batch_number,
        "drug_name": "Test Paracetamol 500mg",
        "manufacturer": "Test Pharma Ltd.",
        "composition": "Paracetamol, Starch",
        "production_date": (FIXED_NOW - timedelta(days=10)).isoformat(),
        "expiry_date": (FIXED_NOW + timedelta(days=expiry_days)).isoformat(),
        "price": 100,
    }


@pytest.fixture
def created_drug(client, manufacturer_headers) -> dict:
    response = client.post(f"{API}/drugs", json=drug_payload(), headers=manufacturer_headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.integration
def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.auth
@pytest.mark.integration
class TestAuthEndpoints:

    def test_login_and_me(self, client, demo_users) -> None:
        response = client.post(f"{API}/auth/login", json={"username": "pharmacy", "password": "pharmacy123"})

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "pharmacy"
        assert data["user"]["permissions"] == ["sell_drug"]

        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json()["username"] == "pharmacy"
        assert me.json()["kind"] == "password"

    def test_login_invalid_credentials(self, client, demo_users) -> None:
        response = client.post(f"{API}/auth/login", json={"username": "pharmacy", "password": "nope1"})

        assert response.status_code == 401
        body = response.json()
        assert body["message"] == "Invalid username or password"
        assert body["error_code"] == "AUTHENTICATION_ERROR"

    def test_me_requires_token(self, client) -> None:
        response = client.get(f"{API}/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Not authenticated"

    def test_register(self, client, demo_users) -> None:
        response = client.post(f"{API}/auth/register", json={
            "username": "corner",
            "email": "corner@shop.in",
            "password": "secret1",
            "name": "Corner Chemist",
            "role": "pharmacy",
        })
        assert response.status_code == 201
        assert response.json()["user"]["email"] == "corner@shop.in"

        duplicate = client.post(f"{API}/auth/register", json={
            "username": "Corner",
            "email": "other@shop.in",
            "password": "secret1",
            "name": "Corner Chemist",
            "role": "pharmacy",
        })
        assert duplicate.status_code == 409

    def test_register_admin_forbidden(self, client, demo_users) -> None:
        response = client.post(f"{API}/auth/register", json={
            "username": "root",
            "email": "root@shop.in",
            "password": "secret1",
            "name": "Root",
            "role": "admin",
        })
        assert response.status_code == 403

    def test_wallet_login(self, client) -> None:
        response = client.post(f"{API}/auth/wallet-login", json={"address": WALLET})

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["kind"] == "wallet"
        assert user["role"] == "manufacturer"
        assert user["name"] == "User 0x000000"

    def test_wallet_login_rejects_bad_address(self, client) -> None:
        response = client.post(f"{API}/auth/wallet-login", json={"address": "0x1234"})

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_WALLET_ADDRESS"

    def test_logout(self, client, customer_headers) -> None:
        response = client.post(f"{API}/auth/logout", headers=customer_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        assert client.get(f"{API}/auth/me", headers=customer_headers).status_code == 401

    def test_demo_credentials_are_public(self, client) -> None:
        response = client.get(f"{API}/auth/demo-credentials")

        assert response.status_code == 200
        assert len(response.json()) == 5

    def test_users_admin_only(self, client, admin_headers, customer_headers) -> None:
        assert client.get(f"{API}/auth/users", headers=customer_headers).status_code == 403

        response = client.get(f"{API}/auth/users", headers=admin_headers)
        assert response.status_code == 200
        assert {u["username"] for u in response.json()} == {
            "admin", "manufacturer", "distributor", "pharmacy", "customer"
        }
        assert all("password_hash" not in u for u in response.json())


@pytest.mark.integration
class TestDrugEndpoints:

    def test_create_requires_permission(self, client, customer_headers) -> None:
        response = client.post(f"{API}/drugs", json=drug_payload(), headers=customer_headers)

        assert response.status_code == 403
        assert response.json()["details"]["action"] == "create_drug"

    def test_create_and_get(self, client, created_drug, customer_headers) -> None:
        assert created_drug["current_status"] == "manufactured"
        assert created_drug["history"][0]["type"] == "manufactured"

        response = client.get(f"{API}/drugs/BATCH-TEST01", headers=customer_headers)
        assert response.status_code == 200
        assert response.json()["drug_name"] == "Test Paracetamol 500mg"

    def test_get_missing(self, client, customer_headers) -> None:
        response = client.get(f"{API}/drugs/BATCH-NOPE", headers=customer_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "DRUG_NOT_FOUND"
        assert response.json()["message"] == "Drug not found"

    def test_transfer_and_sell(
        self, client, created_drug, distributor_headers, pharmacy_headers
    ) -> None:
        transfer = client.post(
            f"{API}/drugs/BATCH-TEST01/transfer",
            json={"from_entity": "MFG", "to_entity": "DIST", "location": "Warehouse A"},
            headers=distributor_headers,
        )
        assert transfer.status_code == 200
        assert transfer.json()["current_status"] == "distributed"
        assert len(transfer.json()["history"]) == 2

        denied = client.post(
            f"{API}/drugs/BATCH-TEST01/sell",
            json={"pharmacy": "City Pharmacy", "price": 90, "location": "Mumbai"},
            headers=distributor_headers,
        )
        assert denied.status_code == 403

        sale = client.post(
            f"{API}/drugs/BATCH-TEST01/sell",
            json={"pharmacy": "City Pharmacy", "price": 90, "location": "Mumbai"},
            headers=pharmacy_headers,
        )
        assert sale.status_code == 200
        history = sale.json()["history"]
        assert [e["type"] for e in history] == ["manufactured", "transferred", "sold"]
        assert history[-1]["price"] == 90

    def test_list_and_search(self, client, created_drug, customer_headers) -> None:
        response = client.get(f"{API}/drugs", params={"q": "paracetamol"}, headers=customer_headers)
        assert response.json()["total"] == 1

        response = client.get(f"{API}/drugs", params={"status": "sold"}, headers=customer_headers)
        assert response.json()["total"] == 0

    def test_statistics(self, client, created_drug, customer_headers) -> None:
        response = client.get(f"{API}/drugs/statistics", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["manufactured"] == 1

    def test_price_quote(self, client, manufacturer_headers) -> None:
        client.post(f"{API}/drugs", json=drug_payload(expiry_days=45), headers=manufacturer_headers)
        response = client.get(f"{API}/drugs/BATCH-TEST01/price", headers=manufacturer_headers)

        assert response.json()["discounted_price"] == 70
        assert response.json()["days_until_expiry"] == 45

    def test_export_and_sweep_admin_only(self, client, created_drug, admin_headers, manufacturer_headers) -> None:
        assert client.get(f"{API}/drugs/export", headers=manufacturer_headers).status_code == 403

        export = client.get(f"{API}/drugs/export", headers=admin_headers)
        assert export.status_code == 200
        assert export.headers["content-type"].startswith("text/csv")
        assert "BATCH-TEST01" in export.text

        sweep = client.post(f"{API}/drugs/expiry-sweep", headers=admin_headers)
        assert sweep.status_code == 200
        assert sweep.json() == {"expired": [], "count": 0}


@pytest.mark.integration
class TestTrackingEndpoints:

    @pytest.fixture
    def qr(self, client, created_drug, manufacturer_headers) -> dict:
        response = client.post(f"{API}/tracking/BATCH-TEST01/qr", headers=manufacturer_headers)
        assert response.status_code == 201, response.text
        return response.json()

    def test_issue_qr(self, client, qr, manufacturer_headers) -> None:
        assert json.loads(qr["qr_code_data"])["batchNumber"] == "BATCH-TEST01"
        assert qr["image"].startswith("data:image/png;base64,")
        assert qr["filename"] == "QR_BATCH-TEST01_standard.png"

        again = client.post(f"{API}/tracking/BATCH-TEST01/qr", headers=manufacturer_headers)
        assert again.status_code == 409

    def test_issue_qr_requires_permission(self, client, created_drug, pharmacy_headers) -> None:
        response = client.post(f"{API}/tracking/BATCH-TEST01/qr", headers=pharmacy_headers)
        assert response.status_code == 403

    def test_download_png(self, client, qr, customer_headers) -> None:
        response = client.get(
            f"{API}/tracking/BATCH-TEST01/qr.png", params={"printable": True}, headers=customer_headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert "QR_BATCH-TEST01_printable.png" in response.headers["content-disposition"]

    def test_download_png_before_issue(self, client, created_drug, customer_headers) -> None:
        response = client.get(f"{API}/tracking/BATCH-TEST01/qr.png", headers=customer_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "QR_NOT_ISSUED"

    def test_verify(self, client, qr, pharmacy_headers) -> None:
        valid = client.post(f"{API}/tracking/verify", json={"payload": qr["qr_code_data"]}, headers=pharmacy_headers)
        assert valid.json()["valid"] is True
        assert valid.json()["drug"]["batch_number"] == "BATCH-TEST01"

        tampered = qr["qr_code_data"].replace("Test Pharma", "Fake Pharma")
        invalid = client.post(f"{API}/tracking/verify", json={"payload": tampered}, headers=pharmacy_headers)
        assert invalid.json() == {"valid": False, "batch_number": None, "drug": None}

    def test_scan_and_history(self, client, qr, customer_headers) -> None:
        first = client.post(f"{API}/tracking/scan", json={"payload": qr["qr_code_data"]}, headers=customer_headers)
        assert first.status_code == 200
        assert first.json()["duplicate"] is False
        assert first.json()["scan"]["scanned_by"] == "customer"

        second = client.post(f"{API}/tracking/scan", json={"payload": qr["qr_code_data"]}, headers=customer_headers)
        assert second.json()["duplicate"] is True
        assert second.json()["scan"] is None

        history = client.get(f"{API}/tracking/scans", headers=customer_headers)
        assert [s["batch_number"] for s in history.json()] == ["BATCH-TEST01"]

        cleared = client.delete(f"{API}/tracking/scans", headers=customer_headers)
        assert cleared.json() == {"cleared": 1}

    def test_scan_rejects_bad_payload(self, client, customer_headers) -> None:
        response = client.post(f"{API}/tracking/scan", json={"payload": "{}"}, headers=customer_headers)

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_QR_CODE"

    def test_scan_requires_permission(self, client, qr, manufacturer_headers) -> None:
        response = client.post(f"{API}/tracking/scan", json={"payload": qr["qr_code_data"]}, headers=manufacturer_headers)
        assert response.status_code == 403


@pytest.mark.integration
class TestImportEndpoints:

    def test_template_download(self, client) -> None:
        response = client.get(f"{API}/imports/templates/sales")

        assert response.status_code == 200
        assert response.text.startswith('"batchNumber","pharmacy","saleDate","price","location"')
        assert 'filename="sale_template.csv"' in response.headers["content-disposition"]

    def test_unknown_template(self, client) -> None:
        assert client.get(f"{API}/imports/templates/recalls").status_code == 404

    def test_upload_drugs(self, client, manufacturer_headers) -> None:
        content = (
            "batchNumber,drugName,manufacturer,composition,productionDate\n"
            "BATCH-UP1,Aspirin 100mg,PharmaCorp Ltd.,Acetylsalicylic acid,2024-01-15\n"
            "BATCH-UP2,,PharmaCorp Ltd.,Acetylsalicylic acid,2024-01-15\n"
        )
        response = client.post(
            f"{API}/imports/drugs",
            files={"file": ("drugs.csv", content.encode("utf-8"), "text/csv")},
            headers=manufacturer_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["drugs_imported"] == 1
        assert data["errors"] == ["Row 3: Missing required fields"]

    def test_upload_requires_matching_permission(self, client, pharmacy_headers) -> None:
        response = client.post(
            f"{API}/imports/drugs",
            files={"file": ("drugs.csv", b"drugName\nX\n", "text/csv")},
            headers=pharmacy_headers,
        )
        assert response.status_code == 403

    def test_upload_unknown_kind(self, client, admin_headers) -> None:
        response = client.post(
            f"{API}/imports/recalls",
            files={"file": ("x.csv", b"a\n1\n", "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 422


@pytest.mark.integration
class TestOperationEndpoints:

    def test_customer_sees_only_own_orders(self, client, auth_headers, db_session) -> None:
        from pharmatrack.domain.operations.seed import seed_operations
        seed_operations(db_session, now=FIXED_NOW)

        customer = client.get(f"{API}/orders", headers=auth_headers("customer"))
        assert len(customer.json()) == 3

        pharmacy = client.get(f"{API}/orders", params={"pharmacy_id": "pharm-001"}, headers=auth_headers("pharmacy"))
        assert [o["id"] for o in pharmacy.json()] == ["ORD-001"]

    def test_order_flow(self, client, customer_headers, pharmacy_headers) -> None:
        created = client.post(f"{API}/orders", json={
            "customer_id": "cust-001",
            "customer_name": "Customer User",
            "customer_email": "customer@pharmatrackindia.com",
            "pharmacy_id": "pharm-001",
            "pharmacy_name": "Apollo Pharmacy",
            "drug_batch_number": "BATCH-MED001",
            "drug_name": "Paracetamol 500mg",
            "quantity": 2,
            "total_price": 50,
        }, headers=customer_headers)
        assert created.status_code == 201
        order_id = created.json()["id"]
        assert created.json()["status"] == "pending"

        denied = client.patch(f"{API}/orders/{order_id}/status", json={"status": "confirmed"}, headers=customer_headers)
        assert denied.status_code == 403

        updated = client.patch(
            f"{API}/orders/{order_id}/status",
            json={"status": "confirmed", "notes": "Packed"},
            headers=pharmacy_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "confirmed"
        assert updated.json()["notes"] == "Packed"

    def test_update_missing_order(self, client, pharmacy_headers) -> None:
        response = client.patch(f"{API}/orders/ORD-404/status", json={"status": "confirmed"}, headers=pharmacy_headers)
        assert response.status_code == 404

    def test_inventory(self, client, pharmacy_headers, customer_headers) -> None:
        created = client.post(f"{API}/inventory", json={
            "drug_batch_number": "BATCH-MED001",
            "drug_name": "Paracetamol 500mg",
            "location": "pharmacy",
            "location_id": "pharm-001",
            "location_name": "Apollo Pharmacy",
            "quantity": 100,
            "reserved_quantity": 5,
            "unit_price": 25,
            "expiry_date": (FIXED_NOW + timedelta(days=365)).isoformat(),
        }, headers=pharmacy_headers)
        assert created.status_code == 201
        assert created.json()["available_quantity"] == 95

        item_id = created.json()["id"]
        updated = client.patch(f"{API}/inventory/{item_id}", json={"reserved_quantity": 20}, headers=pharmacy_headers)
        assert updated.json()["available_quantity"] == 80

        found = client.get(f"{API}/inventory", params={"search": "apollo"}, headers=customer_headers)
        assert [i["id"] for i in found.json()] == [item_id]

        assert client.post(f"{API}/inventory", json={}, headers=customer_headers).status_code == 403

    def test_production_requests(self, client, distributor_headers, manufacturer_headers) -> None:
        created = client.post(f"{API}/production-requests", json={
            "distributor_id": "dist-001",
            "distributor_name": "Pharma Distribution Ltd.",
            "drug_name": "Amoxicillin 500mg",
            "requested_quantity": 1000,
        }, headers=distributor_headers)
        assert created.status_code == 201

        completed = client.patch(
            f"{API}/production-requests/{created.json()['id']}/status",
            json={"status": "completed"},
            headers=manufacturer_headers,
        )
        assert completed.json()["status"] == "completed"
        assert completed.json()["actual_completion_date"] is not None

    def test_quality_checks_and_deliveries(self, client, manufacturer_headers, pharmacy_headers) -> None:
        check = client.post(f"{API}/quality-checks", json={
            "drug_batch_number": "BATCH-MED001",
            "manufacturer_id": "mfg-001",
            "manufacturer_name": "Pharma Manufacturing Ltd.",
            "check_date": FIXED_NOW.isoformat(),
            "quality_score": 95,
            "is_passed": True,
            "inspector_name": "Dr. Rajesh Kumar",
        }, headers=manufacturer_headers)
        assert check.status_code == 201

        listed = client.get(f"{API}/quality-checks", params={"drug_batch_number": "BATCH-MED001"}, headers=pharmacy_headers)
        assert len(listed.json()) == 1

        delivery = client.post(f"{API}/deliveries", json={
            "order_id": "ORD-001",
            "from_location": "pharm-001",
            "to_location": "cust-001",
            "from_location_name": "Apollo Pharmacy",
            "to_location_name": "Customer User",
            "drug_batch_number": "BATCH-MED001",
            "drug_name": "Paracetamol 500mg",
            "quantity": 2,
            "scheduled_date": (FIXED_NOW + timedelta(days=3)).isoformat(),
        }, headers=pharmacy_headers)
        assert delivery.status_code == 201
        assert delivery.json()["tracking_number"].startswith("TRK-")

        delivered = client.patch(
            f"{API}/deliveries/{delivery.json()['id']}/status",
            json={"status": "delivered"},
            headers=pharmacy_headers,
        )
        assert delivered.json()["actual_date"] is not None
