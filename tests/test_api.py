from decimal import Decimal

from fastapi.testclient import TestClient

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.main import app
from feedtrade.models.user import UserRole
from feedtrade.services import user_service
from tests.conftest import TODAY

API = "/api/v1"


def _contact(client, name, type):
    resp = client.post(f"{API}/contacts", json={"name": name, "type": type})
    assert resp.status_code == 201
    return resp.json()


def _trade(client):
    customer = _contact(client, "Ahmet Çiftlik", "customer")
    supplier = _contact(client, "Konya Yem", "supplier")
    sale = client.post(f"{API}/sales", json={
        "contact_id": customer["id"], "quantity": "5000", "unit_price": "10",
        "sale_date": TODAY.isoformat(), "status": "confirmed",
    }).json()
    purchase = client.post(f"{API}/purchases", json={
        "contact_id": supplier["id"], "quantity": "5000", "unit_price": "8",
        "purchase_date": TODAY.isoformat(), "status": "confirmed",
    }).json()
    return customer, supplier, sale, purchase


def test_root(client):
    assert client.get("/").status_code == 200


def test_contact_crud(client):
    contact = _contact(client, "Mehmet Besi", "customer")
    assert Decimal(contact["account"]["balance"]) == Decimal("0")

    resp = client.put(f"{API}/contacts/{contact['id']}", json={"city": "Aksaray"})
    assert resp.status_code == 200
    assert resp.json()["city"] == "Aksaray"

    listing = client.get(f"{API}/contacts", params={"type": "customer"}).json()
    assert listing["total"] == 1

    assert client.delete(f"{API}/contacts/{contact['id']}").status_code == 200
    missing = client.get(f"{API}/contacts/{contact['id']}")
    assert missing.status_code == 404
    assert missing.json()["success"] is False


def test_validation_errors_use_common_shape(client):
    resp = client.post(f"{API}/contacts", json={"name": "", "type": "customer"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["message"] == "Validation error"
    assert body["status_code"] == 422


def test_delivery_flow_through_api(client):
    customer, supplier, sale, purchase = _trade(client)

    resp = client.post(f"{API}/deliveries", json={
        "sale_id": sale["id"], "purchase_id": purchase["id"], "delivery_date": TODAY.isoformat(),
        "net_weight": "1000", "freight_cost": "200", "freight_payer": "customer",
    })
    assert resp.status_code == 201
    delivery = resp.json()

    lines = client.get(f"{API}/deliveries/{delivery['id']}/transactions").json()
    assert sorted(Decimal(line["amount"]) for line in lines) == [Decimal("8000"), Decimal("9800")]

    account = client.get(f"{API}/accounts/by-contact/{customer['id']}").json()
    assert Decimal(account["balance"]) == Decimal("9800")

    statement = client.get(f"{API}/accounts/{account['id']}/statement").json()
    assert Decimal(statement["closing_balance"]) == Decimal("9800")

    ret = client.post(f"{API}/deliveries/{delivery['id']}/returns", json={"returned_kg": "100"})
    assert ret.status_code == 201
    assert ret.json()["is_return"] is True

    too_much = client.post(f"{API}/deliveries/{delivery['id']}/returns", json={"returned_kg": "5000"})
    assert too_much.status_code == 400

    assert client.delete(f"{API}/deliveries/{delivery['id']}").status_code == 200
    trash = client.get(f"{API}/trash").json()
    assert [item["id"] for item in trash["items"]] == [delivery["id"]]

    restored = client.post(f"{API}/trash/deliveries/{delivery['id']}/restore")
    assert restored.status_code == 200
    account = client.get(f"{API}/accounts/by-contact/{customer['id']}").json()
    assert Decimal(account["balance"]) == Decimal("8820")


def test_sale_cancel_and_reassign_endpoints(client):
    customer, supplier, sale, purchase = _trade(client)
    other = _contact(client, "Mehmet Besi", "customer")
    client.post(f"{API}/deliveries", json={
        "sale_id": sale["id"], "purchase_id": purchase["id"],
        "delivery_date": TODAY.isoformat(), "net_weight": "1000",
    })

    resp = client.post(f"{API}/sales/{sale['id']}/reassign", json={"new_contact_id": other["id"]})
    assert resp.status_code == 200
    assert resp.json()["contact_id"] == other["id"]

    resp = client.post(f"{API}/sales/{sale['id']}/cancel", json={"reason": "Fiyat anlaşmazlığı"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    again = client.post(f"{API}/sales/{sale['id']}/cancel", json={})
    assert again.status_code == 400

    check = client.get(f"{API}/accounts/balance-check").json()
    assert check["drifted"] == []


def test_payment_and_check_endpoints(client):
    customer = _contact(client, "Ahmet Çiftlik", "customer")
    supplier = _contact(client, "Konya Yem", "supplier")

    resp = client.post(f"{API}/payments", json={
        "contact_id": customer["id"], "direction": "inbound", "method": "check",
        "amount": "2500.00", "payment_date": TODAY.isoformat(), "due_date": "2025-05-14",
        "check_no": "778899",
    })
    assert resp.status_code == 201
    payment = resp.json()

    checks = client.get(f"{API}/checks", params={"contact_id": customer["id"]}).json()
    assert checks["total"] == 1
    check = checks["checks"][0]
    assert check["payment_id"] == payment["id"]

    bad = client.patch(f"{API}/checks/{check['id']}/status", json={"status": "cleared"})
    assert bad.status_code == 400

    endorsed = client.post(f"{API}/checks/{check['id']}/endorse", json={"target_contact_id": supplier["id"]})
    assert endorsed.status_code == 200
    assert endorsed.json()["original"]["status"] == "endorsed"
    assert endorsed.json()["endorsed"]["direction"] == "given"

    refused = client.delete(f"{API}/payments/{payment['id']}")
    assert refused.status_code == 400
    assert "endorsed" in refused.json()["detail"]

    assert client.get(f"{API}/payments/PAY-NOPE").status_code == 404


def test_payment_amount_precision(client):
    customer = _contact(client, "Ahmet Çiftlik", "customer")
    resp = client.post(f"{API}/payments", json={
        "contact_id": customer["id"], "direction": "inbound", "method": "cash",
        "amount": "10.005", "payment_date": TODAY.isoformat(),
    })
    assert resp.status_code == 422


def test_carrier_endpoints(client):
    carrier = client.post(f"{API}/carriers", json={"name": "Konya Nakliyat"}).json()

    vehicle = client.put(f"{API}/carriers/vehicles", json={"plate": "42 ABC 123", "carrier_id": carrier["id"]})
    assert vehicle.status_code == 200
    assert client.get(f"{API}/carriers/vehicles").json()["total"] == 1

    payment = client.post(f"{API}/carriers/{carrier['id']}/payments", json={
        "amount": "500", "transaction_date": TODAY.isoformat(), "payment_method": "cash",
    })
    assert payment.status_code == 201

    balance = client.get(f"{API}/carriers/{carrier['id']}/balance").json()
    assert Decimal(balance["balance"]) == Decimal("-500")

    tx_id = payment.json()["id"]
    assert client.delete(f"{API}/carriers/{carrier['id']}/payments/{tx_id}").status_code == 200
    assert client.get(f"{API}/carriers/{carrier['id']}/transactions").json()["total"] == 0

    assert client.delete(f"{API}/carriers/{carrier['id']}").json()["is_active"] is False
    assert client.get(f"{API}/carriers/CAR-NOPE/balance").status_code == 404


def test_annotations(client):
    path = f"{API}/annotations/deliveries/DLV-12345678"
    resp = client.put(f"{path}/whatsapp_sent", json={"value": "2025-03-14"})
    assert resp.status_code == 200
    resp = client.put(f"{path}/whatsapp_sent", json={"value": "2025-03-15"})
    assert resp.json()["value"] == "2025-03-15"

    listing = client.get(path).json()
    assert listing["total"] == 1

    assert client.delete(f"{path}/whatsapp_sent").status_code == 200
    assert client.delete(f"{path}/whatsapp_sent").status_code == 404


def test_audit_endpoint(client):
    contact = _contact(client, "Ahmet Çiftlik", "customer")
    logs = client.get(f"{API}/audit-logs", params={"record_id": contact["id"]}).json()
    assert logs["total"] == 1
    assert logs["logs"][0]["action"] == "create"


def test_staff_cannot_purge_trash_or_recalculate(db, client):
    staff = user_service.create_user(db, email="staff@example.com", password="secret123",
                                     name="Staff", role=UserRole.staff)
    app.dependency_overrides[get_current_active_user] = lambda: staff

    assert client.post(f"{API}/accounts/recalculate").status_code == 403
    assert client.delete(f"{API}/trash/deliveries/DLV-12345678").status_code == 403
    assert client.get(f"{API}/trash").status_code == 200


def test_login_and_token_flow(db, owner):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as anon:
            assert anon.get(f"{API}/users/me").status_code in (401, 403)

            bad = anon.post(f"{API}/auth/login", json={"email": owner.email, "password": "wrong-pass"})
            assert bad.status_code == 401

            resp = anon.post(f"{API}/auth/login", json={"email": owner.email, "password": "secret123"})
            assert resp.status_code == 200
            token = resp.json()["access_token"]

            me = anon.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
            assert me.status_code == 200
            assert me.json()["email"] == owner.email

            form = anon.post(f"{API}/auth/token", data={"username": owner.email, "password": "secret123"})
            assert form.status_code == 200

            again = anon.post(f"{API}/auth/register", json={
                "email": "new@example.com", "password": "secret123", "name": "New",
            })
            assert again.status_code == 403
    finally:
        app.dependency_overrides.clear()
