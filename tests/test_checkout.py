import json

from gamestore.models import User
from gamestore.utils.token import create_access_token
from tests.conftest import make_order


CHECKOUT = {
    "billing_info": {
        "email": "buyer@example.com",
        "firstName": "Lucia",
        "lastName": "Perez",
        "phone": "+54 11 5555 5555",
        "city": "Buenos Aires",
    },
    "items": [
        {"product_id": "p-1", "product_name": "Elden Ring", "price": 10, "quantity": 1},
        {"product_id": "p-2", "product_name": "Hades", "price": 5, "quantity": 2},
    ],
    "customer_notes": "Enviar a mi correo",
}


def test_guest_checkout_creates_draft_order(client):
    r = client.post("/checkout/orders", json=CHECKOUT)

    assert r.status_code == 201
    body = r.json()
    assert body["order_number"].startswith("VG")
    assert body["status"] == "draft"
    assert body["payment_status"] == "pending"
    assert body["total"] == 20

    detail = client.get(f"/orders/{body['order_number']}").json()
    assert [(i["product_name"], i["quantity"]) for i in detail["items"]] == [
        ("Elden Ring", 1),
        ("Hades", 2),
    ]
    assert all(i["digital_content"] is None for i in detail["items"])


def test_checkout_rejects_empty_cart(client):
    r = client.post("/checkout/orders", json={**CHECKOUT, "items": []})

    assert r.status_code == 400
    assert r.json()["detail"] == "Cart is empty"


def test_checkout_then_pay_then_deliver(client, stripe_gateway):
    order_number = client.post("/checkout/orders", json=CHECKOUT).json()["order_number"]
    order_id = client.get(f"/orders/{order_number}").json()["order_id"]

    client.post("/payments/create-payment", json={"orderId": order_id})
    stripe_gateway.mark_paid("cs_test_1")
    client.post("/payments/verify-payment", json={"sessionId": "cs_test_1"})

    detail = client.get(f"/orders/{order_number}", params={"session_id": "cs_test_1"}).json()
    assert detail["status"] == "paid"
    assert all(i["digital_content"]["digital_code"] for i in detail["items"])

    anonymous = client.get(f"/orders/{order_number}").json()
    assert anonymous["status"] == "paid"
    assert all(i["digital_content"] is None for i in anonymous["items"])


def test_unknown_order_number(client):
    assert client.get("/orders/VG0").status_code == 404


def test_my_orders(client, session, user, auth_headers):
    make_order(session, order_number="ORD-1", user_id=user.id)
    make_order(session, order_number="ORD-2", user_id=user.id)
    make_order(session, order_number="ORD-3")

    r = client.get("/orders/mine", headers=auth_headers)

    assert r.status_code == 200
    data = r.json()
    assert data["total_items"] == 2
    assert {o["order_number"] for o in data["results"]} == {"ORD-1", "ORD-2"}


def test_my_orders_requires_login(client):
    assert client.get("/orders/mine").status_code == 401


def test_timeline(client, session, user, auth_headers):
    r = client.post("/checkout/orders", json=CHECKOUT, headers=auth_headers)
    order_number = r.json()["order_number"]

    events = client.get(f"/orders/{order_number}/timeline", headers=auth_headers).json()
    assert [e["event_type"] for e in events] == ["order_placed"]
    assert events[0]["created_by"] == "gamer@example.com"


def test_timeline_of_someone_else(client, session, auth_headers):
    make_order(session, order_number="ORD-9")

    r = client.get("/orders/ORD-9/timeline", headers=auth_headers)
    assert r.status_code == 403


def _delivered_order(session, **kwargs):
    order = make_order(session, **kwargs)
    for item in order.items:
        item.digital_content = json.dumps({
            "product_name": item.product_name,
            "digital_code": f"VG-1-{item.id:09d}",
            "instructions": "Activa este código en tu plataforma de gaming correspondiente.",
        })
        session.add(item)
    order.status = "paid"
    order.payment_status = "paid"
    session.add(order)
    session.commit()
    return order


def _codes(detail):
    return [i["digital_content"] for i in detail["items"]]


def test_order_owner_sees_codes(client, session, user, auth_headers):
    _delivered_order(session, order_number="ORD-7", user_id=user.id, payment_id="cs_7")

    detail = client.get("/orders/ORD-7", headers=auth_headers).json()

    assert [c["digital_code"] for c in _codes(detail)] == ["VG-1-000000001", "VG-1-000000002"]


def test_codes_hidden_from_other_users(client, session, user, auth_headers):
    other = User(email="other@example.com", first_name="Tomas", last_name="Diaz")
    session.add(other)
    session.commit()
    session.refresh(other)
    _delivered_order(session, order_number="ORD-7", user_id=other.id, payment_id="cs_7")

    detail = client.get("/orders/ORD-7", headers=auth_headers).json()

    assert detail["status"] == "paid"
    assert _codes(detail) == [None, None]


def test_admin_sees_codes(client, session, settings):
    admin = User(email="admin@example.com", first_name="Ana", last_name="Ruiz", role="admin")
    session.add(admin)
    session.commit()
    session.refresh(admin)
    _delivered_order(session, order_number="ORD-7", payment_id="cs_7")

    token = create_access_token({"sub": str(admin.id)}, settings)
    detail = client.get("/orders/ORD-7", headers={"Authorization": f"Bearer {token}"}).json()

    assert all(c["digital_code"] for c in _codes(detail))


def test_guest_order_codes_require_session_id(client, session):
    _delivered_order(session, order_number="ORD-7", payment_id="cs_7")

    assert _codes(client.get("/orders/ORD-7").json()) == [None, None]
    assert _codes(client.get("/orders/ORD-7", params={"session_id": "cs_other"}).json()) == [None, None]

    detail = client.get("/orders/ORD-7", params={"session_id": "cs_7"}).json()
    assert all(c["digital_code"] for c in _codes(detail))
