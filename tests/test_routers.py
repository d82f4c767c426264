import json
import uuid

import httpx
from fastapi.testclient import TestClient

from app.core.session_registry import SessionRegistry
from app.integrations.otp.client import OtpApiClient
from app.integrations.pricing.client import PricingApiClient
from app.main import app

OTP_CODE = "246810"


def _unreachable(request):
    raise httpx.ConnectError("connection refused", request=request)


def _otp_provider(request):
    if request.url.path.endswith("/verify-checkout-otp/") and json.loads(request.content)["otp"] != OTP_CODE:
        return httpx.Response(400, json={"message": "Invalid OTP. Please try again."})
    return httpx.Response(200, json={"success": True})


# Pricing runs on its fallback; the OTP provider answers and accepts OTP_CODE
_down = httpx.MockTransport(_unreachable)
app.state.session_registry = SessionRegistry(
    PricingApiClient(transport=_down),
    OtpApiClient(transport=httpx.MockTransport(_otp_provider)),
)

client = TestClient(app)

ADDRESS = {"lat": 43.6487, "lng": -79.3817, "address": "100 King St W", "city": "Toronto"}


def _session() -> dict:
    return {"X-Session-Id": f"test-{uuid.uuid4().hex}"}


def _checkout_to_payment(headers: dict, phone="+15551234567", code=OTP_CODE, using_fallback=False) -> dict:
    assert client.post("/api/checkout/client/address", json={"delivery_address": ADDRESS}, headers=headers).json()["ok"]
    client.patch(
        "/api/checkout/client/details",
        json={"name": "Ana Lima", "email": "ana@example.com", "phone": phone},
        headers=headers,
    )
    assert client.post("/api/checkout/client/details/submit", headers=headers).json()["ok"]
    sent = client.post("/api/checkout/client/otp/send", headers=headers).json()
    assert sent["ok"] and sent["state"]["using_fallback"] is using_fallback
    verified = client.post("/api/checkout/client/otp/verify", json={"otp": code}, headers=headers).json()
    assert verified["ok"], verified
    assert verified["state"]["current_step"] == "payment"
    return verified["state"]


def test_catalog_lists_and_quotes_products():
    resp = client.get("/api/catalog/public/products", params={"category": "beverages"})
    assert resp.status_code == 200
    assert {p["id"] for p in resp.json()} == {"p10", "p11"}

    options = client.get("/api/catalog/public/products/p10/options").json()
    assert options["default_customization"]["selections"] == {"c13": "c13-1", "c14": "c14-2"}

    quote = client.post("/api/catalog/public/products/p10/price", json={"selections": {"c13": "c13-2", "c14": "c14-3"}})
    assert quote.status_code == 200
    assert quote.json()["unit_price"] == "7.48"
    assert quote.json()["valid"] is True

    assert client.get("/api/catalog/public/products/nope/options").status_code == 404


def test_cart_requires_a_session_id():
    assert client.get("/api/cart/client").status_code == 422


def test_cart_lines_and_calculation():
    headers = _session()

    soup = client.post("/api/cart/client/items", json={"product_id": "p2"}, headers=headers)
    assert soup.status_code == 201
    lemonade = client.post("/api/cart/client/items", json={"product_id": "p10"}, headers=headers)
    assert lemonade.json()["price"] == "4.99"
    assert lemonade.json()["customization"]["selections"] == {"c13": "c13-1", "c14": "c14-2"}

    calc = client.post("/api/cart/client/calculate", headers=headers).json()
    assert calc["calculation"]["subtotal"] == "13.98"
    assert calc["calculation"]["total"] == "26.76"
    assert calc["calculation"]["delivery_fee"]["amount"] == "6.48"
    assert calc["has_small_order_fee"] is True
    assert calc["breakdown"]["total"]["formatted"] == "$26.76"

    item_id = soup.json()["id"]
    updated = client.patch(f"/api/cart/client/items/{item_id}", json={"quantity": 3}, headers=headers)
    assert updated.json()["total_price"] == "26.97"

    cart = client.post(f"/api/cart/client/items/{item_id}/decrement", headers=headers).json()
    assert cart["total_item_count"] == 3
    assert cart["subtotal"] == "22.97"

    assert client.get("/api/cart/client", headers=_session()).json()["items"] == []

    cleared = client.delete("/api/cart/client", headers=headers).json()
    assert cleared["items"] == []
    empty_calc = client.post("/api/cart/client/calculate", headers=headers).json()
    assert empty_calc["calculation"] is None


def test_cart_rejects_unknown_products_and_bad_selections():
    headers = _session()
    assert client.post("/api/cart/client/items", json={"product_id": "p999"}, headers=headers).status_code == 404

    resp = client.post(
        "/api/cart/client/items",
        json={"product_id": "p10", "selections": {"c14": "c14-9"}},
        headers=headers,
    )
    assert resp.status_code == 422
    assert "c14" in resp.json()["detail"]
    assert client.delete("/api/cart/client/items/missing", headers=headers).status_code == 404


def test_checkout_flow_places_an_order():
    headers = _session()
    client.post("/api/cart/client/items", json={"product_id": "p2", "quantity": 2}, headers=headers)

    state = _checkout_to_payment(headers)
    token = state["super_token"]

    placed = client.post("/api/checkout/client/order", headers=headers).json()
    assert placed["ok"] is True
    assert placed["state"]["current_step"] == "success"
    order = placed["state"]["order"]
    assert order["order_number"].startswith("ME")
    assert order["pricing"]["subtotal"] == "17.98"

    mine = client.get("/api/orders/client/", headers={"X-Super-Token": token})
    assert [o["id"] for o in mine.json()] == [order["id"]]
    detail = client.get(f"/api/orders/client/{order['id']}", headers={"X-Super-Token": token})
    assert detail.json()["status"] == "pending"

    assert client.get("/api/orders/client/", headers={"X-Super-Token": "bogus"}).status_code == 401


def test_checkout_refuses_skipping_steps():
    headers = _session()
    client.post("/api/checkout/client/address", json={"delivery_address": ADDRESS}, headers=headers)

    skipped = client.post("/api/checkout/client/step", json={"step": "payment"}, headers=headers).json()
    assert skipped["ok"] is False
    assert skipped["state"]["current_step"] == "details"

    change = client.post("/api/checkout/client/address/change", headers=headers).json()
    assert change["ok"] is False
    assert change["state"]["error"]

    client.patch("/api/checkout/client/details", json={"name": "A", "email": "x"}, headers=headers)
    submitted = client.post("/api/checkout/client/details/submit", headers=headers).json()
    assert submitted["ok"] is False
    assert set(submitted["state"]["field_errors"]) == {"name", "email", "phone"}

    reset = client.post("/api/checkout/client/reset", headers=headers).json()
    assert reset["current_step"] == "address"
    assert client.delete("/api/checkout/client/session", headers=headers).status_code == 204


def test_webhook_moves_order_status_forward():
    headers = _session()
    client.post("/api/cart/client/items", json={"product_id": "p8"}, headers=headers)
    state = _checkout_to_payment(headers, phone="+15550001111")
    order = client.post("/api/checkout/client/order", headers=headers).json()["state"]["order"]

    resp = client.post("/api/orders/webhook/status", json={"order_id": order["id"], "status": "preparing"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "preparing"
    assert "preparing" in resp.json()["tracking"]

    back = client.post("/api/orders/webhook/status", json={"order_id": order["id"], "status": "confirmed"})
    assert back.status_code == 409

    unknown = client.post("/api/orders/webhook/status", json={"order_id": 987654, "status": "ready"})
    assert unknown.status_code == 404

    pending = client.get("/api/orders/client/pending", headers={"X-Super-Token": state["super_token"]})
    assert [o["id"] for o in pending.json()] == [order["id"]]


def test_order_of_another_customer_is_forbidden():
    first, second = _session(), _session()
    client.post("/api/cart/client/items", json={"product_id": "p2"}, headers=first)
    _checkout_to_payment(first, phone="+15552223333")
    order = client.post("/api/checkout/client/order", headers=first).json()["state"]["order"]

    other = _checkout_to_payment(second, phone="+15554445555")
    resp = client.get(f"/api/orders/client/{order['id']}", headers={"X-Super-Token": other["super_token"]})
    assert resp.status_code == 403


def test_fallback_verification_gets_no_session_token():
    owner = _session()
    token = _checkout_to_payment(owner, phone="+15556667777")["super_token"]
    assert token

    registry = app.state.session_registry
    provider = registry.otp_client
    registry.otp_client = OtpApiClient(transport=_down)
    try:
        headers = _session()
        client.post("/api/cart/client/items", json={"product_id": "p2"}, headers=headers)
        state = _checkout_to_payment(headers, phone="+15556667777", code="123456", using_fallback=True)
    finally:
        registry.otp_client = provider

    assert state["super_token"] is None
    assert "super_token" not in state["account"]
    assert state["account"]["phone"] == "+15556667777"

    placed = client.post("/api/checkout/client/order", headers=headers).json()
    assert placed["ok"] is True
    assert placed["state"]["super_token"] is None
    mine = client.get("/api/orders/client/", headers={"X-Super-Token": token}).json()
    assert [o["id"] for o in mine] == [placed["state"]["order"]["id"]]


def test_details_cannot_change_at_payment():
    headers = _session()
    client.post("/api/cart/client/items", json={"product_id": "p2"}, headers=headers)
    _checkout_to_payment(headers)

    state = client.patch("/api/checkout/client/details", json={"phone": "+15559998888"}, headers=headers).json()
    assert state["current_step"] == "payment"
    assert state["customer_details"]["phone"] == "+15551234567"
    assert state["error"]

    order = client.post("/api/checkout/client/order", headers=headers).json()["state"]["order"]
    assert order["customer_details"]["phone"] == "+15551234567"


def test_recalculate_prices_the_current_cart():
    headers = _session()
    soup = client.post("/api/cart/client/items", json={"product_id": "p2"}, headers=headers).json()
    first = client.post("/api/cart/client/calculate", headers=headers).json()
    assert first["calculation"]["subtotal"] == "8.99"

    client.patch(f"/api/cart/client/items/{soup['id']}", json={"quantity": 3}, headers=headers)
    again = client.post("/api/cart/client/recalculate", headers=headers).json()
    assert again["calculation"]["subtotal"] == "26.97"
    assert again["has_small_order_fee"] is False


def test_account_profile():
    headers = _session()
    token = _checkout_to_payment(headers)["super_token"]
    auth = {"X-Super-Token": token}

    me = client.get("/api/accounts/client/me", headers=auth).json()
    assert me["phone"] == "+15551234567"
    assert "super_token" not in me

    updated = client.put("/api/accounts/client/me", json={"email": "ana.lima@example.com"}, headers=auth)
    assert updated.status_code == 200
    assert updated.json()["email"] == "ana.lima@example.com"
    assert updated.json()["name"] == "Ana Lima"

    invalid = client.put("/api/accounts/client/me", json={"name": "R2D2"}, headers=auth)
    assert invalid.status_code == 422
    assert "name" in invalid.json()["detail"]


def test_health_and_metrics():
    assert client.get("/health").json() == {"status": "healthy"}
    client.post("/api/cart/client/calculate", headers=_session())

    resp = client.get("/api/monitoring/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "orders_created_total" in resp.text
