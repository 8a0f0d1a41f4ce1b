from growth_service.auth import hash_password
from growth_service.messages import admin_whatsapp

ADMIN = {"x-user-id": "admin", "x-user-role": "admin"}


def signup(client, role="vendor", email=None, **extra):
    payload = {"email": email or f"{role}@example.com", "password": "s3cret", "role": role, "name": role.title()}
    payload.update(extra)
    r = client.post("/auth/signup", json=payload)
    assert r.status_code == 200, r.text
    return r.json()["user"]


def test_password_is_hashed():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert hashed.startswith("$2")


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert "X-Trace-Id" in r.headers


def test_signup_rejects_duplicate_email(client):
    user = signup(client, email="Shop.Owner@Example.com")
    assert user["email"] == "shop.owner@example.com"
    assert "password_hash" not in user

    r = client.post("/auth/signup", json={"email": "shop.owner@example.com", "password": "x", "role": "vendor"})
    assert r.status_code == 400


def test_shop_registration_requires_vendor(client):
    vendor = signup(client, "vendor")
    customer = signup(client, "customer")

    r = client.post("/vendor/shops", json={"user_id": vendor["id"], "shop": {"name": "Sweet Crumbs", "phone": "98765"}})
    assert r.status_code == 200
    assert [s["name"] for s in r.json()["shops"]] == ["Sweet Crumbs"]

    r = client.post("/vendor/shops", json={"user_id": customer["id"], "shop": {"name": "Nope"}})
    assert r.status_code == 400

    all_shops = client.get("/vendor/shops").json()["shops"]
    assert all_shops[0]["vendor_id"] == vendor["id"]
    assert all_shops[0]["vendor_name"] == "Vendor"


def test_check_performance_is_admin_only(client):
    signup(client, "vendor")

    assert client.get("/admin/vendors/check-performance").status_code == 403

    r = client.get("/admin/vendors/check-performance", headers=ADMIN)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["autoSent"] == 2

    again = client.get("/admin/vendors/check-performance", headers=ADMIN).json()
    assert again["autoSent"] == 0


def test_vendor_reads_and_marks_notifications(client):
    vendor = signup(client, "vendor")
    client.get("/admin/vendors/check-performance", headers=ADMIN)

    notifications = client.get("/vendor/notifications", params={"vendor_id": vendor["id"]}).json()["notifications"]
    assert len(notifications) == 2

    r = client.put("/vendor/notifications", json={"vendor_id": vendor["id"], "notification_id": notifications[0]["id"]})
    assert r.status_code == 200
    notifications = client.get("/vendor/notifications", params={"vendor_id": vendor["id"]}).json()["notifications"]
    assert [n["read"] for n in notifications] == [True, False]

    r = client.put("/vendor/notifications", json={"vendor_id": vendor["id"], "notification_id": "missing"})
    assert r.status_code == 404


def test_admin_notification_is_sent_and_logged(client, gateway):
    vendor = signup(client, "vendor", phone="+91 98765 43210")

    r = client.post(
        "/admin/send-notification",
        json={"vendor_id": vendor["id"], "message": "Festival sale starts Friday", "type": "info"},
        headers=ADMIN,
    )

    assert r.status_code == 200
    body = r.json()
    assert body["whatsappSent"] is True
    assert body["whatsappError"] is None
    assert gateway.calls == [("919876543210", admin_whatsapp("Festival sale starts Friday", "info"))]

    logs = client.get("/admin/notification-logs", params={"vendor_id": vendor["id"]}, headers=ADMIN).json()["logs"]
    assert [l["notification_id"] for l in logs] == [body["notificationId"]]


def test_admin_notification_rejects_non_vendor(client):
    customer = signup(client, "customer")
    r = client.post(
        "/admin/send-notification",
        json={"vendor_id": customer["id"], "message": "hi", "type": "info"},
        headers=ADMIN,
    )
    assert r.status_code == 400


def test_checkout_feeds_revenue_threshold(client):
    vendor = signup(client, "vendor")
    customer = signup(client, "customer")
    cart = [{"product_id": "cake", "name": "Wedding cake", "quantity": 2, "price": 25000}]

    assert client.post("/cart", json={"user_id": customer["id"], "cart": cart}).status_code == 200
    assert client.get("/cart", params={"user_id": customer["id"]}).json()["cart"] == cart

    r = client.post("/checkout", json={"user_id": customer["id"], "cart": cart, "vendor_id": vendor["id"]})
    assert r.status_code == 200
    assert r.json()["order"]["total"] == 50000
    assert client.get("/cart", params={"user_id": customer["id"]}).json()["cart"] == []
    assert len(client.get("/orders").json()) == 1

    body = client.get("/revenue/check-threshold").json()
    assert body["threshold"] == 50000
    assert body["notificationsSent"] == 1
    assert body["vendors"][0]["vendorId"] == vendor["id"]

    monitor = client.get("/revenue/monitor").json()
    assert monitor["message"] == "Revenue monitoring completed"
    assert monitor["notificationsSent"] == 0

    monthly = client.get("/revenue/monthly", params={"months": 3}).json()
    assert len(monthly["data"]) == 3
    assert monthly["data"][-1]["revenue"] == 50000


def test_checkout_validation(client):
    customer = signup(client, "customer")
    assert client.post("/checkout", json={"user_id": customer["id"], "cart": []}).status_code == 400
    item = {"product_id": "p", "name": "Bun", "quantity": 1, "price": 10}
    assert client.post("/checkout", json={"user_id": "missing", "cart": [item]}).status_code == 404


def test_plans_are_grouped_and_normalized(client):
    vendor = signup(client, "vendor")
    r = client.post("/plans", json={"user_id": vendor["id"], "business_type": "Home Baker", "inputs": {"budget": "500"}})
    assert r.json()["business_type"] == "bakery"
    client.post("/plans", json={"business_type": "Mobile repair", "inputs": {}})

    latest = client.get("/plans/latest", params={"role": "vendor", "business_type": "bakery"}).json()
    assert latest["payload"] == {"budget": "500"}

    investor_view = client.get("/plans/latest", params={"role": "investor"}).json()
    assert investor_view["totalPlans"] == 2
    assert len(investor_view["plansByType"]["repair shop"]) == 1

    # a vendor with a plan and no shop only gets the shop warning
    assert client.get("/admin/vendors/check-performance", headers=ADMIN).json()["autoSent"] == 1


def test_whatsapp_endpoint(client):
    r = client.post("/whatsapp/send", json={"phoneNumber": "919876543210"})
    assert r.status_code == 400
    assert r.json()["success"] is False

    r = client.post("/whatsapp/send", json={"phoneNumber": "919876543210", "message": "Hello"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["whatsappUrl"] == "https://wa.me/919876543210?text=Hello"
    assert body["logId"]


def test_metrics_endpoint(client):
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "growth_notifications_appended_total" in r.text


def test_product_catalog_is_seeded_once(client):
    products = client.get("/products").json()
    assert len(products) == 6
    assert products[0]["name"] == "Premium Coffee Blend"
    assert all(p["inStock"] for p in products)

    assert len(client.get("/products").json()) == 6


def test_products_can_be_created_and_restocked(client):
    r = client.post("/products", json={"name": "Rose Sherbet", "price": 120, "category": "Beverages"})
    assert r.status_code == 200
    product_id = r.json()["productId"]

    [product] = [p for p in client.get("/products").json() if p["id"] == product_id]
    assert product["stock"] == 0
    assert product["inStock"] is False
    assert product["features"] == []

    assert client.post("/products/update-stock", json={"product_id": product_id, "quantity": -5}).status_code == 200
    [product] = [p for p in client.get("/products").json() if p["id"] == product_id]
    assert product["stock"] == 5
    assert product["inStock"] is True


def test_update_stock_validation(client):
    assert client.post("/products/update-stock", json={"quantity": 1}).status_code == 400
    assert client.post("/products/update-stock", json={"product_id": "missing", "quantity": 1}).status_code == 404


def test_checkout_decrements_stock(client):
    customer = signup(client, "customer")
    [croissants] = [p for p in client.get("/products").json() if p["name"] == "Fresh Baked Croissants"]
    cart = [
        {"product_id": croissants["id"], "name": croissants["name"], "quantity": 3, "price": croissants["price"]},
        {"product_id": "off-menu", "name": "Custom cake", "quantity": 1, "price": 900},
    ]

    assert client.post("/checkout", json={"user_id": customer["id"], "cart": cart}).status_code == 200

    [croissants] = [p for p in client.get("/products").json() if p["id"] == croissants["id"]]
    assert croissants["stock"] == 27


def test_investor_businesses(client):
    investor = signup(client, "investor")

    r = client.get("/investor/businesses", params={"user_id": investor["id"]})
    assert r.status_code == 200
    assert r.json()["businesses"] == []

    r = client.post("/investor/businesses", json={"user_id": investor["id"], "business": {"name": "Corner Bakery", "stake": 20}})
    assert r.status_code == 200
    [business] = r.json()["businesses"]
    assert business["name"] == "Corner Bakery"
    assert business["id"]

    client.post("/investor/businesses", json={"user_id": investor["id"], "business": {"name": "Juice Cart"}})
    businesses = client.get("/investor/businesses", params={"user_id": investor["id"]}).json()["businesses"]
    assert [b["name"] for b in businesses] == ["Corner Bakery", "Juice Cart"]


def test_investor_businesses_reject_other_roles(client):
    vendor = signup(client, "vendor")

    assert client.get("/investor/businesses").status_code == 400
    assert client.get("/investor/businesses", params={"user_id": vendor["id"]}).status_code == 400
    r = client.post("/investor/businesses", json={"user_id": vendor["id"], "business": {"name": "X"}})
    assert r.status_code == 400
    assert client.post("/investor/businesses", json={"user_id": vendor["id"]}).status_code == 400
