import pytest

PRODUCTS = [
    {"id": 1, "productNo": "PRD1", "name": "Linen Shirt", "description": "Summer", "costPrice": 1500,
     "sellingPrice": 2500, "quantityInStock": 5, "isActive": True, "productCategory": {"id": 3, "name": "Shirts"}},
    {"id": 2, "productNo": "PRD2", "name": "Denim Jacket", "description": "Blue", "costPrice": 4000,
     "sellingPrice": 7000, "quantityInStock": 1, "isActive": True, "productCategory": {"id": 5, "name": "Jackets"}},
    {"id": 3, "productNo": "PRD3", "name": "Hidden Hat", "description": "Retired", "costPrice": 10,
     "sellingPrice": 20, "quantityInStock": 1, "isActive": False, "productCategory": {"id": 5, "name": "Jackets"}},
]

PRODUCT_FORM = {
    "name": "Oxford Shirt",
    "description": "Office shirt",
    "productImage": "",
    "costPrice": "100",
    "sellingPrice": "120",
    "quantityInStock": "15",
    "categoryId": "3",
    "supplierId": "9",
    "isActive": "y",
    "submit": "Save",
}


def test_storefront_lists_active_products(client, backend):
    backend.on("GET", "/products", PRODUCTS)
    backend.on("GET", "/categories", [{"id": 3, "name": "Shirts"}])
    response = client.get("/?q=shirt")
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "Linen Shirt" in body
    assert "Denim Jacket" not in body
    assert "Hidden Hat" not in body


def test_storefront_survives_backend_outage(client, backend):
    response = client.get("/")
    assert response.status_code == 200
    assert "Failed to load products" in response.get_data(as_text=True)


def test_product_page_and_missing_product(client, backend):
    backend.on("GET", "/products/1", PRODUCTS[0])
    assert "Linen Shirt" in client.get("/product/1").get_data(as_text=True)
    assert client.get("/product/99").status_code == 404


def test_login_redirects_to_role_dashboard(client, backend, login):
    response = login("CEO")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard/")

    response = client.get("/dashboard/")
    assert response.headers["Location"].endswith("/dashboard/ceo")

    backend.on("GET", "/orders", [
        {"id": 1, "totalPrice": 100, "orderStatus": {"value": "Pending"}},
        {"id": 2, "totalPrice": 200, "orderStatus": {"value": "Delivered"}},
    ])
    body = client.get("/dashboard/ceo").get_data(as_text=True)
    assert "2 order(s)" in body
    assert "Employees" in body


def test_bad_login_shows_message(client, backend):
    backend.on("POST", "/auth/login", {"message": "Bad credentials"}, status=401)
    response = client.post("/user/login", data={"username": "x", "password": "y"})
    assert response.status_code == 200
    assert "Invalid username or password" in response.get_data(as_text=True)


def test_dashboard_requires_login(client):
    response = client.get("/dashboard/")
    assert response.status_code == 302
    assert "/user/login" in response.headers["Location"]


def test_other_roles_dashboard_is_forbidden(client, login):
    login("PRODUCT_MANAGER", "pm")
    assert client.get("/dashboard/ceo").status_code == 403
    assert client.get("/dashboard/nobody").status_code == 404


def test_role_access_table(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    assert client.get("/manage/employees/").status_code == 403
    assert client.get("/manage/widgets/").status_code == 404


def test_view_only_entity_cannot_be_changed(client, backend, login):
    login("CEO")
    backend.on("GET", "/customer", [{"id": 1, "fullName": "Nimal Perera"}])
    assert client.get("/manage/customers/").status_code == 200
    assert client.get("/manage/customers/new").status_code == 403


def test_manage_list_filters_and_sorts(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    backend.on("GET", "/products", PRODUCTS)
    backend.on("GET", "/categories", [{"id": 3, "name": "Shirts"}, {"id": 5, "name": "Jackets"}])
    body = client.get("/manage/products/?category=5&sort=price&direction=desc").get_data(as_text=True)
    assert "Linen Shirt" not in body
    assert body.index("Denim Jacket") < body.index("Hidden Hat")
    assert "Showing 2 of 3 products" in body


def test_create_product(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    backend.on("POST", "/products", {"success": True, "data": {"id": 10}})
    backend.on("GET", "/products", PRODUCTS)

    response = client.post("/manage/products/new", data={**PRODUCT_FORM, "productNo": "PRD123456001"})
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/manage/products/")

    payload = backend.sent("POST", "/products")[0].json
    assert payload["productNo"] == "PRD123456001"
    assert payload["profitPercentage"] == 20.00
    assert payload["productCategory"] == {"id": 3}
    assert payload["supplierDetails"] == {"id": 9}
    assert payload["isActive"] is True
    assert backend.sent("GET", "/products")


def test_invalid_product_is_not_sent(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    response = client.post("/manage/products/new", data={**PRODUCT_FORM, "sellingPrice": "90"})
    assert response.status_code == 200
    assert "Selling price must be greater than cost price" in response.get_data(as_text=True)
    assert backend.sent("POST", "/products") == []


def test_recalculate_fills_profit(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    response = client.post("/manage/products/new", data={**PRODUCT_FORM, "sellingPrice": "150", "recalculate": "Recalculate"})
    assert 'value="50.0"' in response.get_data(as_text=True)
    assert backend.sent("POST", "/products") == []


def test_server_rejection_is_shown(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    backend.on("POST", "/products", {"success": False, "message": "Product name already exists"})
    response = client.post("/manage/products/new", data=PRODUCT_FORM)
    assert "Product name already exists" in response.get_data(as_text=True)


def test_edit_category(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    backend.on("GET", "/categories/4", {"id": 4, "categoryNo": "CAT4", "name": "Shirts", "description": ""})
    backend.on("PUT", "/categories/4", {"success": True})
    backend.on("GET", "/categories", [])
    assert 'value="Shirts"' in client.get("/manage/categories/4/edit").get_data(as_text=True)

    response = client.post("/manage/categories/4/edit", data={"name": "Formal Shirts", "description": "", "categoryNo": "CAT4"})
    assert response.status_code == 302
    assert backend.sent("PUT", "/categories/4")[0].json["name"] == "Formal Shirts"


def test_delete_needs_confirmation(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    backend.on("GET", "/categories/4", {"id": 4, "categoryNo": "CAT4", "name": "Shirts"})
    backend.on("DELETE", "/categories/4")
    backend.on("GET", "/categories", [])

    body = client.get("/manage/categories/4/delete").get_data(as_text=True)
    assert "Are you sure you want to delete this category?" in body

    client.post("/manage/categories/4/delete", data={"confirm": "no"})
    assert backend.sent("DELETE") == []

    response = client.post("/manage/categories/4/delete", data={"confirm": "yes"})
    assert response.status_code == 302
    assert len(backend.sent("DELETE", "/categories/4")) == 1


def test_expired_token_logs_out(client, backend, login):
    login("CEO")
    backend.on("GET", "/employees", {"message": "Token expired"}, status=401)
    response = client.get("/manage/employees/")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/user/login")
    assert client.get("/dashboard/").status_code == 302
    with client.session_transaction() as session:
        assert "token" not in session


def test_json_clients_get_error_payload(client, backend):
    backend.on("GET", "/products/1", PRODUCTS[0])
    response = client.post(
        "/user/cart/add",
        json={"product_id": 1, "quantity": 99},
        headers={"Accept": "application/json"},
    )
    assert response.status_code == 400
    assert response.get_json() == {"error": "Only 5 items available in stock", "details": {}}


def test_guest_cart_survives_login_and_checkout(client, backend, login):
    backend.on("GET", "/products/1", PRODUCTS[0])
    response = client.post("/user/cart/add", json={"product_id": 1, "quantity": 2})
    assert response.status_code == 201
    assert response.get_json()["cart_size"] == 2

    login("CUSTOMER", "nimal")
    body = client.get("/user/cart").get_data(as_text=True)
    assert "Linen Shirt" in body

    page = client.get("/user/checkout").get_data(as_text=True)
    assert "12 Galle Road" in page
    assert "Cash on Delivery" in page

    backend.on("POST", "/orders", {"success": True, "data": {"id": 1, "orderNo": "ORD000001001"}})
    response = client.post("/user/checkout", data={
        "shippingAddress": "12 Galle Road, Colombo",
        "paymentMethod": "Cash on Delivery",
    })
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/user/orders")
    order = backend.sent("POST", "/orders")[0].json
    assert order["customer"] == {"id": 7}
    assert order["quantity"] == 2
    assert order["totalPrice"] == 5000
    with client.session_transaction() as session:
        assert session["cart"] == []


def test_checkout_is_for_customers(client, login):
    login("CEO")
    assert client.get("/user/checkout").status_code == 403


def test_customer_orders(client, backend, login):
    login("CUSTOMER", "nimal")
    backend.on("GET", "/customer/orders", [
        {"id": 1, "orderNo": "ORD1", "quantity": 1, "totalPrice": 2500, "orderStatus": {"id": 1, "value": "Pending"}},
    ])
    body = client.get("/user/orders").get_data(as_text=True)
    assert "ORD1" in body
    assert "Pending" in body


def test_change_password_mismatch(client, backend, login):
    login("CEO")
    response = client.post("/user/change-password", data={
        "currentPassword": "secret1", "newPassword": "secret2", "confirmPassword": "secret3",
    })
    assert "New passwords do not match" in response.get_data(as_text=True)
    assert backend.sent("POST", "/auth/change-password") == []


def test_change_password(client, backend, login):
    login("CEO")
    backend.on("POST", "/auth/change-password", {"success": True})
    response = client.post("/user/change-password", data={
        "currentPassword": "secret1", "newPassword": "secret2", "confirmPassword": "secret2",
    })
    assert response.status_code == 302
    assert backend.sent("POST", "/auth/change-password")[0].json == {
        "currentPassword": "secret1", "newPassword": "secret2",
    }


def test_register(client, backend):
    backend.on("GET", "/provinces", [{"id": 1, "value": "Western"}])
    backend.on("POST", "/customer/register", {"success": True, "data": {"id": 12}})
    assert "Western" in client.get("/user/register").get_data(as_text=True)

    response = client.post("/user/register", data={
        "firstName": "Nimal", "lastName": "Perera", "dateOfBirth": "1995-02-02",
        "email": "nimal@example.lk", "nicNo": "199512345678", "mobileNumber": "0771234567",
        "address": "12 Galle Road", "country": "Sri Lanka", "zipCode": "10300", "provinceId": "1",
        "username": "nimal", "password": "secret1", "confirmPassword": "secret1",
    })
    assert response.status_code == 302
    payload = backend.sent("POST", "/customer/register")[0].json
    assert payload["province"] == {"id": 1}
    assert payload["fullName"] == "Nimal Perera"
    assert payload["username"] == "nimal"
    assert "status" not in payload
    assert "confirmPassword" not in payload


def test_notifications_poll_and_mark_reordered(client, backend, login):
    login("MERCHANDISE_MANAGER", "mm")
    backend.on("GET", "/products/low-stock", [
        {"id": 1, "name": "Linen Shirt", "quantityInStock": 2, "reorderLevel": 10},
        {"id": 2, "name": "Belt", "quantityInStock": 6, "reorderLevel": 10},
    ])
    backend.on("POST", "/merchandise-manager/notifications/mark-reordered/1", {"success": True})

    body = client.get("/dashboard/notifications?severity=critical").get_data(as_text=True)
    assert 'http-equiv="refresh" content="30"' in body
    assert "Linen Shirt is running low on stock (2 remaining)" in body
    assert "Belt is running low" not in body
    assert backend.sent("GET", "/products/low-stock")[0].params == {"threshold": 10}

    response = client.post("/dashboard/notifications/1/reordered?severity=critical")
    assert response.status_code == 302
    assert "severity=critical" in response.headers["Location"]
    assert backend.sent("POST", "/merchandise-manager/notifications/mark-reordered/1")


def test_notifications_are_for_merchandise_managers(client, login):
    login("CEO")
    assert client.get("/dashboard/notifications").status_code == 403


def test_logout(client, backend, login):
    login("CEO")
    backend.on("POST", "/auth/logout", {"success": True})
    response = client.get("/user/logout")
    assert response.status_code == 302
    assert backend.sent("POST", "/auth/logout")[0].headers["Authorization"] == "Bearer tok-123"
    assert client.get("/dashboard/").status_code == 302


def test_register_with_bad_province_shows_message(client, backend):
    backend.on("GET", "/provinces", [{"id": 1, "value": "Western"}])
    response = client.post("/user/register", data={
        "firstName": "Nimal", "lastName": "Perera", "dateOfBirth": "1995-02-02",
        "email": "nimal@example.lk", "nicNo": "199512345678", "mobileNumber": "0771234567",
        "address": "12 Galle Road", "country": "Sri Lanka", "zipCode": "10300", "provinceId": "abc",
        "username": "nimal", "password": "secret1", "confirmPassword": "secret1",
    })
    assert response.status_code == 200
    assert "Please select a valid province" in response.get_data(as_text=True)
    assert backend.sent("POST", "/customer/register") == []


def test_manage_form_with_bad_reference_shows_message(client, backend, login):
    login("PRODUCT_MANAGER", "pm")
    response = client.post("/manage/products/new", data={**PRODUCT_FORM, "categoryId": "shirts"})
    assert response.status_code == 200
    assert "Please select a valid category" in response.get_data(as_text=True)
    assert backend.sent("POST", "/products") == []


def test_forbidden_entity_explains_itself_to_json_clients(client, login):
    login("PRODUCT_MANAGER", "pm")
    response = client.get("/manage/employees/", headers={"Accept": "application/json"})
    assert response.status_code == 403
    assert response.get_json() == {"error": "Your role cannot view employees", "details": {}}


def test_logout_forgets_list_snapshots(client, backend, login):
    login("CEO")
    backend.on("GET", "/orders", [{"id": 1, "orderNo": "ORD1", "totalPrice": 10}])
    client.get("/manage/orders/")
    backend.on("POST", "/auth/logout", {"success": True})
    client.get("/user/logout")

    login("CEO")
    backend.on("GET", "/orders", {"message": "down"}, status=500)
    body = client.get("/manage/orders/").get_data(as_text=True)
    assert "Failed to load orders" in body
    assert "ORD1" not in body


PROFILE_RECORD = {
    "id": 7, "firstName": "Nimal", "lastName": "Perera", "fullName": "Nimal Perera",
    "dateOfBirth": "1995-02-02T00:00:00", "sex": "Male", "mobileNumber": "0771234567",
    "address": "12 Galle Road", "country": "Sri Lanka", "zipCode": "10300",
    "email": "nimal@example.lk", "province": {"id": 1, "value": "Western"},
}

PROFILE_FORM = {
    "firstName": "Kamal", "lastName": "Perera", "dateOfBirth": "1995-02-02", "sex": "Male",
    "mobileNumber": "0779876543", "address": "5 Kandy Road", "country": "Sri Lanka",
    "zipCode": "20000", "submit": "Save Profile",
}


def test_customer_edits_profile(client, backend, login):
    login("CUSTOMER", "nimal")
    backend.on("GET", "/customer/profile", {"success": True, "data": PROFILE_RECORD})
    backend.on("PUT", "/customer/profile", {"success": True, "data": {}})

    body = client.get("/user/profile").get_data(as_text=True)
    assert 'value="Nimal"' in body
    assert 'value="1995-02-02"' in body

    response = client.post("/user/profile", data=PROFILE_FORM)
    assert response.status_code == 302
    sent = backend.sent("PUT", "/customer/profile")[0].json
    assert sent["fullName"] == "Kamal Perera"
    assert sent["address"] == "5 Kandy Road"
    assert sent["email"] == "nimal@example.lk"
    assert sent["province"] == {"id": 1, "value": "Western"}
    assert "Profile updated successfully!" in client.get("/user/profile").get_data(as_text=True)


def test_invalid_profile_is_not_sent(client, backend, login):
    login("CUSTOMER", "nimal")
    backend.on("GET", "/customer/profile", PROFILE_RECORD)
    response = client.post("/user/profile", data={**PROFILE_FORM, "mobileNumber": "123", "zipCode": "1"})
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "Valid 10-digit mobile number is required" in body
    assert "Zip code must be exactly 5 digits" in body
    assert backend.sent("PUT") == []


def test_profile_unavailable(client, backend, login):
    login("CUSTOMER", "nimal")
    backend.on("GET", "/customer/profile", {"message": "down"}, status=500)
    response = client.get("/user/profile")
    assert response.status_code == 200
    assert "Failed to load profile" in response.get_data(as_text=True)


def test_profile_is_for_customers(client, login):
    login("CEO")
    assert client.get("/user/profile").status_code == 403


def test_order_status_timeline(client, backend, login):
    login("CUSTOMER", "nimal")
    backend.on("GET", "/customer/orders/status/ORD1", {"success": True, "statusInfo": {
        "orderNo": "ORD1", "orderDate": "2024-03-01T10:00:00", "status": "SHIPPED",
        "totalPrice": 2500, "shippingAddress": "12 Galle Road",
    }})
    body = client.get("/user/orders/ORD1/status").get_data(as_text=True)
    assert "Your order has been shipped and is on its way to you." in body
    assert '<progress value="3" max="4">' in body
    assert "2024-03-01" in body


@pytest.mark.parametrize("status, body, message", [
    (404, {"message": "Not found"}, "Order not found or access denied"),
    (403, None, "Order not found or access denied"),
    (200, {"success": False}, "Order not found"),
    (500, None, "Failed to fetch order status"),
])
def test_order_status_failures(client, backend, login, status, body, message):
    login("CUSTOMER", "nimal")
    backend.on("GET", "/customer/orders/status/ORD9", body, status=status)
    response = client.get("/user/orders/ORD9/status")
    assert response.status_code == 200
    assert message in response.get_data(as_text=True)


def test_orders_link_to_status(client, backend, login):
    login("CUSTOMER", "nimal")
    backend.on("GET", "/customer/orders", [{"id": 1, "orderNo": "ORD1", "totalPrice": 10}])
    assert "/user/orders/ORD1/status" in client.get("/user/orders").get_data(as_text=True)


INVENTORY = [
    {"id": 1, "product": {"name": "Linen Shirt", "productNo": "PRD1"}, "totalQuantityPurchasing": 2, "reorderLevel": 10},
    {"id": 2, "product": {"name": "Belt", "productNo": "ACC7"}, "totalQuantityPurchasing": 40, "reorderLevel": 10},
]


def test_inventory_screen_filters(client, backend, login):
    login("MERCHANDISE_MANAGER", "mm")
    backend.on("GET", "/merchandise-manager/inventory", {"success": True, "data": INVENTORY})
    backend.on("GET", "/products", [{"id": 1, "name": "Linen Shirt"}])

    body = client.get("/dashboard/inventory?status=critical").get_data(as_text=True)
    assert "2 item(s), 1 low on stock" in body
    assert "PRD1" in body
    assert "ACC7" not in body
    assert '<option value="1">Linen Shirt</option>' in body

    body = client.get("/dashboard/inventory?q=belt").get_data(as_text=True)
    assert "ACC7" in body
    assert "PRD1" not in body


def test_inventory_adjustment(client, backend, login):
    login("MERCHANDISE_MANAGER", "mm")
    backend.on("PUT", "/merchandise-manager/inventory/1/reorder-level", {"success": True})
    backend.on("PUT", "/merchandise-manager/inventory/1/quantity", {"success": True})

    response = client.post("/dashboard/inventory/1?status=critical", data={"reorderLevel": "12", "quantity": "30"})
    assert response.status_code == 302
    assert "status=critical" in response.headers["Location"]
    assert [c.params for c in backend.sent("PUT")] == [{"reorderLevel": 12}, {"quantity": 30}]


def test_bad_inventory_adjustment_is_not_sent(client, backend, login):
    login("MERCHANDISE_MANAGER", "mm")
    backend.on("GET", "/merchandise-manager/inventory", INVENTORY)
    response = client.post("/dashboard/inventory/1", data={"reorderLevel": "10", "quantity": "-3"},
                           follow_redirects=True)
    assert "Valid quantity is required" in response.get_data(as_text=True)
    assert backend.sent("PUT") == []


def test_add_stock(client, backend, login):
    login("MERCHANDISE_MANAGER", "mm")
    backend.on("PATCH", "/merchandise-manager/inventory/add-stock/1", {"success": True})
    backend.on("GET", "/merchandise-manager/inventory", INVENTORY)
    response = client.post("/dashboard/inventory/add-stock", data={"productId": "1", "quantity": "6"},
                           follow_redirects=True)
    assert "Stock added successfully!" in response.get_data(as_text=True)
    assert backend.sent("PATCH")[0].params == {"quantity": 6}


def test_inventory_is_for_merchandise_managers(client, login):
    login("CEO")
    assert client.get("/dashboard/inventory").status_code == 403


def test_ceo_generates_report(client, backend, login):
    login("CEO")
    backend.on("GET", "/reports/sales", {"success": True, "data": {
        "totalRevenue": 5000, "topProducts": [{"name": "Linen Shirt", "quantitySold": 4}],
    }})
    body = client.get(
        "/dashboard/reports?report=sales&period=month&startDate=2024-01-01&endDate=2024-01-31&limit=5"
    ).get_data(as_text=True)
    assert "Sales Report" in body
    assert "Total revenue" in body
    assert "Linen Shirt" in body
    assert backend.sent("GET", "/reports/sales")[0].params == {
        "period": "month", "startDate": "2024-01-01", "endDate": "2024-01-31", "limit": 5,
    }


def test_report_errors(client, backend, login):
    login("CEO")
    body = client.get("/dashboard/reports?report=sales&startDate=2024-02-01&endDate=2024-01-01").get_data(as_text=True)
    assert "End date cannot be before the start date" in body
    assert backend.sent("GET", "/reports/sales") == []

    backend.on("GET", "/reports/inventory-status", {"message": "down"}, status=500)
    body = client.get("/dashboard/reports?report=inventory-status").get_data(as_text=True)
    assert "Failed to generate report. Please try again." in body
    assert backend.sent("GET", "/reports/inventory-status")[0].params is None

    assert client.get("/dashboard/reports?report=nope").status_code == 404


def test_reports_are_for_the_ceo(client, login):
    login("MERCHANDISE_MANAGER", "mm")
    assert client.get("/dashboard/reports").status_code == 403
