async def add(client, headers, product_id, quantity=1, size="M"):
    response = await client.post(
        "/api/cart", headers=headers, json={"product_id": product_id, "quantity": quantity, "size": size}
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def place_order(client, headers, catalog, **extra):
    payload = {
        "items": [{"product_id": catalog["Latte"], "quantity": 2, "size": "M", "price": 55000}],
        "total_amount": 130000,
        **extra,
    }
    response = await client.post("/api/orders", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["order_id"]


# =============================================================================
# CART
# =============================================================================

async def test_cart_requires_login(client, catalog):
    response = await client.get("/api/cart")
    assert response.status_code == 401


async def test_adding_twice_merges(client, register, catalog):
    headers = await register()
    first = await add(client, headers, catalog["Latte"], 1)
    second = await add(client, headers, catalog["Latte"], 2)

    cart = (await client.get("/api/cart", headers=headers)).json()
    assert first == second
    assert len(cart) == 1
    assert cart[0]["quantity"] == 3
    assert cart[0]["line_total"] == 165000


async def test_camel_case_product_id_is_accepted(client, register, catalog):
    headers = await register()
    response = await client.post(
        "/api/cart", headers=headers, json={"productId": catalog["Latte"], "quantity": 1, "size": "S"}
    )
    assert response.status_code == 201


async def test_invalid_cart_requests(client, register, catalog):
    headers = await register()

    response = await client.post("/api/cart", headers=headers, json={"product_id": catalog["Latte"]})
    assert response.status_code == 400

    response = await client.post(
        "/api/cart", headers=headers, json={"product_id": catalog["Latte"], "quantity": 0, "size": "M"}
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/cart", headers=headers, json={"product_id": 999, "quantity": 1, "size": "M"}
    )
    assert response.status_code == 404


async def test_update_and_remove_line(client, register, catalog):
    headers = await register()
    item_id = await add(client, headers, catalog["Latte"])

    response = await client.put(f"/api/cart/{item_id}", headers=headers, json={"quantity": 4})
    assert response.status_code == 200
    assert (await client.get("/api/cart", headers=headers)).json()[0]["quantity"] == 4

    response = await client.delete(f"/api/cart/{item_id}", headers=headers)
    assert response.status_code == 200
    assert (await client.get("/api/cart", headers=headers)).json() == []


async def test_other_users_line_is_not_found(client, register, catalog):
    an = await register()
    binh = await register("binh.tran@mail.com", "Binh")
    item_id = await add(client, an, catalog["Latte"])

    response = await client.put(f"/api/cart/{item_id}", headers=binh, json={"quantity": 9})
    assert response.status_code == 404
    response = await client.delete(f"/api/cart/{item_id}", headers=binh)
    assert response.status_code == 404

    assert (await client.get("/api/cart", headers=an)).json()[0]["quantity"] == 1


async def test_clear_cart(client, register, catalog):
    headers = await register()
    await add(client, headers, catalog["Latte"])
    await add(client, headers, catalog["Espresso"], size="L")

    response = await client.delete("/api/cart/clear/all", headers=headers)
    assert response.status_code == 200
    assert (await client.get("/api/cart", headers=headers)).json() == []


# =============================================================================
# ORDERS
# =============================================================================

async def test_create_order_and_history(client, register, catalog, dispatched):
    headers = await register()
    order_id = await place_order(
        client, headers, catalog,
        address="12 Le Loi", note="Less ice", paymentMethod="momo", deliveryMethod="deliver",
    )

    history = (await client.get("/api/orders", headers=headers)).json()
    assert len(history) == 1
    order = history[0]
    assert order["id"] == order_id
    assert order["status"] == "processing"
    assert order["payment_method"] == "momo"
    assert order["total_amount"] == 130000
    assert order["address"] == "12 Le Loi"
    assert order["note"] == "Less ice"
    assert order["items"][0]["price"] == 55000
    assert dispatched.order_confirmation.calls[0][2] == order_id


async def test_order_without_items_is_rejected(client, register):
    headers = await register()
    response = await client.post("/api/orders", headers=headers, json={"items": [], "total_amount": 0})
    assert response.status_code == 400


async def test_unknown_status_is_stored_as_processing(client, register, catalog):
    headers = await register()
    await place_order(client, headers, catalog, status="shipped")

    history = (await client.get("/api/orders", headers=headers)).json()
    assert history[0]["status"] == "processing"


async def test_cannot_cancel_order_out_for_delivery(client, register, catalog):
    headers = await register()
    order_id = await place_order(client, headers, catalog)

    response = await client.put(f"/api/orders/{order_id}/status", headers=headers, json={"status": "pending"})
    assert response.status_code == 200

    response = await client.put(f"/api/orders/{order_id}/status", headers=headers, json={"status": "cancelled"})
    assert response.status_code == 400
    assert response.json() == {"message": "Cannot cancel an order that is being delivered"}


async def test_delivered_order_is_final(client, register, catalog):
    headers = await register()
    order_id = await place_order(client, headers, catalog)
    await client.put(f"/api/orders/{order_id}/status", headers=headers, json={"status": "delivered"})

    response = await client.put(f"/api/orders/{order_id}/status", headers=headers, json={"status": "processing"})
    assert response.status_code == 400


async def test_confirm_transfer(client, register, catalog):
    headers = await register()
    order_id = await place_order(client, headers, catalog, payment_method="momo")

    response = await client.put(f"/api/orders/{order_id}/confirm-transfer", headers=headers)
    assert response.status_code == 200

    order = (await client.get("/api/orders", headers=headers)).json()[0]
    assert order["status"] == "pending"
    assert order["user_confirmed_transfer"] is True
    assert order["user_confirmed_transfer_at"] is not None


async def test_confirm_transfer_by_non_owner(client, register, catalog):
    an = await register()
    binh = await register("binh.tran@mail.com", "Binh")
    order_id = await place_order(client, an, catalog)

    response = await client.put(f"/api/orders/{order_id}/confirm-transfer", headers=binh)
    assert response.status_code == 403

    order = (await client.get("/api/orders", headers=an)).json()[0]
    assert order["status"] == "processing"
    assert order["user_confirmed_transfer"] is False


async def test_unknown_order(client, register):
    headers = await register()
    response = await client.put("/api/orders/nope/confirm-transfer", headers=headers)
    assert response.status_code == 404


async def test_merged_line_above_single_add_limit_can_be_ordered(client, register, catalog):
    headers = await register()
    await add(client, headers, catalog["Latte"], 99)
    await add(client, headers, catalog["Latte"], 5)

    [line] = (await client.get("/api/cart", headers=headers)).json()
    assert line["quantity"] == 104

    response = await client.post("/api/orders", headers=headers, json={
        "items": [{
            "product_id": line["product_id"],
            "quantity": line["quantity"],
            "size": line["size"],
            "price": line["unit_price"],
        }],
        "total_amount": line["line_total"],
    })
    assert response.status_code == 201, response.text

    order = (await client.get("/api/orders", headers=headers)).json()[0]
    assert order["items"][0]["quantity"] == 104
