from conftest import auth_headers


def purchase(client, gateway, book, user, succeed=True):
    response = client.post(
        "/transactions/create-payment-intent",
        json={"bookId": book.id},
        headers=auth_headers(user),
    )
    intent_id = response.json()["paymentIntentId"]

    if succeed:
        gateway.succeed(intent_id)
        url = "/transactions/confirm-payment"
    else:
        gateway.decline(intent_id)
        url = "/transactions/payment-failed"

    response = client.post(url, json={"paymentIntentId": intent_id}, headers=auth_headers(user))
    assert response.status_code == 200, response.text
    return response.json()["data"]


def test_admin_sees_every_transaction(client, gateway, book, buyer, other_buyer, admin):
    failed = purchase(client, gateway, book, other_buyer, succeed=False)
    completed = purchase(client, gateway, book, buyer)

    response = client.get("/admin/transactions", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert {t["id"] for t in body["data"]} == {failed["id"], completed["id"]}


def test_admin_filters_by_status_and_paginates(client, gateway, book, buyer, other_buyer, admin):
    purchase(client, gateway, book, other_buyer, succeed=False)
    completed = purchase(client, gateway, book, buyer)

    response = client.get(
        "/admin/transactions",
        params={"status": "completed", "page": 1, "limit": 1},
        headers=auth_headers(admin),
    )

    body = response.json()
    assert body["total"] == 1
    assert body["pagination"] == {"page": 1, "limit": 1, "totalPages": 1}
    assert [t["id"] for t in body["data"]] == [completed["id"]]


def test_admin_listing_leads_to_a_refund(client, gateway, book, buyer, admin):
    purchase(client, gateway, book, buyer)

    listing = client.get("/admin/transactions", headers=auth_headers(admin)).json()
    transaction_id = listing["data"][0]["id"]

    response = client.post(f"/transactions/{transaction_id}/refund", headers=auth_headers(admin))
    assert response.json()["data"]["status"] == "refunded"


def test_admin_listing_is_admin_only(client, buyer):
    response = client.get("/admin/transactions", headers=auth_headers(buyer))

    assert response.status_code == 403
    assert response.json()["code"] == "Unauthorized"
