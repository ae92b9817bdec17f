from bson import ObjectId


def test_wishlist_starts_empty(client, auth_headers):
    response = client.get("/api/wishlist", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_wishlist_requires_auth(client):
    assert client.get("/api/wishlist").status_code == 401


def test_add_returns_populated_products(client, auth_headers, make_product):
    pid = make_product(title="Drafter")
    response = client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers)
    assert response.status_code == 201
    assert [p["id"] for p in response.json()] == [pid]
    assert response.json()[0]["title"] == "Drafter"


def test_add_duplicate_is_rejected(client, auth_headers, make_product):
    pid = make_product()
    assert client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers).status_code == 201

    response = client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"message": "Product already in wishlist"}

    listed = client.get("/api/wishlist", headers=auth_headers).json()
    assert [p["id"] for p in listed] == [pid]


def test_add_unknown_product(client, auth_headers):
    for pid in (str(ObjectId()), "garbage"):
        response = client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Product not found"}


def test_add_keeps_insertion_order(client, auth_headers, make_product):
    first, second, third = make_product(), make_product(), make_product()
    for pid in (second, third, first):
        client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers)
    listed = client.get("/api/wishlist", headers=auth_headers).json()
    assert [p["id"] for p in listed] == [second, third, first]


def test_remove(client, auth_headers, make_product):
    keep, drop = make_product(), make_product()
    client.post("/api/wishlist", json={"productId": keep}, headers=auth_headers)
    client.post("/api/wishlist", json={"productId": drop}, headers=auth_headers)

    response = client.delete(f"/api/wishlist/{drop}", headers=auth_headers)
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [keep]


def test_remove_absent_id_is_noop(client, auth_headers, make_product):
    pid = make_product()
    client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers)

    for missing in (str(ObjectId()), "garbage"):
        response = client.delete(f"/api/wishlist/{missing}", headers=auth_headers)
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [pid]


def test_clear(client, auth_headers, make_product):
    client.post("/api/wishlist", json={"productId": make_product()}, headers=auth_headers)
    response = client.delete("/api/wishlist", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Wishlist cleared"}
    assert client.get("/api/wishlist", headers=auth_headers).json() == []


def test_deleted_products_are_skipped(client, db, auth_headers, make_product):
    pid = make_product()
    client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers)
    db["product"].delete_one({"_id": ObjectId(pid)})
    assert client.get("/api/wishlist", headers=auth_headers).json() == []


def test_missing_wishlist_document(client, db, user, auth_headers, make_product):
    user_id = ObjectId(user["id"])
    db["wishlist"].delete_many({"user": user_id})

    # reads do not create the document
    assert client.get("/api/wishlist", headers=auth_headers).json() == []
    assert db["wishlist"].count_documents({"user": user_id}) == 0

    assert client.delete("/api/wishlist", headers=auth_headers).status_code == 404
    response = client.delete(f"/api/wishlist/{ObjectId()}", headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Wishlist not found"}

    pid = make_product()
    assert client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers).status_code == 201
    assert db["wishlist"].find_one({"user": user_id})["products"] == [ObjectId(pid)]


def test_wishlists_are_per_user(client, auth_headers, make_product):
    pid = make_product()
    client.post("/api/wishlist", json={"productId": pid}, headers=auth_headers)

    other = client.post(
        "/api/users",
        json={"name": "Ben", "email": "ben@college.edu", "password": "pw", "department": "CS", "year": "1st"},
    ).json()
    other_headers = {"Authorization": f"Bearer {other['token']}"}
    assert client.get("/api/wishlist", headers=other_headers).json() == []
    assert client.post("/api/wishlist", json={"productId": pid}, headers=other_headers).status_code == 201
