import io

from bson import ObjectId

from conftest import insert_product, product_payload


def test_list_filters_price_range_inclusive_and_sorts_ascending(client, db):
    for price in (250, 200, 50, 100, 150):
        insert_product(db, precio=price, modelo=f"Model {price}")

    response = client.get("/api/products?minPrice=100&maxPrice=200")

    assert response.status_code == 200
    prices = [product["precio"] for product in response.get_json()]
    assert prices == [100, 150, 200]


def test_list_filters_category_and_brand_exactly(client, db):
    insert_product(db, categoria="Laptop", marca="Apple", precio=1200)
    insert_product(db, categoria="Laptop", marca="Lenovo", precio=900)
    insert_product(db, categoria="Consola", marca="Apple", precio=10)

    response = client.get("/api/products?categoria=Laptop&marca=Apple")

    products = response.get_json()
    assert len(products) == 1
    assert products[0]["marca"] == "Apple"
    assert products[0]["categoria"] == "Laptop"

    assert client.get("/api/products?marca=apple").get_json() == []


def test_list_rejects_non_numeric_price(client):
    response = client.get("/api/products?minPrice=cheap")
    assert response.status_code == 400
    assert response.get_json()["errors"]


def test_advanced_search_paginates_after_filtering(client, db):
    for index in range(7):
        insert_product(db, marca="Sony", modelo=f"Bravia {index}", precio=100 + index)
    for index in range(4):
        insert_product(db, marca="Samsung", modelo=f"Galaxy {index}", precio=50 + index)

    response = client.get("/api/products/search/advanced?marca=sony&page=2&limit=5")

    body = response.get_json()
    assert response.status_code == 200
    assert body["total"] == 7
    assert body["page"] == 2
    assert body["totalPages"] == 2
    assert [product["precio"] for product in body["products"]] == [105, 106]


def test_advanced_search_out_of_range_page_is_empty(client, db):
    for index in range(3):
        insert_product(db, precio=10 + index)

    body = client.get("/api/products/search/advanced?page=9&limit=2").get_json()

    assert body["products"] == []
    assert body["total"] == 3
    assert body["totalPages"] == 2


def test_advanced_search_model_substring_and_sort_descending(client, db):
    insert_product(db, modelo="Galaxy S24", marca="Samsung", precio=900)
    insert_product(db, modelo="Galaxy Tab", marca="Samsung", precio=600)
    insert_product(db, modelo="Pixel 8", marca="Google", precio=700)

    body = client.get(
        "/api/products/search/advanced?modelo=GALAXY&sortBy=precio&sortOrder=desc"
    ).get_json()

    assert [product["modelo"] for product in body["products"]] == ["Galaxy S24", "Galaxy Tab"]


def test_advanced_search_treats_brand_as_literal_text(client, db):
    insert_product(db, marca="C++ Books")
    insert_product(db, marca="CCC")

    body = client.get("/api/products/search/advanced?marca=c%2B%2B").get_json()

    assert body["total"] == 1
    assert body["products"][0]["marca"] == "C++ Books"


def test_advanced_search_rejects_unknown_sort_field(client):
    response = client.get("/api/products/search/advanced?sortBy=password")
    assert response.status_code == 400


def test_get_product_by_id(client, db):
    product_id = insert_product(db, marca="Apple", modelo="iPad Air")

    response = client.get(f"/api/products/{product_id}")

    assert response.status_code == 200
    body = response.get_json()
    assert body["id"] == str(product_id)
    assert body["nombreCompleto"] == "Apple iPad Air"


def test_get_product_missing_and_malformed_ids(client):
    assert client.get(f"/api/products/{ObjectId()}").status_code == 404
    assert client.get("/api/products/not-an-id").status_code == 400


def test_legacy_image_url_is_served_as_image_list(client, db):
    product_id = db.products.insert_one(
        {
            "categoria": "Consola",
            "marca": "Sega",
            "modelo": "Dreamcast",
            "precio": 199,
            "descripcion": "Classic console from the turn of the millennium.",
            "imageUrl": "dreamcast.jpg",
        }
    ).inserted_id

    body = client.get(f"/api/products/{product_id}").get_json()

    assert body["imagenes"] == ["dreamcast.jpg"]


def test_create_product_applies_defaults(client, db, admin_headers):
    response = client.post(
        "/api/products",
        json=product_payload(precio="999.99"),
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.get_json()
    assert body["precio"] == 999.99
    assert body["stock"] == 5
    assert body["disponible"] is True
    assert body["destacado"] is False
    assert body["caracteristicas"] == []
    assert body["nombreCompleto"] == "Sony PlayStation 5"
    assert db.products.count_documents({}) == 1


def test_create_product_without_images_persists_nothing(client, db, admin_headers):
    payload = product_payload()
    del payload["imagenes"]

    response = client.post("/api/products", json=payload, headers=admin_headers)

    assert response.status_code == 400
    assert any("imagenes" in error for error in response.get_json()["errors"])
    assert db.products.count_documents({}) == 0


def test_create_product_rejects_empty_or_too_many_images(client, db, admin_headers):
    empty = client.post(
        "/api/products", json=product_payload(imagenes=[]), headers=admin_headers
    )
    too_many = client.post(
        "/api/products",
        json=product_payload(imagenes=[f"img{i}.jpg" for i in range(6)]),
        headers=admin_headers,
    )

    assert empty.status_code == 400
    assert too_many.status_code == 400
    assert db.products.count_documents({}) == 0


def test_create_product_rejects_negative_price(client, admin_headers):
    response = client.post(
        "/api/products", json=product_payload(precio=-1), headers=admin_headers
    )
    assert response.status_code == 400


def test_create_product_with_uploaded_images(client, admin_headers):
    data = product_payload()
    del data["imagenes"]
    data["caracteristicas"] = ["4K", "HDR"]
    data["imagenes"] = [
        (io.BytesIO(b"\x89PNG\r\n\x1a\nfront"), "front.png", "image/png"),
        (io.BytesIO(b"\x89PNG\r\n\x1a\nback"), "back.png", "image/png"),
    ]

    response = client.post(
        "/api/products",
        data=data,
        content_type="multipart/form-data",
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.get_json()
    assert body["caracteristicas"] == ["4K", "HDR"]
    assert len(body["imagenes"]) == 2
    for path in body["imagenes"]:
        assert path.startswith("/uploads/products/")
        assert client.get(path).status_code == 200


def test_mutations_require_admin_role(client, db, user_headers, admin_headers):
    product_id = insert_product(db)

    assert (
        client.post("/api/products", json=product_payload(), headers=user_headers).status_code
        == 403
    )
    assert (
        client.put(
            f"/api/products/{product_id}", json={"precio": 1}, headers=user_headers
        ).status_code
        == 403
    )
    assert client.delete(f"/api/products/{product_id}", headers=user_headers).status_code == 403
    assert db.products.count_documents({}) == 1

    assert (
        client.post("/api/products", json=product_payload(), headers=admin_headers).status_code
        == 201
    )
    assert (
        client.put(
            f"/api/products/{product_id}", json={"precio": 1}, headers=admin_headers
        ).status_code
        == 200
    )
    assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 200


def test_update_product_is_partial(client, db, admin_headers):
    product_id = insert_product(db, marca="Sony", modelo="PS4", precio=300, stock=2)

    response = client.put(
        f"/api/products/{product_id}",
        json={"modelo": "PS4 Pro", "precio": 350},
        headers=admin_headers,
    )

    body = response.get_json()
    assert response.status_code == 200
    assert body["precio"] == 350
    assert body["stock"] == 2
    assert body["nombreCompleto"] == "Sony PS4 Pro"
    assert body["updatedAt"] is not None


def test_update_missing_product(client, admin_headers):
    response = client.put(
        f"/api/products/{ObjectId()}", json={"precio": 1}, headers=admin_headers
    )
    assert response.status_code == 404


def test_delete_product(client, db, admin_headers):
    product_id = insert_product(db)

    response = client.delete(f"/api/products/{product_id}", headers=admin_headers)

    assert response.status_code == 200
    assert client.get(f"/api/products/{product_id}").status_code == 404
    assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 404


def upload_product(client, admin_headers, name="front.png"):
    data = product_payload()
    data["imagenes"] = [(io.BytesIO(b"\x89PNG\r\n\x1a\nfront"), name, "image/png")]
    response = client.post(
        "/api/products",
        data=data,
        content_type="multipart/form-data",
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.get_json()


def test_delete_product_keeps_images_other_products_use(client, admin_headers):
    original = upload_product(client, admin_headers)
    shared_path = [
        path for path in original["imagenes"] if path.startswith("/uploads/products/")
    ][0]
    copy = client.post(
        "/api/products",
        json=product_payload(modelo="PS5 Slim", imagenes=[shared_path]),
        headers=admin_headers,
    ).get_json()

    client.delete(f"/api/products/{copy['id']}", headers=admin_headers)
    assert client.get(shared_path).status_code == 200

    client.delete(f"/api/products/{original['id']}", headers=admin_headers)
    assert client.get(shared_path).status_code == 404


def test_update_product_removes_replaced_uploads(client, admin_headers):
    product = upload_product(client, admin_headers)
    old_path = [
        path for path in product["imagenes"] if path.startswith("/uploads/products/")
    ][0]

    response = client.put(
        f"/api/products/{product['id']}",
        json={"imagenes": ["https://images.example.com/new.jpg"]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.get_json()["imagenes"] == ["https://images.example.com/new.jpg"]
    assert client.get(old_path).status_code == 404


def test_advanced_search_rejects_limit_above_one_hundred(client):
    assert client.get("/api/products/search/advanced?limit=101").status_code == 400
    assert client.get("/api/products/search/advanced?limit=100").status_code == 200
