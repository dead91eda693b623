from agridoctor.models.models import Category, Disease


def test_list_categories_is_public_and_sorted(client, db):
    db.add_all([Category(name="Viral"), Category(name="Bacterial"), Category(name="Fungal")])
    db.commit()

    response = client.get("/categories/")

    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Bacterial", "Fungal", "Viral"]


def test_create_category_trims_name(client, admin_headers):
    response = client.post("/categories/", json={"name": "  Blight  ", "description": "Leaf blight"}, headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Blight"
    assert body["description"] == "Leaf blight"


def test_duplicate_category_name_is_case_insensitive(client, admin_headers):
    first = client.post("/categories/", json={"name": "Blight"}, headers=admin_headers)
    second = client.post("/categories/", json={"name": "blight"}, headers=admin_headers)

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json()["detail"] == "Category with this name already exists"


def test_create_category_requires_name(client, admin_headers):
    response = client.post("/categories/", json={"name": "   "}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"][0]["field"] == "name"


def test_create_category_requires_admin(client, farmer_headers):
    assert client.post("/categories/", json={"name": "Rust"}).status_code == 401
    assert client.post("/categories/", json={"name": "Rust"}, headers=farmer_headers).status_code == 403


def test_get_category(client, admin_headers, category):
    response = client.get(f"/categories/{category.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Fungal"

    assert client.get("/categories/999", headers=admin_headers).status_code == 404


def test_update_category(client, admin_headers, category):
    response = client.put(
        f"/categories/{category.id}", json={"name": "Fungal diseases", "description": ""}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Fungal diseases"
    assert response.json()["description"] == ""


def test_update_category_allows_case_change_of_own_name(client, admin_headers, category):
    response = client.put(f"/categories/{category.id}", json={"name": "FUNGAL"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "FUNGAL"


def test_update_category_rejects_name_of_another(client, db, admin_headers, category):
    db.add(Category(name="Viral"))
    db.commit()

    response = client.put(f"/categories/{category.id}", json={"name": "viral"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Another category with this name already exists"


def test_delete_unused_category(client, db, admin_headers, category):
    category_id = category.id

    response = client.delete(f"/categories/{category_id}", headers=admin_headers)

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Category, category_id) is None


def test_category_id_out_of_range(client, admin_headers):
    response = client.get("/categories/99999999999999999999", headers=admin_headers)
    assert response.status_code == 400


def test_delete_category_in_use_reports_count(client, db, admin_headers, admin_user, category):
    for name in ("Blast", "Brown Spot", "Sheath Blight"):
        db.add(Disease(
            name=name, description="d", symptoms="s", prevention="p", treatment="t",
            category_id=category.id, images=["/uploads/a.jpg"], created_by=admin_user.id,
        ))
    db.commit()

    response = client.delete(f"/categories/{category.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["count"] == 3
    db.expire_all()
    assert db.get(Category, category.id) is not None


def test_delete_missing_category(client, admin_headers):
    assert client.delete("/categories/42", headers=admin_headers).status_code == 404
