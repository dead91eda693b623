import pytest

from agridoctor.models.models import Disease, Message


@pytest.fixture
def disease(db, category, admin_user):
    db_disease = Disease(
        name="Rice Blast", description="d", symptoms="s", prevention="p", treatment="t",
        category_id=category.id, images=["/uploads/blast.jpg"], created_by=admin_user.id,
    )
    db.add(db_disease)
    db.commit()
    db.refresh(db_disease)
    return db_disease


FEEDBACK = {
    "author_name": "Lan",
    "email": "Lan@Example.com",
    "subject": "Missing disease",
    "content": "Please add false smut.",
}


def test_submit_feedback_is_public_and_unapproved(client):
    response = client.post("/feedback/", json=FEEDBACK)

    assert response.status_code == 201
    body = response.json()
    assert body["approved"] is False
    assert body["status"] == "new"
    assert body["topic"] == "general"
    assert body["email"] == "lan@example.com"
    assert body["target_type"] == "none"
    assert body["submitted_by"] is None


def test_submit_feedback_links_logged_in_user(client, farmer_headers, farmer_user):
    response = client.post("/feedback/", json={**FEEDBACK, "topic": "question"}, headers=farmer_headers)

    assert response.status_code == 201
    assert response.json()["submitted_by"] == farmer_user.id
    assert response.json()["topic"] == "question"


@pytest.mark.parametrize("change", [{"email": "not-an-email"}, {"subject": ""}, {"topic": "spam"}])
def test_submit_feedback_validation(client, change):
    response = client.post("/feedback/", json={**FEEDBACK, **change})

    assert response.status_code == 400
    assert response.json()["detail"][0]["field"] == next(iter(change))


def test_feedback_visible_only_after_approval(client, admin_headers):
    message_id = client.post("/feedback/", json=FEEDBACK).json()["id"]

    assert client.get("/feedback/approved").json() == []

    approved = client.patch(f"/feedback/{message_id}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["approved"] is True

    public = client.get("/feedback/approved").json()
    assert [m["id"] for m in public] == [message_id]
    assert "email" not in public[0]


def test_feedback_status_update(client, admin_headers):
    message_id = client.post("/feedback/", json=FEEDBACK).json()["id"]

    response = client.put(f"/feedback/{message_id}", json={"status": "replied"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "replied"

    invalid = client.put(f"/feedback/{message_id}", json={"status": "archived"}, headers=admin_headers)
    assert invalid.status_code == 400


def test_admin_listing_includes_unapproved(client, admin_headers, farmer_headers):
    first = client.post("/feedback/", json=FEEDBACK).json()["id"]
    second = client.post("/feedback/", json={**FEEDBACK, "subject": "Another"}).json()["id"]
    client.patch(f"/feedback/{first}/approve", headers=admin_headers)

    everything = client.get("/feedback/", headers=admin_headers).json()
    assert {m["id"] for m in everything} == {first, second}

    pending = client.get("/feedback/", params={"approved": False}, headers=admin_headers).json()
    assert [m["id"] for m in pending] == [second]

    assert client.get("/feedback/", headers=farmer_headers).status_code == 403
    assert client.get("/feedback/").status_code == 401


def test_get_and_delete_feedback(client, db, admin_headers):
    message_id = client.post("/feedback/", json=FEEDBACK).json()["id"]

    assert client.get(f"/feedback/{message_id}", headers=admin_headers).json()["subject"] == "Missing disease"
    assert client.delete(f"/feedback/{message_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/feedback/{message_id}", headers=admin_headers).status_code == 404
    assert db.query(Message).count() == 0


def test_review_requires_login(client, disease):
    response = client.post("/reviews/", json={"disease_id": disease.id, "content": "Very helpful"})
    assert response.status_code == 401


def test_review_for_unknown_disease(client, farmer_headers):
    response = client.post("/reviews/", json={"disease_id": 999, "content": "Hm"}, headers=farmer_headers)
    assert response.status_code == 404


def test_reviews_filtered_by_disease_after_approval(client, db, farmer_headers, admin_headers, disease, category, admin_user):
    other = Disease(
        name="Tungro", description="d", symptoms="s", prevention="p", treatment="t",
        category_id=category.id, images=["/uploads/tungro.jpg"], created_by=admin_user.id,
    )
    db.add(other)
    db.commit()

    on_blast = client.post("/reviews/", json={"disease_id": disease.id, "content": "Worked"}, headers=farmer_headers).json()
    on_tungro = client.post("/reviews/", json={"disease_id": other.id, "content": "Also"}, headers=farmer_headers).json()
    assert on_blast["target_type"] == "disease"

    for review in (on_blast, on_tungro):
        client.patch(f"/reviews/{review['id']}/approve", headers=admin_headers)

    listed = client.get("/reviews/approved", params={"target_id": disease.id}).json()
    assert [r["id"] for r in listed] == [on_blast["id"]]
    assert listed[0]["author_name"] == "Farmer"


def test_comment_defaults_to_anonymous(client, admin_headers):
    response = client.post("/comments/", json={"post_id": 7, "author_name": "  ", "content": "Nice post"})

    assert response.status_code == 201
    body = response.json()
    assert body["author_name"] == "Anonymous"
    assert body["target_type"] == "post"
    assert body["target_id"] == 7

    client.patch(f"/comments/{body['id']}/approve", headers=admin_headers)
    assert len(client.get("/comments/approved", params={"target_id": 7}).json()) == 1
    assert client.get("/comments/approved", params={"target_id": 8}).json() == []


def test_kinds_do_not_leak_between_routers(client, admin_headers):
    comment_id = client.post("/comments/", json={"post_id": 1, "content": "Hi"}).json()["id"]

    assert client.get(f"/feedback/{comment_id}", headers=admin_headers).status_code == 404
    assert client.patch(f"/reviews/{comment_id}/approve", headers=admin_headers).status_code == 404


def test_generic_submission_dispatches_on_kind(client, farmer_headers, disease):
    comment = client.post("/messages/", json={"kind": "comment", "post_id": 3, "content": "Thanks"})
    review = client.post("/messages/", json={"kind": "review", "disease_id": disease.id, "content": "Ok"}, headers=farmer_headers)
    unknown = client.post("/messages/", json={"kind": "rant", "content": "??"})

    assert comment.status_code == 201 and comment.json()["kind"] == "comment"
    assert review.status_code == 201 and review.json()["kind"] == "review"
    assert unknown.status_code == 400


def test_message_ids_out_of_range(client, admin_headers, farmer_headers):
    too_big = 99999999999999999999

    assert client.get(f"/feedback/{too_big}", headers=admin_headers).status_code == 400
    assert client.get("/reviews/approved", params={"target_id": too_big}).status_code == 400
    response = client.post("/reviews/", json={"disease_id": too_big, "content": "Hm"}, headers=farmer_headers)
    assert response.status_code == 400
