"""Tests for the dunning template API endpoints."""

from uuid import uuid4

TEMPLATE = {
    "name": "Gentle nudge",
    "subject": "About your {{amount_due}} payment",
    "body_html": "<p>Hi {{customer_name}}</p>",
    "body_text": "Hi {{customer_name}}",
    "delay_days": 2,
    "sequence_order": 1,
}


class TestCreate:
    def test_create(self, client, auth_headers, merchant):
        response = client.post("/v1/dunning_templates/", json=TEMPLATE, headers=auth_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Gentle nudge"
        assert body["merchant_id"] == str(merchant.id)
        assert body["is_active"] is True

    def test_sequence_order_conflict(self, client, auth_headers, templates):
        response = client.post("/v1/dunning_templates/", json=TEMPLATE, headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == "An active template already uses sequence order 1"

    def test_inactive_template_may_share_order(self, client, auth_headers, templates):
        response = client.post(
            "/v1/dunning_templates/",
            json={**TEMPLATE, "is_active": False},
            headers=auth_headers,
        )
        assert response.status_code == 201

    def test_validation(self, client, auth_headers):
        response = client.post(
            "/v1/dunning_templates/",
            json={**TEMPLATE, "sequence_order": 0},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_requires_merchant(self, client):
        assert client.post("/v1/dunning_templates/", json=TEMPLATE).status_code == 401


class TestRead:
    def test_list_in_sequence_order(self, client, auth_headers, templates):
        response = client.get("/v1/dunning_templates/", headers=auth_headers)

        assert response.status_code == 200
        assert [t["sequence_order"] for t in response.json()] == [1, 2, 3]

    def test_list_active_only(self, client, db_session, auth_headers, templates):
        templates[1].is_active = False
        db_session.commit()

        response = client.get(
            "/v1/dunning_templates/", params={"active_only": True}, headers=auth_headers
        )

        assert [t["sequence_order"] for t in response.json()] == [1, 3]

    def test_get(self, client, auth_headers, templates):
        response = client.get(f"/v1/dunning_templates/{templates[0].id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["name"] == templates[0].name

    def test_get_not_found(self, client, auth_headers):
        response = client.get(f"/v1/dunning_templates/{uuid4()}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Dunning template not found"


class TestUpdate:
    def test_update_fields(self, client, auth_headers, templates):
        response = client.put(
            f"/v1/dunning_templates/{templates[0].id}",
            json={"subject": "New subject", "delay_days": 3},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["subject"] == "New subject"
        assert body["delay_days"] == 3
        assert body["sequence_order"] == 1

    def test_move_onto_taken_order(self, client, auth_headers, templates):
        response = client.put(
            f"/v1/dunning_templates/{templates[2].id}",
            json={"sequence_order": 2},
            headers=auth_headers,
        )
        assert response.status_code == 409

    def test_reactivate_onto_taken_order(self, client, db_session, auth_headers, templates):
        templates[0].is_active = False
        db_session.commit()
        client.post("/v1/dunning_templates/", json=TEMPLATE, headers=auth_headers)

        response = client.put(
            f"/v1/dunning_templates/{templates[0].id}",
            json={"is_active": True},
            headers=auth_headers,
        )

        assert response.status_code == 409

    def test_keep_own_order(self, client, auth_headers, templates):
        response = client.put(
            f"/v1/dunning_templates/{templates[1].id}",
            json={"sequence_order": 2, "name": "Renamed"},
            headers=auth_headers,
        )
        assert response.status_code == 200

    def test_update_not_found(self, client, auth_headers):
        response = client.put(
            f"/v1/dunning_templates/{uuid4()}", json={"name": "x"}, headers=auth_headers
        )
        assert response.status_code == 404
