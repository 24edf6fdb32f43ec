"""
Tests for the session-backed order wizard routes.
"""

import os

import pytest

from conftest import CUSTOMER, make_image_bytes, upload_data


def _upload(client, content, filename="photo.png"):
    return client.post(
        "/wizard/upload",
        data=upload_data(content, filename, "image/png"),
        content_type="multipart/form-data",
    )


def _to_product_step(client, png_bytes):
    _upload(client, png_bytes)
    client.post("/wizard/next")
    client.post("/wizard/next")


class TestFullOrder:
    """Upload, edit, choose a product and check out in one session."""

    def test_end_to_end(self, app, client, upload_dir):
        # About 2 MB of incompressible pixels
        content = make_image_bytes("PNG", size=(820, 820), noise=True)

        response = _upload(client, content, "holiday.png")
        assert response.status_code == 201
        body = response.get_json()
        assert body["image"]["id"] == 1
        assert float(body["image"]["sizeMb"]) == pytest.approx(len(content) / (1024 * 1024))
        assert body["wizard"]["step"] == 1
        assert body["wizard"]["imageId"] == 1

        wizard = client.post("/wizard/next").get_json()["wizard"]
        assert wizard["step"] == 2

        client.post("/wizard/edit", json={"rotate": "right"})
        wizard = client.post(
            "/wizard/edit", json={"rotate": "right", "filter": "sepia(70%)"}
        ).get_json()["wizard"]
        assert wizard["rotation"] == 180
        assert wizard["filter"] == "sepia(70%)"

        wizard = client.post("/wizard/next").get_json()["wizard"]
        assert wizard["step"] == 3

        body = client.post(
            "/wizard/product",
            json={"productType": "postcard", "productSize": "medium", "quantity": 3},
        ).get_json()
        assert body["wizard"]["unitPrice"] == 2.5
        assert body["breakdown"]["total"] == 7.5

        body = client.post("/wizard/next").get_json()
        assert body["wizard"]["step"] == 4
        assert body["breakdown"]["subtotal"] == 7.5
        assert body["breakdown"]["shipping"] == 4.99
        assert body["breakdown"]["tax"] == pytest.approx(0.60)
        assert body["breakdown"]["total"] == pytest.approx(13.09)

        response = client.post("/wizard/checkout", json=CUSTOMER)
        assert response.status_code == 201
        body = response.get_json()

        order = body["order"]
        assert order["imageId"] == 1
        assert order["rotation"] == 180
        assert order["filter"] == "sepia(70%)"
        assert order["quantity"] == 3
        assert float(order["totalPrice"]) == pytest.approx(13.09)
        assert order["customerInfo"]["shipping"] == 4.99
        assert body["resetAfterSeconds"] == 2
        assert body["wizard"]["step"] == 1
        assert body["wizard"]["imageId"] is None

        stored = app.config["REPOSITORY"].get_order(order["id"])
        assert stored.image_id == 1
        assert len(os.listdir(upload_dir)) == 1

    def test_state_survives_between_requests(self, client, png_bytes):
        _upload(client, png_bytes)
        wizard = client.get("/wizard").get_json()["wizard"]
        assert wizard["imageId"] == 1
        assert wizard["stepName"] == "Upload"


class TestNavigationRoutes:

    def test_fresh_session(self, client):
        body = client.get("/wizard").get_json()
        assert body["wizard"]["step"] == 1
        assert "breakdown" not in body

    def test_back_from_edit_keeps_image(self, client, png_bytes):
        _upload(client, png_bytes)
        client.post("/wizard/next")

        wizard = client.post("/wizard/back").get_json()["wizard"]
        assert wizard["step"] == 1
        assert wizard["imageId"] == 1

    def test_back_from_upload_is_conflict(self, client):
        response = client.post("/wizard/back")
        assert response.status_code == 409
        assert "message" in response.get_json()

    def test_next_without_image_is_conflict(self, client):
        assert client.post("/wizard/next").status_code == 409

    def test_checkout_requires_product(self, client, png_bytes):
        _to_product_step(client, png_bytes)
        response = client.post("/wizard/next")
        assert response.status_code == 409
        assert client.get("/wizard").get_json()["wizard"]["step"] == 3

    def test_start_over_keeps_file_and_record(self, app, client, png_bytes, upload_dir):
        """Start over resets the wizard but never deletes the upload."""
        _upload(client, png_bytes)
        client.post("/wizard/next")
        client.post("/wizard/edit", json={"rotate": "left", "filter": "grayscale(100%)"})

        wizard = client.post("/wizard/start-over").get_json()["wizard"]
        assert wizard["step"] == 1
        assert wizard["imageId"] is None
        assert wizard["rotation"] == 0
        assert wizard["filter"] == "none"
        assert wizard["quantity"] == 1
        assert wizard["productType"] is None

        assert app.config["REPOSITORY"].get_image(1) is not None
        assert len(os.listdir(upload_dir)) == 1

    def test_sessions_are_independent(self, app, png_bytes):
        first = app.test_client()
        second = app.test_client()
        _upload(first, png_bytes)
        assert second.get("/wizard").get_json()["wizard"]["imageId"] is None


class TestStepGuards:

    def test_upload_outside_first_step_stores_nothing(self, client, png_bytes, upload_dir):
        _upload(client, png_bytes)
        client.post("/wizard/next")

        response = _upload(client, png_bytes)
        assert response.status_code == 409
        assert len(os.listdir(upload_dir)) == 1

    def test_reupload_replaces_reference(self, client, png_bytes):
        _upload(client, png_bytes)
        wizard = _upload(client, png_bytes).get_json()["wizard"]
        assert wizard["imageId"] == 2

    def test_edit_outside_edit_step(self, client):
        response = client.post("/wizard/edit", json={"rotate": "left"})
        assert response.status_code == 409

    def test_bad_rotate_value(self, client, png_bytes):
        _upload(client, png_bytes)
        client.post("/wizard/next")
        response = client.post("/wizard/edit", json={"rotate": "up"})
        assert response.status_code == 400

    def test_unknown_filter(self, client, png_bytes):
        _upload(client, png_bytes)
        client.post("/wizard/next")
        response = client.post("/wizard/edit", json={"filter": "blur(2px)"})
        assert response.status_code == 400

    def test_product_requires_type(self, client, png_bytes):
        _to_product_step(client, png_bytes)
        response = client.post("/wizard/product", json={"quantity": 2})
        assert response.status_code == 400

    @pytest.mark.parametrize("quantity", [0, 101])
    def test_product_quantity_bounds(self, client, png_bytes, quantity):
        _to_product_step(client, png_bytes)
        response = client.post(
            "/wizard/product", json={"productType": "poster", "quantity": quantity}
        )
        assert response.status_code == 400

    def test_checkout_before_final_step(self, client, png_bytes):
        _to_product_step(client, png_bytes)
        response = client.post("/wizard/checkout", json=CUSTOMER)
        assert response.status_code == 409

    def test_checkout_invalid_customer_keeps_state(self, client, png_bytes):
        """A rejected order leaves the wizard on the checkout step."""
        _to_product_step(client, png_bytes)
        client.post("/wizard/product", json={"productType": "poster"})
        client.post("/wizard/next")

        response = client.post("/wizard/checkout", json={**CUSTOMER, "email": "nope"})
        assert response.status_code == 400
        assert client.get("/wizard").get_json()["wizard"]["step"] == 4

    @pytest.mark.parametrize("value", [["sepia(70%)"], {"token": "none"}, 7])
    def test_filter_of_wrong_type(self, client, png_bytes, value):
        _upload(client, png_bytes)
        client.post("/wizard/next")
        response = client.post("/wizard/edit", json={"filter": value})
        assert response.status_code == 400
        assert client.get("/wizard").get_json()["wizard"]["filter"] == "none"

    @pytest.mark.parametrize("body", [
        {"productType": ["poster"]},
        {"productType": {"a": 1}},
        {"productType": "poster", "productSize": {"a": 1}},
        {"productType": "poster", "productSize": ["large"]},
        {"productType": "poster", "quantity": "3"},
    ])
    def test_product_fields_of_wrong_type(self, client, png_bytes, body):
        _to_product_step(client, png_bytes)
        response = client.post("/wizard/product", json=body)
        assert response.status_code == 400
        assert client.get("/wizard").get_json()["wizard"]["productType"] is None
