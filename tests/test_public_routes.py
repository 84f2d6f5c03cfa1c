import base64
from pathlib import Path
from unittest.mock import patch

from sqlalchemy.exc import SQLAlchemyError

from app.extensions import db
from app.models import Lead, Review

PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="


def get_started_payload(**extra):
    data = {
        "firstName": "Ana",
        "lastName": "Lopez",
        "email": "Ana@Example.com ",
        "phone": "301-555-0100",
        "address": "5 Oak Ave",
        "city": "Silver Spring",
        "zip": "20901",
        "services": ["painting", "drywall"],
        "projectDetails": "Two bedrooms",
    }
    data.update(extra)
    return data


class TestGetStarted:
    def test_creates_lead(self, client):
        resp = client.post("/api/get-started", json=get_started_payload())

        assert resp.status_code == 200
        assert resp.get_json()["success"] is True
        lead = Lead.query.one()
        assert lead.source == "get-started"
        assert lead.name == "Ana Lopez"
        assert lead.email == "ana@example.com"
        assert lead.services == ["painting", "drywall"]
        assert lead.status == "new"

    def test_missing_fields_listed(self, client):
        resp = client.post("/api/get-started", json=get_started_payload(phone="", services=[]))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required fields: phone, services"
        assert Lead.query.count() == 0

    def test_photos_stored_and_bad_ones_skipped(self, client, blob_store):
        photos = [
            {"name": "a.png", "data": f"data:image/png;base64,{PNG_B64}"},
            "data:text/plain;base64," + base64.b64encode(b"nope").decode(),
            f"data:image/png;base64,{PNG_B64}",
        ]
        client.post("/api/get-started", json=get_started_payload(photos=photos))

        lead = Lead.query.one()
        assert lead.photo_keys == [
            f"leads/{lead.id}/project-photo-1.png",
            f"leads/{lead.id}/project-photo-2.png",
        ]
        assert blob_store.exists(lead.photo_keys[0])

    def test_failed_save_removes_stored_photos(self, client, blob_store):
        photos = [f"data:image/png;base64,{PNG_B64}"]

        with patch.object(db.session, "commit", side_effect=SQLAlchemyError("db down")):
            resp = client.post("/api/get-started", json=get_started_payload(photos=photos))

        assert resp.status_code == 500
        assert Lead.query.count() == 0
        assert list(Path(blob_store.base_dir).rglob("*.png")) == []

    def test_not_json(self, client):
        assert client.post("/api/get-started", data="x").status_code == 400

    def test_captcha_enforced_when_required(self, app, client):
        app.config["RECAPTCHA_REQUIRED"] = True
        app.config["RECAPTCHA_SECRET_KEY"] = "secret"

        with patch("app.public.requests.post") as post:
            post.return_value.json.return_value = {"success": False}
            resp = client.post("/api/get-started", json=get_started_payload(recaptchaToken="tok"))

        assert resp.status_code == 400
        assert Lead.query.count() == 0

    def test_captcha_fails_closed_without_secret(self, app, client):
        app.config["RECAPTCHA_REQUIRED"] = True
        app.config["RECAPTCHA_SECRET_KEY"] = ""

        resp = client.post("/api/get-started", json=get_started_payload(recaptchaToken="tok"))

        assert resp.status_code == 400


class TestContact:
    def test_creates_contact_lead(self, client):
        resp = client.post("/api/contact", json={
            "name": "Sam", "email": "sam@example.com", "phone": "555", "message": "Leaky roof", "service": "roofing",
        })

        assert resp.status_code == 200
        lead = Lead.query.one()
        assert lead.source == "contact"
        assert lead.services == ["roofing"]

    def test_requires_message(self, client):
        resp = client.post("/api/contact", json={"name": "Sam", "email": "sam@example.com", "phone": "555"})
        assert resp.status_code == 400


class TestReviews:
    def test_submission_waits_for_approval(self, client):
        resp = client.post("/api/reviews", json={"name": "Pat", "rating": 5, "text": "Great crew"})
        assert resp.status_code == 201

        assert client.get("/api/reviews").get_json()["reviews"] == []

        review = Review.query.one()
        review.approved = True
        db.session.commit()

        reviews = client.get("/api/reviews").get_json()["reviews"]
        assert [r["name"] for r in reviews] == ["Pat"]

    def test_rating_out_of_range(self, client):
        resp = client.post("/api/reviews", json={"name": "Pat", "rating": 9, "text": "Great crew"})
        assert resp.status_code == 400

    def test_home_page_lists_approved(self, client):
        db.session.add(Review(name="Quinn", rating=4, text="Tidy work", approved=True))
        db.session.add(Review(name="Hidden", rating=1, text="pending", approved=False))
        db.session.commit()

        html = client.get("/").data
        assert b"Quinn" in html
        assert b"Hidden" not in html
