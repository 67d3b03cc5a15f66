"""
Fact-check and Send-email Tests
===============================
"""

from unittest.mock import patch

import pytest


def test_fact_check_requires_title_and_description(client):
    response = client.post("/api/fact-check", json={"title": "Claim"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Title and description are required"}


@pytest.mark.parametrize("body", [["a"], "claim", 42])
def test_fact_check_rejects_non_object_json(client, body):
    response = client.post("/api/fact-check", json=body)
    assert response.status_code == 400
    assert response.get_json() == {"error": "Request body must be a JSON object"}


def test_fact_check_rejects_non_string_fields(client):
    response = client.post("/api/fact-check", json={"title": 1, "description": "d"})
    assert response.status_code == 400


def test_fact_check_accepts_form_post(client):
    response = client.post("/api/fact-check", data={"title": "Claim", "description": "Details"})
    assert response.status_code == 200


def test_fact_check_without_email_config_is_logged(client):
    response = client.post("/api/fact-check", json={
        "title": "Viral photo of flooded stadium",
        "description": "Looks edited",
        "url": "https://social.example.com/post/1",
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert "pending" in data["message"]


def test_fact_check_emails_the_desk(app, client):
    email = app.extensions["zenews"].email
    with patch.object(email, "is_configured", return_value=True), \
            patch.object(email, "send_email", return_value=True) as send:
        response = client.post("/api/fact-check", json={
            "title": "Claim <b>bold</b>",
            "description": "Line one\nLine two",
        })

    assert response.status_code == 200
    to, subject, html_body, text_body = send.call_args.args
    assert to == ["info@zennews.net"]
    assert subject == "Fact Check Submission: Claim <b>bold</b>"
    assert "Source URL: Not provided" in text_body
    assert "&lt;b&gt;" in html_body, "HTML body must be escaped"
    assert "<br>" in html_body


def test_fact_check_send_failure_is_502(app, client):
    email = app.extensions["zenews"].email
    with patch.object(email, "is_configured", return_value=True), \
            patch.object(email, "send_email", return_value=False):
        response = client.post("/api/fact-check", json={"title": "t", "description": "d"})
    assert response.status_code == 502


def test_send_email_validates_fields(client, sign_in):
    sign_in("admin")
    assert client.post("/api/send-email", json={"to": "a@example.com"}).status_code == 400
    assert client.post("/api/send-email", json={
        "to": "not-an-email", "subject": "s", "text": "t",
    }).status_code == 400


def test_send_email_uses_service(app, client, sign_in):
    sign_in("admin")
    email = app.extensions["zenews"].email
    with patch.object(email, "is_configured", return_value=True), \
            patch.object(email, "send_email", return_value=True) as send:
        response = client.post("/api/send-email", json={
            "to": "reader@example.com", "subject": "Thanks", "text": "Hello",
        })

    assert response.status_code == 200
    send.assert_called_once_with(["reader@example.com"], "Thanks", "Hello", "Hello")


@pytest.mark.parametrize("body", [["reader@example.com"], {"to": ["a@example.com"], "subject": "s", "text": "t"}])
def test_send_email_rejects_malformed_body(client, sign_in, body):
    sign_in("admin")
    assert client.post("/api/send-email", json=body).status_code == 400
