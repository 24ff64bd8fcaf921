from __future__ import annotations

import base64
from typing import Any

from fastapi.testclient import TestClient

from support_portal.container import container
from support_portal.main import app

TAB = "tab_aaaa1111"
DEVICE = "device_aaaa1111"


def _headers(tab: str = TAB, device: str = DEVICE) -> dict[str, str]:
    return {"X-Tab-Id": tab, "X-Device-Id": device}


def _login(client: TestClient, phone: str = "9876543210", **scope: str) -> str:
    requested = client.post("/v1/auth/otp/request", json={"phone": phone})
    assert requested.status_code == 200
    verified = client.post("/v1/auth/otp/verify", headers=_headers(**scope), json={"phone": phone, "otp": "123456"})
    assert verified.status_code == 200
    return str(verified.json()["userId"])


def test_login_identity_survives_new_tabs_and_ends_on_logout() -> None:
    client = TestClient(app)
    user_id = _login(client)

    me = client.get("/v1/auth/me", headers=_headers())
    assert me.json() == {"authenticated": True, "userId": user_id}

    other_tab = client.get("/v1/auth/me", headers=_headers(tab="tab_bbbb2222"))
    assert other_tab.json()["userId"] == user_id

    other_device = _login(client, tab="tab_cccc3333", device="device_cccc3333")
    assert other_device == user_id

    assert client.post("/v1/auth/logout", headers=_headers()).status_code == 200
    assert client.get("/v1/auth/me", headers=_headers()).json() == {"authenticated": False, "userId": None}


def test_invalid_otp_and_missing_client_headers_are_validation_errors() -> None:
    client = TestClient(app)

    bad_code = client.post("/v1/auth/otp/verify", headers=_headers(), json={"phone": "9876543210", "otp": "12ab"})
    assert bad_code.status_code == 400
    assert bad_code.json()["error"]["code"] == "VALIDATION_ERROR"

    no_headers = client.get("/v1/auth/me")
    assert no_headers.status_code == 400
    assert no_headers.json()["error"]["details"][0]["field"] == "X-Tab-Id"

    missing_body = client.post("/v1/auth/otp/request", json={})
    assert missing_body.status_code == 400
    assert missing_body.json()["error"]["details"][0]["field"] == "phone"


def test_support_workflow_submits_ticket_with_attachment(fake_backends: Any) -> None:
    client = TestClient(app)
    user_id = _login(client)

    questions = client.get("/v1/questions").json()
    question = questions["categories"][0]["questions"][0]["questionText"]

    created = client.post("/v1/support/workflows", headers=_headers())
    assert created.status_code == 201
    workflow_id = created.json()["workflow"]["id"]
    assert created.json()["workflow"]["state"] == "selecting_question"

    selected = client.post(
        f"/v1/support/workflows/{workflow_id}/question",
        headers=_headers(),
        json={"question": question, "category": "battery"},
    )
    assert selected.json()["workflow"]["state"] == "filling_form"
    assert selected.json()["workflow"]["form"]["title"] == question

    rejected = client.post(
        f"/v1/support/workflows/{workflow_id}/submit",
        headers=_headers(),
        json={"title": "Help", "description": "Battery shows 0% after charging", "category": "battery"},
    )
    assert rejected.status_code == 400
    assert rejected.json()["workflow"]["state"] == "filling_form"
    assert "title" in rejected.json()["workflow"]["errors"]

    submitted = client.post(
        f"/v1/support/workflows/{workflow_id}/submit",
        headers=_headers(),
        json={
            "title": "Battery not charging",
            "description": "Battery shows 0% after charging overnight",
            "category": "battery",
            "priority": "high",
            "attachment": {
                "filename": "charger.jpg",
                "contentType": "image/jpeg",
                "contentBase64": base64.b64encode(b"jpeg-bytes").decode("ascii"),
            },
        },
    )
    assert submitted.status_code == 200
    body = submitted.json()
    assert body["ticket"]["status"] == "open"
    assert body["ticket"]["customerId"] == user_id
    assert body["ticket"]["attachmentUrl"].startswith(f"{user_id}/")
    assert body["workflow"]["state"] == "submitted"
    assert fake_backends.bucket.blobs[body["ticket"]["attachmentUrl"]] == b"jpeg-bytes"

    tickets = client.get("/v1/support/tickets", headers=_headers()).json()["tickets"]
    assert [ticket["id"] for ticket in tickets] == [body["ticket"]["id"]]

    restarted = client.post(f"/v1/support/workflows/{workflow_id}/restart", headers=_headers())
    assert restarted.json()["workflow"]["state"] == "selecting_question"


def test_workflow_errors_map_to_envelopes(monkeypatch: Any) -> None:
    client = TestClient(app)
    workflow_id = client.post("/v1/support/workflows", headers=_headers()).json()["workflow"]["id"]

    assert client.get(f"/v1/support/workflows/{workflow_id}", headers=_headers(tab="tab_zzzz9999")).status_code == 404

    back = client.post(f"/v1/support/workflows/{workflow_id}/back", headers=_headers())
    assert back.status_code == 409
    assert back.json()["error"]["code"] == "INVALID_TRANSITION"

    client.post(f"/v1/support/workflows/{workflow_id}/custom", headers=_headers())
    ticket = {"title": "Brakes squeal", "description": "Front brake squeals when wet", "category": "safety"}

    anonymous = client.post(f"/v1/support/workflows/{workflow_id}/submit", headers=_headers(), json=ticket)
    assert anonymous.status_code == 401
    assert anonymous.json()["error"]["code"] == "AUTH_REQUIRED"

    monkeypatch.setattr(container.attachment_uploader, "max_bytes", 16)
    too_big = client.post(
        f"/v1/support/workflows/{workflow_id}/submit",
        headers=_headers(),
        json={**ticket, "attachment": {"filename": "a.bin", "contentBase64": base64.b64encode(b"x" * 32).decode("ascii")}},
    )
    assert too_big.status_code == 413
    assert too_big.json()["error"]["code"] == "FILE_TOO_LARGE"
    assert too_big.json()["workflow"]["state"] == "filling_form"

    not_base64 = client.post(
        f"/v1/support/workflows/{workflow_id}/submit",
        headers=_headers(),
        json={**ticket, "attachment": {"filename": "a.bin", "contentBase64": "***"}},
    )
    assert not_base64.status_code == 400
