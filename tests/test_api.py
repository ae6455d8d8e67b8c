import json

import portflow.services.chat_nodes as chat_nodes
import portflow.services.scan_service as scan_service


async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "healthy"}


# ==================== SESSION ====================

async def test_login_logout_cycle(client):
    assert (await client.get("/api/v1/session")).status_code == 401

    login = await client.post("/api/v1/session/login", json={})
    assert login.json() == {"email": "franz@portflow.org", "companyName": "PortFlow Global"}
    assert (await client.get("/api/v1/session")).status_code == 200

    await client.post("/api/v1/session/logout")
    assert (await client.get("/api/v1/session")).status_code == 401


async def test_navigate_dashboard_requires_session(client):
    response = await client.get("/api/v1/session/navigate", params={"fragment": "#/dashboard"})
    assert response.json()["screen"] == "login"

    await client.post("/api/v1/session/login", json={})
    response = await client.get("/api/v1/session/navigate", params={"fragment": "#/dashboard"})
    assert response.json()["screen"] == "dashboard"

    response = await client.get("/api/v1/session/navigate", params={"fragment": "#/nowhere"})
    assert response.json()["fragment"] == "#/landing"


# ==================== BOOKINGS ====================

async def test_bookings_need_session(client):
    assert (await client.get("/api/v1/bookings")).status_code == 401


async def test_list_and_search(ops_client):
    rows = (await ops_client.get("/api/v1/bookings")).json()
    assert rows == [{
        "id": "1",
        "dateSubmitted": "2024-03-20T10:30:00Z",
        "referenceNumber": "QRL-2024-0001",
        "customerName": "TechCorp Solutions",
        "serviceType": "Sea",
        "originName": "Singapore",
        "destinationName": "Hamburg",
        "status": "New",
    }]

    assert (await ops_client.get("/api/v1/bookings", params={"search": "nomatch"})).json() == []


async def test_export_is_stable_download(ops_client):
    first = await ops_client.get("/api/v1/bookings/1/export")
    second = await ops_client.get("/api/v1/bookings/1/export")

    assert first.headers["content-disposition"] == 'attachment; filename="QRL-2024-0001.json"'
    assert first.content == second.content
    assert json.loads(first.content)["referenceNumber"] == "QRL-2024-0001"
    assert first.text.startswith('{\n  "id": "1"')


async def test_finalize(ops_client):
    response = await ops_client.post("/api/v1/bookings/1/finalize")
    assert response.json()["status"] == "Booked"

    detail = (await ops_client.get("/api/v1/bookings/1")).json()
    assert detail["status"] == "Booked"
    assert [t["status"] for t in detail["timeline"]] == ["New"]


async def test_unknown_booking(ops_client):
    assert (await ops_client.get("/api/v1/bookings/nope")).status_code == 404
    assert (await ops_client.post("/api/v1/bookings/nope/finalize")).status_code == 404


async def test_scan_upload(ops_client, monkeypatch):
    async def fake_extract(**kwargs):
        return {
            "shipper_name": "Acme Exports",
            "freight_charges": [{"charge_code": "OF", "quantity": 2, "unit_price": 100, "currency": "USD"}],
        }

    monkeypatch.setattr(scan_service, "extract_json_from_document", fake_extract)

    response = await ops_client.post(
        "/api/v1/bookings/scan",
        files={"file": ("invoice.png", b"\x89PNG\r\n", "image/png")},
    )

    assert response.status_code == 201
    booking = response.json()
    assert booking["customerName"] == "Acme Exports"
    assert booking["charges"][0]["total"] == 200

    rows = (await ops_client.get("/api/v1/bookings")).json()
    assert [r["id"] for r in rows][0] == booking["id"]
    assert (await ops_client.get("/api/v1/bookings/scan/status")).json() == {"scanning": False, "scans_in_flight": 0}


async def test_scan_failure_returns_502(ops_client, monkeypatch):
    async def failing_extract(**kwargs):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(scan_service, "extract_json_from_document", failing_extract)

    response = await ops_client.post(
        "/api/v1/bookings/scan",
        files={"file": ("bl.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert response.status_code == 502
    assert response.json()["detail"] == "AI Scan failed."
    assert len((await ops_client.get("/api/v1/bookings")).json()) == 1


async def test_scan_rejects_other_types(ops_client):
    response = await ops_client.post(
        "/api/v1/bookings/scan",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 415


# ==================== CHAT ====================

async def test_chat_round_trip(client, monkeypatch):
    async def converse(system_prompt, messages, **kwargs):
        return "Where is the cargo going? READY FOR OPS"

    async def extract(system_prompt, user_message, **kwargs):
        return {"origin_port": "Shanghai"}

    async def submit(payload):
        return {"quote_number": "PF-2048"}

    monkeypatch.setattr(chat_nodes, "call_llm_with_history", converse)
    monkeypatch.setattr(chat_nodes, "extract_json_from_llm", extract)
    monkeypatch.setattr(chat_nodes, "submit_intake", submit)

    started = await client.post("/api/v1/chat/conversations")
    assert started.status_code == 201
    conversation_id = started.json()["conversation_id"]

    reply = await client.post(
        f"/api/v1/chat/conversations/{conversation_id}/messages",
        json={"message": "From Shanghai"},
    )
    assert reply.json()["message"] == "Where is the cargo going?"

    confirmed = await client.post(
        f"/api/v1/chat/conversations/{conversation_id}/messages",
        json={"message": "confirm"},
    )
    assert confirmed.json()["submitted"] is True
    assert confirmed.json()["reference_number"] == "PF-2048"

    history = (await client.get(f"/api/v1/chat/conversations/{conversation_id}/messages")).json()
    assert [m["role"] for m in history] == ["assistant", "user", "assistant", "user", "assistant"]

    conversation = (await client.get(f"/api/v1/chat/conversations/{conversation_id}")).json()
    assert conversation["status"] == "SUBMITTED"
    assert conversation["last_reference"] == "PF-2048"


async def test_chat_rejects_blank_and_unknown(client):
    started = await client.post("/api/v1/chat/conversations")
    conversation_id = started.json()["conversation_id"]

    blank = await client.post(f"/api/v1/chat/conversations/{conversation_id}/messages", json={"message": "   "})
    assert blank.status_code == 422

    missing = await client.post(
        "/api/v1/chat/conversations/6f1c1e0e-8a43-4c39-9e55-3f8f0f3c2d11/messages",
        json={"message": "hi"},
    )
    assert missing.status_code == 404


async def test_export_keeps_integer_quantities(ops_client):
    exported = (await ops_client.get("/api/v1/bookings/1/export")).text

    assert '"qty": 2,' in exported
    assert '"qty": 1,' in exported
