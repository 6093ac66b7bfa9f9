from configs import db
from db.models.invite import QuoteInvite
from db.models.quotation import Quotation


def test_fix_roof_leak_end_to_end(client, login, pm, portal_contractor, contractors):
    roofer_user, roofer = portal_contractor
    login("pm1")

    resp = client.post(
        "/api/rfqs",
        json={
            "title": "Fix roof leak",
            "description": "Water ingress above unit 4B after heavy rain.",
            "scope_of_work": "Inspect roof sheeting, replace flashing, reseal.",
            "building_name": "Harbour View",
            "building_address": "12 Beach Road, Sea Point",
            "contractor_ids": [roofer.id, contractors[0].id],
        },
    )
    assert resp.status_code == 201
    rfq = resp.get_json()
    assert rfq["status"] == "DRAFT"
    assert rfq["allowed_actions"] == ["EDIT_AND_RESUBMIT", "SUBMIT"]
    rfq_id, rfq_number = rfq["id"], rfq["rfq_number"]

    rfq = client.post(f"/api/rfqs/{rfq_id}/submit").get_json()
    assert rfq["status"] == "SUBMITTED"

    # portal contractor quotes R500
    login("roofer")
    resp = client.post("/api/quotations", json={"rfq_number": rfq_number, "subtotal": 500})
    assert resp.status_code == 201, resp.get_json()
    q500 = resp.get_json()

    login("pm1")
    assert client.get(f"/api/rfqs/{rfq_id}").get_json()["status"] == "RECEIVED"
    rfq = client.post(f"/api/rfqs/{rfq_id}/status", json={"action": "START_REVIEW"}).get_json()
    assert rfq["status"] == "UNDER_REVIEW"

    # e-mail-only contractor quotes R650 through the invite link
    token = QuoteInvite.query.filter_by(rfq_id=rfq_id).one().token
    resp = client.post(f"/external/rfq/{token}/quotation", json={"total": 650})
    assert resp.status_code == 201

    rows = client.get(f"/api/rfqs/by-number/{rfq_number}/quotations").get_json()
    assert [r["total"] for r in rows] == [500.0, 650.0]
    q650_id = rows[1]["id"]

    resp = client.post(f"/api/rfqs/by-number/{rfq_number}/select", json={"quotation_id": q500["id"]})
    assert resp.status_code == 200
    assert resp.get_json()["rfq_status"] == "APPROVED"
    assert db.session.get(Quotation, q500["id"]).approved is True
    assert db.session.get(Quotation, q650_id).approved is False

    resp = client.post(f"/api/rfqs/{rfq_id}/convert", json={})
    assert resp.status_code == 201
    order = resp.get_json()
    assert order["generated_from_rfq_id"] == rfq_id
    assert order["contractor_id"] == roofer.id
    assert order["total_amount"] == 500.0

    rfq = client.get(f"/api/rfqs/{rfq_id}").get_json()
    assert rfq["status"] == "CONVERTED_TO_ORDER"
    assert rfq["generated_order_id"] == order["id"]
    assert rfq["allowed_actions"] == []
    assert rfq["is_terminal"] is True

    approved = client.get("/api/quotations/approved").get_json()
    assert [a["id"] for a in approved] == [q500["id"]]

    # second conversion is refused
    resp = client.post(f"/api/rfqs/{rfq_id}/convert", json={})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "PRECONDITION_FAILED"


def test_unauthenticated_gets_json_401(client, app):
    resp = client.get("/api/rfqs")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHORIZED"

    resp = client.post("/api/orders", json={})
    assert resp.status_code == 401


def test_wrong_password(client, pm):
    resp = client.post("/auth/login", json={"username": "pm1", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid username or password."


def test_me(client, login, pm):
    login("pm1")
    body = client.get("/auth/me").get_json()
    assert body["username"] == "pm1"
    assert body["role"] == "PROPERTY_MANAGER"


def test_role_guard_is_403(client, login, portal_contractor):
    login("roofer")
    resp = client.post("/api/rfqs", json={"title": "Nope"})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "FORBIDDEN"


def test_validation_error_is_400(client, login, pm):
    login("pm1")
    resp = client.post("/api/rfqs", json={"title": "x"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "VALIDATION_ERROR"
    assert "Title" in body["message"]


def test_reject_without_reason_is_400(client, login, pm, contractors):
    login("pm1")
    rfq = client.post(
        "/api/rfqs",
        json={
            "title": "Paint lobby",
            "description": "Lobby walls are peeling and stained.",
            "scope_of_work": "Prepare and paint lobby walls, two coats.",
            "building_address": "7 Oak Avenue, Rondebosch",
            "submit": True,
        },
    ).get_json()
    resp = client.post(f"/api/rfqs/{rfq['id']}/status", json={"action": "REJECT", "rejection_reason": " "})
    assert resp.status_code == 400
    assert client.get(f"/api/rfqs/{rfq['id']}").get_json()["status"] == "SUBMITTED"


def test_not_found_and_precondition(client, login, pm):
    login("pm1")
    resp = client.get("/api/rfqs/999")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOT_FOUND"

    resp = client.delete("/api/rfqs/999")
    assert resp.status_code == 404


def test_admin_onboards_property_manager(client, login, admin, pm):
    login("admin")
    resp = client.post(
        "/api/admin/property-managers",
        json={"username": "pm3", "email": "pm3@example.com", "password": "s3cret-pass"},
    )
    assert resp.status_code == 201
    assert resp.get_json()["role"] == "PROPERTY_MANAGER"

    resp = client.post(
        "/api/admin/property-managers",
        json={"username": "pm3", "email": "other@example.com", "password": "s3cret-pass"},
    )
    assert resp.status_code == 409

    login("pm1")
    resp = client.post(
        "/api/admin/property-managers",
        json={"username": "pm4", "email": "pm4@example.com", "password": "s3cret-pass"},
    )
    assert resp.status_code == 403


def test_admin_quote_over_http(client, login, admin, pm):
    login("pm1")
    rfq = client.post(
        "/api/rfqs",
        json={
            "title": "Fix gate motor",
            "description": "Main gate motor stopped working.",
            "scope_of_work": "Diagnose and repair or replace the gate motor.",
            "building_address": "88 Main Street, Durbanville",
            "submit": True,
        },
    ).get_json()

    login("admin")
    resp = client.post(f"/api/admin/rfqs/{rfq['id']}/quote", json={"subtotal": 1000, "tax": 150})
    assert resp.status_code == 201
    assert resp.get_json()["total"] == 1150.0

    login("pm1")
    body = client.get(f"/api/rfqs/{rfq['id']}").get_json()
    assert body["status"] == "QUOTED"
    assert body["allowed_actions"] == ["APPROVE", "REJECT"]
    notes = client.get("/api/notifications?unread=1").get_json()
    quoted = next(n for n in notes if n["type"] == "RFQ_QUOTED")
    resp = client.post(f"/api/notifications/{quoted['id']}/read")
    assert resp.get_json()["is_read"] is True
    unread = client.get("/api/notifications?unread=1").get_json()
    assert quoted["id"] not in [n["id"] for n in unread]

    # someone else's notification is invisible
    login("admin")
    assert client.post(f"/api/notifications/{quoted['id']}/read").status_code == 404


def test_directory_endpoints(client, login, pm, contractors):
    login("pm1")
    resp = client.post("/api/buildings", json={"name": "Oak Court", "address": "7 Oak Avenue"})
    assert resp.status_code == 201
    assert [b["name"] for b in client.get("/api/buildings").get_json()] == ["Oak Court"]

    resp = client.post(f"/api/contractors/{contractors[0].id}/reviews", json={"rating": 4})
    assert resp.get_json()["rating"] == 4.0
    resp = client.post(f"/api/contractors/{contractors[0].id}/reviews", json={"rating": 9})
    assert resp.status_code == 400

    resp = client.post("/api/contractors", json={"email": "c1@example.com", "company_name": "Dup"})
    assert resp.status_code == 409


def test_order_status_over_http(client, login, pm):
    login("pm1")
    order = client.post(
        "/api/orders",
        json={
            "title": "Replace geyser",
            "description": "Geyser burst in unit 2, replace it.",
            "scope_of_work": "Remove old geyser and install a new one.",
            "building_address": "7 Oak Avenue, Rondebosch",
            "labour_rate": 800,
            "call_out_fee": 250,
        },
    ).get_json()
    assert order["total_amount"] == 1050.0

    resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "COMPLETED"})
    assert resp.get_json()["progress_percentage"] == 100
    resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "IN_PROGRESS"})
    assert resp.status_code == 409


def test_health_and_manage_guard(client, login, pm):
    assert client.get("/health").get_json() == {"status": "ok"}
    assert client.get("/manage/").status_code == 401
    login("pm1")
    assert client.get("/manage/").status_code == 403
