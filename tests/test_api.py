"""HTTP surface: auth flows, role gates, roster upload, verification status codes."""

from __future__ import annotations

import pytest

from tests.factories import TEST_PASSWORD, make_student, make_user, make_vendor, roster_csv

pytestmark = pytest.mark.anyio


@pytest.fixture
async def admin_headers(session_factory):
    _, headers = await make_user(session_factory, role="admin", email="admin@inst.edu")
    return headers


@pytest.fixture
async def cafeterias(session_factory):
    a = await make_vendor(session_factory, "Cafeteria A")
    b = await make_vendor(session_factory, "Cafeteria B")
    jane = await make_student(
        session_factory, name="Jane Doe", email="jane@inst.edu", roll_number="2024002", vendor_id=b.id
    )
    return a, b, jane


# ---------------------------------------------------------------------------
# Health / routing
# ---------------------------------------------------------------------------

async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": {"code": "NOT_FOUND", "message": "Route not found"}}


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

async def test_register_login_and_me(client):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Stu Dent", "email": "Stu@Inst.edu", "password": TEST_PASSWORD},
    )
    assert resp.status_code == 201
    body = resp.json()["data"]
    assert body["user"]["role"] == "student"
    assert body["user"]["email"] == "stu@inst.edu"

    resp = await client.post("/api/auth/login", json={"email": "stu@inst.edu", "password": TEST_PASSWORD})
    assert resp.status_code == 200
    token = resp.json()["data"]["token"]

    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["data"]["lastLogin"] is not None


async def test_register_rejects_foreign_domain_privileged_role_and_duplicates(client):
    resp = await client.post(
        "/api/auth/register", json={"name": "X", "email": "x@gmail.com", "password": TEST_PASSWORD}
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/api/auth/register",
        json={"name": "X", "email": "x@inst.edu", "password": TEST_PASSWORD, "role": "admin"},
    )
    assert resp.status_code == 403

    payload = {"name": "X", "email": "x@inst.edu", "password": TEST_PASSWORD}
    assert (await client.post("/api/auth/register", json=payload)).status_code == 201
    resp = await client.post("/api/auth/register", json=payload)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONFLICT"


async def test_login_with_wrong_password(client, session_factory):
    await make_user(session_factory, role="student", email="stu@inst.edu")
    resp = await client.post("/api/auth/login", json={"email": "stu@inst.edu", "password": "wrong-pass"})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Invalid credentials"


async def test_missing_or_bad_token(client):
    assert (await client.get("/api/auth/me")).status_code == 401
    resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


async def test_admin_creates_vendor_staff(client, admin_headers, cafeterias):
    _, b, _ = cafeterias
    resp = await client.post(
        "/api/auth/create-user",
        headers=admin_headers,
        json={"name": "Staff", "email": "staff@inst.edu", "password": TEST_PASSWORD, "role": "vendor", "vendorId": b.id},
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["vendorId"] == b.id

    resp = await client.post(
        "/api/auth/create-user",
        headers=admin_headers,
        json={"name": "Nope", "email": "nope@inst.edu", "password": TEST_PASSWORD, "role": "vendor"},
    )
    assert resp.status_code == 400


async def test_create_user_requires_admin(client, session_factory):
    _, headers = await make_user(session_factory, role="student", email="stu@inst.edu")
    resp = await client.post(
        "/api/auth/create-user",
        headers=headers,
        json={"name": "A", "email": "a@inst.edu", "password": TEST_PASSWORD, "role": "admin"},
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

async def test_upload_csv_returns_report(client, admin_headers):
    content = roster_csv(
        ("Jane Doe", "jane@inst.edu", "2024002", "Cafeteria B", "H1"),
        ("Eve", "eve@gmail.com", "R7", "Cafeteria B", ""),
    )
    resp = await client.post(
        "/api/admin/upload-csv",
        headers=admin_headers,
        files={"file": ("roster.csv", content, "text/csv")},
    )
    assert resp.status_code == 200
    report = resp.json()["data"]
    assert report["created"] == 1
    assert report["errors"] == 1
    assert report["vendorsCreated"] == ["Cafeteria B"]
    assert report["processedStudents"][0]["status"] == "created"


async def test_upload_rejects_non_csv_and_missing_headers(client, admin_headers):
    resp = await client.post(
        "/api/admin/upload-csv",
        headers=admin_headers,
        files={"file": ("roster.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/api/admin/upload-csv",
        headers=admin_headers,
        files={"file": ("roster.csv", b"Name,Email\nA,a@inst.edu\n", "text/csv")},
    )
    assert resp.status_code == 400
    assert "missing required column" in resp.json()["error"]["message"]


async def test_admin_routes_are_role_gated(client, session_factory):
    _, headers = await make_user(session_factory, role="vendor", email="v@inst.edu")
    assert (await client.get("/api/admin/stats", headers=headers)).status_code == 403
    assert (await client.get("/api/admin/stats")).status_code == 401


async def test_export_stats_and_bulk_deactivate(client, admin_headers, cafeterias):
    _, _, jane = cafeterias

    resp = await client.get("/api/admin/export-students", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["total"] == 1

    resp = await client.get("/api/admin/export-students?format=csv", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.text.splitlines()[0] == "name,email,rollNumber,vendor,qrCode,isActive,lastMealClaimed,createdAt"

    resp = await client.get("/api/admin/stats", headers=admin_headers)
    stats = resp.json()["data"]
    assert stats["totalStudents"] == 1
    assert stats["totalVendors"] == 2
    assert stats["studentsByVendor"][0]["vendorName"] == "Cafeteria B"

    resp = await client.post("/api/admin/bulk-deactivate", headers=admin_headers, json={"studentIds": []})
    assert resp.status_code == 400

    resp = await client.post("/api/admin/bulk-deactivate", headers=admin_headers, json={"studentIds": [jane.id]})
    assert resp.json()["data"]["modifiedCount"] == 1
    resp = await client.get(f"/api/students/{jane.id}", headers=admin_headers)
    assert resp.json()["data"]["isActive"] is False


async def test_cleanup_vendors_reassigns_students_of_retired_vendor(client, admin_headers, session_factory):
    old = await make_vendor(session_factory, "Old Mess", is_active=False)
    fresh = await make_vendor(session_factory, "New Mess")
    stu = await make_student(session_factory, name="Ann", email="ann@inst.edu", roll_number="R1", vendor_id=old.id)

    resp = await client.post("/api/admin/cleanup-vendors", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["fixed"] == 1

    resp = await client.get(f"/api/students/{stu.id}", headers=admin_headers)
    assert resp.json()["data"]["vendor"]["id"] == fresh.id


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

async def test_verify_status_codes(client, session_factory, cafeterias):
    a, b, _ = cafeterias
    _, staff_b = await make_user(session_factory, role="vendor", email="b@inst.edu", vendor_id=b.id)
    _, admin = await make_user(session_factory, role="admin", email="boss@inst.edu")

    resp = await client.post("/api/verification/verify", headers=staff_b, json={"identifier": "2024002", "vendorId": b.id})
    assert resp.status_code == 200
    first = resp.json()["data"]
    assert first["verified"] is True

    resp = await client.post("/api/verification/verify", headers=staff_b, json={"identifier": "2024002", "vendorId": b.id})
    assert resp.status_code == 409
    again = resp.json()["data"]
    assert again["alreadyClaimed"] is True
    assert again["student"]["claimedAt"] == first["mealRecord"]["claimedAt"]

    resp = await client.post("/api/verification/verify", headers=admin, json={"identifier": "2024002", "vendorId": a.id})
    assert resp.status_code == 403
    assert resp.json()["data"]["student"]["assignedVendor"] == "Cafeteria B"

    resp = await client.post("/api/verification/verify", headers=staff_b, json={"identifier": "0000", "vendorId": b.id})
    assert resp.status_code == 404
    assert resp.json()["data"]["outcome"] == "not_found"


async def test_vendor_staff_cannot_act_for_another_vendor(client, session_factory, cafeterias):
    a, b, _ = cafeterias
    _, staff_a = await make_user(session_factory, role="vendor", email="a@inst.edu", vendor_id=a.id)

    resp = await client.post("/api/verification/verify", headers=staff_a, json={"identifier": "2024002", "vendorId": b.id})
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"
    assert (await client.get(f"/api/vendors/{b.id}/dashboard", headers=staff_a)).status_code == 403
    assert (await client.get(f"/api/verification/stats/{b.id}", headers=staff_a)).status_code == 403


async def test_students_cannot_verify(client, session_factory, cafeterias):
    _, b, _ = cafeterias
    _, headers = await make_user(session_factory, role="student", email="jane@inst.edu")
    resp = await client.post("/api/verification/verify", headers=headers, json={"identifier": "2024002", "vendorId": b.id})
    assert resp.status_code == 403


async def test_vendor_dashboard_and_history(client, session_factory, cafeterias):
    _, b, _ = cafeterias
    _, staff_b = await make_user(session_factory, role="vendor", email="b@inst.edu", vendor_id=b.id)
    await client.post("/api/verification/verify", headers=staff_b, json={"identifier": "jane@inst.edu", "vendorId": b.id})

    dash = (await client.get(f"/api/vendors/{b.id}/dashboard", headers=staff_b)).json()["data"]
    assert dash["vendor"]["totalStudents"] == 1
    assert dash["vendor"]["todayMeals"] == 1

    history = (await client.get(f"/api/verification/history/{b.id}", headers=staff_b)).json()
    assert history["meta"]["total"] == 1
    assert history["data"][0]["studentRollNumber"] == "2024002"

    found = await client.get(f"/api/vendors/{b.id}/students/search?query=jane", headers=staff_b)
    assert [s["rollNumber"] for s in found.json()["data"]] == ["2024002"]
    assert (await client.get(f"/api/vendors/{b.id}/students/search", headers=staff_b)).status_code == 400


# ---------------------------------------------------------------------------
# Student QR
# ---------------------------------------------------------------------------

async def test_my_qr_code(client, session_factory, cafeterias):
    _, _, jane = cafeterias
    _, headers = await make_user(session_factory, role="student", email="jane@inst.edu")

    resp = await client.get("/api/students/my-qr-code", headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["qrCode"] == jane.qr_code
    assert data["qrCodeImage"].startswith("data:image/png;base64,")
    assert data["vendor"]["name"] == "Cafeteria B"


async def test_my_qr_code_without_roster_entry(client, session_factory):
    _, headers = await make_user(session_factory, role="student", email="new@inst.edu")
    resp = await client.get("/api/students/my-qr-code", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "STUDENT_NOT_FOUND"


async def test_my_qr_code_with_retired_vendor(client, session_factory):
    gone = await make_vendor(session_factory, "Closed Mess", is_active=False)
    await make_student(session_factory, name="Ann", email="ann@inst.edu", roll_number="R1", vendor_id=gone.id)
    _, headers = await make_user(session_factory, role="student", email="ann@inst.edu")

    resp = await client.get("/api/students/my-qr-code", headers=headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "NO_VENDOR_ASSIGNED"


# ---------------------------------------------------------------------------
# Vendors / students CRUD
# ---------------------------------------------------------------------------

async def test_vendor_crud(client, admin_headers):
    resp = await client.post("/api/vendors", headers=admin_headers, json={"name": "Night Canteen", "location": "Block C"})
    assert resp.status_code == 201
    vendor_id = resp.json()["data"]["id"]

    resp = await client.post("/api/vendors", headers=admin_headers, json={"name": " night canteen", "location": "X"})
    assert resp.status_code == 409

    resp = await client.put(f"/api/vendors/{vendor_id}", headers=admin_headers, json={"isActive": False})
    assert resp.json()["data"]["isActive"] is False

    listed = (await client.get("/api/vendors", headers=admin_headers)).json()["data"]
    assert listed == []
    listed = (await client.get("/api/vendors?includeInactive=true", headers=admin_headers)).json()["data"]
    assert [v["name"] for v in listed] == ["Night Canteen"]


async def test_student_list_update_and_deactivate(client, admin_headers, cafeterias):
    a, _, jane = cafeterias

    page = (await client.get("/api/students?limit=10", headers=admin_headers)).json()
    assert page["meta"] == {"total": 1, "page": 1, "limit": 10, "pages": 1}
    assert page["data"][0]["vendor"]["name"] == "Cafeteria B"

    resp = await client.put(f"/api/students/{jane.id}", headers=admin_headers, json={"vendor": a.id})
    assert resp.status_code == 200
    assert resp.json()["data"]["vendor"]["id"] == a.id

    resp = await client.put(f"/api/students/{jane.id}", headers=admin_headers, json={"vendor": "missing"})
    assert resp.status_code == 404

    assert (await client.delete(f"/api/students/{jane.id}", headers=admin_headers)).status_code == 204
    assert (await client.get("/api/students", headers=admin_headers)).json()["meta"]["total"] == 0
    resp = await client.get("/api/students/search/2024002", headers=admin_headers)
    assert resp.status_code == 404
