import pytest

from app.models.user import UserRole


def intake_form(email="ann@example.com", full_name="Ann Lee", phone="555-1111", **extra):
    data = {"fullName": full_name, "email": email, "phone": phone}
    data.update(extra)
    return data


async def submit(client, path="/api/applications", files=None, **form):
    return await client.post(path, data=intake_form(**form), files=files)


# ------------------------------------------------------------------
# SUBMIT
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_submit_application_starts_applied(client):
    res = await submit(client, aboutMe="Backend developer")
    assert res.status_code == 201

    body = res.json()
    assert body["message"] == "Application submitted successfully"
    app = body["user"]
    assert app["full_name"] == "Ann Lee"
    assert app["email"] == "ann@example.com"
    assert app["about_me"] == "Backend developer"
    assert app["status"] == "applied"
    assert app["is_approved"] is False
    assert app["approved_date"] is None


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected_and_store_unchanged(client):
    first = await submit(client)
    assert first.status_code == 201

    second = await submit(client, email="ANN@example.com", full_name="Someone Else")
    assert second.status_code == 409
    assert second.json() == {"error": "Email already exists"}

    listing = (await client.get("/api/applications")).json()
    assert [a["email"] for a in listing] == ["ann@example.com"]
    assert listing[0]["full_name"] == "Ann Lee"


@pytest.mark.asyncio
async def test_missing_required_field_names_the_field(client):
    res = await client.post("/api/applications", data={"fullName": "Ann Lee", "email": "ann@example.com"})
    assert res.status_code == 400
    assert "phone" in res.json()["error"]


@pytest.mark.asyncio
async def test_blank_name_is_rejected(client):
    res = await submit(client, full_name="   ")
    assert res.status_code == 400
    assert "fullName" in res.json()["error"]


@pytest.mark.asyncio
async def test_legacy_paths_are_aliases(client):
    res = await submit(client, path="/applications")
    assert res.status_code == 201

    legacy = await client.get("/applications")
    canonical = await client.get("/api/applications")
    assert legacy.status_code == 200
    assert legacy.json() == canonical.json()


@pytest.mark.asyncio
async def test_listing_is_newest_first_and_stable(client):
    for i in range(3):
        assert (await submit(client, email=f"applicant{i}@example.com")).status_code == 201

    first = (await client.get("/api/applications")).json()
    second = (await client.get("/api/applications")).json()

    assert first == second
    assert [a["email"] for a in first] == [
        "applicant2@example.com",
        "applicant1@example.com",
        "applicant0@example.com",
    ]


# ------------------------------------------------------------------
# RESUME UPLOAD
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_resume_is_stored_and_downloadable(client, admin_headers, isolated_uploads):
    files = {"resume": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")}
    res = await submit(client, files=files)
    assert res.status_code == 201

    app = res.json()["user"]
    assert app["resume_filename"] == "cv.pdf"
    assert app["resume_path"].startswith("local://")
    assert len(list(isolated_uploads.iterdir())) == 1

    download = await client.get(f"/api/applications/{app['id']}/resume", headers=admin_headers)
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 resume"


@pytest.mark.asyncio
async def test_resume_with_bad_extension_is_rejected(client):
    files = {"resume": ("cv.exe", b"MZ", "application/octet-stream")}
    res = await submit(client, files=files)
    assert res.status_code == 400
    assert "resume" in res.json()["error"]

    assert (await client.get("/api/applications")).json() == []


@pytest.mark.asyncio
async def test_oversized_resume_is_rejected(client, monkeypatch):
    from app.core.config import settings
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 10)

    files = {"resume": ("cv.pdf", b"x" * 11, "application/pdf")}
    res = await submit(client, files=files)
    assert res.status_code == 400
    assert "too large" in res.json()["error"]


@pytest.mark.asyncio
async def test_resume_missing_returns_404(client, admin_headers):
    app_id = (await submit(client)).json()["user"]["id"]
    res = await client.get(f"/api/applications/{app_id}/resume", headers=admin_headers)
    assert res.status_code == 404


# ------------------------------------------------------------------
# APPROVE / REJECT
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_weak_password_leaves_application_unchanged(client, admin_headers):
    app_id = (await submit(client)).json()["user"]["id"]

    res = await client.post(
        f"/api/applications/{app_id}/approve", json={"password": "short"}, headers=admin_headers
    )
    assert res.status_code == 400
    assert "password" in res.json()["error"]

    app = (await client.get(f"/api/applications/{app_id}", headers=admin_headers)).json()
    assert app["status"] == "applied"
    assert app["is_approved"] is False
    assert app["approved_date"] is None


@pytest.mark.asyncio
async def test_approve_sets_invariant_fields_and_creates_student(client, admin_headers):
    app_id = (await submit(client)).json()["user"]["id"]

    res = await client.post(
        f"/api/applications/{app_id}/approve",
        json={"password": "Secure1!", "approvedBy": "lead@example.com"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    app = res.json()["application"]
    assert app["status"] == "approved"
    assert app["is_approved"] is True
    assert app["approved_date"] is not None
    assert app["approved_by"] == "lead@example.com"

    # The mailed temporary password works for the new student account
    login = await client.post("/api/auth/login", json={"email": "ann@example.com", "password": "Secure1!"})
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "student"


@pytest.mark.asyncio
async def test_approved_by_defaults_to_acting_admin(client, admin_headers):
    app_id = (await submit(client)).json()["user"]["id"]
    res = await client.post(
        f"/api/applications/{app_id}/approve", json={"password": "Secure1!"}, headers=admin_headers
    )
    assert res.json()["application"]["approved_by"] == "admin@example.com"


@pytest.mark.asyncio
async def test_approving_twice_is_a_conflict(client, admin_headers):
    app_id = (await submit(client)).json()["user"]["id"]
    url = f"/api/applications/{app_id}/approve"

    assert (await client.post(url, json={"password": "Secure1!"}, headers=admin_headers)).status_code == 200
    again = await client.post(url, json={"password": "Secure2!"}, headers=admin_headers)
    assert again.status_code == 409
    assert again.json()["error"] == "Application is already approved"


@pytest.mark.asyncio
async def test_reject_application(client, admin_headers):
    await submit(client)
    app_id = (await submit(client, email="bob@example.com", full_name="Bob")).json()["user"]["id"]

    res = await client.post(f"/api/applications/{app_id}/reject", headers=admin_headers)
    assert res.status_code == 200
    app = res.json()["application"]
    assert app["status"] == "rejected"
    assert app["is_approved"] is False
    assert app["approved_date"] is None


@pytest.mark.asyncio
async def test_rejecting_an_approved_application_keeps_it_approved(client, admin_headers):
    app_id = (await submit(client)).json()["user"]["id"]
    await client.post(f"/api/applications/{app_id}/approve", json={"password": "Secure1!"}, headers=admin_headers)

    res = await client.post(f"/api/applications/{app_id}/reject", headers=admin_headers)
    assert res.status_code == 409

    app = (await client.get(f"/api/applications/{app_id}", headers=admin_headers)).json()
    assert app["status"] == "approved"
    assert app["is_approved"] is True
    assert app["approved_date"] is not None


@pytest.mark.asyncio
async def test_approve_unknown_application_is_404(client, admin_headers):
    res = await client.post("/api/applications/999/approve", json={"password": "Secure1!"}, headers=admin_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Application not found"}


# ------------------------------------------------------------------
# UPDATE / DELETE
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_update_application_details(client, admin_headers):
    app_id = (await submit(client)).json()["user"]["id"]
    res = await client.put(
        f"/api/applications/{app_id}",
        json={"phone": "555-2222", "aboutMe": "Updated"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["phone"] == "555-2222"
    assert res.json()["about_me"] == "Updated"
    assert res.json()["full_name"] == "Ann Lee"


@pytest.mark.asyncio
async def test_deleted_application_stays_deleted(client, admin_headers):
    app_id = (await submit(client)).json()["user"]["id"]

    res = await client.delete(f"/api/applications/{app_id}", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["application"]["id"] == app_id

    assert (await client.get(f"/api/applications/{app_id}", headers=admin_headers)).status_code == 404
    assert (await client.delete(f"/api/applications/{app_id}", headers=admin_headers)).status_code == 404
    assert (await client.post(f"/api/applications/{app_id}/reject", headers=admin_headers)).status_code == 404


# ------------------------------------------------------------------
# ADMIN GATING
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_admin_routes_require_token(client):
    app_id = (await submit(client)).json()["user"]["id"]

    res = await client.post(f"/api/applications/{app_id}/approve", json={"password": "Secure1!"})
    assert res.status_code == 401
    assert (await client.delete(f"/api/applications/{app_id}")).status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_reject_other_roles(client, make_user, headers_for):
    trainer = await make_user(UserRole.Trainer)
    app_id = (await submit(client)).json()["user"]["id"]

    res = await client.post(f"/api/applications/{app_id}/reject", headers=headers_for(trainer))
    assert res.status_code == 403
    assert res.json() == {"error": "Admin access required"}


# ------------------------------------------------------------------
# APPROVAL AGAINST EXISTING ACCOUNTS
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_approval_refuses_email_owned_by_staff_account(client, admin_headers, make_user):
    await make_user(UserRole.Trainer, email="tina@example.com", password="password123")
    app_id = (await submit(client, email="tina@example.com")).json()["user"]["id"]

    res = await client.post(
        f"/api/applications/{app_id}/approve", json={"password": "Secure1!"}, headers=admin_headers
    )
    assert res.status_code == 409
    assert res.json() == {"error": "Email already belongs to a trainer account"}

    # trainer keeps their password, application stays pending
    login = await client.post("/api/auth/login", json={"email": "tina@example.com", "password": "password123"})
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "trainer"

    app = (await client.get(f"/api/applications/{app_id}", headers=admin_headers)).json()
    assert app["status"] == "applied"
    assert app["is_approved"] is False


@pytest.mark.asyncio
async def test_approval_reactivates_blocked_student(client, admin_headers, make_user):
    student = await make_user(UserRole.Student, email="ann@example.com")
    await client.put(f"/api/users/{student.id}/block", json={"blocked": True}, headers=admin_headers)

    app_id = (await submit(client)).json()["user"]["id"]
    res = await client.post(
        f"/api/applications/{app_id}/approve", json={"password": "Secure1!"}, headers=admin_headers
    )
    assert res.status_code == 200

    login = await client.post("/api/auth/login", json={"email": "ann@example.com", "password": "Secure1!"})
    assert login.status_code == 200
    assert login.json()["user"]["status"] == "active"


# ------------------------------------------------------------------
# STORED RESUME LIFECYCLE
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_deleting_application_removes_resume_file(client, admin_headers, isolated_uploads):
    files = {"resume": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")}
    app_id = (await submit(client, files=files)).json()["user"]["id"]
    assert len(list(isolated_uploads.iterdir())) == 1

    res = await client.delete(f"/api/applications/{app_id}", headers=admin_headers)
    assert res.status_code == 200
    assert list(isolated_uploads.iterdir()) == []


@pytest.mark.asyncio
async def test_concurrent_duplicate_leaves_no_resume_behind(client, isolated_uploads, monkeypatch):
    from app.services import application_service

    assert (await submit(client)).status_code == 201

    # the second submit slips past the pre-check and hits the unique index
    async def no_existing(session, email):
        return None

    monkeypatch.setattr(application_service, "get_application_by_email", no_existing)

    files = {"resume": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")}
    res = await submit(client, files=files, full_name="Ann Again")
    assert res.status_code == 409
    assert res.json() == {"error": "Email already exists"}
    assert list(isolated_uploads.iterdir()) == []


# ------------------------------------------------------------------
# RATE LIMIT
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_intake_form_is_rate_limited(client, monkeypatch):
    from app.core.rate_limiter import limiter

    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        for i in range(20):
            assert (await submit(client, email=f"burst{i}@example.com")).status_code == 201

        res = await submit(client, email="burst20@example.com")
        assert res.status_code == 429
        assert res.json()["error"].startswith("Rate limit exceeded")
    finally:
        limiter.reset()
