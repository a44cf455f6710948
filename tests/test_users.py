import re

import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


def test_add_user_stores_photo_and_returns_summary(client, storage, add_member):
    response = add_member(code="ab12", name="Ada Obi", position="member", with_signature=True)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User added successfully"
    data = body["data"]
    assert data["code"] == "AB12"
    assert data["cardGenerated"] is True
    assert data["passportPhoto"].startswith("passportPhoto-")
    assert data["signature"].startswith("signature-")

    files = storage.list_files()
    assert files["passports"] == [data["passportPhoto"]]
    assert files["signatures"] == [data["signature"]]


def test_uploaded_photo_is_served_back(client, add_member):
    response = add_member(code="X1")

    filename = response.json()["data"]["passportPhoto"]
    assert re.fullmatch(r"passportPhoto-\d+-\d+\.png", filename)

    served = client.get(f"/api/uploads/passports/{filename}")
    assert served.status_code == 200
    assert served.headers["content-type"] == "image/png"


def test_add_user_without_photo_has_no_card(add_member):
    response = add_member(code="N1", with_photo=False)

    assert response.status_code == 200
    assert response.json()["data"]["passportPhoto"] is None
    assert response.json()["data"]["cardGenerated"] is False


def test_duplicate_code_is_rejected_case_insensitively(add_member, storage):
    assert add_member(code="X1").status_code == 200

    response = add_member(code="x1")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "DUPLICATE_ENTRY"
    assert body["message"] == "Code already exists"
    assert body["path"] == "/api/addUser"
    # The rejected request must not leave a blob behind
    assert storage.list_files()["total"] == 1


def test_missing_required_fields_are_reported(client, auth_headers):
    response = client.post("/api/addUser", data={"name": "Only Name"}, headers=auth_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    fields = {e["field"] for e in body["errors"]}
    assert {"password", "code", "state", "zone"} <= fields


def test_unknown_position_is_rejected(add_member):
    response = add_member(code="P1", position="Chief Wizard")

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_non_image_upload_is_rejected(client, auth_headers, storage):
    response = client.post(
        "/api/addUser",
        data={"name": "A", "password": "p", "code": "X1", "state": "Lagos", "zone": "SW"},
        files={"passportPhoto": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert "Only image files" in response.json()["message"]
    assert storage.list_files()["total"] == 0
    assert client.get("/api/getUsers", headers=auth_headers).json() == []


def test_admin_routes_require_token(client):
    response = client.get("/api/getUsers")

    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHORIZED"
    assert response.json()["message"] == "Access denied. No token provided."

    bad = client.get("/api/getUsers", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401
    assert bad.json()["message"] == "Invalid or expired token"


def test_update_replaces_photo_and_drops_old_blob(client, auth_headers, storage, add_member):
    created = add_member(code="X1").json()["data"]
    old_photo = created["passportPhoto"]

    response = client.put(
        f"/api/updateUser/{created['id']}",
        data={"zone": "NW"},
        files={"passportPhoto": ("new.jpg", PNG_BYTES, "image/jpeg")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    member = response.json()["data"]
    assert member["zone"] == "NW"
    assert member["passportPhoto"] != old_photo
    assert storage.list_files()["passports"] == [member["passportPhoto"]]

    served = client.get(f"/api/uploads/passports/{member['passportPhoto']}")
    assert served.status_code == 200
    assert served.content == PNG_BYTES
    assert served.headers["content-type"] == "image/jpeg"

    gone = client.get(f"/api/uploads/passports/{old_photo}")
    assert gone.status_code == 404
    assert gone.json()["error"] == "FILE_NOT_FOUND"
    assert gone.json()["availableFiles"] == [member["passportPhoto"]]


def test_update_to_taken_code_conflicts(client, auth_headers, add_member):
    add_member(code="X1")
    second = add_member(code="X2").json()["data"]

    response = client.put(f"/api/updateUser/{second['id']}", data={"code": "x1"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Code already exists"


def test_update_missing_member_is_404(client, auth_headers):
    response = client.put("/api/updateUser/999", data={"zone": "NW"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_state_change_rewrites_certificate_numbers(client, auth_headers, add_member, raise_limits):
    raise_limits()
    member = add_member(code="X1", state="Lagos").json()["data"]
    client.post(
        "/api/certificates",
        json={"number": "N/012/LAG/002", "recipient": "A", "title": "Member", "userId": member["id"]},
        headers=auth_headers,
    )

    response = client.put(f"/api/updateUser/{member['id']}", data={"state": "Kaduna"}, headers=auth_headers)
    assert response.status_code == 200

    certificates = client.get("/api/certificates", headers=auth_headers).json()
    assert certificates[0]["number"] == "N/012/KAD/002"
    assert certificates[0]["certificateNumber"] == "N/012/KAD/002"


def test_update_member_photo_by_code(client, auth_headers, storage, add_member):
    old = add_member(code="X1").json()["data"]["passportPhoto"]

    response = client.put(
        "/api/updateMemberPhoto/x1",
        files={"passportPhoto": ("p.png", PNG_BYTES, "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    new = response.json()["data"]["passportPhoto"]
    assert new != old
    assert storage.list_files()["passports"] == [new]

    missing = client.put("/api/updateMemberPhoto/x1", headers=auth_headers)
    assert missing.status_code == 400


def test_delete_user_removes_blobs(client, auth_headers, storage, add_member):
    member = add_member(code="X1", with_signature=True).json()["data"]

    response = client.delete(f"/api/deleteUser/{member['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"id": member["id"], "name": "A", "code": "X1"}
    assert storage.list_files()["total"] == 0
    assert client.delete(f"/api/deleteUser/{member['id']}", headers=auth_headers).status_code == 404


def test_bulk_delete_skips_unknown_ids(client, auth_headers, storage, add_member):
    first = add_member(code="X1").json()["data"]
    second = add_member(code="X2").json()["data"]
    add_member(code="X3")

    response = client.post(
        "/api/users/bulk-delete",
        json={"userIds": [first["id"], second["id"], 999]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["deletedCount"] == 2
    assert storage.list_files()["total"] == 1

    empty = client.post("/api/users/bulk-delete", json={"userIds": []}, headers=auth_headers)
    assert empty.status_code == 400


def test_delete_all_users(client, auth_headers, storage, add_member):
    add_member(code="X1")
    add_member(code="X2")

    response = client.delete("/api/deleteAllUsers", headers=auth_headers)

    assert response.json()["deletedCount"] == 2
    assert storage.list_files()["total"] == 0


def test_verify_member_returns_absolute_photo_urls(client, add_member):
    member = add_member(code="X1").json()["data"]

    response = client.post("/api/users/members/verify", json={"code": " x1 "})

    assert response.status_code == 200
    card = response.json()["member"]
    assert card["code"] == "X1"
    assert card["passportPhoto"] == f"http://testserver/api/uploads/passports/{member['passportPhoto']}"
    assert card["signature"] is None
    assert card["isActive"] is True


def test_verify_records_last_verification(client, auth_headers, add_member):
    add_member(code="X1")
    client.post("/api/users/members/verify", json={"code": "X1"})

    users = client.get("/api/getUsers", headers=auth_headers).json()
    assert users[0]["lastVerification"] is not None


def test_inactive_member_cannot_be_verified(client, auth_headers, add_member):
    member = add_member(code="X1").json()["data"]
    client.put(f"/api/updateUser/{member['id']}", data={"isActive": "false"}, headers=auth_headers)

    assert client.post("/api/users/members/verify", json={"code": "X1"}).status_code == 404
    assert client.post("/api/searchUser", json={"code": "X1"}).status_code == 404
    assert client.get("/api/users/members").json()["members"] == []


def test_search_user_is_public(client, add_member):
    add_member(code="X1", name="Ada")

    response = client.post("/api/searchUser", json={"code": "x1"})

    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Ada"
    assert response.json()["user"]["createdAt"] is not None


def test_public_member_listing(client, add_member):
    member = add_member(code="X1").json()["data"]

    listing = client.get("/api/users/members")
    assert listing.json()["success"] is True
    assert [m["code"] for m in listing.json()["members"]] == ["X1"]

    single = client.get(f"/api/users/members/{member['id']}")
    assert single.json()["member"]["code"] == "X1"
    assert "passwordHash" not in single.json()["member"]
    assert client.get("/api/users/members/999").status_code == 404


def test_search_users_by_text_and_filters(client, auth_headers, add_member):
    add_member(code="X1", name="Ada Obi", state="Lagos")
    add_member(code="X2", name="Bola Ade", state="Kano")

    response = client.post(
        "/api/users/search",
        json={"query": "ad", "filters": {"state": "kano"}},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert [u["code"] for u in response.json()["users"]] == ["X2"]
    assert response.json()["count"] == 1


def test_user_exists(client, auth_headers, add_member):
    add_member(code="X1", email="Ada@Example.com")

    by_code = client.get("/api/users/exists", params={"code": "x1"}, headers=auth_headers).json()
    assert by_code["exists"] is True
    assert by_code["email"] == "ada@example.com"

    by_email = client.get("/api/users/exists", params={"email": "ADA@example.com"}, headers=auth_headers).json()
    assert by_email["exists"] is True

    missing = client.get("/api/users/exists", params={"code": "Z9"}, headers=auth_headers).json()
    assert missing == {"success": True, "exists": False}

    assert client.get("/api/users/exists", headers=auth_headers).status_code == 400


def test_export_users_csv(client, auth_headers, add_member):
    add_member(code="X1", name="Ada")

    response = client.get("/api/users/export", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("Name,Email,Code,Position,State,Zone")
    assert lines[1].startswith("Ada,,X1,MEMBER,LAGOS,SW")


def test_placeholder_emails_are_treated_as_missing(client, auth_headers, add_member):
    assert add_member(code="E1", email="N/A").status_code == 200
    assert add_member(code="E2", email=" none ").status_code == 200

    users = client.get("/api/getUsers", headers=auth_headers).json()
    assert [u["email"] for u in users] == [None, None]


def test_placeholder_email_on_update_keeps_the_stored_one(client, auth_headers, add_member):
    member = add_member(code="E1", email="ada@example.com").json()["data"]

    response = client.put(f"/api/updateUser/{member['id']}", data={"email": "-"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "ada@example.com"


@pytest.mark.parametrize(
    "given,stored",
    [("Lagos", "LAGOS"), ("Abuja", "FCT"), ("f.c.t", "FCT"), ("crossriver", "CROSS RIVER"), ("Atlantis", "ATLANTIS")],
)
def test_states_are_stored_canonically(client, auth_headers, add_member, given, stored):
    add_member(code="S1", state=given)

    users = client.get("/api/getUsers", headers=auth_headers).json()
    assert users[0]["state"] == stored


def test_state_alias_change_rewrites_certificate_numbers(client, auth_headers, add_member, raise_limits):
    raise_limits()
    member = add_member(code="X1", state="Lagos").json()["data"]
    client.post(
        "/api/certificates",
        json={"number": "N/012/LAG/002", "recipient": "A", "title": "Member", "userId": member["id"]},
        headers=auth_headers,
    )

    client.put(f"/api/updateUser/{member['id']}", data={"state": "Abuja"}, headers=auth_headers)

    certificates = client.get("/api/certificates", headers=auth_headers).json()
    assert certificates[0]["number"] == "N/012/FCT/002"
