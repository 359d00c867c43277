"""
Admin and staff user routes: gates, pagination, classifier responses end to end.
"""

from fastapi.testclient import TestClient

ADMIN_USERS = "/api/admin/users"
STAFF_USERS = "/api/staff/users"


def _create(client: TestClient, headers: dict, **overrides) -> dict:
    body = {"username": "asha_k", "email": "Asha@Example.com", "fullName": "Asha K"}
    body.update(overrides)
    r = client.post(ADMIN_USERS, json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_admin_routes_need_token(client: TestClient) -> None:
    r = client.get(ADMIN_USERS)
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"


def test_admin_routes_reject_staff(client: TestClient, staff_headers) -> None:
    r = client.get(ADMIN_USERS, headers=staff_headers)
    assert r.status_code == 403
    assert r.json()["error"] == "Access denied. Admin privileges required."


def test_create_and_get_user(client: TestClient, admin_headers) -> None:
    user = _create(client, admin_headers, password="Str0ng!pass")
    assert user["email"] == "asha@example.com"
    assert user["roles"] == ["user"]
    assert user["isActive"] is True
    assert "passwordHash" not in user
    assert "password" not in user

    r = client.get(f"{ADMIN_USERS}/{user['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["username"] == "asha_k"


def test_duplicate_email_conflict(client: TestClient, admin_headers) -> None:
    _create(client, admin_headers)
    r = client.post(
        ADMIN_USERS,
        json={"username": "someone_else", "email": "asha@example.com"},
        headers=admin_headers,
    )
    assert r.status_code == 409
    assert r.json()["code"] == "CONFLICT"
    assert r.json()["error"] == "email already exists"


def test_invalid_body_is_validation_error(client: TestClient, admin_headers) -> None:
    r = client.post(ADMIN_USERS, json={"username": "x", "email": "nope"}, headers=admin_headers)
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    fields = {d["field"] for d in body["details"]}
    assert {"username", "email"} <= fields


def test_unknown_role_is_validation_error(client: TestClient, admin_headers) -> None:
    r = client.post(
        ADMIN_USERS,
        json={"username": "ravi_m", "email": "ravi@example.com", "roles": ["user", "wizard"]},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["details"][0]["field"] == "roles.1"


def test_malformed_id_is_cast_error(client: TestClient, admin_headers) -> None:
    r = client.get(f"{ADMIN_USERS}/not-an-id", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid _id: not-an-id"


def test_missing_user_not_found(client: TestClient, admin_headers) -> None:
    r = client.get(f"{ADMIN_USERS}/{'0' * 24}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"
    assert r.json()["error"] == "User not found"


def test_list_paginates_and_sorts(client: TestClient, admin_headers) -> None:
    for name in ("carol", "alice", "bob"):
        _create(client, admin_headers, username=name, email=f"{name}@example.com")

    r = client.get(
        ADMIN_USERS,
        params={"sortBy": "username", "sortOrder": "asc", "limit": "2", "page": "1"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert [u["username"] for u in body["data"]] == ["alice", "bob"]
    assert body["meta"] == {"total": 3, "page": 1, "limit": 2, "pages": 2, "hasNext": True, "hasPrev": False}

    r = client.get(ADMIN_USERS, params={"sortBy": "username", "sortOrder": "asc", "limit": "2", "page": "2"}, headers=admin_headers)
    assert [u["username"] for u in r.json()["data"]] == ["carol"]


def test_list_ignores_hostile_paging_input(client: TestClient, admin_headers) -> None:
    _create(client, admin_headers)
    r = client.get(
        ADMIN_USERS,
        params={"page": "-4", "limit": "9999", "sortBy": "$where", "sortOrder": "sideways"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["meta"]["page"] == 1
    assert r.json()["meta"]["limit"] == 100


def test_list_sorts_by_nested_record_field(client: TestClient, admin_headers) -> None:
    _create(client, admin_headers, username="pune_user", email="p@example.com", location={"city": "Pune"})
    _create(client, admin_headers, username="agra_user", email="a@example.com", location={"city": "Agra"})

    r = client.get(ADMIN_USERS, params={"sortBy": "location", "sortOrder": "asc"}, headers=admin_headers)
    assert r.status_code == 200
    assert [u["username"] for u in r.json()["data"]] == ["agra_user", "pune_user"]

    r = client.get(ADMIN_USERS, params={"sortBy": "location.city", "sortOrder": "desc"}, headers=admin_headers)
    assert [u["username"] for u in r.json()["data"]] == ["pune_user", "agra_user"]


def test_list_survives_oversized_paging_numbers(client: TestClient, admin_headers) -> None:
    _create(client, admin_headers)
    r = client.get(ADMIN_USERS, params={"page": "9" * 5000, "limit": "9" * 5000}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["meta"]["page"] == 1
    assert r.json()["meta"]["limit"] == 20


def test_list_filters(client: TestClient, admin_headers) -> None:
    alice = _create(client, admin_headers, username="alice", email="alice@example.com", membership="VIP")
    _create(client, admin_headers, username="bob", email="bob@example.com", fullName="Bobby Tables")

    r = client.get(ADMIN_USERS, params={"search": "tables"}, headers=admin_headers)
    assert [u["username"] for u in r.json()["data"]] == ["bob"]

    r = client.get(ADMIN_USERS, params={"membership": "VIP"}, headers=admin_headers)
    assert [u["id"] for u in r.json()["data"]] == [alice["id"]]

    client.post(f"{ADMIN_USERS}/{alice['id']}/status", json={"action": "suspend", "reason": "spam"}, headers=admin_headers)
    r = client.get(ADMIN_USERS, params={"status": "suspended"}, headers=admin_headers)
    assert [u["username"] for u in r.json()["data"]] == ["alice"]


def test_update_user(client: TestClient, admin_headers) -> None:
    user = _create(client, admin_headers)
    r = client.patch(f"{ADMIN_USERS}/{user['id']}", json={"fullName": "Asha Kumar"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["fullName"] == "Asha Kumar"
    assert r.json()["data"]["updatedAt"] is not None


def test_status_change(client: TestClient, admin_headers) -> None:
    user = _create(client, admin_headers)
    r = client.post(f"{ADMIN_USERS}/{user['id']}/status", json={"action": "verify"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["isVerified"] is True

    r = client.post(f"{ADMIN_USERS}/{user['id']}/status", json={"action": "explode"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_soft_then_hard_delete(client: TestClient, admin_headers) -> None:
    user = _create(client, admin_headers)
    assert client.delete(f"{ADMIN_USERS}/{user['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"{ADMIN_USERS}/{user['id']}", headers=admin_headers).status_code == 404
    assert client.get(ADMIN_USERS, headers=admin_headers).json()["meta"]["total"] == 0


def test_staff_directory_requires_permission(client: TestClient, admin_headers, make_headers) -> None:
    user = _create(client, admin_headers)

    no_permission = make_headers(role="staff")
    r = client.get(STAFF_USERS, headers=no_permission)
    assert r.status_code == 403
    assert "view_profile" in r.json()["error"]

    member = make_headers(role="user", permissions={"view_profile": True})
    r = client.get(STAFF_USERS, headers=member)
    assert r.status_code == 403
    assert r.json()["error"] == "Access denied. Required roles: admin, staff, consultant"

    consultant = make_headers(role="consultant", permissions={"view_profile": True})
    r = client.get(f"{STAFF_USERS}/{user['id']}", headers=consultant)
    assert r.status_code == 200

    assert client.get(STAFF_USERS, headers=admin_headers).status_code == 200


def test_staff_directory_page_size_cap(client: TestClient, staff_headers) -> None:
    r = client.get(STAFF_USERS, params={"limit": "80"}, headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["meta"]["limit"] == 50


def test_expired_token_message(client: TestClient) -> None:
    from datetime import timedelta

    from core.security import create_access_token

    token = create_access_token("admin-1", roles=["admin"], expires_delta=timedelta(minutes=-1))
    r = client.get(ADMIN_USERS, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["error"] == "Token expired"
