"""
API tests for login and user management.
"""
from api_helpers import API, create_project


def test_login_issues_token_and_cookie(client, admin):
    res = client.post(
        f"{API}/auth/login",
        data={"username": "ADMIN@example.com", "password": "secret123"},
    )
    assert res.status_code == 200
    token = res.json()["access_token"]
    assert res.json()["token_type"] == "bearer"
    assert "access_token" in res.cookies

    me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "admin@example.com"
    assert me.json()["user"]["last_login"] is not None


def test_login_with_wrong_password_is_401(client, admin):
    res = client.post(f"{API}/auth/login", data={"username": "admin@example.com", "password": "nope"})
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_invalid_token_is_401(client):
    res = client.get(f"{API}/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_admin_creates_user(client, admin_headers):
    res = client.post(
        f"{API}/users",
        json={"email": "New@Example.com", "name": "New Lead", "password": "secret123", "roles": ["teamlead"]},
        headers=admin_headers,
    )
    assert res.status_code == 201
    user = res.json()["user"]
    assert user["email"] == "new@example.com"
    assert user["roles"] == ["teamlead"]
    assert "password" not in user

    res = client.post(
        f"{API}/users",
        json={"email": "new@example.com", "name": "Dup", "password": "secret123"},
        headers=admin_headers,
    )
    assert res.status_code == 409


def test_list_users_by_role(client, admin_headers, lead, other_lead, employee):
    res = client.get(f"{API}/users", params={"role": "teamlead"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["count"] == 2


def test_user_management_requires_admin(client, lead_headers):
    assert client.get(f"{API}/users", headers=lead_headers).status_code == 403


def test_update_own_profile(client, employee_headers):
    res = client.put(f"{API}/users/me", json={"name": "Renamed", "phone": "555"}, headers=employee_headers)
    assert res.status_code == 200
    assert res.json()["user"]["name"] == "Renamed"
    assert res.json()["user"]["roles"] == ["employee"]


def test_deactivated_user_is_locked_out(client, admin_headers, employee, employee_headers):
    res = client.put(f"{API}/users/{employee.id}", json={"is_active": False}, headers=admin_headers)
    assert res.status_code == 200

    assert client.get(f"{API}/users/me", headers=employee_headers).status_code == 403
    res = client.post(f"{API}/auth/login", data={"username": employee.email, "password": "secret123"})
    assert res.status_code == 403


def test_admin_cannot_delete_self(client, admin_headers, admin, employee):
    assert client.delete(f"{API}/users/{admin.id}", headers=admin_headers).status_code == 400
    assert client.delete(f"{API}/users/{employee.id}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/users/{employee.id}", headers=admin_headers).status_code == 404


def test_referenced_user_cannot_be_deleted(client, admin_headers, lead, lead_headers, employee):
    project = create_project(client, admin_headers)
    client.put(f"{API}/teamlead/projects/{project['id']}/pick", headers=lead_headers)
    client.put(f"{API}/projects/{project['id']}/employees", json={"employees": [employee.id]}, headers=lead_headers)

    for user in (lead, employee):
        res = client.delete(f"{API}/users/{user.id}", headers=admin_headers)
        assert res.status_code == 409
        assert res.json()["error"]["references"]
        assert client.get(f"{API}/users/{user.id}", headers=admin_headers).status_code == 200

    # Deactivation is the way out for referenced accounts
    res = client.put(f"{API}/users/{lead.id}", json={"is_active": False}, headers=admin_headers)
    assert res.status_code == 200
