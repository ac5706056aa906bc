"""
API tests for project CRUD, direct edits, recalculation, details and the
compare-and-swap conflict path.
"""
import pytest
from sqlmodel import Session

from app.core.exceptions import ConflictError
from app.models.project import Project
from app.services import projects as store

from api_helpers import API, create_project


def test_health_is_public(client):
    res = client.get(f"{API}/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_request_id_is_echoed(client):
    res = client.get(f"{API}/health", headers={"X-Request-ID": "abc-123"})
    assert res.headers["X-Request-ID"] == "abc-123"


def test_create_fixed_project(client, admin_headers, admin):
    project = create_project(client, admin_headers, fixed_amount=1500)
    assert project["category"] == "fixed"
    assert project["total_amount"] == 1500
    assert project["pending_amount"] == 1500
    assert project["paid_amount"] == 0
    assert project["status"] == "pending"
    assert project["version"] == 1
    assert project["created_by"] == admin.id


def test_create_hourly_without_rate_is_400(client, admin_headers):
    res = client.post(
        f"{API}/projects",
        json={"project_name": "R", "client_name": "Acme", "category": "hourly"},
        headers=admin_headers,
    )
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert "Hourly rate" in body["message"]


def test_malformed_body_is_400(client, admin_headers):
    res = client.post(f"{API}/projects", json={"project_name": "No client"}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_create_requires_admin(client, lead_headers):
    res = client.post(
        f"{API}/projects",
        json={"project_name": "X", "client_name": "Acme", "category": "fixed", "fixed_amount": 1},
        headers=lead_headers,
    )
    assert res.status_code == 403
    assert res.json()["success"] is False


def test_unauthenticated_is_401(client):
    res = client.get(f"{API}/projects")
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_list_and_read_projects(client, admin_headers, lead_headers, fixed_project):
    res = client.get(f"{API}/projects", headers=lead_headers)
    assert res.status_code == 200
    assert res.json()["count"] == 1

    res = client.get(f"{API}/projects/{fixed_project['id']}", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["project"]["id"] == fixed_project["id"]
    assert res.json()["project_details"] is None


def test_read_missing_project_is_404(client, admin_headers):
    res = client.get(f"{API}/projects/does-not-exist", headers=admin_headers)
    assert res.status_code == 404
    assert res.json()["message"] == "Project not found"


def test_update_bumps_version(client, admin_headers, fixed_project):
    res = client.put(
        f"{API}/projects/{fixed_project['id']}",
        json={"project_name": "Renamed", "fixed_amount": 2000, "version": 1},
        headers=admin_headers,
    )
    assert res.status_code == 200
    project = res.json()["project"]
    assert project["project_name"] == "Renamed"
    assert project["total_amount"] == 2000
    assert project["pending_amount"] == 2000
    assert project["version"] == 2


def test_update_with_stale_version_is_409(client, admin_headers, fixed_project):
    project_id = fixed_project["id"]
    client.put(f"{API}/projects/{project_id}", json={"project_name": "First"}, headers=admin_headers)

    res = client.put(
        f"{API}/projects/{project_id}",
        json={"project_name": "Stale", "version": 1},
        headers=admin_headers,
    )
    assert res.status_code == 409

    stored = client.get(f"{API}/projects/{project_id}", headers=admin_headers).json()["project"]
    assert stored["project_name"] == "First"
    assert stored["version"] == 2


def test_category_change_is_rejected(client, admin_headers, fixed_project):
    res = client.put(
        f"{API}/projects/{fixed_project['id']}",
        json={"category": "hourly"},
        headers=admin_headers,
    )
    assert res.status_code == 400


def test_lost_update_is_prevented(engine, fixed_project):
    with Session(engine) as db:
        first = store.load_for_update(db, fixed_project["id"])
        second = store.load_for_update(db, fixed_project["id"])

        first.project.project_name = "First writer"
        store.save(db, first)

        second.project.project_name = "Second writer"
        with pytest.raises(ConflictError):
            store.save(db, second)

        stored = db.get(Project, fixed_project["id"])
        assert stored.project_name == "First writer"
        assert stored.version == 2


def test_recalculate_repairs_totals(client, engine, admin_headers, fixed_project):
    project_id = fixed_project["id"]
    with Session(engine) as db:
        row = db.get(Project, project_id)
        row.total_amount = 1
        row.pending_amount = 42
        db.add(row)
        db.commit()

    res = client.put(f"{API}/projects/{project_id}/recalculate", headers=admin_headers)
    assert res.status_code == 200
    project = res.json()["project"]
    assert project["total_amount"] == 1000
    assert project["pending_amount"] == 1000
    assert set(project) == {"id", "total_amount", "paid_amount", "pending_amount", "actual_hours", "version"}


def test_client_status(client, lead_headers, fixed_project):
    res = client.patch(
        f"{API}/projects/{fixed_project['id']}/client-status",
        json={"client_status": "review"},
        headers=lead_headers,
    )
    assert res.status_code == 200
    assert res.json()["project"]["client_status"] == "review"


def test_assign_team_lead_requires_teamlead_role(client, admin_headers, fixed_project, employee, lead):
    url = f"{API}/projects/{fixed_project['id']}/teamlead"
    res = client.put(url, json={"team_lead": employee.id}, headers=admin_headers)
    assert res.status_code == 400

    res = client.put(url, json={"team_lead": lead.id}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["project"]["team_lead_id"] == lead.id


def test_assign_employees(client, admin_headers, fixed_project, employee, other_employee, lead):
    url = f"{API}/projects/{fixed_project['id']}/employees"
    res = client.put(url, json={"employees": [employee.id, lead.id]}, headers=admin_headers)
    assert res.status_code == 400

    res = client.put(
        url, json={"employees": [employee.id, other_employee.id, employee.id]}, headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["project"]["employees"] == [employee.id, other_employee.id]


def test_project_details_lifecycle(client, admin_headers, fixed_project):
    project_id = fixed_project["id"]
    res = client.post(
        f"{API}/projects/{project_id}/details",
        json={"description": "Landing pages", "total_price": 900},
        headers=admin_headers,
    )
    assert res.status_code == 201
    detail_id = res.json()["project_details"]["id"]

    res = client.post(
        f"{API}/projects/{project_id}/details", json={"description": "Again"}, headers=admin_headers,
    )
    assert res.status_code == 409

    res = client.put(
        f"{API}/projects/details/{detail_id}", json={"profile": "upwork"}, headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["project_details"]["profile"] == "upwork"
    assert res.json()["project_details"]["description"] == "Landing pages"


def test_delete_project_removes_details(client, admin_headers, fixed_project):
    project_id = fixed_project["id"]
    client.post(f"{API}/projects/{project_id}/details", json={"description": "Notes"}, headers=admin_headers)

    res = client.delete(f"{API}/projects/{project_id}", headers=admin_headers)
    assert res.status_code == 200

    assert client.get(f"{API}/projects/{project_id}", headers=admin_headers).status_code == 404
    assert client.get(f"{API}/projects/{project_id}/details", headers=admin_headers).status_code == 404


def test_project_groups(client, admin_headers, lead_headers, fixed_project):
    payload = {"group_id": "ACME-2030", "main_project_id": fixed_project["id"], "client_name": "Acme"}
    res = client.post(f"{API}/project-groups", json=payload, headers=admin_headers)
    assert res.status_code == 201
    group = res.json()["project_group"]

    assert client.post(f"{API}/project-groups", json=payload, headers=admin_headers).status_code == 409

    missing = dict(payload, group_id="OTHER", main_project_id="nope")
    assert client.post(f"{API}/project-groups", json=missing, headers=admin_headers).status_code == 404

    res = client.get(f"{API}/project-groups", headers=lead_headers)
    assert res.status_code == 200
    assert res.json()["count"] == 1

    res = client.put(f"{API}/project-groups/{group['id']}", json={"total_value": 5000}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["project_group"]["total_value"] == 5000

    assert client.delete(f"{API}/project-groups/{group['id']}", headers=admin_headers).status_code == 200


def test_explicit_null_for_required_field_is_400(client, admin_headers, fixed_project):
    project_id = fixed_project["id"]
    for field in ("project_name", "status", "visible_to_team_leads", "estimated_hours"):
        res = client.put(f"{API}/projects/{project_id}", json={field: None}, headers=admin_headers)
        assert res.status_code == 400, field
        assert res.json()["error"]["fields"] == [field]

    stored = client.get(f"{API}/projects/{project_id}", headers=admin_headers).json()["project"]
    assert stored["project_name"] == "Website"
    assert stored["version"] == 1


def test_null_for_optional_field_clears_it(client, admin_headers):
    project = create_project(client, admin_headers, description="Landing pages")
    res = client.put(f"{API}/projects/{project['id']}", json={"description": None}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["project"]["description"] is None


def test_holding_team_lead_staffs_project(client, lead_headers, fixed_project, employee, other_employee):
    project_id = fixed_project["id"]
    client.put(f"{API}/teamlead/projects/{project_id}/pick", headers=lead_headers)

    res = client.put(
        f"{API}/projects/{project_id}/employees",
        json={"employees": [employee.id, other_employee.id]},
        headers=lead_headers,
    )
    assert res.status_code == 200
    assert res.json()["project"]["employees"] == [employee.id, other_employee.id]

    res = client.delete(f"{API}/projects/{project_id}/employees/{employee.id}", headers=lead_headers)
    assert res.status_code == 200
    assert res.json()["project"]["employees"] == [other_employee.id]

    res = client.delete(f"{API}/projects/{project_id}/employees/{employee.id}", headers=lead_headers)
    assert res.status_code == 404


def test_team_lead_cannot_staff_project_held_by_another(
    client, admin_headers, lead_headers, other_lead_headers, fixed_project, employee
):
    project_id = fixed_project["id"]
    url = f"{API}/projects/{project_id}/employees"

    # Unclaimed projects are staffed by admins only
    assert client.put(url, json={"employees": [employee.id]}, headers=lead_headers).status_code == 403

    client.put(f"{API}/teamlead/projects/{project_id}/pick", headers=lead_headers)
    assert client.put(url, json={"employees": [employee.id]}, headers=other_lead_headers).status_code == 403

    client.put(url, json={"employees": [employee.id]}, headers=admin_headers)
    res = client.delete(f"{url}/{employee.id}", headers=other_lead_headers)
    assert res.status_code == 403
    stored = client.get(f"{API}/projects/{project_id}", headers=admin_headers).json()["project"]
    assert stored["employees"] == [employee.id]


def test_team_lead_restaffs_after_release(
    client, admin_headers, lead_headers, other_lead_headers, fixed_project, employee, other_employee
):
    project_id = fixed_project["id"]
    client.put(f"{API}/teamlead/projects/{project_id}/pick", headers=lead_headers)
    client.put(f"{API}/projects/{project_id}/employees", json={"employees": [employee.id]}, headers=lead_headers)
    client.put(f"{API}/teamlead/projects/{project_id}/release", headers=lead_headers)

    client.put(f"{API}/teamlead/projects/{project_id}/pick", headers=other_lead_headers)
    res = client.put(
        f"{API}/projects/{project_id}/employees",
        json={"employees": [other_employee.id]},
        headers=other_lead_headers,
    )
    assert res.status_code == 200
    assert res.json()["project"]["employees"] == [other_employee.id]


def test_delete_project_removes_its_groups(client, admin_headers, fixed_project):
    other = create_project(client, admin_headers, project_name="Second site")
    client.post(
        f"{API}/project-groups",
        json={"group_id": "MAIN", "main_project_id": fixed_project["id"], "client_name": "Acme"},
        headers=admin_headers,
    )
    client.post(
        f"{API}/project-groups",
        json={"group_id": "MEMBER", "main_project_id": other["id"], "client_name": "Acme",
              "projects": [other["id"], fixed_project["id"]]},
        headers=admin_headers,
    )

    assert client.delete(f"{API}/projects/{fixed_project['id']}", headers=admin_headers).status_code == 200

    groups = client.get(f"{API}/project-groups", headers=admin_headers).json()["project_groups"]
    assert [group["group_id"] for group in groups] == ["MEMBER"]
    assert groups[0]["projects"] == [other["id"]]


def test_endpoint_modules_are_documented():
    from app.api.v1.endpoints import employee, project_groups, projects, teamlead

    for module in (employee, project_groups, projects, teamlead):
        assert module.__doc__ and module.__doc__.strip(), module.__name__
