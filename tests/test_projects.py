"""Tests /projects (création avec tâches/membres, synchro des tâches, suppression)."""

import uuid

from conftest import auth_headers, create_project, create_task, create_user
from teamflow.models.evidence import Evidence
from teamflow.models.project import Project, ProjectMember
from teamflow.models.task import Task


def test_create_project_with_tasks_and_members(client, db, pm, employee):
    response = client.post(
        "/projects",
        headers=auth_headers(pm),
        json={
            "name": "Refonte site",
            "status": "active",
            "member_ids": [employee.id],
            "tasks": [
                {"title": "Maquettes", "assignee_id": employee.id, "estimated_hours": 6},
                {"title": "Intégration", "priority": "high"}
            ]
        }
    )

    assert response.status_code == 201
    data = response.json()
    assert data["manager_id"] == pm.id
    assert data["progress"] == 0

    tasks = db.query(Task).filter(Task.project_id == data["id"]).all()
    assert sorted(t.title for t in tasks) == ["Intégration", "Maquettes"]
    assert all(t.status == "todo" and t.creator_id == pm.id for t in tasks)
    assert db.query(ProjectMember).filter(ProjectMember.project_id == data["id"]).count() == 1


def test_create_project_unknown_member(client, db, pm):
    response = client.post(
        "/projects", headers=auth_headers(pm),
        json={"name": "X", "member_ids": [str(uuid.uuid4())]}
    )
    assert response.status_code == 400
    assert db.query(Project).count() == 0


def test_create_project_unknown_task_assignee(client, db, pm):
    response = client.post(
        "/projects", headers=auth_headers(pm),
        json={"name": "X", "tasks": [{"title": "A", "assignee_id": str(uuid.uuid4())}]}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Assignee not found"
    assert db.query(Project).count() == 0
    assert db.query(Task).count() == 0


def test_create_project_forbidden_for_employee(client, employee):
    assert client.post("/projects", headers=auth_headers(employee), json={"name": "X"}).status_code == 403


def test_project_progress_and_detail(client, pm, employee):
    project = create_project(pm, members=[employee])
    create_task(project, pm, assignee=employee, status="done")
    create_task(project, pm, status="done")
    create_task(project, pm, status="todo")

    listing = client.get("/projects", headers=auth_headers(employee)).json()
    assert listing[0]["progress"] == 67

    detail = client.get(f"/projects/{project.id}", headers=auth_headers(employee)).json()
    assert [m["id"] for m in detail["team"]] == [employee.id]
    assert len(detail["tasks"]) == 3
    assert {t["assignee_name"] for t in detail["tasks"]} == {employee.name, None}


def test_project_not_found(client, pm):
    response = client.get(f"/projects/{uuid.uuid4()}", headers=auth_headers(pm))
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Project not found"}


def test_update_project_syncs_tasks(client, db, pm, employee):
    project = create_project(pm)
    kept = create_task(project, pm, title="Gardée")
    removed = create_task(project, pm, title="Supprimée")

    response = client.patch(
        f"/projects/{project.id}",
        headers=auth_headers(pm),
        json={
            "status": "on_hold",
            "tasks": [
                {"id": kept.id, "title": "Gardée (renommée)", "assignee_id": employee.id},
                {"title": "Nouvelle"}
            ]
        }
    )

    assert response.status_code == 200
    assert response.json()["status"] == "on_hold"
    titles = {t.id: t.title for t in db.query(Task).filter(Task.project_id == project.id).all()}
    assert titles[kept.id] == "Gardée (renommée)"
    assert removed.id not in titles
    assert "Nouvelle" in titles.values()


def test_update_project_unknown_task_assignee(client, db, pm):
    project = create_project(pm)
    task = create_task(project, pm, title="Existante")

    response = client.patch(
        f"/projects/{project.id}", headers=auth_headers(pm),
        json={
            "name": "Renommé",
            "tasks": [{"id": task.id, "title": "Modifiée", "assignee_id": str(uuid.uuid4())}, {"title": "Nouvelle"}]
        }
    )

    assert response.status_code == 400
    assert db.query(Project).filter(Project.id == project.id).first().name == "Projet test"
    tasks = db.query(Task).filter(Task.project_id == project.id).all()
    assert [(t.title, t.assignee_id) for t in tasks] == [("Existante", None)]


def test_update_project_foreign_task(client, db, pm):
    project = create_project(pm)
    other_project = create_project(pm, name="Autre")
    foreign = create_task(other_project, pm)

    response = client.patch(
        f"/projects/{project.id}", headers=auth_headers(pm),
        json={"tasks": [{"id": foreign.id, "title": "Volée"}]}
    )
    assert response.status_code == 400
    assert db.query(Task).filter(Task.id == foreign.id).first().title == "Tâche test"


def test_delete_project_cascades(client, db, pm, employee):
    project = create_project(pm, members=[employee])
    task = create_task(project, pm, assignee=employee)
    client.post(f"/tasks/{task.id}/evidence", headers=auth_headers(employee), json={"file_url": "https://f/1"})

    response = client.delete(f"/projects/{project.id}", headers=auth_headers(pm))

    assert response.status_code == 200
    assert db.query(Project).count() == 0
    assert db.query(Task).count() == 0
    assert db.query(Evidence).count() == 0
    assert db.query(ProjectMember).count() == 0


def test_members_add_and_remove(client, db, pm):
    project = create_project(pm)
    member = create_user("employee")

    response = client.post(f"/projects/{project.id}/members", headers=auth_headers(pm), json={"user_id": member.id})
    assert response.status_code == 201
    assert [m["id"] for m in response.json()] == [member.id]

    # ajout idempotent
    again = client.post(f"/projects/{project.id}/members", headers=auth_headers(pm), json={"user_id": member.id})
    assert len(again.json()) == 1

    response = client.delete(f"/projects/{project.id}/members/{member.id}", headers=auth_headers(pm))
    assert response.status_code == 204
    assert db.query(ProjectMember).count() == 0

    response = client.delete(f"/projects/{project.id}/members/{member.id}", headers=auth_headers(pm))
    assert response.status_code == 404
