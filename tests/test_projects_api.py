import uuid

import pytest

from projecthub.models.models import Project, ProjectMember, ProjectRole, SystemRole, Task, TaskStatus


@pytest.fixture
def workspace(factory):
    owner = factory.user("Olive Owner")
    colleague = factory.user("Cal Colleague")
    ws = factory.workspace(owner)
    factory.workspace_member(ws, colleague)
    return {"owner": owner, "colleague": colleague, "ws": ws}


def _create(client, headers, user, ws, name="Website Relaunch"):
    return client.post("/projects", json={"name": name, "workspace_id": str(ws.id)}, headers=headers(user))


class TestCreateProject:
    def test_creator_becomes_lead(self, client, headers, db_session, workspace):
        resp = _create(client, headers, workspace["owner"], workspace["ws"])
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "ACTIVE"
        assert body["is_client"] is False
        assert body["created_by"] == str(workspace["owner"].id)
        members = db_session.query(ProjectMember).filter(ProjectMember.project_id == uuid.UUID(body["id"])).all()
        assert [(m.user_id, m.role) for m in members] == [(workspace["owner"].id, ProjectRole.LEAD)]

    def test_duplicate_name_in_workspace(self, client, headers, workspace):
        assert _create(client, headers, workspace["owner"], workspace["ws"]).status_code == 201
        resp = _create(client, headers, workspace["colleague"], workspace["ws"])
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Project already exists. Please search and add tasks to it."

    def test_client_project_flag(self, client, headers, workspace):
        resp = client.post(
            "/projects",
            json={"name": "Storefront", "workspace_id": str(workspace["ws"].id), "is_client": True, "client_name": "Acme"},
            headers=headers(workspace["owner"]),
        )
        assert resp.status_code == 201
        assert resp.json()["is_client"] is True
        assert resp.json()["client_name"] == "Acme"

    def test_same_name_in_another_workspace(self, client, headers, factory, workspace):
        other_ws = factory.workspace(workspace["owner"])
        assert _create(client, headers, workspace["owner"], workspace["ws"]).status_code == 201
        assert _create(client, headers, workspace["owner"], other_ws).status_code == 201

    def test_workspace_membership_required(self, client, headers, factory, workspace):
        resp = _create(client, headers, factory.user(), workspace["ws"])
        assert resp.status_code == 403

    def test_blank_name_rejected(self, client, headers, workspace):
        resp = _create(client, headers, workspace["owner"], workspace["ws"], name="   ")
        assert resp.status_code == 400

    def test_list_only_member_projects(self, client, headers, factory, workspace):
        mine = factory.project(workspace["owner"], workspace["ws"], name="Mine")
        factory.project(workspace["colleague"], workspace["ws"], name="Theirs")
        resp = client.get("/projects", headers=headers(workspace["owner"]))
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()] == [str(mine.id)]


class TestBoard:
    def test_columns_in_position_order(self, client, headers, factory, workspace):
        owner = workspace["owner"]
        project = factory.project(owner, workspace["ws"])
        factory.task(project, owner, TaskStatus.TODO, 1, title="second")
        factory.task(project, owner, TaskStatus.TODO, 0, title="first")
        factory.task(project, owner, TaskStatus.REVIEW, 0, title="review")
        resp = client.get(f"/projects/{project.id}/board", headers=headers(owner))
        assert resp.status_code == 200
        body = resp.json()
        assert body["project"]["id"] == str(project.id)
        assert [t["title"] for t in body["columns"]["TODO"]] == ["first", "second"]
        assert [t["title"] for t in body["columns"]["REVIEW"]] == ["review"]
        assert body["columns"]["DONE"] == []
        assert [m["role"] for m in body["members"]] == ["LEAD"]

    def test_board_requires_membership(self, client, headers, factory, workspace):
        project = factory.project(workspace["owner"], workspace["ws"])
        resp = client.get(f"/projects/{project.id}/board", headers=headers(workspace["colleague"]))
        assert resp.status_code == 403


class TestProjectMembers:
    def test_lead_adds_workspace_member(self, client, headers, factory, workspace):
        project = factory.project(workspace["owner"], workspace["ws"])
        resp = client.post(
            f"/projects/{project.id}/members",
            json={"user_id": str(workspace["colleague"].id)},
            headers=headers(workspace["owner"]),
        )
        assert resp.status_code == 201
        assert resp.json()["role"] == "MEMBER"
        assert resp.json()["user"]["name"] == "Cal Colleague"

        again = client.post(
            f"/projects/{project.id}/members",
            json={"user_id": str(workspace["colleague"].id)},
            headers=headers(workspace["owner"]),
        )
        assert again.status_code == 409

    def test_outside_workspace_rejected(self, client, headers, factory, workspace):
        project = factory.project(workspace["owner"], workspace["ws"])
        resp = client.post(
            f"/projects/{project.id}/members",
            json={"user_id": str(factory.user().id)},
            headers=headers(workspace["owner"]),
        )
        assert resp.status_code == 400

    def test_member_cannot_add_members(self, client, headers, factory, workspace):
        project = factory.project(workspace["owner"], workspace["ws"])
        factory.member(project, workspace["colleague"])
        third = factory.user()
        factory.workspace_member(workspace["ws"], third)
        resp = client.post(
            f"/projects/{project.id}/members",
            json={"user_id": str(third.id)},
            headers=headers(workspace["colleague"]),
        )
        assert resp.status_code == 403

    def test_last_lead_is_kept(self, client, headers, factory, workspace):
        owner = workspace["owner"]
        project = factory.project(owner, workspace["ws"])
        resp = client.patch(
            f"/projects/{project.id}/members/{owner.id}", json={"role": "MEMBER"}, headers=headers(owner)
        )
        assert resp.status_code == 400
        resp = client.delete(f"/projects/{project.id}/members/{owner.id}", headers=headers(owner))
        assert resp.status_code == 400

    def test_promote_then_remove(self, client, headers, db_session, factory, workspace):
        owner, colleague = workspace["owner"], workspace["colleague"]
        project = factory.project(owner, workspace["ws"])
        factory.member(project, colleague)
        resp = client.patch(
            f"/projects/{project.id}/members/{colleague.id}", json={"role": "LEAD"}, headers=headers(owner)
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "LEAD"
        resp = client.delete(f"/projects/{project.id}/members/{owner.id}", headers=headers(colleague))
        assert resp.status_code == 204
        db_session.expire_all()
        remaining = db_session.query(ProjectMember).filter(ProjectMember.project_id == project.id).all()
        assert [(m.user_id, m.role) for m in remaining] == [(colleague.id, ProjectRole.LEAD)]


class TestDeleteProject:
    def test_admin_deletes_with_tasks(self, client, headers, db_session, factory, workspace):
        project = factory.project(workspace["owner"], workspace["ws"])
        factory.task(project, workspace["owner"])
        project_id = project.id
        admin = factory.user(role=SystemRole.ADMIN)
        resp = client.delete(f"/projects/{project_id}", headers=headers(admin))
        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.query(Project).filter(Project.id == project_id).count() == 0
        assert db_session.query(Task).filter(Task.project_id == project_id).count() == 0

    def test_lead_without_admin_role_forbidden(self, client, headers, factory, workspace):
        project = factory.project(workspace["owner"], workspace["ws"])
        resp = client.delete(f"/projects/{project.id}", headers=headers(workspace["owner"]))
        assert resp.status_code == 403
        assert resp.json()["detail"] == "You do not have the required permissions to delete this project."

    def test_unknown_project(self, client, headers, factory):
        admin = factory.user(role=SystemRole.ADMIN)
        resp = client.delete("/projects/00000000-0000-0000-0000-000000000000", headers=headers(admin))
        assert resp.status_code == 404


class TestProjectNotes:
    def test_empty_until_saved(self, client, headers, factory, workspace):
        project = factory.project(workspace["owner"], workspace["ws"])
        resp = client.get(f"/projects/{project.id}/notes", headers=headers(workspace["owner"]))
        assert resp.status_code == 200
        assert resp.json() == {"notes": []}

    def test_member_saves_blocks(self, client, headers, db_session, factory, workspace):
        owner, colleague = workspace["owner"], workspace["colleague"]
        project = factory.project(owner, workspace["ws"])
        factory.member(project, colleague)
        blocks = [
            {"id": "b1", "type": "heading", "content": [{"type": "text", "text": "Kickoff"}]},
            {"id": "b2", "type": "paragraph", "content": []},
        ]
        resp = client.put(f"/projects/{project.id}/notes", json={"notes": blocks}, headers=headers(colleague))
        assert resp.status_code == 200
        assert resp.json()["notes"] == blocks

        assert client.get(f"/projects/{project.id}/notes", headers=headers(owner)).json()["notes"] == blocks
        db_session.expire_all()
        assert db_session.query(Project).filter(Project.id == project.id).one().notes == blocks

    def test_outsider_cannot_read_or_write(self, client, headers, factory, workspace):
        project = factory.project(workspace["owner"], workspace["ws"])
        colleague = workspace["colleague"]
        assert client.get(f"/projects/{project.id}/notes", headers=headers(colleague)).status_code == 403
        resp = client.put(f"/projects/{project.id}/notes", json={"notes": []}, headers=headers(colleague))
        assert resp.status_code == 403

    def test_unknown_project(self, client, headers, workspace):
        resp = client.get(
            "/projects/00000000-0000-0000-0000-000000000000/notes", headers=headers(workspace["owner"])
        )
        assert resp.status_code == 404
