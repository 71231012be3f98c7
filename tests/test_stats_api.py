from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from projecthub.models.models import Department, SystemRole, TaskStatus, TimeEntry
from projecthub.services.stats_service import start_of_week


class TestDashboardStats:
    def test_counts_for_current_user(self, client, headers, db_session, factory):
        me = factory.user("Mia Me")
        other = factory.user()
        mine = factory.workspace(me)
        joined = factory.workspace(other)
        factory.workspace_member(joined, me)
        factory.workspace(other)

        project = factory.project(me, mine)
        elsewhere = factory.project(other, joined)
        factory.member(elsewhere, me)
        factory.project(other, joined)

        task = factory.task(project, me)
        factory.task(elsewhere, other, assignee=me)
        factory.task(elsewhere, other)

        now = datetime.now(timezone.utc)
        db_session.add_all(
            [
                TimeEntry(task_id=task.id, user_id=me.id, hours=Decimal("1.25"), date=now),
                TimeEntry(task_id=task.id, user_id=me.id, hours=Decimal("2.00"), date=now - timedelta(days=8)),
                TimeEntry(task_id=task.id, user_id=other.id, hours=Decimal("5.00"), date=now),
            ]
        )
        db_session.commit()

        resp = client.get("/dashboard/stats", headers=headers(me))
        assert resp.status_code == 200
        assert resp.json() == {"total_workspaces": 2, "total_projects": 2, "total_tasks": 2, "total_hours": 1.25}

    def test_requires_login(self, client):
        assert client.get("/dashboard/stats").status_code == 401


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2026, 10, 17, 15, 30, tzinfo=timezone.utc), datetime(2026, 10, 11, tzinfo=timezone.utc)),
        (datetime(2026, 10, 11, 8, 0, tzinfo=timezone.utc), datetime(2026, 10, 11, tzinfo=timezone.utc)),
    ],
)
def test_week_starts_on_sunday(now, expected):
    assert start_of_week(now) == expected


class TestDepartmentStats:
    @pytest.fixture
    def setup(self, db_session, factory):
        design = Department(name="Design")
        ops = Department(name="Operations")
        legal = Department(name="Legal")
        db_session.add_all([design, ops, legal])
        db_session.commit()

        lead = factory.user()
        ws = factory.workspace(lead)
        design_project = factory.project(lead, ws)
        design_project.department_id = design.id
        ops_project = factory.project(lead, ws)
        ops_project.department_id = ops.id
        db_session.commit()

        factory.task(design_project, lead, TaskStatus.DONE)
        late = factory.task(design_project, lead)
        late.due_date = datetime.now(timezone.utc) - timedelta(days=2)
        factory.task(design_project, lead)
        finished_late = factory.task(ops_project, lead, TaskStatus.DONE)
        finished_late.due_date = datetime.now(timezone.utc) - timedelta(days=2)
        db_session.commit()

        other_ws_project = factory.project(lead)
        other_ws_project.department_id = design.id
        db_session.commit()
        factory.task(other_ws_project, lead)
        return {"ws": ws, "design": design, "ops": ops}

    def test_admin_sees_per_department_totals(self, client, headers, factory, setup):
        admin = factory.user(role=SystemRole.ADMIN)
        resp = client.get("/stats/departments", params={"workspace_id": str(setup["ws"].id)}, headers=headers(admin))
        assert resp.status_code == 200
        rows = resp.json()
        assert [r["name"] for r in rows] == ["Design", "Operations", "Legal"]
        design, ops, legal = rows
        assert (design["total_tasks"], design["completed_tasks"], design["overdue_tasks"]) == (3, 1, 1)
        assert design["completion_rate"] == pytest.approx(100 / 3)
        assert (ops["total_tasks"], ops["completed_tasks"], ops["overdue_tasks"]) == (1, 1, 0)
        assert ops["completion_rate"] == 100.0
        assert legal["total_tasks"] == 0
        assert legal["completion_rate"] == 0.0

    def test_plain_member_forbidden(self, client, headers, factory, setup):
        resp = client.get(
            "/stats/departments", params={"workspace_id": str(setup["ws"].id)}, headers=headers(factory.user())
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    def test_workspace_required(self, client, headers, factory):
        manager = factory.user(role=SystemRole.MANAGER)
        resp = client.get("/stats/departments", headers=headers(manager))
        assert resp.status_code == 400
