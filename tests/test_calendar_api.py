from datetime import datetime, timezone

import pytest

from projecthub.models.models import CalendarEvent


@pytest.fixture
def team(factory):
    lead = factory.user("Lena Lead")
    member = factory.user("Max Member")
    project = factory.project(lead, name="Launch")
    factory.member(project, member)
    return {"lead": lead, "member": member, "project": project}


def _event(title="Sprint planning", start="2026-03-02T09:00:00Z", end="2026-03-02T10:00:00Z", **extra):
    return {"title": title, "start_time": start, "end_time": end, **extra}


class TestCreateEvent:
    def test_member_creates_event(self, client, headers, db_session, team):
        resp = client.post(
            f"/projects/{team['project'].id}/calendar",
            json=_event(location="Room 4"),
            headers=headers(team["member"]),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["created_by_id"] == str(team["member"].id)
        assert body["color"] == "#3B82F6"
        assert body["is_all_day"] is False
        db_session.expire_all()
        assert db_session.query(CalendarEvent).filter_by(project_id=team["project"].id).count() == 1

    def test_outsider_forbidden(self, client, headers, factory, team):
        resp = client.post(f"/projects/{team['project'].id}/calendar", json=_event(), headers=headers(factory.user()))
        assert resp.status_code == 403

    def test_end_before_start_rejected(self, client, headers, team):
        resp = client.post(
            f"/projects/{team['project'].id}/calendar",
            json=_event(start="2026-03-02T10:00:00Z", end="2026-03-02T09:00:00Z"),
            headers=headers(team["lead"]),
        )
        assert resp.status_code == 400

    def test_blank_title_rejected(self, client, headers, team):
        resp = client.post(f"/projects/{team['project'].id}/calendar", json=_event(title="  "), headers=headers(team["lead"]))
        assert resp.status_code == 400

    def test_unknown_project(self, client, headers, team):
        resp = client.post(
            "/projects/00000000-0000-0000-0000-000000000000/calendar", json=_event(), headers=headers(team["lead"])
        )
        assert resp.status_code == 404


class TestProjectCalendar:
    def test_merges_events_tasks_and_milestone(self, client, headers, db_session, factory, team):
        project = team["project"]
        project.due_date = datetime(2026, 3, 31, tzinfo=timezone.utc)
        db_session.commit()
        task = factory.task(project, team["lead"], title="Ship beta")
        task.due_date = datetime(2026, 3, 1, tzinfo=timezone.utc)
        db_session.commit()
        factory.task(project, team["lead"], title="Someday")
        client.post(f"/projects/{project.id}/calendar", json=_event(), headers=headers(team["lead"]))

        resp = client.get(f"/projects/{project.id}/calendar", headers=headers(team["member"]))
        assert resp.status_code == 200
        entries = resp.json()
        assert [e["title"] for e in entries] == [
            "[Task] Ship beta",
            "Sprint planning",
            "[Milestone] Project Due: Launch",
        ]
        assert entries[0]["id"] == f"task-{task.id}"
        assert entries[0]["all_day"] is True
        assert entries[0]["color"] == "#F59E0B"
        assert entries[2]["id"] == f"project-{project.id}"
        assert entries[2]["color"] == "#EF4444"
        assert entries[1]["all_day"] is False

    def test_empty_calendar(self, client, headers, team):
        resp = client.get(f"/projects/{team['project'].id}/calendar", headers=headers(team["lead"]))
        assert resp.status_code == 200
        assert resp.json() == []

    def test_outsider_forbidden(self, client, headers, factory, team):
        resp = client.get(f"/projects/{team['project'].id}/calendar", headers=headers(factory.user()))
        assert resp.status_code == 403
