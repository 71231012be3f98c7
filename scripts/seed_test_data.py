"""
Seed the local database with a demo workspace, project and kanban board.

Usage:
  python scripts/seed_test_data.py

This script is idempotent: running it multiple times will upsert the same
records based on unique fields (email for users, name for workspace/project).
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from projecthub.db import SessionLocal, Base, engine
from projecthub.models.models import (
    Project,
    ProjectMember,
    ProjectRole,
    SystemRole,
    Task,
    TaskStatus,
    User,
    Workspace,
    WorkspaceMember,
    WorkspaceRole,
)
from projecthub.auth.security import get_password_hash


def ensure_user(session, email: str, name: str, password: str, role: SystemRole) -> User:
    user = session.query(User).filter(User.email == email).first()
    if user:
        user.name = name
        user.role = role
        return user
    user = User(email=email, name=name, password_hash=get_password_hash(password), role=role)
    session.add(user)
    session.flush()
    return user


def ensure_workspace(session, name: str, owner: User) -> Workspace:
    ws = session.query(Workspace).filter(Workspace.name == name, Workspace.owner_id == owner.id).first()
    if ws:
        return ws
    ws = Workspace(name=name, owner_id=owner.id, description="Demo workspace")
    session.add(ws)
    session.flush()
    return ws


def ensure_workspace_member(session, ws: Workspace, user: User, role: WorkspaceRole) -> None:
    exists = session.query(WorkspaceMember).filter_by(workspace_id=ws.id, user_id=user.id).first()
    if not exists:
        session.add(WorkspaceMember(workspace_id=ws.id, user_id=user.id, role=role))


def ensure_project(session, ws: Workspace, name: str, creator: User) -> Project:
    proj = session.query(Project).filter(Project.workspace_id == ws.id, Project.name == name).first()
    if proj:
        return proj
    proj = Project(name=name, workspace_id=ws.id, created_by=creator.id, description="Demo board")
    session.add(proj)
    session.flush()
    return proj


def ensure_project_member(session, proj: Project, user: User, role: ProjectRole) -> None:
    exists = session.query(ProjectMember).filter_by(project_id=proj.id, user_id=user.id).first()
    if not exists:
        session.add(ProjectMember(project_id=proj.id, user_id=user.id, role=role))


def ensure_tasks(session, proj: Project, reporter: User, assignee: User) -> int:
    if session.query(Task).filter(Task.project_id == proj.id).count():
        return 0
    layout = {
        TaskStatus.TODO: ["Draft onboarding checklist", "Collect design feedback", "Write release notes"],
        TaskStatus.IN_PROGRESS: ["Build board API", "Wire drag-and-drop"],
        TaskStatus.REVIEW: ["Review access rules"],
        TaskStatus.DONE: ["Set up repository"],
    }
    created = 0
    for status, titles in layout.items():
        for position, title in enumerate(titles):
            session.add(
                Task(
                    title=title,
                    project_id=proj.id,
                    status=status,
                    position=position,
                    reporter_id=reporter.id,
                    assignee_id=assignee.id if position % 2 == 0 else None,
                )
            )
            created += 1
    return created


def main():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        admin = ensure_user(session, "admin@example.com", "Admin", "password123", SystemRole.ADMIN)
        lead = ensure_user(session, "lead@example.com", "Lena Lead", "password123", SystemRole.MANAGER)
        member = ensure_user(session, "member@example.com", "Max Member", "password123", SystemRole.MEMBER)

        ws = ensure_workspace(session, "Demo Workspace", lead)
        ensure_workspace_member(session, ws, lead, WorkspaceRole.OWNER)
        ensure_workspace_member(session, ws, admin, WorkspaceRole.ADMIN)
        ensure_workspace_member(session, ws, member, WorkspaceRole.MEMBER)

        proj = ensure_project(session, ws, "Website Relaunch", lead)
        ensure_project_member(session, proj, lead, ProjectRole.LEAD)
        ensure_project_member(session, proj, admin, ProjectRole.MEMBER)
        ensure_project_member(session, proj, member, ProjectRole.MEMBER)

        created = ensure_tasks(session, proj, lead, member)
        session.commit()
        print(f"Seeded workspace '{ws.name}' with project '{proj.name}' ({created} new tasks)")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
