"""
Shared fixtures: an in-memory database per test, an app wired to it,
and small builders for users, workspaces, projects and tasks.
"""
import os

# Must be set before projecthub.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_DB", "false")
os.environ.setdefault("ENABLE_METRICS", "false")
os.environ.setdefault("RATE_LIMIT", "10000/minute")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from projecthub.auth.security import create_access_token, get_password_hash
from projecthub.db import Base, get_db
from projecthub.main import create_app
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


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def app(session_factory):
    app = create_app()

    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


# =============================================================================
# BUILDERS
# =============================================================================

class Factory:
    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def user(self, name: str = None, role: SystemRole = SystemRole.MEMBER, password: str = "password123") -> User:
        n = self._next()
        user = User(
            email=f"user{n}@example.com",
            name=name or f"User {n}",
            password_hash=get_password_hash(password),
            role=role,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def workspace(self, owner: User, name: str = None) -> Workspace:
        ws = Workspace(name=name or f"Workspace {self._next()}", owner_id=owner.id)
        self.db.add(ws)
        self.db.flush()
        self.db.add(WorkspaceMember(workspace_id=ws.id, user_id=owner.id, role=WorkspaceRole.OWNER))
        self.db.commit()
        return ws

    def workspace_member(self, ws: Workspace, user: User, role: WorkspaceRole = WorkspaceRole.MEMBER) -> None:
        self.db.add(WorkspaceMember(workspace_id=ws.id, user_id=user.id, role=role))
        self.db.commit()

    def project(self, lead: User, ws: Workspace = None, name: str = None) -> Project:
        ws = ws or self.workspace(lead)
        project = Project(name=name or f"Project {self._next()}", workspace_id=ws.id, created_by=lead.id)
        self.db.add(project)
        self.db.flush()
        self.db.add(ProjectMember(project_id=project.id, user_id=lead.id, role=ProjectRole.LEAD))
        self.db.commit()
        return project

    def member(self, project: Project, user: User, role: ProjectRole = ProjectRole.MEMBER) -> None:
        self.db.add(ProjectMember(project_id=project.id, user_id=user.id, role=role))
        self.db.commit()

    def task(
        self,
        project: Project,
        reporter: User,
        status: TaskStatus = TaskStatus.TODO,
        position: int = 0,
        assignee: User = None,
        title: str = None,
    ) -> Task:
        task = Task(
            title=title or f"Task {self._next()}",
            project_id=project.id,
            reporter_id=reporter.id,
            assignee_id=assignee.id if assignee else None,
            status=status,
            position=position,
        )
        self.db.add(task)
        self.db.commit()
        return task


@pytest.fixture
def factory(db_session):
    return Factory(db_session)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


@pytest.fixture
def headers():
    return auth_headers
