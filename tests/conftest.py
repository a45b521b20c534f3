import os
import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

# SQLite pour les tests, AVANT d'importer l'app
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import uuid
import pytest
from datetime import datetime

import teamflow.core.database
from teamflow.core.database import Base, get_db
from teamflow.core.deps import get_ai_gateway
from teamflow.core.security import create_access_token
from teamflow.main import app
from teamflow.models.project import Project, ProjectMember
from teamflow.models.task import Task
from teamflow.models.user import User
from teamflow.services.ai_providers import AIGateway, AIProviderError

test_engine = teamflow.core.database.engine
TestingSessionLocal = teamflow.core.database.SessionLocal


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


class FakeProvider:
    """Provider IA scripté: renvoie les réponses dans l'ordre, échoue quand il n'y en a plus"""

    def __init__(self, name="fake", replies=None, error=None):
        self.name = name
        self.replies = list(replies or [])
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.replies:
            raise AIProviderError(f"{self.name}: no scripted reply")
        return self.replies.pop(0)


@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def fake_provider():
    """Sans réponse scriptée: le gateway échoue et les fallbacks s'appliquent"""
    return FakeProvider()


@pytest.fixture(autouse=True)
def ai_gateway(fake_provider):
    gateway = AIGateway([fake_provider])
    app.dependency_overrides[get_ai_gateway] = lambda: gateway
    yield gateway
    app.dependency_overrides.pop(get_ai_gateway, None)


@pytest.fixture
def client():
    """Client de test FastAPI"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = TestingSessionLocal()
    yield db
    db.close()


# ============ HELPERS ============

def create_user(role="employee", status="active", department=None, password="password123"):
    unique_id = str(uuid.uuid4())[:8]
    db = TestingSessionLocal()
    user = User(
        email=f"{role}{unique_id}@test.com",
        name=f"{role.upper()} {unique_id}",
        role=role,
        status=status,
        department=department
    )
    user.set_password(password)
    db.add(user)
    db.commit()
    db.refresh(user)
    db.close()
    return user


def auth_headers(user):
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


def create_project(manager, name="Projet test", status="active", members=()):
    db = TestingSessionLocal()
    project = Project(name=name, status=status, manager_id=manager.id)
    db.add(project)
    db.flush()
    for member in members:
        db.add(ProjectMember(project_id=project.id, user_id=member.id))
    db.commit()
    db.refresh(project)
    db.close()
    return project


def create_task(project, creator, assignee=None, **fields):
    db = TestingSessionLocal()
    now = datetime.utcnow()
    task = Task(
        project_id=project.id,
        creator_id=creator.id,
        assignee_id=assignee.id if assignee else None,
        title=fields.pop("title", "Tâche test"),
        status=fields.pop("status", "todo"),
        priority=fields.pop("priority", "medium"),
        created_at=fields.pop("created_at", now),
        updated_at=fields.pop("updated_at", now),
        **fields
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    db.close()
    return task


@pytest.fixture
def employee():
    return create_user("employee")


@pytest.fixture
def pm():
    return create_user("pm")


@pytest.fixture
def hr():
    return create_user("hr")


@pytest.fixture
def project(pm):
    return create_project(pm)
