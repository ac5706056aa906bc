"""
Shared pytest fixtures for the Workforce Projects API test suite.

Provides:
    - engine: In-memory SQLite engine with every table created (function-scoped)
    - db: Session bound to that engine
    - client: FastAPI TestClient whose get_db dependency uses the same engine
    - admin / lead / other_lead / employee / other_employee: Seeded users
    - *_headers: Bearer headers for the seeded users
    - fixed_project / hourly_project / milestone_project: Projects created via the API
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.core.security import get_password_hash
from app.db.session import get_db, init_db
from app.main import app
from app.models.user import User, UserRole

from api_helpers import auth_headers, create_project


# ── Engine & session ─────────────────────────────────────────────────────


@pytest.fixture()
def engine():
    """Fresh in-memory database per test; StaticPool keeps the single connection alive."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def client(engine):
    def _get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ── Users ────────────────────────────────────────────────────────────────


def _seed_user(engine, email: str, name: str, role: UserRole, **extra) -> User:
    with Session(engine) as session:
        user = User(
            email=email,
            name=name,
            password=get_password_hash("secret123"),
            roles=[role.value],
            **extra,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


@pytest.fixture()
def admin(engine):
    return _seed_user(engine, "admin@example.com", "Admin", UserRole.ADMIN)


@pytest.fixture()
def lead(engine):
    return _seed_user(engine, "lead@example.com", "Lead One", UserRole.TEAMLEAD)


@pytest.fixture()
def other_lead(engine):
    return _seed_user(engine, "lead2@example.com", "Lead Two", UserRole.TEAMLEAD)


@pytest.fixture()
def employee(engine):
    return _seed_user(engine, "emp@example.com", "Employee One", UserRole.EMPLOYEE)


@pytest.fixture()
def other_employee(engine):
    return _seed_user(engine, "emp2@example.com", "Employee Two", UserRole.EMPLOYEE)


@pytest.fixture()
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture()
def lead_headers(lead):
    return auth_headers(lead)


@pytest.fixture()
def other_lead_headers(other_lead):
    return auth_headers(other_lead)


@pytest.fixture()
def employee_headers(employee):
    return auth_headers(employee)


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def fixed_project(client, admin_headers):
    return create_project(client, admin_headers)


@pytest.fixture()
def hourly_project(client, admin_headers):
    return create_project(
        client, admin_headers,
        project_name="Support retainer", category="hourly", fixed_amount=None, hourly_rate=50,
    )


@pytest.fixture()
def milestone_project(client, admin_headers):
    return create_project(
        client, admin_headers,
        project_name="Mobile app", category="milestone", fixed_amount=None,
    )
