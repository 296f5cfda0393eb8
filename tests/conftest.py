import os
import tempfile
from datetime import date

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MEDIA_ROOT"] = tempfile.mkdtemp(prefix="ponto-media-")
os.environ["SKIP_LOCATION_VALIDATION"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ponto.database import Base, get_db
from ponto.main import app
from ponto.models import Employee, Role, User
from ponto.utils.auth import create_access_token, get_password_hash

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Secret@123"

SCHEDULE = {
    "startTime": "07:00",
    "endTime": "17:00",
    "lunchStartTime": "12:00",
    "lunchEndTime": "13:00",
    "workDays": [1, 2, 3, 4, 5],
    "toleranceMinutes": 10,
}

OFFICE = {"name": "Head office", "latitude": -23.5505, "longitude": -46.6333, "radius": 100}


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(db):
    counter = {"n": 0}

    def _make(role=Role.EMPLOYEE, hire_date=date(2025, 1, 2), schedule=SCHEDULE, locations=None,
              is_remote=False, department="Operations", cost_center="CC-01", client="Acme", name=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"user{n}@example.com",
            hashed_password=get_password_hash(PASSWORD),
            name=name or f"User {n}",
            cpf=f"000.000.000-{n:02d}",
            role=role.value,
            is_active=True,
            is_first_login=True,
        )
        db.add(user)
        db.flush()
        employee = Employee(
            user_id=user.id,
            employee_id=f"E{n:04d}",
            department=department,
            position="Analyst",
            hire_date=hire_date,
            salary=3000.0,
            work_schedule=schedule,
            is_remote=is_remote,
            allowed_locations=[OFFICE] if locations is None else locations,
            cost_center=cost_center,
            client=client,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def employee(make_employee):
    return make_employee()


@pytest.fixture
def hr(make_employee):
    return make_employee(role=Role.HR, department="People")


@pytest.fixture
def auth_headers():
    def _headers(employee):
        token = create_access_token({"sub": str(employee.user_id), "role": employee.user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
