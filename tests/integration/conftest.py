"""
Integration test fixtures. Overrides get_db and the grading oracle for API tests.
"""
import pytest
from sqlalchemy.orm import sessionmaker


@pytest.fixture
def override_get_db(in_memory_engine):
    """Session factory over the shared in-memory engine."""
    import quiz_api.models  # noqa: F401
    from quiz_api.config import Base
    Base.metadata.create_all(in_memory_engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)

    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def api_client(override_get_db, oracle):
    """FastAPI TestClient with in-memory DB and a scripted grading oracle."""
    from fastapi.testclient import TestClient
    from quiz_api.api import app
    from quiz_api.bootstrap import get_grading_oracle
    from quiz_api.config import get_db
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_grading_oracle] = lambda: oracle
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def guest_headers():
    return {"x-guest-id": "guest-device-1"}


@pytest.fixture
def signed_in_client(api_client):
    """API client holding an auth cookie for a freshly registered account."""
    response = api_client.post(
        "/auth/register",
        json={"email": "applicant@example.com", "password": "testpass123", "confirm_password": "testpass123"},
    )
    assert response.status_code == 200
    return api_client
