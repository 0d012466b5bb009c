import os

import pytest

# Set test environment variables before importing any application code
os.environ.update(
    {
        "DATABASE_URL": "sqlite://",
        "ENVIRONMENT": "test",
        "DEBUG": "false",
    }
)

# Import after setting environment variables
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from maintenance_api import models  # noqa: E402,F401


@pytest.fixture(scope="function")
def memory_engine():
    """Create a fresh in-memory database for each test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session(memory_engine):
    """Create database session"""
    with Session(memory_engine) as session:
        yield session


@pytest.fixture(scope="function")
def client(session: Session):
    """Create a test client with overridden database dependency"""
    from fastapi.testclient import TestClient

    from maintenance_api.database import get_db
    from maintenance_api.main import app
    from maintenance_api.rate_limiter import limiter

    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()
