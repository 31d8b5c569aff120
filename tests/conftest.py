import math
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from zenflow.main import app
from zenflow.database import get_db, Base
from zenflow.models import user, practice_session
from zenflow.middleware.auth import get_current_user
from zenflow.services.pose_geometry import Joint, JointName, PoseObservation

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


def mock_get_current_user():
    return {
        "user_id": "test_user_123",
        "email": "jane@example.com",
        "first_name": "Jane",
        "last_name": "Doe",
    }


@pytest.fixture(scope="function")
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = mock_get_current_user
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_user_data():
    return {
        "id": "test_user_123",
        "email": "jane@example.com",
        "first_name": "Jane",
        "last_name": "Doe"
    }


def joints_at_angle(first: JointName, vertex: JointName, last: JointName,
                    angle: float, confidence: float = 0.9):
    """
    Three joints whose measured angle at `vertex` is `angle` degrees.

    `first` lies along +x from the vertex, `last` is rotated `angle` degrees
    counter-clockwise from it.
    """
    rad = math.radians(angle)
    return {
        first: Joint(0.7, 0.5, confidence),
        vertex: Joint(0.5, 0.5, confidence),
        last: Joint(0.5 + 0.2 * math.cos(rad), 0.5 + 0.2 * math.sin(rad), confidence),
    }


def observation_at_angle(joints, angle: float, confidence: float = 0.9, timestamp=None) -> PoseObservation:
    return PoseObservation(joints=joints_at_angle(*joints, angle=angle, confidence=confidence), timestamp=timestamp)


def payload_at_angle(joints, angle: float, confidence: float = 0.9):
    """Same as joints_at_angle, shaped as an API request body."""
    return {
        name.value: {"x": joint.x, "y": joint.y, "confidence": joint.confidence}
        for name, joint in joints_at_angle(*joints, angle=angle, confidence=confidence).items()
    }
