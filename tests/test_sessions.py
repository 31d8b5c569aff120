import pytest
from unittest.mock import patch, MagicMock
from zenflow.models.practice_session import PracticeSession
from zenflow.models.user import User
from zenflow.services.pose_rules import POSE_RULES, YogaPose
from zenflow.services.pose_sampler import PoseSampler
from conftest import observation_at_angle

FILE_URL = "https://placeholder-bucket.s3.us-east-1.amazonaws.com/practice-videos/tree.mp4"


class FakeSampler(PoseSampler):
    def __init__(self, observations):
        self.observations = observations
        self.closed = False

    def __iter__(self):
        return iter(self.observations)

    def close(self):
        self.closed = True


@pytest.fixture
def downloaded_video(tmp_path):
    path = tmp_path / "tree.mp4"
    path.write_bytes(b"video")
    return path


def test_create_session_success(client, db_session, downloaded_video):
    """Test analyzing an uploaded practice video."""
    joints = POSE_RULES[YogaPose.TREE].joints
    sampler = FakeSampler([
        observation_at_angle(joints, 165.0, timestamp=1.0),
        observation_at_angle(joints, 110.0, timestamp=2.0),
        observation_at_angle(joints, 92.0, timestamp=3.0),
    ])

    with patch('zenflow.routers.sessions.S3Service') as mock_s3_service, \
            patch('zenflow.routers.sessions.build_video_sampler', return_value=sampler) as mock_build:
        mock_instance = MagicMock()
        mock_instance.download_to_temp.return_value = str(downloaded_video)
        mock_s3_service.return_value = mock_instance

        response = client.post("/sessions", json={"fileUrl": FILE_URL, "pose": "tree pose"})

    assert response.status_code == 200
    data = response.json()
    assert data["id"] > 0
    assert data["user_id"] == "test_user_123"
    assert data["pose"] == "Tree Pose"
    assert data["summary"] == "Good Tree Pose: Foot is well-placed on inner thigh"
    assert data["verdict_counts"] == {"good": 1, "improve": 1, "poor": 1, "undetectable": 0}
    assert [entry["verdict"] for entry in data["feedback"]] == ["poor", "improve", "good"]

    mock_instance.download_to_temp.assert_called_once_with(FILE_URL)
    mock_build.assert_called_once_with(str(downloaded_video))
    assert sampler.closed
    assert not downloaded_video.exists()

    user = db_session.query(User).filter(User.id == "test_user_123").first()
    assert user is not None
    assert user.email == "jane@example.com"


def test_create_session_unknown_pose(client, db_session):
    with patch('zenflow.routers.sessions.S3Service') as mock_s3_service:
        response = client.post("/sessions", json={"fileUrl": FILE_URL, "pose": "Lotus Pose"})

    assert response.status_code == 400
    assert "Unknown pose" in response.json()["detail"]
    mock_s3_service.assert_not_called()


def test_create_session_unreadable_video(client, db_session, downloaded_video):
    sampler = MagicMock()
    sampler.__iter__.side_effect = ValueError("Could not open video file")

    with patch('zenflow.routers.sessions.S3Service') as mock_s3_service, \
            patch('zenflow.routers.sessions.build_video_sampler', return_value=sampler):
        mock_s3_service.return_value.download_to_temp.return_value = str(downloaded_video)

        response = client.post("/sessions", json={"fileUrl": FILE_URL, "pose": "Tree Pose"})

    assert response.status_code == 422
    assert "Could not read practice video" in response.json()["detail"]
    sampler.close.assert_called_once()
    assert not downloaded_video.exists()


def test_create_session_download_error(client, db_session):
    with patch('zenflow.routers.sessions.S3Service') as mock_s3_service:
        mock_s3_service.return_value.download_to_temp.side_effect = Exception("Failed to download video: 404")

        response = client.post("/sessions", json={"fileUrl": FILE_URL, "pose": "Tree Pose"})

    assert response.status_code == 500
    assert "Failed to create practice session" in response.json()["detail"]


def _add_session(db_session, user_id, pose="Tree Pose"):
    practice_session = PracticeSession(
        user_id=user_id,
        pose=pose,
        file_url=FILE_URL,
        summary="Good Tree Pose: Foot is well-placed on inner thigh",
        verdict_counts={"good": 1, "improve": 0, "poor": 0, "undetectable": 0},
        feedback=[{"timestamp": 1.0, "verdict": "good", "message": "Good Tree Pose: Foot is well-placed on inner thigh", "angle": 90.0}]
    )
    db_session.add(practice_session)
    db_session.commit()
    db_session.refresh(practice_session)
    return practice_session


def test_list_sessions(client, db_session, sample_user_data):
    db_session.add(User(**sample_user_data))
    db_session.commit()
    first = _add_session(db_session, "test_user_123")
    second = _add_session(db_session, "test_user_123", pose="Bridge Pose")
    _add_session(db_session, "someone_else")

    response = client.get("/sessions")

    assert response.status_code == 200
    data = response.json()
    assert [entry["id"] for entry in data] == [second.id, first.id]
    assert data[0]["pose"] == "Bridge Pose"


def test_list_sessions_empty(client, db_session):
    response = client.get("/sessions")

    assert response.status_code == 200
    assert response.json() == []


def test_get_session(client, db_session, sample_user_data):
    db_session.add(User(**sample_user_data))
    db_session.commit()
    practice_session = _add_session(db_session, "test_user_123")

    response = client.get(f"/sessions/{practice_session.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["feedback"][0]["verdict"] == "good"
    assert data["feedback"][0]["angle"] == 90.0


def test_get_session_not_found(client, db_session):
    response = client.get("/sessions/999")

    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


def test_get_session_access_denied(client, db_session):
    practice_session = _add_session(db_session, "test_user_456")

    response = client.get(f"/sessions/{practice_session.id}")

    assert response.status_code == 403
    assert "Access denied" in response.json()["detail"]


def test_delete_session(client, db_session, sample_user_data):
    db_session.add(User(**sample_user_data))
    db_session.commit()
    practice_session = _add_session(db_session, "test_user_123")
    session_id = practice_session.id

    with patch('zenflow.routers.sessions.S3Service') as mock_s3_service:
        mock_s3_service.return_value.delete_file.return_value = False

        response = client.delete(f"/sessions/{session_id}")

    assert response.status_code == 200
    assert response.json()["sessionId"] == session_id
    mock_s3_service.return_value.delete_file.assert_called_once_with(FILE_URL)

    db_session.expire_all()
    assert db_session.query(PracticeSession).filter(PracticeSession.id == session_id).first() is None
