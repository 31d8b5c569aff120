import numpy as np
import cv2
import pytest
from zenflow.services.pose_feedback import FeedbackSession, PoseFeedbackAnalyzer
from zenflow.services.pose_geometry import Joint, JointName, PoseObservation
from zenflow.services.pose_rules import POSE_RULES, Verdict, YogaPose
from zenflow.services.pose_sampler import AnalysisThrottle, PoseProvider, VideoFileSampler, midpoint
from conftest import observation_at_angle

TREE_JOINTS = POSE_RULES[YogaPose.TREE].joints


class FakeProvider(PoseProvider):
    """Returns a fixed Tree Pose observation for every frame it is given."""

    def __init__(self, angle: float = 90.0):
        self.angle = angle
        self.timestamps = []
        self.closed = False

    def name(self) -> str:
        return "fake"

    def infer_rgb(self, rgb, timestamp=None):
        self.timestamps.append(timestamp)
        return observation_at_angle(TREE_JOINTS, self.angle, timestamp=timestamp)

    def close(self) -> None:
        self.closed = True


def test_analyzer_skips_missing_observation():
    analyzer = PoseFeedbackAnalyzer("Tree Pose")
    assert analyzer.analyze(None) is None


def test_analyzer_classifies_each_frame_independently():
    analyzer = PoseFeedbackAnalyzer("Tree Pose")
    angles = [90.0, 165.0, 90.0, 70.0]
    observations = [observation_at_angle(TREE_JOINTS, a, timestamp=float(i)) for i, a in enumerate(angles)]

    verdicts = [feedback.verdict for _, feedback in analyzer.stream(observations)]
    assert verdicts == [Verdict.GOOD, Verdict.POOR, Verdict.GOOD, Verdict.IMPROVE]


def test_stream_drops_empty_samples():
    analyzer = PoseFeedbackAnalyzer("Tree Pose")
    observations = [None, observation_at_angle(TREE_JOINTS, 90.0, timestamp=1.0), None]

    results = list(analyzer.stream(observations))
    assert len(results) == 1
    assert results[0][0].timestamp == 1.0


def test_analyzer_with_unknown_pose():
    analyzer = PoseFeedbackAnalyzer("Lotus Pose")
    feedback = analyzer.analyze(observation_at_angle(TREE_JOINTS, 90.0))

    assert analyzer.pose is None
    assert feedback.message == "Pose not recognized"


def test_feedback_session_summary_is_latest_message():
    observations = [
        observation_at_angle(TREE_JOINTS, 90.0, timestamp=1.0),
        observation_at_angle(TREE_JOINTS, 110.0, timestamp=2.0),
        observation_at_angle(TREE_JOINTS, 90.0, confidence=0.05, timestamp=3.0),
    ]

    session = FeedbackSession(pose_name="Tree Pose").run(observations)

    assert session.summary == "Cannot detect Tree Pose"
    assert session.verdict_counts == {"good": 1, "improve": 1, "poor": 0, "undetectable": 1}
    assert [entry["timestamp"] for entry in session.entries] == [1.0, 2.0, 3.0]
    assert session.entries[0]["angle"] == pytest.approx(90.0)
    assert session.entries[2]["angle"] is None


def test_empty_session():
    session = FeedbackSession(pose_name="Tree Pose").run([])

    assert session.summary == ""
    assert session.entries == []
    assert sum(session.verdict_counts.values()) == 0


def test_throttle_admits_one_sample_per_interval():
    throttle = AnalysisThrottle(1.0, start=0.0)

    admitted = [t for t in [0.0, 0.5, 0.99, 1.0, 1.2, 1.99, 2.0, 3.5] if throttle.ready(t)]
    assert admitted == [1.0, 2.0, 3.5]


def test_throttle_with_zero_interval_admits_everything():
    throttle = AnalysisThrottle(0.0, start=10.0)
    assert all(throttle.ready(10.0 + i * 0.01) for i in range(5))


def test_midpoint_takes_lower_confidence():
    joint = midpoint(Joint(0.2, 0.4, 0.9), Joint(0.4, 0.6, 0.3))

    assert joint.x == pytest.approx(0.3)
    assert joint.y == pytest.approx(0.5)
    assert joint.confidence == 0.3


def test_video_sampler_missing_file(tmp_path):
    sampler = VideoFileSampler(str(tmp_path / "missing.mp4"), FakeProvider())

    with pytest.raises(FileNotFoundError):
        list(sampler)


def test_video_sampler_samples_once_per_second(tmp_path):
    video_path = tmp_path / "practice.avi"
    writer = cv2.VideoWriter(str(video_path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")
    for _ in range(30):
        writer.write(np.zeros((48, 64, 3), dtype=np.uint8))
    writer.release()

    provider = FakeProvider()
    sampler = VideoFileSampler(str(video_path), provider, interval=1.0)
    observations = list(sampler)
    sampler.close()

    assert [o.timestamp for o in observations] == pytest.approx([1.0, 2.0])
    assert provider.timestamps == pytest.approx([1.0, 2.0])
    assert provider.closed
