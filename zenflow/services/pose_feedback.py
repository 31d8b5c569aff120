"""
ZenFlow Pose Feedback Module

Connects a pose sampler to the pose rules: every sampled observation is
classified on its own and turned into feedback text. Frames are independent;
no smoothing is applied between them.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
import structlog

from .pose_geometry import PoseObservation
from .pose_rules import PoseFeedback, Verdict, YogaPose, evaluate_pose

logger = structlog.get_logger()


class PoseFeedbackAnalyzer:
    """Classifies observations for one selected pose."""

    def __init__(self, pose_name: str):
        self.pose_name = pose_name
        self.pose = YogaPose.from_name(pose_name)
        if self.pose is None:
            logger.warning("Analyzer created for unknown pose", pose_name=pose_name)

    def analyze(self, observation: Optional[PoseObservation]) -> Optional[PoseFeedback]:
        """
        Feedback for a single observation.

        Returns None when there is no observation (no person in frame), so the
        previous feedback stays on display.
        """
        if observation is None:
            return None
        return evaluate_pose(self.pose_name, observation)

    def stream(self, observations: Iterable[Optional[PoseObservation]]) -> Iterator[Tuple[PoseObservation, PoseFeedback]]:
        """Lazily pair each observation a sampler produces with its feedback."""
        for observation in observations:
            feedback = self.analyze(observation)
            if feedback is not None:
                yield observation, feedback


@dataclass
class FeedbackSession:
    """
    Running record of feedback for one practice session.

    `summary` always holds the most recent message, which is what the user
    sees when they stop the analysis.
    """
    pose_name: str
    summary: str = ""
    entries: List[Dict[str, Any]] = field(default_factory=list)
    counts: Counter = field(default_factory=Counter)

    def record(self, feedback: PoseFeedback, timestamp: Optional[float] = None) -> None:
        verdict = feedback.verdict.value if feedback.verdict else None
        self.entries.append({
            "timestamp": timestamp,
            "verdict": verdict,
            "message": feedback.message,
            "angle": round(feedback.angle, 2) if feedback.angle is not None else None,
        })
        if verdict:
            self.counts[verdict] += 1
        self.summary = feedback.message

    @property
    def verdict_counts(self) -> Dict[str, int]:
        return {verdict.value: self.counts.get(verdict.value, 0) for verdict in Verdict}

    def run(self, observations: Iterable[Optional[PoseObservation]]) -> "FeedbackSession":
        """Consume a finite sampler and record all feedback."""
        analyzer = PoseFeedbackAnalyzer(self.pose_name)
        for observation, feedback in analyzer.stream(observations):
            self.record(feedback, observation.timestamp)

        logger.info(
            "Feedback session completed",
            pose=self.pose_name,
            samples=len(self.entries),
            verdict_counts=self.verdict_counts
        )
        return self
