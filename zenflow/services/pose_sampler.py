#!/usr/bin/env python3
"""
ZenFlow Pose Sampler Module

Adapters that produce skeletal observations for the pose rules. A provider
turns one RGB image into a PoseObservation; a sampler yields observations
from a source (a video file, a camera) at a bounded rate.

MediaPipe is optional and only imported when a MediaPipe provider is built.
"""

import cv2
import numpy as np
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, Optional
import structlog
import time

from zenflow.config import settings
from .pose_geometry import Joint, JointName, PoseObservation

logger = structlog.get_logger()


class PoseProvider(ABC):
    """
    Model adapter interface.

    Implementations take an RGB image (H,W,3 uint8) and return a
    PoseObservation, or None when no person is found.
    """

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def infer_rgb(self, rgb: np.ndarray, timestamp: Optional[float] = None) -> Optional[PoseObservation]: ...

    @abstractmethod
    def close(self) -> None: ...


class MediaPipePoseProvider(PoseProvider):
    """
    MediaPipe Pose provider.

    Notes:
    - MediaPipe's normalized y grows downwards; it is flipped so the origin is
      bottom-left, matching the angle rules.
    - `visibility` is used as confidence.
    - MediaPipe has no neck or root landmark; they are synthesized as the
      shoulder and hip midpoints with the lower confidence of the pair.
    """

    def __init__(self,
                 model_complexity: int = 1,
                 min_detection_confidence: float = 0.5,
                 min_tracking_confidence: float = 0.5):
        try:
            import mediapipe as mp  # type: ignore
        except ImportError as e:
            raise RuntimeError(
                "MediaPipe is not installed. Install pose deps with: pip install 'zenflow-pose[pose]'"
            ) from e

        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            model_complexity=int(model_complexity),
            smooth_landmarks=True,
            enable_segmentation=False,
            min_detection_confidence=float(min_detection_confidence),
            min_tracking_confidence=float(min_tracking_confidence)
        )

        PL = self.mp_pose.PoseLandmark
        self.landmark_map = {
            JointName.NOSE: PL.NOSE,
            JointName.LEFT_EYE: PL.LEFT_EYE,
            JointName.RIGHT_EYE: PL.RIGHT_EYE,
            JointName.LEFT_EAR: PL.LEFT_EAR,
            JointName.RIGHT_EAR: PL.RIGHT_EAR,
            JointName.LEFT_SHOULDER: PL.LEFT_SHOULDER,
            JointName.RIGHT_SHOULDER: PL.RIGHT_SHOULDER,
            JointName.LEFT_ELBOW: PL.LEFT_ELBOW,
            JointName.RIGHT_ELBOW: PL.RIGHT_ELBOW,
            JointName.LEFT_WRIST: PL.LEFT_WRIST,
            JointName.RIGHT_WRIST: PL.RIGHT_WRIST,
            JointName.LEFT_HIP: PL.LEFT_HIP,
            JointName.RIGHT_HIP: PL.RIGHT_HIP,
            JointName.LEFT_KNEE: PL.LEFT_KNEE,
            JointName.RIGHT_KNEE: PL.RIGHT_KNEE,
            JointName.LEFT_ANKLE: PL.LEFT_ANKLE,
            JointName.RIGHT_ANKLE: PL.RIGHT_ANKLE,
        }

        logger.info(
            "MediaPipePoseProvider initialized",
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence
        )

    def name(self) -> str:
        return "mediapipe_pose"

    def infer_rgb(self, rgb: np.ndarray, timestamp: Optional[float] = None) -> Optional[PoseObservation]:
        results = self.pose.process(rgb)
        if not results or not results.pose_landmarks:
            return None

        landmarks = results.pose_landmarks.landmark
        joints: Dict[JointName, Joint] = {}
        for joint_name, index in self.landmark_map.items():
            point = landmarks[int(index)]
            joints[joint_name] = Joint(
                x=float(point.x),
                y=1.0 - float(point.y),
                confidence=float(getattr(point, "visibility", 0.0) or 0.0)
            )

        neck = midpoint(joints[JointName.LEFT_SHOULDER], joints[JointName.RIGHT_SHOULDER])
        root = midpoint(joints[JointName.LEFT_HIP], joints[JointName.RIGHT_HIP])
        joints[JointName.NECK] = neck
        joints[JointName.ROOT] = root

        return PoseObservation(joints=joints, timestamp=timestamp)

    def close(self) -> None:
        if self.pose:
            self.pose.close()
            self.pose = None


def midpoint(a: Joint, b: Joint) -> Joint:
    return Joint(
        x=(a.x + b.x) / 2.0,
        y=(a.y + b.y) / 2.0,
        confidence=min(a.confidence, b.confidence)
    )


class AnalysisThrottle:
    """
    Admits at most one sample per `interval` seconds.

    The first sample is admitted once `interval` seconds have passed since
    `start`.
    """

    def __init__(self, interval: float, start: Optional[float] = None):
        self.interval = float(interval)
        self.last_time = time.monotonic() if start is None else float(start)

    def ready(self, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        if now - self.last_time < self.interval:
            return False
        self.last_time = now
        return True


class PoseSampler(ABC):
    """A lazy sequence of skeletal observations"""

    @abstractmethod
    def __iter__(self) -> Iterator[PoseObservation]: ...

    def close(self) -> None:
        """Release any model or device held by the sampler."""


class VideoFileSampler(PoseSampler):
    """Samples a recorded video, one pose inference per `interval` seconds of video time."""

    def __init__(self, video_path: str, provider: PoseProvider, interval: float = 1.0):
        self.video_path = Path(video_path)
        self.provider = provider
        self.interval = interval

    def __iter__(self) -> Iterator[PoseObservation]:
        if not self.video_path.exists():
            raise FileNotFoundError(f"Video file not found: {self.video_path}")

        cap = cv2.VideoCapture(str(self.video_path))
        if not cap.isOpened():
            raise ValueError(f"Could not open video file: {self.video_path}")

        fps = cap.get(cv2.CAP_PROP_FPS)
        throttle = AnalysisThrottle(self.interval, start=0.0)
        frame_index = 0
        sampled = 0

        logger.info(
            "Starting video sampling",
            video_path=str(self.video_path),
            fps=fps,
            interval=self.interval,
            provider=self.provider.name()
        )

        try:
            while True:
                ret, frame = cap.read()
                if not ret:
                    break

                timestamp = frame_index / fps if fps > 0 else float(frame_index)
                frame_index += 1
                if not throttle.ready(timestamp):
                    continue

                rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                observation = self.provider.infer_rgb(rgb_frame, timestamp=timestamp)
                if observation is None:
                    logger.debug("No pose detected in frame", timestamp=timestamp)
                    continue

                sampled += 1
                yield observation
        finally:
            cap.release()
            logger.info(
                "Video sampling finished",
                video_path=str(self.video_path),
                frames_read=frame_index,
                observations=sampled
            )

    def close(self) -> None:
        self.provider.close()


def build_video_sampler(video_path: str) -> VideoFileSampler:
    """Video sampler backed by MediaPipe, configured from settings."""
    provider = MediaPipePoseProvider(
        model_complexity=settings.mediapipe_model_complexity,
        min_detection_confidence=settings.min_detection_confidence,
        min_tracking_confidence=settings.min_tracking_confidence
    )
    return VideoFileSampler(video_path, provider, interval=settings.analysis_interval_seconds)
