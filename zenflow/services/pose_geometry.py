"""
ZenFlow Pose Geometry Module

Joint types shared by the samplers and the pose rules, plus the joint-angle
evaluator used to score yoga poses.

Coordinates are normalized image coordinates with the origin at the
bottom-left corner (y grows upwards). The pose thresholds were tuned against
that convention, so samplers must convert into it.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple
import structlog

logger = structlog.get_logger()

# A joint must be strictly above this confidence to take part in an angle
MIN_JOINT_CONFIDENCE = 0.1


class JointName(str, Enum):
    """Anatomical landmarks a pose observation can carry"""
    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    NECK = "neck"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    ROOT = "root"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"

    @classmethod
    def parse(cls, name: str) -> Optional["JointName"]:
        """
        Resolve a joint name sent by a client.

        Accepts snake_case ("right_shoulder") as well as the camelCase names
        used by mobile pose APIs ("rightShoulder").

        Returns:
            The matching JointName, or None if the name is unknown
        """
        if not name:
            return None
        candidate = name.strip().replace("-", "_")
        if "_" not in candidate:
            candidate = "".join("_" + c.lower() if c.isupper() else c for c in candidate).lstrip("_")
        try:
            return cls(candidate.lower())
        except ValueError:
            return None


JointTriple = Tuple[JointName, JointName, JointName]


@dataclass(frozen=True)
class Joint:
    """A single detected landmark"""
    x: float
    y: float
    confidence: float  # detection confidence [0..1]


@dataclass(frozen=True)
class PoseObservation:
    """
    Skeletal observation for one sampled frame.

    Observations may be incomplete: a joint the detector did not find is
    simply absent from `joints`.
    """
    joints: Mapping[JointName, Joint] = field(default_factory=dict)
    timestamp: Optional[float] = None

    def __post_init__(self):
        # Freeze the mapping so an observation cannot change after sampling
        object.__setattr__(self, "joints", MappingProxyType(dict(self.joints)))

    def get(self, name: JointName) -> Optional[Joint]:
        return self.joints.get(name)

    @classmethod
    def from_dict(cls, raw: Dict[str, Dict[str, float]], timestamp: Optional[float] = None) -> "PoseObservation":
        """
        Build an observation from a `{name: {"x", "y", "confidence"}}` payload.

        Unknown joint names are ignored so clients can send their detector's
        full landmark set.
        """
        joints: Dict[JointName, Joint] = {}
        for name, point in raw.items():
            joint_name = JointName.parse(name)
            if joint_name is None:
                logger.debug("Ignoring unknown joint", joint=name)
                continue
            joints[joint_name] = Joint(
                x=float(point["x"]),
                y=float(point["y"]),
                confidence=float(point.get("confidence", 0.0)),
            )
        return cls(joints=joints, timestamp=timestamp)


def compute_angle(joint1: Optional[Joint],
                  joint2: Optional[Joint],
                  joint3: Optional[Joint],
                  min_confidence: float = MIN_JOINT_CONFIDENCE) -> Optional[float]:
    """
    Angle at `joint2` formed by `joint1` and `joint3`, in degrees.

    The angle is the absolute difference of the polar angles of the vectors
    joint2->joint1 and joint2->joint3. It is not folded back into [0, 180],
    so results up to 360 are possible; pose thresholds depend on this.

    Args:
        joint1: First outer joint
        joint2: Vertex joint
        joint3: Second outer joint
        min_confidence: Joints at or below this confidence are undetectable

    Returns:
        Angle in degrees, or None if any joint is missing or not confident
    """
    for joint in (joint1, joint2, joint3):
        if joint is None or not joint.confidence > min_confidence:
            return None

    v1 = (joint1.x - joint2.x, joint1.y - joint2.y)
    v2 = (joint3.x - joint2.x, joint3.y - joint2.y)

    angle = math.atan2(v2[1], v2[0]) - math.atan2(v1[1], v1[0])
    return abs(math.degrees(angle))


def measure_angle(observation: PoseObservation, joints: JointTriple) -> Optional[float]:
    """Look up a joint triple in an observation and compute its angle."""
    first, vertex, last = joints
    return compute_angle(observation.get(first), observation.get(vertex), observation.get(last))
