"""
ZenFlow Pose Rules Module

Static rule table for the supported yoga poses and the three-tier classifier
that turns one measured joint angle into feedback text.

Every pose is scored on a single diagnostic angle. The Good band is open on
both ends; a lower Improve band includes its upper edge and an upper Improve
band includes its lower edge. Anything else is Poor.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple
import structlog

from .pose_geometry import JointName, JointTriple, PoseObservation, measure_angle

logger = structlog.get_logger()

POSE_NOT_RECOGNIZED = "Pose not recognized"


class YogaPose(str, Enum):
    """Supported yoga poses, valued by their display name"""
    MOUNTAIN = "Mountain Pose"
    TREE = "Tree Pose"
    WARRIOR_I = "Warrior I"
    WARRIOR_II = "Warrior II"
    DOWNWARD_DOG = "Downward-Facing Dog"
    CHILDS = "Child's Pose"
    COBRA = "Cobra Pose"
    TRIANGLE = "Triangle Pose"
    PLANK = "Plank Pose"
    BRIDGE = "Bridge Pose"

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["YogaPose"]:
        """Resolve a display name ("Tree Pose") or member name ("TREE"), case-insensitively."""
        if not name:
            return None
        wanted = name.strip().lower()
        for pose in cls:
            if wanted == pose.value.lower() or wanted == pose.name.lower():
                return pose
        return None


class Verdict(Enum):
    """Qualitative outcome for one sampled frame"""
    GOOD = "good"
    IMPROVE = "improve"
    POOR = "poor"
    UNDETECTABLE = "undetectable"


@dataclass(frozen=True)
class Band:
    """Numeric interval with explicit edge inclusivity"""
    low: float
    high: float
    low_inclusive: bool = False
    high_inclusive: bool = False

    def contains(self, value: float) -> bool:
        above = value >= self.low if self.low_inclusive else value > self.low
        below = value <= self.high if self.high_inclusive else value < self.high
        return above and below

    def describe(self) -> str:
        left = "[" if self.low_inclusive else "("
        right = "]" if self.high_inclusive else ")"
        return f"{left}{self.low:g}, {self.high:g}{right}"


def good_band(low: float, high: float) -> Band:
    return Band(low, high)


def improve_below(low: float, high: float) -> Band:
    return Band(low, high, high_inclusive=True)


def improve_above(low: float, high: float) -> Band:
    return Band(low, high, low_inclusive=True)


@dataclass(frozen=True)
class PoseRule:
    """Diagnostic angle, bands and messages for one pose"""
    pose: YogaPose
    joints: JointTriple
    good: Band
    improve: Tuple[Band, ...]
    good_message: str
    improve_message: str
    poor_message: str
    undetectable_message: str


@dataclass(frozen=True)
class PoseFeedback:
    """Feedback for a single frame; `pose` and `verdict` are None for an unknown pose name"""
    pose: Optional[YogaPose]
    verdict: Optional[Verdict]
    message: str
    angle: Optional[float] = None

    def __str__(self) -> str:
        return self.message


_R = JointName

POSE_RULES: Dict[YogaPose, PoseRule] = {
    YogaPose.MOUNTAIN: PoseRule(
        pose=YogaPose.MOUNTAIN,
        joints=(_R.ROOT, _R.NECK, _R.RIGHT_SHOULDER),
        good=good_band(170, 190),
        improve=(improve_below(160, 170), improve_above(190, 200)),
        good_message="Good Mountain Pose: Spine is straight and aligned",
        improve_message="Improve Mountain Pose: Straighten your spine more",
        poor_message="Poor Mountain Pose: Focus on aligning your spine vertically",
        undetectable_message="Cannot detect Mountain Pose",
    ),
    YogaPose.TREE: PoseRule(
        pose=YogaPose.TREE,
        joints=(_R.RIGHT_HIP, _R.RIGHT_KNEE, _R.RIGHT_ANKLE),
        good=good_band(80, 100),
        improve=(improve_below(60, 80), improve_above(100, 120)),
        good_message="Good Tree Pose: Foot is well-placed on inner thigh",
        improve_message="Improve Tree Pose: Adjust your foot placement on your inner thigh",
        poor_message="Poor Tree Pose: Place your foot higher on your inner thigh",
        undetectable_message="Cannot detect Tree Pose",
    ),
    YogaPose.WARRIOR_I: PoseRule(
        pose=YogaPose.WARRIOR_I,
        joints=(_R.RIGHT_HIP, _R.RIGHT_KNEE, _R.RIGHT_ANKLE),
        good=good_band(85, 95),
        improve=(improve_below(75, 85), improve_above(95, 105)),
        good_message="Good Warrior I Pose: Front knee is at 90 degrees",
        improve_message="Improve Warrior I Pose: Adjust your front knee to 90 degrees",
        poor_message="Poor Warrior I Pose: Bend your front knee more to reach 90 degrees",
        undetectable_message="Cannot detect Warrior I Pose",
    ),
    YogaPose.WARRIOR_II: PoseRule(
        pose=YogaPose.WARRIOR_II,
        joints=(_R.LEFT_WRIST, _R.LEFT_SHOULDER, _R.RIGHT_WRIST),
        good=good_band(170, 190),
        improve=(improve_below(160, 170), improve_above(190, 200)),
        good_message="Good Warrior II Pose: Arms are aligned and extended",
        improve_message="Improve Warrior II Pose: Extend your arms more",
        poor_message="Poor Warrior II Pose: Focus on aligning and extending your arms",
        undetectable_message="Cannot detect Warrior II Pose",
    ),
    YogaPose.DOWNWARD_DOG: PoseRule(
        pose=YogaPose.DOWNWARD_DOG,
        joints=(_R.ROOT, _R.NECK, _R.RIGHT_ANKLE),
        good=good_band(30, 50),
        improve=(improve_below(20, 30), improve_above(50, 60)),
        good_message="Good Downward-Facing Dog Pose: Spine and legs form an inverted V",
        improve_message="Improve Downward-Facing Dog Pose: Adjust your hips to form a better inverted V",
        poor_message="Poor Downward-Facing Dog Pose: Lift your hips higher to form an inverted V",
        undetectable_message="Cannot detect Downward-Facing Dog Pose",
    ),
    YogaPose.CHILDS: PoseRule(
        pose=YogaPose.CHILDS,
        joints=(_R.ROOT, _R.NECK, _R.RIGHT_SHOULDER),
        good=good_band(150, 180),
        improve=(improve_below(130, 150),),
        good_message="Good Child's Pose: Body is well-folded and relaxed",
        improve_message="Improve Child's Pose: Try to relax and fold your body more",
        poor_message="Poor Child's Pose: Focus on folding your body and relaxing into the pose",
        undetectable_message="Cannot detect Child's Pose",
    ),
    YogaPose.COBRA: PoseRule(
        pose=YogaPose.COBRA,
        joints=(_R.ROOT, _R.NECK, _R.RIGHT_SHOULDER),
        good=good_band(30, 60),
        improve=(improve_below(15, 30), improve_above(60, 75)),
        good_message="Good Cobra Pose: Upper body is lifted with a good arch",
        improve_message="Improve Cobra Pose: Adjust your upper body lift",
        poor_message="Poor Cobra Pose: Focus on lifting your upper body while keeping your hips down",
        undetectable_message="Cannot detect Cobra Pose",
    ),
    YogaPose.TRIANGLE: PoseRule(
        pose=YogaPose.TRIANGLE,
        joints=(_R.RIGHT_SHOULDER, _R.ROOT, _R.RIGHT_ANKLE),
        good=good_band(30, 60),
        improve=(improve_below(15, 30), improve_above(60, 75)),
        good_message="Good Triangle Pose: Trunk is well-extended to the side",
        improve_message="Improve Triangle Pose: Extend your trunk more to the side",
        poor_message="Poor Triangle Pose: Focus on extending your trunk to the side while keeping your legs straight",
        undetectable_message="Cannot detect Triangle Pose",
    ),
    YogaPose.PLANK: PoseRule(
        pose=YogaPose.PLANK,
        joints=(_R.RIGHT_SHOULDER, _R.ROOT, _R.RIGHT_ANKLE),
        good=good_band(170, 190),
        improve=(improve_below(160, 170), improve_above(190, 200)),
        good_message="Good Plank Pose: Body is well-aligned and straight",
        improve_message="Improve Plank Pose: Straighten your body more",
        poor_message="Poor Plank Pose: Focus on aligning your body from head to heels",
        undetectable_message="Cannot detect Plank Pose",
    ),
    YogaPose.BRIDGE: PoseRule(
        pose=YogaPose.BRIDGE,
        joints=(_R.RIGHT_SHOULDER, _R.RIGHT_HIP, _R.RIGHT_KNEE),
        good=good_band(170, 190),
        improve=(improve_below(150, 170),),
        good_message="Good Bridge Pose: Hips are well-lifted and aligned",
        improve_message="Improve Bridge Pose: Lift your hips higher",
        poor_message="Poor Bridge Pose: Focus on lifting your hips while keeping your shoulders on the ground",
        undetectable_message="Cannot detect Bridge Pose",
    ),
}


def get_rule(pose: YogaPose) -> PoseRule:
    return POSE_RULES[pose]


def classify(pose: YogaPose, angle: Optional[float]) -> PoseFeedback:
    """
    Classify one measured angle for a pose.

    Args:
        pose: Target pose
        angle: Diagnostic angle in degrees, or None if it could not be measured

    Returns:
        Feedback with the verdict and the pose-specific message
    """
    rule = POSE_RULES[pose]

    if angle is None:
        return PoseFeedback(pose, Verdict.UNDETECTABLE, rule.undetectable_message)

    if rule.good.contains(angle):
        return PoseFeedback(pose, Verdict.GOOD, rule.good_message, angle)
    if any(band.contains(angle) for band in rule.improve):
        return PoseFeedback(pose, Verdict.IMPROVE, rule.improve_message, angle)
    return PoseFeedback(pose, Verdict.POOR, rule.poor_message, angle)


def evaluate_pose(pose_name: str, observation: PoseObservation) -> PoseFeedback:
    """
    Measure and classify an observation for a pose given by name.

    Never raises for bad input: an unknown pose name yields the
    "Pose not recognized" message and undetectable joints yield the pose's
    "Cannot detect" message.
    """
    pose = YogaPose.from_name(pose_name)
    if pose is None:
        logger.debug("Pose not recognized", pose_name=pose_name)
        return PoseFeedback(None, None, POSE_NOT_RECOGNIZED)

    angle = measure_angle(observation, POSE_RULES[pose].joints)
    return classify(pose, angle)


def describe_rules() -> List[Dict]:
    """Rule catalogue in a JSON-friendly shape"""
    catalogue = []
    for pose, rule in POSE_RULES.items():
        catalogue.append({
            "name": pose.value,
            "joints": [joint.value for joint in rule.joints],
            "good": rule.good.describe(),
            "improve": [band.describe() for band in rule.improve],
        })
    return catalogue
