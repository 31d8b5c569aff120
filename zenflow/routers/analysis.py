from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from typing import Dict
from zenflow.config import settings
from zenflow.schemas.analysis import FeedbackResponse, FrameAnalysisRequest, JointIn, LiveFrame
from zenflow.services.pose_feedback import PoseFeedbackAnalyzer
from zenflow.services.pose_geometry import PoseObservation
from zenflow.services.pose_rules import PoseFeedback, evaluate_pose
from zenflow.services.pose_sampler import AnalysisThrottle
import structlog

logger = structlog.get_logger()
router = APIRouter(prefix="/analysis", tags=["analysis"])


def to_observation(joints: Dict[str, JointIn], timestamp=None) -> PoseObservation:
    return PoseObservation.from_dict(
        {name: joint.model_dump() for name, joint in joints.items()},
        timestamp=timestamp
    )


def to_response(feedback: PoseFeedback) -> FeedbackResponse:
    return FeedbackResponse(
        pose=feedback.pose.value if feedback.pose else None,
        verdict=feedback.verdict.value if feedback.verdict else None,
        message=feedback.message,
        angle=feedback.angle
    )


@router.post("/frame", response_model=FeedbackResponse)
async def analyze_frame(request: FrameAnalysisRequest):
    """
    Classify a single skeletal observation for the selected pose.

    Unknown pose names and undetectable joints are not errors: the response
    carries the corresponding feedback message.

    Args:
        request: Pose name and joint positions for one frame

    Returns:
        Verdict, message and measured angle
    """
    try:
        observation = to_observation(request.joints, request.timestamp)
        feedback = evaluate_pose(request.pose, observation)

        logger.info(
            "Analyzed frame",
            pose=request.pose,
            verdict=feedback.verdict.value if feedback.verdict else None,
            angle=feedback.angle
        )

        return to_response(feedback)

    except Exception as e:
        logger.error("Failed to analyze frame", error=str(e), pose=request.pose)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to analyze frame: {str(e)}"
        )


@router.websocket("/live")
async def live_feedback(websocket: WebSocket, pose: str):
    """
    Live feedback channel.

    The client pushes frames as fast as it likes; one frame per
    `analysis_interval_seconds` is classified and answered. Malformed frames
    are answered with an error message.
    """
    await websocket.accept()
    analyzer = PoseFeedbackAnalyzer(pose)
    throttle = AnalysisThrottle(settings.analysis_interval_seconds)
    logger.info("Live feedback connected", pose=pose)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = LiveFrame.model_validate_json(raw)
            except ValidationError as e:
                await websocket.send_json({"error": "Invalid frame", "detail": str(e)})
                continue

            if not throttle.ready():
                continue

            feedback = analyzer.analyze(to_observation(frame.joints, frame.timestamp))
            await websocket.send_json(to_response(feedback).model_dump())

    except WebSocketDisconnect:
        logger.info("Live feedback disconnected", pose=pose)
