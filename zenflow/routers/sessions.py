from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from typing import Any, Dict, List
from zenflow.database import get_db
from zenflow.middleware.auth import get_current_user, get_current_user_id
from zenflow.models.practice_session import PracticeSession
from zenflow.models.user import User
from zenflow.schemas.practice_session import (
    PracticeSessionCreate,
    PracticeSessionResponse,
    PracticeSessionSummary,
)
from zenflow.services.pose_feedback import FeedbackSession
from zenflow.services.pose_rules import YogaPose
from zenflow.services.pose_sampler import build_video_sampler
from zenflow.services.s3_service import S3Service
import structlog
import os

logger = structlog.get_logger()
router = APIRouter(prefix="/sessions", tags=["sessions"])


def analyze_practice_video(file_url: str, pose: YogaPose) -> FeedbackSession:
    """
    Download a practice video and run it through the feedback pipeline.

    Blocking; call from a worker thread.
    """
    s3_service = S3Service()
    local_path = s3_service.download_to_temp(file_url)
    sampler = None
    try:
        sampler = build_video_sampler(local_path)
        return FeedbackSession(pose_name=pose.value).run(sampler)
    finally:
        if sampler is not None:
            sampler.close()
        if os.path.exists(local_path):
            os.remove(local_path)


def get_or_create_user(db: Session, claims: Dict[str, Any]) -> User:
    user = db.query(User).filter(User.id == claims["user_id"]).first()
    if user:
        return user

    user = User(
        id=claims["user_id"],
        email=claims.get("email") or f"{claims['user_id']}@zenflow.local",
        first_name=claims.get("first_name"),
        last_name=claims.get("last_name")
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user from token", user_id=user.id)
    return user


def get_owned_session(db: Session, session_id: int, user_id: str) -> PracticeSession:
    practice_session = db.query(PracticeSession).filter(PracticeSession.id == session_id).first()
    if not practice_session:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    if practice_session.user_id != user_id:
        raise HTTPException(
            status_code=403,
            detail="Access denied: Session does not belong to current user"
        )
    return practice_session


@router.post("", response_model=PracticeSessionResponse)
async def create_session(
    session_data: PracticeSessionCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Analyze an uploaded practice video for one pose and store the feedback.

    Args:
        session_data: S3 file URL of the video and the pose practised
        current_user: Claims from the JWT token
        db: Database session

    Returns:
        The stored session with its feedback timeline
    """
    pose = YogaPose.from_name(session_data.pose)
    if pose is None:
        raise HTTPException(status_code=400, detail=f"Unknown pose: {session_data.pose}")

    try:
        user = get_or_create_user(db, current_user)

        feedback_session = await run_in_threadpool(analyze_practice_video, session_data.fileUrl, pose)

        practice_session = PracticeSession(
            user_id=user.id,
            pose=pose.value,
            file_url=session_data.fileUrl,
            summary=feedback_session.summary,
            verdict_counts=feedback_session.verdict_counts,
            feedback=feedback_session.entries
        )
        db.add(practice_session)
        db.commit()
        db.refresh(practice_session)

        logger.info(
            "Practice session saved",
            session_id=practice_session.id,
            user_id=user.id,
            pose=pose.value,
            samples=len(feedback_session.entries)
        )

        return practice_session

    except HTTPException:
        raise
    except (FileNotFoundError, ValueError) as e:
        db.rollback()
        logger.warning("Practice video could not be read", error=str(e), file_url=session_data.fileUrl)
        raise HTTPException(status_code=422, detail=f"Could not read practice video: {str(e)}")
    except Exception as e:
        db.rollback()
        logger.error(
            "Failed to create practice session",
            error=str(e),
            user_id=current_user.get("user_id")
        )
        raise HTTPException(
            status_code=500,
            detail=f"Failed to create practice session: {str(e)}"
        )


@router.get("", response_model=List[PracticeSessionSummary])
async def list_sessions(
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Fetch all practice sessions for the current user, newest first.
    """
    try:
        sessions = (
            db.query(PracticeSession)
            .filter(PracticeSession.user_id == current_user_id)
            .order_by(PracticeSession.id.desc())
            .all()
        )

        logger.info(
            "Retrieved practice sessions",
            user_id=current_user_id,
            session_count=len(sessions)
        )

        return sessions

    except Exception as e:
        logger.error(
            "Failed to retrieve practice sessions",
            error=str(e),
            user_id=current_user_id
        )
        raise HTTPException(
            status_code=500,
            detail=f"Failed to retrieve sessions: {str(e)}"
        )


@router.get("/{session_id}", response_model=PracticeSessionResponse)
async def get_session(
    session_id: int,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Fetch one practice session with its full feedback timeline.
    """
    return get_owned_session(db, session_id, current_user_id)


@router.delete("/{session_id}")
async def delete_session(
    session_id: int,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Delete a practice session and its video.

    The database row is removed even if the S3 deletion fails.
    """
    practice_session = get_owned_session(db, session_id, current_user_id)

    try:
        s3_service = S3Service()
        if not s3_service.delete_file(practice_session.file_url):
            logger.warning(
                "Failed to delete S3 file for session",
                session_id=session_id,
                file_url=practice_session.file_url
            )

        db.delete(practice_session)
        db.commit()

        logger.info(
            "Practice session deleted",
            session_id=session_id,
            user_id=current_user_id
        )

        return {
            "message": "Session deleted successfully",
            "sessionId": session_id
        }

    except Exception as e:
        db.rollback()
        logger.error(
            "Failed to delete practice session",
            error=str(e),
            session_id=session_id,
            user_id=current_user_id
        )
        raise HTTPException(
            status_code=500,
            detail=f"Failed to delete session: {str(e)}"
        )
