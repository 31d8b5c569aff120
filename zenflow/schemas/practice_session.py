from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, List, Optional


class PracticeSessionCreate(BaseModel):
    fileUrl: str
    pose: str


class FeedbackEntry(BaseModel):
    timestamp: Optional[float] = None
    verdict: Optional[str] = None
    message: str
    angle: Optional[float] = None


class PracticeSessionResponse(BaseModel):
    id: int
    user_id: str
    pose: str
    file_url: str
    summary: Optional[str] = None
    verdict_counts: Optional[Dict[str, int]] = None
    feedback: Optional[List[FeedbackEntry]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PracticeSessionSummary(BaseModel):
    id: int
    pose: str
    file_url: str
    summary: Optional[str] = None
    verdict_counts: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True
