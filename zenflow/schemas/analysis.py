from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class JointIn(BaseModel):
    x: float
    y: float
    confidence: float = Field(ge=0.0, le=1.0)


class FrameAnalysisRequest(BaseModel):
    pose: str
    joints: Dict[str, JointIn]  # joint name -> normalized position
    timestamp: Optional[float] = None


class LiveFrame(BaseModel):
    joints: Dict[str, JointIn]
    timestamp: Optional[float] = None


class FeedbackResponse(BaseModel):
    pose: Optional[str] = None
    verdict: Optional[str] = None  # good / improve / poor / undetectable
    message: str
    angle: Optional[float] = None


class PoseRuleResponse(BaseModel):
    name: str
    joints: List[str]
    good: str
    improve: List[str]
