from fastapi import APIRouter, HTTPException
from typing import List
from zenflow.schemas.analysis import PoseRuleResponse
from zenflow.services.pose_rules import YogaPose, describe_rules

router = APIRouter(prefix="/poses", tags=["poses"])


@router.get("", response_model=List[PoseRuleResponse])
async def list_poses():
    """List supported poses with the joint triple and angle bands each is scored on."""
    return describe_rules()


@router.get("/{pose_name}", response_model=PoseRuleResponse)
async def get_pose(pose_name: str):
    """Rule for a single pose, looked up by display or member name."""
    pose = YogaPose.from_name(pose_name)
    if pose is None:
        raise HTTPException(status_code=404, detail=f"Pose {pose_name} not found")
    return next(rule for rule in describe_rules() if rule["name"] == pose.value)
