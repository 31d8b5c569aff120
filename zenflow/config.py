from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    database_url: str = "sqlite:///./zenflow.db"
    aws_access_key_id: str = "placeholder"
    aws_secret_access_key: str = "placeholder"
    aws_region: str = "us-east-1"
    s3_bucket_name: str = "placeholder-bucket"
    environment: str = "development"

    # JWT verification
    jwt_secret_key: str = "change-me-zenflow-development-secret"
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None

    # Pose sampling
    analysis_interval_seconds: float = 1.0
    mediapipe_model_complexity: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    class Config:
        env_file = ".env"


settings = Settings()
