from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from zenflow.database import Base


class PracticeSession(Base):
    __tablename__ = "practice_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    pose = Column(String, nullable=False)  # YogaPose display name
    file_url = Column(String, nullable=False)
    summary = Column(String, nullable=True)  # last feedback message
    verdict_counts = Column(JSON, nullable=True)  # verdict -> number of samples
    feedback = Column(JSON, nullable=True)  # timeline of sampled feedback
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="practice_sessions")
