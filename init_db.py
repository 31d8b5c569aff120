#!/usr/bin/env python3
"""
Initialize the database with tables and a demo user.
"""

from zenflow.database import engine, SessionLocal, Base
from zenflow.models.user import User
import structlog

logger = structlog.get_logger()


def init_database():
    """Initialize the database with tables."""
    try:
        # Import all models to ensure they're registered
        from zenflow.models import user, practice_session

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")

        create_sample_data()

    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise


def create_sample_data():
    """Create a demo user for local testing."""
    db = SessionLocal()

    try:
        existing_user = db.query(User).filter(User.email == "demo@zenflow.app").first()
        if existing_user:
            logger.info("Sample data already exists, skipping creation")
            return

        user = User(
            id="demo_user",
            email="demo@zenflow.app",
            first_name="Demo",
            last_name="User"
        )
        db.add(user)
        db.commit()

        logger.info("Sample data created successfully", user_id=user.id)

    except Exception as e:
        db.rollback()
        logger.error("Failed to create sample data", error=str(e))
        raise
    finally:
        db.close()


if __name__ == "__main__":
    init_database()
    print("Database initialized successfully!")
