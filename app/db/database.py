import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from app.core.config import get_settings

logger = logging.getLogger(__name__)

DATABASE_URL = get_settings().database_url


def build_engine(database_url: str):
    """Create an engine with connect_args matching the database type"""
    if database_url.startswith("postgresql"):
        return create_engine(database_url)
    # SQLite configuration
    return create_engine(database_url, connect_args={"check_same_thread": False})


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connection():
    try:
        with engine.connect():
            logger.info("Database connection successful")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
