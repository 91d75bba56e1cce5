from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .config import DATABASE_URL
import logging

logger = logging.getLogger(__name__)

if DATABASE_URL.startswith("sqlite"):
    # In-memory SQLite must share a single connection across threads
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True, pool_recycle=3600)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """
    Dependency that yields a database session and always closes it.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
