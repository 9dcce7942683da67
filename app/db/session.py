import logging

from fastapi import HTTPException
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.db.base import Base

logger = logging.getLogger(__name__)


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {"connect_timeout": 30}


# Create the SQLAlchemy engine
engine = create_engine(settings.DATABASE_URL,
                       connect_args=_connect_args(settings.DATABASE_URL),
                       pool_pre_ping=True,
                       pool_recycle=3600,
)

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create missing tables, including the unique constraints on bindings."""
    # models must be imported so they register on Base.metadata
    import app.models.verification  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# do not change the order of the code below
# Dependency that can be used in routes to get the session
def get_db() -> Session:
    db = SessionLocal()  # generate a new SessionLocal
    try:
        yield db
    except Exception as e:
        # includes rate limit rejections, which subclass the starlette exception
        if isinstance(e, StarletteHTTPException):
            raise e
        else:
            logger.exception("database session error: %s", e)
            raise HTTPException(status_code=500, detail="Query data error")
    finally:
        db.close()
