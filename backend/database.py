# backend/database.py
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from config import settings
from utils.errors import Internal, InvalidState

logger = logging.getLogger(__name__)

# 1. Address from the environment (.env) or the local SQLite default
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. Hosted Postgres URLs still use the legacy scheme that SQLAlchemy rejects
if SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

# 3. Driver specific connection options
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False} # Only for SQLite
else:
    connect_args = {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Range of the INTEGER columns (int4 on Postgres). Larger ids or quantities
# cannot be stored or looked up, and sqlite raises OverflowError on bind.
MAX_INTEGER = 2**31 - 1


def fits_integer(value) -> bool:
    return -MAX_INTEGER - 1 <= value <= MAX_INTEGER


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    # Make sure every model is registered on Base before creating tables
    import models.users, models.product, models.cart, models.order, models.log  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def unit_of_work(db: Session, failure_message: str):
    """Commit on success, roll back on any error.

    Storage errors are re-raised as ``Internal`` so callers see one error kind
    for persistence failures. Integers the driver cannot bind become
    ``InvalidState``; shop errors raised inside the block pass through.
    """
    try:
        yield db
        db.commit()
    except OverflowError as exc:
        db.rollback()
        logger.warning("%s: value out of range", failure_message)
        raise InvalidState("Value out of range") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(failure_message)
        raise Internal(failure_message) from exc
    except Exception:
        db.rollback()
        raise
