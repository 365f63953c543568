from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from outagewatch.config import settings

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if "sqlite" in settings.database_url else {},
    pool_pre_ping=True,
    echo=False,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_ready = False


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create tables and indexes. Raises OperationalError if the store is unreachable."""
    global _ready
    import outagewatch.models.outage  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
    _ready = True


def is_ready() -> bool:
    return _ready
