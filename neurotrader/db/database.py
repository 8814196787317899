from sqlalchemy import create_engine, event, inspect
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from neurotrader.config import settings
from neurotrader.exceptions import StorageUnavailable
import logging

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.database_url

if SQLALCHEMY_DATABASE_URL == "sqlite://":
    # In-memory database: every connection must see the same data
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False}  # Needed for SQLite
    )


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class
Base = declarative_base()

# Flipped off when a non-strict startup could not create the schema
storage_available = True


def set_storage_available(available: bool) -> None:
    global storage_available
    storage_available = available


# Dependency to get DB session
def get_db():
    if not storage_available:
        raise StorageUnavailable("Database service unavailable")
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables that do not exist yet"""
    # Import models here to avoid circular imports
    from neurotrader.models.chat import ChatSession, ChatMessage  # noqa: F401
    from neurotrader.models.user import User, Transaction  # noqa: F401
    from neurotrader.models.waitlist import WaitlistEntry  # noqa: F401

    Base.metadata.create_all(bind=engine)

    tables = inspect(engine).get_table_names()
    logger.info(f"Database ready with tables: {tables}")
    return tables
