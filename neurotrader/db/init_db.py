from neurotrader.db.database import init_db, engine
from neurotrader.config import settings
import logging

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)


def main():
    """Create the NeuroTrader tables in the configured SQLite file"""
    logger.info(f"Initializing database at {settings.DB_PATH}")
    tables = init_db()
    for table in tables:
        logger.info(f"  {table}")
    engine.dispose()
    logger.info("Database initialization completed")

if __name__ == "__main__":
    main()
