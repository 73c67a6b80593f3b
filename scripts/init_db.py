import logging

from tracker.config import log_level
from tracker.db.models import Base
from tracker.db.session import engine_url, get_engine

logging.basicConfig(level=log_level())
logger = logging.getLogger(__name__)

def main():
    logger.info("Creating companies/sources tables at %s...", engine_url())
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database schema ready.")

if __name__ == "__main__":
    main()
