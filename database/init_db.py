import logging

from sqlalchemy import select
from sqlalchemy.orm import Session
from tenacity import retry, stop_after_attempt, wait_fixed

from core.scorer.weights import WeightVector
from database.models import Base, MatchingWeightVersion

logger = logging.getLogger(__name__)


def seed_default_weights(session: Session) -> bool:
    """Insert the default weight vector as version 0 when no version exists."""
    existing = session.execute(select(MatchingWeightVersion.id).limit(1)).first()
    if existing is not None:
        return False
    default = WeightVector.default()
    session.add(MatchingWeightVersion(
        version=default.version,
        weights=default.as_dict(),
        source=default.source,
        is_active=True,
    ))
    session.commit()
    logger.info("Seeded default weight vector v0.")
    return True


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2))
def init_db(bind=None):
    if bind is None:
        from database.database import engine
        bind = engine

    logger.info("Initializing database...")
    try:
        Base.metadata.create_all(bind=bind)
        logger.info("Tables created or verified.")

        with Session(bind) as session:
            seed_default_weights(session)
    except Exception as e:
        logger.error(f"Error initializing DB: {e}")
        raise


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
