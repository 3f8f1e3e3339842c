import contextlib
import logging

from database.database import SessionLocal
from database.repository import QuoteRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def quote_uow(session_factory=None):
    """Per-unit-of-work transaction scope.

    Yields a QuoteRepository bound to a fresh Session. Commits on success,
    rolls back on exception, always closes.

    Usage:
        with quote_uow() as repo:
            quote = repo.quotes.get_quote_for_matching(quote_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    session = (session_factory or SessionLocal)()
    try:
        repo = QuoteRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def uow_factory(session_factory):
    """Bind quote_uow to a specific sessionmaker (tests, alternate databases)."""
    def _factory():
        return quote_uow(session_factory)
    return _factory
