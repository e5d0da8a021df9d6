from contextlib import contextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from utils.errors import UpstreamFailureError

logger = logging.getLogger(__name__)


class BaseStore:
    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    @contextmanager
    def transaction(self, session: Session | None = None):
        """
        Yields a session inside a transaction that commits on exit.
        When an outer session is passed the work joins that transaction instead.
        """
        if session is not None:
            yield session
            return
        try:
            with self._sessions.begin() as new_session:
                yield new_session
        except SQLAlchemyError as e:
            logger.error(f"Database error in {type(self).__name__}: {e}", exc_info=True)
            raise UpstreamFailureError("Database operation failed") from e

    @contextmanager
    def reading(self):
        try:
            with self._sessions() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Database read error in {type(self).__name__}: {e}", exc_info=True)
            raise UpstreamFailureError("Database operation failed") from e
