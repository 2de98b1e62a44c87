"""Database connection and transaction management."""

import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from aliasfs.exceptions import StoreFailure
from aliasfs.models import Base


class Database(object):
    """Engine plus a per-thread transaction scope shared by the stores.

    Args:
        url (str): SQLAlchemy database URL.
        echo (bool, optional): Log all statements. Defaults to ``False``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_engine(url, echo=echo)
        self.session_factory = sessionmaker(self.engine, expire_on_commit=False)
        self._local = threading.local()

    def create_all(self) -> None:
        """Create the metadata and alias tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @property
    def in_transaction(self) -> bool:
        return getattr(self._local, "session", None) is not None

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session whose work commits as one unit when the block exits.

        A nested call joins the transaction already open on this thread, so
        store calls made inside a coordinator operation commit or roll back
        together. Any error rolls the whole unit back and is re-raised;
        SQLAlchemy errors are raised as :class:`StoreFailure`.
        """
        current = getattr(self._local, "session", None)
        if current is not None:
            yield current
            return

        with self.session_factory() as session:
            self._local.session = session
            try:
                with session.begin():
                    yield session
            except SQLAlchemyError as exc:
                raise StoreFailure(
                    "Database operation failed", {"error": str(exc)}
                ) from exc
            finally:
                self._local.session = None
