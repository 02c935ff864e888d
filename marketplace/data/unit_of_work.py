# marketplace/data/unit_of_work.py
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from marketplace.domain.exceptions import SerializationConflict, TransientStoreError
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

# 40001 serialization_failure, 40P01 deadlock_detected
_PG_CONFLICT_CODES = {"40001", "40P01"}
_PG_UNIQUE_VIOLATION = "23505"


def translate_db_error(exc: Exception) -> Exception | None:
    """
    Zamienia bledy sterownika na bledy domeny.
    None -> blad nie jest ani konfliktem ani bledem przejsciowym, leci dalej bez zmian.
    """
    if isinstance(exc, PoolTimeoutError):
        return TransientStoreError(f"Connection pool timeout: {exc}")

    if not isinstance(exc, DBAPIError):
        return None

    orig = exc.orig
    pgcode = getattr(orig, "pgcode", None)
    message = str(orig)

    if isinstance(exc, IntegrityError):
        # wyscig dwoch insertow na unikalnym kluczu (koszyk usera, produkt w koszyku)
        if pgcode == _PG_UNIQUE_VIOLATION or "UNIQUE constraint failed" in message:
            return SerializationConflict(f"Concurrent insert: {message}")
        return None

    if pgcode in _PG_CONFLICT_CODES or "database is locked" in message:
        return SerializationConflict(f"Transaction conflict: {message}")

    if isinstance(exc, OperationalError) or exc.connection_invalidated:
        return TransientStoreError(f"Store unavailable: {message}")

    return None


class UnitOfWork:
    """
    Jawna granica transakcji: begin przy wejsciu, commit() recznie,
    rollback przy kazdym wyjatku i przy wyjsciu bez commita.

        with UnitOfWork(SessionLocal) as uow:
            repo = CartRepo(uow.session)
            ...
            uow.commit()
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.session: Session | None = None
        self.committed = False

    def __enter__(self) -> "UnitOfWork":
        self.session = self.session_factory()
        self.session.begin()
        self.committed = False
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            if exc is not None or not self.committed:
                self.session.rollback()
        finally:
            self.session.close()

        if exc is None:
            return False

        translated = translate_db_error(exc)
        if translated is not None:
            logger.warning(f"Unit of work rolled back: {translated}")
            raise translated from exc
        return False

    def commit(self):
        self.session.commit()
        self.committed = True

    def rollback(self):
        self.session.rollback()
