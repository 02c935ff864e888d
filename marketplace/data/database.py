# marketplace/data/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from marketplace.utils.settings import DATABASE_URL

Base = declarative_base()


def _sqlite_immediate_transactions(engine):
    # pysqlite nie otwiera transakcji przy SELECT, wiec odczyt-modyfikacja-zapis
    # nie bylby atomowy; BEGIN IMMEDIATE bierze blokade zapisu od poczatku transakcji
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str = DATABASE_URL, **kwargs):
    if url.startswith("sqlite"):
        # timeout: czekaj na blokade zamiast od razu "database is locked"
        kwargs.setdefault("connect_args", {"check_same_thread": False, "timeout": 30})
        engine = create_engine(url, **kwargs)
        _sqlite_immediate_transactions(engine)
        return engine

    # stock i koszyk czytane i zapisywane w jednej transakcji, wyscig konczy sie bledem 40001
    kwargs.setdefault("isolation_level", "REPEATABLE READ")
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


def build_session_factory(bind) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = build_engine()
SessionLocal = build_session_factory(engine)


def get_session_factory() -> sessionmaker:
    return SessionLocal
