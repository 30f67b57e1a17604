import logging
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from dugsi.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(url: str | None = None) -> Engine:
    url = url or settings.sqlalchemy_url
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _set_sqlite_pragmas)
    else:
        engine = create_engine(url, pool_pre_ping=True)
    return engine


class _LazyPool:
    """Process-wide engine and session factory, created on first use."""

    def __init__(self):
        self._engine: Engine | None = None
        self._factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            if settings.sqlalchemy_url.startswith("sqlite:///"):
                Path(settings.sqlalchemy_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
            self._engine = get_engine()
        return self._engine

    def session(self):
        if self._factory is None:
            self._factory = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)
        return self._factory()

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._factory = None


pool = _LazyPool()


def get_db():
    db = pool.session()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine | None = None):
    # Register every mapped table before create_all.
    import dugsi.models  # noqa: F401

    engine = engine or pool.engine
    Base.metadata.create_all(engine)
    logger.info("Database schema ready at %s", engine.url)
